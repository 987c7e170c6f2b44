# SPDX-FileCopyrightText: 2026 The Machine Identity Authors
# SPDX-License-Identifier: Apache-2.0

"""OpenTelemetry resource detector for the detected machine identity.

Maps the identity onto OTel semantic conventions (``cloud.*``, ``host.*``,
``k8s.*``) so it can be merged into a ``TracerProvider`` resource::

    from opentelemetry.sdk.resources import get_aggregated_resources
    resource = get_aggregated_resources([MachineIdentityResourceDetector()])
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from opentelemetry.sdk.resources import Resource, ResourceDetector

from machine_identity.errors import NoProviderDetectedError
from machine_identity.models.machine_info import MachineIdentity
from machine_identity.models.provider_kind import ProviderKind
from machine_identity.providers.base import local_hostname
from machine_identity.sdk.selector import DetectionContext

logger = logging.getLogger(__name__)

_CLOUD_ATTRS: Dict[ProviderKind, Dict[str, str]] = {
    ProviderKind.AWS: {"cloud.provider": "aws", "cloud.platform": "aws_ec2"},
    ProviderKind.AZURE: {"cloud.provider": "azure", "cloud.platform": "azure_vm"},
    ProviderKind.ON_PREM_CONFIG: {},
    ProviderKind.ON_PREM_ENV: {},
}


def identity_to_attributes(kind: ProviderKind, info: MachineIdentity) -> Dict[str, Any]:
    """Flatten *info* into resource attributes, skipping empty values."""
    attrs: Dict[str, Any] = dict(_CLOUD_ATTRS[kind])
    attrs["machine_identity.provider"] = kind.value

    candidates = {
        "host.id": info.instance_id,
        "host.name": local_hostname(),
        "host.arch": info.architecture,
        "cloud.region": info.region,
        "cloud.availability_zone": info.zone,
        "machine_identity.public_dns": info.public_dns,
        "k8s.cluster.name": info.cluster,
    }
    attrs.update({key: value for key, value in candidates.items() if value})
    if info.ip_addresses:
        attrs["host.ip"] = list(info.ip_addresses)
    return attrs


class MachineIdentityResourceDetector(ResourceDetector):
    """Resource detector backed by a :class:`DetectionContext`.

    Args:
        context: Context to select the provider from; a default one is
            created when omitted.
        raise_on_error: Raise :class:`NoProviderDetectedError` instead of
            returning an empty resource when nothing is detected.
    """

    def __init__(self, context: Optional[DetectionContext] = None, raise_on_error: bool = False) -> None:
        super().__init__(raise_on_error)
        self.context = context or DetectionContext()

    def detect(self) -> Resource:
        provider = self.context.select_provider()
        if provider is None:
            if self.raise_on_error:
                raise NoProviderDetectedError("no supported machine identity provider detected")
            return Resource.get_empty()

        attrs = identity_to_attributes(provider.kind, provider.get_machine_info())
        logger.debug("Machine identity resource attributes: %s", attrs)
        return Resource(attrs)
