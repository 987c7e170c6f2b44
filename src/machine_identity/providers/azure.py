# SPDX-FileCopyrightText: 2026 The Machine Identity Authors
# SPDX-License-Identifier: Apache-2.0

"""Azure VM provider backed by the Azure Instance Metadata Service.

The instance document alone is enough to identify the VM; the attested
document is fetched for diagnostics only and never validated.  When the
service is unreachable a local ``azure_instance.json`` with the same layout
is used instead.

Document format:
https://learn.microsoft.com/en-us/azure/virtual-machines/linux/instance-metadata-service
"""

from __future__ import annotations

import json
import logging
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, List, Optional

from machine_identity.errors import MetadataParseError, MetadataUnavailableError, TransportError
from machine_identity.metadata.transport import MetadataTransport
from machine_identity.models.machine_info import MachineIdentity
from machine_identity.models.provider_kind import ProviderKind
from machine_identity.providers.base import MachineIdentityProvider
from machine_identity.sdk.config import IdentityConfig

logger = logging.getLogger(__name__)

AZURE_API_VERSION = "2021-02-01"
ATTESTED_DOCUMENT_PATH = "attested/document"
INSTANCE_PATH = "instance"


class AzureProvider(MachineIdentityProvider):
    """Azure VM identity."""

    kind = ProviderKind.AZURE

    def __init__(
        self,
        config: Optional[IdentityConfig] = None,
        transport: Optional[MetadataTransport] = None,
    ) -> None:
        super().__init__(config)
        self.transport = transport or MetadataTransport(
            self.config.azure_metadata_url,
            default_headers={"Metadata": "True"},
            query={"api-version": AZURE_API_VERSION},
            timeout=self.config.timeout_seconds,
        )
        self._info: Optional[MachineIdentity] = None

    def _detect(self) -> None:
        try:
            attested = self.transport.fetch(ATTESTED_DOCUMENT_PATH)
            logger.debug("Azure attested document retrieved (%d bytes)", len(attested))
        except TransportError as exc:
            logger.debug("Azure attested document unavailable: %s", exc)

        source = self.transport.url_for(INSTANCE_PATH)
        try:
            raw = self.transport.fetch(INSTANCE_PATH)
        except TransportError as network_error:
            fallback = Path(self.config.azure_fallback_path)
            try:
                raw = fallback.read_bytes()
            except OSError as read_error:
                raise MetadataUnavailableError(
                    f"failed to retrieve azure metadata ({network_error}), "
                    f"failed to read local config ({read_error})",
                    [network_error, read_error],
                ) from read_error
            source = str(fallback)
            logger.info("Azure metadata service unreachable, using %s", fallback)

        try:
            data = json.loads(raw)
        except ValueError as exc:
            raise MetadataParseError(source, exc) from exc
        if not isinstance(data, dict):
            raise MetadataParseError(source, "expected a JSON object")

        self._info = machine_info_from_document(data)

    def _build_machine_info(self) -> MachineIdentity:
        return replace(self._info)


def machine_info_from_document(data: Dict[str, Any]) -> MachineIdentity:
    """Map an Azure IMDS ``instance`` document to a :class:`MachineIdentity`."""
    compute = _mapping(data.get("compute"))
    interfaces = [_mapping(i) for i in _sequence(_mapping(data.get("network")).get("interface"))]

    location = _text(compute.get("location"))
    zone = _text(compute.get("zone"))
    # Azure zones are bare numbers; prefix the region to get a unique zone name.
    virtual_zone = f"{location}-{zone}" if zone else location

    additional = [
        ("InstanceType", _text(compute.get("vmSize"))),
        ("GroupName", _text(compute.get("resourceGroupName"))),
        ("ImageID", _text(compute.get("sku"))),
        ("OS Type", _text(compute.get("osType"))),
        ("AccountID", _text(compute.get("subscriptionId"))),
        ("VmScaleSetName", _text(compute.get("vmScaleSetName"))),
    ]

    return MachineIdentity.with_additional(
        additional,
        instance_id=_text(compute.get("vmId")),
        zone=virtual_zone,
        region=location,
        ip_addresses=_private_ips(interfaces),
        public_dns=_public_address(interfaces),
    )


def _private_ips(interfaces: List[Dict[str, Any]]) -> List[str]:
    ips = []
    for interface in interfaces:
        for pair in _sequence(_mapping(interface.get("ipv4")).get("ipAddress")):
            address = _text(_mapping(pair).get("privateIpAddress"))
            if address:
                ips.append(address)
    return ips


def _public_address(interfaces: List[Dict[str, Any]]) -> str:
    if not interfaces:
        return ""
    addresses = _sequence(_mapping(interfaces[0].get("ipv4")).get("ipAddress"))
    if not addresses:
        return ""
    return _text(_mapping(addresses[0]).get("publicIpAddress"))


def _mapping(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _sequence(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def _text(value: Any) -> str:
    return "" if value is None else str(value)
