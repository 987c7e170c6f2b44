# SPDX-FileCopyrightText: 2026 The Machine Identity Authors
# SPDX-License-Identifier: Apache-2.0

"""Machine identity providers, one per supported environment.

``DEFAULT_PROVIDER_ORDER`` is the probing order: cheap local checks
(environment, config file) before networked cloud metadata services.
"""

from __future__ import annotations

from typing import Dict, Optional, Tuple, Type, Union

from machine_identity.models.provider_kind import ProviderKind
from machine_identity.providers.aws import AwsProvider, MacInfo
from machine_identity.providers.azure import AzureProvider
from machine_identity.providers.base import DetectorState, MachineIdentityProvider
from machine_identity.providers.on_prem import OnPremConfigProvider, OnPremEnvProvider
from machine_identity.sdk.config import IdentityConfig

PROVIDER_TYPES: Dict[ProviderKind, Type[MachineIdentityProvider]] = {
    ProviderKind.ON_PREM_ENV: OnPremEnvProvider,
    ProviderKind.ON_PREM_CONFIG: OnPremConfigProvider,
    ProviderKind.AWS: AwsProvider,
    ProviderKind.AZURE: AzureProvider,
}

DEFAULT_PROVIDER_ORDER: Tuple[ProviderKind, ...] = (
    ProviderKind.ON_PREM_ENV,
    ProviderKind.ON_PREM_CONFIG,
    ProviderKind.AWS,
    ProviderKind.AZURE,
)


def create_provider(
    kind: Union[ProviderKind, str],
    config: Optional[IdentityConfig] = None,
) -> MachineIdentityProvider:
    """Return an uninitialized provider for *kind*.

    Raises:
        UnsupportedProviderError: If *kind* is a string naming no provider.
    """
    if not isinstance(kind, ProviderKind):
        kind = ProviderKind.parse(kind)
    return PROVIDER_TYPES[kind](config)


__all__ = [
    "DEFAULT_PROVIDER_ORDER",
    "PROVIDER_TYPES",
    "AwsProvider",
    "AzureProvider",
    "DetectorState",
    "MacInfo",
    "MachineIdentityProvider",
    "OnPremConfigProvider",
    "OnPremEnvProvider",
    "create_provider",
]
