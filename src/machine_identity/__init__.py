# SPDX-FileCopyrightText: 2026 The Machine Identity Authors
# SPDX-License-Identifier: Apache-2.0

"""Machine Identity - find out which VM this process runs on.

Probes on-prem environment variables, an on-prem config file, the AWS
instance metadata service and the Azure instance metadata service, in that
order, and returns the first identity found.

Quick Start::

    from machine_identity import DetectionContext

    context = DetectionContext()
    provider = context.select_provider()   # None when nothing matched
    info = provider.get_machine_info()
    print(info.instance_id, info.zone, info.region)
"""

from __future__ import annotations

from machine_identity._version import __version__

# Errors
from machine_identity.errors import (
    MachineIdentityError,
    MetadataParseError,
    MetadataUnavailableError,
    NoProviderDetectedError,
    ProviderNotReadyError,
    TokenNotRequired,
    TransportError,
    UnsupportedProviderError,
    ValidationError,
)

# Data models
from machine_identity.models import AdditionalParam, MachineIdentity, ProviderKind

# Configuration
from machine_identity.sdk.config import IdentityConfig

# Providers
from machine_identity.providers import (
    AwsProvider,
    AzureProvider,
    DetectorState,
    MachineIdentityProvider,
    OnPremConfigProvider,
    OnPremEnvProvider,
    create_provider,
)

# Selection  (primary integration point)
from machine_identity.sdk.selector import DetectionContext

__all__ = [
    "__version__",
    # Selection
    "DetectionContext",
    # Configuration
    "IdentityConfig",
    # Models
    "AdditionalParam",
    "MachineIdentity",
    "ProviderKind",
    # Providers
    "AwsProvider",
    "AzureProvider",
    "DetectorState",
    "MachineIdentityProvider",
    "OnPremConfigProvider",
    "OnPremEnvProvider",
    "create_provider",
    # Errors
    "MachineIdentityError",
    "MetadataParseError",
    "MetadataUnavailableError",
    "NoProviderDetectedError",
    "ProviderNotReadyError",
    "TokenNotRequired",
    "TransportError",
    "UnsupportedProviderError",
    "ValidationError",
]
