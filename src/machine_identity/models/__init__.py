# SPDX-FileCopyrightText: 2026 The Machine Identity Authors
# SPDX-License-Identifier: Apache-2.0

"""Machine identity data models."""

from __future__ import annotations

from machine_identity.models.machine_info import AdditionalParam, MachineIdentity
from machine_identity.models.provider_kind import ProviderKind

__all__ = ["AdditionalParam", "MachineIdentity", "ProviderKind"]
