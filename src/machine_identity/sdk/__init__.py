# SPDX-FileCopyrightText: 2026 The Machine Identity Authors
# SPDX-License-Identifier: Apache-2.0

"""Machine identity core components (config and provider selection)."""

from __future__ import annotations

from machine_identity.sdk.config import IdentityConfig

__all__ = ["IdentityConfig"]
