# SPDX-FileCopyrightText: 2026 The Machine Identity Authors
# SPDX-License-Identifier: Apache-2.0

"""Closed set of supported runtime environments."""

from __future__ import annotations

from enum import Enum
from typing import Dict

from machine_identity.errors import UnsupportedProviderError


class ProviderKind(str, Enum):
    """Environment a machine identity was detected from."""

    AWS = "AWS"
    AZURE = "Azure"
    ON_PREM_CONFIG = "OnPrem/Config"
    ON_PREM_ENV = "OnPrem/ENV"

    @classmethod
    def parse(cls, name: str) -> ProviderKind:
        """Map a human-supplied provider name to its kind.

        Raises:
            UnsupportedProviderError: If *name* is not a supported provider.
        """
        try:
            return _KINDS_BY_NAME[name]
        except KeyError:
            raise UnsupportedProviderError(name) from None


_KINDS_BY_NAME: Dict[str, ProviderKind] = {kind.value: kind for kind in ProviderKind}
