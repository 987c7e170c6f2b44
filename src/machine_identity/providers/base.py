# SPDX-FileCopyrightText: 2026 The Machine Identity Authors
# SPDX-License-Identifier: Apache-2.0

"""Common detector contract: ``name``, ``init()``, ``get_machine_info()``.

Each detector moves ``UNINITIALIZED -> READY | FAILED`` through ``init()``.
Calling ``init()`` again re-attempts detection; subclasses replace their
cached data only once detection has fully succeeded, so a failed re-attempt
never corrupts a READY detector.
"""

from __future__ import annotations

import logging
import os
import socket
from abc import ABC, abstractmethod
from enum import Enum
from typing import ClassVar, Optional

from machine_identity.errors import MachineIdentityError, ProviderNotReadyError
from machine_identity.models.machine_info import MachineIdentity
from machine_identity.models.provider_kind import ProviderKind
from machine_identity.sdk.config import IdentityConfig

logger = logging.getLogger(__name__)

ARCHITECTURE_ENV = "HOSTTYPE"


class DetectorState(str, Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    FAILED = "failed"


class MachineIdentityProvider(ABC):
    """A provider-specific source of machine identity."""

    kind: ClassVar[ProviderKind]

    def __init__(self, config: Optional[IdentityConfig] = None) -> None:
        self.config = config or IdentityConfig()
        self._state = DetectorState.UNINITIALIZED

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name} {self._state.value}>"

    @property
    def name(self) -> str:
        return self.kind.value

    @property
    def state(self) -> DetectorState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state is DetectorState.READY

    def init(self) -> None:
        """Detect this provider's environment.

        Raises:
            MachineIdentityError: The environment is not this provider's.
        """
        logger.debug("Initializing %s provider", self.name)
        try:
            self._detect()
        except MachineIdentityError:
            if self._state is not DetectorState.READY:
                self._state = DetectorState.FAILED
            raise
        self._state = DetectorState.READY

    def get_machine_info(self) -> MachineIdentity:
        """Return a fresh identity record.

        Raises:
            ProviderNotReadyError: ``init()`` has not succeeded.
        """
        if not self.is_ready:
            raise ProviderNotReadyError(f"{self.name} provider is not initialized ({self._state.value})")
        return self._build_machine_info()

    def get_virtual_machine_id(self) -> str:
        return self.get_machine_info().instance_id

    @abstractmethod
    def _detect(self) -> None:
        """Query the environment and cache what ``_build_machine_info`` needs."""

    @abstractmethod
    def _build_machine_info(self) -> MachineIdentity:
        """Build the identity record from cached detection results."""


def local_hostname() -> str:
    try:
        return socket.gethostname()
    except OSError:
        return ""


def local_architecture() -> str:
    return os.environ.get(ARCHITECTURE_ENV, "")
