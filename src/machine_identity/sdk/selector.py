# SPDX-FileCopyrightText: 2026 The Machine Identity Authors
# SPDX-License-Identifier: Apache-2.0

"""Provider selection: first detector whose ``init()`` succeeds wins.

Detectors are probed sequentially, never in parallel: concurrent probes of
several metadata endpoints at boot can trip rate limits and make it unclear
which environment is the real one.  The winner is memoised in the
:class:`DetectionContext` for the rest of its lifetime.

Usage::

    from machine_identity import DetectionContext

    context = DetectionContext()
    provider = context.select_provider()
    if provider is None:
        raise SystemExit("unsupported environment")
    print(provider.get_machine_info().to_text())
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, List, Optional, Sequence, Union

from opentelemetry import trace

from machine_identity.errors import MachineIdentityError, NoProviderDetectedError
from machine_identity.models.machine_info import MachineIdentity
from machine_identity.models.provider_kind import ProviderKind
from machine_identity.providers import DEFAULT_PROVIDER_ORDER, PROVIDER_TYPES, MachineIdentityProvider
from machine_identity.sdk.config import IdentityConfig

logger = logging.getLogger(__name__)

ProviderFactory = Callable[[IdentityConfig], MachineIdentityProvider]


class DetectionContext:
    """Owns detection settings and the write-once selected provider.

    Args:
        config: Settings handed to every provider.  ``config.provider``
            restricts detection to that single provider.
        factories: Ordered provider factories; defaults to every supported
            provider in :data:`DEFAULT_PROVIDER_ORDER`.

    Raises:
        UnsupportedProviderError: If ``config.provider`` names no provider.
    """

    def __init__(
        self,
        config: Optional[IdentityConfig] = None,
        factories: Optional[Sequence[ProviderFactory]] = None,
    ) -> None:
        self.config = config or IdentityConfig()
        self.required_kind: Optional[ProviderKind] = (
            ProviderKind.parse(self.config.provider) if self.config.provider else None
        )
        if factories is None:
            factories = [PROVIDER_TYPES[kind] for kind in DEFAULT_PROVIDER_ORDER]
        self._factories: List[ProviderFactory] = list(factories)
        self._lock = threading.Lock()
        self._provider: Optional[MachineIdentityProvider] = None
        self._tracer = trace.get_tracer(__name__)

    @property
    def provider(self) -> Optional[MachineIdentityProvider]:
        """The memoised provider, or ``None`` before a successful selection."""
        return self._provider

    def supported_providers(self) -> List[MachineIdentityProvider]:
        """Fresh, uninitialized providers in probing order."""
        providers = [factory(self.config) for factory in self._factories]
        if self.required_kind is not None:
            providers = [p for p in providers if p.kind is self.required_kind]
        return providers

    def select_provider(
        self, kind: Optional[Union[ProviderKind, str]] = None
    ) -> Optional[MachineIdentityProvider]:
        """Return the first provider whose ``init()`` succeeds.

        The result is memoised; later calls return it without detecting
        again.  Returns ``None`` when no provider could be detected.

        Args:
            kind: Try only this provider.  A provider memoised earlier is
                never replaced, even when it is of another kind.

        Raises:
            UnsupportedProviderError: If *kind* names no provider.
        """
        if kind is not None and not isinstance(kind, ProviderKind):
            kind = ProviderKind.parse(kind)

        with self._lock:
            if self._provider is not None and kind in (None, self._provider.kind):
                return self._provider

            with self._tracer.start_as_current_span("machine_identity.select_provider") as span:
                candidates = self.supported_providers()
                if kind is not None:
                    candidates = [p for p in candidates if p.kind is kind]
                for provider in candidates:
                    if self._try_init(provider):
                        if self._provider is None:
                            self._provider = provider
                        span.set_attribute("machine_identity.provider", provider.name)
                        logger.info("Detected machine identity provider: %s", provider.name)
                        return provider
                span.set_attribute("machine_identity.detected", False)

        logger.warning("No machine identity provider detected")
        return None

    def require_provider(self, kind: Optional[Union[ProviderKind, str]] = None) -> MachineIdentityProvider:
        """Like :meth:`select_provider` but raises when nothing is detected.

        Raises:
            NoProviderDetectedError: Every provider failed to initialize.
        """
        provider = self.select_provider(kind)
        if provider is None:
            raise NoProviderDetectedError("no supported machine identity provider detected")
        return provider

    def get_machine_info(self) -> MachineIdentity:
        return self.require_provider().get_machine_info()

    def _try_init(self, provider: MachineIdentityProvider) -> bool:
        with self._tracer.start_as_current_span("machine_identity.detect") as span:
            span.set_attribute("machine_identity.provider", provider.name)
            try:
                provider.init()
            except MachineIdentityError as exc:
                span.record_exception(exc)
                span.set_attribute("machine_identity.detected", False)
                logger.debug("Provider %s not detected: %s", provider.name, exc)
                return False
            span.set_attribute("machine_identity.detected", True)
            return True
