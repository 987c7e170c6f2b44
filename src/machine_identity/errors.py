# SPDX-FileCopyrightText: 2026 The Machine Identity Authors
# SPDX-License-Identifier: Apache-2.0

"""Exception taxonomy for machine identity detection.

Required data sources raise these to fail a detector's ``init()``; the
selector catches :class:`MachineIdentityError` and moves on to the next
candidate.  Enrichment lookups never let them escape.
"""

from __future__ import annotations

from typing import Mapping, Optional, Sequence, Tuple


class MachineIdentityError(Exception):
    """Base class for every error raised by this package."""


class TransportError(MachineIdentityError):
    """A metadata request failed at the network or HTTP level.

    Request and response context is kept as fields so callers can log or
    format it themselves.  ``status`` is ``None`` when no response arrived.
    """

    def __init__(
        self,
        method: str,
        url: str,
        request_headers: Optional[Mapping[str, str]] = None,
        status: Optional[int] = None,
        response_headers: Optional[Mapping[str, str]] = None,
        reason: Optional[str] = None,
    ) -> None:
        self.method = method
        self.url = url
        self.request_headers = dict(request_headers or {})
        self.status = status
        self.response_headers = dict(response_headers or {})
        self.reason = reason
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.status is None:
            return f"req={{{self.method} {self.url} {self.request_headers}}} failed: {self.reason}"
        return (
            f"req={{{self.method} {self.url} {self.request_headers}}}  "
            f"resp={{{self.status} {self.reason or ''} {self.response_headers}}}"
        )


class TokenNotRequired(MachineIdentityError):
    """Raised by a token-less metadata client: proceed without the token header."""


class MetadataParseError(MachineIdentityError, ValueError):
    """A metadata document or config file could not be parsed."""

    def __init__(self, source: str, detail: object) -> None:
        self.source = source
        self.detail = detail
        super().__init__(f"{source}: malformed document ({detail})")


class ValidationError(MachineIdentityError, ValueError):
    """A required field is missing or empty."""

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        super().__init__(message)


class UnsupportedProviderError(MachineIdentityError, ValueError):
    """An explicitly requested provider name is not known."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unsupported cloud provider type {name}")


class NoProviderDetectedError(MachineIdentityError):
    """Every detector failed; the environment is unsupported or misconfigured."""


class ProviderNotReadyError(MachineIdentityError):
    """Identity was requested from a detector whose ``init()`` has not succeeded."""


class MetadataUnavailableError(MachineIdentityError):
    """Neither the metadata service nor its local fallback could be read."""

    def __init__(self, message: str, causes: Sequence[BaseException]) -> None:
        self.causes: Tuple[BaseException, ...] = tuple(causes)
        super().__init__(message)


__all__ = [
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
