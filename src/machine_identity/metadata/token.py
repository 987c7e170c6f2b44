# SPDX-FileCopyrightText: 2026 The Machine Identity Authors
# SPDX-License-Identifier: Apache-2.0

"""IMDSv2 session token: acquire, cache, renew.

States are implicit in the cached token:

- no token: next access acquires one
- valid token: returned without a network call
- expired token: treated exactly like no token
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

from machine_identity.errors import MetadataParseError, TransportError
from machine_identity.metadata.retry import metadata_retrying
from machine_identity.metadata.transport import MetadataTransport

logger = logging.getLogger(__name__)

TOKEN_PATH = "api/token"
TOKEN_TTL_HEADER = "X-aws-ec2-metadata-token-ttl-seconds"
TOKEN_HEADER = "X-aws-ec2-metadata-token"

DEFAULT_TOKEN_TTL_SECONDS = 6 * 3600
DEFAULT_TOKEN_ATTEMPTS = 3


@dataclass(frozen=True)
class SecurityToken:
    """Opaque bearer value with an absolute expiry (POSIX seconds)."""

    value: str
    expires_at: float

    def is_valid(self, now: float) -> bool:
        return now < self.expires_at


class TokenManager:
    """Owns the IMDSv2 token of a single metadata client.

    Args:
        transport: Transport rooted at the IMDS ``latest/`` path.
        ttl_seconds: Lifetime requested for each token.
        max_attempts: Default acquisition attempts before giving up.
        clock: Returns the current time in POSIX seconds.
    """

    def __init__(
        self,
        transport: MetadataTransport,
        ttl_seconds: int = DEFAULT_TOKEN_TTL_SECONDS,
        max_attempts: int = DEFAULT_TOKEN_ATTEMPTS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if ttl_seconds < 1:
            raise ValueError("ttl_seconds must be greater than 0")
        self._transport = transport
        self.ttl_seconds = ttl_seconds
        self.max_attempts = max_attempts
        self._clock = clock
        self._token: Optional[SecurityToken] = None

    @property
    def token(self) -> Optional[SecurityToken]:
        """The cached token, valid or not."""
        return self._token

    def has_valid_token(self) -> bool:
        return self._token is not None and self._token.is_valid(self._clock())

    def acquire(self, max_attempts: Optional[int] = None) -> SecurityToken:
        """Request a new token, retrying on transport errors.

        Raises:
            TransportError: The last failure once all attempts are spent.
            MetadataParseError: The token is not printable ASCII.
        """
        attempts = max_attempts if max_attempts is not None else self.max_attempts
        retrying = metadata_retrying(attempts, "IMDSv2 token")
        try:
            body = retrying(
                self._transport.fetch,
                TOKEN_PATH,
                method="PUT",
                headers={TOKEN_TTL_HEADER: str(self.ttl_seconds)},
            )
        except TransportError:
            self._token = None
            raise

        try:
            value = body.decode("ascii").strip()
        except UnicodeDecodeError as exc:
            self._token = None
            raise MetadataParseError(TOKEN_PATH, exc) from exc

        self._token = SecurityToken(
            value=value,
            expires_at=self._clock() + self.ttl_seconds,
        )
        logger.debug("Acquired IMDSv2 token valid for %ds", self.ttl_seconds)
        return self._token

    def refresh(self, max_attempts: Optional[int] = None) -> SecurityToken:
        """Return the cached token if still valid, otherwise acquire a new one."""
        if self._token is not None and self._token.is_valid(self._clock()):
            return self._token
        return self.acquire(max_attempts)

    def get_token(self) -> str:
        return self.refresh().value

    def invalidate(self) -> None:
        self._token = None
