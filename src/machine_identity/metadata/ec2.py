# SPDX-FileCopyrightText: 2026 The Machine Identity Authors
# SPDX-License-Identifier: Apache-2.0

"""EC2 instance metadata client speaking both IMDS protocol generations.

IMDSv2 requires a session token; IMDSv1 does not.  Some virtualization
layers and emulated environments only speak IMDSv1, and the caller cannot
know in advance which generation is present, so every required read tries
IMDSv2 first and then falls back to IMDSv1 unconditionally.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Dict, List, Optional

from machine_identity.errors import MachineIdentityError, MetadataParseError, TokenNotRequired, TransportError
from machine_identity.metadata.retry import metadata_retrying
from machine_identity.metadata.token import (
    DEFAULT_TOKEN_ATTEMPTS,
    DEFAULT_TOKEN_TTL_SECONDS,
    TOKEN_HEADER,
    TokenManager,
)
from machine_identity.metadata.transport import DEFAULT_TIMEOUT_SECONDS, MetadataTransport

logger = logging.getLogger(__name__)

EC2_METADATA_URL = "http://169.254.169.254/latest/"
INSTANCE_ID_PATH = "meta-data/instance-id"
IDENTITY_DOCUMENT_PATH = "dynamic/instance-identity/document"


class Ec2MetadataClient:
    """Read EC2 instance metadata.

    A client without a :class:`TokenManager` runs in token-less (IMDSv1)
    mode: :meth:`get_token` raises :class:`TokenNotRequired` and reads are
    sent without the token header.
    """

    def __init__(
        self,
        transport: Optional[MetadataTransport] = None,
        token_manager: Optional[TokenManager] = None,
    ) -> None:
        self.transport = transport or MetadataTransport(EC2_METADATA_URL)
        self.token_manager = token_manager
        self._document: Optional[Dict[str, Any]] = None

    @classmethod
    def create(
        cls,
        base_url: str = EC2_METADATA_URL,
        ttl_seconds: int = DEFAULT_TOKEN_TTL_SECONDS,
        token_attempts: int = DEFAULT_TOKEN_ATTEMPTS,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        clock: Optional[Callable[[], float]] = None,
    ) -> Ec2MetadataClient:
        """Build a client, probing for IMDSv2.

        If no token can be acquired the client is returned in token-less mode.
        """
        transport = MetadataTransport(base_url, timeout=timeout)
        kwargs: Dict[str, Any] = {"ttl_seconds": ttl_seconds, "max_attempts": token_attempts}
        if clock is not None:
            kwargs["clock"] = clock
        manager = TokenManager(transport, **kwargs)
        try:
            manager.acquire()
        except MachineIdentityError as exc:
            logger.debug("IMDSv2 unavailable, using token-less metadata access: %s", exc)
            return cls(transport)
        return cls(transport, manager)

    @property
    def is_token_less(self) -> bool:
        return self.token_manager is None

    def get_token(self) -> str:
        """Return a valid token, renewing it when expired.

        Raises:
            TokenNotRequired: The client is in token-less mode.
            TransportError: Renewal failed.
        """
        if self.token_manager is None:
            raise TokenNotRequired("token is not required")
        return self.token_manager.get_token()

    def _token_headers(self) -> Dict[str, str]:
        try:
            return {TOKEN_HEADER: self.get_token()}
        except TokenNotRequired:
            return {}
        except MachineIdentityError as exc:
            logger.debug("IMDSv2 token renewal failed, reading without token: %s", exc)
            return {}

    def query(self, path: str) -> bytes:
        """Single read of *path*, with the token header when one is available."""
        return self.transport.fetch(path, headers=self._token_headers())

    def get_metadata(self, name: str) -> str:
        """Read ``meta-data/<name>`` as text."""
        path = f"meta-data/{name}"
        return _decode(self.query(path), path)

    def read_with_fallback(self, path: str, max_attempts: int) -> bytes:
        """Read *path* via IMDSv2, falling back to IMDSv1.

        1. Obtain or renew a token, up to *max_attempts* acquisition attempts.
        2. With a token, read up to *max_attempts* times; first success wins.
        3. Without a token, or after every token read failed, read without
           the token header up to *max_attempts* times.

        Raises:
            ValueError: If *max_attempts* is less than one.
            TransportError: The last IMDSv1 failure.
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be greater than zero")

        if self.token_manager is not None:
            try:
                token = self.token_manager.refresh(max_attempts)
            except MachineIdentityError as exc:
                logger.debug("IMDSv2 token unavailable for %s: %s", path, exc)
            else:
                try:
                    return metadata_retrying(max_attempts, f"IMDSv2 GET {path}")(
                        self.transport.fetch, path, headers={TOKEN_HEADER: token.value}
                    )
                except TransportError as exc:
                    logger.debug("IMDSv2 read of %s failed, falling back to IMDSv1: %s", path, exc)

        return metadata_retrying(max_attempts, f"IMDSv1 GET {path}")(self.transport.fetch, path)

    def get_instance_id_with_retry(self, max_attempts: int) -> str:
        return _decode(self.read_with_fallback(INSTANCE_ID_PATH, max_attempts), INSTANCE_ID_PATH).strip()

    def get_instance_identity_document(self, max_attempts: int = 1) -> Dict[str, Any]:
        """Return the instance-identity document, cached after the first read.

        Raises:
            TransportError: Both protocol generations failed.
            MetadataParseError: The document is not a JSON object.
        """
        if self._document is not None:
            return dict(self._document)

        body = self.read_with_fallback(IDENTITY_DOCUMENT_PATH, max_attempts)
        try:
            document = json.loads(body)
        except ValueError as exc:
            raise MetadataParseError(IDENTITY_DOCUMENT_PATH, exc) from exc
        if not isinstance(document, dict):
            raise MetadataParseError(IDENTITY_DOCUMENT_PATH, "expected a JSON object")

        self._document = document
        return dict(document)

    def list_macs(self) -> List[str]:
        """MAC addresses of attached network interfaces."""
        listing = self.get_metadata("network/interfaces/macs")
        return [entry.strip().rstrip("/") for entry in listing.split() if entry.strip().rstrip("/")]


def _decode(body: bytes, path: str) -> str:
    try:
        return body.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise MetadataParseError(path, exc) from exc
