# SPDX-FileCopyrightText: 2026 The Machine Identity Authors
# SPDX-License-Identifier: Apache-2.0

"""Bounded retry for metadata requests, built on tenacity.

Only :class:`~machine_identity.errors.TransportError` is retried.  Once the
attempt budget is spent the last transport error is re-raised unchanged, so
callers see the real request/response context rather than a ``RetryError``.

Usage::

    retrying = metadata_retrying(3, "IMDSv2 token")
    body = retrying(transport.fetch, "api/token", method="PUT")
"""

from __future__ import annotations

import logging
from typing import Any

from tenacity import Retrying, retry_if_exception_type, stop_after_attempt

from machine_identity.errors import TransportError

logger = logging.getLogger(__name__)


def metadata_retrying(max_attempts: int, operation: str) -> Retrying:
    """Return a tenacity ``Retrying`` that makes at most *max_attempts* calls.

    Raises:
        ValueError: If *max_attempts* is less than one.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be greater than zero")

    def _before(retry_state: Any) -> None:
        logger.debug("%s: attempt %d/%d", operation, retry_state.attempt_number, max_attempts)

    def _after(retry_state: Any) -> None:
        logger.debug(
            "%s: attempt %d failed: %s",
            operation,
            retry_state.attempt_number,
            retry_state.outcome.exception(),
        )

    return Retrying(
        stop=stop_after_attempt(max_attempts),
        retry=retry_if_exception_type(TransportError),
        before=_before,
        after=_after,
        reraise=True,
    )
