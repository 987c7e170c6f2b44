# SPDX-FileCopyrightText: 2026 The Machine Identity Authors
# SPDX-License-Identifier: Apache-2.0

"""Tests for IMDSv2 token acquisition and caching."""

from __future__ import annotations

import pytest

from machine_identity.errors import MetadataParseError, TransportError
from machine_identity.metadata.token import (
    TOKEN_PATH,
    TOKEN_TTL_HEADER,
    SecurityToken,
    TokenManager,
)

PUT_TOKEN = ("PUT", TOKEN_PATH)


class Clock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


def _failure():
    return TransportError("PUT", "http://fake/api/token", status=403)


class TestSecurityToken:
    def test_valid_before_expiry(self):
        assert SecurityToken("t", expires_at=100.0).is_valid(99.9)

    def test_invalid_at_expiry(self):
        assert not SecurityToken("t", expires_at=100.0).is_valid(100.0)

    def test_invalid_after_expiry(self):
        assert not SecurityToken("t", expires_at=100.0).is_valid(150.0)


class TestTokenManager:
    def test_rejects_non_positive_ttl(self, fake_transport):
        with pytest.raises(ValueError):
            TokenManager(fake_transport(), ttl_seconds=0)

    def test_acquire_requests_ttl_and_sets_expiry(self, fake_transport):
        transport = fake_transport({PUT_TOKEN: b"token-1\n"})
        clock = Clock(1000.0)
        manager = TokenManager(transport, ttl_seconds=60, clock=clock)

        token = manager.acquire()

        assert token.value == "token-1"
        assert token.expires_at == 1060.0
        method, path, headers = transport.calls[0]
        assert (method, path) == PUT_TOKEN
        assert headers[TOKEN_TTL_HEADER] == "60"

    def test_default_ttl_is_six_hours(self, fake_transport):
        manager = TokenManager(fake_transport())
        assert manager.ttl_seconds == 21600

    def test_valid_token_is_reused_without_network(self, fake_transport):
        transport = fake_transport({PUT_TOKEN: b"token-1"})
        clock = Clock()
        manager = TokenManager(transport, ttl_seconds=60, clock=clock)

        assert manager.get_token() == "token-1"
        clock.now += 30
        assert manager.get_token() == "token-1"
        assert transport.count(*PUT_TOKEN) == 1

    def test_expired_token_is_renewed(self, fake_transport):
        transport = fake_transport({PUT_TOKEN: [b"token-1", b"token-2"]})
        clock = Clock()
        manager = TokenManager(transport, ttl_seconds=60, clock=clock)

        assert manager.get_token() == "token-1"
        clock.now += 60
        assert not manager.has_valid_token()
        assert manager.get_token() == "token-2"
        assert transport.count(*PUT_TOKEN) == 2

    def test_expired_token_is_never_returned(self, fake_transport):
        transport = fake_transport({PUT_TOKEN: [b"token-1", _failure()]})
        clock = Clock()
        manager = TokenManager(transport, ttl_seconds=60, clock=clock)
        manager.get_token()

        clock.now += 61
        with pytest.raises(TransportError):
            manager.get_token()
        assert manager.token is None

    def test_acquire_retries_three_times_by_default(self, fake_transport):
        transport = fake_transport({PUT_TOKEN: _failure()})
        manager = TokenManager(transport)

        with pytest.raises(TransportError) as exc_info:
            manager.acquire()

        assert exc_info.value.status == 403
        assert transport.count(*PUT_TOKEN) == 3
        assert manager.token is None

    def test_acquire_recovers_from_transient_failure(self, fake_transport):
        transport = fake_transport({PUT_TOKEN: [_failure(), _failure(), b"token-3"]})
        manager = TokenManager(transport)
        assert manager.acquire().value == "token-3"
        assert transport.count(*PUT_TOKEN) == 3

    def test_explicit_attempt_bound(self, fake_transport):
        transport = fake_transport({PUT_TOKEN: _failure()})
        manager = TokenManager(transport)
        with pytest.raises(TransportError):
            manager.acquire(max_attempts=5)
        assert transport.count(*PUT_TOKEN) == 5

    def test_invalidate_forces_reacquisition(self, fake_transport):
        transport = fake_transport({PUT_TOKEN: [b"token-1", b"token-2"]})
        manager = TokenManager(transport)
        manager.get_token()
        manager.invalidate()
        assert manager.get_token() == "token-2"

    def test_undecodable_token_is_parse_error(self, fake_transport):
        transport = fake_transport({PUT_TOKEN: b"\xff\xfe"})
        manager = TokenManager(transport)
        with pytest.raises(MetadataParseError):
            manager.acquire()
        assert manager.token is None
