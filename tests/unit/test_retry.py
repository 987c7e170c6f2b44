# SPDX-FileCopyrightText: 2026 The Machine Identity Authors
# SPDX-License-Identifier: Apache-2.0

"""Tests for the bounded metadata retry policy."""

from __future__ import annotations

from unittest import mock

import pytest

from machine_identity.errors import TransportError
from machine_identity.metadata.retry import metadata_retrying


def _error(status):
    return TransportError("GET", "http://fake/x", status=status)


class TestMetadataRetrying:
    def test_returns_first_success(self):
        fn = mock.Mock(side_effect=[_error(500), b"ok"])
        assert metadata_retrying(3, "test")(fn, "x") == b"ok"
        assert fn.call_count == 2

    def test_stops_after_max_attempts_and_reraises_last_error(self):
        errors = [_error(500), _error(502), _error(503)]
        fn = mock.Mock(side_effect=errors)
        with pytest.raises(TransportError) as exc_info:
            metadata_retrying(3, "test")(fn)
        assert exc_info.value is errors[-1]
        assert fn.call_count == 3

    def test_single_attempt(self):
        fn = mock.Mock(side_effect=_error(500))
        with pytest.raises(TransportError):
            metadata_retrying(1, "test")(fn)
        assert fn.call_count == 1

    def test_does_not_retry_other_errors(self):
        fn = mock.Mock(side_effect=KeyError("boom"))
        with pytest.raises(KeyError):
            metadata_retrying(3, "test")(fn)
        assert fn.call_count == 1

    def test_passes_arguments(self):
        fn = mock.Mock(return_value=b"body")
        metadata_retrying(2, "test")(fn, "api/token", method="PUT")
        fn.assert_called_once_with("api/token", method="PUT")

    @pytest.mark.parametrize("attempts", [0, -1])
    def test_rejects_non_positive_attempts(self, attempts):
        with pytest.raises(ValueError):
            metadata_retrying(attempts, "test")
