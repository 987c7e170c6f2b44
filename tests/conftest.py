# SPDX-FileCopyrightText: 2026 The Machine Identity Authors
# SPDX-License-Identifier: Apache-2.0

"""Shared test fixtures for machine identity tests."""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Tuple

import pytest
from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from opentelemetry.sdk.trace.sampling import ALWAYS_ON

from machine_identity.errors import TransportError

# Module-level provider and exporter to avoid "cannot override" warnings
_provider: TracerProvider = None
_exporter: InMemorySpanExporter = None


def _get_or_create_provider() -> tuple[TracerProvider, InMemorySpanExporter]:
    """Get or create the global test provider."""
    global _provider, _exporter

    if _provider is None:
        _provider = TracerProvider(sampler=ALWAYS_ON)
        _exporter = InMemorySpanExporter()
        _provider.add_span_processor(SimpleSpanProcessor(_exporter))
        trace.set_tracer_provider(_provider)

    return _provider, _exporter


@pytest.fixture(autouse=True)
def reset_tracing():
    """Reset tracing state before each test."""
    _, exporter = _get_or_create_provider()
    exporter.clear()
    yield
    exporter.clear()


@pytest.fixture
def memory_exporter():
    """Get the in-memory span exporter for testing."""
    _, exporter = _get_or_create_provider()
    return exporter


def http_error(path: str, status: int = 500, method: str = "GET") -> TransportError:
    return TransportError(method, f"http://fake/{path}", status=status, reason="scripted")


class FakeTransport:
    """Scripted stand-in for ``MetadataTransport``.

    ``routes`` maps ``(method, path)`` to a response: bytes, an exception to
    raise, a callable taking the request headers and returning either, or a
    list of those consumed in order (the last one repeats).
    """

    def __init__(self, routes: Optional[Dict[Tuple[str, str], Any]] = None) -> None:
        self.routes: Dict[Tuple[str, str], Any] = dict(routes or {})
        self.calls: List[Tuple[str, str, Dict[str, str]]] = []

    def url_for(self, path: str) -> str:
        return f"http://fake/{path}"

    def fetch(self, path: str, method: str = "GET", headers: Optional[Dict[str, str]] = None) -> bytes:
        headers = dict(headers or {})
        self.calls.append((method, path, headers))
        key = (method, path)
        if key not in self.routes:
            raise http_error(path, status=404, method=method)

        response = self.routes[key]
        if isinstance(response, list):
            response = response.pop(0) if len(response) > 1 else response[0]
        if callable(response) and not isinstance(response, BaseException):
            response = response(headers)
        if isinstance(response, BaseException):
            raise response
        return response

    def count(self, method: str, path: str) -> int:
        return sum(1 for m, p, _ in self.calls if (m, p) == (method, path))


@pytest.fixture
def fake_transport() -> Callable[..., FakeTransport]:
    """Factory for scripted transports."""
    return FakeTransport
