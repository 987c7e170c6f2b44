# SPDX-FileCopyrightText: 2026 The Machine Identity Authors
# SPDX-License-Identifier: Apache-2.0

"""Single-shot HTTP access to link-local instance metadata services.

The transport never retries: token acquisition and steady-state reads need
different retry policies, so retrying is left to the caller.
"""

from __future__ import annotations

import http.client
import logging
import urllib.error
import urllib.parse
import urllib.request
from typing import Dict, Mapping, Optional

from machine_identity.errors import TransportError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 1.0


class MetadataTransport:
    """Issue GET/PUT requests against ``base_url`` joined with a relative path.

    Args:
        base_url: Service root, e.g. ``http://169.254.169.254/latest/``.
        default_headers: Headers sent with every request (``Metadata: True``).
        query: Query parameters appended to every URL (``api-version``).
        timeout: Connect/read timeout in seconds.
        opener: ``urllib`` opener; defaults to one that bypasses proxies,
            since link-local addresses are never reachable through one.
    """

    def __init__(
        self,
        base_url: str,
        default_headers: Optional[Mapping[str, str]] = None,
        query: Optional[Mapping[str, str]] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        opener: Optional[urllib.request.OpenerDirector] = None,
    ) -> None:
        self.base_url = base_url if base_url.endswith("/") else base_url + "/"
        self.default_headers: Dict[str, str] = dict(default_headers or {})
        self.query: Dict[str, str] = dict(query or {})
        self.timeout = timeout
        self._opener = opener or urllib.request.build_opener(urllib.request.ProxyHandler({}))

    def url_for(self, path: str) -> str:
        url = urllib.parse.urljoin(self.base_url, path.lstrip("/"))
        if self.query:
            url = f"{url}?{urllib.parse.urlencode(self.query)}"
        return url

    def fetch(
        self,
        path: str,
        method: str = "GET",
        headers: Optional[Mapping[str, str]] = None,
    ) -> bytes:
        """Return the body of a 200 response.

        Raises:
            TransportError: On any network failure or non-200 status.
        """
        url = self.url_for(path)
        request_headers = {**self.default_headers, **(headers or {})}
        data = b"" if method == "PUT" else None
        request = urllib.request.Request(url, data=data, headers=request_headers, method=method)

        logger.debug("%s %s", method, url)
        try:
            with self._opener.open(request, timeout=self.timeout) as response:
                status = response.status
                body = response.read()
                if status != 200:
                    raise TransportError(
                        method,
                        url,
                        request_headers,
                        status=status,
                        response_headers=dict(response.headers.items()),
                        reason=response.reason,
                    )
                return body
        except urllib.error.HTTPError as exc:
            raise TransportError(
                method,
                url,
                request_headers,
                status=exc.code,
                response_headers=dict(exc.headers.items()) if exc.headers else None,
                reason=str(exc.reason),
            ) from exc
        except (urllib.error.URLError, http.client.HTTPException, OSError) as exc:
            reason = getattr(exc, "reason", None) or exc
            raise TransportError(method, url, request_headers, reason=str(reason)) from exc
