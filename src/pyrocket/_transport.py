"""HTTP transport and response classification."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from pyrocket._constants import USER_AGENT
from pyrocket.config import RocketConfig
from pyrocket.failures import Failure, FailureKind
from pyrocket.models.response import HttpMethod, ResponseEnvelope

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by the auth manager and API client.

    Having a protocol here makes it easy to pass test doubles/mocks while
    keeping the production implementation (`HttpTransport`) concrete.
    """

    async def make_request(
        self,
        endpoint: str,
        method: HttpMethod | str = HttpMethod.GET,
        headers: Mapping[str, str] | None = None,
        body: str | None = None,
    ) -> ResponseEnvelope: ...


class HttpTransport:
    """Execute requests against the provider API.

    Never raises for network problems: DNS, TLS, timeout and connection
    failures come back as an error :class:`ResponseEnvelope`.  Any HTTP
    status that was actually received, 4xx and 5xx included, comes back
    as a non-error envelope.
    """

    def __init__(self, config: RocketConfig, http_session: aiohttp.ClientSession) -> None:
        self._config = config
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=config.request_timeout)
        self._base_url = config.base_url if config.base_url.endswith("/") else f"{config.base_url}/"

    def build_url(self, endpoint: str) -> str:
        """Join the base URL and *endpoint* without doubling slashes."""
        return f"{self._base_url}{endpoint.lstrip('/')}"

    async def make_request(
        self,
        endpoint: str,
        method: HttpMethod | str = HttpMethod.GET,
        headers: Mapping[str, str] | None = None,
        body: str | None = None,
    ) -> ResponseEnvelope:
        """Send one request and normalize the outcome.

        Parameters
        ----------
        endpoint : str
            Path relative to the API base URL, optionally with a query.
        method : HttpMethod or str
            HTTP method.
        headers : Mapping or None
            Request headers.
        body : str or None
            Pre-serialized body; only sent for POST, PUT and PATCH.

        Returns
        -------
        ResponseEnvelope
            The normalized response.
        """
        http_method = HttpMethod(str(method).upper())
        url = self.build_url(endpoint)

        request_headers: dict[str, str] = {"user-agent": USER_AGENT}
        request_headers.update(headers or {})
        data = body if http_method.has_body and body is not None else None

        try:
            async with self._http.request(
                http_method.value,
                url,
                headers=request_headers,
                data=data,
                timeout=self._timeout,
                allow_redirects=True,
                max_redirects=self._config.max_redirects,
            ) as resp:
                status = resp.status
                raw = await resp.read()
        except (aiohttp.ClientError, TimeoutError, OSError) as exc:
            message = str(exc) or type(exc).__name__
            http_code = getattr(exc, "status", None)
            _logger.warning("%s %s failed: %s", http_method.value, url, message)
            return ResponseEnvelope(
                error=True,
                message=message,
                http_code=http_code if isinstance(http_code, int) else None,
            )

        text = raw.decode("utf-8", errors="replace")
        _log_response(http_method, url, status, text)
        return ResponseEnvelope(error=False, http_code=status, raw_body=text)


def _log_response(method: HttpMethod, url: str, status: int, text: str) -> None:
    if not _logger.isEnabledFor(logging.DEBUG):
        return
    suffix = ""
    try:
        decoded = json.loads(text) if text else None
    except json.JSONDecodeError:
        decoded = None
    if isinstance(decoded, dict) and "success" in decoded:
        suffix = f" success={'yes' if decoded['success'] else 'no'}"
    _logger.debug("%s %s -> HTTP %d%s", method.value, url, status, suffix)


def parse_response(envelope: ResponseEnvelope) -> Any | Failure:
    """JSON-decode the body of *envelope*.

    Returns
    -------
    Any or Failure
        The decoded payload; ``TRANSPORT_ERROR`` for a failed request or
        ``PARSE_FAILURE`` for a body that is not valid JSON.
    """
    if envelope.error:
        return Failure(kind=FailureKind.TRANSPORT_ERROR, message=envelope.message, http_code=envelope.http_code)
    try:
        return json.loads(envelope.raw_body or "")
    except json.JSONDecodeError:
        return Failure(
            kind=FailureKind.PARSE_FAILURE,
            message="Failed to parse API response",
            http_code=envelope.http_code,
        )


def is_successful(envelope: ResponseEnvelope) -> bool:
    """True iff there was no transport error and the status is 2xx."""
    return envelope.is_successful
