"""Bearer-authenticated requests with one re-authentication retry."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any
from urllib.parse import urlencode

from pyrocket._api._envelope import extract_message
from pyrocket._transport import Transport, parse_response
from pyrocket.auth import JSON_HEADERS, AuthManager
from pyrocket.failures import Failure, FailureKind, is_failure
from pyrocket.models.response import HttpMethod, ResponseEnvelope

_logger = logging.getLogger(__name__)


def _serialize_body(body: Any) -> str | None:
    if body is None or isinstance(body, str):
        return body
    return json.dumps(body)


class AuthenticatedClient:
    """Attach the session token to requests and recover from one 401.

    A 401 triggers exactly one token refresh and one retry.  If the retry
    is rejected as well, that second response is returned as-is: a
    credential the provider keeps refusing must surface, not loop.
    """

    def __init__(self, auth: AuthManager, transport: Transport) -> None:
        self._auth = auth
        self._transport = transport

    @property
    def auth(self) -> AuthManager:
        return self._auth

    async def authenticated_request(
        self,
        endpoint: str,
        method: HttpMethod | str = HttpMethod.GET,
        body: Any = None,
        *,
        retry_on_401: bool = True,
    ) -> ResponseEnvelope:
        """Send an authenticated request.

        Parameters
        ----------
        endpoint : str
            Path relative to the API base URL.
        method : HttpMethod or str
            HTTP method.
        body : Any
            Structured values are JSON-encoded; strings are sent as-is.
        retry_on_401 : bool
            Whether a 401 may trigger a refresh and a single retry.

        Returns
        -------
        ResponseEnvelope
            The final response.  Never raises for network problems.
        """
        token = await self._auth.get_token()
        if token is None:
            return ResponseEnvelope(error=True, message="No authentication token available")

        headers = {**JSON_HEADERS, "Authorization": f"Bearer {token}"}
        response = await self._transport.make_request(endpoint, method, headers, _serialize_body(body))

        if response.is_unauthorized and retry_on_401:
            _logger.info("Received 401 from %s; refreshing token and retrying", endpoint)
            if await self._auth.refresh_token(stale_token=token):
                return await self.authenticated_request(endpoint, method, body, retry_on_401=False)

        return response

    async def request_json(
        self,
        endpoint: str,
        method: HttpMethod | str = HttpMethod.GET,
        body: Any = None,
        *,
        params: Mapping[str, Any] | None = None,
    ) -> Any | Failure:
        """Authenticated request returning the decoded JSON payload."""
        if params:
            endpoint = f"{endpoint}?{urlencode(params)}"

        response = await self.authenticated_request(endpoint, method, body)
        if response.error:
            return Failure(kind=FailureKind.TRANSPORT_ERROR, message=response.message, http_code=response.http_code)

        decoded = parse_response(response)
        if not response.is_successful:
            message = "" if is_failure(decoded) else extract_message(decoded)
            return Failure(
                kind=FailureKind.HTTP_ERROR,
                message=message or f"HTTP {response.http_code}",
                http_code=response.http_code,
            )
        return decoded

    async def get_json(self, endpoint: str, params: Mapping[str, Any] | None = None) -> Any | Failure:
        return await self.request_json(endpoint, HttpMethod.GET, params=params)

    async def post_json(self, endpoint: str, body: Any = None) -> Any | Failure:
        return await self.request_json(endpoint, HttpMethod.POST, body)

    async def put_json(self, endpoint: str, body: Any = None) -> Any | Failure:
        return await self.request_json(endpoint, HttpMethod.PUT, body)

    async def delete_json(self, endpoint: str) -> Any | Failure:
        return await self.request_json(endpoint, HttpMethod.DELETE)
