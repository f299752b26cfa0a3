"""Login, token retrieval with transparent refresh, and invalidation."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import TYPE_CHECKING

from pyrocket._constants import LOGIN_ENDPOINT, SITES_ENDPOINT
from pyrocket._transport import Transport, parse_response
from pyrocket.cipher import TokenCipher
from pyrocket.failures import Failure, FailureKind, is_failure
from pyrocket.models.auth import AuthState, ConnectionReport
from pyrocket.models.response import HttpMethod
from pyrocket.store import CredentialStore

if TYPE_CHECKING:
    from pyrocket._api._authenticated import AuthenticatedClient

_logger = logging.getLogger(__name__)

JSON_HEADERS: dict[str, str] = {
    "Accept": "application/json",
    "Content-Type": "application/json",
}


class AuthManager:
    """Own the provider session token.

    The token is never held in plaintext between calls: it lives
    encrypted in the store and is decrypted on each :meth:`get_token`.
    Expiry is not tracked locally; a 401 seen by the API client or a
    record that no longer decrypts is what triggers a refresh.

    Refreshes are single-flight: concurrent callers wait on one lock and
    re-check the store after acquiring it, so a burst of expired
    requests produces one provider login.
    """

    def __init__(
        self,
        store: CredentialStore,
        transport: Transport,
        *,
        cipher: TokenCipher | None = None,
    ) -> None:
        self._store = store
        self._transport = transport
        self._cipher = cipher or TokenCipher(store)
        self._lock = asyncio.Lock()
        self._refreshing = False

    @property
    def state(self) -> AuthState:
        """Current position in the token lifecycle."""
        if self._refreshing:
            return AuthState.REFRESHING
        if self._store.load_token() is None:
            return AuthState.NO_TOKEN
        return AuthState.TOKEN_CACHED

    def has_credentials(self) -> bool:
        """Whether an email and password are configured."""
        return self._store.get_credential().is_complete

    async def login(self) -> str | Failure:
        """Exchange the stored credential for a new session token.

        Does not persist the token; see :meth:`refresh_token`.
        """
        credential = self._store.get_credential()
        if not credential.is_complete:
            _logger.error("Provider credentials are not configured")
            return Failure(kind=FailureKind.MISSING_CREDENTIALS, message="Provider credentials are not configured")

        body = json.dumps({"username": credential.email, "password": credential.password})
        response = await self._transport.make_request(LOGIN_ENDPOINT, HttpMethod.POST, JSON_HEADERS, body)

        if response.error:
            _logger.error("Login request failed: %s", response.message)
            return Failure(
                kind=FailureKind.LOGIN_FAILED,
                message=f"Login request failed: {response.message}",
                http_code=response.http_code,
            )

        if not response.is_successful:
            _logger.error("Login rejected with HTTP %s", response.http_code)
            return Failure(
                kind=FailureKind.LOGIN_FAILED,
                message=f"Login rejected (HTTP {response.http_code})",
                http_code=response.http_code,
            )

        data = parse_response(response)
        if is_failure(data):
            _logger.error("Login response could not be parsed: %s", data.message)
            return Failure(kind=FailureKind.LOGIN_FAILED, message=data.message, http_code=response.http_code)

        token = data.get("token") if isinstance(data, dict) else None
        if not token or not isinstance(token, str):
            _logger.error("Login response missing token")
            return Failure(
                kind=FailureKind.LOGIN_FAILED,
                message="Login response missing token",
                http_code=response.http_code,
            )

        return token

    def _read_token(self) -> str | None:
        record = self._store.load_token()
        if record is None:
            return None
        token = self._cipher.decrypt(record.ciphertext)
        if is_failure(token):
            _logger.warning("Stored token is unusable (%s)", token.message)
            return None
        return token

    async def _refresh_locked(self) -> bool:
        _logger.info("Refreshing session token")
        self._refreshing = True
        try:
            token = await self.login()
            if is_failure(token):
                self.clear_token()
                return False
            record = self._cipher.encrypt(token)
            if is_failure(record):
                self.clear_token()
                return False
        finally:
            self._refreshing = False
        _logger.info("Session token refreshed")
        return True

    async def refresh_token(self, *, stale_token: str | None = None) -> bool:
        """Log in again and persist the new token.

        Parameters
        ----------
        stale_token : str or None
            The token the caller found to be rejected.  When the store
            already holds a different usable token, another caller has
            refreshed in the meantime and no login is made.

        Returns
        -------
        bool
            ``True`` if a usable token is stored afterwards.  On failure
            all token material is cleared.
        """
        async with self._lock:
            if stale_token is not None:
                current = self._read_token()
                if current is not None and current != stale_token:
                    return True
            return await self._refresh_locked()

    async def get_token(self) -> str | None:
        """Return the decrypted session token, logging in if needed."""
        token = self._read_token()
        if token is not None:
            return token

        async with self._lock:
            token = self._read_token()
            if token is not None:
                return token
            if not await self._refresh_locked():
                return None
            return self._read_token()

    def clear_token(self) -> None:
        """Forget the stored token and its key material."""
        self._cipher.clear()
        _logger.info("Session token cleared")

    async def test_connection(self, api: AuthenticatedClient) -> ConnectionReport:
        """Authenticate and make one read-only call for diagnostics."""
        token = await self.get_token()
        if token is None:
            return ConnectionReport(success=False, message="Failed to authenticate with the hosting provider")

        response = await api.authenticated_request(SITES_ENDPOINT, HttpMethod.GET, retry_on_401=False)
        if response.error:
            return ConnectionReport(success=False, message=f"Connection failed: {response.message}")

        data = parse_response(response)
        if is_failure(data):
            return ConnectionReport(success=False, message=f"API error: {data.message}")
        if not response.is_successful:
            return ConnectionReport(success=False, message=f"API error: HTTP {response.http_code}")

        return ConnectionReport(success=True, message="Successfully connected to the hosting provider", data=data)
