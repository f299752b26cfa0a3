"""High-level async client for the hosting provider API."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import aiohttp

from pyrocket._api import sites as _sites_api
from pyrocket._api._authenticated import AuthenticatedClient
from pyrocket._api.locations import LocationCatalog
from pyrocket._transport import HttpTransport
from pyrocket.auth import AuthManager
from pyrocket.cipher import TokenCipher
from pyrocket.config import RocketConfig
from pyrocket.exceptions import RocketClientError
from pyrocket.failures import Failure
from pyrocket.models.auth import AuthState, ConnectionReport
from pyrocket.models.location import Location
from pyrocket.models.site import SiteRecord, SiteSpec
from pyrocket.store import CredentialStore, JsonFileCredentialStore, MemoryCredentialStore

_logger = logging.getLogger(__name__)


class RocketClient:
    """Async client for the hosting provider API.

    One instance owns one store, auth manager and location cache; pass it
    to whatever needs provider access instead of sharing globals.

    Usage::

        async with RocketClient(config) as client:
            report = await client.test_connection()
            site = await client.create_site(SiteSpec(domain=..., name=..., admin_email=...))
    """

    def __init__(
        self,
        config: RocketConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        store: CredentialStore | None = None,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._store = store if store is not None else self._default_store(config)
        self._cipher = TokenCipher(self._store)
        self._auth: AuthManager | None = None
        self._api: AuthenticatedClient | None = None
        self._locations: LocationCatalog | None = None

    @staticmethod
    def _default_store(config: RocketConfig) -> CredentialStore:
        if config.token_store_path:
            return JsonFileCredentialStore(config.token_store_path, config.credential)
        return MemoryCredentialStore(config.credential)

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> RocketClient:
        if self._http_session is None:
            self._http_session = aiohttp.ClientSession(version=aiohttp.HttpVersion11)
            _logger.debug("Opened HTTP session for %s", self._config.base_url)
        transport = HttpTransport(self._config, self._http_session)
        self._auth = AuthManager(self._store, transport, cipher=self._cipher)
        self._api = AuthenticatedClient(self._auth, transport)
        self._locations = LocationCatalog(self._api, self._config)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        self._auth = None
        self._api = None
        self._locations = None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_api(self) -> AuthenticatedClient:
        if self._api is None:
            raise RocketClientError("Client not initialized. Use 'async with RocketClient(...) as client:'")
        return self._api

    def _require_auth(self) -> AuthManager:
        if self._auth is None:
            raise RocketClientError("Client not initialized. Use 'async with RocketClient(...) as client:'")
        return self._auth

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    @property
    def auth_state(self) -> AuthState:
        return self._require_auth().state

    def has_credentials(self) -> bool:
        if self._auth is not None:
            return self._auth.has_credentials()
        return self._store.get_credential().is_complete

    async def login(self) -> bool:
        """Log in now and store the token (otherwise done lazily)."""
        return await self._require_auth().refresh_token()

    def clear_token(self) -> None:
        """Drop the stored session token; the next call logs in again."""
        self._require_auth().clear_token()

    async def test_connection(self) -> ConnectionReport:
        """Operator diagnostics: authenticate and list sites once."""
        return await self._require_auth().test_connection(self._require_api())

    # ------------------------------------------------------------------
    # Sites
    # ------------------------------------------------------------------

    async def create_site(self, spec: SiteSpec | Mapping[str, Any]) -> SiteRecord | Failure:
        return await _sites_api.create_site(self._require_api(), self._config, spec)

    async def get_site(self, site_id: str | int) -> SiteRecord | Failure:
        return await _sites_api.get_site(self._require_api(), site_id)

    async def list_sites(self, *, page: int = 1, per_page: int = 20, **filters: Any) -> list[SiteRecord] | Failure:
        return await _sites_api.list_sites(self._require_api(), page=page, per_page=per_page, **filters)

    async def delete_site(self, site_id: str | int) -> bool | Failure:
        return await _sites_api.delete_site(self._require_api(), site_id)

    async def update_site(self, site_id: str | int, patch: Mapping[str, Any]) -> bool | Failure:
        return await _sites_api.update_site(self._require_api(), site_id, patch)

    async def generate_access_token(self, site_id: str | int, ttl: int | None = None) -> str | Failure:
        """Short-lived control-panel token (``config.access_token_ttl`` by default)."""
        effective_ttl = self._config.access_token_ttl if ttl is None else ttl
        return await _sites_api.generate_access_token(self._require_api(), site_id, effective_ttl)

    def control_panel_url(self, site_id: str | int, access_token: str) -> str:
        return _sites_api.control_panel_url(self._config, site_id, access_token)

    # ------------------------------------------------------------------
    # Locations
    # ------------------------------------------------------------------

    async def get_locations(self) -> list[Location]:
        """Deployable regions; falls back to a built-in list, never fails."""
        if self._locations is None:
            raise RocketClientError("Client not initialized. Use 'async with RocketClient(...) as client:'")
        return await self._locations.get_locations()
