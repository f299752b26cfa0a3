"""Location catalog endpoint.

Endpoint:
  - GET locations
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any

from pydantic import ValidationError

from pyrocket._api._authenticated import AuthenticatedClient
from pyrocket._api._envelope import FlatEnvelope, SuccessEnvelope, resolve_envelope
from pyrocket._constants import DEFAULT_LOCATIONS, LOCATIONS_ENDPOINT
from pyrocket.config import RocketConfig
from pyrocket.failures import Failure, FailureKind, is_failure
from pyrocket.models.location import Location

_logger = logging.getLogger(__name__)


def default_locations() -> list[Location]:
    """Built-in catalog used when the API cannot be reached."""
    return [Location(id=location_id, name=name) for location_id, name in DEFAULT_LOCATIONS]


async def fetch_locations(api: AuthenticatedClient) -> list[Location] | Failure:
    """Fetch deployable regions straight from the API (no caching).

    Accepts ``{"locations": [...]}`` and ``{"result": [...]}``; any other
    successful payload yields :func:`default_locations`.
    """
    decoded = await api.get_json(LOCATIONS_ENDPOINT)
    if is_failure(decoded):
        return decoded

    items: Any = None
    if isinstance(decoded, dict) and isinstance(decoded.get("locations"), list):
        items = decoded["locations"]
    else:
        envelope = resolve_envelope(decoded)
        if isinstance(envelope, SuccessEnvelope) and isinstance(envelope.result, list):
            items = envelope.result
        elif isinstance(envelope, FlatEnvelope) and isinstance(envelope.data, list):
            items = envelope.data

    if items is None:
        _logger.debug("Unrecognized locations payload; using built-in catalog")
        return default_locations()

    try:
        return [Location.model_validate(item) for item in items if isinstance(item, dict)]
    except ValidationError as exc:
        return Failure(kind=FailureKind.INVALID_RESPONSE, message=f"Invalid location entry: {exc.error_count()} error(s)")


class LocationCatalog:
    """Cached location catalog that never fails.

    A catalog fetched from the API is kept for
    ``config.locations_cache_ttl`` seconds.  When the fetch fails the
    built-in catalog is returned and kept for the shorter
    ``config.locations_fallback_ttl``, so the API is retried soon.  A
    cached catalog whose ids are not numeric is discarded on read.
    """

    def __init__(
        self,
        api: AuthenticatedClient,
        config: RocketConfig,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._api = api
        self._config = config
        self._clock = clock
        self._entries: list[Location] | None = None
        self._expires_at: float = 0.0

    def invalidate(self) -> None:
        self._entries = None
        self._expires_at = 0.0

    def _cached(self) -> list[Location] | None:
        if self._entries is None:
            return None
        if self._clock() >= self._expires_at:
            self.invalidate()
            return None
        if self._entries and not self._entries[0].has_numeric_id:
            _logger.info("Discarding cached locations with non-numeric ids")
            self.invalidate()
            return None
        return self._entries

    def _remember(self, entries: list[Location], ttl: float) -> None:
        self._entries = list(entries)
        self._expires_at = self._clock() + ttl

    async def get_locations(self) -> list[Location]:
        """Return the catalog, from cache, the API, or the built-in list."""
        cached = self._cached()
        if cached is not None:
            return list(cached)

        fetched = await fetch_locations(self._api)
        if not is_failure(fetched) and fetched:
            self._remember(fetched, self._config.locations_cache_ttl)
            return list(fetched)

        if is_failure(fetched):
            _logger.warning("Failed to fetch locations: %s", fetched.message)

        fallback = default_locations()
        self._remember(fallback, self._config.locations_fallback_ttl)
        return fallback
