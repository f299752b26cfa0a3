"""Client configuration for pyrocket."""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Callable
from typing import Any

from pyrocket._constants import (
    BASE_URL,
    CONTROL_PANEL_URL,
    DEFAULT_ACCESS_TOKEN_TTL,
    DEFAULT_ADMIN_USERNAME,
    DEFAULT_LOCATION_ID,
    LOCATIONS_CACHE_TTL_S,
    LOCATIONS_FALLBACK_TTL_S,
    MAX_REDIRECTS,
    REQUEST_TIMEOUT_S,
)
from pyrocket.exceptions import RocketConfigError
from pyrocket.models.credential import Credential


def _env_number(env_key: str, value: str, cast: Callable[[str], Any]) -> Any:
    try:
        return cast(value)
    except ValueError as exc:
        raise RocketConfigError(f"{env_key} must be numeric (got {value!r})") from exc


@dataclasses.dataclass(frozen=True)
class RocketConfig:
    """Client configuration.

    Parameters
    ----------
    email : str
        Provider account email used for ``login``.
    password : str
        Provider account password.
    base_url : str
        Versioned API base URL.
    control_panel_url : str
        Base URL of the provider's hosted control panel.
    request_timeout : float
        Total per-request timeout in seconds.
    max_redirects : int
        Upper bound on followed redirects.
    default_location : int
        Server location used when a site spec does not name one.
    default_admin_username : str
        WordPress admin username used when a site spec does not name one.
    access_token_ttl : int
        Default lifetime in seconds of control-panel access tokens.
    locations_cache_ttl : float
        Seconds a location catalog fetched from the API stays cached.
    locations_fallback_ttl : float
        Seconds the built-in fallback catalog stays cached after a failed
        fetch.
    token_store_path : str or None
        JSON file that persists the encrypted session token.  ``None``
        keeps it in memory for the lifetime of the client.
    """

    email: str = ""
    password: str = ""
    base_url: str = BASE_URL
    control_panel_url: str = CONTROL_PANEL_URL
    request_timeout: float = REQUEST_TIMEOUT_S
    max_redirects: int = MAX_REDIRECTS
    default_location: int = DEFAULT_LOCATION_ID
    default_admin_username: str = DEFAULT_ADMIN_USERNAME
    access_token_ttl: int = DEFAULT_ACCESS_TOKEN_TTL
    locations_cache_ttl: float = LOCATIONS_CACHE_TTL_S
    locations_fallback_ttl: float = LOCATIONS_FALLBACK_TTL_S
    token_store_path: str | None = None

    def __post_init__(self) -> None:
        if self.request_timeout <= 0:
            raise RocketConfigError("request_timeout must be positive")
        if self.max_redirects < 0:
            raise RocketConfigError("max_redirects must not be negative")
        if not self.base_url:
            raise RocketConfigError("base_url must not be empty")

    @property
    def credential(self) -> Credential:
        """Provider account credential built from ``email``/``password``."""
        return Credential(email=self.email, password=self.password)

    @classmethod
    def from_env(cls, **overrides: Any) -> RocketConfig:
        """Create configuration from environment variables.

        Reads ``ROCKET_EMAIL``, ``ROCKET_PASSWORD`` and optional
        ``ROCKET_*`` variables. Explicit keyword arguments override
        environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        RocketConfig
            Populated configuration.

        Raises
        ------
        RocketConfigError
            If a numeric variable cannot be parsed.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "ROCKET_EMAIL": "email",
            "ROCKET_PASSWORD": "password",
            "ROCKET_BASE_URL": "base_url",
            "ROCKET_CONTROL_PANEL_URL": "control_panel_url",
            "ROCKET_DEFAULT_ADMIN_USERNAME": "default_admin_username",
            "ROCKET_TOKEN_STORE_PATH": "token_store_path",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        _ENV_NUMERIC_MAP: dict[str, tuple[str, Callable[[str], Any]]] = {
            "ROCKET_REQUEST_TIMEOUT": ("request_timeout", float),
            "ROCKET_DEFAULT_LOCATION": ("default_location", int),
            "ROCKET_ACCESS_TOKEN_TTL": ("access_token_ttl", int),
        }
        for env_key, (field_name, cast) in _ENV_NUMERIC_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = _env_number(env_key, val, cast)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
