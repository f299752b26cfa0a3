"""Auth manager state and diagnostics."""

from __future__ import annotations

import enum
from typing import Any

from pydantic import BaseModel, ConfigDict


class AuthState(enum.StrEnum):
    """Lifecycle of the stored session token."""

    NO_TOKEN = "no_token"
    TOKEN_CACHED = "token_cached"
    REFRESHING = "refreshing"


class ConnectionReport(BaseModel):
    """Result of :meth:`pyrocket.auth.AuthManager.test_connection`."""

    model_config = ConfigDict(frozen=True)

    success: bool
    message: str
    data: Any = None
