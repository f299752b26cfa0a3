"""Typed failure values returned across the client boundary.

Transport, parse and validation problems are never raised out of the
client.  Every fallible call returns either its value or a
:class:`Failure`, so callers can decide to retry, fall back, or surface
the message.
"""

from __future__ import annotations

import enum
from typing import Any, TypeGuard, TypeVar

from pydantic import BaseModel, ConfigDict

from pyrocket.exceptions import RocketApiError

T = TypeVar("T")


class FailureKind(enum.StrEnum):
    """Failure taxonomy."""

    MISSING_CREDENTIALS = "missing_credentials"
    LOGIN_FAILED = "login_failed"
    MISSING_MATERIAL = "missing_material"
    AUTHENTICATION_FAILURE = "authentication_failure"
    CIPHER_FAILURE = "cipher_failure"
    TRANSPORT_ERROR = "transport_error"
    HTTP_ERROR = "http_error"
    PARSE_FAILURE = "parse_failure"
    INVALID_INPUT = "invalid_input"
    INVALID_RESPONSE = "invalid_response"


class Failure(BaseModel):
    """A failed operation.

    Parameters
    ----------
    kind : FailureKind
        Which class of failure occurred.
    message : str
        Human-readable diagnostic.
    http_code : int or None
        HTTP status when the failure came from a response.
    """

    model_config = ConfigDict(frozen=True)

    kind: FailureKind
    message: str
    http_code: int | None = None

    def raise_for_failure(self) -> None:
        """Raise this failure as a :class:`RocketApiError`."""
        raise RocketApiError(self.message, kind=self.kind.value, http_code=self.http_code)


def is_failure(value: Any) -> TypeGuard[Failure]:
    """Return ``True`` when *value* is a :class:`Failure`."""
    return isinstance(value, Failure)


def unwrap(value: T | Failure) -> T:
    """Return *value*, raising :class:`RocketApiError` if it is a failure."""
    if isinstance(value, Failure):
        value.raise_for_failure()
    return value  # type: ignore[return-value]
