"""Custom exception hierarchy for pyrocket."""

from __future__ import annotations


class RocketError(Exception):
    """Base exception for all pyrocket errors."""


class RocketConfigError(RocketError):
    """Invalid or missing configuration."""


class RocketClientError(RocketError):
    """Client used outside of its ``async with`` lifecycle."""


class RocketCryptoError(RocketError):
    """Token sealing or opening failure."""


class RocketApiError(RocketError):
    """A typed :class:`~pyrocket.failures.Failure` raised on request.

    Library calls return failures as values; this is what
    :meth:`Failure.raise_for_failure` raises for callers that prefer
    exceptions.
    """

    def __init__(
        self,
        message: str,
        *,
        kind: str = "",
        http_code: int | None = None,
    ) -> None:
        self.kind = kind
        self.http_code = http_code
        super().__init__(message)
