"""Normalized request/response envelopes."""

from __future__ import annotations

import enum

from pydantic import BaseModel, ConfigDict


class HttpMethod(enum.StrEnum):
    """HTTP methods accepted by the provider API."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"

    @property
    def has_body(self) -> bool:
        """Whether a request body is sent for this method."""
        return self in (HttpMethod.POST, HttpMethod.PUT, HttpMethod.PATCH)


class ResponseEnvelope(BaseModel):
    """One shape for both transport failures and HTTP responses.

    ``error`` is ``True`` only for connection-level failures (DNS, TLS,
    timeout, reset).  A 4xx/5xx response is *not* an error here; it
    carries its ``http_code`` and ``raw_body`` like any other response.

    Parameters
    ----------
    error : bool
        Whether the request failed before a response was received.
    http_code : int or None
        HTTP status, if a response was received.
    raw_body : str or None
        Undecoded response body.
    message : str
        Diagnostic for failed requests.
    """

    model_config = ConfigDict(frozen=True)

    error: bool
    http_code: int | None = None
    raw_body: str | None = None
    message: str = ""

    @property
    def is_successful(self) -> bool:
        """No transport error and a 2xx status."""
        return not self.error and self.http_code is not None and 200 <= self.http_code < 300

    @property
    def is_unauthorized(self) -> bool:
        """A received (non-error) 401 response."""
        return not self.error and self.http_code == 401
