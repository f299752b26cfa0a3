from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any
from unittest.mock import MagicMock

import aiohttp
import pytest

from pyrocket._transport import HttpTransport, is_successful, parse_response
from pyrocket.config import RocketConfig
from pyrocket.failures import Failure, FailureKind
from pyrocket.models.response import HttpMethod, ResponseEnvelope


class _FakeResponse:
    def __init__(self, status: int, body: bytes) -> None:
        self.status = status
        self._body = body

    async def read(self) -> bytes:
        return self._body

    async def __aenter__(self) -> _FakeResponse:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        return None


@dataclass
class _FakeSession:
    """Minimal stand-in for ``aiohttp.ClientSession.request``."""

    status: int = 200
    body: bytes = b"{}"
    raises: BaseException | None = None
    requests: list[dict[str, Any]] = field(default_factory=list)

    def request(self, method: str, url: str, **kwargs: Any) -> _FakeResponse:
        self.requests.append({"method": method, "url": url, **kwargs})
        if self.raises is not None:
            raise self.raises
        return _FakeResponse(self.status, self.body)


def _transport(session: _FakeSession, **config: Any) -> HttpTransport:
    return HttpTransport(RocketConfig(**config), session)  # type: ignore[arg-type]


@pytest.mark.parametrize(
    ("base_url", "endpoint", "expected"),
    [
        ("https://api.example.test/v1/", "sites", "https://api.example.test/v1/sites"),
        ("https://api.example.test/v1", "sites", "https://api.example.test/v1/sites"),
        ("https://api.example.test/v1/", "/sites/42", "https://api.example.test/v1/sites/42"),
    ],
)
def test_build_url_joins_without_double_slash(base_url: str, endpoint: str, expected: str) -> None:
    assert _transport(_FakeSession(), base_url=base_url).build_url(endpoint) == expected


@pytest.mark.asyncio
async def test_request_uses_configured_timeout_and_redirect_limit() -> None:
    session = _FakeSession()
    transport = _transport(session)

    await transport.make_request("sites")

    sent = session.requests[0]
    assert sent["timeout"].total == 30
    assert sent["max_redirects"] == 10
    assert sent["allow_redirects"] is True
    assert sent["headers"]["user-agent"] == "pyrocket"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("method", "sends_body"),
    [("GET", False), ("DELETE", False), ("POST", True), ("PUT", True), ("PATCH", True)],
)
async def test_body_only_sent_for_write_methods(method: str, sends_body: bool) -> None:
    session = _FakeSession()
    transport = _transport(session)

    await transport.make_request("sites", method, {"Content-Type": "application/json"}, '{"a": 1}')

    sent = session.requests[0]
    assert sent["method"] == method
    assert sent["data"] == ('{"a": 1}' if sends_body else None)
    assert sent["headers"]["Content-Type"] == "application/json"


@pytest.mark.asyncio
async def test_lowercase_method_is_normalized() -> None:
    session = _FakeSession()

    await _transport(session).make_request("sites", "post", None, "{}")

    assert session.requests[0]["method"] == "POST"


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [200, 401, 404, 500])
async def test_received_status_is_not_an_error(status: int) -> None:
    session = _FakeSession(status=status, body=b'{"success": false}')

    envelope = await _transport(session).make_request("sites")

    assert envelope.error is False
    assert envelope.http_code == status
    assert envelope.raw_body == '{"success": false}'


@pytest.mark.asyncio
async def test_non_utf8_body_is_decoded_with_replacement() -> None:
    session = _FakeSession(body=b"\xff\xfeok")

    envelope = await _transport(session).make_request("sites")

    assert envelope.raw_body is not None
    assert envelope.raw_body.endswith("ok")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "exc",
    [
        aiohttp.ClientConnectionError("Connection refused"),
        TimeoutError(),
        OSError("Name or service not known"),
    ],
)
async def test_network_failures_become_error_envelopes(exc: BaseException) -> None:
    envelope = await _transport(_FakeSession(raises=exc)).make_request("sites")

    assert envelope.error is True
    assert envelope.http_code is None
    assert envelope.message


@pytest.mark.asyncio
async def test_too_many_redirects_keeps_status() -> None:
    exc = aiohttp.TooManyRedirects(MagicMock(), (), status=301, message="Too many redirects")

    envelope = await _transport(_FakeSession(raises=exc)).make_request("sites")

    assert envelope.error is True
    assert envelope.http_code == 301


def test_parse_response_classifies_failures() -> None:
    transport_error = parse_response(ResponseEnvelope(error=True, message="reset", http_code=None))
    assert isinstance(transport_error, Failure)
    assert transport_error.kind is FailureKind.TRANSPORT_ERROR
    assert transport_error.message == "reset"

    bad_json = parse_response(ResponseEnvelope(error=False, http_code=502, raw_body="<html>Bad gateway</html>"))
    assert isinstance(bad_json, Failure)
    assert bad_json.kind is FailureKind.PARSE_FAILURE
    assert bad_json.http_code == 502

    empty = parse_response(ResponseEnvelope(error=False, http_code=204, raw_body=""))
    assert isinstance(empty, Failure)
    assert empty.kind is FailureKind.PARSE_FAILURE


def test_parse_response_decodes_any_json_value() -> None:
    assert parse_response(ResponseEnvelope(error=False, http_code=200, raw_body='{"a": 1}')) == {"a": 1}
    assert parse_response(ResponseEnvelope(error=False, http_code=200, raw_body="[1, 2]")) == [1, 2]
    assert parse_response(ResponseEnvelope(error=False, http_code=500, raw_body='{"message": "x"}')) == {"message": "x"}


@pytest.mark.parametrize(
    ("envelope", "expected"),
    [
        (ResponseEnvelope(error=False, http_code=199), False),
        (ResponseEnvelope(error=False, http_code=200), True),
        (ResponseEnvelope(error=False, http_code=299), True),
        (ResponseEnvelope(error=False, http_code=300), False),
        (ResponseEnvelope(error=False, http_code=None), False),
        (ResponseEnvelope(error=True, http_code=200), False),
    ],
)
def test_is_successful_boundaries(envelope: ResponseEnvelope, expected: bool) -> None:
    assert is_successful(envelope) is expected


def test_has_body_methods() -> None:
    assert {m for m in HttpMethod if m.has_body} == {HttpMethod.POST, HttpMethod.PUT, HttpMethod.PATCH}
