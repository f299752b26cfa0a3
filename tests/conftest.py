from __future__ import annotations

import asyncio
import json
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

import pytest

from pyrocket._api._authenticated import AuthenticatedClient
from pyrocket.auth import AuthManager
from pyrocket.config import RocketConfig
from pyrocket.models.response import HttpMethod, ResponseEnvelope
from pyrocket.store import MemoryCredentialStore


@dataclass
class RecordedCall:
    method: str
    endpoint: str
    headers: dict[str, str]
    body: str | None

    @property
    def path(self) -> str:
        return self.endpoint.split("?", 1)[0]

    def json_body(self) -> Any:
        return json.loads(self.body) if self.body is not None else None


@dataclass
class FakeProvider:
    """In-process stand-in for the provider API, usable as a ``Transport``."""

    routes: dict[tuple[str, str], tuple[int, Any]] = field(default_factory=dict)
    calls: list[RecordedCall] = field(default_factory=list)
    login_status: int = 200
    login_payload: Any = None
    always_unauthorized: bool = False
    issued_tokens: list[str] = field(default_factory=list)
    revoked_tokens: set[str] = field(default_factory=set)
    transport_errors: dict[str, int | None] = field(default_factory=dict)
    on_login: Callable[[], None] | None = None

    def route(self, method: str, path: str, payload: Any, status: int = 200) -> None:
        self.routes[(method, path)] = (status, payload)

    def count(self, path: str, method: str | None = None) -> int:
        return sum(1 for c in self.calls if c.path == path and (method is None or c.method == method))

    def calls_to(self, path: str) -> list[RecordedCall]:
        return [c for c in self.calls if c.path == path]

    @staticmethod
    def _reply(status: int, payload: Any) -> ResponseEnvelope:
        raw = payload if isinstance(payload, str) else json.dumps(payload)
        return ResponseEnvelope(error=False, http_code=status, raw_body=raw)

    async def make_request(
        self,
        endpoint: str,
        method: HttpMethod | str = HttpMethod.GET,
        headers: Mapping[str, str] | None = None,
        body: str | None = None,
    ) -> ResponseEnvelope:
        call = RecordedCall(str(method).upper(), endpoint, dict(headers or {}), body)
        self.calls.append(call)
        # Yield so concurrent callers interleave like real I/O.
        await asyncio.sleep(0)

        if call.path in self.transport_errors:
            return ResponseEnvelope(
                error=True,
                message="Connection reset by peer",
                http_code=self.transport_errors[call.path],
            )

        if call.path == "login":
            if self.on_login is not None:
                self.on_login()
            if self.login_payload is not None or self.login_status != 200:
                return self._reply(self.login_status, self.login_payload or {"message": "Invalid credentials"})
            token = f"session-token-{len(self.issued_tokens) + 1}"
            self.issued_tokens.append(token)
            return self._reply(200, {"token": token})

        bearer = call.headers.get("Authorization", "").removeprefix("Bearer ")
        if self.always_unauthorized or bearer not in self.issued_tokens or bearer in self.revoked_tokens:
            return self._reply(401, {"message": "Unauthenticated"})

        status, payload = self.routes.get((call.method, call.path), (404, {"message": "Not found"}))
        return self._reply(status, payload)


@pytest.fixture
def config() -> RocketConfig:
    return RocketConfig(email="ops@example.com", password="secret")


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def store(config: RocketConfig) -> MemoryCredentialStore:
    return MemoryCredentialStore(config.credential)


@pytest.fixture
def auth(store: MemoryCredentialStore, provider: FakeProvider) -> AuthManager:
    return AuthManager(store, provider)


@pytest.fixture
def api(auth: AuthManager, provider: FakeProvider) -> AuthenticatedClient:
    return AuthenticatedClient(auth, provider)
