from __future__ import annotations

import asyncio
import json

import pytest
from conftest import FakeProvider

from pyrocket._api._authenticated import AuthenticatedClient
from pyrocket.auth import AuthManager
from pyrocket.failures import Failure, FailureKind
from pyrocket.models.auth import AuthState
from pyrocket.models.credential import Credential
from pyrocket.store import MemoryCredentialStore


@pytest.mark.asyncio
async def test_login_posts_username_and_password(auth: AuthManager, provider: FakeProvider) -> None:
    token = await auth.login()

    assert token == "session-token-1"
    call = provider.calls_to("login")[0]
    assert call.method == "POST"
    assert call.json_body() == {"username": "ops@example.com", "password": "secret"}
    assert call.headers["Content-Type"] == "application/json"
    assert "Authorization" not in call.headers


@pytest.mark.asyncio
async def test_login_does_not_persist(auth: AuthManager, store: MemoryCredentialStore) -> None:
    await auth.login()

    assert store.load_token() is None


@pytest.mark.asyncio
async def test_login_without_credentials_makes_no_request(provider: FakeProvider) -> None:
    auth = AuthManager(MemoryCredentialStore(Credential(email="ops@example.com")), provider)

    result = await auth.login()

    assert isinstance(result, Failure)
    assert result.kind is FailureKind.MISSING_CREDENTIALS
    assert provider.calls == []
    assert not auth.has_credentials()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("status", "payload"),
    [
        (401, {"message": "Invalid credentials"}),
        (500, {"token": "looks-valid-but-500"}),
        (200, "<html>maintenance</html>"),
        (200, {"user": {"id": 1}}),
        (200, {"token": ""}),
        (200, {"token": 12345}),
        (200, ["token"]),
    ],
)
async def test_login_failures(provider: FakeProvider, auth: AuthManager, status: int, payload: object) -> None:
    provider.login_status = status
    provider.login_payload = payload

    result = await auth.login()

    assert isinstance(result, Failure)
    assert result.kind is FailureKind.LOGIN_FAILED
    assert result.http_code == status


@pytest.mark.asyncio
async def test_login_transport_error(provider: FakeProvider, auth: AuthManager) -> None:
    provider.transport_errors["login"] = None

    result = await auth.login()

    assert isinstance(result, Failure)
    assert result.kind is FailureKind.LOGIN_FAILED
    assert "Connection reset" in result.message


@pytest.mark.asyncio
async def test_get_token_logs_in_once_and_caches(auth: AuthManager, provider: FakeProvider) -> None:
    first = await auth.get_token()
    second = await auth.get_token()

    assert first == second == "session-token-1"
    assert provider.count("login") == 1
    assert auth.state is AuthState.TOKEN_CACHED


@pytest.mark.asyncio
async def test_token_is_stored_encrypted(auth: AuthManager, store: MemoryCredentialStore) -> None:
    token = await auth.get_token()

    record = store.load_token()
    assert record is not None
    assert token is not None
    assert token not in json.dumps(record.model_dump())


@pytest.mark.asyncio
async def test_get_token_returns_none_when_login_fails(
    auth: AuthManager, provider: FakeProvider, store: MemoryCredentialStore
) -> None:
    provider.login_status = 401

    assert await auth.get_token() is None
    assert store.load_token() is None
    assert auth.state is AuthState.NO_TOKEN


@pytest.mark.asyncio
async def test_failed_refresh_clears_previous_token(
    auth: AuthManager, provider: FakeProvider, store: MemoryCredentialStore
) -> None:
    await auth.get_token()
    assert store.load_token() is not None

    provider.login_status = 503
    assert await auth.refresh_token() is False

    assert store.load_token() is None
    assert auth.state is AuthState.NO_TOKEN


@pytest.mark.asyncio
async def test_undecryptable_record_triggers_new_login(
    auth: AuthManager, provider: FakeProvider, store: MemoryCredentialStore
) -> None:
    await auth.get_token()
    record = store.load_token()
    assert record is not None
    store.save_token(record.model_copy(update={"nonce": "AAAAAAAAAAAAAAAA"}))

    token = await auth.get_token()

    assert token == "session-token-2"
    assert provider.count("login") == 2


@pytest.mark.asyncio
async def test_state_transitions(auth: AuthManager, provider: FakeProvider) -> None:
    seen: list[AuthState] = []
    provider.on_login = lambda: seen.append(auth.state)

    assert auth.state is AuthState.NO_TOKEN
    await auth.get_token()
    assert seen == [AuthState.REFRESHING]
    assert auth.state is AuthState.TOKEN_CACHED

    auth.clear_token()
    assert auth.state is AuthState.NO_TOKEN


@pytest.mark.asyncio
async def test_concurrent_get_token_logs_in_once(auth: AuthManager, provider: FakeProvider) -> None:
    tokens = await asyncio.gather(*(auth.get_token() for _ in range(10)))

    assert set(tokens) == {"session-token-1"}
    assert provider.count("login") == 1


@pytest.mark.asyncio
async def test_concurrent_refresh_of_same_stale_token_logs_in_once(
    auth: AuthManager, provider: FakeProvider
) -> None:
    stale = await auth.get_token()
    assert stale is not None

    results = await asyncio.gather(*(auth.refresh_token(stale_token=stale) for _ in range(5)))

    assert all(results)
    assert provider.count("login") == 2
    assert await auth.get_token() == "session-token-2"


@pytest.mark.asyncio
async def test_refresh_without_stale_token_always_logs_in(auth: AuthManager, provider: FakeProvider) -> None:
    await auth.get_token()

    assert await auth.refresh_token() is True

    assert provider.count("login") == 2
    assert await auth.get_token() == "session-token-2"


@pytest.mark.asyncio
async def test_test_connection_success(auth: AuthManager, api: AuthenticatedClient, provider: FakeProvider) -> None:
    provider.route("GET", "sites", {"success": True, "result": []})

    report = await auth.test_connection(api)

    assert report.success is True
    assert report.message == "Successfully connected to the hosting provider"
    assert report.data == {"success": True, "result": []}


@pytest.mark.asyncio
async def test_test_connection_authentication_failure(
    auth: AuthManager, api: AuthenticatedClient, provider: FakeProvider
) -> None:
    provider.login_status = 401

    report = await auth.test_connection(api)

    assert report.success is False
    assert report.message == "Failed to authenticate with the hosting provider"
    assert provider.count("sites") == 0


@pytest.mark.asyncio
async def test_test_connection_transport_failure(
    auth: AuthManager, api: AuthenticatedClient, provider: FakeProvider
) -> None:
    provider.transport_errors["sites"] = None

    report = await auth.test_connection(api)

    assert report.success is False
    assert report.message.startswith("Connection failed:")


@pytest.mark.asyncio
async def test_test_connection_does_not_retry_401(
    auth: AuthManager, api: AuthenticatedClient, provider: FakeProvider
) -> None:
    provider.always_unauthorized = True

    report = await auth.test_connection(api)

    assert report.success is False
    assert report.message.startswith("API error:")
    assert provider.count("login") == 1
    assert provider.count("sites") == 1


@pytest.mark.asyncio
async def test_test_connection_unparseable_body(
    auth: AuthManager, api: AuthenticatedClient, provider: FakeProvider
) -> None:
    provider.route("GET", "sites", "<html>oops</html>")

    report = await auth.test_connection(api)

    assert report.success is False
    assert report.message == "API error: Failed to parse API response"
