"""pyrocket - Async Python client for provisioning sites on the Rocket.net hosting API."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pyrocket")
except PackageNotFoundError:
    __version__ = "0+local"
from pyrocket.client import RocketClient
from pyrocket.config import RocketConfig
from pyrocket.exceptions import (
    RocketApiError,
    RocketClientError,
    RocketConfigError,
    RocketCryptoError,
    RocketError,
)
from pyrocket.failures import Failure, FailureKind, is_failure, unwrap
from pyrocket.models import (
    AuthState,
    ConnectionReport,
    Credential,
    EncryptedToken,
    HttpMethod,
    Location,
    ResponseEnvelope,
    SiteRecord,
    SiteSpec,
)
from pyrocket.store import CredentialStore, JsonFileCredentialStore, MemoryCredentialStore

__all__ = [
    "__version__",
    "AuthState",
    "ConnectionReport",
    "Credential",
    "CredentialStore",
    "EncryptedToken",
    "Failure",
    "FailureKind",
    "HttpMethod",
    "JsonFileCredentialStore",
    "Location",
    "MemoryCredentialStore",
    "ResponseEnvelope",
    "RocketApiError",
    "RocketClient",
    "RocketClientError",
    "RocketConfig",
    "RocketConfigError",
    "RocketCryptoError",
    "RocketError",
    "SiteRecord",
    "SiteSpec",
    "is_failure",
    "unwrap",
]
