"""Credential and token storage.

A store holds two things: the provider account credential and the
encrypted session token record.  It has no logic beyond get/set/delete.
The token record is always replaced or deleted as one unit so the
ciphertext can never outlive (or be outlived by) its key material.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Protocol

from pydantic import ValidationError

from pyrocket.models.credential import Credential, EncryptedToken

_logger = logging.getLogger(__name__)


class CredentialStore(Protocol):
    """Structural store interface used by the cipher and auth manager."""

    def get_credential(self) -> Credential: ...

    def set_credential(self, credential: Credential) -> None: ...

    def load_token(self) -> EncryptedToken | None: ...

    def save_token(self, record: EncryptedToken) -> None: ...

    def delete_token(self) -> None: ...


class MemoryCredentialStore:
    """Process-local store; the token is lost when the process exits."""

    def __init__(self, credential: Credential | None = None) -> None:
        self._credential = credential or Credential()
        self._token: EncryptedToken | None = None

    def get_credential(self) -> Credential:
        return self._credential

    def set_credential(self, credential: Credential) -> None:
        self._credential = credential

    def load_token(self) -> EncryptedToken | None:
        return self._token

    def save_token(self, record: EncryptedToken) -> None:
        self._token = record

    def delete_token(self) -> None:
        self._token = None


class JsonFileCredentialStore:
    """Persist the encrypted token record to a JSON file.

    Writes go through a temporary file in the same directory followed by
    ``os.replace``, so readers see either the old record or the new one.
    The credential itself stays in memory; it comes from configuration.
    """

    _TOKEN_KEY = "token"

    def __init__(self, path: str | os.PathLike[str], credential: Credential | None = None) -> None:
        self.path = Path(path).expanduser()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._credential = credential or Credential()

    def get_credential(self) -> Credential:
        return self._credential

    def set_credential(self, credential: Credential) -> None:
        self._credential = credential

    def _load_all(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError):
            _logger.warning("Token store %s is unreadable; treating as empty", self.path)
            return {}
        return data if isinstance(data, dict) else {}

    def _save_all(self, data: dict[str, Any]) -> None:
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.chmod(tmp_name, 0o600)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def load_token(self) -> EncryptedToken | None:
        raw = self._load_all().get(self._TOKEN_KEY)
        if not isinstance(raw, dict):
            return None
        try:
            return EncryptedToken.model_validate(raw)
        except ValidationError:
            _logger.warning("Stored token record in %s is malformed", self.path)
            return None

    def save_token(self, record: EncryptedToken) -> None:
        data = self._load_all()
        data[self._TOKEN_KEY] = record.model_dump()
        self._save_all(data)

    def delete_token(self) -> None:
        data = self._load_all()
        if self._TOKEN_KEY not in data:
            return
        del data[self._TOKEN_KEY]
        self._save_all(data)
