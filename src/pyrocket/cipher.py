"""Encrypt the session token at rest."""

from __future__ import annotations

import logging

from pyrocket._crypto.box import open_sealed, seal
from pyrocket.exceptions import RocketCryptoError
from pyrocket.failures import Failure, FailureKind
from pyrocket.models.credential import EncryptedToken
from pyrocket.store import CredentialStore

_logger = logging.getLogger(__name__)


class TokenCipher:
    """Seal tokens into a :class:`CredentialStore` and open them again.

    Every call returns a value or a :class:`Failure`; crypto errors are
    never raised to the caller.
    """

    def __init__(self, store: CredentialStore) -> None:
        self._store = store

    def encrypt(self, token: str) -> EncryptedToken | Failure:
        """Seal *token* and persist ciphertext and key material in one write."""
        try:
            record = seal(token)
        except RocketCryptoError as exc:
            _logger.error("Token encryption failed: %s", exc)
            return Failure(kind=FailureKind.CIPHER_FAILURE, message=str(exc))
        try:
            self._store.save_token(record)
        except OSError as exc:
            _logger.error("Failed to persist encrypted token: %s", exc)
            return Failure(kind=FailureKind.CIPHER_FAILURE, message=f"Failed to persist encrypted token: {exc}")
        return record

    def decrypt(self, ciphertext: str) -> str | Failure:
        """Open *ciphertext* with the key material held by the store."""
        record = self._store.load_token()
        if record is None or not record.is_complete or not ciphertext:
            return Failure(kind=FailureKind.MISSING_MATERIAL, message="Token key material is missing")

        try:
            return open_sealed(record.model_copy(update={"ciphertext": ciphertext}))
        except RocketCryptoError as exc:
            _logger.debug("Token decryption failed: %s", exc)
            return Failure(kind=FailureKind.AUTHENTICATION_FAILURE, message=str(exc))

    def clear(self) -> None:
        """Delete the ciphertext and all key material together."""
        try:
            self._store.delete_token()
        except OSError as exc:
            _logger.error("Failed to delete stored token: %s", exc)
