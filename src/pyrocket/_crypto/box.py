"""Public-key authenticated boxes for the stored session token.

Sealing generates two throwaway X25519 key pairs, A (sender) and B
(receiver).  The box key is derived from ``X25519(A.secret, B.public)``;
only ``A.public``, ``B.secret`` and the nonce are kept, and opening
recomputes the same shared secret as ``X25519(B.secret, A.public)``.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric.x25519 import X25519PrivateKey, X25519PublicKey
from cryptography.hazmat.primitives.ciphers.aead import ChaCha20Poly1305
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from pyrocket.exceptions import RocketCryptoError
from pyrocket.models.credential import EncryptedToken

KEY_BYTES = 32
NONCE_BYTES = 12
_HKDF_INFO = b"pyrocket session token box v1"


def _b64encode(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def _b64decode(value: str, *, name: str, nbytes: int | None = None) -> bytes:
    try:
        data = base64.b64decode(value.encode("ascii"), validate=True)
    except (binascii.Error, UnicodeEncodeError) as exc:
        raise RocketCryptoError(f"{name} must be base64-encoded") from exc
    if nbytes is not None and len(data) != nbytes:
        raise RocketCryptoError(f"{name} must be {nbytes} bytes (got {len(data)})")
    return data


def _box_key(shared: bytes, sender_public: bytes, receiver_public: bytes) -> bytes:
    hkdf = HKDF(
        algorithm=hashes.SHA256(),
        length=KEY_BYTES,
        salt=sender_public + receiver_public,
        info=_HKDF_INFO,
    )
    return hkdf.derive(shared)


def _associated_data(sender_public: bytes, receiver_secret: bytes) -> bytes:
    # X25519 clamps secret-key bits, so the exact stored bytes are bound here.
    return sender_public + hashlib.sha256(receiver_secret).digest()


def seal(token: str) -> EncryptedToken:
    """Encrypt *token* under a fresh pair of key pairs and a fresh nonce.

    Parameters
    ----------
    token : str
        Plaintext session token.

    Returns
    -------
    EncryptedToken
        Ciphertext and the decryption material, base64-encoded.

    Raises
    ------
    RocketCryptoError
        If key generation, random generation or encryption fails.
    """
    try:
        sender = X25519PrivateKey.generate()
        receiver = X25519PrivateKey.generate()
        nonce = os.urandom(NONCE_BYTES)

        sender_public = sender.public_key().public_bytes_raw()
        receiver_public = receiver.public_key().public_bytes_raw()
        receiver_secret = receiver.private_bytes_raw()

        key = _box_key(sender.exchange(receiver.public_key()), sender_public, receiver_public)
        ciphertext = ChaCha20Poly1305(key).encrypt(
            nonce,
            token.encode("utf-8"),
            _associated_data(sender_public, receiver_secret),
        )
    except Exception as exc:
        raise RocketCryptoError(f"Token encryption failed: {exc}") from exc

    return EncryptedToken(
        ciphertext=_b64encode(ciphertext),
        sender_public_key=_b64encode(sender_public),
        receiver_secret_key=_b64encode(receiver_secret),
        nonce=_b64encode(nonce),
    )


def open_sealed(record: EncryptedToken) -> str:
    """Decrypt a record produced by :func:`seal`.

    Raises
    ------
    RocketCryptoError
        If any field is malformed, or the ciphertext fails verification
        (tampered data or mismatched key material).
    """
    ciphertext = _b64decode(record.ciphertext, name="ciphertext")
    sender_public = _b64decode(record.sender_public_key, name="sender public key", nbytes=KEY_BYTES)
    receiver_secret = _b64decode(record.receiver_secret_key, name="receiver secret key", nbytes=KEY_BYTES)
    nonce = _b64decode(record.nonce, name="nonce", nbytes=NONCE_BYTES)

    try:
        receiver = X25519PrivateKey.from_private_bytes(receiver_secret)
        receiver_public = receiver.public_key().public_bytes_raw()
        shared = receiver.exchange(X25519PublicKey.from_public_bytes(sender_public))
        key = _box_key(shared, sender_public, receiver_public)
        plaintext = ChaCha20Poly1305(key).decrypt(
            nonce,
            ciphertext,
            _associated_data(sender_public, receiver_secret),
        )
    except InvalidTag as exc:
        raise RocketCryptoError("Token verification failed") from exc
    except ValueError as exc:
        raise RocketCryptoError(f"Token decryption failed: {exc}") from exc

    try:
        return plaintext.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise RocketCryptoError("Decrypted token is not UTF-8") from exc
