"""Cryptographic primitives for the stored session token."""

from __future__ import annotations

from pyrocket._crypto.box import KEY_BYTES, NONCE_BYTES, open_sealed, seal

__all__ = [
    "KEY_BYTES",
    "NONCE_BYTES",
    "open_sealed",
    "seal",
]
