"""Provider account credential and encrypted token record."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class Credential(BaseModel):
    """Account credential used only to obtain a session token.

    Parameters
    ----------
    email : str
        Account email, sent as ``username`` to the login endpoint.
    password : str
        Account password.
    """

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    email: str = ""
    password: str = ""

    @property
    def is_complete(self) -> bool:
        """Whether both fields are set."""
        return bool(self.email) and bool(self.password)

    def __repr__(self) -> str:
        return f"Credential(email={self.email!r}, password='<redacted>')"

    __str__ = __repr__


class EncryptedToken(BaseModel):
    """Session token ciphertext plus the material needed to open it.

    All fields are base64 strings.  The record is written and deleted
    as a whole; it is never updated field by field.

    Parameters
    ----------
    ciphertext : str
        Sealed session token.
    sender_public_key : str
        Public key of the ephemeral sender key pair.
    receiver_secret_key : str
        Secret key of the ephemeral receiver key pair.
    nonce : str
        Per-encryption nonce.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    ciphertext: str
    sender_public_key: str
    receiver_secret_key: str
    nonce: str

    @property
    def is_complete(self) -> bool:
        """Whether every field is non-empty."""
        return all((self.ciphertext, self.sender_public_key, self.receiver_secret_key, self.nonce))

    def __repr__(self) -> str:
        return "EncryptedToken(<redacted>)"

    __str__ = __repr__
