"""Typed models for the hosting provider API."""

from pyrocket.models.auth import AuthState, ConnectionReport
from pyrocket.models.credential import Credential, EncryptedToken
from pyrocket.models.location import Location
from pyrocket.models.response import HttpMethod, ResponseEnvelope
from pyrocket.models.site import SiteRecord, SiteSpec

__all__ = [
    "AuthState",
    "ConnectionReport",
    "Credential",
    "EncryptedToken",
    "HttpMethod",
    "Location",
    "ResponseEnvelope",
    "SiteRecord",
    "SiteSpec",
]
