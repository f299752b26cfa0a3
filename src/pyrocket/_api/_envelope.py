"""Provider payload shapes.

The provider answers in three shapes, sometimes for the same endpoint:

* ``{"success": true, "result": {...}}``   -> :class:`SuccessEnvelope`
* a bare object such as ``{"id": ...}``   -> :class:`FlatEnvelope`
* ``{"success": false, "message": ...}``  -> :class:`ErrorEnvelope`

:func:`resolve_envelope` is the only place that inspects field presence
to tell them apart.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class SuccessEnvelope(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool | None = None
    """``None`` when the payload carries ``result`` but no ``success`` flag."""
    result: Any = None
    raw: dict[str, Any] = Field(default_factory=dict)

    @property
    def confirmed(self) -> bool:
        """The provider explicitly reported success."""
        return self.success is True


class FlatEnvelope(BaseModel):
    model_config = ConfigDict(frozen=True)

    data: Any = None


class ErrorEnvelope(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str = ""
    raw: dict[str, Any] = Field(default_factory=dict)


ProviderEnvelope = SuccessEnvelope | FlatEnvelope | ErrorEnvelope


def extract_message(payload: Any) -> str:
    """Best-effort human-readable error text from a decoded payload."""
    if not isinstance(payload, dict):
        return ""
    for key in ("message", "error", "errors"):
        value = payload.get(key)
        if isinstance(value, str) and value:
            return value
        if isinstance(value, dict):
            nested = extract_message(value)
            if nested:
                return nested
        if isinstance(value, list) and value:
            return "; ".join(str(v) for v in value)
    return ""


def resolve_envelope(decoded: Any) -> ProviderEnvelope:
    """Classify a decoded provider payload."""
    if not isinstance(decoded, dict):
        return FlatEnvelope(data=decoded)

    if "success" in decoded and not decoded["success"]:
        return ErrorEnvelope(message=extract_message(decoded) or "Request was not successful", raw=decoded)

    if "success" in decoded or "result" in decoded:
        success = bool(decoded["success"]) if "success" in decoded else None
        return SuccessEnvelope(success=success, result=decoded.get("result"), raw=decoded)

    return FlatEnvelope(data=decoded)
