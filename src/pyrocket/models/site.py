"""Site models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class SiteSpec(BaseModel):
    """Caller input for :func:`pyrocket._api.sites.create_site`.

    Required fields are validated by ``create_site`` itself so an empty
    value yields an ``INVALID_INPUT`` failure instead of a validation
    exception.  Optional fields left as ``None`` fall back to the client
    configuration defaults.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", str_strip_whitespace=True)

    domain: str = ""
    name: str = ""
    admin_email: str = ""
    location: int | None = None
    admin_username: str | None = None
    admin_password: str | None = None
    multisite: bool = False
    install_plugins: str | list[str] = ""
    quota: int | None = None
    """Disk space in MB; ``None``/``0`` means unlimited and is omitted."""
    bwlimit: int | None = None
    """Bandwidth in MB; ``None``/``0`` means unlimited and is omitted."""
    label: str = ""

    def plugins_wire_value(self) -> str:
        """Plugin list as the comma-delimited string the API expects."""
        if isinstance(self.install_plugins, str):
            return self.install_plugins
        return ",".join(p.strip() for p in self.install_plugins if p and p.strip())


class SiteRecord(BaseModel):
    """A site as reported by the provider.

    Unknown fields are kept in ``raw``.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    url: str | None = None
    domain: str | None = None
    name: str | None = None
    raw: dict[str, Any] = Field(default_factory=dict)

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("url", "domain", "name", mode="before")
    @classmethod
    def _drop_non_string(cls, value: Any) -> Any:
        # Other shapes stay available in ``raw``.
        return value if isinstance(value, str) else None

    @model_validator(mode="before")
    @classmethod
    def _stash_raw(cls, values: Any) -> Any:
        if isinstance(values, dict) and "raw" not in values:
            return {**values, "raw": dict(values)}
        return values
