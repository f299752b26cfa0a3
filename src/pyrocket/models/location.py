"""Deployable server location."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator


class Location(BaseModel):
    """A region sites can be deployed to."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: int | str
    name: str = ""

    @field_validator("id", mode="before")
    @classmethod
    def _numeric_string_to_int(cls, value: Any) -> Any:
        if isinstance(value, str) and value.strip().isdigit():
            return int(value.strip())
        return value

    @property
    def has_numeric_id(self) -> bool:
        """Whether ``id`` uses the integer format the site API requires."""
        return isinstance(self.id, int)
