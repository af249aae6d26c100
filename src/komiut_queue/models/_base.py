"""Base model and enum for queue wire types.

Every queue model inherits from :class:`QueueBaseModel` which provides:

* ``alias_generator=to_camel`` so the camelCase wire keys map
  automatically to snake_case fields.
* ``frozen=True`` so snapshots can be shared between readers.
* A ``model_validator(mode="before")`` that drops ``null`` values so
  the field default is used instead.

Enums inherit from :class:`QueueEnum`, a ``StrEnum`` whose lookup is
case-insensitive.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from enum import StrEnum
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, model_validator
from pydantic.alias_generators import to_camel

from komiut_queue.ingestion.normalize import int_or_zero, parse_iso_timestamp, safe_str, str_or_empty

IsoTimestamp = Annotated[datetime | None, BeforeValidator(parse_iso_timestamp)]
"""Optional ISO-8601 timestamp; unparseable values become ``None``."""

WireInt = Annotated[int, BeforeValidator(int_or_zero)]
"""Integer that accepts numeric strings and falls back to ``0``."""

WireText = Annotated[str, BeforeValidator(str_or_empty)]
"""Text that accepts numeric ids and falls back to ``""``."""

OptionalText = Annotated[str | None, BeforeValidator(safe_str)]


class QueueEnum(StrEnum):
    """Base for queue enums with case-insensitive value lookup."""

    @classmethod
    def _missing_(cls, value: object) -> QueueEnum | None:
        if isinstance(value, str):
            lowered = value.strip().lower()
            for member in cls:
                if member.value == lowered:
                    return member
        return None


class QueueBaseModel(BaseModel):
    """Base for queue wire models."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, values: Any) -> Any:
        """Drop explicit ``null`` values so field defaults apply."""
        if not isinstance(values, Mapping):
            return values
        return {key: value for key, value in values.items() if value is not None}

    def to_json(self) -> dict[str, Any]:
        """Render the camelCase wire form, omitting absent optionals."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
