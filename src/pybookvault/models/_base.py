"""Base models for cached GraphQL entities.

Every entity inherits from :class:`Entity` which provides:

* ``alias_generator=to_camel`` so camelCase GraphQL keys map
  automatically to snake_case fields.
* A ``model_validator(mode="before")`` that drops ``None`` and
  blank strings so the field default is used.
* Coercion of numeric ids to strings (GraphQL ``ID`` may arrive as int).

Extra fields are kept on the base class, so a plain :class:`Entity`
can carry any set of scalar fields. Typed subclasses such as
:class:`pybookvault.models.book.Book` narrow that to declared fields.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator, model_validator
from pydantic.alias_generators import to_camel

def _is_scalar(value: Any) -> bool:
    return value is None or (isinstance(value, (str, int)) and not isinstance(value, bool))


class Entity(BaseModel):
    """A record with a unique ``id`` and named scalar fields.

    An empty ``id`` means the server has not assigned one yet; such
    entities only ever enter a collection under a temporary id.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="allow",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    id: str = ""

    @staticmethod
    def _clean_dict(values: dict[str, Any]) -> dict[str, Any]:
        cleaned: dict[str, Any] = {}
        for key, value in values.items():
            if value is None:
                continue
            if isinstance(value, str):
                value = value.strip()
                if not value:
                    continue
            cleaned[key] = value
        return cleaned

    @model_validator(mode="before")
    @classmethod
    def _clean_values(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        return Entity._clean_dict(values)

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @model_validator(mode="after")
    def _check_extra_scalars(self) -> Entity:
        for key, value in (self.model_extra or {}).items():
            if not _is_scalar(value):
                raise ValueError(f"field {key!r} must be a string, integer or null, got {type(value).__name__}")
        return self

    def with_id(self, entity_id: str) -> Entity:
        """Return a copy of this entity carrying *entity_id*."""
        return self.model_copy(update={"id": entity_id})
