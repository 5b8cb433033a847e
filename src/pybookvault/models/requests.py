"""Pydantic request models for client entrypoints.

These models provide a consistent "validate → normalize → execute" flow.
They are used internally by :class:`pybookvault.client.VaultClient`.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from pybookvault.models.book import Book


class AddBookRequest(BaseModel):
    """Variables for the ``AddBook`` mutation."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        validate_default=True,
        str_strip_whitespace=True,
    )

    title: str = Field(min_length=1)
    author: str = Field(min_length=1)
    genre: str | None = None
    published_year: int | None = Field(default=None, ge=1000)

    @field_validator("genre")
    @classmethod
    def _blank_genre_is_none(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return value

    @field_validator("published_year")
    @classmethod
    def _year_not_in_future(cls, value: int | None) -> int | None:
        if value is not None and value > datetime.now(UTC).year:
            raise ValueError("published_year cannot be in the future")
        return value

    def to_variables(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "author": self.author,
            "genre": self.genre,
            "publishedYear": self.published_year,
        }

    def to_book(self) -> Book:
        """Book carrying the requested values and no id yet."""
        return Book(
            title=self.title,
            author=self.author,
            genre=self.genre,
            published_year=self.published_year,
        )


class DeleteBookRequest(BaseModel):
    """Variables for the ``DeleteBook`` mutation."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        validate_default=True,
        str_strip_whitespace=True,
    )

    id: str

    @field_validator("id")
    @classmethod
    def _id_non_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("id must be non-empty")
        return value
