"""Book model."""

from __future__ import annotations

from pydantic import ConfigDict, Field

from pybookvault.models._base import Entity


class Book(Entity):
    """A book in the catalogue.

    Fields are mapped from the ``GetBooks`` / ``AddBook`` selection set
    (``id title author genre publishedYear``).
    """

    model_config = ConfigDict(extra="ignore")

    title: str = Field(min_length=1)
    """Book title."""
    author: str = Field(min_length=1)
    """Author name."""
    genre: str | None = None
    """Free-form genre label (e.g. ``"Fiction"``)."""
    published_year: int | None = None
    """Year of publication."""
