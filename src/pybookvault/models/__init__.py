"""Data models for cached entities and request payloads."""

from pybookvault.models._base import Entity
from pybookvault.models.book import Book
from pybookvault.models.requests import AddBookRequest, DeleteBookRequest

__all__ = [
    "AddBookRequest",
    "Book",
    "DeleteBookRequest",
    "Entity",
]
