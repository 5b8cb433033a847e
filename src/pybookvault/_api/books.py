"""Book catalogue operations.

Operations:
  - GetBooks    (list every book)
  - AddBook     (create a book, server assigns the id)
  - DeleteBook  (remove a book by id)
"""

from __future__ import annotations

import logging

from pydantic import ValidationError

from pybookvault._api._common import execute_field
from pybookvault._transport import GraphQLTransport
from pybookvault.exceptions import VaultApiError
from pybookvault.models.book import Book
from pybookvault.models.requests import AddBookRequest, DeleteBookRequest

_logger = logging.getLogger(__name__)

_BOOK_FIELDS = """
      id
      title
      author
      genre
      publishedYear
"""

GET_BOOKS = f"""
  query GetBooks {{
    books {{{_BOOK_FIELDS}    }}
  }}
"""

ADD_BOOK = f"""
  mutation AddBook(
    $title: String!
    $author: String!
    $genre: String
    $publishedYear: Int
  ) {{
    addBook(
      title: $title
      author: $author
      genre: $genre
      publishedYear: $publishedYear
    ) {{{_BOOK_FIELDS}    }}
  }}
"""

DELETE_BOOK = """
  mutation DeleteBook($id: ID!) {
    deleteBook(id: $id) {
      id
    }
  }
"""


def _parse_book(operation: str, value: object) -> Book:
    if not isinstance(value, dict):
        raise VaultApiError(f"{operation} returned {type(value).__name__}, expected an object", operation=operation)
    try:
        return Book.model_validate(value)
    except ValidationError as exc:
        raise VaultApiError(f"{operation} returned an invalid book: {exc}", operation=operation) from exc


async def fetch_books(transport: GraphQLTransport) -> list[Book]:
    """Fetch the full book list."""
    items = await execute_field(transport=transport, operation="GetBooks", query=GET_BOOKS, field="books")
    if items is None:
        return []
    if not isinstance(items, list):
        raise VaultApiError("GetBooks returned a non-list books field", operation="GetBooks")
    books = [_parse_book("GetBooks", item) for item in items if item is not None]
    _logger.debug("GetBooks returned %d books", len(books))
    return books


async def add_book(transport: GraphQLTransport, request: AddBookRequest) -> Book:
    """Create a book and return it with its server-assigned id."""
    value = await execute_field(
        transport=transport,
        operation="AddBook",
        query=ADD_BOOK,
        field="addBook",
        variables=request.to_variables(),
    )
    book = _parse_book("AddBook", value)
    if not book.id:
        raise VaultApiError("AddBook returned a book without id", operation="AddBook")
    return book


async def delete_book(transport: GraphQLTransport, request: DeleteBookRequest) -> str:
    """Delete a book and return the id the server reports as deleted."""
    value = await execute_field(
        transport=transport,
        operation="DeleteBook",
        query=DELETE_BOOK,
        field="deleteBook",
        variables={"id": request.id},
    )
    if not isinstance(value, dict) or not value.get("id"):
        raise VaultApiError(f"DeleteBook found no book with id {request.id}", operation="DeleteBook")
    return str(value["id"])
