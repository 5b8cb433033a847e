from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import pytest

from pybookvault._api import books as books_api
from pybookvault.exceptions import VaultApiError
from pybookvault.models.requests import AddBookRequest, DeleteBookRequest


class _CannedTransport:
    def __init__(self, response: dict[str, Any]) -> None:
        self._response = response
        self.seen: list[tuple[str, str, dict[str, Any]]] = []

    async def execute(
        self,
        operation_name: str,
        query: str,
        variables: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        self.seen.append((operation_name, query, dict(variables or {})))
        return self._response


@pytest.mark.asyncio
async def test_fetch_books_parses_camel_case_fields() -> None:
    transport = _CannedTransport(
        {
            "data": {
                "books": [
                    {"id": "1", "title": "Clean Code", "author": "Robert C. Martin", "genre": None, "publishedYear": 2008},
                    None,
                ]
            }
        }
    )

    books = await books_api.fetch_books(transport)

    assert len(books) == 1
    assert books[0].published_year == 2008
    operation, query, variables = transport.seen[0]
    assert operation == "GetBooks"
    assert "publishedYear" in query
    assert variables == {}


@pytest.mark.asyncio
async def test_fetch_books_null_list_is_empty() -> None:
    assert await books_api.fetch_books(_CannedTransport({"data": {"books": None}})) == []


@pytest.mark.asyncio
async def test_graphql_errors_raise_api_error() -> None:
    transport = _CannedTransport({"errors": [{"message": "Cannot query field"}, {"message": "second"}]})

    with pytest.raises(VaultApiError) as exc_info:
        await books_api.fetch_books(transport)

    assert exc_info.value.operation == "GetBooks"
    assert exc_info.value.messages == ["Cannot query field", "second"]
    assert "Cannot query field; second" in str(exc_info.value)


@pytest.mark.asyncio
async def test_missing_data_field_raises_api_error() -> None:
    with pytest.raises(VaultApiError):
        await books_api.fetch_books(_CannedTransport({"data": {}}))


@pytest.mark.asyncio
async def test_add_book_rejects_invalid_server_book() -> None:
    transport = _CannedTransport({"data": {"addBook": {"id": "5", "title": "", "author": "x"}}})

    with pytest.raises(VaultApiError):
        await books_api.add_book(transport, AddBookRequest(title="Dune", author="Frank Herbert"))


@pytest.mark.asyncio
async def test_add_book_requires_server_id() -> None:
    transport = _CannedTransport({"data": {"addBook": {"title": "Dune", "author": "Frank Herbert"}}})

    with pytest.raises(VaultApiError):
        await books_api.add_book(transport, AddBookRequest(title="Dune", author="Frank Herbert"))


@pytest.mark.asyncio
async def test_delete_book_returns_deleted_id() -> None:
    transport = _CannedTransport({"data": {"deleteBook": {"id": 7}}})

    assert await books_api.delete_book(transport, DeleteBookRequest(id="7")) == "7"
    assert transport.seen[0][2] == {"id": "7"}
