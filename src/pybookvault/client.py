"""High-level async client for the BookVault GraphQL API."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator, Callable
from typing import Any

import aiohttp
from pydantic import ValidationError

from pybookvault._api import books as _books_api
from pybookvault._constants import is_temp_id
from pybookvault._transport import GraphQLTransport, HttpGraphQLTransport
from pybookvault.config import VaultConfig
from pybookvault.exceptions import VaultError, VaultValidationError
from pybookvault.models.book import Book
from pybookvault.models.requests import AddBookRequest, DeleteBookRequest
from pybookvault.state.collection import Collection
from pybookvault.state.reconciler import OptimisticCacheReconciler

_logger = logging.getLogger(__name__)


class VaultClient:
    """Async client for the BookVault API with an optimistic book cache.

    Usage::

        async with VaultClient(config) as client:
            await client.fetch_books()
            book = await client.add_book("Dune", "Frank Herbert")

    Mutations update :attr:`books` before the server answers. A failed
    mutation is rolled back and its error re-raised.
    """

    def __init__(
        self,
        config: VaultConfig | None = None,
        *,
        session: aiohttp.ClientSession | None = None,
        transport: GraphQLTransport | None = None,
        on_change: Callable[[Collection], None] | None = None,
    ) -> None:
        self._config = config or VaultConfig()
        self._external_session = session is not None
        self._http_session = session
        self._external_transport = transport is not None
        self._transport = transport
        self._reconciler = OptimisticCacheReconciler(on_change=on_change)
        self._id_locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> VaultClient:
        if not self._external_transport:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            self._transport = HttpGraphQLTransport(self._config, self._http_session)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        if not self._external_transport:
            self._transport = None

    # ------------------------------------------------------------------
    # Cache access
    # ------------------------------------------------------------------

    @property
    def reconciler(self) -> OptimisticCacheReconciler:
        return self._reconciler

    @property
    def books(self) -> list[Book]:
        """Current cached books, including unconfirmed inserts."""
        collection = self._reconciler.snapshot(self._config.query_name)
        return [entity for entity in collection.entities if isinstance(entity, Book)]

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_transport(self) -> GraphQLTransport:
        if self._transport is None:
            raise VaultError("Client not initialized. Use 'async with VaultClient(...) as client:'")
        return self._transport

    @contextlib.asynccontextmanager
    async def _serialized(self, entity_id: str) -> AsyncIterator[None]:
        """Run mutations on one id in issuance order (asyncio locks are FIFO)."""
        lock = self._id_locks.setdefault(entity_id, asyncio.Lock())
        self._lock_users[entity_id] = self._lock_users.get(entity_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            remaining = self._lock_users[entity_id] - 1
            if remaining:
                self._lock_users[entity_id] = remaining
            else:
                del self._lock_users[entity_id]
                del self._id_locks[entity_id]

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def fetch_books(self) -> list[Book]:
        """Fetch all books and make them the authoritative cache state."""
        transport = self._require_transport()
        books = await _books_api.fetch_books(transport)
        self._reconciler.load(self._config.query_name, books)
        return self.books

    async def add_book(
        self,
        title: str,
        author: str,
        *,
        genre: str | None = None,
        published_year: int | None = None,
    ) -> Book:
        """Add a book optimistically and return the server-confirmed copy."""
        try:
            request = AddBookRequest(title=title, author=author, genre=genre, published_year=published_year)
        except ValidationError as exc:
            raise VaultValidationError(f"invalid book: {exc}") from exc

        transport = self._require_transport()
        _, pending = self._reconciler.apply_optimistic_insert(self._config.query_name, request.to_book())
        try:
            async with self._serialized(pending.temp_id):
                book = await _books_api.add_book(transport, request)
                self._reconciler.resolve(pending, entity=book)
        except BaseException as exc:
            self._reconciler.resolve(pending, error=exc)
            _logger.warning("Adding %r failed, rolled back: %s", request.title, exc)
            raise
        return book

    async def delete_book(self, book_id: str) -> bool:
        """Delete a book optimistically.

        Returns ``False`` when no book with *book_id* is cached (nothing
        is sent). Deleting a book whose insert is still in flight waits
        for that insert and then deletes the server-assigned id.
        """
        try:
            request = DeleteBookRequest(id=book_id)
        except ValidationError as exc:
            raise VaultValidationError(f"invalid book id: {exc}") from exc

        transport = self._require_transport()
        # A caller may still hold the temporary id of an insert that has since been confirmed.
        entity_id = self._reconciler.server_id_for(request.id) or request.id
        _, pending = self._reconciler.apply_optimistic_delete(self._config.query_name, entity_id)
        if pending is None:
            return False

        try:
            async with self._serialized(entity_id):
                # An insert confirmed while waiting retargets the delete onto the server id.
                live = self._reconciler.lookup(pending.token) or pending
                if is_temp_id(live.entity_id):
                    # The insert never reached the server; nothing to send.
                    self._reconciler.resolve(live)
                    return True
                await _books_api.delete_book(transport, DeleteBookRequest(id=live.entity_id))
                self._reconciler.resolve(live)
        except BaseException as exc:
            live = self._reconciler.lookup(pending.token) or pending
            self._reconciler.resolve(live, error=exc)
            _logger.warning("Deleting %s failed, rolled back: %s", live.entity_id, exc)
            raise
        return True
