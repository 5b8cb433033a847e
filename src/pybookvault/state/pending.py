"""Pending speculative operations.

Each speculative change is tracked by exactly one record until it is
confirmed or rolled back. Records are matched to their resolution by
``token``, never by entity id, so a resolution can only ever affect the
operation that produced it.
"""

from __future__ import annotations

import dataclasses
from enum import StrEnum

from pybookvault.models import Entity


class OperationKind(StrEnum):
    INSERT = "insert"
    DELETE = "delete"


class ResolveOutcome(StrEnum):
    """How a resolution call was handled."""

    APPLIED = "applied"
    """The resolution changed tracking state (and possibly the collection)."""
    SUPERSEDED = "superseded"
    """The operation was overtaken by a later one; its effect was dropped."""
    SETTLED = "settled"
    """Unknown or already-resolved token; nothing happened."""


@dataclasses.dataclass(frozen=True)
class PendingInsert:
    """An entity shown under ``temp_id`` until the server assigns a real id."""

    token: str
    query_name: str
    temp_id: str
    entity: Entity

    @property
    def kind(self) -> OperationKind:
        return OperationKind.INSERT

    @property
    def entity_id(self) -> str:
        return self.temp_id


@dataclasses.dataclass(frozen=True)
class PendingDelete:
    """An entity hidden from the collection until the server confirms removal.

    ``preceding_ids`` (ids that came before the removed entity) let a
    rollback put the entity back where it was.
    ``retargeted_from`` holds the temporary id when the delete was issued
    against an unconfirmed insert and later moved onto the server id.
    """

    token: str
    query_name: str
    entity_id: str
    removed: Entity
    preceding_ids: tuple[str, ...] = ()
    retargeted_from: str | None = None

    @property
    def kind(self) -> OperationKind:
        return OperationKind.DELETE


PendingOperation = PendingInsert | PendingDelete
