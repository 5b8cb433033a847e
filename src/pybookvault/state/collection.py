"""Immutable collection snapshots and the pure functions that evolve them.

Every function here takes a :class:`Collection` and returns a new one;
nothing is mutated in place, so a snapshot handed to a reader never
changes underneath it.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Iterable

from pydantic import BaseModel, ConfigDict, SerializeAsAny, model_validator

from pybookvault.exceptions import VaultValidationError
from pybookvault.models import Entity

_logger = logging.getLogger(__name__)


class Collection(BaseModel):
    """Ordered entities cached for one query name."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    query_name: str
    entities: tuple[SerializeAsAny[Entity], ...] = ()
    version: int = 0

    @model_validator(mode="after")
    def _unique_ids(self) -> Collection:
        seen: set[str] = set()
        for entity in self.entities:
            if not entity.id:
                raise ValueError("collection entities must carry an id")
            if entity.id in seen:
                raise ValueError(f"duplicate id {entity.id!r} in collection {self.query_name!r}")
            seen.add(entity.id)
        return self

    def __len__(self) -> int:
        return len(self.entities)

    def __contains__(self, entity_id: object) -> bool:
        return any(entity.id == entity_id for entity in self.entities)

    def ids(self) -> list[str]:
        return [entity.id for entity in self.entities]

    def index_of(self, entity_id: str) -> int | None:
        for idx, entity in enumerate(self.entities):
            if entity.id == entity_id:
                return idx
        return None

    def get(self, entity_id: str) -> Entity | None:
        idx = self.index_of(entity_id)
        return None if idx is None else self.entities[idx]


@dataclasses.dataclass(frozen=True)
class Removal:
    """What :func:`remove` took out, and where from."""

    entity: Entity
    preceding_ids: tuple[str, ...]


def _evolve(collection: Collection, entities: Iterable[Entity]) -> Collection:
    return Collection(
        query_name=collection.query_name,
        entities=tuple(entities),
        version=collection.version + 1,
    )


def from_entities(query_name: str, entities: Iterable[Entity], *, version: int = 0) -> Collection:
    """Build a collection from server data, keeping the first of any repeated id."""
    unique: list[Entity] = []
    seen: set[str] = set()
    for entity in entities:
        if not entity.id:
            raise VaultValidationError(f"{query_name}: server entity without id: {entity!r}")
        if entity.id in seen:
            _logger.debug("%s: dropping repeated id %s from server data", query_name, entity.id)
            continue
        seen.add(entity.id)
        unique.append(entity)
    return Collection(query_name=query_name, entities=tuple(unique), version=version)


def append(collection: Collection, entity: Entity) -> Collection:
    """Add *entity* at the end. Its id must be set and not yet present."""
    if not entity.id:
        raise VaultValidationError("cannot add an entity without id")
    if entity.id in collection:
        raise VaultValidationError(f"id {entity.id!r} already present in {collection.query_name!r}")
    return _evolve(collection, (*collection.entities, entity))


def remove(collection: Collection, entity_id: str) -> tuple[Collection, Removal | None]:
    """Remove the entity with *entity_id*; a missing id leaves the collection as is."""
    idx = collection.index_of(entity_id)
    if idx is None:
        return collection, None
    entity = collection.entities[idx]
    preceding_ids = tuple(e.id for e in collection.entities[:idx])
    remaining = collection.entities[:idx] + collection.entities[idx + 1 :]
    return _evolve(collection, remaining), Removal(entity=entity, preceding_ids=preceding_ids)


def replace(collection: Collection, old_id: str, entity: Entity) -> Collection:
    """Swap the entity at *old_id* for *entity*, keeping its position.

    If *entity*'s id is already present elsewhere (e.g. a refetch brought
    it in first), the existing entry is updated in place and the *old_id*
    entry dropped.
    """
    old_idx = collection.index_of(old_id)
    if old_idx is None:
        return collection
    existing_idx = collection.index_of(entity.id) if entity.id != old_id else None
    entities = list(collection.entities)
    if existing_idx is None:
        entities[old_idx] = entity
    else:
        entities[existing_idx] = entity
        del entities[old_idx]
    return _evolve(collection, entities)


def restore(collection: Collection, removal: Removal) -> Collection:
    """Put a removed entity back where it was.

    The entity goes right after the nearest of its former predecessors
    that is still present, or first when none is. Restoring an id that
    is already present is a no-op.
    """
    entity = removal.entity
    if entity.id in collection:
        return collection
    entities = list(collection.entities)
    position = 0
    for anchor_id in reversed(removal.preceding_ids):
        anchor_idx = collection.index_of(anchor_id)
        if anchor_idx is not None:
            position = anchor_idx + 1
            break
    entities.insert(position, entity)
    return _evolve(collection, entities)


def without(collection: Collection, entity_ids: Iterable[str]) -> Collection:
    """Drop every entity whose id is in *entity_ids*."""
    drop = set(entity_ids)
    if not drop.intersection(collection.ids()):
        return collection
    return _evolve(collection, (entity for entity in collection.entities if entity.id not in drop))
