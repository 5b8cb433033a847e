"""Optimistic mutation cache reconciler.

This is the only component allowed to change cached collections. Every
mutation goes through three phases:

1. *speculate*: ``apply_optimistic_insert`` / ``apply_optimistic_delete``
   publish the intended end state at once and return a pending record;
2. *commit*: the caller sends the mutation (outside this module);
3. *resolve*: ``reconcile_insert`` / ``reconcile_delete`` on success or
   ``rollback`` on failure, matched by the record's correlation token.

All methods are synchronous, so within one event loop no reader can see
a half-applied change.
"""

from __future__ import annotations

import dataclasses
import itertools
import logging
import secrets
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from pydantic import ValidationError

from pybookvault._constants import TEMP_ID_PREFIX, is_temp_id
from pybookvault.exceptions import VaultValidationError
from pybookvault.models import Entity
from pybookvault.state import collection as ops
from pybookvault.state.collection import Collection, Removal
from pybookvault.state.pending import (
    PendingDelete,
    PendingInsert,
    PendingOperation,
    ResolveOutcome,
)

_logger = logging.getLogger(__name__)


def _as_entity(value: Entity | Mapping[str, Any], model: type[Entity] = Entity) -> Entity:
    if isinstance(value, Entity):
        return value
    try:
        return model.model_validate(dict(value))
    except ValidationError as exc:
        raise VaultValidationError(f"invalid {model.__name__}: {exc}") from exc


class OptimisticCacheReconciler:
    """Keep per-query collections consistent across speculative mutations.

    Parameters
    ----------
    on_change
        Called with every new collection snapshot. Exceptions raised by
        the callback are logged and otherwise ignored.
    """

    def __init__(self, *, on_change: Callable[[Collection], None] | None = None) -> None:
        self._on_change = on_change
        self._collections: dict[str, Collection] = {}
        self._pending: dict[str, PendingOperation] = {}
        self._confirmed_ids: dict[str, str] = {}
        self._deleted_ids: dict[str, set[str]] = {}
        self._id_prefix = secrets.token_hex(4)
        self._counter = itertools.count(1)

    # ------------------------------------------------------------------
    # Readers
    # ------------------------------------------------------------------

    def snapshot(self, query_name: str) -> Collection:
        """Current collection for *query_name* (empty if never loaded)."""
        current = self._collections.get(query_name)
        if current is None:
            current = Collection(query_name=query_name)
            self._collections[query_name] = current
        return current

    def pending(self, query_name: str | None = None) -> list[PendingOperation]:
        """Unresolved operations in issuance order."""
        return [op for op in self._pending.values() if query_name is None or op.query_name == query_name]

    def lookup(self, token: str) -> PendingOperation | None:
        """Latest state of the pending operation with *token*, if unresolved."""
        return self._pending.get(token)

    def server_id_for(self, temp_id: str) -> str | None:
        """Server id assigned to a confirmed temporary id."""
        return self._confirmed_ids.get(temp_id)

    def insert_pending(self, temp_id: str) -> bool:
        return any(isinstance(op, PendingInsert) and op.temp_id == temp_id for op in self._pending.values())

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _next_temp_id(self) -> str:
        return f"{TEMP_ID_PREFIX}-{self._id_prefix}-{next(self._counter)}"

    @staticmethod
    def _next_token() -> str:
        return secrets.token_hex(8)

    def _publish(self, updated: Collection) -> Collection:
        previous = self._collections.get(updated.query_name)
        self._collections[updated.query_name] = updated
        if previous is not updated and self._on_change is not None:
            try:
                self._on_change(updated)
            except Exception:
                _logger.debug("on_change callback failed", exc_info=True)
        return updated

    def _pending_delete_for(self, query_name: str, entity_id: str) -> PendingDelete | None:
        for op in self._pending.values():
            if isinstance(op, PendingDelete) and op.query_name == query_name and op.entity_id == entity_id:
                return op
        return None

    def _preceding_ids(self, query_name: str, entity_id: str) -> tuple[str, ...]:
        """Ids before *entity_id*, counting entities hidden by pending deletes."""
        full = self.snapshot(query_name)
        for op in reversed(self.pending(query_name)):
            if isinstance(op, PendingDelete):
                full = ops.restore(full, Removal(entity=op.removed, preceding_ids=op.preceding_ids))
        ids = full.ids()
        return tuple(ids[: ids.index(entity_id)])

    # ------------------------------------------------------------------
    # Server state
    # ------------------------------------------------------------------

    def load(self, query_name: str, entities: Iterable[Entity | Mapping[str, Any]]) -> Collection:
        """Install authoritative server state for *query_name*.

        Pending operations are replayed on top in issuance order, so
        unconfirmed inserts stay visible and unconfirmed deletes stay hidden.
        """
        previous = self._collections.get(query_name)
        version = previous.version + 1 if previous is not None else 0
        updated = ops.from_entities(query_name, (_as_entity(item) for item in entities), version=version)
        # The server listing an id again means it exists again.
        self._deleted_ids.get(query_name, set()).difference_update(updated.ids())
        for op in self.pending(query_name):
            if isinstance(op, PendingInsert):
                if op.temp_id not in updated and self._pending_delete_for(query_name, op.temp_id) is None:
                    updated = ops.append(updated, op.entity.with_id(op.temp_id))
            else:
                updated, _ = ops.remove(updated, op.entity_id)
        updated = updated.model_copy(update={"version": version})
        _logger.debug("%s: loaded %d entities (v%d)", query_name, len(updated), updated.version)
        return self._publish(updated)

    # ------------------------------------------------------------------
    # Speculate
    # ------------------------------------------------------------------

    def apply_optimistic_insert(
        self,
        query_name: str,
        entity: Entity | Mapping[str, Any],
    ) -> tuple[Collection, PendingInsert]:
        """Append *entity* under a fresh temporary id.

        Any id the entity already carries is replaced by the temporary one.
        """
        candidate = _as_entity(entity)
        temp_id = self._next_temp_id()
        temp_entity = candidate.with_id(temp_id)
        updated = ops.append(self.snapshot(query_name), temp_entity)
        op = PendingInsert(token=self._next_token(), query_name=query_name, temp_id=temp_id, entity=temp_entity)
        self._pending[op.token] = op
        _logger.debug("%s: speculative insert %s (token=%s)", query_name, temp_id, op.token)
        return self._publish(updated), op

    def apply_optimistic_delete(
        self,
        query_name: str,
        entity_id: str,
    ) -> tuple[Collection, PendingDelete | None]:
        """Hide the entity with *entity_id*.

        Returns ``None`` as the pending record when no such entity is
        cached; the collection is then left untouched.
        """
        current = self.snapshot(query_name)
        updated, removal = ops.remove(current, entity_id)
        if removal is None:
            _logger.debug("%s: speculative delete of unknown id %s ignored", query_name, entity_id)
            return current, None
        op = PendingDelete(
            token=self._next_token(),
            query_name=query_name,
            entity_id=entity_id,
            removed=removal.entity,
            preceding_ids=self._preceding_ids(query_name, entity_id),
        )
        self._pending[op.token] = op
        _logger.debug("%s: speculative delete %s (token=%s)", query_name, entity_id, op.token)
        return self._publish(updated), op

    # ------------------------------------------------------------------
    # Resolve
    # ------------------------------------------------------------------

    def resolve(
        self,
        op: PendingOperation,
        *,
        entity: Entity | Mapping[str, Any] | None = None,
        error: BaseException | None = None,
    ) -> ResolveOutcome:
        """Single entry point for settling *op*.

        ``error`` rolls the operation back; otherwise a confirmed insert
        needs the server *entity* and a confirmed delete needs nothing.
        """
        if error is not None:
            return self._rollback(op)
        if isinstance(op, PendingInsert):
            if entity is None:
                raise VaultValidationError(f"confirmation of insert {op.temp_id} needs the server entity")
            return self._reconcile_insert(op, entity)
        return self._reconcile_delete(op)

    def reconcile_insert(self, op: PendingInsert, server_entity: Entity | Mapping[str, Any]) -> Collection:
        """Replace the temporary entity with the server-confirmed one."""
        self._reconcile_insert(op, server_entity)
        return self.snapshot(op.query_name)

    def reconcile_delete(self, op: PendingDelete) -> Collection:
        """Confirm a delete. Repeated calls are no-ops."""
        self._reconcile_delete(op)
        return self.snapshot(op.query_name)

    def rollback(self, op: PendingOperation) -> Collection:
        """Undo the speculative change of a failed mutation."""
        self._rollback(op)
        return self.snapshot(op.query_name)

    def _reconcile_insert(self, op: PendingInsert, server_entity: Entity | Mapping[str, Any]) -> ResolveOutcome:
        live = self._pending.get(op.token)
        if not isinstance(live, PendingInsert):
            _logger.debug("%s: insert %s already settled", op.query_name, op.temp_id)
            return ResolveOutcome.SETTLED

        confirmed = _as_entity(server_entity, type(live.entity))
        if not confirmed.id:
            raise VaultValidationError(f"server confirmation of {live.temp_id} carries no id")

        del self._pending[live.token]
        self._confirmed_ids[live.temp_id] = confirmed.id
        current = self.snapshot(live.query_name)

        deleted = confirmed.id in self._deleted_ids.get(live.query_name, ())
        if deleted or self._pending_delete_for(live.query_name, confirmed.id) is not None:
            _logger.debug("%s: %s deleted before insert confirmation; dropping", live.query_name, confirmed.id)
            self._publish(ops.without(current, [live.temp_id]))
            return ResolveOutcome.SUPERSEDED

        if live.temp_id not in current:
            # The temp entity was deleted while the insert was in flight:
            # the delete wins and now targets the server id.
            shadowing = self._pending_delete_for(live.query_name, live.temp_id)
            if shadowing is not None:
                self._pending[shadowing.token] = dataclasses.replace(
                    shadowing,
                    entity_id=confirmed.id,
                    removed=confirmed,
                    retargeted_from=live.temp_id,
                )
            _logger.debug(
                "%s: insert %s confirmed as %s after delete; dropping",
                live.query_name,
                live.temp_id,
                confirmed.id,
            )
            return ResolveOutcome.SUPERSEDED

        self._publish(ops.replace(current, live.temp_id, confirmed))
        _logger.debug("%s: insert %s confirmed as %s", live.query_name, live.temp_id, confirmed.id)
        return ResolveOutcome.APPLIED

    def _reconcile_delete(self, op: PendingDelete) -> ResolveOutcome:
        live = self._pending.get(op.token)
        if not isinstance(live, PendingDelete):
            _logger.debug("%s: delete %s already settled", op.query_name, op.entity_id)
            return ResolveOutcome.SETTLED
        del self._pending[live.token]
        self._deleted_ids.setdefault(live.query_name, set()).add(live.entity_id)
        current = self.snapshot(live.query_name)
        self._publish(ops.without(current, [live.entity_id]))
        _logger.debug("%s: delete %s confirmed", live.query_name, live.entity_id)
        return ResolveOutcome.APPLIED

    def _rollback(self, op: PendingOperation) -> ResolveOutcome:
        live = self._pending.pop(op.token, None)
        if live is None:
            _logger.debug("%s: rollback of settled operation %s ignored", op.query_name, op.token)
            return ResolveOutcome.SETTLED

        current = self.snapshot(live.query_name)
        if isinstance(live, PendingInsert):
            self._publish(ops.without(current, [live.temp_id]))
            _logger.debug("%s: rolled back insert %s", live.query_name, live.temp_id)
            return ResolveOutcome.APPLIED

        if is_temp_id(live.entity_id) and not self.insert_pending(live.entity_id):
            # Deleting an insert that itself never reached the server.
            _logger.debug("%s: %s never confirmed; nothing to restore", live.query_name, live.entity_id)
            return ResolveOutcome.SUPERSEDED

        removal = Removal(entity=live.removed, preceding_ids=live.preceding_ids)
        self._publish(ops.restore(current, removal))
        _logger.debug("%s: rolled back delete %s", live.query_name, live.entity_id)
        return ResolveOutcome.APPLIED
