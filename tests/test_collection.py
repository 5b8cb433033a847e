from __future__ import annotations

import pydantic
import pytest

from pybookvault.exceptions import VaultValidationError
from pybookvault.models import Entity
from pybookvault.state import collection as ops
from pybookvault.state.collection import Collection, Removal


def _coll(*ids: str) -> Collection:
    return ops.from_entities("books", [Entity(id=i, title=f"T{i}") for i in ids])


def test_collection_rejects_duplicate_ids() -> None:
    with pytest.raises(pydantic.ValidationError):
        Collection(query_name="books", entities=(Entity(id="1"), Entity(id="1")))


def test_from_entities_drops_repeated_ids() -> None:
    collection = ops.from_entities("books", [Entity(id="1", title="a"), Entity(id="1", title="b")])

    assert collection.ids() == ["1"]
    assert collection.get("1") == Entity(id="1", title="a")


def test_from_entities_requires_ids() -> None:
    with pytest.raises(VaultValidationError):
        ops.from_entities("books", [Entity(title="no id")])


def test_append_bumps_version_and_keeps_original() -> None:
    original = _coll("1")

    updated = ops.append(original, Entity(id="2"))

    assert updated.ids() == ["1", "2"]
    assert updated.version == original.version + 1
    assert original.ids() == ["1"]


def test_append_rejects_existing_id() -> None:
    with pytest.raises(VaultValidationError):
        ops.append(_coll("1"), Entity(id="1"))


def test_remove_reports_position() -> None:
    updated, removal = ops.remove(_coll("1", "2", "3"), "2")

    assert updated.ids() == ["1", "3"]
    assert removal is not None
    assert removal.preceding_ids == ("1",)


def test_remove_missing_id_returns_same_collection() -> None:
    original = _coll("1")

    updated, removal = ops.remove(original, "9")

    assert updated is original
    assert removal is None


def test_replace_keeps_position() -> None:
    updated = ops.replace(_coll("1", "tmp", "3"), "tmp", Entity(id="2"))

    assert updated.ids() == ["1", "2", "3"]


def test_replace_merges_into_existing_id() -> None:
    updated = ops.replace(_coll("2", "tmp", "3"), "tmp", Entity(id="2", title="fresh"))

    assert updated.ids() == ["2", "3"]
    assert updated.get("2") == Entity(id="2", title="fresh")


def test_replace_missing_old_id_is_noop() -> None:
    original = _coll("1")

    assert ops.replace(original, "tmp", Entity(id="2")) is original


def test_restore_after_nearest_surviving_predecessor() -> None:
    removal = Removal(entity=Entity(id="3"), preceding_ids=("1", "2"))

    assert ops.restore(_coll("1", "4"), removal).ids() == ["1", "3", "4"]
    assert ops.restore(_coll("4"), removal).ids() == ["3", "4"]


def test_restore_existing_id_is_noop() -> None:
    original = _coll("1", "3")

    assert ops.restore(original, Removal(entity=Entity(id="3"), preceding_ids=())) is original


def test_without_drops_ids() -> None:
    assert ops.without(_coll("1", "2", "3"), ["1", "3", "9"]).ids() == ["2"]
