from __future__ import annotations

import pytest

from errors import NotFoundError
from store import _MISSING, Filter, InMemoryStore, Query, get_field

COLLECTION = "pets/melba/events"


def _ids(docs):
    return [d["id"] for d in docs]


def test_add_and_get_copy_documents(store: InMemoryStore) -> None:
    original = {"type": "NOTE", "tags": ["a"]}
    doc_id = store.add(COLLECTION, original)
    original["tags"].append("mutated")

    doc = store.get(COLLECTION, doc_id)
    assert doc == {"id": doc_id, "type": "NOTE", "tags": ["a"]}

    doc["tags"].append("again")
    assert store.get(COLLECTION, doc_id)["tags"] == ["a"]


def test_get_missing_returns_none(store: InMemoryStore) -> None:
    assert store.get(COLLECTION, "nope") is None


def test_add_many_returns_ids_in_order(store: InMemoryStore) -> None:
    ids = store.add_many(COLLECTION, [{"n": 1}, {"n": 2}, {"n": 3}])
    assert len(set(ids)) == 3
    assert [store.get(COLLECTION, i)["n"] for i in ids] == [1, 2, 3]


def test_set_creates_and_replaces(store: InMemoryStore) -> None:
    store.set("current-data", "last", {"peso": "18"})
    store.set("current-data", "last", {"date": "01/03/24"})
    assert store.get("current-data", "last") == {"id": "last", "date": "01/03/24"}


def test_update_merges_top_level_fields(store: InMemoryStore) -> None:
    doc_id = store.add(COLLECTION, {"type": "NOTE", "notes": "", "data": {"text": "x"}})
    store.update(COLLECTION, doc_id, {"notes": "updated", "data": {"text": "y"}})
    assert store.get(COLLECTION, doc_id) == {
        "id": doc_id,
        "type": "NOTE",
        "notes": "updated",
        "data": {"text": "y"},
    }


def test_update_missing_document_raises(store: InMemoryStore) -> None:
    with pytest.raises(NotFoundError):
        store.update(COLLECTION, "missing", {"notes": "x"})


def test_delete_is_idempotent(store: InMemoryStore) -> None:
    doc_id = store.add(COLLECTION, {"type": "NOTE"})
    store.delete(COLLECTION, doc_id)
    store.delete(COLLECTION, doc_id)
    assert store.get(COLLECTION, doc_id) is None


def test_collections_are_isolated(store: InMemoryStore) -> None:
    store.add("pets/melba/events", {"type": "NOTE"})
    assert store.query("pets/other/events", Query()) == []


def test_query_filters_order_and_limit(store: InMemoryStore) -> None:
    store.add_many(
        COLLECTION,
        [
            {"type": "WEIGHT", "n": 3},
            {"type": "NOTE", "n": 1},
            {"type": "WEIGHT", "n": 2},
            {"type": "LAB", "n": 5},
            {"type": "WEIGHT"},
        ],
    )

    weights = store.query(COLLECTION, Query(order_by="n").where("type", "==", "WEIGHT"))
    assert [d["n"] for d in weights] == [2, 3]

    ranged = store.query(COLLECTION, Query(order_by="n", descending=True).where("n", ">", 1).where("n", "<=", 5))
    assert [d["n"] for d in ranged] == [5, 3, 2]

    inclusion = store.query(COLLECTION, Query(order_by="n", limit=2).where("type", "in", ["NOTE", "LAB"]))
    assert [d["type"] for d in inclusion] == ["NOTE", "LAB"]

    assert len(store.query(COLLECTION, Query())) == 5
    assert len(store.query(COLLECTION, Query(limit=1))) == 1


def test_query_on_nested_field(store: InMemoryStore) -> None:
    doc_id = store.add(COLLECTION, {"data": {"endAt": None}})
    store.add(COLLECTION, {"data": {}})
    assert _ids(store.query(COLLECTION, Query().where("data.endAt", "==", None))) == [doc_id]


def test_mismatched_types_never_match(store: InMemoryStore) -> None:
    store.add(COLLECTION, {"n": None})
    store.add(COLLECTION, {"n": "text"})
    assert store.query(COLLECTION, Query().where("n", ">", 1)) == []


def test_filter_rejects_unknown_operator() -> None:
    with pytest.raises(ValueError):
        Filter("n", "!=", 1)


def test_get_field_dotted_paths() -> None:
    doc = {"data": {"dose": {"amountMg": 75}}}
    assert get_field(doc, "data.dose.amountMg") == 75
    assert get_field(doc, "data") == {"dose": {"amountMg": 75}}
    assert get_field(doc, "data.missing") is _MISSING
    assert get_field(doc, "data.dose.amountMg.deeper") is _MISSING
