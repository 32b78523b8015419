"""
Document store interface.

The rest of the backend talks to storage only through `DocumentStore`:
named collections (`pets/melba/events`, `melba-records`, ...) holding
JSON-like documents addressed as `collection/doc_id`. Ids are generated by
the store. Queries support equality, range and inclusion filters, a single
ordering field and a limit; there is no client-side post-filtering.

Two implementations exist:
- `InMemoryStore` (this module) for tests and throwaway local runs.
- `PostgresStore` (`store_postgres.py`) backed by one JSONB table.

Usage:
    store = InMemoryStore()
    doc_id = store.add("pets/melba/events", {"type": "NOTE", ...})
    store.query("pets/melba/events", Query(order_by="occurredAt", limit=10))
"""

import copy
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from errors import NotFoundError

OPERATORS = ("==", "<", "<=", ">", ">=", "in")

_MISSING = object()


@dataclass(frozen=True)
class Filter:
    """A single predicate on a (possibly dotted) document field."""

    field: str
    op: str
    value: Any

    def __post_init__(self):
        if self.op not in OPERATORS:
            raise ValueError(f"Unsupported operator: {self.op}")


@dataclass
class Query:
    filters: List[Filter] = field(default_factory=list)
    order_by: Optional[str] = None
    descending: bool = False
    limit: Optional[int] = None

    def where(self, field_path: str, op: str, value: Any) -> "Query":
        self.filters.append(Filter(field_path, op, value))
        return self


def new_document_id() -> str:
    return uuid.uuid4().hex[:20]


def get_field(doc: Dict[str, Any], path: str) -> Any:
    """Resolve a dotted path (`data.endAt`); returns `_MISSING` if absent."""

    current: Any = doc
    for part in path.split("."):
        if not isinstance(current, dict) or part not in current:
            return _MISSING
        current = current[part]
    return current


class DocumentStore(ABC):
    """Storage contract used by the repositories.

    Documents returned by `get` and `query` include their `id`. Documents
    passed in must not contain one.
    """

    @abstractmethod
    def add(self, collection: str, document: Dict[str, Any]) -> str:
        """Create a document with a generated id and return the id."""

    @abstractmethod
    def add_many(self, collection: str, documents: Sequence[Dict[str, Any]]) -> List[str]:
        """Create several documents atomically: all are written or none."""

    @abstractmethod
    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        """Return the document or None."""

    @abstractmethod
    def set(self, collection: str, doc_id: str, document: Dict[str, Any]) -> None:
        """Create or replace the document at a known id."""

    @abstractmethod
    def update(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        """Merge top-level `fields` into an existing document.

        Raises `NotFoundError` when the document does not exist.
        """

    @abstractmethod
    def delete(self, collection: str, doc_id: str) -> None:
        """Delete the document. Deleting a missing id is not an error."""

    @abstractmethod
    def query(self, collection: str, query: Query) -> List[Dict[str, Any]]:
        """Run `query` against one collection."""

    def ping(self) -> None:
        """Lightweight health check. Raises on error."""


def _matches(doc: Dict[str, Any], flt: Filter) -> bool:
    value = get_field(doc, flt.field)
    if value is _MISSING:
        return False
    try:
        if flt.op == "==":
            return value == flt.value
        if flt.op == "in":
            return value in flt.value
        if flt.op == "<":
            return value < flt.value
        if flt.op == "<=":
            return value <= flt.value
        if flt.op == ">":
            return value > flt.value
        return value >= flt.value
    except TypeError:
        # Mismatched types (e.g. None vs datetime) never match.
        return False


class InMemoryStore(DocumentStore):
    """Dict-backed store. Documents are deep-copied on the way in and out."""

    def __init__(self) -> None:
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {}

    def _collection(self, collection: str) -> Dict[str, Dict[str, Any]]:
        return self._collections.setdefault(collection, {})

    def add(self, collection: str, document: Dict[str, Any]) -> str:
        return self.add_many(collection, [document])[0]

    def add_many(self, collection: str, documents: Sequence[Dict[str, Any]]) -> List[str]:
        staged = [(new_document_id(), copy.deepcopy(dict(d))) for d in documents]
        target = self._collection(collection)
        for doc_id, doc in staged:
            target[doc_id] = doc
        return [doc_id for doc_id, _ in staged]

    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        doc = self._collection(collection).get(doc_id)
        if doc is None:
            return None
        return {"id": doc_id, **copy.deepcopy(doc)}

    def set(self, collection: str, doc_id: str, document: Dict[str, Any]) -> None:
        self._collection(collection)[doc_id] = copy.deepcopy(dict(document))

    def update(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        target = self._collection(collection)
        if doc_id not in target:
            raise NotFoundError(collection, doc_id)
        target[doc_id].update(copy.deepcopy(dict(fields)))

    def delete(self, collection: str, doc_id: str) -> None:
        self._collection(collection).pop(doc_id, None)

    def query(self, collection: str, query: Query) -> List[Dict[str, Any]]:
        rows = [
            (doc_id, doc)
            for doc_id, doc in self._collection(collection).items()
            if all(_matches(doc, f) for f in query.filters)
        ]

        if query.order_by:
            # Like most document stores, ordering on a field drops documents without it.
            rows = [r for r in rows if get_field(r[1], query.order_by) is not _MISSING]
            rows.sort(
                key=lambda r: _sort_key(get_field(r[1], query.order_by)),
                reverse=query.descending,
            )

        if query.limit is not None:
            rows = rows[: query.limit]

        return [{"id": doc_id, **copy.deepcopy(doc)} for doc_id, doc in rows]

    def ping(self) -> None:
        return None


def _sort_key(value: Any):
    # Nulls sort first, then values grouped by type name so mixed types never compare.
    if value is None:
        return (0, "", 0)
    return (1, type(value).__name__, value)
