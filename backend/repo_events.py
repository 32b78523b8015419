"""
Repository: store operations for a pet's `events` collection.

This file contains only storage interaction code. It maps `Event` models
to store documents (through `codec`) and builds store queries. Keep
business rules (defaults, derived views, logging policy) out of this
module; they live in `service_events.py`.

Important notes:
- Events live at `pets/{pet_id}/events`.
- Every write goes through `codec.event_to_document` / `encode_document`,
  so unset fields and naive timestamps never reach the store.
- `insert_events` is a single atomic batch; callers expect all events to
  be durable (or none) once it returns.
- The repository may be created before its store is available; calling
  any method before `initialize()` raises `NotInitializedError`.
"""

from typing import Any, Dict, List, Optional, Sequence

from codec import document_to_event, encode_document, event_to_document
from errors import NotInitializedError
from models import Event, EventType
from store import DocumentStore, Query

EVENTS_COLLECTION = "events"


def events_collection(pet_id: str) -> str:
    return f"pets/{pet_id}/{EVENTS_COLLECTION}"


class EventRepo:
    """Store access only. No business logic here.

    Responsibilities:
    - Map `Event` <-> store documents
    - Build `Query` objects for list/lookup operations
    - Return `Event` models (with `id` set) to the service layer
    """

    def __init__(self, store: Optional[DocumentStore] = None):
        self.store = store

    def initialize(self, store: DocumentStore) -> None:
        self.store = store

    def _store(self) -> DocumentStore:
        if self.store is None:
            raise NotInitializedError(
                "EventRepo has no store. Call initialize() before using it."
            )
        return self.store

    def insert_event(self, pet_id: str, event: Event) -> str:
        return self._store().add(events_collection(pet_id), event_to_document(event))

    def insert_events(self, pet_id: str, events: Sequence[Event]) -> List[str]:
        """Batch-insert events; returns the generated ids in input order."""

        docs = [event_to_document(e) for e in events]
        return self._store().add_many(events_collection(pet_id), docs)

    def fetch_event(self, pet_id: str, event_id: str) -> Optional[Event]:
        doc = self._store().get(events_collection(pet_id), event_id)
        return document_to_event(doc) if doc is not None else None

    def fetch_document(self, pet_id: str, event_id: str) -> Optional[Dict[str, Any]]:
        return self._store().get(events_collection(pet_id), event_id)

    def update_event(self, pet_id: str, event_id: str, fields: Dict[str, Any]) -> None:
        self._store().update(events_collection(pet_id), event_id, encode_document(fields))

    def delete_event(self, pet_id: str, event_id: str) -> None:
        self._store().delete(events_collection(pet_id), event_id)

    def fetch_events(
        self,
        pet_id: str,
        date_from=None,
        date_to=None,
        types: Optional[Sequence[str]] = None,
        limit: Optional[int] = None,
        order_by: str = "occurredAt",
        descending: bool = True,
    ) -> List[Event]:
        """Query events; newest-first on `occurredAt` unless told otherwise.

        `date_from`/`date_to` are inclusive and must already be store
        timestamps. An empty `types` means no type filter.
        """

        query = Query(order_by=order_by, descending=descending, limit=limit)
        if date_from is not None:
            query.where("occurredAt", ">=", date_from)
        if date_to is not None:
            query.where("occurredAt", "<=", date_to)
        if types:
            query.where("type", "in", [EventType(t).value for t in types])

        docs = self._store().query(events_collection(pet_id), query)
        return [document_to_event(d) for d in docs]

    def fetch_by_legacy_id(self, pet_id: str, legacy_id: str) -> Optional[Event]:
        query = Query(limit=1).where("legacyId", "==", legacy_id)
        docs = self._store().query(events_collection(pet_id), query)
        return document_to_event(docs[0]) if docs else None

    def ping(self) -> None:
        self._store().ping()
