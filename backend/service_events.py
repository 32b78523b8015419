"""
Service / facade layer.

This module implements the event rules that sit on top of storage. It is
free of store details: it calls `EventRepo` for every read
and write. All write paths (HTTP routes, the migration) go through this
service so defaults and validation are applied in one place.

Key responsibilities:
- default metadata before a write (timestamps, createdBy, source, tags,
  attachments) and coerce timestamps to aware UTC datetimes
- protect the store (max batch size)
- keep `data` valid for the event `type` on partial updates
- derived reads: latest weight, active medications, legacy-id lookup
- log store failures where they are caught, then re-raise
"""

import logging
from typing import Any, List, Mapping, Optional, Sequence, Union

from errors import NotFoundError, StoreError
from models import Event, EventPatch, EventType, payload_model
from repo_events import EventRepo, events_collection
from settings import settings
from timeutils import compare_timestamps, now, to_timestamp

logger = logging.getLogger(__name__)


def _apply_write_defaults(event: Event) -> Event:
    # Assignment marks each field as set, so the defaults are persisted.
    if event.created_at is None:
        event.created_at = now()
    if event.occurred_at is None:
        event.occurred_at = event.created_at

    event.created_at = to_timestamp(event.created_at)
    event.occurred_at = to_timestamp(event.occurred_at)

    event.created_by = event.created_by or "system"
    event.source = event.source or "manual"
    event.tags = event.tags or []
    event.attachments = event.attachments or []
    return event


class EventService:
    """Event rules + defaults + derived views.

    Example usage:
        repo = EventRepo(InMemoryStore())
        svc = EventService(repo)
        event_id = svc.add_event("melba", create_weight_event(18.2, now()))
        svc.get_latest_weight("melba")
    """

    def __init__(self, repo: EventRepo):
        self.repo = repo

    def add_event(self, pet_id: str, event: Event) -> str:
        """Persist one event and return its new id."""

        event = _apply_write_defaults(event)
        try:
            return self.repo.insert_event(pet_id, event)
        except StoreError:
            logger.exception("Failed to create %s event for pet %s", event.type, pet_id)
            raise

    def add_events_batch(self, pet_id: str, events: Sequence[Event]) -> List[str]:
        """Persist several events in one atomic batch.

        Raises `ValueError` when the batch exceeds `settings.max_batch_size`.
        """

        if len(events) == 0:
            return []
        if len(events) > settings.max_batch_size:
            raise ValueError(
                f"Too many events in one batch: {len(events)} (max {settings.max_batch_size})"
            )

        prepared = [_apply_write_defaults(e) for e in events]
        try:
            return self.repo.insert_events(pet_id, prepared)
        except StoreError:
            logger.exception("Failed to write a batch of %d events for pet %s", len(events), pet_id)
            raise

    def update_event(
        self, pet_id: str, event_id: str, patch: Union[EventPatch, Mapping[str, Any]]
    ) -> None:
        """Merge `patch` onto an existing event.

        Only the fields present in the patch are written. When the patch
        touches `type` or `data`, the merged event is validated first so the
        payload always matches its type. A null for any field raises
        `ValueError`; unknown ids raise `NotFoundError`.
        """

        if not isinstance(patch, EventPatch):
            patch = EventPatch.model_validate(dict(patch))

        fields = patch.model_dump(by_alias=True, exclude_unset=True)
        if not fields:
            return

        # Envelope fields of a stored event are never null.
        nulls = sorted(k for k, v in fields.items() if v is None)
        if nulls:
            raise ValueError(f"Cannot set {', '.join(nulls)} to null")

        try:
            if "type" in fields or "data" in fields:
                current = self.repo.fetch_document(pet_id, event_id)
                if current is None:
                    raise NotFoundError(events_collection(pet_id), event_id)
                event_type = fields.get("type") or current["type"]
                data = fields["data"] if "data" in fields else current.get("data", {})
                fields["type"] = event_type
                fields["data"] = payload_model(event_type).model_validate(data)

            self.repo.update_event(pet_id, event_id, fields)
        except StoreError:
            logger.exception("Failed to update event %s for pet %s", event_id, pet_id)
            raise

    def delete_event(self, pet_id: str, event_id: str) -> None:
        """Delete an event. No existence check: deleting twice is fine."""

        try:
            self.repo.delete_event(pet_id, event_id)
        except StoreError:
            logger.exception("Failed to delete event %s for pet %s", event_id, pet_id)
            raise

    def get_event(self, pet_id: str, event_id: str) -> Optional[Event]:
        try:
            return self.repo.fetch_event(pet_id, event_id)
        except StoreError:
            logger.exception("Failed to read event %s for pet %s", event_id, pet_id)
            raise

    def list_events(
        self,
        pet_id: str,
        date_from=None,
        date_to=None,
        types: Optional[Sequence[Union[EventType, str]]] = None,
        limit: Optional[int] = None,
        order_by: str = "occurredAt",
        order_direction: str = "desc",
    ) -> List[Event]:
        """List events, filtered and ordered by the store.

        `date_from`/`date_to` are inclusive bounds on `occurredAt` and accept
        datetimes, dates or ISO strings. `order_direction` is `asc` or `desc`.
        """

        direction = (order_direction or "desc").lower()
        if direction not in ("asc", "desc"):
            raise ValueError(f"order_direction must be 'asc' or 'desc', got {order_direction!r}")

        try:
            return self.repo.fetch_events(
                pet_id,
                date_from=to_timestamp(date_from),
                date_to=to_timestamp(date_to),
                types=types,
                limit=limit,
                order_by=order_by or "occurredAt",
                descending=direction == "desc",
            )
        except StoreError:
            logger.exception("Failed to list events for pet %s", pet_id)
            raise

    def get_latest_weight(self, pet_id: str) -> Optional[Event]:
        events = self.list_events(pet_id, types=[EventType.WEIGHT], limit=1)
        return events[0] if events else None

    def get_active_medications(self, pet_id: str, at=None) -> List[Event]:
        """Medications with no end date or an end date at/after `at` (default: now).

        `endAt` sits inside the payload, so the filter runs here rather than
        in the store query.
        """

        reference = to_timestamp(at) if at is not None else now()
        medications = self.list_events(pet_id, types=[EventType.MEDICATION])

        active = []
        for med in medications:
            end_at = med.data.end_at
            if end_at is None or compare_timestamps(end_at, reference) >= 0:
                active.append(med)
        return active

    def find_event_by_legacy_id(self, pet_id: str, legacy_id: str) -> Optional[Event]:
        """Return an event migrated from `legacy_id`, if any.

        A store failure is logged and reported as "not found": the migration
        would rather risk a duplicate than silently drop a record.
        """

        try:
            return self.repo.fetch_by_legacy_id(pet_id, legacy_id)
        except StoreError:
            logger.exception("Legacy-id lookup failed for %s (pet %s)", legacy_id, pet_id)
            return None

    def health_check(self) -> None:
        """Perform a lightweight store ping via the repository."""

        self.repo.ping()
