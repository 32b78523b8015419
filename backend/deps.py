"""
Wiring: which store backs the app, and how routes get the event service.

`get_store()` builds the store named by `settings.store_backend` once per
process. Routes depend on `get_event_service`; tests replace it through
`app.dependency_overrides`.
"""

from functools import lru_cache

from repo_events import EventRepo
from service_events import EventService
from settings import settings
from store import DocumentStore, InMemoryStore
from store_postgres import PostgresStore


@lru_cache(maxsize=1)
def get_store() -> DocumentStore:
    backend = settings.store_backend.strip().lower()
    if backend == "postgres":
        return PostgresStore()
    if backend == "memory":
        return InMemoryStore()
    raise ValueError(f"Unknown STORE_BACKEND: {settings.store_backend}")


def get_event_service() -> EventService:
    return EventService(EventRepo(get_store()))
