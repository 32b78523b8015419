from __future__ import annotations

from datetime import datetime, timezone

import pytest

from repo_events import EventRepo
from service_events import EventService
from store import InMemoryStore


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def service(store: InMemoryStore) -> EventService:
    return EventService(EventRepo(store))


@pytest.fixture
def march_first() -> datetime:
    return datetime(2024, 3, 1, tzinfo=timezone.utc)
