from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from deps import get_event_service
from errors import StoreError
from main import app
from repo_events import EventRepo
from service_events import EventService
from store import InMemoryStore

WEIGHT = {"type": "WEIGHT", "occurredAt": "2024-03-01T00:00:00Z", "data": {"weightKg": 18}}


@pytest.fixture
def client(service: EventService):
    app.dependency_overrides[get_event_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


class DownStore(InMemoryStore):
    def ping(self) -> None:
        raise StoreError("unreachable")

    def query(self, collection, query):
        raise StoreError("unreachable")


def test_health(client: TestClient) -> None:
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"ok": True}


def test_health_reports_store_failure() -> None:
    app.dependency_overrides[get_event_service] = lambda: EventService(EventRepo(DownStore()))
    try:
        resp = TestClient(app).get("/health")
        listing = TestClient(app).get("/pets/melba/events")
    finally:
        app.dependency_overrides.clear()
    assert resp.status_code == 500
    assert listing.status_code == 500


def test_create_and_read_event(client: TestClient) -> None:
    resp = client.post("/pets/melba/events", json=WEIGHT)
    assert resp.status_code == 200
    event_id = resp.json()["id"]

    body = client.get(f"/pets/melba/events/{event_id}").json()
    assert body["id"] == event_id
    assert body["type"] == "WEIGHT"
    assert body["data"]["weightKg"] == 18.0
    assert body["createdBy"] == "system"
    assert body["occurredAt"].startswith("2024-03-01T00:00:00")


def test_create_event_with_wrong_payload_is_rejected(client: TestClient) -> None:
    resp = client.post("/pets/melba/events", json={**WEIGHT, "data": {"item": "pipeta"}})
    assert resp.status_code == 422


def test_missing_event_is_404(client: TestClient) -> None:
    assert client.get("/pets/melba/events/nope").status_code == 404


def test_list_events_with_filters(client: TestClient) -> None:
    client.post("/pets/melba/events", json=WEIGHT)
    client.post(
        "/pets/melba/events",
        json={"type": "NOTE", "occurredAt": "2024-03-05T00:00:00Z", "data": {"text": "tos"}},
    )

    everything = client.get("/pets/melba/events").json()
    assert [e["type"] for e in everything] == ["NOTE", "WEIGHT"]

    notes = client.get("/pets/melba/events", params={"type": "NOTE"}).json()
    assert [e["data"]["text"] for e in notes] == ["tos"]

    early = client.get("/pets/melba/events", params={"to": "2024-03-02T00:00:00Z"}).json()
    assert [e["type"] for e in early] == ["WEIGHT"]

    ascending = client.get("/pets/melba/events", params={"order_direction": "asc", "limit": 1}).json()
    assert [e["type"] for e in ascending] == ["WEIGHT"]


def test_list_events_bad_direction_is_400(client: TestClient) -> None:
    assert client.get("/pets/melba/events", params={"order_direction": "up"}).status_code == 400


def test_patch_and_delete_event(client: TestClient) -> None:
    event_id = client.post("/pets/melba/events", json=WEIGHT).json()["id"]

    resp = client.patch(f"/pets/melba/events/{event_id}", json={"notes": "post baño", "data": {"weightKg": 18.3}})
    assert resp.json() == {"updated": True}
    body = client.get(f"/pets/melba/events/{event_id}").json()
    assert body["notes"] == "post baño"
    assert body["data"]["weightKg"] == 18.3

    bad = client.patch(f"/pets/melba/events/{event_id}", json={"data": {"item": "pipeta"}})
    assert bad.status_code == 400

    assert client.delete(f"/pets/melba/events/{event_id}").json() == {"deleted": True}
    assert client.get(f"/pets/melba/events/{event_id}").status_code == 404


def test_patch_missing_event_is_404(client: TestClient) -> None:
    assert client.patch("/pets/melba/events/nope", json={"notes": "x"}).status_code == 404


def test_patch_with_null_field_is_400_and_reads_keep_working(client: TestClient) -> None:
    event_id = client.post("/pets/melba/events", json=WEIGHT).json()["id"]

    assert client.patch(f"/pets/melba/events/{event_id}", json={"tags": None}).status_code == 400
    assert client.patch(f"/pets/melba/events/{event_id}", json={"createdBy": None}).status_code == 400

    assert client.get(f"/pets/melba/events/{event_id}").json()["createdBy"] == "system"
    listing = client.get("/pets/melba/events")
    assert listing.status_code == 200
    assert [e["id"] for e in listing.json()] == [event_id]
    assert client.get("/pets/melba/weight/latest").status_code == 200


def test_weight_endpoint_normalizes_input(client: TestClient) -> None:
    resp = client.post("/pets/melba/weights", json={"weight": "19,6 kg", "occurredAt": "2024-03-01T00:00:00Z"})
    assert resp.status_code == 200
    assert resp.json()["weightKg"] == pytest.approx(19.6)

    latest = client.get("/pets/melba/weight/latest").json()
    assert latest["data"]["weightKg"] == pytest.approx(19.6)


def test_weight_endpoint_rejects_implausible_weight(client: TestClient) -> None:
    assert client.post("/pets/melba/weights", json={"weight": "150 kg"}).status_code == 400


def test_latest_weight_when_none(client: TestClient) -> None:
    resp = client.get("/pets/melba/weight/latest")
    assert resp.status_code == 200
    assert resp.json() is None


def test_medication_endpoint_and_active_list(client: TestClient) -> None:
    resp = client.post(
        "/pets/melba/medications",
        json={
            "name": "carprofeno",
            "startAt": "2024-03-01T00:00:00Z",
            "dose": "1/2 comprimido",
            "instructions": "cada 12 hs",
        },
    )
    assert resp.status_code == 200
    client.post(
        "/pets/melba/medications",
        json={"name": "amoxicilina", "startAt": "2024-03-01T00:00:00Z", "endAt": "2024-03-08T00:00:00Z"},
    )

    active = client.get("/pets/melba/medications/active").json()
    assert [m["data"]["name"] for m in active] == ["Carprofeno"]
    assert active[0]["data"]["dose"]["frequencyHours"] == 12

    earlier = client.get("/pets/melba/medications/active", params={"at": "2024-03-05T00:00:00Z"}).json()
    assert sorted(m["data"]["name"] for m in earlier) == ["Amoxicilina", "Carprofeno"]


def test_medication_endpoint_requires_a_name(client: TestClient) -> None:
    assert client.post("/pets/melba/medications", json={"name": "   "}).status_code == 400
