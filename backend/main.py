import logging
from datetime import datetime
from typing import List, Optional, Union

from fastapi import Depends, FastAPI, HTTPException, Query
from pydantic import ValidationError

from deps import get_event_service
from errors import NotFoundError, StoreError
from event_factory import create_medication_event, create_weight_event
from models import DocumentModel, Event, EventPatch, EventType
from normalizers import (
    normalize_medication_name,
    normalize_weight,
    parse_medication_dose,
    parse_medication_frequency,
)
from service_events import EventService
from settings import settings
from timeutils import now

logging.basicConfig(level=settings.log_level)

app = FastAPI(title="Pet History Backend")

# Routes stay thin: every rule lives in EventService. The service comes
# from a dependency so tests can swap in an in-memory store.


class WeightIn(DocumentModel):
    """Free-text weight, e.g. "19,6 kg" or 19.6."""

    weight: Union[float, str]
    occurred_at: Optional[datetime] = None
    method: Optional[str] = None
    place: Optional[str] = None
    tags: List[str] = []
    notes: str = ""


class MedicationIn(DocumentModel):
    """Free-text prescription as typed by the owner."""

    name: str
    start_at: Optional[datetime] = None
    end_at: Optional[datetime] = None
    dose: Optional[str] = None
    instructions: Optional[str] = None
    indication: Optional[str] = None
    tags: List[str] = []
    notes: str = ""


def _dump(event: Optional[Event]):
    if event is None:
        return None
    return event.model_dump(by_alias=True, mode="json")


def _raise_http_error(e: Exception) -> None:
    if isinstance(e, NotFoundError):
        raise HTTPException(status_code=404, detail=str(e)) from e
    if isinstance(e, (ValidationError, ValueError)):
        raise HTTPException(status_code=400, detail=str(e)) from e
    if isinstance(e, StoreError):
        raise HTTPException(status_code=500, detail=f"Store failure: {e}") from e
    raise HTTPException(status_code=500, detail="Internal Server Error") from e


@app.get("/health")
def health(svc: EventService = Depends(get_event_service)):
    try:
        svc.health_check()
        return {"ok": True}
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Store health check failed: {e}")


@app.post("/pets/{pet_id}/events")
def add_event(pet_id: str, event: Event, svc: EventService = Depends(get_event_service)):
    event.id = None
    try:
        return {"id": svc.add_event(pet_id, event)}
    except Exception as e:
        _raise_http_error(e)


@app.get("/pets/{pet_id}/events")
def list_events(
    pet_id: str,
    date_from: Optional[datetime] = Query(None, alias="from"),
    date_to: Optional[datetime] = Query(None, alias="to"),
    types: List[EventType] = Query([], alias="type"),
    limit: int = 200,
    order_by: str = "occurredAt",
    order_direction: str = "desc",
    svc: EventService = Depends(get_event_service),
):
    limit = max(1, min(limit, settings.max_list_limit))
    try:
        events = svc.list_events(
            pet_id,
            date_from=date_from,
            date_to=date_to,
            types=types,
            limit=limit,
            order_by=order_by,
            order_direction=order_direction,
        )
    except Exception as e:
        _raise_http_error(e)
    return [_dump(e) for e in events]


@app.get("/pets/{pet_id}/events/{event_id}")
def get_event(pet_id: str, event_id: str, svc: EventService = Depends(get_event_service)):
    try:
        event = svc.get_event(pet_id, event_id)
    except Exception as e:
        _raise_http_error(e)
    if event is None:
        raise HTTPException(status_code=404, detail=f"Event {event_id} not found")
    return _dump(event)


@app.patch("/pets/{pet_id}/events/{event_id}")
def update_event(
    pet_id: str, event_id: str, patch: EventPatch, svc: EventService = Depends(get_event_service)
):
    try:
        svc.update_event(pet_id, event_id, patch)
    except Exception as e:
        _raise_http_error(e)
    return {"updated": True}


@app.delete("/pets/{pet_id}/events/{event_id}")
def delete_event(pet_id: str, event_id: str, svc: EventService = Depends(get_event_service)):
    try:
        svc.delete_event(pet_id, event_id)
    except Exception as e:
        _raise_http_error(e)
    return {"deleted": True}


@app.post("/pets/{pet_id}/weights")
def add_weight(pet_id: str, body: WeightIn, svc: EventService = Depends(get_event_service)):
    weight_kg = normalize_weight(body.weight)
    if weight_kg is None:
        raise HTTPException(status_code=400, detail=f"Invalid weight: {body.weight!r}")

    event = create_weight_event(
        weight_kg,
        body.occurred_at or now(),
        method=body.method,
        place=body.place,
        tags=body.tags,
        notes=body.notes,
    )
    try:
        return {"id": svc.add_event(pet_id, event), "weightKg": weight_kg}
    except Exception as e:
        _raise_http_error(e)


@app.post("/pets/{pet_id}/medications")
def add_medication(pet_id: str, body: MedicationIn, svc: EventService = Depends(get_event_service)):
    name = normalize_medication_name(body.name)
    if not name:
        raise HTTPException(status_code=400, detail="Medication name is required")

    dose = parse_medication_dose(body.dose or body.instructions or "")
    frequency = parse_medication_frequency(body.instructions or "")
    if frequency:
        dose["frequency_hours"] = frequency

    event = create_medication_event(
        name,
        body.start_at or now(),
        body.end_at,
        dose=dose or None,
        instructions=body.instructions,
        indication=body.indication,
        tags=body.tags,
        notes=body.notes,
    )
    try:
        return {"id": svc.add_event(pet_id, event)}
    except Exception as e:
        _raise_http_error(e)


@app.get("/pets/{pet_id}/weight/latest")
def latest_weight(pet_id: str, svc: EventService = Depends(get_event_service)):
    try:
        return _dump(svc.get_latest_weight(pet_id))
    except Exception as e:
        _raise_http_error(e)


@app.get("/pets/{pet_id}/medications/active")
def active_medications(
    pet_id: str,
    at: Optional[datetime] = None,
    svc: EventService = Depends(get_event_service),
):
    try:
        return [_dump(e) for e in svc.get_active_medications(pet_id, at)]
    except Exception as e:
        _raise_http_error(e)
