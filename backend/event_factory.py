"""
Constructors for well-formed events.

Each `create_*_event` takes the type's required values plus keyword
options. The shared metadata options are `created_at`, `created_by`,
`source`, `tags`, `notes`, `attachments` and `legacy_id`; the rest are
payload options for that type. Defaults:

- `created_at` -> the event's `occurred_at` (`start_at` for medications)
- `created_by` -> "system", `source` -> "manual"
- `tags`/`attachments` -> empty lists, `notes` -> ""

Payload options left as None are not set on the payload model, so they
never reach the store. The returned event has no `id`; persist it with
`EventService.add_event`.
"""

import math
from datetime import datetime
from typing import Any, Dict, List, Optional

from models import (
    Attachment,
    Dose,
    Event,
    EventSource,
    EventType,
    Ingredient,
    payload_model,
)


def _present(**fields: Any) -> Dict[str, Any]:
    return {k: v for k, v in fields.items() if v is not None}


def create_event(
    event_type,
    occurred_at: Optional[datetime],
    data: Dict[str, Any],
    *,
    created_at: Optional[datetime] = None,
    created_by: Optional[str] = None,
    source: Optional[str] = None,
    tags: Optional[List[str]] = None,
    notes: Optional[str] = None,
    attachments: Optional[List[Any]] = None,
    legacy_id: Optional[str] = None,
) -> Event:
    """Build an event of any type from a payload dict (snake_case or camelCase keys)."""

    payload = payload_model(event_type).model_validate(data)
    event = Event(
        type=EventType(event_type),
        occurred_at=occurred_at,
        created_at=created_at or occurred_at,
        created_by=created_by or "system",
        source=source or EventSource.MANUAL.value,
        tags=list(tags or []),
        notes=notes or "",
        attachments=[
            a if isinstance(a, Attachment) else Attachment.model_validate(a)
            for a in (attachments or [])
        ],
        data=payload,
    )
    if legacy_id is not None:
        event.legacy_id = legacy_id
    return event


def create_weight_event(
    weight_kg, occurred_at: datetime, *, method: Optional[str] = None, place: Optional[str] = None, **options
) -> Event:
    """WEIGHT event. `weight_kg` goes through float(); non-numeric text and NaN raise ValueError."""

    weight_kg = float(weight_kg)
    if math.isnan(weight_kg):
        raise ValueError("weight_kg must be a number, got NaN")
    data = _present(weight_kg=weight_kg, method=method, place=place)
    return create_event(EventType.WEIGHT, occurred_at, data, **options)


def create_medication_event(
    name: str,
    start_at: datetime,
    end_at: Optional[datetime] = None,
    *,
    dose=None,
    instructions: Optional[str] = None,
    indication: Optional[str] = None,
    **options,
) -> Event:
    if dose is not None and not isinstance(dose, Dose):
        dose = Dose.model_validate(dose)
    data = _present(
        name=name.strip(),
        dose=dose,
        start_at=start_at,
        instructions=instructions,
        indication=indication,
    )
    # endAt is always written: null marks an ongoing prescription.
    data["end_at"] = end_at or None
    return create_event(EventType.MEDICATION, start_at, data, **options)


def create_dose_event(
    medication_name: str,
    occurred_at: datetime,
    *,
    amount=None,
    unit: Optional[str] = None,
    time_hint: Optional[str] = None,
    **options,
) -> Event:
    data = _present(medication_name=medication_name, amount=amount, unit=unit, time_hint=time_hint)
    return create_event(EventType.DOSE, occurred_at, data, **options)


def create_visit_event(
    occurred_at: datetime,
    *,
    veterinarian: Optional[str] = None,
    clinic: Optional[str] = None,
    reason: Optional[str] = None,
    diagnosis: Optional[str] = None,
    treatment: Optional[str] = None,
    **options,
) -> Event:
    data = _present(
        veterinarian=veterinarian,
        clinic=clinic,
        reason=reason,
        diagnosis=diagnosis,
        treatment=treatment,
    )
    return create_event(EventType.VISIT, occurred_at, data, **options)


def create_note_event(
    occurred_at: datetime,
    *,
    text: Optional[str] = None,
    symptoms: Optional[List[str]] = None,
    severity: Optional[str] = None,
    **options,
) -> Event:
    data = _present(severity=severity)
    data["symptoms"] = list(symptoms or [])
    data["text"] = text or ""
    return create_event(EventType.NOTE, occurred_at, data, **options)


def create_lab_event(
    test: str, result: str, occurred_at: datetime, *, findings: Optional[List[str]] = None, **options
) -> Event:
    data = {"test": test, "result": result, "findings": list(findings or [])}
    return create_event(EventType.LAB, occurred_at, data, **options)


def create_imaging_event(
    study: str, summary: str, occurred_at: datetime, *, structured: Optional[Dict[str, Any]] = None, **options
) -> Event:
    data = _present(study=study, summary=summary, structured=structured)
    return create_event(EventType.IMAGING, occurred_at, data, **options)


def create_food_event(kind: str, ingredients: List[Any], occurred_at: datetime, **options) -> Event:
    data = {
        "kind": kind,
        "ingredients": [
            i if isinstance(i, Ingredient) else Ingredient.model_validate(i) for i in ingredients
        ],
    }
    return create_event(EventType.FOOD, occurred_at, data, **options)


def create_grooming_event(
    service: str, occurred_at: datetime, *, place: Optional[str] = None, price_ars: Optional[float] = None, **options
) -> Event:
    data = _present(service=service, place=place, price_ars=price_ars)
    return create_event(EventType.GROOMING, occurred_at, data, **options)


def create_purchase_event(
    item: str, occurred_at: datetime, *, price_ars: Optional[float] = None, **options
) -> Event:
    data = _present(item=item, price_ars=price_ars)
    return create_event(EventType.PURCHASE, occurred_at, data, **options)
