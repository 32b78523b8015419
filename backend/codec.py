"""
Document encoding: the one place where values become store documents.

Every write (add, batch add, update) goes through `encode_document`. It:
- dumps pydantic models by alias (camelCase) and drops fields that were
  never set, recursively through nested models and lists. An unset field is
  this codebase's "undefined": it is omitted, whereas an explicit None (for
  example an ongoing medication's `endAt`) is stored as null;
- coerces datetimes and dates to the store timestamp (aware UTC datetime);
- turns enum members into their values.

`event_to_document` / `document_to_event` add the event-specific bits: the
store-assigned `id` lives outside the document body.
"""

from collections.abc import Mapping
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict

from pydantic import BaseModel

from models import Event
from timeutils import to_timestamp


def encode_document(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return encode_document(value.model_dump(by_alias=True, exclude_unset=True))
    if isinstance(value, Mapping):
        return {str(key): encode_document(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [encode_document(item) for item in value]
    if isinstance(value, (datetime, date)):
        return to_timestamp(value)
    if isinstance(value, Enum):
        return value.value
    return value


def event_to_document(event: Event) -> Dict[str, Any]:
    doc = encode_document(event)
    doc.pop("id", None)
    return doc


def document_to_event(doc: Mapping) -> Event:
    return Event.model_validate(dict(doc))
