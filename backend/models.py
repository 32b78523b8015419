"""
Pydantic models used across the backend.

An event is an envelope (when it happened, who wrote it, tags, notes,
attachments) plus a `data` payload whose shape is fixed by `type`. Each
payload has its own model and `PAYLOAD_MODELS` maps a type tag to it, so
`Event(type="WEIGHT", data={...})` always validates `data` as `WeightData`.

Guidelines:
- Document keys are camelCase (`occurredAt`, `weightKg`, `legacyId`);
    Python attributes are snake_case. Both spellings are accepted on input.
- Payload models forbid unknown fields: a document must only hold the
    fields valid for its type.
- Fields that were never set are not persisted (see `codec.encode_document`),
    which is why optional payload fields default to None instead of a value.
- Legacy documents (`LegacyRecord`, `CurrentSnapshot`) are read-only inputs
    to the migration and keep their Spanish field names.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class EventType(str, Enum):
    WEIGHT = "WEIGHT"
    MEDICATION = "MEDICATION"
    DOSE = "DOSE"
    VISIT = "VISIT"
    LAB = "LAB"
    IMAGING = "IMAGING"
    FOOD = "FOOD"
    GROOMING = "GROOMING"
    PURCHASE = "PURCHASE"
    NOTE = "NOTE"


class EventSource(str, Enum):
    MANUAL = "manual"
    VET = "vet"
    WHATSAPP = "whatsapp"


class FoodKind(str, Enum):
    RECIPE = "RECIPE"
    RATION = "RATION"


class DocumentModel(BaseModel):
    """Base for everything stored as a document: camelCase keys, snake_case attributes."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
    )


class Payload(DocumentModel):
    model_config = ConfigDict(extra="forbid")


class Attachment(Payload):
    type: str  # image | pdf | audio
    url: str
    caption: Optional[str] = None


class WeightData(Payload):
    weight_kg: float
    method: Optional[str] = None
    place: Optional[str] = None


class Dose(Payload):
    amount_mg: Optional[float] = None
    amount: Optional[float] = None
    unit: Optional[str] = None
    frequency_hours: Optional[int] = None
    form: Optional[str] = None
    fraction: Optional[str] = None


class MedicationData(Payload):
    name: str
    dose: Optional[Dose] = None
    start_at: datetime
    # None means the prescription is still ongoing.
    end_at: Optional[datetime] = None
    instructions: Optional[str] = None
    indication: Optional[str] = None


class DoseData(Payload):
    medication_name: str
    amount: Optional[Union[float, str]] = None
    unit: Optional[str] = None
    time_hint: Optional[str] = None


class VisitData(Payload):
    veterinarian: Optional[str] = None
    clinic: Optional[str] = None
    reason: Optional[str] = None
    diagnosis: Optional[str] = None
    treatment: Optional[str] = None


class NoteData(Payload):
    symptoms: Optional[List[str]] = None
    severity: Optional[str] = None  # mild | moderate | severe
    text: Optional[str] = None


class LabData(Payload):
    test: str  # COPRO | ORINA | SANGRE | ...
    result: str  # POSITIVE | NEGATIVE | UNKNOWN | ...
    findings: Optional[List[str]] = None


class ImagingData(Payload):
    study: str
    summary: str
    structured: Optional[Dict[str, Any]] = None


class Ingredient(Payload):
    name: str
    grams: Optional[float] = None
    ml: Optional[float] = None
    notes: Optional[str] = None


class FoodData(Payload):
    kind: FoodKind
    ingredients: List[Ingredient]


class GroomingData(Payload):
    service: str
    place: Optional[str] = None
    price_ars: Optional[float] = None


class PurchaseData(Payload):
    item: str
    price_ars: Optional[float] = None


EventData = Union[
    WeightData,
    MedicationData,
    DoseData,
    VisitData,
    NoteData,
    LabData,
    ImagingData,
    FoodData,
    GroomingData,
    PurchaseData,
]

PAYLOAD_MODELS = {
    EventType.WEIGHT: WeightData,
    EventType.MEDICATION: MedicationData,
    EventType.DOSE: DoseData,
    EventType.VISIT: VisitData,
    EventType.LAB: LabData,
    EventType.IMAGING: ImagingData,
    EventType.FOOD: FoodData,
    EventType.GROOMING: GroomingData,
    EventType.PURCHASE: PurchaseData,
    EventType.NOTE: NoteData,
}


def payload_model(event_type) -> type:
    """Return the payload model for a type tag (enum member or its string value)."""

    return PAYLOAD_MODELS[EventType(event_type)]


class Event(DocumentModel):
    """A typed, timestamped fact about the pet's care.

    `id` is assigned by the store and is never written into the document.
    `occurred_at`/`created_at` may be missing on a fresh event; the service
    fills them in before the write.
    """

    id: Optional[str] = None
    type: EventType
    occurred_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    created_by: str = "system"
    source: str = EventSource.MANUAL.value
    tags: List[str] = Field(default_factory=list)
    notes: str = ""
    attachments: List[Attachment] = Field(default_factory=list)
    data: EventData
    legacy_id: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _select_payload_model(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        event_type = values.get("type")
        data = values.get("data")
        if event_type is None or not isinstance(data, dict):
            return values
        try:
            model = payload_model(event_type)
        except ValueError:
            # Unknown tag: let field validation report it.
            return values
        return {**values, "data": model.model_validate(data)}

    @model_validator(mode="after")
    def _check_payload_matches_type(self) -> "Event":
        expected = payload_model(self.type)
        if not isinstance(self.data, expected):
            raise ValueError(
                f"{self.type} events need a {expected.__name__} payload, "
                f"got {type(self.data).__name__}"
            )
        return self


class EventPatch(DocumentModel):
    """Partial update of an event. Only fields present in the request are applied."""

    model_config = ConfigDict(extra="forbid")

    type: Optional[EventType] = None
    occurred_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    created_by: Optional[str] = None
    source: Optional[str] = None
    tags: Optional[List[str]] = None
    notes: Optional[str] = None
    attachments: Optional[List[Attachment]] = None
    data: Optional[Dict[str, Any]] = None


class LegacyMedication(DocumentModel):
    model_config = ConfigDict(extra="ignore")

    nombre: str = ""
    fecha_inicio: Optional[str] = None
    fecha_fin: Optional[str] = None
    dosis: Optional[str] = None
    instrucciones: Optional[str] = None


class LegacyRecord(DocumentModel):
    """One dated entry of the old flat model (`melba-records`)."""

    model_config = ConfigDict(extra="ignore")

    id: str
    date: Optional[str] = None
    consulta: Optional[str] = None
    medico: Optional[str] = None
    vacuna: Optional[str] = None
    peso: Optional[Union[str, float]] = None
    keywords: List[str] = Field(default_factory=list)

    @field_validator("keywords", mode="before")
    @classmethod
    def _missing_keywords(cls, value: Any) -> Any:
        return [] if value is None else value


class CurrentSnapshot(DocumentModel):
    """The legacy `current-data/last` singleton."""

    model_config = ConfigDict(extra="ignore")

    peso: Optional[Union[str, float]] = None
    date: Optional[str] = None
    medicamentos: List[LegacyMedication] = Field(default_factory=list)
    last_update: Optional[str] = None
