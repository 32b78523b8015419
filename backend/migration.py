"""
One-time migration from the legacy flat records to typed events.

Two phases, run in order and strictly sequentially:

1. Records (`melba-records`). Every record becomes zero or more events that
   all carry `legacyId = record.id` and are written in one atomic batch.
2. Medications (`current-data/last`.medicamentos). Each entry becomes one
   MEDICATION event keyed `medication-<nombre>-<fechaInicio|unknown>`.

Re-running is safe: before converting anything the migrator looks for an
event with the same legacy id and skips the source if one exists. A crash
leaves already-written batches in place and the next run resumes.

Failure policy differs per step:
- a failed legacy-id lookup is logged and treated as "not migrated yet"
  (see `EventService.find_event_by_legacy_id`);
- a failed batch or event write is logged and aborts the run.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional

from errors import StoreError
from event_factory import (
    create_medication_event,
    create_note_event,
    create_visit_event,
    create_weight_event,
)
from legacy_records import LegacyRecordReader
from models import Event, EventSource, LegacyMedication, LegacyRecord
from normalizers import (
    normalize_medication_name,
    normalize_weight,
    parse_medication_dose,
    parse_medication_frequency,
)
from service_events import EventService
from settings import settings
from timeutils import now, parse_legacy_date

logger = logging.getLogger(__name__)

VACCINE_TAG = "vacuna"
MEDICATION_TAG = "medicación"


@dataclass
class PhaseSummary:
    created: int = 0
    skipped: int = 0


@dataclass
class MigrationReport:
    records: PhaseSummary = field(default_factory=PhaseSummary)
    medications: PhaseSummary = field(default_factory=PhaseSummary)


def medication_legacy_id(med: LegacyMedication) -> str:
    return f"medication-{med.nombre}-{med.fecha_inicio or 'unknown'}"


def build_record_events(record: LegacyRecord, occurred_at: datetime) -> List[Event]:
    """Convert one legacy record into events (not persisted).

    Precedence: weight, then visit-or-note from `consulta`, then the
    vaccine, then a keyword-only fallback note.
    """

    common = dict(source=EventSource.MANUAL.value, legacy_id=record.id)
    keywords = list(record.keywords)
    events: List[Event] = []

    if record.peso:
        weight_kg = normalize_weight(record.peso)
        if weight_kg:
            events.append(
                create_weight_event(
                    weight_kg,
                    occurred_at,
                    tags=keywords,
                    notes=f"Migrado desde registro {record.id}",
                    **common,
                )
            )

    if record.consulta:
        if record.medico:
            events.append(
                create_visit_event(
                    occurred_at,
                    veterinarian=record.medico,
                    notes=record.consulta,
                    tags=keywords,
                    **common,
                )
            )
        else:
            events.append(
                create_note_event(occurred_at, text=record.consulta, tags=keywords, **common)
            )

    if record.vacuna:
        if not record.medico and not record.consulta:
            events.append(
                create_visit_event(
                    occurred_at,
                    notes=f"Vacuna: {record.vacuna}",
                    tags=keywords + [VACCINE_TAG],
                    **common,
                )
            )
        elif events:
            last = events[-1]
            last.tags.append(VACCINE_TAG)
            last.notes += f" | Vacuna: {record.vacuna}"

    if not events and keywords:
        events.append(
            create_note_event(
                occurred_at, text=f"Registro del {record.date}", tags=keywords, **common
            )
        )

    return events


def build_medication_event(
    med: LegacyMedication, snapshot_date: Optional[str], fallback: datetime
) -> Event:
    start_at = (
        parse_legacy_date(med.fecha_inicio) or parse_legacy_date(snapshot_date) or fallback
    )
    end_at = parse_legacy_date(med.fecha_fin)

    dose = parse_medication_dose(med.dosis or med.instrucciones or "")
    frequency = parse_medication_frequency(med.instrucciones or "")
    if frequency:
        dose["frequency_hours"] = frequency

    return create_medication_event(
        normalize_medication_name(med.nombre),
        start_at,
        end_at,
        dose=dose or None,
        instructions=med.instrucciones,
        source=EventSource.MANUAL.value,
        tags=[MEDICATION_TAG],
        notes="Migrado desde current-data",
        legacy_id=medication_legacy_id(med),
    )


class EventMigrator:
    """Runs the legacy -> event migration for one pet.

    Example usage:
        migrator = EventMigrator(LegacyRecordReader(store), EventService(EventRepo(store)))
        report = migrator.migrate()
    """

    def __init__(
        self,
        reader: LegacyRecordReader,
        service: EventService,
        pet_id: Optional[str] = None,
        clock: Callable[[], datetime] = now,
    ):
        self.reader = reader
        self.service = service
        self.pet_id = pet_id or settings.default_pet
        self.clock = clock

    def migrate_records(self) -> PhaseSummary:
        summary = PhaseSummary()
        records = self.reader.get_all_records()
        logger.info("Found %d legacy records", len(records))

        for record in records:
            if self.service.find_event_by_legacy_id(self.pet_id, record.id):
                logger.info("Record %s already migrated, skipping", record.id)
                summary.skipped += 1
                continue

            occurred_at = parse_legacy_date(record.date) or self.clock()
            events = build_record_events(record, occurred_at)

            if not events:
                logger.warning("Record %s has nothing to migrate", record.id)
                summary.skipped += 1
                continue

            try:
                self.service.add_events_batch(self.pet_id, events)
            except StoreError:
                logger.error("Aborting: batch for record %s was not written", record.id)
                raise

            logger.info("Record %s migrated -> %d event(s)", record.id, len(events))
            summary.created += len(events)

        return summary

    def migrate_medications(self) -> PhaseSummary:
        summary = PhaseSummary()
        snapshot = self.reader.get_current_data()

        if snapshot is None or not snapshot.medicamentos:
            logger.info("No medications in current-data to migrate")
            return summary

        logger.info("Found %d medications", len(snapshot.medicamentos))

        for med in snapshot.medicamentos:
            legacy_id = medication_legacy_id(med)
            if self.service.find_event_by_legacy_id(self.pet_id, legacy_id):
                logger.info("Medication %s already migrated, skipping", med.nombre)
                summary.skipped += 1
                continue

            event = build_medication_event(med, snapshot.date, self.clock())
            self.service.add_event(self.pet_id, event)
            logger.info("Medication %s migrated", med.nombre)
            summary.created += 1

        return summary

    def migrate(self) -> MigrationReport:
        report = MigrationReport()
        report.records = self.migrate_records()
        report.medications = self.migrate_medications()
        return report
