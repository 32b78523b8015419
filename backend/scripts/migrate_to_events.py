#!/usr/bin/env python3
"""
Migration Script: convert legacy records and current-data medications into typed events.

Usage:
    python migrate_to_events.py

Prerequisites:
    - the store named by STORE_BACKEND is reachable (documents table created
      with create_documents_table.py for postgres)
    - legacy data present in melba-records and current-data/last

Safe to run more than once: events already migrated are skipped.
"""

import logging
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)) + '/..')

from deps import get_store
from legacy_records import LegacyRecordReader
from migration import EventMigrator
from repo_events import EventRepo
from service_events import EventService
from settings import settings


def main():
    logging.basicConfig(level=settings.log_level, format="  %(message)s", stream=sys.stdout)

    print(f"Migrating legacy data for pet '{settings.default_pet}' ({settings.store_backend})...")
    try:
        store = get_store()
        migrator = EventMigrator(
            LegacyRecordReader(store),
            EventService(EventRepo(store)),
            pet_id=settings.default_pet,
        )

        print("\nPhase 1: records")
        records = migrator.migrate_records()
        print(f"✓ Records: {records.created} events created, {records.skipped} records skipped")

        print("\nPhase 2: medications")
        meds = migrator.migrate_medications()
        print(f"✓ Medications: {meds.created} created, {meds.skipped} skipped")
    except Exception as e:
        print(f"\nERROR: migration failed: {e}")
        sys.exit(1)

    print("\n" + "=" * 80)
    print("✓ MIGRATION COMPLETE!")
    print("=" * 80)
    print("\nNext steps:")
    print("  1. Review the events with scripts/count_events.py")
    print("  2. Point clients at the /pets/{pet_id}/events API")
    print("  3. Once verified, the legacy collections can be archived")


if __name__ == '__main__':
    main()
