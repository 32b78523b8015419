import json
import sys

from deps import get_store
from settings import settings

# Records exported from the old app keep their own ids; anything else is
# dropped so the legacy collection looks exactly like it did there.
RECORD_FIELDS = ("date", "consulta", "medico", "vacuna", "peso", "keywords")

BATCH_SIZE = 500


def load_json(path: str):
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def main(records_path: str, current_path: str | None = None):
    print(f"Importing legacy records from: {records_path}")
    store = get_store()
    records = load_json(records_path)
    total_inserted = 0
    batch = []

    for record in records:
        doc = {k: record[k] for k in RECORD_FIELDS if record.get(k) is not None}
        doc.setdefault("keywords", [])

        if record.get("id"):
            store.set(settings.records_collection, str(record["id"]), doc)
            total_inserted += 1
            continue

        batch.append(doc)
        if len(batch) >= BATCH_SIZE:
            store.add_many(settings.records_collection, batch)
            total_inserted += len(batch)
            print(f"Inserted {total_inserted} records...")
            batch.clear()

    # Insert remaining
    if batch:
        store.add_many(settings.records_collection, batch)
        total_inserted += len(batch)

    print(f"Records imported: {total_inserted}")

    if current_path:
        current = load_json(current_path)
        store.set(settings.current_data_collection, settings.current_data_doc, current)
        meds = current.get("medicamentos") or []
        print(f"Current data imported ({len(meds)} medications)")

    print("Import complete.")


if __name__ == "__main__":
    if len(sys.argv) not in (2, 3):
        print("Usage: python import_legacy.py <melba_records.json> [melba_last_data.json]")
        sys.exit(1)

    main(*sys.argv[1:])
