from __future__ import annotations

import json

import import_legacy
from legacy_records import LegacyRecordReader
from store import InMemoryStore


def test_import_loads_records_and_snapshot(tmp_path, monkeypatch, capsys) -> None:
    store = InMemoryStore()
    monkeypatch.setattr(import_legacy, "get_store", lambda: store)

    records_path = tmp_path / "records.json"
    records_path.write_text(
        json.dumps(
            [
                {"id": "r1", "date": "01/03/24", "peso": "18 kg", "consulta": None, "extra": "x"},
                {"date": "02/03/24", "vacuna": "Rabia"},
            ]
        ),
        encoding="utf-8",
    )
    current_path = tmp_path / "current.json"
    current_path.write_text(
        json.dumps({"date": "01/03/24", "medicamentos": [{"nombre": "carprofeno"}]}),
        encoding="utf-8",
    )

    import_legacy.main(str(records_path), str(current_path))

    reader = LegacyRecordReader(store)
    records = reader.get_all_records()
    assert [r.date for r in records] == ["02/03/24", "01/03/24"]
    assert records[1].id == "r1"
    assert records[1].peso == "18 kg"
    assert records[0].keywords == []
    assert reader.get_current_data().medicamentos[0].nombre == "carprofeno"
    assert "Records imported: 2" in capsys.readouterr().out
