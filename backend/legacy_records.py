"""
Read-only access to the legacy flat-record data.

The old application kept one document per visit in `melba-records` and a
singleton `current-data/last` with the latest weight and the medication
list. Nothing in this backend writes to those collections except the
one-off `import_legacy.py` loader; this reader only maps them to models.
"""

from typing import List, Optional

from errors import NotInitializedError
from models import CurrentSnapshot, LegacyRecord
from settings import settings
from store import DocumentStore, Query


class LegacyRecordReader:
    def __init__(self, store: Optional[DocumentStore] = None):
        self.store = store

    def initialize(self, store: DocumentStore) -> None:
        self.store = store

    def _store(self) -> DocumentStore:
        if self.store is None:
            raise NotInitializedError(
                "LegacyRecordReader has no store. Call initialize() before using it."
            )
        return self.store

    def get_all_records(self) -> List[LegacyRecord]:
        """All legacy records, ordered by their `date` string (descending).

        The dates are `dd/mm/yy` strings, so this is the same lexical order
        the old application showed, not a chronological one.
        """

        docs = self._store().query(
            settings.records_collection, Query(order_by="date", descending=True)
        )
        return [LegacyRecord.model_validate(d) for d in docs]

    def get_current_data(self) -> Optional[CurrentSnapshot]:
        doc = self._store().get(settings.current_data_collection, settings.current_data_doc)
        if doc is None:
            return None
        return CurrentSnapshot.model_validate(doc)
