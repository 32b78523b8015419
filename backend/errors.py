"""
Error types shared by the store, the event service and the migration.

Normalizers never raise and unparseable dates fall back to "now", so the
list below is short:

- `NotInitializedError` - a service or reader was used before a store was
  attached. This is a caller-ordering bug, not something to retry.
- `NotFoundError` - the referenced document id does not exist.
- `StoreError` - transport or permission failure from the backing store.
"""


class PetHistoryError(Exception):
    """Base class for every error raised by this backend."""


class NotInitializedError(PetHistoryError):
    pass


class NotFoundError(PetHistoryError):
    def __init__(self, collection: str, doc_id: str):
        super().__init__(f"Document {collection}/{doc_id} not found")
        self.collection = collection
        self.doc_id = doc_id


class StoreError(PetHistoryError):
    pass
