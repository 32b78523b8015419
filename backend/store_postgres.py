"""
PostgreSQL implementation of `DocumentStore`.

All collections share one table (see `scripts/create_documents_table.py`):

    documents(collection TEXT, id TEXT, doc JSONB, PRIMARY KEY (collection, id))

Documents are stored as JSONB. Timestamps are not a JSON type, so they are
written as `{"$ts": "2024-03-01T00:00:00.000000Z"}` with a fixed-width UTC
format. JSONB compares single-key objects by their value, which makes
range filters and ORDER BY on timestamp fields chronological without any
per-field knowledge here.

Important notes:
- Every method runs in its own `db.transaction()`; `add_many` writes the
  whole batch in one transaction.
- psycopg errors surface as `StoreError` (see `db.py`).
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from psycopg.types.json import Jsonb

from db import transaction
from errors import NotFoundError
from store import DocumentStore, Query, new_document_id

logger = logging.getLogger(__name__)

TIMESTAMP_KEY = "$ts"
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"

_SQL_OPERATORS = {"==": "=", "<": "<", "<=": "<=", ">": ">", ">=": ">="}


def to_json(value: Any) -> Any:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return {TIMESTAMP_KEY: value.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)}
    if isinstance(value, dict):
        return {k: to_json(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_json(v) for v in value]
    return value


def from_json(value: Any) -> Any:
    if isinstance(value, dict):
        if len(value) == 1 and TIMESTAMP_KEY in value:
            return datetime.strptime(value[TIMESTAMP_KEY], TIMESTAMP_FORMAT).replace(
                tzinfo=timezone.utc
            )
        return {k: from_json(v) for k, v in value.items()}
    if isinstance(value, list):
        return [from_json(v) for v in value]
    return value


def build_select(collection: str, query: Query):
    """Translate a `Query` into SQL text and parameters."""

    sql = ["SELECT id, doc FROM documents WHERE collection = %s"]
    params: List[Any] = [collection]

    for flt in query.filters:
        path = flt.field.split(".")
        if flt.op == "in":
            values = list(flt.value)
            if not values:
                sql.append("AND FALSE")
                continue
            placeholders = ", ".join(["%s"] * len(values))
            sql.append(f"AND (doc #> %s) IN ({placeholders})")
            params.append(path)
            params.extend(Jsonb(to_json(v)) for v in values)
        else:
            sql.append(f"AND (doc #> %s) {_SQL_OPERATORS[flt.op]} %s")
            params.append(path)
            params.append(Jsonb(to_json(flt.value)))

    if query.order_by:
        path = query.order_by.split(".")
        direction = "DESC" if query.descending else "ASC"
        sql.append("AND (doc #> %s) IS NOT NULL")
        params.append(path)
        sql.append(f"ORDER BY (doc #> %s) {direction}")
        params.append(path)

    if query.limit is not None:
        sql.append("LIMIT %s")
        params.append(query.limit)

    return " ".join(sql), params


class PostgresStore(DocumentStore):
    """Document store on top of a single JSONB table."""

    def add(self, collection: str, document: Dict[str, Any]) -> str:
        return self.add_many(collection, [document])[0]

    def add_many(self, collection: str, documents: Sequence[Dict[str, Any]]) -> List[str]:
        rows = [(collection, new_document_id(), Jsonb(to_json(d))) for d in documents]
        with transaction(f"Batch write to {collection}") as cur:
            cur.executemany(
                "INSERT INTO documents (collection, id, doc) VALUES (%s, %s, %s)",
                rows,
            )
        return [r[1] for r in rows]

    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        with transaction(f"Read of {collection}/{doc_id}") as cur:
            cur.execute(
                "SELECT doc FROM documents WHERE collection = %s AND id = %s",
                (collection, doc_id),
            )
            row = cur.fetchone()
        if row is None:
            return None
        return {"id": doc_id, **from_json(row[0])}

    def set(self, collection: str, doc_id: str, document: Dict[str, Any]) -> None:
        with transaction(f"Write of {collection}/{doc_id}") as cur:
            cur.execute(
                "INSERT INTO documents (collection, id, doc) VALUES (%s, %s, %s) "
                "ON CONFLICT (collection, id) DO UPDATE SET doc = EXCLUDED.doc",
                (collection, doc_id, Jsonb(to_json(document))),
            )

    def update(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        with transaction(f"Update of {collection}/{doc_id}") as cur:
            cur.execute(
                "UPDATE documents SET doc = doc || %s WHERE collection = %s AND id = %s",
                (Jsonb(to_json(fields)), collection, doc_id),
            )
            updated = cur.rowcount
        if updated == 0:
            raise NotFoundError(collection, doc_id)

    def delete(self, collection: str, doc_id: str) -> None:
        with transaction(f"Delete of {collection}/{doc_id}") as cur:
            cur.execute(
                "DELETE FROM documents WHERE collection = %s AND id = %s",
                (collection, doc_id),
            )

    def query(self, collection: str, query: Query) -> List[Dict[str, Any]]:
        sql, params = build_select(collection, query)
        logger.debug("query %s params=%s", sql, params)
        with transaction(f"Query on {collection}") as cur:
            cur.execute(sql, params)
            rows = cur.fetchall()
        return [{"id": r[0], **from_json(r[1])} for r in rows]

    def ping(self) -> None:
        with transaction("Store ping") as cur:
            cur.execute("SELECT 1;")
