from db import transaction
from settings import settings

DDL = '''
CREATE TABLE IF NOT EXISTS documents (
    collection TEXT NOT NULL,
    id TEXT NOT NULL,
    doc JSONB NOT NULL,
    PRIMARY KEY (collection, id)
);

CREATE INDEX IF NOT EXISTS idx_documents_occurred_at
    ON documents (collection, (doc #> '{occurredAt}') DESC);
CREATE INDEX IF NOT EXISTS idx_documents_legacy_id
    ON documents (collection, (doc #> '{legacyId}'));
'''

print('Connecting to', settings.db_url)
with transaction('Creating the documents table') as cur:
    cur.execute(DDL)
print('DDL applied')
