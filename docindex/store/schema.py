"""
SQLite schema for the document index.

Foreign keys cascade: documents → chunks → embeddings. Cascades only
fire when the connection enables `PRAGMA foreign_keys`.
"""

TABLES = ("documents", "chunks", "embeddings", "vocabulary")

SCHEMA = """
CREATE TABLE IF NOT EXISTS documents (
    id TEXT PRIMARY KEY,
    filename TEXT NOT NULL,
    filepath TEXT NOT NULL,
    content_type TEXT,
    file_size INTEGER,
    content_hash TEXT,
    metadata TEXT,
    indexed_at TEXT,
    chunk_count INTEGER DEFAULT 0
);

CREATE TABLE IF NOT EXISTS chunks (
    id TEXT PRIMARY KEY,
    document_id TEXT NOT NULL,
    content TEXT NOT NULL,
    chunk_type TEXT,
    chunk_index INTEGER,
    start_position INTEGER,
    end_position INTEGER,
    metadata TEXT,
    created_at TEXT,
    FOREIGN KEY (document_id) REFERENCES documents(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS embeddings (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    chunk_id TEXT NOT NULL UNIQUE,
    vector_json TEXT NOT NULL,
    dimensions INTEGER,
    magnitude REAL,
    method TEXT DEFAULT 'tfidf',
    epoch TEXT,
    metadata TEXT,
    created_at TEXT,
    FOREIGN KEY (chunk_id) REFERENCES chunks(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS vocabulary (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    term TEXT NOT NULL UNIQUE,
    term_index INTEGER,
    idf_score REAL,
    document_count INTEGER,
    epoch TEXT,
    created_at TEXT
);

CREATE INDEX IF NOT EXISTS idx_documents_filename ON documents(filename);
CREATE INDEX IF NOT EXISTS idx_documents_content_type ON documents(content_type);
CREATE INDEX IF NOT EXISTS idx_chunks_document_id ON chunks(document_id);
CREATE INDEX IF NOT EXISTS idx_chunks_type ON chunks(chunk_type);
CREATE INDEX IF NOT EXISTS idx_embeddings_dimensions ON embeddings(dimensions);
CREATE INDEX IF NOT EXISTS idx_embeddings_epoch ON embeddings(epoch);
"""


UPSERT_DOCUMENT = """
INSERT INTO documents
    (id, filename, filepath, content_type, file_size, content_hash, metadata, indexed_at)
VALUES (?, ?, ?, ?, ?, ?, ?, ?)
ON CONFLICT(id) DO UPDATE SET
    filename = excluded.filename,
    filepath = excluded.filepath,
    content_type = excluded.content_type,
    file_size = excluded.file_size,
    content_hash = excluded.content_hash,
    metadata = excluded.metadata,
    indexed_at = excluded.indexed_at
"""

UPSERT_CHUNK = """
INSERT INTO chunks
    (id, document_id, content, chunk_type, chunk_index,
     start_position, end_position, metadata, created_at)
VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
ON CONFLICT(id) DO UPDATE SET
    document_id = excluded.document_id,
    content = excluded.content,
    chunk_type = excluded.chunk_type,
    chunk_index = excluded.chunk_index,
    start_position = excluded.start_position,
    end_position = excluded.end_position,
    metadata = excluded.metadata
"""

UPSERT_EMBEDDING = """
INSERT INTO embeddings
    (chunk_id, vector_json, dimensions, magnitude, method, epoch, metadata, created_at)
VALUES (?, ?, ?, ?, ?, ?, ?, ?)
ON CONFLICT(chunk_id) DO UPDATE SET
    vector_json = excluded.vector_json,
    dimensions = excluded.dimensions,
    magnitude = excluded.magnitude,
    method = excluded.method,
    epoch = excluded.epoch,
    metadata = excluded.metadata,
    created_at = excluded.created_at
"""

INSERT_VOCABULARY = """
INSERT INTO vocabulary (term, term_index, idf_score, document_count, epoch, created_at)
VALUES (?, ?, ?, ?, ?, ?)
"""

SELECT_EMBEDDINGS = """
SELECT e.chunk_id, e.vector_json, e.dimensions, e.magnitude, e.method, e.epoch,
       c.content, c.chunk_type, c.chunk_index, c.metadata AS chunk_metadata,
       c.document_id, d.filename
FROM embeddings e
JOIN chunks c ON e.chunk_id = c.id
JOIN documents d ON c.document_id = d.id
"""
