"""
DocIndex — Vector Store (SQLite)

Responsibilities:
- Persist documents, chunks, embeddings and the vocabulary
- Upsert by id, batch embedding writes
- Replace the vocabulary atomically
- Full-scan embedding reads joined with chunk and document data
- Cascade deletes (documents → chunks → embeddings)
- Statistics and JSON snapshot export
- Fail-soft snapshot export on close

Config Sources:
- config/db.yaml → storage
- config/settings.yaml → project.fail_soft

Writes outside `transaction()` commit immediately. Inside it, a
document's rows commit together or not at all.
"""

import json
import os
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Sequence

import numpy as np

from docindex.chunking.types import Chunk, ChunkType
from docindex.config.settings import StoreConfig
from docindex.errors import StorageReadFailed, StorageWriteFailed
from docindex.store.backup import SnapshotExporter
from docindex.store.schema import (
    INSERT_VOCABULARY,
    SCHEMA,
    SELECT_EMBEDDINGS,
    TABLES,
    UPSERT_CHUNK,
    UPSERT_DOCUMENT,
    UPSERT_EMBEDDING,
)
from docindex.utils.logging_utils import get_component_logger
from docindex.vector.embedder import Embedding
from docindex.vector.vocabulary import Vocabulary


logger = get_component_logger("VectorStore", component="storage")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class VectorStore:

    def __init__(self, config: Optional[StoreConfig] = None):

        self.config = config or StoreConfig.from_settings()
        self.db_path = os.path.abspath(self.config.db_path)
        self.exporter = SnapshotExporter(self.config.backup_dir)

        self._lock = threading.RLock()
        self._tx_depth = 0
        self._closed = False

        try:
            os.makedirs(os.path.dirname(self.db_path), exist_ok=True)

            self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA foreign_keys = ON")
            self._conn.executescript(SCHEMA)
            self._conn.commit()

            logger.info(f"Store initialized at: {self.db_path}")

        except (sqlite3.Error, OSError) as e:
            logger.exception("Failed to initialize VectorStore")
            raise StorageWriteFailed(f"Cannot open store at {self.db_path}: {e}") from e

    # =====================================================
    # TRANSACTIONS
    # =====================================================

    @contextmanager
    def transaction(self):
        """Group writes into one commit. Nested use joins the outer one."""

        with self._lock:
            outer = self._tx_depth == 0
            self._tx_depth += 1
            try:
                yield self
                if outer:
                    self._conn.commit()
            except BaseException:
                if outer:
                    self._conn.rollback()
                    logger.warning("Transaction rolled back")
                raise
            finally:
                self._tx_depth -= 1

    @contextmanager
    def _write(self, action: str):

        with self._lock:
            try:
                yield self._conn
                if self._tx_depth == 0:
                    self._conn.commit()
            except sqlite3.Error as e:
                if self._tx_depth == 0:
                    self._conn.rollback()
                logger.exception(f"Failed {action}")
                raise StorageWriteFailed(f"Failed {action}: {e}") from e

    def _read(self, action: str, sql: str, params: Sequence = ()) -> List[sqlite3.Row]:

        with self._lock:
            try:
                return self._conn.execute(sql, params).fetchall()
            except sqlite3.Error as e:
                logger.exception(f"Failed {action}")
                raise StorageReadFailed(f"Failed {action}: {e}") from e

    # =====================================================
    # WRITE PATHS
    # =====================================================

    def put_document(
        self,
        document_id: str,
        filename: str,
        path: str,
        content_type: str,
        size_bytes: int,
        content_hash: str,
        metadata: Optional[Dict] = None
    ):

        with self._write(f"storing document {document_id}") as conn:
            conn.execute(UPSERT_DOCUMENT, (
                document_id,
                filename,
                path,
                content_type,
                size_bytes,
                content_hash,
                json.dumps(metadata or {}),
                _now()
            ))

        logger.debug(f"Stored document: {document_id} ({filename})")

    def put_chunks(self, document_id: str, chunks: Sequence[Chunk]):

        created_at = _now()

        rows = [
            (
                chunk.id,
                document_id,
                chunk.content,
                chunk.chunk_type.value,
                chunk.index,
                chunk.start,
                chunk.end,
                json.dumps(chunk.metadata, default=str),
                created_at
            )
            for chunk in chunks
        ]

        with self._write(f"storing chunks for {document_id}") as conn:
            conn.executemany(UPSERT_CHUNK, rows)
            conn.execute(
                "UPDATE documents SET chunk_count = "
                "(SELECT COUNT(*) FROM chunks WHERE document_id = ?) WHERE id = ?",
                (document_id, document_id)
            )

        logger.debug(f"Stored {len(rows)} chunks for {document_id}")

    def put_embeddings(self, embeddings: Sequence[Embedding]):

        created_at = _now()
        batch_size = self.config.batch_size

        rows = [
            (
                e.chunk_id,
                json.dumps(e.vector.tolist()),
                e.dimensions,
                e.magnitude,
                e.method,
                e.epoch,
                json.dumps({"non_zero_count": e.non_zero_count, **e.metadata}),
                created_at
            )
            for e in embeddings
        ]

        with self._write("storing embeddings") as conn:
            for start in range(0, len(rows), batch_size):
                conn.executemany(UPSERT_EMBEDDING, rows[start:start + batch_size])

        logger.debug(f"Stored {len(rows)} embeddings in batches of {batch_size}")

    def put_vocabulary(self, vocabulary: Vocabulary):
        """Replace the stored vocabulary. Old terms never survive a write."""

        created_at = _now()
        rows = [row + (created_at,) for row in vocabulary.to_rows()]

        with self.transaction():
            with self._write("storing vocabulary") as conn:
                conn.execute("DELETE FROM vocabulary")
                conn.executemany(INSERT_VOCABULARY, rows)

        logger.info(f"Stored vocabulary: {len(rows)} terms (epoch {vocabulary.epoch})")

    # =====================================================
    # READ PATHS
    # =====================================================

    def get_vocabulary(self) -> Optional[Vocabulary]:

        rows = self._read(
            "reading vocabulary",
            "SELECT term, term_index, idf_score, document_count, epoch "
            "FROM vocabulary ORDER BY term_index"
        )

        if not rows:
            return None

        return Vocabulary.from_rows([tuple(r) for r in rows])

    def _embedding_rows(self, rows: Iterable[sqlite3.Row]) -> List[Dict]:
        return [
            {
                "chunk_id": r["chunk_id"],
                "vector": np.asarray(json.loads(r["vector_json"]), dtype=np.float64),
                "dimensions": r["dimensions"],
                "magnitude": r["magnitude"],
                "method": r["method"],
                "epoch": r["epoch"],
                "content": r["content"],
                "chunk_type": r["chunk_type"],
                "chunk_index": r["chunk_index"],
                "chunk_metadata": json.loads(r["chunk_metadata"] or "{}"),
                "document_id": r["document_id"],
                "filename": r["filename"]
            }
            for r in rows
        ]

    def all_embeddings(self, epoch: Optional[str] = None) -> List[Dict]:

        sql = SELECT_EMBEDDINGS
        params: tuple = ()

        if epoch:
            sql += " WHERE e.epoch = ?"
            params = (epoch,)

        sql += " ORDER BY e.id"

        return self._embedding_rows(self._read("reading embeddings", sql, params))

    def get_embeddings_by_chunk_ids(self, chunk_ids: Sequence[str]) -> List[Dict]:

        if not chunk_ids:
            return []

        placeholders = ",".join("?" for _ in chunk_ids)
        sql = f"{SELECT_EMBEDDINGS} WHERE e.chunk_id IN ({placeholders}) ORDER BY e.id"

        return self._embedding_rows(
            self._read("reading embeddings by chunk id", sql, list(chunk_ids))
        )

    def get_chunks(self, document_id: str) -> List[Chunk]:

        rows = self._read(
            f"reading chunks for {document_id}",
            "SELECT * FROM chunks WHERE document_id = ? ORDER BY chunk_index",
            (document_id,)
        )

        return [
            Chunk(
                id=r["id"],
                content=r["content"],
                chunk_type=ChunkType(r["chunk_type"]),
                index=r["chunk_index"],
                start=r["start_position"],
                end=r["end_position"],
                metadata=json.loads(r["metadata"] or "{}"),
                document_id=r["document_id"]
            )
            for r in rows
        ]

    @staticmethod
    def _document(row: sqlite3.Row) -> Dict:
        document = dict(row)
        document["metadata"] = json.loads(document.get("metadata") or "{}")
        return document

    def get_document(self, document_id: str) -> Optional[Dict]:

        rows = self._read(
            f"reading document {document_id}",
            "SELECT * FROM documents WHERE id = ?",
            (document_id,)
        )

        return self._document(rows[0]) if rows else None

    def find_documents(
        self,
        content_type: Optional[str] = None,
        filename: Optional[str] = None,
        limit: Optional[int] = None
    ) -> List[Dict]:

        sql = "SELECT * FROM documents WHERE 1=1"
        params: list = []

        if content_type:
            sql += " AND content_type = ?"
            params.append(content_type)

        if filename:
            sql += " AND filename LIKE ?"
            params.append(f"%{filename}%")

        sql += " ORDER BY indexed_at DESC, rowid DESC"

        if limit:
            sql += " LIMIT ?"
            params.append(limit)

        return [self._document(r) for r in self._read("finding documents", sql, params)]

    # =====================================================
    # DELETE
    # =====================================================

    def delete_document(self, document_id: str) -> int:

        with self._write(f"deleting document {document_id}") as conn:
            deleted = conn.execute(
                "DELETE FROM documents WHERE id = ?", (document_id,)
            ).rowcount

        if deleted:
            logger.info(f"Deleted document: {document_id}")

        return deleted

    def clear(self):

        with self.transaction():
            with self._write("clearing store") as conn:
                for table in reversed(TABLES):
                    conn.execute(f"DELETE FROM {table}")

        logger.info("Store cleared")

    # =====================================================
    # STATS / EXPORT
    # =====================================================

    def get_stats(self) -> Dict:

        def scalar(sql: str):
            return self._read("reading stats", sql)[0][0] or 0

        return {
            "documents": scalar("SELECT COUNT(*) FROM documents"),
            "chunks": scalar("SELECT COUNT(*) FROM chunks"),
            "embeddings": scalar("SELECT COUNT(*) FROM embeddings"),
            "vocabulary_size": scalar("SELECT COUNT(*) FROM vocabulary"),
            "total_size_bytes": scalar("SELECT SUM(file_size) FROM documents"),
            "average_chunks_per_document": round(
                scalar("SELECT AVG(chunk_count) FROM documents"), 2
            ),
            "database_path": self.db_path
        }

    def export_snapshot(self) -> str:

        tables = {
            table: [dict(r) for r in self._read(f"exporting {table}", f"SELECT * FROM {table}")]
            for table in TABLES
        }

        vocabulary = self.get_vocabulary()

        return self.exporter.export(
            tables,
            self.get_stats(),
            vocabulary.to_dict() if vocabulary else None
        )

    # =====================================================
    # LIFECYCLE
    # =====================================================

    def close(self):

        if self._closed:
            return

        if self.config.auto_backup:
            try:
                self.export_snapshot()
            except (OSError, TypeError, ValueError, StorageReadFailed):
                logger.exception("Snapshot export failed on close")
                if not self.config.fail_soft:
                    self._shutdown()
                    raise
                logger.warning("Fail-soft enabled — continuing")

        self._shutdown()

    def _shutdown(self):
        with self._lock:
            if not self._closed:
                self._conn.close()
                self._closed = True
                logger.info("Store connection closed")
