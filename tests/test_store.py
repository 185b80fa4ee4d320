"""Tests for the SQLite vector store."""

import json
import os

import numpy as np
import pytest

from docindex.chunking.types import Chunk, ChunkType
from docindex.config.settings import StoreConfig
from docindex.store.sqlite_store import VectorStore
from docindex.vector.embedder import Embedding
from docindex.vector.vocabulary import Vocabulary


def _put_document(store, document_id="doc1", filename="guide.md", content_type="markdown"):
    store.put_document(
        document_id=document_id,
        filename=filename,
        path=f"/tmp/{filename}",
        content_type=content_type,
        size_bytes=120,
        content_hash="abc123",
        metadata={"extension": ".md"}
    )


def _chunks(document_id="doc1", count=2):
    return [
        Chunk(
            id=f"{document_id}_chunk_{i}",
            content=f"chunk number {i}",
            chunk_type=ChunkType.SECTION,
            index=i,
            start=i * 10,
            end=i * 10 + 9,
            metadata={"header": f"H{i}"},
            document_id=document_id
        )
        for i in range(count)
    ]


def _embeddings(chunks, epoch="e1"):
    return [
        Embedding(
            chunk_id=c.id,
            vector=np.array([1.0, float(i), 0.0]),
            magnitude=1.0,
            dimensions=3,
            method="tfidf",
            non_zero_count=2,
            epoch=epoch
        )
        for i, c in enumerate(chunks)
    ]


def _populate(store, document_id="doc1", epoch="e1"):
    _put_document(store, document_id)
    chunks = _chunks(document_id)
    store.put_chunks(document_id, chunks)
    store.put_embeddings(_embeddings(chunks, epoch))
    return chunks


class TestDocuments:

    def test_round_trip(self, store) -> None:
        _put_document(store)
        document = store.get_document("doc1")

        assert document["filename"] == "guide.md"
        assert document["content_hash"] == "abc123"
        assert document["metadata"] == {"extension": ".md"}

    def test_missing_document(self, store) -> None:
        assert store.get_document("nope") is None

    def test_put_chunks_updates_count(self, store) -> None:
        _populate(store)
        assert store.get_document("doc1")["chunk_count"] == 2

    def test_upsert_keeps_chunks(self, store) -> None:
        _populate(store)
        _put_document(store)

        assert store.get_stats()["chunks"] == 2

    def test_find_documents(self, store) -> None:
        _put_document(store, "doc1", "guide.md", "markdown")
        _put_document(store, "doc2", "notes.txt", "text")
        _put_document(store, "doc3", "other-guide.md", "markdown")

        assert {d["id"] for d in store.find_documents(content_type="markdown")} == {"doc1", "doc3"}
        assert [d["id"] for d in store.find_documents(filename="notes")] == ["doc2"]
        assert len(store.find_documents(limit=2)) == 2

    def test_get_chunks(self, store) -> None:
        chunks = _populate(store)
        stored = store.get_chunks("doc1")

        assert [c.id for c in stored] == [c.id for c in chunks]
        assert stored[1].chunk_type == ChunkType.SECTION
        assert stored[1].metadata == {"header": "H1"}


class TestEmbeddings:

    def test_all_embeddings_joined(self, store) -> None:
        _populate(store)
        rows = store.all_embeddings()

        assert len(rows) == 2
        assert rows[0]["filename"] == "guide.md"
        assert rows[0]["content"] == "chunk number 0"
        assert rows[0]["epoch"] == "e1"
        np.testing.assert_allclose(rows[1]["vector"], [1.0, 1.0, 0.0])

    def test_filter_by_epoch(self, store) -> None:
        _populate(store, "doc1", epoch="e1")
        _populate(store, "doc2", epoch="e2")

        assert {r["document_id"] for r in store.all_embeddings(epoch="e2")} == {"doc2"}

    def test_by_chunk_ids(self, store) -> None:
        chunks = _populate(store)
        rows = store.get_embeddings_by_chunk_ids([chunks[1].id])

        assert [r["chunk_id"] for r in rows] == [chunks[1].id]
        assert store.get_embeddings_by_chunk_ids([]) == []

    def test_batched_writes(self, tmp_path) -> None:
        config = StoreConfig(
            db_path=str(tmp_path / "batched.db"),
            backup_dir=str(tmp_path / "b"),
            auto_backup=False,
            batch_size=1
        )
        store = VectorStore(config)
        try:
            _populate(store)
            assert store.get_stats()["embeddings"] == 2
        finally:
            store.close()


class TestVocabulary:

    def test_empty(self, store) -> None:
        assert store.get_vocabulary() is None

    def test_replaced_atomically(self, store) -> None:
        first = Vocabulary(terms={"cat": 0, "sat": 1}, idf={"cat": 0.7, "sat": 0.7}, document_count=2)
        second = Vocabulary(terms={"dog": 0}, idf={"dog": 1.1}, document_count=3)

        store.put_vocabulary(first)
        store.put_vocabulary(second)
        loaded = store.get_vocabulary()

        assert loaded.terms == {"dog": 0}
        assert loaded.epoch == second.epoch
        assert loaded.document_count == 3


class TestDeletes:

    def test_cascade(self, store) -> None:
        _populate(store)

        assert store.delete_document("doc1") == 1

        stats = store.get_stats()
        assert stats["documents"] == 0
        assert stats["chunks"] == 0
        assert stats["embeddings"] == 0

    def test_clear(self, store) -> None:
        _populate(store)
        store.put_vocabulary(Vocabulary(terms={"cat": 0}, idf={"cat": 0.5}, document_count=1))

        store.clear()

        stats = store.get_stats()
        assert stats["documents"] == stats["chunks"] == stats["embeddings"] == 0
        assert stats["vocabulary_size"] == 0

    def test_transaction_rolls_back(self, store) -> None:
        with pytest.raises(RuntimeError):
            with store.transaction():
                _put_document(store)
                raise RuntimeError("boom")

        assert store.get_document("doc1") is None


class TestStatsAndExport:

    def test_stats(self, store) -> None:
        _populate(store, "doc1")
        _populate(store, "doc2")

        stats = store.get_stats()

        assert stats["documents"] == 2
        assert stats["chunks"] == 4
        assert stats["total_size_bytes"] == 240
        assert stats["average_chunks_per_document"] == 2

    def test_export_snapshot(self, store, store_config) -> None:
        _populate(store)
        path = store.export_snapshot()

        current = os.path.join(store_config.backup_dir, "current-index.json")
        assert os.path.exists(path)
        assert os.path.exists(current)

        with open(current, encoding="utf-8") as f:
            snapshot = json.load(f)

        assert snapshot["stats"]["documents"] == 1
        assert len(snapshot["chunks"]) == 2
        assert set(snapshot) >= {"export_time", "documents", "embeddings", "vocabulary"}
        assert snapshot["vocabulary_export"] is None

    def test_snapshot_carries_portable_vocabulary(self, store, store_config) -> None:
        vocabulary = Vocabulary(terms={"cat": 0, "dog": 1}, idf={"cat": 0.4, "dog": 1.1}, document_count=3)
        store.put_vocabulary(vocabulary)
        store.export_snapshot()

        with open(os.path.join(store_config.backup_dir, "current-index.json"), encoding="utf-8") as f:
            snapshot = json.load(f)

        restored = Vocabulary.from_dict(snapshot["vocabulary_export"])
        assert restored.terms == vocabulary.terms
        assert restored.epoch == vocabulary.epoch
        assert len(snapshot["vocabulary"]) == 2

    def test_close_exports_when_auto_backup(self, tmp_path) -> None:
        config = StoreConfig(
            db_path=str(tmp_path / "auto.db"),
            backup_dir=str(tmp_path / "auto-backups"),
            auto_backup=True
        )
        store = VectorStore(config)
        _populate(store)
        store.close()

        assert os.path.exists(tmp_path / "auto-backups" / "current-index.json")
