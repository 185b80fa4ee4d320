"""Tests for the indexing orchestrator."""

import asyncio
import json
import os

import pytest

from docindex.errors import ConfigurationError, DimensionMismatch, VocabularyNotLoaded


def _counts(indexer):
    stats = indexer.store.get_stats()
    return stats["documents"], stats["chunks"], stats["embeddings"]


class TestSingleFile:

    def test_first_file_builds_vocabulary(self, make_indexer, corpus) -> None:
        indexer = make_indexer()

        outcome = indexer.index_document(corpus / "notes.txt")

        assert outcome is not None
        assert outcome.chunks == outcome.embeddings == 1
        assert outcome.document["filename"] == "notes.txt"
        assert indexer.store.get_vocabulary().epoch == outcome.epoch

    def test_unchanged_file_skipped(self, make_indexer, corpus) -> None:
        indexer = make_indexer()
        indexer.index_document(corpus / "guide.md")
        before = _counts(indexer)

        assert indexer.index_document(corpus / "guide.md") is None
        assert _counts(indexer) == before

    def test_force_replaces(self, make_indexer, corpus) -> None:
        indexer = make_indexer()
        indexer.index_document(corpus / "guide.md")
        before = _counts(indexer)

        outcome = indexer.index_document(corpus / "guide.md", force=True)

        assert outcome is not None
        assert _counts(indexer) == before

    def test_changed_content_reindexed(self, make_indexer, corpus) -> None:
        indexer = make_indexer()
        indexer.index_document(corpus / "notes.txt")
        old_hash = indexer.store.find_documents(filename="notes")[0]["content_hash"]

        (corpus / "notes.txt").write_text("Pruning roses keeps gardens healthy.", encoding="utf-8")

        assert indexer.index_document(corpus / "notes.txt") is not None
        assert indexer.store.find_documents(filename="notes")[0]["content_hash"] != old_hash
        assert _counts(indexer) == (1, 1, 1)

    def test_unsupported_extension(self, make_indexer, corpus) -> None:
        indexer = make_indexer()
        assert indexer.index_document(corpus / "image.png") is None

    def test_empty_file(self, make_indexer, corpus) -> None:
        (corpus / "empty.md").write_text("", encoding="utf-8")
        indexer = make_indexer()

        assert indexer.index_document(corpus / "empty.md") is None

    def test_missing_file_recorded(self, make_indexer, corpus) -> None:
        indexer = make_indexer()

        assert indexer.index_document(corpus / "missing.md") is None
        assert indexer.stats["errors"][0]["type"] == "FileReadFailed"


class TestDirectory:

    def test_two_pass_batch(self, make_indexer, corpus) -> None:
        indexer = make_indexer()

        result = indexer.index_directory(corpus)

        assert result.total == 4
        assert result.indexed == 4
        assert result.errors == []
        assert _counts(indexer) == (4, 5, 5)

        epochs = {row["epoch"] for row in indexer.store.all_embeddings()}
        assert epochs == {indexer.store.get_vocabulary().epoch}

    def test_non_recursive(self, make_indexer, corpus) -> None:
        result = make_indexer().index_directory(corpus, recursive=False)
        assert result.total == 3

    def test_pattern_filter(self, make_indexer, corpus) -> None:
        result = make_indexer().index_directory(corpus, pattern=r"\.MD$")
        assert result.total == 1

    def test_idempotent(self, make_indexer, corpus) -> None:
        indexer = make_indexer()
        indexer.index_directory(corpus)
        before = _counts(indexer)

        result = indexer.index_directory(corpus)

        assert result.indexed == 0
        assert result.refreshed == 4
        assert _counts(indexer) == before

    def test_unreadable_file_recovered(self, make_indexer, corpus) -> None:
        (corpus / "broken.txt").write_bytes(b"\xff\xfe\xfa not utf-8")
        indexer = make_indexer()

        result = indexer.index_directory(corpus)

        assert result.total == 5
        assert result.indexed == 4
        assert result.skipped == 1
        assert len(result.errors) == 1
        assert result.errors[0]["type"] == "FileReadFailed"

    def test_empty_directory(self, make_indexer, tmp_path) -> None:
        (tmp_path / "void").mkdir()
        result = make_indexer().index_directory(tmp_path / "void")

        assert result.total == 0
        assert result.to_dict()["errors"] == []


class TestSearch:

    def test_fresh_store_has_no_vocabulary(self, make_indexer) -> None:
        with pytest.raises(VocabularyNotLoaded):
            make_indexer().search("anything")

    def test_blank_query(self, make_indexer) -> None:
        assert make_indexer().search("   ") == []

    def test_finds_relevant_chunk(self, make_indexer, corpus) -> None:
        indexer = make_indexer()
        indexer.index_directory(corpus)

        results = indexer.search("tomatoes gardening")

        assert results[0].document["filename"] == "notes.txt"
        assert results[0].similarity > 0.5
        assert "Tomatoes" in results[0].chunk["content"]

    def test_ranking_properties(self, make_indexer, corpus) -> None:
        indexer = make_indexer()
        indexer.index_directory(corpus)

        results = indexer.search("python decorators generators", top_k=5, min_similarity=0.1)
        scores = [r.similarity for r in results]

        assert 0 < len(results) <= 5
        assert scores == sorted(scores, reverse=True)
        assert all(s >= 0.1 for s in scores)
        assert len(indexer.search("python decorators generators", top_k=1)) == 1

    def test_top_k_bounds_result_count(self, make_indexer, corpus) -> None:
        indexer = make_indexer()
        indexer.index_directory(corpus)
        query = "tomatoes gardening python telescopes"

        assert indexer.search(query, top_k=0, min_similarity=0.0) == []
        assert len(indexer.search(query, top_k=2, min_similarity=0.0)) == 2
        with pytest.raises(ConfigurationError):
            indexer.search(query, top_k=-1)

    def test_vocabulary_loaded_from_store(self, make_indexer, corpus) -> None:
        make_indexer().index_directory(corpus)

        fresh = make_indexer()
        results = fresh.search("telescopes galaxies")

        assert results[0].document["filename"] == "extra.txt"

    def test_search_async(self, make_indexer, corpus) -> None:
        indexer = make_indexer()
        indexer.index_directory(corpus)

        results = asyncio.run(indexer.search_async("tomatoes gardening"))

        assert results[0].document["filename"] == "notes.txt"


class TestEpochIsolation:

    @pytest.fixture
    def batches(self, tmp_path):
        a = tmp_path / "a"
        b = tmp_path / "b"
        a.mkdir()
        b.mkdir()

        (a / "a1.txt").write_text("Volcanoes erupt molten lava. Volcanoes shape islands.")
        (a / "a2.txt").write_text("Glaciers carve valleys slowly.")
        (b / "b1.txt").write_text("Pianos produce music.")
        (b / "b2.txt").write_text("Violins sing melodies.")

        return a, b

    def test_mixed_epochs_raise(self, make_indexer, batches) -> None:
        a, b = batches
        indexer = make_indexer()
        indexer.index_directory(a)
        indexer.index_directory(b)

        with pytest.raises(DimensionMismatch):
            indexer.search("pianos music")

    def test_skip_policy(self, make_indexer, batches) -> None:
        a, b = batches
        indexer = make_indexer(on_stale_embeddings="skip")
        indexer.index_directory(a)
        indexer.index_directory(b)

        results = indexer.search("pianos music")

        assert results
        assert {r.document["filename"] for r in results} <= {"b1.txt", "b2.txt"}
        assert results[0].document["filename"] == "b1.txt"


class TestMaintenance:

    def test_index_stats(self, make_indexer, corpus) -> None:
        indexer = make_indexer()
        indexer.index_directory(corpus)

        stats = indexer.get_index_stats()

        assert stats["processing"]["documents_indexed"] == 4
        assert stats["processing"]["chunks_created"] == 5
        assert stats["storage"]["documents"] == 4
        assert stats["embedding"]["vocabulary_size"] == indexer.store.get_stats()["vocabulary_size"]

    def test_delete_document(self, make_indexer, corpus) -> None:
        indexer = make_indexer()
        outcome = indexer.index_document(corpus / "guide.md")

        assert indexer.delete_document(outcome.document["document_id"]) is True
        assert indexer.delete_document(outcome.document["document_id"]) is False
        assert _counts(indexer) == (0, 0, 0)

    def test_clear_index(self, make_indexer, corpus) -> None:
        indexer = make_indexer()
        indexer.index_directory(corpus)

        indexer.clear_index()

        assert _counts(indexer) == (0, 0, 0)
        assert indexer.stats["documents_indexed"] == 0
        with pytest.raises(VocabularyNotLoaded):
            indexer.search("tomatoes")

    def test_export_index(self, make_indexer, corpus, store_config) -> None:
        indexer = make_indexer()
        indexer.index_directory(corpus)

        exported = indexer.export_index()

        assert os.path.exists(exported["snapshot"])
        with open(os.path.join(store_config.backup_dir, "current-index.json"), encoding="utf-8") as f:
            assert len(json.load(f)["documents"]) == 4

    def test_context_manager_closes_store(self, make_indexer) -> None:
        with make_indexer() as indexer:
            pass

        assert indexer.store._closed
