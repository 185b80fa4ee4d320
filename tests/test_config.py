"""Tests for configuration loading and validation."""

from dataclasses import fields

import pytest

from docindex.config.settings import (
    ChunkerConfig,
    EmbedderConfig,
    IndexerConfig,
    StoreConfig,
)
from docindex.config.system_loader import get_database_config, get_system_config
from docindex.errors import ConfigurationError


class TestPackagedDefaults:

    def test_settings_sections(self) -> None:
        config = get_system_config()
        assert {"project", "chunking", "embedding", "indexing", "retrieval"} <= set(config)

    def test_chunker_defaults(self) -> None:
        config = ChunkerConfig.from_settings()

        assert (config.chunk_size, config.overlap) == (500, 50)
        assert (config.min_chunk_size, config.max_chunk_size) == (100, 1000)

    def test_overrides_win(self) -> None:
        assert ChunkerConfig.from_settings(chunk_size=200).chunk_size == 200

    def test_store_maps_path(self) -> None:
        config = StoreConfig.from_settings()

        assert config.db_path == "./document_index.db"
        assert config.fail_soft is True

    def test_indexer_reads_retrieval_section(self) -> None:
        config = IndexerConfig.from_settings()

        assert config.top_k == 10
        assert config.min_similarity == pytest.approx(0.1)
        assert ".md" in config.supported_extensions
        assert isinstance(config.skip_dirs, tuple)

    @pytest.mark.parametrize("section,cls", [
        ("chunking", ChunkerConfig),
        ("embedding", EmbedderConfig),
        ("indexing", IndexerConfig),
    ])
    def test_every_yaml_key_is_a_field(self, section, cls) -> None:
        names = {f.name for f in fields(cls)}
        assert set(get_system_config()[section]) <= names

    def test_every_storage_key_is_a_field(self) -> None:
        names = {f.name for f in fields(StoreConfig)}
        assert set(get_database_config()["storage"]) - {"path"} <= names


class TestConfigDirectory:

    def test_env_override(self, tmp_path, monkeypatch) -> None:
        (tmp_path / "settings.yaml").write_text(
            "project:\n  fail_soft: false\n"
            "chunking:\n  chunk_size: 321\n"
            "embedding:\n  dimensions: 64\n",
            encoding="utf-8"
        )
        (tmp_path / "db.yaml").write_text(
            "storage:\n  path: /tmp/custom.db\n",
            encoding="utf-8"
        )
        monkeypatch.setenv("DOCINDEX_CONFIG_DIR", str(tmp_path))

        assert ChunkerConfig.from_settings().chunk_size == 321
        assert EmbedderConfig.from_settings().vocabulary_cap == 64

        store = StoreConfig.from_settings()
        assert store.db_path == "/tmp/custom.db"
        assert store.fail_soft is False

    def test_missing_file(self, tmp_path, monkeypatch) -> None:
        monkeypatch.setenv("DOCINDEX_CONFIG_DIR", str(tmp_path))

        with pytest.raises(FileNotFoundError):
            get_system_config()


class TestValidation:

    @pytest.mark.parametrize("options", [
        {"chunk_size": 0},
        {"min_chunk_size": 2000},
        {"overlap": -1},
        {"max_chunk_size": "big"},
    ])
    def test_bad_chunker_options(self, options) -> None:
        with pytest.raises(ConfigurationError):
            ChunkerConfig(**options)

    def test_vocabulary_cap(self) -> None:
        assert EmbedderConfig(dimensions=50).vocabulary_cap == 50
        assert EmbedderConfig(dimensions=20000, max_vocabulary=10000).vocabulary_cap == 10000

    def test_vocabulary_ceiling(self) -> None:
        with pytest.raises(ConfigurationError):
            EmbedderConfig(max_vocabulary=20000)

    def test_method(self) -> None:
        assert EmbedderConfig().method == "tfidf"
        assert EmbedderConfig(enhanced=True).method == "tfidf_enhanced"

    def test_stale_policy(self) -> None:
        with pytest.raises(ConfigurationError):
            IndexerConfig(on_stale_embeddings="ignore")

    def test_extensions_lowercased(self) -> None:
        config = IndexerConfig(supported_extensions=[".MD", ".Txt"])
        assert config.supported_extensions == (".md", ".txt")

    def test_configuration_error_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            StoreConfig(db_path="")
