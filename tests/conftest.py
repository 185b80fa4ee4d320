"""Shared pytest fixtures."""

import os
import tempfile

# log files must land outside the repo before any docindex module loads
os.environ.setdefault("DOCINDEX_LOG_DIR", tempfile.mkdtemp(prefix="docindex-logs-"))

import pytest  # noqa: E402

from docindex.config.settings import (  # noqa: E402
    ChunkerConfig,
    EmbedderConfig,
    IndexerConfig,
    StoreConfig,
)
from docindex.indexer.orchestrator import DocumentIndexer  # noqa: E402
from docindex.store.sqlite_store import VectorStore  # noqa: E402


@pytest.fixture
def store_config(tmp_path):
    return StoreConfig(
        db_path=str(tmp_path / "index.db"),
        backup_dir=str(tmp_path / "backups"),
        auto_backup=False
    )


@pytest.fixture
def store(store_config):
    vector_store = VectorStore(store_config)
    yield vector_store
    vector_store.close()


@pytest.fixture
def make_indexer(store_config):
    """Build indexers over one temporary store."""

    created = []

    def factory(**overrides):
        indexer = DocumentIndexer(
            config=IndexerConfig(**overrides),
            chunker_config=ChunkerConfig(
                chunk_size=500, overlap=0, min_chunk_size=1, max_chunk_size=1000
            ),
            embedder_config=EmbedderConfig(dimensions=500),
            store_config=store_config
        )
        created.append(indexer)
        return indexer

    yield factory

    for indexer in created:
        indexer.close()


@pytest.fixture
def corpus(tmp_path):
    """Small mixed corpus with directories the scanner must ignore."""

    root = tmp_path / "corpus"
    (root / "nested").mkdir(parents=True)
    (root / "node_modules" / "pkg").mkdir(parents=True)
    (root / ".hidden").mkdir()

    (root / "guide.md").write_text(
        "# Decorators\n\n"
        "Python decorators wrap functions and modify behaviour elegantly.\n\n"
        "# Generators\n\n"
        "Generators yield values lazily, saving memory during iteration.\n",
        encoding="utf-8"
    )
    (root / "notes.txt").write_text(
        "Gardening tomatoes needs sunlight and water. "
        "Tomatoes grow quickly in warm gardening seasons.",
        encoding="utf-8"
    )
    (root / "app.py").write_text(
        "import sqlite3\n\n\n"
        "def open_database(path):\n"
        "    connection = sqlite3.connect(path)\n"
        "    return connection\n",
        encoding="utf-8"
    )
    (root / "nested" / "extra.txt").write_text(
        "Astronomy telescopes observe distant galaxies.",
        encoding="utf-8"
    )

    (root / "node_modules" / "pkg" / "readme.md").write_text("# Vendored\n\nIgnore me.")
    (root / ".hidden" / "secret.md").write_text("# Secret\n\nIgnore me too.")
    (root / "image.png").write_bytes(b"\x89PNG\r\n")

    return root
