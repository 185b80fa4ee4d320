"""
DocIndex — local document indexing and semantic retrieval.

This package contains the whole engine:
- Chunking (markdown / code / plain text strategies)
- TF-IDF vocabulary building and vectorization
- SQLite persistence with JSON snapshots
- Indexing and search orchestration

Example Usage:

    from docindex import DocumentIndexer

    with DocumentIndexer() as indexer:
        indexer.index_directory("docs/")
        results = indexer.search("how do I configure logging?")
"""

from .indexer import DocumentIndexer

__all__ = ["DocumentIndexer"]

__version__ = "1.0.0"
