from .orchestrator import DocumentIndexer
from .scanner import find_documents
from .types import (
    ChunkedDocument,
    DirectoryResult,
    EmbeddedDocument,
    IndexOutcome,
    RawDocument,
    SearchResult,
)

__all__ = [
    "DocumentIndexer",
    "find_documents",
    "ChunkedDocument",
    "DirectoryResult",
    "EmbeddedDocument",
    "IndexOutcome",
    "RawDocument",
    "SearchResult",
]
