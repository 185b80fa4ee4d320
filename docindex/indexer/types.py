"""
Typed pipeline stages.

    RawDocument → ChunkedDocument → EmbeddedDocument

Each stage carries the previous one, so a document's embeddings are
always paired with its own chunks and never re-sliced from a flat list.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from docindex.chunking.types import Chunk, ContentType
from docindex.vector.embedder import Embedding


@dataclass
class RawDocument:
    id: str
    filename: str
    path: str
    content_type: ContentType
    size_bytes: int
    content_hash: str
    content: str
    metadata: Dict[str, Any] = field(default_factory=dict)

    def record(self) -> Dict[str, Any]:
        """Keyword arguments for VectorStore.put_document."""
        return {
            "document_id": self.id,
            "filename": self.filename,
            "path": self.path,
            "content_type": self.content_type.value,
            "size_bytes": self.size_bytes,
            "content_hash": self.content_hash,
            "metadata": self.metadata
        }


@dataclass
class ChunkedDocument:
    raw: RawDocument
    chunks: List[Chunk]
    # stored already with the same content; only its vectors need refreshing
    unchanged: bool = False

    @property
    def id(self) -> str:
        return self.raw.id


@dataclass
class EmbeddedDocument:
    chunked: ChunkedDocument
    embeddings: List[Embedding]

    @property
    def raw(self) -> RawDocument:
        return self.chunked.raw

    @property
    def chunks(self) -> List[Chunk]:
        return self.chunked.chunks


@dataclass
class IndexOutcome:
    document: Dict[str, Any]
    chunks: int
    embeddings: int
    epoch: str


@dataclass
class DirectoryResult:
    total: int = 0
    indexed: int = 0
    skipped: int = 0
    refreshed: int = 0
    errors: List[Dict[str, str]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class SearchResult:
    similarity: float
    chunk: Dict[str, Any]
    document: Dict[str, Any]
    epoch: Optional[str] = None
