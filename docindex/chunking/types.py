"""Chunk data contracts.

Strategies produce ChunkDraft objects; post-processing turns them into
immutable Chunk values that flow on to the embedder and the store.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Optional


class ContentType(str, Enum):
    TEXT = "text"
    MARKDOWN = "markdown"
    CODE = "code"


class ChunkType(str, Enum):
    SECTION = "section"
    PARTIAL_SECTION = "partial_section"
    SENTENCE_GROUP = "sentence_group"
    WORD_GROUP = "word_group"
    CODE_BLOCK = "code_block"
    CODE_BLOCK_FORCED = "code_block_forced"
    TEXT_BLOCK = "text_block"


@dataclass
class ChunkDraft:
    """Raw strategy output. Content may still carry structural markers."""

    content: str
    chunk_type: ChunkType
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Chunk:
    """A bounded span of a document's text, markers stripped."""

    id: str
    content: str
    chunk_type: ChunkType
    index: int
    start: int
    end: int
    metadata: Dict[str, Any] = field(default_factory=dict)
    document_id: Optional[str] = None

    @property
    def word_count(self) -> int:
        return len(self.content.split())

    def bind(self, document_id: str) -> "Chunk":
        """Attach the chunk to its owning document.

        The stored id is scoped by document so identical openings in two
        files never collide.
        """
        if self.document_id == document_id:
            return self
        return replace(self, id=f"{document_id}_{self.id}", document_id=document_id)
