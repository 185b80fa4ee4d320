"""
DocIndex — Chunking Orchestrator

Connects:
- Content type detection
- Preprocessing (structure markers)
- Strategy (markdown / code / text)
- Post-processing (marker stripping, min-size filter, offsets)
- Overlap (plain text only)

The chunker is a pure function of (text, content type, config): no state
survives between calls.
"""

import re
from collections import Counter
from datetime import datetime, timezone
from typing import Dict, List, Optional

from docindex.chunking.detector import detect_content_type
from docindex.chunking.overlapper import ChunkOverlapper
from docindex.chunking.preprocessor import normalize, preprocess, strip_markers
from docindex.chunking.strategies import chunk_code, chunk_markdown, chunk_text
from docindex.chunking.types import Chunk, ChunkDraft, ContentType
from docindex.config.settings import ChunkerConfig
from docindex.utils.hashing import chunk_id
from docindex.utils.logging_utils import get_component_logger


logger = get_component_logger("DocumentChunker", component="ingestion")

# words used to anchor a chunk inside the source text
_ANCHOR_WORDS = 6


class DocumentChunker:

    def __init__(self, config: Optional[ChunkerConfig] = None):
        self.config = config or ChunkerConfig()
        self.overlapper = ChunkOverlapper(self.config.overlap)

    # =====================================================
    # MAIN ENTRY
    # =====================================================

    def chunk(self, text: str, content_type: Optional[ContentType] = None) -> List[Chunk]:

        if not text or not text.strip():
            return []

        content_type = ContentType(content_type) if content_type else detect_content_type(text)

        processed = preprocess(text, content_type, self.config.preserve_structure)
        drafts = self._run_strategy(processed, content_type)

        logger.debug(f"{content_type.value} strategy produced {len(drafts)} drafts")

        chunks = self._finalize(drafts, normalize(text), content_type)

        if content_type == ContentType.TEXT:
            chunks = self.overlapper.apply(chunks)

        logger.info(f"Chunked {len(text)} chars into {len(chunks)} chunks ({content_type.value})")

        return chunks

    # -------------------------------------------------
    # STRATEGY
    # -------------------------------------------------

    def _run_strategy(self, processed: str, content_type: ContentType) -> List[ChunkDraft]:

        if content_type == ContentType.MARKDOWN:
            return chunk_markdown(processed, self.config.chunk_size)

        if content_type == ContentType.CODE:
            return chunk_code(
                processed,
                self.config.chunk_size,
                self.config.max_chunk_size
            )

        return chunk_text(processed, self.config.chunk_size)

    # -------------------------------------------------
    # POST-PROCESSING
    # -------------------------------------------------

    def _finalize(
        self,
        drafts: List[ChunkDraft],
        source: str,
        content_type: ContentType
    ) -> List[Chunk]:

        created_at = datetime.now(timezone.utc).isoformat()
        chunks = []
        dropped = 0
        cursor = 0

        for draft in drafts:

            content = strip_markers(draft.content).strip()

            if len(content) < self.config.min_chunk_size:
                if content:
                    dropped += 1
                continue

            index = len(chunks)
            start, end = _locate(content, source, cursor)
            cursor = start

            chunks.append(Chunk(
                id=chunk_id(index, content),
                content=content,
                chunk_type=draft.chunk_type,
                index=index,
                start=start,
                end=end,
                metadata={
                    **draft.metadata,
                    "chunk_index": index,
                    "length": len(content),
                    "word_count": len(content.split()),
                    "content_type": content_type.value,
                    "has_overlap": False,
                    "created_at": created_at
                }
            ))

        if dropped:
            logger.info(
                f"Dropped {dropped} chunks shorter than {self.config.min_chunk_size} chars"
            )

        return chunks


def _locate(content: str, source: str, cursor: int):
    """Find the span of a cleaned chunk within the normalized source.

    Matching is by leading and trailing words with flexible whitespace,
    since splitting may have rejoined lines. Falls back to the cursor.
    """

    words = content.split()

    head = re.compile(r"\s+".join(re.escape(w) for w in words[:_ANCHOR_WORDS]))
    match = head.search(source, cursor)

    if not match:
        return cursor, min(len(source), cursor + len(content))

    start = match.start()
    tail = re.compile(r"\s+".join(re.escape(w) for w in words[-_ANCHOR_WORDS:]))
    tail_match = tail.search(source, start)

    end = tail_match.end() if tail_match else min(len(source), start + len(content))
    return start, end


# =====================================================
# STATISTICS
# =====================================================

def chunking_stats(chunks: List[Chunk]) -> Dict:

    if not chunks:
        return {
            "total": 0,
            "average_length": 0,
            "average_word_count": 0,
            "type_distribution": {},
            "size_distribution": {"small": 0, "medium": 0, "large": 0}
        }

    lengths = [len(c.content) for c in chunks]

    sizes = Counter(
        "small" if n < 300 else "medium" if n < 700 else "large"
        for n in lengths
    )

    return {
        "total": len(chunks),
        "average_length": round(sum(lengths) / len(chunks)),
        "average_word_count": round(sum(c.word_count for c in chunks) / len(chunks)),
        "type_distribution": dict(Counter(c.chunk_type.value for c in chunks)),
        "size_distribution": {
            "small": sizes["small"],
            "medium": sizes["medium"],
            "large": sizes["large"]
        }
    }
