"""
Chunk Overlapper

Purpose:
- Prefix each chunk (after the first) with the trailing words of the
  chunk before it
- Overlap is counted in words, not characters
- Overlap is always taken from the previous chunk's own text, never from
  text an earlier overlap pass already injected
"""

from dataclasses import replace
from typing import List

from docindex.chunking.types import Chunk
from docindex.utils.logging_utils import get_component_logger


logger = get_component_logger("ChunkOverlapper", component="ingestion")


class ChunkOverlapper:

    def __init__(self, overlap_words: int = 50):
        self.overlap_words = overlap_words

    def apply(self, chunks: List[Chunk]) -> List[Chunk]:

        if not chunks or self.overlap_words <= 0:
            return list(chunks)

        overlapped = [chunks[0]]

        for i in range(1, len(chunks)):

            chunk = chunks[i]
            prev_words = chunks[i - 1].content.split()
            tail = prev_words[-self.overlap_words:]

            if not tail:
                overlapped.append(chunk)
                continue

            overlapped.append(replace(
                chunk,
                content=" ".join(tail) + " " + chunk.content,
                metadata={
                    **chunk.metadata,
                    "has_overlap": True,
                    "overlap_words": len(tail)
                }
            ))

        logger.debug(
            f"Applied {self.overlap_words}-word overlap to {len(chunks) - 1} chunks"
        )

        return overlapped
