"""
Boundary Splitter

Splitting primitives shared by every strategy. Each level prefers the
largest unit that still fits: paragraph, then sentence, then word. A
single word larger than the limit is kept whole.
"""

import re
from typing import Any, Dict, List, Optional

from docindex.chunking.preprocessor import CODE_OPEN, open_code_blocks
from docindex.chunking.types import ChunkDraft, ChunkType


_PARAGRAPH_BREAK = re.compile(r"\n[ \t]*\n")
_SENTENCE_BREAK = re.compile(r"(?<=[.!?])\s+")

PARAGRAPH_JOIN = "\n\n"


def split_paragraphs(text: str) -> List[str]:
    """Split on blank lines without cutting through a marked code block."""

    paragraphs = []
    pending = None

    for piece in _PARAGRAPH_BREAK.split(text):
        pending = piece if pending is None else pending + PARAGRAPH_JOIN + piece

        if open_code_blocks(pending) > 0:
            continue

        if pending.strip():
            paragraphs.append(pending.strip())
        pending = None

    if pending and pending.strip():
        paragraphs.append(pending.strip())

    return paragraphs


def split_sentences(text: str) -> List[str]:
    return [s.strip() for s in _SENTENCE_BREAK.split(text) if s.strip()]


def split_by_words(
    text: str,
    chunk_size: int,
    metadata: Optional[Dict[str, Any]] = None
) -> List[ChunkDraft]:

    drafts = []
    current: List[str] = []
    length = 0

    for word in text.split():
        added = len(word) + (1 if current else 0)

        if current and length + added > chunk_size:
            drafts.append(_word_group(current, metadata))
            current, length = [], 0
            added = len(word)

        current.append(word)
        length += added

    if current:
        drafts.append(_word_group(current, metadata))

    return drafts


def _word_group(words: List[str], metadata: Optional[Dict[str, Any]]) -> ChunkDraft:
    return ChunkDraft(
        content=" ".join(words),
        chunk_type=ChunkType.WORD_GROUP,
        metadata={**(metadata or {}), "word_count": len(words)}
    )


def split_by_sentences(
    text: str,
    chunk_size: int,
    metadata: Optional[Dict[str, Any]] = None
) -> List[ChunkDraft]:

    drafts = []
    current: List[str] = []
    length = 0

    def flush():
        if current:
            drafts.append(ChunkDraft(
                content=" ".join(current),
                chunk_type=ChunkType.SENTENCE_GROUP,
                metadata={**(metadata or {}), "sentence_count": len(current)}
            ))

    for sentence in split_sentences(text):
        added = len(sentence) + (1 if current else 0)

        if length + added <= chunk_size:
            current.append(sentence)
            length += added
            continue

        flush()
        current, length = [], 0

        if len(sentence) > chunk_size:
            drafts.extend(split_by_words(sentence, chunk_size, metadata))
        else:
            current, length = [sentence], len(sentence)

    flush()
    return drafts


def pack_paragraphs(
    paragraphs: List[str],
    chunk_size: int,
    chunk_type: ChunkType,
    metadata: Optional[Dict[str, Any]] = None
) -> List[ChunkDraft]:
    """Greedily pack paragraphs up to chunk_size.

    Oversized paragraphs fall back to sentence splitting, which in turn
    falls back to word splitting.
    """

    drafts = []
    current: List[str] = []
    length = 0

    def flush():
        if current:
            drafts.append(ChunkDraft(
                content=PARAGRAPH_JOIN.join(current),
                chunk_type=chunk_type,
                metadata={**(metadata or {}), "paragraph_count": len(current)}
            ))

    for paragraph in paragraphs:
        added = len(paragraph) + (len(PARAGRAPH_JOIN) if current else 0)

        if length + added <= chunk_size:
            current.append(paragraph)
            length += added
            continue

        flush()
        current, length = [], 0

        if len(paragraph) <= chunk_size:
            current, length = [paragraph], len(paragraph)
        elif CODE_OPEN in paragraph:
            # marked code blocks are never cut
            current, length = [paragraph], len(paragraph)
        else:
            drafts.extend(split_by_sentences(paragraph, chunk_size, metadata))

    flush()
    return drafts

