"""
Chunking Strategies

Responsibilities:
- Markdown → sections by header, oversized sections split further
- Code     → line accumulation cut at brace depth zero
- Text     → paragraph packing with sentence / word fallback

Input is preprocessed text (markers still present). Output is a list of
ChunkDraft objects in document order.
"""

from typing import Dict, List, Optional

from docindex.chunking.detector import detect_code_language
from docindex.chunking.preprocessor import HEADER_LINE, function_name
from docindex.chunking.splitter import pack_paragraphs, split_paragraphs
from docindex.chunking.types import ChunkDraft, ChunkType


# =====================================================
# MARKDOWN
# =====================================================

def split_by_headers(content: str) -> List[Dict]:

    sections = []
    current = {"header": None, "level": 0, "lines": []}

    for line in content.split("\n"):
        match = HEADER_LINE.match(line.strip())

        if match:
            if "".join(current["lines"]).strip():
                sections.append(current)

            current = {
                "header": match.group(2).strip(),
                "level": int(match.group(1)),
                "lines": [line]
            }
        else:
            current["lines"].append(line)

    if "".join(current["lines"]).strip():
        sections.append(current)

    return [
        {
            "header": s["header"],
            "level": s["level"],
            "content": "\n".join(s["lines"]).strip()
        }
        for s in sections
    ]


def chunk_markdown(content: str, chunk_size: int) -> List[ChunkDraft]:

    drafts = []

    for section in split_by_headers(content):

        meta = {"header": section["header"], "level": section["level"]}

        if len(section["content"]) <= chunk_size:
            drafts.append(ChunkDraft(
                content=section["content"],
                chunk_type=ChunkType.SECTION,
                metadata=meta
            ))
            continue

        parts = pack_paragraphs(
            split_paragraphs(section["content"]),
            chunk_size,
            ChunkType.PARTIAL_SECTION,
            meta
        )

        for part_index, part in enumerate(parts):
            part.metadata["part_index"] = part_index
            drafts.append(part)

    return drafts


# =====================================================
# CODE
# =====================================================

def _brace_delta(line: str) -> int:
    return line.count("{") - line.count("}")


def _code_draft(lines: List[str], chunk_type: ChunkType, function: Optional[str]) -> ChunkDraft:
    code = "\n".join(lines)
    return ChunkDraft(
        content=code.strip(),
        chunk_type=chunk_type,
        metadata={
            "function": function,
            "language": detect_code_language(code)
        }
    )


def chunk_code(content: str, chunk_size: int, max_chunk_size: int) -> List[ChunkDraft]:

    drafts = []
    current: List[str] = []
    length = 0
    depth = 0
    function = None

    for line in content.split("\n"):

        name = function_name(line)
        added = len(line) + 1

        if current and length + added > chunk_size:

            if depth == 0:
                if "".join(current).strip():
                    drafts.append(_code_draft(current, ChunkType.CODE_BLOCK, function))
                current, length = [], 0

            elif length + added > max_chunk_size:
                # no depth-zero boundary before the hard limit
                current.append(line)
                drafts.append(_code_draft(current, ChunkType.CODE_BLOCK_FORCED, name or function))
                current, length = [], 0
                depth = max(0, depth + _brace_delta(line))
                function = name or function
                continue

        if name:
            function = name

        current.append(line)
        length += added
        depth = max(0, depth + _brace_delta(line))

    if "".join(current).strip():
        drafts.append(_code_draft(current, ChunkType.CODE_BLOCK, function))

    return drafts


# =====================================================
# PLAIN TEXT
# =====================================================

def chunk_text(content: str, chunk_size: int) -> List[ChunkDraft]:
    return pack_paragraphs(
        split_paragraphs(content),
        chunk_size,
        ChunkType.TEXT_BLOCK
    )
