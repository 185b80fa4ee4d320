"""
Text Preprocessor

Normalizes raw document text and wraps structural elements in invisible
markers so that boundary finding never cuts through them. Every marker is
a token of the form MARK <tag> MARK, where MARK is U+2063 (invisible
separator), so stripping is a single substitution.
"""

import re
from typing import Optional

from docindex.chunking.types import ContentType
from docindex.utils.logging_utils import get_component_logger


logger = get_component_logger("TextPreprocessor", component="ingestion")


MARK = "\u2063"

_TOKEN = re.compile(f"{MARK}[^{MARK}\n]*{MARK}")

_FENCE = re.compile(r"```([^\n`]*)\n(.*?)```", re.DOTALL)
_HEADER = re.compile(r"^(#{1,6})[ \t]+(.+?)[ \t]*#*[ \t]*$", re.MULTILINE)
_FUNCTION_DEF = re.compile(
    r"((?:function|def|class|interface|struct)\s+\w+[^\n]*?(?:\{|:))"
)

HEADER_LINE = re.compile(f"^{MARK}H(\\d){MARK}(.+?){MARK}/H{MARK}$")
FUNCTION_SPAN = re.compile(f"{MARK}F{MARK}(.+?){MARK}/F{MARK}")
_FUNCTION_NAME = re.compile(r"(?:function|def|class|interface|struct)\s+(\w+)")

CODE_OPEN = f"{MARK}C:"
CODE_CLOSE = f"{MARK}/C{MARK}"


# -------------------------------------------------
# Markers
# -------------------------------------------------

def header_marker(level: int, title: str) -> str:
    return f"{MARK}H{level}{MARK}{title}{MARK}/H{MARK}"


def code_marker(language: str, code: str) -> str:
    return f"{CODE_OPEN}{language or 'text'}{MARK}{code}{CODE_CLOSE}"


def function_marker(signature: str) -> str:
    return f"{MARK}F{MARK}{signature}{MARK}/F{MARK}"


def strip_markers(text: str) -> str:
    return _TOKEN.sub("", text)


def open_code_blocks(text: str) -> int:
    """Number of code blocks opened but not closed within text."""
    return text.count(CODE_OPEN) - text.count(CODE_CLOSE)


def function_name(line: str) -> Optional[str]:
    span = FUNCTION_SPAN.search(line)
    if not span:
        return None
    match = _FUNCTION_NAME.search(span.group(1))
    return match.group(1) if match else span.group(1).strip()


# -------------------------------------------------
# Normalization
# -------------------------------------------------

def normalize(text: str) -> str:
    text = text.replace(MARK, "")
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    return re.sub(r"\n{3,}", "\n\n", text)


def _fence_language(info: str) -> str:
    # info strings may carry attributes after the language
    words = info.split()
    return words[0] if words else ""


def _mark_markdown(text: str) -> str:

    def mark_headers(part: str) -> str:
        return _HEADER.sub(
            lambda m: "\n" + header_marker(len(m.group(1)), m.group(2)) + "\n",
            part
        )

    pieces = []
    cursor = 0

    # headers are only recognized outside fenced code
    for fence in _FENCE.finditer(text):
        pieces.append(mark_headers(text[cursor:fence.start()]))
        pieces.append(
            "\n" + code_marker(_fence_language(fence.group(1)), fence.group(2).strip("\n")) + "\n"
        )
        cursor = fence.end()

    pieces.append(mark_headers(text[cursor:]))
    return "".join(pieces)


def _mark_code(text: str) -> str:
    return _FUNCTION_DEF.sub(lambda m: function_marker(m.group(1)), text)


def preprocess(
    text: str,
    content_type: ContentType,
    preserve_structure: bool = True
) -> str:

    processed = normalize(text)

    if preserve_structure:
        if content_type == ContentType.MARKDOWN:
            processed = _mark_markdown(processed)
        elif content_type == ContentType.CODE:
            processed = _mark_code(processed)

        processed = re.sub(r"\n{3,}", "\n\n", processed)

    logger.debug(
        f"Preprocessed {len(text)} chars → {len(processed)} chars ({content_type.value})"
    )

    return processed.strip()
