"""
Content Type Detector

Responsibilities:
- Sniff raw text for markdown or code markers
- Map file extensions to a content type
- Guess the programming language of a code chunk (advisory only)
"""

import re

from docindex.chunking.types import ContentType


CODE_EXTENSIONS = frozenset({
    ".js", ".ts", ".tsx", ".py", ".java", ".cpp", ".c", ".h",
    ".cs", ".go", ".rs", ".php", ".rb",
})

MARKDOWN_EXTENSIONS = frozenset({".md", ".markdown"})

_MD_HEADER = re.compile(r"^#{1,6}\s+\S", re.MULTILINE)
_MD_LINK = re.compile(r"\[[^\]\n]*\]\([^)\n]*\)")
_CODE_KEYWORD = re.compile(
    r"^\s*(?:export\s+)?(?:async\s+)?(?:function|def|class|import|interface|struct)\s+\w+",
    re.MULTILINE
)

# one brace pair per ten lines reads as code
_BRACE_DENSITY = 0.1


def looks_like_markdown(text: str) -> bool:
    return bool(
        _MD_HEADER.search(text)
        or "```" in text
        or _MD_LINK.search(text)
    )


def looks_like_code(text: str) -> bool:
    if _CODE_KEYWORD.search(text):
        return True

    lines = max(1, text.count("\n") + 1)
    pairs = min(text.count("{"), text.count("}"))
    return pairs > 0 and pairs / lines >= _BRACE_DENSITY


def detect_content_type(text: str) -> ContentType:

    if looks_like_markdown(text):
        return ContentType.MARKDOWN

    if looks_like_code(text):
        return ContentType.CODE

    return ContentType.TEXT


def content_type_for_file(extension: str, text: str) -> ContentType:
    """Extension first, then markdown sniffing, then plain text."""

    extension = extension.lower()

    if extension in CODE_EXTENSIONS:
        return ContentType.CODE

    if extension in MARKDOWN_EXTENSIONS or looks_like_markdown(text):
        return ContentType.MARKDOWN

    return ContentType.TEXT


def detect_code_language(code: str) -> str:

    if "public class" in code or "private " in code:
        return "java"
    if "#include" in code or "int main" in code:
        return "cpp"
    if "function " in code or "const " in code or "let " in code:
        return "javascript"
    if "def " in code or "import " in code or "class " in code:
        return "python"
    return "unknown"
