"""
Deterministic identifiers.

- document ids come from the file path (content independent)
- content hashes come from the raw bytes (change detection)
- chunk ids come from (chunk index, content prefix)
"""

import hashlib
from typing import Union


def document_id(path: str) -> str:
    return hashlib.sha256(path.encode("utf-8")).hexdigest()[:16]


def content_hash(data: Union[bytes, str]) -> str:
    if isinstance(data, str):
        data = data.encode("utf-8")
    return hashlib.md5(data).hexdigest()


def chunk_id(index: int, content: str) -> str:
    digest = hashlib.md5(f"{index}-{content[:100]}".encode("utf-8")).hexdigest()
    return f"chunk_{digest[:12]}"
