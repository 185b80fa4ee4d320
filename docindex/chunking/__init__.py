from .orchestrator import DocumentChunker, chunking_stats
from .types import Chunk, ChunkType, ContentType

__all__ = [
    "DocumentChunker",
    "chunking_stats",
    "Chunk",
    "ChunkType",
    "ContentType",
]
