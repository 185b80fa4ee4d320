from .backup import SnapshotExporter
from .sqlite_store import VectorStore

__all__ = ["SnapshotExporter", "VectorStore"]
