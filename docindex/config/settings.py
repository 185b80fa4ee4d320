"""
DocIndex — Component Configuration

One explicit struct per component. Every field has a default, values are
validated once at construction, and `from_settings()` reads the matching
YAML section through the system loader.
"""

from dataclasses import dataclass, fields
from typing import Any, Dict, Optional, Tuple

from docindex.config.system_loader import get_database_config, get_system_config
from docindex.errors import ConfigurationError


MAX_VOCABULARY_CAP = 10000
STALE_POLICIES = ("error", "skip")


def _known(cls, section: Dict[str, Any]) -> Dict[str, Any]:
    names = {f.name for f in fields(cls)}
    return {k: v for k, v in (section or {}).items() if k in names}


def _require_positive(name: str, value: int):
    if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
        raise ConfigurationError(f"{name} must be a positive integer, got {value!r}")


# =====================================================
# CHUNKING
# =====================================================

@dataclass(frozen=True)
class ChunkerConfig:
    chunk_size: int = 500
    overlap: int = 50
    min_chunk_size: int = 100
    max_chunk_size: int = 1000
    preserve_structure: bool = True

    def __post_init__(self):
        _require_positive("chunk_size", self.chunk_size)
        _require_positive("min_chunk_size", self.min_chunk_size)
        _require_positive("max_chunk_size", self.max_chunk_size)

        if not isinstance(self.overlap, int) or self.overlap < 0:
            raise ConfigurationError(f"overlap must be >= 0, got {self.overlap!r}")

        if self.min_chunk_size > self.max_chunk_size:
            raise ConfigurationError(
                f"min_chunk_size ({self.min_chunk_size}) exceeds "
                f"max_chunk_size ({self.max_chunk_size})"
            )

    @classmethod
    def from_settings(cls, **overrides) -> "ChunkerConfig":
        section = get_system_config().get("chunking", {})
        return cls(**{**_known(cls, section), **overrides})


# =====================================================
# EMBEDDING
# =====================================================

@dataclass(frozen=True)
class EmbedderConfig:
    dimensions: int = 300
    max_vocabulary: int = MAX_VOCABULARY_CAP
    normalize: bool = True
    enhanced: bool = False

    def __post_init__(self):
        _require_positive("dimensions", self.dimensions)
        _require_positive("max_vocabulary", self.max_vocabulary)

        if self.max_vocabulary > MAX_VOCABULARY_CAP:
            raise ConfigurationError(
                f"max_vocabulary cannot exceed {MAX_VOCABULARY_CAP}"
            )

    @property
    def vocabulary_cap(self) -> int:
        return min(self.dimensions, self.max_vocabulary)

    @property
    def method(self) -> str:
        return "tfidf_enhanced" if self.enhanced else "tfidf"

    @classmethod
    def from_settings(cls, **overrides) -> "EmbedderConfig":
        section = get_system_config().get("embedding", {})
        return cls(**{**_known(cls, section), **overrides})


# =====================================================
# STORAGE
# =====================================================

@dataclass(frozen=True)
class StoreConfig:
    db_path: str = "./document_index.db"
    backup_dir: str = "./index-backups"
    auto_backup: bool = True
    backup_after_batch: bool = False
    batch_size: int = 100
    fail_soft: bool = True

    def __post_init__(self):
        if not self.db_path:
            raise ConfigurationError("db_path is required")
        _require_positive("batch_size", self.batch_size)

    @classmethod
    def from_settings(cls, **overrides) -> "StoreConfig":
        section = dict(get_database_config().get("storage", {}))
        if "path" in section:
            section["db_path"] = section.pop("path")

        project = get_system_config().get("project", {})
        section.setdefault("fail_soft", project.get("fail_soft", True))

        return cls(**{**_known(cls, section), **overrides})


# =====================================================
# INDEXING
# =====================================================

DEFAULT_EXTENSIONS = (
    ".md", ".markdown", ".txt", ".text", ".js", ".javascript",
    ".py", ".python", ".java", ".cpp", ".c", ".h", ".cs", ".go",
    ".rs", ".php", ".rb", ".tsx", ".ts", ".json", ".xml", ".html",
    ".css", ".scss", ".less", ".yaml", ".yml", ".ini", ".conf",
)

DEFAULT_SKIP_DIRS = (
    "node_modules", "bower_components", "vendor", "venv",
    "__pycache__", "site-packages",
)


@dataclass(frozen=True)
class IndexerConfig:
    recursive: bool = True
    max_files: int = 100
    scan_limit: int = 1000
    force: bool = False
    on_stale_embeddings: str = "error"
    skip_dirs: Tuple[str, ...] = DEFAULT_SKIP_DIRS
    supported_extensions: Tuple[str, ...] = DEFAULT_EXTENSIONS
    top_k: int = 10
    min_similarity: float = 0.1
    pattern: Optional[str] = None

    def __post_init__(self):
        _require_positive("max_files", self.max_files)
        _require_positive("scan_limit", self.scan_limit)
        _require_positive("top_k", self.top_k)

        if self.on_stale_embeddings not in STALE_POLICIES:
            raise ConfigurationError(
                f"on_stale_embeddings must be one of {STALE_POLICIES}, "
                f"got {self.on_stale_embeddings!r}"
            )

        if not -1.0 <= float(self.min_similarity) <= 1.0:
            raise ConfigurationError("min_similarity must be within [-1, 1]")

        # YAML hands us lists
        object.__setattr__(self, "skip_dirs", tuple(self.skip_dirs))
        object.__setattr__(
            self,
            "supported_extensions",
            tuple(ext.lower() for ext in self.supported_extensions)
        )

    @classmethod
    def from_settings(cls, **overrides) -> "IndexerConfig":
        config = get_system_config()
        section = dict(config.get("indexing", {}))

        retrieval = config.get("retrieval", {})
        section.setdefault("top_k", retrieval.get("top_k", 10))
        section.setdefault("min_similarity", retrieval.get("min_similarity", 0.1))

        return cls(**{**_known(cls, section), **overrides})
