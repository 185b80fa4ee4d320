from .system_loader import get_database_config, get_system_config
from .settings import ChunkerConfig, EmbedderConfig, IndexerConfig, StoreConfig

__all__ = [
    "get_database_config",
    "get_system_config",
    "ChunkerConfig",
    "EmbedderConfig",
    "IndexerConfig",
    "StoreConfig",
]
