"""
DocIndex — Component Loggers

Every module asks for a named logger bound to one component. Loggers of
the same component write to one rotating file:

    ingestion → chunking, vocabulary build, embedding, directory scans
    retrieval → query embedding and ranking
    storage   → SQLite writes, reads and snapshots

Environment:
- DOCINDEX_LOG_DIR             directory for component files (default: logs)
- DOCINDEX_LOG_FILE            single file for loggers without a component
- DOCINDEX_<COMPONENT>_LOG_FILE  explicit file for one component
- DOCINDEX_LOG_LEVEL           level name (default: INFO)

Paths are resolved when a logger is first created, not at import.
"""

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Dict, Optional

ROOT_LOGGER = "docindex"
COMPONENTS = ("ingestion", "retrieval", "storage")

MAX_BYTES = 5 * 1024 * 1024
BACKUP_COUNT = 5

_FORMATTER = logging.Formatter(
    "[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s"
)

# one rotating handler per file, shared by every logger writing to it
_file_handlers: Dict[Path, logging.Handler] = {}


def _log_dir() -> Path:
    return Path(os.getenv("DOCINDEX_LOG_DIR", "logs"))


def _default_level() -> int:
    level = logging.getLevelName(os.getenv("DOCINDEX_LOG_LEVEL", "INFO").upper())
    return level if isinstance(level, int) else logging.INFO


def log_path_for(component: Optional[str] = None, log_file: Optional[str] = None) -> Path:
    """Resolve where a logger of `component` writes."""

    if log_file:
        return Path(log_file)

    if component in COMPONENTS:
        explicit = os.getenv(f"DOCINDEX_{component.upper()}_LOG_FILE")
        if explicit:
            return Path(explicit)
        return _log_dir() / f"{component}.log"

    return Path(os.getenv("DOCINDEX_LOG_FILE") or _log_dir() / "docindex.log")


def _file_handler(path: Path) -> Optional[logging.Handler]:

    key = path.resolve()
    if key in _file_handlers:
        return _file_handlers[key]

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(
            path,
            maxBytes=MAX_BYTES,
            backupCount=BACKUP_COUNT,
            encoding="utf-8"
        )
    except OSError:
        logging.getLogger(ROOT_LOGGER).exception(
            "Failed to initialize file logging at %s", path
        )
        return None

    handler.setFormatter(_FORMATTER)
    _file_handlers[key] = handler
    return handler


def get_logger(
    name: str,
    level: Optional[int] = None,
    log_file: Optional[str] = None
) -> logging.Logger:

    logger = logging.getLogger(f"{ROOT_LOGGER}.{name}")

    if getattr(logger, "_docindex_configured", False):
        if level is not None:
            logger.setLevel(level)
        return logger

    logger.setLevel(level if level is not None else _default_level())
    logger.propagate = False

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(_FORMATTER)
    logger.addHandler(stream_handler)

    # stream-only when the file cannot be opened
    handler = _file_handler(Path(log_file) if log_file else log_path_for())
    if handler is not None:
        logger.addHandler(handler)

    logger._docindex_configured = True
    return logger


def get_component_logger(
    name: str,
    component: Optional[str] = None,
    level: Optional[int] = None,
    log_file: Optional[str] = None
) -> logging.Logger:
    return get_logger(
        name,
        level=level,
        log_file=str(log_path_for(component, log_file))
    )


def set_level(level: int):
    """Change the level of every logger created through this module."""

    prefix = f"{ROOT_LOGGER}."
    for logger_name, logger in logging.Logger.manager.loggerDict.items():
        if logger_name.startswith(prefix) and isinstance(logger, logging.Logger):
            logger.setLevel(level)
