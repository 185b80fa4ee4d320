"""
Directory scanner.

Walks a directory tree in name order and collects files with a supported
extension. Dot-directories and dependency directories are never entered.
"""

import re
from pathlib import Path
from typing import Iterable, List, Optional

from docindex.utils.logging_utils import get_component_logger


logger = get_component_logger("DocumentScanner", component="ingestion")


def find_documents(
    directory,
    supported_extensions: Iterable[str],
    recursive: bool = True,
    pattern: Optional[str] = None,
    max_files: int = 1000,
    skip_dirs: Iterable[str] = ()
) -> List[Path]:

    extensions = {ext.lower() for ext in supported_extensions}
    skipped = tuple(skip_dirs)
    name_filter = re.compile(pattern, re.IGNORECASE) if pattern else None

    files: List[Path] = []

    def scan(folder: Path):

        try:
            entries = sorted(folder.iterdir(), key=lambda p: p.name)
        except OSError as e:
            logger.warning(f"Cannot read directory {folder}: {e}")
            return

        for entry in entries:

            if len(files) >= max_files:
                return

            if entry.is_dir():
                if (
                    recursive
                    and not entry.name.startswith(".")
                    and not entry.name.startswith(skipped)
                ):
                    scan(entry)

            elif entry.is_file():
                if entry.suffix.lower() not in extensions:
                    continue
                if name_filter and not name_filter.search(entry.name):
                    continue
                files.append(entry)

    scan(Path(directory))

    logger.info(f"Found {len(files)} documents under {directory}")

    return files
