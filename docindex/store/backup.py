"""
JSON snapshot exporter.

Writes a timestamped snapshot plus a rolling `current-index.json` so the
index can be inspected or restored without SQLite.
"""

import json
import os
from datetime import datetime, timezone
from typing import Dict, List, Optional

from docindex.utils.logging_utils import get_component_logger


logger = get_component_logger("SnapshotExporter", component="storage")

CURRENT_SNAPSHOT = "current-index.json"


class SnapshotExporter:

    def __init__(self, backup_dir: str):
        self.backup_dir = os.path.abspath(backup_dir)

    def export(
        self,
        tables: Dict[str, List[Dict]],
        stats: Dict,
        vocabulary: Optional[Dict] = None
    ) -> str:

        os.makedirs(self.backup_dir, exist_ok=True)

        exported_at = datetime.now(timezone.utc).isoformat()
        stamp = exported_at.replace(":", "-").replace(".", "-").replace("+", "-")

        payload = {
            "export_time": exported_at,
            "stats": stats,
            **tables,
            # portable form, loadable with Vocabulary.from_dict
            "vocabulary_export": vocabulary
        }

        backup_path = os.path.join(self.backup_dir, f"index-backup-{stamp}.json")

        for path in (backup_path, os.path.join(self.backup_dir, CURRENT_SNAPSHOT)):
            with open(path, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2, default=str)

        logger.info(
            f"Exported snapshot ({', '.join(f'{k}={len(v)}' for k, v in tables.items())}) "
            f"to {backup_path}"
        )

        return backup_path
