"""Persisted dashboard UI state."""

import json
import logging
from pathlib import Path

from task_dashboard.db.engine import get_db, read_value, write_value

logger = logging.getLogger(__name__)

EXPANDED_STORAGE_KEY = "task-expanded-ids"


class ExpandedStateStore:
    """Remembers which top-level nodes are expanded, across restarts."""

    def __init__(self, db_path: Path, key: str = EXPANDED_STORAGE_KEY):
        self.db_path = Path(db_path)
        self.key = key

    def load(self) -> set[str]:
        with get_db(self.db_path) as db:
            raw = read_value(db, self.key)
        if not raw:
            return set()
        try:
            ids = json.loads(raw)
        except ValueError:
            logger.warning("Ignoring unreadable expanded-node state under %s", self.key)
            return set()
        if not isinstance(ids, list):
            return set()
        # Older snapshots may hold numeric ids.
        return {str(i) for i in ids}

    def save(self, expanded: set[str]):
        with get_db(self.db_path) as db:
            write_value(db, self.key, json.dumps(sorted(expanded)))
