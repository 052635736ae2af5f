"""Export backend task rows into a seed file for demo mode."""

import json
import logging
import sqlite3
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

JSON_COLUMNS = ("attachment_path", "additional_json")


def normalize_json_field(value: Any) -> Any:
    """Decode a JSON text column; blank text and the string "null" become None."""
    if value is None or value == "null":
        return None
    if not isinstance(value, str):
        return value
    s = value.strip()
    if not s:
        return None
    if (s.startswith("{") and s.endswith("}")) or (s.startswith("[") and s.endswith("]")):
        try:
            return json.loads(s)
        except ValueError:
            return value
    return value


def read_task_rows(db_path: Path) -> list[dict]:
    """Read every row of the backend's tasks table, oldest first."""
    conn = sqlite3.connect(str(db_path))
    conn.row_factory = sqlite3.Row
    try:
        rows = conn.execute("SELECT * FROM tasks ORDER BY id ASC").fetchall()
    finally:
        conn.close()

    records = []
    for row in rows:
        rec = dict(row)
        for col in JSON_COLUMNS:
            if col in rec:
                rec[col] = normalize_json_field(rec[col])
        records.append(rec)
    return records


def export_seed(db_path: Path, output: Path) -> list[dict]:
    rows = read_task_rows(db_path)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(json.dumps(rows, indent=2, ensure_ascii=False), encoding="utf-8")
    logger.info("Wrote %d seed rows to %s", len(rows), output)
    return rows
