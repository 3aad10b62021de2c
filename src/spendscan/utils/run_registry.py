"""Run registry for analysis runs using SQLite."""
import json
import sqlite3
import uuid
from pathlib import Path
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from .exceptions import RegistryError
from .logger import get_data_dir, get_logger

logger = get_logger()

RUN_STATUSES = ("queued", "running", "completed", "failed")


@dataclass
class RunRecord:
    id: str
    status: str
    input_text: str
    created_at: datetime
    result_json: Optional[str] = None

    @property
    def result(self) -> Optional[Dict[str, Any]]:
        """Decoded result payload, if any."""
        if not self.result_json:
            return None
        return json.loads(self.result_json)


class RunRegistry:
    """Manages local database of analysis runs."""

    def __init__(self, db_path: Optional[Path] = None):
        if db_path is None:
            db_path = get_data_dir() / "spendscan.db"
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _init_db(self):
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.cursor()
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS runs (
                    id TEXT PRIMARY KEY,
                    created_at TEXT,
                    status TEXT,
                    input_text TEXT,
                    summary_json TEXT
                )
            """)
            cursor.execute("CREATE INDEX IF NOT EXISTS idx_created ON runs(created_at)")
            conn.commit()

    def create_run(self, input_text: str) -> str:
        """Register a new queued run and return its id."""
        run_id = uuid.uuid4().hex
        with sqlite3.connect(self.db_path) as conn:
            conn.execute(
                "INSERT INTO runs (id, created_at, status, input_text) VALUES (?, ?, 'queued', ?)",
                (run_id, datetime.now().isoformat(), input_text)
            )
            conn.commit()
        logger.debug(f"Created run {run_id}")
        return run_id

    def mark_running(self, run_id: str) -> None:
        self._update(run_id, "running")

    def mark_completed(self, run_id: str, result: Dict[str, Any]) -> None:
        self._update(run_id, "completed", json.dumps(result, ensure_ascii=False))

    def mark_failed(self, run_id: str, message: str) -> None:
        self._update(run_id, "failed", json.dumps({"error": message}, ensure_ascii=False))

    def _update(self, run_id: str, status: str, summary_json: Optional[str] = None) -> None:
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.cursor()
            if summary_json is None:
                cursor.execute("UPDATE runs SET status = ? WHERE id = ?", (status, run_id))
            else:
                cursor.execute(
                    "UPDATE runs SET status = ?, summary_json = ? WHERE id = ?",
                    (status, summary_json, run_id)
                )
            conn.commit()
            if cursor.rowcount == 0:
                raise RegistryError(f"Run not found: {run_id}")
        logger.debug(f"Run {run_id} -> {status}")

    def get_run(self, run_id: str) -> Optional[RunRecord]:
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT id, created_at, status, input_text, summary_json FROM runs WHERE id = ?",
                (run_id,)
            )
            row = cursor.fetchone()
        return self._to_record(row) if row else None

    def list_runs(self, limit: int = 20) -> List[RunRecord]:
        """Return the most recent runs first."""
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT id, created_at, status, input_text, summary_json FROM runs "
                "ORDER BY created_at DESC, rowid DESC LIMIT ?",
                (limit,)
            )
            rows = cursor.fetchall()
        return [self._to_record(r) for r in rows]

    def clear(self, status: Optional[str] = None) -> int:
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.cursor()
            if status:
                cursor.execute("DELETE FROM runs WHERE status = ?", (status,))
            else:
                cursor.execute("DELETE FROM runs")
            conn.commit()
            return cursor.rowcount

    @staticmethod
    def _to_record(row) -> RunRecord:
        # row: (id, created_at, status, input_text, summary_json)
        return RunRecord(
            id=row[0],
            created_at=datetime.fromisoformat(row[1]),
            status=row[2],
            input_text=row[3],
            result_json=row[4]
        )
