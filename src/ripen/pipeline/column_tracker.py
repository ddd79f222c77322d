"""SQLite-based column progress tracker.

Records every image column of a bake as it is dispatched, completed or
failed. When a run aborts, the ledger says which column and which rows
failed; the bucket store itself keeps whatever partial state the completed
rows produced.
"""

import sqlite3
import logging
from pathlib import Path
from datetime import datetime, timezone
from typing import Optional, Dict, List, Sequence
import threading

logger = logging.getLogger(__name__)


class ColumnTracker:
    """Tracks column bake state for one or more runs.

    **Column States:**

    1. **pending**: registered by ``start_run``, not dispatched yet
    2. **dispatched**: column unit handed to its worker thread
    3. **completed**: every row applied
    4. **failed**: at least one row apply failed

    **Database Schema:**

    SQLite table `bake_columns`, primary key ``(run_id, column_idx)``:

    - run_id, column_idx, status
    - dispatched_at, completed_at (ISO timestamps)
    - failed_rows (comma separated bucket indices), error_message

    **Thread Safety:**

    All methods are thread-safe via internal locking; column units report
    from their own threads.

    **Typical Usage:**

        tracker = ColumnTracker(db_path)
        tracker.start_run("20260101T000000Z", nx=640)
        tracker.mark_dispatched(0)
        tracker.mark_completed(0)
        print(tracker.get_statistics())
        tracker.close()
    """

    def __init__(self, db_path: Path | str):
        """Initialize tracker.

        Parameters
        ----------
        db_path : Path or str
            Path to SQLite database file. Created if doesn't exist.
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._conn = None
        self._lock = threading.Lock()
        self.run_id: Optional[str] = None

        self._init_database()
        logger.info("Column tracker initialized: %s", self.db_path)

    def _get_connection(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
            self._conn.row_factory = sqlite3.Row  # Enable dict-like access
        return self._conn

    def _init_database(self):
        """Create database schema if it doesn't exist."""
        conn = self._get_connection()

        with self._lock:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS bake_columns (
                    run_id TEXT NOT NULL,
                    column_idx INTEGER NOT NULL,
                    status TEXT DEFAULT 'pending',

                    dispatched_at TEXT,
                    completed_at TEXT,

                    failed_rows TEXT,
                    error_message TEXT,

                    PRIMARY KEY (run_id, column_idx)
                )
            """)
            conn.execute("CREATE INDEX IF NOT EXISTS idx_status ON bake_columns(status)")
            conn.commit()

    @staticmethod
    def _now() -> str:
        return datetime.now(timezone.utc).isoformat()

    def start_run(self, run_id: str, nx: int):
        """Register ``nx`` pending columns for a new run and make it current."""
        conn = self._get_connection()

        with self._lock:
            self.run_id = run_id
            conn.executemany(
                "INSERT OR REPLACE INTO bake_columns (run_id, column_idx, status) VALUES (?, ?, 'pending')",
                [(run_id, x) for x in range(nx)],
            )
            conn.commit()

        logger.debug("Registered %d columns for run %s", nx, run_id)

    def _update(self, x: int, sql: str, params: tuple):
        if self.run_id is None:
            raise RuntimeError("No run started; call start_run() first")
        conn = self._get_connection()

        with self._lock:
            conn.execute(sql + " WHERE run_id = ? AND column_idx = ?", params + (self.run_id, x))
            conn.commit()

    def mark_dispatched(self, x: int):
        self._update(x, "UPDATE bake_columns SET status = 'dispatched', dispatched_at = ?",
                     (self._now(),))

    def mark_completed(self, x: int):
        self._update(x, "UPDATE bake_columns SET status = 'completed', completed_at = ?",
                     (self._now(),))

    def mark_failed(self, x: int, rows: Sequence[int], message: str):
        """Record a failed column with the bucket indices whose apply failed."""
        self._update(
            x,
            "UPDATE bake_columns SET status = 'failed', completed_at = ?, failed_rows = ?, error_message = ?",
            (self._now(), ",".join(str(r) for r in rows), message),
        )
        logger.debug("Marked column %d failed (rows %s)", x, list(rows))

    def get_column_status(self, x: int, run_id: Optional[str] = None) -> Optional[Dict]:
        """Full record for one column of ``run_id`` (current run by default)."""
        conn = self._get_connection()
        run_id = run_id or self.run_id

        with self._lock:
            row = conn.execute(
                "SELECT * FROM bake_columns WHERE run_id = ? AND column_idx = ?",
                (run_id, x),
            ).fetchone()
            return dict(row) if row else None

    def get_failed_columns(self, run_id: Optional[str] = None) -> List[Dict]:
        conn = self._get_connection()
        run_id = run_id or self.run_id

        with self._lock:
            cursor = conn.execute(
                "SELECT * FROM bake_columns WHERE run_id = ? AND status = 'failed' ORDER BY column_idx",
                (run_id,),
            )
            return [dict(row) for row in cursor.fetchall()]

    def get_statistics(self, run_id: Optional[str] = None) -> Dict:
        """Summary counts for a run.

        Returns
        -------
        dict
            `total`, `dispatched` (ever dispatched), `completed`, `failed`, `pending`
        """
        conn = self._get_connection()
        run_id = run_id or self.run_id

        with self._lock:
            row = conn.execute("""
                SELECT
                    COUNT(*) as total,
                    COUNT(dispatched_at) as dispatched,
                    COALESCE(SUM(CASE WHEN status = 'completed' THEN 1 ELSE 0 END), 0) as completed,
                    COALESCE(SUM(CASE WHEN status = 'failed' THEN 1 ELSE 0 END), 0) as failed,
                    COALESCE(SUM(CASE WHEN status = 'pending' THEN 1 ELSE 0 END), 0) as pending
                FROM bake_columns
                WHERE run_id = ?
            """, (run_id,)).fetchone()
            return dict(row) if row else {}

    def close(self):
        """Close database connection. Safe to call multiple times."""
        with self._lock:
            if self._conn:
                self._conn.close()
                self._conn = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
