"""SQLite-backed row bucket store.

One schema is one SQLite database file ``<db_dir>/<schema>.sqlite``. Bucket
``y`` is the table ``t_<y>(i INTEGER PRIMARY KEY)`` holding the integer
tokens that are still alive for image row ``y``.

Buckets only ever shrink during a bake: every write is a
``DELETE ... WHERE i < ?`` issued through a RowDeleteHandle.
"""

import re
import sqlite3
import logging
import threading
from pathlib import Path
from typing import List, Optional

import pandas as pd

from ripen.errors import ExecutionError, ProvisioningError

__all__ = ['BucketStore', 'RowDeleteHandle']

logger = logging.getLogger(__name__)

_TABLE_RE = re.compile(r"^t_(\d+)$")


class RowDeleteHandle:
    """Reusable delete bound to one bucket.

    Owns its own connection so concurrent handles never share a cursor.
    sqlite3 caches the compiled statement per connection, so repeated
    ``execute`` calls reuse the prepared ``DELETE``.

    Parameters
    ----------
    conn : sqlite3.Connection
        Dedicated connection, closed with the handle.
    row : int
        Bucket index the handle is bound to.
    """

    def __init__(self, conn: sqlite3.Connection, row: int):
        self._conn = conn
        self.row = row
        self.sql = f"DELETE FROM t_{row} WHERE i < ?"
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def execute(self, threshold: int) -> int:
        """Delete every value strictly below ``threshold``.

        Returns
        -------
        int
            Number of tokens removed.

        Raises
        ------
        sqlite3.Error
            Any store failure, including use after close.
        """
        cursor = self._conn.execute(self.sql, (int(threshold),))
        return cursor.rowcount

    def close(self):
        if self._closed:
            return
        self._closed = True
        self._conn.close()


class BucketStore:
    """Keyed collection of row buckets in one SQLite schema.

    **Provisioning:** ``provision(ny, ripeness)`` drops the schema and
    rebuilds ``ny`` buckets each holding ``0..ripeness-1``.

    **Writers:** ``prepare_row_delete(row)`` hands out a RowDeleteHandle with
    its own connection. Up to ``ny`` handles may run at the same time;
    SQLite serialises the writes and ``busy_timeout_sec`` bounds how long a
    writer waits for the lock.

    **Readers:** ``bucket_values``, ``bucket_count``, ``row_count`` and
    ``snapshot`` share one read connection guarded by a lock. WAL journal
    mode lets them observe the store while a bake is running.

    Example usage::

        store = BucketStore("/data/ripen/store", "sunset")
        store.provision(ny=480, ripeness=256)
        handle = store.prepare_row_delete(0)
        handle.execute(128)
        store.close_handle(handle)
        store.close()
    """

    def __init__(self, db_dir, schema_name: str, busy_timeout_sec: float = 30.0,
                 journal_mode: str = "wal"):
        if not re.match(r"^[A-Za-z_][A-Za-z0-9_]*$", schema_name):
            raise ValueError(f"Invalid schema name: {schema_name!r}")

        self.db_dir = Path(db_dir)
        self.schema_name = schema_name
        self.busy_timeout_sec = busy_timeout_sec
        self.journal_mode = journal_mode
        self.db_path = self.db_dir / f"{schema_name}.sqlite"

        self._read_conn: Optional[sqlite3.Connection] = None
        self._read_lock = threading.Lock()

    def __repr__(self):
        return f"BucketStore({str(self.db_path)!r})"

    # ========================================================================
    # Connections
    # ========================================================================

    def _connect(self, autocommit: bool = False) -> sqlite3.Connection:
        conn = sqlite3.connect(
            str(self.db_path),
            timeout=self.busy_timeout_sec,
            check_same_thread=False,
            isolation_level=None if autocommit else "",
        )
        conn.execute(f"PRAGMA journal_mode={self.journal_mode}")
        return conn

    def _get_read_connection(self) -> sqlite3.Connection:
        if self._read_conn is None:
            self._read_conn = self._connect()
        return self._read_conn

    def exists(self) -> bool:
        return self.db_path.exists()

    def close(self):
        """Close the read connection. Handles are closed by their owners."""
        with self._read_lock:
            if self._read_conn is not None:
                self._read_conn.close()
                self._read_conn = None

    # ========================================================================
    # Provisioning
    # ========================================================================

    def _drop_schema(self):
        self.close()
        for suffix in ("", "-wal", "-shm", "-journal"):
            path = self.db_path.with_name(self.db_path.name + suffix)
            if path.exists():
                path.unlink()

    def provision(self, ny: int, ripeness: int):
        """Drop and recreate the schema with ``ny`` full buckets.

        Parameters
        ----------
        ny : int
            Number of buckets (image rows). Must be >= 1.
        ripeness : int
            Initial bucket size. Every bucket holds ``0..ripeness-1``.

        Raises
        ------
        ProvisioningError
            If any part of the setup fails.
        """
        if ny < 1:
            raise ProvisioningError(f"Need at least one bucket, got ny={ny}")
        if ripeness < 0:
            raise ProvisioningError(f"Ripeness must be non-negative, got {ripeness}")

        logger.info("Provisioning %s: %d buckets x %d tokens", self.db_path, ny, ripeness)
        try:
            self.db_dir.mkdir(parents=True, exist_ok=True)
            self._drop_schema()

            conn = self._connect()
            try:
                tokens = [(i,) for i in range(ripeness)]
                with conn:
                    for y in range(ny):
                        conn.execute(f"CREATE TABLE t_{y}(i INTEGER PRIMARY KEY)")
                        conn.executemany(f"INSERT INTO t_{y} VALUES (?)", tokens)
            finally:
                conn.close()
        except (sqlite3.Error, OSError) as e:
            raise ProvisioningError(f"Failed to provision {self.db_path}: {e}") from e

        logger.info("✓ Provisioned %d buckets", ny)

    # ========================================================================
    # Writers
    # ========================================================================

    def prepare_row_delete(self, row: int) -> RowDeleteHandle:
        """Return a handle bound to ``DELETE FROM t_<row> WHERE i < ?``.

        Raises
        ------
        ExecutionError
            If the store cannot be opened or the bucket does not exist.
        """
        try:
            conn = self._connect(autocommit=True)
        except sqlite3.Error as e:
            raise ExecutionError(row, message=f"cannot open store: {e}") from e

        try:
            found = conn.execute(
                "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = ?",
                (f"t_{row}",),
            ).fetchone()
        except sqlite3.Error as e:
            conn.close()
            raise ExecutionError(row, message=f"cannot inspect store: {e}") from e

        if found is None:
            conn.close()
            raise ExecutionError(row, message=f"bucket t_{row} does not exist in {self.schema_name}")

        logger.debug("Prepared delete for bucket %d", row)
        return RowDeleteHandle(conn, row)

    def close_handle(self, handle: RowDeleteHandle):
        handle.close()

    # ========================================================================
    # Readers
    # ========================================================================

    def rows(self) -> List[int]:
        """Bucket indices present in the schema, ascending."""
        with self._read_lock:
            conn = self._get_read_connection()
            names = conn.execute(
                "SELECT name FROM sqlite_master WHERE type = 'table'"
            ).fetchall()
        rows = []
        for (name,) in names:
            match = _TABLE_RE.match(name)
            if match:
                rows.append(int(match.group(1)))
        return sorted(rows)

    def row_count(self) -> int:
        return len(self.rows())

    def bucket_values(self, row: int) -> List[int]:
        """Tokens still alive in bucket ``row``, ascending."""
        with self._read_lock:
            conn = self._get_read_connection()
            cursor = conn.execute(f"SELECT i FROM t_{int(row)} ORDER BY i")
            return [value for (value,) in cursor.fetchall()]

    def bucket_count(self, row: int) -> int:
        with self._read_lock:
            conn = self._get_read_connection()
            (count,) = conn.execute(f"SELECT COUNT(*) FROM t_{int(row)}").fetchone()
            return count

    def snapshot(self) -> pd.DataFrame:
        """Summarise every bucket.

        Returns
        -------
        pd.DataFrame
            One line per bucket with columns ``row``, ``remaining``,
            ``min_value`` and ``max_value``. Empty buckets have NaN bounds.
        """
        records = []
        rows = self.rows()
        with self._read_lock:
            conn = self._get_read_connection()
            for row in rows:
                remaining, min_value, max_value = conn.execute(
                    f"SELECT COUNT(*), MIN(i), MAX(i) FROM t_{row}"
                ).fetchone()
                records.append({
                    "row": row,
                    "remaining": remaining,
                    "min_value": min_value,
                    "max_value": max_value,
                })
        return pd.DataFrame(records, columns=["row", "remaining", "min_value", "max_value"])
