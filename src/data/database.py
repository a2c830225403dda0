import logging
import random
import threading
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Optional, Sequence

import duckdb
import pandas as pd

logger = logging.getLogger(__name__)

IN_MEMORY = ":memory:"

# Largest value a BIGINT column holds
BIGINT_MAX = 2**63 - 1


def connect_with_retry(
    db_path: str, max_retries: int = 3
) -> duckdb.DuckDBPyConnection:
    """
    Open a DuckDB connection, retrying while another process holds the file lock.

    Args:
        db_path: Path to DuckDB file, or ":memory:"
        max_retries: Maximum number of connection attempts

    Returns:
        DuckDB connection
    """
    for attempt in range(max_retries):
        try:
            conn = duckdb.connect(db_path)
            logger.debug(f"Opened connection to {db_path}")
            return conn
        except duckdb.IOException as e:
            if "lock" in str(e).lower() and attempt < max_retries - 1:
                # Exponential backoff with jitter
                wait_time = (2**attempt) + random.uniform(0, 1)  # nosec B311
                logger.warning(
                    f"Ledger database locked, retrying in {wait_time:.2f}s (attempt {attempt + 1}/{max_retries})"
                )
                time.sleep(wait_time)
                continue
            logger.error(
                f"Failed to open ledger database after {attempt + 1} attempts: {e}"
            )
            raise

    raise duckdb.IOException(
        f"Could not open ledger database after {max_retries} attempts"
    )


class LedgerDatabase:
    """
    DuckDB-backed store for the election ledger.

    Writes are serialized through a single lock and run inside one DuckDB
    transaction each; reads use their own cursor and see the latest
    committed state without waiting on writers.
    """

    def __init__(self, db_path: Optional[str] = None):
        """
        Open (and if needed create) the ledger store.

        Args:
            db_path: Path to DuckDB file. If None, uses an in-memory database.
        """
        self.db_path = db_path or IN_MEMORY
        self.sql_dir = Path(__file__).parent / "sql"
        self._write_lock = threading.Lock()
        self._conn: Optional[duckdb.DuckDBPyConnection] = connect_with_retry(
            self.db_path
        )
        self.execute_script("01_create_ledger")

    @property
    def conn(self) -> duckdb.DuckDBPyConnection:
        if self._conn is None:
            raise RuntimeError(f"Ledger database {self.db_path} is closed")
        return self._conn

    @property
    def is_persistent(self) -> bool:
        return self.db_path != IN_MEMORY

    def execute_script(self, script_name: str) -> None:
        """
        Execute every statement of a SQL script file.

        Args:
            script_name: Name of SQL file (without .sql extension)
        """
        script_path = self.sql_dir / f"{script_name}.sql"

        if not script_path.exists():
            raise FileNotFoundError(f"SQL script not found: {script_path}")

        with open(script_path, "r") as f:
            sql = f.read()

        with self._write_lock:
            for statement in sql.split(";"):
                if statement.strip():
                    self.conn.execute(statement)
        logger.info(f"Executed script: {script_name}")

    @contextmanager
    def transaction(self):
        """
        Run a block of writes atomically.

        Yields a cursor with an open transaction; it is committed when the
        block exits normally and rolled back if the block raises.
        """
        with self._write_lock:
            cursor = self.conn.cursor()
            try:
                cursor.begin()
                try:
                    yield cursor
                except Exception:
                    cursor.rollback()
                    raise
                else:
                    cursor.commit()
            finally:
                cursor.close()

    def query(self, sql: str, params: Optional[Sequence[Any]] = None) -> pd.DataFrame:
        """
        Execute a read query on a dedicated cursor and return a DataFrame.

        Args:
            sql: SQL query with ``?`` placeholders
            params: Values bound to the placeholders
        """
        cursor = self.conn.cursor()
        try:
            return cursor.execute(sql, list(params or [])).fetchdf()
        finally:
            cursor.close()

    def query_one(self, sql: str, params: Optional[Sequence[Any]] = None):
        """Execute a read query and return its first row as a tuple, or None."""
        cursor = self.conn.cursor()
        try:
            return cursor.execute(sql, list(params or [])).fetchone()
        finally:
            cursor.close()

    def table_exists(self, table_name: str) -> bool:
        """Check if a table exists in the database."""
        result = self.query_one(
            "SELECT COUNT(*) FROM information_schema.tables WHERE table_name = ?",
            [table_name],
        )
        return result[0] > 0

    def close(self):
        """Close database connection."""
        if self._conn:
            try:
                self._conn.close()
                logger.debug(f"Closed ledger database {self.db_path}")
            except Exception as e:
                logger.warning(f"Error closing ledger database: {e}")
            finally:
                self._conn = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
