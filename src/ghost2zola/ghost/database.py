"""Read-only SQLite access to an exported Ghost database."""

import sqlite3
import logging
from pathlib import Path
from typing import List, Optional

from ..errors import QueryFailedError

logger = logging.getLogger(__name__)


class GhostDatabase:
    """
    Read-only connection to a Ghost ``ghost.db``.
    
    The file is opened through a ``mode=ro`` URI and with ``query_only`` set,
    so nothing, not even a journal, is written next to the database.
    Every ``sqlite3.Error`` is re-raised as :class:`QueryFailedError`.
    """
    
    def __init__(self, db_path: Path):
        """
        Args:
            db_path: Path to a materialized SQLite file
        """
        self.db_path = Path(db_path)
        self._connection: Optional[sqlite3.Connection] = None
        
    def connect(self) -> sqlite3.Connection:
        """
        Open the database if it is not open yet.
        
        Returns:
            SQLite connection object
            
        Raises:
            QueryFailedError: If SQLite cannot open the file
        """
        if self._connection is not None:
            return self._connection

        uri = f"{self.db_path.resolve().as_uri()}?mode=ro"
        logger.debug(f"Opening database: {{'path': {str(self.db_path)!r}}}")
        try:
            self._connection = sqlite3.connect(uri, uri=True, check_same_thread=False)
            self._connection.row_factory = sqlite3.Row
            self._connection.execute("PRAGMA query_only=ON")
        except sqlite3.Error as e:
            self._connection = None
            raise QueryFailedError(f"Cannot open database: {e}", path=str(self.db_path)) from e

        return self._connection

    def execute(self, sql: str, parameters=None) -> List[sqlite3.Row]:
        """
        Run one statement and fetch all rows.
        
        Raises:
            QueryFailedError: On any engine error (I/O, corrupt file, bad SQL)
        """
        conn = self.connect()
        try:
            cursor = conn.execute(sql, parameters or ())
            try:
                return cursor.fetchall()
            finally:
                cursor.close()
        except sqlite3.Error as e:
            raise QueryFailedError(f"Query failed: {e}", sql=sql, path=str(self.db_path)) from e

    def tables(self) -> List[str]:
        rows = self.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
        return [row["name"] for row in rows]

    def table_columns(self, table: str) -> List[str]:
        """Column names of ``table``; empty when the table does not exist."""
        rows = self.execute(f'PRAGMA table_info("{table}")')
        return [row["name"] for row in rows]

    def select_all(self, table: str, order_by: Optional[str] = None) -> List[sqlite3.Row]:
        sql = f'SELECT * FROM "{table}"'
        if order_by:
            sql += f" ORDER BY {order_by}"
        return self.execute(sql)

    def close(self):
        """Close database connection."""
        if self._connection is not None:
            self._connection.close()
            self._connection = None
            logger.debug("Database connection closed")
    
    def __enter__(self):
        self.connect()
        return self
    
    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
