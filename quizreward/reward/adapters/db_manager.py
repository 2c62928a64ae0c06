import os
import sqlite3
from typing import Any

from quizreward.shared.telemetry import Telemetry, measure_time


class DatabaseManager:
    """
    Responsible for:
    1. Managing the SQLite connection lifecycle.
    2. Initializing the ledger schema (DDL).
    3. Ensuring pickle-safety of the owning objects.

    Connections run in autocommit mode (isolation_level=None); transactions
    are opened explicitly by the ledger with BEGIN IMMEDIATE.
    """

    def __init__(self, db_path: str = "data/rewards.db") -> None:
        self.db_path = db_path
        self.telemetry = Telemetry("DatabaseManager")
        self._shared_connection: sqlite3.Connection | None = None

        self._ensure_db_exists()

        # For in-memory DBs, we must keep the connection open immediately
        if self.db_path == ":memory:":
            self._shared_connection = self._connect()

        self._init_schema()

    # --- SERIALIZATION LOGIC (Pickle Safety) ---
    def __getstate__(self) -> dict[str, Any]:
        """The SQLite connection cannot be pickled; drop it."""
        state = self.__dict__.copy()
        if "_shared_connection" in state:
            del state["_shared_connection"]
        return state

    def __setstate__(self, state: dict[str, Any]) -> None:
        """Connection is lazily re-created by get_connection()."""
        self.__dict__.update(state)
        self._shared_connection = None
        # Note: with ":memory:" the ledger contents are lost here.

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(
            self.db_path, check_same_thread=False, isolation_level=None
        )
        if self.db_path != ":memory:":
            conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def get_connection(self) -> sqlite3.Connection:
        """Returns a usable database connection, reconnecting if necessary."""
        if self._shared_connection:
            try:
                self._shared_connection.execute("SELECT 1")
                return self._shared_connection
            except sqlite3.ProgrammingError:
                # Connection was closed externally
                self._shared_connection = None

        self._shared_connection = self._connect()
        if self.db_path == ":memory:":
            # A fresh in-memory connection is a fresh, empty database
            self._init_schema()
        return self._shared_connection

    def close(self) -> None:
        if self._shared_connection:
            self._shared_connection.close()
            self._shared_connection = None

    def _ensure_db_exists(self) -> None:
        if self.db_path == ":memory:":
            return
        dir_name = os.path.dirname(self.db_path)
        if dir_name:
            os.makedirs(dir_name, exist_ok=True)

    @measure_time("db_init_schema")
    def _init_schema(self) -> None:
        conn = self.get_connection()
        # Token ids are stored as decimal TEXT: they range up to 2**256 - 1.
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS reward_units
            (
                token_id TEXT PRIMARY KEY,
                owner    TEXT NOT NULL,
                artwork  TEXT NOT NULL
            )
            """
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS ledger_meta
            (
                key   TEXT PRIMARY KEY,
                value TEXT NOT NULL
            )
            """
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS claims
            (
                participant TEXT PRIMARY KEY
            )
            """
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS reward_events
            (
                seq       INTEGER PRIMARY KEY AUTOINCREMENT,
                recipient TEXT NOT NULL,
                token_id  TEXT NOT NULL
            )
            """
        )
