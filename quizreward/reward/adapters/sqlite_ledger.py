import sqlite3
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from quizreward.config import RewardConfig
from quizreward.reward.adapters.db_manager import DatabaseManager
from quizreward.reward.domain.errors import LedgerInconsistencyError, LedgerReason
from quizreward.reward.domain.models import Collection, RewardClaimed, RewardUnit
from quizreward.reward.domain.ports import ISupplyLedger
from quizreward.shared.telemetry import Telemetry, measure_time

_META_OWNER = "registered_owner"
_META_NAME = "collection_name"
_META_SYMBOL = "collection_symbol"
_META_SUPPLY = "total_supply"


class SQLiteSupplyLedger(ISupplyLedger):
    """
    Durable ledger. One writer at a time, one SQLite transaction per mint.
    Reads share the writer lock because every thread shares one connection.
    """

    def __init__(self, db_manager: DatabaseManager) -> None:
        self.telemetry = Telemetry("SQLiteSupplyLedger")
        self.db_manager = db_manager
        self._lock = threading.RLock()
        self._depth = 0

    def __getstate__(self) -> dict[str, Any]:
        state = self.__dict__.copy()
        del state["_lock"]
        return state

    def __setstate__(self, state: dict[str, Any]) -> None:
        self.__dict__.update(state)
        self._lock = threading.RLock()
        self._depth = 0

    def _get_connection(self) -> sqlite3.Connection:
        return self.db_manager.get_connection()

    @contextmanager
    def transaction(self) -> Iterator[None]:
        with self._lock:
            conn = self._get_connection()
            outermost = self._depth == 0
            if outermost:
                conn.execute("BEGIN IMMEDIATE")
            self._depth += 1
            try:
                yield
            except BaseException:
                if outermost:
                    conn.execute("ROLLBACK")
                    self.telemetry.log_info("↩️ Transaction rolled back")
                raise
            else:
                if outermost:
                    self._commit(conn)
            finally:
                self._depth -= 1

    def _commit(self, conn: sqlite3.Connection) -> None:
        try:
            conn.execute("COMMIT")
        except sqlite3.Error as e:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            self.telemetry.log_error("Commit failed, transaction rolled back", e)
            raise

    def _require_transaction(self) -> None:
        if self._depth == 0:
            raise RuntimeError("Ledger mutation outside of a transaction")

    # --- Meta helpers ---

    def _get_meta(self, key: str) -> str | None:
        with self._lock:
            row = (
                self._get_connection()
                .execute("SELECT value FROM ledger_meta WHERE key = ?", (key,))
                .fetchone()
            )
        return row[0] if row else None

    def _set_meta(self, key: str, value: str) -> None:
        self._get_connection().execute(
            "INSERT OR REPLACE INTO ledger_meta (key, value) VALUES (?, ?)",
            (key, value),
        )

    # --- Issuance ---

    def next_identifier(self) -> int:
        return self.total_supply() + RewardConfig.FIRST_IDENTIFIER

    @measure_time("db_record_unit")
    def record(self, token_id: int, owner: str, artwork: str) -> RewardUnit:
        self._require_transaction()
        conn = self._get_connection()
        try:
            conn.execute(
                "INSERT INTO reward_units (token_id, owner, artwork) VALUES (?, ?, ?)",
                (str(token_id), owner, artwork),
            )
        except sqlite3.IntegrityError as e:
            raise LedgerInconsistencyError(
                LedgerReason.DUPLICATE_IDENTIFIER,
                f"identifier {token_id} already recorded",
            ) from e

        supply = self.total_supply() + 1
        self._set_meta(_META_SUPPLY, str(supply))

        row = conn.execute("SELECT count(*) FROM reward_units").fetchone()
        if row[0] != supply:
            raise LedgerInconsistencyError(
                LedgerReason.COUNTER_DIVERGENCE, f"supply={supply} units={row[0]}"
            )
        return RewardUnit(id=token_id, owner=owner, artwork=artwork)

    def total_supply(self) -> int:
        value = self._get_meta(_META_SUPPLY)
        return int(value) if value is not None else 0

    def owner_of(self, token_id: int) -> str | None:
        with self._lock:
            row = (
                self._get_connection()
                .execute(
                    "SELECT owner FROM reward_units WHERE token_id = ?", (str(token_id),)
                )
                .fetchone()
            )
        return row[0] if row else None

    def artwork_of(self, token_id: int) -> str | None:
        with self._lock:
            row = (
                self._get_connection()
                .execute(
                    "SELECT artwork FROM reward_units WHERE token_id = ?", (str(token_id),)
                )
                .fetchone()
            )
        return row[0] if row else None

    def balance_of(self, owner: str) -> int:
        with self._lock:
            row = (
                self._get_connection()
                .execute("SELECT count(*) FROM reward_units WHERE owner = ?", (owner,))
                .fetchone()
            )
        return row[0] if row else 0

    # --- Ownership & Identity ---

    def registered_owner(self) -> str | None:
        return self._get_meta(_META_OWNER)

    def register_owner(self, address: str) -> None:
        self._require_transaction()
        self._set_meta(_META_OWNER, address)

    def collection(self) -> Collection | None:
        with self._lock:
            name = self._get_meta(_META_NAME)
            symbol = self._get_meta(_META_SYMBOL)
        if name is None or symbol is None:
            return None
        return Collection(name=name, symbol=symbol)

    def set_collection(self, collection: Collection) -> None:
        self._require_transaction()
        self._set_meta(_META_NAME, collection.name)
        self._set_meta(_META_SYMBOL, collection.symbol)

    # --- Claims & Events ---

    def has_claimed(self, participant: str) -> bool:
        with self._lock:
            row = (
                self._get_connection()
                .execute("SELECT 1 FROM claims WHERE participant = ?", (participant,))
                .fetchone()
            )
        return row is not None

    def mark_claimed(self, participant: str) -> None:
        self._require_transaction()
        self._get_connection().execute(
            "INSERT OR IGNORE INTO claims (participant) VALUES (?)", (participant,)
        )

    def append_event(self, event: RewardClaimed) -> None:
        self._require_transaction()
        self._get_connection().execute(
            "INSERT INTO reward_events (recipient, token_id) VALUES (?, ?)",
            (event.recipient, str(event.id)),
        )

    def events(self) -> list[RewardClaimed]:
        with self._lock:
            rows = (
                self._get_connection()
                .execute("SELECT recipient, token_id FROM reward_events ORDER BY seq")
                .fetchall()
            )
        return [RewardClaimed(recipient=row[0], id=int(row[1])) for row in rows]
