"""
HotLedger State Storage

Shared, transactional key-value state behind the ledger: balances, total
supply, the blacklist and the emergency-recipient mapping.

Every mutation runs inside `transaction()`. Leaving the block normally
commits; leaving it with an exception restores the state that existed
when the outermost transaction began.
"""

import sqlite3
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Set


class LedgerState(ABC):
    """Abstract interface for ledger state backends."""

    @abstractmethod
    @contextmanager
    def transaction(self) -> Iterator["LedgerState"]:
        """All-or-nothing scope. Nested calls join the outer transaction."""

    @abstractmethod
    def is_initialized(self) -> bool:
        pass

    @abstractmethod
    def mark_initialized(self) -> None:
        pass

    @abstractmethod
    def get_total_supply(self) -> int:
        pass

    @abstractmethod
    def set_total_supply(self, amount: int) -> None:
        pass

    @abstractmethod
    def get_balance(self, address: str) -> int:
        pass

    @abstractmethod
    def set_balance(self, address: str, amount: int) -> None:
        pass

    @abstractmethod
    def balances(self) -> Dict[str, int]:
        """Snapshot of every non-zero balance."""

    @abstractmethod
    def is_blacklisted(self, address: str) -> bool:
        pass

    @abstractmethod
    def add_blacklisted(self, address: str) -> bool:
        """Add to the blacklist. Returns False if already present."""

    @abstractmethod
    def list_blacklisted(self) -> List[str]:
        pass

    @abstractmethod
    def get_recipient(self, address: str) -> Optional[str]:
        pass

    @abstractmethod
    def set_recipient(self, address: str, recipient: str) -> None:
        pass

    @abstractmethod
    def recipient_count(self) -> int:
        """Number of distinct addresses with a registered recipient."""


class InMemoryLedgerState(LedgerState):
    """
    In-memory state for tests, demos and single-process services.

    Rollback restores a snapshot taken when the outermost transaction
    began. A transaction holds the lock until it commits or rolls back,
    and every read takes it too. Not persistent across restarts.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._depth = 0
        self._initialized = False
        self._total_supply = 0
        self._balances: Dict[str, int] = {}
        self._blacklist: Set[str] = set()
        self._recipients: Dict[str, str] = {}

    @contextmanager
    def transaction(self) -> Iterator["InMemoryLedgerState"]:
        with self._lock:
            if self._depth > 0:
                self._depth += 1
                try:
                    yield self
                finally:
                    self._depth -= 1
                return

            snapshot = (
                self._initialized,
                self._total_supply,
                dict(self._balances),
                set(self._blacklist),
                dict(self._recipients),
            )
            self._depth = 1
            try:
                yield self
            except BaseException:
                (
                    self._initialized,
                    self._total_supply,
                    self._balances,
                    self._blacklist,
                    self._recipients,
                ) = snapshot
                raise
            finally:
                self._depth = 0

    def is_initialized(self) -> bool:
        with self._lock:
            return self._initialized

    def mark_initialized(self) -> None:
        with self.transaction():
            self._initialized = True

    def get_total_supply(self) -> int:
        with self._lock:
            return self._total_supply

    def set_total_supply(self, amount: int) -> None:
        with self.transaction():
            self._total_supply = amount

    def get_balance(self, address: str) -> int:
        with self._lock:
            return self._balances.get(address, 0)

    def set_balance(self, address: str, amount: int) -> None:
        with self.transaction():
            if amount:
                self._balances[address] = amount
            else:
                self._balances.pop(address, None)

    def balances(self) -> Dict[str, int]:
        with self._lock:
            return dict(self._balances)

    def is_blacklisted(self, address: str) -> bool:
        with self._lock:
            return address in self._blacklist

    def add_blacklisted(self, address: str) -> bool:
        with self.transaction():
            if address in self._blacklist:
                return False
            self._blacklist.add(address)
            return True

    def list_blacklisted(self) -> List[str]:
        with self._lock:
            return sorted(self._blacklist)

    def get_recipient(self, address: str) -> Optional[str]:
        with self._lock:
            return self._recipients.get(address)

    def set_recipient(self, address: str, recipient: str) -> None:
        with self.transaction():
            self._recipients[address] = recipient

    def recipient_count(self) -> int:
        with self._lock:
            return len(self._recipients)


class SQLiteLedgerState(LedgerState):
    """
    SQLite-backed durable state.

    Amounts are stored as decimal text since uint256 values do not fit
    SQLite integers. A single connection is shared and guarded by a
    re-entrant lock.
    """

    def __init__(self, db_path: str = "data/hotledger.db"):
        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.RLock()
        self._depth = 0
        self._conn = sqlite3.connect(db_path, check_same_thread=False, isolation_level=None)
        self._conn.row_factory = sqlite3.Row
        if db_path != ":memory:":
            self._conn.execute("PRAGMA journal_mode=WAL;")
            self._conn.execute("PRAGMA synchronous=NORMAL;")
        self._init_schema()

    def _init_schema(self) -> None:
        with self.transaction():
            self._conn.execute("""
            CREATE TABLE IF NOT EXISTS meta (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL
            );""")
            self._conn.execute("""
            CREATE TABLE IF NOT EXISTS balances (
                address TEXT PRIMARY KEY,
                amount TEXT NOT NULL
            );""")
            self._conn.execute("""
            CREATE TABLE IF NOT EXISTS blacklist (
                address TEXT PRIMARY KEY
            );""")
            self._conn.execute("""
            CREATE TABLE IF NOT EXISTS recipients (
                address TEXT PRIMARY KEY,
                recipient TEXT NOT NULL
            );""")

    @contextmanager
    def transaction(self) -> Iterator["SQLiteLedgerState"]:
        with self._lock:
            if self._depth > 0:
                self._depth += 1
                try:
                    yield self
                finally:
                    self._depth -= 1
                return

            self._conn.execute("BEGIN IMMEDIATE")
            self._depth = 1
            try:
                yield self
                self._conn.execute("COMMIT")
            except BaseException:
                self._conn.execute("ROLLBACK")
                raise
            finally:
                self._depth = 0

    def _get_meta(self, key: str) -> Optional[str]:
        row = self._conn.execute("SELECT value FROM meta WHERE key=?", (key,)).fetchone()
        return row["value"] if row else None

    def _set_meta(self, key: str, value: str) -> None:
        with self.transaction():
            self._conn.execute(
                "INSERT OR REPLACE INTO meta(key, value) VALUES(?,?)", (key, value)
            )

    def is_initialized(self) -> bool:
        with self._lock:
            return self._get_meta("initialized") == "1"

    def mark_initialized(self) -> None:
        self._set_meta("initialized", "1")

    def get_total_supply(self) -> int:
        with self._lock:
            return int(self._get_meta("total_supply") or 0)

    def set_total_supply(self, amount: int) -> None:
        self._set_meta("total_supply", str(amount))

    def get_balance(self, address: str) -> int:
        with self._lock:
            row = self._conn.execute(
                "SELECT amount FROM balances WHERE address=?", (address,)
            ).fetchone()
            return int(row["amount"]) if row else 0

    def set_balance(self, address: str, amount: int) -> None:
        with self.transaction():
            if amount:
                self._conn.execute(
                    "INSERT OR REPLACE INTO balances(address, amount) VALUES(?,?)",
                    (address, str(amount))
                )
            else:
                self._conn.execute("DELETE FROM balances WHERE address=?", (address,))

    def balances(self) -> Dict[str, int]:
        with self._lock:
            cur = self._conn.execute("SELECT address, amount FROM balances")
            return {row["address"]: int(row["amount"]) for row in cur.fetchall()}

    def is_blacklisted(self, address: str) -> bool:
        with self._lock:
            cur = self._conn.execute("SELECT 1 FROM blacklist WHERE address=?", (address,))
            return cur.fetchone() is not None

    def add_blacklisted(self, address: str) -> bool:
        with self.transaction():
            cur = self._conn.execute(
                "INSERT OR IGNORE INTO blacklist(address) VALUES(?)", (address,)
            )
            return cur.rowcount == 1

    def list_blacklisted(self) -> List[str]:
        with self._lock:
            cur = self._conn.execute("SELECT address FROM blacklist ORDER BY address")
            return [row["address"] for row in cur.fetchall()]

    def get_recipient(self, address: str) -> Optional[str]:
        with self._lock:
            row = self._conn.execute(
                "SELECT recipient FROM recipients WHERE address=?", (address,)
            ).fetchone()
            return row["recipient"] if row else None

    def set_recipient(self, address: str, recipient: str) -> None:
        with self.transaction():
            self._conn.execute(
                "INSERT OR REPLACE INTO recipients(address, recipient) VALUES(?,?)",
                (address, recipient)
            )

    def recipient_count(self) -> int:
        with self._lock:
            return self._conn.execute("SELECT COUNT(*) AS cnt FROM recipients").fetchone()["cnt"]

    def close(self) -> None:
        with self._lock:
            self._conn.close()
