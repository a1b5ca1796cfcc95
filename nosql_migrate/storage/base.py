# ==============================================
# StoreConnection
# ==============================================
#
# PURPOSE:
#   Common lifecycle for every target store. Subclasses only talk
#   to their driver; connection state, lazy connect, the table
#   existence cache and the drop confirmation live here.
#
# STATES:
# -------
#   NOT_CONNECTED → CONNECTING → CONNECTED
#   CONNECTED → DROPPED   (only via ask_to_drop_database)
#   A failed connect goes back to NOT_CONNECTED.
#
# CLASS: StoreConnection (abstract)
# ---------------------------------
#   Stateful: holds the driver handle for one run.
#
#   Public:
#   -------
#   - connect() -> StoreConnection       idempotent
#   - disconnect() -> None
#   - has_connection() -> bool           never connects
#   - table_known(name) / remember_table(name)
#   - insert_into(table, row_or_rows) -> int
#   - ask_to_drop_database(confirm) -> bool
#
#   Implemented per store:
#   ----------------------
#   - _open(), _close(), _ensure_database(), _drop_database()
#   - create_table(schema)
#   - _insert_single_row(table, row)
#   - update(table, record_id, row)
#   - find_one(table, query) -> dict | None
#   - record_id(table, record)
#   - create_pre_mongified_id_index(table)
#   - remove_pre_mongified_ids(table)
#
#   Context Manager:
#   ----------------
#   - __enter__ / __exit__ for `with store as db:` usage.
#
# The existence cache is per instance. Two stores running in
# parallel against the same keyspace do not share it and rely on
# the store's own "already exists" handling.
#
# ==============================================

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Set, Union

from nosql_migrate.config import ConnectionConfig
from nosql_migrate.errors import StoreConnectionError

logger = logging.getLogger(__name__)

Row = Dict[str, Any]


class ConnectionState(Enum):
    NOT_CONNECTED = "not_connected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    DROPPED = "dropped"


class StoreConnection(ABC):
    # Field holding the identifier the target store assigned to a record
    id_field = "id"

    def __init__(self, config: ConnectionConfig):
        # Store connection params. Don't connect yet.
        self.config = config
        self.state = ConnectionState.NOT_CONNECTED
        self.known_tables: Set[str] = set()

    @property
    def database(self) -> str:
        return self.config.database

    # ------------------------------------------
    # Lifecycle
    # ------------------------------------------

    def connect(self) -> "StoreConnection":
        if self.state is ConnectionState.CONNECTED:
            return self
        if self.state is ConnectionState.DROPPED:
            raise StoreConnectionError(f"Database '{self.database}' was dropped; open a new connection")

        self.config.ensure_valid()
        self.state = ConnectionState.CONNECTING
        try:
            self._open()
            # Create the keyspace/database on first connect if it is missing
            self._ensure_database()
        except Exception:
            self.state = ConnectionState.NOT_CONNECTED
            self._close()
            raise
        self.state = ConnectionState.CONNECTED
        logger.info(
            "Connected to %s/%s (%d existing tables)",
            self.config.connection_string(), self.database, len(self.known_tables),
        )
        return self

    def disconnect(self) -> None:
        if self.state is ConnectionState.NOT_CONNECTED:
            return
        self._close()
        if self.state is not ConnectionState.DROPPED:
            self.state = ConnectionState.NOT_CONNECTED
        logger.info("Disconnected from %s", self.config.connection_string())

    def has_connection(self) -> bool:
        return self.state is ConnectionState.CONNECTED

    def _require_connection(self) -> None:
        if self.state is ConnectionState.DROPPED:
            raise StoreConnectionError(f"Database '{self.database}' was dropped")
        if self.state is not ConnectionState.CONNECTED:
            self.connect()

    # ------------------------------------------
    # Existence cache
    # ------------------------------------------

    def table_known(self, name: str) -> bool:
        return name in self.known_tables

    def remember_table(self, name: str) -> None:
        self.known_tables.add(name)

    # ------------------------------------------
    # Rows
    # ------------------------------------------

    def insert_into(self, table: str, rows: Union[Mapping[str, Any], Iterable[Mapping[str, Any]]]) -> int:
        """
        Insert one row or a sequence of rows.

        Each row is written independently; a failure part way through
        leaves the earlier rows in place.

        Returns:
            Number of rows inserted
        """
        self._require_connection()
        if isinstance(rows, Mapping):
            rows = [rows]
        count = 0
        for row in rows:
            self._insert_single_row(table, row)
            count += 1
        return count

    # ------------------------------------------
    # Drop
    # ------------------------------------------

    def ask_to_drop_database(self, confirm: Callable[[str], bool]) -> bool:
        """
        Drop the target database, but only if ``confirm`` says yes.

        Args:
            confirm: Called with the question text; returns True to drop.

        Returns:
            True if the database was dropped
        """
        if not confirm(f"Are you sure you want to drop {self.database} database?"):
            logger.info("Drop of '%s' cancelled", self.database)
            return False
        self._require_connection()
        self._drop_database()
        self.state = ConnectionState.DROPPED
        logger.info("Dropped database '%s'", self.database)
        return True

    # ------------------------------------------
    # Driver hooks
    # ------------------------------------------

    @abstractmethod
    def _open(self) -> None:
        """Open the driver session. Raise StoreConnectionError on failure."""

    @abstractmethod
    def _close(self) -> None:
        """Release the driver session. Must not raise."""

    @abstractmethod
    def _ensure_database(self) -> None:
        """Create the keyspace/database if missing and seed known_tables."""

    @abstractmethod
    def _drop_database(self) -> None:
        ...

    @abstractmethod
    def create_table(self, schema) -> None:
        """Issue one creation statement; absorb only 'already exists'."""

    @abstractmethod
    def _insert_single_row(self, table: str, row: Mapping[str, Any]) -> None:
        ...

    @abstractmethod
    def update(self, table: str, record_id: Any, row: Mapping[str, Any]) -> None:
        ...

    @abstractmethod
    def find_one(self, table: str, query: Mapping[str, Any]) -> Optional[Row]:
        ...

    def record_id(self, table: str, record: Mapping[str, Any]) -> Any:
        return record.get(self.id_field)

    @abstractmethod
    def create_pre_mongified_id_index(self, table: str) -> None:
        ...

    @abstractmethod
    def remove_pre_mongified_ids(self, table: str) -> None:
        ...

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.disconnect()
