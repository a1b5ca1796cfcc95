# ==============================================
# CassandraConnection
# ==============================================
#
# PURPOSE:
#   Wide-column target store. Creates the keyspace on first
#   connect, creates tables from translated schemas and writes
#   rows with parameterized CQL.
#
# CLASS: CassandraConnection(StoreConnection)
# -------------------------------------------
#   Stateful: holds the Cluster and Session for one run.
#
#   Notes:
#   ------
#   - Key columns are UUIDs. A row that does not carry a value for
#     a key column gets a fresh uuid4 on insert.
#   - pre_mongified_id is stored as TEXT, so lookups compare the
#     quoted value and ints from the source are written as strings.
#     create_table adds the column with a separate ALTER TABLE after
#     the CREATE; tables found at connect get it on first use.
#   - Lookups by pre_mongified_id use ALLOW FILTERING so that they
#     work with or without the secondary index.
#
# ==============================================

import logging
import uuid
from typing import Any, Dict, List, Mapping, Optional, Set

from cassandra import AlreadyExists, DriverException
from cassandra.auth import PlainTextAuthProvider
from cassandra.cluster import Cluster, NoHostAvailable
from cassandra.query import dict_factory

from nosql_migrate.config import ConnectionConfig
from nosql_migrate.errors import ConfigurationError, DDLError, RowOperationError, StoreConnectionError
from nosql_migrate.schema.definitions import ORIGIN_ID_FIELD
from nosql_migrate.storage.base import Row, StoreConnection
from nosql_migrate.storage.query_builder import (
    SAFE_IDENTIFIER,
    Statement,
    check_identifier,
    insert_statement,
    select_statement,
    update_statement,
)

logger = logging.getLogger(__name__)

DEFAULT_PORT = 9042
_DRIVER_ERRORS = (DriverException, NoHostAvailable)


class CassandraConnection(StoreConnection):
    def __init__(self, config: ConnectionConfig):
        super().__init__(config)
        if config.database and not SAFE_IDENTIFIER.match(config.database):
            raise ConfigurationError(f"Invalid keyspace name {config.database!r}")
        self.cluster: Optional[Cluster] = None
        self.session = None
        # Per table: key columns in primary key order, and all column names
        self._key_columns: Dict[str, List[str]] = {}
        self._columns: Dict[str, Set[str]] = {}

    # ------------------------------------------
    # Driver hooks
    # ------------------------------------------

    def _open(self) -> None:
        auth_provider = None
        if self.config.username and self.config.password:
            auth_provider = PlainTextAuthProvider(
                username=self.config.username, password=self.config.password
            )
        try:
            self.cluster = Cluster(
                contact_points=[self.config.host],
                port=self.config.port or DEFAULT_PORT,
                auth_provider=auth_provider,
            )
            self.session = self.cluster.connect()
        except _DRIVER_ERRORS as e:
            raise StoreConnectionError(
                f"Could not connect to Cassandra at {self.config.connection_string()}: {e}"
            ) from e
        self.session.row_factory = dict_factory

    def _close(self) -> None:
        if self.cluster is not None:
            self.cluster.shutdown()
        self.cluster = None
        self.session = None

    def _ensure_database(self) -> None:
        keyspace = self.database
        try:
            rows = self.session.execute(
                "SELECT keyspace_name FROM system_schema.keyspaces WHERE keyspace_name = %s",
                (keyspace,),
            )
            if rows.one() is None:
                self._create_keyspace(keyspace)
            else:
                self._load_existing_tables(keyspace)
            self.session.set_keyspace(keyspace)
        except _DRIVER_ERRORS as e:
            raise StoreConnectionError(f"Could not open keyspace '{keyspace}': {e}") from e

    def _create_keyspace(self, keyspace: str) -> None:
        statement = (
            f"CREATE KEYSPACE {keyspace} WITH replication = "
            f"{{'class': 'SimpleStrategy', 'replication_factor': {int(self.config.replication_factor)}}}"
        )
        logger.debug(statement)
        try:
            self.session.execute(statement)
            logger.info("Created keyspace '%s'", keyspace)
        except AlreadyExists:
            # Another run created it between our check and the CREATE
            logger.info("Keyspace '%s' already exists", keyspace)
            self._load_existing_tables(keyspace)
        except _DRIVER_ERRORS as e:
            raise DDLError(str(e), table=keyspace, operation="create keyspace") from e

    def _load_existing_tables(self, keyspace: str) -> None:
        rows = self.session.execute(
            "SELECT table_name, column_name, kind, position FROM system_schema.columns "
            "WHERE keyspace_name = %s",
            (keyspace,),
        )
        keys: Dict[str, List[tuple]] = {}
        for row in rows:
            table = row["table_name"]
            self.remember_table(table)
            self._columns.setdefault(table, set()).add(row["column_name"])
            if row["kind"] in ("partition_key", "clustering"):
                # Partition keys sort ahead of clustering columns
                order = (0 if row["kind"] == "partition_key" else 1, row["position"])
                keys.setdefault(table, []).append((order, row["column_name"]))
        for table, entries in keys.items():
            self._key_columns[table] = [name for _, name in sorted(entries)]

    def _drop_database(self) -> None:
        try:
            self.session.execute(f"DROP KEYSPACE IF EXISTS {self.database}")
        except _DRIVER_ERRORS as e:
            raise DDLError(str(e), table=self.database, operation="drop keyspace") from e

    # ------------------------------------------
    # Tables
    # ------------------------------------------

    def create_table(self, schema) -> None:
        self._require_connection()
        check_identifier(schema.name, schema.name, "create table")
        for name, _ in schema.columns:
            check_identifier(name, schema.name, "create table")
        statement = schema.create_statement()
        logger.debug(statement)
        try:
            self.session.execute(statement)
            logger.info("Created table '%s'", schema.name)
            self._key_columns[schema.name] = list(schema.primary_key)
            self._columns[schema.name] = {name for name, _ in schema.columns}
        except AlreadyExists:
            logger.info("Table '%s' already exists", schema.name)
            # Its real columns may differ from ours
            try:
                self._load_existing_tables(self.database)
            except _DRIVER_ERRORS as e:
                raise DDLError(str(e), table=schema.name, operation="create table") from e
        except _DRIVER_ERRORS as e:
            raise DDLError(str(e), table=schema.name, operation="create table") from e
        self._ensure_origin_column(schema.name)

    def _ensure_origin_column(self, table: str) -> None:
        # Upserts look rows up by origin id, so every table we know needs the column
        columns = self._columns.get(table)
        if columns is None or ORIGIN_ID_FIELD in columns:
            return
        statement = f"ALTER TABLE {table} ADD {ORIGIN_ID_FIELD} text"
        logger.debug(statement)
        try:
            self.session.execute(statement)
        except _DRIVER_ERRORS as e:
            raise DDLError(str(e), table=table, operation="add column") from e
        columns.add(ORIGIN_ID_FIELD)

    def create_pre_mongified_id_index(self, table: str) -> None:
        # Adds the origin id column if needed, then a secondary index on it
        self._require_connection()
        check_identifier(table, table, "create index")
        self._columns.setdefault(table, set())
        self._ensure_origin_column(table)
        try:
            self.session.execute(
                f"CREATE INDEX IF NOT EXISTS {table}_{ORIGIN_ID_FIELD}_idx ON {table} ({ORIGIN_ID_FIELD})"
            )
        except _DRIVER_ERRORS as e:
            raise DDLError(str(e), table=table, operation="create index") from e

    def remove_pre_mongified_ids(self, table: str) -> None:
        self._require_connection()
        check_identifier(table, table, "drop index")
        try:
            self.session.execute(f"DROP INDEX IF EXISTS {table}_{ORIGIN_ID_FIELD}_idx")
            if ORIGIN_ID_FIELD in self._columns.get(table, set()):
                self.session.execute(f"ALTER TABLE {table} DROP {ORIGIN_ID_FIELD}")
                self._columns[table].discard(ORIGIN_ID_FIELD)
        except _DRIVER_ERRORS as e:
            raise DDLError(str(e), table=table, operation="drop index") from e

    # ------------------------------------------
    # Rows
    # ------------------------------------------

    def key_columns(self, table: str) -> List[str]:
        return self._key_columns.get(table) or [self.id_field]

    @staticmethod
    def _stored_form(row: Mapping[str, Any]) -> Dict[str, Any]:
        values = dict(row)
        if values.get(ORIGIN_ID_FIELD) is not None:
            values[ORIGIN_ID_FIELD] = str(values[ORIGIN_ID_FIELD])
        return values

    def _execute(self, statement: Statement, table: str, operation: str):
        logger.debug(statement.render())
        try:
            return self.session.execute(statement.text, statement.params)
        except _DRIVER_ERRORS as e:
            raise RowOperationError(str(e), table=table, operation=operation) from e

    def _insert_single_row(self, table: str, row: Mapping[str, Any]) -> None:
        values = self._stored_form(row)
        if ORIGIN_ID_FIELD in values:
            self._ensure_origin_column(table)
        for key in self.key_columns(table):
            if values.get(key) is None:
                values[key] = uuid.uuid4()
        self._execute(insert_statement(table, values), table, "insert")

    def update(self, table: str, record_id: Any, row: Mapping[str, Any]) -> None:
        self._require_connection()
        keys = self.key_columns(table)
        if not isinstance(record_id, Mapping):
            record_id = {keys[0]: record_id}
        # Primary key columns cannot appear in SET
        values = {
            name: value for name, value in self._stored_form(row).items()
            if name not in keys
        }
        if not values:
            return
        if ORIGIN_ID_FIELD in values:
            self._ensure_origin_column(table)
        self._execute(update_statement(table, record_id, values), table, "update")

    def find_one(self, table: str, query: Mapping[str, Any]) -> Optional[Row]:
        self._require_connection()
        if ORIGIN_ID_FIELD in query:
            self._ensure_origin_column(table)
        statement = select_statement(table, self._stored_form(query), limit=1, allow_filtering=True)
        found = self._execute(statement, table, "find").one()
        return dict(found) if found is not None else None

    def record_id(self, table: str, record: Mapping[str, Any]) -> Any:
        return {key: record.get(key) for key in self.key_columns(table)}
