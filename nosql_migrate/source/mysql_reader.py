# ==============================================
# MySQLReader
# ==============================================
#
# PURPOSE:
#   Read the relational source: table structure as
#   TableDefinitions, and rows as dicts ready for SyncEngine.
#
# CLASS: MySQLReader
# ------------------
#   Stateful: holds connection to MySQL.
#
#   Constructor:
#   ------------
#   - __init__(host, port, user, password, database)
#       Store connection params. Don't connect yet.
#
#   Methods:
#   --------
#   - connect() / disconnect()
#   - table_names() -> list[str]
#   - table_definition(table_name) -> TableDefinition
#       Columns from INFORMATION_SCHEMA in ordinal order.
#       COLUMN_KEY = 'PRI' → KEY, otherwise classified by DATA_TYPE.
#   - rows(table) -> Iterator[dict]
#       Streams rows with an unbuffered cursor. With a single key
#       column, its value moves to pre_mongified_id and the column
#       itself is dropped; the target assigns its own id.
#
#   Limits:
#   -------
#   - Tables with a composite key keep their key values and get no
#     pre_mongified_id, so re-runs insert duplicates. On Cassandra the
#     key columns become UUIDs and integer key values are rejected.
#     table_definition() logs a warning for such tables.
#
#   Context Manager:
#   ----------------
#   - __enter__ / __exit__ for `with MySQLReader(...) as source:` usage.
#
# ==============================================

import logging
from typing import Any, Dict, Iterator, List, Optional

import pymysql
import pymysql.cursors

from nosql_migrate.config import SourceConfig
from nosql_migrate.errors import StoreConnectionError
from nosql_migrate.schema.definitions import (
    ORIGIN_ID_FIELD,
    ColumnDefinition,
    ColumnType,
    TableDefinition,
)

logger = logging.getLogger(__name__)

STRING_TYPES = {"char", "varchar", "tinytext", "text", "mediumtext", "longtext", "enum", "set"}
DATETIME_TYPES = {"date", "datetime", "timestamp", "time"}

# MySQL numeric type → numeric type name understood by the target
NUMERIC_TYPES = {
    "tinyint": "tinyint",
    "smallint": "smallint",
    "mediumint": "int",
    "int": "int",
    "integer": "int",
    "bigint": "bigint",
    "decimal": "decimal",
    "numeric": "decimal",
    "float": "float",
    "double": "double",
    "real": "double",
}


def classify_column(name: str, data_type: str, column_key: str = "") -> ColumnDefinition:
    data_type = (data_type or "").lower()
    if column_key == "PRI":
        return ColumnDefinition(name, ColumnType.KEY, data_type)
    if data_type in STRING_TYPES:
        return ColumnDefinition(name, ColumnType.STRING, data_type)
    if data_type in DATETIME_TYPES:
        return ColumnDefinition(name, ColumnType.DATETIME, data_type)
    if data_type in NUMERIC_TYPES:
        return ColumnDefinition(name, ColumnType.NUMERIC, NUMERIC_TYPES[data_type])
    return ColumnDefinition.other(name, data_type)


class MySQLReader:
    def __init__(self, host, port, user, password, database):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.database = database
        self.connection = None

    @classmethod
    def from_config(cls, config: SourceConfig) -> "MySQLReader":
        return cls(config.host, config.port, config.user, config.password, config.database)

    def connect(self) -> None:
        try:
            self.connection = pymysql.connect(
                host=self.host,
                port=self.port,
                user=self.user,
                password=self.password,
                database=self.database,
            )
        except pymysql.MySQLError as e:
            raise StoreConnectionError(f"Could not connect to MySQL at {self.host}:{self.port}: {e}") from e
        logger.info("Connected to MySQL %s:%s/%s", self.host, self.port, self.database)

    def disconnect(self) -> None:
        # Close connection cleanly
        if self.connection:
            self.connection.close()
            self.connection = None

    def _fetch_all(self, query: str, params: Optional[tuple] = None) -> List[Dict[str, Any]]:
        if self.connection is None:
            self.connect()
        cursor = self.connection.cursor(pymysql.cursors.DictCursor)
        try:
            cursor.execute(query, params)
            return list(cursor.fetchall())
        finally:
            cursor.close()

    def table_names(self) -> List[str]:
        rows = self._fetch_all(
            "SELECT TABLE_NAME FROM INFORMATION_SCHEMA.TABLES "
            "WHERE TABLE_SCHEMA = %s AND TABLE_TYPE = 'BASE TABLE' ORDER BY TABLE_NAME",
            (self.database,),
        )
        return [row["TABLE_NAME"] for row in rows]

    def table_definition(self, table_name: str) -> TableDefinition:
        rows = self._fetch_all(
            "SELECT COLUMN_NAME, DATA_TYPE, COLUMN_KEY FROM INFORMATION_SCHEMA.COLUMNS "
            "WHERE TABLE_SCHEMA = %s AND TABLE_NAME = %s ORDER BY ORDINAL_POSITION",
            (self.database, table_name),
        )
        columns = [
            classify_column(row["COLUMN_NAME"], row["DATA_TYPE"], row["COLUMN_KEY"])
            for row in rows
        ]
        definition = TableDefinition(table_name, columns)
        if len(definition.key_columns) > 1:
            logger.warning(
                "Table '%s' has a composite key (%s); its rows carry no %s and keep their source key values",
                table_name, ", ".join(column.name for column in definition.key_columns), ORIGIN_ID_FIELD,
            )
        return definition

    def table_definitions(self, names: Optional[List[str]] = None) -> List[TableDefinition]:
        return [self.table_definition(name) for name in (names or self.table_names())]

    @staticmethod
    def to_sync_row(table: TableDefinition, record: Dict[str, Any]) -> Dict[str, Any]:
        keys = table.key_columns
        if len(keys) != 1:
            return dict(record)
        row = {name: value for name, value in record.items() if name != keys[0].name}
        row[ORIGIN_ID_FIELD] = record.get(keys[0].name)
        return row

    def rows(self, table: TableDefinition) -> Iterator[Dict[str, Any]]:
        if self.connection is None:
            self.connect()
        columns = ", ".join(f"`{name}`" for name in table.column_names)
        cursor = self.connection.cursor(pymysql.cursors.SSDictCursor)
        try:
            cursor.execute(f"SELECT {columns} FROM `{table.name}`")
            for record in cursor:
                yield self.to_sync_row(table, record)
        finally:
            cursor.close()

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.disconnect()
