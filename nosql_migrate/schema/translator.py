# ==============================================
# SchemaTranslator
# ==============================================
#
# PURPOSE:
#   Map relational column definitions to target store types and
#   create each target table exactly once per run.
#
# TYPE MAPPING (total, deterministic):
# ------------------------------------
#   KEY        → UUID        (part of the composite primary key,
#                             in declaration order)
#   DATETIME   → TIMESTAMP
#   STRING     → TEXT
#   NUMERIC    → raw numeric type passed through (DOUBLE if unknown)
#   OTHER(raw) → raw.upper()
#
# CLASS: SchemaTranslator
# -----------------------
#   Stateless apart from the store it writes to. The existence cache
#   lives on the store so that it shares the store's lifetime.
#
#   Methods:
#   --------
#   - map_column(column) -> str
#   - translate(table) -> TableSchema
#   - ensure_table(table) -> bool
#       True if a CREATE statement was issued, False on a cache hit.
#
# ==============================================

import logging
from dataclasses import dataclass
from typing import Tuple

from nosql_migrate.schema.definitions import ColumnDefinition, ColumnType, TableDefinition

logger = logging.getLogger(__name__)

DEFAULT_NUMERIC_TYPE = "DOUBLE"

_FIXED_TYPES = {
    ColumnType.KEY: "UUID",
    ColumnType.DATETIME: "TIMESTAMP",
    ColumnType.STRING: "TEXT",
}


@dataclass(frozen=True)
class TableSchema:
    """Translated table: target column types plus primary key order."""
    name: str
    columns: Tuple[Tuple[str, str], ...]
    primary_key: Tuple[str, ...]

    def create_statement(self) -> str:
        column_defs = ", ".join(f"{name} {target_type}" for name, target_type in self.columns)
        return f"CREATE TABLE {self.name} ({column_defs}, PRIMARY KEY ({', '.join(self.primary_key)}))"


class SchemaTranslator:
    def __init__(self, store):
        self.store = store

    @staticmethod
    def map_column(column: ColumnDefinition) -> str:
        if column.type in _FIXED_TYPES:
            return _FIXED_TYPES[column.type]
        if column.type is ColumnType.NUMERIC:
            return (column.raw_type or DEFAULT_NUMERIC_TYPE).upper()
        return (column.raw_type or "").upper()

    def translate(self, table: TableDefinition) -> TableSchema:
        return TableSchema(
            name=table.name,
            columns=tuple((column.name, self.map_column(column)) for column in table.columns),
            primary_key=tuple(column.name for column in table.key_columns),
        )

    def ensure_table(self, table: TableDefinition) -> bool:
        # Table creation is idempotent per run: a cached name is a no-op
        if self.store.table_known(table.name):
            logger.debug("Table '%s' already known, skipping creation", table.name)
            return False

        schema = self.translate(table)
        # Raises DDLError unless the failure was "already exists"
        self.store.create_table(schema)
        self.store.remember_table(table.name)
        return True
