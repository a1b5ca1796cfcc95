# ==============================================
# Table Definitions (Data Classes)
# ==============================================
#
# PURPOSE:
#   Describe a relational table the way the translator needs it:
#   an ordered list of named columns, each with a coarse type.
#   Built once per run by the source reader and never mutated.
#
# ENUMS:
# ------
# - ColumnType(Enum): KEY, STRING, DATETIME, NUMERIC, OTHER
#
# CLASSES:
# --------
# - ColumnDefinition (frozen dataclass)
#     name: str
#     type: ColumnType
#     raw_type: str | None   → original type name, kept for OTHER
#
# - TableDefinition (frozen dataclass)
#     name: str
#     columns: tuple[ColumnDefinition, ...]
#     At least one KEY column is required.
#
# ==============================================

from enum import Enum
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from nosql_migrate.errors import ConfigurationError

# Reserved field carrying a row's original relational primary key
ORIGIN_ID_FIELD = "pre_mongified_id"


class ColumnType(Enum):
    KEY = "key"
    STRING = "string"
    DATETIME = "datetime"
    NUMERIC = "numeric"
    OTHER = "other"


@dataclass(frozen=True)
class ColumnDefinition:
    name: str
    type: ColumnType
    raw_type: Optional[str] = None

    @classmethod
    def key(cls, name: str) -> "ColumnDefinition":
        return cls(name, ColumnType.KEY)

    @classmethod
    def string(cls, name: str) -> "ColumnDefinition":
        return cls(name, ColumnType.STRING)

    @classmethod
    def datetime(cls, name: str) -> "ColumnDefinition":
        return cls(name, ColumnType.DATETIME)

    @classmethod
    def numeric(cls, name: str) -> "ColumnDefinition":
        return cls(name, ColumnType.NUMERIC)

    @classmethod
    def other(cls, name: str, raw_type: str) -> "ColumnDefinition":
        return cls(name, ColumnType.OTHER, raw_type)

    @property
    def is_key(self) -> bool:
        return self.type is ColumnType.KEY


@dataclass(frozen=True)
class TableDefinition:
    """
    A source table: name plus columns in declaration order.

    Raises:
        ConfigurationError: if the table has no KEY column, since the
            target primary key is built from the KEY columns.
    """
    name: str
    columns: Tuple[ColumnDefinition, ...]

    def __init__(self, name: str, columns: Iterable[ColumnDefinition]):
        object.__setattr__(self, "name", name)
        object.__setattr__(self, "columns", tuple(columns))
        if not self.name:
            raise ConfigurationError("Table definition needs a name")
        if not self.key_columns:
            raise ConfigurationError(f"Table '{name}' has no key column")

    @property
    def key_columns(self) -> Tuple[ColumnDefinition, ...]:
        return tuple(column for column in self.columns if column.is_key)

    @property
    def column_names(self) -> Tuple[str, ...]:
        return tuple(column.name for column in self.columns)
