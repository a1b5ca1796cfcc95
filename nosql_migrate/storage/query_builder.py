# ==============================================
# Query Builder
# ==============================================
#
# PURPOSE:
#   Build the field/value parts of CQL statements.
#
#   build_predicate(mapping, delimiter)
#       Literal text: "id = '5' AND status = 'active'".
#       Values are always quoted, numeric ones included, which is
#       what existing stored predicates look like. Used with ","
#       for SET lists and "AND" for WHERE clauses.
#
#   Statement / insert_statement / update_statement / select_statement
#       Parameterized form of the same statements. Values travel as
#       driver parameters (%s placeholders); Statement.render() gives
#       back the literal text for logs and tests.
#
#   Identifiers cannot be parameterized, so every table and field
#   name is checked against SAFE_IDENTIFIER before it is spliced in.
#
# ==============================================

import re
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple

from nosql_migrate.errors import RowOperationError
from nosql_migrate.storage.codec import encode_literal, quote

SAFE_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def check_identifier(name: str, table: Optional[str] = None, operation: str = "build statement") -> str:
    if not isinstance(name, str) or not SAFE_IDENTIFIER.match(name):
        raise RowOperationError(f"unsafe identifier {name!r}", table=table, operation=operation)
    return name


def _joiner(delimiter: str) -> str:
    delimiter = delimiter.strip()
    if delimiter == ",":
        return ", "
    return f" {delimiter} "


def build_predicate(mapping: Mapping[str, Any], delimiter: str = ",") -> str:
    """Join ``field = 'value'`` pairs in mapping order."""
    return _joiner(delimiter).join(
        f"{field} = {quote(value)}" for field, value in mapping.items()
    )


@dataclass(frozen=True)
class Statement:
    text: str
    params: Tuple[Any, ...] = ()
    literals: Tuple[str, ...] = ()

    def render(self) -> str:
        # Literal form; never sent to the store
        return self.text % self.literals if self.literals else self.text


def insert_statement(table: str, row: Mapping[str, Any]) -> Statement:
    check_identifier(table, table, "insert")
    fields = [check_identifier(name, table, "insert") for name in row]
    placeholders = ", ".join(["%s"] * len(fields))
    text = f"INSERT INTO {table} ({', '.join(fields)}) VALUES ({placeholders})"
    values = tuple(row.values())
    return Statement(text, values, tuple(encode_literal(value) for value in values))


def _assignments(table: str, mapping: Mapping[str, Any], delimiter: str, operation: str) -> Tuple[str, Dict[str, Any]]:
    parts = [f"{check_identifier(name, table, operation)} = %s" for name in mapping]
    return _joiner(delimiter).join(parts), dict(mapping)


def update_statement(table: str, key: Mapping[str, Any], row: Mapping[str, Any]) -> Statement:
    """UPDATE ... SET <row> WHERE <key>; ``key`` maps primary key columns to values."""
    check_identifier(table, table, "update")
    set_clause, values = _assignments(table, row, ",", "update")
    where_clause, key_values = _assignments(table, key, "AND", "update")
    text = f"UPDATE {table} SET {set_clause} WHERE {where_clause}"
    params = tuple(values.values()) + tuple(key_values.values())
    return Statement(text, params, tuple(quote(value) for value in params))


def select_statement(
    table: str,
    query: Mapping[str, Any],
    limit: Optional[int] = None,
    allow_filtering: bool = False,
) -> Statement:
    check_identifier(table, table, "find")
    text = f"SELECT * FROM {table}"
    params: Tuple[Any, ...] = ()
    if query:
        where_clause, values = _assignments(table, query, "AND", "find")
        text = f"{text} WHERE {where_clause}"
        params = tuple(values.values())
    if limit is not None:
        text = f"{text} LIMIT {int(limit)}"
    if allow_filtering:
        text = f"{text} ALLOW FILTERING"
    return Statement(text, params, tuple(quote(value) for value in params))
