# ==============================================
# Row Codec
# ==============================================
#
# Turns a single row value into the literal form used in a CQL
# statement.
#
#   42                → 42
#   "foo"             → 'foo'
#   datetime(...)     → '2024-01-02T03:04:05'
#
# Embedded quote characters are NOT escaped here. Statements that
# reach the store go through the parameterized builder in
# query_builder.py; literal rendering is only used for predicates
# and for logging.
#
# ==============================================

from datetime import date, datetime
from decimal import Decimal
from numbers import Number
from typing import Any


def is_numeric(value: Any) -> bool:
    # bool is an int subclass but is not a numeric column value
    return isinstance(value, (Number, Decimal)) and not isinstance(value, bool)


def quote(value: Any) -> str:
    return f"'{value}'"


def encode_literal(value: Any) -> str:
    """Encode a row value as a statement literal."""
    if is_numeric(value):
        return str(value)
    if isinstance(value, (datetime, date)):
        return quote(value.isoformat())
    return quote(value)
