# ==============================================
# Tests for RowCodec and QueryBuilder
# ==============================================

from datetime import datetime
from decimal import Decimal

import pytest

from nosql_migrate.errors import RowOperationError
from nosql_migrate.storage.codec import encode_literal
from nosql_migrate.storage.query_builder import (
    build_predicate,
    insert_statement,
    select_statement,
    update_statement,
)


class TestEncodeLiteral:

    def test_integer_is_unquoted(self):
        assert encode_literal(42) == "42"

    def test_float_and_decimal_are_unquoted(self):
        assert encode_literal(1.5) == "1.5"
        assert encode_literal(Decimal("9.99")) == "9.99"

    def test_string_is_quoted(self):
        assert encode_literal("foo") == "'foo'"

    def test_timestamp_is_quoted_iso8601(self):
        value = datetime(2024, 1, 15, 10, 30, 0)
        assert encode_literal(value) == "'2024-01-15T10:30:00'"

    def test_bool_is_not_numeric(self):
        assert encode_literal(True) == "'True'"

    def test_quotes_are_not_escaped(self):
        assert encode_literal("O'Brien") == "'O'Brien'"


class TestBuildPredicate:

    def test_where_predicate_quotes_numbers(self):
        assert build_predicate({"id": 5, "status": "active"}, "AND") == "id = '5' AND status = 'active'"

    def test_set_list(self):
        assert build_predicate({"name": "B", "age": 3}, ",") == "name = 'B', age = '3'"

    def test_follows_mapping_order(self):
        assert build_predicate({"b": 1, "a": 2}, "AND") == "b = '1' AND a = '2'"


class TestStatements:
    """Values travel as parameters; render() gives the literal text."""

    def test_insert_is_parameterized(self):
        statement = insert_statement("users", {"name": "Alice", "age": 30})
        assert statement.text == "INSERT INTO users (name, age) VALUES (%s, %s)"
        assert statement.params == ("Alice", 30)
        assert statement.render() == "INSERT INTO users (name, age) VALUES ('Alice', 30)"

    def test_update_renders_like_predicate(self):
        statement = update_statement("users", {"id": "abc"}, {"name": "B"})
        assert statement.text == "UPDATE users SET name = %s WHERE id = %s"
        assert statement.params == ("B", "abc")
        assert statement.render() == "UPDATE users SET name = 'B' WHERE id = 'abc'"

    def test_select_with_filtering(self):
        statement = select_statement("users", {"pre_mongified_id": 7}, limit=1, allow_filtering=True)
        assert statement.render() == (
            "SELECT * FROM users WHERE pre_mongified_id = '7' LIMIT 1 ALLOW FILTERING"
        )

    def test_quote_in_value_stays_out_of_statement_text(self):
        statement = insert_statement("users", {"name": "x'); DROP TABLE users; --"})
        assert "DROP" not in statement.text

    @pytest.mark.parametrize("name", ["users; DROP", "1abc", "na-me", ""])
    def test_unsafe_identifiers_rejected(self, name):
        with pytest.raises(RowOperationError):
            insert_statement("users", {name: 1})
