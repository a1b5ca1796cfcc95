# ==============================================
# Pytest Configuration and Fixtures
# ==============================================
#
# MemoryStore is a StoreConnection that keeps documents in dicts.
# It goes through the real base-class lifecycle (state machine,
# existence cache, lazy connect) and records every CREATE
# statement it is asked to run.
#
# ==============================================

from datetime import datetime

import pytest

from nosql_migrate.config import ConnectionConfig, reset_config
from nosql_migrate.errors import DDLError
from nosql_migrate.schema.definitions import ColumnDefinition, TableDefinition
from nosql_migrate.schema.translator import SchemaTranslator
from nosql_migrate.storage.base import StoreConnection
from nosql_migrate.sync import SyncEngine


class MemoryStore(StoreConnection):
    id_field = "_id"

    def __init__(self, config=None, existing_tables=()):
        super().__init__(config or ConnectionConfig(adapter="memory", host="localhost", database="test_db"))
        self.tables = {name: [] for name in existing_tables}
        self.statements = []
        self.indexes = set()
        self.opened = 0
        self.closed = 0
        self.create_error = None
        self._next_id = 0

    def _open(self):
        self.opened += 1

    def _close(self):
        self.closed += 1

    def _ensure_database(self):
        for name in self.tables:
            self.remember_table(name)

    def _drop_database(self):
        self.tables.clear()

    def create_table(self, schema):
        self._require_connection()
        self.statements.append(schema.create_statement())
        if schema.name in self.tables:
            return
        if self.create_error is not None:
            raise DDLError(self.create_error, table=schema.name, operation="create table")
        self.tables[schema.name] = []

    def _insert_single_row(self, table, row):
        self._next_id += 1
        document = dict(row)
        document["_id"] = self._next_id
        self.tables.setdefault(table, []).append(document)

    def update(self, table, record_id, row):
        self._require_connection()
        documents = self.tables[table]
        for index, document in enumerate(documents):
            if document["_id"] == record_id:
                replacement = dict(row)
                replacement["_id"] = record_id
                documents[index] = replacement

    def find_one(self, table, query):
        self._require_connection()
        for document in self.tables.get(table, []):
            if all(document.get(name) == value for name, value in query.items()):
                return dict(document)
        return None

    def create_pre_mongified_id_index(self, table):
        self.indexes.add(table)

    def remove_pre_mongified_ids(self, table):
        self.indexes.discard(table)
        for document in self.tables.get(table, []):
            document.pop("pre_mongified_id", None)


@pytest.fixture(autouse=True)
def fresh_config():
    """Forget the config singleton around every test."""
    reset_config()
    yield
    reset_config()


@pytest.fixture
def make_store():
    return MemoryStore


@pytest.fixture
def memory_store():
    return MemoryStore()


@pytest.fixture
def translator(memory_store):
    return SchemaTranslator(memory_store)


@pytest.fixture
def engine(memory_store):
    return SyncEngine(memory_store)


@pytest.fixture
def users_table():
    """users = [Key id, String name, DateTime created_at]"""
    return TableDefinition(
        "users",
        [
            ColumnDefinition.key("id"),
            ColumnDefinition.string("name"),
            ColumnDefinition.datetime("created_at"),
        ],
    )


@pytest.fixture
def created_at():
    return datetime(2024, 1, 15, 10, 30, 0)
