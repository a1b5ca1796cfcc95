# ==============================================
# MongoConnection
# ==============================================
#
# PURPOSE:
#   Document target store. Tables become collections; column
#   types are not enforced, so "creating a table" means creating
#   the collection so that later runs see it.
#
# CLASS: MongoConnection(StoreConnection)
# ---------------------------------------
#   Stateful: holds the pymongo client for one run.
#
#   Notes:
#   ------
#   - MongoDB creates a database lazily; on connect we only read
#     the existing collection names into the existence cache.
#   - Values are made BSON-safe before writing: Decimal becomes
#     Decimal128, date becomes a midnight datetime, and timedelta
#     (MySQL TIME) becomes its "H:MM:SS" string.
#   - update() replaces the whole document (keeping _id), so fields
#     missing from the new row are removed. Pass merge=True to
#     $set only the given fields.
#
# ==============================================

import logging
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Any, Dict, Mapping, Optional

from bson.decimal128 import Decimal128
from bson.errors import InvalidDocument
from pymongo import ASCENDING
from pymongo import MongoClient as PyMongoClient
from pymongo.errors import (
    CollectionInvalid,
    ConnectionFailure,
    OperationFailure,
    PyMongoError,
)

from nosql_migrate.config import ConnectionConfig
from nosql_migrate.errors import DDLError, RowOperationError, StoreConnectionError
from nosql_migrate.schema.definitions import ORIGIN_ID_FIELD
from nosql_migrate.storage.base import Row, StoreConnection

logger = logging.getLogger(__name__)

DEFAULT_PORT = 27017
ORIGIN_INDEX_NAME = f"{ORIGIN_ID_FIELD}_1"

# Server error code for a namespace that already exists
NAMESPACE_EXISTS = 48

# Errors raised while encoding or sending a document
_WRITE_ERRORS = (PyMongoError, InvalidDocument)


def to_bson_value(value: Any) -> Any:
    if isinstance(value, Decimal):
        return Decimal128(value)
    # datetime is a date subclass and BSON already handles it
    if isinstance(value, date) and not isinstance(value, datetime):
        return datetime.combine(value, time.min)
    if isinstance(value, timedelta):
        return str(value)
    return value


def to_document(row: Mapping[str, Any]) -> Dict[str, Any]:
    return {name: to_bson_value(value) for name, value in row.items()}


class MongoConnection(StoreConnection):
    id_field = "_id"

    def __init__(self, config: ConnectionConfig):
        super().__init__(config)
        self.client: Optional[PyMongoClient] = None

    @property
    def db(self):
        return self.client[self.database]

    def uri(self) -> str:
        host = f"{self.config.host}:{self.config.port or DEFAULT_PORT}"
        if self.config.username and self.config.password:
            return f"mongodb://{self.config.username}:{self.config.password}@{host}/{self.database}"
        return f"mongodb://{host}/{self.database}"

    # ------------------------------------------
    # Driver hooks
    # ------------------------------------------

    def _open(self) -> None:
        try:
            self.client = PyMongoClient(self.uri())
            # Test connection
            self.client.admin.command("ping")
        except ConnectionFailure as e:
            raise StoreConnectionError(f"Could not connect to MongoDB: {e}") from e
        except OperationFailure as e:
            raise StoreConnectionError(f"Authentication failed: {e}") from e
        except PyMongoError as e:
            raise StoreConnectionError(f"Invalid MongoDB connection settings: {e}") from e

    def _close(self) -> None:
        if self.client is not None:
            self.client.close()
        self.client = None

    def _ensure_database(self) -> None:
        try:
            for name in self.db.list_collection_names():
                self.remember_table(name)
        except PyMongoError as e:
            raise DDLError(str(e), table=self.database, operation="open database") from e

    def _drop_database(self) -> None:
        try:
            self.client.drop_database(self.database)
        except PyMongoError as e:
            raise DDLError(str(e), table=self.database, operation="drop database") from e

    # ------------------------------------------
    # Collections
    # ------------------------------------------

    def create_table(self, schema) -> None:
        self._require_connection()
        logger.debug("Creating collection '%s' for columns %s", schema.name, schema.columns)
        try:
            self.db.create_collection(schema.name)
            logger.info("Created collection '%s'", schema.name)
        except CollectionInvalid:
            # Raised by pymongo when the collection already exists
            logger.info("Collection '%s' already exists", schema.name)
        except OperationFailure as e:
            # Another run created it after pymongo's own check
            if e.code != NAMESPACE_EXISTS:
                raise DDLError(str(e), table=schema.name, operation="create collection") from e
            logger.info("Collection '%s' already exists", schema.name)
        except PyMongoError as e:
            raise DDLError(str(e), table=schema.name, operation="create collection") from e

    def create_pre_mongified_id_index(self, table: str) -> None:
        self._require_connection()
        try:
            self.db[table].create_index([(ORIGIN_ID_FIELD, ASCENDING)], name=ORIGIN_INDEX_NAME)
        except PyMongoError as e:
            raise DDLError(str(e), table=table, operation="create index") from e

    def remove_pre_mongified_ids(self, table: str) -> None:
        self._require_connection()
        collection = self.db[table]
        try:
            if ORIGIN_INDEX_NAME in collection.index_information():
                collection.drop_index(ORIGIN_INDEX_NAME)
            collection.update_many(
                {ORIGIN_ID_FIELD: {"$exists": True}},
                {"$unset": {ORIGIN_ID_FIELD: 1}},
            )
        except PyMongoError as e:
            raise DDLError(str(e), table=table, operation="drop index") from e

    # ------------------------------------------
    # Documents
    # ------------------------------------------

    def _insert_single_row(self, table: str, row: Mapping[str, Any]) -> None:
        try:
            result = self.db[table].insert_one(to_document(row))
        except _WRITE_ERRORS as e:
            raise RowOperationError(str(e), table=table, operation="insert") from e
        logger.debug("Inserted document %s into '%s'", result.inserted_id, table)

    def update(self, table: str, record_id: Any, row: Mapping[str, Any], merge: bool = False) -> None:
        self._require_connection()
        document = {
            name: value for name, value in to_document(row).items()
            if name != self.id_field
        }
        try:
            if merge:
                self.db[table].update_one({self.id_field: record_id}, {"$set": document})
            else:
                self.db[table].replace_one({self.id_field: record_id}, document)
        except _WRITE_ERRORS as e:
            raise RowOperationError(str(e), table=table, operation="update") from e

    def find_one(self, table: str, query: Mapping[str, Any]) -> Optional[Row]:
        self._require_connection()
        try:
            return self.db[table].find_one(to_document(query))
        except _WRITE_ERRORS as e:
            raise RowOperationError(str(e), table=table, operation="find") from e
