# ==============================================
# STORAGE: target stores
# ==============================================
#
# This package handles all target store operations:
# connecting, creating keyspaces/tables, and writing rows.
#
# Modules:
# --------
# - base.py             → StoreConnection lifecycle + existence cache
# - cassandra_store.py  → CassandraConnection (wide-column)
# - mongo_store.py      → MongoConnection (document)
# - codec.py            → literal encoding of row values
# - query_builder.py    → predicates and parameterized statements
#
# FUNCTION:
# ---------
# - open_store(config) -> StoreConnection
#     Pick the store class from config.adapter_name(). Does not
#     connect; the store connects on first use.
#
# ==============================================

from nosql_migrate.config import CASSANDRA_DRIVER, MONGODB_DRIVER, ConnectionConfig
from nosql_migrate.errors import ConfigurationError

from .base import ConnectionState, StoreConnection


def open_store(config: ConnectionConfig) -> StoreConnection:
    # Driver modules are imported here so only the chosen one has to be installed
    config.ensure_valid()
    adapter = config.adapter_name()
    if adapter == CASSANDRA_DRIVER:
        from .cassandra_store import CassandraConnection
        return CassandraConnection(config)
    if adapter == MONGODB_DRIVER:
        from .mongo_store import MongoConnection
        return MongoConnection(config)
    raise ConfigurationError(f"Unsupported target adapter {config.adapter!r}")


__all__ = [
    "ConnectionState",
    "StoreConnection",
    "open_store",
]
