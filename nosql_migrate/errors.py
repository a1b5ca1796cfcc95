# ==============================================
# Errors
# ==============================================
#
# Every failure that leaves this package is one of the kinds below.
# Only "already exists" during keyspace/table creation is absorbed
# by the stores; everything else is raised to the caller.
#
# ==============================================

from typing import Optional


class MigrationError(Exception):
    """Base class for all migration failures."""


class ConfigurationError(MigrationError):
    """Connection settings are missing or invalid. Never retried."""


class StoreConnectionError(MigrationError):
    """Network or authentication failure while opening the target store."""


class _ScopedError(MigrationError):
    # Carries enough context to tell which table and operation failed
    def __init__(self, message: str, table: Optional[str] = None, operation: Optional[str] = None):
        self.table = table
        self.operation = operation
        prefix = ""
        if operation and table:
            prefix = f"{operation} on '{table}': "
        elif operation:
            prefix = f"{operation}: "
        super().__init__(f"{prefix}{message}")


class DDLError(_ScopedError):
    """Keyspace/database or table creation failed for a reason other than 'already exists'."""


class RowOperationError(_ScopedError):
    """Insert, update or lookup of a single row failed."""
