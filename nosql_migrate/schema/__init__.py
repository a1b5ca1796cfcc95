# ==============================================
# SCHEMA: source table definitions → target tables
# ==============================================
#
# Modules:
# --------
# - definitions.py  → ColumnType, ColumnDefinition, TableDefinition
# - translator.py   → SchemaTranslator, TableSchema
#
# ==============================================

from .definitions import ORIGIN_ID_FIELD, ColumnDefinition, ColumnType, TableDefinition
from .translator import SchemaTranslator, TableSchema

__all__ = [
    "ORIGIN_ID_FIELD",
    "ColumnDefinition",
    "ColumnType",
    "TableDefinition",
    "SchemaTranslator",
    "TableSchema",
]
