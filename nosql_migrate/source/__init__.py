# ==============================================
# SOURCE: relational database reader
# ==============================================
#
# Modules:
# --------
# - mysql_reader.py → MySQLReader, classify_column
#
# ==============================================

from .mysql_reader import MySQLReader, classify_column

__all__ = [
    "MySQLReader",
    "classify_column",
]
