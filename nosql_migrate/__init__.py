# ==============================================
# nosql-migrate
# ==============================================
#
# Moves schema and rows from a relational database into a
# wide-column (Cassandra) or document (MongoDB) store, and can be
# re-run without duplicating records that carry pre_mongified_id.
#
# Package Structure:
#
# nosql_migrate/
# ├── config.py         # Connection settings (.env / environment)
# ├── errors.py         # Error kinds raised by every layer
# ├── schema/           # Table definitions + type translation
# ├── storage/          # Target stores, literal codec, statement builder
# ├── source/           # Relational reader (MySQL)
# ├── sync.py           # Idempotent upsert by origin id
# ├── migrator.py       # Run driver: tables first, then rows
# └── cli.py            # Command line entry point
#
# ==============================================

__version__ = "0.1.0"
