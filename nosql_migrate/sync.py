# ==============================================
# SyncEngine
# ==============================================
#
# PURPOSE:
#   Write rows so that re-running the same migration converges
#   on one target record per origin id.
#
# HOW:
#   Row carries pre_mongified_id = V
#     → find_one(table, {pre_mongified_id: V})
#       found     → update(table, <target id>, row)   full overwrite
#       not found → insert_into(table, row)           marker kept
#   Row without pre_mongified_id
#     → insert_into(table, row)   (re-runs create duplicates)
#
# LIMITS:
#   Look-up-then-write is not atomic. Two engines writing the same
#   origin id at the same time can both insert. Run one writer per
#   target table.
#
# ==============================================

import logging
from typing import Any, Iterable, Mapping, Union

from nosql_migrate.schema.definitions import ORIGIN_ID_FIELD

logger = logging.getLogger(__name__)

INSERTED = "inserted"
UPDATED = "updated"


class SyncEngine:
    def __init__(self, store):
        self.store = store

    def upsert(self, table: str, row: Mapping[str, Any]) -> str:
        """
        Insert the row, or update the record that has the same origin id.

        Returns:
            "inserted" or "updated"
        """
        # Can't dedupe on the store's own id: the source id only survives
        # as pre_mongified_id, so that's what identifies the same row
        if ORIGIN_ID_FIELD in row:
            origin_id = row[ORIGIN_ID_FIELD]
            duplicate = self.store.find_one(table, {ORIGIN_ID_FIELD: origin_id})
            if duplicate:
                self.store.update(table, self.store.record_id(table, duplicate), row)
                logger.debug("Updated '%s' record with %s=%s", table, ORIGIN_ID_FIELD, origin_id)
                return UPDATED
        self.store.insert_into(table, row)
        return INSERTED

    def insert_into(self, table: str, rows: Union[Mapping[str, Any], Iterable[Mapping[str, Any]]]) -> int:
        return self.store.insert_into(table, rows)
