# ==============================================
# Migrator
# ==============================================
#
# PURPOSE:
#   Drive one migration run: for every table, create the target
#   table (once), then stream that table's rows through
#   SyncEngine.upsert.
#
# CLASS: Migrator
# ---------------
#   - __init__(store, translator=None, engine=None, continue_on_error=False)
#   - run(tables, rows_for) -> MigrationStats
#       tables:   iterable of TableDefinition
#       rows_for: callable(TableDefinition) -> iterable of row dicts
#   - migrate_table(table, rows, stats) -> None
#
#   A RowOperationError stops the run unless continue_on_error is
#   set, in which case it is recorded in stats.errors. Connection
#   and DDL errors always stop the run.
#
# ==============================================

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Iterable, List, Mapping, Optional

from nosql_migrate.errors import RowOperationError
from nosql_migrate.schema.definitions import TableDefinition
from nosql_migrate.schema.translator import SchemaTranslator
from nosql_migrate.sync import INSERTED, SyncEngine

logger = logging.getLogger(__name__)


@dataclass
class MigrationStats:
    """Statistics from a migration run."""

    tables_created: int = 0
    tables_skipped: int = 0
    rows_inserted: int = 0
    rows_updated: int = 0
    errors: List[str] = field(default_factory=list)
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None

    @property
    def rows_processed(self) -> int:
        return self.rows_inserted + self.rows_updated

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.start_time and self.end_time:
            return (self.end_time - self.start_time).total_seconds()
        return None


class Migrator:
    def __init__(self, store, translator=None, engine=None, continue_on_error: bool = False):
        self.store = store
        self.translator = translator or SchemaTranslator(store)
        self.engine = engine or SyncEngine(store)
        self.continue_on_error = continue_on_error

    def run(
        self,
        tables: Iterable[TableDefinition],
        rows_for: Callable[[TableDefinition], Iterable[Mapping]],
    ) -> MigrationStats:
        stats = MigrationStats(start_time=datetime.now())
        self.store.connect()
        try:
            for table in tables:
                self.migrate_table(table, rows_for(table), stats)
        finally:
            stats.end_time = datetime.now()
        logger.info(
            "Migration finished: %d inserted, %d updated, %d errors in %.1fs",
            stats.rows_inserted, stats.rows_updated, len(stats.errors), stats.duration_seconds or 0.0,
        )
        return stats

    def migrate_table(self, table: TableDefinition, rows: Iterable[Mapping], stats: MigrationStats) -> None:
        # Table must exist before any of its rows are written
        if self.translator.ensure_table(table):
            stats.tables_created += 1
        else:
            stats.tables_skipped += 1
        self.store.create_pre_mongified_id_index(table.name)

        logger.info("Syncing rows into '%s'", table.name)
        for row in rows:
            try:
                result = self.engine.upsert(table.name, row)
            except RowOperationError as e:
                if not self.continue_on_error:
                    raise
                logger.warning("%s", e)
                stats.errors.append(str(e))
                continue
            if result == INSERTED:
                stats.rows_inserted += 1
            else:
                stats.rows_updated += 1
