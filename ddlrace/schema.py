from __future__ import annotations

import logging
import threading
from typing import Optional

from .errors import StoreError
from .stats import ERROR, SUCCESS, RaceStats
from .statements import build_alter_sql
from .store import Store


class SchemaMutator:
    """Flip one column between a wide and a narrow integer type, forever.

    Runs without any coordination with the DML workers. Every ALTER is best
    effort: a failure is logged and the next iteration goes ahead anyway.
    """

    def __init__(
        self,
        store: Store,
        *,
        database: str,
        table: str,
        stop_event: threading.Event,
        column: str = "val0",
        wide_type: str = "bigint",
        narrow_type: str = "int",
        interval: float = 1.0,
        stats: Optional[RaceStats] = None,
    ) -> None:
        self.store = store
        self.database = database
        self.table = table
        self.stop_event = stop_event
        self.column = column
        self.wide_type = wide_type
        self.narrow_type = narrow_type
        self.interval = interval
        self.stats = stats or RaceStats()
        self.iterations = 0

    def modify(self, column_type: str) -> bool:
        logging.info("DDL modifying %s to %s", self.column, column_type)
        try:
            self.store.execute(
                build_alter_sql(self.database, self.table, self.column, column_type)
            )
        except StoreError as exc:
            self.stats.record("alter", ERROR)
            logging.warning("DDL error (%s): %s", column_type, exc)
            return False
        self.stats.record("alter", SUCCESS)
        logging.info("DDL modified %s to %s", self.column, column_type)
        return True

    def run_once(self) -> None:
        if self.stop_event.is_set():
            return
        self.modify(self.wide_type)
        # always narrow once a widen was issued, even if a stop arrived meanwhile
        self.modify(self.narrow_type)
        self.iterations += 1

    def run(self) -> None:
        logging.info("DDL worker started (column=%s interval=%.2fs)", self.column, self.interval)
        while not self.stop_event.wait(self.interval):
            self.run_once()
        logging.info("DDL worker stopped after %d iteration(s)", self.iterations)
