"""The insert-then-delete loop each DML worker repeats until stopped."""

from __future__ import annotations

import logging
import threading
from typing import Optional

from .classifier import ErrorClassifier, Operation
from .errors import FatalRace, StoreError
from .rows import RowBatch, RowBatchGenerator
from .stats import BENIGN, ERROR, SUCCESS, RaceStats
from .statements import build_delete_sql, build_insert_sql
from .store import Store


class MutationCycle:
    """Insert a batch, pause, delete it by ``val0``, pause, repeat.

    Insert failures never stop the worker: duplicate keys are the expected
    consequence of overlapping key ranges and anything else is only reported.
    A delete that fails with anything but the column-changed race raises
    :class:`FatalRace`, since that is the defect the harness is hunting.
    """

    def __init__(
        self,
        worker_id: int,
        store: Store,
        generator: RowBatchGenerator,
        classifier: ErrorClassifier,
        *,
        database: str,
        table: str,
        stop_event: threading.Event,
        stats: Optional[RaceStats] = None,
        pause_after_insert: float = 0.5,
        pause_after_delete: float = 0.5,
    ) -> None:
        self.worker_id = worker_id
        self.store = store
        self.generator = generator
        self.classifier = classifier
        self.database = database
        self.table = table
        self.stop_event = stop_event
        self.stats = stats or RaceStats()
        self.pause_after_insert = pause_after_insert
        self.pause_after_delete = pause_after_delete
        self.label = f"worker-{worker_id:02d}"
        self.iterations = 0

    def insert(self, batch: RowBatch) -> None:
        if self.stop_event.is_set():
            return
        sql = build_insert_sql(self.database, self.table, batch.size)
        try:
            self.store.execute(sql, batch.insert_params())
        except StoreError as exc:
            signature = self.classifier.match(exc, Operation.INSERT)
            if signature is not None:
                self.stats.record("insert", BENIGN)
                logging.info(
                    "%s %s ignored on insert of %d row(s)", self.label, signature.name, batch.size
                )
                return
            self.stats.record("insert", ERROR)
            logging.warning(
                "%s insert of %d row(s) failed: %s", self.label, batch.size, exc
            )
            return
        self.stats.record("insert", SUCCESS, batch.size)
        logging.info("%s inserted %d row(s)", self.label, batch.size)

    def delete(self, batch: RowBatch) -> None:
        if self.stop_event.is_set() or not batch.size:
            return
        sql = build_delete_sql(self.database, self.table, batch.size)
        try:
            affected = self.store.execute(sql, batch.keys)
        except StoreError as exc:
            signature = self.classifier.match(exc, Operation.DELETE)
            if signature is not None:
                self.stats.record("delete", BENIGN)
                logging.info(
                    "%s %s ignored on delete of %d key(s): %s",
                    self.label,
                    signature.name,
                    batch.size,
                    exc,
                )
                return
            self.stats.record("delete", ERROR)
            raise FatalRace(self.worker_id, "delete", batch.size, exc) from exc
        self.stats.record("delete", SUCCESS, affected)
        logging.info("%s deleted %d row(s)", self.label, affected)

    def run_once(self) -> None:
        batch = self.generator.generate(self.worker_id)
        self.insert(batch)
        if self.stop_event.wait(self.pause_after_insert):
            return
        self.delete(batch)
        self.iterations += 1
        self.stop_event.wait(self.pause_after_delete)

    def run(self) -> None:
        logging.info("%s started", self.label)
        while not self.stop_event.is_set():
            self.run_once()
        logging.info("%s stopped after %d cycle(s)", self.label, self.iterations)
