from __future__ import annotations

import logging
import random
import threading
import time
from typing import Callable, List, Optional, Tuple

from .classifier import ErrorClassifier
from .config import HarnessConfig
from .cycle import MutationCycle
from .errors import FatalRace
from .rows import RowBatchGenerator
from .schema import SchemaMutator
from .stats import RaceStats
from .store import Store


def worker_rng(seed: Optional[int], worker_id: int) -> random.Random:
    """Independent random source per worker; reproducible when a seed is given."""
    if seed is None:
        return random.Random(time.time() + worker_id * 7919)
    return random.Random(seed + worker_id * 7919)


class WorkerPool:
    """N mutation cycles plus one schema mutator sharing a store and a stop event.

    Threads are not synchronized with each other in any way. The first
    exception escaping a thread lands in ``errors`` and sets the stop event,
    which winds every other loop down at its next check.
    """

    def __init__(
        self,
        config: HarnessConfig,
        store: Store,
        *,
        stop_event: Optional[threading.Event] = None,
        stats: Optional[RaceStats] = None,
        classifier: Optional[ErrorClassifier] = None,
    ) -> None:
        self.config = config
        self.store = store
        self.stop_event = stop_event or threading.Event()
        self.stats = stats or RaceStats()
        self.classifier = classifier or ErrorClassifier(config.signatures)
        self.errors: List[Tuple[str, BaseException]] = []
        self._error_lock = threading.Lock()
        self.threads: List[threading.Thread] = []
        self.cycles: List[MutationCycle] = []
        self.mutator: Optional[SchemaMutator] = None

    def build_cycle(self, worker_id: int) -> MutationCycle:
        workload = self.config.workload
        generator = RowBatchGenerator(
            worker_rng(workload.seed, worker_id),
            max_value0=workload.max_value0,
            batch_sizes=workload.batch_sizes,
            padding_bytes=self.config.setup.padding_bytes,
        )
        return MutationCycle(
            worker_id,
            self.store,
            generator,
            self.classifier,
            database=self.config.connection.database,
            table=self.config.setup.table,
            stop_event=self.stop_event,
            stats=self.stats,
            pause_after_insert=workload.pause_after_insert,
            pause_after_delete=workload.pause_after_delete,
        )

    def build_mutator(self) -> SchemaMutator:
        schema = self.config.schema
        return SchemaMutator(
            self.store,
            database=self.config.connection.database,
            table=self.config.setup.table,
            stop_event=self.stop_event,
            column=schema.column,
            wide_type=schema.wide_type,
            narrow_type=schema.narrow_type,
            interval=schema.interval,
            stats=self.stats,
        )

    def _guard(self, label: str, target: Callable[[], None]) -> Callable[[], None]:
        def runner() -> None:
            try:
                target()
            except FatalRace as exc:
                logging.error("%s detected a fatal race: %s", label, exc)
                self._record(label, exc)
            except Exception as exc:
                logging.exception("%s aborted", label)
                self._record(label, exc)

        return runner

    def _record(self, label: str, exc: BaseException) -> None:
        with self._error_lock:
            self.errors.append((label, exc))
        self.stop_event.set()

    def _spawn(self, label: str, target: Callable[[], None]) -> None:
        thread = threading.Thread(target=self._guard(label, target), name=label)
        self.threads.append(thread)
        thread.start()

    def start(self) -> None:
        for worker_id in range(1, self.config.workload.workers + 1):
            cycle = self.build_cycle(worker_id)
            self.cycles.append(cycle)
            self._spawn(cycle.label, cycle.run)
        if self.config.schema.enabled:
            self.mutator = self.build_mutator()
            self._spawn("schema-mutator", self.mutator.run)
        else:
            logging.info("Schema changes disabled for this run")

    def stop(self) -> None:
        self.stop_event.set()

    def join(self, duration: float = 0.0) -> None:
        """Block until every thread ends; with a duration, stop the run when it elapses."""
        if duration:
            if not self.stop_event.wait(duration):
                logging.info("Duration %.1fs elapsed; stopping workers", duration)
                self.stop_event.set()
        for thread in self.threads:
            # short joins keep the main thread responsive to SIGINT/SIGTERM
            while thread.is_alive():
                thread.join(0.5)

    @property
    def failed(self) -> bool:
        with self._error_lock:
            return bool(self.errors)
