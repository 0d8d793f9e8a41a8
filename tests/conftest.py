# tests/conftest.py
"""Shared fixtures.

FakeStore stands in for the database. It understands just enough of the
harness's SQL to behave like the real race table:

- INSERT fails with a duplicate-key error (1062) when ``unique_val0`` is on and
  any incoming ``val0`` is already present, emulating a unique index.
- ALTER bumps ``alter_count``; with ``alters_break_delete`` on, the next DELETE
  fails with the TiDB "public column has changed" error (8028).
- ``scripted`` queues errors per statement verb ("INSERT", "DELETE", "ALTER")
  that are raised before the statement is applied.
"""

from __future__ import annotations

import threading
from collections import Counter, defaultdict
from typing import Dict, List, Optional, Sequence, Tuple

import pytest

from ddlrace.config import HarnessConfig, SetupSettings
from ddlrace.errors import SetupError, StoreError


class FakeStore:
    def __init__(self, *, unique_val0: bool = True, alters_break_delete: bool = False) -> None:
        self.unique_val0 = unique_val0
        self.alters_break_delete = alters_break_delete
        self.scripted: Dict[str, List[StoreError]] = defaultdict(list)
        self.statements: List[Tuple[str, Tuple[object, ...]]] = []
        self.rows: Counter = Counter()
        self.alter_count = 0
        self.pinged = False
        self.setup_calls: List[Tuple[str, SetupSettings]] = []
        self.setup_error: Optional[SetupError] = None
        self._column_changed = False
        self._lock = threading.Lock()

    def ping(self) -> None:
        self.pinged = True

    def setup(self, database: str, settings: SetupSettings) -> None:
        if self.setup_error is not None:
            raise self.setup_error
        self.setup_calls.append((database, settings))

    def execute(self, statement: str, args: Sequence[object] = ()) -> int:
        verb = statement.split(None, 1)[0].upper()
        with self._lock:
            self.statements.append((statement, tuple(args)))
            if self.scripted[verb]:
                raise self.scripted[verb].pop(0)
            if verb == "INSERT":
                keys = list(args[0::3])
                if self.unique_val0:
                    for key in keys:
                        if self.rows[key]:
                            raise StoreError(
                                1062, f"Duplicate entry '{key}' for key 'rows.uniq_val0'"
                            )
                self.rows.update(keys)
                return len(keys)
            if verb == "DELETE":
                if self._column_changed:
                    self._column_changed = False
                    raise StoreError(8028, "public column val0 has changed")
                removed = 0
                for key in args:
                    removed += self.rows.pop(key, 0)
                return removed
            if verb == "ALTER":
                self.alter_count += 1
                if self.alters_break_delete:
                    self._column_changed = True
                return 0
            return 0

    def verbs(self) -> List[str]:
        with self._lock:
            return [statement.split(None, 1)[0].upper() for statement, _ in self.statements]


@pytest.fixture
def fake_store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def stop_event() -> threading.Event:
    return threading.Event()


@pytest.fixture
def fast_config() -> HarnessConfig:
    """Small, quick config: two workers, short pauses, schema changes off."""
    config = HarnessConfig()
    config.workload.workers = 2
    config.workload.max_value0 = 20
    config.workload.batch_sizes = (5,)
    config.workload.pause_after_insert = 0.05
    config.workload.pause_after_delete = 0.01
    config.workload.seed = 7
    config.setup.padding_size = 16
    config.schema.enabled = False
    config.schema.interval = 0.02
    return config
