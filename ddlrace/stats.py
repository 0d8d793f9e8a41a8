from __future__ import annotations

import threading
from collections import Counter
from typing import Dict, Tuple

SUCCESS = "success"
BENIGN = "benign"
ERROR = "error"


class RaceStats:
    """Aggregates per-operation outcomes for the summary footer."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counts: Counter[Tuple[str, str]] = Counter()

    def record(self, op: str, outcome: str, amount: int = 1) -> None:
        with self._lock:
            self._counts[(op, outcome)] += amount

    def get(self, op: str, outcome: str) -> int:
        with self._lock:
            return self._counts[(op, outcome)]

    def snapshot(self) -> Dict[Tuple[str, str], int]:
        with self._lock:
            return dict(self._counts)
