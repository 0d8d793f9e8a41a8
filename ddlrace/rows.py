from __future__ import annotations

import random
from dataclasses import dataclass
from typing import List, Sequence, Tuple

DEFAULT_BATCH_SIZES: Tuple[int, ...] = (10, 50, 100, 200)
DEFAULT_MAX_VALUE0 = 1000
DEFAULT_PADDING_BYTES = 128


@dataclass(frozen=True)
class Row:
    val0: int
    val1: int
    padding: str

    def as_params(self) -> Tuple[int, int, str]:
        return (self.val0, self.val1, self.padding)


@dataclass(frozen=True)
class RowBatch:
    """Rows one worker inserts and then deletes within a single cycle."""

    worker_id: int
    rows: Tuple[Row, ...]

    @property
    def size(self) -> int:
        return len(self.rows)

    @property
    def keys(self) -> List[int]:
        return [row.val0 for row in self.rows]

    def insert_params(self) -> List[object]:
        params: List[object] = []
        for row in self.rows:
            params.extend(row.as_params())
        return params


class RowBatchGenerator:
    """Builds contiguous, wrap-around runs of ``val0`` starting at a random offset.

    Every call draws from the generator's own ``random.Random``; two generators
    seeded alike produce identical batches, padding included.
    """

    def __init__(
        self,
        rng: random.Random,
        *,
        max_value0: int = DEFAULT_MAX_VALUE0,
        batch_sizes: Sequence[int] = DEFAULT_BATCH_SIZES,
        padding_bytes: int = DEFAULT_PADDING_BYTES,
    ) -> None:
        if max_value0 < 1:
            raise ValueError(f"max_value0 must be >= 1 (got {max_value0})")
        if not batch_sizes:
            raise ValueError("batch_sizes must not be empty")
        for size in batch_sizes:
            if size < 1 or size > max_value0:
                raise ValueError(
                    f"batch size {size} must be between 1 and max_value0={max_value0}"
                )
        if padding_bytes < 0:
            raise ValueError(f"padding_bytes must be >= 0 (got {padding_bytes})")
        self.rng = rng
        self.max_value0 = max_value0
        self.batch_sizes: Tuple[int, ...] = tuple(batch_sizes)
        self.padding_bytes = padding_bytes

    def _padding(self) -> str:
        if not self.padding_bytes:
            return ""
        return self.rng.randbytes(self.padding_bytes).hex()

    def generate(self, worker_id: int) -> RowBatch:
        size = self.rng.choice(self.batch_sizes)
        val0 = self.rng.randrange(self.max_value0)
        rows: List[Row] = []
        for _ in range(size):
            rows.append(Row(val0=val0, val1=val0 * 10, padding=self._padding()))
            val0 = (val0 + 1) % self.max_value0
        return RowBatch(worker_id=worker_id, rows=tuple(rows))
