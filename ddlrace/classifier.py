"""Decide which store failures are expected races and which are defects.

The benign set is deliberately tiny. A duplicate key on insert happens because
workers share the ``val0`` domain on purpose; a "public column has changed"
error on delete is the shape-change race the harness provokes. Anything else
means the store did something it should not have, so widening this table
changes what the harness is able to catch.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Tuple

from .errors import StoreError


class Verdict(enum.Enum):
    BENIGN = "benign"
    FATAL = "fatal"


class Operation(enum.Enum):
    INSERT = "insert"
    DELETE = "delete"


@dataclass(frozen=True)
class Signature:
    """One benign condition for one operation.

    When the error carries a numeric code and ``code`` is set, the code alone
    decides. Otherwise every entry in ``patterns`` has to appear in the message
    (case-insensitive).
    """

    name: str
    operation: Operation
    code: Optional[int] = None
    patterns: Tuple[str, ...] = ()

    def matches(self, error: StoreError, operation: Operation) -> bool:
        if operation is not self.operation:
            return False
        if self.code is not None and error.code is not None:
            return error.code == self.code
        if not self.patterns:
            return False
        message = (error.message or "").lower()
        return all(pattern.lower() in message for pattern in self.patterns)


DUPLICATE_KEY = Signature(
    name="duplicate-key",
    operation=Operation.INSERT,
    code=1062,
    patterns=("Duplicate entry",),
)

# Error 8028 (HY000): public column val0 has changed
COLUMN_CHANGED = Signature(
    name="column-changed",
    operation=Operation.DELETE,
    code=8028,
    patterns=("public column", "has changed"),
)

DEFAULT_SIGNATURES: Tuple[Signature, ...] = (DUPLICATE_KEY, COLUMN_CHANGED)


class ErrorClassifier:
    """Ordered table of benign signatures; the first match wins."""

    def __init__(self, signatures: Optional[Iterable[Signature]] = None) -> None:
        self.signatures: Sequence[Signature] = tuple(
            DEFAULT_SIGNATURES if signatures is None else signatures
        )

    def match(self, error: StoreError, operation: Operation) -> Optional[Signature]:
        for signature in self.signatures:
            if signature.matches(error, operation):
                return signature
        return None

    def classify(self, error: StoreError, operation: Operation) -> Verdict:
        if self.match(error, operation) is not None:
            return Verdict.BENIGN
        return Verdict.FATAL
