"""Stress harness that races online column type changes against concurrent DML."""

from .classifier import DEFAULT_SIGNATURES, ErrorClassifier, Operation, Signature, Verdict
from .errors import FatalRace, SetupError, StoreError
from .rows import Row, RowBatch, RowBatchGenerator

__version__ = "0.1.0"

__all__ = [
    "DEFAULT_SIGNATURES",
    "ErrorClassifier",
    "FatalRace",
    "Operation",
    "Row",
    "RowBatch",
    "RowBatchGenerator",
    "SetupError",
    "Signature",
    "StoreError",
    "Verdict",
]
