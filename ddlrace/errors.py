"""Exception types raised by the store and the race workers."""

from __future__ import annotations

from typing import Optional


def extract_error_code(exc: BaseException) -> Optional[int]:
    """Best-effort helper to pull a numeric error code off a DB exception."""
    if hasattr(exc, "errno"):
        code = getattr(exc, "errno")
        if isinstance(code, int):
            return code
    if hasattr(exc, "args") and exc.args:
        first = exc.args[0]
        if isinstance(first, int):
            return first
    return None


class StoreError(Exception):
    """A statement the store refused, with the engine code when one is known."""

    def __init__(self, code: Optional[int], message: str) -> None:
        super().__init__(code, message)
        self.code = code
        self.message = message

    @classmethod
    def from_exception(cls, exc: BaseException) -> "StoreError":
        code = extract_error_code(exc)
        message = str(exc)
        # PyMySQL errors carry (code, message) in args
        if code is not None and len(getattr(exc, "args", ())) > 1:
            message = str(exc.args[1])
        return cls(code, message)

    def __str__(self) -> str:
        if self.code is None:
            return self.message
        return f"({self.code}) {self.message}"


class SetupError(Exception):
    """Schema bootstrap failed before any worker started."""


class FatalRace(Exception):
    """A delete failed for a reason other than the expected schema race."""

    def __init__(self, worker_id: int, operation: str, rows: int, cause: StoreError) -> None:
        super().__init__(
            f"worker-{worker_id:02d} {operation} of {rows} row(s) failed: {cause}"
        )
        self.worker_id = worker_id
        self.operation = operation
        self.rows = rows
        self.cause = cause
