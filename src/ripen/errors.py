"""Domain errors raised by the bake pipeline.

Config errors are pydantic ``ValidationError`` and pipeline bugs are
``ContractViolation`` (see ``ripen.contracts``). Everything here describes a
failure of the outside world: the store or the timer.

Key distinction:
- ProvisioningError: bucket setup failed, no bake was started
- ExecutionError: one row delete failed inside a bake
- TimerError: the periodic ticker could not be established
- BakeError: run-level failure wrapping every ExecutionError of the run
"""

from typing import List, Optional

__all__ = ['ProvisioningError', 'ExecutionError', 'TimerError', 'BakeError']


class ProvisioningError(RuntimeError):
    """Raised when the schema or its bucket tables could not be created."""
    pass


class ExecutionError(RuntimeError):
    """Raised when a single row apply fails.

    The store error that caused it is chained as ``__cause__``.

    Parameters
    ----------
    row : int
        Bucket index whose delete failed.
    column : int or None
        Image column being baked, None when applied outside a column bake.
    threshold : int or None
        Threshold that was being applied.
    message : str, optional
        Extra detail, usually the store error text.
    """

    def __init__(self, row: int, column: Optional[int] = None,
                 threshold: Optional[int] = None, message: str = ""):
        self.row = row
        self.column = column
        self.threshold = threshold
        self.failures: List["ExecutionError"] = [self]

        where = f"row {row}" if column is None else f"column {column}, row {row}"
        text = f"Row apply failed at {where}"
        if threshold is not None:
            text += f" (threshold={threshold})"
        if message:
            text += f": {message}"
        super().__init__(text)


class TimerError(RuntimeError):
    """Raised when the periodic ticker cannot be established."""
    pass


class BakeError(RuntimeError):
    """Run-level failure of a bake.

    One failed row aborts the run. All row failures seen before the run
    stopped are kept, ordered by column then row.

    Attributes
    ----------
    failures : list of ExecutionError
    columns_completed : int
        Number of columns whose every row applied successfully.
    """

    def __init__(self, failures: List[ExecutionError], columns_completed: int = 0):
        self.failures = sorted(
            failures,
            key=lambda e: (e.column if e.column is not None else -1, e.row),
        )
        self.columns_completed = columns_completed

        if self.failures:
            first = self.failures[0]
            text = (f"Bake aborted: {len(self.failures)} row failure(s), "
                    f"first at column {first.column}, row {first.row}")
        else:
            text = "Bake aborted"
        super().__init__(text)

    @property
    def first(self) -> Optional[ExecutionError]:
        return self.failures[0] if self.failures else None
