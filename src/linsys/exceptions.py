from __future__ import annotations

from typing import Optional, Tuple


class LinsysError(Exception):
    """Base exception for linsys."""


class ShapeError(LinsysError, ValueError):
    """Invalid shape or rank of an input."""


class DimensionMismatchError(ShapeError):
    """Coefficients and right-hand side have different row counts."""


class IndexOutOfRangeError(LinsysError, IndexError):
    """A row operation referenced a row outside the matrix.

    `which` is one of "first", "second" or "both" and names the offending index
    of a two-row operation ("first" for single-row operations).
    """

    def __init__(self, message: str, *, indices: Tuple[int, ...] = (), which: str = "first", nrows: int = 0):
        super().__init__(message)
        self.indices = tuple(indices)
        self.which = which
        self.nrows = int(nrows)


class InvalidOperationError(LinsysError, ValueError):
    """Zero scale factor, self-combination, or a non-finite factor."""


class NumericalFailureError(LinsysError, ArithmeticError):
    """A value became inf/nan during elimination or classification."""

    def __init__(self, message: str, *, position: Optional[Tuple[int, int]] = None):
        if position is not None:
            message = f"{message} at (row={position[0]}, col={position[1]})"
        super().__init__(message)
        self.position = position


class NotSupportedError(LinsysError, NotImplementedError):
    """Feature is not supported."""
