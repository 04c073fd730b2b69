# src/linsys/ops.py
"""
linsys.ops

Elementary row operations acting in place on a DenseMatrix.

Each operation is a frozen parameter object with
- validate(matrix)          : bounds and semantic checks, no mutation
- apply_unchecked(matrix)   : the arithmetic only
- apply(matrix)             : validate, then apply
- inverse()                 : the operation undoing this one

Inverses
--------
- Swap(i, j)              -> Swap(i, j)
- Scale(i, f)             -> Scale(i, 1/f)
- AddMultiple(i, j, f)    -> AddMultiple(i, j, -f)
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Tuple, Union

from linsys.exceptions import IndexOutOfRangeError, InvalidOperationError
from linsys.matrix import DenseMatrix


def _in_range(i: int, nrows: int) -> bool:
    return 0 <= i < nrows


def _check_row(i: int, matrix: DenseMatrix, op_name: str) -> None:
    nrows = matrix.row_count()
    if not _in_range(i, nrows):
        raise IndexOutOfRangeError(
            f"{op_name}: row index {i} is out of range for a matrix with {nrows} rows",
            indices=(i,),
            which="first",
            nrows=nrows,
        )


def _check_rows(i: int, j: int, matrix: DenseMatrix, op_name: str) -> None:
    nrows = matrix.row_count()
    bad_i = not _in_range(i, nrows)
    bad_j = not _in_range(j, nrows)
    if bad_i and bad_j:
        which = "both"
    elif bad_i:
        which = "first"
    elif bad_j:
        which = "second"
    else:
        return
    raise IndexOutOfRangeError(
        f"{op_name}: {which} row index out of range in ({i}, {j}) for a matrix with {nrows} rows",
        indices=(i, j),
        which=which,
        nrows=nrows,
    )


def _check_factor(factor: float, op_name: str) -> None:
    if not math.isfinite(factor):
        raise InvalidOperationError(f"{op_name}: factor must be finite. Got {factor!r}")


@dataclass(frozen=True)
class Swap:
    """Exchange rows i and j."""

    i: int
    j: int

    @property
    def rows(self) -> Tuple[int, ...]:
        return (self.i, self.j)

    def validate(self, matrix: DenseMatrix) -> None:
        _check_rows(self.i, self.j, matrix, "Swap")

    def apply_unchecked(self, matrix: DenseMatrix) -> None:
        if self.i == self.j:
            return
        t = matrix.tensor
        t[[self.i, self.j]] = t[[self.j, self.i]]

    def apply(self, matrix: DenseMatrix) -> None:
        self.validate(matrix)
        self.apply_unchecked(matrix)

    def inverse(self) -> "Swap":
        return self

    def __str__(self) -> str:
        return f"R{self.i} <-> R{self.j}"


@dataclass(frozen=True)
class Scale:
    """Multiply row i by a nonzero factor."""

    i: int
    factor: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "factor", float(self.factor))

    @property
    def rows(self) -> Tuple[int, ...]:
        return (self.i,)

    def validate(self, matrix: DenseMatrix) -> None:
        _check_factor(self.factor, "Scale")
        if self.factor == 0.0:
            raise InvalidOperationError("Scale: factor must be nonzero (scaling by zero is not invertible)")
        _check_row(self.i, matrix, "Scale")

    def apply_unchecked(self, matrix: DenseMatrix) -> None:
        matrix.tensor[self.i] *= self.factor

    def apply(self, matrix: DenseMatrix) -> None:
        self.validate(matrix)
        self.apply_unchecked(matrix)

    def inverse(self) -> "Scale":
        if self.factor == 0.0:
            raise InvalidOperationError("Scale: factor must be nonzero (scaling by zero is not invertible)")
        return Scale(self.i, 1.0 / self.factor)

    def __str__(self) -> str:
        return f"R{self.i} <- {self.factor:g} * R{self.i}"


@dataclass(frozen=True)
class AddMultiple:
    """Add factor * row j to row i (i != j)."""

    i: int
    j: int
    factor: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "factor", float(self.factor))

    @property
    def rows(self) -> Tuple[int, ...]:
        return (self.i,)

    def validate(self, matrix: DenseMatrix) -> None:
        _check_factor(self.factor, "AddMultiple")
        if self.i == self.j:
            raise InvalidOperationError(f"AddMultiple: target and source rows must differ. Got i=j={self.i}")
        _check_rows(self.i, self.j, matrix, "AddMultiple")

    def apply_unchecked(self, matrix: DenseMatrix) -> None:
        t = matrix.tensor
        t[self.i].add_(t[self.j], alpha=self.factor)

    def apply(self, matrix: DenseMatrix) -> None:
        self.validate(matrix)
        self.apply_unchecked(matrix)

    def inverse(self) -> "AddMultiple":
        return AddMultiple(self.i, self.j, -self.factor)

    def __str__(self) -> str:
        return f"R{self.i} <- R{self.i} + {self.factor:g} * R{self.j}"


ElementaryRowOperation = Union[Swap, Scale, AddMultiple]


def swap(matrix: DenseMatrix, i: int, j: int) -> Swap:
    op = Swap(i, j)
    op.apply(matrix)
    return op


def scale(matrix: DenseMatrix, i: int, factor: float) -> Scale:
    op = Scale(i, factor)
    op.apply(matrix)
    return op


def add_multiple(matrix: DenseMatrix, i: int, j: int, factor: float) -> AddMultiple:
    op = AddMultiple(i, j, factor)
    op.apply(matrix)
    return op
