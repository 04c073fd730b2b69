# src/linsys/elimination.py
from __future__ import annotations

import math
import warnings
from dataclasses import dataclass, replace
from typing import Any, Literal, Optional, Sequence

import torch

from linsys.exceptions import NumericalFailureError, ShapeError
from linsys.matrix import DenseMatrix, as_matrix
from linsys.ops import AddMultiple, ElementaryRowOperation, Scale, Swap
from linsys.pivot import get_pivot_strategy, select_pivot
from linsys.tolerance import TolerancePolicy, ToleranceLike, resolve_tolerance

EliminationMode = Literal["row_echelon", "reduced_row_echelon"]

# |pivot| / its scale context below this triggers an ill-conditioning warning
_SMALL_PIVOT_RATIO = 1e-8


@dataclass(frozen=True)
class PivotPosition:
    row: int
    col: int


@dataclass(frozen=True, eq=False)
class EchelonForm:
    """Output of the row reduction engine.

    matrix          : the reduced (rows, cols) matrix
    pivots          : pivot positions in discovery order
    operations      : every elementary operation applied, in order
    coefficient_cols: number of leading coefficient columns (the rest is RHS)
    column_scales   : (cols,) largest |entry| per column of the input
    row_scales      : (rows,) bound on the magnitude of the terms summed into
                      each row, carried through the operations

    The zero test for entry (i, j) uses min(column_scales[j], row_scales[i])
    as its scale context, so a row of small entries is not judged against a
    large entry elsewhere in the same column.
    """

    matrix: DenseMatrix
    pivots: tuple[PivotPosition, ...]
    operations: tuple[ElementaryRowOperation, ...]
    mode: EliminationMode
    coefficient_cols: int
    column_scales: torch.Tensor
    row_scales: torch.Tensor
    tolerance: TolerancePolicy

    @property
    def rank(self) -> int:
        return len(self.pivots)

    @property
    def is_reduced(self) -> bool:
        return self.mode == "reduced_row_echelon"

    @property
    def pivot_columns(self) -> tuple[int, ...]:
        return tuple(p.col for p in self.pivots)

    @property
    def free_columns(self) -> tuple[int, ...]:
        pivot_cols = set(self.pivot_columns)
        return tuple(c for c in range(self.coefficient_cols) if c not in pivot_cols)

    @property
    def coefficients(self) -> torch.Tensor:
        return self.matrix.tensor[:, : self.coefficient_cols]

    @property
    def rhs(self) -> torch.Tensor:
        return self.matrix.tensor[:, self.coefficient_cols :]

    def scale_context(self) -> torch.Tensor:
        """(rows, cols) scale context for the zero test of each entry."""
        return torch.minimum(self.column_scales.unsqueeze(0), self.row_scales.unsqueeze(1))


def _first_non_finite(t: torch.Tensor, rows: Optional[Sequence[int]] = None) -> Optional[tuple[int, int]]:
    sub = t if rows is None else t[list(rows)]
    bad = ~torch.isfinite(sub)
    if not bool(bad.any()):
        return None
    r, c = (int(v) for v in torch.nonzero(bad, as_tuple=False)[0].tolist())
    return (r if rows is None else list(rows)[r], c)


def check_finite(matrix: DenseMatrix, rows: Optional[Sequence[int]] = None, *, what: str = "matrix") -> None:
    pos = _first_non_finite(matrix.tensor, rows)
    if pos is not None:
        raise NumericalFailureError(f"Non-finite value in {what}", position=pos)


class _Reducer:
    """Applies and logs operations on one exclusively owned matrix."""

    def __init__(
        self,
        matrix: DenseMatrix,
        tolerance: TolerancePolicy,
        scales: torch.Tensor,
        row_scales: torch.Tensor,
        check: bool,
    ):
        self.matrix = matrix
        self.tolerance = tolerance
        self.scales = scales
        self.row_scales = row_scales.clone()
        self.check = check
        self.log: list[ElementaryRowOperation] = []

    def apply(self, op: ElementaryRowOperation) -> None:
        op.apply(self.matrix)
        self.log.append(op)
        self._track(op)
        if self.check:
            check_finite(self.matrix, op.rows, what=f"result of {op}")

    def _track(self, op: ElementaryRowOperation) -> None:
        s = self.row_scales
        if isinstance(op, Swap):
            s[[op.i, op.j]] = s[[op.j, op.i]]
        elif isinstance(op, Scale):
            s[op.i] *= abs(op.factor)
        else:
            s[op.i] = torch.maximum(s[op.i], abs(op.factor) * s[op.j])

    def context(self, row: int, col: int) -> float:
        return min(float(self.scales[col].item()), float(self.row_scales[row].item()))

    def contexts(self, col: int) -> torch.Tensor:
        """(rows,) scale context of every entry in `col`."""
        return torch.clamp(self.row_scales, max=float(self.scales[col].item()))

    def is_zero(self, value: float, row: int, col: int) -> bool:
        return self.tolerance.is_zero(value, self.context(row, col))

    def factor(self, num: float, den: float, pos: tuple[int, int]) -> float:
        f = num / den
        if not math.isfinite(f):
            raise NumericalFailureError(f"Multiplier {num!r} / {den!r} overflowed", position=pos)
        return f

    def normalize(self, row: int, col: int) -> None:
        p = self.matrix.get(row, col)
        if p != 1.0:
            self.apply(Scale(row, self.factor(1.0, p, (row, col))))
            self.matrix.set(row, col, 1.0)

    def eliminate(self, rows: Sequence[int], pivot_row: int, col: int) -> None:
        p = self.matrix.get(pivot_row, col)
        for i in rows:
            if i == pivot_row:
                continue
            entry = self.matrix.get(i, col)
            if entry == 0.0:
                continue
            if not self.is_zero(entry, i, col):
                self.apply(AddMultiple(i, pivot_row, self.factor(-entry, p, (i, col))))
            # treated as zero from here on
            self.matrix.set(i, col, 0.0)


def _column_scales(t: torch.Tensor) -> torch.Tensor:
    return t.abs().amax(dim=0)


def _row_scales(t: torch.Tensor) -> torch.Tensor:
    return t.abs().amax(dim=1)


def _warn_small_pivot(value: float, scale: float, pos: PivotPosition) -> None:
    if scale > 0.0 and abs(value) < _SMALL_PIVOT_RATIO * scale:
        warnings.warn(
            f"Small pivot {value:.3e} at (row={pos.row}, col={pos.col}) relative to its scale "
            f"{scale:.3e}. The system may be ill-conditioned.",
            RuntimeWarning,
            stacklevel=3,
        )


def row_reduce(
    matrix: Any,
    *,
    mode: EliminationMode = "reduced_row_echelon",
    coefficient_cols: Optional[int] = None,
    tolerance: Optional[ToleranceLike] = None,
    pivoting: str = "partial",
    check_finite_values: bool = True,
    dtype: Optional[torch.dtype] = None,
) -> EchelonForm:
    """Gaussian (mode='row_echelon') or Gauss-Jordan (mode='reduced_row_echelon') elimination.

    Inputs
    - matrix: (n, cols) array-like or DenseMatrix; it is copied, never mutated
    - coefficient_cols: leading columns eligible as pivots (defaults to all
      columns). For an augmented matrix [A | B] pass A's column count.

    Entries treated as zero by `tolerance` in an eliminated column are stored
    as exact zeros and normalized pivots as exact ones, so the returned matrix
    has exact echelon structure.
    """
    if mode not in ("row_echelon", "reduced_row_echelon"):
        raise ValueError(f"Unknown mode {mode!r}. Use 'row_echelon' or 'reduced_row_echelon'.")
    get_pivot_strategy(pivoting)

    work = as_matrix(matrix, dtype=dtype)
    n, total_cols = work.shape
    m = total_cols if coefficient_cols is None else int(coefficient_cols)
    if not 0 < m <= total_cols:
        raise ShapeError(f"coefficient_cols must be in [1, {total_cols}]. Got {coefficient_cols}")

    tol = resolve_tolerance(tolerance, work.dtype)
    if check_finite_values:
        check_finite(work, what="input matrix")

    scales = _column_scales(work.tensor)
    red = _Reducer(work, tol, scales, _row_scales(work.tensor), check_finite_values)
    pivots: list[PivotPosition] = []

    pivot_row, pivot_col = 0, 0
    while pivot_row < n and pivot_col < m:
        r = select_pivot(work, pivot_row, pivot_col, tol, scale=red.contexts(pivot_col), strategy=pivoting)
        if r is None:
            # free column; clear the residue left below the current row
            work.tensor[pivot_row:, pivot_col] = 0.0
            pivot_col += 1
            continue

        if r != pivot_row:
            red.apply(Swap(pivot_row, r))

        pos = PivotPosition(pivot_row, pivot_col)
        _warn_small_pivot(work.get(pivot_row, pivot_col), red.context(pivot_row, pivot_col), pos)

        if mode == "reduced_row_echelon":
            red.normalize(pivot_row, pivot_col)
            red.eliminate(range(n), pivot_row, pivot_col)
        else:
            red.eliminate(range(pivot_row + 1, n), pivot_row, pivot_col)

        pivots.append(pos)
        pivot_row += 1
        pivot_col += 1

    return EchelonForm(
        matrix=work,
        pivots=tuple(pivots),
        operations=tuple(red.log),
        mode=mode,
        coefficient_cols=m,
        column_scales=scales,
        row_scales=red.row_scales,
        tolerance=tol,
    )


def back_substitute(echelon: EchelonForm, *, check_finite_values: bool = True) -> EchelonForm:
    """Complete a row-echelon result into reduced row-echelon form.

    Uses the same elementary operations (normalize each pivot row, then clear
    the entries above it, last pivot first); the new operations are appended
    to the log. Reduced inputs are returned unchanged.
    """
    if echelon.is_reduced:
        return echelon

    red = _Reducer(
        echelon.matrix.copy(), echelon.tolerance, echelon.column_scales, echelon.row_scales, check_finite_values
    )
    for pos in reversed(echelon.pivots):
        red.normalize(pos.row, pos.col)
        red.eliminate(range(pos.row), pos.row, pos.col)

    return replace(
        echelon,
        matrix=red.matrix,
        operations=echelon.operations + tuple(red.log),
        row_scales=red.row_scales,
        mode="reduced_row_echelon",
    )


def row_echelon(matrix: Any, *, tolerance: Optional[ToleranceLike] = None, pivoting: str = "partial") -> EchelonForm:
    """Row-echelon form of a plain matrix (every column may hold a pivot)."""
    return row_reduce(matrix, mode="row_echelon", tolerance=tolerance, pivoting=pivoting)


def reduced_row_echelon(
    matrix: Any, *, tolerance: Optional[ToleranceLike] = None, pivoting: str = "partial"
) -> EchelonForm:
    """Reduced row-echelon form of a plain matrix (every column may hold a pivot)."""
    return row_reduce(matrix, mode="reduced_row_echelon", tolerance=tolerance, pivoting=pivoting)


def rank(matrix: Any, *, tolerance: Optional[ToleranceLike] = None) -> int:
    """Number of pivots found by forward elimination."""
    return row_echelon(matrix, tolerance=tolerance).rank
