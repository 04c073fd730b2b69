# src/linsys/classify.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Optional, Sequence, Union

import torch

from linsys.elimination import EchelonForm, back_substitute
from linsys.exceptions import NumericalFailureError, ShapeError


@dataclass(frozen=True, eq=False)
class Unique:
    """Exactly one solution.

    values: (m,) for a single right-hand side, (m,k) for k right-hand sides.
    """

    values: torch.Tensor
    rank: int
    variable_names: Optional[list[str]] = None

    kind: ClassVar[str] = "unique"

    def as_dict(self) -> dict[str, Any]:
        """Map variable names (or x0, x1, ...) to values."""
        return _named(self.values, self.variable_names)


@dataclass(frozen=True, eq=False)
class Inconsistent:
    """No assignment satisfies all equations.

    rows: rows of the reduced matrix that read 0 = c with c != 0.
    """

    rows: tuple[int, ...]
    rank: int
    variable_names: Optional[list[str]] = None

    kind: ClassVar[str] = "inconsistent"


@dataclass(frozen=True, eq=False)
class Infinite:
    """A family of solutions x = particular + sum_i t_i * direction_i.

    particular     : (m,) or (m,k), free variables set to zero
    free_directions: one (free variable index, (m,) direction) per free variable
    """

    particular: torch.Tensor
    free_directions: tuple[tuple[int, torch.Tensor], ...]
    rank: int
    variable_names: Optional[list[str]] = None

    kind: ClassVar[str] = "infinite"

    @property
    def free_variables(self) -> tuple[int, ...]:
        return tuple(f for f, _ in self.free_directions)

    @property
    def nullspace(self) -> torch.Tensor:
        """Directions stacked as columns: (m, d)."""
        return torch.stack([d for _, d in self.free_directions], dim=1)

    def evaluate(self, params: Any) -> torch.Tensor:
        """Solution for the given free-variable values.

        params: (d,) for a single right-hand side, or (d,k) / (d,) broadcast
        against k right-hand sides.
        """
        N = self.nullspace
        t = torch.as_tensor(params, dtype=N.dtype, device=N.device)
        if t.shape[0] != N.shape[1]:
            raise ShapeError(f"Expected {N.shape[1]} free-variable values. Got {tuple(t.shape)}")
        if self.particular.ndim == 2 and t.ndim == 1:
            t = t.unsqueeze(-1)
        return self.particular + N @ t


@dataclass(frozen=True, eq=False)
class PerColumn:
    """Right-hand-side columns that classify differently, one Solution each."""

    solutions: tuple["Solution", ...]
    rank: int
    variable_names: Optional[list[str]] = None

    kind: ClassVar[str] = "per_column"

    def __len__(self) -> int:
        return len(self.solutions)

    def __getitem__(self, j: int) -> "Solution":
        return self.solutions[j]


Solution = Union[Unique, Inconsistent, Infinite, PerColumn]


def _named(values: torch.Tensor, names: Optional[Sequence[str]]) -> dict[str, Any]:
    m = values.shape[0]
    keys = list(names) if names is not None else [f"x{i}" for i in range(m)]
    if values.ndim == 1:
        return {k: float(values[i].item()) for i, k in enumerate(keys)}
    return {k: values[i].tolist() for i, k in enumerate(keys)}


def _check_values(values: torch.Tensor, what: str) -> None:
    bad = ~torch.isfinite(values)
    if bool(bad.any()):
        idx = torch.nonzero(bad, as_tuple=False)[0].tolist()
        pos = (int(idx[0]), int(idx[1]) if len(idx) > 1 else 0)
        raise NumericalFailureError(f"Non-finite value in {what}", position=pos)


def _zero_coefficient_rows(echelon: EchelonForm) -> list[int]:
    A = echelon.coefficients
    context = echelon.scale_context()[:, : echelon.coefficient_cols]
    zero = echelon.tolerance.is_zero_tensor(A, context)
    return [int(r) for r in torch.nonzero(zero.all(dim=1), as_tuple=False).flatten().tolist()]


def _free_directions(echelon: EchelonForm, check: bool = True) -> tuple[tuple[int, torch.Tensor], ...]:
    A = echelon.coefficients
    m = echelon.coefficient_cols
    rows = [p.row for p in echelon.pivots]
    cols = [p.col for p in echelon.pivots]
    out = []
    for f in echelon.free_columns:
        d = torch.zeros(m, dtype=A.dtype, device=A.device)
        d[f] = 1.0
        if rows:
            d[cols] = -A[rows, f]
        if check:
            _check_values(d.unsqueeze(-1), f"direction for free variable {f}")
        out.append((f, d))
    return tuple(out)


def classify(
    echelon: EchelonForm,
    *,
    single_rhs: bool = False,
    variable_names: Optional[list[str]] = None,
    check_finite_values: bool = True,
) -> Solution:
    """Classify the system held by an augmented echelon form.

    Row-echelon inputs are first completed by back-substitution. Each RHS
    column is classified against the shared pivot structure; columns that
    agree are aggregated into one Solution, otherwise a PerColumn is returned.
    """
    if echelon.matrix.col_count() <= echelon.coefficient_cols:
        raise ShapeError("classify needs an augmented matrix with at least one right-hand-side column")

    echelon = back_substitute(echelon, check_finite_values=check_finite_values)

    A = echelon.coefficients
    B = echelon.rhs
    m = echelon.coefficient_cols
    k = B.shape[1]
    rank = echelon.rank
    tol = echelon.tolerance
    rhs_context = echelon.scale_context()[:, m:]

    zero_rows = _zero_coefficient_rows(echelon)
    pivot_rows = [p.row for p in echelon.pivots]
    pivot_cols = [p.col for p in echelon.pivots]

    # per column: offending rows (empty when consistent)
    bad_rows: list[tuple[int, ...]] = []
    for j in range(k):
        rows = tuple(
            r for r in zero_rows if not tol.is_zero(float(B[r, j].item()), float(rhs_context[r, j].item()))
        )
        bad_rows.append(rows)

    particular = torch.zeros((m, k), dtype=A.dtype, device=A.device)
    if pivot_rows:
        particular[pivot_cols] = B[pivot_rows]
    if check_finite_values:
        _check_values(particular, "solution")

    directions = _free_directions(echelon, check_finite_values) if rank < m else ()

    def column_solution(j: int, values: torch.Tensor) -> Solution:
        if bad_rows[j]:
            return Inconsistent(rows=bad_rows[j], rank=rank, variable_names=variable_names)
        if rank == m:
            return Unique(values=values, rank=rank, variable_names=variable_names)
        return Infinite(particular=values, free_directions=directions, rank=rank, variable_names=variable_names)

    if single_rhs and k == 1:
        return column_solution(0, particular[:, 0])

    inconsistent = [bool(r) for r in bad_rows]
    if any(inconsistent) and not all(inconsistent):
        return PerColumn(
            solutions=tuple(column_solution(j, particular[:, j]) for j in range(k)),
            rank=rank,
            variable_names=variable_names,
        )
    if all(inconsistent):
        rows = tuple(sorted(set(r for rs in bad_rows for r in rs)))
        return Inconsistent(rows=rows, rank=rank, variable_names=variable_names)
    return column_solution(0, particular)
