# src/linsys/solver.py
from __future__ import annotations

from typing import Any, Optional, Union

import torch

from linsys.classify import Solution, classify
from linsys.elimination import EliminationMode, back_substitute
from linsys.ops import ElementaryRowOperation
from linsys.system import LinearSystem
from linsys.tolerance import ToleranceLike


def solve_with_trace(
    coefficients: Any,
    rhs: Any,
    *,
    mode: EliminationMode = "reduced_row_echelon",
    tolerance: Optional[ToleranceLike] = None,
    pivoting: str = "partial",
    check_finite: bool = True,
    dtype: Optional[torch.dtype] = None,
    device: Optional[Union[str, torch.device]] = None,
) -> tuple[Solution, tuple[ElementaryRowOperation, ...]]:
    """Solve A x = b and return the elementary operations that reduced [A | b].

    With mode='row_echelon' the trace holds forward elimination followed by the
    back-substitution operations used to classify the system.
    """
    system = LinearSystem.from_parts(coefficients, rhs, dtype=dtype, device=device)
    result = system.echelon(mode=mode, tolerance=tolerance, pivoting=pivoting, check_finite=check_finite)
    reduced = back_substitute(result, check_finite_values=check_finite)
    solution = classify(
        reduced,
        single_rhs=system.single_rhs,
        variable_names=system.variable_names,
        check_finite_values=check_finite,
    )
    return solution, reduced.operations


def solve(
    coefficients: Any,
    rhs: Any,
    *,
    mode: EliminationMode = "reduced_row_echelon",
    tolerance: Optional[ToleranceLike] = None,
    pivoting: str = "partial",
    check_finite: bool = True,
    dtype: Optional[torch.dtype] = None,
    device: Optional[Union[str, torch.device]] = None,
) -> Solution:
    """Solve A x = B by elimination on the augmented matrix [A | B].

    Inputs
    - coefficients: (n,m) array-like or pandas.DataFrame
    - rhs: (n,) or (n,k) array-like or pandas object

    Returns Unique, Inconsistent, Infinite, or PerColumn (when RHS columns
    classify differently). Shapes follow the RHS: (m,) for a vector, (m,k)
    otherwise.

    mode
    - reduced_row_echelon : Gauss-Jordan elimination
    - row_echelon         : Gaussian elimination, then back-substitution
    """
    solution, _ = solve_with_trace(
        coefficients,
        rhs,
        mode=mode,
        tolerance=tolerance,
        pivoting=pivoting,
        check_finite=check_finite,
        dtype=dtype,
        device=device,
    )
    return solution
