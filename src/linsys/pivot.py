from __future__ import annotations

from typing import Callable, Optional, Union

import torch

from linsys.exceptions import IndexOutOfRangeError, NotSupportedError
from linsys.matrix import DenseMatrix
from linsys.tolerance import TolerancePolicy

ScaleContext = Union[float, torch.Tensor]
PivotStrategy = Callable[[torch.Tensor, TolerancePolicy, ScaleContext], Optional[int]]

_REGISTRY: dict[str, PivotStrategy] = {}


def register_pivot_strategy(name: str, strategy: PivotStrategy) -> None:
    """Register a pivot strategy.

    A strategy receives the candidate entries of the active column (rows
    start_row..n, as a 1D tensor), the tolerance policy and the scale context
    (a float, or a tensor aligned with the candidates), and returns the offset
    of the chosen candidate or None.
    """
    key = str(name).strip().lower()
    if not key:
        raise ValueError("Strategy name must be non-empty")
    _REGISTRY[key] = strategy


def list_pivot_strategies() -> list[str]:
    return sorted(_REGISTRY.keys())


def get_pivot_strategy(name: str) -> PivotStrategy:
    key = str(name).strip().lower()
    if key not in _REGISTRY:
        raise NotSupportedError(
            f"Unknown pivot strategy {name!r}. Available: {', '.join(list_pivot_strategies())}"
        )
    return _REGISTRY[key]


def select_pivot(
    matrix: DenseMatrix,
    start_row: int,
    column: int,
    tolerance: TolerancePolicy,
    *,
    scale: Optional[ScaleContext] = None,
    strategy: str = "partial",
) -> Optional[int]:
    """Choose the pivot row for `column` among rows start_row..n.

    Returns the absolute row index, or None when every candidate is zero under
    `tolerance`. `scale` is the magnitude used for the relative zero test:
    a float shared by every row, or a (rows,) tensor with one value per row.
    It defaults to the largest |entry| currently in the whole column.
    """
    nrows, ncols = matrix.shape
    if not 0 <= column < ncols:
        raise IndexOutOfRangeError(
            f"column {column} is out of range for a matrix with {ncols} columns",
            indices=(column,),
            nrows=nrows,
        )
    if start_row >= nrows:
        return None
    if start_row < 0:
        raise IndexOutOfRangeError(
            f"start_row {start_row} is out of range for a matrix with {nrows} rows",
            indices=(start_row,),
            nrows=nrows,
        )

    col = matrix.column(column)
    if scale is None:
        scale = float(col.abs().max().item())
    if isinstance(scale, torch.Tensor):
        if scale.shape != (nrows,):
            raise ValueError(f"scale must be a float or a ({nrows},) tensor. Got {tuple(scale.shape)}")
        scale = scale[start_row:]
    else:
        scale = float(scale)

    offset = get_pivot_strategy(strategy)(col[start_row:], tolerance, scale)
    if offset is None:
        return None
    return start_row + int(offset)


# -----------------------------------------------------------------------------
# Built-ins
# -----------------------------------------------------------------------------


def _partial(candidates: torch.Tensor, tolerance: TolerancePolicy, scale: ScaleContext) -> Optional[int]:
    nonzero = ~tolerance.is_zero_tensor(candidates, scale)
    if not bool(nonzero.any()):
        return None
    # argmax returns the first maximal index, so ties go to the lowest row
    mags = candidates.abs().masked_fill(~nonzero, -1.0)
    return int(torch.argmax(mags).item())


def _first_nonzero(candidates: torch.Tensor, tolerance: TolerancePolicy, scale: ScaleContext) -> Optional[int]:
    nonzero = ~tolerance.is_zero_tensor(candidates, scale)
    idx = torch.nonzero(nonzero, as_tuple=False)
    if idx.numel() == 0:
        return None
    return int(idx[0, 0].item())


register_pivot_strategy("partial", _partial)
register_pivot_strategy("first_nonzero", _first_nonzero)
