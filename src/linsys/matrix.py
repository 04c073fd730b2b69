# src/linsys/matrix.py
from __future__ import annotations

from typing import Any, Optional, Union

import torch

from linsys.exceptions import DimensionMismatchError, ShapeError
from linsys.typing import as_torch


class DenseMatrix:
    """Mutable (rows, cols) matrix backed by a 2D torch.Tensor.

    The tensor is owned by the matrix: callers that need to keep the input
    untouched should construct through `as_matrix` (which copies) or call
    `copy()`. Row arithmetic is done on whole tensor rows.
    """

    __slots__ = ("_data",)

    def __init__(self, data: torch.Tensor):
        if not isinstance(data, torch.Tensor):
            raise TypeError(f"DenseMatrix expects a torch.Tensor. Got {type(data).__name__}")
        if data.ndim != 2:
            raise ShapeError(f"matrix must be 2D (rows,cols). Got {tuple(data.shape)}")
        if data.shape[0] < 1 or data.shape[1] < 1:
            raise ShapeError(f"matrix must have rows >= 1 and cols >= 1. Got {tuple(data.shape)}")
        if not data.is_floating_point():
            raise ShapeError(f"matrix must hold floating values. Got {data.dtype}")
        self._data = data

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------
    @classmethod
    def new(
        cls,
        rows: int,
        cols: int,
        *,
        dtype: torch.dtype = torch.float64,
        device: Optional[Union[str, torch.device]] = None,
    ) -> "DenseMatrix":
        """Zero-filled (rows, cols) matrix."""
        return cls(torch.zeros((int(rows), int(cols)), dtype=dtype, device=device))

    @classmethod
    def hstack(cls, left: "DenseMatrix", right: "DenseMatrix") -> "DenseMatrix":
        """Horizontal concatenation [left | right] into a new matrix."""
        if left.row_count() != right.row_count():
            raise DimensionMismatchError(
                f"Row count mismatch: {left.shape} and {right.shape}"
            )
        return cls(torch.cat([left.tensor, right.tensor.to(dtype=left.dtype)], dim=1))

    # ------------------------------------------------------------------
    # Collaborator interface
    # ------------------------------------------------------------------
    def get(self, row: int, col: int) -> float:
        return float(self._data[row, col].item())

    def set(self, row: int, col: int, value: float) -> None:
        self._data[row, col] = value

    def row_count(self) -> int:
        return int(self._data.shape[0])

    def col_count(self) -> int:
        return int(self._data.shape[1])

    # ------------------------------------------------------------------
    # Tensor access
    # ------------------------------------------------------------------
    @property
    def tensor(self) -> torch.Tensor:
        """The backing tensor (not a copy)."""
        return self._data

    @property
    def shape(self) -> tuple[int, int]:
        return (self.row_count(), self.col_count())

    @property
    def dtype(self) -> torch.dtype:
        return self._data.dtype

    def row(self, i: int) -> torch.Tensor:
        return self._data[i]

    def column(self, j: int) -> torch.Tensor:
        return self._data[:, j]

    def copy(self) -> "DenseMatrix":
        return DenseMatrix(self._data.clone())

    def allclose(self, other: "DenseMatrix", *, rtol: float = 1e-9, atol: float = 1e-12) -> bool:
        if self.shape != other.shape:
            return False
        return bool(torch.allclose(self._data, other.tensor.to(dtype=self.dtype), rtol=rtol, atol=atol))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DenseMatrix):
            return NotImplemented
        return self.shape == other.shape and bool(torch.equal(self._data, other.tensor))

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"DenseMatrix(shape={self.shape}, dtype={self.dtype})"


def as_matrix(
    x: Any,
    *,
    dtype: Optional[torch.dtype] = None,
    device: Optional[Union[str, torch.device]] = None,
) -> DenseMatrix:
    """Coerce an array-like (or DenseMatrix) to a DenseMatrix holding its own copy."""
    if isinstance(x, DenseMatrix):
        t = x.tensor
        if dtype is not None:
            t = t.to(dtype=dtype)
        if device is not None:
            t = t.to(device=device)
        return DenseMatrix(t.clone())
    t = as_torch(x, dtype=dtype, device=device)
    return DenseMatrix(t.clone())
