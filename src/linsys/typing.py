# src/linsys/typing.py
from __future__ import annotations

from typing import Any, Optional, Sequence, Tuple, Union, TYPE_CHECKING

import numpy as np
import torch

from linsys.exceptions import DimensionMismatchError, NotSupportedError, ShapeError

if TYPE_CHECKING:  # pragma: no cover
    import pandas as pd


ArrayLike = Union[torch.Tensor, np.ndarray, Sequence[Any]]


def _is_pandas_df(x: Any) -> bool:
    try:
        import pandas as pd  # type: ignore
        return isinstance(x, pd.DataFrame)
    except Exception:
        return False


def _is_pandas_series(x: Any) -> bool:
    try:
        import pandas as pd  # type: ignore
        return isinstance(x, pd.Series)
    except Exception:
        return False


def _require_pandas() -> None:
    try:
        import pandas as _  # noqa: F401
    except Exception as e:
        raise ImportError("pandas is required to pass DataFrame/Series inputs. Install with: pip install pandas") from e


def as_torch(
    x: Any,
    *,
    dtype: Optional[torch.dtype] = None,
    device: Optional[Union[str, torch.device]] = None,
) -> torch.Tensor:
    """
    Convert common array-likes to a floating torch.Tensor.

    Supports:
    - torch.Tensor
    - numpy.ndarray
    - Python lists/tuples (nested)
    - pandas.DataFrame / pandas.Series (if pandas installed)

    Integer and bool inputs, and Python floats, become float64 unless `dtype`
    is given.
    Complex inputs are rejected.
    """
    if _is_pandas_df(x) or _is_pandas_series(x):
        _require_pandas()
        x = x.to_numpy()  # type: ignore[attr-defined]

    if isinstance(x, torch.Tensor):
        t = x
    elif isinstance(x, np.ndarray):
        t = torch.as_tensor(x)
    else:
        # nested Python lists of floats would otherwise land in torch's float32 default
        t = torch.as_tensor(np.asarray(x))

    if t.is_complex():
        raise NotSupportedError("Complex inputs are not supported; pass a real floating dtype.")

    if dtype is not None:
        if not dtype.is_floating_point:
            raise NotSupportedError(f"dtype must be a floating dtype. Got {dtype}")
        t = t.to(dtype=dtype)
    elif not t.is_floating_point():
        t = t.to(dtype=torch.float64)

    if device is not None:
        t = t.to(device=device)
    return t


def column_names(x: Any) -> Optional[list[str]]:
    """Column labels of a pandas.DataFrame, otherwise None."""
    if _is_pandas_df(x):
        return [str(c) for c in x.columns]  # type: ignore[attr-defined]
    return None


def as_system(
    coefficients: Any,
    rhs: Any,
    *,
    dtype: Optional[torch.dtype] = None,
    device: Optional[Union[str, torch.device]] = None,
) -> Tuple[torch.Tensor, torch.Tensor, bool, Optional[list[str]]]:
    """
    Standardize inputs to:
      A: (n,m)
      B: (n,k)

    Accept:
      coefficients: (n,m) or pandas.DataFrame
      rhs: (n,) or (n,k) or pandas.Series / DataFrame

    Returns (A, B, single_rhs, variable_names). `single_rhs` is True when the
    right-hand side was given as a vector, so results can be returned as (m,).
    Both tensors share a dtype: the promoted dtype of the two inputs unless
    `dtype` is given.
    """
    variable_names = column_names(coefficients)

    A = as_torch(coefficients, dtype=dtype, device=device)
    B = as_torch(rhs, dtype=dtype, device=device)

    if dtype is None and A.dtype != B.dtype:
        common = torch.promote_types(A.dtype, B.dtype)
        A = A.to(dtype=common)
        B = B.to(dtype=common)
    if B.device != A.device:
        B = B.to(device=A.device)

    if A.ndim != 2:
        raise ShapeError(f"coefficients must be (n,m). Got {tuple(A.shape)}")
    if A.shape[0] < 1 or A.shape[1] < 1:
        raise ShapeError(f"coefficients must have at least one row and one column. Got {tuple(A.shape)}")

    single_rhs = B.ndim == 1
    if single_rhs:
        B = B.unsqueeze(-1)
    if B.ndim != 2:
        raise ShapeError(f"rhs must be (n,) or (n,k). Got {tuple(B.shape)}")
    if B.shape[1] < 1:
        raise ShapeError(f"rhs must have at least one column. Got {tuple(B.shape)}")

    if A.shape[0] != B.shape[0]:
        raise DimensionMismatchError(
            f"Row count mismatch: coefficients {tuple(A.shape)}, rhs {tuple(B.shape)}"
        )

    if variable_names is not None and len(variable_names) != A.shape[1]:
        variable_names = None

    return A, B, single_rhs, variable_names
