from linsys.api import __version__
from linsys.classify import Inconsistent, Infinite, PerColumn, Solution, Unique, classify
from linsys.elimination import (
    EchelonForm,
    PivotPosition,
    back_substitute,
    rank,
    reduced_row_echelon,
    row_echelon,
    row_reduce,
)
from linsys.exceptions import (
    DimensionMismatchError,
    IndexOutOfRangeError,
    InvalidOperationError,
    LinsysError,
    NotSupportedError,
    NumericalFailureError,
    ShapeError,
)
from linsys.matrix import DenseMatrix, as_matrix
from linsys.ops import AddMultiple, ElementaryRowOperation, Scale, Swap
from linsys.pivot import get_pivot_strategy, list_pivot_strategies, register_pivot_strategy, select_pivot
from linsys.solver import solve, solve_with_trace
from linsys.system import LinearSystem
from linsys.tolerance import TolerancePolicy, ToleranceLike

__all__ = [
    "solve",
    "solve_with_trace",
    "row_reduce",
    "row_echelon",
    "reduced_row_echelon",
    "back_substitute",
    "classify",
    "rank",
    "LinearSystem",
    "DenseMatrix",
    "as_matrix",
    "TolerancePolicy",
    "ToleranceLike",
    "Swap",
    "Scale",
    "AddMultiple",
    "ElementaryRowOperation",
    "select_pivot",
    "register_pivot_strategy",
    "get_pivot_strategy",
    "list_pivot_strategies",
    "EchelonForm",
    "PivotPosition",
    "Solution",
    "Unique",
    "Inconsistent",
    "Infinite",
    "PerColumn",
    "LinsysError",
    "ShapeError",
    "DimensionMismatchError",
    "IndexOutOfRangeError",
    "InvalidOperationError",
    "NumericalFailureError",
    "NotSupportedError",
    "__version__",
]
