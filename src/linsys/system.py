# src/linsys/system.py
from __future__ import annotations

from typing import Any, Optional, Union

import torch

from linsys.classify import Solution, classify
from linsys.elimination import EchelonForm, EliminationMode, row_reduce
from linsys.exceptions import InvalidOperationError, ShapeError
from linsys.matrix import DenseMatrix
from linsys.ops import ElementaryRowOperation
from linsys.tolerance import ToleranceLike
from linsys.typing import as_system


class LinearSystem:
    """Matrix representation of a linear system: the augmented matrix [A | B].

    Operations can be performed by hand (`perform`, `undo`) or by the
    elimination engine (`reduce`). Every performed operation is kept in
    `history`, in order.
    """

    def __init__(
        self,
        matrix: DenseMatrix,
        *,
        coefficient_cols: int,
        single_rhs: bool = True,
        variable_names: Optional[list[str]] = None,
    ):
        if not isinstance(matrix, DenseMatrix):
            raise TypeError(f"LinearSystem expects a DenseMatrix. Got {type(matrix).__name__}")
        if not 0 < int(coefficient_cols) < matrix.col_count():
            raise ShapeError(
                f"coefficient_cols must leave at least one RHS column: 0 < {coefficient_cols} < {matrix.col_count()}"
            )
        self._matrix = matrix
        self._m = int(coefficient_cols)
        self._single_rhs = bool(single_rhs) and matrix.col_count() - self._m == 1
        self._names = variable_names
        self._history: list[ElementaryRowOperation] = []

    @classmethod
    def from_parts(
        cls,
        coefficients: Any,
        rhs: Any,
        *,
        dtype: Optional[torch.dtype] = None,
        device: Optional[Union[str, torch.device]] = None,
    ) -> "LinearSystem":
        """Build [A | B] from coefficients (n,m) and a right-hand side (n,) or (n,k)."""
        A, B, single_rhs, names = as_system(coefficients, rhs, dtype=dtype, device=device)
        matrix = DenseMatrix.hstack(DenseMatrix(A.clone()), DenseMatrix(B.clone()))
        return cls(matrix, coefficient_cols=A.shape[1], single_rhs=single_rhs, variable_names=names)

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------
    @property
    def matrix(self) -> DenseMatrix:
        return self._matrix

    @property
    def coefficient_cols(self) -> int:
        return self._m

    @property
    def n_equations(self) -> int:
        return self._matrix.row_count()

    @property
    def n_unknowns(self) -> int:
        return self._m

    @property
    def n_rhs(self) -> int:
        return self._matrix.col_count() - self._m

    @property
    def coefficients(self) -> torch.Tensor:
        return self._matrix.tensor[:, : self._m]

    @property
    def rhs(self) -> torch.Tensor:
        return self._matrix.tensor[:, self._m :]

    @property
    def single_rhs(self) -> bool:
        """True when the right-hand side was given as a vector."""
        return self._single_rhs

    @property
    def variable_names(self) -> Optional[list[str]]:
        return self._names

    @property
    def history(self) -> tuple[ElementaryRowOperation, ...]:
        return tuple(self._history)

    def to_matrix(self) -> DenseMatrix:
        return self._matrix.copy()

    def to_tensor(self) -> torch.Tensor:
        return self._matrix.tensor.clone()

    # ------------------------------------------------------------------
    # Manual operations
    # ------------------------------------------------------------------
    def perform(self, op: ElementaryRowOperation) -> "LinearSystem":
        op.apply(self._matrix)
        self._history.append(op)
        return self

    def perform_unchecked(self, op: ElementaryRowOperation) -> "LinearSystem":
        """Apply without validation. Out-of-range indices fail inside torch."""
        op.apply_unchecked(self._matrix)
        self._history.append(op)
        return self

    def undo(self) -> ElementaryRowOperation:
        """Revert the last performed operation by applying its inverse."""
        if not self._history:
            raise InvalidOperationError("Nothing to undo")
        op = self._history[-1]
        op.inverse().apply(self._matrix)
        # only forget the operation once its inverse has been applied
        self._history.pop()
        return op

    # ------------------------------------------------------------------
    # Elimination
    # ------------------------------------------------------------------
    def echelon(
        self,
        *,
        mode: EliminationMode = "reduced_row_echelon",
        tolerance: Optional[ToleranceLike] = None,
        pivoting: str = "partial",
        check_finite: bool = True,
    ) -> EchelonForm:
        """Echelon form of the current matrix; the system itself is left unchanged."""
        return row_reduce(
            self._matrix,
            mode=mode,
            coefficient_cols=self._m,
            tolerance=tolerance,
            pivoting=pivoting,
            check_finite_values=check_finite,
        )

    def reduce(
        self,
        *,
        mode: EliminationMode = "reduced_row_echelon",
        tolerance: Optional[ToleranceLike] = None,
        pivoting: str = "partial",
        check_finite: bool = True,
    ) -> EchelonForm:
        """Reduce the system in place, appending the applied operations to `history`."""
        result = self.echelon(mode=mode, tolerance=tolerance, pivoting=pivoting, check_finite=check_finite)
        self._matrix = result.matrix.copy()
        self._history.extend(result.operations)
        return result

    def solve(
        self,
        *,
        mode: EliminationMode = "reduced_row_echelon",
        tolerance: Optional[ToleranceLike] = None,
        pivoting: str = "partial",
        check_finite: bool = True,
    ) -> Solution:
        result = self.echelon(mode=mode, tolerance=tolerance, pivoting=pivoting, check_finite=check_finite)
        return classify(
            result,
            single_rhs=self._single_rhs,
            variable_names=self._names,
            check_finite_values=check_finite,
        )

    def __repr__(self) -> str:
        return (
            f"LinearSystem(equations={self.n_equations}, unknowns={self.n_unknowns}, "
            f"rhs={self.n_rhs}, dtype={self._matrix.dtype})"
        )
