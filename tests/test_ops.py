import torch
import pytest

from linsys import AddMultiple, IndexOutOfRangeError, InvalidOperationError, Scale, Swap
from linsys.ops import add_multiple, scale, swap

from conftest import dense, make_matrix


def test_swap_exchanges_full_rows():
    M = dense([[1.0, 2.0, 3.0], [4.0, 5.0, 6.0]])
    op = swap(M, 0, 1)
    assert op == Swap(0, 1)
    assert torch.equal(M.tensor, torch.tensor([[4.0, 5.0, 6.0], [1.0, 2.0, 3.0]], dtype=torch.float64))


def test_swap_same_row_is_noop():
    M = dense([[1.0, 2.0], [3.0, 4.0]])
    before = M.copy()
    Swap(1, 1).apply(M)
    assert M == before


def test_scale_and_add_multiple_arithmetic():
    M = dense([[1.0, 2.0, 3.0], [2.0, 0.0, 4.0]])
    add_multiple(M, 1, 0, -2.0)
    assert torch.equal(M.row(1), torch.tensor([0.0, -4.0, -2.0], dtype=torch.float64))

    scale(M, 1, -0.25)
    assert torch.equal(M.row(1), torch.tensor([0.0, 1.0, 0.5], dtype=torch.float64))
    # source row untouched
    assert torch.equal(M.row(0), torch.tensor([1.0, 2.0, 3.0], dtype=torch.float64))


def test_scale_by_zero_is_rejected():
    M = dense([[1.0, 2.0]])
    with pytest.raises(InvalidOperationError):
        Scale(0, 0.0).apply(M)
    with pytest.raises(ValueError):
        scale(M, 0, 0.0)
    assert torch.equal(M.row(0), torch.tensor([1.0, 2.0], dtype=torch.float64))


def test_add_multiple_self_combination_is_rejected():
    M = dense([[1.0, 2.0], [3.0, 4.0]])
    with pytest.raises(InvalidOperationError):
        AddMultiple(1, 1, -1.0).apply(M)


def test_non_finite_factor_is_rejected():
    M = dense([[1.0, 2.0], [3.0, 4.0]])
    with pytest.raises(InvalidOperationError):
        Scale(0, float("inf")).apply(M)
    with pytest.raises(InvalidOperationError):
        AddMultiple(0, 1, float("nan")).apply(M)


@pytest.mark.parametrize(
    "op, which",
    [
        (Swap(5, 0), "first"),
        (Swap(0, 5), "second"),
        (Swap(5, 6), "both"),
        (AddMultiple(0, 3, 1.0), "second"),
        (Scale(2, 1.0), "first"),
        (Scale(-1, 1.0), "first"),
    ],
)
def test_out_of_range_reports_offending_index(op, which):
    M = dense([[1.0, 2.0], [3.0, 4.0]])
    before = M.copy()
    with pytest.raises(IndexOutOfRangeError) as info:
        op.apply(M)
    assert info.value.which == which
    assert info.value.nrows == 2
    assert M == before


def test_index_error_is_an_index_error():
    M = dense([[1.0]])
    with pytest.raises(IndexError):
        Swap(0, 1).apply(M)


@pytest.mark.parametrize(
    "op",
    [Swap(0, 3), Swap(2, 2), Scale(1, -2.5), Scale(3, 1e-3), AddMultiple(0, 2, 0.75), AddMultiple(3, 1, -4.0)],
)
def test_operation_then_inverse_restores_matrix(op):
    original = make_matrix(4, 5, seed=7)
    M = dense(original.tolist())
    op.apply(M)
    op.inverse().apply(M)
    assert torch.allclose(M.tensor, original, rtol=1e-12, atol=1e-12)


def test_inverse_values():
    assert Swap(0, 2).inverse() == Swap(0, 2)
    assert Scale(1, 4.0).inverse() == Scale(1, 0.25)
    assert AddMultiple(2, 0, 3.0).inverse() == AddMultiple(2, 0, -3.0)


def test_operation_descriptions():
    assert str(Swap(0, 1)) == "R0 <-> R1"
    assert str(Scale(1, 0.5)) == "R1 <- 0.5 * R1"
    assert str(AddMultiple(2, 0, -3)) == "R2 <- R2 + -3 * R0"


def test_dense_matrix_collaborator_interface():
    from linsys import DenseMatrix, ShapeError

    M = DenseMatrix.new(2, 3)
    assert (M.row_count(), M.col_count()) == (2, 3)
    assert M.get(1, 2) == 0.0
    M.set(1, 2, 4.5)
    assert M.get(1, 2) == 4.5
    assert M.dtype == torch.float64
    with pytest.raises(ShapeError):
        DenseMatrix(torch.zeros((0, 3), dtype=torch.float64))
    with pytest.raises(ShapeError):
        DenseMatrix(torch.zeros(3, dtype=torch.float64))
