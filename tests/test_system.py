import torch
import pytest

from linsys import (
    AddMultiple,
    InvalidOperationError,
    LinearSystem,
    Scale,
    ShapeError,
    Swap,
    Unique,
)
from linsys.matrix import DenseMatrix


def _system():
    # x + 2y = 3
    # 4x + 5y = 6
    return LinearSystem.from_parts([[1, 2], [4, 5]], [3, 6])


def test_from_parts_builds_augmented_matrix():
    s = _system()
    assert s.n_equations == 2
    assert s.n_unknowns == 2
    assert s.n_rhs == 1
    assert s.single_rhs
    assert torch.equal(s.to_tensor(), torch.tensor([[1.0, 2.0, 3.0], [4.0, 5.0, 6.0]], dtype=torch.float64))
    assert torch.equal(s.coefficients, torch.tensor([[1.0, 2.0], [4.0, 5.0]], dtype=torch.float64))
    assert torch.equal(s.rhs[:, 0], torch.tensor([3.0, 6.0], dtype=torch.float64))


def test_perform_by_hand_and_history():
    s = _system()
    s.perform(AddMultiple(1, 0, -4)).perform(Scale(1, -1 / 3))
    assert s.history == (AddMultiple(1, 0, -4.0), Scale(1, -1 / 3))
    assert torch.allclose(s.rhs[:, 0], torch.tensor([3.0, 2.0], dtype=torch.float64))


def test_undo_restores_previous_matrix():
    s = _system()
    before = s.to_matrix()
    s.perform(Swap(0, 1))
    s.perform(AddMultiple(1, 0, 0.5))
    s.perform(Scale(0, 3.0))
    for _ in range(3):
        s.undo()
    assert s.history == ()
    assert s.to_matrix().allclose(before)
    with pytest.raises(InvalidOperationError):
        s.undo()


def test_failed_operation_is_not_recorded():
    s = _system()
    with pytest.raises(IndexError):
        s.perform(Swap(0, 2))
    with pytest.raises(ValueError):
        s.perform(Scale(0, 0.0))
    assert s.history == ()


def test_perform_unchecked_skips_validation():
    s = _system()
    s.perform_unchecked(Scale(0, 2.0))
    assert torch.equal(s.to_tensor()[0], torch.tensor([2.0, 4.0, 6.0], dtype=torch.float64))


def test_reduce_in_place_records_operations():
    s = _system()
    result = s.reduce()
    assert torch.allclose(s.coefficients, torch.eye(2, dtype=torch.float64))
    assert torch.allclose(s.rhs[:, 0], torch.tensor([-1.0, 2.0], dtype=torch.float64))
    assert s.history == result.operations
    assert result.rank == 2


def test_echelon_and_solve_leave_system_unchanged():
    s = _system()
    before = s.to_tensor()
    s.echelon(mode="row_echelon")
    sol = s.solve()
    assert torch.equal(s.to_tensor(), before)
    assert isinstance(sol, Unique)
    assert torch.allclose(sol.values, torch.tensor([-1.0, 2.0], dtype=torch.float64))


def test_constructor_validation():
    M = DenseMatrix(torch.ones((2, 3), dtype=torch.float64))
    with pytest.raises(ShapeError):
        LinearSystem(M, coefficient_cols=3)
    with pytest.raises(TypeError):
        LinearSystem(torch.ones((2, 3)), coefficient_cols=2)
    s = LinearSystem(M, coefficient_cols=1)
    assert s.n_rhs == 2
    assert not s.single_rhs
    assert "unknowns=1" in repr(s)


def test_failed_undo_keeps_history_and_matrix():
    s = _system()
    s.perform_unchecked(Scale(0, 0.0))
    with pytest.raises(InvalidOperationError):
        s.undo()
    assert s.history == (Scale(0, 0.0),)
    assert torch.equal(s.to_tensor()[0], torch.zeros(3, dtype=torch.float64))
