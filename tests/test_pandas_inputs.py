import pytest

pd = pytest.importorskip("pandas")

import torch
from linsys import LinearSystem, solve


def test_variable_names_from_dataframe():
    A = pd.DataFrame({"x": [2.0, 1.0], "y": [1.0, -1.0]})
    b = pd.Series([5.0, 1.0])

    sol = solve(A, b)

    assert sol.variable_names == ["x", "y"]
    assert sol.values.shape == (2,)
    assert sol.as_dict() == pytest.approx({"x": 2.0, "y": 1.0})


def test_dataframe_rhs_is_a_matrix():
    A = pd.DataFrame({"x": [2.0, 1.0], "y": [1.0, -1.0]})
    B = pd.DataFrame({"b1": [5.0, 1.0], "b2": [3.0, 0.0]})

    s = LinearSystem.from_parts(A, B)
    sol = s.solve()

    assert s.n_rhs == 2
    assert torch.allclose(sol.values, torch.tensor([[2.0, 1.0], [1.0, 1.0]], dtype=torch.float64))
