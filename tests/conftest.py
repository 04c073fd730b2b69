import torch
import pytest

from linsys import DenseMatrix


@pytest.fixture(scope="session")
def torch_dtype():
    # Use float64 in tests for numerical stability.
    return torch.float64


def make_matrix(n: int, m: int, *, seed: int = 123, dtype=torch.float64) -> torch.Tensor:
    """Deterministic dense (n,m) matrix with entries in [-5, 5]."""
    g = torch.Generator().manual_seed(seed)
    return 10.0 * torch.rand((n, m), generator=g, dtype=dtype) - 5.0


def make_low_rank(n: int, m: int, r: int, *, seed: int = 123, dtype=torch.float64) -> torch.Tensor:
    """(n,m) matrix of rank r (almost surely) built as (n,r) @ (r,m)."""
    g = torch.Generator().manual_seed(seed)
    left = torch.randn((n, r), generator=g, dtype=dtype)
    right = torch.randn((r, m), generator=g, dtype=dtype)
    return left @ right


def dense(rows, dtype=torch.float64) -> DenseMatrix:
    return DenseMatrix(torch.tensor(rows, dtype=dtype))
