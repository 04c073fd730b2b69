from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Optional, Union

import torch


_DTYPE_EPS: dict[torch.dtype, float] = {
    torch.float64: 1e-10,
    torch.float32: 1e-5,
    torch.float16: 1e-2,
    torch.bfloat16: 1e-2,
}


@dataclass(frozen=True)
class TolerancePolicy:
    """Relative zero test used for pivot selection and rank decisions.

    A value is zero when |value| <= eps * max(1, scale), where `scale` is the
    magnitude context of the entry (the elimination engine passes the smaller
    of its column and row scales). The `max(1, .)` floor keeps the test
    absolute for systems with small entries.
    """

    eps: float = 1e-10

    def __post_init__(self) -> None:
        eps = float(self.eps)
        if not math.isfinite(eps) or eps < 0.0:
            raise ValueError(f"eps must be a finite non-negative float. Got {self.eps!r}")
        object.__setattr__(self, "eps", eps)

    @staticmethod
    def for_dtype(dtype: torch.dtype) -> "TolerancePolicy":
        """Default policy for a floating dtype (float64 -> 1e-10, float32 -> 1e-5)."""
        return TolerancePolicy(eps=_DTYPE_EPS.get(dtype, 1e-10))

    def threshold(self, scale_context: float = 0.0) -> float:
        return self.eps * max(1.0, abs(float(scale_context)))

    def is_zero(self, value: float, scale_context: float = 0.0) -> bool:
        return abs(float(value)) <= self.threshold(scale_context)

    def is_zero_tensor(self, values: torch.Tensor, scale_context: Any = 0.0) -> torch.Tensor:
        """Element-wise form of `is_zero`; `scale_context` may broadcast against `values`."""
        scale = torch.as_tensor(scale_context, dtype=values.dtype, device=values.device).abs()
        return values.abs() <= self.eps * torch.clamp(scale, min=1.0)

    def to_dict(self) -> dict[str, Any]:
        return {"eps": self.eps}


# a bare float is read as eps
ToleranceLike = Union[TolerancePolicy, float]


def resolve_tolerance(tolerance: Optional[ToleranceLike], dtype: torch.dtype) -> TolerancePolicy:
    if tolerance is None:
        return TolerancePolicy.for_dtype(dtype)
    if isinstance(tolerance, TolerancePolicy):
        return tolerance
    return TolerancePolicy(eps=float(tolerance))
