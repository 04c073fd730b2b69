# Example 1: the three outcomes of a linear solve
import torch
from linsys import solve

# 2x + y = 5, x - y = 1
sol = solve([[2.0, 1.0], [1.0, -1.0]], [5.0, 1.0])
print(sol.kind, sol.as_dict())

# x + y = 2, x + y = 5
sol = solve([[1.0, 1.0], [1.0, 1.0]], [2.0, 5.0])
print(sol.kind, "contradicting rows:", sol.rows)

# x + y = 3, 2x + 2y = 6
sol = solve([[1.0, 1.0], [2.0, 2.0]], [3.0, 6.0])
print(sol.kind, "particular:", sol.particular.tolist())
for f, d in sol.free_directions:
    print(f"  free x{f}: direction {d.tolist()}")

# Several right-hand sides at once
A = torch.randn(4, 4, dtype=torch.float64)
B = torch.randn(4, 3, dtype=torch.float64)
sol = solve(A, B)
print("max |A X - B|:", (A @ sol.values - B).abs().max().item())
