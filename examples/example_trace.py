# Example 2: step-by-step reduction and manual row operations
from linsys import AddMultiple, LinearSystem, Scale, solve_with_trace

sol, trace = solve_with_trace([[0.0, 1.0, 2.0], [1.0, 0.0, 1.0], [2.0, 1.0, 0.0]], [3.0, 2.0, 3.0])
for step, op in enumerate(trace, start=1):
    print(f"{step:2d}. {op}")
print("x =", sol.values.tolist())

# x + 2y = 3, 4x + 5y = 6
s = LinearSystem.from_parts([[1.0, 2.0], [4.0, 5.0]], [3.0, 6.0])
s.perform(AddMultiple(1, 0, -4.0))
s.perform(Scale(1, -1.0 / 3.0))
print(s.to_tensor())
s.undo()
print(s.to_tensor())
print(s.solve().values.tolist())
