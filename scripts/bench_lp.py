#!/usr/bin/env python3
import json
import time
from pathlib import Path

from lp_tableau.lp.simplex import solve
from lp_tableau.schemas import Problem, SolveOptions
from scripts.generate_instances import generate_random_problem

METHODS = ("simplex", "big_m", "two_phase")


def load_example(name: str) -> Problem:
    path = Path(__file__).resolve().parent.parent / "examples" / name
    return Problem.model_validate(json.loads(path.read_text()))


def main() -> None:
    opts = SolveOptions()
    cases = [
        ("examples/classic_max.json", load_example("classic_max.json")),
        ("examples/diet_min.json", load_example("diet_min.json")),
        ("examples/mixed_relations.json", load_example("mixed_relations.json")),
    ]
    for seed in range(3):
        cases.append((f"random-{seed}", generate_random_problem(3, 3, seed)))

    print("name,method,status,objective,iterations,steps,time_ms")
    for name, problem in cases:
        for method in METHODS:
            start = time.perf_counter()
            result = solve(problem, method, opts)
            elapsed_ms = (time.perf_counter() - start) * 1000
            print(
                f"{name},{method},{result.status},{result.objective_value},"
                f"{result.iterations},{len(result.steps)},{elapsed_ms:.2f}"
            )


if __name__ == "__main__":
    main()
