#!/usr/bin/env python3
import argparse
import json
import random
from pathlib import Path
from typing import List, Optional

from lp_tableau.schemas import Constraint, Problem


def generate_random_problem(num_vars: int, num_constraints: int, seed: Optional[int] = None) -> Problem:
    """Random feasible problem: a '<=' packing block plus one '>=' covering row."""
    rng = random.Random(seed)
    constraints: List[Constraint] = []
    for j in range(num_constraints):
        coefficients = [round(rng.uniform(0.5, 5.0), 2) for _ in range(num_vars)]
        rhs = round(rng.uniform(num_vars * 2.0, num_vars * 6.0), 2)
        constraints.append(Constraint(id=f"c{j + 1}", coefficients=coefficients, relation="<=", rhs=rhs))
    constraints.append(
        Constraint(
            id=f"c{num_constraints + 1}",
            coefficients=[1.0] * num_vars,
            relation=">=",
            rhs=1.0,
        )
    )
    objective = [round(rng.uniform(1.0, 4.0), 2) for _ in range(num_vars)]
    return Problem(direction="max", objective=objective, constraints=constraints)


def main() -> None:
    parser = argparse.ArgumentParser(description="Generate random feasible LP instances.")
    parser.add_argument("--vars", type=int, default=3, help="Number of variables")
    parser.add_argument("--constraints", type=int, default=3, help="Number of constraints")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--count", type=int, default=1, help="Number of instances")
    parser.add_argument("--out", type=Path, default=None, help="Optional output file")
    args = parser.parse_args()

    instances = [
        generate_random_problem(args.vars, args.constraints, (args.seed or 0) + idx)
        for idx in range(args.count)
    ]
    payload = [instance.model_dump() for instance in instances]

    if args.out:
        Path(args.out).write_text(json.dumps(payload, indent=2))
    else:
        print(json.dumps(payload, indent=2))


if __name__ == "__main__":
    main()
