from typing import List

from ..schemas import METHOD_LABELS, SolveResult, TraceStep

_STATUS_TITLES = {
    "optimal": "Optimal solution",
    "infeasible": "Infeasible problem",
    "unbounded": "Unbounded problem",
    "error": "Error",
}


def format_number(value: float) -> str:
    text = f"{value:.2f}"
    if text.endswith(".00"):
        text = text[:-3]
    if text == "-0":
        text = "0"
    return text


def format_step(step: TraceStep) -> str:
    """Render one trace step as a fixed-width text table, pivot cell bracketed."""

    header = ["Basis"] + step.headers
    body: List[List[str]] = []
    for r, row in enumerate(step.rows):
        cells = [row.basic_var]
        for c, value in enumerate(row.coefficients):
            text = format_number(value)
            if r == step.pivot_row and c == step.pivot_col:
                text = f"[{text}]"
            cells.append(text)
        body.append(cells)

    widths = [max(len(line[i]) for line in [header] + body) for i in range(len(header))]
    lines = [f"Step {step.step_index}: {step.description}"]
    lines.append("  ".join(cell.rjust(w) for cell, w in zip(header, widths)))
    lines.append("  ".join("-" * w for w in widths))
    for cells in body:
        lines.append("  ".join(cell.rjust(w) for cell, w in zip(cells, widths)))
    return "\n".join(lines)


def format_result(result: SolveResult, method: str | None = None, include_steps: bool = True) -> str:
    lines: List[str] = []
    if method:
        lines.append(METHOD_LABELS.get(method, method))
    lines.append(_STATUS_TITLES[result.status])
    if result.message:
        lines.append(result.message)

    if include_steps:
        for step in result.steps:
            lines.append("")
            lines.append(format_step(step))

    if result.status == "optimal" and result.objective_value is not None:
        lines.append("")
        lines.append(f"Z = {format_number(result.objective_value)}")
        for name, value in result.values.items():
            lines.append(f"{name} = {format_number(value)}")
    return "\n".join(lines)
