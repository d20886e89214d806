from __future__ import annotations

import logging
import os

from mcp.server.fastmcp import FastMCP
from mcp.server.transport_security import TransportSecuritySettings

from .schemas import Method, Problem, SolveOptions, SolveResult
from .lp.simplex import solve
from .lp.parser import parse_natural_language_spec
from .lp.diagnostics import analyze_infeasibility
from .lp.reference import compare_with_reference, solve_reference
from .lp.render import format_result

logger = logging.getLogger(__name__)

app = FastMCP("LP Tableau")


@app.tool()
def solve_linear_program(
    problem: Problem,
    method: Method = "simplex",
    options: SolveOptions | None = None,
) -> dict:
    """Solve a linear program with the chosen tableau method and return the full trace as JSON."""
    return solve(problem, method, options or SolveOptions()).model_dump()


@app.tool()
def parse_natural_language(spec: str) -> dict:
    """Parse a natural-language LP specification into structured Problem JSON."""
    try:
        problem = parse_natural_language_spec(spec)
    except ValueError as e:
        return {"error": f"Failed to parse problem: {e}", "problem": None}
    return problem.model_dump()


@app.tool()
def diagnose_infeasibility(problem: Problem, method: Method = "two_phase") -> dict:
    """Return heuristic infeasibility analysis for the given LP."""
    try:
        return analyze_infeasibility(problem, method)
    except ValueError as e:
        return {"error": str(e)}


@app.tool()
def verify_with_highs(problem: Problem, method: Method = "two_phase") -> dict:
    """
    Solve with the tableau method and with SciPy HiGHS, and report whether they agree.
    A HiGHS "infeasible" against a tableau run that found a feasible basis and
    then an unbounded ray is reported with ``confirmed`` set to False.
    """
    result = solve(problem, method)
    reference = solve_reference(problem)
    report = compare_with_reference(result, reference)
    report["result"] = result.model_dump(exclude={"steps"})
    report["reference"] = reference.model_dump()
    return report


@app.tool()
def render_trace(problem: Problem, method: Method = "simplex", include_steps: bool = True) -> str:
    """Solve and return a plain-text rendering of every tableau and the final values."""
    result: SolveResult = solve(problem, method)
    return format_result(result, method=method, include_steps=include_steps)


def main() -> None:
    import sys

    logging.basicConfig(
        level=os.environ.get("LP_TABLEAU_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    # stdio for desktop clients, streamable HTTP otherwise
    transport = os.environ.get("MCP_TRANSPORT", "stdio")

    if transport == "stdio" or "--stdio" in sys.argv:
        logger.info("Starting LP Tableau server on stdio")
        app.run(transport="stdio")
    else:
        port = int(os.environ.get("PORT", "8081"))
        app.settings.host = "0.0.0.0"
        app.settings.port = port
        app.settings.streamable_http_path = "/mcp"
        app.settings.transport_security = TransportSecuritySettings(
            enable_dns_rebinding_protection=False,
            allowed_hosts=["*"],
            allowed_origins=["*"],
        )
        logger.info("Starting LP Tableau server on port %d", port)
        app.run(transport="streamable-http")


if __name__ == "__main__":
    main()
