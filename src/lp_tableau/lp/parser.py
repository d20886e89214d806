import re
from collections import OrderedDict
from typing import Dict, List, Tuple

from ..schemas import Constraint, Problem

_TOKEN_SPLIT = re.compile(r",|;|\band\b", re.IGNORECASE)
_COMPARATOR = re.compile(r"(<=|>=|==|=<|=>|=)")
_IDENTIFIER = re.compile(r"^[A-Za-z_][\w]*$")
_TERM_PATTERN = re.compile(r"([+-]?\s*\d*\.?\d*)\s*([A-Za-z_][\w]*)")
_NUMBER_PATTERN = re.compile(r"[+-]?\s*\d+(?:\.\d+)?")
_CMP_ALIASES = {"==": "=", "=<": "<=", "=>": ">="}


def parse_natural_language_spec(spec: str) -> Problem:
    """
    Small rule-based parser for toy specs like:
      "maximize 3x1 + 5x2 subject to x1 <= 4, 2x2 <= 12, 3x1 + 2x2 <= 18, x1, x2 >= 0"
    Decision variables are numbered by first appearance.  Non-negativity
    statements are dropped since every variable is non-negative already.
    """

    if not spec or not spec.strip():
        raise ValueError("Specification is empty.")

    normalized = " ".join(spec.replace("\n", " ").split())
    pieces = re.split(r"subject to|such that|s\.t\.", normalized, flags=re.IGNORECASE)
    objective_part = pieces[0].strip()
    constraints_part = pieces[1].strip() if len(pieces) > 1 else ""

    match = re.match(r"(maximize|minimize|maximise|minimise|max|min)\s*(?:z\s*=\s*)?(.*)", objective_part, flags=re.IGNORECASE)
    if not match:
        raise ValueError("Objective must start with 'maximize' or 'minimize'.")
    direction = "max" if match.group(1).lower().startswith("max") else "min"
    objective_expr_str = match.group(2).strip()
    if not objective_expr_str:
        raise ValueError("Objective expression is missing.")

    objective_terms, objective_constant = _parse_linear_expr(objective_expr_str)
    if abs(objective_constant) > 1e-12:
        raise ValueError("Objective constants are not supported.")
    variable_names = OrderedDict((name, None) for name in objective_terms)

    parsed: List[Tuple[Dict[str, float], str, float]] = []
    for token in _split_constraints(constraints_part):
        comp_match = _COMPARATOR.search(token)
        if not comp_match:
            raise ValueError(f"Could not parse constraint segment '{token}'.")
        cmp = _CMP_ALIASES.get(comp_match.group(1), comp_match.group(1))
        lhs_str = token[: comp_match.start()].strip()
        rhs_str = token[comp_match.end() :].strip()
        if not lhs_str or not rhs_str:
            raise ValueError(f"Incomplete constraint expression '{token}'.")
        try:
            rhs_value = float(rhs_str.replace(" ", ""))
        except ValueError as exc:
            raise ValueError(f"Right-hand side '{rhs_str}' is not numeric.") from exc

        names = [n.strip() for n in lhs_str.split("|")]
        if len(names) > 1 and all(_IDENTIFIER.match(n) for n in names):
            # "x1, x2 >= 3" applies the bound to each variable.
            groups = [({name: 1.0}, 0.0) for name in names]
        else:
            groups = [_parse_linear_expr(lhs_str.replace("|", ","))]

        for terms, constant in groups:
            for name in terms:
                variable_names.setdefault(name, None)
            if _is_non_negativity(terms, cmp, rhs_value - constant):
                continue
            parsed.append((terms, cmp, rhs_value - constant))

    order = list(variable_names.keys())
    objective = [objective_terms.get(name, 0.0) for name in order]
    constraints = [
        Constraint(
            id=f"c{idx}",
            coefficients=[terms.get(name, 0.0) for name in order],
            relation=cmp,  # type: ignore[arg-type]
            rhs=rhs,
        )
        for idx, (terms, cmp, rhs) in enumerate(parsed, start=1)
    ]
    return Problem(direction=direction, objective=objective, constraints=constraints)


def _split_constraints(text: str) -> List[str]:
    # Bare identifiers belong to the next segment: "x1, x2 >= 0" is one bound.
    tokens: List[str] = []
    pending: List[str] = []
    for raw in _TOKEN_SPLIT.split(text):
        tok = raw.strip()
        if not tok:
            continue
        if _IDENTIFIER.match(tok):
            pending.append(tok)
            continue
        if pending:
            tok = " | ".join(pending + [tok])
            pending = []
        tokens.append(tok)
    if pending:
        raise ValueError(f"Dangling variable list '{', '.join(pending)}'.")
    return tokens


def _is_non_negativity(terms: Dict[str, float], cmp: str, rhs: float) -> bool:
    if cmp != ">=" or abs(rhs) > 1e-12 or len(terms) != 1:
        return False
    (coef,) = terms.values()
    return coef > 0


def _parse_linear_expr(expr_str: str) -> Tuple[Dict[str, float], float]:
    expr_clean = expr_str.replace("*", "")
    coeffs: Dict[str, float] = OrderedDict()
    spans: List[Tuple[int, int]] = []

    for match in _TERM_PATTERN.finditer(expr_clean):
        coef_text = match.group(1).replace(" ", "")
        var_name = match.group(2)
        if coef_text in ("", "+"):
            coef = 1.0
        elif coef_text == "-":
            coef = -1.0
        else:
            coef = float(coef_text)
        coeffs[var_name] = coeffs.get(var_name, 0.0) + coef
        spans.append(match.span())

    remaining = list(expr_clean)
    for start, end in spans:
        for idx in range(start, end):
            remaining[idx] = " "
    remaining_str = "".join(remaining)

    constant = 0.0
    for num_match in _NUMBER_PATTERN.finditer(remaining_str):
        text = num_match.group(0).replace(" ", "")
        if text:
            constant += float(text)

    if not coeffs:
        raise ValueError(f"No variables found in expression '{expr_str}'.")
    return dict(coeffs), constant
