# SetAnalysis - Request Validation
# Copyright (c) 2024 SetAnalysis Contributors. All rights reserved.

"""
Boundary parsing of JSON-like request payloads into components.

The engine assumes well-formed input, so everything that could be malformed
is rejected here: wrong types, non-finite numbers, unsafe or unparsable
formulas, empty or oversized ranges. All problems are collected and raised
together as one ``ValidationError``.

Wire shapes (``type`` tag first):

    {"type": "interval", "start": 0, "end": "inf", "leftOpen": false, "rightOpen": true}
    {"type": "finite", "points": [1, 2.5, [3, 4]]}
    {"type": "sequence", "formulaId": "1/n"}
    {"type": "sequence", "customFormula": "sqrt(n)", "indexRange": [1, 100]}
    {"type": "curve", "funcType": "parametric", "formulaX": "cos(t)",
     "formulaY": "sin(t)", "domain": [0, 6.28], "samples": 200}
"""

from __future__ import annotations
from typing import Any, Optional
import math

from .components import (
    CurveKind,
    CurveSurface,
    Finite,
    Interval,
    SetComponent,
    Sequence,
    lookup_preset,
)
from .analysis import AnalysisOptions
from .config import Universe
from .domain import BoundingDomain
from .exceptions import ValidationError
from .formula import FormulaEvaluator

MAX_SEQUENCE_RANGE = 100000
MAX_CURVE_SAMPLES = 100000
MAX_FORMULA_LENGTH = 1000

_POS_INF = {"inf", "+inf", "infinity", "+infinity", "∞", "+∞"}
_NEG_INF = {"-inf", "-infinity", "-∞"}

_evaluator = FormulaEvaluator()


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def parse_extended_real(value: Any) -> Optional[float]:
    """Read a number or an infinity spelling; None if neither."""
    if _is_number(value):
        return None if math.isnan(value) else float(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _POS_INF:
            return math.inf
        if text in _NEG_INF:
            return -math.inf
    return None


def _first(data: dict, *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    return default


def _check_formula(formula: Any, variables: tuple[str, ...], prefix: str, errors: list[str]) -> None:
    if not isinstance(formula, str) or not formula.strip():
        errors.append(f"{prefix}: formula must be a non-empty string")
        return
    if len(formula) > MAX_FORMULA_LENGTH:
        errors.append(f"{prefix}: formula too long (max {MAX_FORMULA_LENGTH} characters)")
        return
    for problem in _evaluator.validate(formula, variables):
        errors.append(f"{prefix}: {problem}")


def _parse_interval(data: dict, prefix: str, errors: list[str]) -> Optional[Interval]:
    start = parse_extended_real(data.get("start"))
    end = parse_extended_real(data.get("end"))
    left_open = _first(data, "leftOpen", "openStart", default=False)
    right_open = _first(data, "rightOpen", "openEnd", default=False)
    before = len(errors)
    if start is None or start == math.inf:
        errors.append(f"{prefix}: interval needs a numeric 'start' (or -inf)")
    if end is None or end == -math.inf:
        errors.append(f"{prefix}: interval needs a numeric 'end' (or inf)")
    if not isinstance(left_open, bool) or not isinstance(right_open, bool):
        errors.append(f"{prefix}: open flags must be booleans")
    if len(errors) == before and start > end:
        errors.append(f"{prefix}: interval 'start' must be less than or equal to 'end'")
    if len(errors) > before:
        return None
    return Interval(start, end, left_open, right_open)


def _parse_finite(data: dict, prefix: str, errors: list[str]) -> Optional[Finite]:
    points = _first(data, "points", "elements")
    if not isinstance(points, list):
        errors.append(f"{prefix}: finite set needs a 'points' list")
        return None
    before = len(errors)
    for i, p in enumerate(points):
        coords = p if isinstance(p, list) else [p]
        if not coords or not all(_is_number(c) and math.isfinite(c) for c in coords):
            errors.append(f"{prefix}: point {i} must be a finite number or list of finite numbers")
    if len(errors) > before:
        return None
    return Finite(tuple(points))


def _parse_sequence(data: dict, prefix: str, errors: list[str]) -> Optional[Sequence]:
    formula_id = _first(data, "formulaId", "sequenceFormula")
    custom = _first(data, "customFormula", "formula")
    index_range = data.get("indexRange")
    if index_range is None and ("start" in data or "end" in data):
        index_range = [data.get("start", 1), data.get("end")]
    elif index_range is None and "limit" in data:
        index_range = [1, data["limit"]]
    # Nested shape: {"sequence": {"type": "1/n"}} or {"type": "custom", ...}
    tag = data.get("type")
    if formula_id is None and custom is None and isinstance(tag, str) and tag not in ("sequence", "custom"):
        formula_id = tag

    before = len(errors)
    if formula_id is not None and custom is not None:
        errors.append(f"{prefix}: give either 'formulaId' or 'customFormula', not both")
    elif formula_id is not None:
        if not isinstance(formula_id, str) or lookup_preset(formula_id) is None:
            errors.append(f"{prefix}: unknown preset sequence {formula_id!r}")
    elif custom is not None:
        _check_formula(custom, ("n",), prefix, errors)
    else:
        errors.append(f"{prefix}: sequence needs 'formulaId' or 'customFormula'")

    if index_range is not None:
        if (not isinstance(index_range, list) or len(index_range) != 2
                or not all(isinstance(i, int) and not isinstance(i, bool) for i in index_range)):
            errors.append(f"{prefix}: index range must be two integers")
        elif index_range[0] > index_range[1]:
            errors.append(f"{prefix}: range start must be less than or equal to end")
        elif index_range[1] - index_range[0] > MAX_SEQUENCE_RANGE:
            errors.append(f"{prefix}: sequence range too large (max {MAX_SEQUENCE_RANGE} elements)")
    if len(errors) > before:
        return None
    return Sequence(
        formula_id=formula_id,
        custom_formula=custom,
        index_range=tuple(index_range) if index_range is not None else None,
    )


def _parse_curve(data: dict, prefix: str, errors: list[str]) -> Optional[CurveSurface]:
    func_type = _first(data, "funcType", "kind")
    try:
        kind = CurveKind(func_type)
    except ValueError:
        errors.append(f"{prefix}: funcType must be 'explicit', 'parametric' or 'implicit'")
        return None

    dimension = data.get("dimension", 2)
    if kind == CurveKind.EXPLICIT:
        formulas = [_first(data, "formula", "formulaY")]
        variables = ("x",)
        point_dimension = 2
    elif kind == CurveKind.PARAMETRIC:
        formulas = [data.get("formulaX"), data.get("formulaY")]
        if data.get("formulaZ"):
            formulas.append(data["formulaZ"])
        variables = ("t",)
        point_dimension = len(formulas)
    else:
        formulas = [_first(data, "formula", "formulaX")]
        if dimension not in (2, 3):
            errors.append(f"{prefix}: implicit dimension must be 2 or 3")
            return None
        variables = ("x", "y", "z")[:dimension]
        point_dimension = dimension

    before = len(errors)
    for formula in formulas:
        _check_formula(formula, variables, prefix, errors)

    domain = data.get("domain", [-1, 1])
    if (not isinstance(domain, list) or len(domain) != 2
            or not all(_is_number(v) and math.isfinite(v) for v in domain)
            or domain[0] > domain[1]):
        errors.append(f"{prefix}: domain must be two finite numbers [lo, hi] with lo <= hi")

    samples = _first(data, "samples", "sampleCount", default=100)
    if not isinstance(samples, int) or isinstance(samples, bool) or not 1 <= samples <= MAX_CURVE_SAMPLES:
        errors.append(f"{prefix}: samples must be an integer in 1..{MAX_CURVE_SAMPLES}")

    axis = data.get("axis")
    if axis is not None and (not isinstance(axis, int) or isinstance(axis, bool)
                             or not 0 <= axis < point_dimension):
        errors.append(f"{prefix}: axis must be an integer in 0..{point_dimension - 1}")

    if len(errors) > before:
        return None
    return CurveSurface(
        kind=kind,
        formulas=tuple(formulas),
        domain=(float(domain[0]), float(domain[1])),
        sample_count=samples,
        dimension=dimension,
        axis=axis,
    )


_PARSERS = {
    "interval": _parse_interval,
    "finite": _parse_finite,
    "sequence": _parse_sequence,
    "curve": _parse_curve,
    "function": _parse_curve,
}


def parse_component(data: Any, index: int = 0, errors: Optional[list[str]] = None) -> Optional[SetComponent]:
    """
    Parse one component dict.

    Problems are appended to ``errors`` when given; otherwise a
    ValidationError is raised.
    """
    collect = errors is not None
    errors = errors if collect else []
    prefix = f"Component[{index}]"
    if not isinstance(data, dict):
        errors.append(f"{prefix}: must be an object")
        component = None
    else:
        # Accept the nested shape {"type": "interval", "interval": {...}}
        tag = data.get("type")
        if not isinstance(tag, str) or tag not in _PARSERS:
            errors.append(f"{prefix}: type must be one of {sorted(_PARSERS)}")
            component = None
        else:
            body = data[tag] if isinstance(data.get(tag), dict) else data
            component = _PARSERS[tag](body, prefix, errors)
    if not collect and errors:
        raise ValidationError(errors)
    return component


def parse_components(payload: Any) -> list[SetComponent]:
    """
    Parse a list of components, or a request dict with a 'components' list.

    Raises:
        ValidationError: With every problem found
    """
    if isinstance(payload, dict):
        payload = payload.get("components")
    if not isinstance(payload, list):
        raise ValidationError(['request must contain a "components" array'])
    errors: list[str] = []
    components = [parse_component(item, i, errors) for i, item in enumerate(payload)]
    if errors:
        raise ValidationError(errors)
    return components


def parse_options(payload: Any) -> AnalysisOptions:
    """
    Read analysis options from a request dict.

    Accepts 'universe' ("R" or "Q") and 'boundingDomain', a list of
    [lo, hi] pairs, one per constrained axis.
    """
    if payload is None:
        return AnalysisOptions()
    if not isinstance(payload, dict):
        raise ValidationError(["options must be an object"])
    errors: list[str] = []
    universe = payload.get("universe", "R")
    try:
        universe = Universe(universe)
    except ValueError:
        errors.append('universe must be "R" or "Q"')

    domain = None
    raw = payload.get("boundingDomain")
    if raw is not None:
        pairs_ok = isinstance(raw, list) and raw and all(
            isinstance(pair, list) and len(pair) == 2
            and all(parse_extended_real(v) is not None for v in pair)
            for pair in raw
        )
        if not pairs_ok:
            errors.append("boundingDomain must be a non-empty list of [lo, hi] pairs")
        else:
            pairs = [(parse_extended_real(lo), parse_extended_real(hi)) for lo, hi in raw]
            if any(lo > hi for lo, hi in pairs):
                errors.append("boundingDomain pairs must satisfy lo <= hi")
            else:
                domain = BoundingDomain.from_pairs(pairs)
    if errors:
        raise ValidationError(errors)
    return AnalysisOptions(universe=universe, bounding_domain=domain)


def parse_request(payload: Any) -> tuple[list[SetComponent], AnalysisOptions]:
    """Parse a full request: {"components": [...], "options": {...}}."""
    if not isinstance(payload, dict):
        raise ValidationError(["request body must be a JSON object"])
    components = parse_components(payload)
    options = parse_options(payload.get("options"))
    return components, options
