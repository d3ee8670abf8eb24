# SetAnalysis - Set Components
# Copyright (c) 2024 SetAnalysis Contributors. All rights reserved.

"""
The four kinds of set component and their point materialization.

A set is an ordered union of components:

- Interval: [a, b], (a, b), [a, b), (a, b] with possibly infinite ends
- Finite: an explicit list of points
- Sequence: {a_n : n >= start} for a preset or custom formula in n
- CurveSurface: a sampled explicit, parametric or implicit shape

``SetComponent`` is a closed union; every dispatch over it is an exhaustive
``isinstance`` chain that raises ``TypeError`` for anything else.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from itertools import product
from typing import Optional, Sequence as SequenceType, Union
import math

import numpy as np
from loguru import logger

from .config import AnalysisConfig
from .domain import BoundingDomain, Point
from .exceptions import DomainError, FormulaError
from .formula import FormulaEvaluator


def as_point(value: Union[float, SequenceType[float]]) -> Point:
    """Promote a scalar to a 1-tuple; copy a coordinate sequence to a tuple."""
    if isinstance(value, (int, float)):
        return (float(value),)
    return tuple(float(c) for c in value)


# =============================================================================
# Component variants
# =============================================================================

@dataclass(frozen=True)
class Interval:
    """
    A one-dimensional interval.

    Attributes:
        start: Left endpoint, may be -inf
        end: Right endpoint, may be +inf
        left_open: Whether start is excluded (forced for -inf)
        right_open: Whether end is excluded (forced for +inf)
    """
    start: float
    end: float
    left_open: bool = False
    right_open: bool = False

    type = "interval"

    def __post_init__(self):
        if math.isnan(self.start) or math.isnan(self.end):
            raise DomainError("interval endpoints must not be NaN")
        if self.start > self.end:
            raise DomainError(f"interval start {self.start} > end {self.end}")
        if self.start == math.inf or self.end == -math.inf:
            raise DomainError("interval cannot start at +inf or end at -inf")
        if self.start == -math.inf:
            object.__setattr__(self, "left_open", True)
        if self.end == math.inf:
            object.__setattr__(self, "right_open", True)

    @classmethod
    def closed(cls, start: float, end: float) -> Interval:
        return cls(start, end, False, False)

    @classmethod
    def open(cls, start: float, end: float) -> Interval:
        return cls(start, end, True, True)

    @property
    def is_empty(self) -> bool:
        return self.start == self.end and (self.left_open or self.right_open)

    def contains(self, x: float, tol: float = 0.0) -> bool:
        """Membership respecting open and closed ends, within tol."""
        if self.is_empty:
            return False
        if self.left_open:
            above = x > self.start + tol
        else:
            above = x >= self.start - tol
        if self.right_open:
            below = x < self.end - tol
        else:
            below = x <= self.end + tol
        return above and below

    def __str__(self) -> str:
        left = "(" if self.left_open else "["
        right = ")" if self.right_open else "]"
        return f"{left}{self.start}, {self.end}{right}"


@dataclass(frozen=True)
class Finite:
    """An explicit finite set of points."""
    points: tuple[Point, ...] = ()

    type = "finite"

    def __post_init__(self):
        object.__setattr__(self, "points", tuple(as_point(p) for p in self.points))


@dataclass(frozen=True)
class PresetSequence:
    """
    A catalogued sequence with hard-coded analytic bounds for n >= 1.

    Attributes:
        formula_id: Catalogue key
        expression: Formula in n used to generate terms
        sup, inf: Analytic supremum and infimum
        sup_attained, inf_attained: Whether some term equals the bound
        limit: Analytic limit, or None if the sequence diverges
    """
    formula_id: str
    expression: str
    sup: float
    sup_attained: bool
    inf: float
    inf_attained: bool
    limit: Optional[float]


PRESET_SEQUENCES: dict[str, PresetSequence] = {
    p.formula_id: p for p in [
        PresetSequence("1/n", "1/n", 1.0, True, 0.0, False, 0.0),
        PresetSequence("(-1)^n", "(-1)^n", 1.0, True, -1.0, True, None),
        PresetSequence("(-1)^n/n", "(-1)^n/n", 0.5, True, -1.0, True, 0.0),
        PresetSequence("n/(n+1)", "n/(n+1)", 1.0, False, 0.5, True, 1.0),
        PresetSequence("1 - 1/n", "1 - 1/n", 1.0, False, 0.0, True, 1.0),
        PresetSequence("(1/2)^n", "(1/2)^n", 0.5, True, 0.0, False, 0.0),
    ]
}

PRESET_ALIASES: dict[str, str] = {
    "harmonic": "1/n",
    "alternating": "(-1)^n",
    "alternating_harmonic": "(-1)^n/n",
    "1-1/n": "1 - 1/n",
    "geometric": "(1/2)^n",
    "0.5^n": "(1/2)^n",
}


def lookup_preset(formula_id: str) -> Optional[PresetSequence]:
    key = PRESET_ALIASES.get(formula_id, formula_id)
    return PRESET_SEQUENCES.get(key)


@dataclass(frozen=True)
class Sequence:
    """
    The set of terms {a_n : n >= start} of a sequence.

    ``index_range[1]`` only caps how many terms are generated; bounds of
    preset sequences come from the catalogue and custom sequences are probed
    past the range by the divergence detector.

    Attributes:
        formula_id: Key into PRESET_SEQUENCES (or an alias)
        custom_formula: Formula in n, used when formula_id is None
        index_range: (first index, last generated index), or None for the default
    """
    formula_id: Optional[str] = None
    custom_formula: Optional[str] = None
    index_range: Optional[tuple[int, int]] = None

    type = "sequence"

    def __post_init__(self):
        if (self.formula_id is None) == (self.custom_formula is None):
            raise DomainError("sequence needs exactly one of formula_id or custom_formula")
        if self.formula_id is not None and lookup_preset(self.formula_id) is None:
            raise DomainError(f"unknown preset sequence '{self.formula_id}'")
        if self.index_range is not None:
            lo, hi = self.index_range
            if lo > hi:
                raise DomainError(f"sequence index range {lo}..{hi} is empty")
            object.__setattr__(self, "index_range", (int(lo), int(hi)))

    @property
    def preset(self) -> Optional[PresetSequence]:
        if self.formula_id is None:
            return None
        return lookup_preset(self.formula_id)

    @property
    def expression(self) -> str:
        preset = self.preset
        return preset.expression if preset is not None else self.custom_formula

    @property
    def is_custom(self) -> bool:
        return self.custom_formula is not None

    def first_index(self) -> int:
        return self.index_range[0] if self.index_range is not None else 1

    def indices(self, config: AnalysisConfig) -> range:
        """Indices of the generated terms, capped by the configuration."""
        if self.index_range is None:
            return range(1, config.default_sequence_terms + 1)
        lo, hi = self.index_range
        count = min(hi - lo + 1, config.max_sequence_terms)
        return range(lo, lo + count)


class CurveKind(Enum):
    """How a CurveSurface formula describes its shape."""
    EXPLICIT = "explicit"      # y = f(x)
    PARAMETRIC = "parametric"  # t -> (x(t), y(t)[, z(t)])
    IMPLICIT = "implicit"      # F(x, y[, z]) = 0


@dataclass(frozen=True)
class CurveSurface:
    """
    A continuous shape known through samples.

    Attributes:
        kind: Explicit, parametric or implicit
        formulas: One formula (explicit, implicit) or 2-3 formulas (parametric)
        domain: Parameter range for explicit/parametric; per-axis range for implicit
        sample_count: Samples along the curve; implicit grids derive their resolution from it
        dimension: Ambient dimension of an implicit set (2 or 3)
        axis: Coordinate used for sup/inf (default 1 for explicit, 0 otherwise)
    """
    kind: CurveKind
    formulas: tuple[str, ...]
    domain: tuple[float, float] = (-1.0, 1.0)
    sample_count: int = 100
    dimension: int = 2
    axis: Optional[int] = None

    type = "curve"

    def __post_init__(self):
        object.__setattr__(self, "kind", CurveKind(self.kind))
        object.__setattr__(self, "formulas", tuple(self.formulas))
        lo, hi = self.domain
        if not (math.isfinite(lo) and math.isfinite(hi)) or lo > hi:
            raise DomainError(f"curve domain {self.domain} must be finite with lo <= hi")
        if self.sample_count < 1:
            raise DomainError("sample_count must be positive")
        expected = {CurveKind.EXPLICIT: (1,), CurveKind.PARAMETRIC: (2, 3), CurveKind.IMPLICIT: (1,)}
        if len(self.formulas) not in expected[self.kind]:
            raise DomainError(
                f"{self.kind.value} curve takes {expected[self.kind]} formulas, got {len(self.formulas)}"
            )
        if self.kind == CurveKind.IMPLICIT and self.dimension not in (2, 3):
            raise DomainError("implicit sets live in 2 or 3 dimensions")
        if self.axis is not None and not 0 <= self.axis < self.point_dimension:
            raise DomainError(
                f"axis {self.axis} out of range for {self.point_dimension}-dimensional points"
            )

    @property
    def point_dimension(self) -> int:
        if self.kind == CurveKind.EXPLICIT:
            return 2
        if self.kind == CurveKind.PARAMETRIC:
            return len(self.formulas)
        return self.dimension

    @property
    def bounds_axis(self) -> int:
        if self.axis is not None:
            return self.axis
        return 1 if self.kind == CurveKind.EXPLICIT else 0


SetComponent = Union[Interval, Finite, Sequence, CurveSurface]


# =============================================================================
# Materialization
# =============================================================================

@dataclass(frozen=True)
class MaterializedComponent:
    """
    A component together with the points it contributes.

    Attributes:
        component: The source component
        points: Generated (or verbatim) points, already restricted to the domain
        is_manifold: True for samples of a continuous shape
        failures: Number of evaluations that failed and were skipped
        reason: Failure code when the component contributes nothing because
                of formula errors
    """
    component: SetComponent
    points: tuple[Point, ...] = ()
    is_manifold: bool = False
    failures: int = 0
    reason: Optional[str] = None

    @property
    def excluded(self) -> bool:
        return self.reason is not None and not self.points


def _keep(points: list[Point], domain: Optional[BoundingDomain]) -> tuple[Point, ...]:
    finite = (p for p in points if all(math.isfinite(c) for c in p))
    if domain is None:
        return tuple(finite)
    return tuple(p for p in finite if domain.contains(p))


def materialize(
    component: SetComponent,
    evaluator: FormulaEvaluator,
    config: AnalysisConfig,
    domain: Optional[BoundingDomain] = None,
) -> MaterializedComponent:
    """
    Generate the points a component contributes.

    Intervals contribute their finite endpoints only; the bounds engine
    handles their interiors exactly.
    """
    if isinstance(component, Interval):
        return _materialize_interval(component, domain)
    elif isinstance(component, Finite):
        return MaterializedComponent(component, _keep(list(component.points), domain))
    elif isinstance(component, Sequence):
        return _materialize_sequence(component, evaluator, config, domain)
    elif isinstance(component, CurveSurface):
        return _materialize_curve(component, evaluator, config, domain)
    raise TypeError(f"unknown set component {type(component).__name__}")


def _materialize_interval(
    interval: Interval,
    domain: Optional[BoundingDomain],
) -> MaterializedComponent:
    start, end = interval.start, interval.end
    if domain is not None:
        clipped = domain.clip_interval(start, end, interval.left_open, interval.right_open)
        if clipped is None:
            return MaterializedComponent(interval)
        start, end = clipped[0], clipped[1]
    elif interval.is_empty:
        return MaterializedComponent(interval)
    points = [(x,) for x in (start, end) if math.isfinite(x)]
    if len(points) == 2 and points[0] == points[1]:
        points = points[:1]
    return MaterializedComponent(interval, tuple(points))


def _materialize_sequence(
    sequence: Sequence,
    evaluator: FormulaEvaluator,
    config: AnalysisConfig,
    domain: Optional[BoundingDomain],
) -> MaterializedComponent:
    try:
        formula = evaluator.compile(sequence.expression)
    except FormulaError as e:
        logger.debug("sequence {!r} excluded: {}", sequence.expression, e)
        return MaterializedComponent(sequence, reason=e.code)

    points: list[Point] = []
    failures = 0
    reason = None
    for n in sequence.indices(config):
        try:
            points.append((formula({"n": float(n)}),))
        except FormulaError as e:
            failures += 1
            reason = e.code
    if points:
        reason = None
    return MaterializedComponent(sequence, _keep(points, domain), False, failures, reason)


def _grid_resolution(curve: CurveSurface, config: AnalysisConfig) -> int:
    if curve.dimension == 2:
        return max(2, min(curve.sample_count, config.max_grid_resolution))
    resolution = round(curve.sample_count ** (2 / 3))
    return max(2, min(resolution, config.max_grid_resolution_3d))


def _materialize_curve(
    curve: CurveSurface,
    evaluator: FormulaEvaluator,
    config: AnalysisConfig,
    domain: Optional[BoundingDomain],
) -> MaterializedComponent:
    try:
        formulas = [evaluator.compile(f) for f in curve.formulas]
    except FormulaError as e:
        logger.debug("curve {} excluded: {}", curve.formulas, e)
        return MaterializedComponent(curve, is_manifold=True, reason=e.code)

    lo, hi = curve.domain
    points: list[Point] = []
    failures = 0
    reason = None

    if curve.kind == CurveKind.IMPLICIT:
        resolution = _grid_resolution(curve, config)
        axis_values = np.linspace(lo, hi, resolution)
        names = ("x", "y", "z")[:curve.dimension]
        for coords in product(axis_values, repeat=curve.dimension):
            bindings = dict(zip(names, (float(c) for c in coords)))
            try:
                value = formulas[0](bindings)
            except FormulaError as e:
                failures += 1
                reason = e.code
                continue
            if abs(value) < config.implicit_threshold:
                points.append(tuple(bindings[name] for name in names))
    else:
        samples = min(curve.sample_count, config.max_curve_samples)
        var = "x" if curve.kind == CurveKind.EXPLICIT else "t"
        for s in np.linspace(lo, hi, samples):
            s = float(s)
            try:
                values = tuple(f({var: s}) for f in formulas)
            except FormulaError as e:
                failures += 1
                reason = e.code
                continue
            if curve.kind == CurveKind.EXPLICIT:
                points.append((s, values[0]))
            else:
                points.append(values)

    if points:
        reason = None
    logger.debug(
        "{} curve: {} points, {} failed evaluations", curve.kind.value, len(points), failures
    )
    return MaterializedComponent(curve, _keep(points, domain), True, failures, reason)
