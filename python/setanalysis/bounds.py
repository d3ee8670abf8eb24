# SetAnalysis - Bounds Engine
# Copyright (c) 2024 SetAnalysis Contributors. All rights reserved.

"""
Supremum, infimum and attainment for components and their union.

Each component reduces to a ``Bounds`` value; the union is a fold of those
values with ``combine``:

    sup(A ∪ B) = max(sup A, sup B)    unbounded if either side is
    inf(A ∪ B) = min(inf A, inf B)    unbounded if either side is

A bound is *attained* when some member of the set equals it (a closed
interval end, an explicit point, a sequence term). The union attains its
sup if any component attains a sup within ``tolerance`` of it.

Custom sequences have no closed form, so their bounds come from samples plus
``detect_divergence``, a tail-sampling heuristic that can misclassify slowly
divergent or slowly convergent sequences.
"""

from __future__ import annotations
from dataclasses import dataclass
from functools import reduce
from typing import Iterable, Optional
import math

from loguru import logger

from .components import (
    CurveSurface,
    Finite,
    Interval,
    MaterializedComponent,
    Sequence,
)
from .config import AnalysisConfig
from .domain import BoundingDomain, Point
from .formula import FormulaEvaluator


@dataclass(frozen=True)
class Bounds:
    """
    Upper and lower bound information for a component or a union.

    ``sup`` is None when the set is empty or unbounded above; in the latter
    case ``unbounded_above`` is set. Same for ``inf``.
    """
    sup: Optional[float] = None
    sup_attained: bool = False
    unbounded_above: bool = False
    inf: Optional[float] = None
    inf_attained: bool = False
    unbounded_below: bool = False

    @property
    def empty(self) -> bool:
        return (
            self.sup is None and self.inf is None
            and not self.unbounded_above and not self.unbounded_below
        )

    @classmethod
    def of_values(cls, values: Iterable[float]) -> Bounds:
        """Bounds of a set whose members include every given value."""
        values = list(values)
        if not values:
            return EMPTY_BOUNDS
        return cls(max(values), True, False, min(values), True, False)


EMPTY_BOUNDS = Bounds()


def _merge(
    a: Optional[float], a_attained: bool,
    b: Optional[float], b_attained: bool,
    tol: float,
) -> tuple[Optional[float], bool]:
    """Larger of two optional upper bounds with attainment."""
    if a is None:
        return b, b_attained
    if b is None:
        return a, a_attained
    if a > b + tol:
        return a, a_attained
    if b > a + tol:
        return b, b_attained
    return max(a, b), a_attained or b_attained


def combine(a: Bounds, b: Bounds, tol: float = 1e-9) -> Bounds:
    """Bounds of the union of two sets."""
    sup, sup_attained = _merge(a.sup, a.sup_attained, b.sup, b.sup_attained, tol)
    neg_inf, inf_attained = _merge(
        None if a.inf is None else -a.inf, a.inf_attained,
        None if b.inf is None else -b.inf, b.inf_attained,
        tol,
    )
    return Bounds(
        sup=sup,
        sup_attained=sup_attained,
        unbounded_above=a.unbounded_above or b.unbounded_above,
        inf=None if neg_inf is None else -neg_inf,
        inf_attained=inf_attained,
        unbounded_below=a.unbounded_below or b.unbounded_below,
    )


def union_bounds(bounds: Iterable[Bounds], tol: float = 1e-9) -> Bounds:
    """Fold component bounds into the bounds of their union."""
    return reduce(lambda acc, b: combine(acc, b, tol), bounds, EMPTY_BOUNDS)


# =============================================================================
# Divergence heuristic for custom sequences
# =============================================================================

@dataclass(frozen=True)
class DivergenceReport:
    """
    Outcome of tail sampling a custom sequence.

    Attributes:
        unbounded_above: Tail looks like it grows without bound
        unbounded_below: Tail looks like it falls without bound
        approx_max: Largest sampled value (local and tail)
        approx_min: Smallest sampled value (local and tail)
        tail: (index, value) pairs that evaluated successfully
    """
    unbounded_above: bool
    unbounded_below: bool
    approx_max: Optional[float]
    approx_min: Optional[float]
    tail: tuple[tuple[int, float], ...] = ()


def detect_divergence(
    expression: str,
    evaluator: FormulaEvaluator,
    config: AnalysisConfig,
    start: int = 1,
) -> DivergenceReport:
    """
    Guess whether a sequence formula diverges.

    Samples ``config.divergence_local_samples`` leading terms and the far
    tail ``config.divergence_tail_indices``. A tail value beyond
    ``divergence_magnitude`` flags divergence in its direction, as does a
    strictly monotone tail whose final step exceeds
    ``divergence_min_increment`` (catches sqrt(n) and log(n)). If every tail
    evaluation fails, a last leading term beyond the magnitude flags it
    instead (catches exp(n), which overflows in the tail).
    """
    local = []
    for n in range(start, start + config.divergence_local_samples):
        outcome = evaluator.try_evaluate(expression, {"n": float(n)})
        if outcome.ok:
            local.append(outcome.value)

    tail_indices = [i for i in config.divergence_tail_indices if i >= start + len(local)]
    tail = []
    for n in tail_indices:
        outcome = evaluator.try_evaluate(expression, {"n": float(n)})
        if outcome.ok:
            tail.append((n, outcome.value))
    tail_values = [v for _, v in tail]

    magnitude = config.divergence_magnitude
    above = any(v > magnitude for v in tail_values)
    below = any(v < -magnitude for v in tail_values)

    if tail_indices and len(tail_values) == len(tail_indices) and len(tail_values) >= 2:
        steps = [b - a for a, b in zip(tail_values, tail_values[1:])]
        if all(s > 0 for s in steps) and steps[-1] > config.divergence_min_increment:
            above = True
        if all(s < 0 for s in steps) and -steps[-1] > config.divergence_min_increment:
            below = True
    elif not tail_values and local:
        above = above or local[-1] > magnitude
        below = below or local[-1] < -magnitude

    values = local + tail_values
    report = DivergenceReport(
        unbounded_above=above,
        unbounded_below=below,
        approx_max=max(values) if values else None,
        approx_min=min(values) if values else None,
        tail=tuple(tail),
    )
    if above or below:
        logger.debug(
            "sequence {!r} flagged divergent (above={}, below={}), tail={}",
            expression, above, below, report.tail,
        )
    return report


# =============================================================================
# Per-component bounds
# =============================================================================

def _axis_values(points: Iterable[Point], axis: int) -> list[float]:
    return [p[axis] for p in points if len(p) > axis]


class BoundsEngine:
    """
    Computes bounds per component and for the union.

    Example:
        >>> engine = BoundsEngine()
        >>> mc = materialize(Interval(0, 1, False, True), engine.evaluator, engine.config)
        >>> engine.component_bounds(mc)
        Bounds(sup=1, sup_attained=False, unbounded_above=False, inf=0, inf_attained=True, unbounded_below=False)
    """

    def __init__(
        self,
        evaluator: Optional[FormulaEvaluator] = None,
        config: Optional[AnalysisConfig] = None,
    ):
        self.evaluator = evaluator or FormulaEvaluator()
        self.config = config or AnalysisConfig()

    def component_bounds(
        self,
        mc: MaterializedComponent,
        domain: Optional[BoundingDomain] = None,
    ) -> Bounds:
        component = mc.component
        if isinstance(component, Interval):
            return self._interval_bounds(component, domain)
        elif isinstance(component, Finite):
            return Bounds.of_values(_axis_values(mc.points, 0))
        elif isinstance(component, Sequence):
            if mc.excluded:
                return EMPTY_BOUNDS
            if component.is_custom:
                return self._custom_sequence_bounds(mc, component, domain)
            return self._preset_sequence_bounds(mc, component, domain)
        elif isinstance(component, CurveSurface):
            return Bounds.of_values(_axis_values(mc.points, component.bounds_axis))
        raise TypeError(f"unknown set component {type(component).__name__}")

    def union(self, bounds: Iterable[Bounds]) -> Bounds:
        return union_bounds(bounds, self.config.tolerance)

    def _interval_bounds(self, interval: Interval, domain: Optional[BoundingDomain]) -> Bounds:
        start, end = interval.start, interval.end
        left_open, right_open = interval.left_open, interval.right_open
        if domain is not None:
            clipped = domain.clip_interval(start, end, left_open, right_open)
            if clipped is None:
                return EMPTY_BOUNDS
            start, end, left_open, right_open = clipped
        elif interval.is_empty:
            return EMPTY_BOUNDS

        if end == math.inf:
            upper = dict(sup=None, sup_attained=False, unbounded_above=True)
        else:
            upper = dict(sup=end, sup_attained=not right_open, unbounded_above=False)
        if start == -math.inf:
            lower = dict(inf=None, inf_attained=False, unbounded_below=True)
        else:
            lower = dict(inf=start, inf_attained=not left_open, unbounded_below=False)
        return Bounds(**upper, **lower)

    def _preset_sequence_bounds(
        self,
        mc: MaterializedComponent,
        sequence: Sequence,
        domain: Optional[BoundingDomain],
    ) -> Bounds:
        preset = sequence.preset
        if sequence.first_index() == 1 and domain is None:
            return Bounds(preset.sup, preset.sup_attained, False,
                          preset.inf, preset.inf_attained, False)

        # Attained extremes are early terms, so the generated terms hold them;
        # unattained ones are limits and stay valid while the domain keeps them.
        sampled = Bounds.of_values(_axis_values(mc.points, 0))
        if sampled.empty:
            return EMPTY_BOUNDS
        sup, sup_attained = sampled.sup, True
        inf, inf_attained = sampled.inf, True
        if not preset.sup_attained and (domain is None or domain.contains(preset.sup)):
            sup, sup_attained = preset.sup, False
        if not preset.inf_attained and (domain is None or domain.contains(preset.inf)):
            inf, inf_attained = preset.inf, False
        return Bounds(sup, sup_attained, False, inf, inf_attained, False)

    def _custom_sequence_bounds(
        self,
        mc: MaterializedComponent,
        sequence: Sequence,
        domain: Optional[BoundingDomain],
    ) -> Bounds:
        report = detect_divergence(
            sequence.custom_formula, self.evaluator, self.config, sequence.first_index()
        )
        if domain is not None:
            lo, hi = domain.axis(0)
            kept = _axis_values(mc.points, 0)
            kept += [v for _, v in report.tail if lo <= v <= hi]
            sampled = Bounds.of_values(kept)
            if sampled.empty:
                return EMPTY_BOUNDS
            # A finite side of the box caps a divergent direction
            up = report.unbounded_above and hi == math.inf
            down = report.unbounded_below and lo == -math.inf
            return Bounds(
                None if up else sampled.sup, not up, up,
                None if down else sampled.inf, not down, down,
            )

        if report.approx_max is None:
            return EMPTY_BOUNDS
        return Bounds(
            sup=None if report.unbounded_above else report.approx_max,
            sup_attained=not report.unbounded_above,
            unbounded_above=report.unbounded_above,
            inf=None if report.unbounded_below else report.approx_min,
            inf_attained=not report.unbounded_below,
            unbounded_below=report.unbounded_below,
        )
