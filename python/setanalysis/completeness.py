# SetAnalysis - Completeness Analyzer
# Copyright (c) 2024 SetAnalysis Contributors. All rights reserved.

"""
Cauchy and limit heuristics, completeness and compactness.

Nothing here is a proof:

- A sequence is taken as Cauchy when its last two generated terms are
  closer than ``cauchy_threshold``.
- The apparent limit of a Cauchy sequence is the catalogued limit for preset
  sequences and the last generated term otherwise.
- The set is complete when every apparent limit, and every finite open end
  of an interval, belongs to some component.
- Compact means bounded and complete (Heine–Borel in ℝⁿ).
- In the rational universe a supremum within ``irrational_tolerance`` of one
  of five catalogued irrationals is reported as missing. Any other real is
  assumed to possibly be rational; there is no general irrationality test.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Sequence as SequenceType
import math

from loguru import logger

from .bounds import Bounds
from .components import (
    CurveSurface,
    Finite,
    Interval,
    MaterializedComponent,
    Sequence,
)
from .config import AnalysisConfig, Universe
from .diameter import euclidean_distance
from .domain import BoundingDomain

KNOWN_IRRATIONALS: tuple[tuple[str, float], ...] = (
    ("sqrt(2)", math.sqrt(2)),
    ("pi", math.pi),
    ("e", math.e),
    ("sqrt(3)", math.sqrt(3)),
    ("sqrt(5)", math.sqrt(5)),
)


def match_irrational(value: float, tol: float = 1e-7) -> Optional[str]:
    """Name of the catalogued irrational within tol of value, if any."""
    for name, constant in KNOWN_IRRATIONALS:
        if abs(value - constant) < tol:
            return name
    return None


@dataclass(frozen=True)
class SequenceLimit:
    """
    Heuristic convergence verdict for one sequence component.

    Attributes:
        is_cauchy: None when too few terms were generated to judge
        limit: Apparent limit when is_cauchy, else None
        eventually_constant: Last two terms coincide, so the limit is a term
    """
    is_cauchy: Optional[bool]
    limit: Optional[float] = None
    eventually_constant: bool = False


@dataclass(frozen=True)
class CompletenessReport:
    is_cauchy: Optional[bool]
    converges_to: Optional[float]
    is_complete_in_space: bool
    is_compact: bool
    completeness_gap: bool = False
    gap_constant: Optional[str] = None
    missing_limit_points: tuple[float, ...] = ()


class CompletenessAnalyzer:
    """Runs the Cauchy, membership, compactness and rational-gap checks."""

    def __init__(self, config: Optional[AnalysisConfig] = None):
        self.config = config or AnalysisConfig()

    def sequence_limit(self, mc: MaterializedComponent) -> SequenceLimit:
        cfg = self.config
        terms = [p[0] for p in mc.points]
        if len(terms) < cfg.cauchy_min_terms:
            return SequenceLimit(None)
        gap = abs(terms[-1] - terms[-2])
        if gap >= cfg.cauchy_threshold:
            return SequenceLimit(False)
        limit = terms[-1]
        preset = mc.component.preset
        if preset is not None and preset.limit is not None:
            limit = preset.limit
        return SequenceLimit(True, limit, gap <= cfg.membership_tolerance)

    def contains(
        self,
        x: float,
        components: SequenceType[MaterializedComponent],
        domain: Optional[BoundingDomain] = None,
    ) -> bool:
        """Whether some component holds the one-dimensional point x."""
        tol = self.config.membership_tolerance
        for mc in components:
            component = mc.component
            if isinstance(component, Interval):
                if domain is not None:
                    clipped = domain.clip_interval(
                        component.start, component.end,
                        component.left_open, component.right_open,
                    )
                    if clipped is not None and Interval(*clipped).contains(x, tol):
                        return True
                elif component.contains(x, tol):
                    return True
            elif isinstance(component, Finite):
                if any(euclidean_distance(p, (x,)) <= tol for p in mc.points):
                    return True
            elif isinstance(component, Sequence):
                verdict = self.sequence_limit(mc)
                if verdict.eventually_constant and abs(verdict.limit - x) <= tol:
                    return True
            elif isinstance(component, CurveSurface):
                continue
            else:
                raise TypeError(f"unknown set component {type(component).__name__}")
        return False

    def _limit_points(
        self,
        components: SequenceType[MaterializedComponent],
        domain: Optional[BoundingDomain],
    ) -> list[float]:
        """Open interval ends and apparent sequence limits that must be members."""
        candidates = []
        for mc in components:
            component = mc.component
            if isinstance(component, Interval) and mc.points:
                start, end = component.start, component.end
                left_open, right_open = component.left_open, component.right_open
                if domain is not None:
                    start, end, left_open, right_open = domain.clip_interval(
                        start, end, left_open, right_open
                    )
                if left_open and math.isfinite(start):
                    candidates.append(start)
                if right_open and math.isfinite(end):
                    candidates.append(end)
            elif isinstance(component, Sequence):
                verdict = self.sequence_limit(mc)
                if verdict.is_cauchy:
                    candidates.append(verdict.limit)
        return candidates

    def analyze(
        self,
        components: SequenceType[MaterializedComponent],
        bounds: Bounds,
        universe: Universe = Universe.REAL,
        domain: Optional[BoundingDomain] = None,
    ) -> CompletenessReport:
        verdicts = [
            self.sequence_limit(mc)
            for mc in components
            if isinstance(mc.component, Sequence) and not mc.excluded
        ]
        judged = [v for v in verdicts if v.is_cauchy is not None]
        is_cauchy = all(v.is_cauchy for v in judged) if judged else None
        converges_to = next((v.limit for v in judged if v.is_cauchy), None)

        missing = tuple(
            x for x in self._limit_points(components, domain)
            if not self.contains(x, components, domain)
        )
        complete = not missing

        gap_constant = None
        if universe == Universe.RATIONAL and bounds.sup is not None and not bounds.unbounded_above:
            gap_constant = match_irrational(bounds.sup, self.config.irrational_tolerance)
            if gap_constant is not None:
                logger.debug("sup {} matches {}: no supremum in Q", bounds.sup, gap_constant)
                complete = False

        bounded = not bounds.unbounded_above and not bounds.unbounded_below
        return CompletenessReport(
            is_cauchy=is_cauchy,
            converges_to=converges_to,
            is_complete_in_space=complete,
            is_compact=bounded and complete,
            completeness_gap=gap_constant is not None,
            gap_constant=gap_constant,
            missing_limit_points=missing,
        )
