# SetAnalysis - Result Types
# Copyright (c) 2024 SetAnalysis Contributors. All rights reserved.

"""
The immutable record produced by one analysis.

Infinity is represented by ``math.inf``/``-math.inf``. ``None`` means
"does not exist": a ``None`` max is *not attained*, never zero.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from fractions import Fraction
from typing import Any, Optional, Union
import math

from .diameter import DiameterAlgorithm
from .domain import Point


@dataclass(frozen=True)
class ExcludedComponent:
    """A component that contributed nothing because its formula failed."""
    index: int
    reason: str


def _wire(value: Optional[float]) -> Union[float, str, None]:
    if value is None:
        return None
    if value == math.inf:
        return "infinity"
    if value == -math.inf:
        return "-infinity"
    return value


@dataclass(frozen=True)
class AnalysisResult:
    """
    Analysis of a union of set components.

    Attributes:
        sup: Supremum; math.inf if unbounded above; None if empty or, in the
             rational universe, when it does not exist in Q
        inf: Infimum; -math.inf if unbounded below; None if empty
        max: Maximum, or None if the supremum is not attained
        min: Minimum, or None if the infimum is not attained
        bounded_above, bounded_below: Boundedness (the empty set is bounded)
        is_empty: No component contributed any point or bound
        diameter: Diameter >= 0, math.inf if unbounded, None if empty
        diameter_witness: Pair of points realizing the diameter
        diameter_algorithm: Algorithm that computed the diameter
        is_cauchy: Cauchy heuristic over sequence components (None if none apply)
        converges_to: Apparent limit of the first Cauchy sequence
        is_complete_in_space: Every detected limit point is a member
        is_compact: Bounded and complete
        completeness_gap: Rational universe and the real sup is a catalogued irrational
        gap_constant: Name of the matched irrational
        theoretical_sup: Supremum in R, kept for display when sup is None
        epsilon_band: (sup - epsilon, sup) for a finite sup
        sup_as_fraction: Exact fraction for the sup in the rational universe
        excluded: Components dropped because their formulas failed
    """
    sup: Optional[float]
    inf: Optional[float]
    max: Optional[float]
    min: Optional[float]
    bounded_above: bool
    bounded_below: bool
    is_empty: bool
    diameter: Optional[float] = None
    diameter_witness: Optional[tuple[Point, Point]] = None
    diameter_algorithm: DiameterAlgorithm = DiameterAlgorithm.EMPTY
    is_cauchy: Optional[bool] = None
    converges_to: Optional[float] = None
    is_complete_in_space: bool = True
    is_compact: bool = True
    completeness_gap: bool = False
    gap_constant: Optional[str] = None
    theoretical_sup: Optional[float] = None
    epsilon_band: Optional[tuple[float, float]] = None
    sup_as_fraction: Optional[Fraction] = None
    excluded: tuple[ExcludedComponent, ...] = field(default_factory=tuple)

    @property
    def is_bounded(self) -> bool:
        return self.bounded_above and self.bounded_below

    def summary(self) -> str:
        """Return a human-readable summary."""
        if self.is_empty:
            return "AnalysisResult: EMPTY SET (bounded, compact)"
        lines = [
            "AnalysisResult:",
            f"  sup = {self.sup}  (max: {'not attained' if self.max is None else self.max})",
            f"  inf = {self.inf}  (min: {'not attained' if self.min is None else self.min})",
            f"  bounded: above={self.bounded_above}, below={self.bounded_below}",
            f"  diameter = {self.diameter} [{self.diameter_algorithm.value}]",
            f"  complete={self.is_complete_in_space}, compact={self.is_compact}",
        ]
        if self.is_cauchy is not None:
            lines.append(f"  cauchy={self.is_cauchy}, converges to {self.converges_to}")
        if self.completeness_gap:
            lines.append(
                f"  sup does not exist in Q (theoretical sup {self.gap_constant} "
                f"≈ {self.theoretical_sup})"
            )
        for ex in self.excluded:
            lines.append(f"  component {ex.index} excluded: {ex.reason}")
        return "\n".join(lines)

    def to_dict(self) -> dict[str, Any]:
        """Map to a JSON-ready dict without reinterpreting any field."""
        witness = None
        if self.diameter_witness is not None:
            witness = [list(self.diameter_witness[0]), list(self.diameter_witness[1])]
        return {
            "sup": _wire(self.sup),
            "inf": _wire(self.inf),
            "max": self.max,
            "min": self.min,
            "boundedAbove": self.bounded_above,
            "boundedBelow": self.bounded_below,
            "isBounded": self.is_bounded,
            "isEmpty": self.is_empty,
            "diameter": _wire(self.diameter),
            "diameterWitness": witness,
            "diameterAlgorithm": self.diameter_algorithm.value,
            "isCauchy": self.is_cauchy,
            "convergesTo": self.converges_to,
            "isCompleteInSpace": self.is_complete_in_space,
            "isCompact": self.is_compact,
            "completenessGap": self.completeness_gap,
            "gapConstant": self.gap_constant,
            "theoreticalSup": _wire(self.theoretical_sup),
            "epsilonBand": list(self.epsilon_band) if self.epsilon_band else None,
            "supAsFraction": str(self.sup_as_fraction) if self.sup_as_fraction is not None else None,
            "excluded": [{"index": ex.index, "reason": ex.reason} for ex in self.excluded],
        }
