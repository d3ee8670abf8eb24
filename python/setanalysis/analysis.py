# SetAnalysis - Analysis Orchestrator
# Copyright (c) 2024 SetAnalysis Contributors. All rights reserved.

"""
High-level analysis API.

``analyze`` turns an ordered list of components into one ``AnalysisResult``.
It is a pure function of its inputs: components are never mutated or kept,
sampling is index based, and no state survives between calls.

Example:
    >>> from setanalysis import analyze, Interval
    >>> result = analyze([Interval(0, 1, left_open=False, right_open=True)])
    >>> result.sup, result.max
    (1, None)
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, Optional, Union
import math

from loguru import logger

from .bounds import BoundsEngine
from .completeness import CompletenessAnalyzer
from .components import SetComponent, materialize
from .config import AnalysisConfig, Universe
from .diameter import DiameterEngine, DistanceFn, euclidean_distance
from .domain import BoundingDomain
from .formula import FormulaEvaluator
from .rational import is_exactly_representable, to_fraction
from .result import AnalysisResult, ExcludedComponent


@dataclass(frozen=True)
class AnalysisOptions:
    """
    Attributes:
        universe: Universe.REAL or Universe.RATIONAL (or "R"/"Q")
        bounding_domain: Optional closed box the set is restricted to
    """
    universe: Union[Universe, str] = Universe.REAL
    bounding_domain: Optional[BoundingDomain] = None

    def __post_init__(self):
        object.__setattr__(self, "universe", Universe(self.universe))


class SetAnalyzer:
    """
    Composes the bounds, diameter and completeness engines.

    An analyzer holds configuration only, so one instance can serve any
    number of concurrent calls.
    """

    def __init__(
        self,
        config: Optional[AnalysisConfig] = None,
        evaluator: Optional[FormulaEvaluator] = None,
        distance: DistanceFn = euclidean_distance,
    ):
        self.config = config or AnalysisConfig()
        self.evaluator = evaluator or FormulaEvaluator()
        self.bounds_engine = BoundsEngine(self.evaluator, self.config)
        self.diameter_engine = DiameterEngine(self.config, distance)
        self.completeness = CompletenessAnalyzer(self.config)

    def analyze(
        self,
        components: Iterable[SetComponent],
        options: Optional[AnalysisOptions] = None,
    ) -> AnalysisResult:
        """
        Analyze the union of the given components.

        Args:
            components: Validated set components, in order
            options: Universe and bounding domain (defaults: R, no domain)

        Returns:
            A fresh AnalysisResult. Components whose formulas fail are
            listed in ``excluded`` instead of aborting the analysis.
        """
        options = options or AnalysisOptions()
        domain = options.bounding_domain
        materialized = tuple(
            materialize(c, self.evaluator, self.config, domain) for c in components
        )
        excluded = tuple(
            ExcludedComponent(i, mc.reason)
            for i, mc in enumerate(materialized)
            if mc.excluded
        )
        for ex in excluded:
            logger.debug("component {} excluded ({})", ex.index, ex.reason)

        engine = self.bounds_engine
        bounds = engine.union(engine.component_bounds(mc, domain) for mc in materialized)
        if bounds.empty:
            return AnalysisResult(
                sup=None, inf=None, max=None, min=None,
                bounded_above=True, bounded_below=True, is_empty=True,
                excluded=excluded,
            )

        unbounded = bounds.unbounded_above or bounds.unbounded_below
        diameter = self.diameter_engine.compute(materialized, unbounded)
        report = self.completeness.analyze(materialized, bounds, options.universe, domain)

        theoretical_sup = math.inf if bounds.unbounded_above else bounds.sup
        inf = -math.inf if bounds.unbounded_below else bounds.inf
        sup = None if report.completeness_gap else theoretical_sup

        has_max = sup is not None and math.isfinite(sup) and bounds.sup_attained
        has_min = inf is not None and math.isfinite(inf) and bounds.inf_attained

        epsilon_band = None
        if sup is not None and math.isfinite(sup):
            epsilon_band = (sup - self.config.epsilon, sup)

        sup_as_fraction = None
        max_denom = self.config.fraction_max_denominator
        if (options.universe == Universe.RATIONAL and sup is not None and math.isfinite(sup)
                and is_exactly_representable(sup, max_denom)):
            sup_as_fraction = to_fraction(sup, max_denom)

        return AnalysisResult(
            sup=sup,
            inf=inf,
            max=sup if has_max else None,
            min=inf if has_min else None,
            bounded_above=not bounds.unbounded_above,
            bounded_below=not bounds.unbounded_below,
            is_empty=False,
            diameter=diameter.value,
            diameter_witness=diameter.witness,
            diameter_algorithm=diameter.algorithm,
            is_cauchy=report.is_cauchy,
            converges_to=report.converges_to,
            is_complete_in_space=report.is_complete_in_space,
            is_compact=report.is_compact,
            completeness_gap=report.completeness_gap,
            gap_constant=report.gap_constant,
            theoretical_sup=theoretical_sup,
            epsilon_band=epsilon_band,
            sup_as_fraction=sup_as_fraction,
            excluded=excluded,
        )


# Global analyzer instance for convenience functions
_global_analyzer: Optional[SetAnalyzer] = None


def _get_analyzer() -> SetAnalyzer:
    """Get or create global analyzer instance."""
    global _global_analyzer
    if _global_analyzer is None:
        _global_analyzer = SetAnalyzer()
    return _global_analyzer


def analyze(
    components: Iterable[SetComponent],
    options: Optional[AnalysisOptions] = None,
    config: Optional[AnalysisConfig] = None,
) -> AnalysisResult:
    """Analyze a union of components with the default or a given configuration."""
    if config is not None:
        return SetAnalyzer(config).analyze(components, options)
    return _get_analyzer().analyze(components, options)
