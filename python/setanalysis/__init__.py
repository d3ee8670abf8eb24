# SetAnalysis
# Copyright (c) 2024 SetAnalysis Contributors. All rights reserved.

"""
SetAnalysis: sup, inf, diameter and compactness of unions of sets in ℝⁿ.

Example:
    >>> import setanalysis as sa
    >>> result = sa.analyze([
    ...     sa.Interval(0, 1, left_open=False, right_open=True),
    ...     sa.Sequence(formula_id="1/n"),
    ... ])
    >>> result.sup, result.max, result.diameter
    (1, 1, 1.0)

Logging goes through loguru and is disabled by default; turn it on with
``loguru.logger.enable("setanalysis")``.
"""

from loguru import logger

from .analysis import AnalysisOptions, SetAnalyzer, analyze
from .bounds import Bounds, BoundsEngine, DivergenceReport, detect_divergence, union_bounds
from .completeness import KNOWN_IRRATIONALS, CompletenessAnalyzer, match_irrational
from .components import (
    PRESET_SEQUENCES,
    CurveKind,
    CurveSurface,
    Finite,
    Interval,
    MaterializedComponent,
    Sequence,
    SetComponent,
    materialize,
)
from .config import AnalysisConfig, Universe
from .diameter import (
    DiameterAlgorithm,
    DiameterEngine,
    DiameterResult,
    euclidean_distance,
    exact_diameter,
    multi_start_ascent,
    sampled_refine_diameter,
)
from .domain import BoundingDomain, Point
from .exceptions import (
    DomainError,
    EvaluationError,
    FormulaError,
    ParseError,
    SetAnalysisError,
    UnsafeExpressionError,
    ValidationError,
)
from .formula import EvalOutcome, FormulaEvaluator
from .result import AnalysisResult, ExcludedComponent
from .validation import parse_components, parse_options, parse_request

__version__ = "0.1.0"

logger.disable(__name__)

__all__ = [
    "analyze",
    "AnalysisOptions",
    "AnalysisResult",
    "AnalysisConfig",
    "SetAnalyzer",
    "Universe",
    "ExcludedComponent",
    # Components
    "Interval",
    "Finite",
    "Sequence",
    "CurveSurface",
    "CurveKind",
    "SetComponent",
    "PRESET_SEQUENCES",
    "MaterializedComponent",
    "materialize",
    "BoundingDomain",
    "Point",
    # Engines
    "Bounds",
    "BoundsEngine",
    "DivergenceReport",
    "detect_divergence",
    "union_bounds",
    "DiameterAlgorithm",
    "DiameterEngine",
    "DiameterResult",
    "euclidean_distance",
    "exact_diameter",
    "sampled_refine_diameter",
    "multi_start_ascent",
    "CompletenessAnalyzer",
    "KNOWN_IRRATIONALS",
    "match_irrational",
    "FormulaEvaluator",
    "EvalOutcome",
    # Boundary
    "parse_components",
    "parse_options",
    "parse_request",
    # Errors
    "SetAnalysisError",
    "FormulaError",
    "ParseError",
    "UnsafeExpressionError",
    "EvaluationError",
    "DomainError",
    "ValidationError",
]
