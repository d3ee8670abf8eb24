# SetAnalysis - Configuration
# Copyright (c) 2024 SetAnalysis Contributors. All rights reserved.

"""
Tunable constants for the analysis engine.

Every heuristic threshold and every input cap lives here, so a caller can
trade accuracy for speed without touching the algorithms.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum


class Universe(Enum):
    """Number system the set is considered in."""
    REAL = "R"
    RATIONAL = "Q"


@dataclass(frozen=True)
class AnalysisConfig:
    """
    Configuration for set analysis.

    Attributes:
        tolerance: Attainment tolerance when matching max/min against sup/inf
        membership_tolerance: Tolerance for limit-point membership tests
        default_sequence_terms: Terms generated when a sequence has no range
        max_sequence_terms: Hard cap on generated sequence terms
        divergence_local_samples: Leading indices sampled by the divergence detector
        divergence_tail_indices: Far indices sampled for the tail trend
        divergence_magnitude: Tail values beyond this magnitude mean divergence
        divergence_min_increment: Minimum final tail increment for slow divergence
        cauchy_min_terms: Terms needed before the Cauchy heuristic applies
        cauchy_threshold: Last-two-terms distance below which a sequence is Cauchy
        implicit_threshold: |F| below this puts a grid point on the level set
        max_curve_samples: Cap on samples along a curve
        max_grid_resolution: Cap on grid points per axis for 2D implicit sets
        max_grid_resolution_3d: Cap on grid points per axis for 3D implicit sets
        exact_diameter_limit: Point counts below this use the all-pairs scan
        diameter_sample_size: Sample size for the sampled-refine algorithm
        manifold_min_points: Manifold clouds above this use multi-start ascent
        ascent_max_starts: Maximum number of ascent starts
        ascent_max_iterations: Iteration cap per ascent start
        ascent_stride_divisor: Ascent scans every (n // divisor)-th point
        irrational_tolerance: Distance to a catalogued irrational that counts as a match
        epsilon: Width of the epsilon-band below the supremum
        fraction_max_denominator: Denominator bound for rational approximations
    """
    tolerance: float = 1e-9
    membership_tolerance: float = 1e-9
    default_sequence_terms: int = 50
    max_sequence_terms: int = 150
    divergence_local_samples: int = 100
    divergence_tail_indices: tuple[int, ...] = (1000, 10000, 100000)
    divergence_magnitude: float = 1e4
    divergence_min_increment: float = 0.1
    cauchy_min_terms: int = 6
    cauchy_threshold: float = 0.05
    implicit_threshold: float = 0.1
    max_curve_samples: int = 2000
    max_grid_resolution: int = 200
    max_grid_resolution_3d: int = 60
    exact_diameter_limit: int = 100
    diameter_sample_size: int = 200
    manifold_min_points: int = 50
    ascent_max_starts: int = 10
    ascent_max_iterations: int = 50
    ascent_stride_divisor: int = 50
    irrational_tolerance: float = 1e-7
    epsilon: float = 0.01
    fraction_max_denominator: int = 10000

    @classmethod
    def quick(cls) -> 'AnalysisConfig':
        """Coarser sampling for interactive use."""
        return cls(
            max_sequence_terms=60,
            max_curve_samples=400,
            max_grid_resolution=80,
            max_grid_resolution_3d=30,
            diameter_sample_size=100,
            ascent_max_iterations=20,
        )

    @classmethod
    def thorough(cls) -> 'AnalysisConfig':
        """Denser sampling for reference results."""
        return cls(
            max_sequence_terms=1000,
            max_curve_samples=10000,
            max_grid_resolution=400,
            max_grid_resolution_3d=100,
            diameter_sample_size=400,
            ascent_max_iterations=100,
        )
