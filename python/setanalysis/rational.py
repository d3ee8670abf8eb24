# SetAnalysis - Rational Helpers
# Copyright (c) 2024 SetAnalysis Contributors. All rights reserved.

"""Rational approximations for reporting results in the rational universe."""

from __future__ import annotations
from fractions import Fraction
import math


def to_fraction(x: float, max_denom: int = 10000) -> Fraction:
    """Convert a finite float to the closest fraction with bounded denominator.

    Args:
        x: Finite float value to convert
        max_denom: Maximum denominator for the rational approximation

    Raises:
        ValueError: If x is infinite or NaN
    """
    if not math.isfinite(x):
        raise ValueError(f"cannot convert {x!r} to a fraction")
    return Fraction(float(x)).limit_denominator(max_denom)


def is_exactly_representable(x: float, max_denom: int = 10000, tol: float = 1e-12) -> bool:
    """True if x equals a fraction with denominator at most max_denom, up to tol."""
    if not math.isfinite(x):
        return False
    return abs(float(to_fraction(x, max_denom)) - x) <= tol
