# SetAnalysis - Bounding Domain
# Copyright (c) 2024 SetAnalysis Contributors. All rights reserved.

"""
Closed axis-aligned boxes that restrict an analysis to a bounded region.

A box may constrain fewer axes than the points it is applied to; the
remaining axes are unrestricted.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Sequence, Union
import math

from .exceptions import DomainError

Point = tuple[float, ...]


@dataclass(frozen=True)
class BoundingDomain:
    """
    A closed box [lo_0, hi_0] x [lo_1, hi_1] x ...

    Attributes:
        bounds: One (lo, hi) pair per constrained axis
    """
    bounds: tuple[tuple[float, float], ...]

    def __post_init__(self):
        if not self.bounds:
            raise DomainError("bounding domain needs at least one axis")
        for i, (lo, hi) in enumerate(self.bounds):
            if math.isnan(lo) or math.isnan(hi):
                raise DomainError(f"axis {i}: bounds must not be NaN")
            if lo > hi:
                raise DomainError(f"axis {i}: lower bound {lo} > upper bound {hi}")

    @classmethod
    def from_pairs(cls, pairs: Sequence[Sequence[float]]) -> BoundingDomain:
        return cls(tuple((float(lo), float(hi)) for lo, hi in pairs))

    @classmethod
    def cube(cls, lo: float, hi: float, dimension: int = 1) -> BoundingDomain:
        """The cube [lo, hi]^dimension."""
        return cls(tuple((float(lo), float(hi)) for _ in range(dimension)))

    @property
    def dimension(self) -> int:
        return len(self.bounds)

    def axis(self, i: int) -> tuple[float, float]:
        """Bounds of axis i; unconstrained axes are (-inf, inf)."""
        if i < len(self.bounds):
            return self.bounds[i]
        return (-math.inf, math.inf)

    def contains(self, point: Union[Point, float], tol: float = 0.0) -> bool:
        if isinstance(point, (int, float)):
            point = (float(point),)
        for i, x in enumerate(point):
            lo, hi = self.axis(i)
            if x < lo - tol or x > hi + tol:
                return False
        return True

    def clip_interval(
        self,
        start: float,
        end: float,
        left_open: bool,
        right_open: bool,
    ) -> Optional[tuple[float, float, bool, bool]]:
        """
        Intersect a one-dimensional interval with axis 0 of the box.

        The box is closed, so a side cut by the box becomes closed.

        Returns:
            (start, end, left_open, right_open), or None if the
            intersection is empty.
        """
        lo, hi = self.axis(0)
        if start < lo:
            start, left_open = lo, False
        if end > hi:
            end, right_open = hi, False
        if start > end:
            return None
        if start == end and (left_open or right_open):
            return None
        return (start, end, left_open, right_open)
