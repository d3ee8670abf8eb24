# SetAnalysis - Bounds Engine Tests
# Copyright (c) 2024 SetAnalysis Contributors. All rights reserved.

"""
Tests for supremum/infimum computation.

Test Categories:
1. Union Fold - combine and union_bounds
2. Intervals and Finite Sets - Exact bounds
3. Preset Sequences - Catalogue bounds and index ranges
4. Custom Sequences - Divergence heuristic, including known misclassifications
5. Curves and Domains - Sampled bounds, box restriction
"""

import itertools
import math

import pytest

from setanalysis.bounds import (
    EMPTY_BOUNDS,
    Bounds,
    BoundsEngine,
    combine,
    detect_divergence,
    union_bounds,
)
from setanalysis.components import (
    CurveKind,
    CurveSurface,
    Finite,
    Interval,
    MaterializedComponent,
    Sequence,
    materialize,
)
from setanalysis.domain import BoundingDomain


# =============================================================================
# Test Fixtures
# =============================================================================

@pytest.fixture
def engine():
    return BoundsEngine()


def bounds_of(engine, component, domain=None):
    """Materialize a component and compute its bounds."""
    mc = materialize(component, engine.evaluator, engine.config, domain)
    return engine.component_bounds(mc, domain)


# =============================================================================
# 1. Union Fold Tests
# =============================================================================

class TestUnionFold:
    """The union of bounds is a fold with combine."""

    def test_empty_fold(self):
        assert union_bounds([]) == EMPTY_BOUNDS
        assert union_bounds([]).empty

    def test_of_no_values_is_empty(self):
        assert Bounds.of_values([]) is EMPTY_BOUNDS

    def test_larger_sup_wins(self):
        a = Bounds(1.0, False, False, 0.0, True, False)
        b = Bounds(2.0, True, False, 0.5, True, False)
        u = combine(a, b)
        assert (u.sup, u.sup_attained) == (2.0, True)
        assert (u.inf, u.inf_attained) == (0.0, True)

    def test_attainment_from_any_side(self):
        """[0, 1) union {1} attains its sup."""
        half_open = Bounds(1.0, False, False, 0.0, True, False)
        point = Bounds.of_values([1.0])
        assert combine(half_open, point).sup_attained
        assert combine(point, half_open).sup_attained

    def test_attainment_within_tolerance(self):
        a = Bounds(1.0, False, False, 0.0, False, False)
        b = Bounds(1.0 + 1e-12, True, False, 0.0, False, False)
        assert combine(a, b, tol=1e-9).sup_attained

    def test_unbounded_is_absorbing(self):
        ray = Bounds(None, False, True, 0.0, True, False)
        u = combine(ray, Bounds.of_values([5.0]))
        assert u.unbounded_above
        assert u.inf == 0.0

    def test_empty_is_identity(self):
        b = Bounds(3.0, True, False, -1.0, False, False)
        assert combine(EMPTY_BOUNDS, b) == b
        assert combine(b, EMPTY_BOUNDS) == b

    def test_order_independent(self):
        parts = [
            Bounds(1.0, False, False, 0.0, True, False),
            Bounds.of_values([1.0, 0.5]),
            Bounds(0.5, True, False, -2.0, False, False),
        ]
        results = {union_bounds(p) for p in itertools.permutations(parts)}
        assert len(results) == 1


# =============================================================================
# 2. Interval and Finite Set Tests
# =============================================================================

class TestIntervalBounds:

    def test_closed(self, engine):
        b = bounds_of(engine, Interval(0, 1))
        assert (b.sup, b.sup_attained, b.inf, b.inf_attained) == (1, True, 0, True)

    def test_half_open(self, engine):
        b = bounds_of(engine, Interval(0, 1, False, True))
        assert (b.sup, b.sup_attained) == (1, False)

    def test_ray(self, engine):
        b = bounds_of(engine, Interval(0, math.inf))
        assert b.unbounded_above
        assert b.sup is None
        assert not b.unbounded_below

    def test_whole_line(self, engine):
        b = bounds_of(engine, Interval(-math.inf, math.inf))
        assert b.unbounded_above and b.unbounded_below

    def test_empty_interval(self, engine):
        assert bounds_of(engine, Interval(2, 2, True, True)) == EMPTY_BOUNDS


class TestFiniteBounds:

    def test_extremes_attained(self, engine):
        b = bounds_of(engine, Finite((3, -1, 2)))
        assert (b.sup, b.sup_attained, b.inf, b.inf_attained) == (3.0, True, -1.0, True)

    def test_uses_first_coordinate(self, engine):
        b = bounds_of(engine, Finite(((1, 9), (2, -9))))
        assert (b.sup, b.inf) == (2.0, 1.0)


# =============================================================================
# 3. Preset Sequence Tests
# =============================================================================

class TestPresetSequenceBounds:
    """Catalogue bounds, and sampled bounds when the catalogue does not apply."""

    @pytest.mark.parametrize("formula_id,expected", [
        ("1/n", (1.0, True, 0.0, False)),
        ("(-1)^n", (1.0, True, -1.0, True)),
        ("(-1)^n/n", (0.5, True, -1.0, True)),
        ("n/(n+1)", (1.0, False, 0.5, True)),
        ("1 - 1/n", (1.0, False, 0.0, True)),
        ("(1/2)^n", (0.5, True, 0.0, False)),
    ])
    def test_catalogue(self, engine, formula_id, expected):
        b = bounds_of(engine, Sequence(formula_id=formula_id))
        assert (b.sup, b.sup_attained, b.inf, b.inf_attained) == expected

    def test_later_start_moves_attained_sup(self, engine):
        b = bounds_of(engine, Sequence(formula_id="1/n", index_range=(3, 50)))
        assert b.sup == pytest.approx(1 / 3)
        assert b.sup_attained
        assert (b.inf, b.inf_attained) == (0.0, False)

    def test_domain_cuts_attained_sup(self, engine):
        box = BoundingDomain.cube(-1, 0.5)
        b = bounds_of(engine, Sequence(formula_id="1/n"), box)
        assert (b.sup, b.sup_attained) == (0.5, True)
        assert (b.inf, b.inf_attained) == (0.0, False)

    def test_domain_excluding_limit(self, engine):
        """A box that excludes the limit leaves the largest kept term as sup."""
        box = BoundingDomain.cube(0, 0.9)
        b = bounds_of(engine, Sequence(formula_id="n/(n+1)"), box)
        assert b.sup == pytest.approx(0.9)
        assert b.sup_attained

    def test_domain_excluding_everything(self, engine):
        box = BoundingDomain.cube(5, 6)
        assert bounds_of(engine, Sequence(formula_id="1/n"), box) == EMPTY_BOUNDS


# =============================================================================
# 4. Custom Sequence Tests
# =============================================================================

class TestCustomSequenceBounds:
    """Sampled bounds with the divergence heuristic."""

    @pytest.mark.parametrize("formula", ["sqrt(n)", "log(n)", "n^2", "n"])
    def test_divergent_above(self, engine, formula):
        b = bounds_of(engine, Sequence(custom_formula=formula))
        assert b.unbounded_above
        assert b.sup is None
        assert not b.unbounded_below

    def test_divergent_below(self, engine):
        b = bounds_of(engine, Sequence(custom_formula="-n"))
        assert b.unbounded_below
        assert (b.sup, b.sup_attained) == (-1.0, True)

    def test_convergent_is_bounded(self, engine):
        b = bounds_of(engine, Sequence(custom_formula="1 - 1/n"))
        assert not b.unbounded_above
        assert b.sup == pytest.approx(0.99999)
        assert (b.inf, b.inf_attained) == (0.0, True)

    def test_exponential_flagged_without_tail(self, engine):
        """exp(n) overflows at every tail index; the leading terms decide."""
        report = detect_divergence("exp(n)", engine.evaluator, engine.config)
        assert report.tail == ()
        assert report.unbounded_above

    def test_oscillating_growth_flags_even_side_only(self, engine):
        """The tail indices are all even, so only growth above is seen."""
        b = bounds_of(engine, Sequence(custom_formula="(-1)^n*n"))
        assert b.unbounded_above
        assert not b.unbounded_below
        assert b.inf == -99.0

    def test_very_slow_divergence_missed(self, engine):
        """log(log(log(n))) grows too slowly for the tail test."""
        b = bounds_of(engine, Sequence(custom_formula="log(log(log(n)))"))
        assert not b.unbounded_above

    def test_large_constant_limit_flagged(self, engine):
        """A bounded sequence beyond the magnitude threshold is reported unbounded."""
        b = bounds_of(engine, Sequence(custom_formula="20000 - 1/n"))
        assert b.unbounded_above

    def test_start_offsets_local_window(self, engine):
        report = detect_divergence("1/n", engine.evaluator, engine.config, start=10)
        assert report.approx_max == pytest.approx(0.1)
        assert not report.unbounded_above

    def test_domain_caps_divergence(self, engine):
        box = BoundingDomain.cube(0, 50)
        b = bounds_of(engine, Sequence(custom_formula="n"), box)
        assert not b.unbounded_above
        assert (b.sup, b.sup_attained) == (50.0, True)
        assert b.inf == 1.0

    def test_excluded_sequence_has_no_bounds(self, engine):
        assert bounds_of(engine, Sequence(custom_formula="nope(n)")) == EMPTY_BOUNDS


# =============================================================================
# 5. Curve Tests
# =============================================================================

class TestCurveBounds:

    def test_explicit_curve_uses_y(self, engine):
        curve = CurveSurface(CurveKind.EXPLICIT, ("x^2",), domain=(-2, 2), sample_count=41)
        b = bounds_of(engine, curve)
        assert b.sup == pytest.approx(4.0)
        assert b.inf == pytest.approx(0.0)
        assert b.sup_attained and b.inf_attained

    def test_parametric_curve_uses_x(self, engine):
        curve = CurveSurface(
            CurveKind.PARAMETRIC, ("cos(t)", "2*sin(t)"),
            domain=(0, 2 * math.pi), sample_count=101,
        )
        b = bounds_of(engine, curve)
        assert b.sup == pytest.approx(1.0)
        assert b.inf == pytest.approx(-1.0, abs=1e-3)

    def test_axis_override(self, engine):
        curve = CurveSurface(
            CurveKind.PARAMETRIC, ("cos(t)", "2*sin(t)"),
            domain=(0, 2 * math.pi), sample_count=101, axis=1,
        )
        assert bounds_of(engine, curve).sup == pytest.approx(2.0, abs=1e-2)

    def test_unknown_component_type(self, engine):
        class Blob:
            pass

        with pytest.raises(TypeError):
            engine.component_bounds(MaterializedComponent(Blob()))
