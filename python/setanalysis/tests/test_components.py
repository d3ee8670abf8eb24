# SetAnalysis - Component Model Tests
# Copyright (c) 2024 SetAnalysis Contributors. All rights reserved.

"""
Tests for set components and point materialization.

Test Categories:
1. Interval - Construction rules, emptiness, membership
2. Finite and Sequence - Construction rules, presets, index caps
3. CurveSurface - Construction rules
4. Materialization - Points contributed by each component kind
5. Bounding Domain - Box restriction of points and intervals
"""

import math

import pytest

from setanalysis.components import (
    PRESET_SEQUENCES,
    CurveKind,
    CurveSurface,
    Finite,
    Interval,
    Sequence,
    lookup_preset,
    materialize,
)
from setanalysis.config import AnalysisConfig
from setanalysis.domain import BoundingDomain
from setanalysis.exceptions import DomainError
from setanalysis.formula import FormulaEvaluator


# =============================================================================
# Test Fixtures
# =============================================================================

@pytest.fixture
def evaluator():
    return FormulaEvaluator()


@pytest.fixture
def config():
    return AnalysisConfig()


# =============================================================================
# 1. Interval Tests
# =============================================================================

class TestInterval:
    """Construction rules and membership for intervals."""

    def test_infinite_ends_are_forced_open(self):
        iv = Interval(-math.inf, math.inf, False, False)
        assert iv.left_open is True
        assert iv.right_open is True

    def test_start_after_end_rejected(self):
        with pytest.raises(DomainError):
            Interval(2, 1)

    def test_nan_rejected(self):
        with pytest.raises(DomainError):
            Interval(math.nan, 1)

    def test_degenerate_closed_is_a_point(self):
        assert not Interval(1, 1).is_empty

    def test_degenerate_half_open_is_empty(self):
        assert Interval(1, 1, left_open=True).is_empty
        assert Interval(1, 1, right_open=True).is_empty

    def test_membership_respects_open_ends(self):
        iv = Interval(0, 1, left_open=True, right_open=False)
        assert not iv.contains(0)
        assert iv.contains(1)
        assert iv.contains(0.5)
        assert not iv.contains(1.5)

    def test_membership_tolerance(self):
        iv = Interval.closed(0, 1)
        assert iv.contains(1 + 1e-12, tol=1e-9)
        assert not Interval.open(0, 1).contains(1 - 1e-12, tol=1e-9)

    def test_str(self):
        assert str(Interval(0, 1, True, False)) == "(0, 1]"

    def test_type_tag(self):
        assert Interval(0, 1).type == "interval"


# =============================================================================
# 2. Finite and Sequence Tests
# =============================================================================

class TestFinite:

    def test_scalars_promoted_to_points(self):
        assert Finite((1, 2.5)).points == ((1.0,), (2.5,))

    def test_tuples_kept(self):
        assert Finite(([1, 2], (3, 4))).points == ((1.0, 2.0), (3.0, 4.0))


class TestSequence:
    """Construction rules and the preset catalogue."""

    def test_needs_exactly_one_formula(self):
        with pytest.raises(DomainError):
            Sequence()
        with pytest.raises(DomainError):
            Sequence(formula_id="1/n", custom_formula="n")

    def test_unknown_preset_rejected(self):
        with pytest.raises(DomainError):
            Sequence(formula_id="n!")

    def test_aliases(self):
        assert lookup_preset("harmonic") is PRESET_SEQUENCES["1/n"]
        assert lookup_preset("alternating") is PRESET_SEQUENCES["(-1)^n"]
        assert lookup_preset("geometric") is PRESET_SEQUENCES["(1/2)^n"]

    def test_catalogue_entries(self):
        harmonic = PRESET_SEQUENCES["1/n"]
        assert (harmonic.sup, harmonic.sup_attained) == (1.0, True)
        assert (harmonic.inf, harmonic.inf_attained) == (0.0, False)
        assert PRESET_SEQUENCES["(-1)^n"].limit is None

    def test_empty_index_range_rejected(self):
        with pytest.raises(DomainError):
            Sequence(custom_formula="n", index_range=(5, 1))

    def test_default_indices(self, config):
        assert Sequence(formula_id="1/n").indices(config) == range(1, 51)

    def test_indices_capped(self, config):
        seq = Sequence(custom_formula="n", index_range=(1, 10000))
        assert len(seq.indices(config)) == config.max_sequence_terms

    def test_expression(self):
        assert Sequence(formula_id="harmonic").expression == "1/n"
        assert Sequence(custom_formula="sqrt(n)").expression == "sqrt(n)"


# =============================================================================
# 3. CurveSurface Tests
# =============================================================================

class TestCurveSurface:

    def test_kind_from_string(self):
        curve = CurveSurface("explicit", ("x^2",))
        assert curve.kind is CurveKind.EXPLICIT

    def test_formula_count_checked(self):
        with pytest.raises(DomainError):
            CurveSurface(CurveKind.PARAMETRIC, ("cos(t)",))
        with pytest.raises(DomainError):
            CurveSurface(CurveKind.EXPLICIT, ("x", "x"))

    def test_domain_checked(self):
        with pytest.raises(DomainError):
            CurveSurface(CurveKind.EXPLICIT, ("x",), domain=(1, 0))
        with pytest.raises(DomainError):
            CurveSurface(CurveKind.EXPLICIT, ("x",), domain=(0, math.inf))

    def test_implicit_dimension_checked(self):
        with pytest.raises(DomainError):
            CurveSurface(CurveKind.IMPLICIT, ("x",), dimension=4)

    def test_default_bounds_axis(self):
        assert CurveSurface(CurveKind.EXPLICIT, ("x",)).bounds_axis == 1
        assert CurveSurface(CurveKind.PARAMETRIC, ("t", "t")).bounds_axis == 0
        assert CurveSurface(CurveKind.PARAMETRIC, ("t", "t"), axis=1).bounds_axis == 1

    @pytest.mark.parametrize("kind,formulas,dimension,point_dimension", [
        (CurveKind.EXPLICIT, ("x",), 2, 2),
        (CurveKind.PARAMETRIC, ("t", "t"), 2, 2),
        (CurveKind.PARAMETRIC, ("t", "t", "t"), 2, 3),
        (CurveKind.IMPLICIT, ("x + y + z",), 3, 3),
    ])
    def test_axis_must_index_a_coordinate(self, kind, formulas, dimension, point_dimension):
        curve = CurveSurface(kind, formulas, dimension=dimension, axis=point_dimension - 1)
        assert curve.point_dimension == point_dimension
        with pytest.raises(DomainError):
            CurveSurface(kind, formulas, dimension=dimension, axis=point_dimension)

    def test_negative_axis_rejected(self):
        with pytest.raises(DomainError):
            CurveSurface(CurveKind.EXPLICIT, ("x",), axis=-1)


# =============================================================================
# 4. Materialization Tests
# =============================================================================

class TestMaterialize:
    """Points contributed by each component kind."""

    def test_interval_contributes_endpoints(self, evaluator, config):
        mc = materialize(Interval(0, 2, True, True), evaluator, config)
        assert mc.points == ((0,), (2,))
        assert not mc.is_manifold

    def test_half_infinite_interval_contributes_finite_end(self, evaluator, config):
        mc = materialize(Interval(0, math.inf), evaluator, config)
        assert mc.points == ((0,),)

    def test_degenerate_interval_contributes_one_point(self, evaluator, config):
        assert materialize(Interval(3, 3), evaluator, config).points == ((3,),)

    def test_empty_interval_contributes_nothing(self, evaluator, config):
        assert materialize(Interval(3, 3, True, False), evaluator, config).points == ()

    def test_finite_verbatim(self, evaluator, config):
        mc = materialize(Finite((3, 1, 2)), evaluator, config)
        assert mc.points == ((3.0,), (1.0,), (2.0,))

    def test_preset_sequence_terms(self, evaluator, config):
        mc = materialize(Sequence(formula_id="1/n"), evaluator, config)
        assert len(mc.points) == 50
        assert mc.points[0] == (1.0,)
        assert mc.points[-1][0] == pytest.approx(1 / 50)

    def test_custom_sequence_skips_failing_indices(self, evaluator, config):
        mc = materialize(Sequence(custom_formula="1/(n-1)", index_range=(1, 10)), evaluator, config)
        assert len(mc.points) == 9
        assert mc.failures == 1
        assert not mc.excluded

    def test_unparsable_sequence_excluded(self, evaluator, config):
        mc = materialize(Sequence(custom_formula="foo(n)"), evaluator, config)
        assert mc.excluded
        assert mc.reason == "parse_error"

    def test_always_failing_sequence_excluded(self, evaluator, config):
        mc = materialize(Sequence(custom_formula="1/(n-n)"), evaluator, config)
        assert mc.excluded
        assert mc.reason == "evaluation_error"
        assert mc.failures == 50

    def test_explicit_curve(self, evaluator, config):
        curve = CurveSurface(CurveKind.EXPLICIT, ("x^2",), domain=(-1, 1), sample_count=21)
        mc = materialize(curve, evaluator, config)
        assert mc.is_manifold
        assert len(mc.points) == 21
        assert mc.points[0] == pytest.approx((-1.0, 1.0))
        assert mc.points[-1] == pytest.approx((1.0, 1.0))

    def test_parametric_circle(self, evaluator, config):
        curve = CurveSurface(
            CurveKind.PARAMETRIC, ("cos(t)", "sin(t)"),
            domain=(0, 2 * math.pi), sample_count=64,
        )
        mc = materialize(curve, evaluator, config)
        assert len(mc.points) == 64
        for x, y in mc.points:
            assert math.hypot(x, y) == pytest.approx(1.0)

    def test_parametric_helix_is_three_dimensional(self, evaluator, config):
        curve = CurveSurface(
            CurveKind.PARAMETRIC, ("cos(t)", "sin(t)", "t"),
            domain=(0, 1), sample_count=5,
        )
        mc = materialize(curve, evaluator, config)
        assert all(len(p) == 3 for p in mc.points)

    def test_curve_sample_cap(self, evaluator):
        config = AnalysisConfig(max_curve_samples=30)
        curve = CurveSurface(CurveKind.EXPLICIT, ("x",), sample_count=1000)
        assert len(materialize(curve, evaluator, config).points) == 30

    def test_explicit_curve_skips_singularity(self, evaluator, config):
        curve = CurveSurface(CurveKind.EXPLICIT, ("1/x",), domain=(-1, 1), sample_count=21)
        mc = materialize(curve, evaluator, config)
        assert mc.failures == 1
        assert len(mc.points) == 20

    def test_implicit_circle(self, evaluator, config):
        curve = CurveSurface(
            CurveKind.IMPLICIT, ("x^2 + y^2 - 1",),
            domain=(-1.5, 1.5), sample_count=61,
        )
        mc = materialize(curve, evaluator, config)
        assert mc.points
        for x, y in mc.points:
            assert abs(x * x + y * y - 1) < config.implicit_threshold

    def test_implicit_sphere(self, evaluator, config):
        curve = CurveSurface(
            CurveKind.IMPLICIT, ("x^2 + y^2 + z^2 - 1",),
            domain=(-1.2, 1.2), sample_count=125, dimension=3,
        )
        mc = materialize(curve, evaluator, config)
        assert mc.points
        assert all(len(p) == 3 for p in mc.points)

    def test_implicit_grid_caps_by_dimension(self, evaluator):
        """The 3D cap applies per axis; 2D grids keep their own cap."""
        config = AnalysisConfig(max_grid_resolution=30, max_grid_resolution_3d=10)
        solid = CurveSurface(
            CurveKind.IMPLICIT, ("x - x",), sample_count=30000, dimension=3,
        )
        plane = CurveSurface(CurveKind.IMPLICIT, ("x - x",), sample_count=30000)
        assert len(materialize(solid, evaluator, config).points) == 10 ** 3
        assert len(materialize(plane, evaluator, config).points) == 30 ** 2

    def test_preset_grid_caps(self):
        assert AnalysisConfig().max_grid_resolution_3d == 60
        assert AnalysisConfig.quick().max_grid_resolution_3d < 60
        assert AnalysisConfig.thorough().max_grid_resolution_3d > 60

    def test_unsafe_curve_excluded(self, evaluator, config):
        curve = CurveSurface(CurveKind.EXPLICIT, ("__import__",))
        mc = materialize(curve, evaluator, config)
        assert mc.excluded
        assert mc.reason == "unsafe_expression"

    def test_unknown_component_type(self, evaluator, config):
        with pytest.raises(TypeError):
            materialize("interval", evaluator, config)


# =============================================================================
# 5. Bounding Domain Tests
# =============================================================================

class TestBoundingDomain:
    """Box restriction of points and intervals."""

    def test_invalid_box(self):
        with pytest.raises(DomainError):
            BoundingDomain(((1.0, 0.0),))
        with pytest.raises(DomainError):
            BoundingDomain(())

    def test_unconstrained_axes(self):
        box = BoundingDomain.cube(0, 1)
        assert box.axis(1) == (-math.inf, math.inf)
        assert box.contains((0.5, 100.0))

    def test_contains_scalar(self):
        assert BoundingDomain.cube(0, 1).contains(1.0)
        assert not BoundingDomain.cube(0, 1).contains(1.1)

    def test_clip_closes_cut_sides(self):
        box = BoundingDomain.cube(-1, 5)
        assert box.clip_interval(0, math.inf, False, True) == (0, 5.0, False, False)
        assert box.clip_interval(-math.inf, 2, True, True) == (-1.0, 2, False, True)

    def test_clip_keeps_inner_open_ends(self):
        box = BoundingDomain.cube(-10, 10)
        assert box.clip_interval(0, 1, True, True) == (0, 1, True, True)

    def test_clip_disjoint(self):
        assert BoundingDomain.cube(5, 6).clip_interval(0, 1, False, False) is None

    def test_clip_touching_open_end_is_empty(self):
        assert BoundingDomain.cube(1, 2).clip_interval(0, 1, False, True) is None

    def test_materialize_filters_points(self, evaluator, config):
        box = BoundingDomain.cube(0, 0.5)
        mc = materialize(Sequence(formula_id="1/n"), evaluator, config, box)
        assert len(mc.points) == 49
        assert max(p[0] for p in mc.points) == 0.5

    def test_materialize_clips_interval(self, evaluator, config):
        box = BoundingDomain.cube(-1, 5)
        mc = materialize(Interval(0, math.inf), evaluator, config, box)
        assert mc.points == ((0,), (5.0,))
