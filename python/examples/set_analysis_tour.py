"""
Set Analysis Tour
=================

This example walks through the classic textbook sets of a first analysis
course and prints what the engine finds for each:

1. Supremum versus maximum on half-open intervals and sequences
2. Diameters of point clouds and sampled curves
3. Completeness and compactness, including the gap of sqrt(2) in Q
4. A JSON-style request parsed at the boundary

Run: python examples/set_analysis_tour.py
"""

import math

import numpy as np
import setanalysis as sa


def show(label, result):
    print(f"\n{label}")
    print(result.summary())


def main():
    print("=" * 60)
    print("SetAnalysis Tour")
    print("=" * 60)

    # ===== Example 1: Supremum vs maximum =====
    print("\n[1] Supremum vs Maximum")
    print("-" * 40)

    show("[0, 1)", sa.analyze([sa.Interval(0, 1, left_open=False, right_open=True)]))
    show("{1/n : n >= 1}", sa.analyze([sa.Sequence(formula_id="1/n")]))
    show("[0, 1) ∪ {1/n}", sa.analyze([
        sa.Interval(0, 1, left_open=False, right_open=True),
        sa.Sequence(formula_id="1/n"),
    ]))

    result = sa.analyze([sa.Sequence(formula_id="n/(n+1)")])
    low, high = result.epsilon_band
    print(f"\n  Every ε-band ({low:.2f}, {high:.2f}) below sup n/(n+1) holds a term")

    # ===== Example 2: Diameters =====
    print("\n[2] Diameters")
    print("-" * 40)

    rng = np.random.default_rng(0)
    cloud = sa.Finite(tuple(map(tuple, rng.uniform(-1, 1, size=(500, 2)))))
    result = sa.analyze([cloud])
    print(f"  500 random points: diameter ≈ {result.diameter:.4f} "
          f"[{result.diameter_algorithm.value}]")

    circle = sa.CurveSurface(
        sa.CurveKind.PARAMETRIC, ("cos(t)", "sin(t)"),
        domain=(0, 2 * math.pi), sample_count=400,
    )
    result = sa.analyze([circle])
    print(f"  Unit circle: diameter ≈ {result.diameter:.4f} "
          f"[{result.diameter_algorithm.value}]")

    # ===== Example 3: Completeness =====
    print("\n[3] Completeness and Compactness")
    print("-" * 40)

    for label, components in [
        ("(0, 1)", [sa.Interval(0, 1, True, True)]),
        ("(0, 1) ∪ {0, 1}", [sa.Interval(0, 1, True, True), sa.Finite((0, 1))]),
        ("{1/n} ∪ {0}", [sa.Sequence(formula_id="1/n"), sa.Finite((0,))]),
        ("[0, ∞)", [sa.Interval(0, math.inf)]),
    ]:
        r = sa.analyze(components)
        print(f"  {label:<18} complete={r.is_complete_in_space!s:<5} compact={r.is_compact}")

    below_sqrt2 = [sa.Interval(-math.inf, math.sqrt(2), True, True)]
    in_r = sa.analyze(below_sqrt2)
    in_q = sa.analyze(below_sqrt2, sa.AnalysisOptions(universe="Q"))
    print(f"\n  (-∞, √2) in R: sup = {in_r.sup:.8f}")
    print(f"  (-∞, √2) in Q: sup = {in_q.sup} (theoretical {in_q.gap_constant} "
          f"≈ {in_q.theoretical_sup:.8f})")

    # ===== Example 4: Boundary parsing =====
    print("\n[4] Request Parsing")
    print("-" * 40)

    request = {
        "components": [
            {"type": "sequence", "customFormula": "sqrt(n)"},
            {"type": "interval", "start": -1, "end": 0},
        ],
        "options": {"boundingDomain": [[-1, 5]]},
    }
    components, options = sa.parse_request(request)
    result = sa.analyze(components, options)
    print(f"  sqrt(n) restricted to [-1, 5]: sup = {result.sup}, max = {result.max}")

    try:
        sa.parse_components([{"type": "sequence", "customFormula": "__import__('os')"}])
    except sa.ValidationError as e:
        print(f"  Rejected: {e.errors[0]}")

    print("\n" + "=" * 60)
    print("Sequence and curve results come from sampling.")
    print("Treat them as strong evidence, not as proofs.")
    print("=" * 60)


if __name__ == "__main__":
    main()
