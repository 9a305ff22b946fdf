"""
Tests for prop placement.

Tests cover:
- Weighted variant selection
- Target counts from density
- The minimum separation invariant
- Occupancy rejection and shortfall reporting
- Jitter, scale and flip transforms
"""

from collections import Counter
from itertools import combinations
from unittest.mock import Mock

import numpy as np
import pytest

from py_wavegrow.core.alea_prng import AleaPRNG
from py_wavegrow.core.placement import (
    InvalidRuleReference,
    PlacementOptions,
    PlacementPlanner,
    PlacementResult,
    PlacementRule,
    RuleTable,
    TerrainMap,
    Variant,
    pick_variant,
    target_count,
)
from py_wavegrow.core.spatial import GridLayout, PlacementPool, SpatialIndex


def square_cells(size):
    return {(x, y) for x in range(size) for y in range(size)}


def min_pairwise_distance(results):
    points = [r.position for r in results]
    if len(points) < 2:
        return float("inf")
    return min(np.hypot(a[0] - b[0], a[1] - b[1]) for a, b in combinations(points, 2))


class TestPickVariant:
    """Test weighted selection."""

    def test_weighted_ratio_converges(self):
        variants = [Variant(name="a", weight=1), Variant(name="b", weight=3)]
        prng = AleaPRNG("weights")
        counts = Counter(pick_variant(variants, prng).name for _ in range(20000))
        assert counts["b"] / 20000 == pytest.approx(0.75, abs=0.02)
        assert counts["a"] / 20000 == pytest.approx(0.25, abs=0.02)

    def test_zero_weight_never_chosen(self):
        variants = [Variant(name="never", weight=0), Variant(name="always", weight=2)]
        prng = AleaPRNG("zero")
        assert {pick_variant(variants, prng).name for _ in range(200)} == {"always"}

    def test_unselectable_variants(self):
        with pytest.raises(InvalidRuleReference):
            pick_variant([], AleaPRNG("x"))
        with pytest.raises(InvalidRuleReference):
            pick_variant([Variant(name="a", weight=0)], AleaPRNG("x"))

    def test_negative_weight_rejected(self):
        with pytest.raises(ValueError):
            Variant(name="bad", weight=-1)


class TestTargetCount:
    """Test density to count conversion."""

    def test_basic(self):
        assert target_count(10, 100) == 10

    def test_clamped(self):
        assert target_count(150, 10) == 10
        assert target_count(-5, 10) == 0

    def test_rounds_half_up(self):
        assert target_count(25, 10) == 3
        assert target_count(24, 10) == 2


class TestPlacementPlanner:
    """Test rejection-sampled placement."""

    def setup_method(self):
        self.options = PlacementOptions(min_separation=1.5, max_tries_per_unit=10)
        self.planner = PlacementPlanner(self.options)
        self.rule = PlacementRule(
            density=30,
            variants=[Variant(name="rock", weight=1), Variant(name="bush", weight=2)],
            jitter=(0.4, 0.4),
            scale_range=(0.5, 1.5),
            flip=True,
        )
        self.table = RuleTable(default=self.rule)

    def test_separation_invariant(self):
        report = self.planner.place(square_cells(20), self.table, None, AleaPRNG("sep"))
        assert len(report) > 0
        assert min_pairwise_distance(report.results) >= 1.5

    def test_target_respected(self):
        report = self.planner.place(square_cells(20), self.table, None, AleaPRNG("t"))
        group = report.groups[0]
        assert group.target == 120
        assert group.placed == len(report)
        assert group.placed <= group.target
        assert group.attempts <= group.target * 10

    def test_deterministic_with_seed(self):
        a = self.planner.place(square_cells(10), self.table, None, AleaPRNG("same"))
        b = self.planner.place(square_cells(10), self.table, None, AleaPRNG("same"))
        assert a.results == b.results

    def test_transforms_within_rule_bounds(self):
        report = self.planner.place(square_cells(15), self.table, None, AleaPRNG("tf"))
        layout = GridLayout()
        for result in report:
            cx, cy = layout.cell_to_world(result.cell)
            assert abs(result.position[0] - cx) <= 0.4 + 1e-9
            assert abs(result.position[1] - cy) <= 0.4 + 1e-9
            assert result.offset == pytest.approx((result.position[0] - cx, result.position[1] - cy))
            assert 0.5 <= result.scale <= 1.5
            assert result.variant in {"rock", "bush"}
            assert result.kind == "prop"

    def test_rule_per_terrain(self):
        terrain = TerrainMap(default="grass")
        terrain.paint({(x, y) for x in range(10, 20) for y in range(10)}, "dirt")
        table = RuleTable(
            rules={
                "grass": PlacementRule(density=20, variants=[Variant(name="flower")]),
                "dirt": PlacementRule(density=20, variants=[Variant(name="stone")]),
            }
        )
        cells = {(x, y) for x in range(20) for y in range(10)}
        report = self.planner.place(cells, table, None, AleaPRNG("terrain"), terrain_of=terrain)

        assert {g.terrain for g in report.groups} == {"dirt", "grass"}
        for result in report:
            expected = "stone" if result.terrain == "dirt" else "flower"
            assert result.variant == expected
            assert terrain(result.cell) == result.terrain

    def test_missing_rule_without_default_skips_group(self):
        table = RuleTable(rules={"grass": self.rule})
        report = self.planner.place(square_cells(5), table, None, AleaPRNG("skip"))
        assert len(report) == 0
        assert report.groups == []

    def test_zero_density_places_nothing(self):
        table = RuleTable(default=PlacementRule(density=0, variants=[Variant(name="x")]))
        report = self.planner.place(square_cells(10), table, None, AleaPRNG("z"))
        assert len(report) == 0

    def test_rule_without_variants_fails(self):
        table = RuleTable(default=PlacementRule(density=50, variants=[]))
        with pytest.raises(InvalidRuleReference):
            self.planner.place(square_cells(4), table, None, AleaPRNG("bad"))

    def test_fully_occupied_region_yields_shortfall(self):
        port = Mock()
        port.is_occupied.return_value = True
        report = self.planner.place(square_cells(10), self.table, port, AleaPRNG("full"))

        assert len(report) == 0
        group = report.groups[0]
        assert group.shortfall == group.target == 30
        assert group.attempts == 30 * 10
        assert report.shortfalls == [group]

    def test_respects_pre_existing_occupancy(self):
        spatial = SpatialIndex()
        spatial.mark_occupied((5.0, 5.0), radius=2.0)
        report = self.planner.place(square_cells(10), self.table, spatial, AleaPRNG("occ"))
        assert len(report) > 0
        for result in report:
            gap = np.hypot(result.position[0] - 5.0, result.position[1] - 5.0)
            assert gap >= 2.0 + 1.5

    def test_shared_pool_keeps_separation_across_calls(self):
        pool = PlacementPool()
        prng = AleaPRNG("pool")
        first = self.planner.place(square_cells(12), self.table, None, prng, pool=pool)
        second = self.planner.place(square_cells(12), self.table, None, prng, pool=pool)
        assert len(pool) == len(first) + len(second)
        assert min_pairwise_distance(first.results + second.results) >= 1.5

    def test_result_model(self):
        result = PlacementResult(variant="rock", position=(1.0, 2.0), cell=(1, 2))
        assert result.terrain == "ground"
        assert result.scale == 1.0
        assert not result.flipped


class TestPlacementPool:
    """Test the exclusion pool across index rebuilds."""

    def test_empty_pool(self):
        pool = PlacementPool()
        assert pool.nearest_distance((0.0, 0.0)) == float("inf")
        assert not pool.conflicts((0.0, 0.0), 1.5)

    def test_nearest_spans_tree_and_tail(self):
        pool = PlacementPool(rebuild_threshold=3)
        for x in range(7):
            pool.add((float(x) * 10.0, 0.0))

        assert len(pool) == 7
        # First six are indexed, the last one is still in the tail
        assert pool.nearest_distance((1.0, 0.0)) == pytest.approx(1.0)
        assert pool.nearest_distance((61.0, 0.0)) == pytest.approx(1.0)
        assert pool.conflicts((59.0, 0.0), 1.5)
        assert not pool.conflicts((5.0, 0.0), 1.5)

    def test_matches_brute_force(self):
        prng = AleaPRNG("pool-brute")
        pool = PlacementPool(rebuild_threshold=5)
        points = []
        for _ in range(40):
            point = (prng.uniform(0, 20), prng.uniform(0, 20))
            pool.add(point)
            points.append(point)

        for _ in range(25):
            query = (prng.uniform(0, 20), prng.uniform(0, 20))
            expected = min(np.hypot(px - query[0], py - query[1]) for px, py in points)
            assert pool.nearest_distance(query) == pytest.approx(expected)
