"""Tests for enemy spawn counts and placement."""

from itertools import combinations

import numpy as np
import pytest

from py_wavegrow.core.alea_prng import AleaPRNG
from py_wavegrow.core.placement import InvalidRuleReference, TerrainMap, Variant
from py_wavegrow.core.spawning import (
    EnemyRule,
    EnemySpawnOptions,
    EnemySpawnPlanner,
    common_spawn_count,
    terrain_spawn_count,
)


def region(size):
    return {(x, y) for x in range(size) for y in range(size)}


class TestSpawnCounts:
    """Test the wave-index formulas."""

    def test_common_count(self):
        assert common_spawn_count(1) == 3
        assert common_spawn_count(4) == 6

    def test_terrain_count(self):
        assert terrain_spawn_count(5) == 2
        assert terrain_spawn_count(1) == 1
        assert terrain_spawn_count(3) == 2


class TestEnemySpawnPlanner:
    """Test enemy placement."""

    def setup_method(self):
        self.options = EnemySpawnOptions(
            min_separation=1.5,
            min_spawn_distance_from_player=5.0,
            common_variants=[Variant(name="slime", weight=1)],
        )
        self.terrain = TerrainMap(default="grass")
        self.terrain.paint({(x, y) for x in range(20, 30) for y in range(30)}, "swamp")
        self.rules = [EnemyRule(terrain="swamp", variants=[Variant(name="frog")])]

    def test_counts_for_wave(self):
        planner = EnemySpawnPlanner(self.options, rules=self.rules)
        report = planner.spawn(region(30), 1, AleaPRNG("wave1"), terrain_of=self.terrain)
        assert len(report) == common_spawn_count(1) + terrain_spawn_count(1)
        assert all(r.kind == "enemy" for r in report)

    def test_terrain_enemies_on_matching_terrain(self):
        planner = EnemySpawnPlanner(self.options, rules=self.rules)
        report = planner.spawn(region(30), 6, AleaPRNG("terrain"), terrain_of=self.terrain)
        frogs = [r for r in report if r.variant == "frog"]
        assert len(frogs) == terrain_spawn_count(6)
        assert all(r.terrain == "swamp" for r in frogs)

    def test_player_exclusion(self):
        planner = EnemySpawnPlanner(self.options)
        player = (10.0, 10.0)
        report = planner.spawn(region(20), 8, AleaPRNG("player"), player_position=player)
        assert len(report) == common_spawn_count(8)
        for result in report:
            distance = np.hypot(result.position[0] - player[0], result.position[1] - player[1])
            assert distance >= 5.0

    def test_enemy_separation(self):
        planner = EnemySpawnPlanner(self.options, rules=self.rules)
        report = planner.spawn(region(30), 12, AleaPRNG("sep"), terrain_of=self.terrain)
        for a, b in combinations(report.results, 2):
            assert np.hypot(a.position[0] - b.position[0], a.position[1] - b.position[1]) >= 1.5

    def test_no_eligible_cells(self):
        planner = EnemySpawnPlanner(self.options)
        report = planner.spawn(region(3), 2, AleaPRNG("tiny"), player_position=(1.5, 1.5))
        assert len(report) == 0
        assert report.groups[0].shortfall == common_spawn_count(2)

    def test_invalid_rules(self):
        with pytest.raises(InvalidRuleReference):
            EnemySpawnPlanner(rules=[EnemyRule(terrain="", variants=[Variant(name="x")])])
        with pytest.raises(InvalidRuleReference):
            EnemySpawnPlanner(rules=[EnemyRule(terrain="swamp", variants=[])])

    def test_options_from_settings(self):
        options = EnemySpawnOptions.from_settings(min_separation=3.0)
        assert options.min_separation == 3.0
        assert options.min_spawn_distance_from_player == 4.0
