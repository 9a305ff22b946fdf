"""
Tests for wave orchestration.

Tests cover:
- Wave index ownership and increments
- Population and combat modes
- Exhaustion handling
- Listener callbacks and reentrancy
- Palette and ring tile rotation
- The wave timer
"""

from itertools import combinations

import numpy as np
import pytest

from py_wavegrow.config.presets import DEFAULT_RING_PALETTE, get_preset
from py_wavegrow.core.alea_prng import AleaPRNG
from py_wavegrow.core.grid_frontier import GridFrontierEngine
from py_wavegrow.core.placement import PlacementOptions, PlacementPlanner, TerrainMap
from py_wavegrow.core.polygon_growth import PolygonGrowthEngine
from py_wavegrow.core.spatial import SpatialIndex
from py_wavegrow.core.spawning import common_spawn_count
from py_wavegrow.core.waves import WaveListener, WaveMode, WaveOrchestrator, WaveTimer


class RecordingListener(WaveListener):
    def __init__(self):
        self.events = []

    def on_wave_started(self, wave_index, mode):
        self.events.append(("started", wave_index))

    def on_wave_completed(self, report):
        self.events.append(("completed", report.wave_index))

    def on_growth_exhausted(self, report):
        self.events.append(("exhausted", report.wave_index))

    def on_placement_shortfall(self, wave_index, stats):
        self.events.append(("shortfall", wave_index))


def make_grid_orchestrator(mode=WaveMode.POPULATE, bounds=None, **kwargs):
    mask = {(x, y) for x in range(8, 12) for y in range(8, 12)}
    engine = GridFrontierEngine(mask, band_width=2, bounds=bounds)
    return WaveOrchestrator(
        engine,
        AleaPRNG("waves"),
        rule_table=get_preset("meadow"),
        mode=mode,
        **kwargs,
    )


class TestWaveOrchestrator:
    """Test wave sequencing."""

    def test_wave_index_increments(self):
        orchestrator = make_grid_orchestrator()
        orchestrator.start()
        assert orchestrator.wave_index == 1

        report = orchestrator.run_wave()
        assert report.wave_index == 1
        assert orchestrator.wave_index == 2
        assert len(report.band) > 0
        assert orchestrator.history == [report]

    def test_run_wave_starts_lazily(self):
        orchestrator = make_grid_orchestrator()
        report = orchestrator.run_wave()
        assert orchestrator.started
        assert not report.exhausted

    def test_population_places_props_on_band(self):
        orchestrator = make_grid_orchestrator()
        orchestrator.start(populate=False)
        report = orchestrator.run_wave()
        assert len(report.props) > 0
        assert all(p.cell in report.band for p in report.props)
        assert len(report.enemies) == 0

    def test_props_separated_across_waves(self):
        orchestrator = make_grid_orchestrator(
            planner=PlacementPlanner(PlacementOptions(min_separation=1.5))
        )
        orchestrator.start()
        props = []
        for _ in range(3):
            props.extend(orchestrator.run_wave().props.results)
        for a, b in combinations(props, 2):
            assert np.hypot(a.position[0] - b.position[0], a.position[1] - b.position[1]) >= 1.5

    def test_combat_mode_spawns_enemies(self):
        orchestrator = make_grid_orchestrator(mode=WaveMode.COMBAT)
        orchestrator.start()
        orchestrator.run_wave()
        report = orchestrator.run_wave(player_position=(10.0, 10.0))
        assert report.wave_index == 2
        assert len(report.enemies) == common_spawn_count(2)
        assert len(report.props) == 0

    def test_combined_mode(self):
        orchestrator = make_grid_orchestrator(mode=WaveMode.POPULATE | WaveMode.COMBAT)
        orchestrator.start()
        report = orchestrator.run_wave()
        assert len(report.props) > 0
        assert len(report.enemies) > 0

    def test_grow_only_mode(self):
        orchestrator = make_grid_orchestrator(mode=WaveMode.GROW)
        orchestrator.start()
        report = orchestrator.run_wave()
        assert len(report.band) > 0
        assert len(report.props) == 0
        assert len(report.enemies) == 0

    def test_exhausted_wave_keeps_index(self):
        listener = RecordingListener()
        orchestrator = make_grid_orchestrator(bounds=(20, 20))
        orchestrator.add_listener(listener)
        orchestrator.start()

        reports = [orchestrator.run_wave() for _ in range(8)]
        exhausted = [r for r in reports if r.exhausted]
        assert exhausted
        index = orchestrator.wave_index
        again = orchestrator.run_wave()
        assert again.exhausted
        assert len(again.props) == 0
        assert orchestrator.wave_index == index
        assert ("exhausted", index) in listener.events

    def test_listener_order(self):
        listener = RecordingListener()
        orchestrator = make_grid_orchestrator()
        orchestrator.add_listener(listener)
        orchestrator.start()
        orchestrator.run_wave()
        filtered = [e for e in listener.events if e[0] != "shortfall"]
        assert filtered == [("started", 1), ("completed", 1)]

    def test_shortfall_notified(self):
        listener = RecordingListener()
        spatial = SpatialIndex()
        spatial.mark_occupied((10.0, 10.0), radius=1000.0)
        orchestrator = make_grid_orchestrator(spatial=spatial)
        orchestrator.add_listener(listener)
        orchestrator.start()
        report = orchestrator.run_wave()
        assert len(report.props) == 0
        assert ("shortfall", 1) in listener.events

    def test_reentrant_call_rejected(self):
        orchestrator = make_grid_orchestrator()

        class Reentrant(WaveListener):
            def on_wave_started(self, wave_index, mode):
                orchestrator.run_wave()

        listener = Reentrant()
        orchestrator.add_listener(listener)
        with pytest.raises(RuntimeError):
            orchestrator.run_wave()

        orchestrator.remove_listener(listener)
        assert not orchestrator.run_wave().exhausted

    def test_palette_and_tiles_rotate(self):
        terrain = TerrainMap()
        orchestrator = make_grid_orchestrator(
            palette=DEFAULT_RING_PALETTE, ring_tiles=["grass", "dirt"], terrain=terrain
        )
        orchestrator.start()
        reports = [orchestrator.run_wave() for _ in range(4)]

        assert [r.ring_style for r in reports] == [
            DEFAULT_RING_PALETTE[i % len(DEFAULT_RING_PALETTE)] for i in range(4)
        ]
        assert [r.ring_tile for r in reports] == ["grass", "dirt", "grass", "dirt"]
        for report in reports:
            assert all(terrain(cell) == report.ring_tile for cell in report.band)

    def test_ring_surfaces_carry_palette_style(self):
        engine = PolygonGrowthEngine([(0, 0), (6, 0), (6, 6), (0, 6)])
        orchestrator = WaveOrchestrator(
            engine, AleaPRNG("styled"), rule_table=get_preset("sparse"),
            palette=DEFAULT_RING_PALETTE,
        )
        orchestrator.start()
        for i in range(2):
            report = orchestrator.run_wave()
            ring_top = report.surfaces[0]
            assert ring_top.name == f"RingTop_{i + 1}"
            assert report.ring_style == DEFAULT_RING_PALETTE[i]
            assert ring_top.style == report.ring_style

    def test_blocked_frontier_does_not_count_as_wave(self):
        listener = RecordingListener()
        spatial = SpatialIndex()
        engine = GridFrontierEngine({(0, 0)}, spatial=spatial, connectivity=4)
        orchestrator = WaveOrchestrator(engine, AleaPRNG("blocked"), spatial=spatial)
        orchestrator.add_listener(listener)
        orchestrator.start()
        spatial.block([(1, 0), (-1, 0), (0, 1), (0, -1)])

        report = orchestrator.run_wave()
        assert report.exhausted
        assert orchestrator.wave_index == 1
        assert orchestrator.history == []
        assert ("completed", 1) not in listener.events
        assert ("exhausted", 1) in listener.events

    def test_polygon_strategy(self):
        engine = PolygonGrowthEngine([(0, 0), (6, 0), (6, 6), (0, 6)])
        orchestrator = WaveOrchestrator(
            engine, AleaPRNG("poly"), rule_table=get_preset("sparse")
        )
        base = orchestrator.start()
        assert [s.name for s in base.surfaces] == ["FillTop", "BaseSides"]

        report = orchestrator.run_wave()
        assert report.ring is not None
        assert [s.name for s in report.surfaces] == ["RingTop_1", "RingSides_1"]
        assert len(report.band) == 64 - 36

    def test_deterministic_runs(self):
        a = make_grid_orchestrator()
        b = make_grid_orchestrator()
        for _ in range(2):
            ra, rb = a.run_wave(), b.run_wave()
            assert ra.band == rb.band
            assert ra.props.results == rb.props.results


class TestWaveTimer:
    """Test interval-driven waves."""

    def test_fires_after_interval(self):
        orchestrator = make_grid_orchestrator()
        timer = WaveTimer(orchestrator, interval=10.0)
        assert timer.tick(4.0) is None
        assert timer.remaining == pytest.approx(6.0)

        report = timer.tick(6.5)
        assert report is not None
        assert report.wave_index == 1
        assert timer.elapsed == pytest.approx(0.5)

    def test_one_wave_per_tick(self):
        orchestrator = make_grid_orchestrator()
        timer = WaveTimer(orchestrator, interval=1.0)
        timer.tick(5.0)
        assert orchestrator.wave_index == 2

    def test_paused_and_reset(self):
        orchestrator = make_grid_orchestrator()
        timer = WaveTimer(orchestrator, interval=1.0)
        timer.paused = True
        assert timer.tick(10.0) is None
        timer.paused = False
        timer.tick(0.5)
        timer.reset()
        assert timer.elapsed == 0.0

    def test_player_position_and_mode(self):
        orchestrator = make_grid_orchestrator()
        timer = WaveTimer(
            orchestrator, interval=1.0, mode=WaveMode.COMBAT,
            player_position=lambda: (10.0, 10.0),
        )
        report = timer.tick(1.0)
        assert report.mode == WaveMode.COMBAT
        assert len(report.enemies) == common_spawn_count(1)

    def test_invalid_interval(self):
        with pytest.raises(ValueError):
            WaveTimer(make_grid_orchestrator(), interval=0)

    def test_from_settings(self):
        timer = WaveTimer.from_settings(make_grid_orchestrator())
        assert timer.interval == 30.0
