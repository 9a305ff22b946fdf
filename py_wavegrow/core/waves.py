"""
Wave sequencing: grow, build geometry, populate.

The orchestrator owns the wave index. A wave advances the active growth
strategy, places props on the new band (population mode) and/or spawns
enemies over the filled region (combat mode), then increments the index.
Listeners are registered explicitly and called synchronously.
"""

from dataclasses import dataclass, field
from enum import Flag, auto
from typing import Callable, FrozenSet, List, Optional, Sequence, Tuple

import structlog

from .alea_prng import AleaPRNG
from .growth import Cell, GrowthResult, GrowthStrategy, Ring
from .placement import GroupStats, PlacementPlanner, PlacementReport, RuleTable, TerrainMap
from .spatial import PlacementPool, SpatialQueryPort
from .spawning import EnemySpawnPlanner
from .surfaces import RingStyle, Surface

logger = structlog.get_logger()

Position = Tuple[float, float]


class WaveMode(Flag):
    """What a wave populates after growing."""

    GROW = 0
    POPULATE = auto()
    COMBAT = auto()


@dataclass
class WaveReport:
    """Everything one wave produced."""

    wave_index: int
    mode: WaveMode
    band: FrozenSet[Cell] = frozenset()
    exhausted: bool = False
    ring: Optional[Ring] = None
    surfaces: List[Surface] = field(default_factory=list)
    ring_style: Optional[RingStyle] = None
    ring_tile: Optional[str] = None
    props: PlacementReport = field(default_factory=PlacementReport)
    enemies: PlacementReport = field(default_factory=PlacementReport)

    @property
    def shortfalls(self) -> List[GroupStats]:
        return self.props.shortfalls + self.enemies.shortfalls


class WaveListener:
    """Callbacks fired by the orchestrator; override what you need."""

    def on_wave_started(self, wave_index: int, mode: WaveMode) -> None:
        pass

    def on_wave_completed(self, report: WaveReport) -> None:
        pass

    def on_growth_exhausted(self, report: WaveReport) -> None:
        pass

    def on_placement_shortfall(self, wave_index: int, stats: GroupStats) -> None:
        pass


class WaveOrchestrator:
    """Runs waves against one growth strategy. Not reentrant, not thread-safe."""

    def __init__(
        self,
        strategy: GrowthStrategy,
        rng: AleaPRNG,
        rule_table: Optional[RuleTable] = None,
        planner: Optional[PlacementPlanner] = None,
        enemy_planner: Optional[EnemySpawnPlanner] = None,
        spatial: Optional[SpatialQueryPort] = None,
        terrain: Optional[TerrainMap] = None,
        mode: WaveMode = WaveMode.POPULATE,
        palette: Sequence[RingStyle] = (),
        ring_tiles: Sequence[str] = (),
        start_wave_index: int = 1,
    ):
        """
        Args:
            strategy: Grid or polygon growth
            rng: Random source for all placement
            rule_table: Prop rules; props are skipped when None
            planner: Prop planner
            enemy_planner: Enemy planner
            spatial: Occupancy port shared by both planners
            terrain: Terrain per cell; new bands are painted when ``ring_tiles`` is set
            mode: Default mode for ``run_wave``
            palette: Ring colours rotated by wave index
            ring_tiles: Terrain identities rotated by wave index
            start_wave_index: Index of the first wave
        """
        self.strategy = strategy
        self.rng = rng
        self.rule_table = rule_table
        self.planner = planner or PlacementPlanner()
        self.enemy_planner = enemy_planner or EnemySpawnPlanner()
        self.spatial = spatial
        self.terrain = terrain or TerrainMap()
        self.mode = mode
        self.palette = list(palette)
        self.ring_tiles = list(ring_tiles)

        self.prop_pool = PlacementPool()
        self.listeners: List[WaveListener] = []
        self.history: List[WaveReport] = []
        self.started = False
        self._wave_index = start_wave_index
        self._running = False

    @property
    def wave_index(self) -> int:
        return self._wave_index

    def add_listener(self, listener: WaveListener) -> None:
        self.listeners.append(listener)

    def remove_listener(self, listener: WaveListener) -> None:
        self.listeners.remove(listener)

    def _rotate(self, items: list):
        if not items:
            return None
        return items[(self._wave_index - 1) % len(items)]

    def _populate(self, report: WaveReport, band, player_position) -> None:
        if WaveMode.POPULATE in report.mode and self.rule_table is not None:
            report.props = self.planner.place(
                band, self.rule_table, self.spatial, self.rng,
                terrain_of=self.terrain, pool=self.prop_pool,
            )
        if WaveMode.COMBAT in report.mode:
            report.enemies = self.enemy_planner.spawn(
                self.strategy.filled_cells,
                report.wave_index,
                self.rng,
                player_position=player_position,
                spatial=self.spatial,
                terrain_of=self.terrain,
                pool=PlacementPool(),
            )

    def start(self, populate: bool = True) -> WaveReport:
        """
        Seed the playable area and optionally decorate it.

        The wave index is not changed.
        """
        growth = self.strategy.start()
        self.started = True

        mode = WaveMode.POPULATE if populate else WaveMode.GROW
        report = WaveReport(
            wave_index=self._wave_index,
            mode=mode,
            band=growth.band,
            surfaces=growth.surfaces,
        )
        self._populate(report, growth.band, None)
        logger.info("Base area ready", cells=len(growth.band), props=len(report.props))
        return report

    def run_wave(self, mode: Optional[WaveMode] = None,
                 player_position: Optional[Position] = None) -> WaveReport:
        """
        Grow by one wave and populate the result.

        Args:
            mode: Overrides the orchestrator's default mode
            player_position: Needed for enemy exclusion in combat mode

        Returns:
            WaveReport; ``exhausted`` is set and nothing is populated when
            growth could not advance

        Raises:
            RuntimeError: if called while a wave is already running
        """
        if self._running:
            raise RuntimeError("run_wave() is not reentrant")
        self._running = True
        try:
            if not self.started:
                self.start(populate=False)
            return self._run_wave(self.mode if mode is None else mode, player_position)
        finally:
            self._running = False

    def _run_wave(self, mode: WaveMode, player_position: Optional[Position]) -> WaveReport:
        index = self._wave_index
        logger.info("Wave started", wave=index, mode=str(mode))
        for listener in self.listeners:
            listener.on_wave_started(index, mode)

        ring_style = self._rotate(self.palette)
        growth: GrowthResult = self.strategy.advance(style=ring_style)
        report = WaveReport(
            wave_index=index,
            mode=mode,
            band=growth.band,
            exhausted=growth.exhausted,
            ring=growth.ring,
            surfaces=growth.surfaces,
        )

        if growth.exhausted:
            logger.warning("Wave skipped, growth exhausted", wave=index)
            for listener in self.listeners:
                listener.on_growth_exhausted(report)
            return report

        report.ring_style = ring_style
        report.ring_tile = self._rotate(self.ring_tiles)
        if report.ring_tile is not None:
            self.terrain.paint(growth.band, report.ring_tile)

        self._populate(report, growth.band, player_position)

        for stats in report.shortfalls:
            for listener in self.listeners:
                listener.on_placement_shortfall(index, stats)

        self.history.append(report)
        self._wave_index += 1

        logger.info(
            "Wave completed",
            wave=index,
            band=len(report.band),
            props=len(report.props),
            enemies=len(report.enemies),
        )
        for listener in self.listeners:
            listener.on_wave_completed(report)
        return report


class WaveTimer:
    """Fires ``run_wave`` every ``interval`` seconds of ticked time."""

    def __init__(
        self,
        orchestrator: WaveOrchestrator,
        interval: float,
        mode: Optional[WaveMode] = None,
        player_position: Optional[Callable[[], Position]] = None,
    ):
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self.orchestrator = orchestrator
        self.interval = interval
        self.mode = mode
        self.player_position = player_position
        self.elapsed = 0.0
        self.paused = False

    @classmethod
    def from_settings(cls, orchestrator: WaveOrchestrator, **kwargs) -> "WaveTimer":
        from ..config import settings

        return cls(orchestrator, settings.wave_interval_seconds, **kwargs)

    @property
    def remaining(self) -> float:
        return max(0.0, self.interval - self.elapsed)

    def reset(self) -> None:
        self.elapsed = 0.0

    def tick(self, dt: float) -> Optional[WaveReport]:
        """
        Advance the timer; runs at most one wave per tick.

        Returns:
            The wave's report when one fired, else None
        """
        if self.paused:
            return None
        self.elapsed += dt
        if self.elapsed < self.interval:
            return None

        self.elapsed -= self.interval
        position = self.player_position() if self.player_position else None
        return self.orchestrator.run_wave(mode=self.mode, player_position=position)
