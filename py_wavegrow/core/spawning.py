"""
Enemy placement for combat waves.

Two independent sampling passes share one enemy exclusion pool:
- common enemies anywhere in the filled region, ``2 + wave_index`` of them
- terrain enemies per configured rule, ``wave_index // 3 + 1`` per rule

Both passes skip cells too close to the player and reuse the prop
planner's rejection sampling.
"""

from typing import Callable, Iterable, List, Optional, Tuple

import numpy as np
import structlog
from pydantic import BaseModel, Field

from .alea_prng import AleaPRNG
from .placement import (
    GroupStats,
    InvalidRuleReference,
    PlacementReport,
    PlacementRule,
    TerrainMap,
    Variant,
    rejection_sample,
)
from .spatial import GridLayout, PlacementPool, SpatialQueryPort

logger = structlog.get_logger()

Cell = Tuple[int, int]
Position = Tuple[float, float]


def common_spawn_count(wave_index: int) -> int:
    """Enemies spawned anywhere in the region."""
    return 2 + wave_index


def terrain_spawn_count(wave_index: int) -> int:
    """Enemies spawned per terrain rule."""
    return wave_index // 3 + 1


class EnemyRule(BaseModel):
    """Enemies restricted to one terrain type."""

    terrain: str = Field(description="Terrain identity the enemies spawn on")
    variants: List[Variant] = Field(description="Weighted enemy types")


class EnemySpawnOptions(BaseModel):
    """Enemy spawning parameters."""

    min_separation: float = Field(default=1.5, ge=0.0, description="Spacing between enemies")
    min_spawn_distance_from_player: float = Field(
        default=4.0, ge=0.0, description="Exclusion radius around the player"
    )
    max_tries_per_unit: int = Field(default=10, ge=1, description="Attempts per enemy")
    common_variants: List[Variant] = Field(
        default_factory=lambda: [Variant(name="enemy")],
        description="Enemy types for the common pass",
    )

    @classmethod
    def from_settings(cls, **overrides) -> "EnemySpawnOptions":
        from ..config import settings

        values = dict(
            min_separation=settings.min_separation,
            min_spawn_distance_from_player=settings.min_spawn_distance_from_player,
            max_tries_per_unit=settings.max_tries_per_unit,
        )
        values.update(overrides)
        return cls(**values)


class EnemySpawnPlanner:
    """Chooses enemy spawn positions for a combat wave."""

    def __init__(self, options: Optional[EnemySpawnOptions] = None,
                 layout: Optional[GridLayout] = None,
                 rules: Iterable[EnemyRule] = ()):
        self.options = options or EnemySpawnOptions()
        self.layout = layout or GridLayout()
        self.rules = list(rules)
        for rule in self.rules:
            if not rule.terrain:
                raise InvalidRuleReference("Enemy rule must name a terrain")
            if sum(v.weight for v in rule.variants) <= 0:
                raise InvalidRuleReference(
                    f"Enemy rule for '{rule.terrain}' has no selectable variants"
                )

    def _far_from_player(self, cells: Iterable[Cell],
                         player: Optional[Position]) -> List[Cell]:
        cells = sorted(cells)
        if player is None or not cells:
            return cells
        centres = np.array([self.layout.cell_to_world(c) for c in cells])
        distances = np.hypot(centres[:, 0] - player[0], centres[:, 1] - player[1])
        keep = distances >= self.options.min_spawn_distance_from_player
        return [cell for cell, ok in zip(cells, keep) if ok]

    def _sample(self, label: str, cells: List[Cell], count: int, variants: List[Variant],
                pool: PlacementPool, rng: AleaPRNG, spatial: Optional[SpatialQueryPort],
                terrain_of: Callable[[Cell], str], report: PlacementReport) -> None:
        rule = PlacementRule(density=100.0, variants=variants)
        results, attempts = rejection_sample(
            cells,
            count,
            rule,
            layout=self.layout,
            pool=pool,
            rng=rng,
            min_separation=self.options.min_separation,
            max_tries_per_unit=self.options.max_tries_per_unit,
            spatial=spatial,
            terrain_of=terrain_of,
            kind="enemy",
        )
        stats = GroupStats(
            terrain=label, cells=len(cells), target=count,
            placed=len(results), attempts=attempts,
        )
        report.results.extend(results)
        report.groups.append(stats)
        if stats.shortfall:
            logger.warning(
                "Enemy spawn shortfall", group=label, target=count,
                placed=stats.placed, attempts=attempts,
            )

    def spawn(
        self,
        filled_cells: Iterable[Cell],
        wave_index: int,
        rng: AleaPRNG,
        player_position: Optional[Position] = None,
        spatial: Optional[SpatialQueryPort] = None,
        terrain_of: Optional[Callable[[Cell], str]] = None,
        pool: Optional[PlacementPool] = None,
    ) -> PlacementReport:
        """
        Spawn enemies for one wave.

        Args:
            filled_cells: The whole playable region
            wave_index: Current wave; drives both counts
            rng: Random source
            player_position: World position to keep clear of
            spatial: Port reporting pre-existing occupied space
            terrain_of: Terrain lookup for the per-terrain pass
            pool: Enemy exclusion pool; a fresh one when None

        Returns:
            PlacementReport of enemy placements
        """
        terrain_of = terrain_of or TerrainMap()
        pool = pool if pool is not None else PlacementPool()
        report = PlacementReport()

        eligible = self._far_from_player(filled_cells, player_position)

        self._sample(
            "*", eligible, common_spawn_count(wave_index), self.options.common_variants,
            pool, rng, spatial, terrain_of, report,
        )

        per_terrain = terrain_spawn_count(wave_index)
        for rule in self.rules:
            cells = [c for c in eligible if terrain_of(c) == rule.terrain]
            self._sample(
                rule.terrain, cells, per_terrain, rule.variants,
                pool, rng, spatial, terrain_of, report,
            )

        logger.info(
            "Enemies spawned", wave=wave_index, spawned=len(report),
            eligible=len(eligible),
        )
        return report
