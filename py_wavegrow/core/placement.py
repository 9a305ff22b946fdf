"""
Prop placement on newly grown cells.

Process per wave:
1. Group new cells by terrain identity
2. Resolve the placement rule for each terrain (or the table default)
3. Derive a target count from the rule density and the group size
4. Shuffle the group and rejection-sample positions under a try budget,
   rejecting positions that are occupied or too close to earlier placements
5. Pick a weighted variant and apply jitter, scale and flip

A shortfall (fewer placements than targeted) is reported, not raised.
"""

import math
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import structlog
from pydantic import BaseModel, ConfigDict, Field

from .alea_prng import AleaPRNG
from .spatial import GridLayout, PlacementPool, SpatialQueryPort

logger = structlog.get_logger()

Cell = Tuple[int, int]
Position = Tuple[float, float]

DEFAULT_TERRAIN = "ground"


class InvalidRuleReference(ValueError):
    """A rule cannot be sampled (no variants or zero total weight)."""


class Variant(BaseModel):
    """A placeable definition with its selection weight."""

    name: str = Field(description="Identifier of the placeable")
    weight: float = Field(default=1.0, ge=0.0, description="Relative selection weight")


class PlacementRule(BaseModel):
    """How one terrain type gets decorated."""

    density: float = Field(default=10.0, description="Items per 100 cells")
    variants: List[Variant] = Field(default_factory=list, description="Weighted variants")
    jitter: Tuple[float, float] = Field(
        default=(0.0, 0.0), description="Max positional offset on x and y (world units)"
    )
    scale_range: Tuple[float, float] = Field(
        default=(1.0, 1.0), description="Uniform scale is drawn from this range"
    )
    flip: bool = Field(default=False, description="Randomly mirror placements")

    @property
    def total_weight(self) -> float:
        return sum(v.weight for v in self.variants)


class RuleTable(BaseModel):
    """Placement rules keyed by terrain identity."""

    rules: Dict[str, PlacementRule] = Field(default_factory=dict)
    default: Optional[PlacementRule] = Field(
        default=None, description="Used for terrains without a rule"
    )

    def resolve(self, terrain: str) -> Optional[PlacementRule]:
        return self.rules.get(terrain, self.default)


class PlacementOptions(BaseModel):
    """Planner-wide placement parameters."""

    min_separation: float = Field(default=1.5, ge=0.0, description="Minimum spacing")
    max_tries_per_unit: int = Field(
        default=10, ge=1, description="Attempts allowed per targeted item"
    )

    @classmethod
    def from_settings(cls) -> "PlacementOptions":
        from ..config import settings

        return cls(
            min_separation=settings.min_separation,
            max_tries_per_unit=settings.max_tries_per_unit,
        )


class PlacementResult(BaseModel):
    """A resolved placement."""

    model_config = ConfigDict(frozen=True)

    variant: str = Field(description="Chosen variant name")
    position: Position = Field(description="World position after jitter")
    cell: Cell = Field(description="Cell the placement was drawn from")
    terrain: str = Field(default=DEFAULT_TERRAIN, description="Terrain of the cell")
    offset: Tuple[float, float] = Field(default=(0.0, 0.0), description="Applied jitter")
    scale: float = Field(default=1.0, description="Applied uniform scale")
    flipped: bool = Field(default=False, description="Mirrored horizontally")
    kind: str = Field(default="prop", description="prop or enemy")


@dataclass
class GroupStats:
    """Target versus actual yield for one sampled group."""

    terrain: str
    cells: int
    target: int
    placed: int
    attempts: int

    @property
    def shortfall(self) -> int:
        return max(0, self.target - self.placed)


@dataclass
class PlacementReport:
    """Placements made by one call, with per-group yield."""

    results: List[PlacementResult] = field(default_factory=list)
    groups: List[GroupStats] = field(default_factory=list)

    def __iter__(self):
        return iter(self.results)

    def __len__(self) -> int:
        return len(self.results)

    @property
    def shortfalls(self) -> List[GroupStats]:
        return [g for g in self.groups if g.shortfall > 0]

    def extend(self, other: "PlacementReport") -> None:
        self.results.extend(other.results)
        self.groups.extend(other.groups)


class TerrainMap:
    """Terrain identity per cell, with a fallback for unlisted cells."""

    def __init__(self, terrain: Optional[Mapping[Cell, str]] = None,
                 default: str = DEFAULT_TERRAIN):
        self.terrain: Dict[Cell, str] = dict(terrain or {})
        self.default = default

    def __call__(self, cell: Cell) -> str:
        return self.terrain.get(cell, self.default)

    def paint(self, cells: Iterable[Cell], terrain: str) -> None:
        for cell in cells:
            self.terrain[cell] = terrain


def pick_variant(variants: Sequence[Variant], rng: AleaPRNG) -> Variant:
    """
    Weighted random selection.

    A uniform draw scaled by the total weight is compared against the
    running cumulative weight.
    """
    total = sum(v.weight for v in variants)
    if not variants or total <= 0:
        raise InvalidRuleReference("Cannot pick from variants with zero total weight")

    draw = rng.random() * total
    cumulative = 0.0
    for variant in variants:
        cumulative += variant.weight
        if draw < cumulative:
            return variant
    # Float rounding can leave draw == total
    return [v for v in variants if v.weight > 0][-1]


def target_count(density: float, group_size: int) -> int:
    """Items to place: density per 100 cells, clamped to [0, 100], rounded half up."""
    density = min(max(density, 0.0), 100.0)
    return int(math.floor(density / 100.0 * group_size + 0.5))


def rejection_sample(
    candidates: Sequence[Cell],
    target: int,
    rule: PlacementRule,
    *,
    layout: GridLayout,
    pool: PlacementPool,
    rng: AleaPRNG,
    min_separation: float,
    max_tries_per_unit: int,
    spatial: Optional[SpatialQueryPort] = None,
    terrain_of: Optional[Callable[[Cell], str]] = None,
    kind: str = "prop",
    accept: Optional[Callable[[Position], bool]] = None,
) -> Tuple[List[PlacementResult], int]:
    """
    Bounded rejection sampling shared by prop and enemy placement.

    Candidates are shuffled and visited cyclically. Each attempt draws a
    fresh jitter, then rejects the position if ``accept`` refuses it, the
    spatial port reports it occupied, or the pool already holds a position
    closer than ``min_separation``.

    Returns:
        Tuple of (results, attempts used)
    """
    results: List[PlacementResult] = []
    if target <= 0 or not candidates:
        return results, 0
    if rule.total_weight <= 0:
        raise InvalidRuleReference(
            f"Rule for {kind} placement has no selectable variants"
        )

    order = list(candidates)
    rng.shuffle(order)

    jitter_x, jitter_y = rule.jitter
    scale_lo, scale_hi = rule.scale_range
    budget = target * max_tries_per_unit

    attempts = 0
    while attempts < budget and len(results) < target:
        cell = order[attempts % len(order)]
        attempts += 1

        cx, cy = layout.cell_to_world(cell)
        dx = rng.uniform(-jitter_x, jitter_x) if jitter_x > 0 else 0.0
        dy = rng.uniform(-jitter_y, jitter_y) if jitter_y > 0 else 0.0
        position = (cx + dx, cy + dy)

        if accept is not None and not accept(position):
            continue
        if spatial is not None and spatial.is_occupied(position, min_separation):
            continue
        if pool.conflicts(position, min_separation):
            continue

        variant = pick_variant(rule.variants, rng)
        scale = rng.uniform(scale_lo, scale_hi) if scale_hi > scale_lo else scale_lo
        flipped = rule.flip and rng.random() < 0.5

        results.append(
            PlacementResult(
                variant=variant.name,
                position=position,
                cell=cell,
                terrain=terrain_of(cell) if terrain_of else DEFAULT_TERRAIN,
                offset=(dx, dy),
                scale=scale,
                flipped=flipped,
                kind=kind,
            )
        )
        pool.add(position)

    return results, attempts


class PlacementPlanner:
    """Scatters props over newly grown cells."""

    def __init__(self, options: Optional[PlacementOptions] = None,
                 layout: Optional[GridLayout] = None):
        self.options = options or PlacementOptions()
        self.layout = layout or GridLayout()

    def group_by_terrain(self, cells: Iterable[Cell],
                         terrain_of: Callable[[Cell], str]) -> Dict[str, List[Cell]]:
        groups: Dict[str, List[Cell]] = {}
        for cell in sorted(cells):
            groups.setdefault(terrain_of(cell), []).append(cell)
        return groups

    def place(
        self,
        new_cells: Iterable[Cell],
        rule_table: RuleTable,
        occupancy: Optional[SpatialQueryPort],
        rng: AleaPRNG,
        terrain_of: Optional[Callable[[Cell], str]] = None,
        pool: Optional[PlacementPool] = None,
    ) -> PlacementReport:
        """
        Place props on ``new_cells``.

        Args:
            new_cells: Cells added by the wave
            rule_table: Rules per terrain
            occupancy: Port reporting pre-existing occupied space
            rng: Random source
            terrain_of: Terrain lookup; every cell is ``"ground"`` when None
            pool: Exclusion pool to check and extend; a fresh one when None

        Returns:
            PlacementReport with results and per-terrain yield
        """
        terrain_of = terrain_of or TerrainMap()
        pool = pool if pool is not None else PlacementPool()
        report = PlacementReport()

        for terrain, cells in sorted(self.group_by_terrain(new_cells, terrain_of).items()):
            rule = rule_table.resolve(terrain)
            if rule is None:
                logger.debug("No placement rule", terrain=terrain, cells=len(cells))
                continue

            target = target_count(rule.density, len(cells))
            if target == 0:
                continue

            results, attempts = rejection_sample(
                cells,
                target,
                rule,
                layout=self.layout,
                pool=pool,
                rng=rng,
                min_separation=self.options.min_separation,
                max_tries_per_unit=self.options.max_tries_per_unit,
                spatial=occupancy,
                terrain_of=terrain_of,
                kind="prop",
            )
            stats = GroupStats(
                terrain=terrain,
                cells=len(cells),
                target=target,
                placed=len(results),
                attempts=attempts,
            )
            report.results.extend(results)
            report.groups.append(stats)

            if stats.shortfall:
                logger.warning(
                    "Placement shortfall",
                    terrain=terrain,
                    target=target,
                    placed=stats.placed,
                    attempts=attempts,
                )

        logger.info("Props placed", placed=len(report), groups=len(report.groups))
        return report
