"""
Grid flood-fill growth.

The filled region advances band by band: each wave paints ``band_width``
breadth-first layers starting from the current frontier, and the first
unpainted layer becomes the new frontier. Filled cells are never removed,
and the frontier never overlaps the filled set.
"""

from enum import IntEnum
from typing import FrozenSet, Iterable, Optional, Set, Tuple, Union

import structlog

from .growth import GrowthResult, GrowthStrategy
from .spatial import SpatialQueryPort
from .surfaces import RingStyle

logger = structlog.get_logger()

Cell = Tuple[int, int]


class Connectivity(IntEnum):
    """Neighbourhood used for flood fill."""

    FOUR = 4
    EIGHT = 8


NEIGHBOR_OFFSETS = {
    Connectivity.FOUR: ((1, 0), (-1, 0), (0, 1), (0, -1)),
    Connectivity.EIGHT: (
        (1, 0), (-1, 0), (0, 1), (0, -1),
        (1, 1), (1, -1), (-1, 1), (-1, -1),
    ),
}


def to_connectivity(value: Union[int, Connectivity]) -> Connectivity:
    """Validate a caller-supplied connectivity value."""
    try:
        return Connectivity(int(value))
    except ValueError:
        raise ValueError(f"Connectivity must be 4 or 8, got {value}") from None


class GridFrontierEngine(GrowthStrategy):
    """Owns the filled-cell set and its frontier."""

    def __init__(
        self,
        mask_cells: Iterable[Cell],
        spatial: Optional[SpatialQueryPort] = None,
        band_width: int = 2,
        connectivity: Union[int, Connectivity] = Connectivity.EIGHT,
        bounds: Optional[Tuple[int, int]] = None,
    ):
        """
        Args:
            mask_cells: Initial playable area
            spatial: Port answering ``is_blocked``; nothing is blocked if None
            band_width: Default number of BFS layers per wave
            connectivity: Default neighbourhood (4 or 8)
            bounds: Optional (width, height); cells outside are blocked
        """
        if band_width < 1:
            raise ValueError(f"band_width must be >= 1, got {band_width}")
        self.mask_cells = frozenset(mask_cells)
        self.spatial = spatial
        self.band_width = band_width
        self.connectivity = to_connectivity(connectivity)
        self.bounds = bounds

        self.filled: Set[Cell] = set()
        self.frontier: Set[Cell] = set()
        self.initialized = False

    @classmethod
    def from_settings(cls, mask_cells: Iterable[Cell],
                      spatial: Optional[SpatialQueryPort] = None,
                      bounds: Optional[Tuple[int, int]] = None) -> "GridFrontierEngine":
        from ..config import settings

        return cls(
            mask_cells,
            spatial=spatial,
            band_width=settings.band_width,
            connectivity=settings.connectivity,
            bounds=bounds,
        )

    @property
    def filled_cells(self) -> FrozenSet[Cell]:
        return frozenset(self.filled)

    def is_blocked(self, cell: Cell) -> bool:
        if self.bounds is not None:
            width, height = self.bounds
            if not (0 <= cell[0] < width and 0 <= cell[1] < height):
                return True
        return self.spatial is not None and self.spatial.is_blocked(cell)

    def neighbors(self, cell: Cell, connectivity: Connectivity) -> Iterable[Cell]:
        x, y = cell
        for dx, dy in NEIGHBOR_OFFSETS[connectivity]:
            yield (x + dx, y + dy)

    def _expand(self, layer: Iterable[Cell], connectivity: Connectivity) -> Set[Cell]:
        """Unfilled, unblocked neighbours of a layer."""
        result = set()
        for cell in layer:
            for neighbor in self.neighbors(cell, connectivity):
                if neighbor in self.filled or neighbor in result:
                    continue
                if self.is_blocked(neighbor):
                    continue
                result.add(neighbor)
        return result

    def initialize(
        self, mask_cells: Optional[Iterable[Cell]] = None
    ) -> Tuple[FrozenSet[Cell], FrozenSet[Cell]]:
        """
        Seed the filled set from the mask and compute the first frontier.

        Args:
            mask_cells: Replaces the constructor mask when given

        Returns:
            Tuple of (filled cells, frontier cells)
        """
        if mask_cells is not None:
            self.mask_cells = frozenset(mask_cells)

        self.filled = set(self.mask_cells)
        self.frontier = self._expand(self.filled, self.connectivity)
        self.initialized = True

        logger.info(
            "Grid initialized", filled=len(self.filled), frontier=len(self.frontier)
        )
        return frozenset(self.filled), frozenset(self.frontier)

    def start(self) -> GrowthResult:
        filled, _ = self.initialize()
        return GrowthResult(band=filled)

    def advance(
        self,
        band_width: Optional[int] = None,
        connectivity: Optional[Union[int, Connectivity]] = None,
        style: Optional[RingStyle] = None,
    ) -> GrowthResult:
        """
        Paint up to ``band_width`` BFS layers outward from the frontier.

        Args:
            band_width: Layers to paint; engine default when None
            connectivity: 4 or 8; engine default when None
            style: Unused; grid growth emits no surfaces

        Returns:
            GrowthResult with the painted band, or ``exhausted=True`` when
            nothing could be painted
        """
        if not self.initialized:
            raise ValueError("GridFrontierEngine.advance() called before initialize()")

        band_width = self.band_width if band_width is None else band_width
        if band_width < 1:
            raise ValueError(f"band_width must be >= 1, got {band_width}")
        connectivity = (
            self.connectivity if connectivity is None else to_connectivity(connectivity)
        )

        if not self.frontier:
            logger.warning("Growth exhausted", filled=len(self.filled))
            return GrowthResult(exhausted=True)

        # Blockers may have appeared since the frontier was computed
        layer = {cell for cell in self.frontier if not self.is_blocked(cell)}
        if not layer:
            logger.warning("Growth exhausted", reason="blocked", frontier=len(self.frontier))
            return GrowthResult(exhausted=True)

        painted: Set[Cell] = set()
        layers = 0

        for _ in range(band_width):
            if not layer:
                break
            self.filled.update(layer)
            painted.update(layer)
            layers += 1
            layer = self._expand(layer, connectivity)

        self.frontier = layer

        logger.info(
            "Grid advanced",
            layers=layers,
            painted=len(painted),
            filled=len(self.filled),
            frontier=len(self.frontier),
        )
        return GrowthResult(band=frozenset(painted))
