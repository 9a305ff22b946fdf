"""
Polygon growth: the playable boundary is offset outward once per wave.

Each wave produces a ring (previous boundary, new boundary), a top surface
for that ring and side walls around the new boundary. The region added by
the wave is also reported as grid cells so placement works the same way as
for the grid strategy.
"""

from typing import FrozenSet, Optional, Set, Tuple

import numpy as np
import structlog

from .geometry import PolygonLike, as_polygon, mask_from_polygon, offset_polygon, polygon_bounds
from .growth import Cell, GrowthResult, GrowthStrategy, Ring
from .spatial import GridLayout
from .surfaces import RingGeometryBuilder, RingStyle

logger = structlog.get_logger()


class PolygonGrowthEngine(GrowthStrategy):
    """Grows a boundary polygon ring by ring."""

    def __init__(
        self,
        boundary: PolygonLike,
        ring_thickness: float = 1.0,
        wall_height: float = 0.2,
        layout: Optional[GridLayout] = None,
        bounds: Optional[Tuple[float, float, float, float]] = None,
        builder: Optional[RingGeometryBuilder] = None,
        base_style: Optional[RingStyle] = None,
    ):
        """
        Args:
            boundary: Initial playable area in world units
            ring_thickness: Default outward offset per wave
            wall_height: Depth of the side walls
            layout: Grid used to report grown regions as cells
            bounds: Optional (min_x, min_y, max_x, max_y) the boundary may not leave
            builder: Surface builder; a fresh one when None
            base_style: Plateau colours; the preset base colours when None
        """
        self.initial_boundary = as_polygon(boundary)
        self.ring_thickness = ring_thickness
        self.wall_height = wall_height
        self.layout = layout or GridLayout()
        self.bounds = bounds
        self.builder = builder or RingGeometryBuilder()
        self.base_style = base_style

        self.boundary = self.initial_boundary.copy()
        self.rings = []
        self._filled: Set[Cell] = set()

    @classmethod
    def from_settings(cls, boundary: PolygonLike,
                      bounds: Optional[Tuple[float, float, float, float]] = None) -> "PolygonGrowthEngine":
        from ..config import settings

        return cls(
            boundary,
            ring_thickness=settings.ring_thickness,
            wall_height=settings.wall_height,
            layout=GridLayout(cell_size=settings.cell_size),
            bounds=bounds,
        )

    @property
    def filled_cells(self) -> FrozenSet[Cell]:
        return frozenset(self._filled)

    def _rasterize(self, polygon: np.ndarray) -> FrozenSet[Cell]:
        return mask_from_polygon(polygon, self.layout.cell_size, self.layout.origin)

    def _within_bounds(self, polygon: np.ndarray) -> bool:
        if self.bounds is None:
            return True
        lo, hi = polygon_bounds(polygon)
        min_x, min_y, max_x, max_y = self.bounds
        return lo[0] >= min_x and lo[1] >= min_y and hi[0] <= max_x and hi[1] <= max_y

    def start(self) -> GrowthResult:
        """Build the base plateau: filled top plus side walls."""
        self.boundary = self.initial_boundary.copy()
        self.rings = []
        self._filled = set(self._rasterize(self.boundary))

        style = self.base_style
        if style is None:
            from ..config.presets import BASE_STYLE

            style = BASE_STYLE

        surfaces = [
            self.builder.build_fill(self.boundary, name="FillTop", style=style),
            self.builder.build_walls(self.boundary, self.wall_height, name="BaseSides"),
        ]
        logger.info(
            "Polygon plateau built",
            vertices=len(self.boundary),
            cells=len(self._filled),
            complete=surfaces[0].complete,
        )
        return GrowthResult(band=frozenset(self._filled), surfaces=surfaces)

    def advance(self, ring_thickness: Optional[float] = None,
                style: Optional[RingStyle] = None) -> GrowthResult:
        """
        Offset the boundary outward and build the new ring.

        Args:
            ring_thickness: Offset distance; the engine default when None or <= 0
            style: Colours for the ring top surface

        Returns:
            GrowthResult with the ring, its surfaces and the newly covered cells
        """
        thickness = ring_thickness if ring_thickness and ring_thickness > 0 else self.ring_thickness
        outer = offset_polygon(self.boundary, thickness)

        if not self._within_bounds(outer):
            logger.warning("Growth exhausted", reason="bounds", rings=len(self.rings))
            return GrowthResult(exhausted=True)

        index = len(self.rings) + 1
        ring = Ring(inner=self.boundary, outer=outer)
        surfaces = [
            self.builder.build_ring(ring.inner, ring.outer, name=f"RingTop_{index}", style=style),
            self.builder.build_walls(outer, self.wall_height, name=f"RingSides_{index}"),
        ]

        band = self._rasterize(outer) - self._filled
        self._filled.update(band)
        self.rings.append(ring)
        self.boundary = outer

        logger.info("Polygon ring built", ring=index, thickness=thickness, cells=len(band))
        return GrowthResult(band=frozenset(band), ring=ring, surfaces=surfaces)
