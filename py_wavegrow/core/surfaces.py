"""
Surface descriptions for the grown terrain.

Builds renderer-agnostic surfaces (vertices, triangle indices, UVs):
- the filled top of the initial plateau
- the top strip of every ring between two successive boundaries
- vertical side walls that keep the terrain volumetrically solid

Builders are pure: identical input polygons give identical surfaces.
"""

from dataclasses import dataclass
from typing import NamedTuple, Optional, Tuple

import numpy as np
import structlog

from .geometry import PolygonLike, as_polygon, polygon_bounds, triangulate

logger = structlog.get_logger()

Color = Tuple[float, float, float, float]

# Two triangles per quad laid out as [a0, b0, a1, b1]
QUAD_PATTERN = np.array([0, 2, 3, 0, 3, 1], dtype=np.int32)


class MismatchedRingLengthError(ValueError):
    """Inner and outer ring boundaries have different vertex counts."""


class RingStyle(NamedTuple):
    """Gradient colours applied from the inner to the outer edge."""

    inner_color: Color
    outer_color: Color


@dataclass
class Surface:
    """A triangle mesh ready for upload by the rendering layer."""

    name: str
    vertices: np.ndarray  # (n, 3)
    indices: np.ndarray  # flat, 3 per triangle
    uvs: np.ndarray  # (n, 2)
    complete: bool = True
    style: Optional[RingStyle] = None

    @property
    def triangle_count(self) -> int:
        return len(self.indices) // 3

    @property
    def vertex_count(self) -> int:
        return len(self.vertices)


def _quad_strip(a: np.ndarray, b: np.ndarray, wrap: int) -> np.ndarray:
    """Interleave per-edge quads [a_i, b_i, a_j, b_j] with j = i + 1 mod wrap."""
    nxt = np.roll(np.arange(wrap), -1)
    quads = np.stack([a, b, a[nxt], b[nxt]], axis=1)
    return quads.reshape(-1, a.shape[1])


def _strip_indices(quads: int) -> np.ndarray:
    base = (np.arange(quads, dtype=np.int32) * 4)[:, None]
    return (base + QUAD_PATTERN[None, :]).reshape(-1)


class RingGeometryBuilder:
    """Builds fill, ring and wall surfaces from boundary polygons."""

    def build_fill(self, polygon: PolygonLike, name: str = "FillTop",
                   style: Optional[RingStyle] = None) -> Surface:
        """
        Triangulate a boundary into a flat top surface.

        UVs map each vertex into the polygon's bounding box.
        """
        poly = as_polygon(polygon)
        triangulation = triangulate(poly)

        lo, hi = polygon_bounds(poly)
        extent = hi - lo
        extent[extent == 0] = 1.0
        uvs = (poly - lo) / extent

        vertices = np.column_stack([poly, np.zeros(len(poly))])
        return Surface(
            name=name,
            vertices=vertices,
            indices=triangulation.indices.astype(np.int32),
            uvs=uvs,
            complete=triangulation.complete,
            style=style,
        )

    def build_ring(self, inner: PolygonLike, outer: PolygonLike, name: str = "RingTop",
                   style: Optional[RingStyle] = None) -> Surface:
        """
        Build the top strip between two boundaries.

        Each edge index i yields the quad inner[i], outer[i], inner[i+1],
        outer[i+1]; UV.v is 0 on the inner edge and 1 on the outer edge.

        Raises:
            MismatchedRingLengthError: if the boundaries differ in length
        """
        inner_poly = as_polygon(inner)
        outer_poly = as_polygon(outer)
        if len(inner_poly) != len(outer_poly):
            raise MismatchedRingLengthError(
                f"Ring boundaries must have equal vertex counts: "
                f"inner={len(inner_poly)}, outer={len(outer_poly)}"
            )

        n = len(inner_poly)
        flat = np.zeros((n, 1))
        inner3 = np.hstack([inner_poly, flat])
        outer3 = np.hstack([outer_poly, flat])

        vertices = _quad_strip(inner3, outer3, n)
        uvs = np.tile(np.array([[0, 0], [0, 1], [1, 0], [1, 1]], dtype=np.float64), (n, 1))

        return Surface(
            name=name,
            vertices=vertices,
            indices=_strip_indices(n),
            uvs=uvs,
            style=style,
        )

    def build_walls(self, boundary: PolygonLike, height: float,
                    name: str = "SideWalls") -> Surface:
        """
        Extrude every boundary edge downward by ``height``.

        UV.v is 0 along the top edge and 1 along the bottom edge.
        """
        poly = as_polygon(boundary)
        n = len(poly)
        top = np.hstack([poly, np.zeros((n, 1))])
        bottom = np.hstack([poly, np.full((n, 1), -float(height))])

        # Per edge: topA, topB, botA, botB
        nxt = np.roll(np.arange(n), -1)
        vertices = np.stack([top, top[nxt], bottom, bottom[nxt]], axis=1).reshape(-1, 3)
        uvs = np.tile(np.array([[0, 0], [1, 0], [0, 1], [1, 1]], dtype=np.float64), (n, 1))

        return Surface(
            name=name,
            vertices=vertices,
            indices=_strip_indices(n),
            uvs=uvs,
        )
