"""
Polygon geometry used by the polygon growth strategy.

This module provides pure functions over ``(n, 2)`` NumPy arrays:
- Signed area and orientation (shoelace formula)
- Convexity and point-in-triangle tests
- Outward polygon offsetting via adjacent-edge line intersection
- Ear-clipping triangulation with an iteration cap
- Even-odd point-in-polygon and rasterization of a boundary into grid cells

Polygons are implicitly closed: the last vertex connects to the first.
"""

from dataclasses import dataclass
from typing import FrozenSet, Optional, Sequence, Tuple, Union

import numpy as np
import structlog

logger = structlog.get_logger()

# Below this cross product two edges are treated as parallel
PARALLEL_EPSILON = 1e-6

# Hard cap on ear-clipping passes; degenerate input must still terminate
EAR_CLIP_GUARD = 10000

PolygonLike = Union[np.ndarray, Sequence[Sequence[float]]]
Cell = Tuple[int, int]


@dataclass
class Triangulation:
    """Result of ear clipping.

    ``complete`` is False when clipping stopped before consuming the polygon,
    in which case ``triangles`` only covers part of it.
    """

    triangles: np.ndarray  # (k, 3) vertex indices into the source polygon
    complete: bool
    remaining: int = 0  # vertices left unclipped

    @property
    def indices(self) -> np.ndarray:
        """Flat triangle index list."""
        return self.triangles.reshape(-1)


def as_polygon(polygon: PolygonLike, min_vertices: int = 3) -> np.ndarray:
    """Coerce to a float ``(n, 2)`` array and check the vertex count."""
    poly = np.asarray(polygon, dtype=np.float64)
    if poly.ndim != 2 or poly.shape[1] != 2:
        raise ValueError(f"Polygon must be an (n, 2) array, got shape {poly.shape}")
    if len(poly) < min_vertices:
        raise ValueError(
            f"Polygon needs at least {min_vertices} vertices, got {len(poly)}"
        )
    return poly


def cross(a: np.ndarray, b: np.ndarray) -> float:
    """2D cross product (z component)."""
    return float(a[0] * b[1] - a[1] * b[0])


def signed_area(polygon: PolygonLike) -> float:
    """Shoelace signed area; positive for counter-clockwise polygons."""
    poly = np.asarray(polygon, dtype=np.float64)
    if len(poly) < 3:
        return 0.0
    x, y = poly[:, 0], poly[:, 1]
    return 0.5 * float(np.sum(x * np.roll(y, -1) - np.roll(x, -1) * y))


def is_ccw(polygon: PolygonLike) -> bool:
    """True if the polygon winds counter-clockwise."""
    return signed_area(polygon) > 0


def is_convex(a: np.ndarray, b: np.ndarray, c: np.ndarray, ccw: bool) -> bool:
    """Whether the corner a-b-c turns the same way as the polygon."""
    turn = (b[0] - a[0]) * (c[1] - b[1]) - (b[1] - a[1]) * (c[0] - b[0])
    return turn > 0 if ccw else turn < 0


def point_in_triangle(
    p: np.ndarray, a: np.ndarray, b: np.ndarray, c: np.ndarray
) -> bool:
    """Sign-of-cross-product containment test, boundary inclusive."""
    c1 = cross(b - a, p - a)
    c2 = cross(c - b, p - b)
    c3 = cross(a - c, p - c)
    has_neg = c1 < 0 or c2 < 0 or c3 < 0
    has_pos = c1 > 0 or c2 > 0 or c3 > 0
    return not (has_neg and has_pos)


def line_intersection(
    p: np.ndarray, r: np.ndarray, q: np.ndarray, s: np.ndarray
) -> Optional[np.ndarray]:
    """
    Intersect the lines ``p + t*r`` and ``q + u*s``.

    Returns:
        Intersection point, or None when the lines are (nearly) parallel
    """
    rxs = cross(r, s)
    if abs(rxs) < PARALLEL_EPSILON:
        return None
    t = cross(q - p, s) / rxs
    return p + r * t


def _unit(v: np.ndarray) -> np.ndarray:
    length = float(np.hypot(v[0], v[1]))
    if length < PARALLEL_EPSILON:
        return np.zeros(2)
    return v / length


def offset_polygon(polygon: PolygonLike, distance: float) -> np.ndarray:
    """
    Offset a polygon outward by ``distance``.

    For each vertex the two adjacent edges are displaced along their outward
    normals and intersected. Near-parallel edges and zero-length edges fall
    back to displacing the vertex along a single normal. The result always
    has the same vertex count as the input.

    Args:
        polygon: Boundary as an (n, 2) array, either orientation
        distance: Outward offset in world units

    Returns:
        New (n, 2) array
    """
    poly = as_polygon(polygon)
    n = len(poly)

    # Left normals point outward for clockwise polygons only
    outward = -1.0 if is_ccw(poly) else 1.0

    result = np.empty_like(poly)
    fallbacks = 0
    for i in range(n):
        p0 = poly[(i - 1) % n]
        p1 = poly[i]
        p2 = poly[(i + 1) % n]

        e0 = _unit(p1 - p0)
        e1 = _unit(p2 - p1)
        if not e0.any():
            e0 = e1
        if not e1.any():
            e1 = e0

        n0 = outward * np.array([-e0[1], e0[0]])
        n1 = outward * np.array([-e1[1], e1[0]])

        l0p = p1 + n0 * distance
        l1p = p1 + n1 * distance

        hit = line_intersection(l0p, e0, l1p, e1)
        if hit is None:
            result[i] = l0p
            fallbacks += 1
        else:
            result[i] = hit

    if fallbacks:
        logger.debug("Offset used normal fallback", vertices=n, fallbacks=fallbacks)
    return result


def triangulate(polygon: PolygonLike) -> Triangulation:
    """
    Ear-clipping triangulation.

    Repeatedly removes a convex vertex whose triangle contains no other
    remaining vertex. If no ear can be found (self-intersecting or otherwise
    degenerate input) clipping stops and the partial result is returned with
    ``complete=False``.
    """
    poly = as_polygon(polygon)
    remaining = list(range(len(poly)))
    ccw = is_ccw(poly)
    triangles = []

    guard = 0
    while len(remaining) > 2 and guard < EAR_CLIP_GUARD:
        guard += 1
        count = len(remaining)
        found = False
        for i in range(count):
            a = remaining[(i - 1) % count]
            b = remaining[i]
            c = remaining[(i + 1) % count]

            if not is_convex(poly[a], poly[b], poly[c], ccw):
                continue

            contains = False
            for k in remaining:
                if k in (a, b, c):
                    continue
                if point_in_triangle(poly[k], poly[a], poly[b], poly[c]):
                    contains = True
                    break
            if contains:
                continue

            triangles.append((a, b, c))
            del remaining[i]
            found = True
            break

        if not found:
            break

    left = len(remaining) if len(remaining) > 2 else 0
    result = Triangulation(
        triangles=np.array(triangles, dtype=np.int32).reshape(-1, 3),
        complete=left == 0,
        remaining=left,
    )
    if not result.complete:
        logger.warning(
            "Incomplete triangulation",
            vertices=len(poly),
            triangles=len(triangles),
            remaining=left,
        )
    return result


def polygon_bounds(polygon: PolygonLike) -> Tuple[np.ndarray, np.ndarray]:
    """Axis-aligned bounding box as ``(min_xy, max_xy)``."""
    poly = np.asarray(polygon, dtype=np.float64)
    return poly.min(axis=0), poly.max(axis=0)


def points_in_polygon(points: np.ndarray, polygon: PolygonLike) -> np.ndarray:
    """
    Vectorized even-odd point-in-polygon test.

    Args:
        points: (m, 2) query points
        polygon: (n, 2) boundary

    Returns:
        Boolean mask of length m
    """
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    poly = as_polygon(polygon)
    x, y = pts[:, 0], pts[:, 1]
    inside = np.zeros(len(pts), dtype=bool)

    xj, yj = poly[-1]
    for xi, yi in poly:
        straddles = (yi > y) != (yj > y)
        with np.errstate(divide="ignore", invalid="ignore"):
            x_cross = (xj - xi) * (y - yi) / (yj - yi) + xi
        inside ^= straddles & (x < x_cross)
        xj, yj = xi, yi
    return inside


def mask_from_polygon(polygon: PolygonLike, cell_size: float = 1.0,
                      origin: Tuple[float, float] = (0.0, 0.0)) -> FrozenSet[Cell]:
    """
    Rasterize a boundary into the grid cells whose centres lie inside it.

    Args:
        polygon: Boundary in world units
        cell_size: World units per cell
        origin: World position of cell (0, 0)'s corner

    Returns:
        Frozen set of (x, y) cells
    """
    poly = as_polygon(polygon)
    lo, hi = polygon_bounds(poly)
    ox, oy = origin

    x0 = int(np.floor((lo[0] - ox) / cell_size))
    x1 = int(np.ceil((hi[0] - ox) / cell_size))
    y0 = int(np.floor((lo[1] - oy) / cell_size))
    y1 = int(np.ceil((hi[1] - oy) / cell_size))

    xs, ys = np.meshgrid(np.arange(x0, x1 + 1), np.arange(y0, y1 + 1))
    cells = np.column_stack([xs.ravel(), ys.ravel()])
    centres = (cells + 0.5) * cell_size + np.array([ox, oy])
    inside = points_in_polygon(centres, poly)
    return frozenset((int(cx), int(cy)) for cx, cy in cells[inside])
