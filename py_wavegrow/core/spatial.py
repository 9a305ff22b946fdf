"""
Spatial queries consumed by growth and placement.

The engine never runs its own physics. Blocking and occupancy are asked of
a ``SpatialQueryPort``; ``SpatialIndex`` is the in-memory implementation
used by the scripts and tests. ``PlacementPool`` tracks positions accepted
by the planners so new placements keep their minimum separation.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterable, List, Set, Tuple

import numpy as np
from sklearn.neighbors import KDTree

Cell = Tuple[int, int]
Position = Tuple[float, float]


@dataclass(frozen=True)
class GridLayout:
    """Mapping between grid cells and world positions."""

    cell_size: float = 1.0
    origin_x: float = 0.0
    origin_y: float = 0.0

    def cell_to_world(self, cell: Cell) -> Position:
        """World position of a cell's centre."""
        return (
            self.origin_x + (cell[0] + 0.5) * self.cell_size,
            self.origin_y + (cell[1] + 0.5) * self.cell_size,
        )

    @property
    def origin(self) -> Position:
        return (self.origin_x, self.origin_y)


class SpatialQueryPort(ABC):
    """Blocking and occupancy queries backed by the embedding application."""

    @abstractmethod
    def is_blocked(self, cell: Cell) -> bool:
        """Whether growth may not enter ``cell``."""

    @abstractmethod
    def is_occupied(self, position: Position, radius: float) -> bool:
        """Whether anything pre-existing lies within ``radius`` of ``position``."""


class SpatialIndex(SpatialQueryPort):
    """In-memory port: a blocked-cell set plus occupied discs."""

    def __init__(self, blocked: Iterable[Cell] = ()):
        self.blocked: Set[Cell] = set(blocked)
        self._centres: List[Position] = []
        self._radii: List[float] = []
        self._tree = None

    def block(self, cells: Iterable[Cell]) -> None:
        """Mark cells as impassable for growth."""
        self.blocked.update(cells)

    def mark_occupied(self, position: Position, radius: float = 0.0) -> None:
        """Register an obstacle disc."""
        self._centres.append((float(position[0]), float(position[1])))
        self._radii.append(float(radius))
        self._tree = None

    def is_blocked(self, cell: Cell) -> bool:
        return cell in self.blocked

    def is_occupied(self, position: Position, radius: float) -> bool:
        if not self._centres:
            return False
        if self._tree is None:
            self._tree = KDTree(np.array(self._centres))

        reach = radius + max(self._radii)
        candidates = self._tree.query_radius([list(position)], r=reach)[0]
        for idx in candidates:
            cx, cy = self._centres[idx]
            gap = float(np.hypot(position[0] - cx, position[1] - cy))
            if gap < radius + self._radii[idx]:
                return True
        return False

    def __len__(self) -> int:
        return len(self._centres)


class PlacementPool:
    """
    Positions accepted by one exclusion pool (props or enemies).

    Older positions live in a KDTree. Recent ones sit in a short tail that is
    scanned directly and folded into the tree once it reaches
    ``rebuild_threshold``.
    """

    def __init__(self, rebuild_threshold: int = 64):
        self.rebuild_threshold = rebuild_threshold
        self.positions: List[Position] = []
        self._tree = None
        self._indexed = 0

    def add(self, position: Position) -> None:
        self.positions.append((float(position[0]), float(position[1])))
        if len(self.positions) - self._indexed >= self.rebuild_threshold:
            self._tree = KDTree(np.array(self.positions))
            self._indexed = len(self.positions)

    def nearest_distance(self, position: Position) -> float:
        """Distance to the closest accepted position (inf when empty)."""
        nearest = float("inf")
        if self._tree is not None:
            distances, _ = self._tree.query([list(position)], k=1)
            nearest = float(distances[0][0])

        tail = self.positions[self._indexed:]
        if tail:
            tail = np.array(tail)
            gaps = np.hypot(tail[:, 0] - position[0], tail[:, 1] - position[1])
            nearest = min(nearest, float(gaps.min()))
        return nearest

    def conflicts(self, position: Position, min_separation: float) -> bool:
        return self.nearest_distance(position) < min_separation

    def __len__(self) -> int:
        return len(self.positions)
