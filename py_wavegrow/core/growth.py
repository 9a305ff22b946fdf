"""Shared contract for the grid and polygon growth strategies."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import FrozenSet, List, NamedTuple, Optional, Tuple

import numpy as np

from .surfaces import RingStyle

Cell = Tuple[int, int]


class Ring(NamedTuple):
    """Boundaries before and after one wave of polygon growth."""

    inner: np.ndarray
    outer: np.ndarray


@dataclass
class GrowthResult:
    """What one ``advance`` call added to the playable area."""

    band: FrozenSet[Cell] = frozenset()
    exhausted: bool = False
    ring: Optional[Ring] = None
    surfaces: List = field(default_factory=list)

    @property
    def size(self) -> int:
        return len(self.band)


class GrowthStrategy(ABC):
    """Grows the playable area by one wave and reports the new region."""

    @abstractmethod
    def start(self) -> GrowthResult:
        """Seed the filled region; the result's band is the initial area."""

    @abstractmethod
    def advance(self, style: Optional[RingStyle] = None) -> GrowthResult:
        """
        Grow by one wave using the configured parameters.

        ``style`` colours the wave's ring surfaces; strategies without
        surfaces ignore it.
        """

    @property
    @abstractmethod
    def filled_cells(self) -> FrozenSet[Cell]:
        """Every cell filled so far."""
