"""
Core wave growth and population functionality.
"""

from .alea_prng import AleaPRNG
from .growth import GrowthResult, GrowthStrategy, Ring
from .grid_frontier import Connectivity, GridFrontierEngine
from .polygon_growth import PolygonGrowthEngine
from .surfaces import MismatchedRingLengthError, RingGeometryBuilder, RingStyle, Surface
from .spatial import GridLayout, PlacementPool, SpatialIndex, SpatialQueryPort
from .placement import (
    InvalidRuleReference,
    PlacementOptions,
    PlacementPlanner,
    PlacementReport,
    PlacementResult,
    PlacementRule,
    RuleTable,
    TerrainMap,
    Variant,
    pick_variant,
)
from .spawning import EnemyRule, EnemySpawnOptions, EnemySpawnPlanner
from .waves import WaveListener, WaveMode, WaveOrchestrator, WaveReport, WaveTimer

__all__ = ['AleaPRNG', 'GrowthResult', 'GrowthStrategy', 'Ring', 'Connectivity',
           'GridFrontierEngine', 'PolygonGrowthEngine', 'MismatchedRingLengthError',
           'RingGeometryBuilder', 'RingStyle', 'Surface', 'GridLayout', 'PlacementPool',
           'SpatialIndex', 'SpatialQueryPort', 'InvalidRuleReference', 'PlacementOptions',
           'PlacementPlanner', 'PlacementReport', 'PlacementResult', 'PlacementRule',
           'RuleTable', 'TerrainMap', 'Variant', 'pick_variant', 'EnemyRule',
           'EnemySpawnOptions', 'EnemySpawnPlanner', 'WaveListener', 'WaveMode',
           'WaveOrchestrator', 'WaveReport', 'WaveTimer']
