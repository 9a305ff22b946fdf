"""
Named placement presets and ring palettes.

Each preset is a ``RuleTable`` keyed by terrain identity. Densities are in
items per 100 cells.
"""

from typing import Dict, List

from ..core.placement import PlacementRule, RuleTable, Variant
from ..core.surfaces import RingStyle

BASE_INNER = (0.25, 0.75, 0.65, 1.0)
BASE_OUTER = (0.10, 0.45, 0.40, 1.0)
BASE_STYLE = RingStyle(inner_color=BASE_INNER, outer_color=BASE_OUTER)

DEFAULT_RING_PALETTE: List[RingStyle] = [
    RingStyle(inner_color=(0.30, 0.70, 0.55, 1.0), outer_color=(0.15, 0.42, 0.35, 1.0)),
    RingStyle(inner_color=(0.55, 0.65, 0.35, 1.0), outer_color=(0.35, 0.45, 0.20, 1.0)),
    RingStyle(inner_color=(0.70, 0.60, 0.40, 1.0), outer_color=(0.45, 0.38, 0.25, 1.0)),
]

DEFAULT_RING_TILES: List[str] = ["grass", "meadow", "dirt"]


def _variants(**weights: float) -> List[Variant]:
    return [Variant(name=name, weight=weight) for name, weight in weights.items()]


PRESETS: Dict[str, RuleTable] = {
    "meadow": RuleTable(
        rules={
            "grass": PlacementRule(
                density=12,
                variants=_variants(tuft=3, flower=2, rock_small=1),
                jitter=(0.35, 0.35),
                scale_range=(0.8, 1.2),
                flip=True,
            ),
            "meadow": PlacementRule(
                density=8,
                variants=_variants(bush=2, flower=3),
                jitter=(0.3, 0.3),
                scale_range=(0.9, 1.1),
                flip=True,
            ),
            "dirt": PlacementRule(
                density=5,
                variants=_variants(rock_small=3, rock_large=1),
                jitter=(0.25, 0.25),
                scale_range=(0.7, 1.3),
            ),
        },
        default=PlacementRule(density=4, variants=_variants(pebble=1), jitter=(0.2, 0.2)),
    ),
    "badlands": RuleTable(
        rules={
            "dirt": PlacementRule(
                density=10,
                variants=_variants(rock_small=2, rock_large=2, bones=1),
                jitter=(0.4, 0.4),
                scale_range=(0.6, 1.4),
                flip=True,
            ),
        },
        default=PlacementRule(
            density=6, variants=_variants(dead_bush=1, rock_small=1), jitter=(0.3, 0.3)
        ),
    ),
    "sparse": RuleTable(
        default=PlacementRule(density=2, variants=_variants(rock_small=1)),
    ),
}


def get_preset(name: str) -> RuleTable:
    """Return a copy of a named preset."""
    if name not in PRESETS:
        raise ValueError(f"Unknown preset '{name}'. Available: {', '.join(list_presets())}")
    return PRESETS[name].model_copy(deep=True)


def list_presets() -> List[str]:
    return sorted(PRESETS)
