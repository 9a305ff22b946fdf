"""
Configuration modules for wave growth.
"""

from .config import Settings, settings
from .logging_setup import configure_logging
from .presets import (
    BASE_INNER,
    BASE_OUTER,
    BASE_STYLE,
    DEFAULT_RING_PALETTE,
    DEFAULT_RING_TILES,
    PRESETS,
    get_preset,
    list_presets,
)

__all__ = ['Settings', 'settings', 'configure_logging', 'BASE_INNER', 'BASE_OUTER', 'BASE_STYLE',
           'DEFAULT_RING_PALETTE', 'DEFAULT_RING_TILES', 'PRESETS', 'get_preset',
           'list_presets']
