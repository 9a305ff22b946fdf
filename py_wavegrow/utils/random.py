"""
Random number generation utilities.

The engine never reads a global generator: planners and the orchestrator
receive an ``AleaPRNG`` instance. This helper builds one, falling back to
the configured default seed.
"""

from typing import Optional

from ..core.alea_prng import AleaPRNG


def create_prng(seed: Optional[str] = None) -> AleaPRNG:
    """
    Create a new Alea PRNG.

    Args:
        seed: Seed string to use; ``settings.default_seed`` when omitted

    Returns:
        Fresh AleaPRNG instance
    """
    if seed is None:
        from ..config import settings

        seed = settings.default_seed
    return AleaPRNG(seed)
