"""Utility helpers."""

from .random import create_prng

__all__ = ["create_prng"]
