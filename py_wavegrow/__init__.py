"""
py-wavegrow: wave-based terrain growth and population.
"""

__version__ = "0.1.0"
