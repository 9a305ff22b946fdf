#!/usr/bin/env python3
"""
Simple demo script showing both growth strategies.
"""

from py_wavegrow.config import DEFAULT_RING_PALETTE, configure_logging, get_preset
from py_wavegrow.core import (
    GridFrontierEngine,
    PolygonGrowthEngine,
    WaveListener,
    WaveMode,
    WaveOrchestrator,
)
from py_wavegrow.utils import create_prng


class PrintingListener(WaveListener):
    def on_wave_completed(self, report):
        print(f"  Wave {report.wave_index}: +{len(report.band)} cells, "
              f"{len(report.props)} props, {len(report.enemies)} enemies")

    def on_growth_exhausted(self, report):
        print(f"  Wave {report.wave_index}: no room left to grow")


def main():
    """Demonstrate grid and polygon growth."""
    configure_logging("WARNING")
    print("Py-WaveGrow Demo")
    print("=" * 40)

    print("\nGrid frontier (band width 2, bounded 24x24):")
    print("-" * 30)
    mask = {(x, y) for x in range(10, 14) for y in range(10, 14)}
    orchestrator = WaveOrchestrator(
        GridFrontierEngine(mask, band_width=2, bounds=(24, 24)),
        create_prng("grid_demo"),
        rule_table=get_preset("meadow"),
        mode=WaveMode.POPULATE | WaveMode.COMBAT,
    )
    orchestrator.add_listener(PrintingListener())
    orchestrator.start()
    for _ in range(7):
        orchestrator.run_wave(player_position=(12.0, 12.0))

    print("\nPolygon rings (thickness 1.5):")
    print("-" * 30)
    engine = PolygonGrowthEngine([(0, 0), (6, 0), (6, 4), (3, 7), (0, 4)], ring_thickness=1.5)
    orchestrator = WaveOrchestrator(
        engine,
        create_prng("polygon_demo"),
        rule_table=get_preset("badlands"),
        palette=DEFAULT_RING_PALETTE,
    )
    orchestrator.add_listener(PrintingListener())
    base = orchestrator.start()
    print(f"  Base: {', '.join(s.name for s in base.surfaces)}")
    for _ in range(3):
        report = orchestrator.run_wave()
        for surface in report.surfaces:
            print(f"    {surface.name}: {surface.vertex_count} vertices, "
                  f"{surface.triangle_count} triangles")


if __name__ == "__main__":
    main()
