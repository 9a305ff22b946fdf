#!/usr/bin/env python3
"""
Run a number of growth waves and print what each one produced.
"""

import argparse
import json
import sys
from pathlib import Path

sys.path.append(str(Path(__file__).parent))

from py_wavegrow.config import (
    DEFAULT_RING_PALETTE,
    DEFAULT_RING_TILES,
    configure_logging,
    get_preset,
    list_presets,
)
from py_wavegrow.core import (
    EnemyRule,
    EnemySpawnOptions,
    EnemySpawnPlanner,
    GridFrontierEngine,
    PlacementOptions,
    PlacementPlanner,
    PolygonGrowthEngine,
    SpatialIndex,
    TerrainMap,
    Variant,
    WaveMode,
    WaveOrchestrator,
)
from py_wavegrow.utils import create_prng

MODES = {
    "grow": WaveMode.GROW,
    "populate": WaveMode.POPULATE,
    "combat": WaveMode.COMBAT,
    "both": WaveMode.POPULATE | WaveMode.COMBAT,
}


def build_orchestrator(strategy="grid", preset="meadow", seed=None, mode="populate",
                       size=8, width=64, height=64):
    """Create an orchestrator centred in a ``width`` x ``height`` area."""
    cx, cy = width // 2, height // 2
    half = size // 2

    if strategy == "grid":
        mask = {(x, y) for x in range(cx - half, cx + half) for y in range(cy - half, cy + half)}
        engine = GridFrontierEngine.from_settings(mask, bounds=(width, height))
    else:
        boundary = [
            (cx - half, cy - half),
            (cx + half, cy - half),
            (cx + half, cy + half),
            (cx - half, cy + half),
        ]
        engine = PolygonGrowthEngine.from_settings(boundary, bounds=(0, 0, width, height))

    enemy_planner = EnemySpawnPlanner(
        EnemySpawnOptions.from_settings(),
        rules=[EnemyRule(terrain="dirt", variants=[Variant(name="beetle")])],
    )
    return WaveOrchestrator(
        engine,
        create_prng(seed),
        rule_table=get_preset(preset),
        planner=PlacementPlanner(PlacementOptions.from_settings()),
        enemy_planner=enemy_planner,
        spatial=SpatialIndex(),
        terrain=TerrainMap(default="grass"),
        mode=MODES[mode],
        palette=DEFAULT_RING_PALETTE,
        ring_tiles=DEFAULT_RING_TILES,
    )


def summarize(report):
    return {
        "wave": report.wave_index,
        "exhausted": report.exhausted,
        "cells": len(report.band),
        "tile": report.ring_tile,
        "surfaces": [
            {"name": s.name, "triangles": s.triangle_count, "complete": s.complete}
            for s in report.surfaces
        ],
        "props": len(report.props),
        "enemies": len(report.enemies),
        "shortfall": sum(g.shortfall for g in report.shortfalls),
    }


def final_state(orchestrator, reports):
    """Filled cells and every placement made so far, ready for JSON."""
    return {
        "wave_index": orchestrator.wave_index,
        "filled_cells": [list(cell) for cell in sorted(orchestrator.strategy.filled_cells)],
        "waves": [summarize(r) for r in reports],
        "props": [p.model_dump() for r in reports for p in r.props],
        "enemies": [e.model_dump() for r in reports for e in r.enemies],
    }


def main():
    parser = argparse.ArgumentParser(description="Run terrain growth waves")
    parser.add_argument("--waves", type=int, default=5, help="Number of waves to run")
    parser.add_argument("--strategy", choices=["grid", "polygon"], default="grid")
    parser.add_argument("--preset", choices=list_presets(), default="meadow")
    parser.add_argument("--seed", default=None, help="PRNG seed")
    parser.add_argument("--mode", choices=sorted(MODES), default="populate")
    parser.add_argument("--json", dest="json_path", default=None, help="Write the final state to this file")
    parser.add_argument("--log-level", default=None)
    args = parser.parse_args()

    configure_logging(args.log_level)

    orchestrator = build_orchestrator(args.strategy, args.preset, args.seed, args.mode)
    base = orchestrator.start()
    print(f"Base area: {len(base.band)} cells, {len(base.props)} props")

    reports = [base]
    for _ in range(args.waves):
        report = orchestrator.run_wave(player_position=(32.0, 32.0))
        summary = summarize(report)
        reports.append(report)
        if report.exhausted:
            print(f"Wave {report.wave_index}: growth exhausted")
            break
        print(
            f"Wave {summary['wave']}: +{summary['cells']} cells ({summary['tile']}), "
            f"{summary['props']} props, {summary['enemies']} enemies, "
            f"shortfall {summary['shortfall']}"
        )

    if args.json_path:
        with open(args.json_path, "w") as f:
            json.dump(final_state(orchestrator, reports), f, indent=2)
        print(f"Final state written to: {args.json_path}")


if __name__ == "__main__":
    main()
