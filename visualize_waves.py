#!/usr/bin/env python3
"""
Visualize wave growth: cells coloured by the wave that added them, with
ring outlines, props and enemies.
"""

import argparse
import sys
from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.patches import Polygon

sys.path.append(str(Path(__file__).parent))

from generate_waves import build_orchestrator
from py_wavegrow.config import configure_logging


def visualize_waves(strategy="grid", waves=6, preset="meadow", seed="visualize",
                    mode="both", width=64, height=64):
    """Run ``waves`` waves and save a PNG of the result."""
    orchestrator = build_orchestrator(strategy, preset, seed, mode, width=width, height=height)
    player = (width / 2.0, height / 2.0)

    wave_of = np.full((height, width), np.nan)
    base = orchestrator.start()
    for x, y in base.band:
        if 0 <= x < width and 0 <= y < height:
            wave_of[y, x] = 0

    reports = []
    for _ in range(waves):
        report = orchestrator.run_wave(player_position=player)
        if report.exhausted:
            print(f"Growth exhausted at wave {report.wave_index}")
            break
        reports.append(report)
        for x, y in report.band:
            if 0 <= x < width and 0 <= y < height:
                wave_of[y, x] = report.wave_index

    fig, ax = plt.subplots(figsize=(10, 10))
    im = ax.imshow(
        wave_of,
        extent=(0, width, 0, height),
        origin="lower",
        cmap="viridis",
        vmin=0,
        vmax=max(1, len(reports)),
    )
    plt.colorbar(im, ax=ax, label="Wave")

    for report in reports:
        if report.ring is not None:
            ax.add_patch(Polygon(report.ring.outer, closed=True, fill=False,
                                 edgecolor="white", linewidth=1))

    props = [p.position for r in [base] + reports for p in r.props]
    if props:
        props = np.array(props)
        ax.scatter(props[:, 0], props[:, 1], s=6, c="saddlebrown", label="Props")

    enemies = [e.position for r in reports for e in r.enemies]
    if enemies:
        enemies = np.array(enemies)
        ax.scatter(enemies[:, 0], enemies[:, 1], s=14, c="red", marker="x", label="Enemies")

    ax.plot(*player, marker="*", color="gold", markersize=14, label="Player")
    ax.set_xlim(0, width)
    ax.set_ylim(0, height)
    ax.set_aspect("equal")
    ax.set_title(f"{strategy.title()} growth, {len(reports)} waves - Seed: {seed}")
    ax.legend(loc="upper right")

    output_file = f"waves_{strategy}_{seed}.png"
    plt.savefig(output_file, dpi=200, bbox_inches="tight")
    print(f"Visualization saved to: {output_file}")


def main():
    parser = argparse.ArgumentParser(description="Visualize terrain growth waves")
    parser.add_argument("--strategy", choices=["grid", "polygon"], default="grid")
    parser.add_argument("--waves", type=int, default=6)
    parser.add_argument("--preset", default="meadow")
    parser.add_argument("--seed", default="visualize")
    parser.add_argument("--mode", default="both")
    args = parser.parse_args()

    configure_logging("WARNING")
    visualize_waves(args.strategy, args.waves, args.preset, args.seed, args.mode)


if __name__ == "__main__":
    main()
