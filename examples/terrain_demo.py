#!/usr/bin/env python3
"""
Simple demo script showing terrain generation and analysis.
"""

from py_terrain import (
    GenerationRequest,
    TerrainPreset,
    extract_contours,
    find_landmarks,
    generate,
    place_fauna,
    serialize,
    zoom_window,
)
from py_terrain.core.models import LAND_COVER_NAMES
from py_terrain.utils.log import configure_logging


def main():
    """Demonstrate terrain generation."""
    configure_logging()
    print("Py-Terrain Generation Demo")
    print("=" * 40)

    for preset in TerrainPreset:
        print(f"\n{preset.value.upper()} preset:")
        print("-" * 30)

        request = GenerationRequest(width=600, height=600, preset=preset, seed=f"{preset.value}_demo")
        grid = generate(request)
        low, high = grid.elevation_bounds()
        total = grid.width * grid.height

        print(f"  Grid: {grid.width}x{grid.height}")
        print(f"  Elevation range: {low:.1f}-{high:.1f}")
        print("  Land cover:")
        for cover, count in sorted(grid.cover_counts().items()):
            bar = '#' * int(count / total * 40)
            print(f"    {LAND_COVER_NAMES[cover]:>14}: {bar} ({count})")

        landmarks = find_landmarks(grid)
        print(f"  Peaks: {len(landmarks.peaks)}, valleys: {len(landmarks.valleys)}")

        window = zoom_window(grid.width, grid.height, grid.width / 2, grid.height / 2, zoom=4)
        interval = (high - low) / 10 or 1.0
        segments = extract_contours(grid, window, interval)
        print(f"  Contour segments in {tuple(window)}: {len(segments)}")

        animals = place_fauna(grid, seed=f"{preset.value}_fauna")
        foxes = sum(1 for a in animals if a.type.value == "fox")
        print(f"  Animals: {foxes} foxes, {len(animals) - foxes} hares")

        print(f"  Export size: {len(serialize(grid)) / 1e6:.1f} MB")


if __name__ == "__main__":
    main()
