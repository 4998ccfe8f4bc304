"""
Synthetic elevation field.

Three sinusoidal octaves with decreasing amplitude and increasing frequency.
Each octave's phase is bent by a cosine or sine of the other axis so the
ridges do not line up with the grid, and a gentle north-south slope is added
on top. A random origin offset drawn once per field makes every call produce
different terrain unless the generator was seeded.
"""

from typing import Union

import numpy as np

Coordinate = Union[float, np.ndarray]

# (amplitude, frequency, phase bend) per octave
OCTAVES = ((0.15, 3.0, 2.0), (0.08, 8.0, 5.0), (0.04, 15.0, 7.0))
SLOPE_WEIGHT = 0.05

# Empirical output range of the raw sum, remapped to [0, 1]
RAW_LOW = 0.1
RAW_SPAN = 0.9


class NoiseField:
    """Height function over ``[0, width) x [0, height)``."""

    def __init__(
        self,
        width: int,
        height: int,
        min_elevation: float,
        max_elevation: float,
        rng: np.random.Generator,
    ):
        """
        Initialize the field and draw its origin offset.

        Args:
            width: Grid width in cells
            height: Grid height in cells
            min_elevation: Lowest elevation produced
            max_elevation: Highest elevation produced
            rng: Generator owned by the current generation call
        """
        self.grid_width = width
        self.grid_height = height
        self.min_elevation = min_elevation
        self.max_elevation = max_elevation
        self.offset_x = rng.random() * 1000
        self.offset_y = rng.random() * 1000

    def normalized(self, x: Coordinate, y: Coordinate) -> Coordinate:
        """Height in ``[0, 1]`` before scaling into the elevation range."""
        nx = (np.asarray(x, dtype=np.float64) + self.offset_x) / self.grid_width - 0.5
        ny = (np.asarray(y, dtype=np.float64) + self.offset_y) / self.grid_height - 0.5

        (a1, f1, b1), (a2, f2, b2), (a3, f3, b3) = OCTAVES
        h = (
            0.5
            + a1 * np.sin(f1 * nx + b1 * np.cos(f1 * ny))
            + a2 * np.sin(f2 * nx + b2 * np.cos(f2 * ny))
            + a3 * np.cos(f3 * nx + b3 * np.sin(f3 * ny))
        )
        h = h + SLOPE_WEIGHT * (0.5 - ny)
        return np.clip((h - RAW_LOW) / RAW_SPAN, 0.0, 1.0)

    def height(self, x: Coordinate, y: Coordinate) -> Coordinate:
        """Elevation at ``(x, y)``; accepts scalars or numpy arrays."""
        h = self.normalized(x, y)
        value = self.min_elevation + h * (self.max_elevation - self.min_elevation)
        value = np.clip(value, self.min_elevation, self.max_elevation)
        if np.ndim(value) == 0:
            return float(value)
        return value

    def sample_grid(self) -> np.ndarray:
        """Elevation of every integer cell, shape ``(height, width)``."""
        ys, xs = np.mgrid[0 : self.grid_height, 0 : self.grid_width]
        return self.height(xs, ys)
