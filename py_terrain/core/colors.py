"""Display colours for land cover, elevation shading and isolines."""

import math
from typing import Tuple

import numpy as np

from .models import LandCover, require_total

RGB = Tuple[int, int, int]

LAND_COVER_COLORS = {
    LandCover.MEADOW: "#a8d08d",
    LandCover.FIELD: "#e6d37a",
    LandCover.FOREST: "#3f7d3a",
    LandCover.DENSE_FOREST: "#1f4d1c",
    LandCover.BUSH: "#7aa35a",
    LandCover.WATER: "#4a90c8",
    LandCover.ROAD: "#b89b72",
    LandCover.BUILDING: "#8c5a3c",
    LandCover.SETTLEMENT: "#a0522d",
    LandCover.RIVER_SOURCE: "#6fb2e0",
    LandCover.RIVER_MOUTH: "#2f6f9f",
    LandCover.BEACH: "#f2e3a0",
}

require_total(LAND_COVER_COLORS, LandCover, "LAND_COVER_COLORS")


def _round(value: float) -> int:
    return int(math.floor(value + 0.5))


def hex_to_rgb(color: str) -> RGB:
    """Parse ``#rrggbb`` or ``#rgb``."""
    color = color.lstrip("#")
    if len(color) == 3:
        color = "".join(ch * 2 for ch in color)
    if len(color) != 6:
        raise ValueError(f"Not a hex colour: {color!r}")
    value = int(color, 16)
    return (value >> 16) & 255, (value >> 8) & 255, value & 255


def land_cover_rgb(cover: LandCover) -> RGB:
    return hex_to_rgb(LAND_COVER_COLORS[LandCover(cover)])


def elevation_color(t: float) -> RGB:
    """Light pink at the lowest elevation (0) to dark red at the highest (1)."""
    t = min(max(float(t), 0.0), 1.0)
    return 255, _round(240 - (240 - 34) * t), _round(250 - (250 - 34) * t)


def isoline_color(t: float) -> RGB:
    """Isoline ramp from ``#ffcccc`` (0) to ``#800020`` (1)."""
    t = min(max(float(t), 0.0), 1.0)
    return (
        _round(255 * (1 - t) + 128 * t),
        _round(204 * (1 - t)),
        _round(204 * (1 - t) + 32 * t),
    )


def land_cover_image(land_cover: np.ndarray) -> np.ndarray:
    """RGB image, shape ``(height, width, 3)``, coloured by land cover."""
    palette = np.array([land_cover_rgb(cover) for cover in LandCover], dtype=np.uint8)
    return palette[np.asarray(land_cover, dtype=np.intp)]
