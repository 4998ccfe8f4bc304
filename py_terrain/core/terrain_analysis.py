"""
Terrain analysis helpers for map consumers.

This module handles:
- Visible window computation from a view centre and zoom factor
- Peak and valley landmark lists, thinned so labels do not crowd each other
"""

import math
from typing import List, NamedTuple, Optional, Sequence, Tuple

import numpy as np

from .contours import clamp_window
from .grid import TerrainGrid
from .models import Landmark, Window

MIN_ZOOM = 1.0
MAX_ZOOM = 32.0


class Landmarks(NamedTuple):
    """Peaks (highest first) and valleys (lowest first)."""

    peaks: List[Landmark]
    valleys: List[Landmark]


def clamp_zoom(zoom: float) -> float:
    return min(max(float(zoom), MIN_ZOOM), MAX_ZOOM)


def clamp_center(
    width: int, height: int, center_x: float, center_y: float, zoom: float
) -> Tuple[float, float]:
    """Keep the view centre far enough from the edges to fill the view."""
    zoom = clamp_zoom(zoom)
    half_w = width / zoom / 2
    half_h = height / zoom / 2
    return (
        min(max(center_x, half_w), width - half_w),
        min(max(center_y, half_h), height - half_h),
    )


def zoom_window(
    width: int, height: int, center_x: float, center_y: float, zoom: float = 1.0
) -> Window:
    """
    Cell window visible around a centre at a zoom factor.

    The view spans ``width / zoom`` by ``height / zoom`` cells; a view hanging
    over an edge is shifted back onto the grid.
    """
    zoom = clamp_zoom(zoom)
    view_w = width / zoom
    view_h = height / zoom

    min_x, max_x = center_x - view_w / 2, center_x + view_w / 2
    min_y, max_y = center_y - view_h / 2, center_y + view_h / 2
    if min_x < 0:
        max_x, min_x = max_x - min_x, 0.0
    if max_x > width:
        min_x, max_x = min_x - (max_x - width), float(width)
    if min_y < 0:
        max_y, min_y = max_y - min_y, 0.0
    if max_y > height:
        min_y, max_y = min_y - (max_y - height), float(height)

    return Window(
        max(0, math.floor(min_x)),
        max(0, math.floor(min_y)),
        min(width, math.ceil(max_x)),
        min(height, math.ceil(max_y)),
    )


def _thin(candidates: List[Landmark], min_distance: float) -> List[Landmark]:
    kept: List[Landmark] = []
    for mark in candidates:
        if all(math.hypot(k.x - mark.x, k.y - mark.y) >= min_distance for k in kept):
            kept.append(mark)
    return kept


def find_landmarks(
    grid: TerrainGrid,
    window: Optional[Sequence[int]] = None,
    min_distance: float = 20.0,
    peak_threshold: float = 0.2,
    valley_threshold: float = 0.8,
) -> Landmarks:
    """
    Collect labelled peaks and valleys inside a window.

    Args:
        grid: Finished terrain grid
        window: ``(min_x, min_y, max_x, max_y)``; whole grid when omitted
        min_distance: Smallest distance in cells between two kept landmarks
        peak_threshold: Peaks must sit above this fraction of the elevation range
        valley_threshold: Valleys must sit below this fraction of the elevation range

    Returns:
        Landmarks with peaks sorted highest first and valleys lowest first
    """
    win = clamp_window(window, grid.width, grid.height)
    rows = slice(win.min_y, win.max_y)
    cols = slice(win.min_x, win.max_x)

    low, high = grid.elevation_bounds()
    elevation = grid.elevation[rows, cols]
    if high > low:
        normalized = (elevation - low) / (high - low)
    else:
        normalized = np.zeros_like(elevation)

    def collect(flags: np.ndarray) -> List[Landmark]:
        ys, xs = np.nonzero(flags)
        return [
            Landmark(int(x) + win.min_x, int(y) + win.min_y, float(elevation[y, x]))
            for y, x in zip(ys, xs)
        ]

    peaks = collect(grid.is_peak[rows, cols] & (normalized > peak_threshold))
    valleys = collect(grid.is_valley[rows, cols] & (normalized < valley_threshold))
    peaks.sort(key=lambda m: -m.elevation)
    valleys.sort(key=lambda m: m.elevation)
    return Landmarks(_thin(peaks, min_distance), _thin(valleys, min_distance))
