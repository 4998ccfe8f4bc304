"""
Contour line extraction with marching squares.

For every iso level inside the window's elevation range each unit cell is
inspected through its four corner elevations. An edge is crossed when its two
corners lie strictly on opposite sides of the level; the crossing point is
interpolated linearly along the edge. Cells with exactly two crossings give
one segment. Saddle cells (four crossings) are dropped unless
``resolve_saddles`` is set, in which case the cell-centre average decides how
the four points pair up. Segments are returned unordered, not chained.
"""

import math
from typing import List, Optional, Sequence, Union

import numpy as np
import structlog

from ..config import settings
from .grid import TerrainGrid
from .models import ContourSegment, Window

logger = structlog.get_logger()

# Edge order used for crossing tests and segment endpoints
LEFT, RIGHT, TOP, BOTTOM = range(4)

# Range used when the window is flat or holds no unit cell
FALLBACK_RANGE = (0.0, 1.0)


def clamp_window(window: Optional[Sequence[int]], width: int, height: int) -> Window:
    """Clamp a ``(min_x, min_y, max_x, max_y)`` window to the grid."""
    if window is None:
        return Window(0, 0, width, height)
    min_x, min_y, max_x, max_y = (int(math.floor(v)) for v in window)
    min_x = min(max(min_x, 0), width)
    min_y = min(max(min_y, 0), height)
    max_x = min(max(max_x, min_x), width)
    max_y = min(max(max_y, min_y), height)
    return Window(min_x, min_y, max_x, max_y)


def contour_levels(low: float, high: float, interval: float) -> List[float]:
    """Levels ``ceil(low / interval) * interval + k * interval`` below ``high``."""
    first = math.ceil(low / interval) * interval
    levels = []
    k = 0
    while True:
        iso = first + k * interval
        if iso >= high:
            break
        levels.append(iso)
        k += 1
    return levels


def _elevation_of(source: Union[TerrainGrid, np.ndarray]) -> np.ndarray:
    if isinstance(source, TerrainGrid):
        return source.elevation
    elevation = np.asarray(source, dtype=np.float64)
    if elevation.ndim != 2:
        raise ValueError(f"Elevation must be two-dimensional, got shape {elevation.shape}")
    return elevation


class ContourExtractor:
    """Marching squares over one window of an elevation grid."""

    def __init__(
        self,
        source: Union[TerrainGrid, np.ndarray],
        window: Optional[Sequence[int]] = None,
        resolve_saddles: bool = False,
    ):
        """
        Initialize the extractor.

        Args:
            source: Terrain grid or a 2D elevation array
            window: ``(min_x, min_y, max_x, max_y)`` cell range, clamped to the grid
            resolve_saddles: Split four-crossing cells into two segments
        """
        self.elevation = _elevation_of(source)
        height, width = self.elevation.shape
        self.window = clamp_window(window, width, height)
        self.resolve_saddles = resolve_saddles

        # Unit cells (x, y) whose four corners are all on the grid
        self.x_end = min(self.window.max_x, width - 1)
        self.y_end = min(self.window.max_y, height - 1)
        self.has_cells = self.x_end > self.window.min_x and self.y_end > self.window.min_y

        if self.has_cells:
            x0, y0 = self.window.min_x, self.window.min_y
            e = self.elevation
            self.h00 = e[y0 : self.y_end, x0 : self.x_end]
            self.h10 = e[y0 : self.y_end, x0 + 1 : self.x_end + 1]
            self.h01 = e[y0 + 1 : self.y_end + 1, x0 : self.x_end]
            self.h11 = e[y0 + 1 : self.y_end + 1, x0 + 1 : self.x_end + 1]
            self.ys, self.xs = np.mgrid[y0 : self.y_end, x0 : self.x_end].astype(np.float64)

    def elevation_range(self):
        """Min and max of the corner samples, with a fallback for flat windows."""
        if not self.has_cells:
            return FALLBACK_RANGE
        block = self.elevation[
            self.window.min_y : self.y_end + 1, self.window.min_x : self.x_end + 1
        ]
        low, high = float(block.min()), float(block.max())
        if not high > low:
            return FALLBACK_RANGE
        return low, high

    def extract(self, interval: float) -> List[ContourSegment]:
        """All segments for levels spaced ``interval`` apart."""
        if not self.has_cells:
            return []
        low, high = self.elevation_range()
        segments: List[ContourSegment] = []
        for iso in contour_levels(low, high, interval):
            segments.extend(self.segments_at(iso))
        return segments

    def segments_at(self, iso: float) -> List[ContourSegment]:
        """Segments of a single iso level."""
        if not self.has_cells:
            return []

        corners = ((self.h00, self.h01), (self.h10, self.h11), (self.h00, self.h10), (self.h01, self.h11))
        cross = np.stack(
            [((a < iso) & (b > iso)) | ((a > iso) & (b < iso)) for a, b in corners]
        )
        with np.errstate(divide="ignore", invalid="ignore"):
            t = np.stack([(iso - a) / (b - a) for a, b in corners])

        px = np.stack([self.xs, self.xs + 1, self.xs + t[TOP], self.xs + t[BOTTOM]])
        py = np.stack([self.ys + t[LEFT], self.ys + t[RIGHT], self.ys, self.ys + 1])

        count = cross.sum(axis=0)
        segments = []

        iy, ix = np.nonzero(count == 2)
        if iy.size:
            hits = cross[:, iy, ix]
            first = hits.argmax(axis=0)
            second = 3 - hits[::-1].argmax(axis=0)
            segments.extend(self._pairs(px, py, iy, ix, first, second, iso))

        if self.resolve_saddles:
            segments.extend(self._saddles(px, py, count, iso))
        return segments

    def _saddles(self, px, py, count, iso) -> List[ContourSegment]:
        iy, ix = np.nonzero(count == 4)
        if not iy.size:
            return []
        h00 = self.h00[iy, ix]
        centre = (h00 + self.h10[iy, ix] + self.h01[iy, ix] + self.h11[iy, ix]) / 4
        joined = (centre > iso) == (h00 > iso)

        segments = []
        # Centre on the same side as the top-left corner: cut off the other two corners
        for sel, (a1, b1), (a2, b2) in (
            (joined, (TOP, RIGHT), (LEFT, BOTTOM)),
            (~joined, (LEFT, TOP), (RIGHT, BOTTOM)),
        ):
            if not sel.any():
                continue
            sy, sx = iy[sel], ix[sel]
            n = sy.size
            for a, b in ((a1, b1), (a2, b2)):
                segments.extend(
                    self._pairs(px, py, sy, sx, np.full(n, a), np.full(n, b), iso)
                )
        return segments

    @staticmethod
    def _pairs(px, py, iy, ix, first, second, iso) -> List[ContourSegment]:
        x1 = px[first, iy, ix].tolist()
        y1 = py[first, iy, ix].tolist()
        x2 = px[second, iy, ix].tolist()
        y2 = py[second, iy, ix].tolist()
        return [
            ContourSegment(a, b, c, d, iso) for a, b, c, d in zip(x1, y1, x2, y2)
        ]


def extract_contours(
    source: Union[TerrainGrid, np.ndarray],
    window: Optional[Sequence[int]] = None,
    interval: Optional[float] = None,
    resolve_saddles: bool = False,
) -> List[ContourSegment]:
    """
    Extract isoline segments inside a window.

    Args:
        source: Terrain grid or a 2D elevation array
        window: ``(min_x, min_y, max_x, max_y)`` cell range; whole grid when omitted
        interval: Elevation spacing between levels, floored at
            ``settings.min_contour_interval``
        resolve_saddles: Split four-crossing cells instead of dropping them

    Returns:
        Unordered list of ContourSegment in grid coordinates
    """
    if interval is None:
        interval = settings.default_contour_interval
    if not interval > 0:
        raise ValueError(f"Contour interval must be positive, got {interval}")
    interval = max(float(interval), settings.min_contour_interval)

    extractor = ContourExtractor(source, window, resolve_saddles)
    segments = extractor.extract(interval)
    logger.debug(
        "Contours extracted",
        window=tuple(extractor.window),
        interval=interval,
        segments=len(segments),
    )
    return segments
