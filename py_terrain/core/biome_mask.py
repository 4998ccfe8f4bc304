"""
Land cover mask generation.

The mask is painted in fixed priority order so that human-made features sit
on top of natural ones:
1. paint_forest_border() - dense forest band with an irregular inner edge
2. paint_settlement() - octagonal settlement at the grid centre
3. place_fields() - non-overlapping rotated fields with a ditch edge
4. build_paths() - landmark graph rasterized as roads
5. classify_remaining() / add_transition_bush() - forest, meadow and bush

A later pass never overwrites an earlier one, except the settlement which
takes priority over the forest band.
"""

import math
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np
import structlog
from scipy import ndimage

from ..utils.random import uniform_int
from .models import Edge, FieldPlot, MaskLabel, PathGraph
from .path_network import PathNetworkBuilder, PathOptions

logger = structlog.get_logger()


@dataclass
class MaskOptions:
    """Mask pipeline parameters."""

    forest_min_width: int = 15  # Dense forest band width, drawn in [min, max)
    forest_max_width: int = 30
    forest_jitter_low: int = -2  # Per-cell jitter of the band edge, in [low, high)
    forest_jitter_high: int = 2
    settlement_radius: float = 50.0
    settlement_diagonal: float = 0.4  # Diagonal correction of the octagon test
    min_fields: int = 12  # Field target, drawn in [min, max)
    max_fields: int = 18
    field_attempts: int = 200  # Total placement attempts across all fields
    field_min_radius: float = 100.0  # Centroid distance from the settlement
    field_max_radius: float = 400.0
    field_min_width: float = 30.0
    field_max_width: float = 70.0
    field_min_height: float = 20.0
    field_max_height: float = 50.0
    field_max_rotation: float = math.pi / 4
    forest_threshold: float = -0.45
    threshold_noise: float = 0.18  # Amplitude of the boundary perturbation
    # (x frequency, y frequency) of the three classification waves
    cover_waves: Tuple[Tuple[float, float], ...] = (
        (0.012, 0.014),
        (0.009, -0.011),
        (0.021, 0.017),
    )
    threshold_wave: Tuple[float, float] = (0.07, 0.11)
    path: PathOptions = field(default_factory=PathOptions)


@dataclass
class BiomeMask:
    """Output of one mask build; discarded once the grid is assembled."""

    labels: np.ndarray
    fields: List[FieldPlot]
    path_graph: PathGraph
    forest_width: int
    center: Tuple[int, int]


def field_in_bounds(plot: FieldPlot, width: int, height: int) -> bool:
    """Whether all four corners of the rotated rectangle lie on the grid."""
    cos_a, sin_a = math.cos(plot.angle), math.sin(plot.angle)
    for lx in (-plot.width / 2, plot.width / 2):
        for ly in (-plot.height / 2, plot.height / 2):
            x = plot.center_x + cos_a * lx - sin_a * ly
            y = plot.center_y + sin_a * lx + cos_a * ly
            if x < 0 or x > width - 1 or y < 0 or y > height - 1:
                return False
    return True


def field_footprint(plot: FieldPlot, width: int, height: int):
    """
    Cells covered by a field.

    Returns:
        Tuple of (row slice, column slice, local x, local y, inside mask); the
        local coordinates are in the field's unrotated frame
    """
    reach = math.hypot(plot.width, plot.height) / 2 + 1
    x0 = max(0, int(math.floor(plot.center_x - reach)))
    x1 = min(width, int(math.ceil(plot.center_x + reach)) + 1)
    y0 = max(0, int(math.floor(plot.center_y - reach)))
    y1 = min(height, int(math.ceil(plot.center_y + reach)) + 1)

    ys, xs = np.mgrid[y0:y1, x0:x1]
    dx = xs - plot.center_x
    dy = ys - plot.center_y
    cos_a, sin_a = math.cos(plot.angle), math.sin(plot.angle)
    local_x = cos_a * dx + sin_a * dy
    local_y = -sin_a * dx + cos_a * dy

    half_w, half_h = plot.width / 2, plot.height / 2
    inside = (
        (local_x >= -half_w) & (local_x < half_w) & (local_y >= -half_h) & (local_y < half_h)
    )
    return slice(y0, y1), slice(x0, x1), local_x, local_y, inside


class BiomeMaskBuilder:
    """Paints mask labels for one generation call."""

    def __init__(
        self,
        width: int,
        height: int,
        rng: np.random.Generator,
        options: Optional[MaskOptions] = None,
    ):
        """
        Initialize the builder.

        Args:
            width: Grid width in cells
            height: Grid height in cells
            rng: Generator owned by the current generation call
            options: Mask pipeline parameters
        """
        self.width = width
        self.height = height
        self.rng = rng
        self.options = options or MaskOptions()
        self.labels = np.full((height, width), MaskLabel.UNSET, dtype=np.uint8)
        self.center = (width // 2, height // 2)
        self.forest_width = 0
        self.fields: List[FieldPlot] = []
        self.path_graph = PathGraph()

    def build(self) -> BiomeMask:
        """Run all passes and hand back the finished mask."""
        self.paint_forest_border()
        self.paint_settlement()
        self.place_fields()
        self.build_paths()
        self.classify_remaining()
        self.add_transition_bush()

        return BiomeMask(
            labels=self.labels,
            fields=self.fields,
            path_graph=self.path_graph,
            forest_width=self.forest_width,
            center=self.center,
        )

    def paint_forest_border(self) -> None:
        opts = self.options
        self.forest_width = uniform_int(self.rng, opts.forest_min_width, opts.forest_max_width)

        ys, xs = np.mgrid[0 : self.height, 0 : self.width]
        edge_dist = np.minimum(
            np.minimum(xs, ys), np.minimum(self.width - 1 - xs, self.height - 1 - ys)
        )
        jitter = self.rng.integers(
            opts.forest_jitter_low, opts.forest_jitter_high, size=edge_dist.shape
        )
        self.labels[edge_dist + jitter < self.forest_width] = MaskLabel.DENSE_FOREST

    def settlement_mask(self) -> np.ndarray:
        """Octagon: ``max(|dx|,|dy|) + 0.4 * min(|dx|,|dy|) < radius``."""
        cx, cy = self.center
        ys, xs = np.mgrid[0 : self.height, 0 : self.width]
        dx = np.abs(xs - cx)
        dy = np.abs(ys - cy)
        reach = np.maximum(dx, dy) + self.options.settlement_diagonal * np.minimum(dx, dy)
        return reach < self.options.settlement_radius

    def paint_settlement(self) -> None:
        self.labels[self.settlement_mask()] = MaskLabel.SETTLEMENT

    def place_fields(self) -> None:
        """Rejection-sample fields around the settlement."""
        opts = self.options
        cx, cy = self.center
        target = uniform_int(self.rng, opts.min_fields, opts.max_fields)
        attempts = 0

        while len(self.fields) < target and attempts < opts.field_attempts:
            attempts += 1
            bearing = self.rng.random() * 2 * math.pi
            radius = opts.field_min_radius + self.rng.random() * (
                opts.field_max_radius - opts.field_min_radius
            )
            plot = FieldPlot(
                center_x=int(math.floor(cx + math.cos(bearing) * radius)),
                center_y=int(math.floor(cy + math.sin(bearing) * radius)),
                width=opts.field_min_width
                + self.rng.random() * (opts.field_max_width - opts.field_min_width),
                height=opts.field_min_height
                + self.rng.random() * (opts.field_max_height - opts.field_min_height),
                angle=(self.rng.random() - 0.5) * 2 * opts.field_max_rotation,
                ditch_edge=Edge.TOP,
            )
            if not field_in_bounds(plot, self.width, self.height):
                continue

            rows, cols, local_x, local_y, inside = field_footprint(
                plot, self.width, self.height
            )
            window = self.labels[rows, cols]
            if not inside.any() or np.any(window[inside] != MaskLabel.UNSET):
                continue

            plot.ditch_edge = Edge(uniform_int(self.rng, 0, 4))
            self._paint_field(window, local_x, local_y, inside, plot)
            self.fields.append(plot)

        if len(self.fields) < target:
            logger.debug(
                "Field shortfall", requested=target, placed=len(self.fields), attempts=attempts
            )

    def _paint_field(self, window, local_x, local_y, inside, plot: FieldPlot) -> None:
        half_w, half_h = plot.width / 2, plot.height / 2
        sides = {
            Edge.TOP: np.abs(local_y + half_h) < 1,
            Edge.RIGHT: np.abs(local_x - (half_w - 1)) < 1,
            Edge.BOTTOM: np.abs(local_y - (half_h - 1)) < 1,
            Edge.LEFT: np.abs(local_x + half_w) < 1,
        }
        ditch = sides[plot.ditch_edge]
        boundary = sides[Edge.TOP] | sides[Edge.RIGHT] | sides[Edge.BOTTOM] | sides[Edge.LEFT]

        window[inside & ~boundary] = MaskLabel.FIELD
        window[inside & boundary & ~ditch] = MaskLabel.ROAD
        window[inside & ditch] = MaskLabel.DITCH

    def build_paths(self) -> None:
        builder = PathNetworkBuilder(
            self.labels,
            self.center,
            self.options.settlement_radius,
            self.forest_width,
            self.rng,
            self.options.path,
        )
        self.path_graph = builder.build(self.fields)

    def cover_noise(self, xs: np.ndarray, ys: np.ndarray):
        """Three-wave cover noise and its perturbed forest threshold."""
        opts = self.options
        phases = self.rng.random(len(opts.cover_waves) + 1) * 1000
        (fx1, fy1), (fx2, fy2), (fx3, fy3) = opts.cover_waves
        noise = (
            np.sin(xs * fx1 + ys * fy1 + phases[0])
            + np.cos(xs * fx2 + ys * fy2 + phases[1])
            + np.sin(xs * fx3 + ys * fy3 + phases[2])
        )
        tx, ty = opts.threshold_wave
        threshold = opts.forest_threshold + opts.threshold_noise * np.sin(
            xs * tx + ys * ty + phases[3]
        )
        return noise, threshold

    def classify_remaining(self) -> None:
        """Every still-unset cell becomes forest or meadow."""
        ys, xs = np.mgrid[0 : self.height, 0 : self.width]
        noise, threshold = self.cover_noise(xs, ys)
        unset = self.labels == MaskLabel.UNSET
        forest = noise < threshold
        self.labels[unset & forest] = MaskLabel.FOREST
        self.labels[unset & ~forest] = MaskLabel.MEADOW

    def add_transition_bush(self) -> None:
        """Meadow touching forest (8-neighbourhood) becomes bush."""
        near_forest = ndimage.binary_dilation(
            self.labels == MaskLabel.FOREST, structure=np.ones((3, 3), dtype=bool)
        )
        self.labels[(self.labels == MaskLabel.MEADOW) & near_forest] = MaskLabel.BUSH
