"""
Path network construction.

Process:
1. place_points() - settlement centre plus rejection-sampled waypoints
2. connect_spanning_tree() - Prim's minimum spanning tree by squared distance
3. add_nearest_links() - every point also joins its nearest neighbour
4. connect_fields() - field centroids not already served join the graph
5. rasterize() - edges are walked and stamped into the mask as roads
"""

import math
from dataclasses import dataclass
from typing import Sequence, Tuple

import numpy as np
import structlog
from scipy.spatial import cKDTree

from ..utils.random import uniform_int
from .models import FieldPlot, MaskLabel, PathGraph

logger = structlog.get_logger()


@dataclass
class PathOptions:
    """Path network parameters."""

    min_points: int = 15  # Inclusive bounds on the landmark count
    max_points: int = 25
    point_attempts: int = 100  # Tries per waypoint before giving up on it
    settlement_clearance: float = 10.0  # Extra distance kept from the settlement
    field_served_distance_sq: float = 16.0  # Centroids this close reuse a point
    max_road_width: int = 8  # Road diameter next to the settlement
    min_road_width: int = 1  # Road diameter at the map's effective edge
    wave_amplitude: float = 1.2  # Sinusoidal wander of the road centre line
    wave_frequency: float = 5.0
    jitter: float = 0.5  # Width of the uniform jitter band


class PathNetworkBuilder:
    """Builds the landmark graph and paints it into a label mask."""

    def __init__(
        self,
        labels: np.ndarray,
        center: Tuple[int, int],
        settlement_radius: float,
        forest_width: int,
        rng: np.random.Generator,
        options: PathOptions = None,
    ):
        """
        Initialize the builder.

        Args:
            labels: Mask label array (height, width), modified in place
            center: Settlement centre (x, y)
            settlement_radius: Radius of the settlement octagon
            forest_width: Width of the dense forest band along the border
            rng: Generator owned by the current generation call
            options: Path network parameters
        """
        self.labels = labels
        self.height, self.width = labels.shape
        self.center = center
        self.settlement_radius = settlement_radius
        self.forest_width = forest_width
        self.rng = rng
        self.options = options or PathOptions()
        self.graph = PathGraph()

    def build(self, fields: Sequence[FieldPlot]) -> PathGraph:
        """Run every stage and return the finished graph."""
        self.place_points()
        self.connect_spanning_tree()
        self.add_nearest_links()
        self.connect_fields(fields)
        self.rasterize()
        logger.debug(
            "Path network built",
            points=len(self.graph.points),
            edges=len(self.graph.edges),
        )
        return self.graph

    def place_points(self) -> None:
        """Settlement centre at index 0, then waypoints off forest and settlement."""
        opts = self.options
        cx, cy = self.center
        self.graph.add_point(cx, cy)

        target = uniform_int(self.rng, opts.min_points, opts.max_points + 1)
        min_dist = self.settlement_radius + opts.settlement_clearance
        blocked = (MaskLabel.DENSE_FOREST, MaskLabel.SETTLEMENT)

        for _ in range(1, target):
            for _ in range(opts.point_attempts):
                px = uniform_int(self.rng, 0, self.width)
                py = uniform_int(self.rng, 0, self.height)
                if self.labels[py, px] in blocked:
                    continue
                if math.hypot(px - cx, py - cy) < min_dist:
                    continue
                self.graph.add_point(px, py)
                break

        if len(self.graph.points) < target:
            logger.debug(
                "Waypoint shortfall", requested=target, placed=len(self.graph.points)
            )

    def connect_spanning_tree(self) -> None:
        """Prim's algorithm over squared Euclidean distance, rooted at the settlement."""
        n = len(self.graph.points)
        if n < 2:
            return

        pts = np.asarray(self.graph.points, dtype=np.float64)
        in_tree = np.zeros(n, dtype=bool)
        in_tree[0] = True
        best = np.sum((pts - pts[0]) ** 2, axis=1)
        parent = np.zeros(n, dtype=int)

        for _ in range(n - 1):
            candidates = np.where(in_tree, np.inf, best)
            nxt = int(np.argmin(candidates))
            self.graph.add_edge(int(parent[nxt]), nxt)
            in_tree[nxt] = True

            dist = np.sum((pts - pts[nxt]) ** 2, axis=1)
            closer = (~in_tree) & (dist < best)
            best[closer] = dist[closer]
            parent[closer] = nxt

    def add_nearest_links(self) -> None:
        """Join every waypoint to its nearest other point when not already linked."""
        n = len(self.graph.points)
        if n < 2:
            return

        tree = cKDTree(np.asarray(self.graph.points, dtype=np.float64))
        _, idx = tree.query(self.graph.points, k=2)
        for i in range(1, n):
            first, second = int(idx[i][0]), int(idx[i][1])
            nearest = second if first == i else first
            self.graph.add_edge(i, nearest)

    def connect_fields(self, fields: Sequence[FieldPlot]) -> None:
        """Give every field centroid a road, adding it as a point when needed."""
        for plot in fields:
            fx, fy = int(plot.center_x), int(plot.center_y)
            tree = cKDTree(np.asarray(self.graph.points, dtype=np.float64))
            dist, nearest = tree.query((fx, fy))
            if dist * dist <= self.options.field_served_distance_sq:
                continue
            idx = self.graph.add_point(fx, fy)
            self.graph.add_edge(idx, int(nearest))

    def road_width(self, dist: float) -> int:
        """Road diameter, shrinking linearly from the settlement to the map edge."""
        opts = self.options
        span = min(self.width, self.height) / 2 - self.forest_width - self.settlement_radius
        span = max(span, 1.0)
        width = opts.max_road_width - (
            (opts.max_road_width - opts.min_road_width)
            * (dist - self.settlement_radius)
            / span
        )
        return int(np.clip(math.floor(width + 0.5), opts.min_road_width, opts.max_road_width))

    def rasterize(self) -> None:
        """Stamp every edge into the mask."""
        phase_x = self.rng.random() * 1000
        phase_y = self.rng.random() * 1000
        for a, b in sorted(self.graph.edges):
            self._draw_path(self.graph.points[a], self.graph.points[b], phase_x, phase_y)

    def _draw_path(
        self,
        start: Tuple[int, int],
        end: Tuple[int, int],
        phase_x: float,
        phase_y: float,
    ) -> None:
        opts = self.options
        x1, y1 = start
        x2, y2 = end
        steps = max(abs(x2 - x1), abs(y2 - y1))
        t = np.arange(steps + 1) / steps if steps > 0 else np.zeros(1)

        wave = opts.wave_frequency * t
        jitter_x = (self.rng.random(t.size) - 0.5) * opts.jitter
        jitter_y = (self.rng.random(t.size) - 0.5) * opts.jitter
        xs = x1 + (x2 - x1) * t + np.sin(wave + phase_x) * opts.wave_amplitude + jitter_x
        ys = y1 + (y2 - y1) * t + np.cos(wave + phase_y) * opts.wave_amplitude + jitter_y

        cx, cy = self.center
        for xi, yi in zip(np.floor(xs + 0.5).astype(int), np.floor(ys + 0.5).astype(int)):
            if xi < 0 or xi >= self.width or yi < 0 or yi >= self.height:
                continue
            diameter = self.road_width(math.hypot(xi - cx, yi - cy))
            self.stamp_disc(int(xi), int(yi), diameter)

    def stamp_disc(self, x: int, y: int, diameter: int) -> None:
        """Paint a disc of road, touching only unset or meadow cells."""
        half = diameter // 2
        x0, x1 = max(x - half, 0), min(x + half + 1, self.width)
        y0, y1 = max(y - half, 0), min(y + half + 1, self.height)

        ys, xs = np.ogrid[y0:y1, x0:x1]
        disc = (xs - x) ** 2 + (ys - y) ** 2 <= half * half
        window = self.labels[y0:y1, x0:x1]
        writable = (window == MaskLabel.UNSET) | (window == MaskLabel.MEADOW)
        window[disc & writable] = MaskLabel.ROAD
