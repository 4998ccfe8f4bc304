"""Tests for the landmark path network."""

import math

import numpy as np
import pytest

from py_terrain.core.models import Edge, FieldPlot, MaskLabel, PathGraph
from py_terrain.core.path_network import PathNetworkBuilder, PathOptions
from py_terrain.utils.random import make_rng


def open_labels(size=400, forest=20, radius=50):
    """Mask with a forest band and a square-ish settlement, everything else unset."""
    labels = np.full((size, size), MaskLabel.UNSET, dtype=np.uint8)
    labels[:forest, :] = MaskLabel.DENSE_FOREST
    labels[-forest:, :] = MaskLabel.DENSE_FOREST
    labels[:, :forest] = MaskLabel.DENSE_FOREST
    labels[:, -forest:] = MaskLabel.DENSE_FOREST
    c = size // 2
    labels[c - radius + 1 : c + radius, c - radius + 1 : c + radius] = MaskLabel.SETTLEMENT
    return labels


def make_builder(labels=None, seed="paths", forest=20):
    labels = open_labels(forest=forest) if labels is None else labels
    h, w = labels.shape
    return PathNetworkBuilder(labels, (w // 2, h // 2), 50.0, forest, make_rng(seed))


class TestPathGraph:
    """Test the graph container."""

    def test_edges_are_undirected(self):
        graph = PathGraph()
        for x in range(3):
            graph.add_point(x, 0)
        assert graph.add_edge(2, 0)
        assert not graph.add_edge(0, 2)
        assert graph.has_edge(0, 2) and graph.has_edge(2, 0)
        assert graph.edges == {(0, 2)}

    def test_self_loop_rejected(self):
        graph = PathGraph()
        graph.add_point(0, 0)
        assert not graph.add_edge(0, 0)
        assert graph.edges == set()

    def test_connectivity(self):
        graph = PathGraph()
        for x in range(4):
            graph.add_point(x, x)
        graph.add_edge(0, 1)
        graph.add_edge(2, 3)
        assert not graph.is_connected()
        assert graph.reachable_from(0) == {0, 1}
        graph.add_edge(1, 2)
        assert graph.is_connected()

    def test_single_point_connected(self):
        graph = PathGraph()
        graph.add_point(5, 5)
        assert graph.is_connected()


class TestPathNetwork:
    """Test the path network stages."""

    @pytest.fixture
    def builder(self):
        return make_builder()

    def test_points_avoid_blocked_cells(self, builder):
        builder.place_points()
        points = builder.graph.points
        assert points[0] == (200, 200)
        assert 2 <= len(points) <= 25
        for x, y in points[1:]:
            assert builder.labels[y, x] not in (MaskLabel.DENSE_FOREST, MaskLabel.SETTLEMENT)
            assert math.hypot(x - 200, y - 200) >= 60

    def test_spanning_tree(self):
        builder = make_builder()
        for p in [(0, 0), (10, 0), (20, 0), (0, 5)]:
            builder.graph.add_point(*p)
        builder.connect_spanning_tree()
        assert builder.graph.edges == {(0, 1), (1, 2), (0, 3)}

    def test_spanning_tree_has_n_minus_one_edges(self, builder):
        builder.place_points()
        builder.connect_spanning_tree()
        assert len(builder.graph.edges) == len(builder.graph.points) - 1
        assert builder.graph.is_connected()

    def test_nearest_links_present(self, builder):
        builder.place_points()
        builder.connect_spanning_tree()
        builder.add_nearest_links()
        pts = np.asarray(builder.graph.points, dtype=float)
        for i in range(1, len(pts)):
            d = np.hypot(*(pts - pts[i]).T)
            d[i] = np.inf
            nearest = np.flatnonzero(d == d.min())
            assert any(builder.graph.has_edge(i, int(j)) for j in nearest)

    def test_field_near_existing_point_reuses_it(self, builder):
        builder.graph.add_point(200, 200)
        builder.graph.add_point(300, 300)
        builder.graph.add_edge(0, 1)
        plot = FieldPlot(302, 303, 40.0, 30.0, 0.0, Edge.TOP)
        builder.connect_fields([plot])
        assert len(builder.graph.points) == 2

    def test_far_field_gets_new_point(self, builder):
        builder.graph.add_point(200, 200)
        builder.graph.add_point(300, 300)
        builder.graph.add_edge(0, 1)
        plot = FieldPlot(100, 310, 40.0, 30.0, 0.0, Edge.TOP)
        builder.connect_fields([plot])
        assert builder.graph.points[-1] == (100, 310)
        assert builder.graph.has_edge(2, 0)
        assert builder.graph.is_connected()

    def test_build_connected(self, builder):
        graph = builder.build([])
        assert graph.is_connected()
        assert np.any(builder.labels == MaskLabel.ROAD)

    def test_roads_never_overwrite(self, builder):
        before = builder.labels.copy()
        builder.build([])
        protected = (before == MaskLabel.DENSE_FOREST) | (before == MaskLabel.SETTLEMENT)
        np.testing.assert_array_equal(builder.labels[protected], before[protected])


class TestRoadWidth:
    """Test road diameter tapering."""

    def test_widest_next_to_settlement(self):
        builder = make_builder()
        assert builder.road_width(50.0) == 8
        assert builder.road_width(0.0) == 8

    def test_narrowest_at_edge(self):
        builder = make_builder()
        # span = 200 - 20 - 50 = 130
        assert builder.road_width(180.0) == 1
        assert builder.road_width(500.0) == 1

    def test_monotonic(self):
        builder = make_builder()
        widths = [builder.road_width(d) for d in range(50, 200)]
        assert all(a >= b for a, b in zip(widths, widths[1:]))

    def test_tiny_grid_span_floor(self):
        labels = np.full((20, 20), MaskLabel.SETTLEMENT, dtype=np.uint8)
        builder = PathNetworkBuilder(labels, (10, 10), 50.0, 15, make_rng("tiny"))
        assert builder.road_width(0.0) == 8
        assert builder.road_width(60.0) == 1


class TestStampDisc:
    """Test road rasterization."""

    @pytest.fixture
    def builder(self):
        labels = np.full((30, 30), MaskLabel.UNSET, dtype=np.uint8)
        labels[:, 15:] = MaskLabel.MEADOW
        labels[14:17, 13:18] = MaskLabel.FIELD
        return PathNetworkBuilder(labels, (15, 15), 5.0, 0, make_rng("stamp"), PathOptions())

    def test_disc_shape(self, builder):
        builder.stamp_disc(5, 5, 5)
        road = builder.labels == MaskLabel.ROAD
        assert road[5, 5] and road[5, 7] and road[7, 5]
        assert not road[7, 7]
        assert road.sum() == 13

    def test_single_cell(self, builder):
        builder.stamp_disc(3, 25, 1)
        assert (builder.labels == MaskLabel.ROAD).sum() == 1

    def test_overwrites_meadow_not_field(self, builder):
        builder.stamp_disc(15, 15, 8)
        assert builder.labels[15, 19] == MaskLabel.ROAD
        assert np.all(builder.labels[14:17, 13:18] == MaskLabel.FIELD)

    def test_clipped_at_border(self, builder):
        builder.stamp_disc(0, 0, 8)
        assert builder.labels[0, 0] == MaskLabel.ROAD

    def test_zero_length_edge(self, builder):
        builder._draw_path((5, 25), (5, 25), 0.0, 0.0)
        road = np.argwhere(builder.labels == MaskLabel.ROAD)
        assert len(road) > 0
        assert np.all(np.abs(road - [25, 5]).max(axis=1) <= 6)
