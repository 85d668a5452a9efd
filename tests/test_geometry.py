"""Tests for rect and polygon geometry helpers."""

import pytest

from floorplan_solver.utils.geometry import GridOps, PolygonOps, RectOps, snap


class TestGridOps:
    def test_snap_rounds_to_grid(self):
        assert snap(1.02) == 1.0
        assert snap(1.03) == 1.05
        assert snap(-0.01) == 0.0

    def test_snap_rect(self):
        assert GridOps.snap_rect((0.01, 1.04, 2.98, 4.0)) == (0.0, 1.05, 3.0, 4.0)


class TestRectOps:
    def test_edge_touching_rects_do_not_overlap(self):
        assert not RectOps.overlaps((0, 0, 2, 2), (2, 0, 4, 2))
        assert RectOps.overlaps((0, 0, 2, 2), (1, 1, 3, 3))

    def test_overlap_area(self):
        assert RectOps.overlap_area((0, 0, 2, 2), (1, 1, 3, 3)) == pytest.approx(1.0)
        assert RectOps.overlap_area((0, 0, 2, 2), (2, 0, 4, 2)) == 0.0

    def test_shared_edge_length(self):
        assert RectOps.shared_edge_length((0, 0, 2, 2), (2, 1, 4, 5)) == pytest.approx(1.0)
        assert RectOps.shared_edge_length((0, 0, 4, 2), (1, 2, 3, 3)) == pytest.approx(2.0)
        # Corner contact only
        assert RectOps.shared_edge_length((0, 0, 2, 2), (2, 2, 4, 4)) == 0.0

    def test_facing_edge(self):
        assert RectOps.facing_edge((0, 0, 2, 2), (2, 0, 4, 2)) == "east"
        assert RectOps.facing_edge((2, 0, 4, 2), (0, 0, 2, 2)) == "west"
        assert RectOps.facing_edge((0, 0, 2, 2), (0, 2, 2, 4)) == "north"
        assert RectOps.facing_edge((0, 2, 2, 4), (0, 0, 2, 2)) == "south"
        assert RectOps.facing_edge((0, 0, 1, 1), (3, 3, 4, 4)) is None

    def test_touched_edges(self):
        bounds = (0, 0, 10, 10)
        assert RectOps.touches_edge((0, 0, 2, 2), bounds, "south")
        assert not RectOps.touches_edge((0, 0, 2, 2), bounds, "north")
        assert RectOps.touched_edges((0, 0, 10, 2), bounds) == ["south", "east", "west"]

    def test_aspect_is_long_over_short(self):
        assert RectOps.aspect((0, 0, 4, 2)) == pytest.approx(2.0)
        assert RectOps.aspect((0, 0, 2, 4)) == pytest.approx(2.0)

    def test_inside(self):
        assert RectOps.inside((1, 1, 2, 2), (0, 0, 10, 10))
        assert not RectOps.inside((9, 9, 11, 10), (0, 0, 10, 10))


class TestPolygonOps:
    L_SHAPE = [(0, 0), (10, 0), (10, 5), (5, 5), (5, 10), (0, 10)]

    def test_rect_inside_l_shape(self):
        polygon = PolygonOps.make_polygon(self.L_SHAPE)
        assert PolygonOps.rect_inside((0, 0, 5, 10), polygon)
        assert PolygonOps.rect_inside((0, 0, 10, 5), polygon)
        assert not PolygonOps.rect_inside((4, 4, 7, 7), polygon)

    def test_rect_overlaps(self):
        polygon = PolygonOps.make_polygon(self.L_SHAPE)
        assert PolygonOps.rect_overlaps((4, 4, 7, 7), polygon)
        assert not PolygonOps.rect_overlaps((5, 5, 10, 10), polygon)

    def test_union_rects_makes_one_shape(self):
        shape = PolygonOps.union_rects([(0, 0, 4, 1), (0, 1, 1, 4)])
        assert shape.area == pytest.approx(7.0)
        assert len(PolygonOps.polygon_points(shape)) >= 6

    def test_exterior_contact_length(self):
        polygon = PolygonOps.make_polygon(self.L_SHAPE)
        assert PolygonOps.exterior_contact_length((0, 0, 2, 2), polygon) == pytest.approx(4.0)
        assert not PolygonOps.rect_touches_exterior((1, 1, 2, 2), polygon)

    def test_bounds(self):
        assert PolygonOps.bounds(self.L_SHAPE) == (0, 0, 10, 10)
