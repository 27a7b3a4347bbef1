"""Tests for polygon to rectangle decomposition."""

import pytest

from tilemaze.rectangles import Rect, decompose_polygon, inside_mask
from tilemaze.vector import Vector2i


def poly(*coords):
    return [Vector2i(x, y) for x, y in coords]


def assert_disjoint(rects):
    for i, a in enumerate(rects):
        for b in rects[i + 1:]:
            overlap_x = min(a.max_x, b.max_x) - max(a.x, b.x)
            overlap_y = min(a.max_y, b.max_y) - max(a.y, b.y)
            assert overlap_x <= 0 or overlap_y <= 0, f"{a} overlaps {b}"


class TestRect:
    def test_properties(self):
        r = Rect(2, 3, 4, 5)
        assert r.area == 20
        assert r.max_x == 6
        assert r.max_y == 8


class TestInsideMask:
    def test_square(self):
        xs, ys, mask = inside_mask(poly((0, 0), (8, 0), (8, 8), (0, 8)))
        assert xs.tolist() == [0, 8]
        assert ys.tolist() == [0, 8]
        assert mask.tolist() == [[True]]

    def test_l_shape(self):
        _, _, mask = inside_mask(poly((0, 0), (16, 0), (16, 8), (8, 8), (8, 16), (0, 16)))
        assert mask.tolist() == [[True, True], [True, False]]


class TestDecompose:
    def test_rectangle(self):
        rects = decompose_polygon(poly((4, 0), (4, 8), (12, 8), (12, 0)))
        assert rects == [Rect(4, 0, 8, 8)]

    def test_l_shape(self):
        rects = decompose_polygon(poly((0, 0), (16, 0), (16, 8), (8, 8), (8, 16), (0, 16)))
        assert rects == [Rect(0, 0, 16, 8), Rect(0, 8, 8, 8)]
        assert sum(r.area for r in rects) == 192

    def test_cross(self):
        rects = decompose_polygon(poly(
            (8, 4), (8, 8), (4, 8), (4, 24), (8, 24), (8, 28),
            (24, 28), (24, 24), (28, 24), (28, 8), (24, 8), (24, 4),
        ))
        assert sum(r.area for r in rects) == 16 * 24 + 2 * 4 * 16
        assert_disjoint(rects)

    def test_u_shape(self):
        rects = decompose_polygon(poly(
            (0, 0), (8, 0), (8, 16), (16, 16), (16, 0), (24, 0), (24, 24), (0, 24),
        ))
        assert sum(r.area for r in rects) == 24 * 24 - 8 * 16
        assert_disjoint(rects)

    def test_orientation_does_not_matter(self):
        points = poly((0, 0), (16, 0), (16, 8), (8, 8), (8, 16), (0, 16))
        forward = decompose_polygon(points)
        backward = decompose_polygon(list(reversed(points)))
        assert sorted(forward, key=lambda r: (r.y, r.x)) == sorted(backward, key=lambda r: (r.y, r.x))


class TestInvalidPolygons:
    def test_too_few_points(self):
        with pytest.raises(ValueError, match="at least 4"):
            decompose_polygon(poly((0, 0), (8, 0), (8, 8)))

    def test_diagonal_edge(self):
        with pytest.raises(ValueError, match="not axis-aligned"):
            decompose_polygon(poly((0, 0), (8, 0), (8, 8), (2, 6)))

    def test_zero_length_edge(self):
        with pytest.raises(ValueError, match="zero-length"):
            decompose_polygon(poly((0, 0), (0, 0), (8, 0), (8, 8), (0, 8)))
