"""Tests for contour tracing of terrain into obstacles."""

import logging

import pytest

from tilemaze.builder import Cursor, build_obstacles, optimize, trace_step
from tilemaze.config import TracingConfig
from tilemaze.layer import TerrainLayer
from tilemaze.obstacle import Obstacle
from tilemaze.rectangles import Rect
from tilemaze.tiles import TerrainCode
from tilemaze.vector import Direction, Vector2i

E = TerrainCode.EMPTY
H = TerrainCode.WALL_H
V = TerrainCode.WALL_V
NW = TerrainCode.ARC_NW
NE = TerrainCode.ARC_NE
SE = TerrainCode.ARC_SE
SW = TerrainCode.ARC_SW


def ring(num_rows: int, num_cols: int) -> list[list[int]]:
    """Rows of a closed wall ring with rounded corners."""
    inner = num_cols - 2
    rows = [[NW] + [H] * inner + [NE]]
    rows += [[V] + [E] * inner + [V] for _ in range(num_rows - 2)]
    rows.append([SW] + [H] * inner + [SE])
    return rows


def with_block(rows: list[list[int]], row: int, col: int) -> list[list[int]]:
    """Place a 2x3 rounded wall block with its top-left tile at (row, col)."""
    rows = [list(r) for r in rows]
    rows[row][col:col + 3] = [NW, H, NE]
    rows[row + 1][col:col + 3] = [SW, H, SE]
    return rows


def trace(rows, config=None):
    return build_obstacles(TerrainLayer.from_rows(rows), config)


def straight_vectors(obstacle: Obstacle) -> list[Vector2i]:
    return [s.vector for s in obstacle.segments if s.is_straight_line()]


class TestCursor:
    def test_points(self):
        cursor = Cursor((0, 0), (1, 0))
        assert cursor.points(Direction.DOWN)
        assert not cursor.points(Direction.UP)

    def test_no_previous_tile_points_nowhere(self):
        cursor = Cursor(None, (1, 1))
        assert not any(cursor.points(d) for d in Direction)

    def test_moved(self):
        assert Cursor(None, (1, 1)).moved(Direction.LEFT) == Cursor((1, 1), (1, 0))


class TestTraceStep:
    def test_wall_keeps_winding(self):
        step = trace_step(H, Cursor((0, 0), (0, 1)), False)
        assert step.vector == Vector2i(8, 0)
        assert step.ccw is False
        assert step.direction is Direction.RIGHT

    def test_vertical_wall_upwards(self):
        step = trace_step(V, Cursor((2, 0), (1, 0)), True)
        assert step.vector == Vector2i(0, -8)
        assert step.direction is Direction.UP

    def test_door_behaves_like_horizontal_wall(self):
        step = trace_step(TerrainCode.DOOR, Cursor((0, 2), (0, 1)), True)
        assert step.vector == Vector2i(-8, 0)

    def test_wall_from_wrong_side(self):
        assert trace_step(V, Cursor((0, 0), (0, 1)), True) is None
        assert trace_step(H, Cursor((0, 0), (1, 0)), True) is None

    @pytest.mark.parametrize("code,prev,cur,vector,ccw,direction", [
        (SW, (0, 0), (1, 0), (4, 4), True, Direction.RIGHT),
        (SW, (1, 1), (1, 0), (-4, -4), False, Direction.UP),
        (SE, (0, 0), (1, 0), (-4, 4), False, Direction.LEFT),
        (SE, (1, 0), (1, 1), (4, -4), True, Direction.UP),
        (NE, (1, 0), (0, 0), (-4, -4), True, Direction.LEFT),
        (NE, (0, 0), (0, 1), (4, 4), False, Direction.DOWN),
        (NW, (1, 0), (0, 0), (4, -4), False, Direction.RIGHT),
        (NW, (0, 1), (0, 0), (-4, 4), True, Direction.DOWN),
    ])
    def test_arcs(self, code, prev, cur, vector, ccw, direction):
        step = trace_step(code, Cursor(prev, cur), not ccw)
        assert step.vector == Vector2i(*vector)
        assert step.ccw is ccw
        assert step.direction is direction

    def test_angled_arcs_trace_like_plain_arcs(self):
        cursor = Cursor((1, 0), (0, 0))
        assert trace_step(TerrainCode.ANG_ARC_NE, cursor, True) == trace_step(NE, cursor, True)

    def test_arc_from_wrong_side(self):
        assert trace_step(SW, Cursor((2, 0), (1, 0)), True) is None

    def test_unexpected_content(self):
        cursor = Cursor((0, 0), (0, 1))
        assert trace_step(E, cursor, True) is None
        assert trace_step(TerrainCode.TUNNEL, cursor, True) is None

    def test_tile_size(self):
        step = trace_step(V, Cursor((0, 0), (1, 0)), True, tile_size=16)
        assert step.vector == Vector2i(0, 16)
        step = trace_step(SW, Cursor((0, 0), (1, 0)), True, tile_size=16)
        assert step.vector == Vector2i(8, 8)


class TestOptimize:
    def test_merges_straight_runs(self):
        o = Obstacle(Vector2i(0, 0))
        o.add_segment(Vector2i(8, 0), True, TerrainCode.DOOR)
        o.add_segment(Vector2i(8, 0), True, H)
        o.add_segment(Vector2i(4, 4), False, NE)
        o.add_segment(Vector2i(0, 8), False, V)
        o.add_segment(Vector2i(0, 8), True, V)
        optimized = optimize(o)
        assert [s.vector for s in optimized.segments] == [
            Vector2i(16, 0), Vector2i(4, 4), Vector2i(0, 16),
        ]
        assert optimized.segment(0).encoding == TerrainCode.DOOR
        assert optimized.segment(2).ccw is False
        assert optimized.end_point == o.end_point

    def test_keeps_flags(self):
        o = Obstacle(Vector2i(0, 0), border_obstacle=True)
        o.incomplete = True
        optimized = optimize(o)
        assert optimized.border_obstacle
        assert optimized.incomplete
        assert optimized.start_point == o.start_point


class TestRings:
    def test_small_ring(self):
        obstacles, errors = trace(ring(4, 4))
        assert errors == []
        assert len(obstacles) == 1
        (o,) = obstacles
        assert o.is_closed()
        assert o.border_obstacle
        assert not o.incomplete
        assert o.start_point == Vector2i(8, 4)
        assert o.num_segments == 8
        assert straight_vectors(o) == [
            Vector2i(0, 16), Vector2i(16, 0), Vector2i(0, -16), Vector2i(-16, 0),
        ]
        assert o.encoding() == "dcgbfceb"

    def test_small_ring_inner_area(self):
        (o,) = trace(ring(4, 4))[0]
        rects = o.inner_area_rectangles()
        assert sum(r.area for r in rects) == 512

    def test_larger_ring(self):
        (o,) = trace(ring(6, 6))[0]
        assert o.is_closed()
        assert straight_vectors(o) == [
            Vector2i(0, 32), Vector2i(32, 0), Vector2i(0, -32), Vector2i(-32, 0),
        ]

    def test_ring_not_in_first_column_is_border(self):
        rows = [[E] + r + [E] for r in ring(4, 4)]
        (o,) = trace(rows)[0]
        assert o.border_obstacle
        assert o.start_point == Vector2i(16, 4)


class TestInnerObstacles:
    def test_block_inside_ring(self):
        obstacles, errors = trace(with_block(ring(6, 7), 2, 2))
        assert errors == []
        assert len(obstacles) == 2
        (inner,) = [o for o in obstacles if not o.border_obstacle]
        assert inner.is_closed()
        assert inner.start_point == Vector2i(24, 20)
        assert inner.encoding() == "dgbfeb"
        assert inner.inner_area_rectangles() == [Rect(24, 20, 8, 8)]

    def test_encoding_is_translation_invariant(self):
        rows = with_block(with_block(ring(8, 12), 2, 2), 4, 7)
        obstacles, _ = trace(rows)
        inner = sorted(
            (o for o in obstacles if not o.border_obstacle),
            key=lambda o: o.start_point.x,
        )
        assert len(inner) == 2
        assert inner[0].encoding() == inner[1].encoding()
        assert inner[1].start_point - inner[0].start_point == Vector2i(40, 16)

    def test_every_closed_obstacle_sums_to_zero(self):
        obstacles, _ = trace(with_block(ring(6, 7), 2, 2))
        for o in obstacles:
            total = Vector2i(0, 0)
            for s in o.segments:
                total = total + s.vector
            assert total == Vector2i(0, 0)


class TestBorderObstacles:
    def test_horizontal_wall_from_left_border(self):
        rows = [[H, H, H, H], [E, E, E, E], [E, E, E, E]]
        obstacles, errors = trace(rows)
        assert errors == []
        (o,) = obstacles
        assert o.border_obstacle
        assert not o.is_closed()
        assert o.start_point == Vector2i(0, 4)
        assert [s.vector for s in o.segments] == [Vector2i(32, 0)]

    def test_arc_start_at_left_border(self):
        (o,) = trace([[V, E], [SE, E]])[0]
        assert o.border_obstacle
        assert o.start_point == Vector2i(0, 12)
        assert [s.vector for s in o.segments] == [Vector2i(4, -4), Vector2i(0, -8)]
        assert o.encoding() == "fc"

    def test_horizontal_wall_from_right_border(self):
        (o,) = trace([[E, E], [E, H]])[0]
        assert o.border_obstacle
        assert o.start_point == Vector2i(16, 12)
        assert o.end_point == Vector2i(8, 12)

    def test_empty_terrain(self):
        assert trace([[E, E], [E, E]]) == (set(), [])
        assert build_obstacles(TerrainLayer(0, 0)) == (set(), [])


class TestMalformedTerrain:
    def test_dead_end_reports_error_tile(self):
        obstacles, errors = trace([[E, NW, E], [E, V, E], [E, E, E]])
        assert errors == [(2, 1)]
        (o,) = obstacles
        assert not o.is_closed()
        assert not o.incomplete

    def test_wall_running_off_the_map(self):
        obstacles, errors = trace([[E, NW, E], [E, V, E], [E, V, E]])
        assert errors == []
        (o,) = obstacles
        assert o.end_point == Vector2i(12, 24)

    def test_step_limit_marks_obstacle_incomplete(self, caplog):
        config = TracingConfig(max_trace_steps=2)
        with caplog.at_level(logging.WARNING):
            obstacles, _ = trace(ring(6, 6), config)
        (o,) = obstacles
        assert o.incomplete
        assert not o.is_closed()
        assert "stopped after 2 steps" in caplog.text

    def test_tile_size_from_config(self):
        (o,) = trace(ring(4, 4), TracingConfig(tile_size=16))[0]
        assert o.start_point == Vector2i(16, 8)
        assert o.is_closed()
