"""Vector representation of traced wall obstacles."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass

from tilemaze.rectangles import Rect, decompose_polygon
from tilemaze.tiles import TerrainCode
from tilemaze.vector import Vector2i

Decomposer = Callable[[Sequence[Vector2i]], list[Rect]]

_NW = frozenset({TerrainCode.ARC_NW, TerrainCode.ANG_ARC_NW})
_NE = frozenset({TerrainCode.ARC_NE, TerrainCode.ANG_ARC_NE})
_SE = frozenset({TerrainCode.ARC_SE, TerrainCode.ANG_ARC_SE})
_SW = frozenset({TerrainCode.ARC_SW, TerrainCode.ANG_ARC_SW})

# Arcs of these corners are split into a vertical edge followed by a
# horizontal one when computing the inner polygon.
_VERTICAL_FIRST = _NW | _SE


def _sign(value: int) -> int:
    return (value > 0) - (value < 0)


@dataclass(frozen=True)
class ObstacleSegment:
    """One edge of an obstacle contour.

    Straight segments run along walls; arcs are stored as half-tile
    diagonal vectors. ``encoding`` is the terrain code of the tile the
    segment was traced from.
    """

    start_point: Vector2i
    vector: Vector2i
    ccw: bool
    encoding: int

    @property
    def end_point(self) -> Vector2i:
        return self.start_point + self.vector

    def is_straight_line(self) -> bool:
        return self.vector.x == 0 or self.vector.y == 0

    def is_vertical_line(self) -> bool:
        return self.vector.x == 0 and self.vector.y != 0

    def is_horizontal_line(self) -> bool:
        return self.vector.y == 0 and self.vector.x != 0

    def is_rounded_corner(self) -> bool:
        return not self.is_straight_line()

    def corner_point(self) -> Vector2i:
        """Return the tile centre this arc segment rounds off."""
        if not self.is_rounded_corner():
            raise ValueError("Only arc segments have a corner point.")
        a = Vector2i(self.start_point.x + self.vector.x, self.start_point.y)
        b = Vector2i(self.start_point.x, self.start_point.y + self.vector.y)
        min_x, max_x = min(a.x, b.x), max(a.x, b.x)
        min_y, max_y = min(a.y, b.y), max(a.y, b.y)
        if self.encoding in _NW:
            return Vector2i(min_x, min_y)
        if self.encoding in _NE:
            return Vector2i(max_x, min_y)
        if self.encoding in _SE:
            return Vector2i(max_x, max_y)
        return Vector2i(min_x, max_y)


class Obstacle:
    """Contour path of one connected wall structure.

    The path starts at ``start_point`` and is described by a list of
    segments, each starting where the previous one ended. An obstacle is
    closed when the path returns to its start point. ``incomplete`` marks an
    obstacle whose tracing was cut off by the step limit.
    """

    def __init__(self, start_point: Vector2i, border_obstacle: bool = False) -> None:
        self.start_point = start_point
        self.border_obstacle = border_obstacle
        self.incomplete = False
        self.segments: list[ObstacleSegment] = []
        self._inner_rectangles: list[Rect] | None = None

    def add_segment(self, vector: Vector2i, ccw: bool, encoding: int) -> ObstacleSegment:
        """Append a segment starting at the current end point."""
        segment = ObstacleSegment(self.end_point, vector, ccw, int(encoding))
        self.segments.append(segment)
        self._inner_rectangles = None
        return segment

    @property
    def end_point(self) -> Vector2i:
        if not self.segments:
            return self.start_point
        return self.segments[-1].end_point

    @property
    def num_segments(self) -> int:
        return len(self.segments)

    def segment(self, index: int) -> ObstacleSegment:
        return self.segments[index]

    def is_closed(self) -> bool:
        return self.end_point == self.start_point

    def points(self) -> list[Vector2i]:
        """Return the start point followed by the end point of every segment."""
        return [self.start_point, *(s.end_point for s in self.segments)]

    def corner_points(self) -> list[Vector2i]:
        return [s.corner_point() for s in self.segments if s.is_rounded_corner()]

    def encoding(self) -> str:
        """Compact shape fingerprint, one letter per segment tile code."""
        return "".join(chr(ord("a") + s.encoding) for s in self.segments)

    def inner_polygon(self) -> list[Vector2i]:
        """Return the axis-aligned polygon enclosed by this closed obstacle.

        Arcs are replaced by two axis-aligned half edges, there-and-back
        spurs are cancelled and runs of edges in the same direction are
        merged. The result is an open point list.
        """
        if not self.is_closed():
            raise ValueError("Inner polygon is only defined for closed obstacles.")

        edges: list[Vector2i] = []
        for segment in self.segments:
            v = segment.vector
            if segment.is_straight_line():
                edges.append(v)
            elif segment.encoding in _VERTICAL_FIRST:
                edges += [Vector2i(0, v.y), Vector2i(v.x, 0)]
            else:
                edges += [Vector2i(v.x, 0), Vector2i(0, v.y)]

        stack: list[Vector2i] = []
        for edge in edges:
            if stack and stack[-1] == -edge:
                stack.pop()
            else:
                stack.append(edge)

        start = self.start_point
        while len(stack) >= 2 and stack[-1] == -stack[0]:
            start = start + stack[0]
            stack = stack[1:-1]

        merged: list[Vector2i] = []
        for edge in stack:
            if merged and (
                _sign(merged[-1].x) == _sign(edge.x)
                and _sign(merged[-1].y) == _sign(edge.y)
            ):
                merged[-1] = merged[-1] + edge
            else:
                merged.append(edge)

        polygon = [start]
        point = start
        for edge in merged:
            point = point + edge
            polygon.append(point)
        if len(polygon) > 1 and polygon[-1] == polygon[0]:
            polygon.pop()
        return polygon

    def inner_area_rectangles(self, decompose: Decomposer | None = None) -> list[Rect]:
        """Return rectangles covering the inner area of this closed obstacle.

        The result of the default decomposition is cached until the next
        :meth:`add_segment` call.
        """
        if decompose is not None:
            return decompose(self.inner_polygon())
        if self._inner_rectangles is None:
            self._inner_rectangles = decompose_polygon(self.inner_polygon())
        return list(self._inner_rectangles)

    def __repr__(self) -> str:
        return (
            f"Obstacle(start={self.start_point}, segments={self.num_segments}, "
            f"closed={self.is_closed()}, border={self.border_obstacle}, "
            f"incomplete={self.incomplete}, encoding={self.encoding()!r})"
        )
