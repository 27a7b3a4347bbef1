"""Contour tracing of the terrain layer into obstacles.

An obstacle is traced tile by tile. A cursor remembers the previous and the
current tile; the tile content and the direction the cursor came from decide
which segment is emitted and where the cursor goes next. Inner obstacles
start at their north-west corner and are traced counter-clockwise; border
obstacles start at a tile in the first or last column.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from tilemaze.config import TracingConfig
from tilemaze.layer import TerrainLayer
from tilemaze.obstacle import Obstacle
from tilemaze.tiles import TS, TerrainCode
from tilemaze.vector import Direction, Tile, Vector2i

logger = logging.getLogger(__name__)

_T = TerrainCode

# (approach direction, arc vector in half tiles, ccw afterwards, exit direction)
_ArcRule = tuple[Direction, tuple[int, int], bool, Direction]

_SW_RULES: tuple[_ArcRule, ...] = (
    (Direction.DOWN, (1, 1), True, Direction.RIGHT),
    (Direction.LEFT, (-1, -1), False, Direction.UP),
)
_SE_RULES: tuple[_ArcRule, ...] = (
    (Direction.DOWN, (-1, 1), False, Direction.LEFT),
    (Direction.RIGHT, (1, -1), True, Direction.UP),
)
_NE_RULES: tuple[_ArcRule, ...] = (
    (Direction.UP, (-1, -1), True, Direction.LEFT),
    (Direction.RIGHT, (1, 1), False, Direction.DOWN),
)
_NW_RULES: tuple[_ArcRule, ...] = (
    (Direction.UP, (1, -1), False, Direction.RIGHT),
    (Direction.LEFT, (-1, 1), True, Direction.DOWN),
)

_ARC_RULES: dict[int, tuple[_ArcRule, ...]] = {
    _T.ARC_SW: _SW_RULES, _T.ANG_ARC_SW: _SW_RULES,
    _T.ARC_SE: _SE_RULES, _T.ANG_ARC_SE: _SE_RULES,
    _T.ARC_NE: _NE_RULES, _T.ANG_ARC_NE: _NE_RULES,
    _T.ARC_NW: _NW_RULES, _T.ANG_ARC_NW: _NW_RULES,
}

_STRAIGHT_RULES: dict[int, tuple[Direction, Direction]] = {
    _T.WALL_V: (Direction.DOWN, Direction.UP),
    _T.WALL_H: (Direction.RIGHT, Direction.LEFT),
    _T.DOOR: (Direction.RIGHT, Direction.LEFT),
}

# Border start contents: (arc vector in half tiles or None for a wall, ccw, direction)
_LEFT_BORDER_STARTS: dict[int, tuple[tuple[int, int] | None, bool, Direction]] = {
    _T.WALL_H: (None, True, Direction.RIGHT),
    _T.ARC_SE: ((1, -1), True, Direction.UP),
    _T.ARC_NE: ((1, 1), False, Direction.DOWN),
}
_RIGHT_BORDER_STARTS: dict[int, tuple[tuple[int, int] | None, bool, Direction]] = {
    _T.WALL_H: (None, True, Direction.LEFT),
    _T.ARC_SW: ((-1, -1), False, Direction.UP),
    _T.ARC_NW: ((-1, 1), True, Direction.DOWN),
}


@dataclass(frozen=True)
class Cursor:
    """Position of the tracer: the tile it came from and the tile it is on."""

    prev_tile: Tile | None
    current_tile: Tile

    def points(self, direction: Direction) -> bool:
        """Check whether the cursor arrived moving in *direction*."""
        return (
            self.prev_tile is not None
            and direction.step(self.prev_tile) == self.current_tile
        )

    def moved(self, direction: Direction) -> Cursor:
        return Cursor(self.current_tile, direction.step(self.current_tile))


@dataclass(frozen=True)
class TraceStep:
    """Outcome of visiting one tile: the segment to emit and where to go."""

    vector: Vector2i
    ccw: bool
    direction: Direction


def trace_step(content: int, cursor: Cursor, ccw: bool, tile_size: int = TS) -> TraceStep | None:
    """Return the step for a tile with *content*, or ``None`` if unexpected.

    Walls keep the current winding; every arc sets it to a fixed value and
    turns the cursor by 90 degrees.
    """
    straight = _STRAIGHT_RULES.get(content)
    if straight is not None:
        for direction in straight:
            if cursor.points(direction):
                return TraceStep(direction.vector.scaled(tile_size), ccw, direction)
        return None

    half = tile_size // 2
    for approach, (dx, dy), new_ccw, exit_dir in _ARC_RULES.get(content, ()):
        if cursor.points(approach):
            return TraceStep(Vector2i(dx * half, dy * half), new_ccw, exit_dir)
    return None


class _ObstacleTracer:
    """Single-use tracer holding the explored-tile flags of one run."""

    def __init__(self, terrain: TerrainLayer, config: TracingConfig) -> None:
        self.terrain = terrain
        self.tile_size = config.tile_size
        self.half = config.half_tile_size
        self.max_steps = config.max_trace_steps
        self.explored = np.zeros(terrain.num_rows * terrain.num_cols, dtype=bool)
        self.tiles_with_errors: list[Tile] = []

    def is_explored(self, tile: Tile) -> bool:
        return bool(self.explored[self.terrain.index(*tile)])

    def set_explored(self, tile: Tile) -> None:
        self.explored[self.terrain.index(*tile)] = True

    def point(self, tile: Tile, dx: int, dy: int) -> Vector2i:
        return Vector2i.of_tile(tile, self.tile_size) + Vector2i(dx, dy)

    def build_all(self) -> list[Obstacle]:
        terrain = self.terrain
        obstacles: list[Obstacle] = []
        non_empty = terrain.non_empty_tiles()
        first_non_empty = non_empty[0] if non_empty else None
        last_col = terrain.num_cols - 1

        # Order matters: border obstacles must be explored before inner ones.
        for tile in terrain.tiles():
            if tile[1] not in (0, last_col) or self.is_explored(tile):
                continue
            if terrain.content(*tile) == TerrainCode.EMPTY:
                continue
            obstacle = self.build_border_obstacle(tile, tile[1] == 0)
            if obstacle is not None:
                obstacles.append(obstacle)

        for tile in terrain.tiles():
            if self.is_explored(tile):
                continue
            if terrain.content(*tile) not in (TerrainCode.ARC_NW, TerrainCode.ANG_ARC_NW):
                continue
            obstacle = self.build_inner_obstacle(tile)
            # A closed border whose top-left corner is not in column 0.
            if tile == first_non_empty:
                obstacle.border_obstacle = True
            obstacles.append(obstacle)

        return obstacles

    def build_border_obstacle(self, start_tile: Tile, at_left_border: bool) -> Obstacle | None:
        content = self.terrain.content(*start_tile)
        starts = _LEFT_BORDER_STARTS if at_left_border else _RIGHT_BORDER_STARTS
        start = starts.get(content)
        if start is None:
            return None
        arc, ccw, direction = start
        dx = 0 if at_left_border else self.tile_size
        obstacle = Obstacle(self.point(start_tile, dx, self.half), border_obstacle=True)
        if arc is None:
            obstacle.add_segment(direction.vector.scaled(self.tile_size), ccw, content)
        else:
            obstacle.add_segment(Vector2i(arc[0] * self.half, arc[1] * self.half), ccw, content)
        self.set_explored(start_tile)
        self.trace_rest(obstacle, Cursor(None, start_tile).moved(direction), start_tile, ccw)
        return obstacle

    def build_inner_obstacle(self, corner_nw: Tile) -> Obstacle:
        content = self.terrain.content(*corner_nw)
        obstacle = Obstacle(self.point(corner_nw, self.tile_size, self.half))
        obstacle.add_segment(Vector2i(-self.half, self.half), True, content)
        self.set_explored(corner_nw)
        self.trace_rest(obstacle, Cursor(None, corner_nw).moved(Direction.DOWN), corner_nw, True)
        return obstacle

    def trace_rest(self, obstacle: Obstacle, cursor: Cursor, start_tile: Tile, ccw: bool) -> None:
        terrain = self.terrain
        steps = 0
        while True:
            if steps >= self.max_steps:
                obstacle.incomplete = True
                break
            steps += 1
            tile = cursor.current_tile
            if terrain.out_of_bounds(tile) or self.is_explored(tile):
                break
            self.set_explored(tile)
            content = terrain.content(*tile)
            step = trace_step(content, cursor, ccw, self.tile_size)
            if step is None:
                # The cursor stays, so the next round stops on this explored tile.
                self.tiles_with_errors.append(tile)
            else:
                ccw = step.ccw
                obstacle.add_segment(step.vector, ccw, content)
                cursor = cursor.moved(step.direction)
            if cursor.current_tile == start_tile or terrain.out_of_bounds(cursor.current_tile):
                break


def optimize(obstacle: Obstacle) -> Obstacle:
    """Return a copy of *obstacle* with runs of straight segments merged.

    A merged segment keeps the winding and tile code of the first segment of
    its run; arc segments are copied unchanged.
    """
    optimized = Obstacle(obstacle.start_point, obstacle.border_obstacle)
    optimized.incomplete = obstacle.incomplete
    run: tuple[Vector2i, bool, int] | None = None
    for segment in obstacle.segments:
        if segment.is_straight_line():
            if run is None:
                run = (segment.vector, segment.ccw, segment.encoding)
            else:
                run = (run[0] + segment.vector, run[1], run[2])
            continue
        if run is not None:
            optimized.add_segment(*run)
            run = None
        optimized.add_segment(segment.vector, segment.ccw, segment.encoding)
    if run is not None:
        optimized.add_segment(*run)
    return optimized


def build_obstacles(
    terrain: TerrainLayer,
    config: TracingConfig | None = None,
) -> tuple[set[Obstacle], list[Tile]]:
    """Trace all obstacles of *terrain*.

    Returns the optimized obstacles and the tiles where tracing met content
    it did not expect. Malformed content never raises.
    """
    config = config if config is not None else TracingConfig()
    logger.debug(
        "Find obstacles in %dx%d terrain layer.", terrain.num_rows, terrain.num_cols,
    )
    tracer = _ObstacleTracer(terrain, config)
    obstacles = {optimize(o) for o in tracer.build_all()}
    for obstacle in obstacles:
        if obstacle.incomplete:
            logger.warning(
                "Tracing of obstacle starting at %s stopped after %d steps.",
                obstacle.start_point, config.max_trace_steps,
            )
    if tracer.tiles_with_errors:
        logger.debug("Unexpected content at tiles %s.", tracer.tiles_with_errors)
    logger.debug("Found %d obstacles.", len(obstacles))
    return obstacles, tracer.tiles_with_errors
