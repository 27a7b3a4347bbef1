"""Integer vectors, tile coordinates, and movement directions."""

from __future__ import annotations

import enum
from dataclasses import dataclass

# A grid cell addressed as (row, col), consistent with NumPy indexing.
Tile = tuple[int, int]


@dataclass(frozen=True)
class Vector2i:
    """Immutable integer point or displacement in pixel space.

    ``x`` grows to the right, ``y`` grows downwards.
    """

    x: int
    y: int

    def plus(self, other: Vector2i) -> Vector2i:
        return Vector2i(self.x + other.x, self.y + other.y)

    def minus(self, other: Vector2i) -> Vector2i:
        return Vector2i(self.x - other.x, self.y - other.y)

    def scaled(self, factor: int) -> Vector2i:
        return Vector2i(self.x * factor, self.y * factor)

    def inverse(self) -> Vector2i:
        return Vector2i(-self.x, -self.y)

    def __add__(self, other: Vector2i) -> Vector2i:
        return self.plus(other)

    def __sub__(self, other: Vector2i) -> Vector2i:
        return self.minus(other)

    def __neg__(self) -> Vector2i:
        return self.inverse()

    @classmethod
    def of_tile(cls, tile: Tile, tile_size: int) -> Vector2i:
        """Return the pixel position of the top-left corner of *tile*."""
        row, col = tile
        return cls(col * tile_size, row * tile_size)

    def __str__(self) -> str:
        return f"({self.x},{self.y})"


class Direction(enum.Enum):
    """Cardinal directions with (row_delta, col_delta) values."""

    UP = (-1, 0)
    DOWN = (1, 0)
    LEFT = (0, -1)
    RIGHT = (0, 1)

    @property
    def vector(self) -> Vector2i:
        """Unit displacement in pixel space (x = column, y = row)."""
        dr, dc = self.value
        return Vector2i(dc, dr)

    @property
    def opposite(self) -> Direction:
        return _OPPOSITES[self]

    def step(self, tile: Tile) -> Tile:
        """Return the neighbour of *tile* in this direction."""
        dr, dc = self.value
        return tile[0] + dr, tile[1] + dc


_OPPOSITES: dict[Direction, Direction] = {
    Direction.UP: Direction.DOWN,
    Direction.DOWN: Direction.UP,
    Direction.LEFT: Direction.RIGHT,
    Direction.RIGHT: Direction.LEFT,
}


def neighbors(tile: Tile) -> list[Tile]:
    """Return the four orthogonal neighbours of *tile* (may be out of bounds)."""
    return [d.step(tile) for d in Direction]
