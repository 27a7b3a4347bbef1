"""Byte codes stored in the terrain and food layers."""

from __future__ import annotations

import enum
import logging

from tilemaze.vector import Direction

logger = logging.getLogger(__name__)

# Tile size in pixels and its half, the unit of arc segments.
TS = 8
HTS = TS // 2


class TerrainCode(enum.IntEnum):
    """Integer codes stored in the terrain layer.

    The angled arcs are used for the corners of the ghost house.
    """

    EMPTY = 0x00
    WALL_H = 0x01
    WALL_V = 0x02
    ARC_NW = 0x03
    ARC_NE = 0x04
    ARC_SE = 0x05
    ARC_SW = 0x06
    TUNNEL = 0x07
    DOOR = 0x0E
    ANG_ARC_NW = 0x10
    ANG_ARC_NE = 0x11
    ANG_ARC_SE = 0x12
    ANG_ARC_SW = 0x13
    ONE_WAY_UP = 0x14
    ONE_WAY_RIGHT = 0x15
    ONE_WAY_DOWN = 0x16
    ONE_WAY_LEFT = 0x17

    @classmethod
    def from_byte(cls, value: int) -> TerrainCode:
        """Convert *value* to a terrain code, raising on unknown bytes."""
        try:
            return cls(value)
        except ValueError:
            raise ValueError(f"Unknown terrain code: {value:#04x}") from None

    @classmethod
    def from_byte_lenient(cls, value: int) -> TerrainCode:
        """Convert *value* to a terrain code, falling back to EMPTY."""
        if is_valid_terrain_code(value):
            return cls(value)
        logger.warning("Unknown terrain code %d replaced by EMPTY.", value)
        return cls.EMPTY


class FoodCode(enum.IntEnum):
    """Integer codes stored in the food layer."""

    EMPTY = 0x00
    PELLET = 0x01
    ENERGIZER = 0x02

    @classmethod
    def from_byte(cls, value: int) -> FoodCode:
        """Convert *value* to a food code, raising on unknown bytes."""
        try:
            return cls(value)
        except ValueError:
            raise ValueError(f"Unknown food code: {value:#04x}") from None

    @classmethod
    def from_byte_lenient(cls, value: int) -> FoodCode:
        """Convert *value* to a food code, falling back to EMPTY."""
        if is_valid_food_code(value):
            return cls(value)
        logger.warning("Unknown food code %d replaced by EMPTY.", value)
        return cls.EMPTY


_TERRAIN_VALUES = frozenset(int(code) for code in TerrainCode)
_FOOD_VALUES = frozenset(int(code) for code in FoodCode)

_BLOCKED = frozenset({
    TerrainCode.WALL_H,
    TerrainCode.WALL_V,
    TerrainCode.ARC_NW,
    TerrainCode.ARC_NE,
    TerrainCode.ARC_SE,
    TerrainCode.ARC_SW,
})

_ONE_WAY_DIRECTIONS: dict[TerrainCode, Direction] = {
    TerrainCode.ONE_WAY_UP: Direction.UP,
    TerrainCode.ONE_WAY_RIGHT: Direction.RIGHT,
    TerrainCode.ONE_WAY_DOWN: Direction.DOWN,
    TerrainCode.ONE_WAY_LEFT: Direction.LEFT,
}


def is_valid_terrain_code(value: int) -> bool:
    return value in _TERRAIN_VALUES


def is_valid_food_code(value: int) -> bool:
    return value in _FOOD_VALUES


def is_blocked(code: int) -> bool:
    """Walls and plain arcs block movement; doors, tunnels and angled arcs don't."""
    return code in _BLOCKED


def one_way_direction(code: int) -> Direction | None:
    """Return the permitted direction of a one-way tile, or ``None``."""
    if not is_valid_terrain_code(code):
        return None
    return _ONE_WAY_DIRECTIONS.get(TerrainCode(code))
