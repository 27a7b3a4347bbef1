"""Conversion between world map text and layers.

A world map file holds a terrain and a food layer. Each layer starts with a
marker line, followed by ``key=value`` properties and a data section with
one line per row of comma-separated ``#XX`` hex bytes::

    !terrain
    pos_pac=(13,26)
    !data
    #03,#01,#04
    ...
    !food
    !data
    #00,#01,#00
    ...

Parsing is lenient: malformed lines and invalid bytes are logged and
skipped or replaced by 0, so a partially broken map still loads.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING

from tilemaze.food import FoodLayer
from tilemaze.layer import Layer, TerrainLayer
from tilemaze.tiles import is_valid_food_code, is_valid_terrain_code
from tilemaze.vector import Tile

if TYPE_CHECKING:
    from tilemaze.worldmap import WorldMap

logger = logging.getLogger(__name__)

MARKER_BEGIN_TERRAIN_LAYER = "!terrain"
MARKER_BEGIN_FOOD_LAYER = "!food"
MARKER_BEGIN_DATA_SECTION = "!data"
COMMENT_PREFIX = "#"

_TILE_PATTERN = re.compile(r"\(\s*(\d+)\s*,\s*(\d+)\s*\)")

ValuePredicate = Callable[[int], bool]


def parse_tile(text: str) -> Tile | None:
    """Parse a tile property value ``"(x,y)"`` into ``(row, col)``."""
    m = _TILE_PATTERN.fullmatch(text.strip())
    if m is None:
        return None
    x, y = int(m.group(1)), int(m.group(2))
    return y, x


def format_tile(tile: Tile) -> str:
    """Format ``(row, col)`` as the property value ``"(x,y)"``."""
    row, col = tile
    return f"({col},{row})"


def decode_byte(token: str) -> int:
    """Decode a data token as a signed byte.

    ``#XX`` and ``0xXX`` are hex, values above 0x7F wrap to negative;
    anything else is decimal and must lie in -128..127.
    """
    text = token.strip()
    if text.startswith("#"):
        value = int(text[1:], 16)
    elif text[:2].lower() == "0x":
        value = int(text[2:], 16)
    else:
        value = int(text, 10)
        if not -128 <= value <= 127:
            raise ValueError(f"Byte value out of range: {text}")
        return value
    if not 0 <= value <= 0xFF:
        raise ValueError(f"Byte value out of range: {text}")
    return value - 0x100 if value > 0x7F else value


def encode_byte(value: int) -> str:
    return f"#{int(value) & 0xFF:02X}"


def parse_properties(lines: Iterable[str]) -> dict[str, str]:
    """Parse ``key=value`` lines, skipping blank lines and comments."""
    properties: dict[str, str] = {}
    for line in lines:
        if not line.strip() or line.startswith(COMMENT_PREFIX):
            continue
        sides = line.split("=")
        if len(sides) != 2:
            logger.error("Invalid line inside property section: %r", line)
            continue
        properties[sides[0].strip()] = sides[1].strip()
    return properties


def parse_layer(lines: list[str], value_allowed: ValuePredicate) -> Layer:
    """Parse the lines of one layer block (without its layer marker)."""
    property_lines: list[str] = []
    data_lines: list[tuple[int, str]] = []
    inside_data = False
    for line_index, line in enumerate(lines):
        if line.strip() == MARKER_BEGIN_DATA_SECTION:
            if inside_data:
                logger.error("Duplicate data section marker at line %d ignored.", line_index)
            inside_data = True
        elif not inside_data:
            property_lines.append(line)
        elif not line.strip():
            logger.warning("Blank line %d inside data section skipped.", line_index)
        else:
            data_lines.append((line_index, line))

    properties = parse_properties(property_lines)
    if not data_lines:
        logger.error("Inconsistent layer data: no data section found.")
        layer = Layer(0, 0)
        layer.properties.update(properties)
        return layer

    rows = [line.split(",") for _, line in data_lines]
    num_cols = len(rows[0])
    layer = Layer(len(rows), num_cols)
    layer.properties.update(properties)
    for row, columns in enumerate(rows):
        if len(columns) != num_cols:
            logger.error(
                "Inconsistent layer data at line %d: found %d column(s), expected %d.",
                data_lines[row][0], len(columns), num_cols,
            )
        for col, entry in enumerate(columns[:num_cols]):
            try:
                value = decode_byte(entry)
            except ValueError:
                logger.error("Invalid tile map entry %r at row %d, col %d.", entry, row, col)
                continue
            if value_allowed(value):
                layer.set_content(row, col, value)
            else:
                logger.error("Invalid tile map value %d at row %d, col %d.", value, row, col)
    return layer


def _fit_to(layer: Layer, num_rows: int, num_cols: int) -> Layer:
    fitted = Layer(num_rows, num_cols)
    rows = min(num_rows, layer.num_rows)
    cols = min(num_cols, layer.num_cols)
    fitted.cells[:rows, :cols] = layer.cells[:rows, :cols]
    fitted.properties.update(layer.properties)
    return fitted


def parse(
    lines: Iterable[str],
    is_valid_terrain: ValuePredicate = is_valid_terrain_code,
    is_valid_food: ValuePredicate = is_valid_food_code,
) -> WorldMap:
    """Parse world map text lines into a :class:`WorldMap`.

    Never raises for malformed content; every problem is logged.
    """
    from tilemaze.worldmap import WorldMap

    text_lines = [line.rstrip("\r\n") for line in lines]
    count = 0
    while text_lines and not text_lines[-1].strip():
        text_lines.pop()
        count += 1
    if count > 0:
        logger.info("%d empty line(s) at end of map text removed.", count)

    terrain_lines: list[str] = []
    food_lines: list[str] = []
    section: list[str] | None = None
    for line in text_lines:
        marker = line.strip()
        if marker == MARKER_BEGIN_TERRAIN_LAYER:
            section = terrain_lines
        elif marker == MARKER_BEGIN_FOOD_LAYER:
            section = food_lines
        elif section is not None:
            section.append(line)
        elif marker and not marker.startswith(COMMENT_PREFIX):
            logger.error("Line skipped: %r", line)

    terrain = parse_layer(terrain_lines, is_valid_terrain)
    food = parse_layer(food_lines, is_valid_food)
    if food.cells.shape != terrain.cells.shape:
        logger.error(
            "Food layer size %dx%d differs from terrain layer size %dx%d.",
            food.num_rows, food.num_cols, terrain.num_rows, terrain.num_cols,
        )
        food = _fit_to(food, terrain.num_rows, terrain.num_cols)

    return WorldMap.from_layers(
        TerrainLayer.from_layer(terrain), FoodLayer.from_layer(food),
    )


def format_layer(layer: Layer) -> list[str]:
    """Return the property and data lines of *layer*."""
    lines = [f"{key}={value}" for key, value in layer.properties_sorted_by_name()]
    lines.append(MARKER_BEGIN_DATA_SECTION)
    for row in layer.cells:
        lines.append(",".join(encode_byte(value) for value in row))
    return lines


def serialize(world_map: WorldMap, line_numbers: bool = False) -> str:
    """Return the text form of *world_map*, properties sorted by key."""
    lines = [MARKER_BEGIN_TERRAIN_LAYER]
    lines += format_layer(world_map.terrain_layer)
    lines.append(MARKER_BEGIN_FOOD_LAYER)
    lines += format_layer(world_map.food_layer)
    if line_numbers:
        lines = [f"{n:5d}: {line}" for n, line in enumerate(lines, start=1)]
    return "\n".join(lines) + "\n"

