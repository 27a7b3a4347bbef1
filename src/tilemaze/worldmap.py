"""World map composed of a terrain and a food layer."""

from __future__ import annotations

import enum
import logging
import urllib.parse
import urllib.request
from pathlib import Path
from typing import Any

import numpy as np

from tilemaze import parser
from tilemaze.builder import build_obstacles
from tilemaze.config import TracingConfig
from tilemaze.food import FoodLayer
from tilemaze.layer import House, Layer, TerrainLayer
from tilemaze.obstacle import Obstacle
from tilemaze.tiles import TerrainCode
from tilemaze.vector import Tile, Vector2i

logger = logging.getLogger(__name__)

POS_HOUSE_MIN_TILE = "pos_house_min_tile"
POS_HOUSE_MAX_TILE = "pos_house_max_tile"


class LayerID(enum.Enum):
    """Identifies one of the two layers of a world map."""

    TERRAIN = "terrain"
    FOOD = "food"


class WorldMap:
    """Terrain and food layers of equal size plus a free-form config map.

    The map is never resized in place: inserting or deleting a row returns
    a new map. Obstacles are traced from the terrain layer on first access.
    """

    def __init__(self, num_rows: int, num_cols: int) -> None:
        if num_rows < 0 or num_cols < 0:
            raise ValueError("World map dimensions must not be negative.")
        self.terrain_layer = TerrainLayer(num_rows, num_cols)
        self.food_layer = FoodLayer(num_rows, num_cols)
        self.url: str | None = None
        self.config: dict[str, Any] = {}
        self._obstacles: set[Obstacle] | None = None

    # --- construction ---

    @classmethod
    def empty(cls, num_rows: int, num_cols: int) -> WorldMap:
        return cls(num_rows, num_cols)

    @classmethod
    def from_layers(cls, terrain: TerrainLayer, food: FoodLayer) -> WorldMap:
        """Wrap existing layers; both must have the same dimensions."""
        if terrain.cells.shape != food.cells.shape:
            raise ValueError(
                f"Layer sizes differ: terrain {terrain.num_rows}x{terrain.num_cols}, "
                f"food {food.num_rows}x{food.num_cols}.",
            )
        world_map = cls(0, 0)
        world_map.terrain_layer = terrain
        world_map.food_layer = food
        return world_map

    @classmethod
    def copy_of(cls, original: WorldMap) -> WorldMap:
        """Return a deep copy of the layers with copied config and URL."""
        terrain = TerrainLayer.from_layer(original.terrain_layer)
        terrain.house = original.terrain_layer.house
        copy = cls.from_layers(terrain, FoodLayer.from_layer(original.food_layer))
        copy.config = dict(original.config)
        copy.url = original.url
        return copy

    @classmethod
    def from_text(cls, text: str) -> WorldMap:
        return parser.parse(text.splitlines())

    @classmethod
    def load_from_url(cls, url: str) -> WorldMap:
        """Load a map from a ``file:`` or ``http(s):`` URL (UTF-8 text)."""
        with urllib.request.urlopen(url) as response:
            text = response.read().decode("utf-8")
        world_map = parser.parse(text.splitlines())
        world_map.url = urllib.parse.unquote(url)
        logger.info("World map loaded from %s", world_map.url)
        return world_map

    @classmethod
    def load_from_file(cls, path: str | Path) -> WorldMap:
        return cls.load_from_url(Path(path).resolve().as_uri())

    def save_to_file(self, path: str | Path) -> None:
        """Write the map text to *path* (UTF-8)."""
        p = Path(path)
        p.write_text(self.source_code(), encoding="utf-8")
        logger.info("World map saved to %s", p)

    def source_code(self, line_numbers: bool = False) -> str:
        return parser.serialize(self, line_numbers=line_numbers)

    # --- dimensions and layers ---

    @property
    def num_rows(self) -> int:
        return self.terrain_layer.num_rows

    @property
    def num_cols(self) -> int:
        return self.terrain_layer.num_cols

    def layer(self, layer_id: LayerID) -> Layer:
        if layer_id is LayerID.TERRAIN:
            return self.terrain_layer
        if layer_id is LayerID.FOOD:
            return self.food_layer
        raise ValueError(f"Illegal map layer ID: {layer_id!r}")

    def properties(self, layer_id: LayerID) -> dict[str, str]:
        return self.layer(layer_id).properties

    def in_bounds(self, row: int, col: int) -> bool:
        return self.terrain_layer.in_bounds(row, col)

    def out_of_bounds(self, tile: Tile) -> bool:
        return not self.in_bounds(*tile)

    def mirror_position(self, tile: Tile) -> Tile:
        """Return the tile mirrored at the vertical middle axis."""
        return self.terrain_layer.mirror_position(tile)

    def content(self, layer_id: LayerID, row: int, col: int) -> int:
        """Return the byte at the given coordinate, raising if out of bounds."""
        return self.layer(layer_id).content(row, col)

    def set_content(self, layer_id: LayerID, row: int, col: int, code: int) -> None:
        """Store *code* at the given coordinate, raising if out of bounds."""
        self.layer(layer_id).set_content(row, col, code)
        if layer_id is LayerID.TERRAIN:
            self._obstacles = None

    def set_content_region(
        self, layer_id: LayerID, origin: Tile, block: list[list[int]],
    ) -> None:
        """Copy a rectangular block of codes with its top-left cell at *origin*."""
        row0, col0 = origin
        for dr, values in enumerate(block):
            for dc, code in enumerate(values):
                self.set_content(layer_id, row0 + dr, col0 + dc, code)

    # --- config map ---

    def set_config_value(self, key: str, value: Any) -> None:
        if key is None or value is None:
            raise ValueError("Config keys and values must not be None.")
        self.config[key] = value

    def get_config_value(self, key: str, default: Any = None) -> Any:
        if key is None:
            raise ValueError("Config key must not be None.")
        return self.config.get(key, default)

    def has_config_value(self, key: str) -> bool:
        return key in self.config

    # --- properties ---

    def get_terrain_tile_property(self, name: str, default: Tile | None = None) -> Tile | None:
        """Return the tile stored under *name* in the terrain properties."""
        value = self.terrain_layer.properties.get(name)
        if value is None:
            return default
        tile = parser.parse_tile(value)
        if tile is None:
            logger.error("Could not parse tile from property %s=%r", name, value)
            return default
        return tile

    def install_house(self) -> House | None:
        """Assign the house given by the house tile properties to the terrain."""
        min_tile = self.get_terrain_tile_property(POS_HOUSE_MIN_TILE)
        max_tile = self.get_terrain_tile_property(POS_HOUSE_MAX_TILE)
        if min_tile is None or max_tile is None:
            logger.info("No house installed, house tile properties not set.")
            return None
        self.terrain_layer.house = House(min_tile, max_tile)
        return self.terrain_layer.house

    # --- editing ---

    def _rebuilt(self, terrain: np.ndarray, food: np.ndarray) -> WorldMap:
        return WorldMap.from_layers(
            TerrainLayer.from_array(terrain, self.terrain_layer.properties),
            FoodLayer.from_array(food, self.food_layer.properties),
        )

    def insert_row_before_index(self, row_index: int) -> WorldMap:
        """Return a new map with an empty row inserted before *row_index*.

        Vertical walls in the border columns of the shifted row are extended
        into the new row.
        """
        if not 0 <= row_index <= self.num_rows:
            raise ValueError(f"Illegal row index for inserting row: {row_index}")
        terrain = np.insert(self.terrain_layer.cells, row_index, 0, axis=0)
        food = np.insert(self.food_layer.cells, row_index, 0, axis=0)
        if row_index < self.num_rows and self.num_cols > 0:
            for col in {0, self.num_cols - 1}:
                if self.terrain_layer.cells[row_index, col] == TerrainCode.WALL_V:
                    terrain[row_index, col] = TerrainCode.WALL_V
        return self._rebuilt(terrain, food)

    def delete_row_at_index(self, row_index: int) -> WorldMap:
        """Return a new map without the row at *row_index*."""
        if not 0 <= row_index < self.num_rows:
            raise ValueError(f"Illegal row index for deleting row: {row_index}")
        terrain = np.delete(self.terrain_layer.cells, row_index, axis=0)
        food = np.delete(self.food_layer.cells, row_index, axis=0)
        return self._rebuilt(terrain, food)

    # --- obstacles ---

    def build_obstacle_list(self, config: TracingConfig | None = None) -> list[Tile]:
        """Trace the obstacles of the terrain layer and return the error tiles.

        The obstacle traced from the house placeholder is removed when the
        house min tile property is set.
        """
        config = config if config is not None else TracingConfig()
        obstacles, tiles_with_errors = build_obstacles(self.terrain_layer, config)

        house_min_tile = self.get_terrain_tile_property(POS_HOUSE_MIN_TILE)
        if house_min_tile is None:
            logger.info("Could not remove house placeholder from obstacle list, house min tile not set.")
        else:
            house_start = (
                Vector2i.of_tile(house_min_tile, config.tile_size)
                + Vector2i(config.tile_size, config.half_tile_size)
            )
            placeholder = next((o for o in obstacles if o.start_point == house_start), None)
            if placeholder is not None:
                logger.debug(
                    "Removing house placeholder obstacle starting at tile %s, point %s.",
                    house_min_tile, house_start,
                )
                obstacles.discard(placeholder)

        self._obstacles = obstacles
        logger.info("%d obstacles found in map %s", len(obstacles), self)
        return tiles_with_errors

    def obstacles(self, config: TracingConfig | None = None) -> frozenset[Obstacle]:
        if self._obstacles is None:
            self.build_obstacle_list(config)
        return frozenset(self._obstacles)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, WorldMap):
            return NotImplemented
        return (
            self.terrain_layer == other.terrain_layer
            and self.food_layer == other.food_layer
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"WorldMap(num_rows={self.num_rows}, num_cols={self.num_cols}, url={self.url})"
