"""tilemaze: maze tile maps and obstacle contour extraction."""

from tilemaze.builder import build_obstacles
from tilemaze.config import TracingConfig
from tilemaze.food import FoodLayer
from tilemaze.layer import House, Layer, Portal, TerrainLayer
from tilemaze.obstacle import Obstacle, ObstacleSegment
from tilemaze.parser import parse
from tilemaze.rectangles import Rect, decompose_polygon
from tilemaze.tiles import FoodCode, TerrainCode, is_blocked
from tilemaze.vector import Direction, Vector2i
from tilemaze.worldmap import LayerID, WorldMap

__all__ = [
    "Direction",
    "FoodCode",
    "FoodLayer",
    "House",
    "Layer",
    "LayerID",
    "Obstacle",
    "ObstacleSegment",
    "Portal",
    "Rect",
    "TerrainCode",
    "TerrainLayer",
    "TracingConfig",
    "Vector2i",
    "WorldMap",
    "build_obstacles",
    "decompose_polygon",
    "is_blocked",
    "parse",
]
