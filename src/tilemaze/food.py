"""Food layer with eaten/uneaten bookkeeping."""

from __future__ import annotations

import logging

import numpy as np

from tilemaze.layer import Layer
from tilemaze.tiles import FoodCode
from tilemaze.vector import Tile

logger = logging.getLogger(__name__)


class FoodLayer(Layer):
    """Food layer tracking which pellets and energizers have been eaten.

    The energizer set and the food totals are derived from the cell contents
    when the layer is built. Eaten cells are flagged in a boolean array
    indexed in row-major order, so the invariant
    ``eaten_food_count + uneaten_food_count == total_food_count`` always holds.
    """

    def __init__(self, num_rows: int, num_cols: int) -> None:
        self.energizer_tiles: frozenset[Tile] = frozenset()
        self._total_food_count = 0
        self._uneaten_food_count = 0
        self._eaten = np.zeros(0, dtype=bool)
        super().__init__(num_rows, num_cols)

    def _analyze(self) -> None:
        self.energizer_tiles = frozenset(self.tiles_containing(FoodCode.ENERGIZER))
        self._total_food_count = int(np.count_nonzero(self.cells != FoodCode.EMPTY))
        self._uneaten_food_count = self._total_food_count
        self._eaten = np.zeros(self.num_rows * self.num_cols, dtype=bool)

    @property
    def total_food_count(self) -> int:
        return self._total_food_count

    @property
    def uneaten_food_count(self) -> int:
        return self._uneaten_food_count

    @property
    def eaten_food_count(self) -> int:
        return self._total_food_count - self._uneaten_food_count

    def is_energizer_at(self, tile: Tile) -> bool:
        return tile in self.energizer_tiles

    def has_food_at(self, tile: Tile) -> bool:
        """Check whether *tile* holds food that has not been eaten yet."""
        return (
            self.content(*tile) != FoodCode.EMPTY
            and not self._eaten[self.index(*tile)]
        )

    def has_eaten_food_at(self, tile: Tile) -> bool:
        return bool(self._eaten[self.index(*tile)])

    def register_food_eaten_at(self, tile: Tile) -> None:
        """Mark the food at *tile* as eaten.

        Logs a warning and does nothing if the tile holds no uneaten food.
        """
        if not self.has_food_at(tile):
            logger.warning("Attempt to eat food from tile %s without food.", tile)
            return
        self._eaten[self.index(*tile)] = True
        self._uneaten_food_count -= 1

    def eat_all_pellets(self) -> None:
        """Eat every remaining food tile except the energizers."""
        for tile in self.tiles():
            if self.has_food_at(tile) and not self.is_energizer_at(tile):
                self.register_food_eaten_at(tile)

    def eat_all_food(self) -> None:
        """Eat every remaining food tile."""
        for tile in self.tiles():
            if self.has_food_at(tile):
                self.register_food_eaten_at(tile)
