"""Grid layers of a world map."""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass

import numpy as np

from tilemaze.tiles import TerrainCode, is_blocked
from tilemaze.vector import Tile, neighbors

# Tiles a creature spends inside a portal before reappearing.
PORTAL_DEPTH = 2


def _check_byte(code: int) -> int:
    code = int(code)
    if not -128 <= code <= 127:
        raise ValueError(f"Layer content must be a signed byte, got {code}.")
    return code


class Layer:
    """NumPy-backed byte grid plus a string property map.

    Cells are stored row-major in an ``int8`` array. Coordinates use
    (row, col) ordering consistent with NumPy indexing, and every access
    is bounds-checked.
    """

    def __init__(self, num_rows: int, num_cols: int) -> None:
        if num_rows < 0 or num_cols < 0:
            raise ValueError("Layer dimensions must not be negative.")
        self.cells = np.zeros((num_rows, num_cols), dtype=np.int8)
        self.properties: dict[str, str] = {}
        self._analyze()

    @classmethod
    def from_rows(
        cls,
        rows: Sequence[Sequence[int]],
        properties: Mapping[str, str] | None = None,
    ):
        """Build a layer from nested rows; the first row fixes the width."""
        num_cols = len(rows[0]) if rows else 0
        for row, values in enumerate(rows):
            if len(values) != num_cols:
                raise ValueError(
                    f"Row {row} has {len(values)} column(s), expected {num_cols}.",
                )
        cells = np.array(rows, dtype=np.int64).reshape(len(rows), num_cols)
        return cls.from_array(cells, properties)

    @classmethod
    def from_array(
        cls,
        cells: np.ndarray,
        properties: Mapping[str, str] | None = None,
    ):
        """Build a layer from a 2-D array of signed byte values."""
        cells = np.asarray(cells)
        if cells.ndim != 2:
            raise ValueError(f"Layer data must be 2-D, got {cells.ndim}-D.")
        if cells.size and (cells.min() < -128 or cells.max() > 127):
            raise ValueError("Layer content must be signed bytes.")
        layer = cls(*cells.shape)
        layer.cells[:] = cells
        if properties:
            layer.properties.update(properties)
        layer._analyze()
        return layer

    @classmethod
    def from_layer(cls, source: Layer):
        """Return a deep copy of *source* as an instance of this class."""
        layer = cls(source.num_rows, source.num_cols)
        layer.cells[:] = source.cells
        layer.properties.update(source.properties)
        layer._analyze()
        return layer

    def _analyze(self) -> None:
        """Hook for subclasses deriving data from the cell contents."""

    @property
    def num_rows(self) -> int:
        return self.cells.shape[0]

    @property
    def num_cols(self) -> int:
        return self.cells.shape[1]

    def in_bounds(self, row: int, col: int) -> bool:
        """Check whether a coordinate lies within the layer."""
        return 0 <= row < self.num_rows and 0 <= col < self.num_cols

    def out_of_bounds(self, tile: Tile) -> bool:
        return not self.in_bounds(*tile)

    def assert_in_bounds(self, row: int, col: int) -> None:
        if not self.in_bounds(row, col):
            raise ValueError(
                f"Illegal coordinate row={row} col={col} for "
                f"{self.num_rows}x{self.num_cols} layer.",
            )

    def index(self, row: int, col: int) -> int:
        """Return the row-major index of a coordinate inside the layer."""
        self.assert_in_bounds(row, col)
        return col + row * self.num_cols

    def tile(self, index: int) -> Tile:
        """Return the tile with the given row-major index."""
        if not 0 <= index < self.num_rows * self.num_cols:
            raise ValueError(f"Illegal tile index {index}.")
        return divmod(index, self.num_cols)

    def tiles(self) -> Iterator[Tile]:
        """Iterate over all tiles row by row."""
        for row in range(self.num_rows):
            for col in range(self.num_cols):
                yield row, col

    def tiles_containing(self, code: int) -> list[Tile]:
        """Return all tiles holding *code* in row-major order."""
        rows, cols = np.nonzero(self.cells == code)
        return list(zip(rows.tolist(), cols.tolist(), strict=True))

    def non_empty_tiles(self) -> list[Tile]:
        """Return all tiles with a non-zero byte in row-major order."""
        rows, cols = np.nonzero(self.cells)
        return list(zip(rows.tolist(), cols.tolist(), strict=True))

    def content(self, row: int, col: int) -> int:
        """Return the byte stored at the given coordinate."""
        self.assert_in_bounds(row, col)
        return int(self.cells[row, col])

    def set_content(self, row: int, col: int, code: int) -> None:
        """Store *code* at the given coordinate."""
        self.assert_in_bounds(row, col)
        self.cells[row, col] = _check_byte(code)

    def fill(self, code: int) -> None:
        """Set every cell to *code*."""
        self.cells[:] = _check_byte(code)

    def mirror_position(self, tile: Tile) -> Tile:
        """Return the tile mirrored at the vertical middle axis."""
        row, col = tile
        self.assert_in_bounds(row, col)
        return row, self.num_cols - 1 - col

    def properties_sorted_by_name(self) -> list[tuple[str, str]]:
        return sorted(self.properties.items())

    def replace_properties(self, properties: Mapping[str, str]) -> None:
        self.properties = dict(properties)

    def to_dict(self) -> dict:
        """Serialize layer state to a dictionary."""
        return {
            "num_rows": self.num_rows,
            "num_cols": self.num_cols,
            "properties": dict(self.properties),
            "cells": self.cells.tolist(),
        }

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Layer):
            return NotImplemented
        return (
            self.cells.shape == other.cells.shape
            and bool(np.array_equal(self.cells, other.cells))
            and self.properties == other.properties
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(num_rows={self.num_rows}, "
            f"num_cols={self.num_cols}, properties={len(self.properties)})"
        )


@dataclass(frozen=True)
class Portal:
    """Pair of tunnel tiles at opposite map borders connected for traversal."""

    left_tile: Tile
    right_tile: Tile
    depth: int = PORTAL_DEPTH

    def contains(self, tile: Tile) -> bool:
        return tile in (self.left_tile, self.right_tile)


@dataclass(frozen=True)
class House:
    """Rectangular ghost house region, corners inclusive."""

    min_tile: Tile
    max_tile: Tile

    def __post_init__(self) -> None:
        if self.min_tile[0] > self.max_tile[0] or self.min_tile[1] > self.max_tile[1]:
            raise ValueError(
                f"House min tile {self.min_tile} lies beyond max tile {self.max_tile}.",
            )

    @property
    def size_in_tiles(self) -> tuple[int, int]:
        """Return (num_rows, num_cols) of the house."""
        return (
            self.max_tile[0] - self.min_tile[0] + 1,
            self.max_tile[1] - self.min_tile[1] + 1,
        )

    def contains(self, tile: Tile) -> bool:
        row, col = tile
        return (
            self.min_tile[0] <= row <= self.max_tile[0]
            and self.min_tile[1] <= col <= self.max_tile[1]
        )


class TerrainLayer(Layer):
    """Terrain layer with derived tunnel portals and an optional house.

    Portals are derived whenever the layer is built from existing content;
    the house is assigned by whoever knows where it is.
    """

    def __init__(self, num_rows: int, num_cols: int) -> None:
        self.portals: list[Portal] = []
        self.house: House | None = None
        super().__init__(num_rows, num_cols)

    def _analyze(self) -> None:
        self.portals = self._find_portals()

    def _find_portals(self) -> list[Portal]:
        portals: list[Portal] = []
        if self.num_cols == 0:
            return portals
        last_col = self.num_cols - 1
        for row in range(self.num_rows):
            if (self.cells[row, 0] == TerrainCode.TUNNEL
                    and self.cells[row, last_col] == TerrainCode.TUNNEL):
                portals.append(Portal((row, 0), (row, last_col)))
        return portals

    def is_blocked_at(self, tile: Tile) -> bool:
        return is_blocked(self.content(*tile))

    def is_door_at(self, tile: Tile) -> bool:
        return self.content(*tile) == TerrainCode.DOOR

    def is_tunnel_at(self, tile: Tile) -> bool:
        return self.content(*tile) == TerrainCode.TUNNEL

    def belongs_to_portal(self, tile: Tile) -> bool:
        return any(portal.contains(tile) for portal in self.portals)

    def is_part_of_house(self, tile: Tile) -> bool:
        return self.house is not None and self.house.contains(tile)

    def is_intersection(self, tile: Tile) -> bool:
        """Check whether more than two ways lead away from *tile*.

        Tiles outside the layer or inside the house are never intersections.
        """
        if self.out_of_bounds(tile) or self.is_part_of_house(tile):
            return False
        closed = sum(
            1 for n in neighbors(tile)
            if not self.out_of_bounds(n)
            and (self.is_blocked_at(n) or self.is_door_at(n))
        )
        return closed < 2
