"""Decomposition of axis-aligned polygons into rectangles.

This is the default collaborator used by
:meth:`tilemaze.obstacle.Obstacle.inner_area_rectangles`. The polygon is
rasterized on a coordinate-compressed grid using the even-odd rule, and the
inside cells are greedily merged into non-overlapping rectangles.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

from tilemaze.vector import Vector2i


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle in pixel coordinates."""

    x: int
    y: int
    width: int
    height: int

    @property
    def area(self) -> int:
        return self.width * self.height

    @property
    def max_x(self) -> int:
        return self.x + self.width

    @property
    def max_y(self) -> int:
        return self.y + self.height


def _check_polygon(points: Sequence[Vector2i]) -> None:
    if len(points) < 4:
        raise ValueError(
            f"Polygon needs at least 4 points, got {len(points)}.",
        )
    for i, a in enumerate(points):
        b = points[(i + 1) % len(points)]
        if a == b:
            raise ValueError(f"Polygon has a zero-length edge at {a}.")
        if a.x != b.x and a.y != b.y:
            raise ValueError(f"Polygon edge {a} -> {b} is not axis-aligned.")


def inside_mask(points: Sequence[Vector2i]) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Rasterize *points* on the grid spanned by its distinct coordinates.

    Returns ``(xs, ys, mask)`` where ``mask[i, j]`` tells whether the cell
    between ``ys[i]..ys[i+1]`` and ``xs[j]..xs[j+1]`` lies inside.
    """
    _check_polygon(points)
    xs = np.unique([p.x for p in points])
    ys = np.unique([p.y for p in points])
    cx = (xs[:-1] + xs[1:]) / 2.0
    cy = (ys[:-1] + ys[1:]) / 2.0

    vertical = [
        (a.x, min(a.y, b.y), max(a.y, b.y))
        for a, b in zip(points, [*points[1:], points[0]], strict=True)
        if a.x == b.x
    ]
    edges = np.array(vertical, dtype=float).reshape(-1, 3)
    ex = edges[:, 0][:, None, None]
    ylo = edges[:, 1][:, None, None]
    yhi = edges[:, 2][:, None, None]
    # Ray cast to the right from every cell centre.
    crossings = (ex > cx[None, None, :]) & (ylo < cy[None, :, None]) & (cy[None, :, None] < yhi)
    mask = crossings.sum(axis=0) % 2 == 1
    return xs, ys, mask


def decompose_polygon(points: Sequence[Vector2i]) -> list[Rect]:
    """Cover a simple axis-aligned polygon with non-overlapping rectangles.

    *points* is the open vertex list (the closing edge from the last point
    back to the first is implied).
    """
    xs, ys, inside = inside_mask(points)
    num_rows, num_cols = inside.shape
    used = np.zeros_like(inside)
    rects: list[Rect] = []
    for r in range(num_rows):
        for c in range(num_cols):
            if not inside[r, c] or used[r, c]:
                continue
            c1 = c
            while c1 + 1 < num_cols and inside[r, c1 + 1] and not used[r, c1 + 1]:
                c1 += 1
            r1 = r
            while r1 + 1 < num_rows and np.all(
                inside[r1 + 1, c:c1 + 1] & ~used[r1 + 1, c:c1 + 1],
            ):
                r1 += 1
            used[r:r1 + 1, c:c1 + 1] = True
            rects.append(Rect(
                int(xs[c]), int(ys[r]),
                int(xs[c1 + 1] - xs[c]), int(ys[r1 + 1] - ys[r]),
            ))
    return rects
