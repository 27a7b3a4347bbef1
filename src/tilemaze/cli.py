"""Command-line tool for inspecting world map files."""

from __future__ import annotations

import argparse
import logging
import sys

from tilemaze.config import TracingConfig
from tilemaze.parser import format_tile
from tilemaze.worldmap import WorldMap

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tilemaze",
        description="Inspect, check and reformat maze world map files.",
    )
    parser.add_argument(
        "--config", type=str, default=None,
        help="Path to a JSON tracing config file.",
    )
    parser.add_argument(
        "--verbose", action="store_true",
        help="Enable debug logging.",
    )
    sub = parser.add_subparsers(dest="command", help="Available commands.")

    # --- info ---
    info_p = sub.add_parser("info", help="Print a summary of a map.")
    info_p.add_argument("map", help="Path to a .world file.")

    # --- check ---
    check_p = sub.add_parser(
        "check", help="Trace obstacles and report tiles with errors.",
    )
    check_p.add_argument("map", help="Path to a .world file.")

    # --- format ---
    format_p = sub.add_parser(
        "format", help="Print or write the canonical map text.",
    )
    format_p.add_argument("map", help="Path to a .world file.")
    format_p.add_argument(
        "--output", type=str, default=None,
        help="Write to this file instead of standard output.",
    )
    format_p.add_argument(
        "--line-numbers", action="store_true",
        help="Prefix every printed line with its number.",
    )

    return parser


def _load_config(args: argparse.Namespace) -> TracingConfig:
    return TracingConfig.load(args.config) if args.config else TracingConfig()


def _run_info(args: argparse.Namespace) -> int:
    world_map = WorldMap.load_from_file(args.map)
    config = _load_config(args)
    tiles_with_errors = world_map.build_obstacle_list(config)
    obstacles = world_map.obstacles()
    food = world_map.food_layer

    print(f"Map: {world_map.url}")  # noqa: T201
    print(f"Size: {world_map.num_rows} rows x {world_map.num_cols} cols")  # noqa: T201
    print(  # noqa: T201
        f"Properties: terrain={len(world_map.terrain_layer.properties)} "
        f"food={len(food.properties)}",
    )
    print(  # noqa: T201
        f"Food: total={food.total_food_count} "
        f"energizers={len(food.energizer_tiles)}",
    )
    print(f"Portals: {len(world_map.terrain_layer.portals)}")  # noqa: T201
    print(  # noqa: T201
        f"Obstacles: {len(obstacles)} "
        f"(closed={sum(o.is_closed() for o in obstacles)}, "
        f"border={sum(o.border_obstacle for o in obstacles)}, "
        f"incomplete={sum(o.incomplete for o in obstacles)})",
    )
    print(f"Tiles with errors: {len(tiles_with_errors)}")  # noqa: T201
    return 0


def _run_check(args: argparse.Namespace) -> int:
    world_map = WorldMap.load_from_file(args.map)
    tiles_with_errors = world_map.build_obstacle_list(_load_config(args))
    if not tiles_with_errors:
        print("OK")  # noqa: T201
        return 0
    for tile in tiles_with_errors:
        row, col = tile
        code = world_map.terrain_layer.content(row, col)
        print(f"Unexpected content #{code & 0xFF:02X} at tile {format_tile(tile)}")  # noqa: T201
    return 1


def _run_format(args: argparse.Namespace) -> int:
    world_map = WorldMap.load_from_file(args.map)
    if args.output:
        world_map.save_to_file(args.output)
        return 0
    print(world_map.source_code(line_numbers=args.line_numbers), end="")  # noqa: T201
    return 0


def main(argv: list[str] | None = None) -> int:
    """Entry point for the ``tilemaze`` CLI."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    if args.command is None:
        parser.print_help()
        return 1

    handlers = {
        "info": _run_info,
        "check": _run_check,
        "format": _run_format,
    }
    return handlers[args.command](args)


if __name__ == "__main__":
    sys.exit(main())
