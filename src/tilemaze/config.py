"""Configuration for obstacle tracing."""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass
from pathlib import Path

from tilemaze.tiles import TS

logger = logging.getLogger(__name__)

# Upper bound on tiles visited while tracing a single obstacle.
DEFAULT_MAX_TRACE_STEPS = 1000


@dataclass(frozen=True)
class TracingConfig:
    """Parameters of the obstacle contour tracer.

    Supports JSON serialization so a map check can be reproduced.
    """

    tile_size: int = TS
    max_trace_steps: int = DEFAULT_MAX_TRACE_STEPS

    def __post_init__(self) -> None:
        if self.tile_size < 2 or self.tile_size % 2 != 0:
            raise ValueError("tile_size must be an even number of at least 2.")
        if self.max_trace_steps < 1:
            raise ValueError("max_trace_steps must be at least 1.")

    @property
    def half_tile_size(self) -> int:
        return self.tile_size // 2

    def to_dict(self) -> dict:
        return asdict(self)

    def save(self, path: str | Path) -> None:
        """Write config to a JSON file."""
        p = Path(path)
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(json.dumps(self.to_dict(), indent=2))
        logger.info("Config saved to %s", p)

    @classmethod
    def load(cls, path: str | Path) -> TracingConfig:
        """Load config from a JSON file."""
        raw = json.loads(Path(path).read_text())
        return cls(**raw)
