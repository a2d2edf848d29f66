"""Simulation timing and runtime configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Any

from circuplay.config.grid import (
    CELL_SIZE,
    DEFAULT_CANVAS_HEIGHT,
    DEFAULT_CANVAS_WIDTH,
    MAX_CANVAS_SIZE,
)
from circuplay.exceptions import ConfigurationError

# Milliseconds between host-driven ticks
TICK_INTERVAL_MS = 100

# Most updates a single manual step request may run
MAX_STEP_COUNT = 10_000


def _env_int(key: str, default: int) -> int:
    raw = os.getenv(key)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_bool(key: str, default: bool) -> bool:
    raw = os.getenv(key)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class SimulationConfig:
    """Runtime configuration for a workspace.

    Attributes:
        canvas_width: Canvas width in pixels.
        canvas_height: Canvas height in pixels.
        cell_size: Pixels per grid cell.
        tick_interval_ms: Host tick period.
        hold_gate_outputs: Outputs that were high on the previous tick are
            visible to gate input reads (latches, feedback through wires).
    """

    canvas_width: int = DEFAULT_CANVAS_WIDTH
    canvas_height: int = DEFAULT_CANVAS_HEIGHT
    cell_size: int = CELL_SIZE
    tick_interval_ms: int = TICK_INTERVAL_MS
    hold_gate_outputs: bool = True

    @property
    def grid_width(self) -> int:
        return self.canvas_width // self.cell_size

    @property
    def grid_height(self) -> int:
        return self.canvas_height // self.cell_size

    def validate(self) -> None:
        """Raise ConfigurationError if any value is unusable."""
        if self.cell_size <= 0:
            raise ConfigurationError(f"cell_size must be positive, got {self.cell_size}")
        for side in (self.canvas_width, self.canvas_height):
            if not 0 <= side <= MAX_CANVAS_SIZE:
                raise ConfigurationError(
                    f"canvas size must be within 0..{MAX_CANVAS_SIZE}, "
                    f"got {self.canvas_width}x{self.canvas_height}"
                )
        if self.tick_interval_ms <= 0:
            raise ConfigurationError(
                f"tick_interval_ms must be positive, got {self.tick_interval_ms}"
            )

    def with_overrides(self, **overrides: Any) -> "SimulationConfig":
        """Return a copy with the given fields replaced."""
        config = replace(self, **overrides)
        config.validate()
        return config

    @classmethod
    def from_env(cls) -> "SimulationConfig":
        """Build a config from CIRCUPLAY_* environment variables."""
        config = cls(
            canvas_width=_env_int("CIRCUPLAY_CANVAS_WIDTH", DEFAULT_CANVAS_WIDTH),
            canvas_height=_env_int("CIRCUPLAY_CANVAS_HEIGHT", DEFAULT_CANVAS_HEIGHT),
            cell_size=_env_int("CIRCUPLAY_CELL_SIZE", CELL_SIZE),
            tick_interval_ms=_env_int("CIRCUPLAY_TICK_INTERVAL_MS", TICK_INTERVAL_MS),
            hold_gate_outputs=_env_bool("CIRCUPLAY_HOLD_GATE_OUTPUTS", True),
        )
        config.validate()
        return config
