"""
Engine configuration resolved from config.yaml with optional overrides.

Resolution order: built-in defaults, then the YAML file, then CLI overrides.
"""

import logging
import os
from dataclasses import dataclass, field

import yaml

from .buhlmann_constants import GF_DEFAULT, GradientFactors
from .state import PLAYBACK_SPEEDS

logger = logging.getLogger(__name__)

DEFAULT_SPEED = 1
DEFAULT_STEP_SIZE = 10.0  # seconds
DEFAULT_TICK_INTERVAL = 1.0 / 60.0  # real seconds between playback ticks


@dataclass(frozen=True)
class EngineConfig:
    gradient_factors: GradientFactors = field(default=GF_DEFAULT)
    speed: float = DEFAULT_SPEED
    step_size: float = DEFAULT_STEP_SIZE
    tick_interval: float = DEFAULT_TICK_INTERVAL
    # Also fire events whose time was crossed between two advances
    event_catch_up: bool = False

    def __post_init__(self):
        if self.speed not in PLAYBACK_SPEEDS:
            raise ValueError(f"speed must be one of {PLAYBACK_SPEEDS}, got {self.speed}")
        if not self.step_size > 0:
            raise ValueError(f"step_size must be > 0, got {self.step_size}")
        if not self.tick_interval > 0:
            raise ValueError(f"tick_interval must be > 0, got {self.tick_interval}")


def _resolve_speed(value) -> float:
    speed = float(value)
    if speed not in PLAYBACK_SPEEDS:
        logger.warning(f"Unsupported playback speed {speed}, using {DEFAULT_SPEED}")
        return DEFAULT_SPEED
    return speed


def _resolve_positive(name: str, value, default: float) -> float:
    number = float(value)
    if number <= 0:
        logger.warning(f"{name} must be > 0, got {number}; using {default}")
        return default
    return number


def load_effective_config(
    gf_override: tuple = None,
    config_path: str = None,
) -> dict:
    """Load configuration from config.yaml with optional CLI GF override.

    Returns a dict with resolved settings:
        engine:       EngineConfig instance
        config_path:  str (resolved path)
        gf_source:    'cli' | 'config' | 'default'
    """
    if config_path is None:
        config_path = os.path.join(
            os.path.dirname(os.path.dirname(__file__)), "config.yaml"
        )

    gf = GF_DEFAULT
    gf_source = "default"
    speed = DEFAULT_SPEED
    step_size = DEFAULT_STEP_SIZE
    tick_interval = DEFAULT_TICK_INTERVAL
    event_catch_up = False

    if os.path.exists(config_path):
        with open(config_path) as f:
            config = yaml.safe_load(f) or {}

        buhlmann_cfg = config.get("buhlmann") or {}
        if buhlmann_cfg:
            gf = GradientFactors(
                gf_low=float(buhlmann_cfg.get("gf_low", GF_DEFAULT.gf_low)),
                gf_high=float(buhlmann_cfg.get("gf_high", GF_DEFAULT.gf_high)),
            )
            gf_source = "config"

        playback_cfg = config.get("playback") or {}
        speed = _resolve_speed(playback_cfg.get("speed", speed))
        step_size = _resolve_positive(
            "step_size", playback_cfg.get("step_size", step_size), DEFAULT_STEP_SIZE
        )
        tick_interval = _resolve_positive(
            "tick_interval",
            playback_cfg.get("tick_interval", tick_interval),
            DEFAULT_TICK_INTERVAL,
        )

        events_cfg = config.get("events") or {}
        event_catch_up = bool(events_cfg.get("catch_up", event_catch_up))
    else:
        logger.debug(f"No config file at {config_path}, using defaults")

    if gf_override:
        gf = GradientFactors(
            gf_low=gf_override[0] / 100.0,
            gf_high=gf_override[1] / 100.0,
        )
        gf_source = "cli"

    return {
        "engine": EngineConfig(
            gradient_factors=gf,
            speed=speed,
            step_size=step_size,
            tick_interval=tick_interval,
            event_catch_up=event_catch_up,
        ),
        "config_path": config_path,
        "gf_source": gf_source,
    }
