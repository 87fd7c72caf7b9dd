"""
Snapshot and playback types published by the dive engine.

Every type here is a frozen dataclass: consumers read snapshots, the engine
replaces them on each advance.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Tuple

from .air_consumption import AirState
from .buhlmann_constants import MAX_ASCENT_RATE, SAFETY_STOP_DEPTH, SAFETY_STOP_DURATION
from .decompression import DecoState

PLAYBACK_SPEEDS: Tuple[float, ...] = (0.5, 1, 2, 5, 10)


class PlaybackState(str, Enum):
    STOPPED = "stopped"
    PLAYING = "playing"
    PAUSED = "paused"


@dataclass(frozen=True)
class PlaybackControl:
    state: PlaybackState = PlaybackState.STOPPED
    speed: float = 1
    current_time: float = 0.0  # minutes
    total_time: float = 0.0  # minutes
    step_size: float = 10.0  # seconds per manual step


@dataclass(frozen=True)
class AscentState:
    rate: float  # m/min, positive while descending
    is_violation: bool
    max_allowed_rate: float = MAX_ASCENT_RATE


@dataclass(frozen=True)
class SafetyStopState:
    required: bool
    active: bool
    depth: float = SAFETY_STOP_DEPTH
    duration: float = SAFETY_STOP_DURATION  # seconds
    remaining: float = SAFETY_STOP_DURATION  # seconds
    completed: bool = False


class WarningLevel(str, Enum):
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


@dataclass(frozen=True)
class DiveWarning:
    type: WarningLevel
    message: str
    code: str


@dataclass(frozen=True)
class DiveState:
    """Everything a dive computer shows at ``current_time``."""
    current_time: float  # minutes
    current_depth: float  # meters, rounded to 0.1
    max_depth: float
    deco: DecoState
    air: AirState
    ascent: AscentState
    safety_stop: SafetyStopState
    active_warnings: Tuple[DiveWarning, ...]
