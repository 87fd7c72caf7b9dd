"""
Dive profile data: depth-time waypoints plus timed events.

A profile is immutable once built. Depth between waypoints is linear, which is
the contract the whole simulation relies on.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence, Tuple


class DiveEventType(str, Enum):
    """Scheduled events a profile can carry."""
    BREATHING_RATE_INCREASE = "breathingRateIncrease"
    BREATHING_RATE_DECREASE = "breathingRateDecrease"
    AIR_SHARING = "airSharing"
    AIR_SHARING_END = "airSharingEnd"
    LOW_AIR_WARNING = "lowAirWarning"
    CRITICAL_AIR_WARNING = "criticalAirWarning"
    RAPID_ASCENT = "rapidAscent"
    SAFETY_STOP_START = "safetyStopStart"
    SAFETY_STOP_END = "safetyStopEnd"


@dataclass(frozen=True)
class Waypoint:
    time: float  # minutes from dive start
    depth: float  # meters


@dataclass(frozen=True)
class DiveEvent:
    time: float  # minutes from dive start
    type: DiveEventType
    value: Optional[float] = None  # e.g. breathing rate multiplier
    message: Optional[str] = None  # text to surface as a warning

    def __post_init__(self):
        # Accept the raw string form used in profile files
        object.__setattr__(self, "type", DiveEventType(self.type))
        if self.value is not None and self.value < 0:
            raise ValueError(f"Event value must be >= 0, got {self.value}")

    @property
    def key(self) -> Tuple[str, float]:
        """Identity used to fire each event at most once per pass."""
        return (self.type.value, self.time)


def interpolate_depth(time: float, waypoints: Sequence[Waypoint]) -> float:
    """Interpolate depth at a given time.

    Clamps to the first/last waypoint outside the covered time range.
    """
    if not waypoints:
        return 0.0

    first = waypoints[0]
    last = waypoints[-1]
    if time <= first.time:
        return first.depth
    if time >= last.time:
        return last.depth

    for current, following in zip(waypoints, waypoints[1:]):
        if current.time <= time <= following.time:
            if following.time == current.time:
                return current.depth
            progress = (time - current.time) / (following.time - current.time)
            return current.depth + (following.depth - current.depth) * progress
    return last.depth


@dataclass(frozen=True)
class DiveProfile:
    """A planned dive: tank setup, waypoints and events."""

    waypoints: Tuple[Waypoint, ...]
    events: Tuple[DiveEvent, ...] = ()
    id: str = "unnamed"
    name: str = "unnamed"
    description: str = ""
    initial_tank_pressure: float = 200.0  # bar
    tank_volume: float = 12.0  # liters
    sac_rate: float = 20.0  # liters/min at the surface

    def __post_init__(self):
        object.__setattr__(self, "waypoints", tuple(self.waypoints))
        object.__setattr__(self, "events", tuple(self.events))

        if not self.waypoints:
            raise ValueError(f"Profile {self.id!r} has no waypoints")
        for previous, current in zip(self.waypoints, self.waypoints[1:]):
            if current.time < previous.time:
                raise ValueError(
                    f"Profile {self.id!r}: waypoint times must be non-decreasing "
                    f"({current.time} after {previous.time})"
                )
        for waypoint in self.waypoints:
            if waypoint.depth < 0:
                raise ValueError(
                    f"Profile {self.id!r}: negative depth {waypoint.depth} at t={waypoint.time}"
                )
        if self.tank_volume <= 0:
            raise ValueError(f"tank_volume must be > 0, got {self.tank_volume}")
        if self.initial_tank_pressure < 0:
            raise ValueError(
                f"initial_tank_pressure must be >= 0, got {self.initial_tank_pressure}"
            )
        if self.sac_rate <= 0:
            raise ValueError(f"sac_rate must be > 0, got {self.sac_rate}")

    @property
    def total_time(self) -> float:
        return self.waypoints[-1].time

    @property
    def max_depth(self) -> float:
        return max(w.depth for w in self.waypoints)

    def get_depth_at_time(self, t: float) -> float:
        return interpolate_depth(t, self.waypoints)
