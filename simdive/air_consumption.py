"""
Open-circuit air consumption for a single tank.

Tracks tank pressure and breathing rate over the dive. Consumption at depth
scales with ambient pressure; breathing-rate events change the current rate
relative to the diver's baseline surface rate.
"""

import logging
import math
from dataclasses import dataclass
from typing import List

from .buhlmann_constants import SURFACE_PRESSURE, ambient_pressure
from .profile import DiveEvent, DiveEventType

logger = logging.getLogger(__name__)

# Recreational reserve thresholds, independent of tank size
LOW_AIR_PRESSURE = 50.0  # bar
CRITICAL_AIR_PRESSURE = 20.0  # bar

DEFAULT_BREATHING_MULTIPLIER = 1.5
AIR_SHARING_MULTIPLIER = 2.0


@dataclass(frozen=True)
class AirState:
    """Air part of a dive snapshot. Pressures in bar, rates in L/min."""
    initial_tank_pressure: float
    tank_pressure: float
    remaining_air_time: int  # minutes at current depth and rate
    current_sac_rate: float
    average_sac_rate: float
    air_consumed: float  # bar


@dataclass(frozen=True)
class AirWarnings:
    low_air: bool
    critical_air: bool


class AirConsumptionModel:
    """Tank pressure and breathing rate bookkeeping."""

    def __init__(self, initial_tank_pressure: float, tank_volume: float, base_sac_rate: float):
        self.initial_tank_pressure = initial_tank_pressure
        self.tank_volume = tank_volume
        self.base_sac_rate = base_sac_rate

        self.tank_pressure = initial_tank_pressure
        self.current_sac_rate = base_sac_rate
        self.total_air_consumed = 0.0
        # (time, rate) samples for averaging
        self.sac_history: List[tuple] = []
        self._sac_sum = 0.0

    def get_depth_factor(self, depth: float) -> float:
        """Consumption multiplier relative to the surface (1.0 at 0m, 4.0 at 30m)."""
        return ambient_pressure(depth) / SURFACE_PRESSURE

    def calculate_consumption(self, depth: float, duration_minutes: float) -> float:
        """Bar drawn from the tank over ``duration_minutes`` at ``depth``."""
        liters = self.current_sac_rate * self.get_depth_factor(depth) * duration_minutes
        return liters / self.tank_volume

    def consume_air(self, depth: float, duration_minutes: float, time: float) -> None:
        consumed = min(self.calculate_consumption(depth, duration_minutes), self.tank_pressure)
        self.tank_pressure -= consumed
        self.total_air_consumed += consumed
        self.sac_history.append((time, self.current_sac_rate))
        self._sac_sum += self.current_sac_rate

    def calculate_remaining_air_time(self, depth: float) -> int:
        if self.tank_pressure <= 0:
            return 0
        remaining_liters = self.tank_pressure * self.tank_volume
        rate = self.current_sac_rate * self.get_depth_factor(depth)
        return math.floor(remaining_liters / rate)

    @property
    def average_sac_rate(self) -> float:
        if not self.sac_history:
            return self.base_sac_rate
        return self._sac_sum / len(self.sac_history)

    def apply_event(self, event: DiveEvent) -> None:
        """Adjust the breathing rate for rate-changing events; others are ignored."""
        if event.type == DiveEventType.BREATHING_RATE_INCREASE:
            multiplier = event.value if event.value else DEFAULT_BREATHING_MULTIPLIER
            self.current_sac_rate = self.base_sac_rate * multiplier
        elif event.type in (
            DiveEventType.BREATHING_RATE_DECREASE,
            DiveEventType.AIR_SHARING_END,
        ):
            self.current_sac_rate = self.base_sac_rate
        elif event.type == DiveEventType.AIR_SHARING:
            self.current_sac_rate = self.base_sac_rate * AIR_SHARING_MULTIPLIER
        else:
            return
        logger.debug(f"SAC rate now {self.current_sac_rate:.1f} L/min after {event.type.value}")

    def check_warnings(self) -> AirWarnings:
        return AirWarnings(
            low_air=self.tank_pressure <= LOW_AIR_PRESSURE,
            critical_air=self.tank_pressure <= CRITICAL_AIR_PRESSURE,
        )

    def get_air_state(self, depth: float) -> AirState:
        return AirState(
            initial_tank_pressure=self.initial_tank_pressure,
            tank_pressure=self.tank_pressure,
            remaining_air_time=self.calculate_remaining_air_time(depth),
            current_sac_rate=self.current_sac_rate,
            average_sac_rate=self.average_sac_rate,
            air_consumed=self.total_air_consumed,
        )

    def reset(self) -> None:
        self.tank_pressure = self.initial_tank_pressure
        self.current_sac_rate = self.base_sac_rate
        self.total_air_consumed = 0.0
        self.sac_history = []
        self._sac_sum = 0.0
