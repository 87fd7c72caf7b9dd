"""
Dive profile generator for simulation and teaching.

Generates waypoint profiles:
- Square profiles (constant depth, optional safety stop)
- Multi-level profiles (stepped depths)
- Square profiles with explicit decompression stops

Only the corners of each profile are emitted; the engine interpolates
between them.
"""

from typing import Iterable, List, Sequence, Tuple

from .buhlmann_constants import SAFETY_STOP_DEPTH, SAFETY_STOP_DURATION, SAFETY_STOP_TRIGGER_DEPTH
from .profile import DiveEvent, DiveProfile, Waypoint


class _WaypointBuilder:
    """Accumulates waypoints while tracking the current time and depth."""

    def __init__(self, descent_rate: float, ascent_rate: float):
        self.descent_rate = descent_rate
        self.ascent_rate = ascent_rate
        self.time = 0.0
        self.depth = 0.0
        self.waypoints = [Waypoint(0.0, 0.0)]

    def move_to(self, depth: float) -> None:
        if depth == self.depth:
            return
        rate = self.descent_rate if depth > self.depth else self.ascent_rate
        self.time += abs(depth - self.depth) / rate
        self.depth = depth
        self.waypoints.append(Waypoint(round(self.time, 4), depth))

    def hold(self, minutes: float) -> None:
        if minutes <= 0:
            return
        self.time += minutes
        self.waypoints.append(Waypoint(round(self.time, 4), self.depth))


class ProfileGenerator:
    """Generate waypoint dive profiles."""

    def __init__(
        self,
        descent_rate: float = 20.0,  # m/min
        ascent_rate: float = 10.0,  # m/min (conservative)
    ):
        self.descent_rate = descent_rate
        self.ascent_rate = ascent_rate

    def _build(
        self,
        builder: _WaypointBuilder,
        profile_id: str,
        description: str,
        initial_tank_pressure: float = 200.0,
        tank_volume: float = 12.0,
        sac_rate: float = 20.0,
        events: Iterable[DiveEvent] = (),
    ) -> DiveProfile:
        return DiveProfile(
            id=profile_id,
            name=profile_id,
            description=description,
            initial_tank_pressure=initial_tank_pressure,
            tank_volume=tank_volume,
            sac_rate=sac_rate,
            waypoints=builder.waypoints,
            events=tuple(events),
        )

    def generate_square(
        self, depth: float, bottom_time: float, safety_stop: bool = True, **tank
    ) -> DiveProfile:
        """
        Generate a square profile (simple recreational dive).

        Args:
            depth: Maximum depth in meters
            bottom_time: Time at depth in minutes
            safety_stop: Hold 3 minutes at 5m on the way up (dives to 10m or deeper)
            **tank: initial_tank_pressure, tank_volume, sac_rate, events
        """
        builder = _WaypointBuilder(self.descent_rate, self.ascent_rate)
        builder.move_to(depth)
        builder.hold(bottom_time)

        if safety_stop and depth >= SAFETY_STOP_TRIGGER_DEPTH:
            builder.move_to(SAFETY_STOP_DEPTH)
            builder.hold(SAFETY_STOP_DURATION / 60.0)
        builder.move_to(0.0)

        return self._build(
            builder,
            f"square_{depth:g}m_{bottom_time:g}min",
            f"Square dive to {depth:g}m for {bottom_time:g} min",
            **tank,
        )

    def generate_multilevel(
        self, levels: Sequence[Tuple[float, float]], safety_stop: bool = True, **tank
    ) -> DiveProfile:
        """
        Generate a multi-level profile.

        Args:
            levels: List of (depth, duration) tuples, deepest first
            safety_stop: Hold 3 minutes at 5m before surfacing
            **tank: initial_tank_pressure, tank_volume, sac_rate, events
        """
        if not levels:
            raise ValueError("Multilevel profile needs at least one level")

        builder = _WaypointBuilder(self.descent_rate, self.ascent_rate)
        for target_depth, duration in levels:
            builder.move_to(target_depth)
            builder.hold(duration)

        max_depth = max(d for d, _ in levels)
        if safety_stop and max_depth >= SAFETY_STOP_TRIGGER_DEPTH and builder.depth > SAFETY_STOP_DEPTH:
            builder.move_to(SAFETY_STOP_DEPTH)
            builder.hold(SAFETY_STOP_DURATION / 60.0)
        builder.move_to(0.0)

        desc = ", ".join(f"{d:g}m/{t:g}min" for d, t in levels)
        return self._build(
            builder,
            f"multilevel_{len(levels)}levels",
            f"Multilevel dive: {desc}",
            **tank,
        )

    def generate_deco_square(
        self,
        depth: float,
        bottom_time: float,
        deco_stops: Sequence[Tuple[float, float]],
        **tank,
    ) -> DiveProfile:
        """Generate a square profile with explicit decompression stops.

        Args:
            depth: Bottom depth in meters
            bottom_time: Time at depth in minutes
            deco_stops: List of (stop_depth_m, stop_duration_min) tuples, deepest first
            **tank: initial_tank_pressure, tank_volume, sac_rate, events
        """
        builder = _WaypointBuilder(self.descent_rate, self.ascent_rate)
        builder.move_to(depth)
        builder.hold(bottom_time)

        for stop_depth, stop_duration in deco_stops:
            builder.move_to(stop_depth)
            builder.hold(stop_duration)
        builder.move_to(0.0)

        stop_desc = "+".join(f"{d:.0f}m/{t:.0f}min" for d, t in deco_stops) if deco_stops else "nodeco"
        return self._build(
            builder,
            f"deco_{depth:g}m_{bottom_time:g}min_{stop_desc}",
            f"Decompression dive to {depth:g}m for {bottom_time:g} min",
            **tank,
        )

    def generate_batch(
        self,
        depths: List[float],
        times: List[float],
        profile_type: str = "square",
        **kwargs,
    ) -> List[DiveProfile]:
        """
        Generate a batch of profiles for systematic comparison.

        Args:
            depths: List of depths to test
            times: List of bottom times to test
            profile_type: Type of profile ("square" or "multilevel")
            **kwargs: Additional arguments for profile generator

        Returns:
            List of DiveProfile objects
        """
        profiles = []

        for depth in depths:
            for time in times:
                if profile_type == "square":
                    profile = self.generate_square(depth, time, **kwargs)
                elif profile_type == "multilevel":
                    # Half the time at depth, half at two thirds of it
                    profile = self.generate_multilevel(
                        [(depth, time / 2), (round(depth * 2 / 3), time / 2)], **kwargs
                    )
                else:
                    raise ValueError(f"Unknown profile type: {profile_type}")

                profiles.append(profile)

        return profiles
