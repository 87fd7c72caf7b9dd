"""
Dive progression engine.

Owns the simulated clock of one dive: interpolates depth from the loaded
profile, fires timed events, advances the decompression and air models and
publishes an immutable ``DiveState`` for every time advance.

Time moves in three ways, all landing on the same per-advance procedure:
continuous playback (scheduler ticks scaled by speed), manual steps, and
seeks. Going backwards replays the whole pass from t=0 at 1-second
resolution because tissue and tank state depend on the path taken.
"""

import logging
import math
from dataclasses import replace
from typing import Iterable, List, Optional, Tuple

from .air_consumption import AirConsumptionModel, AirWarnings
from .buhlmann_constants import (
    MAX_ASCENT_RATE,
    SAFETY_STOP_DURATION,
    SAFETY_STOP_MAX_DEPTH,
    SAFETY_STOP_MIN_DEPTH,
    SAFETY_STOP_TRIGGER_DEPTH,
)
from .config import EngineConfig
from .decompression import DecoState, DecompressionModel
from .profile import DiveEvent, DiveEventType, DiveProfile, interpolate_depth
from .scheduler import AsyncioScheduler, TickScheduler
from .state import (
    PLAYBACK_SPEEDS,
    AscentState,
    DiveState,
    DiveWarning,
    PlaybackControl,
    PlaybackState,
    SafetyStopState,
    WarningLevel,
)

logger = logging.getLogger(__name__)

EVENT_WINDOW = 0.1  # minutes either side of an event's scheduled time
REPLAY_STEPS_PER_MINUTE = 60
TIME_EPSILON = 1e-9


def round_depth(depth: float) -> float:
    """Depth rounded half-up to 0.1m, as displayed."""
    return math.floor(depth * 10.0 + 0.5) / 10.0


def calculate_ascent_rate(previous_depth: float, current_depth: float, time_delta: float) -> AscentState:
    """Vertical speed in m/min, positive while descending.

    A violation is an ascent faster than MAX_ASCENT_RATE.
    """
    if time_delta <= 0:
        return AscentState(rate=0.0, is_violation=False)

    rate = (current_depth - previous_depth) / time_delta
    return AscentState(rate=rate, is_violation=-rate > MAX_ASCENT_RATE)


def _event_level(event: DiveEvent) -> WarningLevel:
    if event.type == DiveEventType.CRITICAL_AIR_WARNING:
        return WarningLevel.CRITICAL
    if event.type == DiveEventType.LOW_AIR_WARNING:
        return WarningLevel.WARNING
    return WarningLevel.INFO


def build_warnings(
    air_warnings: AirWarnings,
    ascent: AscentState,
    deco: DecoState,
    active_events: Iterable[DiveEvent],
) -> Tuple[DiveWarning, ...]:
    """Warnings in display priority order."""
    warnings: List[DiveWarning] = []

    if air_warnings.critical_air:
        warnings.append(DiveWarning(WarningLevel.CRITICAL, "CRITICAL AIR", "CRITICAL_AIR"))
    elif air_warnings.low_air:
        warnings.append(DiveWarning(WarningLevel.WARNING, "LOW AIR", "LOW_AIR"))

    if ascent.is_violation:
        warnings.append(DiveWarning(WarningLevel.CRITICAL, "ASCENT TOO FAST", "FAST_ASCENT"))

    if deco.ceiling > 0:
        warnings.append(
            DiveWarning(WarningLevel.WARNING, f"DECO STOP {deco.ceiling}m", "DECO_REQUIRED")
        )

    for event in active_events:
        if event.message:
            warnings.append(DiveWarning(_event_level(event), event.message, event.type.value))

    return tuple(warnings)


class DiveEngine:
    """Playback state machine composing the decompression and air models.

    All state belongs to the instance and is mutated only from its own
    control methods and scheduled ticks, never concurrently. Control methods
    called before a profile is loaded are ignored.
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        scheduler: Optional[TickScheduler] = None,
    ):
        self.config = config or EngineConfig()
        self.scheduler = scheduler or AsyncioScheduler()

        self._profile: Optional[DiveProfile] = None
        self._events: Tuple[DiveEvent, ...] = ()
        self._playback = PlaybackControl(
            speed=self.config.speed, step_size=self.config.step_size
        )
        self._dive_state: Optional[DiveState] = None

        self._deco: Optional[DecompressionModel] = None
        self._air: Optional[AirConsumptionModel] = None

        self._processed_events = set()
        self._max_depth = 0.0
        self._safety_stop_completed = False

        self._tick_handle = None
        self._last_tick_time = 0.0

    # -- read accessors -------------------------------------------------

    @property
    def playback(self) -> PlaybackControl:
        return self._playback

    @property
    def dive_state(self) -> Optional[DiveState]:
        return self._dive_state

    @property
    def current_profile(self) -> Optional[DiveProfile]:
        return self._profile

    @property
    def is_playing(self) -> bool:
        return self._playback.state == PlaybackState.PLAYING

    @property
    def is_paused(self) -> bool:
        return self._playback.state == PlaybackState.PAUSED

    @property
    def is_stopped(self) -> bool:
        return self._playback.state == PlaybackState.STOPPED

    @property
    def progress(self) -> float:
        """Percentage of the dive elapsed."""
        if self._playback.total_time == 0:
            return 0.0
        return self._playback.current_time / self._playback.total_time * 100.0

    def tissue_saturation_percentages(self) -> List[float]:
        if self._deco is None:
            return []
        return self._deco.tissue_saturation_percentages()

    # -- controls -------------------------------------------------------

    def load_profile(self, profile: DiveProfile) -> None:
        """Make ``profile`` current and publish the snapshot at t=0."""
        self._cancel_tick()
        self._profile = profile
        # Stable sort keeps file order for simultaneous events
        self._events = tuple(sorted(profile.events, key=lambda e: e.time))
        self._reset_simulation()
        logger.info(
            f"Loaded profile {profile.id!r} ({profile.name}), "
            f"{profile.total_time:.1f} min, {len(profile.events)} events"
        )

    def play(self) -> None:
        if self._profile is None:
            logger.warning("play() ignored: no profile loaded")
            return

        self._cancel_tick()
        try:
            now = self.scheduler.now()
            self._schedule_tick()
        except RuntimeError as e:
            # AsyncioScheduler outside a running event loop
            logger.warning(f"play() ignored: {e}")
            if self.is_playing:
                self._playback = replace(self._playback, state=PlaybackState.PAUSED)
            return

        self._last_tick_time = now
        self._playback = replace(self._playback, state=PlaybackState.PLAYING)

    def pause(self) -> None:
        self._cancel_tick()
        if self._profile is None:
            return
        self._playback = replace(self._playback, state=PlaybackState.PAUSED)

    def stop(self) -> None:
        """Rewind to t=0 with fresh tissues, tank and event bookkeeping."""
        self._cancel_tick()
        if self._profile is None:
            return
        self._reset_simulation()

    def step_forward(self) -> None:
        if self._profile is None:
            logger.warning("step_forward() ignored: no profile loaded")
            return

        self.pause()
        step_minutes = self._playback.step_size / 60.0
        new_time = min(self._playback.current_time + step_minutes, self._playback.total_time)
        self._advance_to(new_time)

    def step_backward(self) -> None:
        if self._profile is None:
            logger.warning("step_backward() ignored: no profile loaded")
            return

        self.pause()
        step_minutes = self._playback.step_size / 60.0
        new_time = max(0.0, self._playback.current_time - step_minutes)
        self._replay_to(new_time)

    def seek_to(self, time_minutes: float) -> None:
        """Jump to ``time_minutes``, keeping the play/pause intent."""
        if self._profile is None:
            logger.warning("seek_to() ignored: no profile loaded")
            return

        was_playing = self.is_playing
        self.pause()

        target = max(0.0, min(time_minutes, self._playback.total_time))
        self._replay_to(target)

        if was_playing:
            self.play()

    def set_speed(self, speed: float) -> None:
        if speed not in PLAYBACK_SPEEDS:
            logger.warning(f"Unsupported playback speed {speed}, expected one of {PLAYBACK_SPEEDS}")
            return
        self._playback = replace(self._playback, speed=speed)

    def set_step_size(self, seconds: float) -> None:
        if seconds <= 0:
            logger.warning(f"Step size must be > 0 seconds, got {seconds}")
            return
        self._playback = replace(self._playback, step_size=seconds)

    def close(self) -> None:
        """Cancel any pending tick."""
        self._cancel_tick()

    # -- scheduling -----------------------------------------------------

    def _schedule_tick(self) -> None:
        self._tick_handle = self.scheduler.call_later(self.config.tick_interval, self._tick)

    def _cancel_tick(self) -> None:
        if self._tick_handle is not None:
            self._tick_handle.cancel()
            self._tick_handle = None
            logger.debug("Cancelled pending playback tick")

    def _tick(self) -> None:
        self._tick_handle = None
        if not self.is_playing:
            return

        now = self.scheduler.now()
        real_delta = now - self._last_tick_time
        self._last_tick_time = now

        sim_delta = real_delta * self._playback.speed / 60.0
        new_time = min(self._playback.current_time + sim_delta, self._playback.total_time)
        self._advance_to(new_time)

        if self._playback.current_time >= self._playback.total_time:
            self.pause()
            return
        self._schedule_tick()

    # -- simulation -----------------------------------------------------

    def _reset_simulation(self) -> None:
        profile = self._profile
        gf = self.config.gradient_factors
        self._deco = DecompressionModel(gf_low=gf.gf_low, gf_high=gf.gf_high)
        self._air = AirConsumptionModel(
            profile.initial_tank_pressure, profile.tank_volume, profile.sac_rate
        )
        self._processed_events = set()
        self._max_depth = 0.0
        self._safety_stop_completed = False
        self._dive_state = None
        self._playback = replace(
            self._playback,
            state=PlaybackState.STOPPED,
            current_time=0.0,
            total_time=profile.total_time,
        )
        self._update_dive_state(0.0)

    def _replay_to(self, target: float) -> None:
        """Rebuild state from t=0 to ``target`` in 1-second advances."""
        logger.debug(f"Replaying to t={target:.3f} min")
        self._reset_simulation()

        n_steps = math.floor(target * REPLAY_STEPS_PER_MINUTE + TIME_EPSILON)
        for i in range(1, n_steps + 1):
            self._advance_to(i / REPLAY_STEPS_PER_MINUTE)
        if target - self._playback.current_time > TIME_EPSILON:
            self._advance_to(target)

        self._playback = replace(
            self._playback, state=PlaybackState.PAUSED, current_time=target
        )

    def _advance_to(self, new_time: float) -> None:
        time_delta = new_time - self._playback.current_time
        self._playback = replace(self._playback, current_time=new_time)
        self._update_dive_state(time_delta)

    def _process_events(self, current_time: float, time_delta: float) -> List[DiveEvent]:
        """Fire each due event once; returns the events fired on this advance."""
        fired = []
        previous_time = current_time - time_delta

        for event in self._events:
            if event.key in self._processed_events:
                continue
            due = abs(current_time - event.time) < EVENT_WINDOW
            if not due and self.config.event_catch_up and time_delta > 0:
                due = previous_time < event.time <= current_time
            if not due:
                continue

            self._processed_events.add(event.key)
            self._air.apply_event(event)
            fired.append(event)
            logger.debug(f"Event {event.type.value} fired at t={current_time:.3f} min")

        return fired

    def _calculate_safety_stop(
        self,
        current_depth: float,
        previous: Optional[SafetyStopState],
        time_delta: float,
    ) -> SafetyStopState:
        required = (
            self._max_depth >= SAFETY_STOP_TRIGGER_DEPTH and not self._safety_stop_completed
        )
        in_band = SAFETY_STOP_MIN_DEPTH <= current_depth <= SAFETY_STOP_MAX_DEPTH

        if required and in_band:
            if previous is not None and previous.active:
                # time_delta in minutes, remaining in seconds
                remaining = max(0.0, previous.remaining - time_delta * 60.0)
            else:
                remaining = SAFETY_STOP_DURATION
            if remaining > 0:
                return SafetyStopState(required=True, active=True, remaining=remaining)
            self._safety_stop_completed = True

        if self._safety_stop_completed:
            return SafetyStopState(required=False, active=False, remaining=0.0, completed=True)
        return SafetyStopState(required=required, active=False)

    def _update_dive_state(self, time_delta: float) -> None:
        """Per-advance procedure for the instant at ``playback.current_time``."""
        previous = self._dive_state
        previous_depth = previous.current_depth if previous is not None else 0.0
        current_time = self._playback.current_time

        # Raw depth feeds the models; rounded depth drives rate and stop logic
        depth_raw = interpolate_depth(current_time, self._profile.waypoints)
        current_depth = round_depth(depth_raw)
        if current_depth > self._max_depth:
            self._max_depth = current_depth

        active_events = self._process_events(current_time, time_delta)

        self._deco.update_tissues(depth_raw, time_delta)
        deco_state = self._deco.get_deco_state(depth_raw)

        self._air.consume_air(depth_raw, time_delta, current_time)
        air_state = self._air.get_air_state(depth_raw)

        ascent_state = calculate_ascent_rate(previous_depth, current_depth, time_delta)
        safety_stop = self._calculate_safety_stop(
            current_depth,
            previous.safety_stop if previous is not None else None,
            time_delta,
        )

        self._dive_state = DiveState(
            current_time=current_time,
            current_depth=current_depth,
            max_depth=self._max_depth,
            deco=deco_state,
            air=air_state,
            ascent=ascent_state,
            safety_stop=safety_stop,
            active_warnings=build_warnings(
                self._air.check_warnings(), ascent_state, deco_state, active_events
            ),
        )
