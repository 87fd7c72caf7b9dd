"""
Bühlmann ZH-L16C decompression model with gradient factors.

Holds the nitrogen loading of the 16 tissue compartments as a numpy vector and
answers the dive computer queries built on it: ceiling, no-decompression limit,
mandatory stops and time to surface.
"""

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np

from .buhlmann_constants import (
    DECO_ASCENT_RATE,
    DECO_STOP_INCREMENT,
    MAX_STOP_TIME,
    NDL_CAP,
    NUM_COMPARTMENTS,
    SURFACE_N2_PRESSURE,
    ZH_L16C_N2_A,
    ZH_L16C_N2_B,
    ZH_L16C_N2_HALFTIMES,
    GradientFactors,
    ceiling_depth,
    inspired_n2,
    m_value_gf,
    schreiner_vec,
    surface_m_value_gf,
    time_to_limit,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TissueCompartment:
    """One ZH-L16C compartment and its current N2 loading (bar)."""
    half_time: float
    a: float
    b: float
    p_n2: float


@dataclass(frozen=True)
class DecoStop:
    """A single mandatory decompression stop."""
    depth: int  # Stop depth in meters
    duration: int  # Minutes required at this stop


@dataclass(frozen=True)
class DecoState:
    """Decompression part of a dive snapshot."""
    tissues: Tuple[TissueCompartment, ...]
    ndl: int  # -1 while in deco
    ceiling: int  # meters, 0 when no stop is required
    deco_stops: Tuple[DecoStop, ...]
    tts: int  # minutes
    gf_low: float
    gf_high: float

    @property
    def in_deco(self) -> bool:
        return self.ceiling > 0


class DecompressionModel:
    """ZH-L16C tissue simulation vectorized across 16 compartments.

    The model is stateful: ``update_tissues`` advances the live tissue vector,
    every query reads it without side effects. Stop planning works on a copy.
    """

    def __init__(self, gf_low: float = 0.30, gf_high: float = 0.85):
        self.gradient_factors = GradientFactors(gf_low=gf_low, gf_high=gf_high)

        self.half_times = np.array(ZH_L16C_N2_HALFTIMES)
        self.a = np.array(ZH_L16C_N2_A)
        self.b = np.array(ZH_L16C_N2_B)
        # Decay constants k = ln(2) / halftime
        self.k = np.log(2) / self.half_times

        # NDL and saturation target, fixed for the lifetime of the model
        self._surface_limits = surface_m_value_gf(
            self.a, self.b, self.gradient_factors.gf_high
        )

        self.p_n2 = np.full(NUM_COMPARTMENTS, SURFACE_N2_PRESSURE)

    @property
    def gf_low(self) -> float:
        return self.gradient_factors.gf_low

    @property
    def gf_high(self) -> float:
        return self.gradient_factors.gf_high

    @property
    def tissues(self) -> Tuple[TissueCompartment, ...]:
        return tuple(
            TissueCompartment(
                half_time=float(self.half_times[c]),
                a=float(self.a[c]),
                b=float(self.b[c]),
                p_n2=float(self.p_n2[c]),
            )
            for c in range(NUM_COMPARTMENTS)
        )

    def reset(self) -> None:
        """Return every compartment to surface saturation."""
        self.p_n2 = np.full(NUM_COMPARTMENTS, SURFACE_N2_PRESSURE)

    def update_tissues(self, depth: float, minutes: float) -> None:
        """Load or unload all compartments for ``minutes`` spent at ``depth``."""
        if minutes <= 0:
            return
        self.p_n2 = schreiner_vec(self.p_n2, inspired_n2(depth), minutes, self.k)

    def calculate_ceiling(self) -> int:
        """Shallowest safe depth in whole meters (0 = direct ascent allowed)."""
        depths = ceiling_depth(self.a, self.b, self.p_n2, self.gf_low)
        return max(0, math.ceil(float(np.max(depths))))

    def calculate_ndl(self, depth: float) -> int:
        """Minutes left at ``depth`` before a stop becomes mandatory.

        Solves the inverse Schreiner equation per compartment against the
        gf_high surface M-value; compartments that can never reach it impose
        no limit. Unbounded results are reported as NDL_CAP.
        """
        if depth <= 0:
            return NDL_CAP

        times = time_to_limit(
            self.p_n2, inspired_n2(depth), self._surface_limits, self.half_times
        )
        min_ndl = float(np.min(times))

        if min_ndl == math.inf:
            return NDL_CAP
        return min(NDL_CAP, math.floor(min_ndl))

    def calculate_deco_stops(self, ceiling: Optional[int] = None) -> List[DecoStop]:
        """Stops at 3m increments from the first stop up to 3m.

        Each stop is held minute by minute on a copy of the tissue vector until
        no compartment exceeds its GF-adjusted M-value at the next stop depth.
        A stop never lasts more than MAX_STOP_TIME minutes.
        """
        if ceiling is None:
            ceiling = self.calculate_ceiling()
        if ceiling <= 0:
            return []

        first_stop = math.ceil(ceiling / DECO_STOP_INCREMENT) * DECO_STOP_INCREMENT
        sim_p_n2 = self.p_n2.copy()
        stops = []

        for stop_depth in range(first_stop, 0, -DECO_STOP_INCREMENT):
            p_inspired = inspired_n2(stop_depth)
            next_depth = stop_depth - DECO_STOP_INCREMENT
            limits = m_value_gf(
                self.a, self.b, next_depth, first_stop, self.gradient_factors
            )

            stop_time = 0
            while np.any(sim_p_n2 > limits):
                if stop_time >= MAX_STOP_TIME:
                    logger.warning(
                        f"Stop at {stop_depth}m did not clear after {MAX_STOP_TIME} min"
                    )
                    break
                stop_time += 1
                sim_p_n2 = schreiner_vec(sim_p_n2, p_inspired, 1.0, self.k)

            if stop_time > 0:
                stops.append(DecoStop(depth=stop_depth, duration=stop_time))

        return stops

    def calculate_tts(
        self,
        current_depth: float,
        ceiling: Optional[int] = None,
        deco_stops: Optional[List[DecoStop]] = None,
    ) -> int:
        """Time to surface: ascent to ceiling, all stops, final ascent."""
        if ceiling is None:
            ceiling = self.calculate_ceiling()
        if deco_stops is None:
            deco_stops = self.calculate_deco_stops(ceiling)

        ascent_time = max(0.0, (current_depth - ceiling) / DECO_ASCENT_RATE)
        deco_time = sum(stop.duration for stop in deco_stops)
        last_stop_depth = deco_stops[-1].depth if deco_stops else ceiling
        final_ascent = last_stop_depth / DECO_ASCENT_RATE

        return math.ceil(ascent_time + deco_time + final_ascent)

    def get_deco_state(self, current_depth: float) -> DecoState:
        ceiling = self.calculate_ceiling()
        if ceiling > 0:
            ndl = -1
            deco_stops = self.calculate_deco_stops(ceiling)
        else:
            ndl = self.calculate_ndl(current_depth)
            deco_stops = []
        tts = self.calculate_tts(current_depth, ceiling, deco_stops)

        return DecoState(
            tissues=self.tissues,
            ndl=ndl,
            ceiling=ceiling,
            deco_stops=tuple(deco_stops),
            tts=tts,
            gf_low=self.gf_low,
            gf_high=self.gf_high,
        )

    def tissue_saturation_percentages(self) -> List[float]:
        """Each compartment's loading as % of its gf_high surface M-value, in [0, 100]."""
        saturation = self.p_n2 / self._surface_limits * 100.0
        return [float(s) for s in np.clip(saturation, 0.0, 100.0)]
