"""
Bühlmann ZH-L16C constants and gradient factor calculations.

Single source of truth for physical constants, M-value parameters and
GF-adjusted decompression math. All functions are pure (no side effects) and
accept either scalars or numpy arrays of per-compartment values.
"""

from dataclasses import dataclass
from typing import Tuple

import numpy as np

# Physical constants
WATER_VAPOR_PRESSURE = 0.0627  # bar at 37°C
SURFACE_PRESSURE = 1.013  # bar at sea level
N2_FRACTION = 0.79
O2_FRACTION = 0.21
METERS_TO_BAR = 0.1  # 10m of seawater = 1 bar

# Ascent / safety stop rules
MAX_ASCENT_RATE = 10.0  # m/min
SAFETY_STOP_DEPTH = 5.0  # m
SAFETY_STOP_DURATION = 180.0  # seconds
SAFETY_STOP_MIN_DEPTH = 4.0
SAFETY_STOP_MAX_DEPTH = 6.0
SAFETY_STOP_TRIGGER_DEPTH = 10.0

# Deco planning
NDL_CAP = 999
DECO_STOP_INCREMENT = 3
DECO_ASCENT_RATE = 10.0  # m/min
MAX_STOP_TIME = 120  # minutes simulated per stop

# ZH-L16C N2 compartment parameters (16 compartments)
# Half-times in minutes
ZH_L16C_N2_HALFTIMES: Tuple[float, ...] = (
    4.0, 8.0, 12.5, 18.5, 27.0, 38.3, 54.3, 77.0,
    109.0, 146.0, 187.0, 239.0, 305.0, 390.0, 498.0, 635.0,
)

# M-value coefficients: M(P) = a + P/b
ZH_L16C_N2_A: Tuple[float, ...] = (
    1.2599, 1.0000, 0.8618, 0.7562, 0.6200, 0.5043, 0.4410, 0.4000,
    0.3750, 0.3500, 0.3295, 0.3065, 0.2835, 0.2610, 0.2480, 0.2327,
)

ZH_L16C_N2_B: Tuple[float, ...] = (
    0.5050, 0.6514, 0.7222, 0.7825, 0.8126, 0.8434, 0.8693, 0.8910,
    0.9092, 0.9222, 0.9319, 0.9403, 0.9477, 0.9544, 0.9602, 0.9653,
)

NUM_COMPARTMENTS = 16


@dataclass(frozen=True)
class GradientFactors:
    """Gradient factor pair for Bühlmann decompression adjustments.

    gf_low:  applied at the deepest ceiling (first stop), controls first stop depth
    gf_high: applied at the surface, controls final ascent and NDL
    Values are fractions (0.0 to 1.0), where 1.0 = use full M-value (standard Bühlmann).
    """
    gf_low: float = 0.30
    gf_high: float = 0.85

    def __post_init__(self):
        if not (0.0 < self.gf_low <= 1.0):
            raise ValueError(f"gf_low must be in (0, 1.0], got {self.gf_low}")
        if not (0.0 < self.gf_high <= 1.0):
            raise ValueError(f"gf_high must be in (0, 1.0], got {self.gf_high}")
        if self.gf_low > self.gf_high:
            raise ValueError(
                f"gf_low ({self.gf_low}) must be <= gf_high ({self.gf_high})"
            )

    @property
    def is_standard(self) -> bool:
        """True if GF 100/100 (no adjustment)."""
        return self.gf_low == 1.0 and self.gf_high == 1.0


GF_DEFAULT = GradientFactors(gf_low=0.30, gf_high=0.85)


def ambient_pressure(depth):
    """Absolute pressure (bar) at a depth in meters of seawater."""
    return SURFACE_PRESSURE + depth * METERS_TO_BAR


def inspired_n2(depth):
    """Inspired N2 partial pressure at depth, corrected for water vapour."""
    return (ambient_pressure(depth) - WATER_VAPOR_PRESSURE) * N2_FRACTION


SURFACE_N2_PRESSURE = inspired_n2(0.0)


def schreiner_vec(
    pt0: np.ndarray, p_inspired: float, t: float, k: np.ndarray
) -> np.ndarray:
    """Constant-depth tissue loading for all compartments.

    P(t) = P0 + (Pi - P0) * (1 - exp(-k*t)), with k = ln2 / halftime.
    """
    return pt0 + (p_inspired - pt0) * (1.0 - np.exp(-k * t))


def m_value(a, b, depth):
    """Standard M-value at a given depth.

    M(P) = a + P/b
    """
    return a + ambient_pressure(depth) / b


def gradient_factor_at(depth: float, first_stop_depth: float, gf: GradientFactors) -> float:
    """Linear GF interpolation between gf_high (surface) and gf_low (first stop).

    Falls back to gf_high when there is no first stop.
    """
    if first_stop_depth <= 0:
        return gf.gf_high
    depth_ratio = depth / first_stop_depth
    return gf.gf_high + (gf.gf_low - gf.gf_high) * depth_ratio


def m_value_gf(a, b, depth: float, first_stop_depth: float, gf: GradientFactors):
    """GF-adjusted M-value at a candidate depth.

    M_gf(P) = P + gf * (M(P) - P)
    """
    p_amb = ambient_pressure(depth)
    factor = gradient_factor_at(depth, first_stop_depth, gf)
    return p_amb + factor * (m_value(a, b, depth) - p_amb)


def surface_m_value_gf(a, b, gf_high: float):
    """gf_high-adjusted M-value at the surface, the NDL and saturation target."""
    surface_m = a + SURFACE_PRESSURE / b
    return SURFACE_PRESSURE + gf_high * (surface_m - SURFACE_PRESSURE)


def ceiling_depth(a, b, tissue_pressure, gf_low: float):
    """Ceiling depth (m) per compartment, scaled by gf_low.

    Inverts M(P) = a + P/b for the ambient pressure at which the tissue sits on
    its M-value, then converts to depth. Negative results mean no ceiling.
    """
    p_ceiling = b * (tissue_pressure - a)
    return (p_ceiling - SURFACE_PRESSURE) / METERS_TO_BAR / gf_low


def time_to_limit(p_tissue, p_inspired, limit, halftime):
    """Inverse Schreiner: minutes until a tissue loading toward p_inspired reaches limit.

    Per compartment, returns np.inf when the tissue never reaches the limit at
    this inspired pressure and 0.0 when it already has. Scalars in, float out.
    """
    p_tissue = np.asarray(p_tissue, dtype=float)
    limit = np.asarray(limit, dtype=float)
    k = np.log(2) / np.asarray(halftime, dtype=float)

    # Masked branches below may divide by zero or take log of a negative
    with np.errstate(divide="ignore", invalid="ignore"):
        t = -np.log((p_inspired - limit) / (p_inspired - p_tissue)) / k
    t = np.where(p_inspired <= limit, np.inf, t)
    t = np.where(p_tissue >= limit, 0.0, t)

    if t.ndim == 0:
        return float(t)
    return t
