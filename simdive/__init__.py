"""
Dive computer simulation for teaching.

Modules:
    - buhlmann_constants: ZH-L16C constants and gradient factor math
    - decompression: Bühlmann tissue model (ceiling, NDL, stops, TTS)
    - air_consumption: tank pressure and breathing rate model
    - profile: waypoints, events and dive profiles
    - profile_generator: square / multilevel / deco profile builders
    - loader: JSON and YAML profile collections
    - engine: playback state machine publishing DiveState snapshots
"""

from .buhlmann_constants import GradientFactors, GF_DEFAULT
from .decompression import DecompressionModel, DecoState, DecoStop, TissueCompartment
from .air_consumption import AirConsumptionModel, AirState
from .profile import DiveEvent, DiveEventType, DiveProfile, Waypoint, interpolate_depth
from .profile_generator import ProfileGenerator
from .loader import load_profiles, profile_from_dict, profile_to_dict, save_profiles
from .state import (
    AscentState,
    DiveState,
    DiveWarning,
    PlaybackControl,
    PlaybackState,
    SafetyStopState,
    WarningLevel,
)
from .scheduler import AsyncioScheduler, ManualScheduler, TickScheduler
from .config import EngineConfig, load_effective_config
from .engine import DiveEngine

__all__ = [
    "GradientFactors",
    "GF_DEFAULT",
    "DecompressionModel",
    "DecoState",
    "DecoStop",
    "TissueCompartment",
    "AirConsumptionModel",
    "AirState",
    "DiveEvent",
    "DiveEventType",
    "DiveProfile",
    "Waypoint",
    "interpolate_depth",
    "ProfileGenerator",
    "load_profiles",
    "profile_from_dict",
    "profile_to_dict",
    "save_profiles",
    "AscentState",
    "DiveState",
    "DiveWarning",
    "PlaybackControl",
    "PlaybackState",
    "SafetyStopState",
    "WarningLevel",
    "AsyncioScheduler",
    "ManualScheduler",
    "TickScheduler",
    "EngineConfig",
    "load_effective_config",
    "DiveEngine",
]
