"""
SimDive - Dive Computer Simulator

Runs a dive profile through the dive engine (Bühlmann ZH-L16C with gradient
factors plus air consumption) and prints what a dive computer would show
along the way. Profiles come from the built-in generator or a profile file.

Usage:
    python main.py                                   # Default square dive
    python main.py --depth 30 --time 20              # Quick square profile override
    python main.py --profile multilevel              # Use a multilevel profile
    python main.py --profile-file profiles/profiles.json --profile-id deco-40m
    python main.py --seek 42                         # Detailed snapshot at 42 min
    python main.py --realtime --speed 10             # Play in wall-clock time
"""

import argparse
import asyncio
import logging
import sys

import matplotlib.pyplot as plt

from simdive.config import load_effective_config
from simdive.engine import DiveEngine
from simdive.loader import load_profiles
from simdive.profile import DiveProfile
from simdive.profile_generator import ProfileGenerator
from simdive.scheduler import AsyncioScheduler, ManualScheduler
from simdive.state import PLAYBACK_SPEEDS, DiveState


# --- USER CONFIGURATION ---
# Edit these values to plan your dive, or override via CLI arguments.

DIVE_CONFIG = {
    "profile_type": "square",       # "square" or "multilevel"
    "depth_m": 20,                  # Depth for square profiles (meters)
    "bottom_time_min": 30,          # Bottom time (minutes)

    # Multilevel profile: list of (depth_m, duration_min), deepest first
    "multilevel_levels": [
        (30, 10),
        (20, 10),
        (10, 10),
    ],

    # Tank setup
    "initial_tank_pressure": 200,   # bar
    "tank_volume": 12,              # liters
    "sac_rate": 20,                 # L/min at the surface

    # Descent/ascent rates
    "descent_rate": 20.0,           # m/min
    "ascent_rate": 10.0,            # m/min (conservative)
}


def setup_logging(verbose: bool = False):
    """Set up logging configuration."""
    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(level=level, format=log_format, handlers=[logging.StreamHandler()])


def build_profile(config: dict) -> DiveProfile:
    """Build a DiveProfile from user configuration."""
    gen = ProfileGenerator(
        descent_rate=config["descent_rate"],
        ascent_rate=config["ascent_rate"],
    )
    tank = {
        "initial_tank_pressure": config["initial_tank_pressure"],
        "tank_volume": config["tank_volume"],
        "sac_rate": config["sac_rate"],
    }

    profile_type = config["profile_type"]

    if profile_type == "square":
        return gen.generate_square(
            depth=config["depth_m"],
            bottom_time=config["bottom_time_min"],
            **tank,
        )
    elif profile_type == "multilevel":
        return gen.generate_multilevel(levels=config["multilevel_levels"], **tank)
    else:
        raise ValueError(
            f"Unknown profile type: {profile_type}. "
            "Use 'square' or 'multilevel'."
        )


def select_profile(path: str, profile_id: str = None) -> DiveProfile:
    """Pick a profile from a collection file (first one if no id given)."""
    profiles = load_profiles(path)
    if not profiles:
        raise ValueError(f"No valid profiles in {path}")
    if profile_id is None:
        return profiles[0]
    for profile in profiles:
        if profile.id == profile_id:
            return profile
    available = ", ".join(p.id for p in profiles)
    raise ValueError(f"Profile {profile_id!r} not found. Available: {available}")


def print_dive_plan(profile: DiveProfile, engine: DiveEngine) -> None:
    """Print dive plan summary before simulation."""
    gf = engine.config.gradient_factors
    print("--- DIVE PLAN ---")
    print(f"Profile: {profile.name} ({profile.id})")
    if profile.description:
        print(f"Description: {profile.description}")
    print(f"Max depth: {profile.max_depth:.0f}m")
    print(f"Duration: {profile.total_time:.1f} min")
    print(f"Tank: {profile.tank_volume:.0f}L @ {profile.initial_tank_pressure:.0f} bar")
    print(f"SAC rate: {profile.sac_rate:.0f} L/min")
    print(f"Gradient factors: {gf.gf_low * 100:.0f}/{gf.gf_high * 100:.0f}")
    print(f"Events: {len(profile.events)}")


def format_row(state: DiveState) -> str:
    if state.deco.in_deco:
        limit = f"CEIL {state.deco.ceiling:>2d}m"
    else:
        limit = f"NDL {state.deco.ndl:>4d}"
    warnings = ", ".join(w.message for w in state.active_warnings)
    return (
        f"{state.current_time:6.1f} {state.current_depth:6.1f} {limit:>10} "
        f"{state.deco.tts:4d} {state.air.tank_pressure:6.0f} {state.air.remaining_air_time:5d}"
        f"  {warnings}"
    )


def run_timeline(engine: DiveEngine, interval: float) -> list:
    """Step through the whole dive at 1-second resolution, printing every ``interval`` minutes.

    Returns the snapshots taken at each printed row.
    """
    print("\n--- TIMELINE ---")
    print("  time  depth     NDL/CEIL  TTS    bar  air   warnings")

    samples = [engine.dive_state]
    print(format_row(engine.dive_state))

    engine.set_step_size(1)
    next_sample = interval
    while engine.playback.current_time < engine.playback.total_time:
        engine.step_forward()
        state = engine.dive_state
        new_warnings = [w for w in state.active_warnings if w.code not in ("LOW_AIR", "CRITICAL_AIR", "DECO_REQUIRED")]
        if state.current_time + 1e-9 >= next_sample or new_warnings:
            print(format_row(state))
            samples.append(state)
            while next_sample <= state.current_time + 1e-9:
                next_sample += interval

    if samples[-1] is not engine.dive_state:
        samples.append(engine.dive_state)
        print(format_row(engine.dive_state))
    return samples


def print_snapshot(state: DiveState, saturations: list) -> None:
    """Print a detailed dive computer view of one snapshot."""
    print(f"\n--- SNAPSHOT @ {state.current_time:.2f} min ---")
    print(f"Depth: {state.current_depth:.1f}m (max {state.max_depth:.1f}m)")
    if state.deco.in_deco:
        print(f"Ceiling: {state.deco.ceiling}m")
        for stop in state.deco.deco_stops:
            print(f"  Stop {stop.depth:>2d}m  {stop.duration:>3d} min")
    else:
        print(f"NDL: {state.deco.ndl} min")
    print(f"TTS: {state.deco.tts} min")
    print(
        f"Tank: {state.air.tank_pressure:.0f} bar, remaining {state.air.remaining_air_time} min, "
        f"SAC {state.air.current_sac_rate:.1f} L/min (avg {state.air.average_sac_rate:.1f})"
    )
    print(f"Ascent rate: {state.ascent.rate:+.1f} m/min" + (" VIOLATION" if state.ascent.is_violation else ""))
    stop = state.safety_stop
    if stop.active:
        print(f"Safety stop: {stop.remaining:.0f}s remaining at {stop.depth:.0f}m")
    elif stop.required:
        print("Safety stop: required")
    elif stop.completed:
        print("Safety stop: completed")
    print("Tissues: " + " ".join(f"{s:3.0f}" for s in saturations))
    for warning in state.active_warnings:
        print(f"[{warning.type.value.upper()}] {warning.message}")


def print_results(engine: DiveEngine, samples: list) -> None:
    """Print simulation summary."""
    final = engine.dive_state
    deepest_ceiling = max(s.deco.ceiling for s in samples)
    violations = sum(1 for s in samples if s.ascent.is_violation)

    print("\n--- SIMULATION RESULTS ---")
    print(f"Max depth: {final.max_depth:.1f}m")
    print(f"Air consumed: {final.air.air_consumed:.0f} bar, {final.air.tank_pressure:.0f} bar left")
    print(f"Average SAC rate: {final.air.average_sac_rate:.1f} L/min")

    if deepest_ceiling > 0:
        print(f"\nWARNING: Decompression required (deepest ceiling {deepest_ceiling}m).")
    else:
        print("\nNo-decompression dive.")
    if violations:
        print(f"Ascent rate violations at {violations} sampled points.")


def plot_results(profile: DiveProfile, samples: list, saturations: list) -> None:
    """Visualize depth, tank pressure and final tissue saturation."""
    times = [s.current_time for s in samples]
    depths = [s.current_depth for s in samples]
    pressures = [s.air.tank_pressure for s in samples]
    ceilings = [s.deco.ceiling for s in samples]

    _fig, axes = plt.subplots(3, 1, figsize=(12, 12))

    # --- Row 0: Depth Profile with ceiling ---
    ax_depth = axes[0]
    ax_depth.plot(times, depths, "b-", linewidth=2, label="Depth")
    ax_depth.step(times, ceilings, "r--", where="post", label="Ceiling")
    ax_depth.set_ylabel("Depth (m)")
    ax_depth.set_xlabel("Time (min)")
    ax_depth.set_title(f"Dive Profile: {profile.name}")
    ax_depth.invert_yaxis()
    ax_depth.grid(True, alpha=0.3)
    ax_depth.fill_between(times, depths, alpha=0.15, color="blue")
    ax_depth.legend(loc="lower right")

    # --- Row 1: Tank pressure ---
    ax_air = axes[1]
    ax_air.plot(times, pressures, "g-", linewidth=2)
    ax_air.axhline(y=50, color="orange", linestyle="--", alpha=0.7, label="Reserve")
    ax_air.axhline(y=20, color="red", linestyle="--", alpha=0.7, label="Critical")
    ax_air.set_ylabel("Tank pressure (bar)")
    ax_air.set_xlabel("Time (min)")
    ax_air.grid(True, alpha=0.3)
    ax_air.legend(loc="upper right")

    # --- Row 2: Final tissue saturation ---
    ax_tissue = axes[2]
    colors = ["red" if s >= 80 else "orange" if s >= 60 else "green" for s in saturations]
    ax_tissue.bar(range(1, len(saturations) + 1), saturations, color=colors)
    ax_tissue.set_ylim(0, 100)
    ax_tissue.set_xlabel("Compartment")
    ax_tissue.set_ylabel("% of surface M-value")
    ax_tissue.set_title("Tissue saturation at end of simulation")

    plt.tight_layout()
    plt.show()


async def play_realtime(engine: DiveEngine, speed: float, report_every: float = 5.0) -> None:
    """Play the loaded profile in wall-clock time, printing a row periodically."""
    engine.set_speed(speed)
    engine.play()
    print("  time  depth     NDL/CEIL  TTS    bar  air   warnings")
    while engine.is_playing:
        print(format_row(engine.dive_state))
        await asyncio.sleep(report_every)
    print(format_row(engine.dive_state))


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments for quick overrides."""
    parser = argparse.ArgumentParser(
        description="SimDive - Dive Computer Simulator",
    )
    parser.add_argument("--depth", type=float, help="Dive depth in meters")
    parser.add_argument("--time", type=float, help="Bottom time in minutes")
    parser.add_argument(
        "--profile", choices=["square", "multilevel"],
        help="Generated profile type",
    )
    parser.add_argument("--profile-file", type=str, help="JSON/YAML profile collection")
    parser.add_argument("--profile-id", type=str, help="Profile id within --profile-file")
    parser.add_argument("--seek", type=float, help="Print a detailed snapshot at this time (min)")
    parser.add_argument(
        "--interval", type=float, default=2.0,
        help="Timeline sampling interval in minutes (default: 2)",
    )
    parser.add_argument(
        "--gf", type=int, nargs=2, metavar=("LOW", "HIGH"),
        help="Gradient factors in percent, e.g. --gf 30 85",
    )
    parser.add_argument(
        "--config", type=str, default="config.yaml",
        help="Path to simulator config YAML (default: config.yaml)",
    )
    parser.add_argument("--realtime", action="store_true", help="Play in wall-clock time")
    parser.add_argument(
        "--speed", type=float, default=10, choices=PLAYBACK_SPEEDS,
        help="Playback speed for --realtime",
    )
    parser.add_argument("--plot", action="store_true", help="Plot the simulated dive")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    setup_logging(args.verbose)

    resolved = load_effective_config(gf_override=args.gf, config_path=args.config)

    # Build profile
    if args.profile_file:
        try:
            profile = select_profile(args.profile_file, args.profile_id)
        except (OSError, ValueError) as e:
            print(f"Error: {e}")
            sys.exit(1)
    else:
        config = DIVE_CONFIG.copy()
        if args.depth is not None:
            config["depth_m"] = args.depth
        if args.time is not None:
            config["bottom_time_min"] = args.time
        if args.profile is not None:
            config["profile_type"] = args.profile
        profile = build_profile(config)

    if args.realtime:
        async def _run():
            engine = DiveEngine(resolved["engine"], AsyncioScheduler())
            engine.load_profile(profile)
            print_dive_plan(profile, engine)
            await play_realtime(engine, args.speed)
            engine.close()

        asyncio.run(_run())
        return

    engine = DiveEngine(resolved["engine"], ManualScheduler())
    engine.load_profile(profile)
    print_dive_plan(profile, engine)

    if args.seek is not None:
        engine.seek_to(args.seek)
        print_snapshot(engine.dive_state, engine.tissue_saturation_percentages())
        return

    samples = run_timeline(engine, args.interval)
    saturations = engine.tissue_saturation_percentages()
    print_snapshot(engine.dive_state, saturations)
    print_results(engine, samples)

    if args.plot:
        plot_results(profile, samples, saturations)


if __name__ == "__main__":
    main()
