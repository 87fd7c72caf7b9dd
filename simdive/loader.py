"""Load dive profile collections from JSON or YAML files."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Union

import yaml

from .profile import DiveEvent, DiveProfile, Waypoint

logger = logging.getLogger(__name__)

YAML_EXTENSIONS = ('.yaml', '.yml')


def profile_from_dict(data: Dict[str, Any]) -> DiveProfile:
    """Build a validated DiveProfile from its file representation.

    Keys follow the profile file format: id, name, description,
    initialTankPressure, tankVolume, sacRate, waypoints [{time, depth}] and
    events [{time, type, value?, message?}].

    Raises:
        ValueError: missing keys, unknown event types or invalid values
    """
    try:
        waypoints = [
            Waypoint(time=float(w['time']), depth=float(w['depth']))
            for w in data['waypoints']
        ]
        events = [
            DiveEvent(
                time=float(e['time']),
                type=e['type'],
                value=float(e['value']) if e.get('value') is not None else None,
                message=e.get('message'),
            )
            for e in data.get('events', [])
        ]
        return DiveProfile(
            id=str(data['id']),
            name=str(data.get('name', data['id'])),
            description=str(data.get('description', '')),
            initial_tank_pressure=float(data['initialTankPressure']),
            tank_volume=float(data['tankVolume']),
            sac_rate=float(data['sacRate']),
            waypoints=waypoints,
            events=events,
        )
    except KeyError as e:
        raise ValueError(f"Profile is missing required key {e}") from e
    except TypeError as e:
        raise ValueError(f"Malformed profile: {e}") from e


def profile_to_dict(profile: DiveProfile) -> Dict[str, Any]:
    """Inverse of profile_from_dict."""
    events = []
    for event in profile.events:
        entry = {'time': event.time, 'type': event.type.value}
        if event.value is not None:
            entry['value'] = event.value
        if event.message is not None:
            entry['message'] = event.message
        events.append(entry)

    return {
        'id': profile.id,
        'name': profile.name,
        'description': profile.description,
        'initialTankPressure': profile.initial_tank_pressure,
        'tankVolume': profile.tank_volume,
        'sacRate': profile.sac_rate,
        'waypoints': [{'time': w.time, 'depth': w.depth} for w in profile.waypoints],
        'events': events,
    }


def load_profiles(path: Union[str, Path]) -> List[DiveProfile]:
    """
    Load a {"profiles": [...]} collection.

    Malformed entries are skipped with a warning; an unreadable or
    unparsable file raises.

    Args:
        path: .json, .yaml or .yml file

    Returns:
        List of DiveProfile objects in file order
    """
    filepath = Path(path)
    text = filepath.read_text(encoding='utf-8')

    if filepath.suffix.lower() in YAML_EXTENSIONS:
        data = yaml.safe_load(text) or {}
    else:
        data = json.loads(text)

    if not isinstance(data, dict) or not isinstance(data.get('profiles'), list):
        raise ValueError(f"{filepath.name}: expected a mapping with a 'profiles' list")

    profiles = []
    for i, entry in enumerate(data['profiles']):
        try:
            profiles.append(profile_from_dict(entry))
        except ValueError as e:
            logger.warning(f"Skipping profile #{i} in {filepath.name}: {e}")

    logger.info(f"Loaded {len(profiles)} profiles from {filepath.name}")
    return profiles


def save_profiles(profiles: List[DiveProfile], path: Union[str, Path]) -> None:
    """Write profiles as a {"profiles": [...]} collection (format from the extension)."""
    filepath = Path(path)
    data = {'profiles': [profile_to_dict(p) for p in profiles]}

    filepath.parent.mkdir(parents=True, exist_ok=True)
    if filepath.suffix.lower() in YAML_EXTENSIONS:
        filepath.write_text(yaml.safe_dump(data, sort_keys=False), encoding='utf-8')
    else:
        filepath.write_text(json.dumps(data, indent=2), encoding='utf-8')
