"""
Unit tests for simdive/profile_generator.py.

Validates:
- Waypoint corners for square, multilevel and deco profiles
- Descent/ascent rates and safety stop placement
- Tank settings and events passed through to the profile
- Batch generation
"""

import pytest

from simdive.profile import DiveEvent, DiveEventType
from simdive.profile_generator import ProfileGenerator


def _corners(profile):
    return [(w.time, w.depth) for w in profile.waypoints]


class TestGenerateSquare:
    """Tests for generate_square method."""

    def test_square_with_safety_stop(self):
        """20m/30min: descent at 20 m/min, ascent at 10 m/min, 3 min at 5m."""
        profile = ProfileGenerator().generate_square(20, 30)
        assert _corners(profile) == [
            (0.0, 0.0),
            (1.0, 20),
            (31.0, 20),
            (32.5, 5.0),
            (35.5, 5.0),
            (36.0, 0.0),
        ]
        assert profile.id == "square_20m_30min"
        assert profile.max_depth == 20
        assert profile.total_time == pytest.approx(36.0)

    def test_shallow_square_skips_safety_stop(self):
        profile = ProfileGenerator().generate_square(8, 30)
        assert _corners(profile) == [(0.0, 0.0), (0.4, 8), (30.4, 8), (31.2, 0.0)]

    def test_safety_stop_disabled(self):
        profile = ProfileGenerator().generate_square(20, 30, safety_stop=False)
        assert all(w.depth != 5.0 for w in profile.waypoints)
        assert profile.total_time == pytest.approx(33.0)

    def test_custom_rates(self):
        profile = ProfileGenerator(descent_rate=10, ascent_rate=5).generate_square(
            20, 10, safety_stop=False
        )
        assert _corners(profile) == [(0.0, 0.0), (2.0, 20), (12.0, 20), (16.0, 0.0)]

    def test_tank_settings_and_events(self):
        events = [DiveEvent(time=10, type=DiveEventType.AIR_SHARING)]
        profile = ProfileGenerator().generate_square(
            18, 20, initial_tank_pressure=230, tank_volume=15, sac_rate=16, events=events
        )
        assert profile.initial_tank_pressure == 230
        assert profile.tank_volume == 15
        assert profile.sac_rate == 16
        assert profile.events == tuple(events)

    def test_times_non_decreasing(self):
        profile = ProfileGenerator().generate_square(33, 17)
        times = [w.time for w in profile.waypoints]
        assert times == sorted(times)


class TestGenerateMultilevel:
    def test_three_levels(self):
        profile = ProfileGenerator().generate_multilevel([(30, 10), (20, 10), (12, 10)])
        assert _corners(profile) == [
            (0.0, 0.0),
            (1.5, 30),
            (11.5, 30),
            (12.5, 20),
            (22.5, 20),
            (23.3, 12),
            (33.3, 12),
            (34.0, 5.0),
            (37.0, 5.0),
            (37.5, 0.0),
        ]
        assert profile.id == "multilevel_3levels"
        assert profile.max_depth == 30

    def test_empty_levels(self):
        with pytest.raises(ValueError, match="at least one level"):
            ProfileGenerator().generate_multilevel([])

    def test_no_safety_stop_when_already_shallow(self):
        profile = ProfileGenerator().generate_multilevel([(15, 10), (5, 10)])
        depths = [w.depth for w in profile.waypoints]
        assert depths == [0.0, 15, 15, 5, 5, 0.0]


class TestGenerateDecoSquare:
    def test_explicit_stops(self):
        profile = ProfileGenerator().generate_deco_square(40, 20, [(6, 3), (3, 5)])
        assert _corners(profile) == [
            (0.0, 0.0),
            (2.0, 40),
            (22.0, 40),
            (25.4, 6),
            (28.4, 6),
            (28.7, 3),
            (33.7, 3),
            (34.0, 0.0),
        ]
        assert profile.id == "deco_40m_20min_6m/3min+3m/5min"

    def test_without_stops(self):
        profile = ProfileGenerator().generate_deco_square(30, 10, [])
        assert profile.id == "deco_30m_10min_nodeco"
        assert profile.total_time == pytest.approx(14.5)


class TestGenerateBatch:
    def test_square_batch(self):
        profiles = ProfileGenerator().generate_batch([18, 30], [20, 40])
        assert len(profiles) == 4
        assert [p.id for p in profiles] == [
            "square_18m_20min",
            "square_18m_40min",
            "square_30m_20min",
            "square_30m_40min",
        ]

    def test_multilevel_batch(self):
        profiles = ProfileGenerator().generate_batch([30], [40], profile_type="multilevel")
        assert len(profiles) == 1
        depths = [w.depth for w in profiles[0].waypoints]
        assert 30 in depths
        assert 20 in depths

    def test_unknown_type(self):
        with pytest.raises(ValueError, match="Unknown profile type"):
            ProfileGenerator().generate_batch([20], [20], profile_type="yoyo")
