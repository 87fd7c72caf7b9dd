"""Tests for the ZH-L16C decompression model."""

import math

import numpy as np
import pytest

from simdive.buhlmann_constants import (
    MAX_STOP_TIME,
    NDL_CAP,
    SURFACE_N2_PRESSURE,
    inspired_n2,
)
from simdive.decompression import DecompressionModel, DecoStop


def _loaded_model(depth: float, minutes: float, **gf) -> DecompressionModel:
    model = DecompressionModel(**gf)
    model.update_tissues(depth, minutes)
    return model


class TestInitialization:
    def test_surface_saturation(self):
        model = DecompressionModel()
        np.testing.assert_allclose(model.p_n2, SURFACE_N2_PRESSURE)

    def test_default_gradient_factors(self):
        model = DecompressionModel()
        assert model.gf_low == 0.30
        assert model.gf_high == 0.85

    def test_invalid_gradient_factors(self):
        with pytest.raises(ValueError):
            DecompressionModel(gf_low=0.9, gf_high=0.5)

    def test_tissue_view(self):
        tissues = DecompressionModel().tissues
        assert len(tissues) == 16
        assert tissues[0].half_time == 4.0
        assert tissues[0].a == pytest.approx(1.2599)
        assert tissues[-1].half_time == 635.0
        assert all(t.p_n2 == pytest.approx(SURFACE_N2_PRESSURE) for t in tissues)

    def test_reset(self):
        model = _loaded_model(30, 20)
        model.reset()
        np.testing.assert_allclose(model.p_n2, SURFACE_N2_PRESSURE)


class TestTissueLoading:
    """Schreiner update applied to the live tissue vector."""

    def test_monotonic_approach(self):
        """Constant depth: every compartment rises toward, never past, inspired."""
        model = DecompressionModel()
        target = inspired_n2(30.0)
        previous = model.p_n2.copy()
        for _ in range(60):
            model.update_tissues(30.0, 1.0)
            assert np.all(model.p_n2 > previous)
            assert np.all(model.p_n2 <= target)
            previous = model.p_n2.copy()

    def test_no_overshoot_in_one_long_update(self):
        model = _loaded_model(30.0, 100000.0)
        assert np.all(model.p_n2 <= inspired_n2(30.0) + 1e-12)
        np.testing.assert_allclose(model.p_n2, inspired_n2(30.0))

    def test_surface_equilibrium_idempotent(self):
        model = DecompressionModel()
        model.update_tissues(0.0, 120.0)
        np.testing.assert_allclose(model.p_n2, SURFACE_N2_PRESSURE, rtol=0, atol=1e-12)

    def test_zero_duration_is_noop(self):
        model = _loaded_model(20.0, 10.0)
        before = model.p_n2.copy()
        model.update_tissues(40.0, 0.0)
        np.testing.assert_array_equal(model.p_n2, before)

    def test_fast_compartments_load_first(self):
        model = _loaded_model(30.0, 5.0)
        assert np.all(np.diff(model.p_n2) < 0)

    def test_split_updates_match_single_update(self):
        """Loading is path-consistent at constant depth."""
        split = DecompressionModel()
        for _ in range(10):
            split.update_tissues(25.0, 1.0)
        single = _loaded_model(25.0, 10.0)
        np.testing.assert_allclose(split.p_n2, single.p_n2)


class TestCeiling:
    def test_no_ceiling_at_start(self):
        assert DecompressionModel().calculate_ceiling() == 0

    def test_no_ceiling_for_short_shallow_dive(self):
        assert _loaded_model(20.0, 30.0).calculate_ceiling() == 0

    def test_ceiling_after_long_deep_exposure(self):
        ceiling = _loaded_model(40.0, 40.0).calculate_ceiling()
        assert ceiling > 0
        assert isinstance(ceiling, int)

    def test_ceiling_never_negative(self):
        model = DecompressionModel()
        for depth in (0, 5, 10, 20, 40, 60):
            model.update_tissues(depth, 5.0)
            assert model.calculate_ceiling() >= 0

    def test_lower_gf_low_is_more_conservative(self):
        aggressive = _loaded_model(40.0, 30.0, gf_low=0.8, gf_high=0.85)
        conservative = _loaded_model(40.0, 30.0, gf_low=0.3, gf_high=0.85)
        assert conservative.calculate_ceiling() >= aggressive.calculate_ceiling()


class TestNDL:
    def test_unbounded_at_surface(self):
        model = DecompressionModel()
        assert model.calculate_ndl(0.0) == NDL_CAP
        assert model.calculate_ndl(-1.0) == NDL_CAP

    def test_shallow_depth_is_capped_or_long(self):
        """At 3m no compartment can reach its surface limit."""
        assert DecompressionModel().calculate_ndl(3.0) == NDL_CAP

    def test_fresh_ndl_at_30m(self):
        # Compartment 2 (8 min) controls: ~12.6 min with GF high 0.85
        ndl = DecompressionModel().calculate_ndl(30.0)
        assert 10 <= ndl <= 15

    def test_ndl_is_whole_minutes(self):
        assert isinstance(DecompressionModel().calculate_ndl(25.0), int)

    def test_ndl_decreases_with_depth(self):
        model = _loaded_model(20.0, 10.0)
        ndls = [model.calculate_ndl(depth) for depth in (12.0, 18.0, 24.0, 30.0, 40.0)]
        for shallower, deeper in zip(ndls, ndls[1:]):
            assert deeper <= shallower

    def test_ndl_decreases_with_time(self):
        model = DecompressionModel()
        first = model.calculate_ndl(25.0)
        model.update_tissues(25.0, 5.0)
        assert model.calculate_ndl(25.0) < first

    def test_zero_once_limit_exceeded(self):
        model = _loaded_model(40.0, 40.0)
        assert model.calculate_ndl(40.0) == 0


class TestDecoStops:
    def test_no_stops_without_ceiling(self):
        assert DecompressionModel().calculate_deco_stops() == []

    def test_stops_after_deep_exposure(self):
        model = _loaded_model(40.0, 40.0)
        ceiling = model.calculate_ceiling()
        first_stop = math.ceil(ceiling / 3) * 3
        stops = model.calculate_deco_stops()

        assert stops
        depths = [s.depth for s in stops]
        assert depths == sorted(depths, reverse=True)
        assert all(d % 3 == 0 and 3 <= d <= first_stop for d in depths)
        assert all(s.duration > 0 for s in stops)
        assert depths[-1] == 3

    def test_stop_planning_leaves_live_tissues_untouched(self):
        model = _loaded_model(40.0, 40.0)
        before = model.p_n2.copy()
        model.calculate_deco_stops()
        np.testing.assert_array_equal(model.p_n2, before)

    def test_each_stop_capped(self):
        model = DecompressionModel()
        model.p_n2 = np.full(16, inspired_n2(100.0))
        stops = model.calculate_deco_stops()
        assert stops
        assert all(s.duration <= MAX_STOP_TIME for s in stops)

    def test_explicit_ceiling_argument(self):
        model = _loaded_model(40.0, 40.0)
        assert model.calculate_deco_stops(0) == []
        assert model.calculate_deco_stops(model.calculate_ceiling()) == model.calculate_deco_stops()


class TestTimeToSurface:
    def test_direct_ascent(self):
        model = DecompressionModel()
        assert model.calculate_tts(20.0) == 2
        assert model.calculate_tts(25.0) == 3
        assert model.calculate_tts(0.0) == 0

    def test_includes_stops(self):
        model = _loaded_model(40.0, 40.0)
        stops = model.calculate_deco_stops()
        tts = model.calculate_tts(40.0)
        assert tts > sum(s.duration for s in stops)

    def test_hand_computed_with_given_stops(self):
        model = DecompressionModel()
        stops = [DecoStop(6, 2), DecoStop(3, 5)]
        # (30 - 6) / 10 + 7 + 3 / 10 = 9.7 -> 10
        assert model.calculate_tts(30.0, ceiling=6, deco_stops=stops) == 10

    def test_above_ceiling_does_not_go_negative(self):
        model = DecompressionModel()
        stops = [DecoStop(3, 4)]
        # Diver at 2m with a 5m ceiling: no ascent leg, 4 min stop, 0.3 min final ascent
        assert model.calculate_tts(2.0, ceiling=5, deco_stops=stops) == 5


class TestDecoState:
    def test_no_deco_state(self):
        state = _loaded_model(20.0, 10.0).get_deco_state(20.0)
        assert state.ceiling == 0
        assert state.ndl >= 0
        assert state.deco_stops == ()
        assert not state.in_deco
        assert state.gf_low == 0.30
        assert state.gf_high == 0.85

    def test_deco_state(self):
        state = _loaded_model(40.0, 40.0).get_deco_state(40.0)
        assert state.ceiling > 0
        assert state.ndl == -1
        assert len(state.deco_stops) > 0
        assert state.in_deco
        assert state.tts > sum(s.duration for s in state.deco_stops)

    def test_snapshot_is_detached(self):
        model = _loaded_model(20.0, 10.0)
        state = model.get_deco_state(20.0)
        model.update_tissues(40.0, 30.0)
        assert state.tissues[0].p_n2 < model.p_n2[0]


class TestSaturationPercentages:
    def test_sixteen_values_in_range(self):
        values = _loaded_model(40.0, 60.0).tissue_saturation_percentages()
        assert len(values) == 16
        assert all(0.0 <= v <= 100.0 for v in values)

    def test_surface_values(self):
        model = DecompressionModel()
        values = model.tissue_saturation_percentages()
        limits = model._surface_limits
        for value, limit in zip(values, limits):
            assert value == pytest.approx(SURFACE_N2_PRESSURE / limit * 100)

    def test_clamped_at_100(self):
        values = _loaded_model(50.0, 500.0).tissue_saturation_percentages()
        assert max(values) == 100.0
