"""Tests for the per-family yield calculators."""

import math

import numpy as np
import pytest
from conftest import SUMMER_SOLSTICE, make_config, make_context, make_foundation, make_panel, make_store, make_weather
from solaryield.api import (
    AbsorberPipe,
    AirMass,
    CellType,
    ClearSkyModel,
    FresnelReflector,
    Heliostat,
    InvalidElementData,
    LightSensor,
    MissingParentError,
    Obstacle,
    ParabolicDish,
    ParabolicTrough,
    PowerTower,
    ShadeTolerance,
    TrackerType,
    UpdraftTower,
    sun_direction,
)
from solaryield.components import (
    CALCULATORS,
    FlatPanelCalculator,
    FresnelReflectorCalculator,
    HeliostatCalculator,
    LightSensorCalculator,
    ParabolicDishCalculator,
    ParabolicTroughCalculator,
    UpdraftTowerCalculator,
    calculator_for,
    panel_rotation,
    pv_efficiency,
    time_factor,
)
from solaryield.constants import DIFFUSE_COEFFICIENTS
from solaryield.geometry import normalize
from solaryield.models.clock import day_of_year
from solaryield.physics import SunMinutes

NOON_SUN = sun_direction(SUMMER_SOLSTICE, 42.3)
DOY = day_of_year(SUMMER_SOLSTICE)
JUNE = 5
OVERHEAD = np.array([0.0, 0.0, 1.0])


def clear_sky_peak(sun, doy=DOY):
    return ClearSkyModel().peak_radiation(sun, doy, 0.0, AirMass.SPHERE_MODEL)


def reflect(direction, normal):
    return 2.0 * (normal @ direction) * normal - direction


class TestRegistry:
    def test_one_calculator_per_family(self):
        assert len(CALCULATORS) == 7
        for family, cls in CALCULATORS.items():
            assert cls.family == family

    def test_calculator_for_accepts_names(self):
        assert isinstance(calculator_for("heliostat"), HeliostatCalculator)


class TestTimeFactor:
    """Conversion from summed samples to cloud-adjusted hourly energy."""

    def test_scales_by_sunshine_share(self):
        weather = make_weather(sunshine_hours=[240.0] * 12)
        # 8 h of sunshine per day over 16 h of daylight, 4 samples per hour
        assert time_factor(weather, 3, SunMinutes(240, 1200), 4) == pytest.approx(8 / (16 * 4))

    def test_zero_without_daylight(self):
        assert time_factor(make_weather(), 11, SunMinutes(720, 720), 4) == 0.0


class TestFlatPanel:
    """Fixed and tracking PV panels."""

    def test_unobstructed_horizontal_panel(self):
        store = make_store(make_foundation(), make_panel())
        ctx = make_context(store)
        value = FlatPanelCalculator().yield_contribution(store.get("p1"), ctx, NOON_SUN, DOY, JUNE)
        peak = clear_sky_peak(NOON_SUN)
        assert value == pytest.approx(DIFFUSE_COEFFICIENTS[JUNE] * peak + NOON_SUN[2] * peak)

    def test_zero_when_sun_below_horizon(self):
        store = make_store(make_foundation(), make_panel())
        ctx = make_context(store)
        sun = normalize(np.array([0.5, -0.5, -0.1]))
        assert FlatPanelCalculator().yield_contribution(store.get("p1"), ctx, sun, DOY, JUNE) == 0.0

    def test_zero_when_facing_away(self):
        store = make_store(make_foundation(), make_panel(tilt=math.radians(-80)))
        ctx = make_context(store)
        sun = normalize(np.array([0.0, -1.0, 0.1]))
        assert FlatPanelCalculator().yield_contribution(store.get("p1"), ctx, sun, DOY, JUNE) == 0.0

    def test_missing_parent_raises(self):
        store = make_store(make_foundation(), make_panel(parent_id="ghost"))
        ctx = make_context(store)
        with pytest.raises(MissingParentError) as exc_info:
            FlatPanelCalculator().yield_contribution(store.get("p1"), ctx, NOON_SUN, DOY, JUNE)
        assert exc_info.value.parent_id == "ghost"

    def test_panel_grid_is_even(self):
        store = make_store(make_foundation(), make_panel(lx=1.3, ly=0.7))
        ctx = make_context(store, config=make_config(cell_size=0.25))
        grid = FlatPanelCalculator().grid(store.get("p1"), ctx)
        assert (grid.nx % 2, grid.ny % 2) == (0, 0)


class TestShadeTolerance:
    """How a shaded column limits the rest of the panel.

    An obstacle hovering over the westmost column of a 4×4 grid shades a
    quarter of the cells when the sun is overhead.
    """

    def _contribution(self, tolerance):
        store = make_store(
            make_foundation(),
            make_panel(shade_tolerance=tolerance),
            Obstacle("o1", cx=-0.75, cy=0.0, cz=5.0, lx=0.5, ly=4.0, lz=0.2),
        )
        ctx = make_context(store, config=make_config(cell_size=0.5))
        value = FlatPanelCalculator().yield_contribution(store.get("p1"), ctx, OVERHEAD, DOY, JUNE)
        peak = clear_sky_peak(OVERHEAD)
        return value, DIFFUSE_COEFFICIENTS[JUNE] * peak, peak

    def test_high_tolerance_averages_cells(self):
        value, diffuse, peak = self._contribution(ShadeTolerance.HIGH)
        assert value == pytest.approx(diffuse + 0.75 * peak)

    def test_partial_tolerance_limits_column_pairs(self):
        value, diffuse, peak = self._contribution(ShadeTolerance.PARTIAL)
        assert value == pytest.approx(diffuse + 0.5 * peak)

    def test_no_tolerance_limits_whole_panel(self):
        value, diffuse, _ = self._contribution(ShadeTolerance.NONE)
        assert value == pytest.approx(diffuse)


class TestTrackers:
    """Panel orientation per tracker type."""

    def test_fixed_panel_ignores_sun(self):
        foundation = make_foundation()
        panel = make_panel(tilt=math.radians(30))
        a = panel_rotation(panel, foundation, NOON_SUN)
        b = panel_rotation(panel, foundation, normalize(np.array([0.6, 0.2, 0.5])))
        np.testing.assert_array_equal(a, b)

    def test_dual_axis_faces_sun(self):
        panel = make_panel(tracker=TrackerType.ALTAZIMUTH_DUAL_AXIS)
        sun = normalize(np.array([0.6, 0.2, 0.5]))
        normal = panel_rotation(panel, make_foundation(rotation=0.4), sun)[:, 2]
        np.testing.assert_allclose(normal, sun, atol=1e-12)

    def test_horizontal_single_axis_follows_sun_across_axis(self):
        panel = make_panel(tracker=TrackerType.HORIZONTAL_SINGLE_AXIS)
        sun = normalize(np.array([0.6, -0.3, 0.5]))
        normal = panel_rotation(panel, make_foundation(), sun)[:, 2]
        # Normal is the sun's projection onto the east-west vertical plane
        expected = normalize(np.array([sun[0], 0.0, sun[2]]))
        np.testing.assert_allclose(normal, expected, atol=1e-12)

    def test_vertical_single_axis_turns_to_sun_azimuth(self):
        panel = make_panel(tracker=TrackerType.VERTICAL_SINGLE_AXIS, tilt=math.radians(40))
        sun = normalize(np.array([0.6, -0.3, 0.5]))
        normal = panel_rotation(panel, make_foundation(), sun)[:, 2]
        assert normal[2] == pytest.approx(math.cos(math.radians(40)))
        # Horizontal part points along the sun's horizontal direction
        assert normal[0] * sun[1] - normal[1] * sun[0] == pytest.approx(0.0, abs=1e-12)
        assert normal[0] * sun[0] + normal[1] * sun[1] > 0

    def test_tracking_panels_have_moving_parts(self):
        assert not make_panel().has_moving_parts
        assert make_panel(tracker=TrackerType.HORIZONTAL_SINGLE_AXIS).has_moving_parts


class TestMovingCollectorShadows:
    """Tracking collectors shade each other in their current orientation."""

    LOW_EAST_SUN = np.array([math.cos(math.radians(10)), 0.0, math.sin(math.radians(10))])

    def _tracker(self, pid, cx):
        return make_panel(pid, cx=cx, tracker=TrackerType.ALTAZIMUTH_DUAL_AXIS)

    def test_east_tracker_shades_west_tracker(self):
        store = make_store(make_foundation(), self._tracker("p1", -1.5), self._tracker("p2", 1.5))
        solo = make_store(make_foundation(), self._tracker("p2", 1.5))
        calc = FlatPanelCalculator()
        west = calc.yield_contribution(store.get("p1"), make_context(store), self.LOW_EAST_SUN, DOY, JUNE)
        east = calc.yield_contribution(store.get("p2"), make_context(store), self.LOW_EAST_SUN, DOY, JUNE)
        alone = calc.yield_contribution(solo.get("p2"), make_context(solo), self.LOW_EAST_SUN, DOY, JUNE)
        assert east == pytest.approx(alone)
        # Three of the four rows facing the sun sit behind the east panel
        assert east - west == pytest.approx(0.75 * clear_sky_peak(self.LOW_EAST_SUN))

    def test_overhead_sun_leaves_trackers_unshaded(self):
        store = make_store(make_foundation(), self._tracker("p1", -1.5), self._tracker("p2", 1.5))
        ctx = make_context(store)
        calc = FlatPanelCalculator()
        west = calc.yield_contribution(store.get("p1"), ctx, self.LOW_EAST_SUN, DOY, JUNE)
        # Re-posed flat for the overhead sun, the east panel no longer blocks
        flat = calc.yield_contribution(store.get("p1"), ctx, OVERHEAD, DOY, JUNE)
        peak = clear_sky_peak(OVERHEAD)
        assert flat == pytest.approx(DIFFUSE_COEFFICIENTS[JUNE] * peak + peak)
        assert west < calc.yield_contribution(store.get("p2"), ctx, self.LOW_EAST_SUN, DOY, JUNE)

    def _heliostats(self, *positions):
        tower = PowerTower(tower_height=10.0)
        mirrors = [Heliostat(f"h{i + 1}", parent_id="f1", cx=x, dust_loss=0.0) for i, x in enumerate(positions)]
        return make_store(make_foundation(lx=100.0, ly=100.0, power_tower=tower), *mirrors)

    def test_front_heliostat_blocks_reflected_beam(self):
        store = self._heliostats(40.0, 43.0)
        calc = HeliostatCalculator()
        ctx = make_context(store)
        front = calc.yield_contribution(store.get("h1"), ctx, NOON_SUN, DOY, JUNE)
        back = calc.yield_contribution(store.get("h2"), ctx, NOON_SUN, DOY, JUNE)

        front_alone = self._heliostats(40.0)
        back_alone = self._heliostats(43.0)
        front_solo = calc.yield_contribution(front_alone.get("h1"), make_context(front_alone), NOON_SUN, DOY, JUNE)
        back_solo = calc.yield_contribution(back_alone.get("h1"), make_context(back_alone), NOON_SUN, DOY, JUNE)
        assert front == pytest.approx(front_solo)
        # Only the top row of the rear mirror sees past the front one
        assert back < 0.5 * back_solo

    def test_tower_does_not_block_its_own_receiver(self):
        store = self._heliostats(-12.0)
        ctx = make_context(store)
        calc = HeliostatCalculator()
        frame = calc.frame(store.get("h1"), store.get("f1"), NOON_SUN)
        value = calc.yield_contribution(store.get("h1"), ctx, NOON_SUN, DOY, JUNE)
        assert value == pytest.approx(float(frame.normal @ NOON_SUN) * clear_sky_peak(NOON_SUN))


class TestPVEfficiency:
    def test_reference_temperature(self):
        panel = make_panel(efficiency=0.2, pmax_temperature_coefficient=-0.004)
        assert pv_efficiency(panel, 25.0) == pytest.approx(0.2)

    def test_hot_panel_loses_power(self):
        panel = make_panel(efficiency=0.2, pmax_temperature_coefficient=-0.004)
        assert pv_efficiency(panel, 35.0) == pytest.approx(0.2 * 0.96)

    def test_monocrystalline_packing(self):
        panel = make_panel(efficiency=0.2, pmax_temperature_coefficient=0.0, cell_type=CellType.MONOCRYSTALLINE)
        assert pv_efficiency(panel, 25.0) == pytest.approx(0.19)

    def test_derating_follows_hourly_temperature(self):
        store = make_store(make_foundation(), make_panel(pmax_temperature_coefficient=-0.004))
        ctx = make_context(store, weather=make_weather(temperatures=True))
        out = FlatPanelCalculator().finalize_day(store.get("p1"), np.ones(24), 1.0, ctx, JUNE)
        # June runs from 15 °C before dawn to 25 °C mid-afternoon
        assert out.series[15] == pytest.approx(4.0)
        assert out.series[3] == pytest.approx(4.0 * 1.04)

    def test_winter_month_derates_less(self):
        store = make_store(make_foundation(), make_panel(pmax_temperature_coefficient=-0.004))
        ctx = make_context(store, weather=make_weather(temperatures=True))
        calc = FlatPanelCalculator()
        january = calc.finalize_day(store.get("p1"), np.ones(24), 1.0, ctx, 0).series
        july = calc.finalize_day(store.get("p1"), np.ones(24), 1.0, ctx, 6).series
        assert np.all(january > july)

    def test_element_factor_chain(self):
        store = make_store(make_foundation(), make_panel(efficiency=0.2, pmax_temperature_coefficient=0.0, dust_loss=0.1))
        ctx = make_context(store, config=make_config(inverter_efficiency=0.9))
        factor = FlatPanelCalculator().element_factor(store.get("p1"), ctx, JUNE)
        assert factor == pytest.approx(4.0 * 0.2 * 0.9 * 0.9)


class TestHeliostat:
    """Heliostats aiming at a power tower."""

    def _store(self, *extra):
        return make_store(
            make_foundation(power_tower=PowerTower(tower_height=20.0)),
            Heliostat("h1", parent_id="f1", cx=10.0, dust_loss=0.0),
            *extra,
        )

    def test_reflects_sun_onto_receiver(self):
        store = self._store()
        frame = HeliostatCalculator().frame(store.get("h1"), store.get("f1"), NOON_SUN)
        np.testing.assert_allclose(reflect(NOON_SUN, frame.normal), frame.receiver_direction, atol=1e-9)
        receiver = store.get("f1").tower_receiver()
        np.testing.assert_allclose(frame.receiver_direction, normalize(receiver - frame.origin))

    def test_direct_beam_only(self):
        store = self._store()
        ctx = make_context(store)
        calc = HeliostatCalculator()
        frame = calc.frame(store.get("h1"), store.get("f1"), NOON_SUN)
        value = calc.yield_contribution(store.get("h1"), ctx, NOON_SUN, DOY, JUNE)
        assert value == pytest.approx(float(frame.normal @ NOON_SUN) * clear_sky_peak(NOON_SUN))

    def test_blocked_reflected_leg(self):
        """An obstacle between mirror and tower stops the beam even in full sun."""
        store = self._store(Obstacle("wall", cx=5.0, cy=0.0, cz=11.65, lx=1.0, ly=8.0, lz=8.0))
        ctx = make_context(store)
        assert HeliostatCalculator().yield_contribution(store.get("h1"), ctx, NOON_SUN, DOY, JUNE) == 0.0

    def test_requires_power_tower(self):
        store = make_store(make_foundation(), Heliostat("h1", parent_id="f1", cx=10.0))
        ctx = make_context(store)
        with pytest.raises(InvalidElementData) as exc_info:
            HeliostatCalculator().yield_contribution(store.get("h1"), ctx, NOON_SUN, DOY, JUNE)
        assert exc_info.value.field == "power_tower"

    def test_element_factor_includes_receiver(self):
        tower = PowerTower(optical_efficiency=0.8, thermal_efficiency=0.5, absorptance=0.9)
        store = make_store(make_foundation(power_tower=tower), Heliostat("h1", parent_id="f1", dust_loss=0.0))
        ctx = make_context(store)
        factor = HeliostatCalculator().element_factor(store.get("h1"), ctx, JUNE)
        assert factor == pytest.approx(8.0 * 0.9 * 0.8 * 0.5 * 0.9)


class TestParabolic:
    """Troughs and dishes."""

    def test_trough_depth_and_height(self):
        trough = ParabolicTrough("t1", parent_id="f1", lx=2.0, latus_rectum=2.0, pole_height=1.0, lz=0.1)
        assert trough.depth == pytest.approx(0.5)
        frame = ParabolicTroughCalculator().frame(trough, make_foundation(lz=0.1), NOON_SUN)
        assert frame.origin[2] == pytest.approx(0.1 + 1.0 + 1.0 + 0.1 + 0.5)

    def test_trough_rotates_about_north_south_axis(self):
        sun = normalize(np.array([0.6, -0.3, 0.5]))
        frame = ParabolicTroughCalculator().frame(ParabolicTrough("t1", parent_id="f1"), make_foundation(), sun)
        assert frame.normal[1] == pytest.approx(0.0, abs=1e-12)
        assert frame.normal[0] > 0

    def test_trough_monthly_losses(self):
        store = make_store(make_foundation(), ParabolicTrough("t1", parent_id="f1", dust_loss=0.0))
        losses = [0.0] * 12
        losses[JUNE] = 0.25
        calc = ParabolicTroughCalculator()
        plain = calc.element_factor(store.get("t1"), make_context(store), JUNE)
        lossy = calc.element_factor(
            store.get("t1"), make_context(store, config=make_config(monthly_irradiance_losses=losses)), JUNE
        )
        assert lossy == pytest.approx(0.75 * plain)
        assert plain == pytest.approx(18.0 * 0.7 * 0.3 * 0.95 * 0.9)

    def test_dish_points_at_sun(self):
        sun = normalize(np.array([-0.2, 0.4, 0.7]))
        frame = ParabolicDishCalculator().frame(ParabolicDish("d1", parent_id="f1"), make_foundation(), sun)
        np.testing.assert_allclose(frame.normal, sun)
        np.testing.assert_allclose(frame.rotation[:, 2], sun, atol=1e-12)

    def test_dish_collects_full_beam(self):
        store = make_store(make_foundation(), ParabolicDish("d1", parent_id="f1"))
        ctx = make_context(store)
        value = ParabolicDishCalculator().yield_contribution(store.get("d1"), ctx, NOON_SUN, DOY, JUNE)
        assert value == pytest.approx(clear_sky_peak(NOON_SUN))


class TestFresnelReflector:
    """Linear Fresnel rows aiming at an absorber pipe."""

    def _store(self):
        return make_store(
            make_foundation(absorber_pipe=AbsorberPipe(absorber_height=10.0)),
            FresnelReflector("r1", parent_id="f1", cx=4.0, dust_loss=0.0),
        )

    def test_reflected_ray_reaches_pipe_plane(self):
        store = self._store()
        sun = normalize(np.array([0.4, -0.5, 0.6]))
        frame = FresnelReflectorCalculator().frame(store.get("r1"), store.get("f1"), sun)
        np.testing.assert_allclose(reflect(sun, frame.normal), frame.receiver_direction, atol=1e-9)
        # The mirror only turns about its north-south axis
        assert frame.normal[1] == pytest.approx(0.0, abs=1e-12)
        # The reflected ray heads back across the row toward the pipe
        assert frame.receiver_direction[0] < 0

    def test_requires_absorber_pipe(self):
        store = make_store(make_foundation(), FresnelReflector("r1", parent_id="f1", cx=4.0))
        ctx = make_context(store)
        with pytest.raises(InvalidElementData) as exc_info:
            FresnelReflectorCalculator().yield_contribution(store.get("r1"), ctx, NOON_SUN, DOY, JUNE)
        assert exc_info.value.field == "absorber_pipe"

    def test_direct_beam_only(self):
        store = self._store()
        ctx = make_context(store)
        calc = FresnelReflectorCalculator()
        frame = calc.frame(store.get("r1"), store.get("f1"), NOON_SUN)
        value = calc.yield_contribution(store.get("r1"), ctx, NOON_SUN, DOY, JUNE)
        assert value == pytest.approx(float(frame.normal @ NOON_SUN) * clear_sky_peak(NOON_SUN))


class TestUpdraftTower:
    """Collector disc and chimney chain."""

    def _store(self, **kwargs):
        return make_store(make_foundation(), UpdraftTower("u1", parent_id="f1", collector_radius=10.0, dust_loss=0.0, **kwargs))

    def test_aperture_follows_radius(self):
        tower = UpdraftTower("u1", parent_id="f1", collector_radius=25.0)
        assert tower.lx == tower.ly == 50.0

    def test_contribution_is_collector_power(self):
        store = self._store()
        ctx = make_context(store)
        value = UpdraftTowerCalculator().yield_contribution(store.get("u1"), ctx, NOON_SUN, DOY, JUNE)
        peak = clear_sky_peak(NOON_SUN)
        expected = (DIFFUSE_COEFFICIENTS[JUNE] * peak + NOON_SUN[2] * peak) * math.pi * 100.0
        assert value == pytest.approx(expected)

    def test_no_heat_no_power(self):
        store = self._store()
        ctx = make_context(store)
        out = UpdraftTowerCalculator().finalize_day(store.get("u1"), np.zeros(24), 0.25, ctx, JUNE)
        np.testing.assert_array_equal(out.series, 0.0)
        np.testing.assert_allclose(out.extras["chimney_temperature"], 20.0)
        np.testing.assert_array_equal(out.extras["wind_speed"], 0.0)

    def test_heat_drives_updraft(self):
        store = self._store()
        ctx = make_context(store)
        raw = np.zeros(24)
        raw[12] = 400.0
        out = UpdraftTowerCalculator().finalize_day(store.get("u1"), raw, 0.25, ctx, JUNE)
        assert out.series[12] > 0
        assert out.extras["chimney_temperature"][12] > 20.0
        assert out.extras["wind_speed"][12] > 0
        assert out.series[11] == 0.0

    def test_more_heat_more_power(self):
        store = self._store()
        ctx = make_context(store)
        calc = UpdraftTowerCalculator()
        low = np.zeros(24)
        low[0] = 100.0
        high = np.zeros(24)
        high[0] = 400.0
        assert calc.finalize_day(store.get("u1"), high, 0.25, ctx, JUNE).series[0] > calc.finalize_day(
            store.get("u1"), low, 0.25, ctx, JUNE
        ).series[0]

    def test_collector_losses_reduce_following_hour(self):
        store = self._store()
        ctx = make_context(store)
        calc = UpdraftTowerCalculator()
        raw = np.zeros(24)
        raw[12] = 400.0
        raw[13] = 400.0
        out = calc.finalize_day(store.get("u1"), raw, 0.25, ctx, JUNE)
        assert out.series[13] < out.series[12]

    def test_uses_ambient_temperature_profile(self):
        store = self._store()
        ctx = make_context(store, weather=make_weather(temperatures=True))
        out = UpdraftTowerCalculator().finalize_day(store.get("u1"), np.zeros(24), 0.25, ctx, JUNE)
        temperatures = out.extras["chimney_temperature"]
        assert temperatures[15] == pytest.approx(25.0)
        assert temperatures[3] == pytest.approx(15.0)


class TestLightSensor:
    def test_point_irradiance(self):
        store = make_store(make_foundation(), LightSensor("s1", parent_id="f1"))
        ctx = make_context(store)
        value = LightSensorCalculator().yield_contribution(store.get("s1"), ctx, NOON_SUN, DOY, JUNE)
        peak = clear_sky_peak(NOON_SUN)
        assert value == pytest.approx(DIFFUSE_COEFFICIENTS[JUNE] * peak + NOON_SUN[2] * peak)

    def test_no_efficiency_chain(self):
        store = make_store(make_foundation(), LightSensor("s1", parent_id="f1"))
        assert LightSensorCalculator().element_factor(store.get("s1"), make_context(store), JUNE) == 1.0

    def test_shaded_sensor_keeps_diffuse(self):
        store = make_store(
            make_foundation(),
            LightSensor("s1", parent_id="f1"),
            Obstacle("roof", cx=0, cy=0, cz=5, lx=4, ly=4, lz=1),
        )
        ctx = make_context(store)
        value = LightSensorCalculator().yield_contribution(store.get("s1"), ctx, OVERHEAD, DOY, JUNE)
        assert value == pytest.approx(DIFFUSE_COEFFICIENTS[JUNE] * clear_sky_peak(OVERHEAD))
