"""Tests for configuration loading and the simulation config model."""

import json

import pytest
from solaryield.api import (
    AirMass,
    ConfigurationError,
    SimulationConfig,
    WeatherDataError,
    load_params,
    load_simulation_config,
    load_sites,
    load_weather_profiles,
)
from solaryield.components import FlatPanelCalculator, HeliostatCalculator, ParabolicDishCalculator
from solaryield.utils import dict_to_namespace, namespace_to_dict


class TestLoadParams:
    """Bundled parameter tree."""

    def test_default_sections(self):
        params = load_params()
        assert params.Simulation.times_per_hour == 4
        assert params.Site.ground_albedo == 0.3
        assert params.Cell_size.flat_panel == 0.25
        assert set(vars(params)) == {"Simulation", "Site", "Cell_size"}

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_params(tmp_path / "absent.json")

    def test_custom_file(self, tmp_path):
        path = tmp_path / "params.json"
        path.write_text(json.dumps({"Simulation": {"times_per_hour": 12, "days_per_year": 12, "colour": "red"}}))
        config = load_simulation_config(load_params(path))
        assert config.times_per_hour == 12
        assert config.step_minutes == 5.0
        assert config.month_interval == 1

    def test_family_cell_sizes_from_file(self, tmp_path):
        path = tmp_path / "params.json"
        path.write_text(json.dumps({"Simulation": {}, "Cell_size": {"flat_panel": 0.1, "heliostat": 1.0}}))
        config = load_simulation_config(load_params(path))
        assert config.cell_sizes == {"flat_panel": 0.1, "heliostat": 1.0}
        assert FlatPanelCalculator().cell_size(config) == 0.1
        assert HeliostatCalculator().cell_size(config) == 1.0
        # Families left out keep their built-in default
        assert ParabolicDishCalculator().cell_size(config) == ParabolicDishCalculator.default_cell_size

    def test_single_cell_size_overrides_families(self):
        config = SimulationConfig(cell_size=0.75, cell_sizes={"flat_panel": 0.1})
        assert FlatPanelCalculator().cell_size(config) == 0.75

    def test_missing_simulation_section(self):
        with pytest.raises(ConfigurationError):
            load_simulation_config(dict_to_namespace({"Site": {"ground_albedo": 0.2}}))

    def test_namespace_round_trip(self):
        data = {"a": {"b": [1, {"c": 2}]}}
        assert namespace_to_dict(dict_to_namespace(data)) == data


class TestSimulationConfig:
    """SimulationConfig defaults and validation."""

    def test_bundled_defaults(self):
        config = load_simulation_config()
        assert config == SimulationConfig(
            dust_loss=0.05,
            inverter_efficiency=0.95,
            cell_sizes={
                "flat_panel": 0.25,
                "heliostat": 0.5,
                "parabolic_trough": 0.5,
                "parabolic_dish": 0.5,
                "fresnel_reflector": 0.5,
                "updraft_tower": 1.0,
            },
        )
        assert config.air_mass is AirMass.SPHERE_MODEL
        assert config.step_minutes == 15.0
        assert config.month_interval == 2

    def test_air_mass_from_string(self):
        assert SimulationConfig(air_mass="kasten_young").air_mass is AirMass.KASTEN_YOUNG

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"times_per_hour": 0},
            {"days_per_year": 5},
            {"days_per_year": 0},
            {"cell_size": 0.0},
            {"cell_sizes": {"flat_panel": 0.0}},
            {"cell_sizes": {"solar_sail": 0.5}},
            {"dust_loss": 1.0},
            {"inverter_efficiency": 0.0},
            {"monthly_irradiance_losses": [0.1] * 11},
            {"monthly_irradiance_losses": [1.5] * 12},
        ],
    )
    def test_rejects_invalid(self, kwargs):
        with pytest.raises(ConfigurationError):
            SimulationConfig(**kwargs)

    def test_unknown_air_mass(self):
        with pytest.raises(ValueError):
            SimulationConfig(air_mass="flat_earth")

    def test_save_and_load(self, tmp_path):
        path = tmp_path / "config.json"
        SimulationConfig(times_per_hour=6, air_mass=AirMass.NONE, individual_outputs=True).save(path)
        data = json.loads(path.read_text())
        assert data["air_mass"] == "none"
        loaded = SimulationConfig.from_json(path)
        assert loaded.times_per_hour == 6
        assert loaded.air_mass is AirMass.NONE
        assert loaded.individual_outputs

    def test_from_json_ignores_unknown_keys(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"days_per_year": 3, "render_quality": "high"}))
        assert SimulationConfig.from_json(path).days_per_year == 3


class TestWeatherData:
    """Bundled weather and site tables."""

    def test_boston_profile(self):
        boston = load_weather_profiles()["Boston"]
        assert boston.sunshine_hours[5] == 287.0
        assert boston.elevation == 5
        assert boston.has_temperatures
        assert boston.daily_sunshine_hours(6) == pytest.approx(10.0)

    def test_all_profiles_valid(self):
        profiles = load_weather_profiles()
        assert {"Boston", "Phoenix", "Seattle"} <= set(profiles)
        for profile in profiles.values():
            assert len(profile.sunshine_hours) == 12

    def test_sites(self):
        sites = load_sites()
        assert sites["Boston"].latitude == pytest.approx(42.36)
        assert sites["Boston"].ground_albedo == 0.3
        assert load_sites(ground_albedo=0.6)["Phoenix"].ground_albedo == 0.6

    def test_missing_sunshine(self, tmp_path):
        path = tmp_path / "weather.json"
        path.write_text(json.dumps({"Atlantis": {"elevation": -10}}))
        with pytest.raises(WeatherDataError, match="Atlantis"):
            load_weather_profiles(path)

    def test_cities_without_latitude_skipped(self, tmp_path):
        path = tmp_path / "weather.json"
        path.write_text(json.dumps({"Here": {"sunshine_hours": [100] * 12}, "There": {"latitude": 10.0, "sunshine_hours": [100] * 12}}))
        assert set(load_sites(path)) == {"There"}
        assert set(load_weather_profiles(path)) == {"Here", "There"}
