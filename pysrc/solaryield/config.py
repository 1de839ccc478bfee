"""Configuration and parameter loading from JSON files."""

from __future__ import annotations

import json
from pathlib import Path
from types import SimpleNamespace

from .errors import ConfigurationError, WeatherDataError
from .models.config import SimulationConfig
from .models.weather import Site, WeatherProfile
from .utils import dict_to_namespace, namespace_to_dict

_DATA_DIR = Path(__file__).parent / "data"


def _read_json(path: Path, what: str) -> dict:
    if not path.exists():
        raise FileNotFoundError(f"{what} file not found: {path}")
    with open(path) as f:
        return json.load(f)


def load_params(params_json_path: str | Path | None = None) -> SimpleNamespace:
    """
    Load engine parameters from a JSON file.

    Args:
        params_json_path: Path to the parameters JSON file.
            If None (default), loads bundled default_params.json with the
            standard simulation settings, site albedo and family cell sizes.

    Returns:
        SimpleNamespace object with nested parameter values accessible via attributes.

    Examples:
        >>> params = load_params()
        >>> params.Simulation.times_per_hour  # 4
        >>> params.Cell_size.flat_panel  # 0.25
    """
    path = _DATA_DIR / "default_params.json" if params_json_path is None else Path(params_json_path)
    return dict_to_namespace(_read_json(path, "Parameters"))


def load_simulation_config(params: SimpleNamespace | None = None) -> SimulationConfig:
    """
    Build a :class:`SimulationConfig` from a parameter tree.

    Settings come from the ``Simulation`` section; the optional
    ``Cell_size`` section supplies per-family cell sizes.

    Args:
        params: Result of :func:`load_params`. None loads the bundled defaults.

    Raises:
        ConfigurationError: If the tree has no ``Simulation`` section or a value is invalid.
    """
    params = params if params is not None else load_params()
    section = getattr(params, "Simulation", None)
    if section is None:
        raise ConfigurationError("Simulation", "parameter file has no Simulation section")
    values = namespace_to_dict(section)
    known = set(SimulationConfig.__dataclass_fields__)
    values = {k: v for k, v in values.items() if k in known}
    cell_sizes = getattr(params, "Cell_size", None)
    if cell_sizes is not None:
        values["cell_sizes"] = namespace_to_dict(cell_sizes)
    return SimulationConfig(**values)


def load_weather_profiles(weather_json_path: str | Path | None = None) -> dict[str, WeatherProfile]:
    """
    Load monthly weather profiles keyed by city.

    Args:
        weather_json_path: Path to a weather JSON file mapping city names to
            ``sunshine_hours`` (12 values), ``elevation`` and optional monthly
            ``lowest_temperatures``/``highest_temperatures``. If None, loads
            the bundled weather.json.

    Raises:
        WeatherDataError: If a profile is malformed.

    Example:
        >>> profiles = load_weather_profiles()
        >>> profiles["Boston"].sunshine_hours[5]  # 287.0
    """
    path = _DATA_DIR / "weather.json" if weather_json_path is None else Path(weather_json_path)
    data = _read_json(path, "Weather")
    profiles = {}
    for city, entry in data.items():
        if "sunshine_hours" not in entry:
            raise WeatherDataError("sunshine_hours", "missing", f"no monthly values for {city}")
        profiles[city] = WeatherProfile.from_dict(city, entry)
    return profiles


def load_sites(weather_json_path: str | Path | None = None, ground_albedo: float | None = None) -> dict[str, Site]:
    """
    Load the geographic site of each city in a weather file.

    Cities without a ``latitude`` entry are left out.
    """
    path = _DATA_DIR / "weather.json" if weather_json_path is None else Path(weather_json_path)
    data = _read_json(path, "Weather")
    if ground_albedo is None:
        ground_albedo = load_params().Site.ground_albedo
    return {
        city: Site(entry["latitude"], entry.get("longitude", 0.0), ground_albedo)
        for city, entry in data.items()
        if "latitude" in entry
    }
