"""solaryield - Solar position and radiation yield simulation engine.

Estimates the energy collected by solar installations (PV panels, heliostats,
parabolic troughs and dishes, linear Fresnel reflectors, solar updraft towers
and light sensors) over a day or a year, from clear-sky radiation, monthly
sunshine hours and ray-traced shading between scene boxes.

Quick start::

    import solaryield
    from datetime import datetime

    store = solaryield.ElementStore()
    store.add(solaryield.Foundation("f1", cx=0, cy=0))
    store.add(solaryield.SolarPanel("p1", parent_id="f1", cx=0, cy=0, lx=2, ly=2))

    result = solaryield.simulate_daily(
        "flat_panel",
        store,
        site=solaryield.Site(latitude=42.3),
        weather=solaryield.load_weather_profiles()["Boston"],
        when=datetime(2024, 6, 21, 12),
    )
    print(result.report())

Host-driven stepping::

    scheduler = solaryield.SimulationScheduler(
        solaryield.calculator_for("heliostat"), "daily", store, site, weather, clock
    )
    scheduler.request_run()
    while scheduler.step() is solaryield.SimulationState.STEPPING:
        redraw(scheduler.clock.now)
"""

import logging
from importlib.metadata import PackageNotFoundError, version

logger = logging.getLogger(__name__)

# Version: single source of truth is pyproject.toml
try:
    __version__ = version("solaryield")
except PackageNotFoundError:
    __version__ = "0.0.0.dev0"  # Fallback for source checkouts without metadata

from . import progress  # noqa: E402
from .api import (  # noqa: E402
    CALCULATORS,
    AbsorberPipe,
    AirMass,
    BoxCaster,
    CellType,
    ClearSkyModel,
    CollectorFamily,
    ElementStore,
    Foundation,
    FresnelReflector,
    Granularity,
    Heliostat,
    InMemoryResultStore,
    LightSensor,
    Notification,
    Obstacle,
    ParabolicDish,
    ParabolicTrough,
    PowerTower,
    SceneNode,
    ShadeTolerance,
    SimulatedClock,
    SimulationConfig,
    SimulationRegistry,
    SimulationScheduler,
    SimulationState,
    Site,
    SolarPanel,
    TrackerType,
    UpdraftTower,
    WeatherProfile,
    YieldResult,
    build_scene,
    calculator_for,
    create_run_metadata,
    load_params,
    load_run_metadata,
    load_simulation_config,
    load_sites,
    load_weather_profiles,
    save_run_metadata,
    simulate,
    simulate_daily,
    simulate_yearly,
    sun_direction,
    sunrise_sunset,
)
from .errors import (  # noqa: E402
    ConfigurationError,
    InvalidElementData,
    MissingParentError,
    SchedulerStateError,
    SolaryieldError,
    WeatherDataError,
)

__all__ = [
    "__version__",
    # Entry points
    "simulate",
    "simulate_daily",
    "simulate_yearly",
    # Scheduler
    "SimulationScheduler",
    "SimulationRegistry",
    "SimulatedClock",
    "SimulationState",
    "Granularity",
    "Notification",
    # Elements
    "AbsorberPipe",
    "CellType",
    "CollectorFamily",
    "ElementStore",
    "Foundation",
    "FresnelReflector",
    "Heliostat",
    "LightSensor",
    "Obstacle",
    "ParabolicDish",
    "ParabolicTrough",
    "PowerTower",
    "ShadeTolerance",
    "SolarPanel",
    "TrackerType",
    "UpdraftTower",
    # Site, weather and configuration
    "Site",
    "WeatherProfile",
    "SimulationConfig",
    "load_params",
    "load_simulation_config",
    "load_sites",
    "load_weather_profiles",
    # Physics
    "AirMass",
    "ClearSkyModel",
    "sun_direction",
    "sunrise_sunset",
    # Calculators and scene
    "CALCULATORS",
    "calculator_for",
    "BoxCaster",
    "SceneNode",
    "build_scene",
    # Results
    "YieldResult",
    "InMemoryResultStore",
    "create_run_metadata",
    "save_run_metadata",
    "load_run_metadata",
    # Utility modules
    "progress",
    # Errors
    "SolaryieldError",
    "InvalidElementData",
    "MissingParentError",
    "WeatherDataError",
    "ConfigurationError",
    "SchedulerStateError",
]
