"""
Simplified solaryield API

One call runs a whole daily or yearly simulation for one collector family,
without the host having to pump the scheduler frame by frame:
- Builds the calculator, clock and shadow scene from the element store
- Uses the static fast path when nothing moves and animation is off
- Returns the finalized :class:`YieldResult`

Example:
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
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from datetime import datetime
from typing import Any

from .aggregator import InMemoryResultStore, ResultStore, YieldAggregator
from .buffers import BufferPool, SeriesBuffers
from .components import CALCULATORS, YieldCalculator, calculator_for
from .config import load_params, load_simulation_config, load_sites, load_weather_profiles
from .errors import (
    ConfigurationError,
    InvalidElementData,
    MissingParentError,
    SchedulerStateError,
    SolaryieldError,
    WeatherDataError,
)
from .metadata import create_run_metadata, load_run_metadata, save_run_metadata
from .models import (
    AbsorberPipe,
    CellType,
    CollectorElement,
    CollectorFamily,
    ElementStore,
    Foundation,
    FresnelReflector,
    Granularity,
    Heliostat,
    LightSensor,
    Notification,
    Obstacle,
    ParabolicDish,
    ParabolicTrough,
    PowerTower,
    ShadeTolerance,
    SimulatedClock,
    SimulationConfig,
    SimulationJob,
    SimulationState,
    Site,
    SolarPanel,
    TrackerType,
    UpdraftTower,
    WeatherProfile,
    YieldResult,
)
from .occlusion import BoxCaster, OcclusionTester, SceneNode, ShadowCaster
from .physics import AirMass, ClearSkyModel, RadiationModel, SunMinutes, sun_direction, sunrise_sunset
from .scene import build_scene
from .scheduler import SimulationRegistry, SimulationScheduler
from .solaryield_logging import get_logger, set_global_feedback

logger = get_logger(__name__)


def _resolve_calculator(calculator: YieldCalculator | CollectorFamily | str) -> YieldCalculator:
    if isinstance(calculator, YieldCalculator):
        return calculator
    try:
        return calculator_for(calculator)
    except ValueError:
        valid = ", ".join(f.value for f in CollectorFamily)
        raise ConfigurationError("family", f"unknown collector family '{calculator}' (expected one of: {valid})") from None


def simulate(
    calculator: YieldCalculator | CollectorFamily | str,
    granularity: Granularity | str,
    store: ElementStore,
    site: Site,
    weather: WeatherProfile,
    when: datetime,
    config: SimulationConfig | None = None,
    scene: SceneNode | Iterable[ShadowCaster] | None = None,
    radiation_model: RadiationModel | None = None,
    result_store: ResultStore | None = None,
    on_time_advanced: Callable[[datetime], Any] | None = None,
    progress: bool = True,
    feedback: Any = None,
) -> YieldResult | None:
    """
    Run one simulation to completion.

    Args:
        calculator: Calculator instance or collector family name.
        granularity: "daily" or "yearly".
        store: Elements to simulate. Only elements of the calculator's
            family are integrated; every box in the scene can cast shadows.
        site: Latitude, longitude and ground albedo.
        weather: Monthly sunshine hours, elevation and temperatures.
        when: Simulated date. A daily run covers this date; a yearly run
            covers its year.
        config: Simulation settings (defaults if None).
        scene: Explicit shadow casters. None builds boxes from the store.
        radiation_model: Radiation policy (clear sky if None).
        result_store: Receives the finished result.
        on_time_advanced: Called with each new simulated time (animated runs).
        progress: Show a progress bar.
        feedback: Host feedback object for log routing, progress and cancellation.

    Returns:
        The result, or None if the run was cancelled.
    """
    if feedback is not None:
        set_global_feedback(feedback)
    scheduler = SimulationScheduler(
        _resolve_calculator(calculator),
        Granularity(granularity),
        store,
        site,
        weather,
        SimulatedClock(when),
        config=config,
        scene=scene,
        radiation_model=radiation_model,
        result_store=result_store,
        on_time_advanced=on_time_advanced,
    )
    result = scheduler.run_to_completion(progress=progress, feedback=feedback)
    if result is None:
        logger.warning(f"{scheduler.job.family.value} {scheduler.job.granularity.value} run did not complete")
    return result


def simulate_daily(
    calculator: YieldCalculator | CollectorFamily | str,
    store: ElementStore,
    site: Site,
    weather: WeatherProfile,
    when: datetime,
    config: SimulationConfig | None = None,
    **kwargs,
) -> YieldResult | None:
    """Hourly yield (24 slots) of one collector family on the date of ``when``."""
    return simulate(calculator, Granularity.DAILY, store, site, weather, when, config=config, **kwargs)


def simulate_yearly(
    calculator: YieldCalculator | CollectorFamily | str,
    store: ElementStore,
    site: Site,
    weather: WeatherProfile,
    when: datetime,
    config: SimulationConfig | None = None,
    **kwargs,
) -> YieldResult | None:
    """Monthly yield of one collector family over the year of ``when``, from sampled days."""
    return simulate(calculator, Granularity.YEARLY, store, site, weather, when, config=config, **kwargs)


__all__ = [
    # Entry points
    "simulate",
    "simulate_daily",
    "simulate_yearly",
    # Scheduler
    "SimulationScheduler",
    "SimulationRegistry",
    "SimulatedClock",
    "SimulationJob",
    "SimulationState",
    "Granularity",
    "Notification",
    # Elements
    "AbsorberPipe",
    "CellType",
    "CollectorElement",
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
    # Site and weather
    "Site",
    "WeatherProfile",
    # Configuration
    "SimulationConfig",
    "load_params",
    "load_simulation_config",
    "load_sites",
    "load_weather_profiles",
    # Physics
    "AirMass",
    "ClearSkyModel",
    "RadiationModel",
    "SunMinutes",
    "sun_direction",
    "sunrise_sunset",
    # Calculators
    "CALCULATORS",
    "YieldCalculator",
    "calculator_for",
    # Scene and occlusion
    "BoxCaster",
    "OcclusionTester",
    "SceneNode",
    "ShadowCaster",
    "build_scene",
    # Results
    "YieldResult",
    "YieldAggregator",
    "InMemoryResultStore",
    "ResultStore",
    "BufferPool",
    "SeriesBuffers",
    # Metadata
    "create_run_metadata",
    "save_run_metadata",
    "load_run_metadata",
    # Errors
    "SolaryieldError",
    "InvalidElementData",
    "MissingParentError",
    "WeatherDataError",
    "ConfigurationError",
    "SchedulerStateError",
]
