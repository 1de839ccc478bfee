"""Data models for solaryield.

This package contains the dataclasses and enums used throughout the engine:
- elements: Foundations, obstacles, collector families, element store
- weather: Site and monthly weather profile
- clock: Simulated clock and calendar helpers
- state: Simulation job, states, families, notifications
- config: Simulation configuration
- results: Finalized yield results
"""

from .clock import SimulatedClock, day_of_year, days_in_month, days_in_year, hour_bucket, minutes_into_day
from .config import SimulationConfig
from .elements import (
    AbsorberPipe,
    CellType,
    CollectorElement,
    ElementStore,
    Foundation,
    FresnelReflector,
    Heliostat,
    LightSensor,
    Obstacle,
    ParabolicDish,
    ParabolicTrough,
    PowerTower,
    ShadeTolerance,
    SolarPanel,
    TrackerType,
    UpdraftTower,
)
from .results import YieldResult
from .state import CollectorFamily, Granularity, Notification, SimulationJob, SimulationState
from .weather import Site, WeatherProfile

__all__ = [
    # Clock
    "SimulatedClock",
    "day_of_year",
    "days_in_month",
    "days_in_year",
    "hour_bucket",
    "minutes_into_day",
    # Config
    "SimulationConfig",
    # Elements
    "AbsorberPipe",
    "CellType",
    "CollectorElement",
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
    # Results
    "YieldResult",
    # State
    "CollectorFamily",
    "Granularity",
    "Notification",
    "SimulationJob",
    "SimulationState",
    # Weather
    "Site",
    "WeatherProfile",
]
