"""Simulation configuration."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from pathlib import Path

from ..constants import (
    DEFAULT_DAYS_PER_YEAR,
    DEFAULT_DUST_LOSS,
    DEFAULT_INVERTER_EFFICIENCY,
    DEFAULT_TIMES_PER_HOUR,
)
from ..errors import ConfigurationError
from ..physics.radiation import AirMass
from ..solaryield_logging import get_logger
from .state import CollectorFamily

logger = get_logger(__name__)


@dataclass
class SimulationConfig:
    """
    Settings shared by every calculator and the scheduler for one run.

    Attributes:
        times_per_hour: Samples per hour; the step interval is 60 / times_per_hour minutes.
        days_per_year: Sampled days for yearly runs. Must divide 12.
        cell_size: Target sample cell edge (m) for every family. None defers to
            ``cell_sizes``.
        cell_sizes: Cell edge (m) per collector family value, e.g.
            ``{"flat_panel": 0.25}``. Families left out use their built-in default.
        dust_loss: Soiling fraction applied to every collector without its own value.
        inverter_efficiency: DC to AC conversion for PV panels.
        air_mass: Air mass policy for peak irradiance.
        monthly_irradiance_losses: Optional per-month loss fractions for troughs.
        individual_outputs: Include one column per element in result records.
        animate: Step through the day with host render yields. When False and no
            element moves, the static fast path is used.

    Examples:
        >>> config = SimulationConfig.defaults()
        >>> config.step_minutes
        15.0

        >>> config = SimulationConfig(times_per_hour=12, days_per_year=12)
        >>> config.save("yearly.json")
        >>> SimulationConfig.from_json("yearly.json").days_per_year
        12
    """

    times_per_hour: int = DEFAULT_TIMES_PER_HOUR
    days_per_year: int = DEFAULT_DAYS_PER_YEAR
    cell_size: float | None = None
    cell_sizes: dict[str, float] | None = None
    dust_loss: float = DEFAULT_DUST_LOSS
    inverter_efficiency: float = DEFAULT_INVERTER_EFFICIENCY
    air_mass: AirMass = AirMass.SPHERE_MODEL
    monthly_irradiance_losses: list[float] | None = None
    individual_outputs: bool = False
    animate: bool = True

    def __post_init__(self):
        self.air_mass = AirMass(self.air_mass)
        if self.times_per_hour < 1:
            raise ConfigurationError("times_per_hour", f"must be at least 1, got {self.times_per_hour}")
        if self.days_per_year < 1 or 12 % self.days_per_year != 0:
            raise ConfigurationError("days_per_year", f"must divide 12, got {self.days_per_year}")
        if self.cell_size is not None and self.cell_size <= 0:
            raise ConfigurationError("cell_size", f"must be positive, got {self.cell_size}")
        if self.cell_sizes is not None:
            families = {f.value for f in CollectorFamily}
            for family, size in self.cell_sizes.items():
                if family not in families:
                    raise ConfigurationError("cell_sizes", f"unknown collector family '{family}'")
                if size <= 0:
                    raise ConfigurationError("cell_sizes", f"{family} cell size must be positive, got {size}")
        if not 0.0 <= self.dust_loss < 1.0:
            raise ConfigurationError("dust_loss", f"must be in [0, 1), got {self.dust_loss}")
        if not 0.0 < self.inverter_efficiency <= 1.0:
            raise ConfigurationError("inverter_efficiency", f"must be in (0, 1], got {self.inverter_efficiency}")
        if self.monthly_irradiance_losses is not None:
            if len(self.monthly_irradiance_losses) != 12:
                raise ConfigurationError("monthly_irradiance_losses", "expected 12 monthly values")
            if any(not 0.0 <= v <= 1.0 for v in self.monthly_irradiance_losses):
                raise ConfigurationError("monthly_irradiance_losses", "values must be in [0, 1]")

    @property
    def step_minutes(self) -> float:
        return 60.0 / self.times_per_hour

    @property
    def month_interval(self) -> int:
        """Months represented by each sampled day of a yearly run."""
        return 12 // self.days_per_year

    @classmethod
    def defaults(cls) -> SimulationConfig:
        return cls()

    @classmethod
    def from_json(cls, path: str | Path) -> SimulationConfig:
        """
        Load configuration from a JSON file.

        Unknown keys are ignored with a warning so files written by newer
        versions still load.
        """
        with open(path) as f:
            data = json.load(f)
        known = set(cls.__dataclass_fields__)
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning(f"Ignoring unknown configuration keys in {path}: {', '.join(unknown)}")
        return cls(**{k: v for k, v in data.items() if k in known})

    def save(self, path: str | Path) -> None:
        with open(path, "w") as f:
            json.dump(self.to_dict(), f, indent=2)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["air_mass"] = self.air_mass.value
        return data
