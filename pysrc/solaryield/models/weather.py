"""Site and weather profile models."""

from __future__ import annotations

from dataclasses import dataclass

from ..constants import DEFAULT_GROUND_ALBEDO, DEFAULT_HIGHEST_TEMPERATURE_MINUTE
from ..errors import ConfigurationError, WeatherDataError


@dataclass
class Site:
    """
    Geographic site of a simulation.

    Attributes:
        latitude: Latitude in degrees (north positive).
        longitude: Longitude in degrees (east positive). Informational; the
            engine works in local solar time.
        ground_albedo: Ground reflectance used for ground-reflected irradiance.
    """

    latitude: float
    longitude: float = 0.0
    ground_albedo: float = DEFAULT_GROUND_ALBEDO

    def __post_init__(self):
        if not -90 <= self.latitude <= 90:
            raise ConfigurationError("latitude", f"must be in [-90, 90], got {self.latitude}")
        if not -180 <= self.longitude <= 180:
            raise ConfigurationError("longitude", f"must be in [-180, 180], got {self.longitude}")
        if not 0.0 <= self.ground_albedo <= 1.0:
            raise ConfigurationError("ground_albedo", f"must be in [0, 1], got {self.ground_albedo}")


@dataclass
class WeatherProfile:
    """
    Monthly climate normals for a site.

    Attributes:
        city: Display name.
        sunshine_hours: Total sunshine hours per month, January first (12 values).
        elevation: Site elevation above sea level (m).
        lowest_temperatures: Mean daily minimum per month (°C), optional.
        highest_temperatures: Mean daily maximum per month (°C), optional.
        highest_temperature_minute: Minute of day at which the daily maximum occurs.

    Example:
        >>> boston = WeatherProfile("Boston", sunshine_hours=[164, 169, 213, 228, 266, 287,
        ...                                                   300, 278, 237, 207, 145, 143])
        >>> boston.daily_sunshine_hours(5)
        9.566666666666666
    """

    city: str
    sunshine_hours: list[float]
    elevation: float = 0.0
    lowest_temperatures: list[float] | None = None
    highest_temperatures: list[float] | None = None
    highest_temperature_minute: float = DEFAULT_HIGHEST_TEMPERATURE_MINUTE

    def __post_init__(self):
        self.sunshine_hours = [float(v) for v in self.sunshine_hours]
        if len(self.sunshine_hours) != 12:
            raise WeatherDataError("sunshine_hours", len(self.sunshine_hours), "expected 12 monthly values")
        for month, hours in enumerate(self.sunshine_hours):
            if hours < 0:
                raise WeatherDataError("sunshine_hours", hours, f"negative value for month {month + 1}")
        for name in ("lowest_temperatures", "highest_temperatures"):
            values = getattr(self, name)
            if values is not None and len(values) != 12:
                raise WeatherDataError(name, len(values), "expected 12 monthly values")
        if (self.lowest_temperatures is None) != (self.highest_temperatures is None):
            raise WeatherDataError(
                "lowest_temperatures", "partial", "provide both monthly lows and highs, or neither"
            )

    @property
    def has_temperatures(self) -> bool:
        return self.lowest_temperatures is not None and self.highest_temperatures is not None

    def daily_sunshine_hours(self, month: int) -> float:
        """Average sunshine hours per day for a zero-based month."""
        return self.sunshine_hours[month] / 30.0

    @classmethod
    def from_dict(cls, city: str, data: dict) -> WeatherProfile:
        """Build a profile from a mapping as stored in weather JSON files."""
        return cls(
            city=city,
            sunshine_hours=data["sunshine_hours"],
            elevation=data.get("elevation", 0.0),
            lowest_temperatures=data.get("lowest_temperatures"),
            highest_temperatures=data.get("highest_temperatures"),
            highest_temperature_minute=data.get("highest_temperature_minute", DEFAULT_HIGHEST_TEMPERATURE_MINUTE),
        )
