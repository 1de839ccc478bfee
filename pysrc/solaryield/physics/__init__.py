"""Sun geometry, clear-sky radiation and ambient temperature."""

from .radiation import AirMass, ClearSkyModel, RadiationModel, relative_air_mass
from .sun_position import SunMinutes, declination, hour_angle, sun_direction, sunrise_sunset
from .temperature import ambient_temperature, profile_temperature

__all__ = [
    "AirMass",
    "ClearSkyModel",
    "RadiationModel",
    "relative_air_mass",
    "SunMinutes",
    "declination",
    "hour_angle",
    "sun_direction",
    "sunrise_sunset",
    "ambient_temperature",
    "profile_temperature",
]
