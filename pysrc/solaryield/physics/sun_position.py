"""
Sun position in local solar time.

Sun vectors use the world frame (+x east, +y north, +z up). The hour angle
is measured from local solar noon, so the sun crosses the meridian at
12:00 on the simulated clock regardless of longitude.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime
from typing import TYPE_CHECKING

import numpy as np

from ..constants import HALF_DAY_MINUTES, MINUTES_PER_DAY, OBLIQUITY_DEG
from ..models.clock import day_of_year, minutes_into_day

if TYPE_CHECKING:
    from numpy.typing import NDArray


@dataclass(frozen=True)
class SunMinutes:
    """
    Sunrise and sunset in minutes from midnight.

    Polar night is represented by sunrise == sunset == 720 (no daylight);
    polar day by sunrise == 0 and sunset == 1440.
    """

    sunrise: float
    sunset: float

    def daylight(self) -> float:
        return self.sunset - self.sunrise

    def daylight_hours(self) -> float:
        return self.daylight() / 60.0


def declination(when: date | datetime) -> float:
    """Solar declination (radians): 23.45° · sin(2π(284 + n) / 365.25)."""
    return math.radians(OBLIQUITY_DEG) * math.sin(2.0 * math.pi * (284 + day_of_year(when)) / 365.25)


def hour_angle(when: datetime) -> float:
    """Hour angle (radians), negative before solar noon."""
    return (minutes_into_day(when) - HALF_DAY_MINUTES) / HALF_DAY_MINUTES * math.pi


def sun_altitude_azimuth(hour: float, dec: float, latitude: float) -> tuple[float, float]:
    """
    Altitude and azimuth (radians) from hour angle, declination and latitude.

    The azimuth is measured counter-clockwise from the +x axis before the
    east-west flip applied by :func:`sun_direction_from_angles`.
    """
    altitude = math.asin(
        max(-1.0, min(1.0, math.sin(dec) * math.sin(latitude) + math.cos(dec) * math.cos(hour) * math.cos(latitude)))
    )
    x_azm = math.sin(hour) * math.cos(dec)
    y_azm = math.cos(latitude) * math.sin(dec) - math.cos(hour) * math.cos(dec) * math.sin(latitude)
    return altitude, math.atan2(y_azm, x_azm)


def sun_direction_from_angles(hour: float, dec: float, latitude: float) -> NDArray[np.floating]:
    altitude, azimuth = sun_altitude_azimuth(hour, dec, latitude)
    cos_alt = math.cos(altitude)
    # x is flipped so the sun rises in the east (+x) and sets in the west
    v = np.array([-math.cos(azimuth) * cos_alt, math.sin(azimuth) * cos_alt, math.sin(altitude)])
    return v / np.linalg.norm(v)


def sun_direction(when: datetime, latitude: float) -> NDArray[np.floating]:
    """
    Unit vector from the site toward the sun.

    Args:
        when: Simulated local solar time.
        latitude: Site latitude in degrees.

    Returns:
        Unit 3-vector; z <= 0 means the sun is below the horizon.

    Example:
        >>> sun = sun_direction(datetime(2024, 6, 21, 12), 42.3)
        >>> sun[2] > 0.9
        True
    """
    return sun_direction_from_angles(hour_angle(when), declination(when), math.radians(latitude))


def sunrise_sunset(when: date | datetime, latitude: float) -> SunMinutes:
    """
    Minutes from midnight at which the sun's altitude crosses zero.

    Solves cos(H0) = −tan(φ)·tan(δ). When there is no solution the sun
    never rises (polar night) or never sets (polar day).
    """
    dec = declination(when)
    lat = math.radians(latitude)
    cos_h0 = -math.tan(lat) * math.tan(dec)
    if cos_h0 >= 1.0:
        return SunMinutes(HALF_DAY_MINUTES, HALF_DAY_MINUTES)
    if cos_h0 <= -1.0:
        return SunMinutes(0.0, float(MINUTES_PER_DAY))
    h0 = math.acos(cos_h0)
    offset = h0 / math.pi * HALF_DAY_MINUTES
    return SunMinutes(HALF_DAY_MINUTES - offset, HALF_DAY_MINUTES + offset)
