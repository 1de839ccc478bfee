"""
Clear-sky radiation policies.

A radiation model turns a sun vector into a peak direct-normal irradiance
(kW/m²) and supplies the diffuse plus ground-reflected irradiance seen by
a surface of given orientation. The default :class:`ClearSkyModel`
attenuates the solar constant with a monthly clearness (optical depth)
table and a selectable air-mass term:

    I_peak = I0 · (1 + 0.034 cos(2π n / 365.25)) · exp(−B_month · m)

Diffuse and reflected terms follow the isotropic sky with sky and ground
view factors 0.5(1 ± cos β):

    I_d = C_month · I_peak · (1 + cos β) / 2
        + ρ · (I_peak · sin α + C_month · I_peak) · (1 − cos β) / 2

Any object implementing :class:`RadiationModel` can replace it.
"""

from __future__ import annotations

import math
from datetime import date, timedelta
from enum import Enum
from typing import TYPE_CHECKING, Protocol

from ..constants import (
    CLEARNESS_COEFFICIENTS,
    DIFFUSE_COEFFICIENTS,
    KASTEN_YOUNG_A,
    KASTEN_YOUNG_B,
    KASTEN_YOUNG_C,
    SCALE_HEIGHT,
    SOLAR_CONSTANT,
    SPHERE_ELEVATION_SCALE,
    SPHERE_RADIUS_RATIO,
    ZERO_TOLERANCE,
)

if TYPE_CHECKING:
    import numpy as np
    from numpy.typing import NDArray


class AirMass(str, Enum):
    """Air mass policy."""

    NONE = "none"
    KASTEN_YOUNG = "kasten_young"
    SPHERE_MODEL = "sphere_model"


class RadiationModel(Protocol):
    def peak_radiation(
        self, sun_direction: NDArray[np.floating], day_of_year: int, elevation: float, air_mass: AirMass
    ) -> float: ...

    def diffuse_and_reflected(
        self,
        albedo: float,
        month: int,
        normal: NDArray[np.floating],
        peak_radiation: float,
        sun_direction: NDArray[np.floating] | None = None,
    ) -> float: ...


def month_of_day(day_of_year: int) -> int:
    """Zero-based month containing a one-based day of a non-leap year."""
    return (date(2001, 1, 1) + timedelta(days=day_of_year - 1)).month - 1


def relative_air_mass(sun_z: float, elevation: float, policy: AirMass) -> float:
    """
    Relative optical path length for a sun at height ``sun_z`` (sine of altitude).

    Returns 1 for the NONE policy. Callers must handle ``sun_z <= 0``
    before calling.
    """
    policy = AirMass(policy)
    if policy is AirMass.NONE:
        return 1.0
    cos_zenith = min(1.0, sun_z)
    if policy is AirMass.KASTEN_YOUNG:
        zenith_deg = math.degrees(math.acos(cos_zenith))
        m = 1.0 / (cos_zenith + KASTEN_YOUNG_A * (KASTEN_YOUNG_B - zenith_deg) ** KASTEN_YOUNG_C)
        return m * math.exp(-elevation / SCALE_HEIGHT)
    r = SPHERE_RADIUS_RATIO
    c = elevation / SPHERE_ELEVATION_SCALE
    return math.sqrt((r + c) ** 2 * cos_zenith**2 + (2 * r + 1 + c) * (1 - c)) - (r + c) * cos_zenith


class ClearSkyModel:
    """
    Default radiation model.

    Attributes:
        solar_constant: Extraterrestrial irradiance (kW/m²).
        clearness: Monthly optical depth coefficients, January first.
        diffuse: Monthly diffuse coefficients, January first.

    Example:
        >>> model = ClearSkyModel()
        >>> peak = model.peak_radiation(sun, 172, elevation=0.0, air_mass=AirMass.SPHERE_MODEL)
        >>> model.diffuse_and_reflected(0.3, 5, np.array([0, 0, 1.0]), peak, sun)
    """

    def __init__(
        self,
        solar_constant: float = SOLAR_CONSTANT,
        clearness: tuple[float, ...] = CLEARNESS_COEFFICIENTS,
        diffuse: tuple[float, ...] = DIFFUSE_COEFFICIENTS,
    ):
        if len(clearness) != 12 or len(diffuse) != 12:
            raise ValueError("Clearness and diffuse tables need 12 monthly values")
        self.solar_constant = solar_constant
        self.clearness = tuple(clearness)
        self.diffuse = tuple(diffuse)

    def extraterrestrial(self, day_of_year: int) -> float:
        return self.solar_constant * (1.0 + 0.034 * math.cos(2.0 * math.pi * day_of_year / 365.25))

    def peak_radiation(
        self, sun_direction: NDArray[np.floating], day_of_year: int, elevation: float, air_mass: AirMass
    ) -> float:
        sun_z = float(sun_direction[2])
        if sun_z <= ZERO_TOLERANCE:
            return 0.0
        m = relative_air_mass(sun_z, elevation, air_mass)
        return self.extraterrestrial(day_of_year) * math.exp(-self.clearness[month_of_day(day_of_year)] * m)

    def diffuse_and_reflected(
        self,
        albedo: float,
        month: int,
        normal: NDArray[np.floating],
        peak_radiation: float,
        sun_direction: NDArray[np.floating] | None = None,
    ) -> float:
        if peak_radiation <= 0.0:
            return 0.0
        cos_tilt = float(normal[2])
        sky_view = 0.5 * (1.0 + cos_tilt)
        ground_view = 0.5 * (1.0 - cos_tilt)
        diffuse_horizontal = self.diffuse[month] * peak_radiation
        result = diffuse_horizontal * sky_view
        if ground_view > 0.0:
            beam_horizontal = peak_radiation * max(0.0, float(sun_direction[2])) if sun_direction is not None else 0.0
            result += albedo * (beam_horizontal + diffuse_horizontal) * ground_view
        return result
