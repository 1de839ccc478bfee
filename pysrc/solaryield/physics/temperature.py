"""Diurnal ambient temperature from monthly climate normals."""

from __future__ import annotations

import math

from ..constants import MINUTES_PER_DAY

# Used when a weather profile carries no temperature normals
DEFAULT_AMBIENT_TEMPERATURE = 20.0


def ambient_temperature(low: float, high: float, minute: float, highest_minute: float) -> float:
    """
    Air temperature (°C) at ``minute`` of the day.

    A cosine between the daily low and high, peaking at ``highest_minute``
    and bottoming out twelve hours away from it.
    """
    mean = 0.5 * (low + high)
    amplitude = 0.5 * (high - low)
    return mean + amplitude * math.cos(2.0 * math.pi * (minute - highest_minute) / MINUTES_PER_DAY)


def profile_temperature(weather, month: int, minute: float) -> float:
    """Ambient temperature for a zero-based month from a WeatherProfile."""
    if weather is None or not weather.has_temperatures:
        return DEFAULT_AMBIENT_TEMPERATURE
    return ambient_temperature(
        weather.lowest_temperatures[month],
        weather.highest_temperatures[month],
        minute,
        weather.highest_temperature_minute,
    )
