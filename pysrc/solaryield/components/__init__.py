"""Per-family yield calculators.

Each calculator implements the :class:`YieldCalculator` capability for one
collector family; the scheduler is generic over them.
"""

from ..models.state import CollectorFamily
from .base import DayOutput, Frame, YieldCalculator, YieldContext, time_factor
from .flat_panel import FlatPanelCalculator, panel_rotation, pv_efficiency, temperature_derating
from .fresnel_reflector import FresnelReflectorCalculator
from .heliostat import HeliostatCalculator
from .light_sensor import LightSensorCalculator
from .parabolic import ParabolicDishCalculator, ParabolicTroughCalculator
from .updraft_tower import UpdraftTowerCalculator

CALCULATORS: dict[CollectorFamily, type[YieldCalculator]] = {
    cls.family: cls
    for cls in (
        FlatPanelCalculator,
        HeliostatCalculator,
        ParabolicTroughCalculator,
        ParabolicDishCalculator,
        FresnelReflectorCalculator,
        UpdraftTowerCalculator,
        LightSensorCalculator,
    )
}


def calculator_for(family: CollectorFamily | str) -> YieldCalculator:
    """Instantiate the calculator for a collector family."""
    return CALCULATORS[CollectorFamily(family)]()


__all__ = [
    "CALCULATORS",
    "calculator_for",
    "DayOutput",
    "Frame",
    "YieldCalculator",
    "YieldContext",
    "time_factor",
    "FlatPanelCalculator",
    "panel_rotation",
    "pv_efficiency",
    "temperature_derating",
    "FresnelReflectorCalculator",
    "HeliostatCalculator",
    "LightSensorCalculator",
    "ParabolicDishCalculator",
    "ParabolicTroughCalculator",
    "UpdraftTowerCalculator",
]
