"""Focusing parabolic collectors: troughs and dishes.

Both carry their receiver at the focus on the aperture axis, so the
bisector of the sun and focus directions is the sun direction itself
(dishes) or its projection across the trough axis (troughs). Sample
grids are even so that cells mirror each other across the axis.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

import numpy as np

from ..constants import DEFAULT_CSP_CELL_SIZE
from ..geometry import rotation_to_normal, rotation_y, rotation_z
from ..models.elements import ParabolicDish, ParabolicTrough
from ..models.state import CollectorFamily
from .base import Frame, YieldCalculator, YieldContext

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from ..models.elements import Foundation


def aperture_center(element: ParabolicTrough | ParabolicDish, parent: Foundation) -> NDArray[np.floating]:
    """Aperture centre: raised by half the width for clearance, plus the mirror depth."""
    x, y = parent.to_world(element.cx, element.cy)
    return np.array([x, y, parent.top + element.pole_height + 0.5 * element.lx + element.lz + element.depth])


def _optical_chain(element: ParabolicTrough | ParabolicDish) -> float:
    return element.optical_efficiency * element.thermal_efficiency * element.absorptance * element.reflectance


class ParabolicTroughCalculator(YieldCalculator):
    """Troughs rotate about their north-south axis (turned by the relative azimuth)."""

    family = CollectorFamily.PARABOLIC_TROUGH
    element_type = ParabolicTrough
    label_prefix = "Trough"
    default_cell_size = DEFAULT_CSP_CELL_SIZE
    even_grid = True
    uses_diffuse = False

    def frame(self, element: ParabolicTrough, parent: Foundation, sun: NDArray[np.floating]) -> Frame:
        azimuth = parent.rotation + element.relative_azimuth
        local_sun = rotation_z(-azimuth) @ sun
        rotation = rotation_z(azimuth) @ rotation_y(math.atan2(local_sun[0], local_sun[2]))
        return Frame(rotation[:, 2].copy(), rotation, aperture_center(element, parent))

    def element_factor(self, element: ParabolicTrough, ctx: YieldContext, month: int) -> float:
        factor = element.area * _optical_chain(element) * (1.0 - self.dust_loss(element, ctx.config))
        losses = ctx.config.monthly_irradiance_losses
        if losses is not None:
            factor *= 1.0 - losses[month]
        return factor


class ParabolicDishCalculator(YieldCalculator):
    """Dishes track the sun on two axes."""

    family = CollectorFamily.PARABOLIC_DISH
    element_type = ParabolicDish
    label_prefix = "Dish"
    default_cell_size = DEFAULT_CSP_CELL_SIZE
    even_grid = True
    uses_diffuse = False

    def frame(self, element: ParabolicDish, parent: Foundation, sun: NDArray[np.floating]) -> Frame:
        rotation = rotation_to_normal(sun)
        return Frame(np.array(sun, dtype=np.float64), rotation, aperture_center(element, parent))

    def element_factor(self, element: ParabolicDish, ctx: YieldContext, month: int) -> float:
        return element.area * _optical_chain(element) * (1.0 - self.dust_loss(element, ctx.config))
