"""Heliostats reflecting onto a central power-tower receiver."""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from ..constants import DEFAULT_CSP_CELL_SIZE
from ..errors import InvalidElementData
from ..geometry import bisector, normalize, rotation_to_normal
from ..models.elements import Heliostat
from ..models.state import CollectorFamily
from .base import Frame, YieldCalculator, YieldContext

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from ..models.elements import Foundation


class HeliostatCalculator(YieldCalculator):
    """
    Heliostat field around a power tower.

    Each mirror's normal bisects the directions to the sun and to the
    receiver on its foundation's tower, so both legs of the light path are
    tested for obstruction. Only the direct beam is concentrated.
    """

    family = CollectorFamily.HELIOSTAT
    element_type = Heliostat
    label_prefix = "Heliostat"
    default_cell_size = DEFAULT_CSP_CELL_SIZE
    uses_diffuse = False

    def center(self, element: Heliostat, parent: Foundation) -> NDArray[np.floating]:
        # The mount is raised by half the mirror width so the mirror clears the ground at any angle
        x, y = parent.to_world(element.cx, element.cy)
        return np.array([x, y, parent.top + element.pole_height + 0.5 * element.lx + element.lz])

    def frame(self, element: Heliostat, parent: Foundation, sun: NDArray[np.floating]) -> Frame:
        receiver = parent.tower_receiver()
        if receiver is None:
            raise InvalidElementData(
                f"Heliostat '{element.id}' has no power tower on foundation '{parent.id}'",
                element_id=element.id,
                field="power_tower",
                expected="power tower",
                got="None",
            )
        origin = self.center(element, parent)
        to_receiver = normalize(receiver - origin)
        normal = bisector(sun, to_receiver)
        rotation = rotation_to_normal(normal)
        return Frame(normal, rotation, origin, to_receiver, parent.tower_id)

    def element_factor(self, element: Heliostat, ctx: YieldContext, month: int) -> float:
        parent = ctx.store.get_parent(element)
        tower = parent.power_tower
        receiver_efficiency = tower.efficiency if tower is not None else 0.0
        return element.area * element.reflectance * receiver_efficiency * (1.0 - self.dust_loss(element, ctx.config))
