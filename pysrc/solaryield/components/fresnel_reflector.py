"""Linear Fresnel reflectors aiming at a shared absorber pipe."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

import numpy as np

from ..constants import DEFAULT_CSP_CELL_SIZE, ZERO_TOLERANCE
from ..errors import InvalidElementData
from ..geometry import UNIT_Z, bisector, normalize, rotation_y, rotation_z
from ..models.elements import FresnelReflector
from ..models.state import CollectorFamily
from .base import Frame, YieldCalculator, YieldContext

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from ..models.elements import Foundation


class FresnelReflectorCalculator(YieldCalculator):
    """
    Fresnel reflector rows.

    A reflector turns about its north-south axis only, so a reflected ray
    keeps the axial component of the incoming one with opposite sign. The
    aim point on the pipe is shifted along the axis accordingly, and the
    resulting bisector always lies across the axis.
    """

    family = CollectorFamily.FRESNEL_REFLECTOR
    element_type = FresnelReflector
    label_prefix = "Fresnel"
    default_cell_size = DEFAULT_CSP_CELL_SIZE
    uses_diffuse = False

    def center(self, element: FresnelReflector, parent: Foundation) -> NDArray[np.floating]:
        x, y = parent.to_world(element.cx, element.cy)
        return np.array([x, y, parent.top + element.pole_height + 0.5 * element.lx + element.lz])

    def receiver_direction(
        self, element: FresnelReflector, parent: Foundation, sun: NDArray[np.floating]
    ) -> NDArray[np.floating]:
        pipe = parent.absorber_pipe
        if pipe is None:
            raise InvalidElementData(
                f"Fresnel reflector '{element.id}' has no absorber pipe on foundation '{parent.id}'",
                element_id=element.id,
                field="absorber_pipe",
                expected="absorber pipe",
                got="None",
            )
        axis = rotation_z(parent.rotation + element.relative_azimuth) @ np.array([0.0, 1.0, 0.0])
        to_pipe = np.array([parent.cx, parent.cy, parent.top + pipe.absorber_height]) - self.center(element, parent)
        across = to_pipe - (to_pipe @ axis) * axis
        distance = float(np.linalg.norm(across))
        if distance < ZERO_TOLERANCE:
            across, distance = UNIT_Z.copy(), 1.0
        k = float(sun @ axis)
        shift = -k * distance / math.sqrt(max(1.0 - k * k, ZERO_TOLERANCE))
        return normalize(across + shift * axis)

    def frame(self, element: FresnelReflector, parent: Foundation, sun: NDArray[np.floating]) -> Frame:
        azimuth = parent.rotation + element.relative_azimuth
        to_receiver = self.receiver_direction(element, parent, sun)
        local = rotation_z(-azimuth) @ bisector(sun, to_receiver)
        rotation = rotation_z(azimuth) @ rotation_y(math.atan2(local[0], local[2]))
        return Frame(rotation[:, 2].copy(), rotation, self.center(element, parent), to_receiver, parent.pipe_id)

    def element_factor(self, element: FresnelReflector, ctx: YieldContext, month: int) -> float:
        parent = ctx.store.get_parent(element)
        pipe = parent.absorber_pipe
        receiver_efficiency = pipe.efficiency if pipe is not None else 0.0
        return element.area * element.reflectance * receiver_efficiency * (1.0 - self.dust_loss(element, ctx.config))
