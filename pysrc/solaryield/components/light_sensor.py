"""Point irradiance sensors."""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from ..geometry import tilt_azimuth_rotation
from ..models.elements import LightSensor
from ..models.state import CollectorFamily
from .base import Frame, YieldCalculator, YieldContext

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from ..models.elements import Foundation
    from ..sampling import SampleGrid


class LightSensorCalculator(YieldCalculator):
    """Sensors sample one point; results are irradiation in kWh/m²."""

    family = CollectorFamily.LIGHT_SENSOR
    element_type = LightSensor
    label_prefix = "Sensor"

    def grid(self, element: LightSensor, ctx: YieldContext) -> SampleGrid:
        return ctx.sampler.point(element.id)

    def frame(self, element: LightSensor, parent: Foundation, sun: NDArray[np.floating]) -> Frame:
        rotation = tilt_azimuth_rotation(element.tilt, parent.rotation + element.relative_azimuth)
        x, y = parent.to_world(element.cx, element.cy)
        origin = np.array([x, y, parent.top + element.pole_height + element.lz])
        return Frame(rotation[:, 2].copy(), rotation, origin)

    def element_factor(self, element: LightSensor, ctx: YieldContext, month: int) -> float:
        return 1.0
