"""Solar updraft towers.

The glazed collector disc is sampled like any horizontal surface. When a
day is finalized, the absorbed heat of each hour drives a chimney flow:

    ΔT / T_a = (a² / (2 g H))^(1/3),   a = Q / (ρ c_p A_c T_a)
    v = √(2 g H ΔT / T_a)
    P = ½ · C_d · η_t · ρ · A_c · v³

where Q is the absorbed power net of convective and radiative losses from
the collector, A_c the chimney cross-section and H the chimney height.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

import numpy as np

from ..constants import (
    AIR_DENSITY,
    AIR_ISOBARIC_SPECIFIC_HEAT,
    DEFAULT_SUT_CELL_SIZE,
    GRAVITATIONAL_ACCELERATION,
    KELVIN_OFFSET,
    SBC,
)
from ..models.elements import UpdraftTower
from ..models.state import CollectorFamily
from ..physics.temperature import profile_temperature
from .base import DayOutput, Frame, YieldCalculator, YieldContext

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from ..models.elements import Foundation
    from ..sampling import SampleGrid


class UpdraftTowerCalculator(YieldCalculator):
    family = CollectorFamily.UPDRAFT_TOWER
    element_type = UpdraftTower
    label_prefix = "Tower"
    default_cell_size = DEFAULT_SUT_CELL_SIZE

    def grid(self, element: UpdraftTower, ctx: YieldContext) -> SampleGrid:
        return ctx.sampler.disk(element.id, element.collector_radius, self.cell_size(ctx.config))

    def frame(self, element: UpdraftTower, parent: Foundation, sun: NDArray[np.floating]) -> Frame:
        x, y = parent.to_world(element.cx, element.cy)
        origin = np.array([x, y, parent.top + element.pole_height + element.collector_height])
        return Frame(np.array([0.0, 0.0, 1.0]), np.eye(3), origin)

    def combine_cells(self, element: UpdraftTower, grid: SampleGrid, cells: NDArray[np.floating]) -> float:
        # Average irradiance times disc area: kW absorbed by the whole collector
        return float(cells.mean()) * element.collector_area

    def element_factor(self, element: UpdraftTower, ctx: YieldContext, month: int) -> float:
        return element.transmissivity * (1.0 - self.dust_loss(element, ctx.config))

    def finalize_day(
        self,
        element: UpdraftTower,
        raw: NDArray[np.floating],
        factor: float,
        ctx: YieldContext,
        month: int,
    ) -> DayOutput:
        # Hourly mean absorbed power in W
        absorbed = raw * (factor * self.element_factor(element, ctx, month) * 1000.0)
        hours = raw.shape[0]
        output = np.zeros(hours)
        inlet = np.zeros(hours)
        speed = np.zeros(hours)

        flow_capacity = AIR_DENSITY * AIR_ISOBARIC_SPECIFIC_HEAT * element.chimney_area
        speed_factor = 2.0 * GRAVITATIONAL_ACCELERATION * element.chimney_height
        power_factor = 0.5 * element.discharge_coefficient * element.turbine_efficiency * AIR_DENSITY * element.chimney_area

        for i in range(hours):
            ambient = profile_temperature(ctx.weather, month, i * 60.0)
            ambient_k = ambient + KELVIN_OFFSET
            q = absorbed[i]
            if q > 0.0 and i > 0 and inlet[i - 1] > ambient:
                previous_k = inlet[i - 1] + KELVIN_OFFSET
                q -= element.collector_area * (
                    element.convective_coefficient * (inlet[i - 1] - ambient)
                    + element.emissivity * SBC * (previous_k**4 - ambient_k**4)
                )
                q = max(q, 0.0)
            if q > 0.0:
                a = q / (flow_capacity * ambient_k)
                rise = ambient_k * math.pow(a * a / speed_factor, 1.0 / 3.0)
                inlet[i] = ambient + rise
                speed[i] = math.sqrt(speed_factor * rise / ambient_k)
                output[i] = power_factor * speed[i] ** 3 * 0.001
            else:
                inlet[i] = ambient
        return DayOutput(output, {"chimney_temperature": inlet, "wind_speed": speed})
