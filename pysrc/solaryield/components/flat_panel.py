"""Photovoltaic panels, fixed or tracking."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

import numpy as np

from ..constants import DEFAULT_PV_CELL_SIZE, MONOCRYSTALLINE_PACKING_FACTOR, PV_REFERENCE_TEMPERATURE
from ..geometry import rotation_to_normal, rotation_y, rotation_z, tilt_azimuth_rotation
from ..models.elements import CellType, ShadeTolerance, SolarPanel, TrackerType
from ..models.state import CollectorFamily
from ..physics.temperature import profile_temperature
from .base import DayOutput, Frame, YieldCalculator, YieldContext

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from ..models.elements import Foundation
    from ..sampling import SampleGrid


def panel_rotation(panel: SolarPanel, parent: Foundation, sun: NDArray[np.floating]) -> NDArray[np.floating]:
    """
    Local-to-world rotation of a panel for the given tracker type.

    Single-axis horizontal trackers turn about the panel's north-south axis
    (in the parent frame); vertical single-axis trackers keep their tilt and
    turn to face the sun's azimuth; dual-axis trackers face the sun.
    """
    azimuth = parent.rotation + panel.relative_azimuth
    if panel.tracker == TrackerType.NONE:
        return tilt_azimuth_rotation(panel.tilt, azimuth)
    local_sun = rotation_z(-azimuth) @ sun
    if panel.tracker == TrackerType.HORIZONTAL_SINGLE_AXIS:
        return rotation_z(azimuth) @ rotation_y(math.atan2(local_sun[0], local_sun[2]))
    if panel.tracker == TrackerType.VERTICAL_SINGLE_AXIS:
        return tilt_azimuth_rotation(panel.tilt, math.atan2(sun[1], sun[0]) + math.pi / 2)
    return rotation_z(azimuth) @ rotation_to_normal(local_sun)


def temperature_derating(panel: SolarPanel, ambient_temperature: float) -> float:
    """Relative power at ``ambient_temperature`` versus the 25 °C rating."""
    return 1.0 + panel.pmax_temperature_coefficient * (ambient_temperature - PV_REFERENCE_TEMPERATURE)


def pv_efficiency(panel: SolarPanel, ambient_temperature: float = PV_REFERENCE_TEMPERATURE) -> float:
    """Module efficiency corrected for packing and temperature."""
    efficiency = panel.efficiency
    if panel.cell_type == CellType.MONOCRYSTALLINE:
        efficiency *= MONOCRYSTALLINE_PACKING_FACTOR
    return efficiency * temperature_derating(panel, ambient_temperature)


class FlatPanelCalculator(YieldCalculator):
    """
    PV panels.

    Grids are even along both axes so cells can be wired in column pairs.
    The shade tolerance decides how shaded cells limit lit ones: ``HIGH``
    averages cells independently, ``PARTIAL`` lets each column pair produce
    its weakest cell's value, ``NONE`` lets the weakest cell limit the whole
    panel.
    """

    family = CollectorFamily.FLAT_PANEL
    element_type = SolarPanel
    label_prefix = "Panel"
    default_cell_size = DEFAULT_PV_CELL_SIZE
    even_grid = True

    def frame(self, element: SolarPanel, parent: Foundation, sun: NDArray[np.floating]) -> Frame:
        rotation = panel_rotation(element, parent, sun)
        x, y = parent.to_world(element.cx, element.cy)
        origin = np.array([x, y, parent.top + element.pole_height + element.lz])
        return Frame(rotation[:, 2].copy(), rotation, origin)

    def combine_cells(self, element: SolarPanel, grid: SampleGrid, cells: NDArray[np.floating]) -> float:
        if element.shade_tolerance == ShadeTolerance.NONE:
            return float(cells.min())
        if element.shade_tolerance == ShadeTolerance.PARTIAL:
            pairs = cells.reshape(grid.nx // 2, 2 * grid.ny)
            return float(pairs.min(axis=1).mean())
        return float(cells.mean())

    def element_factor(self, element: SolarPanel, ctx: YieldContext, month: int) -> float:
        return (
            element.area
            * pv_efficiency(element)
            * ctx.config.inverter_efficiency
            * (1.0 - self.dust_loss(element, ctx.config))
        )

    def finalize_day(
        self,
        element: SolarPanel,
        raw: NDArray[np.floating],
        factor: float,
        ctx: YieldContext,
        month: int,
    ) -> DayOutput:
        """Scale one day of raw values, derating each hour for that hour's ambient temperature."""
        out = super().finalize_day(element, raw, factor, ctx, month)
        derating = np.array(
            [temperature_derating(element, profile_temperature(ctx.weather, month, h * 60.0)) for h in range(len(raw))]
        )
        out.series = out.series * derating
        return out
