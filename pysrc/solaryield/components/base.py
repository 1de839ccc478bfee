"""
Shared yield algorithm for all collector families.

Every family supplies three things: the collector's orientation for the
current sun (:meth:`YieldCalculator.frame`), its sample layout
(:meth:`YieldCalculator.grid`) and its efficiency chain
(:meth:`YieldCalculator.element_factor`). The per-step integration is
common:

1. Zero if the sun is below the horizon or the surface faces away from it.
   Otherwise moving shadow casters are posed for the current sun.
2. Every cell gets the diffuse/reflected term (families that can use it).
3. Cells whose ray toward the sun, and toward the receiver for mirrors
   aiming at one, is unobstructed add ``dot(normal, sun) · peak``.
4. Cells are averaged (or combined per family) into one raw value.

Raw values are scaled exactly once when a day is finalized.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, ClassVar

import numpy as np

from ..constants import ZERO_TOLERANCE
from ..models.elements import CollectorElement, ElementStore, Foundation
from ..models.state import CollectorFamily

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from ..buffers import BufferPool
    from ..models.config import SimulationConfig
    from ..models.weather import Site, WeatherProfile
    from ..occlusion import OcclusionTester
    from ..physics.radiation import RadiationModel
    from ..physics.sun_position import SunMinutes
    from ..sampling import SampleGrid, SurfaceSampler


@dataclass
class Frame:
    """
    Orientation of a collector at one instant.

    Attributes:
        normal: Unit surface normal in world space.
        rotation: Local-to-world rotation; its third column is ``normal``.
        origin: World position of the aperture centre.
        receiver_direction: Unit vector toward an external receiver, if the
            collector reflects onto one.
        receiver_id: Owner id of the receiver's shadow geometry; it does not
            block the reflected leg aimed at it.
    """

    normal: NDArray[np.floating]
    rotation: NDArray[np.floating]
    origin: NDArray[np.floating]
    receiver_direction: NDArray[np.floating] | None = None
    receiver_id: str | None = None


@dataclass
class YieldContext:
    """Run-wide collaborators handed to calculators."""

    store: ElementStore
    site: Site
    weather: WeatherProfile
    config: SimulationConfig
    radiation: RadiationModel
    occlusion: OcclusionTester
    sampler: SurfaceSampler
    pool: BufferPool


@dataclass
class DayOutput:
    """Finalized hourly output of one element for one day."""

    series: NDArray[np.floating]
    extras: dict[str, NDArray[np.floating]] = field(default_factory=dict)


def time_factor(weather: WeatherProfile, month: int, sun_minutes: SunMinutes, times_per_hour: int) -> float:
    """
    Scale from summed instantaneous samples to cloud-adjusted hourly energy.

    ``sunshine_hours[month] / (30 · daylight_hours · times_per_hour)``, or 0
    when there is no daylight.
    """
    daylight_hours = sun_minutes.daylight_hours()
    if daylight_hours <= ZERO_TOLERANCE:
        return 0.0
    return weather.daily_sunshine_hours(month) / (daylight_hours * times_per_hour)


class YieldCalculator(ABC):
    """
    Per-family yield capability used by the scheduler.

    Subclasses set the class attributes and implement :meth:`frame` and
    :meth:`element_factor`.
    """

    family: ClassVar[CollectorFamily]
    element_type: ClassVar[type[CollectorElement]]
    label_prefix: ClassVar[str] = "Element"
    default_cell_size: ClassVar[float] = 0.5
    even_grid: ClassVar[bool] = False
    uses_diffuse: ClassVar[bool] = True

    def elements(self, store: ElementStore) -> list[CollectorElement]:
        return store.of_type(self.element_type)

    def has_moving_parts(self, element: CollectorElement) -> bool:
        return element.has_moving_parts

    def label(self, element: CollectorElement, index: int) -> str:
        return element.label or f"{self.label_prefix}{index + 1}"

    def cell_size(self, config: SimulationConfig) -> float:
        if config.cell_size is not None:
            return config.cell_size
        if config.cell_sizes and self.family.value in config.cell_sizes:
            return config.cell_sizes[self.family.value]
        return self.default_cell_size

    def dust_loss(self, element: CollectorElement, config: SimulationConfig) -> float:
        return element.dust_loss if element.dust_loss is not None else config.dust_loss

    def grid(self, element: CollectorElement, ctx: YieldContext) -> SampleGrid:
        return ctx.sampler.grid(element.id, element.lx, element.ly, self.cell_size(ctx.config), self.even_grid)

    @abstractmethod
    def frame(self, element: CollectorElement, parent: Foundation, sun: NDArray[np.floating]) -> Frame:
        """Orientation of ``element`` for sun direction ``sun``."""

    def normal(self, element: CollectorElement, parent: Foundation, sun: NDArray[np.floating]) -> NDArray[np.floating]:
        return self.frame(element, parent, sun).normal

    def sample(
        self, element: CollectorElement, parent: Foundation, sun: NDArray[np.floating], ctx: YieldContext
    ) -> NDArray[np.floating]:
        """World-space sample points for the current orientation."""
        frame = self.frame(element, parent, sun)
        return ctx.sampler.world_points(element.id, self.grid(element, ctx), frame.rotation, frame.origin)

    def combine_cells(self, element: CollectorElement, grid: SampleGrid, cells: NDArray[np.floating]) -> float:
        return float(cells.sum()) / grid.count

    def yield_contribution(
        self,
        element: CollectorElement,
        ctx: YieldContext,
        sun: NDArray[np.floating],
        day_of_year: int,
        month: int,
    ) -> float:
        """
        Raw contribution of one element at one instant.

        Raises:
            MissingParentError: If the element's foundation is gone.
            InvalidElementData: If the element lacks a required receiver.
        """
        if sun[2] <= ZERO_TOLERANCE:
            return 0.0
        ctx.occlusion.pose(sun)
        parent = ctx.store.get_parent(element)
        frame = self.frame(element, parent, sun)
        dot = float(frame.normal @ sun)
        if dot <= 0.0:
            return 0.0
        peak = ctx.radiation.peak_radiation(sun, day_of_year, ctx.weather.elevation, ctx.config.air_mass)
        if peak <= 0.0:
            return 0.0

        grid = self.grid(element, ctx)
        points = ctx.sampler.world_points(element.id, grid, frame.rotation, frame.origin)
        cells = ctx.pool.get(f"{element.id}:cells", (grid.count,))
        if self.uses_diffuse:
            cells.fill(ctx.radiation.diffuse_and_reflected(ctx.site.ground_albedo, month, frame.normal, peak, sun))
        else:
            cells.fill(0.0)

        lit = ~ctx.occlusion.occluded(element.id, points, sun)
        if frame.receiver_direction is not None:
            ignore = (frame.receiver_id,) if frame.receiver_id is not None else ()
            lit &= ~ctx.occlusion.occluded(element.id, points, frame.receiver_direction, ignore)
        cells[lit] += dot * peak
        return self.combine_cells(element, grid, cells)

    @abstractmethod
    def element_factor(self, element: CollectorElement, ctx: YieldContext, month: int) -> float:
        """Efficiency chain multiplier (area included)."""

    def finalize_day(
        self,
        element: CollectorElement,
        raw: NDArray[np.floating],
        factor: float,
        ctx: YieldContext,
        month: int,
    ) -> DayOutput:
        """Scale one day of raw hourly values by the time factor and efficiency chain."""
        return DayOutput(raw * (factor * self.element_factor(element, ctx, month)))
