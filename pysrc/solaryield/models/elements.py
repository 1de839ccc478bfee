"""Collector element records and the element store.

Elements are immutable while a step runs: the scheduler and calculators
only read them. Positions of collectors are offsets (m) from their parent
foundation's centre, expressed in the foundation's rotated frame. Angles
are in radians.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, TypeVar

import numpy as np

from ..constants import (
    DEFAULT_COLLECTOR_EMISSIVITY,
    DEFAULT_COLLECTOR_TRANSMISSIVITY,
    DEFAULT_CONVECTIVE_COEFFICIENT,
    DEFAULT_DISCHARGE_COEFFICIENT,
    DEFAULT_RECEIVER_ABSORPTANCE,
    DEFAULT_RECEIVER_OPTICAL_EFFICIENCY,
    DEFAULT_RECEIVER_THERMAL_EFFICIENCY,
    DEFAULT_TURBINE_EFFICIENCY,
)
from ..errors import InvalidElementData, MissingParentError

if TYPE_CHECKING:
    from numpy.typing import NDArray

E = TypeVar("E", bound="CollectorElement")


class TrackerType(str, Enum):
    """Mechanical strategy by which a panel follows the sun."""

    NONE = "none"
    HORIZONTAL_SINGLE_AXIS = "horizontal_single_axis"
    VERTICAL_SINGLE_AXIS = "vertical_single_axis"
    ALTAZIMUTH_DUAL_AXIS = "altazimuth_dual_axis"


class ShadeTolerance(str, Enum):
    """How partially shaded PV cells limit the string they are wired into."""

    NONE = "none"
    PARTIAL = "partial"
    HIGH = "high"


class CellType(str, Enum):
    MONOCRYSTALLINE = "monocrystalline"
    POLYCRYSTALLINE = "polycrystalline"
    THIN_FILM = "thin_film"


def _check_positive(element_id: str, **values: float) -> None:
    for name, value in values.items():
        if not value > 0:
            raise InvalidElementData(
                f"Element '{element_id}': {name} must be positive, got {value}",
                element_id=element_id,
                field=name,
                expected="> 0",
                got=str(value),
            )


def _check_fraction(element_id: str, **values: float) -> None:
    for name, value in values.items():
        if not 0.0 <= value <= 1.0:
            raise InvalidElementData(
                f"Element '{element_id}': {name} must be in [0, 1], got {value}",
                element_id=element_id,
                field=name,
                expected="[0, 1]",
                got=str(value),
            )


@dataclass(frozen=True)
class PowerTower:
    """Central receiver on top of a tower standing at a foundation's centre."""

    tower_height: float = 20.0
    tower_radius: float = 1.0
    optical_efficiency: float = DEFAULT_RECEIVER_OPTICAL_EFFICIENCY
    thermal_efficiency: float = DEFAULT_RECEIVER_THERMAL_EFFICIENCY
    absorptance: float = DEFAULT_RECEIVER_ABSORPTANCE

    @property
    def efficiency(self) -> float:
        return self.optical_efficiency * self.thermal_efficiency * self.absorptance


@dataclass(frozen=True)
class AbsorberPipe:
    """Linear receiver above a foundation's centre line, shared by Fresnel reflectors."""

    absorber_height: float = 10.0
    absorber_radius: float = 0.25
    optical_efficiency: float = DEFAULT_RECEIVER_OPTICAL_EFFICIENCY
    thermal_efficiency: float = DEFAULT_RECEIVER_THERMAL_EFFICIENCY
    absorptance: float = DEFAULT_RECEIVER_ABSORPTANCE

    @property
    def efficiency(self) -> float:
        return self.optical_efficiency * self.thermal_efficiency * self.absorptance


@dataclass(frozen=True)
class Foundation:
    """
    Ground slab that carries collectors and, optionally, a receiver.

    Attributes:
        id: Unique identifier.
        cx, cy: Centre in world coordinates (m).
        lx, ly, lz: Size (m); the top surface is at z = lz.
        rotation: Rotation about the vertical axis (radians, counter-clockwise).
        power_tower: Receiver targeted by heliostats on this foundation.
        absorber_pipe: Receiver targeted by Fresnel reflectors on this foundation.
    """

    id: str
    cx: float = 0.0
    cy: float = 0.0
    lx: float = 40.0
    ly: float = 40.0
    lz: float = 0.1
    rotation: float = 0.0
    power_tower: PowerTower | None = None
    absorber_pipe: AbsorberPipe | None = None

    def __post_init__(self):
        _check_positive(self.id, lx=self.lx, ly=self.ly, lz=self.lz)

    @property
    def top(self) -> float:
        return self.lz

    @property
    def tower_id(self) -> str:
        """Owner id of the power tower's shadow geometry."""
        return f"{self.id}:tower"

    @property
    def pipe_id(self) -> str:
        return f"{self.id}:pipe"

    def to_world(self, dx: float, dy: float) -> tuple[float, float]:
        """World (x, y) of a point offset (dx, dy) in this foundation's frame."""
        c, s = math.cos(self.rotation), math.sin(self.rotation)
        return self.cx + c * dx - s * dy, self.cy + s * dx + c * dy

    def tower_receiver(self) -> NDArray[np.floating] | None:
        """World position of the power-tower receiver, if any."""
        if self.power_tower is None:
            return None
        return np.array([self.cx, self.cy, self.top + self.power_tower.tower_height])


@dataclass(frozen=True)
class Obstacle:
    """Opaque box (building, wall, tree crown) used only as a shadow caster."""

    id: str
    cx: float
    cy: float
    cz: float
    lx: float
    ly: float
    lz: float
    rotation: float = 0.0

    def __post_init__(self):
        _check_positive(self.id, lx=self.lx, ly=self.ly, lz=self.lz)


@dataclass(frozen=True)
class CollectorElement:
    """
    Base record for everything that collects sunlight.

    Attributes:
        id: Unique identifier.
        parent_id: Id of the foundation the element stands on.
        cx, cy: Offset from the foundation centre (m, foundation frame).
        lx, ly: Aperture size (m).
        lz: Thickness (m).
        tilt: Tilt about the element's local x axis (radians).
        relative_azimuth: Rotation about z relative to the foundation (radians).
        pole_height: Height of the mount above the foundation top (m).
        label: Display label used in result records.
        optical_efficiency, thermal_efficiency, absorptance, reflectance: Efficiency chain.
        dust_loss: Soiling fraction; None uses the run configuration's value.
    """

    id: str
    parent_id: str | None = None
    cx: float = 0.0
    cy: float = 0.0
    lx: float = 1.0
    ly: float = 1.0
    lz: float = 0.1
    tilt: float = 0.0
    relative_azimuth: float = 0.0
    pole_height: float = 1.0
    label: str | None = None
    optical_efficiency: float = 1.0
    thermal_efficiency: float = 1.0
    absorptance: float = 1.0
    reflectance: float = 1.0
    dust_loss: float | None = None

    def __post_init__(self):
        _check_positive(self.id, lx=self.lx, ly=self.ly)
        _check_fraction(
            self.id,
            optical_efficiency=self.optical_efficiency,
            thermal_efficiency=self.thermal_efficiency,
            absorptance=self.absorptance,
            reflectance=self.reflectance,
        )
        if self.dust_loss is not None:
            _check_fraction(self.id, dust_loss=self.dust_loss)

    @property
    def area(self) -> float:
        return self.lx * self.ly

    @property
    def has_moving_parts(self) -> bool:
        return False


@dataclass(frozen=True)
class SolarPanel(CollectorElement):
    """
    Photovoltaic panel, fixed or on a tracker.

    Attributes:
        tracker: Tracker type.
        efficiency: Module efficiency at 25 °C.
        pmax_temperature_coefficient: Relative power change per °C above 25 °C.
        cell_type: Cell technology (monocrystalline modules lose packing area).
        shade_tolerance: How shaded cells limit the others.
    """

    lz: float = 0.05
    tracker: TrackerType = TrackerType.NONE
    efficiency: float = 0.2
    pmax_temperature_coefficient: float = -0.004
    cell_type: CellType = CellType.POLYCRYSTALLINE
    shade_tolerance: ShadeTolerance = ShadeTolerance.HIGH

    def __post_init__(self):
        super().__post_init__()
        _check_fraction(self.id, efficiency=self.efficiency)

    @property
    def has_moving_parts(self) -> bool:
        return self.tracker != TrackerType.NONE


@dataclass(frozen=True)
class Heliostat(CollectorElement):
    """Flat mirror that reflects sunlight onto its foundation's power tower."""

    lx: float = 2.0
    ly: float = 4.0
    pole_height: float = 2.0
    reflectance: float = 0.9

    @property
    def has_moving_parts(self) -> bool:
        return True


@dataclass(frozen=True)
class ParabolicTrough(CollectorElement):
    """Linear parabolic mirror focusing onto a tube along its north-south axis."""

    lx: float = 2.0
    ly: float = 9.0
    latus_rectum: float = 2.0
    optical_efficiency: float = 0.7
    thermal_efficiency: float = 0.3
    absorptance: float = 0.95
    reflectance: float = 0.9

    def __post_init__(self):
        super().__post_init__()
        _check_positive(self.id, latus_rectum=self.latus_rectum)

    @property
    def depth(self) -> float:
        return self.lx**2 / (4.0 * self.latus_rectum)

    @property
    def has_moving_parts(self) -> bool:
        return True


@dataclass(frozen=True)
class ParabolicDish(CollectorElement):
    """Dual-axis parabolic dish with a receiver at its focal point."""

    lx: float = 4.0
    ly: float = 4.0
    latus_rectum: float = 8.0
    optical_efficiency: float = 0.7
    thermal_efficiency: float = 0.3
    absorptance: float = 0.95
    reflectance: float = 0.9

    def __post_init__(self):
        super().__post_init__()
        _check_positive(self.id, latus_rectum=self.latus_rectum)

    @property
    def depth(self) -> float:
        return self.lx**2 / (4.0 * self.latus_rectum)

    @property
    def has_moving_parts(self) -> bool:
        return True


@dataclass(frozen=True)
class FresnelReflector(CollectorElement):
    """Flat mirror strip rotating about its north-south axis toward an absorber pipe."""

    lx: float = 2.0
    ly: float = 9.0
    reflectance: float = 0.9

    @property
    def has_moving_parts(self) -> bool:
        return True


@dataclass(frozen=True)
class UpdraftTower(CollectorElement):
    """
    Solar updraft tower: a glazed collector disc heating air that rises
    through a central chimney and drives a turbine.

    The collector is centred on the element position; ``lx``/``ly`` are
    derived from the radius.
    """

    pole_height: float = 0.0
    collector_radius: float = 100.0
    collector_height: float = 3.0
    chimney_height: float = 200.0
    chimney_radius: float = 5.0
    transmissivity: float = DEFAULT_COLLECTOR_TRANSMISSIVITY
    emissivity: float = DEFAULT_COLLECTOR_EMISSIVITY
    convective_coefficient: float = DEFAULT_CONVECTIVE_COEFFICIENT
    discharge_coefficient: float = DEFAULT_DISCHARGE_COEFFICIENT
    turbine_efficiency: float = DEFAULT_TURBINE_EFFICIENCY

    def __post_init__(self):
        _check_positive(
            self.id,
            collector_radius=self.collector_radius,
            chimney_height=self.chimney_height,
            chimney_radius=self.chimney_radius,
        )
        _check_fraction(
            self.id,
            transmissivity=self.transmissivity,
            emissivity=self.emissivity,
            discharge_coefficient=self.discharge_coefficient,
            turbine_efficiency=self.turbine_efficiency,
        )
        # Aperture follows the disc radius
        object.__setattr__(self, "lx", 2.0 * self.collector_radius)
        object.__setattr__(self, "ly", 2.0 * self.collector_radius)
        super().__post_init__()

    @property
    def collector_area(self) -> float:
        return math.pi * self.collector_radius**2

    @property
    def chimney_area(self) -> float:
        return math.pi * self.chimney_radius**2


@dataclass(frozen=True)
class LightSensor(CollectorElement):
    """Point irradiance sensor."""

    lx: float = 0.1
    ly: float = 0.1
    pole_height: float = 0.0


class ElementStore:
    """
    In-memory element store: foundations, collectors and obstacles.

    The engine reads from it and never mutates it during a run.

    Example:
        store = ElementStore()
        store.add(Foundation("f1"))
        store.add(SolarPanel("p1", parent_id="f1", lx=2, ly=1))
        panels = store.of_type(SolarPanel)
    """

    def __init__(self, items: Iterable[Foundation | Obstacle | CollectorElement] = ()):
        self.foundations: dict[str, Foundation] = {}
        self.obstacles: dict[str, Obstacle] = {}
        self.elements: dict[str, CollectorElement] = {}
        for item in items:
            self.add(item)

    def add(self, item: Foundation | Obstacle | CollectorElement) -> None:
        if isinstance(item, Foundation):
            self.foundations[item.id] = item
        elif isinstance(item, Obstacle):
            self.obstacles[item.id] = item
        elif isinstance(item, CollectorElement):
            self.elements[item.id] = item
        else:
            raise TypeError(f"Unsupported store item: {type(item).__name__}")

    def remove(self, item_id: str) -> None:
        for table in (self.foundations, self.obstacles, self.elements):
            if item_id in table:
                del table[item_id]
                return
        raise KeyError(item_id)

    def get(self, item_id: str) -> Foundation | Obstacle | CollectorElement:
        for table in (self.foundations, self.obstacles, self.elements):
            if item_id in table:
                return table[item_id]
        raise KeyError(item_id)

    def get_parent(self, element: CollectorElement) -> Foundation:
        """Foundation carrying ``element``. Raises MissingParentError if absent."""
        parent = self.foundations.get(element.parent_id) if element.parent_id is not None else None
        if parent is None:
            raise MissingParentError(element.id, element.parent_id)
        return parent

    def of_type(self, cls: type[E]) -> list[E]:
        """Elements that are instances of ``cls``, in insertion order."""
        return [e for e in self.elements.values() if isinstance(e, cls)]

    def __iter__(self) -> Iterator[CollectorElement]:
        return iter(self.elements.values())

    def __len__(self) -> int:
        return len(self.elements)
