"""Scene graph of shadow casters built from an element store.

Hosts with their own renderer pass their scene root to the scheduler.
Without one, :func:`build_scene` approximates the site with oriented
boxes: foundations, obstacles, receivers and the collectors themselves.
Fixed collectors get a static box; collectors with moving parts get a
:class:`CollectorCaster` that the occlusion tester re-poses for every sun
direction it is queried with.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from .components.flat_panel import FlatPanelCalculator
from .components.fresnel_reflector import FresnelReflectorCalculator
from .components.heliostat import HeliostatCalculator
from .components.parabolic import ParabolicDishCalculator, ParabolicTroughCalculator
from .errors import InvalidElementData
from .geometry import UNIT_Z, rotation_z
from .models.elements import ElementStore, ParabolicDish, ParabolicTrough
from .occlusion import BoxCaster, SceneNode
from .solaryield_logging import get_logger

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from .components.base import YieldCalculator
    from .models.elements import CollectorElement, Foundation

logger = get_logger(__name__)

# Families whose apertures are opaque
CASTING_CALCULATORS = (
    FlatPanelCalculator,
    HeliostatCalculator,
    ParabolicTroughCalculator,
    ParabolicDishCalculator,
    FresnelReflectorCalculator,
)


def _thickness(element: CollectorElement) -> float:
    # A parabolic mirror bowls down from its aperture rim by its depth
    if isinstance(element, (ParabolicTrough, ParabolicDish)):
        return element.lz + element.depth
    return element.lz


class CollectorCaster(BoxCaster):
    """
    Box that follows a moving collector.

    The box spans the aperture and hangs below the sample plane by the
    collector's thickness, oriented by the calculator's frame for the
    current sun.
    """

    moving = True

    def __init__(self, calculator: YieldCalculator, element: CollectorElement, parent: Foundation):
        self.calculator = calculator
        self.element = element
        self.parent = parent
        half_size = np.array([0.5 * element.lx, 0.5 * element.ly, 0.5 * _thickness(element)])
        super().__init__(element.id, np.zeros(3), half_size)
        self.pose(UNIT_Z)

    def pose(self, sun: NDArray[np.floating]) -> None:
        frame = self.calculator.frame(self.element, self.parent, sun)
        self.center = frame.origin - frame.normal * self.half_size[2]
        self.rotation = frame.rotation


def collector_caster(calculator: YieldCalculator, element: CollectorElement, parent: Foundation) -> BoxCaster:
    """
    Shadow geometry of one collector.

    Raises:
        InvalidElementData: If the collector cannot be oriented, e.g. a
            heliostat without a power tower.
    """
    if calculator.has_moving_parts(element):
        return CollectorCaster(calculator, element, parent)
    frame = calculator.frame(element, parent, UNIT_Z)
    half_size = np.array([0.5 * element.lx, 0.5 * element.ly, 0.5 * _thickness(element)])
    return BoxCaster(
        element.id,
        center=frame.origin - frame.normal * half_size[2],
        half_size=half_size,
        rotation=frame.rotation,
    )


def _receiver_nodes(f: Foundation) -> list[SceneNode]:
    nodes = []
    if f.power_tower is not None:
        tower = f.power_tower
        caster = BoxCaster(
            f.tower_id,
            center=np.array([f.cx, f.cy, f.top + 0.5 * tower.tower_height]),
            half_size=np.array([tower.tower_radius, tower.tower_radius, 0.5 * tower.tower_height]),
            rotation=rotation_z(f.rotation),
        )
        nodes.append(SceneNode(f.tower_id, caster))
    if f.absorber_pipe is not None:
        pipe = f.absorber_pipe
        # Runs the length of the foundation along its local y axis
        caster = BoxCaster(
            f.pipe_id,
            center=np.array([f.cx, f.cy, f.top + pipe.absorber_height]),
            half_size=np.array([pipe.absorber_radius, 0.5 * f.ly, pipe.absorber_radius]),
            rotation=rotation_z(f.rotation),
        )
        nodes.append(SceneNode(f.pipe_id, caster))
    return nodes


def build_scene(store: ElementStore) -> SceneNode:
    """
    Scene root with one box caster per object in ``store``.

    Receivers and collectors hang under their foundation's node.
    Collectors whose foundation is missing, and mirrors without the
    receiver they aim at, are left out.
    """
    root = SceneNode("scene", shadow_relevant=False)
    nodes: dict[str, SceneNode] = {}

    for f in store.foundations.values():
        caster = BoxCaster(
            f.id,
            center=np.array([f.cx, f.cy, 0.5 * f.lz]),
            half_size=np.array([0.5 * f.lx, 0.5 * f.ly, 0.5 * f.lz]),
            rotation=rotation_z(f.rotation),
        )
        node = root.add(SceneNode(f.id, caster))
        for receiver in _receiver_nodes(f):
            node.add(receiver)
        nodes[f.id] = node

    for o in store.obstacles.values():
        caster = BoxCaster(
            o.id,
            center=np.array([o.cx, o.cy, o.cz]),
            half_size=np.array([0.5 * o.lx, 0.5 * o.ly, 0.5 * o.lz]),
            rotation=rotation_z(o.rotation),
        )
        root.add(SceneNode(o.id, caster))

    for cls in CASTING_CALCULATORS:
        calculator = cls()
        for element in calculator.elements(store):
            parent_node = nodes.get(element.parent_id) if element.parent_id is not None else None
            if parent_node is None:
                logger.debug(f"{element.id} has no foundation; not added to the scene")
                continue
            try:
                caster = collector_caster(calculator, element, store.foundations[element.parent_id])
            except InvalidElementData as exc:
                logger.debug(f"{element.id} not added to the scene: {exc}")
                continue
            parent_node.add(SceneNode(element.id, caster))

    return root
