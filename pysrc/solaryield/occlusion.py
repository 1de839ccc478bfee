"""
Ray occlusion against a per-run snapshot of shadow casters.

The scene is walked once when a run initializes; every node flagged as
shadow-relevant contributes its caster to a flat list. Queries then test
rays from collector sample points toward the sun (or a receiver). Since the
target is effectively at infinity, any hit in front of the origin blocks.

Oriented boxes are tested together with a vectorized slab method; other
caster types only need an ``intersects(origins, direction)`` method. Boxes
flagged as moving are re-posed by :meth:`OcclusionTester.pose` whenever the
sun direction changes, so tracking collectors shade each other in their
current orientation.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, ClassVar, Protocol

import numpy as np

from .solaryield_logging import get_logger

if TYPE_CHECKING:
    from numpy.typing import NDArray

logger = get_logger(__name__)

# Hits closer than this to the ray origin are ignored (surface contact)
RAY_EPSILON = 1e-6


class ShadowCaster(Protocol):
    owner_id: str

    def intersects(self, origins: NDArray[np.floating], direction: NDArray[np.floating]) -> NDArray[np.bool_]: ...


@dataclass
class BoxCaster:
    """
    Opaque oriented box.

    Attributes:
        owner_id: Id of the element the geometry belongs to.
        center: World-space centre (3,).
        half_size: Half extents along the box's local axes (3,).
        rotation: 3×3 matrix whose columns are the local axes in world space.

    Subclasses that set ``moving`` override :meth:`pose` to update
    ``center`` and ``rotation`` for a new sun direction.
    """

    owner_id: str
    center: NDArray[np.floating]
    half_size: NDArray[np.floating]
    rotation: NDArray[np.floating] = field(default_factory=lambda: np.eye(3))

    moving: ClassVar[bool] = False

    def __post_init__(self):
        self.center = np.asarray(self.center, dtype=np.float64)
        self.half_size = np.asarray(self.half_size, dtype=np.float64)
        self.rotation = np.asarray(self.rotation, dtype=np.float64)

    def pose(self, sun: NDArray[np.floating]) -> None:
        pass

    def intersects(self, origins: NDArray[np.floating], direction: NDArray[np.floating]) -> NDArray[np.bool_]:
        return _slab_hits(
            np.atleast_2d(origins),
            direction,
            self.center[None, :],
            self.half_size[None, :],
            self.rotation[None, :, :],
        ).any(axis=1)


def _slab_hits(
    origins: NDArray[np.floating],
    direction: NDArray[np.floating],
    centers: NDArray[np.floating],
    half_sizes: NDArray[np.floating],
    rotations: NDArray[np.floating],
) -> NDArray[np.bool_]:
    """
    Slab test of N rays sharing one direction against M oriented boxes.

    Returns:
        (N, M) boolean hit matrix.
    """
    # Transform into each box frame: local = R^T (p - c)
    local_o = np.einsum("nmi,mij->nmj", origins[:, None, :] - centers[None, :, :], rotations)
    local_d = np.einsum("i,mij->mj", direction, rotations)

    parallel = np.abs(local_d) < 1e-12
    safe_d = np.where(parallel, 1.0, local_d)[None, :, :]
    t0 = (-half_sizes[None, :, :] - local_o) / safe_d
    t1 = (half_sizes[None, :, :] - local_o) / safe_d
    t_near = np.minimum(t0, t1)
    t_far = np.maximum(t0, t1)

    # Rays parallel to a slab either always or never lie within it
    inside = np.abs(local_o) <= half_sizes[None, :, :]
    par = np.broadcast_to(parallel[None, :, :], t_near.shape)
    t_near = np.where(par, np.where(inside, -np.inf, np.inf), t_near)
    t_far = np.where(par, np.where(inside, np.inf, -np.inf), t_far)

    t_enter = t_near.max(axis=2)
    t_exit = t_far.min(axis=2)
    return (t_enter <= t_exit) & (t_exit > RAY_EPSILON)


@dataclass
class SceneNode:
    """
    Minimal scene-graph node.

    Attributes:
        name: Node name (for diagnostics).
        caster: Geometry used for occlusion, if any.
        shadow_relevant: Whether the node's caster blocks light.
        children: Child nodes.
    """

    name: str
    caster: ShadowCaster | None = None
    shadow_relevant: bool = True
    children: list[SceneNode] = field(default_factory=list)

    def add(self, child: SceneNode) -> SceneNode:
        self.children.append(child)
        return child

    def walk(self) -> Iterator[SceneNode]:
        yield self
        for child in self.children:
            yield from child.walk()


class OcclusionTester:
    """
    Answers "is this ray blocked?" for one run.

    Example:
        tester = OcclusionTester()
        tester.snapshot(scene_root)
        tester.pose(sun)
        blocked = tester.occluded("p1", sample_points, sun)
    """

    def __init__(self) -> None:
        self._casters: list[ShadowCaster] = []
        self._box_owner_ids = np.empty(0, dtype=object)
        self._box_centers = np.empty((0, 3))
        self._box_half_sizes = np.empty((0, 3))
        self._box_rotations = np.empty((0, 3, 3))
        self._other: list[ShadowCaster] = []
        self._moving: list[tuple[int, BoxCaster]] = []
        self._posed_sun: NDArray[np.floating] | None = None

    @property
    def caster_count(self) -> int:
        return len(self._casters)

    def snapshot(self, scene_root: SceneNode | Iterable[ShadowCaster] | None) -> int:
        """
        Collect shadow-relevant casters, replacing any previous snapshot.

        Args:
            scene_root: Root node of the scene graph, a plain iterable of
                casters, or None for an empty scene.

        Returns:
            Number of casters captured.
        """
        self._casters.clear()
        if isinstance(scene_root, SceneNode):
            for node in scene_root.walk():
                if node.shadow_relevant and node.caster is not None:
                    self._casters.append(node.caster)
        elif scene_root is not None:
            self._casters.extend(scene_root)

        boxes = [c for c in self._casters if isinstance(c, BoxCaster)]
        self._other = [c for c in self._casters if not isinstance(c, BoxCaster)]
        if boxes:
            self._box_owner_ids = np.array([b.owner_id for b in boxes], dtype=object)
            self._box_centers = np.stack([b.center for b in boxes])
            self._box_half_sizes = np.stack([b.half_size for b in boxes])
            self._box_rotations = np.stack([b.rotation for b in boxes])
        else:
            self._box_owner_ids = np.empty(0, dtype=object)
            self._box_centers = np.empty((0, 3))
            self._box_half_sizes = np.empty((0, 3))
            self._box_rotations = np.empty((0, 3, 3))
        self._moving = [(i, b) for i, b in enumerate(boxes) if b.moving]
        self._posed_sun = None
        logger.debug(
            f"Shadow snapshot: {len(boxes)} boxes ({len(self._moving)} moving), {len(self._other)} other casters"
        )
        return len(self._casters)

    def pose(self, sun: NDArray[np.floating]) -> None:
        """
        Re-pose every moving box for sun direction ``sun``.

        Repeated calls with the same direction are no-ops, so each
        calculator may call this before its queries.
        """
        if not self._moving:
            return
        if self._posed_sun is not None and np.array_equal(self._posed_sun, sun):
            return
        for index, caster in self._moving:
            caster.pose(sun)
            self._box_centers[index] = caster.center
            self._box_rotations[index] = caster.rotation
        self._posed_sun = np.array(sun, dtype=np.float64)

    def occluded(
        self,
        self_id: str,
        points: NDArray[np.floating],
        direction: NDArray[np.floating],
        ignore: Iterable[str] = (),
    ) -> NDArray[np.bool_]:
        """
        Occlusion mask for rays from ``points`` along ``direction``.

        Geometry owned by ``self_id`` is ignored. With fewer than two
        casters in the snapshot nothing can shadow anything else.

        Args:
            self_id: Id of the querying element.
            points: (N, 3) ray origins.
            direction: Unit ray direction (3,).
            ignore: Further owner ids to skip, e.g. the receiver a mirror
                aims at.

        Returns:
            (N,) boolean array, True where the ray is blocked.
        """
        points = np.atleast_2d(points)
        blocked = np.zeros(points.shape[0], dtype=bool)
        if len(self._casters) < 2:
            return blocked

        skipped = {self_id, *ignore}
        keep = np.array([owner not in skipped for owner in self._box_owner_ids], dtype=bool)
        if keep.any():
            hits = _slab_hits(
                points,
                np.asarray(direction, dtype=np.float64),
                self._box_centers[keep],
                self._box_half_sizes[keep],
                self._box_rotations[keep],
            )
            blocked |= hits.any(axis=1)
        for caster in self._other:
            if caster.owner_id in skipped:
                continue
            remaining = ~blocked
            if not remaining.any():
                break
            blocked[remaining] |= caster.intersects(points[remaining], direction)
        return blocked

    def is_occluded(
        self,
        self_id: str,
        point: NDArray[np.floating],
        direction: NDArray[np.floating],
        ignore: Iterable[str] = (),
    ) -> bool:
        """Single-ray form of :meth:`occluded`."""
        return bool(self.occluded(self_id, np.asarray(point, dtype=np.float64)[None, :], direction, ignore)[0])
