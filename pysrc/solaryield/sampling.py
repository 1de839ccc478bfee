"""
Sample grids over collector apertures.

A grid divides an ``lx × ly`` aperture into ``nx × ny`` cells and puts one
sample at each cell centre. Offsets are computed once per run in the
collector's local frame (x along ``lx``, y along ``ly``, z along the
normal); each step maps them to world space with the current rotation.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from .buffers import BufferPool

if TYPE_CHECKING:
    from numpy.typing import NDArray


def grid_dimensions(lx: float, ly: float, cell_size: float, even: bool = False) -> tuple[int, int]:
    """
    Cell counts along x and y.

    Each count is ``max(2, round(l / cell_size))``; with ``even`` an odd
    count is bumped to the next even number so that the grid is symmetric
    about the aperture centre line.
    """
    nx = max(2, int(math.floor(lx / cell_size + 0.5)))
    ny = max(2, int(math.floor(ly / cell_size + 0.5)))
    if even:
        nx += nx % 2
        ny += ny % 2
    return nx, ny


def cell_offsets(lx: float, ly: float, nx: int, ny: int, out: NDArray[np.floating] | None = None) -> NDArray[np.floating]:
    """
    Local cell-centre offsets, x-major (row ``i * ny + j``).

    Returns:
        (nx * ny, 3) array with z = 0.
    """
    dx = lx / nx
    dy = ly / ny
    xs = -0.5 * lx + dx * (np.arange(nx) + 0.5)
    ys = -0.5 * ly + dy * (np.arange(ny) + 0.5)
    if out is None:
        out = np.empty((nx * ny, 3))
    gx, gy = np.meshgrid(xs, ys, indexing="ij")
    out[:, 0] = gx.ravel()
    out[:, 1] = gy.ravel()
    out[:, 2] = 0.0
    return out


@dataclass
class SampleGrid:
    """
    Cell layout of one aperture.

    Attributes:
        nx, ny: Cells along local x and y. For disc grids these describe the
            bounding square; ``count`` may be smaller.
        dx, dy: Cell size (m).
        offsets: (count, 3) local cell-centre offsets.
    """

    nx: int
    ny: int
    dx: float
    dy: float
    offsets: NDArray[np.floating]

    @property
    def count(self) -> int:
        return self.offsets.shape[0]

    @property
    def cell_area(self) -> float:
        return self.dx * self.dy


class SurfaceSampler:
    """
    Builds and reuses sample grids for the elements of one run.

    Offsets and world-space point arrays live in a :class:`BufferPool`
    keyed by element id, so stepping never allocates.

    Example:
        sampler = SurfaceSampler(BufferPool())
        grid = sampler.grid("p1", lx=2.0, ly=1.0, cell_size=0.25)
        points = sampler.world_points("p1", grid, rotation, origin)
    """

    def __init__(self, pool: BufferPool | None = None):
        self.pool = pool if pool is not None else BufferPool()
        self._grids: dict[str, SampleGrid] = {}

    def grid(self, key: str, lx: float, ly: float, cell_size: float, even: bool = False) -> SampleGrid:
        """Rectangular grid for ``key``; built on first use, then cached."""
        cached = self._grids.get(key)
        if cached is not None:
            return cached
        nx, ny = grid_dimensions(lx, ly, cell_size, even)
        offsets = cell_offsets(lx, ly, nx, ny, out=self.pool.get(f"{key}:offsets", (nx * ny, 3)))
        grid = SampleGrid(nx, ny, lx / nx, ly / ny, offsets)
        self._grids[key] = grid
        return grid

    def disk(self, key: str, radius: float, cell_size: float) -> SampleGrid:
        """Grid over the bounding square of a disc, keeping cells whose centre lies inside it."""
        cached = self._grids.get(key)
        if cached is not None:
            return cached
        size = 2.0 * radius
        nx, ny = grid_dimensions(size, size, cell_size)
        square = cell_offsets(size, size, nx, ny)
        inside = square[:, 0] ** 2 + square[:, 1] ** 2 <= radius * radius
        offsets = self.pool.get(f"{key}:offsets", (int(inside.sum()), 3))
        offsets[:] = square[inside]
        grid = SampleGrid(nx, ny, size / nx, size / ny, offsets)
        self._grids[key] = grid
        return grid

    def point(self, key: str) -> SampleGrid:
        """Single sample at the local origin."""
        cached = self._grids.get(key)
        if cached is not None:
            return cached
        offsets = self.pool.get_zeros(f"{key}:offsets", (1, 3))
        grid = SampleGrid(1, 1, 0.0, 0.0, offsets)
        self._grids[key] = grid
        return grid

    def world_points(
        self,
        key: str,
        grid: SampleGrid,
        rotation: NDArray[np.floating],
        origin: NDArray[np.floating],
    ) -> NDArray[np.floating]:
        """
        Sample points in world space: ``origin + rotation @ offset`` for each cell.

        The returned array is a pooled buffer, overwritten by the next call
        with the same key.
        """
        out = self.pool.get(f"{key}:points", (grid.count, 3))
        np.matmul(grid.offsets, rotation.T, out=out)
        out += origin
        return out

    def reset(self) -> None:
        """Forget cached grids (start of a new run)."""
        self._grids.clear()
        self.pool.clear()
