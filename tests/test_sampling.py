"""Tests for sample grids, the surface sampler and rotation helpers."""

import math

import numpy as np
import pytest
from conftest import make_context, make_foundation, make_store
from solaryield.api import ParabolicDish, ParabolicTrough
from solaryield.buffers import BufferPool
from solaryield.components import ParabolicDishCalculator, ParabolicTroughCalculator
from solaryield.geometry import bisector, normalize, rotation_to_normal, tilt_azimuth_rotation
from solaryield.sampling import SurfaceSampler, cell_offsets, grid_dimensions


class TestGridDimensions:
    """Cell counts per axis."""

    def test_rounds_to_nearest(self):
        assert grid_dimensions(2.0, 1.0, 0.25) == (8, 4)
        assert grid_dimensions(1.1, 1.4, 0.5) == (2, 3)

    def test_half_rounds_up(self):
        assert grid_dimensions(1.25, 2.5, 0.5) == (3, 5)

    def test_minimum_two_cells(self):
        assert grid_dimensions(0.1, 0.1, 1.0) == (2, 2)

    def test_even_bumps_odd_counts(self):
        assert grid_dimensions(1.5, 2.5, 0.5, even=True) == (4, 6)
        assert grid_dimensions(2.0, 9.0, 0.5, even=True) == (4, 18)

    @pytest.mark.parametrize("lx,ly,cell", [(2.0, 9.0, 0.5), (4.0, 4.0, 0.7), (3.3, 1.9, 0.3), (5.0, 5.0, 1.0)])
    def test_dish_and_trough_grids_even(self, lx, ly, cell):
        store = make_store(
            make_foundation(),
            ParabolicDish("d1", parent_id="f1", lx=lx, ly=ly),
            ParabolicTrough("t1", parent_id="f1", cx=10, lx=lx, ly=ly),
        )
        ctx = make_context(store)
        ctx.config.cell_size = cell
        for calc, eid in ((ParabolicDishCalculator(), "d1"), (ParabolicTroughCalculator(), "t1")):
            grid = calc.grid(store.get(eid), ctx)
            assert grid.nx % 2 == 0
            assert grid.ny % 2 == 0


class TestCellOffsets:
    """Cell-centred offsets."""

    def test_centred_within_cells(self):
        offsets = cell_offsets(2.0, 1.0, 4, 2)
        assert offsets.shape == (8, 3)
        np.testing.assert_allclose(offsets[0], [-0.75, -0.25, 0.0])
        np.testing.assert_allclose(offsets[-1], [0.75, 0.25, 0.0])
        np.testing.assert_allclose(offsets.mean(axis=0), [0.0, 0.0, 0.0], atol=1e-12)

    def test_x_major_order(self):
        offsets = cell_offsets(2.0, 1.0, 4, 2)
        # Consecutive rows step along y first
        assert offsets[0, 0] == offsets[1, 0]
        assert offsets[1, 1] > offsets[0, 1]
        assert offsets[2, 0] > offsets[1, 0]


class TestSurfaceSampler:
    """Grid caching and world-space transform."""

    def test_grid_is_cached(self):
        pool = BufferPool()
        sampler = SurfaceSampler(pool)
        first = sampler.grid("p1", 2.0, 2.0, 0.5)
        allocations = pool.allocations
        second = sampler.grid("p1", 2.0, 2.0, 0.5)
        assert second is first
        assert pool.allocations == allocations

    def test_world_points_reuse_buffer(self):
        pool = BufferPool()
        sampler = SurfaceSampler(pool)
        grid = sampler.grid("p1", 2.0, 2.0, 0.5)
        a = sampler.world_points("p1", grid, np.eye(3), np.array([1.0, 2.0, 3.0]))
        allocations = pool.allocations
        b = sampler.world_points("p1", grid, np.eye(3), np.array([0.0, 0.0, 0.0]))
        assert a is b
        assert pool.allocations == allocations

    def test_world_points_translate_and_rotate(self):
        sampler = SurfaceSampler()
        grid = sampler.grid("p1", 2.0, 2.0, 1.0)
        rotation = tilt_azimuth_rotation(math.pi / 2, 0.0)
        points = sampler.world_points("p1", grid, rotation, np.array([0.0, 0.0, 5.0])).copy()
        # A surface tilted upright stands in the x-z plane
        np.testing.assert_allclose(points[:, 1], 0.0, atol=1e-12)
        np.testing.assert_allclose(sorted(set(np.round(points[:, 2], 9))), [4.5, 5.5])

    def test_disk_keeps_cells_inside_radius(self):
        sampler = SurfaceSampler()
        grid = sampler.disk("t1", 10.0, 1.0)
        assert grid.nx == 20
        assert grid.count < grid.nx * grid.ny
        radii = np.hypot(grid.offsets[:, 0], grid.offsets[:, 1])
        assert radii.max() <= 10.0
        # Close to the disc area in cells
        assert grid.count == pytest.approx(math.pi * 100, rel=0.05)

    def test_point_grid(self):
        grid = SurfaceSampler().point("s1")
        assert grid.count == 1
        np.testing.assert_array_equal(grid.offsets, [[0.0, 0.0, 0.0]])

    def test_reset_forgets_grids(self):
        sampler = SurfaceSampler()
        first = sampler.grid("p1", 2.0, 2.0, 0.5)
        sampler.reset()
        assert sampler.grid("p1", 2.0, 2.0, 0.5) is not first


class TestRotations:
    """Rotation and normal helpers."""

    def test_positive_tilt_faces_south(self):
        normal = tilt_azimuth_rotation(math.radians(30), 0.0)[:, 2]
        assert normal[1] < 0
        assert normal[2] == pytest.approx(math.cos(math.radians(30)))

    @pytest.mark.parametrize("target", [[0.3, -0.4, 0.8], [-0.9, 0.1, 0.2], [0.0, 0.0, 1.0], [0.5, 0.5, -0.1]])
    def test_rotation_to_normal_carries_z(self, target):
        n = normalize(np.array(target))
        rotation = rotation_to_normal(n)
        np.testing.assert_allclose(rotation[:, 2], n, atol=1e-12)
        np.testing.assert_allclose(rotation.T @ rotation, np.eye(3), atol=1e-12)

    def test_rotation_to_normal_keeps_x_horizontal(self):
        rotation = rotation_to_normal(normalize(np.array([0.3, -0.4, 0.8])))
        assert rotation[2, 0] == pytest.approx(0.0, abs=1e-12)

    def test_bisector_halves_angle(self):
        sun = normalize(np.array([0.2, -0.5, 0.8]))
        target = normalize(np.array([-0.6, 0.3, 0.4]))
        n = bisector(sun, target)
        assert np.linalg.norm(n) == pytest.approx(1.0)
        assert n @ sun == pytest.approx(n @ target)

    def test_bisector_perturbed_when_vertical(self):
        sun = normalize(np.array([0.3, 0.0, 0.8]))
        target = normalize(np.array([-0.3, 0.0, 0.8]))
        n = bisector(sun, target)
        assert n[0] < 0
        assert n[2] == pytest.approx(1.0, abs=1e-5)

    def test_normalize_rejects_zero(self):
        with pytest.raises(ValueError):
            normalize(np.zeros(3))
