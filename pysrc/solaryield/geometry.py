"""
Vector and rotation helpers.

World frame: +x east, +y north, +z up. Rotations are 3×3 numpy matrices
acting on column vectors, so a point p in a collector's local frame maps
to ``origin + R @ p`` in world space.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

import numpy as np

from .constants import VERTICAL_PERTURBATION, ZERO_TOLERANCE

if TYPE_CHECKING:
    from numpy.typing import NDArray

UNIT_Z = np.array([0.0, 0.0, 1.0])


def normalize(v: NDArray[np.floating]) -> NDArray[np.floating]:
    """Return v scaled to unit length. Raises ValueError for a zero vector."""
    n = float(np.linalg.norm(v))
    if n == 0.0:
        raise ValueError("Cannot normalize a zero-length vector")
    return np.asarray(v, dtype=np.float64) / n


def rotation_x(angle: float) -> NDArray[np.floating]:
    c, s = math.cos(angle), math.sin(angle)
    return np.array([[1.0, 0.0, 0.0], [0.0, c, -s], [0.0, s, c]])


def rotation_y(angle: float) -> NDArray[np.floating]:
    c, s = math.cos(angle), math.sin(angle)
    return np.array([[c, 0.0, s], [0.0, 1.0, 0.0], [-s, 0.0, c]])


def rotation_z(angle: float) -> NDArray[np.floating]:
    c, s = math.cos(angle), math.sin(angle)
    return np.array([[c, -s, 0.0], [s, c, 0.0], [0.0, 0.0, 1.0]])


def tilt_azimuth_rotation(tilt: float, azimuth: float) -> NDArray[np.floating]:
    """
    Rotation for a surface tilted about its local x axis, then turned about z.

    A positive tilt with zero azimuth faces the surface south (−y).
    """
    return rotation_z(azimuth) @ rotation_x(tilt)


def rotation_to_normal(normal: NDArray[np.floating]) -> NDArray[np.floating]:
    """
    Rotation that carries +z onto ``normal`` without twisting about it.

    Equivalent to tilting by the normal's zenith angle and turning toward
    its azimuth, so the rotated local x axis stays horizontal.
    """
    nx, ny, nz = normal
    tilt = math.atan2(math.hypot(nx, ny), nz)
    azimuth = math.atan2(ny, nx) + math.pi / 2
    return tilt_azimuth_rotation(tilt, azimuth)


def bisector(to_sun: NDArray[np.floating], to_receiver: NDArray[np.floating]) -> NDArray[np.floating]:
    """
    Mirror normal that reflects sunlight toward a receiver.

    The sum of the two unit vectors is normalized. When the sum points
    straight up, a slightly tilted substitute is used instead so the
    orientation stays well defined.
    """
    n = to_sun + to_receiver
    length = float(np.linalg.norm(n))
    if length < ZERO_TOLERANCE or (abs(n[0]) < ZERO_TOLERANCE * length and abs(n[1]) < ZERO_TOLERANCE * length):
        return normalize(np.array(VERTICAL_PERTURBATION))
    return n / length
