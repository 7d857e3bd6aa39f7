"""
Rotation utilities for applying a chosen print orientation.

Provides:
- Rotation3D class for representing rotations
- Constructors from axis-angle, XYZ Euler angles and two vectors
- Axis-angle and Euler extraction
- Placing a rotated mesh on the build plate
"""

import logging
import math
from dataclasses import dataclass
from typing import Tuple

import numpy as np
from numpy.typing import NDArray

logger = logging.getLogger(__name__)

BUILD_DIRECTION = np.array([0.0, 0.0, 1.0])

# |sin| below which two unit vectors are treated as (anti)parallel
_PARALLEL_EPS = 1e-12


@dataclass
class Rotation3D:
    """3D rotation represented as a rotation matrix.

    Attributes:
        matrix: 3x3 orthogonal rotation matrix (det = +1)
    """
    matrix: NDArray[np.float64]

    def __post_init__(self):
        self.matrix = np.asarray(self.matrix, dtype=np.float64)
        if self.matrix.shape != (3, 3):
            raise ValueError(f"Rotation matrix must be 3x3, got {self.matrix.shape}")

    @classmethod
    def identity(cls) -> 'Rotation3D':
        """Create identity rotation (no rotation)."""
        return cls(np.eye(3))

    @classmethod
    def from_axis_angle(cls, axis: NDArray[np.float64], angle_rad: float) -> 'Rotation3D':
        """Create rotation from axis and angle (Rodrigues' formula).

        Args:
            axis: 3D rotation axis (normalized here)
            angle_rad: Rotation angle in radians
        """
        axis = np.asarray(axis, dtype=np.float64)
        axis = axis / np.linalg.norm(axis)

        c = np.cos(angle_rad)
        s = np.sin(angle_rad)
        t = 1 - c

        x, y, z = axis
        matrix = np.array([
            [t*x*x + c,   t*x*y - s*z, t*x*z + s*y],
            [t*x*y + s*z, t*y*y + c,   t*y*z - s*x],
            [t*x*z - s*y, t*y*z + s*x, t*z*z + c],
        ])
        return cls(matrix)

    @classmethod
    def from_euler_xyz(cls, angles_rad: Tuple[float, float, float]) -> 'Rotation3D':
        """Create rotation from Euler angles (XYZ convention, R = Rz @ Ry @ Rx).

        Args:
            angles_rad: (roll, pitch, yaw) in radians
        """
        roll, pitch, yaw = angles_rad

        Rx = np.array([
            [1, 0, 0],
            [0, np.cos(roll), -np.sin(roll)],
            [0, np.sin(roll), np.cos(roll)],
        ])
        Ry = np.array([
            [np.cos(pitch), 0, np.sin(pitch)],
            [0, 1, 0],
            [-np.sin(pitch), 0, np.cos(pitch)],
        ])
        Rz = np.array([
            [np.cos(yaw), -np.sin(yaw), 0],
            [np.sin(yaw), np.cos(yaw), 0],
            [0, 0, 1],
        ])
        return cls(Rz @ Ry @ Rx)

    @classmethod
    def from_two_vectors(
        cls,
        vec_from: NDArray[np.float64],
        vec_to: NDArray[np.float64]
    ) -> 'Rotation3D':
        """Create the shortest-arc rotation that turns one vector into another.

        Args:
            vec_from: Source vector (will be normalized)
            vec_to: Target vector (will be normalized)
        """
        a = np.asarray(vec_from, dtype=np.float64)
        b = np.asarray(vec_to, dtype=np.float64)
        a = a / np.linalg.norm(a)
        b = b / np.linalg.norm(b)

        cross = np.cross(a, b)
        sin = float(np.linalg.norm(cross))
        dot = float(np.dot(a, b))
        if sin < _PARALLEL_EPS and dot > 0.0:
            return cls.identity()
        if sin < _PARALLEL_EPS:
            # 180 degree rotation around any perpendicular axis
            perp = np.array([1.0, 0.0, 0.0]) if abs(a[0]) < 0.9 else np.array([0.0, 1.0, 0.0])
            axis = np.cross(a, perp)
            return cls.from_axis_angle(axis / np.linalg.norm(axis), np.pi)

        return cls.from_axis_angle(cross / sin, math.atan2(sin, dot))

    def apply(self, points: NDArray[np.float64]) -> NDArray[np.float64]:
        """Apply rotation to a point (3,) or points (N, 3)."""
        points = np.asarray(points, dtype=np.float64)
        if points.ndim == 1:
            return self.matrix @ points
        return points @ self.matrix.T

    @property
    def axis_angle(self) -> Tuple[NDArray[np.float64], float]:
        """Extract axis and angle from rotation matrix.

        Returns:
            (axis, angle_rad) tuple; identity yields ([1, 0, 0], 0)
        """
        trace = np.trace(self.matrix)
        angle = float(np.arccos(np.clip((trace - 1) / 2, -1.0, 1.0)))

        if abs(angle) < 1e-6:
            return np.array([1.0, 0.0, 0.0]), 0.0

        if abs(angle - np.pi) < 1e-6:
            # 180 degree rotation: axis from eigenvector
            eigenvalues, eigenvectors = np.linalg.eig(self.matrix)
            idx = np.argmin(np.abs(eigenvalues - 1))
            axis = np.real(eigenvectors[:, idx])
            return axis / np.linalg.norm(axis), float(np.pi)

        axis = np.array([
            self.matrix[2, 1] - self.matrix[1, 2],
            self.matrix[0, 2] - self.matrix[2, 0],
            self.matrix[1, 0] - self.matrix[0, 1],
        ])
        axis = axis / (2 * np.sin(angle))
        return axis, angle

    @property
    def euler_xyz(self) -> NDArray[np.float64]:
        """Extract (roll, pitch, yaw) so that from_euler_xyz reproduces the matrix.

        At gimbal lock (pitch = +-90 degrees) yaw is fixed to zero.
        """
        m = self.matrix
        if abs(abs(m[2, 0]) - 1.0) < 1e-5:
            yaw = 0.0
            if m[2, 0] < 0.0:
                pitch = 0.5 * math.pi
                roll = yaw + math.atan2(m[0, 1], m[0, 2])
            else:
                pitch = -0.5 * math.pi
                roll = -yaw + math.atan2(-m[0, 1], -m[0, 2])
        else:
            pitch = -math.asin(m[2, 0])
            inv_cos = 1.0 / math.cos(pitch)
            roll = math.atan2(m[2, 1] * inv_cos, m[2, 2] * inv_cos)
            yaw = math.atan2(m[1, 0] * inv_cos, m[0, 0] * inv_cos)
        return np.array([roll, pitch, yaw])


def rotation_to_build_direction(
    orientation: NDArray[np.float64],
) -> Tuple[NDArray[np.float64], float, Rotation3D]:
    """Rotation that turns a chosen "up" direction into +Z.

    Args:
        orientation: up direction selected by the orienter

    Returns:
        (axis, angle_rad, rotation)
    """
    rotation = Rotation3D.from_two_vectors(orientation, BUILD_DIRECTION)
    axis, angle = rotation.axis_angle
    return axis, angle, rotation


def place_on_bed(vertices: NDArray[np.float64], rotation: Rotation3D) -> NDArray[np.float64]:
    """Rotate vertices and shift them so the lowest point rests on z = 0."""
    rotated = rotation.apply(np.asarray(vertices, dtype=np.float64).reshape(-1, 3))
    if len(rotated):
        rotated[:, 2] -= rotated[:, 2].min()
    return rotated
