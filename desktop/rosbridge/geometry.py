"""
Rotation helpers for building ROS geometry messages.

Quaternions use the ROS component order (x, y, z, w). Euler angles are
roll/pitch/yaw in radians, applied as R = Rz(yaw) @ Ry(pitch) @ Rx(roll).
"""

import math
from typing import Sequence, Tuple

import numpy as np


def normalize_quaternion(q: Sequence[float]) -> np.ndarray:
    q = np.asarray(q, dtype=float)
    norm = np.linalg.norm(q)
    if norm == 0.0:
        return np.array([0.0, 0.0, 0.0, 1.0], dtype=float)
    return q / norm


def normalize_columns(matrix: Sequence[Sequence[float]]) -> np.ndarray:
    """Scale each column of a 3x3 matrix to unit length, removing any scale."""
    m = np.asarray(matrix, dtype=float)
    if m.shape != (3, 3):
        raise ValueError(f"Expected a 3x3 matrix, got shape {m.shape}")
    norms = np.linalg.norm(m, axis=0)
    if np.any(norms == 0.0):
        raise ValueError("Rotation matrix has a zero-length column")
    return m / norms


def quaternion_from_matrix(matrix: Sequence[Sequence[float]]) -> np.ndarray:
    """
    Convert a rotation matrix into a unit quaternion (x, y, z, w).

    Columns are normalized first. Uses Shepperd's method, branching on the
    largest diagonal term for numerical stability. The sign is chosen so that
    w >= 0; callers comparing quaternions must still allow q == -q.

    Args:
        matrix: 3x3 rotation matrix (rows of columns, i.e. matrix[row][col])

    Returns:
        Unit quaternion as a numpy array

    Raises:
        ValueError: If the matrix is not 3x3 or has a zero-length column
    """
    m = normalize_columns(matrix)
    trace = m[0, 0] + m[1, 1] + m[2, 2]

    if trace > 0.0:
        s = math.sqrt(trace + 1.0) * 2.0
        w = 0.25 * s
        x = (m[2, 1] - m[1, 2]) / s
        y = (m[0, 2] - m[2, 0]) / s
        z = (m[1, 0] - m[0, 1]) / s
    elif m[0, 0] > m[1, 1] and m[0, 0] > m[2, 2]:
        s = math.sqrt(1.0 + m[0, 0] - m[1, 1] - m[2, 2]) * 2.0
        w = (m[2, 1] - m[1, 2]) / s
        x = 0.25 * s
        y = (m[0, 1] + m[1, 0]) / s
        z = (m[0, 2] + m[2, 0]) / s
    elif m[1, 1] > m[2, 2]:
        s = math.sqrt(1.0 + m[1, 1] - m[0, 0] - m[2, 2]) * 2.0
        w = (m[0, 2] - m[2, 0]) / s
        x = (m[0, 1] + m[1, 0]) / s
        y = 0.25 * s
        z = (m[1, 2] + m[2, 1]) / s
    else:
        s = math.sqrt(1.0 + m[2, 2] - m[0, 0] - m[1, 1]) * 2.0
        w = (m[1, 0] - m[0, 1]) / s
        x = (m[0, 2] + m[2, 0]) / s
        y = (m[1, 2] + m[2, 1]) / s
        z = 0.25 * s

    q = normalize_quaternion([x, y, z, w])
    if q[3] < 0.0:
        q = -q
    return q


def matrix_from_euler(roll: float, pitch: float, yaw: float) -> np.ndarray:
    cr, sr = math.cos(roll), math.sin(roll)
    cp, sp = math.cos(pitch), math.sin(pitch)
    cy, sy = math.cos(yaw), math.sin(yaw)
    return np.array(
        [
            [cy * cp, cy * sp * sr - sy * cr, cy * sp * cr + sy * sr],
            [sy * cp, sy * sp * sr + cy * cr, sy * sp * cr - cy * sr],
            [-sp, cp * sr, cp * cr],
        ],
        dtype=float,
    )


def quaternion_from_euler(roll: float, pitch: float, yaw: float) -> np.ndarray:
    cy, sy = math.cos(yaw * 0.5), math.sin(yaw * 0.5)
    cp, sp = math.cos(pitch * 0.5), math.sin(pitch * 0.5)
    cr, sr = math.cos(roll * 0.5), math.sin(roll * 0.5)

    x = sr * cp * cy - cr * sp * sy
    y = cr * sp * cy + sr * cp * sy
    z = cr * cp * sy - sr * sp * cy
    w = cr * cp * cy + sr * sp * sy
    return np.array([x, y, z, w], dtype=float)


def euler_from_quaternion(q: Sequence[float]) -> Tuple[float, float, float]:
    """Return (roll, pitch, yaw) in radians for a quaternion (x, y, z, w)."""
    x, y, z, w = normalize_quaternion(q)

    # Roll (x-axis rotation)
    sinr_cosp = 2.0 * (w * x + y * z)
    cosr_cosp = 1.0 - 2.0 * (x * x + y * y)
    roll = math.atan2(sinr_cosp, cosr_cosp)

    # Pitch (y-axis rotation), clamped at the gimbal-lock poles
    sinp = 2.0 * (w * y - z * x)
    if abs(sinp) >= 1.0:
        pitch = math.copysign(math.pi / 2.0, sinp)
    else:
        pitch = math.asin(sinp)

    # Yaw (z-axis rotation)
    siny_cosp = 2.0 * (w * z + x * y)
    cosy_cosp = 1.0 - 2.0 * (y * y + z * z)
    yaw = math.atan2(siny_cosp, cosy_cosp)

    return roll, pitch, yaw


def split_transform(transform: Sequence[Sequence[float]]) -> Tuple[np.ndarray, np.ndarray]:
    """
    Split a 4x4 homogeneous transform into translation and rotation.

    Args:
        transform: 4x4 matrix indexed as transform[row][col]

    Returns:
        (translation (x, y, z), unit quaternion (x, y, z, w))

    Raises:
        ValueError: If the matrix is not 4x4 or its rotation block is degenerate
    """
    m = np.asarray(transform, dtype=float)
    if m.shape != (4, 4):
        raise ValueError(f"Expected a 4x4 transform, got shape {m.shape}")
    translation = m[:3, 3].copy()
    rotation = quaternion_from_matrix(m[:3, :3])
    return translation, rotation
