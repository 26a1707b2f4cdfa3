"""Conversions between Euler angles, rotation matrices, quaternions and poses."""

from __future__ import annotations

import math
from pathlib import Path

import numpy as np

from .pose import CartesianOrientation, CartesianPose, CartesianPosition
from .quaternion import Quaternion

EPSILON = 1e-13
_TRAJECTORY_START = "[$trajectory:"
_TRAJECTORY_END = "$]"


def rad_to_deg(radians: float) -> float:
    return radians * 180.0 / math.pi


def deg_to_rad(degrees: float) -> float:
    return degrees * math.pi / 180.0


def _rot_x(angle: float) -> np.ndarray:
    c, s = math.cos(angle), math.sin(angle)
    return np.array([[1.0, 0.0, 0.0], [0.0, c, -s], [0.0, s, c]])


def _rot_y(angle: float) -> np.ndarray:
    c, s = math.cos(angle), math.sin(angle)
    return np.array([[c, 0.0, s], [0.0, 1.0, 0.0], [-s, 0.0, c]])


def _rot_z(angle: float) -> np.ndarray:
    c, s = math.cos(angle), math.sin(angle)
    return np.array([[c, -s, 0.0], [s, c, 0.0], [0.0, 0.0, 1.0]])


def euler_abc_to_matrix(a: float, b: float, c: float) -> np.ndarray:
    """Rotation matrix Rx(a) · Ry(b) · Rz(c)."""
    return _rot_x(a) @ _rot_y(b) @ _rot_z(c)


def euler_rpy_to_matrix(roll: float, pitch: float, yaw: float) -> np.ndarray:
    """Rotation matrix Rz(yaw) · Ry(pitch) · Rx(roll)."""
    return _rot_z(yaw) @ _rot_y(pitch) @ _rot_x(roll)


def matrix_to_euler_abc(matrix) -> tuple[float, float, float]:
    """Recover (A, B, C) from a rotation matrix built as Rx·Ry·Rz."""
    m = np.asarray(matrix, dtype=float)
    if abs(m[1, 2]) < EPSILON and abs(m[2, 2]) < EPSILON:
        if m[0, 2] > EPSILON:
            a = math.atan2(m[2, 1], m[1, 1])
        else:
            a = -math.atan2(m[1, 0], m[2, 0])
        c = 0.0
    else:
        a = math.atan2(-m[1, 2], m[2, 2])
        c = math.atan2(-m[0, 1], m[0, 0])
    b = math.atan2(m[0, 2], math.cos(a) * m[2, 2] - math.sin(a) * m[1, 2])
    return a, b, c


def matrix_to_euler_rpy(matrix) -> tuple[float, float, float]:
    """Recover (roll, pitch, yaw) from a rotation matrix built as Rz·Ry·Rx."""
    m = np.asarray(matrix, dtype=float)
    yaw = math.atan2(m[1, 0], m[0, 0])
    pitch = math.atan2(-m[2, 0], math.cos(yaw) * m[0, 0] + math.sin(yaw) * m[1, 0])
    roll = math.atan2(m[2, 1], m[2, 2])
    return roll, pitch, yaw


def _matrix_to_quaternion(m: np.ndarray) -> Quaternion:
    trace = m[0, 0] + m[1, 1] + m[2, 2]
    if trace > 0.0:
        t = math.sqrt(trace + 1.0)
        w = 0.5 * t
        t = 0.5 / t
        return Quaternion(w, (m[2, 1] - m[1, 2]) * t, (m[0, 2] - m[2, 0]) * t, (m[1, 0] - m[0, 1]) * t)
    i = max(range(3), key=lambda d: m[d, d])
    j = (i + 1) % 3
    k = (j + 1) % 3
    t = math.sqrt(m[i, i] - m[j, j] - m[k, k] + 1.0)
    vec = [0.0, 0.0, 0.0]
    vec[i] = 0.5 * t
    t = 0.5 / t
    w = (m[k, j] - m[j, k]) * t
    vec[j] = (m[j, i] + m[i, j]) * t
    vec[k] = (m[k, i] + m[i, k]) * t
    return Quaternion(w, *vec)


def _quaternion_to_matrix(q: Quaternion) -> np.ndarray:
    tx, ty, tz = 2.0 * q.x, 2.0 * q.y, 2.0 * q.z
    twx, twy, twz = tx * q.w, ty * q.w, tz * q.w
    txx, txy, txz = tx * q.x, ty * q.x, tz * q.x
    tyy, tyz, tzz = ty * q.y, tz * q.y, tz * q.z
    return np.array(
        [
            [1.0 - (tyy + tzz), txy - twz, txz + twy],
            [txy + twz, 1.0 - (txx + tzz), tyz - twx],
            [txz - twy, tyz + twx, 1.0 - (txx + tyy)],
        ]
    )


def euler_abc_to_quaternion(a: float, b: float, c: float) -> Quaternion:
    """Unit quaternion of the A, B, C rotation."""
    return _matrix_to_quaternion(euler_abc_to_matrix(a, b, c)).normalize()


def quaternion_to_euler_abc(quat: Quaternion) -> tuple[float, float, float]:
    """A, B, C angles of a (unit) quaternion."""
    return matrix_to_euler_abc(_quaternion_to_matrix(quat))


def plerp(start: CartesianPosition, end: CartesianPosition, t: float) -> CartesianPosition:
    """Linear interpolation between two positions."""
    return CartesianPosition(
        start.x + (end.x - start.x) * t,
        start.y + (end.y - start.y) * t,
        start.z + (end.z - start.z) * t,
    )


def slerp(start: Quaternion, end: Quaternion, t: float) -> Quaternion:
    """Spherical linear interpolation along the shorter arc."""
    dot = start.dot(end)
    if dot < 0:
        end = -end
        dot = start.dot(end)
    if dot > 0.9995:
        return (start + (end - start) * t).normalize()
    theta = math.acos(dot)
    sin_theta = math.sin(theta)
    return (
        start * math.sin((1 - t) * theta) / sin_theta + end * math.sin(t * theta) / sin_theta
    ).normalize()


def pose_to_matrix(pose: CartesianPose) -> np.ndarray:
    """Homogeneous 4x4 transform of a pose."""
    mat = np.eye(4)
    o = pose.orientation
    mat[:3, :3] = euler_abc_to_matrix(o.a, o.b, o.c)
    mat[:3, 3] = (pose.position.x, pose.position.y, pose.position.z)
    return mat


def matrix_to_pose(matrix) -> CartesianPose:
    """Pose of a homogeneous 4x4 transform."""
    m = np.asarray(matrix, dtype=float)
    a, b, c = matrix_to_euler_abc(m[:3, :3])
    return CartesianPose(
        CartesianPosition(float(m[0, 3]), float(m[1, 3]), float(m[2, 3])),
        CartesianOrientation(a, b, c),
    )


def format_matrix(matrix) -> str:
    """Render a 4x4 matrix one bracketed row per line."""
    m = np.asarray(matrix, dtype=float)
    return "".join(
        " [ " + ", ".join(f"{value:g}" for value in row) + " ]\n" for row in m[:4, :4]
    )


def print_matrix(matrix) -> None:
    print(format_matrix(matrix), end="")


def extract_trajectory_string(file_path) -> str:
    """Return the text between ``[$trajectory:`` and ``$]`` in a file, or ``""``."""
    with Path(file_path).open(encoding="utf-8") as handle:
        content = "".join(line.rstrip("\n") + "\n" for line in handle)
    start = content.find(_TRAJECTORY_START)
    if start == -1:
        return ""
    end = content.find(_TRAJECTORY_END, start)
    if end == -1:
        return ""
    return content[start + len(_TRAJECTORY_START):end]