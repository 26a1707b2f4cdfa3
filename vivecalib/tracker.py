"""Access to a VIVE tracker through a pluggable VR runtime backend."""

from __future__ import annotations

import abc
import math
from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path
from typing import Sequence

import numpy as np

from .transforms import matrix_to_euler_abc

MAX_TRACKED_DEVICES = 64
LOG_HEADER = "X(mm),Y(mm),Z(mm),Qx,Qy,Qz,Qw,ButtonPressed"
_METRES_TO_MM = 1000.0


class TrackerError(RuntimeError):
    """Raised when the tracker is used in a state that cannot serve the request."""


class DeviceClass(IntEnum):
    """Kind of device reported by the VR runtime."""

    INVALID = 0
    HMD = 1
    CONTROLLER = 2
    GENERIC_TRACKER = 3
    TRACKING_REFERENCE = 4
    DISPLAY_REDIRECT = 5


@dataclass
class DevicePose:
    """A device's 3x4 device-to-absolute transform (metres) and its validity."""

    matrix: np.ndarray
    valid: bool = True


class VRBackend(abc.ABC):
    """The VR runtime the tracker talks to."""

    @abc.abstractmethod
    def init(self) -> bool:
        """Start the runtime; return whether it is ready for pose queries."""

    @abc.abstractmethod
    def shutdown(self) -> None:
        """Release the runtime."""

    @abc.abstractmethod
    def is_device_connected(self, index: int) -> bool:
        """Whether a device is connected at ``index``."""

    @abc.abstractmethod
    def device_class(self, index: int) -> DeviceClass:
        """Class of the device at ``index``."""

    @abc.abstractmethod
    def wait_get_poses(self) -> Sequence[DevicePose]:
        """Block until the next frame and return the poses of all device slots."""

    @abc.abstractmethod
    def button_mask(self, index: int) -> int:
        """Pressed-button bit mask of the device at ``index``, 0 if unavailable."""


@dataclass
class QuaternionPose:
    """Position in millimetres, orientation as a quaternion, and buttons."""

    x: float
    y: float
    z: float
    qx: float
    qy: float
    qz: float
    qw: float
    button_mask: int = 0


@dataclass
class EulerPose:
    """Position in millimetres, orientation as A, B, C angles, and buttons."""

    x: float
    y: float
    z: float
    a: float
    b: float
    c: float
    button_mask: int = 0


def quat_inverse(qx: float, qy: float, qz: float, qw: float) -> tuple[float, float, float, float]:
    """Inverse of a unit quaternion given as (x, y, z, w)."""
    return -qx, -qy, -qz, qw


def quat_multiply(a, b) -> tuple[float, float, float, float]:
    """Hamilton product of two quaternions given as (x, y, z, w) tuples."""
    ax, ay, az, aw = a
    bx, by, bz, bw = b
    return (
        aw * bx + ax * bw + ay * bz - az * by,
        aw * by - ax * bz + ay * bw + az * bx,
        aw * bz + ax * by - ay * bx + az * bw,
        aw * bw - ax * bx - ay * by - az * bz,
    )


def matrix_to_position_quaternion(matrix) -> tuple[float, float, float, float, float, float, float]:
    """Split a 3x4 transform into (x, y, z, qx, qy, qz, qw)."""
    m = np.asarray(matrix, dtype=float)
    x, y, z = float(m[0, 3]), float(m[1, 3]), float(m[2, 3])
    qw = math.sqrt(max(0.0, 1 + m[0, 0] + m[1, 1] + m[2, 2])) / 2
    qx = math.sqrt(max(0.0, 1 + m[0, 0] - m[1, 1] - m[2, 2])) / 2
    qy = math.sqrt(max(0.0, 1 - m[0, 0] + m[1, 1] - m[2, 2])) / 2
    qz = math.sqrt(max(0.0, 1 - m[0, 0] - m[1, 1] + m[2, 2])) / 2
    qx = math.copysign(qx, m[2, 1] - m[1, 2])
    qy = math.copysign(qy, m[0, 2] - m[2, 0])
    qz = math.copysign(qz, m[1, 0] - m[0, 1])
    return x, y, z, qx, qy, qz, qw


def matrix_to_position_abc(matrix) -> tuple[float, float, float, float, float, float]:
    """Split a 3x4 transform into (x, y, z, A, B, C)."""
    m = np.asarray(matrix, dtype=float)
    a, b, c = matrix_to_euler_abc(m[:3, :3])
    return float(m[0, 3]), float(m[1, 3]), float(m[2, 3]), a, b, c


class ViveTracker:
    """Finds a generic tracker, reads its pose and optionally records it."""

    def __init__(self, backend: VRBackend, max_devices: int = MAX_TRACKED_DEVICES):
        self._backend = backend
        self._max_devices = max_devices
        self._initialized = False
        self._tracker_index: int | None = None
        self._origin_position = (0.0, 0.0, 0.0)
        self._origin_rotation = (0.0, 0.0, 0.0, 1.0)
        self._recording = False
        self._filename: Path | None = None
        self._poses: list[QuaternionPose] = []

    @property
    def tracker_index(self) -> int | None:
        return self._tracker_index

    @property
    def recording(self) -> bool:
        return self._recording

    def initialize(self) -> bool:
        """Start the VR runtime; return whether it is ready."""
        self._initialized = bool(self._backend.init())
        return self._initialized

    def shutdown(self) -> None:
        if self._initialized:
            self._backend.shutdown()
            self._initialized = False

    def find_tracker(self) -> bool:
        """Select the first connected generic tracker; return whether one was found."""
        self._require_initialized()
        for index in range(self._max_devices):
            if not self._backend.is_device_connected(index):
                continue
            if self._backend.device_class(index) == DeviceClass.GENERIC_TRACKER:
                self._tracker_index = index
                return True
        return False

    def set_origin(self, x, y, z, qx, qy, qz, qw) -> None:
        """Set the reference pose used by :meth:`get_relative_pose`."""
        self._origin_position = (x, y, z)
        self._origin_rotation = (qx, qy, qz, qw)

    def _require_initialized(self) -> None:
        if not self._initialized:
            raise TrackerError("VR system is not initialized")

    def _tracker_matrix(self) -> np.ndarray | None:
        self._require_initialized()
        if self._tracker_index is None:
            raise TrackerError("no tracker has been found")
        pose = self._backend.wait_get_poses()[self._tracker_index]
        if not pose.valid:
            return None
        return np.asarray(pose.matrix, dtype=float)

    def _button_mask(self) -> int:
        return int(self._backend.button_mask(self._tracker_index))

    def get_pose(self) -> QuaternionPose | None:
        """Absolute pose with position in millimetres, or None if the pose is invalid."""
        matrix = self._tracker_matrix()
        if matrix is None:
            return None
        x, y, z, qx, qy, qz, qw = matrix_to_position_quaternion(matrix)
        return QuaternionPose(
            x * _METRES_TO_MM, y * _METRES_TO_MM, z * _METRES_TO_MM,
            qx, qy, qz, qw, self._button_mask(),
        )

    def get_pose_abc(self) -> EulerPose | None:
        """Absolute pose with A, B, C angles, or None if the pose is invalid."""
        matrix = self._tracker_matrix()
        if matrix is None:
            return None
        x, y, z, a, b, c = matrix_to_position_abc(matrix)
        return EulerPose(
            x * _METRES_TO_MM, y * _METRES_TO_MM, z * _METRES_TO_MM,
            a, b, c, self._button_mask(),
        )

    def get_relative_pose(self) -> QuaternionPose | None:
        """Pose relative to the origin, or None if the pose is invalid."""
        absolute = self.get_pose()
        if absolute is None:
            return None
        ox, oy, oz = self._origin_position
        qx, qy, qz, qw = quat_multiply(
            quat_inverse(*self._origin_rotation),
            (absolute.qx, absolute.qy, absolute.qz, absolute.qw),
        )
        relative = QuaternionPose(
            absolute.x - ox, absolute.y - oy, absolute.z - oz,
            qx, qy, qz, qw, absolute.button_mask,
        )
        if self._recording:
            self._poses.append(relative)
        return relative

    def start_logging(self, filename) -> None:
        """Begin collecting relative poses for writing to ``filename``."""
        if self._recording:
            raise TrackerError("stop the running recording first")
        self._poses.clear()
        self._recording = True
        self._filename = Path(filename)

    def stop_logging(self) -> None:
        """Write the collected poses as CSV and stop recording."""
        if self._filename is None:
            raise TrackerError("logging was never started")
        with self._filename.open("w", encoding="utf-8") as handle:
            handle.write(LOG_HEADER + "\n")
            for p in self._poses:
                values = (p.x, p.y, p.z, p.qx, p.qy, p.qz, p.qw)
                handle.write(",".join(f"{v:g}" for v in values) + f",{p.button_mask}\n")
        self._poses.clear()
        self._recording = False