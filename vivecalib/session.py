"""Calibration workflow behind the main screen: marking points, computing and recording."""

from __future__ import annotations

import logging
from typing import Protocol, Sequence

import numpy as np

from .pose import CartesianOrientation, CartesianPose, CartesianPosition, PoseType
from .transforms import format_matrix, matrix_to_pose, pose_to_matrix
from .widgets import PoseLabelBoard, Signal

logger = logging.getLogger(__name__)

MARK_POINT_COUNT = 9
POINTS_NEEDED = 6
CALIBRATION_ALGORITHM = 2
CALIBRATION_MODE = 0
UNSET_ERROR = -1000.0
CALIB_SUCCESS = "calib success"
CALIB_FAIL = "calib fail"


class CalibrationError(RuntimeError):
    """Raised by a calibrator that could not produce a result."""

    def __init__(self, message: str = "calibration failed", max_error: float = UNSET_ERROR):
        super().__init__(message)
        self.max_error = max_error


class CalibrationManagerLike(Protocol):
    """Locator-to-robot-base calibration built from pairs of marked points."""

    def set_robot_position(self, index: int, position: CartesianPosition) -> None:
        """Store the robot TCP position of point ``index`` (0-based)."""

    def set_robot_orientation(self, index: int, orientation: CartesianOrientation) -> None:
        """Store the robot TCP orientation of point ``index`` (0-based)."""

    def set_device_position(self, index: int, position: CartesianPosition) -> None:
        """Store the tracker TCP position of point ``index`` (0-based)."""

    def set_device_orientation(self, index: int, orientation: CartesianOrientation) -> None:
        """Store the tracker TCP orientation of point ``index`` (0-based)."""

    def calibration_matrix(self) -> np.ndarray:
        """4x4 transform from the locator frame to the robot base frame."""

    def clear_positions(self) -> None:
        """Forget every stored point."""

    def set_algorithm(self, algorithm: int) -> None:
        """Choose the fitting algorithm."""

    def calibrate(self, mode: int) -> float:
        """Fit the transform and return the largest residual; raise CalibrationError on failure."""


class ToolCalibrationLike(Protocol):
    """Tool centre point calibration from several poses about one fixed point."""

    def set_calibration_pose(self, index: int, pose: CartesianPose) -> None:
        """Store pose ``index`` (0-based)."""

    def calibration_poses(self) -> Sequence[CartesianPose]:
        """The poses stored so far."""

    def clear_calibration_poses(self) -> None:
        """Forget every stored pose."""

    def calibrate(self) -> None:
        """Solve the calibration; raise CalibrationError on failure."""

    def position_vector(self) -> np.ndarray:
        """Homogeneous 4-vector of the TCP in the calibrated frame."""

    def pose_calibration_matrix(self) -> np.ndarray:
        """4x4 transform from the calibrated frame to the TCP."""


class _PoseReader(Protocol):
    def get_latest_pose(self) -> CartesianPose: ...

    def enable_record(self) -> None: ...

    def disable_record(self) -> None: ...

    def get_recorded_poses(self) -> list[CartesianPose]: ...


def _describe(pose: CartesianPose) -> str:
    p, o = pose.position, pose.orientation
    return f"x:{p.x} y:{p.y} z:{p.z} A:{o.a} B:{o.b} C:{o.c}"


class CalibrationSession:
    """State and actions of the calibration screen, independent of any GUI toolkit."""

    def __init__(
        self,
        reader: _PoseReader,
        calibration_manager: CalibrationManagerLike,
        flange2tcp: ToolCalibrationLike,
        tracker2tcp: ToolCalibrationLike,
        board: PoseLabelBoard | None = None,
    ):
        self._reader = reader
        self._manager = calibration_manager
        self._flange2tcp = flange2tcp
        self._tracker2tcp = tracker2tcp
        self.board = board if board is not None else PoseLabelBoard()
        self._use_toolhand = False
        self._tcp2tracker = np.eye(4)
        self.saved_result: np.ndarray | None = None

        self.received_text = ""
        self.status_text = ""
        self.calibration_error_text = ""
        self.flange2tcp_status_text = ""
        self.tracker2tcp_status_text = ""
        self.tracker_texts: dict[str, str] = {}

        self.connect_requested = Signal()
        self.disconnect_requested = Signal()
        self.message_sent = Signal()
        self.mark_point_requested = Signal()
        self.record_started = Signal()
        self.record_ended = Signal()
        self.playback_started = Signal()
        self.playback_ended = Signal()
        self.flange2tcp_mark_point_requested = Signal()
        self.tracker2tcp_rotation_requested = Signal()

    @property
    def use_toolhand(self) -> bool:
        return self._use_toolhand

    def _has_point(self, index: int) -> bool:
        return 1 <= index <= self.board.points

    def handle_message(self, msg: str) -> None:
        """Show a message received from the controller."""
        logger.info("message received: %s", msg)
        self.received_text = msg

    def mark_point_received(self, pose_type: PoseType, index: int, pose: CartesianPose) -> bool:
        """Take a marked pose of point ``index`` (1-based); return whether it was accepted."""
        logger.info("mark point received: type=%s index=%d %s", pose_type, index, _describe(pose))
        if pose_type not in (PoseType.ROBOT, PoseType.VIVE) or not self._has_point(index):
            return False
        if pose_type == PoseType.ROBOT:
            slot = index - 1
            if self._use_toolhand:
                tcp_pose = pose
            else:
                flange_to_tcp = np.asarray(self._flange2tcp.pose_calibration_matrix(), dtype=float)
                tcp_matrix = pose_to_matrix(pose) @ flange_to_tcp
                logger.debug("tcp matrix:\n%s", format_matrix(tcp_matrix))
                tcp_pose = matrix_to_pose(tcp_matrix)
            self._manager.set_robot_position(slot, tcp_pose.position)
            self._manager.set_robot_orientation(slot, tcp_pose.orientation)
        return self.board.update(pose_type, index, pose)

    def compute_result_received(self, result: float) -> None:
        self.calibration_error_text = f"{result:.2f}"

    def flange2tcp_mark_point_received(self, index: int, pose: CartesianPose) -> None:
        """Store a flange pose reported by the controller for the flange-to-TCP calibration."""
        logger.info("flange2tcp point %d: %s", index, _describe(pose))
        self._flange2tcp.set_calibration_pose(index, pose)
        self.flange2tcp_status_text = f"{POINTS_NEEDED} points needed, recorded: {index}"

    def tracker2tcp_mark_use_robot_pose(self, pose: CartesianPose) -> np.ndarray:
        """Derive the TCP-in-tracker transform from the robot TCP pose and the current tracker pose."""
        tcp_matrix = pose_to_matrix(pose)
        locator_to_base = np.asarray(self._manager.calibration_matrix(), dtype=float)
        tracker_matrix = pose_to_matrix(self._reader.get_latest_pose())
        self._tcp2tracker = np.linalg.inv(tracker_matrix) @ np.linalg.inv(locator_to_base) @ tcp_matrix
        return self._tcp2tracker.copy()

    def connect_controller(self) -> None:
        self.connect_requested.emit()

    def disconnect_controller(self) -> None:
        self.disconnect_requested.emit()

    def start_record(self) -> None:
        self.record_started.emit()
        self._reader.enable_record()

    def end_record(self) -> list[CartesianPose]:
        """Stop recording and return the recorded tracker poses in the robot base frame."""
        self.record_ended.emit()
        poses = self._reader.get_recorded_poses()
        self._reader.disable_record()
        logger.info("recorded poses: %d", len(poses))
        locator_to_base = np.asarray(self._manager.calibration_matrix(), dtype=float)
        return [matrix_to_pose(locator_to_base @ pose_to_matrix(p)) for p in poses]

    def start_playback(self) -> None:
        self.playback_started.emit()

    def end_playback(self) -> None:
        self.playback_ended.emit()

    def delete_calib_result(self) -> None:
        self._manager.clear_positions()

    def save_calib_result(self) -> np.ndarray:
        """Keep a snapshot of the current locator-to-base transform and return it."""
        self.saved_result = np.array(self._manager.calibration_matrix(), dtype=float)
        return self.saved_result.copy()

    def compute(self) -> bool:
        """Run the locator-to-base calibration; return whether it succeeded."""
        self._manager.set_algorithm(CALIBRATION_ALGORITHM)
        try:
            max_error = self._manager.calibrate(CALIBRATION_MODE)
        except CalibrationError as exc:
            logger.warning("calibration failed: %s", exc)
            self.status_text = CALIB_FAIL
            self.calibration_error_text = f"{exc.max_error:g}"
            return False
        self.status_text = CALIB_SUCCESS
        self.calibration_error_text = f"{max_error:g}"
        return True

    def mark_point(self, index: int) -> CartesianPose:
        """Mark point ``index`` (1-based): ask for the robot pose and store the tracker TCP pose."""
        if not 1 <= index <= MARK_POINT_COUNT:
            raise ValueError(f"mark point index must be in 1..{MARK_POINT_COUNT}, got {index}")
        self.mark_point_requested.emit(index)
        tracker_pose = self._reader.get_latest_pose()
        tracker_matrix = pose_to_matrix(tracker_pose)
        pos_vec = np.asarray(self._tracker2tcp.position_vector(), dtype=float)
        offset = np.eye(4)
        offset[:3, 3] = pos_vec[:3]
        tcp_matrix = tracker_matrix @ offset
        logger.debug("tcp to locator matrix:\n%s", format_matrix(tcp_matrix))
        tcp_pose = matrix_to_pose(tcp_matrix)
        slot = index - 1
        self._manager.set_device_position(slot, tcp_pose.position)
        self._manager.set_device_orientation(slot, tcp_pose.orientation)
        self.mark_point_received(PoseType.VIVE, index, tracker_pose)
        return tcp_pose

    def send(self, text: str) -> None:
        self.message_sent.emit(text)

    def clear(self) -> None:
        self.received_text = ""

    def tracker2tcp_mark_point(self) -> None:
        """Append the current tracker pose to the tracker-to-TCP calibration."""
        pose = self._reader.get_latest_pose()
        size = len(self._tracker2tcp.calibration_poses())
        self._tracker2tcp.set_calibration_pose(size, pose)
        self.tracker2tcp_status_text = f"{POINTS_NEEDED} points needed, recorded: {size + 1}"

    def tracker2tcp_calibrate(self) -> bool:
        try:
            self._tracker2tcp.calibrate()
        except CalibrationError as exc:
            logger.warning("tracker2tcp calibrate fail: %s", exc)
            return False
        logger.info("tcp2tracker vector: %s", self._tracker2tcp.position_vector())
        return True

    def tracker2tcp_clear_point(self) -> None:
        self._tracker2tcp.clear_calibration_poses()

    def flange2tcp_mark_point(self) -> None:
        """Ask the controller for the flange pose of the next flange-to-TCP point."""
        size = len(self._flange2tcp.calibration_poses())
        self.flange2tcp_mark_point_requested.emit(size)

    def flange2tcp_calibrate(self) -> bool:
        try:
            self._flange2tcp.calibrate()
        except CalibrationError as exc:
            logger.warning("flange2tcp calibrate fail: %s", exc)
            return False
        logger.info("flange2tcp matrix:\n%s", format_matrix(self._flange2tcp.pose_calibration_matrix()))
        return True

    def flange2tcp_clear_point(self) -> None:
        self._flange2tcp.clear_calibration_poses()

    def track_pose_timeout(self) -> dict[str, str]:
        """Refresh and return the live tracker pose texts."""
        pose = self._reader.get_latest_pose()
        p, o = pose.position, pose.orientation
        self.tracker_texts = {
            "x": f"{p.x:g}", "y": f"{p.y:g}", "z": f"{p.z:g}",
            "A": f"{o.a:g}", "B": f"{o.b:g}", "C": f"{o.c:g}",
        }
        return dict(self.tracker_texts)

    def tracker2tcp_mark_rotation_use_robot_pose(self) -> None:
        self.tracker2tcp_rotation_requested.emit()

    def use_robot_toolhand(self, state: bool) -> None:
        self._use_toolhand = bool(state)

    def tracker2tcp_rotation_matrix(self) -> np.ndarray:
        """The TCP-in-tracker transform found last (identity until one is found)."""
        return self._tcp2tracker.copy()