"""Background reading and recording of tracker poses."""

from __future__ import annotations

import logging
import threading
from dataclasses import replace
from pathlib import Path

from .pose import CartesianPose
from .tracker import TrackerError, ViveTracker

logger = logging.getLogger(__name__)

DEFAULT_MAX_RECORD_SIZE = 5000
DEFAULT_LOOP_INTERVAL_MS = 9
RECORD_HEADER = "x,y,z,A,B,C"


def _copy_pose(pose: CartesianPose) -> CartesianPose:
    return CartesianPose(replace(pose.position), replace(pose.orientation))


class ViveTrackerReader:
    """Polls a tracker on a thread, keeping the latest pose and an optional recording."""

    def __init__(self, tracker: ViveTracker, loop_interval_ms: int = DEFAULT_LOOP_INTERVAL_MS):
        self._tracker = tracker
        self._thread: threading.Thread | None = None
        self._stop_event = threading.Event()
        self._paused = threading.Event()
        self._pose_lock = threading.Lock()
        self._latest = CartesianPose()
        self._record_lock = threading.Lock()
        self._record_enabled = False
        self._recorded: list[CartesianPose] = []
        self._max_record_size = DEFAULT_MAX_RECORD_SIZE
        self._loop_interval_ms = DEFAULT_LOOP_INTERVAL_MS
        self.set_loop_interval_ms(loop_interval_ms)

    def __enter__(self) -> ViveTrackerReader:
        return self

    def __exit__(self, *exc) -> None:
        self.stop()

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def record_enabled(self) -> bool:
        return self._record_enabled

    def start(self) -> bool:
        """Initialise the tracker and start the reading thread; return whether it started."""
        if not self._tracker.initialize():
            return False
        if not self._tracker.find_tracker():
            self._tracker.shutdown()
            return False
        self._stop_event.clear()
        self._paused.clear()
        self._thread = threading.Thread(target=self._read_loop, daemon=True)
        self._thread.start()
        return True

    def stop(self) -> None:
        """Stop the reading thread and shut the tracker down."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join()
            self._thread = None
        self._tracker.shutdown()

    def pause(self) -> None:
        self._paused.set()

    def resume(self) -> None:
        self._paused.clear()

    def get_latest_pose(self) -> CartesianPose:
        """A copy of the most recently read pose."""
        with self._pose_lock:
            return _copy_pose(self._latest)

    def enable_record(self, max_size: int = DEFAULT_MAX_RECORD_SIZE) -> None:
        """Clear the recording and start collecting up to ``max_size`` poses."""
        with self._record_lock:
            self._recorded.clear()
            self._max_record_size = max_size
            self._record_enabled = True

    def disable_record(self) -> None:
        """Stop collecting and discard the recording."""
        with self._record_lock:
            self._recorded.clear()
            self._record_enabled = False

    def get_recorded_poses(self) -> list[CartesianPose]:
        with self._record_lock:
            return [_copy_pose(p) for p in self._recorded]

    def clear_recorded_poses(self) -> None:
        with self._record_lock:
            self._recorded.clear()

    def save_record_poses_to_file(self, filename) -> None:
        """Write the recorded poses as CSV."""
        with self._record_lock, Path(filename).open("w", encoding="utf-8") as handle:
            handle.write(RECORD_HEADER + "\n")
            for pose in self._recorded:
                p, o = pose.position, pose.orientation
                handle.write(",".join(f"{v:g}" for v in (p.x, p.y, p.z, o.a, o.b, o.c)) + "\n")

    def set_loop_interval_ms(self, interval_ms: int) -> None:
        if interval_ms <= 0:
            raise ValueError(f"invalid loop interval: {interval_ms} ms")
        self._loop_interval_ms = interval_ms

    def _read_loop(self) -> None:
        while not self._stop_event.is_set():
            if not self._paused.is_set():
                self._read_once()
            self._stop_event.wait(self._loop_interval_ms / 1000.0)

    def _read_once(self) -> None:
        try:
            reading = self._tracker.get_pose_abc()
        except TrackerError:
            logger.exception("tracker read failed")
            return
        if reading is None:
            return
        pose = CartesianPose.from_values(reading.x, reading.y, reading.z, reading.a, reading.b, reading.c)
        with self._pose_lock:
            self._latest = pose
        if not self._record_enabled:
            return
        with self._record_lock:
            if len(self._recorded) >= self._max_record_size:
                self._record_enabled = False
                logger.warning("Recording buffer is full. Stopping recording.")
            else:
                self._recorded.append(_copy_pose(pose))