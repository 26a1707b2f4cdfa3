import threading
import time

import numpy as np
import pytest

from vivecalib.reader import RECORD_HEADER, ViveTrackerReader
from vivecalib.tracker import DeviceClass, DevicePose, VRBackend, ViveTracker
from vivecalib.transforms import euler_abc_to_matrix


class FakeBackend(VRBackend):
    def __init__(self, classes=None, translation=(0.1, 0.2, 0.3), angles=(0.1, 0.2, 0.3)):
        self.classes = classes if classes is not None else {0: DeviceClass.GENERIC_TRACKER}
        self.matrix = np.zeros((3, 4))
        self.matrix[:3, :3] = euler_abc_to_matrix(*angles)
        self.matrix[:3, 3] = translation
        self.calls = 0
        self.shutdowns = 0
        self._lock = threading.Lock()

    def init(self):
        return True

    def shutdown(self):
        self.shutdowns += 1

    def is_device_connected(self, index):
        return index in self.classes

    def device_class(self, index):
        return self.classes.get(index, DeviceClass.INVALID)

    def wait_get_poses(self):
        with self._lock:
            self.calls += 1
        return [DevicePose(self.matrix, True) for _ in range(64)]

    def button_mask(self, index):
        return 0


def _wait_until(predicate, timeout=3.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return predicate()


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def reader(backend):
    r = ViveTrackerReader(ViveTracker(backend), loop_interval_ms=1)
    yield r
    r.stop()


def test_start_fails_without_tracker():
    backend = FakeBackend(classes={0: DeviceClass.HMD})
    reader = ViveTrackerReader(ViveTracker(backend))
    assert reader.start() is False
    assert backend.shutdowns == 1
    assert reader.running is False


def test_latest_pose_is_read(reader):
    assert reader.start() is True
    assert _wait_until(lambda: reader.get_latest_pose().position.x > 0)
    pose = reader.get_latest_pose()
    assert (pose.position.x, pose.position.y, pose.position.z) == pytest.approx(
        (0.1 * 1000, 0.2 * 1000, 0.3 * 1000)
    )
    assert (pose.orientation.a, pose.orientation.b, pose.orientation.c) == pytest.approx((0.1, 0.2, 0.3))


def test_stop_shuts_tracker_down(reader, backend):
    reader.start()
    reader.stop()
    assert reader.running is False
    assert backend.shutdowns == 1


def test_recording_stops_when_full(reader):
    reader.start()
    reader.enable_record(max_size=3)
    assert _wait_until(lambda: not reader.record_enabled)
    assert len(reader.get_recorded_poses()) == 3


def test_disable_record_clears(reader):
    reader.start()
    reader.enable_record(max_size=100)
    assert _wait_until(lambda: len(reader.get_recorded_poses()) > 0)
    reader.disable_record()
    assert reader.get_recorded_poses() == []
    assert reader.record_enabled is False


def test_clear_recorded_poses(reader):
    reader.start()
    reader.enable_record(max_size=2)
    assert _wait_until(lambda: not reader.record_enabled)
    reader.clear_recorded_poses()
    assert reader.get_recorded_poses() == []


def test_save_record_poses_to_file(reader, tmp_path):
    reader.start()
    reader.enable_record(max_size=2)
    assert _wait_until(lambda: not reader.record_enabled)
    out = tmp_path / "poses.csv"
    reader.save_record_poses_to_file(out)
    lines = out.read_text(encoding="utf-8").splitlines()
    assert lines[0] == RECORD_HEADER
    assert len(lines) == 3
    assert [float(v) for v in lines[1].split(",")] == pytest.approx([100, 200, 300, 0.1, 0.2, 0.3], rel=1e-5)


def test_pause_stops_polling(reader, backend):
    reader.start()
    reader.enable_record(max_size=1_000_000)
    assert _wait_until(lambda: len(reader.get_recorded_poses()) > 0)
    reader.pause()
    time.sleep(0.05)
    paused_count = len(reader.get_recorded_poses())
    paused_calls = backend.calls
    time.sleep(0.05)
    assert len(reader.get_recorded_poses()) == paused_count
    assert backend.calls == paused_calls
    reader.resume()
    assert _wait_until(lambda: len(reader.get_recorded_poses()) > paused_count)


@pytest.mark.parametrize("interval", [0, -5])
def test_invalid_loop_interval(reader, interval):
    with pytest.raises(ValueError):
        reader.set_loop_interval_ms(interval)


def test_latest_pose_is_a_copy(reader):
    reader.start()
    assert _wait_until(lambda: reader.get_latest_pose().position.x > 0)
    pose = reader.get_latest_pose()
    pose.position.x = -1.0
    reader.pause()
    assert reader.get_latest_pose().position.x > 0