import pytest

from vivecalib.pose import CartesianPose, PoseType
from vivecalib.widgets import LABEL_SUFFIXES, PoseLabelBoard, Signal


def test_signal_calls_slots_in_order_with_args():
    calls = []
    signal = Signal()
    signal.connect(lambda *a: calls.append(("first", a)))
    signal.connect(lambda *a: calls.append(("second", a)))
    signal.emit(3, "msg")
    assert calls == [("first", (3, "msg")), ("second", (3, "msg"))]


def test_signal_emits_every_time():
    received = []
    signal = Signal()
    signal.connect(received.append)
    for value in (1, 2, 3):
        signal.emit(value)
    assert received == [1, 2, 3]


def test_signal_without_slots_does_nothing():
    signal = Signal()
    signal.emit("ignored")
    received = []
    signal.connect(received.append)
    signal.emit("seen")
    assert received == ["seen"]


def test_signal_rejects_non_callable():
    with pytest.raises(TypeError):
        Signal().connect(42)


def test_board_starts_blank():
    board = PoseLabelBoard()
    assert all(
        board.text(t, i, s) == ""
        for t in PoseType
        for i in range(1, board.points + 1)
        for s in LABEL_SUFFIXES
    )


def test_update_formats_two_decimals():
    board = PoseLabelBoard()
    pose = CartesianPose.from_values(12.0, -3.25, 0.5, 1.0, 2.0, 3.0)
    assert board.update(PoseType.ROBOT, 1, pose) is True
    assert board.text(PoseType.ROBOT, 1, "x") == "12.00"
    assert board.text(PoseType.ROBOT, 1, "y") == "-3.25"
    assert board.text(PoseType.ROBOT, 1, "C") == "3.00"


def test_update_only_touches_its_own_labels():
    board = PoseLabelBoard()
    board.update(PoseType.VIVE, 2, CartesianPose.from_values(1, 1, 1, 1, 1, 1))
    assert board.text(PoseType.ROBOT, 2, "x") == ""
    assert board.text(PoseType.VIVE, 1, "x") == ""
    assert board.text(PoseType.VIVE, 2, "x") == "1.00"


def test_update_unknown_index_is_ignored():
    board = PoseLabelBoard()
    pose = CartesianPose.from_values(1, 2, 3, 4, 5, 6)
    assert board.update(PoseType.ROBOT, 0, pose) is False
    assert board.update(PoseType.ROBOT, board.points + 1, pose) is False
    with pytest.raises(KeyError):
        board.text(PoseType.ROBOT, board.points + 1, "x")


def test_unknown_suffix_raises():
    with pytest.raises(KeyError):
        PoseLabelBoard().text(PoseType.VIVE, 1, "w")


def test_clear_blanks_updated_labels():
    board = PoseLabelBoard()
    board.update(PoseType.ROBOT, 3, CartesianPose.from_values(5, 5, 5, 5, 5, 5))
    board.clear()
    assert board.text(PoseType.ROBOT, 3, "z") == ""


def test_board_needs_points():
    with pytest.raises(ValueError):
        PoseLabelBoard(points=0)