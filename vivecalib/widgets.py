"""Signal dispatch and the per-point pose label board of the calibration screen."""

from __future__ import annotations

from typing import Any, Callable

from .pose import CartesianPose, PoseType

POINT_COUNT = 6
LABEL_SUFFIXES = ("x", "y", "z", "A", "B", "C")


class Signal:
    """Calls connected slots, in connection order, whenever it is emitted."""

    def __init__(self) -> None:
        self._slots: list[Callable[..., Any]] = []

    def connect(self, slot: Callable[..., Any]) -> None:
        """Register ``slot`` to be called on every emission."""
        if not callable(slot):
            raise TypeError(f"slot is not callable: {slot!r}")
        self._slots.append(slot)

    def emit(self, *args: Any) -> None:
        """Call every connected slot with ``args``."""
        for slot in list(self._slots):
            slot(*args)


def _pose_values(pose: CartesianPose) -> dict[str, float]:
    p, o = pose.position, pose.orientation
    return {"x": p.x, "y": p.y, "z": p.z, "A": o.a, "B": o.b, "C": o.c}


class PoseLabelBoard:
    """Displayed text of the robot and tracker pose labels of each marked point."""

    def __init__(self, points: int = POINT_COUNT):
        if points < 1:
            raise ValueError(f"need at least one point, got {points}")
        self._points = points
        self._texts: dict[PoseType, dict[int, dict[str, str]]] = {}
        self.clear()

    @property
    def points(self) -> int:
        return self._points

    def update(self, pose_type: PoseType, index: int, pose: CartesianPose) -> bool:
        """Show ``pose`` on the labels of point ``index`` (1-based).

        Returns False, changing nothing, when the type or the index has no labels.
        """
        labels = self._texts.get(pose_type, {}).get(index)
        if labels is None:
            return False
        for suffix, value in _pose_values(pose).items():
            labels[suffix] = f"{value:.2f}"
        return True

    def text(self, pose_type: PoseType, index: int, suffix: str) -> str:
        """Current text of one label; raises KeyError for an unknown label."""
        try:
            return self._texts[pose_type][index][suffix]
        except KeyError:
            raise KeyError(f"no label for {pose_type!r}, point {index}, {suffix!r}") from None

    def clear(self) -> None:
        """Blank every label."""
        self._texts = {
            pose_type: {
                index: {suffix: "" for suffix in LABEL_SUFFIXES}
                for index in range(1, self._points + 1)
            }
            for pose_type in PoseType
        }