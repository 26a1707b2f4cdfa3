"""Pose maths, VIVE tracker reading and a toolkit-independent robot/tracker calibration workflow."""

__version__ = "0.1.0"