[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "vivecalib"
version = "0.1.0"
description = "Pose maths, VIVE tracker reading and a toolkit-independent robot/tracker calibration workflow"
requires-python = ">=3.10"
dependencies = [
    "numpy",
]
keywords = ["vive", "tracker", "robot", "calibration", "euler", "quaternion", "pose"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Manufacturing",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Scientific/Engineering :: Human Machine Interfaces",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["vivecalib"]

[tool.pytest.ini_options]
addopts = "-ra"
