# vivecalib

Pose maths, VIVE tracker reading and the workflow for calibrating a tracker against an industrial robot.

Angles are in radians. Positions are in millimetres, except for the raw 3x4 device matrices a backend reports, which are in metres.

## Modules

- `vivecalib.pose` holds the value types `CartesianPosition` (`x`, `y`, `z`), `CartesianOrientation` (`a`, `b`, `c`) and `CartesianPose`, with `CartesianPose.from_values(x, y, z, a, b, c)`. It also has the `PoseType` enum (`ROBOT`, `VIVE`).
- `vivecalib.quaternion` has `Quaternion(w, x, y, z)`, an immutable value. It supports `dot`, `conjugate` and `normalize`, Hamilton product and scaling with `*`, `+`, `-`, unary `-`, and division by a number.
- `vivecalib.transforms` converts between angles, rotation matrices and quaternions:
  - `euler_abc_to_matrix` / `matrix_to_euler_abc` use the convention Rx(A) · Ry(B) · Rz(C).
  - `euler_rpy_to_matrix` / `matrix_to_euler_rpy` use Rz(yaw) · Ry(pitch) · Rx(roll).
  - `euler_abc_to_quaternion` and `quaternion_to_euler_abc`.
  - `plerp` interpolates positions linearly. `slerp` interpolates quaternions along the shorter arc.
  - `pose_to_matrix` and `matrix_to_pose` convert to and from 4x4 homogeneous numpy arrays.
  - `format_matrix` and `print_matrix` render a 4x4 matrix one row per line.
  - `rad_to_deg` and `deg_to_rad`.
  - `extract_trajectory_string(path)` returns the text between `[$trajectory:` and `$]` in a file, or `""` if there is none.
- `vivecalib.timeutils` provides `get_timestamp()` (Unix milliseconds) and `get_time_difference(start, end)`, which is never negative. It also provides `timestamp_to_string(ts)`, which gives the local `MM:SS` and raises `ValueError` for a negative value.
- `vivecalib.tracker` provides `ViveTracker`, which runs on top of a `VRBackend` that you subclass:
  - `initialize()` and `find_tracker()` select the first connected `DeviceClass.GENERIC_TRACKER`.
  - `get_pose()` returns a `QuaternionPose` and `get_pose_abc()` returns an `EulerPose`. Both give the position in mm and return `None` when the pose is invalid.
  - `set_origin(...)` sets a reference pose, and `get_relative_pose()` gives poses relative to it.
  - `start_logging(filename)` and `stop_logging()` write the relative poses as CSV.
  - Misuse, such as calling before initialisation or with no tracker found, raises `TrackerError`.
  - The helpers `quat_inverse`, `quat_multiply`, `matrix_to_position_quaternion` and `matrix_to_position_abc` are public.
- `vivecalib.reader` provides `ViveTrackerReader`, which polls a `ViveTracker` on a background thread:
  - `start`, `stop`, `pause` and `resume` control the thread. The reader is also a context manager that stops on exit.
  - `get_latest_pose()` returns the most recent pose.
  - Recording is bounded. `enable_record(max_size)` starts it, with a default of 5000 poses. `disable_record()`, `get_recorded_poses()` and `clear_recorded_poses()` manage it, and `save_record_poses_to_file(filename)` writes the poses as CSV.
  - `set_loop_interval_ms(ms)` sets the polling interval. The default is 9 ms, and a value that is not positive raises `ValueError`.
- `vivecalib.widgets` provides:
  - `Signal`, with `connect` and `emit`.
  - `PoseLabelBoard`, which holds the text shown for the robot and tracker pose of each marked point. Its methods are `update`, `text` and `clear`, and values are shown with two decimals.
- `vivecalib.session` provides `CalibrationSession`, the state and actions of the calibration screen:
  - It marks tracker and robot points, and drives the flange-to-TCP and tracker-to-TCP tool calibrations.
  - `compute()` runs the locator-to-robot-base fit.
  - `end_record()` converts a recorded trajectory into the robot base frame.
  - It derives the TCP-in-tracker transform.
  - It emits signals such as `connect_requested`, `mark_point_requested` and `message_sent` for a controller link to act on.

## Example

```python
from vivecalib.pose import CartesianPose
from vivecalib.transforms import pose_to_matrix, matrix_to_pose

pose = CartesianPose.from_values(100.0, 20.0, 300.0, 0.1, -0.2, 0.3)
matrix = pose_to_matrix(pose)         # 4x4 numpy array
moved = matrix @ pose_to_matrix(pose)
back = matrix_to_pose(matrix)         # the same pose again
```

## What the package does not do

- **No VR runtime binding.** `ViveTracker` needs a `VRBackend` implementation that you provide.
- **No calibration solvers.** `CalibrationSession` takes a calibration manager and two tool calibrators. They must follow the `CalibrationManagerLike` and `ToolCalibrationLike` protocols, and they report failure by raising `vivecalib.session.CalibrationError`.
- **No robot controller connection.** The session only emits signals; something else has to act on them.
- **No graphical window and no command-line program.** The screen's state is plain attributes on `CalibrationSession` and `PoseLabelBoard`.

## Tests

The test suite uses pytest, which is available through the `test` extra.