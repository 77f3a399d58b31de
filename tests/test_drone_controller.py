"""Tests for the DroneController move helpers.

A point-mass drone integrates commanded velocities whenever the simulation
clock advances, so the helpers run single-threaded against it.
"""

import math

import numpy as np
import pytest
from numpy.testing import assert_allclose

from drone.dynamics.frames import NumericInvalidError, get_yaw, nan_vector, quaternion_from_yaw
from drone.environment.earth import GeoPoint
from flight.control.base import DroneController, DrivetrainType, LifecycleState, YawMode
from flight.control.cancelable import ActionResult, CancelToken, SimulationClock
from flight.control.errors import VehicleCommandNotImplementedError
from flight.control.params import SafetyParams
from flight.control.rc import RCData

# =============================================================================
# Point-mass drone
# =============================================================================


class PointMassDrone(DroneController):
    """Drone that tracks commanded velocity and yaw exactly."""

    def __init__(self, position=(0.0, 0.0, 0.0)):
        self.position = np.array(position, dtype=np.float64)
        self.velocity = np.zeros(3)
        self.yaw_deg = 0.0
        self.yaw_rate = 0.0
        self.hold_z: float | None = None
        self.commands: list[tuple] = []
        self.on_tick = None
        super().__init__(SimulationClock(tick=self._tick))

    def _tick(self, dt: float) -> None:
        self.position = self.position + self.velocity * dt
        if self.hold_z is not None:
            self.position[2] = self.hold_z
        self.yaw_deg += self.yaw_rate * dt
        if self.on_tick is not None:
            self.on_tick()

    def _apply_yaw(self, yaw_mode: YawMode) -> None:
        if yaw_mode.is_rate:
            self.yaw_rate = yaw_mode.yaw_or_rate
        else:
            self.yaw_rate = 0.0
            self.yaw_deg = yaw_mode.yaw_or_rate

    # VehicleController
    def reset(self): pass
    def update(self): self._enter_update()
    def get_vertex_count(self): return 4
    def get_vertex_control_signal(self, index): return 0.0
    def get_status_messages(self): return []
    def report_telemetry(self, render_time): pass
    def set_offboard_mode(self, is_set): pass
    def set_simulation_mode(self, is_set): pass
    def is_offboard_mode(self): return True
    def is_simulation_mode(self): return True

    # DroneController
    def get_position(self): return self.position.copy()
    def get_velocity(self): return self.velocity.copy()
    def get_orientation(self): return quaternion_from_yaw(math.radians(self.yaw_deg))
    def get_home_point(self): return GeoPoint()
    def get_gps_location(self): return GeoPoint()
    def get_rc_data(self): return RCData()
    def set_rc_data(self, rc): pass
    def get_remote_control_id(self): return 0
    def arm_disarm(self, arm, cancel): return ActionResult.SUCCEEDED
    def takeoff(self, max_wait_seconds, cancel): return ActionResult.SUCCEEDED
    def land(self, cancel): return ActionResult.SUCCEEDED
    def go_home(self, cancel): return ActionResult.SUCCEEDED
    def hover(self, cancel): return ActionResult.SUCCEEDED
    def get_command_period(self): return 0.02
    def get_takeoff_z(self): return -3.0
    def get_distance_accuracy(self): return 0.1
    def get_vehicle_params(self): return SafetyParams()

    def command_roll_pitch_z(self, pitch, roll, z, yaw):
        self.commands.append(("roll_pitch_z", pitch, roll, z, yaw))
        self.velocity = np.zeros(3)
        self.hold_z = z

    def command_velocity(self, vx, vy, vz, yaw_mode):
        self.commands.append(("velocity", vx, vy, vz, yaw_mode))
        self.velocity = np.array([vx, vy, vz])
        self.hold_z = None
        self._apply_yaw(yaw_mode)

    def command_velocity_z(self, vx, vy, z, yaw_mode):
        self.commands.append(("velocity_z", vx, vy, z, yaw_mode))
        self.velocity = np.array([vx, vy, 0.0])
        self.hold_z = z
        self._apply_yaw(yaw_mode)

    def command_position(self, x, y, z, yaw_mode):
        self.commands.append(("position", x, y, z, yaw_mode))
        self.position = np.array([x, y, z])


class UnwiredDrone(PointMassDrone):
    """Drone whose setpoint commands are unsupported."""

    def command_velocity(self, vx, vy, vz, yaw_mode):
        raise VehicleCommandNotImplementedError("no velocity control")


# =============================================================================
# Lifecycle Tests
# =============================================================================


class TestLifecycle:
    """Test the controller lifecycle."""

    def test_transitions(self):
        """CONSTRUCTED -> STARTED -> RUNNING -> STOPPED."""
        drone = PointMassDrone()
        assert drone.lifecycle is LifecycleState.CONSTRUCTED
        drone.start()
        assert drone.lifecycle is LifecycleState.STARTED
        drone.update()
        assert drone.lifecycle is LifecycleState.RUNNING
        drone.stop()
        assert drone.lifecycle is LifecycleState.STOPPED

    def test_update_before_start_stays_constructed(self):
        """Updating an unstarted controller does not start it."""
        drone = PointMassDrone()
        drone.update()
        assert drone.lifecycle is LifecycleState.CONSTRUCTED

    def test_get_pose(self):
        """get_pose combines position and orientation."""
        drone = PointMassDrone(position=(1.0, 2.0, -3.0))
        pose = drone.get_pose()
        assert_allclose(pose.position, [1.0, 2.0, -3.0])
        assert_allclose(pose.orientation, [1.0, 0.0, 0.0, 0.0])


# =============================================================================
# Timed Move Tests
# =============================================================================


class TestTimedMoves:
    """Test helpers that command for a fixed duration."""

    def test_move_by_velocity_duration(self):
        """Velocity is held for the requested duration."""
        drone = PointMassDrone()
        result = drone.move_by_velocity(1.0, 0.0, 0.0, 1.0)
        assert result is ActionResult.SUCCEEDED
        assert_allclose(drone.position[0], 1.0, atol=0.021)
        assert len(drone.commands) == pytest.approx(50, abs=1)

    def test_zero_duration_succeeds_without_commanding(self):
        """Nothing to do for a non-positive duration."""
        drone = PointMassDrone()
        assert drone.move_by_velocity(1.0, 0.0, 0.0, 0.0) is ActionResult.SUCCEEDED
        assert drone.commands == []

    def test_move_by_angle(self):
        """Attitude command is repeated each period."""
        drone = PointMassDrone()
        result = drone.move_by_angle(0.1, 0.0, -5.0, 0.0, 0.1)
        assert result is ActionResult.SUCCEEDED
        assert all(cmd[0] == "roll_pitch_z" for cmd in drone.commands)
        assert drone.position[2] == -5.0

    def test_move_by_velocity_z_holds_altitude(self):
        """Horizontal velocity with altitude hold."""
        drone = PointMassDrone()
        drone.move_by_velocity_z(0.0, 2.0, -4.0, 0.5)
        assert_allclose(drone.position[1], 1.0, atol=0.05)
        assert drone.position[2] == -4.0

    def test_rotate_by_yaw_rate(self):
        """Yaw integrates the commanded rate."""
        drone = PointMassDrone()
        drone.rotate_by_yaw_rate(90.0, 0.5)
        assert_allclose(drone.yaw_deg, 45.0, atol=2.0)
        assert all(cmd[4].is_rate for cmd in drone.commands)

    def test_forward_only_points_along_velocity(self):
        """FORWARD_ONLY yaws toward the direction of travel."""
        drone = PointMassDrone()
        drone.move_by_velocity(
            0.0, 1.0, 0.0, 0.1,
            drivetrain=DrivetrainType.FORWARD_ONLY,
            yaw_mode=YawMode(is_rate=False, yaw_or_rate=0.0),
        )
        yaw_mode = drone.commands[0][4]
        assert not yaw_mode.is_rate
        assert_allclose(yaw_mode.yaw_or_rate, 90.0)

    def test_forward_only_small_velocity_holds_yaw(self):
        """A heading shorter than the distance accuracy holds the current yaw."""
        drone = PointMassDrone()
        drone.move_by_velocity(
            0.01, 0.0, 0.0, 0.1,
            drivetrain=DrivetrainType.FORWARD_ONLY,
            yaw_mode=YawMode(is_rate=False, yaw_or_rate=30.0),
        )
        assert drone.commands[0][4] == YawMode.zero_rate()

    def test_cancel_mid_move(self):
        """Cancellation is observed at the next iteration boundary."""
        drone = PointMassDrone()
        token = CancelToken()
        drone.on_tick = lambda: token.cancel() if len(drone.commands) >= 5 else None
        result = drone.move_by_velocity(1.0, 0.0, 0.0, 10.0, cancel=token)
        assert result is ActionResult.CANCELED
        assert len(drone.commands) == 5

    def test_already_cancelled(self):
        """A cancelled token returns CANCELED without commanding."""
        drone = PointMassDrone()
        token = CancelToken()
        token.cancel()
        assert drone.move_by_velocity(1.0, 0.0, 0.0, 1.0, cancel=token) is ActionResult.CANCELED
        assert drone.commands == []


# =============================================================================
# Goal-seeking Move Tests
# =============================================================================


class TestGoalMoves:
    """Test helpers that run until a target is reached."""

    def test_move_to_position_reaches_target(self):
        """Straight-line flight ends within the distance accuracy."""
        drone = PointMassDrone()
        result = drone.move_to_position(3.0, 4.0, -2.0, 5.0, timeout=10.0)
        assert result is ActionResult.SUCCEEDED
        assert np.linalg.norm(drone.position - [3.0, 4.0, -2.0]) <= 0.1

    def test_move_to_position_speed_capped(self):
        """Commanded speed never exceeds the requested velocity."""
        drone = PointMassDrone()
        drone.move_to_position(10.0, 0.0, 0.0, 2.0, timeout=10.0)
        speeds = [np.linalg.norm(cmd[1:4]) for cmd in drone.commands]
        assert max(speeds) <= 2.0 + 1e-9

    def test_move_to_position_timeout_fails(self):
        """Running out of time is a failure, not a success."""
        drone = PointMassDrone()
        result = drone.move_to_position(100.0, 0.0, 0.0, 1.0, timeout=1.0)
        assert result is ActionResult.FAILED

    def test_move_to_position_already_there(self):
        """A target within accuracy succeeds immediately."""
        drone = PointMassDrone(position=(1.0, 1.0, 1.0))
        assert drone.move_to_position(1.0, 1.0, 1.05, 1.0) is ActionResult.SUCCEEDED
        assert drone.commands == []

    def test_move_to_position_invalid_velocity(self):
        """Velocity must be positive."""
        drone = PointMassDrone()
        with pytest.raises(ValueError):
            drone.move_to_position(1.0, 0.0, 0.0, 0.0)

    def test_move_to_z_keeps_horizontal(self):
        """move_to_z changes only altitude."""
        drone = PointMassDrone(position=(2.0, -1.0, 0.0))
        result = drone.move_to_z(-3.0, 2.0, timeout=5.0)
        assert result is ActionResult.SUCCEEDED
        assert_allclose(drone.position[:2], [2.0, -1.0], atol=1e-9)
        assert_allclose(drone.position[2], -3.0, atol=0.1)

    def test_rotate_to_yaw(self):
        """Yaw setpoint is held at the current altitude until reached."""
        drone = PointMassDrone(position=(0.0, 0.0, -2.0))
        result = drone.rotate_to_yaw(120.0, timeout=1.0)
        assert result is ActionResult.SUCCEEDED
        assert_allclose(math.degrees(get_yaw(drone.get_orientation())), 120.0, atol=1e-6)
        assert drone.commands[0][3] == -2.0

    def test_rotate_to_yaw_within_margin(self):
        """Already within margin needs no command."""
        drone = PointMassDrone()
        assert drone.rotate_to_yaw(3.0, margin=5.0) is ActionResult.SUCCEEDED
        assert drone.commands == []


# =============================================================================
# Failure Propagation Tests
# =============================================================================


class TestFailures:
    """Test numeric and adapter failures."""

    def test_nan_pose_raises(self):
        """An uninitialized (NaN) pose is never commanded from."""
        drone = PointMassDrone()
        drone.position = nan_vector()
        with pytest.raises(NumericInvalidError):
            drone.move_by_velocity(1.0, 0.0, 0.0, 1.0)
        with pytest.raises(NumericInvalidError):
            drone.move_to_position(1.0, 0.0, 0.0, 1.0)
        assert drone.commands == []

    def test_command_not_implemented_propagates(self):
        """Adapter command failures reach the caller unchanged."""
        drone = UnwiredDrone()
        with pytest.raises(VehicleCommandNotImplementedError):
            drone.move_by_velocity(1.0, 0.0, 0.0, 1.0)
