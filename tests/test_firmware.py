"""Unit tests for the firmware collaborators - PID, board, comm link, mixer."""

import numpy as np
import pytest
from numpy.testing import assert_allclose

from drone.dynamics.frames import Pose, to_quaternion
from drone.dynamics.kinematics import KinematicsState
from drone.environment.earth import GeoPoint
from drone.environment.environment import Environment, EnvironmentState
from drone.environment.gravity import gravity_at_altitude
from flight.control.cancelable import SimulationClock
from flight.control.errors import ActuatorIndexOutOfRangeError
from flight.firmware.board import ImuReading, KinematicsImu, SimulatedBoard
from flight.firmware.comm_link import CommLink
from flight.firmware.mixer import QUADX_MIX, MixerFirmware
from flight.firmware.pid import PIDController, PIDGains

# =============================================================================
# PID Tests
# =============================================================================


class TestPIDController:
    """Test the vector PID controller."""

    def test_proportional_only(self):
        """P-only output is kp * error per axis."""
        pid = PIDController(kp=2.0)
        assert_allclose(pid.update(np.array([1.0, -0.5, 0.0]), 0.01), [2.0, -1.0, 0.0])

    def test_integral_accumulates(self):
        """Integral grows with constant error."""
        pid = PIDController(kp=0.0, ki=1.0)
        for _ in range(10):
            out = pid.update(np.array([1.0, 0.0, -1.0]), 0.1)
        assert_allclose(out, [1.0, 0.0, -1.0], atol=1e-12)

    def test_integral_clamped(self):
        """Anti-windup caps the integral."""
        pid = PIDController(kp=0.0, ki=1.0, integral_limits=(-0.5, 0.5))
        for _ in range(100):
            pid.update(np.array([1.0, 1.0, 1.0]), 0.1)
        assert_allclose(pid.integral, [0.5, 0.5, 0.5])

    def test_output_limits(self):
        """Output is saturated per axis."""
        pid = PIDController(kp=10.0, output_limits=(-1.0, 1.0))
        assert_allclose(pid.update(np.array([1.0, -1.0, 0.05]), 0.01), [1.0, -1.0, 0.5])

    def test_derivative_unfiltered(self):
        """With filter weight 1 the derivative is the raw difference quotient."""
        pid = PIDController(kp=0.0, kd=1.0, derivative_filter=1.0, size=1)
        pid.update(np.array([0.0]), 0.1)
        assert_allclose(pid.update(np.array([1.0]), 0.1), [10.0])

    def test_reset(self):
        """reset() clears integral and derivative history."""
        pid = PIDController(ki=1.0)
        pid.update(np.ones(3), 0.1)
        pid.reset()
        assert_allclose(pid.integral, np.zeros(3))

    def test_non_positive_dt(self):
        """dt <= 0 gives zero output."""
        assert_allclose(PIDController().update(np.ones(3), 0.0), np.zeros(3))

    def test_shape_mismatch(self):
        """Error vector length must match the axis count."""
        with pytest.raises(ValueError):
            PIDController(size=3).update(np.ones(2), 0.1)

    def test_from_gains(self):
        """Gains round-trip through PIDGains."""
        gains = PIDGains(kp=1.5, ki=0.2, kd=0.01)
        assert PIDController.from_gains(gains).gains == gains


# =============================================================================
# Board Tests
# =============================================================================


class StaticImu:
    """Sensor source returning a fixed sample."""

    def __init__(self, reading: ImuReading):
        self.reading = reading
        self.calls = 0

    def get_imu(self) -> ImuReading:
        self.calls += 1
        return self.reading


class TestSimulatedBoard:
    """Test RC inputs, IMU latch and motor outputs."""

    def test_neutral_defaults(self):
        """Centered sticks, zero throttle, switches off."""
        board = SimulatedBoard()
        assert [board.read_input_channel(i) for i in range(4)] == [1500, 1500, 1000, 1500]
        assert [board.read_input_channel(i) for i in range(4, 12)] == [1000] * 8

    def test_channel_range(self):
        """Only channels 0-11 exist."""
        board = SimulatedBoard()
        with pytest.raises(IndexError):
            board.set_input_channel(12, 1500)

    def test_motor_clamped(self):
        """Motor outputs are clamped to [0, 1]."""
        board = SimulatedBoard()
        board.write_motor(0, 1.5)
        board.write_motor(1, -0.2)
        assert board.get_motor_control_signal(0) == 1.0
        assert board.get_motor_control_signal(1) == 0.0

    def test_motor_index_checked(self):
        """Bad motor index is an actuator index error."""
        with pytest.raises(ActuatorIndexOutOfRangeError):
            SimulatedBoard(motor_count=4).get_motor_control_signal(4)

    def test_imu_latched_on_notify(self):
        """The IMU is sampled only when notified."""
        source = StaticImu(ImuReading(angular_velocity=np.array([0.1, 0.0, 0.0])))
        board = SimulatedBoard(source)
        assert board.read_imu() is None
        board.notify_sensor_updated()
        assert board.has_new_imu
        assert_allclose(board.read_imu().angular_velocity, [0.1, 0.0, 0.0])
        assert not board.has_new_imu
        assert source.calls == 1

    def test_system_reset(self):
        """Reset restores neutral inputs and stops motors."""
        board = SimulatedBoard()
        board.set_input_channel(2, 1800)
        board.write_motor(0, 0.7)
        board.system_reset()
        assert board.read_input_channel(2) == 1000
        assert board.get_motor_control_signal(0) == 0.0


class TestKinematicsImu:
    """Test the ideal IMU."""

    def test_at_rest_measures_gravity_reaction(self):
        """A level vehicle at rest reads -g along body z."""
        env = Environment(EnvironmentState(geo_point=GeoPoint(0.0, 0.0, 0.0)))
        imu = KinematicsImu(KinematicsState(), env).get_imu()
        assert_allclose(imu.linear_acceleration, [0.0, 0.0, -gravity_at_altitude(0.0)], atol=1e-12)

    def test_gyro_is_body_rate(self):
        """Gyro passes body angular velocity through."""
        kinematics = KinematicsState(angular_velocity=np.array([0.1, 0.2, 0.3]))
        assert_allclose(KinematicsImu(kinematics).get_imu().angular_velocity, [0.1, 0.2, 0.3])

    def test_rolled_vehicle(self):
        """Rolled 90 deg right, gravity reaction appears on body y."""
        kinematics = KinematicsState(
            pose=Pose(np.zeros(3), to_quaternion(0.0, np.pi / 2, 0.0))
        )
        env = Environment(EnvironmentState(geo_point=GeoPoint(0.0, 0.0, 0.0)))
        accel = KinematicsImu(kinematics, env).get_imu().linear_acceleration
        assert_allclose(abs(accel[1]), gravity_at_altitude(0.0), rtol=1e-9)
        assert_allclose(accel[2], 0.0, atol=1e-9)

    def test_timestamp_follows_clock(self):
        """Sample time is read from the clock."""
        clock = SimulationClock()
        imu = KinematicsImu(KinematicsState(), clock=clock)
        clock.sleep(0.01)
        assert imu.get_imu().timestamp == pytest.approx(0.01)

    def test_no_clock_stamps_zero(self):
        """Without a clock every sample is stamped 0."""
        assert KinematicsImu(KinematicsState()).get_imu().timestamp == 0.0


# =============================================================================
# Comm Link Tests
# =============================================================================


class TestCommLink:
    """Test status message queue."""

    def test_drain(self):
        """Messages are returned oldest first and cleared."""
        link = CommLink()
        link.send_status("a")
        link.send_status("b")
        assert link.get_status_messages() == ["a", "b"]
        assert link.get_status_messages() == []

    def test_bounded(self):
        """Oldest messages are dropped when full."""
        link = CommLink(max_messages=2)
        for message in ("a", "b", "c"):
            link.send_status(message)
        assert len(link) == 2
        assert link.get_status_messages() == ["b", "c"]


# =============================================================================
# Mixer Firmware Tests
# =============================================================================


def armed_firmware(throttle_pwm: int = 1500) -> tuple[MixerFirmware, SimulatedBoard, CommLink]:
    board = SimulatedBoard(StaticImu(ImuReading()))
    link = CommLink()
    firmware = MixerFirmware(board, link)
    firmware.setup()
    board.set_input_channel(2, throttle_pwm)
    board.set_input_channel(4, 2000)
    return firmware, board, link


class TestMixerFirmware:
    """Test arming, rate loop and QuadX mixing."""

    def test_setup_reports_ready(self):
        """Setup sends a status message and leaves motors stopped."""
        board = SimulatedBoard()
        link = CommLink()
        MixerFirmware(board, link).setup()
        assert link.get_status_messages() == ["Firmware ready"]
        assert [board.get_motor_control_signal(i) for i in range(4)] == [0.0] * 4

    def test_disarmed_ignores_throttle(self):
        """Without the arm switch motors stay at zero."""
        board = SimulatedBoard()
        firmware = MixerFirmware(board, CommLink())
        firmware.setup()
        board.set_input_channel(2, 2000)
        firmware.loop()
        assert not firmware.armed
        assert [board.get_motor_control_signal(i) for i in range(4)] == [0.0] * 4

    def test_arm_and_disarm_messages(self):
        """Arming follows switch 1 and is reported once per change."""
        firmware, board, link = armed_firmware()
        link.get_status_messages()
        firmware.loop()
        firmware.loop()
        assert firmware.armed
        board.set_input_channel(4, 1000)
        firmware.loop()
        assert not firmware.armed
        assert link.get_status_messages() == ["Armed", "Disarmed"]

    def test_level_hover(self):
        """Centered sticks and zero gyro give equal outputs at throttle."""
        firmware, board, _ = armed_firmware(throttle_pwm=1600)
        board.notify_sensor_updated()
        firmware.loop()
        assert_allclose([board.get_motor_control_signal(i) for i in range(4)], [0.6] * 4)

    def test_mix_roll_right(self):
        """Positive roll torque raises the left motors."""
        firmware, _, _ = armed_firmware()
        out = firmware.mix(0.5, np.array([0.1, 0.0, 0.0]))
        assert_allclose(out, [0.4, 0.6, 0.6, 0.4])

    def test_mix_clamped(self):
        """Mixed outputs stay within [0, 1]."""
        firmware, _, _ = armed_firmware()
        out = firmware.mix(0.95, np.array([0.3, 0.3, 0.3]))
        assert out.max() <= 1.0
        assert out.min() >= 0.0

    def test_mix_matrix_balanced(self):
        """Each torque axis sums to zero across motors (no net thrust change)."""
        assert_allclose(QUADX_MIX.sum(axis=0), np.zeros(3))

    def test_roll_stick_commands_roll_rate(self):
        """Right roll stick at zero gyro raises the left motors."""
        firmware, board, _ = armed_firmware()
        board.set_input_channel(0, 2000)
        board.notify_sensor_updated()
        firmware.loop()
        motors = [board.get_motor_control_signal(i) for i in range(4)]
        assert motors[1] > motors[0]
        assert motors[2] > motors[3]

    def test_requires_four_motors(self):
        """QuadX mixing needs four motor outputs."""
        with pytest.raises(ValueError):
            MixerFirmware(SimulatedBoard(motor_count=3), CommLink())
