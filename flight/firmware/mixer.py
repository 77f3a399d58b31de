"""Rate-mode quadcopter firmware.

MixerFirmware is a minimal acro-mode flight controller that runs against a
SimulatedBoard:

1. Arm state follows switch 1 (RC channel 4, high = armed).
2. Sticks are read as body-rate targets: roll, pitch and yaw in [-1, 1]
   scaled by max_rates.
3. A vector PID on (target - gyro) yields roll/pitch/yaw torque commands.
4. Torques and throttle are mixed into four QuadX motor outputs, clamped to
   [0, 1].

QuadX motor order (top view, nose up):

    2 (FL, CW)   0 (FR, CCW)
    1 (RL, CCW)  3 (RR, CW)

Example:
    >>> from flight.firmware import CommLink, MixerFirmware, SimulatedBoard
    >>>
    >>> board = SimulatedBoard(imu_source)
    >>> firmware = MixerFirmware(board, CommLink())
    >>> firmware.setup()
    >>> # every physics tick:
    >>> board.notify_sensor_updated()
    >>> firmware.loop()
"""

import logging
from typing import Protocol, runtime_checkable

import numpy as np
from beartype import beartype
from numpy.typing import NDArray

from flight.firmware.board import THROTTLE_CHANNEL, SimulatedBoard
from flight.firmware.comm_link import CommLink
from flight.firmware.pid import PIDController, PIDGains

logger = logging.getLogger(__name__)

ROLL_CHANNEL = 0
YAW_CHANNEL = 1
PITCH_CHANNEL = 3
ARM_CHANNEL = 4

QUADX_MOTOR_COUNT = 4

# Rows: motors 0-3. Columns: roll, pitch, yaw torque factors.
QUADX_MIX = np.array([
    [-1.0,  1.0,  1.0],
    [ 1.0, -1.0,  1.0],
    [ 1.0,  1.0, -1.0],
    [-1.0, -1.0, -1.0],
])

DEFAULT_RATE_GAINS = PIDGains(kp=0.15, ki=0.05, kd=0.002)
DEFAULT_MAX_RATES = (np.radians(200.0), np.radians(200.0), np.radians(120.0))


@runtime_checkable
class Firmware(Protocol):
    """Flight firmware driven by the controller once per tick."""

    def setup(self) -> None:
        ...

    def loop(self) -> None:
        ...


# =============================================================================
# Stick decoding
# =============================================================================


def _pwm_to_angle(pwm: int) -> float:
    return float(np.clip((pwm - 1500) / 500.0, -1.0, 1.0))


def _pwm_to_thrust(pwm: int) -> float:
    return float(np.clip((pwm - 1000) / 1000.0, 0.0, 1.0))


# =============================================================================
# Mixer Firmware
# =============================================================================


@beartype
class MixerFirmware:
    """Acro-mode rate controller with a QuadX mixer."""

    def __init__(
        self,
        board: SimulatedBoard,
        comm_link: CommLink,
        rate_gains: PIDGains = DEFAULT_RATE_GAINS,
        max_rates: tuple[float, float, float] = DEFAULT_MAX_RATES,
        torque_limit: float = 0.3,
        default_dt: float = 0.003,
    ) -> None:
        """Initialize firmware.

        Args:
            board: Board providing RC input, IMU and motor outputs
            comm_link: Status message sink
            rate_gains: Gains of the body-rate PID
            max_rates: Full-stick body rates for roll, pitch, yaw [rad/s]
            torque_limit: Per-axis limit on normalized torque commands
            default_dt: Loop period used until IMU timestamps advance [s]
        """
        if board.motor_count < QUADX_MOTOR_COUNT:
            raise ValueError(f"QuadX mixer needs {QUADX_MOTOR_COUNT} motors, board has {board.motor_count}")
        self.board = board
        self.comm_link = comm_link
        self.max_rates = np.array(max_rates)
        self.default_dt = default_dt
        self.rate_pid = PIDController.from_gains(
            rate_gains,
            size=3,
            output_limits=(-torque_limit, torque_limit),
            integral_limits=(-1.0, 1.0),
        )

        self.armed = False
        self._last_imu_time: float | None = None

    def setup(self) -> None:
        """Initialize firmware state."""
        self.armed = False
        self._last_imu_time = None
        self.rate_pid.reset()
        self._write_outputs(np.zeros(QUADX_MOTOR_COUNT))
        self.comm_link.send_status("Firmware ready")

    def loop(self) -> None:
        """One control cycle: arm check, rate loop, mix, write motors."""
        self._update_arming()
        imu = self.board.read_imu()

        if not self.armed:
            self._write_outputs(np.zeros(QUADX_MOTOR_COUNT))
            return

        throttle = _pwm_to_thrust(self.board.read_input_channel(THROTTLE_CHANNEL))
        sticks = np.array([
            _pwm_to_angle(self.board.read_input_channel(ROLL_CHANNEL)),
            -_pwm_to_angle(self.board.read_input_channel(PITCH_CHANNEL)),
            _pwm_to_angle(self.board.read_input_channel(YAW_CHANNEL)),
        ])
        target_rates = sticks * self.max_rates

        gyro = imu.angular_velocity if imu is not None else np.zeros(3)
        torque = self.rate_pid.update(target_rates - gyro, self._loop_dt(imu))

        self._write_outputs(self.mix(throttle, torque))

    def mix(self, throttle: float, torque: NDArray[np.floating]) -> NDArray[np.float64]:
        """Mix throttle and [roll, pitch, yaw] torques into motor outputs in [0, 1]."""
        return np.clip(throttle + QUADX_MIX @ torque, 0.0, 1.0)

    def _update_arming(self) -> None:
        armed = self.board.read_input_channel(ARM_CHANNEL) > 1500
        if armed == self.armed:
            return
        self.armed = armed
        self.rate_pid.reset()
        message = "Armed" if armed else "Disarmed"
        logger.info("Firmware %s", message.lower())
        self.comm_link.send_status(message)

    def _loop_dt(self, imu) -> float:
        if imu is None:
            return self.default_dt
        last, self._last_imu_time = self._last_imu_time, imu.timestamp
        if last is None or imu.timestamp <= last:
            return self.default_dt
        return imu.timestamp - last

    def _write_outputs(self, outputs: NDArray[np.floating]) -> None:
        for i, signal in enumerate(outputs):
            self.board.write_motor(i, float(signal))
