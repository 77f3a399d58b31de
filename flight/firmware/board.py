"""Simulated flight-controller board.

The board is the firmware's view of the hardware: RC input channels as PWM
pulse widths, an IMU that is latched when the simulation signals a new
sample, and per-motor output signals.

Example:
    >>> from flight.firmware.board import KinematicsImu, SimulatedBoard
    >>>
    >>> board = SimulatedBoard(KinematicsImu(kinematics, environment))
    >>> board.set_input_channel(2, 1500)  # half throttle
    >>> board.notify_sensor_updated()
    >>> imu = board.read_imu()
"""

import logging
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

import numpy as np
from beartype import beartype
from numpy.typing import NDArray

from drone.dynamics.frames import transform_to_body_frame
from drone.dynamics.kinematics import KinematicsState
from drone.environment.environment import Environment
from flight.control.cancelable import Clock
from flight.control.errors import ActuatorIndexOutOfRangeError
from flight.control.rc import PWM_MID, PWM_MIN, RC_CHANNEL_COUNT

logger = logging.getLogger(__name__)

THROTTLE_CHANNEL = 2

# =============================================================================
# IMU
# =============================================================================


def _zeros() -> NDArray[np.float64]:
    return np.zeros(3)


@beartype
@dataclass
class ImuReading:
    """IMU sample in the body frame.

    Attributes:
        angular_velocity: Gyro rates [p, q, r] [rad/s]
        linear_acceleration: Specific force [m/s^2]
        timestamp: Sample time [s]
    """
    angular_velocity: NDArray[np.float64] = field(default_factory=_zeros)
    linear_acceleration: NDArray[np.float64] = field(default_factory=_zeros)
    timestamp: float = 0.0

    def __post_init__(self) -> None:
        if self.angular_velocity.shape != (3,):
            raise ValueError(f"angular_velocity must be shape (3,), got {self.angular_velocity.shape}")
        if self.linear_acceleration.shape != (3,):
            raise ValueError(
                f"linear_acceleration must be shape (3,), got {self.linear_acceleration.shape}"
            )


@runtime_checkable
class SensorSource(Protocol):
    """Anything that can produce an IMU sample."""

    def get_imu(self) -> ImuReading:
        ...


@beartype
class KinematicsImu:
    """Ideal IMU derived from the integrator's kinematic state.

    Gyro is the body angular velocity. The accelerometer measures specific
    force, i.e. linear acceleration minus gravity, rotated into the body frame.
    Samples are stamped with `clock` time, or 0 without a clock.
    """

    def __init__(
        self,
        kinematics: KinematicsState,
        environment: Environment | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.kinematics = kinematics
        self.environment = environment
        self.clock = clock

    def get_imu(self) -> ImuReading:
        gravity = self.environment.get_state().gravity if self.environment is not None else np.zeros(3)
        specific_force = self.kinematics.linear_acceleration - gravity
        return ImuReading(
            angular_velocity=self.kinematics.angular_velocity.copy(),
            linear_acceleration=transform_to_body_frame(specific_force, self.kinematics.orientation),
            timestamp=self.clock.now() if self.clock is not None else 0.0,
        )


# =============================================================================
# Board
# =============================================================================


@beartype
class SimulatedBoard:
    """RC inputs, IMU latch and motor outputs for a simulated firmware."""

    def __init__(
        self,
        sensors: SensorSource | None = None,
        motor_count: int = 4,
        channel_count: int = RC_CHANNEL_COUNT,
    ) -> None:
        """Initialize board.

        Args:
            sensors: IMU source; without one the IMU is never updated
            motor_count: Number of motor outputs
            channel_count: Number of RC input channels
        """
        self.sensors = sensors
        self.motor_count = motor_count
        self.channel_count = channel_count
        self.system_reset()

    def system_reset(self) -> None:
        """Neutral sticks, zero throttle, switches off, motors stopped."""
        self._channels = [PWM_MID] * self.channel_count
        self._channels[THROTTLE_CHANNEL] = PWM_MIN
        for i in range(4, self.channel_count):
            self._channels[i] = PWM_MIN
        self._motors = np.zeros(self.motor_count)
        self._imu: ImuReading | None = None
        self._imu_fresh = False
        logger.debug("Board reset")

    # -------------------------------------------------------------------------
    # RC input
    # -------------------------------------------------------------------------

    def _check_channel(self, channel: int) -> None:
        if not 0 <= channel < self.channel_count:
            raise IndexError(f"RC channel {channel} out of range for {self.channel_count} channels")

    def set_input_channel(self, channel: int, pwm: int) -> None:
        """Set the pulse width [us] on an RC input channel."""
        self._check_channel(channel)
        self._channels[channel] = pwm

    def read_input_channel(self, channel: int) -> int:
        """Pulse width [us] on an RC input channel."""
        self._check_channel(channel)
        return self._channels[channel]

    # -------------------------------------------------------------------------
    # IMU
    # -------------------------------------------------------------------------

    def notify_sensor_updated(self) -> None:
        """Latch a new IMU sample from the sensor source."""
        if self.sensors is None:
            return
        self._imu = self.sensors.get_imu()
        self._imu_fresh = True

    def read_imu(self) -> ImuReading | None:
        """Latest IMU sample, None until the first notify_sensor_updated()."""
        self._imu_fresh = False
        return self._imu

    @property
    def has_new_imu(self) -> bool:
        """Whether a sample was latched since the last read_imu()."""
        return self._imu_fresh

    # -------------------------------------------------------------------------
    # Motor output
    # -------------------------------------------------------------------------

    def _check_motor(self, index: int) -> None:
        if not 0 <= index < self.motor_count:
            raise ActuatorIndexOutOfRangeError(index, self.motor_count)

    def write_motor(self, index: int, signal: float) -> None:
        """Set a motor output; finite values are clamped to [0, 1]."""
        self._check_motor(index)
        self._motors[index] = np.clip(signal, 0.0, 1.0)

    def get_motor_control_signal(self, index: int) -> float:
        """Current output of a motor in [0, 1] (NaN if the firmware wrote NaN)."""
        self._check_motor(index)
        return float(self._motors[index])
