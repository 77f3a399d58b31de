"""Firmware-bridge drone controller.

RosFlightController runs a flight firmware inside the simulation loop: each
tick it latches the IMU on the board, runs one firmware cycle, and exposes
the board's motor outputs as actuator signals. RC input is forwarded to the
board as PWM channels.

Setpoint commands are not wired to the firmware and raise
VehicleCommandNotImplementedError; actions succeed immediately.

Example:
    >>> from drone import Environment, EnvironmentState, GeoPoint, KinematicsState
    >>> from flight.control import ControllerConfig, MultirotorParams, RosFlightController
    >>>
    >>> kinematics = KinematicsState()
    >>> environment = Environment(EnvironmentState(geo_point=GeoPoint(47.64, -122.14, 122.0)))
    >>>
    >>> controller = RosFlightController(None, MultirotorParams(), ControllerConfig())
    >>> controller.initialize_physics(environment, kinematics)
    >>> controller.start()
    >>>
    >>> # every tick
    >>> environment.update()
    >>> controller.update()
    >>> signals = [controller.get_vertex_control_signal(i) for i in range(4)]
"""

import logging
import math

import numpy as np
from beartype import beartype
from numpy.typing import NDArray

from drone.dynamics.frames import nan_quaternion, nan_vector
from drone.dynamics.kinematics import KinematicsState
from drone.environment.earth import GeoPoint
from drone.environment.environment import Environment
from flight.control.base import DroneController, YawMode
from flight.control.cancelable import ActionResult, CancelToken, Clock
from flight.control.errors import (
    ActuatorIndexOutOfRangeError,
    InvalidModeTransitionError,
    VehicleCommandNotImplementedError,
)
from flight.control.params import ControllerConfig, MultirotorParams, SafetyParams
from flight.control.rc import RCData, rc_to_pwm_channels
from flight.firmware.board import KinematicsImu, SensorSource, SimulatedBoard
from flight.firmware.comm_link import CommLink
from flight.firmware.mixer import Firmware, MixerFirmware

logger = logging.getLogger(__name__)

COMMAND_PERIOD = 1.0 / 50.0  # 50 Hz
TAKEOFF_Z = -3.0  # clear of rotor backwash; NED, negative is up
DISTANCE_ACCURACY = 0.5

# Counter-clockwise rotor index -> QuadX motor index
ROTOR_TO_QUADX = (1, 2, 3, 0)


@beartype
class RosFlightController(DroneController):
    """Drone controller bridging to an in-process flight firmware."""

    def __init__(
        self,
        sensors: SensorSource | None,
        vehicle_params: MultirotorParams,
        config: ControllerConfig = ControllerConfig(),
        board: SimulatedBoard | None = None,
        comm_link: CommLink | None = None,
        firmware: Firmware | None = None,
        clock: Clock | None = None,
    ) -> None:
        """Initialize controller and run firmware setup.

        Args:
            sensors: IMU source for the board; if None, an ideal IMU is built
                from the kinematics passed to initialize_physics()
            vehicle_params: Multirotor parameters (rotor count)
            config: Controller configuration
            board: Board override; defaults to a SimulatedBoard on `sensors`
            comm_link: Status link override
            firmware: Firmware override; defaults to MixerFirmware
            clock: Clock used by the move helpers and to stamp the built-in IMU
        """
        super().__init__(clock)
        self.vehicle_params = vehicle_params
        self.config = config

        self.board = board or SimulatedBoard(sensors, motor_count=vehicle_params.rotor_count)
        self.comm_link = comm_link or CommLink()
        self.firmware = firmware or MixerFirmware(self.board, self.comm_link)
        self.firmware.setup()

        self._environment: Environment | None = None
        self._kinematics: KinematicsState | None = None
        self._rc_data = RCData()
        self._last_signals = [0.0] * len(ROTOR_TO_QUADX)
        self._safety_params = SafetyParams()

    def initialize_physics(self, environment: Environment, kinematics: KinematicsState) -> None:
        """Bind the environment and kinematics owned by the physics loop.

        Both are read, never written, and never cached across ticks.
        """
        self._environment = environment
        self._kinematics = kinematics
        if self.board.sensors is None:
            self.board.sensors = KinematicsImu(kinematics, environment, self.clock)

    # -------------------------------------------------------------------------
    # VehicleController
    # -------------------------------------------------------------------------

    def reset(self) -> None:
        self.board.system_reset()
        self._rc_data = RCData()
        self._last_signals = [0.0] * len(ROTOR_TO_QUADX)

    def update(self) -> None:
        if not self._enter_update():
            return
        self.board.notify_sensor_updated()
        self.firmware.loop()

    def get_vertex_count(self) -> int:
        return self.vehicle_params.rotor_count

    def get_vertex_control_signal(self, index: int) -> float:
        count = min(self.vehicle_params.rotor_count, len(ROTOR_TO_QUADX))
        if not 0 <= index < count:
            raise ActuatorIndexOutOfRangeError(index, count)

        signal = self.board.get_motor_control_signal(ROTOR_TO_QUADX[index])
        if math.isnan(signal):
            logger.warning(
                "Firmware produced NaN for actuator %d; holding %.3f",
                index, self._last_signals[index],
            )
            return self._last_signals[index]

        self._last_signals[index] = signal
        return signal

    def get_status_messages(self) -> list[str]:
        return self.comm_link.get_status_messages()

    def report_telemetry(self, render_time: float) -> None:
        logger.debug("Render time %.4f s", render_time)

    def is_offboard_mode(self) -> bool:
        return False

    def is_simulation_mode(self) -> bool:
        return True

    def set_offboard_mode(self, is_set: bool) -> None:
        if is_set:
            raise VehicleCommandNotImplementedError("Offboard mode is not supported by this firmware bridge")

    def set_simulation_mode(self, is_set: bool) -> None:
        if not is_set:
            raise InvalidModeTransitionError(
                "simulation", is_set, "Firmware bridge only runs in simulation"
            )

    # -------------------------------------------------------------------------
    # Kinematics and geodesy
    # -------------------------------------------------------------------------

    def get_position(self) -> NDArray[np.float64]:
        if self._kinematics is None:
            return nan_vector()
        return self._kinematics.position.copy()

    def get_velocity(self) -> NDArray[np.float64]:
        if self._kinematics is None:
            return nan_vector()
        return self._kinematics.linear_velocity.copy()

    def get_orientation(self) -> NDArray[np.float64]:
        if self._kinematics is None:
            return nan_quaternion()
        return self._kinematics.orientation.copy()

    def get_home_point(self) -> GeoPoint:
        if self._environment is None or not self._environment.is_initialized:
            return GeoPoint.nan()
        return self._environment.get_initial_state().geo_point

    def get_gps_location(self) -> GeoPoint:
        if self._environment is None or not self._environment.is_initialized:
            return GeoPoint.nan()
        return self._environment.get_state().geo_point

    # -------------------------------------------------------------------------
    # Remote control
    # -------------------------------------------------------------------------

    def get_rc_data(self) -> RCData:
        return self._rc_data

    def set_rc_data(self, rc: RCData) -> None:
        if not rc.is_connected:
            return
        for channel, pwm in enumerate(rc_to_pwm_channels(rc)):
            self.board.set_input_channel(channel, pwm)
        self._rc_data = rc

    def get_remote_control_id(self) -> int:
        return self.config.remote_control_id

    # -------------------------------------------------------------------------
    # Actions
    # -------------------------------------------------------------------------

    def _complete_action(self, name: str, cancel: CancelToken) -> ActionResult:
        if cancel.is_cancelled:
            return ActionResult.CANCELED
        logger.debug("%s: accepted without firmware handshake", name)
        return ActionResult.SUCCEEDED

    def arm_disarm(self, arm: bool, cancel: CancelToken) -> ActionResult:
        return self._complete_action("arm" if arm else "disarm", cancel)

    def takeoff(self, max_wait_seconds: float, cancel: CancelToken) -> ActionResult:
        return self._complete_action("takeoff", cancel)

    def land(self, cancel: CancelToken) -> ActionResult:
        return self._complete_action("land", cancel)

    def go_home(self, cancel: CancelToken) -> ActionResult:
        return self._complete_action("go_home", cancel)

    def hover(self, cancel: CancelToken) -> ActionResult:
        return self._complete_action("hover", cancel)

    # -------------------------------------------------------------------------
    # Constants
    # -------------------------------------------------------------------------

    def get_command_period(self) -> float:
        return COMMAND_PERIOD

    def get_takeoff_z(self) -> float:
        return TAKEOFF_Z

    def get_distance_accuracy(self) -> float:
        return DISTANCE_ACCURACY

    def get_vehicle_params(self) -> SafetyParams:
        return self._safety_params

    # -------------------------------------------------------------------------
    # Setpoint commands
    # -------------------------------------------------------------------------

    def command_roll_pitch_z(self, pitch: float, roll: float, z: float, yaw: float) -> None:
        raise VehicleCommandNotImplementedError("command_roll_pitch_z is not wired to the firmware")

    def command_velocity(self, vx: float, vy: float, vz: float, yaw_mode: YawMode) -> None:
        raise VehicleCommandNotImplementedError("command_velocity is not wired to the firmware")

    def command_velocity_z(self, vx: float, vy: float, z: float, yaw_mode: YawMode) -> None:
        raise VehicleCommandNotImplementedError("command_velocity_z is not wired to the firmware")

    def command_position(self, x: float, y: float, z: float, yaw_mode: YawMode) -> None:
        raise VehicleCommandNotImplementedError("command_position is not wired to the firmware")
