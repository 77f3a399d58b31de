"""Vehicle controller contract.

VehicleController is what the physics loop drives: it is updated once per
tick and asked for one normalized control signal per actuator.
DroneController adds the multirotor API surface: kinematic queries, RC
input, long-running actions and setpoint commands, plus move helpers that
loop over the setpoint commands at the controller's command period.

Lifecycle:
    CONSTRUCTED --start()--> STARTED --update()--> RUNNING --stop()--> STOPPED

Per tick the owning loop calls environment.update(), then
controller.update(), then reads get_vertex_control_signal(i) for every
actuator.

Example:
    >>> from flight.control import CancelToken, DrivetrainType, YawMode
    >>>
    >>> controller.start()
    >>> token = CancelToken()
    >>> result = controller.move_to_position(
    ...     10.0, 0.0, -5.0, velocity=2.0,
    ...     drivetrain=DrivetrainType.FORWARD_ONLY,
    ...     yaw_mode=YawMode(is_rate=False, yaw_or_rate=0.0),
    ...     cancel=token,
    ... )
    >>> if not result:
    ...     print(f"move ended: {result.value}")
"""

import logging
import math
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

import numpy as np
from beartype import beartype
from numpy.typing import NDArray

from drone.dynamics.frames import Pose, get_yaw, normalize_angle_degrees, require_finite
from drone.environment.earth import GeoPoint
from flight.control.cancelable import ActionResult, CancelToken, Clock, Waiter, WallClock
from flight.control.params import SafetyParams
from flight.control.rc import RCData

logger = logging.getLogger(__name__)

# =============================================================================
# Command Types
# =============================================================================


class LifecycleState(Enum):
    """Controller lifecycle."""

    CONSTRUCTED = "constructed"
    STARTED = "started"
    RUNNING = "running"
    STOPPED = "stopped"


class DrivetrainType(Enum):
    """How yaw relates to the direction of travel."""

    MAX_DEGREE_OF_FREEDOM = "max_degree_of_freedom"
    FORWARD_ONLY = "forward_only"


@beartype
@dataclass(frozen=True)
class YawMode:
    """Yaw setpoint or yaw rate.

    Attributes:
        is_rate: True if yaw_or_rate is a rate [deg/s], False for an angle [deg]
        yaw_or_rate: Yaw angle [deg] or yaw rate [deg/s]
    """
    is_rate: bool = True
    yaw_or_rate: float = 0.0

    @classmethod
    def zero_rate(cls) -> "YawMode":
        """Hold the current heading."""
        return cls(is_rate=True, yaw_or_rate=0.0)


# =============================================================================
# Vehicle Controller
# =============================================================================


class VehicleController(ABC):
    """Controller for any vehicle driven by the physics loop."""

    def __init__(self) -> None:
        self._lifecycle = LifecycleState.CONSTRUCTED

    @property
    def lifecycle(self) -> LifecycleState:
        return self._lifecycle

    def start(self) -> None:
        """Start the controller. A stopped controller may be started again."""
        if self._lifecycle in (LifecycleState.STARTED, LifecycleState.RUNNING):
            logger.debug("%s already started", type(self).__name__)
            return
        self._lifecycle = LifecycleState.STARTED
        logger.info("%s started", type(self).__name__)

    def stop(self) -> None:
        """Stop the controller; subsequent update() calls are ignored."""
        self._lifecycle = LifecycleState.STOPPED
        logger.info("%s stopped", type(self).__name__)

    def _enter_update(self) -> bool:
        """Advance the lifecycle for one update; False if the tick must be skipped."""
        if self._lifecycle is LifecycleState.STOPPED:
            return False
        if self._lifecycle is LifecycleState.STARTED:
            self._lifecycle = LifecycleState.RUNNING
        return True

    @abstractmethod
    def reset(self) -> None:
        """Return to the initial state."""

    @abstractmethod
    def update(self) -> None:
        """Advance one tick."""

    @abstractmethod
    def get_vertex_count(self) -> int:
        """Number of actuators."""

    @abstractmethod
    def get_vertex_control_signal(self, index: int) -> float:
        """Normalized control signal for an actuator."""

    @abstractmethod
    def get_status_messages(self) -> list[str]:
        """Drain pending status messages."""

    @abstractmethod
    def report_telemetry(self, render_time: float) -> None:
        """Report per-frame telemetry."""

    @abstractmethod
    def set_offboard_mode(self, is_set: bool) -> None:
        """Request or release offboard (API) control."""

    @abstractmethod
    def set_simulation_mode(self, is_set: bool) -> None:
        """Request or release simulation mode."""

    @abstractmethod
    def is_offboard_mode(self) -> bool:
        """Whether the API has control."""

    @abstractmethod
    def is_simulation_mode(self) -> bool:
        """Whether the vehicle runs in simulation."""


# =============================================================================
# Drone Controller
# =============================================================================


class DroneController(VehicleController):
    """Multirotor controller contract and move helpers.

    The move helpers run on the calling thread. Each iteration issues one
    setpoint command and then sleeps for the rest of the command period on
    `clock`; they poll the cancel token once per iteration.
    """

    def __init__(self, clock: Clock | None = None) -> None:
        super().__init__()
        self.clock = clock or WallClock()

    # -------------------------------------------------------------------------
    # Kinematics and geodesy
    # -------------------------------------------------------------------------

    @abstractmethod
    def get_position(self) -> NDArray[np.float64]:
        """Position in the world NED frame [m]."""

    @abstractmethod
    def get_velocity(self) -> NDArray[np.float64]:
        """Linear velocity in the world NED frame [m/s]."""

    @abstractmethod
    def get_orientation(self) -> NDArray[np.float64]:
        """Orientation quaternion [w, x, y, z]."""

    def get_pose(self) -> Pose:
        """Position and orientation as a Pose."""
        return Pose(self.get_position(), self.get_orientation())

    @abstractmethod
    def get_home_point(self) -> GeoPoint:
        """Geodetic home point."""

    @abstractmethod
    def get_gps_location(self) -> GeoPoint:
        """Current geodetic location."""

    # -------------------------------------------------------------------------
    # Remote control
    # -------------------------------------------------------------------------

    @abstractmethod
    def get_rc_data(self) -> RCData:
        """Last remote-control snapshot."""

    @abstractmethod
    def set_rc_data(self, rc: RCData) -> None:
        """Feed a remote-control snapshot."""

    @abstractmethod
    def get_remote_control_id(self) -> int:
        """Index of the remote control bound to this vehicle."""

    # -------------------------------------------------------------------------
    # Actions
    # -------------------------------------------------------------------------

    @abstractmethod
    def arm_disarm(self, arm: bool, cancel: CancelToken) -> ActionResult:
        """Arm or disarm the motors."""

    @abstractmethod
    def takeoff(self, max_wait_seconds: float, cancel: CancelToken) -> ActionResult:
        """Take off to get_takeoff_z()."""

    @abstractmethod
    def land(self, cancel: CancelToken) -> ActionResult:
        """Land at the current location."""

    @abstractmethod
    def go_home(self, cancel: CancelToken) -> ActionResult:
        """Return to the home point."""

    @abstractmethod
    def hover(self, cancel: CancelToken) -> ActionResult:
        """Hold the current position."""

    # -------------------------------------------------------------------------
    # Constants
    # -------------------------------------------------------------------------

    @abstractmethod
    def get_command_period(self) -> float:
        """Period of setpoint commands [s]."""

    @abstractmethod
    def get_takeoff_z(self) -> float:
        """Takeoff altitude as NED z [m] (negative is up)."""

    @abstractmethod
    def get_distance_accuracy(self) -> float:
        """Distance at which a position target counts as reached [m]."""

    @abstractmethod
    def get_vehicle_params(self) -> SafetyParams:
        """Safety tunables."""

    # -------------------------------------------------------------------------
    # Setpoint commands
    # -------------------------------------------------------------------------

    @abstractmethod
    def command_roll_pitch_z(self, pitch: float, roll: float, z: float, yaw: float) -> None:
        """Attitude [rad] with altitude hold at NED z [m]."""

    @abstractmethod
    def command_velocity(self, vx: float, vy: float, vz: float, yaw_mode: YawMode) -> None:
        """World-frame velocity [m/s]."""

    @abstractmethod
    def command_velocity_z(self, vx: float, vy: float, z: float, yaw_mode: YawMode) -> None:
        """Horizontal velocity [m/s] with altitude hold at NED z [m]."""

    @abstractmethod
    def command_position(self, x: float, y: float, z: float, yaw_mode: YawMode) -> None:
        """World-frame position [m]."""

    # -------------------------------------------------------------------------
    # Move helpers
    # -------------------------------------------------------------------------

    @beartype
    def move_by_angle(
        self,
        pitch: float,
        roll: float,
        z: float,
        yaw: float,
        duration: float,
        cancel: CancelToken | None = None,
    ) -> ActionResult:
        """Hold an attitude [rad] and altitude for `duration` seconds."""
        return self._repeat_for(
            lambda: self.command_roll_pitch_z(pitch, roll, z, yaw), duration, cancel
        )

    @beartype
    def move_by_velocity(
        self,
        vx: float,
        vy: float,
        vz: float,
        duration: float,
        drivetrain: DrivetrainType = DrivetrainType.MAX_DEGREE_OF_FREEDOM,
        yaw_mode: YawMode = YawMode(),
        cancel: CancelToken | None = None,
    ) -> ActionResult:
        """Fly at a world-frame velocity for `duration` seconds."""
        yaw_mode = self._adjust_yaw(vx, vy, drivetrain, yaw_mode)
        return self._repeat_for(
            lambda: self.command_velocity(vx, vy, vz, yaw_mode), duration, cancel
        )

    @beartype
    def move_by_velocity_z(
        self,
        vx: float,
        vy: float,
        z: float,
        duration: float,
        drivetrain: DrivetrainType = DrivetrainType.MAX_DEGREE_OF_FREEDOM,
        yaw_mode: YawMode = YawMode(),
        cancel: CancelToken | None = None,
    ) -> ActionResult:
        """Fly at a horizontal velocity holding NED z for `duration` seconds."""
        yaw_mode = self._adjust_yaw(vx, vy, drivetrain, yaw_mode)
        return self._repeat_for(
            lambda: self.command_velocity_z(vx, vy, z, yaw_mode), duration, cancel
        )

    @beartype
    def move_to_position(
        self,
        x: float,
        y: float,
        z: float,
        velocity: float,
        timeout: float = math.inf,
        drivetrain: DrivetrainType = DrivetrainType.MAX_DEGREE_OF_FREEDOM,
        yaw_mode: YawMode = YawMode(),
        cancel: CancelToken | None = None,
    ) -> ActionResult:
        """Fly in a straight line to a world-frame position.

        Succeeds once within get_distance_accuracy() of the target; fails if
        `timeout` elapses first. Speed is capped at `velocity` and reduced
        on the final period so the target is not overshot.
        """
        if velocity <= 0:
            raise ValueError(f"velocity must be positive, got {velocity}")

        cancel = cancel or CancelToken()
        if cancel.is_cancelled:
            return ActionResult.CANCELED
        require_finite(self.get_pose())

        target = np.array([x, y, z])
        period = self.get_command_period()
        waiter = Waiter(period, timeout, cancel, self.clock)

        while True:
            position = self.get_position()
            require_finite(position, "position")
            offset = target - position
            distance = float(np.linalg.norm(offset))

            if distance <= self.get_distance_accuracy():
                waiter.complete()
                return ActionResult.SUCCEEDED
            if waiter.is_timeout():
                logger.warning("move_to_position timed out %.2f m from target", distance)
                return ActionResult.FAILED

            speed = min(velocity, distance / period)
            vx, vy, vz = (offset / distance * speed).tolist()
            self.command_velocity(vx, vy, vz, self._adjust_yaw(offset[0], offset[1], drivetrain, yaw_mode))

            if not waiter.sleep():
                return ActionResult.CANCELED

    @beartype
    def move_to_z(
        self,
        z: float,
        velocity: float,
        timeout: float = math.inf,
        yaw_mode: YawMode = YawMode(),
        cancel: CancelToken | None = None,
    ) -> ActionResult:
        """Climb or descend to NED z, holding the current horizontal position."""
        position = self.get_position()
        require_finite(position, "position")
        return self.move_to_position(
            float(position[0]), float(position[1]), z, velocity, timeout,
            DrivetrainType.MAX_DEGREE_OF_FREEDOM, yaw_mode, cancel,
        )

    @beartype
    def rotate_to_yaw(
        self,
        yaw: float,
        timeout: float = math.inf,
        margin: float = 5.0,
        cancel: CancelToken | None = None,
    ) -> ActionResult:
        """Turn to a heading [deg], holding the current altitude."""
        cancel = cancel or CancelToken()
        if cancel.is_cancelled:
            return ActionResult.CANCELED
        require_finite(self.get_pose())

        z = float(self.get_position()[2])
        target = YawMode(is_rate=False, yaw_or_rate=yaw)
        waiter = Waiter(self.get_command_period(), timeout, cancel, self.clock)

        while True:
            orientation = self.get_orientation()
            require_finite(orientation, "orientation")
            current = math.degrees(float(get_yaw(orientation)))
            if abs(float(normalize_angle_degrees(yaw - current))) <= margin:
                waiter.complete()
                return ActionResult.SUCCEEDED
            if waiter.is_timeout():
                logger.warning("rotate_to_yaw timed out at %.1f deg (target %.1f)", current, yaw)
                return ActionResult.FAILED

            self.command_velocity_z(0.0, 0.0, z, target)

            if not waiter.sleep():
                return ActionResult.CANCELED

    @beartype
    def rotate_by_yaw_rate(
        self,
        yaw_rate: float,
        duration: float,
        cancel: CancelToken | None = None,
    ) -> ActionResult:
        """Spin at `yaw_rate` [deg/s] for `duration` seconds, holding altitude."""
        z = float(self.get_position()[2])
        rate = YawMode(is_rate=True, yaw_or_rate=yaw_rate)
        return self._repeat_for(
            lambda: self.command_velocity_z(0.0, 0.0, z, rate), duration, cancel
        )

    def _repeat_for(
        self,
        command: Callable[[], None],
        duration: float,
        cancel: CancelToken | None,
    ) -> ActionResult:
        """Issue `command` once per command period until `duration` elapses."""
        cancel = cancel or CancelToken()
        if cancel.is_cancelled:
            return ActionResult.CANCELED
        require_finite(self.get_pose())
        if duration <= 0:
            return ActionResult.SUCCEEDED

        waiter = Waiter(self.get_command_period(), duration, cancel, self.clock)
        while not waiter.is_timeout():
            command()
            if not waiter.sleep():
                return ActionResult.CANCELED

        waiter.complete()
        return ActionResult.SUCCEEDED

    def _adjust_yaw(
        self,
        heading_x: float,
        heading_y: float,
        drivetrain: DrivetrainType,
        yaw_mode: YawMode,
    ) -> YawMode:
        """Point yaw along the direction of travel in forward-only mode.

        yaw_or_rate is then an offset from the heading. For headings shorter
        than get_distance_accuracy() the current yaw is held, since the
        direction of a near-zero vector is noise.
        """
        if drivetrain is not DrivetrainType.FORWARD_ONLY or yaw_mode.is_rate:
            return yaw_mode
        if math.hypot(heading_x, heading_y) <= self.get_distance_accuracy():
            return YawMode.zero_rate()
        heading = math.degrees(math.atan2(heading_y, heading_x))
        return YawMode(
            is_rate=False,
            yaw_or_rate=float(normalize_angle_degrees(yaw_mode.yaw_or_rate + heading)),
        )
