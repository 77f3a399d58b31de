"""Vehicle controller contract and the firmware-bridge adapter.

Available controllers:
    DroneController: Abstract multirotor contract with move helpers
    RosFlightController: Runs an in-process flight firmware against a
        simulated board
"""

from flight.control.base import (
    DroneController,
    DrivetrainType,
    LifecycleState,
    VehicleController,
    YawMode,
)
from flight.control.cancelable import (
    ActionResult,
    CancelToken,
    Clock,
    SimulationClock,
    Waiter,
    WallClock,
)
from flight.control.errors import (
    ActuatorIndexOutOfRangeError,
    InvalidModeTransitionError,
    VehicleCommandNotImplementedError,
    VehicleControllerError,
    VehicleMoveError,
)
from flight.control.params import ControllerConfig, MultirotorParams, SafetyParams
from flight.control.rc import RCData, angle_to_pwm, switch_to_pwm, thrust_to_pwm
from flight.control.rosflight import RosFlightController

__all__ = [
    # Contract
    "VehicleController",
    "DroneController",
    "LifecycleState",
    "DrivetrainType",
    "YawMode",
    # Cancellation
    "ActionResult",
    "CancelToken",
    "Clock",
    "SimulationClock",
    "WallClock",
    "Waiter",
    # Errors
    "VehicleControllerError",
    "VehicleCommandNotImplementedError",
    "InvalidModeTransitionError",
    "VehicleMoveError",
    "ActuatorIndexOutOfRangeError",
    # Configuration
    "ControllerConfig",
    "MultirotorParams",
    "SafetyParams",
    # RC
    "RCData",
    "angle_to_pwm",
    "thrust_to_pwm",
    "switch_to_pwm",
    # Adapters
    "RosFlightController",
]
