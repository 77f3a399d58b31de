"""Vehicle controller error types.

Taxonomy:
- VehicleCommandNotImplementedError: the command is understood but this
  adapter does not support it. Recoverable; choose another strategy.
- InvalidModeTransitionError: the requested mode change is not physically
  meaningful for this adapter. Caller error; do not retry.
- VehicleMoveError: a move helper could not run.
- ActuatorIndexOutOfRangeError: actuator index beyond the vehicle's
  actuator count. Configuration mismatch between vehicle parameters and the
  adapter; not a VehicleControllerError and not meant to be caught.
"""


class VehicleControllerError(Exception):
    """Base class for recoverable vehicle controller errors."""


class VehicleCommandNotImplementedError(VehicleControllerError, NotImplementedError):
    """Command intentionally unsupported by this adapter."""


class InvalidModeTransitionError(VehicleControllerError):
    """Requested mode transition is not valid for this adapter."""

    def __init__(self, mode: str, requested: bool, message: str = "Invalid mode transition"):
        self.mode = mode
        self.requested = requested
        super().__init__(f"{message}: {mode}={requested}")


class VehicleMoveError(VehicleControllerError):
    """A move command could not be carried out."""


class ActuatorIndexOutOfRangeError(IndexError):
    """Actuator index is not valid for this vehicle."""

    def __init__(self, index: int, count: int):
        self.index = index
        self.count = count
        super().__init__(f"Actuator index {index} is out of range for {count} actuators")
