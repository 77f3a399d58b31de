"""Flight software package - vehicle controllers for multirotors.

The simulation side (drone/) provides the "plant": kinematics written by the
physics integrator and the environment model. Flight software (flight/)
provides the controllers that turn pilot and API intent into actuator
signals.

Simulation loop:
    environment.set_position(kinematics.position)
    environment.update()
    controller.update()
    signals = [controller.get_vertex_control_signal(i)
               for i in range(controller.get_vertex_count())]
    integrator.step(signals, dt)

Subpackages:
    control: Controller contract, cancellation, RC mapping, adapters
    firmware: Simulated board, comm link and rate-mode firmware

Example:
    >>> from flight import ControllerConfig, MultirotorParams, RosFlightController
    >>>
    >>> controller = RosFlightController(None, MultirotorParams(), ControllerConfig())
    >>> controller.initialize_physics(environment, kinematics)
    >>> controller.start()
"""

from flight.control import (
    ActionResult,
    CancelToken,
    ControllerConfig,
    DroneController,
    MultirotorParams,
    RCData,
    RosFlightController,
    VehicleController,
)

__all__ = [
    "VehicleController",
    "DroneController",
    "RosFlightController",
    "ControllerConfig",
    "MultirotorParams",
    "RCData",
    "ActionResult",
    "CancelToken",
]
