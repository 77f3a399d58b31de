"""Vehicle parameters and controller configuration.

Configuration is explicit: each controller receives its parameters at
construction. ControllerConfig.from_settings() resolves the adapter section
of a settings mapping (e.g. loaded from settings.json) once, at startup.

Example:
    >>> import json
    >>> from flight.control.params import ControllerConfig, MultirotorParams
    >>>
    >>> settings = json.load(open("settings.json"))
    >>> config = ControllerConfig.from_settings(settings)
    >>> params = MultirotorParams(rotor_count=4)
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from beartype import beartype

# =============================================================================
# Controller Configuration
# =============================================================================


@beartype
@dataclass(frozen=True)
class ControllerConfig:
    """Construction-time controller configuration.

    Attributes:
        remote_control_id: Index of the physical remote control bound to
            this vehicle
    """
    remote_control_id: int = 0

    SETTINGS_SECTION = "RosFlight"
    REMOTE_CONTROL_KEY = "RemoteControlID"

    @classmethod
    def from_settings(cls, settings: Mapping[str, Any]) -> "ControllerConfig":
        """Resolve configuration from a settings mapping.

        Reads settings["RosFlight"]["RemoteControlID"]; missing section or
        key falls back to the defaults.
        """
        section = settings.get(cls.SETTINGS_SECTION) or {}
        if not isinstance(section, Mapping):
            raise ValueError(
                f"Settings section {cls.SETTINGS_SECTION!r} must be a mapping, "
                f"got {type(section).__name__}"
            )
        return cls(remote_control_id=int(section.get(cls.REMOTE_CONTROL_KEY, 0)))


# =============================================================================
# Vehicle Parameters
# =============================================================================


@beartype
@dataclass(frozen=True)
class SafetyParams:
    """Tunables used by braking and obstacle-clearance logic.

    Attributes:
        vel_to_breaking_dist: Braking distance per unit velocity [s]
        min_breaking_dist: Minimum braking distance [m]
        max_breaking_dist: Maximum braking distance [m]
        breaking_vel: Velocity used while braking [m/s]
        min_vel_for_breaking: Below this speed no braking is applied [m/s]
        distance_accuracy: Position tolerance for safety checks [m]
        obs_clearance: Required clearance from obstacles [m]
        obs_avoidance_vel: Velocity used while avoiding obstacles [m/s]
    """
    vel_to_breaking_dist: float = 0.5
    min_breaking_dist: float = 1.0
    max_breaking_dist: float = 3.0
    breaking_vel: float = 1.0
    min_vel_for_breaking: float = 3.0
    distance_accuracy: float = 0.1
    obs_clearance: float = 2.0
    obs_avoidance_vel: float = 0.5


@beartype
@dataclass(frozen=True)
class MultirotorParams:
    """Static multirotor parameters.

    Attributes:
        rotor_count: Number of rotors (actuators)
        enabled_sensors: Names of sensors enabled on the vehicle
    """
    rotor_count: int = 4
    enabled_sensors: tuple[str, ...] = field(default=("imu",))

    def __post_init__(self) -> None:
        if self.rotor_count <= 0:
            raise ValueError(f"rotor_count must be positive, got {self.rotor_count}")
