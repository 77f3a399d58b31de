"""Kinematic state of a vehicle as produced by the physics integrator.

The integrator owns this state and mutates it once per tick. Controllers
hold a reference to it and read it; they never write to it and never cache
values across ticks (use copy() for a detached snapshot).

Frames:
- position, linear velocity/acceleration: world NED frame
- angular velocity/acceleration: body frame
"""

from dataclasses import dataclass, field

import numpy as np
from beartype import beartype
from numpy.typing import NDArray

from drone.dynamics.frames import Pose


def _zeros() -> NDArray[np.float64]:
    return np.zeros(3)


@beartype
@dataclass
class KinematicsState:
    """Pose, twist and accelerations of a rigid body.

    Attributes:
        pose: Position [m] and orientation (body to world)
        linear_velocity: [vn, ve, vd] [m/s]
        angular_velocity: [p, q, r] body rates [rad/s]
        linear_acceleration: [an, ae, ad] [m/s^2]
        angular_acceleration: body angular acceleration [rad/s^2]
    """
    pose: Pose = field(default_factory=Pose.zero)
    linear_velocity: NDArray[np.float64] = field(default_factory=_zeros)
    angular_velocity: NDArray[np.float64] = field(default_factory=_zeros)
    linear_acceleration: NDArray[np.float64] = field(default_factory=_zeros)
    angular_acceleration: NDArray[np.float64] = field(default_factory=_zeros)

    def __post_init__(self) -> None:
        """Validate vector shapes."""
        for name in ("linear_velocity", "angular_velocity",
                     "linear_acceleration", "angular_acceleration"):
            value = getattr(self, name)
            if value.shape != (3,):
                raise ValueError(f"{name} must be shape (3,), got {value.shape}")

    @property
    def position(self) -> NDArray[np.float64]:
        """Position in the world NED frame [m]."""
        return self.pose.position

    @property
    def orientation(self) -> NDArray[np.float64]:
        """Orientation quaternion [w, x, y, z]."""
        return self.pose.orientation

    def copy(self) -> "KinematicsState":
        """Create a detached copy of this state."""
        return KinematicsState(
            pose=self.pose.copy(),
            linear_velocity=self.linear_velocity.copy(),
            angular_velocity=self.angular_velocity.copy(),
            linear_acceleration=self.linear_acceleration.copy(),
            angular_acceleration=self.angular_acceleration.copy(),
        )
