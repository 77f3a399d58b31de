"""Drone - Environment and frame math for multirotor flight simulation.

This package provides the plant-side math a multirotor simulation depends
on: pose and quaternion frame algebra, the kinematic state written by the
physics integrator, and the environment model (geodetic position, standard
atmosphere, gravity) refreshed every tick.

Example:
    >>> import numpy as np
    >>> from drone import Environment, EnvironmentState, GeoPoint, Pose, to_quaternion
    >>>
    >>> env = Environment(EnvironmentState(geo_point=GeoPoint(47.641468, -122.140165, 122.0)))
    >>> env.set_position(np.array([0.0, 0.0, -20.0]))
    >>> env.update()
    >>> print(f"Density: {env.get_state().air_density:.4f} kg/m^3")
    >>>
    >>> pose = Pose(np.array([1.0, 2.0, -3.0]), to_quaternion(0.0, 0.0, 0.5))
"""

__version__ = "0.1.0"

from drone.dynamics import (
    FrameAlgebra,
    KinematicsState,
    NumericInvalidError,
    Pose,
    has_nan,
    nan_pose,
    nan_quaternion,
    nan_vector,
    require_finite,
    rotate_vector,
    rotate_vector_reverse,
    subtract,
    to_angular_velocity,
    to_euler_angles,
    to_quaternion,
    transform_to_body_frame,
    transform_to_world_frame,
)
from drone.environment import (
    Atmosphere,
    Environment,
    EnvironmentState,
    GeoPoint,
    HomeGeoPoint,
    geodetic_to_ned,
    gravity_at_altitude,
    ned_to_geodetic,
)

__all__ = [
    # Version
    "__version__",
    # Frame algebra
    "FrameAlgebra",
    "Pose",
    "NumericInvalidError",
    "rotate_vector",
    "rotate_vector_reverse",
    "transform_to_body_frame",
    "transform_to_world_frame",
    "subtract",
    "to_euler_angles",
    "to_quaternion",
    "to_angular_velocity",
    "nan_vector",
    "nan_quaternion",
    "nan_pose",
    "has_nan",
    "require_finite",
    # Kinematics
    "KinematicsState",
    # Environment
    "Atmosphere",
    "Environment",
    "EnvironmentState",
    "GeoPoint",
    "HomeGeoPoint",
    "ned_to_geodetic",
    "geodetic_to_ned",
    "gravity_at_altitude",
]
