"""Frame algebra and kinematic state for multirotor simulation.

Example:
    >>> from drone.dynamics import Pose, rotate_vector, to_quaternion
    >>> import numpy as np
    >>>
    >>> q = to_quaternion(0.0, 0.0, np.pi / 2)   # 90 deg yaw
    >>> rotate_vector(np.array([1.0, 0.0, 0.0]), q)  # -> [0, 1, 0]
"""

from drone.dynamics.frames import (
    FrameAlgebra,
    NumericInvalidError,
    Pose,
    algebra_for,
    flip_z_axis,
    format_quaternion,
    format_vector,
    frames32,
    frames64,
    get_pitch,
    get_roll,
    get_yaw,
    has_nan,
    magnitude,
    nan_pose,
    nan_quaternion,
    nan_vector,
    negate,
    normalize_angle_degrees,
    normalize_quaternion,
    quaternion_conjugate,
    quaternion_from_yaw,
    quaternion_inverse,
    quaternion_multiply,
    require_finite,
    rotate_vector,
    rotate_vector_reverse,
    subtract,
    to_angular_velocity,
    to_euler_angles,
    to_quaternion,
    transform_to_body_frame,
    transform_to_world_frame,
    yaw_from_quaternion,
)
from drone.dynamics.kinematics import KinematicsState

__all__ = [
    # Pose and precision
    "Pose",
    "FrameAlgebra",
    "frames32",
    "frames64",
    "algebra_for",
    "NumericInvalidError",
    # Quaternion utilities
    "quaternion_multiply",
    "quaternion_conjugate",
    "quaternion_inverse",
    "normalize_quaternion",
    "negate",
    "flip_z_axis",
    # Frame transforms
    "rotate_vector",
    "rotate_vector_reverse",
    "transform_to_body_frame",
    "transform_to_world_frame",
    "subtract",
    # Euler angles
    "to_euler_angles",
    "to_quaternion",
    "to_angular_velocity",
    "get_yaw",
    "get_pitch",
    "get_roll",
    "yaw_from_quaternion",
    "quaternion_from_yaw",
    "normalize_angle_degrees",
    # Sentinels
    "nan_vector",
    "nan_quaternion",
    "nan_pose",
    "has_nan",
    "require_finite",
    "magnitude",
    "format_vector",
    "format_quaternion",
    # Kinematics
    "KinematicsState",
]
