"""Frame algebra for multirotor vehicle simulation.

Pose representation and the quaternion/vector operations every controller
and environment computation depends on.

Coordinate frames:
- World: local North-East-Down (NED) tangent plane, z positive DOWN
- Body: vehicle frame (X forward, Y right, Z down)

Quaternion convention:
- Scalar-first: q = [w, x, y, z]
- An orientation rotates body-frame vectors into the world frame

Precision:
    All operations of one FrameAlgebra instance run in a single floating
    point type. Inputs are cast to the instance dtype on entry, so a single
    computation never mixes float32 and float64. The module-level functions
    are bound to the double-precision instance.

Example:
    >>> from drone.dynamics.frames import Pose, subtract, to_quaternion
    >>>
    >>> a = Pose(np.array([1.0, 0.0, -2.0]), to_quaternion(0.0, 0.0, np.pi / 2))
    >>> b = Pose.zero()
    >>> rel = subtract(a, b)  # same as a - b
    >>> pitch, roll, yaw = to_euler_angles(rel.orientation)
"""

from dataclasses import dataclass

import numpy as np
from beartype import beartype
from numpy.typing import NDArray

Real = float | np.floating


class NumericInvalidError(ValueError):
    """A pose, vector or quaternion contains NaN where a valid value is required."""


# =============================================================================
# Pose
# =============================================================================


@beartype
@dataclass(frozen=True, eq=False)
class Pose:
    """Position + orientation value pair.

    Attributes:
        position: [x, y, z] in the world NED frame [m]
        orientation: [w, x, y, z] unit quaternion, body to world
    """
    position: NDArray[np.floating]
    orientation: NDArray[np.floating]

    def __post_init__(self) -> None:
        """Validate shapes."""
        if self.position.shape != (3,):
            raise ValueError(f"Position must be shape (3,), got {self.position.shape}")
        if self.orientation.shape != (4,):
            raise ValueError(f"Orientation must be shape (4,), got {self.orientation.shape}")

    @classmethod
    def zero(cls, dtype: type = np.float64) -> "Pose":
        """Pose at the origin with identity orientation."""
        return cls(
            position=np.zeros(3, dtype=dtype),
            orientation=np.array([1.0, 0.0, 0.0, 0.0], dtype=dtype),
        )

    @classmethod
    def nan(cls, dtype: type = np.float64) -> "Pose":
        """Sentinel for an unknown/invalid pose.

        Distinguishable from a legitimate zero pose via has_nan().
        """
        return cls(
            position=np.full(3, np.nan, dtype=dtype),
            orientation=np.full(4, np.nan, dtype=dtype),
        )

    def has_nan(self) -> bool:
        """Check whether any component is NaN."""
        return bool(np.isnan(self.position).any() or np.isnan(self.orientation).any())

    def copy(self) -> "Pose":
        """Create a detached copy of this pose."""
        return Pose(self.position.copy(), self.orientation.copy())

    def __sub__(self, other: "Pose") -> "Pose":
        return algebra_for(self.position.dtype).subtract(self, other)


# =============================================================================
# Frame Algebra
# =============================================================================


@beartype
class FrameAlgebra:
    """Quaternion and frame operations at a fixed floating point precision.

    Example:
        >>> f32 = FrameAlgebra(np.float32)
        >>> q = f32.to_quaternion(0.1, 0.0, 0.5)
        >>> q.dtype
        dtype('float32')
    """

    def __init__(self, dtype: type = np.float64) -> None:
        """Initialize frame algebra.

        Args:
            dtype: numpy floating type used for every computation
        """
        if not np.issubdtype(dtype, np.floating):
            raise ValueError(f"dtype must be a floating point type, got {dtype!r}")
        self.dtype = np.dtype(dtype).type

    def __repr__(self) -> str:
        return f"FrameAlgebra({self.dtype.__name__})"

    # -------------------------------------------------------------------------
    # Casting
    # -------------------------------------------------------------------------

    def _vector(self, v: NDArray[np.floating]) -> NDArray[np.floating]:
        v = np.asarray(v, dtype=self.dtype)
        if v.shape != (3,):
            raise ValueError(f"Vector must be shape (3,), got {v.shape}")
        return v

    def _quaternion(self, q: NDArray[np.floating]) -> NDArray[np.floating]:
        q = np.asarray(q, dtype=self.dtype)
        if q.shape != (4,):
            raise ValueError(f"Quaternion must be shape (4,), got {q.shape}")
        return q

    def _pose(self, pose: Pose) -> Pose:
        if pose.position.dtype == self.dtype and pose.orientation.dtype == self.dtype:
            return pose
        return Pose(self._vector(pose.position), self._quaternion(pose.orientation))

    # -------------------------------------------------------------------------
    # Quaternion primitives
    # -------------------------------------------------------------------------

    def quaternion_multiply(
        self,
        q1: NDArray[np.floating],
        q2: NDArray[np.floating],
    ) -> NDArray[np.floating]:
        """Hamilton product q1 * q2."""
        w1, x1, y1, z1 = self._quaternion(q1)
        w2, x2, y2, z2 = self._quaternion(q2)

        return np.array([
            w1*w2 - x1*x2 - y1*y2 - z1*z2,
            w1*x2 + x1*w2 + y1*z2 - z1*y2,
            w1*y2 - x1*z2 + y1*w2 + z1*x2,
            w1*z2 + x1*y2 - y1*x2 + z1*w2,
        ], dtype=self.dtype)

    def quaternion_conjugate(self, q: NDArray[np.floating]) -> NDArray[np.floating]:
        """Conjugate; equal to the inverse for unit quaternions."""
        q = self._quaternion(q)
        return np.array([q[0], -q[1], -q[2], -q[3]], dtype=self.dtype)

    def quaternion_inverse(self, q: NDArray[np.floating]) -> NDArray[np.floating]:
        """Full inverse conj(q) / |q|^2.

        A zero quaternion has no inverse and yields the NaN sentinel.
        """
        q = self._quaternion(q)
        norm_sq = np.dot(q, q)
        if norm_sq == 0:
            return self.nan_quaternion()
        return self.quaternion_conjugate(q) / norm_sq

    def normalize_quaternion(self, q: NDArray[np.floating]) -> NDArray[np.floating]:
        """Normalize to unit length (near-zero input gives identity)."""
        q = self._quaternion(q)
        norm = np.linalg.norm(q)
        if norm < 1e-10:
            return np.array([1.0, 0.0, 0.0, 0.0], dtype=self.dtype)
        return q / norm

    def negate(self, q: NDArray[np.floating]) -> NDArray[np.floating]:
        """Negate every component (same rotation, opposite sign)."""
        return -self._quaternion(q)

    def flip_z_axis(self, q: NDArray[np.floating]) -> NDArray[np.floating]:
        """Mirror the rotation for a frame with its z axis flipped."""
        w, x, y, z = self._quaternion(q)
        return np.array([w, -x, -y, z], dtype=self.dtype)

    # -------------------------------------------------------------------------
    # Vector rotation and frame transforms
    # -------------------------------------------------------------------------

    def rotate_vector(
        self,
        v: NDArray[np.floating],
        q: NDArray[np.floating],
        assume_unit: bool = True,
    ) -> NDArray[np.floating]:
        """Rotate v by q, i.e. q * v * q^-1.

        With assume_unit=True the conjugate replaces the inverse. The caller
        guarantees q is unit length; otherwise the result is scaled by |q|^2.
        """
        v = self._vector(v)
        q = self._quaternion(q)
        q_inv = self.quaternion_conjugate(q) if assume_unit else self.quaternion_inverse(q)
        vq = np.array([0.0, v[0], v[1], v[2]], dtype=self.dtype)
        return self.quaternion_multiply(self.quaternion_multiply(q, vq), q_inv)[1:]

    def rotate_vector_reverse(
        self,
        v: NDArray[np.floating],
        q: NDArray[np.floating],
        assume_unit: bool = True,
    ) -> NDArray[np.floating]:
        """Rotate v by the inverse of q, i.e. q^-1 * v * q."""
        v = self._vector(v)
        q = self._quaternion(q)
        q_inv = self.quaternion_conjugate(q) if assume_unit else self.quaternion_inverse(q)
        vq = np.array([0.0, v[0], v[1], v[2]], dtype=self.dtype)
        return self.quaternion_multiply(self.quaternion_multiply(q_inv, vq), q)[1:]

    def transform_to_body_frame(
        self,
        v_world: NDArray[np.floating],
        q: NDArray[np.floating],
        assume_unit: bool = True,
    ) -> NDArray[np.floating]:
        """Express a world (NED) vector in the body frame."""
        return self.rotate_vector_reverse(v_world, q, assume_unit)

    def transform_to_world_frame(
        self,
        v_body: NDArray[np.floating],
        q_or_pose: NDArray[np.floating] | Pose,
        assume_unit: bool = True,
    ) -> NDArray[np.floating]:
        """Express a body vector in the world (NED) frame.

        When given a Pose, the vector is first translated by the pose
        position and then rotated by the pose orientation.
        """
        if isinstance(q_or_pose, Pose):
            pose = self._pose(q_or_pose)
            translated = self._vector(v_body) + pose.position
            return self.rotate_vector(translated, pose.orientation, assume_unit)
        return self.rotate_vector(v_body, q_or_pose, assume_unit)

    def subtract(self, lhs: Pose, rhs: Pose) -> Pose:
        """Relative pose of lhs with respect to rhs.

        Position difference is expressed in the rhs frame and the
        orientation difference is rhs^-1 * lhs, normalized.
        """
        lhs = self._pose(lhs)
        rhs = self._pose(rhs)

        position = self.rotate_vector_reverse(
            lhs.position - rhs.position, rhs.orientation, assume_unit=False
        )
        orientation = self.normalize_quaternion(
            self.quaternion_multiply(self.quaternion_inverse(rhs.orientation), lhs.orientation)
        )
        return Pose(position, orientation)

    # -------------------------------------------------------------------------
    # Euler angles
    # -------------------------------------------------------------------------

    def to_euler_angles(self, q: NDArray[np.floating]) -> tuple[Real, Real, Real]:
        """Convert quaternion to Euler angles.

        Args:
            q: Quaternion [w, x, y, z]

        Returns:
            Tuple of (pitch, roll, yaw) in radians
        """
        w, x, y, z = self._quaternion(q)
        one = self.dtype(1.0)
        two = self.dtype(2.0)

        ysqr = y * y
        t0 = -two * (ysqr + z * z) + one
        t1 = two * (x * y + w * z)
        t2 = -two * (x * z - w * y)
        t3 = two * (y * z + w * x)
        t4 = -two * (x * x + ysqr) + one

        # Floating point overshoot near +-90 deg pitch would leave the asin domain
        t2 = np.clip(t2, -one, one)

        pitch = np.arcsin(t2)
        roll = np.arctan2(t3, t4)
        yaw = np.arctan2(t1, t0)
        return pitch, roll, yaw

    def to_quaternion(self, pitch: Real, roll: Real, yaw: Real) -> NDArray[np.floating]:
        """Convert Euler angles [rad] to quaternion [w, x, y, z]."""
        half = self.dtype(0.5)
        t0 = np.cos(self.dtype(yaw) * half)
        t1 = np.sin(self.dtype(yaw) * half)
        t2 = np.cos(self.dtype(roll) * half)
        t3 = np.sin(self.dtype(roll) * half)
        t4 = np.cos(self.dtype(pitch) * half)
        t5 = np.sin(self.dtype(pitch) * half)

        return np.array([
            t0 * t2 * t4 + t1 * t3 * t5,
            t0 * t3 * t4 - t1 * t2 * t5,
            t0 * t2 * t5 + t1 * t3 * t4,
            t1 * t2 * t4 - t0 * t3 * t5,
        ], dtype=self.dtype)

    def to_angular_velocity(
        self,
        q_start: NDArray[np.floating],
        q_end: NDArray[np.floating],
        dt: Real,
    ) -> NDArray[np.floating]:
        """Estimate body angular velocity between two orientations.

        Finite difference of Euler angles followed by the Euler-rate to body
        rate kinematic mapping evaluated at the end orientation. This is an
        approximation: valid for small dt and away from gimbal lock.

        Args:
            q_start: Orientation at the start of the interval
            q_end: Orientation at the end of the interval
            dt: Interval length [s]

        Returns:
            Angular velocity [wx, wy, wz] [rad/s]
        """
        if not dt > 0:
            raise ValueError(f"dt must be positive, got {dt}")
        dt = self.dtype(dt)

        p_s, r_s, y_s = self.to_euler_angles(q_start)
        p_e, r_e, y_e = self.to_euler_angles(q_end)

        p_rate = (p_e - p_s) / dt
        r_rate = (r_e - r_s) / dt
        y_rate = (y_e - y_s) / dt

        wx = r_rate - y_rate * np.sin(p_e)
        wy = p_rate * np.cos(r_e) + y_rate * np.sin(r_e) * np.cos(p_e)
        wz = -p_rate * np.sin(r_e) + y_rate * np.cos(r_e) * np.cos(p_e)

        return np.array([wx, wy, wz], dtype=self.dtype)

    def get_yaw(self, q: NDArray[np.floating]) -> Real:
        """Yaw angle [rad] of a unit quaternion."""
        w, x, y, z = self._quaternion(q)
        return np.arctan2(2.0 * (z * w + x * y), -1.0 + 2.0 * (w * w + x * x)).astype(self.dtype)

    def get_pitch(self, q: NDArray[np.floating]) -> Real:
        """Pitch angle [rad] of a unit quaternion."""
        w, x, y, z = self._quaternion(q)
        return np.arcsin(np.clip(2.0 * (y * w - z * x), -1.0, 1.0)).astype(self.dtype)

    def get_roll(self, q: NDArray[np.floating]) -> Real:
        """Roll angle [rad] of a unit quaternion."""
        w, x, y, z = self._quaternion(q)
        return np.arctan2(2.0 * (z * y + w * x), 1.0 - 2.0 * (x * x + y * y)).astype(self.dtype)

    def yaw_from_quaternion(self, q: NDArray[np.floating]) -> Real:
        """Yaw from z-y'-x'' Euler angles; tolerant of non-unit input."""
        w, x, y, z = self._quaternion(q)
        return np.arctan2(2.0 * (w * z + x * y), 1.0 - 2.0 * (y * y + z * z)).astype(self.dtype)

    def quaternion_from_yaw(self, yaw: Real) -> NDArray[np.floating]:
        """Rotation of `yaw` radians about the world down axis."""
        half = self.dtype(yaw) * self.dtype(0.5)
        return np.array([np.cos(half), 0.0, 0.0, np.sin(half)], dtype=self.dtype)

    def normalize_angle_degrees(self, angle: Real) -> Real:
        """Wrap an angle in degrees to (-180, 180]."""
        angle = np.fmod(self.dtype(angle), self.dtype(360.0))
        if angle > 180:
            return angle - self.dtype(360.0)
        if angle <= -180:
            return angle + self.dtype(360.0)
        return angle

    # -------------------------------------------------------------------------
    # Sentinels and checks
    # -------------------------------------------------------------------------

    def nan_vector(self) -> NDArray[np.floating]:
        """Vector sentinel for 'unknown'."""
        return np.full(3, np.nan, dtype=self.dtype)

    def nan_quaternion(self) -> NDArray[np.floating]:
        """Quaternion sentinel for 'unknown'."""
        return np.full(4, np.nan, dtype=self.dtype)

    def nan_pose(self) -> Pose:
        """Pose sentinel for 'unknown'."""
        return Pose.nan(self.dtype)

    def magnitude(self, v: NDArray[np.floating]) -> Real:
        """Euclidean length of a vector."""
        return np.linalg.norm(np.asarray(v, dtype=self.dtype)).astype(self.dtype)

    # -------------------------------------------------------------------------
    # Formatting
    # -------------------------------------------------------------------------

    def format_vector(self, v: NDArray[np.floating], prefix: str = "") -> str:
        """Format a 3-vector as '[x, y, z]'."""
        v = self._vector(v)
        return f"{prefix}[{v[0]:f}, {v[1]:f}, {v[2]:f}]"

    def format_quaternion(self, q: NDArray[np.floating], add_euler: bool = False) -> str:
        """Format a quaternion as '[w, x, y, z]', optionally with '-[pitch, roll, yaw]'."""
        q = self._quaternion(q)
        text = f"[{q[0]:f}, {q[1]:f}, {q[2]:f}, {q[3]:f}]"
        if add_euler:
            pitch, roll, yaw = self.to_euler_angles(q)
            text += f"-[{pitch:f}, {roll:f}, {yaw:f}]"
        return text


# =============================================================================
# Module-level API (double precision)
# =============================================================================

frames64 = FrameAlgebra(np.float64)
frames32 = FrameAlgebra(np.float32)


def algebra_for(dtype: np.dtype | type) -> FrameAlgebra:
    """Get the frame algebra instance matching a numpy dtype."""
    if np.dtype(dtype) == np.float32:
        return frames32
    return frames64


@beartype
def has_nan(value: NDArray[np.floating] | Pose) -> bool:
    """Check a vector, quaternion or pose for NaN components."""
    if isinstance(value, Pose):
        return value.has_nan()
    return bool(np.isnan(value).any())


@beartype
def require_finite(value: NDArray[np.floating] | Pose, what: str = "pose") -> None:
    """Raise NumericInvalidError if value contains NaN.

    Must be called before trusting a pose from a context that may not have
    been initialized yet.
    """
    if has_nan(value):
        raise NumericInvalidError(f"{what} contains NaN and cannot be used")


quaternion_multiply = frames64.quaternion_multiply
quaternion_conjugate = frames64.quaternion_conjugate
quaternion_inverse = frames64.quaternion_inverse
normalize_quaternion = frames64.normalize_quaternion
negate = frames64.negate
flip_z_axis = frames64.flip_z_axis
rotate_vector = frames64.rotate_vector
rotate_vector_reverse = frames64.rotate_vector_reverse
transform_to_body_frame = frames64.transform_to_body_frame
transform_to_world_frame = frames64.transform_to_world_frame
subtract = frames64.subtract
to_euler_angles = frames64.to_euler_angles
to_quaternion = frames64.to_quaternion
to_angular_velocity = frames64.to_angular_velocity
get_yaw = frames64.get_yaw
get_pitch = frames64.get_pitch
get_roll = frames64.get_roll
yaw_from_quaternion = frames64.yaw_from_quaternion
quaternion_from_yaw = frames64.quaternion_from_yaw
normalize_angle_degrees = frames64.normalize_angle_degrees
nan_vector = frames64.nan_vector
nan_quaternion = frames64.nan_quaternion
nan_pose = frames64.nan_pose
magnitude = frames64.magnitude
format_vector = frames64.format_vector
format_quaternion = frames64.format_quaternion
