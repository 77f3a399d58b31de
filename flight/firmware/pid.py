"""Vector PID controller for multi-axis rate loops.

All axes share one set of gains and are updated together from a single
error vector.

Example:
    >>> from flight.firmware.pid import PIDController
    >>>
    >>> # Body-rate controller for roll, pitch and yaw
    >>> ctrl = PIDController(kp=0.15, ki=0.05, kd=0.002, output_limits=(-0.3, 0.3))
    >>> error = target_rates - gyro
    >>> torque = ctrl.update(error, dt=0.0025)
"""

from dataclasses import dataclass, field

import numpy as np
from beartype import beartype
from numpy.typing import NDArray

# =============================================================================
# PID Gains
# =============================================================================


@beartype
@dataclass(frozen=True)
class PIDGains:
    """PID controller gains.

    Attributes:
        kp: Proportional gain
        ki: Integral gain
        kd: Derivative gain
    """
    kp: float = 1.0
    ki: float = 0.0
    kd: float = 0.0


# =============================================================================
# PID Controller
# =============================================================================


@beartype
@dataclass
class PIDController:
    """Parallel-form PID on an error vector.

        u = kp * e + ki * integral(e) + kd * de/dt

    Attributes:
        kp: Proportional gain
        ki: Integral gain
        kd: Derivative gain
        size: Number of axes
        output_limits: (min, max) output limits, per axis
        integral_limits: (min, max) integral term limits (anti-windup)
        derivative_filter: Weight of the newest raw derivative (1 = no filter)
    """
    kp: float = 1.0
    ki: float = 0.0
    kd: float = 0.0
    size: int = 3
    output_limits: tuple[float, float] | None = None
    integral_limits: tuple[float, float] | None = None
    derivative_filter: float = 0.1

    _integral: NDArray[np.float64] = field(init=False, repr=False)
    _prev_error: NDArray[np.float64] | None = field(default=None, init=False, repr=False)
    _prev_derivative: NDArray[np.float64] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if self.size <= 0:
            raise ValueError(f"size must be positive, got {self.size}")
        if not 0.0 <= self.derivative_filter <= 1.0:
            raise ValueError(f"derivative_filter must be in [0, 1], got {self.derivative_filter}")
        self.reset()

    @classmethod
    def from_gains(
        cls,
        gains: PIDGains,
        size: int = 3,
        output_limits: tuple[float, float] | None = None,
        integral_limits: tuple[float, float] | None = None,
    ) -> "PIDController":
        """Create controller from PIDGains object."""
        return cls(
            kp=gains.kp,
            ki=gains.ki,
            kd=gains.kd,
            size=size,
            output_limits=output_limits,
            integral_limits=integral_limits,
        )

    def reset(self) -> None:
        """Reset controller state (integral and derivative history)."""
        self._integral = np.zeros(self.size)
        self._prev_error = None
        self._prev_derivative = np.zeros(self.size)

    def update(self, error: NDArray[np.floating], dt: float) -> NDArray[np.float64]:
        """Compute PID control output.

        Args:
            error: Current error vector (setpoint - measurement)
            dt: Time step [s]

        Returns:
            Control output vector
        """
        error = np.asarray(error, dtype=np.float64)
        if error.shape != (self.size,):
            raise ValueError(f"Error must be shape ({self.size},), got {error.shape}")
        if dt <= 0:
            return np.zeros(self.size)

        p_term = self.kp * error

        self._integral = self._integral + error * dt
        if self.integral_limits:
            self._integral = np.clip(self._integral, *self.integral_limits)
        i_term = self.ki * self._integral

        if self._prev_error is not None:
            raw_derivative = (error - self._prev_error) / dt
            alpha = self.derivative_filter
            self._prev_derivative = alpha * raw_derivative + (1 - alpha) * self._prev_derivative
        d_term = self.kd * self._prev_derivative

        self._prev_error = error.copy()

        output = p_term + i_term + d_term
        if self.output_limits:
            output = np.clip(output, *self.output_limits)

        return output

    @property
    def integral(self) -> NDArray[np.float64]:
        """Accumulated integral of the error (copy)."""
        return self._integral.copy()

    @property
    def gains(self) -> PIDGains:
        """Get current gains as PIDGains object."""
        return PIDGains(kp=self.kp, ki=self.ki, kd=self.kd)
