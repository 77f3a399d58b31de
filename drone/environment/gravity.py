"""Gravity model for multirotor simulation.

Gravity magnitude follows the inverse-square law about a spherical Earth,
scaled so that it equals standard gravity at sea level. It varies smoothly
with altitude (no piecewise approximations) and points along local down
(+Z in NED).

Example:
    >>> from drone.environment.gravity import gravity_at_altitude, gravity_vector
    >>>
    >>> g = gravity_at_altitude(1000.0)   # m/s^2
    >>> g_ned = gravity_vector(1000.0)    # [0, 0, g]
"""

import numpy as np
from beartype import beartype
from numba import njit
from numpy.typing import NDArray

from drone.environment.earth import EARTH_RADIUS

# =============================================================================
# Constants
# =============================================================================

# Standard gravity at sea level
G0: float = 9.80665  # [m/s^2]


# =============================================================================
# Numba-Optimized Core Functions
# =============================================================================


@njit(cache=True, fastmath=True)
def gravity_magnitude_at_altitude(altitude: float, g0: float = G0, radius: float = EARTH_RADIUS) -> float:
    """Get gravity magnitude at altitude above sea level."""
    factor = radius / (radius + altitude)
    return g0 * factor * factor


# =============================================================================
# Convenience Functions
# =============================================================================


@beartype
def gravity_at_altitude(altitude: float) -> float:
    """Get gravity magnitude at altitude above sea level.

    Args:
        altitude: Altitude above sea level [m]

    Returns:
        Gravity magnitude [m/s^2]
    """
    return float(gravity_magnitude_at_altitude(altitude, G0, EARTH_RADIUS))


@beartype
def gravity_vector(altitude: float) -> NDArray[np.float64]:
    """Get gravity vector in the local NED frame.

    Args:
        altitude: Altitude above sea level [m]

    Returns:
        [0, 0, g] [m/s^2]
    """
    return np.array([0.0, 0.0, gravity_at_altitude(altitude)])
