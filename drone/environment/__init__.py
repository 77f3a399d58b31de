"""Environment models for multirotor vehicle simulation.

Provides geodetic conversion, standard atmosphere, gravity, and the
per-vehicle environment state model refreshed every simulation tick.

Example:
    >>> from drone.environment import Environment, EnvironmentState, GeoPoint
    >>>
    >>> env = Environment(EnvironmentState(geo_point=GeoPoint(47.64, -122.14, 122.0)))
    >>> env.set_position(np.array([0.0, 0.0, -10.0]))  # 10 m above home
    >>> env.update()
    >>> env.get_state().air_density  # kg/m^3
"""

from drone.environment.atmosphere import (
    Atmosphere,
    AtmosphereResult,
)
from drone.environment.earth import (
    EARTH_RADIUS,
    GeoPoint,
    HomeGeoPoint,
    geodetic_to_ned,
    ned_to_geodetic,
)
from drone.environment.environment import (
    Environment,
    EnvironmentAlreadyInitializedError,
    EnvironmentModelError,
    EnvironmentNotInitializedError,
    EnvironmentState,
)
from drone.environment.gravity import (
    gravity_at_altitude,
    gravity_vector,
)

__all__ = [
    "Atmosphere",
    "AtmosphereResult",
    "EARTH_RADIUS",
    "GeoPoint",
    "HomeGeoPoint",
    "geodetic_to_ned",
    "ned_to_geodetic",
    "Environment",
    "EnvironmentState",
    "EnvironmentModelError",
    "EnvironmentNotInitializedError",
    "EnvironmentAlreadyInitializedError",
    "gravity_at_altitude",
    "gravity_vector",
]
