"""Environment state model for multirotor simulation.

Derives geodetic position, gravity and standard-atmosphere quantities from
the vehicle's local NED position, once per simulation tick.

The model keeps two snapshots:
- initial: set once by initialize(), never mutated afterwards
- current: live state; position is set by the owner every tick and the
  derived fields are recomputed by update()

reset() restores current to initial without recomputing the home reference,
which is derived once from the initial geo point.

Example:
    >>> from drone.environment import Environment, EnvironmentState, GeoPoint
    >>>
    >>> env = Environment(EnvironmentState(geo_point=GeoPoint(47.64, -122.14, 122.0)))
    >>>
    >>> # Simulation loop
    >>> env.set_position(kinematics.position)
    >>> env.update()
    >>> rho = env.get_state().air_density
"""

import logging
from dataclasses import dataclass, field

import numpy as np
from beartype import beartype
from numpy.typing import NDArray

from drone.dynamics.frames import has_nan
from drone.environment.atmosphere import Atmosphere
from drone.environment.earth import GeoPoint, HomeGeoPoint, ned_to_geodetic
from drone.environment.gravity import gravity_vector

logger = logging.getLogger(__name__)


class EnvironmentModelError(Exception):
    """Base class for environment model errors."""


class EnvironmentNotInitializedError(EnvironmentModelError):
    """An operation needs initialize() to have been called first."""


class EnvironmentAlreadyInitializedError(EnvironmentModelError):
    """initialize() was called on an initialized environment; use reinitialize()."""


# =============================================================================
# Environment State
# =============================================================================


def _zeros() -> NDArray[np.float64]:
    return np.zeros(3)


@beartype
@dataclass
class EnvironmentState:
    """Environment snapshot.

    Inputs (set at initialization):
        geo_point: Geodetic location of the vehicle
        min_altitude_over_ground: Lowest allowed altitude above ground [m]
        position: Local NED position relative to home [m]

    Outputs (computed by update, never written by other components):
        gravity: Gravity vector in NED [m/s^2]
        air_pressure: Static pressure [Pa]
        temperature: Static temperature [K]
        air_density: Air density [kg/m^3]
    """
    geo_point: GeoPoint = field(default_factory=GeoPoint)
    min_altitude_over_ground: float = 0.0
    position: NDArray[np.float64] = field(default_factory=_zeros)

    gravity: NDArray[np.float64] = field(default_factory=_zeros)
    air_pressure: float = 0.0
    temperature: float = 0.0
    air_density: float = 0.0

    def __post_init__(self) -> None:
        """Validate vector shapes."""
        if self.position.shape != (3,):
            raise ValueError(f"Position must be shape (3,), got {self.position.shape}")
        if self.gravity.shape != (3,):
            raise ValueError(f"Gravity must be shape (3,), got {self.gravity.shape}")

    def copy(self) -> "EnvironmentState":
        """Create a detached copy of this state."""
        return EnvironmentState(
            geo_point=self.geo_point,
            min_altitude_over_ground=self.min_altitude_over_ground,
            position=self.position.copy(),
            gravity=self.gravity.copy(),
            air_pressure=self.air_pressure,
            temperature=self.temperature,
            air_density=self.air_density,
        )


# =============================================================================
# Environment Model
# =============================================================================


@beartype
class Environment:
    """Per-vehicle environment model.

    States: uninitialized -> initialized, then any sequence of update()
    and reset(). Not thread safe; driven by the owning simulation loop.
    """

    def __init__(
        self,
        initial: EnvironmentState | None = None,
        atmosphere: Atmosphere | None = None,
    ) -> None:
        """Create the model, initializing it when an initial state is given.

        Args:
            initial: Initial state (home geo point, position, min altitude)
            atmosphere: Atmosphere model; defaults to US Standard Atmosphere
        """
        self._atmosphere = atmosphere or Atmosphere()
        self._initial: EnvironmentState | None = None
        self._current: EnvironmentState | None = None
        self._home: HomeGeoPoint | None = None

        if initial is not None:
            self.initialize(initial)

    @property
    def is_initialized(self) -> bool:
        """Whether initialize() has been called."""
        return self._home is not None

    def initialize(self, initial: EnvironmentState) -> None:
        """Compute the home reference and the initial snapshot.

        Raises:
            EnvironmentAlreadyInitializedError: if already initialized
        """
        if self.is_initialized:
            raise EnvironmentAlreadyInitializedError(
                "Environment is already initialized; call reinitialize() to replace the home reference"
            )
        self._initialize(initial)

    def reinitialize(self, initial: EnvironmentState) -> None:
        """Replace the home reference and initial snapshot explicitly."""
        logger.info("Reinitializing environment at %s", initial.geo_point)
        self._initialize(initial)

    def _initialize(self, initial: EnvironmentState) -> None:
        initial = initial.copy()
        home = HomeGeoPoint.from_geo_point(initial.geo_point)
        self._update_state(initial, home)

        self._initial = initial
        self._home = home
        self.reset()
        logger.debug("Environment initialized at home %s", home.home_geo_point)

    def _require_initialized(self) -> None:
        if not self.is_initialized:
            raise EnvironmentNotInitializedError("Environment has not been initialized")

    @property
    def home(self) -> HomeGeoPoint:
        """Home reference derived at initialization."""
        self._require_initialized()
        return self._home

    @property
    def home_geo_point(self) -> GeoPoint:
        """Geodetic home point."""
        return self.home.home_geo_point

    def set_position(self, position: NDArray[np.floating]) -> None:
        """Set the current position in local NED coordinates.

        Derived fields are not recomputed until update() is called.
        """
        self._require_initialized()
        position = np.array(position, dtype=np.float64)
        if position.shape != (3,):
            raise ValueError(f"Position must be shape (3,), got {position.shape}")
        self._current.position = position

    def get_initial_state(self) -> EnvironmentState:
        """Get a detached copy of the initial snapshot."""
        self._require_initialized()
        return self._initial.copy()

    def get_state(self) -> EnvironmentState:
        """Get the live snapshot.

        The returned object is mutable; only the environment owner may
        change it (set_position + update).
        """
        self._require_initialized()
        return self._current

    def reset(self) -> None:
        """Restore the current snapshot to the initial one."""
        self._require_initialized()
        self._current = self._initial.copy()

    def update(self) -> None:
        """Recompute derived fields from the current position."""
        self._require_initialized()
        self._update_state(self._current, self._home)

    def _update_state(self, state: EnvironmentState, home: HomeGeoPoint) -> None:
        """Geodetic position -> geopotential -> temperature -> pressure -> density; gravity."""
        if has_nan(state.position):
            logger.warning("Skipping environment update: position contains NaN")
            return

        state.geo_point = ned_to_geodetic(state.position, home)

        atm = self._atmosphere
        geopot = atm.geopotential(state.geo_point.altitude / 1000.0)
        state.temperature = atm.standard_temperature(geopot)
        state.air_pressure = atm.standard_pressure(geopot, state.temperature)
        state.air_density = atm.air_density(state.air_pressure, state.temperature)

        state.gravity = gravity_vector(state.geo_point.altitude)
