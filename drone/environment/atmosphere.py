"""US Standard Atmosphere 1976 model on geopotential altitude.

Provides temperature, pressure, and density as functions of geopotential
altitude for Earth's atmosphere up to 84.852 km.

The model divides the atmosphere into layers with different lapse rates
(bases in geopotential km):
- Troposphere (0-11 km): -6.5 K/km lapse rate
- Tropopause (11-20 km): isothermal at 216.65 K
- Stratosphere (20-32 km): +1.0 K/km
- Stratosphere (32-47 km): +2.8 K/km
- Stratopause (47-51 km): isothermal at 270.65 K
- Mesosphere (51-71 km): -2.8 K/km
- Mesosphere (71-84.852 km): -2.0 K/km

Pressure at each layer base is integrated from sea level once, so pressure
and density are continuous across layer boundaries. Altitudes below sea
level extend the troposphere; altitudes above the model top are clamped.

Reference: U.S. Standard Atmosphere, 1976 (NASA-TM-X-74335)

Example:
    >>> from drone.environment.atmosphere import Atmosphere
    >>>
    >>> atm = Atmosphere()
    >>> result = atm.at_altitude(1500.0)  # 1.5 km above sea level
    >>> print(f"Density: {result.density:.4f} kg/m^3")
"""

from dataclasses import dataclass

import numpy as np
from beartype import beartype

# =============================================================================
# Constants
# =============================================================================

# Sea level conditions
T0 = 288.15  # Temperature [K]
P0 = 101325.0  # Pressure [Pa]
RHO0 = 1.225  # Density [kg/m^3]

# Physical constants
R_AIR = 287.05287  # Specific gas constant for dry air [J/(kg·K)]
G0 = 9.80665  # Standard gravity [m/s^2]

# Earth radius for geopotential altitude [km]
R_EARTH_GEOPOTENTIAL_KM = 6356.766

# Top of the model [geopotential km]
GEOPOTENTIAL_TOP_KM = 84.852

# Layer definitions: (base_geopotential_km, base_temp_K, lapse_rate_K_per_km)
LAYERS = [
    (0.0, 288.15, -6.5),      # Troposphere
    (11.0, 216.65, 0.0),      # Tropopause
    (20.0, 216.65, 1.0),      # Stratosphere 1
    (32.0, 228.65, 2.8),      # Stratosphere 2
    (47.0, 270.65, 0.0),      # Stratopause
    (51.0, 270.65, -2.8),     # Mesosphere 1
    (71.0, 214.65, -2.0),     # Mesosphere 2
]


# =============================================================================
# Result Classes
# =============================================================================


@beartype
@dataclass(frozen=True)
class AtmosphereResult:
    """Atmospheric conditions at a given altitude.

    Attributes:
        altitude: Geometric altitude [m]
        geopotential: Geopotential altitude [km]
        temperature: Static temperature [K]
        pressure: Static pressure [Pa]
        density: Air density [kg/m^3]
    """
    altitude: float
    geopotential: float
    temperature: float
    pressure: float
    density: float


# =============================================================================
# Atmosphere Model
# =============================================================================


@beartype
class Atmosphere:
    """US Standard Atmosphere 1976 model.

    The pipeline used by the environment model is
    geopotential -> standard_temperature -> standard_pressure -> air_density,
    each step a pure function of the previous.

    Example:
        >>> atm = Atmosphere()
        >>> h = atm.geopotential(0.5)            # 500 m, in km
        >>> T = atm.standard_temperature(h)
        >>> p = atm.standard_pressure(h, T)
        >>> rho = atm.air_density(p, T)
    """

    def __init__(self) -> None:
        """Initialize atmosphere model."""
        # Precompute base pressures for each layer
        self._base_pressures = self._compute_base_pressures()

    def _compute_base_pressures(self) -> list[float]:
        """Compute pressure at the base of each layer."""
        pressures = [P0]

        for i in range(len(LAYERS) - 1):
            h0, t_base, lapse = LAYERS[i]
            h1, _, _ = LAYERS[i + 1]
            t_top = t_base + lapse * (h1 - h0)
            pressures.append(self._layer_pressure(pressures[-1], t_base, lapse, h1 - h0, t_top))

        return pressures

    @staticmethod
    def _layer_pressure(p_base: float, t_base: float, lapse: float, dh_km: float, t: float) -> float:
        """Pressure dh_km above a layer base at temperature t."""
        if abs(lapse) < 1e-10:
            # Isothermal layer
            return float(p_base * np.exp(-G0 * dh_km * 1000.0 / (R_AIR * t_base)))
        # Gradient layer
        lapse_m = lapse / 1000.0  # K/m
        return float(p_base * (t / t_base) ** (-G0 / (R_AIR * lapse_m)))

    @staticmethod
    def _find_layer(geopot_km: float) -> int:
        """Find the atmospheric layer index for a geopotential altitude."""
        for i in range(len(LAYERS) - 1, -1, -1):
            if geopot_km >= LAYERS[i][0]:
                return i
        return 0

    @staticmethod
    def geopotential(altitude_km: float) -> float:
        """Convert geometric altitude to geopotential altitude.

        Args:
            altitude_km: Geometric altitude [km]

        Returns:
            Geopotential altitude [km]
        """
        return R_EARTH_GEOPOTENTIAL_KM * altitude_km / (R_EARTH_GEOPOTENTIAL_KM + altitude_km)

    def standard_temperature(self, geopot_km: float) -> float:
        """Get standard temperature at geopotential altitude.

        Args:
            geopot_km: Geopotential altitude [km]

        Returns:
            Temperature [K]
        """
        geopot_km = min(geopot_km, GEOPOTENTIAL_TOP_KM)
        h0, t_base, lapse = LAYERS[self._find_layer(geopot_km)]
        return t_base + lapse * (geopot_km - h0)

    def standard_pressure(self, geopot_km: float, temperature: float) -> float:
        """Get standard pressure at geopotential altitude.

        Args:
            geopot_km: Geopotential altitude [km]
            temperature: Standard temperature at that altitude [K]

        Returns:
            Pressure [Pa]
        """
        geopot_km = min(geopot_km, GEOPOTENTIAL_TOP_KM)
        layer_idx = self._find_layer(geopot_km)
        h0, t_base, lapse = LAYERS[layer_idx]
        return self._layer_pressure(
            self._base_pressures[layer_idx], t_base, lapse, geopot_km - h0, temperature
        )

    @staticmethod
    def air_density(pressure: float, temperature: float) -> float:
        """Ideal-gas air density.

        Args:
            pressure: Static pressure [Pa]
            temperature: Static temperature [K]

        Returns:
            Density [kg/m^3]
        """
        return pressure / (R_AIR * temperature) if temperature > 0 else 0.0

    def at_altitude(self, altitude: float) -> AtmosphereResult:
        """Get all atmospheric properties at a geometric altitude.

        Args:
            altitude: Geometric altitude above sea level [m]

        Returns:
            AtmosphereResult with all properties
        """
        geopot = self.geopotential(altitude / 1000.0)
        T = self.standard_temperature(geopot)
        p = self.standard_pressure(geopot, T)
        rho = self.air_density(p, T)

        return AtmosphereResult(
            altitude=altitude,
            geopotential=geopot,
            temperature=T,
            pressure=p,
            density=rho,
        )
