"""Geodetic reference points and local NED <-> geodetic conversion.

Uses an azimuthal equidistant projection on a spherical Earth around a
home reference point, adequate for the few-kilometre range of a multirotor.
Core functions are numba-compiled for performance.

The home reference precomputes the trigonometry of the home latitude and
longitude once; every conversion reuses it.

Example:
    >>> from drone.environment.earth import GeoPoint, HomeGeoPoint, ned_to_geodetic
    >>>
    >>> home = HomeGeoPoint.from_geo_point(GeoPoint(47.641468, -122.140165, 122.0))
    >>> point = ned_to_geodetic(np.array([100.0, 0.0, -10.0]), home)
    >>> point.altitude  # 132.0
"""

import math
from dataclasses import dataclass

import numpy as np
from beartype import beartype
from numba import njit
from numpy.typing import NDArray

# =============================================================================
# Constants
# =============================================================================

EARTH_RADIUS: float = 6378137.0  # Equatorial radius [m]


# =============================================================================
# Geodetic Points
# =============================================================================


@beartype
@dataclass(frozen=True)
class GeoPoint:
    """Latitude/longitude/altitude triple.

    Attributes:
        latitude: Geodetic latitude [deg]
        longitude: Geodetic longitude [deg]
        altitude: Altitude above sea level [m] (positive up)
    """
    latitude: float = 0.0
    longitude: float = 0.0
    altitude: float = 0.0

    @classmethod
    def nan(cls) -> "GeoPoint":
        """Sentinel for an unknown location."""
        return cls(math.nan, math.nan, math.nan)

    def has_nan(self) -> bool:
        """Check whether any component is NaN."""
        return math.isnan(self.latitude) or math.isnan(self.longitude) or math.isnan(self.altitude)

    def __str__(self) -> str:
        return f"{self.latitude:.6f}, {self.longitude:.6f}, {self.altitude:.2f}"


@beartype
@dataclass(frozen=True)
class HomeGeoPoint:
    """Home reference with precomputed trigonometry.

    Attributes:
        home_geo_point: Reference point
        lat_rad: Latitude [rad]
        lon_rad: Longitude [rad]
        sin_lat: sin(latitude)
        cos_lat: cos(latitude)
    """
    home_geo_point: GeoPoint
    lat_rad: float
    lon_rad: float
    sin_lat: float
    cos_lat: float

    @classmethod
    def from_geo_point(cls, geo_point: GeoPoint) -> "HomeGeoPoint":
        """Derive the home reference from a geodetic point."""
        lat_rad = math.radians(geo_point.latitude)
        lon_rad = math.radians(geo_point.longitude)
        return cls(
            home_geo_point=geo_point,
            lat_rad=lat_rad,
            lon_rad=lon_rad,
            sin_lat=math.sin(lat_rad),
            cos_lat=math.cos(lat_rad),
        )


# =============================================================================
# Numba-Optimized Core Functions
# =============================================================================


@njit(cache=True)
def _ned_to_geodetic(
    x: float, y: float, z: float,
    lat_deg: float, lon_deg: float,
    lat_rad: float, lon_rad: float, sin_lat: float, cos_lat: float,
    home_altitude: float,
    radius: float = EARTH_RADIUS,
) -> tuple[float, float, float]:
    """Inverse azimuthal equidistant projection.

    Returns (lat_deg, lon_deg, altitude_m). Zero horizontal offset returns
    the home degrees unchanged.
    """
    x_rad = x / radius
    y_rad = y / radius
    c = np.sqrt(x_rad * x_rad + y_rad * y_rad)

    if c == 0.0:
        return (lat_deg, lon_deg, home_altitude - z)

    sin_c = np.sin(c)
    cos_c = np.cos(c)
    arg = cos_c * sin_lat + (x_rad * sin_c * cos_lat) / c
    arg = min(1.0, max(-1.0, arg))
    lat = np.arcsin(arg)
    lon = lon_rad + np.arctan2(y_rad * sin_c, c * cos_lat * cos_c - x_rad * sin_lat * sin_c)

    return (np.degrees(lat), np.degrees(lon), home_altitude - z)


@njit(cache=True)
def _geodetic_to_ned(
    lat_deg: float, lon_deg: float, altitude: float,
    lat_rad: float, lon_rad: float, sin_lat: float, cos_lat: float,
    home_altitude: float,
    radius: float = EARTH_RADIUS,
) -> tuple[float, float, float]:
    """Forward azimuthal equidistant projection.

    Returns (north, east, down) [m].
    """
    lat = np.radians(lat_deg)
    lon = np.radians(lon_deg)
    sin_p = np.sin(lat)
    cos_p = np.cos(lat)
    cos_d_lon = np.cos(lon - lon_rad)

    arg = sin_lat * sin_p + cos_lat * cos_p * cos_d_lon
    arg = min(1.0, max(-1.0, arg))
    c = np.arccos(arg)
    sin_c = np.sin(c)

    # c/sin(c) -> 1 as c -> 0; at the antipode the bearing is undefined
    if sin_c < 1e-12:
        k = 1.0
    else:
        k = c / sin_c

    north = k * (cos_lat * sin_p - sin_lat * cos_p * cos_d_lon) * radius
    east = k * cos_p * np.sin(lon - lon_rad) * radius
    down = home_altitude - altitude
    return (north, east, down)


# =============================================================================
# Public Conversions
# =============================================================================


@beartype
def ned_to_geodetic(position: NDArray[np.floating], home: HomeGeoPoint) -> GeoPoint:
    """Convert a local NED position to a geodetic point.

    Args:
        position: [north, east, down] relative to home [m]
        home: Home reference

    Returns:
        GeoPoint; altitude is home altitude minus down
    """
    lat, lon, alt = _ned_to_geodetic(
        float(position[0]), float(position[1]), float(position[2]),
        home.home_geo_point.latitude, home.home_geo_point.longitude,
        home.lat_rad, home.lon_rad, home.sin_lat, home.cos_lat,
        float(home.home_geo_point.altitude),
    )
    return GeoPoint(float(lat), float(lon), float(alt))


@beartype
def geodetic_to_ned(point: GeoPoint, home: HomeGeoPoint) -> NDArray[np.float64]:
    """Convert a geodetic point to a local NED position.

    Args:
        point: Geodetic point
        home: Home reference

    Returns:
        [north, east, down] relative to home [m]
    """
    north, east, down = _geodetic_to_ned(
        point.latitude, point.longitude, point.altitude,
        home.lat_rad, home.lon_rad, home.sin_lat, home.cos_lat,
        float(home.home_geo_point.altitude),
    )
    return np.array([north, east, down])
