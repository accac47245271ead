"""
Coordinate and visibility geometry helpers.

Pure functions for longitude normalization, inertial-to-geodetic
conversion and the spherical-Earth visibility footprint. Frame rotations
are delegated to the propagator; this module owns the degree conversions
and the clamping rules applied before anything is drawn on a map.
"""

import math
from typing import Optional, Tuple

from .exceptions import PropagationError
from .propagator import Propagator

# =============================================================================
# CONSTANTS
# =============================================================================

EARTH_RADIUS_KM = 6371.0

# Upper bound on the displayed footprint radius; missing or garbage altitude
# data must not produce a globe-sized circle.
MAX_FOOTPRINT_RADIUS_KM = 4000.0

DEFAULT_MIN_ELEVATION_DEG = 10.0


def normalize_longitude(longitude: float) -> float:
    """
    Map a longitude in degrees to [-180, 180].

    Values already in range are returned unchanged, so the mapping is
    idempotent.

    Raises:
        ValueError: If longitude is infinite or NaN
    """
    if not math.isfinite(longitude):
        raise ValueError(f"Longitude must be finite, got {longitude}")

    lon = math.fmod(longitude, 360.0)
    if lon > 180.0:
        lon -= 360.0
    elif lon < -180.0:
        lon += 360.0
    return lon


def eci_to_geodetic(
    propagator: Propagator, position_eci, time_ms: int
) -> Tuple[float, float, float]:
    """
    Convert an inertial position to geodetic coordinates.

    Args:
        propagator: Frame-conversion capability
        position_eci: Inertial position (km)
        time_ms: UTC epoch milliseconds of the position

    Returns:
        Tuple of (latitude_deg, longitude_deg, height_km), longitude normalized

    Raises:
        PropagationError: If the coordinates are not finite
    """
    gmst = propagator.sidereal_time(time_ms)
    geodetic = propagator.to_geodetic(position_eci, gmst)
    latitude = math.degrees(geodetic.latitude_rad)
    longitude = math.degrees(geodetic.longitude_rad)

    if not (math.isfinite(latitude) and math.isfinite(longitude)):
        raise PropagationError(f"Non-finite geodetic coordinates at {time_ms} ms", time_ms)

    return latitude, normalize_longitude(longitude), geodetic.height_km


def footprint_half_angle_rad(
    altitude_km: Optional[float], min_elevation_deg: float = DEFAULT_MIN_ELEVATION_DEG
) -> float:
    """
    Earth-central half angle of the visibility circle.

    theta = acos(Re / (Re + h) * cos(eps)) - eps on a spherical Earth with a
    flat horizon mask. Missing, non-positive or non-finite altitudes give 0.

    Args:
        altitude_km: Satellite altitude above the surface
        min_elevation_deg: Minimum elevation angle at the edge of the circle

    Returns:
        Half angle in radians, never negative
    """
    if altitude_km is None or not math.isfinite(altitude_km) or altitude_km <= 0:
        return 0.0

    eps = math.radians(min_elevation_deg)
    ratio = EARTH_RADIUS_KM / (EARTH_RADIUS_KM + altitude_km) * math.cos(eps)
    theta = math.acos(max(-1.0, min(1.0, ratio))) - eps
    return max(0.0, theta)


def footprint_radius_km(
    altitude_km: Optional[float],
    min_elevation_deg: float = DEFAULT_MIN_ELEVATION_DEG,
    max_radius_km: float = MAX_FOOTPRINT_RADIUS_KM,
) -> float:
    """
    Ground radius of the region from which the satellite is visible.

    Args:
        altitude_km: Satellite altitude above the surface
        min_elevation_deg: Minimum elevation angle in degrees (default 10)
        max_radius_km: Upper clamp (default 4000)

    Returns:
        Radius in kilometers, clamped to [0, max_radius_km]
    """
    radius = EARTH_RADIUS_KM * footprint_half_angle_rad(altitude_km, min_elevation_deg)
    return max(0.0, min(radius, max_radius_km))


def great_circle_distance_km(
    lat1: float, lon1: float,
    lat2: float, lon2: float
) -> float:
    """
    Calculate great circle distance between two points on Earth.

    Args:
        lat1, lon1: First point coordinates (degrees)
        lat2, lon2: Second point coordinates (degrees)

    Returns:
        Distance in kilometers
    """
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    dlat = lat2_rad - lat1_rad
    dlon = math.radians(lon2 - lon1)

    # Haversine formula
    a = (math.sin(dlat / 2) ** 2 +
         math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(dlon / 2) ** 2)
    c = 2 * math.asin(min(1.0, math.sqrt(a)))

    return EARTH_RADIUS_KM * c


def is_within_footprint(
    sat_lat: float,
    sat_lon: float,
    altitude_km: Optional[float],
    lat: float,
    lon: float,
    min_elevation_deg: float = DEFAULT_MIN_ELEVATION_DEG,
) -> bool:
    """Check whether a ground point lies inside the satellite's visibility circle."""
    theta = footprint_half_angle_rad(altitude_km, min_elevation_deg)
    if theta <= 0.0:
        return False
    return great_circle_distance_km(sat_lat, sat_lon, lat, lon) <= EARTH_RADIUS_KM * theta
