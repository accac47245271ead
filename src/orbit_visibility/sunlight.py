"""
Sun position, subsolar point and day/night terminator.

This module uses the low-precision solar coordinates from the
Astronomical Almanac (mean longitude plus a two-term equation of centre),
good to roughly 0.01 degrees in declination. That is ample for a day/night
map overlay but not for precision ephemeris work.
"""

import math
from dataclasses import dataclass
from typing import Dict, List, Tuple

from .geometry import normalize_longitude

# J2000.0 epoch (2000-01-01 12:00:00 UTC) in UTC epoch milliseconds
J2000_MS = 946728000000
MS_PER_DAY = 86400000.0

# Declinations closer to zero than this are nudged when tracing the
# terminator to keep tan(dec) away from zero.
MIN_TERMINATOR_DECLINATION_DEG = 1e-4


@dataclass(frozen=True)
class SubsolarPoint:
    """Point on the Earth's surface directly beneath the Sun."""

    latitude_deg: float
    longitude_deg: float

    def to_dict(self) -> Dict[str, float]:
        return {
            "latitude_deg": round(self.latitude_deg, 4),
            "longitude_deg": round(self.longitude_deg, 4),
        }


def _days_since_j2000(time_ms: int) -> float:
    return (time_ms - J2000_MS) / MS_PER_DAY


def calculate_gmst(time_ms: int) -> float:
    """
    Calculate Greenwich Mean Sidereal Time (GMST) in degrees.

    Args:
        time_ms: UTC epoch milliseconds

    Returns:
        GMST in degrees, [0, 360)
    """
    days = _days_since_j2000(time_ms)
    T = days / 36525.0  # Julian centuries
    gmst = 280.46061837 + 360.98564736629 * days + 0.000387933 * T * T

    return gmst % 360.0


def solar_coordinates(time_ms: int) -> Tuple[float, float, float]:
    """
    Calculate the Sun's apparent position.

    Args:
        time_ms: UTC epoch milliseconds

    Returns:
        Tuple of (ecliptic_longitude_deg, right_ascension_deg, declination_deg)
    """
    n = _days_since_j2000(time_ms)

    # Mean longitude and mean anomaly
    L = (280.460 + 0.9856474 * n) % 360.0
    g = math.radians((357.528 + 0.9856003 * n) % 360.0)

    # Equation of centre
    ecliptic_lon = (L + 1.915 * math.sin(g) + 0.020 * math.sin(2 * g)) % 360.0

    # Obliquity of the ecliptic
    obliquity = math.radians(23.439 - 0.0000004 * n)

    lam = math.radians(ecliptic_lon)
    right_ascension = math.degrees(
        math.atan2(math.cos(obliquity) * math.sin(lam), math.cos(lam))
    ) % 360.0
    declination = math.degrees(math.asin(math.sin(obliquity) * math.sin(lam)))

    return ecliptic_lon, right_ascension, declination


def subsolar_point(time_ms: int) -> SubsolarPoint:
    """
    Calculate the subsolar point.

    Latitude is the solar declination; longitude is the Sun's right
    ascension minus Greenwich sidereal time.

    Args:
        time_ms: UTC epoch milliseconds

    Returns:
        SubsolarPoint in degrees
    """
    _, right_ascension, declination = solar_coordinates(time_ms)
    longitude = normalize_longitude(right_ascension - calculate_gmst(time_ms))
    return SubsolarPoint(latitude_deg=declination, longitude_deg=longitude)


def sun_elevation_deg(latitude: float, longitude: float, time_ms: int) -> float:
    """
    Get the sun elevation angle at a ground location.

    Args:
        latitude: Latitude in degrees
        longitude: Longitude in degrees
        time_ms: UTC epoch milliseconds

    Returns:
        Sun elevation angle in degrees (positive = above horizon, negative = below)
    """
    sun = subsolar_point(time_ms)
    lat = math.radians(latitude)
    dec = math.radians(sun.latitude_deg)
    hour_angle = math.radians(longitude - sun.longitude_deg)

    cos_zenith = (math.sin(lat) * math.sin(dec) +
                  math.cos(lat) * math.cos(dec) * math.cos(hour_angle))
    return 90.0 - math.degrees(math.acos(max(-1.0, min(1.0, cos_zenith))))


def is_daylight(latitude: float, longitude: float, time_ms: int) -> bool:
    """Check whether the Sun is above the horizon at a ground location."""
    return sun_elevation_deg(latitude, longitude, time_ms) > 0.0


def terminator(time_ms: int, num_points: int = 181) -> List[Tuple[float, float]]:
    """
    Trace the day/night terminator.

    The terminator is the great circle 90 degrees from the subsolar point,
    sampled at evenly spaced longitudes from -180 to 180.

    Args:
        time_ms: UTC epoch milliseconds
        num_points: Number of samples (at least 2)

    Returns:
        List of (latitude, longitude) tuples ordered by longitude
    """
    if num_points < 2:
        raise ValueError(f"num_points must be at least 2, got {num_points}")

    sun = subsolar_point(time_ms)
    declination = sun.latitude_deg
    if abs(declination) < MIN_TERMINATOR_DECLINATION_DEG:
        declination = math.copysign(MIN_TERMINATOR_DECLINATION_DEG, declination)
    tan_dec = math.tan(math.radians(declination))

    step = 360.0 / (num_points - 1)
    points = []
    for i in range(num_points):
        lon = -180.0 + i * step
        hour_angle = math.radians(lon - sun.longitude_deg)
        lat = math.degrees(math.atan(-math.cos(hour_angle) / tan_dec))
        points.append((lat, lon))

    return points
