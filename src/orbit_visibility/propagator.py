"""
Orbit propagation adapter.

This module wraps the orbit-predictor library (SGP4/SDP4) behind a narrow
interface: propagate an element set to an instant, convert between the
inertial and Earth-fixed frames, and compute topocentric look angles for
an observer. The pass predictor and ground track generator only talk to
the ``Propagator`` protocol so they can be driven by a scripted fake in
tests.
"""

from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Protocol, Tuple
import logging
import math

import numpy as np
from orbit_predictor import coordinate_systems  # type: ignore[import-untyped]
from orbit_predictor.predictors import TLEPredictor  # type: ignore[import-untyped]
from orbit_predictor.sources import get_predictor_from_tle_lines  # type: ignore[import-untyped]
from orbit_predictor.utils import gstime_from_datetime  # type: ignore[import-untyped]
from sgp4.api import SGP4_ERRORS, Satrec  # type: ignore[import-untyped]

from .elements import OrbitalElementSet
from .exceptions import InvalidElementFormat, PropagationError
from .observers import ObserverLocation
from .utils import ms_to_datetime

logger = logging.getLogger(__name__)

# LRU cache size for constructed predictors (one per element set)
PREDICTOR_CACHE_SIZE = 256


@dataclass(frozen=True, eq=False)
class StateVector:
    """Position (km) and velocity (km/s) in the Earth-centred inertial frame."""

    position_km: np.ndarray
    velocity_km_s: np.ndarray


@dataclass(frozen=True)
class Geodetic:
    latitude_rad: float
    longitude_rad: float
    height_km: float


@dataclass(frozen=True)
class LookAngles:
    """Topocentric angles from an observer to a satellite."""

    azimuth_rad: float  # from North, clockwise, [0, 2pi)
    elevation_rad: float
    range_km: float

    @property
    def azimuth_deg(self) -> float:
        return math.degrees(self.azimuth_rad)

    @property
    def elevation_deg(self) -> float:
        return math.degrees(self.elevation_rad)


class Propagator(Protocol):
    """Capability the engine needs from an orbit model."""

    def propagate(self, elements: OrbitalElementSet, time_ms: int) -> StateVector:
        ...

    def sidereal_time(self, time_ms: int) -> float:
        ...

    def eci_to_ecf(self, position_eci: np.ndarray, sidereal_time_rad: float) -> np.ndarray:
        ...

    def to_geodetic(self, position_eci: np.ndarray, sidereal_time_rad: float) -> Geodetic:
        ...

    def look_angles(self, observer: ObserverLocation, position_ecf: np.ndarray) -> LookAngles:
        ...


def eci_to_ecf(position_eci: np.ndarray, gmst_rad: float) -> np.ndarray:
    """Rotate an inertial vector into the Earth-fixed frame about the z axis."""
    return np.array(coordinate_systems.eci_to_ecef(position_eci, gmst_rad), dtype=float)


def _check_element_set(lines: Tuple[str, str]) -> None:
    """
    Parse the lines with SGP4 and propagate once at their epoch.

    Building an orbit-predictor predictor does not validate the lines, so an
    unusable set would otherwise only fail sample by sample.

    Raises:
        InvalidElementFormat: If SGP4 cannot initialise or propagate the set
    """
    try:
        satrec = Satrec.twoline2rv(*lines)
        status, _, _ = satrec.sgp4(satrec.jdsatepoch, satrec.jdsatepochF)
    except Exception as e:
        raise InvalidElementFormat(f"Propagator rejected element set: {e}") from e

    error_code = satrec.error or status
    if error_code:
        message = SGP4_ERRORS.get(error_code, f"SGP4 error code {error_code}")
        raise InvalidElementFormat(f"Propagator rejected element set: {message}")


def compute_look_angles(
    observer: ObserverLocation, position_ecf: np.ndarray
) -> LookAngles:
    """
    Azimuth, elevation and slant range from an observer to an ECF position.

    Uses the topocentric south-east-zenith frame at the observer's geodetic
    location.

    Args:
        observer: Ground observer
        position_ecf: Satellite position in the Earth-fixed frame (km)

    Returns:
        LookAngles
    """
    observer_ecf = np.array(
        coordinate_systems.llh_to_ecef(
            observer.latitude, observer.longitude, observer.altitude_km
        ),
        dtype=float,
    )
    rx, ry, rz = np.asarray(position_ecf, dtype=float) - observer_ecf

    lat = math.radians(observer.latitude)
    lon = math.radians(observer.longitude)
    sin_lat, cos_lat = math.sin(lat), math.cos(lat)
    sin_lon, cos_lon = math.sin(lon), math.cos(lon)

    top_s = sin_lat * cos_lon * rx + sin_lat * sin_lon * ry - cos_lat * rz
    top_e = -sin_lon * rx + cos_lon * ry
    top_z = cos_lat * cos_lon * rx + cos_lat * sin_lon * ry + sin_lat * rz

    range_km = math.sqrt(top_s * top_s + top_e * top_e + top_z * top_z)
    if range_km == 0.0:
        return LookAngles(azimuth_rad=0.0, elevation_rad=math.pi / 2, range_km=0.0)

    elevation = math.asin(max(-1.0, min(1.0, top_z / range_km)))
    azimuth = math.atan2(top_e, -top_s) % (2 * math.pi)

    return LookAngles(azimuth_rad=azimuth, elevation_rad=elevation, range_km=range_km)


class OrbitPredictorPropagator:
    """
    SGP4 propagator backed by orbit-predictor's TLEPredictor.

    Predictors are built once per element set and kept in a bounded LRU
    cache; the adapter itself holds no other state and is safe to share
    between worker threads.
    """

    def __init__(self, cache_size: int = PREDICTOR_CACHE_SIZE) -> None:
        self._get_predictor = lru_cache(maxsize=cache_size)(self._build_predictor)

    @staticmethod
    def _build_predictor(lines: Tuple[str, str]) -> TLEPredictor:
        _check_element_set(lines)
        try:
            return get_predictor_from_tle_lines(lines)
        except Exception as e:
            raise InvalidElementFormat(f"Propagator rejected element set: {e}") from e

    def load(self, elements: OrbitalElementSet) -> TLEPredictor:
        """
        Get the cached predictor for an element set.

        Raises:
            InvalidElementFormat: If SGP4 cannot initialise from the lines or
                cannot propagate them at their own epoch
        """
        return self._get_predictor(elements.lines)

    def propagate(self, elements: OrbitalElementSet, time_ms: int) -> StateVector:
        """
        Propagate an element set to an instant.

        Args:
            elements: Orbital element set
            time_ms: UTC epoch milliseconds

        Returns:
            StateVector in the TEME inertial frame SGP4 works in

        Raises:
            InvalidElementFormat: If the element set is unusable as a whole
            PropagationError: If the model fails or yields non-finite values
        """
        predictor = self.load(elements)
        when_utc = ms_to_datetime(time_ms)

        try:
            position, velocity = predictor.propagate_eci(when_utc)
        except Exception as e:
            raise PropagationError(f"Propagation failed at {when_utc}: {e}", time_ms) from e

        position_eci = np.asarray(position, dtype=float)
        velocity_eci = np.asarray(velocity, dtype=float)

        if not (np.all(np.isfinite(position_eci)) and np.all(np.isfinite(velocity_eci))):
            raise PropagationError(f"Non-finite state vector at {when_utc}", time_ms)

        return StateVector(position_km=position_eci, velocity_km_s=velocity_eci)

    def sidereal_time(self, time_ms: int) -> float:
        """Greenwich mean sidereal time in radians."""
        return float(gstime_from_datetime(ms_to_datetime(time_ms)))

    def eci_to_ecf(self, position_eci: np.ndarray, sidereal_time_rad: float) -> np.ndarray:
        return eci_to_ecf(position_eci, sidereal_time_rad)

    def to_geodetic(self, position_eci: np.ndarray, sidereal_time_rad: float) -> Geodetic:
        """Geodetic latitude/longitude (radians) and height above the WGS84 ellipsoid."""
        position_ecf = eci_to_ecf(position_eci, sidereal_time_rad)
        lat_deg, lon_deg, height_km = coordinate_systems.ecef_to_llh(position_ecf)
        return Geodetic(
            latitude_rad=math.radians(lat_deg),
            longitude_rad=math.radians(lon_deg),
            height_km=float(height_km),
        )

    def look_angles(self, observer: ObserverLocation, position_ecf: np.ndarray) -> LookAngles:
        return compute_look_angles(observer, position_ecf)


_default_propagator: Optional[OrbitPredictorPropagator] = None


def get_default_propagator() -> OrbitPredictorPropagator:
    """Shared orbit-predictor adapter used when callers inject none."""
    global _default_propagator

    if _default_propagator is None:
        _default_propagator = OrbitPredictorPropagator()
    return _default_propagator


def look_angles_at(
    propagator: Propagator,
    elements: OrbitalElementSet,
    observer: ObserverLocation,
    time_ms: int,
) -> LookAngles:
    """
    Look angles from an observer to a satellite at one instant.

    Raises:
        InvalidElementFormat: If the element set is unusable
        PropagationError: If this sample cannot be propagated
    """
    state = propagator.propagate(elements, time_ms)
    gmst = propagator.sidereal_time(time_ms)
    position_ecf = propagator.eci_to_ecf(state.position_km, gmst)
    return propagator.look_angles(observer, position_ecf)
