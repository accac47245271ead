"""
Satellite ground track generation.

Samples the propagator around a centre time, projects each position onto
the Earth's surface and splits the path wherever it crosses the
antimeridian, so that no drawable segment implies a line across the whole
map.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, NamedTuple, Optional, Tuple
import logging

from .elements import OrbitalElementSet
from .exceptions import InvalidElementFormat, PropagationError
from .geometry import eci_to_geodetic
from .propagator import Propagator, get_default_propagator

logger = logging.getLogger(__name__)

DEFAULT_HALF_WINDOW_MINUTES = 90
DEFAULT_STEP_SECONDS = 5

# Longitude jump between consecutive samples that marks a dateline crossing
ANTIMERIDIAN_JUMP_DEG = 180.0


class GroundTrackPoint(NamedTuple):
    time_ms: int
    latitude: float
    longitude: float  # normalized to [-180, 180]
    altitude_km: float


@dataclass
class GroundTrackSegment:
    """Contiguous, non-wrapping run of ground track points."""

    points: List[GroundTrackPoint] = field(default_factory=list)

    @property
    def coordinates(self) -> List[Tuple[float, float]]:
        """(latitude, longitude) pairs ready for a polyline."""
        return [(p.latitude, p.longitude) for p in self.points]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "start": self.points[0].time_ms if self.points else None,
            "end": self.points[-1].time_ms if self.points else None,
            "coordinates": [[round(lat, 5), round(lon, 5)] for lat, lon in self.coordinates],
        }

    def __len__(self) -> int:
        return len(self.points)


def split_at_antimeridian(points: Iterable[GroundTrackPoint]) -> List[GroundTrackSegment]:
    """
    Split a point sequence into segments at antimeridian crossings.

    A new segment starts whenever consecutive longitudes differ by more
    than 180 degrees. Empty segments are never produced.
    """
    segments: List[GroundTrackSegment] = []
    current: List[GroundTrackPoint] = []
    prev_lon: Optional[float] = None

    for point in points:
        if prev_lon is not None and abs(point.longitude - prev_lon) > ANTIMERIDIAN_JUMP_DEG:
            segments.append(GroundTrackSegment(current))
            current = []

        current.append(point)
        prev_lon = point.longitude

    if current:
        segments.append(GroundTrackSegment(current))

    return segments


def current_position(
    elements: OrbitalElementSet,
    time_ms: int,
    propagator: Optional[Propagator] = None,
) -> GroundTrackPoint:
    """
    Sub-satellite point at one instant.

    Raises:
        InvalidElementFormat: If the element set is unusable
        PropagationError: If the position cannot be computed
    """
    propagator = propagator or get_default_propagator()
    state = propagator.propagate(elements, time_ms)
    latitude, longitude, altitude_km = eci_to_geodetic(propagator, state.position_km, time_ms)
    return GroundTrackPoint(time_ms, latitude, longitude, altitude_km)


def _sample_track(
    propagator: Propagator,
    elements: OrbitalElementSet,
    start_ms: int,
    end_ms: int,
    step_ms: int,
) -> Iterator[GroundTrackPoint]:
    for time_ms in range(start_ms, end_ms + 1, step_ms):
        try:
            yield current_position(elements, time_ms, propagator)
        except PropagationError as e:
            logger.debug(f"Skipping ground track sample: {e}")
            continue


def ground_track(
    elements: OrbitalElementSet,
    center_time_ms: int,
    half_window_minutes: float = DEFAULT_HALF_WINDOW_MINUTES,
    step_seconds: float = DEFAULT_STEP_SECONDS,
    propagator: Optional[Propagator] = None,
) -> List[GroundTrackSegment]:
    """
    Generate the ground track within +/- a half window around a centre time.

    Args:
        elements: Orbital element set
        center_time_ms: Centre of the track (UTC epoch ms)
        half_window_minutes: Minutes before and after the centre (default 90)
        step_seconds: Sampling step in seconds (default 5)
        propagator: Orbit model (defaults to the orbit-predictor adapter)

    Returns:
        List of GroundTrackSegment; empty if the elements are unusable
    """
    step_ms = int(round(step_seconds * 1000))
    if step_ms <= 0:
        raise ValueError(f"step_seconds must be positive, got {step_seconds}")
    if half_window_minutes < 0:
        raise ValueError(f"half_window_minutes must not be negative, got {half_window_minutes}")

    propagator = propagator or get_default_propagator()
    half_ms = int(round(half_window_minutes * 60 * 1000))

    try:
        segments = split_at_antimeridian(
            _sample_track(propagator, elements, center_time_ms - half_ms, center_time_ms + half_ms, step_ms)
        )
    except InvalidElementFormat as e:
        logger.error(f"Error generating ground track for {elements}: {e}")
        return []

    total_points = sum(len(segment) for segment in segments)
    logger.info(f"Generated ground track with {total_points} points in {len(segments)} segments")
    return segments
