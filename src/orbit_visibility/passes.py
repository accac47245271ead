"""
Satellite visibility pass prediction.

This module samples the propagator at a fixed time step over a window and
turns the resulting elevation sequence into discrete visibility passes
(AOS, LOS, maximum elevation) for one satellite and one observer.

The detection itself is a pure reducer over a lazy sequence of elevation
samples driving a two-state machine (OUT_OF_VIEW / IN_VIEW), so it can be
exercised with synthetic elevation sequences without any orbit model.
AOS and LOS are accurate to within one sample step.
"""

import logging
import math
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from functools import reduce
from typing import Any, Dict, Iterable, Iterator, List, NamedTuple, Optional, Tuple

from .elements import OrbitalElementSet
from .exceptions import InvalidElementFormat, PropagationError
from .geometry import DEFAULT_MIN_ELEVATION_DEG
from .observers import ObserverLocation
from .propagator import Propagator, get_default_propagator, look_angles_at
from .utils import datetime_to_ms, format_timestamp, ms_to_datetime

logger = logging.getLogger(__name__)

# =============================================================================
# CONSTANTS
# =============================================================================

DEFAULT_PASS_STEP_MS = 60 * 1000
DEFAULT_NEXT_PASS_HORIZON_HOURS = 24.0
MS_PER_HOUR = 3600 * 1000


@dataclass(frozen=True)
class TimeWindow:
    """
    Half-open interval [start, end) in UTC epoch milliseconds.

    An inverted or zero-length window is not an error; it simply yields no
    passes.
    """

    start_ms: int
    end_ms: int

    @property
    def is_empty(self) -> bool:
        return self.end_ms <= self.start_ms

    @property
    def duration_ms(self) -> int:
        return max(0, self.end_ms - self.start_ms)

    @classmethod
    def from_datetimes(cls, start: datetime, end: datetime) -> "TimeWindow":
        return cls(datetime_to_ms(start), datetime_to_ms(end))

    @classmethod
    def from_start(cls, start_ms: int, hours: float) -> "TimeWindow":
        return cls(start_ms, start_ms + int(hours * MS_PER_HOUR))

    def __str__(self) -> str:
        return f"[{format_timestamp(self.start_ms)}, {format_timestamp(self.end_ms)})"


class ElevationSample(NamedTuple):
    """Elevation at one sample time; ``None`` when propagation failed."""

    time_ms: int
    elevation_deg: Optional[float]


class PassInterval(NamedTuple):
    aos_ms: int
    los_ms: int
    max_elevation_deg: float


class PassState(Enum):
    OUT_OF_VIEW = "out_of_view"
    IN_VIEW = "in_view"


@dataclass(frozen=True)
class VisibilityPass:
    """A detected interval where the satellite is above the elevation mask."""

    id: str
    observer_id: str
    observer_name: str
    satellite_id: str
    satellite_name: str
    aos_ms: int  # acquisition of signal
    los_ms: int  # loss of signal
    max_elevation_deg: float

    @property
    def duration_ms(self) -> int:
        return self.los_ms - self.aos_ms

    @property
    def duration_minutes(self) -> int:
        """Duration rounded to whole minutes, as shown in pass tables."""
        return round(self.duration_ms / 60000)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "observer_id": self.observer_id,
            "observer_name": self.observer_name,
            "satellite_id": self.satellite_id,
            "satellite_name": self.satellite_name,
            "aos": self.aos_ms,
            "los": self.los_ms,
            "aos_utc": ms_to_datetime(self.aos_ms).isoformat(),
            "los_utc": ms_to_datetime(self.los_ms).isoformat(),
            "duration_s": round(self.duration_ms / 1000.0, 1),
            "max_elevation": round(self.max_elevation_deg, 2),
        }

    def __str__(self) -> str:
        return (
            f"Pass of {self.satellite_name} over {self.observer_name}: "
            f"{format_timestamp(self.aos_ms)} - {format_timestamp(self.los_ms)} UTC, "
            f"Max Elev: {self.max_elevation_deg:.1f}°"
        )


# =============================================================================
# SAMPLING
# =============================================================================


def sample_times(window: TimeWindow, step_ms: int = DEFAULT_PASS_STEP_MS) -> Iterator[int]:
    """
    Yield ``start, start + step, ...`` while not past the window end.

    The end itself is sampled when it falls on the step grid.
    """
    if step_ms <= 0:
        raise ValueError(f"step_ms must be positive, got {step_ms}")

    current_time = window.start_ms
    while current_time <= window.end_ms:
        yield current_time
        current_time += step_ms


def sample_elevations(
    propagator: Propagator,
    elements: OrbitalElementSet,
    observer: ObserverLocation,
    window: TimeWindow,
    step_ms: int = DEFAULT_PASS_STEP_MS,
) -> Iterator[ElevationSample]:
    """
    Lazily sample the observer's elevation angle to the satellite.

    A PropagationError at one sample yields ``elevation_deg=None`` and the
    scan continues. InvalidElementFormat is not caught: an unusable element
    set aborts the whole scan.
    """
    for time_ms in sample_times(window, step_ms):
        try:
            elevation = look_angles_at(propagator, elements, observer, time_ms).elevation_deg
        except PropagationError as e:
            logger.debug(f"Skipping sample at {format_timestamp(time_ms)}: {e}")
            yield ElevationSample(time_ms, None)
            continue

        if not math.isfinite(elevation):
            logger.debug(f"Skipping non-finite elevation at {format_timestamp(time_ms)}")
            yield ElevationSample(time_ms, None)
            continue

        yield ElevationSample(time_ms, elevation)


# =============================================================================
# DETECTION
# =============================================================================


@dataclass(frozen=True)
class _ScanState:
    state: PassState = PassState.OUT_OF_VIEW
    aos_ms: Optional[int] = None
    max_elevation_deg: float = -math.inf
    passes: Tuple[PassInterval, ...] = field(default_factory=tuple)


def _close(scan: _ScanState, los_ms: int) -> _ScanState:
    passes = scan.passes
    if scan.aos_ms is not None and scan.aos_ms < los_ms:
        passes = passes + (PassInterval(scan.aos_ms, los_ms, scan.max_elevation_deg),)
    return _ScanState(passes=passes)


def _step(min_elevation_deg: float, scan: _ScanState, sample: ElevationSample) -> _ScanState:
    if sample.elevation_deg is None:
        return scan

    visible = sample.elevation_deg >= min_elevation_deg

    if scan.state is PassState.OUT_OF_VIEW:
        if visible:
            return replace(
                scan,
                state=PassState.IN_VIEW,
                aos_ms=sample.time_ms,
                max_elevation_deg=sample.elevation_deg,
            )
        return scan

    if visible:
        return replace(scan, max_elevation_deg=max(scan.max_elevation_deg, sample.elevation_deg))

    return _close(scan, sample.time_ms)


def detect_passes(
    samples: Iterable[ElevationSample],
    min_elevation_deg: float,
    window_end_ms: int,
) -> List[PassInterval]:
    """
    Reduce an elevation sequence to pass intervals.

    A pass opens at the first sample at or above the threshold and closes at
    the first later sample below it, so LOS is the first below-threshold
    sample time. Failed samples (``None``) cause no transition. A pass still
    open when the samples run out is closed at ``window_end_ms``.
    Zero-duration intervals are dropped.

    Args:
        samples: Time-ordered elevation samples
        min_elevation_deg: Elevation threshold in degrees
        window_end_ms: LOS used for a pass open at the end of the samples

    Returns:
        List of PassInterval in AOS order
    """
    scan = reduce(
        lambda acc, sample: _step(min_elevation_deg, acc, sample),
        samples,
        _ScanState(),
    )

    if scan.state is PassState.IN_VIEW:
        scan = _close(scan, window_end_ms)

    return list(scan.passes)


# =============================================================================
# PREDICTION
# =============================================================================


class PassPredictor:
    """
    Predicts visibility passes of satellites over observers.

    Holds the propagator and sampling settings; every call is a
    self-contained scan with no state carried between calls.
    """

    def __init__(
        self,
        propagator: Optional[Propagator] = None,
        min_elevation_deg: float = DEFAULT_MIN_ELEVATION_DEG,
        step_ms: int = DEFAULT_PASS_STEP_MS,
    ) -> None:
        """
        Initialize the predictor.

        Args:
            propagator: Orbit model (defaults to the orbit-predictor adapter)
            min_elevation_deg: Elevation threshold in degrees
            step_ms: Sampling step in milliseconds
        """
        if step_ms <= 0:
            raise ValueError(f"step_ms must be positive, got {step_ms}")

        self.propagator = propagator or get_default_propagator()
        self.min_elevation_deg = min_elevation_deg
        self.step_ms = step_ms

    def predict(
        self,
        elements: OrbitalElementSet,
        observer: ObserverLocation,
        window: TimeWindow,
        satellite_id: Optional[str] = None,
        satellite_name: Optional[str] = None,
    ) -> List[VisibilityPass]:
        """
        Find all passes of one satellite over one observer within a window.

        Raises:
            InvalidElementFormat: If the element set cannot be propagated at all
        """
        if window.is_empty:
            logger.debug(f"Empty window {window} for {observer.name}; no passes")
            return []

        satellite_id = satellite_id or elements.norad_id
        satellite_name = satellite_name or elements.name or satellite_id

        logger.debug(
            f"Finding passes of {satellite_name} over {observer.name} in {window} "
            f"(step {self.step_ms} ms, mask {self.min_elevation_deg}°)"
        )

        samples = sample_elevations(self.propagator, elements, observer, window, self.step_ms)
        intervals = detect_passes(samples, self.min_elevation_deg, window.end_ms)

        passes = [
            VisibilityPass(
                id=f"pass-{observer.id}-{satellite_id}-{index}",
                observer_id=observer.id,
                observer_name=observer.name,
                satellite_id=satellite_id,
                satellite_name=satellite_name,
                aos_ms=interval.aos_ms,
                los_ms=interval.los_ms,
                max_elevation_deg=interval.max_elevation_deg,
            )
            for index, interval in enumerate(intervals)
        ]

        logger.info(f"Found {len(passes)} passes of {satellite_name} over {observer.name}")
        return passes

    def next_pass(
        self,
        elements: OrbitalElementSet,
        observer: ObserverLocation,
        start_ms: int,
        max_search_hours: float = DEFAULT_NEXT_PASS_HORIZON_HOURS,
    ) -> Optional[VisibilityPass]:
        """
        Get the next pass of a satellite over an observer.

        Args:
            elements: Orbital element set
            observer: Ground observer
            start_ms: Start search time (UTC epoch ms)
            max_search_hours: Maximum hours to search ahead

        Returns:
            Next VisibilityPass or None if no pass found
        """
        passes = self.predict(elements, observer, TimeWindow.from_start(start_ms, max_search_hours))

        if passes:
            return passes[0]

        return None


def predict_passes(
    elements: OrbitalElementSet,
    observer: ObserverLocation,
    window: TimeWindow,
    min_elevation_deg: float = DEFAULT_MIN_ELEVATION_DEG,
    step_ms: int = DEFAULT_PASS_STEP_MS,
    propagator: Optional[Propagator] = None,
    satellite_id: Optional[str] = None,
    satellite_name: Optional[str] = None,
) -> List[VisibilityPass]:
    """
    Predict visibility passes for one (satellite, observer) pair.

    An element set the propagator cannot use at all yields an empty list
    and an error log; transient per-sample failures are skipped.

    Args:
        elements: Orbital element set
        observer: Ground observer
        window: Search window
        min_elevation_deg: Elevation threshold in degrees (default 10)
        step_ms: Sampling step in milliseconds (default 60 s)
        propagator: Orbit model (defaults to the orbit-predictor adapter)
        satellite_id: Identifier recorded on each pass (defaults to NORAD id)
        satellite_name: Name recorded on each pass

    Returns:
        List of VisibilityPass ordered by AOS
    """
    predictor = PassPredictor(propagator, min_elevation_deg, step_ms)
    try:
        return predictor.predict(elements, observer, window, satellite_id, satellite_name)
    except InvalidElementFormat as e:
        logger.error(f"Error calculating passes for {elements} over {observer.name}: {e}")
        return []
