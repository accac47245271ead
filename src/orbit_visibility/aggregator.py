"""
Multi-target pass aggregation.

This module runs the pass predictor across many (satellite, observer)
pairs, either one satellite over many ground stations or one ground
station over many satellites, and merges the results into a single list
sorted by AOS. Pairs are independent, so they can optionally be fanned
out across a thread pool.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple
import logging
import os

from .elements import OrbitalElementSet, parse_elements
from .exceptions import InvalidElementFormat
from .geometry import DEFAULT_MIN_ELEVATION_DEG
from .observers import ObserverLocation
from .passes import DEFAULT_PASS_STEP_MS, PassPredictor, TimeWindow, VisibilityPass
from .propagator import Propagator

logger = logging.getLogger(__name__)

NO_ELEMENTS_REASON = "no usable orbital elements"


@dataclass(frozen=True)
class SatelliteRecord:
    """A satellite as supplied by the dashboard: identity plus optional elements."""

    id: str
    name: str
    elements: Optional[OrbitalElementSet] = None

    @classmethod
    def from_tle_text(cls, id: str, name: str, text: Optional[str]) -> "SatelliteRecord":
        """
        Build a record from raw TLE text.

        Unparseable text gives a record without elements rather than an
        error, so the satellite simply contributes no passes.
        """
        try:
            elements = parse_elements(text or "", name=name)
        except InvalidElementFormat as e:
            logger.warning(f"Satellite '{name}' has no usable TLE: {e}")
            elements = None
        return cls(id=id, name=name, elements=elements)


@dataclass(frozen=True)
class PredictionFailure:
    """A recoverable failure for one (satellite, observer) pair."""

    satellite_id: str
    observer_id: str
    reason: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "satellite_id": self.satellite_id,
            "observer_id": self.observer_id,
            "reason": self.reason,
        }


@dataclass
class AggregationResult:
    passes: List[VisibilityPass] = field(default_factory=list)
    failures: List[PredictionFailure] = field(default_factory=list)


@dataclass(frozen=True)
class PassStatistics:
    """Summary figures for a pass list."""

    count: int
    total_minutes: float
    avg_minutes: float
    min_minutes: float
    max_minutes: float
    highest_elevation_deg: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "count": self.count,
            "total_minutes": round(self.total_minutes, 1),
            "avg_minutes": round(self.avg_minutes, 1),
            "min_minutes": round(self.min_minutes, 1),
            "max_minutes": round(self.max_minutes, 1),
            "highest_elevation_deg": round(self.highest_elevation_deg, 2),
        }


def sort_by_aos(passes: Sequence[VisibilityPass]) -> List[VisibilityPass]:
    """Sort passes by AOS; ties keep their existing order."""
    return sorted(passes, key=lambda p: p.aos_ms)


def summarize_passes(passes: Sequence[VisibilityPass]) -> PassStatistics:
    """
    Compute count, duration and elevation statistics for a pass list.

    An empty list gives all zeros.
    """
    if not passes:
        return PassStatistics(0, 0.0, 0.0, 0.0, 0.0, 0.0)

    durations = [p.duration_ms / 60000.0 for p in passes]
    total = sum(durations)
    return PassStatistics(
        count=len(passes),
        total_minutes=total,
        avg_minutes=total / len(durations),
        min_minutes=min(durations),
        max_minutes=max(durations),
        highest_elevation_deg=max(p.max_elevation_deg for p in passes),
    )


def get_optimal_workers(max_workers: Optional[int] = None, num_tasks: int = 0) -> int:
    """
    Determine the number of worker threads.

    Args:
        max_workers: Maximum number of workers (None = auto-detect)
        num_tasks: Number of (satellite, observer) pairs to process

    Returns:
        Number of workers, at least 1
    """
    cpu_count = os.cpu_count() or 4

    if max_workers is not None:
        return max(1, min(max_workers, cpu_count))

    # Don't spawn more workers than tasks
    if num_tasks > 0:
        return min(num_tasks, cpu_count)

    return cpu_count


class PassAggregator:
    """
    Runs pass prediction over many (satellite, observer) pairs.

    Results are concatenated in pair order and then stable-sorted by AOS,
    so passes with equal AOS appear in the order their pairs were given,
    whether or not the pairs ran in parallel.
    """

    def __init__(
        self,
        propagator: Optional[Propagator] = None,
        min_elevation_deg: float = DEFAULT_MIN_ELEVATION_DEG,
        step_ms: int = DEFAULT_PASS_STEP_MS,
        max_workers: Optional[int] = None,
        use_parallel: bool = False,
    ) -> None:
        self.predictor = PassPredictor(propagator, min_elevation_deg, step_ms)
        self.max_workers = max_workers
        self.use_parallel = use_parallel

    def _run_pair(
        self,
        satellite: SatelliteRecord,
        observer: ObserverLocation,
        window: TimeWindow,
    ) -> Tuple[List[VisibilityPass], Optional[PredictionFailure]]:
        if satellite.elements is None:
            return [], PredictionFailure(satellite.id, observer.id, NO_ELEMENTS_REASON)

        try:
            passes = self.predictor.predict(
                satellite.elements,
                observer,
                window,
                satellite_id=satellite.id,
                satellite_name=satellite.name,
            )
        except InvalidElementFormat as e:
            logger.error(f"Error calculating passes for {satellite.name} over {observer.name}: {e}")
            return [], PredictionFailure(satellite.id, observer.id, str(e))

        return passes, None

    def aggregate(
        self,
        pairs: Sequence[Tuple[SatelliteRecord, ObserverLocation]],
        window: TimeWindow,
    ) -> AggregationResult:
        """
        Predict passes for every pair and merge them.

        Args:
            pairs: (satellite, observer) pairs in query order
            window: Search window shared by all pairs

        Returns:
            AggregationResult with AOS-sorted passes and per-pair failures
        """
        if not pairs:
            return AggregationResult()

        if self.use_parallel and len(pairs) > 1:
            workers = get_optimal_workers(self.max_workers, len(pairs))
            logger.info(f"Computing passes for {len(pairs)} pairs using {workers} workers")
            with ThreadPoolExecutor(max_workers=workers) as executor:
                futures = [
                    executor.submit(self._run_pair, satellite, observer, window)
                    for satellite, observer in pairs
                ]
                # Collected in submission order, not completion order
                results = [future.result() for future in futures]
        else:
            results = [
                self._run_pair(satellite, observer, window)
                for satellite, observer in pairs
            ]

        merged: List[VisibilityPass] = []
        failures: List[PredictionFailure] = []
        for passes, failure in results:
            merged.extend(passes)
            if failure is not None:
                failures.append(failure)

        logger.info(
            f"Aggregated {len(merged)} passes across {len(pairs)} pairs "
            f"({len(failures)} failed)"
        )
        return AggregationResult(passes=sort_by_aos(merged), failures=failures)

    def one_satellite_many_observers(
        self,
        satellite: SatelliteRecord,
        observers: Sequence[ObserverLocation],
        window: TimeWindow,
    ) -> AggregationResult:
        return self.aggregate([(satellite, observer) for observer in observers], window)

    def one_observer_many_satellites(
        self,
        satellites: Sequence[SatelliteRecord],
        observer: ObserverLocation,
        window: TimeWindow,
    ) -> AggregationResult:
        return self.aggregate([(satellite, observer) for satellite in satellites], window)


def predict_passes_multi(
    elements: OrbitalElementSet,
    observers: Sequence[ObserverLocation],
    window: TimeWindow,
    min_elevation_deg: float = DEFAULT_MIN_ELEVATION_DEG,
    step_ms: int = DEFAULT_PASS_STEP_MS,
    propagator: Optional[Propagator] = None,
    use_parallel: bool = False,
    max_workers: Optional[int] = None,
) -> List[VisibilityPass]:
    """
    Predict passes of one satellite over many observers, sorted by AOS.

    Args:
        elements: Orbital element set
        observers: Ground observers in query order
        window: Search window
        min_elevation_deg: Elevation threshold in degrees (default 10)
        step_ms: Sampling step in milliseconds
        propagator: Orbit model (defaults to the orbit-predictor adapter)
        use_parallel: Fan out across a thread pool
        max_workers: Maximum worker threads (None = auto-detect)

    Returns:
        Merged list of VisibilityPass sorted by AOS
    """
    satellite = SatelliteRecord(
        id=elements.norad_id,
        name=elements.name or elements.norad_id,
        elements=elements,
    )
    aggregator = PassAggregator(propagator, min_elevation_deg, step_ms, max_workers, use_parallel)
    return aggregator.one_satellite_many_observers(satellite, observers, window).passes


def predict_passes_for_observer(
    satellites: Sequence[SatelliteRecord],
    observer: ObserverLocation,
    window: TimeWindow,
    min_elevation_deg: float = DEFAULT_MIN_ELEVATION_DEG,
    step_ms: int = DEFAULT_PASS_STEP_MS,
    propagator: Optional[Propagator] = None,
    use_parallel: bool = False,
    max_workers: Optional[int] = None,
) -> AggregationResult:
    """
    Predict passes of many satellites over one observer.

    Satellites without usable elements contribute no passes and are
    reported in ``failures``.
    """
    aggregator = PassAggregator(propagator, min_elevation_deg, step_ms, max_workers, use_parallel)
    return aggregator.one_observer_many_satellites(satellites, observer, window)
