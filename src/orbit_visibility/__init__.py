"""
Orbit Visibility Engine

Satellite pass prediction, ground track generation and visibility
geometry (footprint radius, subsolar point, day/night terminator) for
ground station monitoring.
"""

from .aggregator import PassAggregator, SatelliteRecord, predict_passes_multi
from .elements import OrbitalElementSet, parse_elements
from .exceptions import InvalidElementFormat, OrbitVisibilityError, PropagationError
from .geometry import footprint_radius_km, normalize_longitude
from .ground_track import GroundTrackSegment, ground_track
from .observers import ObserverLocation
from .passes import PassPredictor, TimeWindow, VisibilityPass, predict_passes

__version__ = "0.1.0"
__author__ = "Orbit Visibility Team"

__all__ = [
    "OrbitalElementSet",
    "parse_elements",
    "ObserverLocation",
    "TimeWindow",
    "VisibilityPass",
    "PassPredictor",
    "predict_passes",
    "PassAggregator",
    "SatelliteRecord",
    "predict_passes_multi",
    "GroundTrackSegment",
    "ground_track",
    "footprint_radius_km",
    "normalize_longitude",
    "OrbitVisibilityError",
    "InvalidElementFormat",
    "PropagationError",
]
