"""
Observer (ground station) definitions and management.

This module provides the immutable observer location used by the pass
predictor and a small catalog for loading and saving station lists.
"""

from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Union
import json
import logging

import yaml  # type: ignore[import-untyped]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ObserverLocation:
    """
    A ground station or other observer on the Earth's surface.

    Coordinates are geodetic: latitude and longitude in degrees, altitude
    in meters above sea level.
    """

    id: str
    name: str
    latitude: float  # degrees, -90 to +90
    longitude: float  # degrees, -180 to +180
    altitude_m: float = 0.0

    def __post_init__(self) -> None:
        if not -90 <= self.latitude <= 90:
            raise ValueError(f"Invalid latitude: {self.latitude}. Must be between -90 and 90 degrees.")

        if not -180 <= self.longitude <= 180:
            raise ValueError(f"Invalid longitude: {self.longitude}. Must be between -180 and 180 degrees.")

    @property
    def altitude_km(self) -> float:
        return self.altitude_m / 1000.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ObserverLocation":
        """
        Create an observer from a dictionary.

        Ground station records from the dashboard API carry ``altitude``
        (meters) instead of ``altitude_m``; both are accepted. A missing
        ``id`` falls back to the name.
        """
        altitude = data.get("altitude_m", data.get("altitude", 0.0))
        return cls(
            id=str(data.get("id") or data["name"]),
            name=data["name"],
            latitude=float(data["latitude"]),
            longitude=float(data["longitude"]),
            altitude_m=float(altitude or 0.0),
        )

    def __str__(self) -> str:
        return f"{self.name} ({self.latitude:.4f}°, {self.longitude:.4f}°)"


class ObserverCatalog:
    """
    Ordered collection of observers.

    Order is preserved because the aggregator's tie-breaking follows the
    order in which observers are queried.
    """

    def __init__(self, observers: Optional[List[ObserverLocation]] = None) -> None:
        self.observers: List[ObserverLocation] = list(observers or [])

    def add(self, observer: ObserverLocation) -> None:
        if not isinstance(observer, ObserverLocation):
            raise TypeError("Observer must be an ObserverLocation instance")

        if self.get(observer.id) is not None:
            logger.warning(f"Observer with id '{observer.id}' already exists. Adding anyway.")

        self.observers.append(observer)
        logger.debug(f"Added observer: {observer}")

    def remove(self, observer_id: str) -> bool:
        for i, observer in enumerate(self.observers):
            if observer.id == observer_id:
                self.observers.pop(i)
                return True

        logger.warning(f"Observer '{observer_id}' not found for removal")
        return False

    def get(self, observer_id: str) -> Optional[ObserverLocation]:
        for observer in self.observers:
            if observer.id == observer_id:
                return observer
        return None

    def save_to_file(self, file_path: Union[str, Path]) -> None:
        """
        Save observers to a JSON or YAML file, chosen by suffix.

        Args:
            file_path: Path to save file
        """
        path = Path(file_path)
        data = {"ground_stations": [observer.to_dict() for observer in self.observers]}

        with open(path, "w") as f:
            if path.suffix.lower() in (".yaml", ".yml"):
                yaml.dump(data, f, default_flow_style=False, sort_keys=False)
            else:
                json.dump(data, f, indent=2)

        logger.info(f"Saved {len(self.observers)} observers to {path}")

    @classmethod
    def load_from_file(cls, file_path: Union[str, Path]) -> "ObserverCatalog":
        """
        Load observers from a JSON or YAML file.

        The file holds a ``ground_stations`` list (a bare list is accepted
        too). Entries with ``active: false`` are skipped.

        Args:
            file_path: Path to load file

        Returns:
            ObserverCatalog with loaded observers
        """
        path = Path(file_path)
        try:
            with open(path, "r") as f:
                if path.suffix.lower() in (".yaml", ".yml"):
                    data = yaml.safe_load(f)
                else:
                    data = json.load(f)
        except Exception as e:
            logger.error(f"Error loading observers from {path}: {e}")
            raise

        entries = data.get("ground_stations", []) if isinstance(data, dict) else (data or [])
        observers = [
            ObserverLocation.from_dict(entry)
            for entry in entries
            if entry.get("active", True)
        ]

        logger.info(f"Loaded {len(observers)} observers from {path}")
        return cls(observers)

    def __len__(self) -> int:
        return len(self.observers)

    def __iter__(self) -> Iterator[ObserverLocation]:
        return iter(self.observers)

    def __repr__(self) -> str:
        return f"ObserverCatalog({len(self.observers)} observers)"
