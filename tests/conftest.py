"""
Pytest configuration and shared fixtures.

This file is automatically loaded by pytest and provides:
- Custom markers for test categorization
- Shared fixtures for common test setup
- A scripted propagator that drives the engine without an orbit model
"""

import math
import sys
from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable, Iterable, List, Tuple

import numpy as np
import pytest
from _pytest.config import Config
from _pytest.python import Function

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from orbit_visibility.exceptions import InvalidElementFormat, PropagationError  # noqa: E402
from orbit_visibility.propagator import Geodetic, LookAngles, StateVector  # noqa: E402


# =============================================================================
# COLLECTION HOOKS
# =============================================================================


def pytest_collection_modifyitems(config: Config, items: List[Function]) -> None:
    """Auto-mark tests under tests/integration."""
    for item in items:
        if "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)


def pytest_configure(config: Config) -> None:
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line("markers", "integration: marks integration tests")


# =============================================================================
# SCRIPTED PROPAGATOR
# =============================================================================


class ScriptedPropagator:
    """
    Deterministic stand-in for the orbit model.

    The sample time is carried through the pipeline in the x component of
    the "position", so look angles and geodetic coordinates can be scripted
    as plain functions of time.
    """

    def __init__(
        self,
        elevation: Callable[[object, int], float] = lambda observer, t: 15.0,
        track: Callable[[int], Tuple[float, float]] = lambda t: (0.0, 0.0),
        fail_times: Iterable[int] = (),
        invalid: bool = False,
        altitude_km: float = 420.0,
    ) -> None:
        self.elevation = elevation
        self.track = track
        self.fail_times = set(fail_times)
        self.invalid = invalid
        self.altitude_km = altitude_km
        self.calls: List[int] = []

    def propagate(self, elements, time_ms: int) -> StateVector:
        if self.invalid:
            raise InvalidElementFormat("scripted invalid elements")
        self.calls.append(time_ms)
        if time_ms in self.fail_times:
            raise PropagationError("scripted failure", time_ms)
        return StateVector(
            position_km=np.array([float(time_ms), 0.0, 0.0]),
            velocity_km_s=np.zeros(3),
        )

    def sidereal_time(self, time_ms: int) -> float:
        return 0.0

    def eci_to_ecf(self, position_eci: np.ndarray, sidereal_time_rad: float) -> np.ndarray:
        return position_eci

    def to_geodetic(self, position_eci: np.ndarray, sidereal_time_rad: float) -> Geodetic:
        lat, lon = self.track(int(position_eci[0]))
        return Geodetic(math.radians(lat), math.radians(lon), self.altitude_km)

    def look_angles(self, observer, position_ecf: np.ndarray) -> LookAngles:
        elevation = self.elevation(observer, int(position_ecf[0]))
        return LookAngles(0.0, math.radians(elevation), 1000.0)


# =============================================================================
# FIXTURES - Common test setup
# =============================================================================


@pytest.fixture
def sample_tle_lines() -> Tuple[str, str]:
    """ISS element set (epoch 2019-12-09)."""
    return (
        "1 25544U 98067A   19343.69339541  .00001764  00000-0  38792-4 0  9991",
        "2 25544  51.6439 211.2001 0007417  17.6667  85.6398 15.50103472202482",
    )


@pytest.fixture
def sample_tle_text(sample_tle_lines: Tuple[str, str]) -> str:
    return f"ISS (ZARYA)\n{sample_tle_lines[0]}\n{sample_tle_lines[1]}\n"


@pytest.fixture
def sample_elements(sample_tle_text: str):
    from orbit_visibility.elements import parse_elements

    return parse_elements(sample_tle_text)


@pytest.fixture
def sample_tle_file(sample_tle_text: str, tmp_path: Path) -> Path:
    tle_file = tmp_path / "test.tle"
    tle_file.write_text(sample_tle_text)
    return tle_file


@pytest.fixture
def sample_observer():
    """Ground station in Darmstadt."""
    from orbit_visibility.observers import ObserverLocation

    return ObserverLocation(id="gs-darmstadt", name="Darmstadt", latitude=49.8728, longitude=8.6512, altitude_m=144.0)


@pytest.fixture
def sample_observers() -> list:
    from orbit_visibility.observers import ObserverLocation

    return [
        ObserverLocation(id="gs-darmstadt", name="Darmstadt", latitude=49.8728, longitude=8.6512),
        ObserverLocation(id="gs-svalbard", name="Svalbard", latitude=78.2298, longitude=15.4078),
        ObserverLocation(id="gs-kourou", name="Kourou", latitude=5.2514, longitude=-52.8048),
    ]


@pytest.fixture
def base_datetime() -> datetime:
    """Standard base datetime for tests."""
    return datetime(2024, 1, 1, 0, 0, 0)


@pytest.fixture
def base_time_ms(base_datetime: datetime) -> int:
    return int((base_datetime - datetime(1970, 1, 1)) / timedelta(milliseconds=1))


@pytest.fixture
def scripted_propagator() -> Callable[..., ScriptedPropagator]:
    """Factory for ScriptedPropagator instances."""
    return ScriptedPropagator
