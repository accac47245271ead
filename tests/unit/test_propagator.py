"""
Tests for the propagator adapter.

The orbit-predictor predictor is mocked; frame rotations and look-angle
geometry are checked against hand-computed cases.
"""

import math
from unittest.mock import MagicMock, patch

import numpy as np
import pytest
from orbit_predictor import coordinate_systems

from orbit_visibility.elements import OrbitalElementSet
from orbit_visibility.exceptions import InvalidElementFormat, PropagationError
from orbit_visibility.observers import ObserverLocation
from orbit_visibility.propagator import (
    OrbitPredictorPropagator,
    compute_look_angles,
    eci_to_ecf,
    get_default_propagator,
    look_angles_at,
)


@pytest.fixture
def equator_observer() -> ObserverLocation:
    return ObserverLocation("eq", "Null Island", 0.0, 0.0, 0.0)


def _observer_ecf(observer: ObserverLocation) -> np.ndarray:
    return np.array(
        coordinate_systems.llh_to_ecef(observer.latitude, observer.longitude, observer.altitude_km),
        dtype=float,
    )


class TestFrameRotation:
    """Tests for eci_to_ecf."""

    def test_zero_sidereal_time_is_identity(self) -> None:
        vector = np.array([7000.0, 100.0, -50.0])
        np.testing.assert_allclose(eci_to_ecf(vector, 0.0), vector)

    def test_quarter_turn(self) -> None:
        result = eci_to_ecf(np.array([1.0, 0.0, 0.0]), math.pi / 2)
        assert isinstance(result, np.ndarray)
        np.testing.assert_allclose(result, [0.0, -1.0, 0.0], atol=1e-12)

    def test_inverse(self) -> None:
        vector = np.array([1234.0, -5678.0, 910.0])
        gmst = 1.2345
        back = coordinate_systems.ecef_to_eci(eci_to_ecf(vector, gmst), gmst)
        np.testing.assert_allclose(back, vector)

    def test_preserves_norm(self) -> None:
        vector = np.array([3000.0, 4000.0, 5000.0])
        assert np.linalg.norm(eci_to_ecf(vector, 2.0)) == pytest.approx(np.linalg.norm(vector))


class TestComputeLookAngles:
    """Tests for topocentric look angles."""

    def test_overhead(self, equator_observer) -> None:
        position = _observer_ecf(equator_observer) + np.array([400.0, 0.0, 0.0])
        angles = compute_look_angles(equator_observer, position)

        assert angles.elevation_deg == pytest.approx(90.0)
        assert angles.range_km == pytest.approx(400.0)

    def test_due_east_on_horizon(self, equator_observer) -> None:
        position = _observer_ecf(equator_observer) + np.array([0.0, 1000.0, 0.0])
        angles = compute_look_angles(equator_observer, position)

        assert angles.elevation_deg == pytest.approx(0.0, abs=1e-9)
        assert angles.azimuth_deg == pytest.approx(90.0)

    def test_due_north_on_horizon(self, equator_observer) -> None:
        position = _observer_ecf(equator_observer) + np.array([0.0, 0.0, 1000.0])
        angles = compute_look_angles(equator_observer, position)

        assert angles.elevation_deg == pytest.approx(0.0, abs=1e-9)
        assert angles.azimuth_deg == pytest.approx(0.0, abs=1e-9)

    def test_below_horizon(self, equator_observer) -> None:
        position = np.array([-7000.0, 0.0, 0.0])
        assert compute_look_angles(equator_observer, position).elevation_deg < 0

    def test_azimuth_range(self, equator_observer) -> None:
        # South-west
        position = _observer_ecf(equator_observer) + np.array([10.0, -500.0, -500.0])
        azimuth = compute_look_angles(equator_observer, position).azimuth_deg

        assert 0.0 <= azimuth < 360.0
        assert azimuth == pytest.approx(225.0, abs=1.0)

    def test_zero_range(self, equator_observer) -> None:
        angles = compute_look_angles(equator_observer, _observer_ecf(equator_observer))
        assert angles.range_km == 0.0
        assert angles.elevation_deg == pytest.approx(90.0)


class TestOrbitPredictorPropagator:
    """Tests for the orbit-predictor adapter with a mocked predictor."""

    @staticmethod
    def _predictor(position_eci, velocity_eci=(0.0, 7.5, 0.0)) -> MagicMock:
        predictor = MagicMock()
        predictor.propagate_eci.return_value = (position_eci, velocity_eci)
        return predictor

    def test_propagate_returns_inertial_state_unchanged(self, sample_elements) -> None:
        with patch('orbit_visibility.propagator.get_predictor_from_tle_lines',
                   return_value=self._predictor((7000.0, 0.0, 0.0), (0.0, 7.5, 1.0))):
            state = OrbitPredictorPropagator().propagate(sample_elements, 1_700_000_000_000)

        np.testing.assert_allclose(state.position_km, [7000.0, 0.0, 0.0])
        np.testing.assert_allclose(state.velocity_km_s, [0.0, 7.5, 1.0])

    def test_predictor_cached_per_element_set(self, sample_elements) -> None:
        with patch('orbit_visibility.propagator.get_predictor_from_tle_lines',
                   return_value=self._predictor((7000.0, 0.0, 0.0))) as factory:
            propagator = OrbitPredictorPropagator()
            propagator.propagate(sample_elements, 0)
            propagator.propagate(sample_elements, 60000)

        factory.assert_called_once()

    def test_rejected_elements(self, sample_elements) -> None:
        with patch('orbit_visibility.propagator.get_predictor_from_tle_lines',
                   side_effect=ValueError("bad checksum")):
            with pytest.raises(InvalidElementFormat):
                OrbitPredictorPropagator().propagate(sample_elements, 0)

    def test_unparseable_lines_rejected_on_load(self) -> None:
        elements = OrbitalElementSet("1 garbage", "2 garbage")

        with patch('orbit_visibility.propagator.get_predictor_from_tle_lines') as factory:
            with pytest.raises(InvalidElementFormat):
                OrbitPredictorPropagator().load(elements)

        factory.assert_not_called()

    def test_sgp4_error_at_epoch_rejected(self, sample_elements) -> None:
        satrec = MagicMock(error=0, jdsatepoch=2458826.5, jdsatepochF=0.19)
        satrec.sgp4.return_value = (2, (0.0, 0.0, 0.0), (0.0, 0.0, 0.0))

        with patch('orbit_visibility.propagator.Satrec') as satrec_cls:
            satrec_cls.twoline2rv.return_value = satrec
            with pytest.raises(InvalidElementFormat, match="nm is less than zero"):
                OrbitPredictorPropagator().load(sample_elements)

    def test_model_failure(self, sample_elements) -> None:
        predictor = MagicMock()
        predictor.propagate_eci.side_effect = RuntimeError("decayed")

        with patch('orbit_visibility.propagator.get_predictor_from_tle_lines', return_value=predictor):
            with pytest.raises(PropagationError) as excinfo:
                OrbitPredictorPropagator().propagate(sample_elements, 123000)

        assert excinfo.value.time_ms == 123000

    def test_non_finite_state(self, sample_elements) -> None:
        with patch('orbit_visibility.propagator.get_predictor_from_tle_lines',
                   return_value=self._predictor((float("nan"), 0.0, 0.0))):
            with pytest.raises(PropagationError):
                OrbitPredictorPropagator().propagate(sample_elements, 0)

    def test_to_geodetic_radians(self) -> None:
        with patch('orbit_visibility.propagator.coordinate_systems.ecef_to_llh',
                   return_value=(45.0, -90.0, 410.0)):
            geodetic = OrbitPredictorPropagator().to_geodetic(np.array([1.0, 2.0, 3.0]), 0.0)

        assert geodetic.latitude_rad == pytest.approx(math.pi / 4)
        assert geodetic.longitude_rad == pytest.approx(-math.pi / 2)
        assert geodetic.height_km == 410.0

    def test_default_propagator_is_shared(self) -> None:
        assert get_default_propagator() is get_default_propagator()


def test_look_angles_at(scripted_propagator, sample_elements, equator_observer) -> None:
    propagator = scripted_propagator(elevation=lambda observer, t: 42.0)
    assert look_angles_at(propagator, sample_elements, equator_observer, 0).elevation_deg == pytest.approx(42.0)
