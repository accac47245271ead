"""
Tests for observer locations and the observer catalog.
"""

import json

import pytest
import yaml

from orbit_visibility.observers import ObserverCatalog, ObserverLocation


class TestObserverLocation:
    """Tests for ObserverLocation."""

    def test_valid_observer(self) -> None:
        observer = ObserverLocation("gs1", "Darmstadt", 49.87, 8.65, 144.0)
        assert observer.altitude_km == pytest.approx(0.144)

    def test_invalid_latitude(self) -> None:
        with pytest.raises(ValueError, match="latitude"):
            ObserverLocation("gs1", "Nowhere", 91.0, 0.0)

    def test_invalid_longitude(self) -> None:
        with pytest.raises(ValueError, match="longitude"):
            ObserverLocation("gs1", "Nowhere", 0.0, -181.0)

    def test_boundary_values_accepted(self) -> None:
        ObserverLocation("n", "North Pole", 90.0, 180.0)
        ObserverLocation("s", "South Pole", -90.0, -180.0)

    def test_round_trip_dict(self) -> None:
        observer = ObserverLocation("gs1", "Darmstadt", 49.87, 8.65, 144.0)
        assert ObserverLocation.from_dict(observer.to_dict()) == observer

    def test_from_dashboard_record(self) -> None:
        record = {"id": "7", "name": "Kiruna", "latitude": 67.85, "longitude": 20.96, "altitude": 400}
        observer = ObserverLocation.from_dict(record)
        assert observer.id == "7"
        assert observer.altitude_m == 400.0

    def test_id_falls_back_to_name(self) -> None:
        observer = ObserverLocation.from_dict({"name": "Kiruna", "latitude": 67.85, "longitude": 20.96})
        assert observer.id == "Kiruna"
        assert observer.altitude_m == 0.0


class TestObserverCatalog:
    """Tests for ObserverCatalog."""

    def test_add_and_get(self, sample_observers) -> None:
        catalog = ObserverCatalog()
        for observer in sample_observers:
            catalog.add(observer)

        assert len(catalog) == 3
        assert catalog.get("gs-svalbard").name == "Svalbard"
        assert catalog.get("missing") is None

    def test_add_rejects_other_types(self) -> None:
        with pytest.raises(TypeError):
            ObserverCatalog().add({"name": "dict"})  # type: ignore[arg-type]

    def test_remove(self, sample_observers) -> None:
        catalog = ObserverCatalog(sample_observers)
        assert catalog.remove("gs-kourou") is True
        assert catalog.remove("gs-kourou") is False
        assert len(catalog) == 2

    def test_order_preserved(self, sample_observers) -> None:
        catalog = ObserverCatalog(sample_observers)
        assert [o.id for o in catalog] == ["gs-darmstadt", "gs-svalbard", "gs-kourou"]

    def test_save_and_load_json(self, sample_observers, tmp_path) -> None:
        path = tmp_path / "stations.json"
        ObserverCatalog(sample_observers).save_to_file(path)

        assert "ground_stations" in json.loads(path.read_text())
        assert list(ObserverCatalog.load_from_file(path)) == sample_observers

    def test_save_and_load_yaml(self, sample_observers, tmp_path) -> None:
        path = tmp_path / "stations.yaml"
        ObserverCatalog(sample_observers).save_to_file(path)

        assert list(ObserverCatalog.load_from_file(path)) == sample_observers

    def test_inactive_stations_skipped(self, tmp_path) -> None:
        path = tmp_path / "stations.yaml"
        path.write_text(yaml.safe_dump({
            "ground_stations": [
                {"id": "a", "name": "A", "latitude": 10, "longitude": 10, "active": True},
                {"id": "b", "name": "B", "latitude": 20, "longitude": 20, "active": False},
            ]
        }))

        assert [o.id for o in ObserverCatalog.load_from_file(path)] == ["a"]

    def test_bare_list_accepted(self, tmp_path) -> None:
        path = tmp_path / "stations.json"
        path.write_text(json.dumps([{"name": "A", "latitude": 1, "longitude": 2}]))

        assert len(ObserverCatalog.load_from_file(path)) == 1

    def test_missing_file_raises(self, tmp_path) -> None:
        with pytest.raises(FileNotFoundError):
            ObserverCatalog.load_from_file(tmp_path / "missing.json")


def test_example_ground_stations_file() -> None:
    from pathlib import Path

    path = Path(__file__).parents[2] / "examples" / "ground_stations.yaml"
    catalog = ObserverCatalog.load_from_file(path)

    # Malindi is marked inactive
    assert [o.id for o in catalog] == ["gs-darmstadt", "gs-svalbard", "gs-kourou"]
