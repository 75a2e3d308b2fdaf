"""Unit tests for index-field inference."""

import copy
from datetime import datetime

import pytest

from conftest import make_dtro, make_payload
from dtro_core.exceptions import UnsupportedGeometryError
from dtro_core.indexing.index_fields import (
    infer_index_fields,
    infer_location,
    placed_geometries,
    traffic_authority_id,
)
from dtro_core.indexing.json_path import get_int, get_list, get_path, has_path
from dtro_core.models.geometry import BoundingBox, Coordinates
from dtro_core.projection.spatial_projection import SpatialProjectionService


def payload_with_places(*geometries):
    payload = make_payload()
    payload["source"]["provision"][0]["regulatedPlaces"] = [
        {"geometry": geometry} for geometry in geometries
    ]
    return payload


class TestJsonPath:
    """Tests for the lenient payload accessors."""

    def test_missing_segments_resolve_to_none(self):
        """Missing keys and non-object parents give None or empty lists."""
        data = {"source": {"ta": 5, "provision": "oops"}}
        assert get_path(data, "source.ta") == 5
        assert get_path(data, "source.missing.deeper") is None
        assert get_list(data, "source.provision") == []

    def test_has_path_sees_null_values(self):
        """A key holding null still exists."""
        assert has_path({"source": {"ta": None}}, "source.ta")
        assert not has_path({"source": {}}, "source.ta")

    def test_get_int_accepts_numeric_strings(self):
        """Integers may arrive as strings; anything else falls back."""
        assert get_int({"ta": "17"}, "ta") == 17
        assert get_int({"ta": 3.0}, "ta") == 3
        assert get_int({"ta": "x"}, "ta") == 0
        assert get_int({"ta": True}, "ta", default=-1) == -1


class TestTrafficAuthority:
    """Tests for the traffic authority id."""

    def test_ta_wins_over_ha(self):
        """source.ta is used when both are present."""
        assert traffic_authority_id(make_payload(ta=42, ha=7)) == 42

    def test_only_ta(self):
        """source.ta alone is used."""
        payload = make_payload(ta=42)
        del payload["source"]["ha"]
        assert traffic_authority_id(payload) == 42

    def test_only_ha(self):
        """source.ha is the fallback."""
        payload = make_payload(ha=7)
        del payload["source"]["ta"]
        assert traffic_authority_id(payload) == 7

    def test_neither(self):
        """A payload without either id gives 0."""
        assert traffic_authority_id({"source": {}}) == 0


class TestPlacedGeometries:
    """Tests for reading regulated place geometries."""

    def test_geometry_nested_under_coordinates(self):
        """The shape may sit under geometry.coordinates."""
        places = placed_geometries(make_payload())
        assert len(places) == 1
        assert places[0].crs == "osgb36Epsg27700"
        assert places[0].coordinates == [Coordinates(530000, 180000), Coordinates(530100, 180050)]
        assert places[0].path == "source.provision[0].regulatedPlaces[0].geometry"

    def test_geometry_shape_on_geometry_itself(self):
        """The shape may sit directly on the geometry."""
        payload = payload_with_places({"crs": "wgs84Epsg4326", "type": "Point", "coordinates": [-0.1, 51.5]})
        assert placed_geometries(payload)[0].coordinates == [Coordinates(-0.1, 51.5)]

    def test_polygon_rings_are_flattened(self):
        """Every ring point of a polygon is read."""
        ring = [[0, 0], [10, 0], [10, 10], [0, 0]]
        payload = payload_with_places({"crs": "osgb36Epsg27700", "type": "Polygon", "coordinates": [ring]})
        assert len(placed_geometries(payload)[0].coordinates) == 4

    def test_places_without_geometry_are_skipped(self):
        """A place with no geometry contributes nothing."""
        payload = make_payload()
        payload["source"]["provision"][0]["regulatedPlaces"] = [{"description": "somewhere"}]
        assert placed_geometries(payload) == []

    def test_unsupported_geometry_type(self):
        """Geometry types other than Point, LineString and Polygon are rejected."""
        payload = payload_with_places({"crs": "osgb36Epsg27700", "type": "MultiPoint", "coordinates": [[0, 0]]})
        with pytest.raises(UnsupportedGeometryError) as exc_info:
            placed_geometries(payload)
        assert exc_info.value.geometry_type == "MultiPoint"


class TestInferLocation:
    """Tests for the inferred OSGB36 box."""

    def test_osgb36_coordinates_are_used_as_is(self, fake_projection):
        """OSGB36 places are wrapped without projection."""
        assert infer_location(make_payload(), fake_projection) == BoundingBox(530000, 180000, 530100, 180050)

    def test_wgs84_coordinates_are_projected(self, fake_projection):
        """Non-OSGB36 places go through the projection first."""
        payload = payload_with_places({"crs": "wgs84Epsg4326", "type": "Point", "coordinates": [1, 2]})
        assert infer_location(payload, fake_projection) == BoundingBox(1001, 1002, 1001, 1002)

    def test_crs_match_is_case_sensitive(self, fake_projection):
        """A differently cased OSGB36 name is treated as needing projection."""
        payload = payload_with_places({"crs": "OSGB36EPSG27700", "type": "Point", "coordinates": [1, 2]})
        assert infer_location(payload, fake_projection) == BoundingBox(1001, 1002, 1001, 1002)

    def test_no_coordinates(self, fake_projection):
        """A payload without places has no location."""
        payload = make_payload()
        payload["source"]["provision"][0]["regulatedPlaces"] = []
        assert infer_location(payload, fake_projection) is None


class TestInferIndexFields:
    """Tests for the complete set of index fields."""

    def test_all_fields(self, fake_projection):
        """Every index field is derived from the payload."""
        dtro = infer_index_fields(make_dtro(), fake_projection)
        assert dtro.traffic_authority_id == 42
        assert dtro.tro_name == "Main Street No Waiting Order"
        assert dtro.regulation_types == ["noWaiting"]
        assert dtro.vehicle_types == ["bus", "taxi"]
        assert dtro.order_reporting_points == ["permanentNew"]
        assert dtro.regulation_start == datetime(2023, 1, 1)
        assert dtro.regulation_end == datetime(2024, 1, 1)
        assert dtro.location == BoundingBox(530000, 180000, 530100, 180050)

    def test_input_is_not_modified(self, fake_projection):
        """Inference returns a new record."""
        original = make_dtro()
        snapshot = copy.deepcopy(original)
        infer_index_fields(original, fake_projection)
        assert original == snapshot

    def test_earliest_start_and_latest_end(self, fake_projection):
        """Start is the minimum and end the maximum over all regulations."""
        payload = make_payload()
        regulations = payload["source"]["provision"][0]["regulations"]
        regulations.append(
            {
                "regulationType": "noWaiting",
                "overallPeriod": {"start": "2022-06-01T00:00:00Z", "end": "2025-06-01T00:00:00Z"},
            }
        )
        regulations.append({"regulationType": None})
        dtro = infer_index_fields(make_dtro(data=payload), fake_projection)
        assert dtro.regulation_start == datetime(2022, 6, 1)
        assert dtro.regulation_end == datetime(2025, 6, 1)
        assert dtro.regulation_types == ["noWaiting"]

    def test_no_period_dates(self, fake_projection):
        """Without periods the start and end stay unset."""
        payload = make_payload()
        del payload["source"]["provision"][0]["regulations"][0]["overallPeriod"]
        dtro = infer_index_fields(make_dtro(data=payload), fake_projection)
        assert dtro.regulation_start is None
        assert dtro.regulation_end is None

    def test_wgs84_no_waiting_order_in_london(self):
        """A WGS84 line in central London lands in the expected grid square."""
        payload = payload_with_places(
            {
                "crs": "wgs84Epsg4326",
                "coordinates": {
                    "type": "LineString",
                    "coordinates": [[-0.1276, 51.5072], [-0.1270, 51.5075]],
                },
            }
        )
        dtro = infer_index_fields(make_dtro(data=payload), SpatialProjectionService())

        box = dtro.location
        assert box is not None
        assert 525000 <= box.west <= box.east <= 535000
        assert 175000 <= box.south <= box.north <= 185000
        assert dtro.regulation_types == ["noWaiting"]
