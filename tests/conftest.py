"""Shared fixtures for DTRO core tests."""

import copy
import json
from datetime import datetime

import pytest

from dtro_core.caching import DtroCache
from dtro_core.config.rule_source import FileJsonLogicRuleSource
from dtro_core.models.dtro import Dtro, SchemaVersion
from dtro_core.models.geometry import BoundingBox, Coordinates
from dtro_core.search.filtering import DtrosFilteringService
from dtro_core.search.mapping import DtroMappingService
from dtro_core.service import DtroService
from dtro_core.storage.memory_storage import InMemoryStorageService
from dtro_core.validation.condition_validation import ConditionValidationService
from dtro_core.validation.json_logic_validation import JsonLogicValidationService
from dtro_core.validation.json_schema_validation import JsonSchemaValidationService
from dtro_core.validation.semantic_validation import SemanticValidationService


class FakeProjectionService:
    """Projection that shifts WGS84 points by a fixed offset into 'OSGB36'."""

    def __init__(self, offset: float = 1000.0):
        self.offset = offset

    def wgs84_to_osgb36(self, coordinates):
        return Coordinates(coordinates.longitude + self.offset, coordinates.latitude + self.offset)

    def wgs84_to_osgb36_bbox(self, bbox):
        return BoundingBox.wrapping(self.wgs84_to_osgb36(corner) for corner in bbox.corners())

    def osgb36_to_wgs84(self, coordinates):
        return Coordinates(coordinates.longitude - self.offset, coordinates.latitude - self.offset)


BASE_PAYLOAD = {
    "source": {
        "ta": 42,
        "ha": 7,
        "troName": "Main Street No Waiting Order",
        "provision": [
            {
                "orderReportingPoint": "permanentNew",
                "regulatedPlaces": [
                    {
                        "description": "Main Street",
                        "geometry": {
                            "crs": "osgb36Epsg27700",
                            "coordinates": {
                                "type": "LineString",
                                "coordinates": [[530000, 180000], [530100, 180050]],
                            },
                        },
                    }
                ],
                "regulations": [
                    {
                        "regulationType": "noWaiting",
                        "overallPeriod": {
                            "start": "2023-01-01T00:00:00",
                            "end": "2024-01-01T00:00:00",
                        },
                        "conditions": [
                            {"vehicleCharacteristics": {"vehicleType": ["bus", "taxi"]}}
                        ],
                    }
                ],
            }
        ],
    }
}


def make_payload(**source_overrides):
    """Deep copy of the base payload with ``source`` keys replaced."""
    payload = copy.deepcopy(BASE_PAYLOAD)
    payload["source"].update(source_overrides)
    return payload


def make_dtro(
    dtro_id="00000000-0000-0000-0000-000000000001",
    data=None,
    created=datetime(2023, 7, 1),
    last_updated=None,
    deleted=False,
    deletion_time=None,
    version="3.1.2",
):
    return Dtro(
        id=dtro_id,
        schema_version=SchemaVersion.parse(version),
        data=data if data is not None else make_payload(),
        created=created,
        last_updated=last_updated or created,
        deleted=deleted,
        deletion_time=deletion_time,
    )


SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "required": ["source"],
    "properties": {
        "source": {
            "type": "object",
            "required": ["provision"],
            "properties": {
                "troName": {"type": "string"},
                "provision": {"type": "array", "minItems": 1},
            },
        }
    },
}


@pytest.fixture
def fake_projection():
    return FakeProjectionService()


@pytest.fixture
def schema_dir(tmp_path):
    directory = tmp_path / "schemas"
    directory.mkdir()
    (directory / "3.1.2.json").write_text(json.dumps(SCHEMA), encoding="utf-8")
    (directory / "3.1.1.json").write_text(json.dumps(SCHEMA), encoding="utf-8")
    return directory


@pytest.fixture
def rules_dir(tmp_path):
    directory = tmp_path / "rules"
    directory.mkdir()
    return directory


def submission(version="3.1.2", **source_overrides):
    """Create/update request body around the base payload."""
    return {"schemaVersion": version, "data": make_payload(**source_overrides)}


def write_rules(rules_dir, rules, version="3.1.2"):
    (rules_dir / f"dtro-{version}.json").write_text(json.dumps({"rules": rules}), encoding="utf-8")


@pytest.fixture
def mapping_service(fake_projection):
    return DtroMappingService(fake_projection, "https://dtro.example")


@pytest.fixture
def filtering_service(fake_projection):
    return DtrosFilteringService(fake_projection, "https://dtro.example")


@pytest.fixture
def dtro_service(schema_dir, rules_dir, mapping_service, filtering_service):
    """Service over in-memory storage with the test schemas and rules."""
    return DtroService(
        storage=InMemoryStorageService(mapping_service, filtering_service),
        schema_validation_service=JsonSchemaValidationService(schema_dir),
        json_logic_validation_service=JsonLogicValidationService(FileJsonLogicRuleSource(rules_dir)),
        semantic_validation_service=SemanticValidationService(ConditionValidationService()),
        filtering_service=filtering_service,
        mapping_service=mapping_service,
        cache=DtroCache(),
    )
