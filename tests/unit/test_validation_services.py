"""Unit tests for schema, JSON-logic and semantic validation."""

import json

import pytest

from conftest import make_dtro, make_payload
from dtro_core.config.rule_source import FileJsonLogicRuleSource
from dtro_core.exceptions import SchemaNotFoundError
from dtro_core.validation.condition_validation import (
    ALWAYS_FALSE_MESSAGE,
    ConditionValidationService,
)
from dtro_core.validation.json_logic_validation import JsonLogicValidationService, rule_key
from dtro_core.validation.json_schema_validation import JsonSchemaValidationService
from dtro_core.validation.semantic_validation import SemanticValidationService


def with_geometry(geometry):
    payload = make_payload()
    payload["source"]["provision"][0]["regulatedPlaces"] = [{"geometry": geometry}]
    return make_dtro(data=payload)


@pytest.fixture
def rules(rules_dir):
    (rules_dir / "dtro-3.1.2.json").write_text(
        json.dumps(
            {
                "rules": [
                    {
                        "message": "ta must be positive",
                        "path": "source.ta",
                        "rule": {">": [{"var": "source.ta"}, 0]},
                    },
                    {
                        "message": "troName is reported",
                        "path": "source.troName",
                        "rule": {"var": "source.troName"},
                    },
                ]
            }
        ),
        encoding="utf-8",
    )
    return FileJsonLogicRuleSource(rules_dir)


@pytest.fixture
def semantic():
    return SemanticValidationService(ConditionValidationService())


class TestJsonSchemaValidationService:
    """Tests for structural validation."""

    def test_valid_document(self, schema_dir):
        """A conforming document has no errors."""
        service = JsonSchemaValidationService(schema_dir)
        schema = service.get_schema_for_version("3.1.2")
        assert service.validate(schema, make_payload()) == []

    def test_error_messages_carry_paths(self, schema_dir):
        """Each error names the JSON path it was found at."""
        service = JsonSchemaValidationService(schema_dir)
        schema = service.get_schema_for_version("3.1.2")
        errors = service.validate(schema, {"source": {"troName": 5}})
        assert errors == [
            "$.source: 'provision' is a required property",
            "$.source.troName: 5 is not of type 'string'",
        ]

    def test_unknown_version(self, schema_dir):
        """A missing or malformed version raises SchemaNotFoundError."""
        service = JsonSchemaValidationService(schema_dir)
        with pytest.raises(SchemaNotFoundError) as exc_info:
            service.get_schema_for_version("9.9.9")
        assert exc_info.value.version == "9.9.9"
        with pytest.raises(SchemaNotFoundError):
            service.get_schema_for_version("latest")

    def test_list_schemas(self, schema_dir):
        """Schemas are listed in version order; other files are ignored."""
        (schema_dir / "notes.json").write_text("{}", encoding="utf-8")
        service = JsonSchemaValidationService(schema_dir)
        listed = [schema.to_dict() for schema in service.list_schemas()]
        assert listed == [
            {"schemaVersion": "3.1.1", "_links": {"self": "/v1/schemas/3.1.1"}},
            {"schemaVersion": "3.1.2", "_links": {"self": "/v1/schemas/3.1.2"}},
        ]

    def test_missing_directory(self, tmp_path):
        """A missing schema directory lists nothing."""
        assert JsonSchemaValidationService(tmp_path / "absent").list_schemas() == []


class TestJsonLogicValidationService:
    """Tests for declarative rule evaluation."""

    def test_rule_key(self):
        """Rules are keyed by schema version."""
        assert rule_key(make_dtro().schema_version) == "dtro-3.1.2"

    def test_passing_document(self, rules):
        """Rules returning true or a non-boolean value pass."""
        assert JsonLogicValidationService(rules).validate(make_dtro()) == []

    def test_false_result_is_an_error(self, rules):
        """Only a rule evaluating to false is reported."""
        dtro = make_dtro(data=make_payload(ta=0))
        errors = JsonLogicValidationService(rules).validate(dtro)
        assert [(error.message, error.path) for error in errors] == [("ta must be positive", "source.ta")]

    def test_older_versions_are_skipped(self, rules):
        """Versions before 3.1.2 have no rules."""
        dtro = make_dtro(data=make_payload(ta=0), version="3.1.1")
        assert JsonLogicValidationService(rules).validate(dtro) == []

    def test_missing_rule_file(self, rules_dir):
        """A version without a rule file passes."""
        dtro = make_dtro(data=make_payload(ta=0), version="3.2.0")
        assert JsonLogicValidationService(FileJsonLogicRuleSource(rules_dir)).validate(dtro) == []


class TestSemanticValidationService:
    """Tests for coordinate and condition checks."""

    def test_valid_document(self, semantic):
        """The base document passes."""
        assert semantic.validate(make_dtro()) == []

    def test_unknown_crs(self, semantic):
        """A CRS other than OSGB36 or WGS84 is reported."""
        dtro = with_geometry({"crs": "mercator", "type": "Point", "coordinates": [0, 0]})
        errors = semantic.validate(dtro)
        assert len(errors) == 1
        assert errors[0].path == "source.provision[0].regulatedPlaces[0].geometry.crs"
        assert "mercator" in errors[0].message

    def test_coordinates_out_of_range(self, semantic):
        """Each point outside the CRS range is reported with its axis errors."""
        dtro = with_geometry(
            {"crs": "wgs84Epsg4326", "type": "LineString", "coordinates": [[-0.12, 51.5], [10.0, 70.0]]}
        )
        errors = semantic.validate(dtro)
        assert len(errors) == 1
        assert errors[0].path == "source.provision[0].regulatedPlaces[0].geometry.coordinates"
        assert errors[0].details["index"] == 1
        assert errors[0].details["errors"] == [
            "10.0 is above the maximum longitude of 1.78.",
            "70.0 is above the maximum latitude of 60.84.",
        ]

    def test_contradictory_conditions(self, semantic):
        """A regulation whose conditions can never hold is reported."""
        payload = make_payload()
        payload["source"]["provision"][0]["regulations"][0]["conditions"] = [
            {"roadType": "motorway"},
            {"roadType": "aRoad"},
        ]
        errors = semantic.validate(make_dtro(data=payload))
        assert len(errors) == 1
        assert errors[0].message == ALWAYS_FALSE_MESSAGE
        assert errors[0].path == "source.provision[0].regulations[0].conditions"

    def test_satisfiable_condition_set(self, semantic):
        """An OR of conflicting values is satisfiable."""
        payload = make_payload()
        payload["source"]["provision"][0]["regulations"][0]["conditions"] = [
            {
                "operator": "or",
                "conditions": [{"roadType": "motorway"}, {"roadType": "aRoad"}],
            }
        ]
        assert semantic.validate(make_dtro(data=payload)) == []
