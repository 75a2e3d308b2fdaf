"""Structural validation of DTRO payloads against versioned JSON schemas."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Union

from jsonschema.validators import validator_for

from ..exceptions import SchemaNotFoundError
from ..interfaces.validation import IJsonSchemaValidationService
from ..models.dtro import SchemaVersion
from ..models.validation import SchemaDefinition


logger = logging.getLogger(__name__)


class JsonSchemaValidationService(IJsonSchemaValidationService):
    """
    Validates payloads against schemas stored as ``<schema_dir>/<version>.json``.

    The draft used for validation is taken from each schema's ``$schema``
    keyword.
    """

    def __init__(self, schema_dir: Union[str, Path]):
        self._schema_dir = Path(schema_dir)

    def _schema_path(self, version: str) -> Path:
        try:
            parsed = SchemaVersion.parse(version)
        except ValueError as exc:
            raise SchemaNotFoundError(
                message="Schema version not found", version=version
            ) from exc
        return self._schema_dir / f"{parsed}.json"

    def get_schema_for_version(self, version: str) -> str:
        path = self._schema_path(str(version))
        if not path.exists():
            raise SchemaNotFoundError(message="Schema version not found", version=str(version))
        return path.read_text(encoding="utf-8")

    def get_schema(self, version: str) -> Dict[str, Any]:
        """Get the parsed schema for a version."""
        return json.loads(self.get_schema_for_version(version))

    def validate(self, schema_text: str, document: Dict[str, Any]) -> List[str]:
        """
        Validate a document against a schema.

        Returns:
            ``"<json path>: <message>"`` strings sorted by path; empty when
            the document is valid.
        """
        schema = json.loads(schema_text)
        validator_cls = validator_for(schema)
        validator_cls.check_schema(schema)
        validator = validator_cls(schema)

        errors = sorted(validator.iter_errors(document), key=lambda e: e.json_path)
        messages = [f"{error.json_path}: {error.message}" for error in errors]
        if messages:
            logger.debug(f"Schema validation produced {len(messages)} errors")
        return messages

    def list_schemas(self) -> List[SchemaDefinition]:
        if not self._schema_dir.exists():
            return []

        versions = []
        for path in self._schema_dir.glob("*.json"):
            try:
                versions.append(SchemaVersion.parse(path.stem))
            except ValueError:
                logger.debug(f"Ignoring non-schema file {path.name}")
        return [
            SchemaDefinition(version=str(version), location=f"/v1/schemas/{version}")
            for version in sorted(versions)
        ]
