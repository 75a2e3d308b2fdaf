"""Validation of DTRO payloads beyond their JSON schema.

Checks that every regulated place lies inside the valid range of its
coordinate reference system and that no regulation's conditions are
contradictory.
"""

import logging
from typing import List

from ..conditions.parser import parse_conditions
from ..indexing.index_fields import placed_geometries, provisions
from ..indexing.json_path import get_list, get_objects
from ..interfaces.validation import IConditionValidationService, ISemanticValidationService
from ..models.dtro import Dtro
from ..models.geometry import BoundingBox
from ..models.validation import SemanticValidationError


logger = logging.getLogger(__name__)


class SemanticValidationService(ISemanticValidationService):
    """Coordinate range and condition satisfiability checks."""

    def __init__(self, condition_validation_service: IConditionValidationService):
        self._condition_validation_service = condition_validation_service

    def validate(self, dtro: Dtro) -> List[SemanticValidationError]:
        errors = self.validate_coordinates(dtro)
        errors.extend(self.validate_conditions(dtro))
        return errors

    def validate_coordinates(self, dtro: Dtro) -> List[SemanticValidationError]:
        errors: List[SemanticValidationError] = []
        for placed in placed_geometries(dtro.data):
            valid_range = BoundingBox.for_crs(placed.crs) if placed.crs else None
            if valid_range is None:
                errors.append(
                    SemanticValidationError(
                        message=f"Unsupported coordinate reference system '{placed.crs}'.",
                        path=f"{placed.path}.crs",
                    )
                )
                continue

            for index, point in enumerate(placed.coordinates):
                inside, axis_errors = valid_range.contains_with_errors(point)
                if not inside:
                    errors.append(
                        SemanticValidationError(
                            message=f"Coordinates are outside the valid range of {placed.crs}.",
                            path=f"{placed.path}.coordinates",
                            details={
                                "index": index,
                                "coordinates": [point.longitude, point.latitude],
                                "errors": axis_errors,
                            },
                        )
                    )
        return errors

    def validate_conditions(self, dtro: Dtro) -> List[SemanticValidationError]:
        errors: List[SemanticValidationError] = []
        for p_index, provision in enumerate(provisions(dtro.data)):
            for r_index, regulation in enumerate(get_objects(provision, "regulations")):
                items = get_list(regulation, "conditions")
                if not items:
                    continue
                path = f"source.provision[{p_index}].regulations[{r_index}].conditions"
                condition = parse_conditions(items)
                errors.extend(self._condition_validation_service.validate(condition, path=path))
        if errors:
            logger.info(f"Found {len(errors)} contradictory condition sets")
        return errors
