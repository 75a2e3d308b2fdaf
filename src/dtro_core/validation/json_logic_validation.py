"""Evaluation of declarative JSON-logic business rules."""

import json
import logging
from typing import List

from json_logic import jsonLogic

from ..interfaces.rules import IJsonLogicRuleSource
from ..interfaces.validation import IJsonLogicValidationService
from ..models.dtro import Dtro, SchemaVersion
from ..models.validation import SemanticValidationError


logger = logging.getLogger(__name__)

# Schema versions before this one have no declarative rules.
MINIMUM_RULES_VERSION = SchemaVersion(3, 1, 2)


def rule_key(version: SchemaVersion) -> str:
    """Key under which rules for a schema version are stored."""
    return f"dtro-{version}"


class JsonLogicValidationService(IJsonLogicValidationService):
    """Applies the rules for a document's schema version to its payload."""

    def __init__(self, rule_source: IJsonLogicRuleSource):
        self._rule_source = rule_source

    def validate(self, dtro: Dtro) -> List[SemanticValidationError]:
        """
        Evaluate every rule against the document data.

        A rule fails only when it evaluates to boolean ``False``; any other
        result passes.

        Returns:
            One error per failing rule, with the rule's message and path.
        """
        if dtro.schema_version is None or dtro.schema_version < MINIMUM_RULES_VERSION:
            return []

        rules = self._rule_source.get_rules(rule_key(dtro.schema_version))
        # Evaluate against a plain JSON tree.
        data = json.loads(json.dumps(dtro.data, default=str))

        errors: List[SemanticValidationError] = []
        for rule in rules:
            if jsonLogic(rule.rule, data) is False:
                errors.append(SemanticValidationError(message=rule.message, path=rule.path))

        if errors:
            logger.info(f"{len(errors)} of {len(rules)} JSON-logic rules failed")
        return errors
