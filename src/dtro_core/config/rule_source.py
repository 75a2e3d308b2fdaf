"""Loading of JSON-logic rule files.

Rule files live in a directory and are named after their key, e.g.
``dtro-3.1.2.json``. A file holds either a list of rules or an object
with a ``rules`` list. Each rule has a ``message``, a ``path`` and a
``rule`` holding the JSON-logic expression.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ..interfaces.rules import IJsonLogicRuleSource, JsonLogicRule
from .models import ConfigurationError, RuleSet, ValidationResult


logger = logging.getLogger(__name__)


class JsonLogicRuleLoader:
    """Validates raw rule definitions and converts them to JsonLogicRule."""

    def load_rules(
        self,
        key: str,
        source: Union[str, Path, Dict[str, Any], List[Dict[str, Any]]],
    ) -> RuleSet:
        """
        Load and validate a set of rules.

        Args:
            key: Key the rules are stored under.
            source: File path, dictionary or list of dictionaries.

        Returns:
            The validated RuleSet.

        Raises:
            ConfigurationError: If the file is missing or any rule is invalid.
        """
        raw_data = self._parse_source(source)

        if isinstance(raw_data, dict):
            rules_data = raw_data.get("rules", [raw_data])
        else:
            rules_data = raw_data

        if not isinstance(rules_data, list):
            raise ConfigurationError(f"Rules for '{key}' must be a list")

        result = ValidationResult(is_valid=True)
        rules: List[JsonLogicRule] = []
        for i, rule_dict in enumerate(rules_data):
            rule_result, rule = self._validate_rule(rule_dict, index=i)
            result = result.merge(rule_result)
            if rule:
                rules.append(rule)

        if not result.is_valid:
            raise ConfigurationError(
                f"JSON-logic rule validation failed for '{key}'",
                validation_result=result,
            )

        for warning in result.warnings:
            logger.warning(f"Rule set '{key}': {warning}")

        return RuleSet(
            key=key,
            rules=rules,
            source=str(source) if isinstance(source, (str, Path)) else None,
        )

    def _validate_rule(
        self, data: Any, index: int = 0
    ) -> tuple[ValidationResult, Optional[JsonLogicRule]]:
        """Validate a single rule dictionary."""
        result = ValidationResult(is_valid=True)
        prefix = f"Rule [{index}]"

        if not isinstance(data, dict):
            result.add_error(f"{prefix}: must be an object")
            return result, None

        for field_name in ("message", "path", "rule"):
            if field_name not in data:
                result.add_error(f"{prefix}: Missing required field '{field_name}'")

        if not result.is_valid:
            return result, None

        if not isinstance(data["message"], str) or not data["message"].strip():
            result.add_error(f"{prefix}: 'message' must be a non-empty string")

        if not isinstance(data["path"], str):
            result.add_error(f"{prefix}: 'path' must be a string")

        if not isinstance(data["rule"], (dict, bool)):
            result.add_error(f"{prefix}: 'rule' must be a JSON-logic object")

        if not result.is_valid:
            return result, None

        if data["path"] == "":
            result.add_warning(f"{prefix}: empty 'path'")

        return result, JsonLogicRule(
            message=data["message"].strip(),
            path=data["path"],
            rule=data["rule"],
            name=data.get("name"),
        )

    def _parse_source(
        self,
        source: Union[str, Path, Dict[str, Any], List[Dict[str, Any]]],
    ) -> Union[Dict[str, Any], List[Dict[str, Any]]]:
        """Parse a rule source to raw data."""
        if isinstance(source, (str, Path)):
            path = Path(source)
            if not path.exists():
                raise ConfigurationError(f"Rule file not found: {path}")

            with open(path, "r", encoding="utf-8") as f:
                try:
                    return json.load(f)
                except json.JSONDecodeError as e:
                    raise ConfigurationError(f"Rule file is not valid JSON: {path}: {e}") from e

        return source


class FileJsonLogicRuleSource(IJsonLogicRuleSource):
    """
    Rule source reading ``<rules_dir>/<key>.json``.

    Loaded rule sets are kept in memory for the lifetime of the source.
    """

    def __init__(self, rules_dir: Union[str, Path], loader: Optional[JsonLogicRuleLoader] = None):
        self._rules_dir = Path(rules_dir)
        self._loader = loader or JsonLogicRuleLoader()
        self._rule_sets: Dict[str, RuleSet] = {}

    @property
    def rules_dir(self) -> Path:
        return self._rules_dir

    def get_rules(self, key: str) -> List[JsonLogicRule]:
        if key in self._rule_sets:
            return self._rule_sets[key].rules

        path = self._rules_dir / f"{key}.json"
        if not path.exists():
            logger.warning(f"No JSON-logic rules found for '{key}' in {self._rules_dir}")
            return []

        rule_set = self._loader.load_rules(key, path)
        logger.info(f"Loaded {len(rule_set.rules)} JSON-logic rules for '{key}'")
        self._rule_sets[key] = rule_set
        return rule_set.rules
