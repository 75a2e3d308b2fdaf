"""Reading condition trees from DTRO JSON."""

import json
from typing import Any, Callable, Dict, List, Optional

from ..exceptions import ConditionParseError, UnknownConditionError
from ..models.enums import ConditionOperator
from .conditions import (
    AccessCondition,
    Condition,
    ConditionSet,
    DriverCondition,
    OccupantCondition,
    PermitCondition,
    RoadCondition,
    VehicleCondition,
)
from .value_rules import EqualityRule, ValueRule, any_of, parse_value_rule


_DRIVER_KEYS = (
    "driverCharacteristicsType",
    "licenseCharacteristics",
    "ageOfDriver",
    "timeDriversLicenseHeld",
)
_ACCESS_KEYS = ("accessConditionType", "otherAccessRestriction")
_OCCUPANT_KEYS = ("numbersOfOccupants", "disabledWithPermit")

# field name -> (json key, value type, value key)
_VEHICLE_NUMERIC_FIELDS = {
    "year_of_first_registration": ("yearOfFirstRegistration", int, "yearOfFirstRegistration"),
    "gross_weight": ("grossWeightCharacteristic", float, "grossVehicleWeight"),
    "height": ("heightCharacteristic", float, "vehicleHeight"),
    "length": ("lengthCharacteristic", float, "vehicleLength"),
    "width": ("widthCharacteristic", float, "vehicleWidth"),
    "heaviest_axle_weight": ("heaviestAxleWeightCharacteristic", float, "heaviestAxleWeight"),
    "number_of_axles": ("numberOfAxlesCharacteristic", int, "numberOfAxles"),
}


def _equality(data: Dict[str, Any], key: str) -> Optional[ValueRule]:
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, (dict, list)):
        # Structured values compare by their canonical JSON text.
        value = json.dumps(value, sort_keys=True)
    return EqualityRule(value)


def _rule(
    data: Dict[str, Any],
    key: str,
    value_type: Callable[[Any], Any],
    operator_key: str = "operator",
    value_key: str = "value",
) -> Optional[ValueRule]:
    value = data.get(key)
    if value is None:
        return None
    return parse_value_rule(value, value_type, operator_key, value_key)


def _parse_vehicle(characteristics: Any) -> VehicleCondition:
    if not isinstance(characteristics, dict):
        raise ConditionParseError(message="'vehicleCharacteristics' must be an object")

    vehicle_types = characteristics.get("vehicleType")
    if isinstance(vehicle_types, list):
        vehicle_type = any_of(value for value in vehicle_types if value is not None)
    else:
        vehicle_type = _equality(characteristics, "vehicleType")

    numeric = {
        name: _rule(characteristics, key, value_type, "comparisonOperator", value_key)
        for name, (key, value_type, value_key) in _VEHICLE_NUMERIC_FIELDS.items()
    }
    return VehicleCondition(
        vehicle_type=vehicle_type,
        vehicle_usage=_equality(characteristics, "vehicleUsage"),
        fuel_type=_equality(characteristics, "fuelType"),
        **numeric,
    )


def _parse_permit(data: Dict[str, Any]) -> PermitCondition:
    authority = data.get("authority")
    authority_name = authority.get("name") if isinstance(authority, dict) else authority
    return PermitCondition(
        type=_equality(data, "type"),
        authority=EqualityRule(authority_name) if authority_name is not None else None,
    )


def _parse_condition_set(data: Dict[str, Any]) -> ConditionSet:
    raw_operator = data.get("operator", ConditionOperator.AND.value)
    try:
        operator = ConditionOperator(str(raw_operator).lower())
    except ValueError as exc:
        raise ConditionParseError(
            message=f"Unknown condition set operator '{raw_operator}'"
        ) from exc

    children = data.get("conditions")
    if not isinstance(children, list) or not children:
        raise ConditionParseError(message="A condition set requires at least one condition")
    if operator == ConditionOperator.XOR and len(children) < 2:
        raise ConditionParseError(message="An xor condition set requires at least two conditions")

    return ConditionSet(
        operator=operator,
        conditions=tuple(parse_condition(child) for child in children),
        negate=bool(data.get("negate", False)),
    )


def parse_condition(data: Any) -> Condition:
    """
    Read one condition, dispatching on the keys present.

    Args:
        data: A decoded JSON object.

    Returns:
        The matching condition variant.

    Raises:
        UnknownConditionError: If no known condition keys are present.
        ConditionParseError: If a condition is malformed.
    """
    if not isinstance(data, dict):
        raise ConditionParseError(message="A condition must be an object")

    negate = bool(data.get("negate", False))

    if "conditions" in data:
        return _parse_condition_set(data)

    if "roadType" in data:
        return RoadCondition(road_type=_equality(data, "roadType"), negate=negate)

    if any(key in data for key in _OCCUPANT_KEYS):
        return OccupantCondition(
            disabled_with_permit=_equality(data, "disabledWithPermit"),
            numbers_of_occupants=_rule(data, "numbersOfOccupants", int),
            negate=negate,
        )

    if any(key in data for key in _DRIVER_KEYS):
        return DriverCondition(
            driver_characteristics_type=_equality(data, "driverCharacteristicsType"),
            license_characteristics=_equality(data, "licenseCharacteristics"),
            age_of_driver=_rule(data, "ageOfDriver", int),
            time_drivers_license_held=_rule(data, "timeDriversLicenseHeld", int),
            negate=negate,
        )

    if any(key in data for key in _ACCESS_KEYS):
        return AccessCondition(
            access_condition_type=_equality(data, "accessConditionType"),
            other_access_restriction=_equality(data, "otherAccessRestriction"),
            negate=negate,
        )

    if "type" in data:
        return replace_negate(_parse_permit(data), negate)

    if "vehicleCharacteristics" in data:
        return replace_negate(_parse_vehicle(data["vehicleCharacteristics"]), negate)

    raise UnknownConditionError(
        message="Unknown condition type",
        details={"keys": sorted(data.keys())},
    )


def replace_negate(condition: Condition, negate: bool) -> Condition:
    """Return ``condition`` with its negation flag set to ``negate``."""
    return condition if condition.negate == negate else condition.negated()


def parse_conditions(items: List[Any]) -> ConditionSet:
    """Read a regulation's condition list as an AND of its items."""
    return ConditionSet.and_(*(parse_condition(item) for item in items))
