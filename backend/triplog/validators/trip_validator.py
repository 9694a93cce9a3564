"""Trip payload validation.

Rules are declared as data and every one of them is evaluated, so a single
response lists all problems with a payload instead of only the first one.
"""
import json
from typing import Any, Callable, Dict, List, Mapping, NamedTuple, Optional

from pydantic import ValidationError as PydanticValidationError

from triplog.core.errors import InvalidInputError, TripValidationError
from triplog.core.utils import parse_date
from triplog.schemas.trip import TripPayload

# Multipart fields that carry JSON documents
JSON_FIELDS = (
    "travelPeriod",
    "visitedPlaces",
    "accommodations",
    "transportations",
    "budgetItems",
    "deletedPhotos",
)


class Rule(NamedTuple):
    field: str
    check: Callable[[Any], bool]
    message: str


def _lookup(payload: Mapping[str, Any], path: str) -> Any:
    value: Any = payload
    for part in path.split("."):
        if not isinstance(value, Mapping):
            return None
        value = value.get(part)
    return value


def _present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def _valid_date_or_missing(value: Any) -> bool:
    # Missing dates are reported by the "required" rule only
    return not _present(value) or parse_date(value) is not None


def _non_empty_list(value: Any) -> bool:
    return isinstance(value, list) and len(value) > 0


TRIP_RULES: List[Rule] = [
    Rule("country", _present, "Country is required"),
    Rule("travelPeriod.startDate", _present, "Start date is required"),
    Rule("travelPeriod.startDate", _valid_date_or_missing, "Start date must be a valid date"),
    Rule("travelPeriod.endDate", _present, "End date is required"),
    Rule("travelPeriod.endDate", _valid_date_or_missing, "End date must be a valid date"),
    Rule("visitedPlaces", _non_empty_list, "At least one visited place is required"),
    Rule("accommodations", _non_empty_list, "At least one accommodation is required"),
    Rule("transportations", _non_empty_list, "At least one transportation method is required"),
    Rule("budgetItems", _non_empty_list, "At least one budget item is required"),
]


def collect_violations(payload: Mapping[str, Any], rules: List[Rule] = TRIP_RULES) -> List[Dict[str, str]]:
    """Evaluate every rule and return one entry per failed rule."""
    return [
        {"field": rule.field, "message": rule.message}
        for rule in rules
        if not rule.check(_lookup(payload, rule.field))
    ]


def _pydantic_violations(exc: PydanticValidationError) -> List[Dict[str, str]]:
    violations = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error["loc"])
        violations.append({"field": field, "message": error["msg"]})
    return violations


def validate_trip_payload(payload: Mapping[str, Any]) -> TripPayload:
    """
    Run the rule set, then the item-level schema checks.

    Raises:
        TripValidationError: with every violation found
    """
    violations = collect_violations(payload)
    if violations:
        raise TripValidationError(violations)

    try:
        return TripPayload.model_validate(dict(payload))
    except PydanticValidationError as e:
        raise TripValidationError(_pydantic_violations(e))


def decode_form_fields(form: Mapping[str, Optional[str]]) -> Dict[str, Any]:
    """
    Turn multipart form values into a payload dict, decoding the JSON-encoded ones.

    Raises:
        InvalidInputError: if a JSON field does not parse
    """
    payload: Dict[str, Any] = {}
    for key, value in form.items():
        if value is None:
            continue
        if key in JSON_FIELDS and isinstance(value, str):
            if not value.strip():
                continue
            try:
                payload[key] = json.loads(value)
            except json.JSONDecodeError:
                raise InvalidInputError(f"Invalid JSON format in request body: {key}")
        else:
            payload[key] = value
    return payload
