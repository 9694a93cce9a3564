"""
Tests for trip payload validation and multipart decoding.
"""
from datetime import date

import pytest

from triplog.core.errors import InvalidInputError, TripValidationError
from triplog.core.utils import parse_date
from triplog.validators.trip_validator import (
    collect_violations, decode_form_fields, validate_trip_payload
)


def valid_payload(**overrides):
    payload = {
        "country": "Japan",
        "travelPeriod": {"startDate": "2024-01-01", "endDate": "2024-01-10"},
        "visitedPlaces": [{"name": "Tokyo", "description": "Amazing city", "rating": 5}],
        "accommodations": [{"name": "Hotel Tokyo", "type": "Hotel", "cost": 100}],
        "transportations": [{"type": "Train", "cost": 50}],
        "weatherNotes": "Cold and dry",
        "clothingTips": "Bring warm clothes",
        "budgetItems": [{"category": "Food", "amount": 500}],
    }
    payload.update(overrides)
    return payload


def test_valid_payload():
    trip = validate_trip_payload(valid_payload())
    assert trip.country == "Japan"
    assert trip.travel_period.start_date == date(2024, 1, 1)
    assert trip.travel_period.end_date == date(2024, 1, 10)
    assert trip.visited_places[0].rating == 5
    assert trip.budget_items[0].amount == 500


def test_empty_payload_reports_every_rule():
    messages = [v["message"] for v in collect_violations({})]
    assert messages == [
        "Country is required",
        "Start date is required",
        "End date is required",
        "At least one visited place is required",
        "At least one accommodation is required",
        "At least one transportation method is required",
        "At least one budget item is required",
    ]


def test_invalid_dates():
    payload = valid_payload(travelPeriod={"startDate": "not a date", "endDate": "2024-13-45"})
    messages = [v["message"] for v in collect_violations(payload)]
    assert messages == ["Start date must be a valid date", "End date must be a valid date"]


def test_blank_country_and_empty_lists():
    payload = valid_payload(country="   ", visitedPlaces=[], budgetItems=[])
    with pytest.raises(TripValidationError) as exc:
        validate_trip_payload(payload)
    fields = [v["field"] for v in exc.value.errors]
    assert fields == ["country", "visitedPlaces", "budgetItems"]
    assert exc.value.to_dict()["errors"] == exc.value.errors


def test_item_level_checks():
    payload = valid_payload(
        visitedPlaces=[{"name": "Tokyo", "rating": 9}],
        budgetItems=[{"category": "Food", "amount": -5}],
    )
    with pytest.raises(TripValidationError) as exc:
        validate_trip_payload(payload)
    fields = {v["field"] for v in exc.value.errors}
    assert "visitedPlaces.0.rating" in fields
    assert "budgetItems.0.amount" in fields


def test_end_before_start_is_accepted():
    trip = validate_trip_payload(valid_payload(travelPeriod={"startDate": "2024-02-01", "endDate": "2024-01-01"}))
    assert trip.travel_period.end_date < trip.travel_period.start_date


def test_decode_form_fields():
    form = {
        "country": "Japan",
        "travelPeriod": '{"startDate": "2024-01-01", "endDate": "2024-01-10"}',
        "visitedPlaces": '[{"name": "Tokyo"}]',
        "deletedPhotos": "",
        "weatherNotes": None,
    }
    payload = decode_form_fields(form)
    assert payload == {
        "country": "Japan",
        "travelPeriod": {"startDate": "2024-01-01", "endDate": "2024-01-10"},
        "visitedPlaces": [{"name": "Tokyo"}],
    }


def test_decode_form_fields_bad_json():
    with pytest.raises(InvalidInputError) as exc:
        decode_form_fields({"visitedPlaces": "[{not json"})
    assert exc.value.message == "Invalid JSON format in request body: visitedPlaces"


@pytest.mark.parametrize("value,expected", [
    ("2024-01-01", date(2024, 1, 1)),
    ("2024-01-01T10:00:00Z", date(2024, 1, 1)),
    ("2024/01/31", date(2024, 1, 31)),
    ("01/31/2024", date(2024, 1, 31)),
    ("nonsense", None),
    ("", None),
])
def test_parse_date(value, expected):
    assert parse_date(value) == expected
