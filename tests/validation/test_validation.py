"""
Form Validation Tests

Tests verify:
1. Client form rules (name length, email, date of birth)
2. Session form rules (required fields, duration bounds, recurrence)
3. Note form rules (non-empty content)
4. Results are tagged Ok / Invalid and never raise
"""

import pytest
from datetime import date, time
from uuid import uuid4

from src.models.client import ClientCreate, ClientStatus
from src.models.session import RecurrenceFrequency, SessionCreate, SessionType
from src.services.validation import (
    Invalid,
    Ok,
    validate_client,
    validate_client_update,
    validate_note,
    validate_session,
)


@pytest.fixture()
def client_form():
    return {
        "first_name": "Jane",
        "last_name": "Doe",
        "email": "jane@example.com",
        "phone": "555-0100",
        "date_of_birth": "1990-05-01",
        "status": "active",
    }


@pytest.fixture()
def session_form():
    return {
        "client_id": str(uuid4()),
        "date": "2024-01-08",
        "time": "09:00",
        "duration": 60,
        "type": "individual",
    }


# =============================================================================
# Client form
# =============================================================================

class TestValidateClient:
    """Tests for validate_client."""

    def test_valid_form_returns_ok(self, client_form):
        result = validate_client(client_form)

        assert isinstance(result, Ok)
        assert result.ok is True
        assert isinstance(result.record, ClientCreate)
        assert result.record.date_of_birth == date(1990, 5, 1)
        assert result.record.status == ClientStatus.ACTIVE

    def test_short_first_name(self, client_form):
        client_form["first_name"] = "J"

        result = validate_client(client_form)

        assert isinstance(result, Invalid)
        assert result.ok is False
        assert result.errors["first_name"] == "First name must be at least 2 characters"

    def test_short_last_name_after_stripping(self, client_form):
        client_form["last_name"] = "  D "

        result = validate_client(client_form)

        assert result.errors["last_name"] == "Last name must be at least 2 characters"

    def test_invalid_email(self, client_form):
        client_form["email"] = "not-an-email"

        result = validate_client(client_form)

        assert result.errors == {"email": "Invalid email address"}

    def test_blank_optional_fields_become_none(self, client_form):
        client_form["email"] = ""
        client_form["phone"] = "   "
        client_form["date_of_birth"] = ""

        result = validate_client(client_form)

        assert result.ok
        assert result.record.email is None
        assert result.record.phone is None
        assert result.record.date_of_birth is None

    @pytest.mark.parametrize("value", ["05/01/1990", "1990-13-01", "yesterday"])
    def test_invalid_date_of_birth(self, client_form, value):
        client_form["date_of_birth"] = value

        result = validate_client(client_form)

        assert result.errors["date_of_birth"] == "Invalid date format"

    def test_missing_names(self):
        result = validate_client({})

        assert result.errors["first_name"] == "This field is required"
        assert result.errors["last_name"] == "This field is required"

    def test_multiple_errors_reported_together(self, client_form):
        client_form["first_name"] = "J"
        client_form["email"] = "bad"

        result = validate_client(client_form)

        assert set(result.errors) == {"first_name", "email"}

    @pytest.mark.parametrize("field_name,value", [
        ("first_name", "A" * 300),
        ("phone", "5" * 60),
        ("emergency_phone", "5" * 51),
    ])
    def test_overlong_fields_are_invalid(self, client_form, field_name, value):
        client_form[field_name] = value

        result = validate_client(client_form)

        assert isinstance(result, Invalid)
        assert list(result.errors) == [field_name]


class TestValidateClientUpdate:
    """Tests for validate_client_update."""

    def test_only_sent_fields_are_carried(self):
        result = validate_client_update({"status": "inactive"})

        assert isinstance(result, Ok)
        assert result.record.model_dump(exclude_unset=True) == {"status": ClientStatus.INACTIVE}

    def test_blank_optional_field_clears_it(self):
        result = validate_client_update({"email": "  "})

        assert result.record.model_dump(exclude_unset=True) == {"email": None}

    def test_short_name_and_bad_email(self):
        result = validate_client_update({"first_name": "A", "email": "not-an-email"})

        assert result.errors == {
            "first_name": "First name must be at least 2 characters",
            "email": "Invalid email address",
        }

    @pytest.mark.parametrize("field_name,message", [
        ("first_name", "First name is required"),
        ("last_name", "Last name is required"),
        ("status", "Status is required"),
    ])
    def test_explicit_null_on_required_field(self, field_name, message):
        result = validate_client_update({field_name: None})

        assert result.errors == {field_name: message}

    def test_malformed_date_of_birth(self):
        result = validate_client_update({"date_of_birth": "14/03/1985"})

        assert result.errors == {"date_of_birth": "Invalid date format"}

    def test_overlong_name(self):
        result = validate_client_update({"last_name": "B" * 256})

        assert isinstance(result, Invalid)
        assert list(result.errors) == ["last_name"]


# =============================================================================
# Session form
# =============================================================================

class TestValidateSession:
    """Tests for validate_session."""

    def test_valid_form_returns_ok(self, session_form):
        result = validate_session(session_form)

        assert result.ok
        assert isinstance(result.record, SessionCreate)
        assert result.record.date == date(2024, 1, 8)
        assert result.record.time == time(9, 0)
        assert result.record.type == SessionType.INDIVIDUAL
        assert result.record.recurrence is None

    @pytest.mark.parametrize("duration", [15, 180])
    def test_duration_bounds_accepted(self, session_form, duration):
        session_form["duration"] = duration

        assert validate_session(session_form).ok

    @pytest.mark.parametrize("duration", [10, 200])
    def test_duration_out_of_range_rejected(self, session_form, duration):
        session_form["duration"] = duration

        result = validate_session(session_form)

        assert result.errors["duration"] == "Duration must be between 15 and 180 minutes"

    def test_blank_required_fields(self, session_form):
        session_form.update({"client_id": "", "date": "", "time": ""})

        result = validate_session(session_form)

        assert result.errors["client_id"] == "Client is required"
        assert result.errors["date"] == "Date is required"
        assert result.errors["time"] == "Time is required"

    def test_missing_required_fields(self):
        result = validate_session({"duration": 60})

        assert result.errors["client_id"] == "Client is required"
        assert result.errors["date"] == "Date is required"
        assert result.errors["time"] == "Time is required"

    def test_all_seven_session_types_accepted(self, session_form):
        for session_type in SessionType:
            session_form["type"] = session_type.value
            assert validate_session(session_form).ok

    def test_unknown_session_type_rejected(self, session_form):
        session_form["type"] = "group"

        result = validate_session(session_form)

        assert "type" in result.errors

    def test_recurrence_carried_through(self, session_form):
        session_form["recurrence"] = {"frequency": "weekly", "end_date": "2024-01-22"}

        result = validate_session(session_form)

        assert result.ok
        assert result.record.recurrence.frequency == RecurrenceFrequency.WEEKLY
        assert result.record.recurrence.end_date == date(2024, 1, 22)

    def test_recurrence_blank_end_date(self, session_form):
        session_form["recurrence"] = {"frequency": "monthly", "end_date": ""}

        result = validate_session(session_form)

        assert result.ok
        assert result.record.recurrence.end_date is None


# =============================================================================
# Note form
# =============================================================================

class TestValidateNote:
    """Tests for validate_note."""

    def test_valid_note(self):
        result = validate_note({
            "session_id": str(uuid4()),
            "client_id": str(uuid4()),
            "content": "Discussed coping strategies.",
        })

        assert result.ok
        assert result.record.content == "Discussed coping strategies."

    def test_whitespace_only_content(self):
        result = validate_note({
            "session_id": str(uuid4()),
            "client_id": str(uuid4()),
            "content": "   ",
        })

        assert result.errors["content"] == "Notes cannot be empty"

    def test_missing_session(self):
        result = validate_note({"client_id": str(uuid4()), "content": "Notes"})

        assert result.errors["session_id"] == "This field is required"
