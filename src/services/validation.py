"""
Form Validation

Checks raw form input for clients, sessions and notes before anything is
submitted to the backend. Every validator returns a tagged result:

- Ok(record): the normalized, typed Create schema
- Invalid(errors): a map of dotted field path -> human-readable message

Expected invalid input never raises.
"""

import datetime as dt
import re
from dataclasses import dataclass, field
from typing import Any, Generic, Mapping, Optional, TypeVar, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_core import PydanticCustomError

from src.models.client import ClientCreate, ClientStatus, ClientUpdate
from src.models.session import (
    MAX_DURATION_MINUTES,
    MIN_DURATION_MINUTES,
    RecurrenceFrequency,
    SessionCreate,
    SessionStatus,
    SessionType,
)
from src.models.therapy_note import TherapyNoteCreate

T = TypeVar("T")

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


# =============================================================================
# Result types
# =============================================================================

@dataclass(frozen=True)
class Ok(Generic[T]):
    """Validation succeeded; record is ready for submission."""
    record: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Invalid:
    """Validation failed; errors maps field paths to messages."""
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return False


ValidationResult = Union[Ok[T], Invalid]


# =============================================================================
# Shared validators
# =============================================================================

def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _require(value: Any, message: str) -> Any:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise PydanticCustomError("missing", message)
    return value


# =============================================================================
# Form models
# =============================================================================

class ClientEditForm(BaseModel):
    """Partial client form for profile edits; only the fields sent are checked."""
    model_config = ConfigDict(str_strip_whitespace=True)

    first_name: Optional[str] = Field(None, max_length=255)
    last_name: Optional[str] = Field(None, max_length=255)
    email: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    emergency_contact: Optional[str] = Field(None, max_length=255)
    emergency_phone: Optional[str] = Field(None, max_length=50)
    date_of_birth: Optional[str] = None
    address: Optional[str] = None
    insurance: Optional[str] = None
    status: Optional[ClientStatus] = None

    @field_validator(
        "email", "phone", "emergency_contact", "emergency_phone",
        "date_of_birth", "address", "insurance",
        mode="before",
    )
    @classmethod
    def _optional_text(cls, value):
        return _blank_to_none(value)

    @field_validator("first_name")
    @classmethod
    def _first_name_length(cls, value: Optional[str]) -> str:
        if value is None:
            raise PydanticCustomError("missing", "First name is required")
        if len(value) < 2:
            raise PydanticCustomError("too_short", "First name must be at least 2 characters")
        return value

    @field_validator("last_name")
    @classmethod
    def _last_name_length(cls, value: Optional[str]) -> str:
        if value is None:
            raise PydanticCustomError("missing", "Last name is required")
        if len(value) < 2:
            raise PydanticCustomError("too_short", "Last name must be at least 2 characters")
        return value

    @field_validator("status")
    @classmethod
    def _status_present(cls, value: Optional[ClientStatus]) -> ClientStatus:
        if value is None:
            raise PydanticCustomError("missing", "Status is required")
        return value

    @field_validator("email")
    @classmethod
    def _email_format(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not _EMAIL_RE.match(value):
            raise PydanticCustomError("email", "Invalid email address")
        return value

    @field_validator("date_of_birth")
    @classmethod
    def _date_of_birth_format(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        if not _ISO_DATE_RE.match(value):
            raise PydanticCustomError("date_format", "Invalid date format")
        try:
            dt.date.fromisoformat(value)
        except ValueError:
            raise PydanticCustomError("date_format", "Invalid date format")
        return value


class ClientForm(ClientEditForm):
    """Raw client form as entered by the therapist."""
    first_name: str = Field(..., max_length=255)
    last_name: str = Field(..., max_length=255)
    status: ClientStatus = ClientStatus.ACTIVE


class RecurrenceForm(BaseModel):
    frequency: RecurrenceFrequency = RecurrenceFrequency.NONE
    end_date: Optional[dt.date] = None

    @field_validator("end_date", mode="before")
    @classmethod
    def _optional_end_date(cls, value):
        return _blank_to_none(value)


class SessionForm(BaseModel):
    """Raw session scheduling form."""
    model_config = ConfigDict(str_strip_whitespace=True)

    client_id: UUID = Field(None, validate_default=True)
    date: dt.date = Field(None, validate_default=True)
    time: dt.time = Field(None, validate_default=True)
    duration: int = 60
    type: SessionType = SessionType.INDIVIDUAL
    status: SessionStatus = SessionStatus.SCHEDULED
    notes: Optional[str] = None
    recurrence: Optional[RecurrenceForm] = None

    @field_validator("client_id", mode="before")
    @classmethod
    def _client_required(cls, value):
        return _require(value, "Client is required")

    @field_validator("date", mode="before")
    @classmethod
    def _date_required(cls, value):
        return _require(value, "Date is required")

    @field_validator("time", mode="before")
    @classmethod
    def _time_required(cls, value):
        return _require(value, "Time is required")

    @field_validator("notes", mode="before")
    @classmethod
    def _optional_notes(cls, value):
        return _blank_to_none(value)

    @field_validator("duration")
    @classmethod
    def _duration_range(cls, value: int) -> int:
        if not MIN_DURATION_MINUTES <= value <= MAX_DURATION_MINUTES:
            raise PydanticCustomError(
                "duration_range",
                "Duration must be between {low} and {high} minutes",
                {"low": MIN_DURATION_MINUTES, "high": MAX_DURATION_MINUTES},
            )
        return value


class NoteForm(BaseModel):
    """Raw note documentation form."""
    session_id: UUID
    client_id: UUID
    content: str

    @field_validator("content")
    @classmethod
    def _content_not_empty(cls, value: str) -> str:
        if not value.strip():
            raise PydanticCustomError("empty", "Notes cannot be empty")
        return value


# =============================================================================
# Public API
# =============================================================================

def field_errors(exc: ValidationError) -> dict[str, str]:
    """Flatten a pydantic ValidationError into {field_path: message}.

    Only the first message per field is kept.
    """
    errors: dict[str, str] = {}
    for err in exc.errors():
        path = ".".join(str(part) for part in err["loc"]) or "form"
        message = err["msg"]
        if err["type"] == "missing" and message == "Field required":
            message = "This field is required"
        errors.setdefault(path, message)
    return errors


def validate_client(raw: Mapping[str, Any]) -> ValidationResult[ClientCreate]:
    """Validate a client form."""
    try:
        form = ClientForm.model_validate(raw)
        return Ok(ClientCreate.model_validate(form.model_dump()))
    except ValidationError as e:
        return Invalid(field_errors(e))


def validate_client_update(raw: Mapping[str, Any]) -> ValidationResult[ClientUpdate]:
    """Validate a profile edit.

    Only fields present in raw are checked and carried into the update;
    an explicit null on a name or the status is rejected.
    """
    try:
        form = ClientEditForm.model_validate(raw)
        return Ok(ClientUpdate.model_validate(form.model_dump(exclude_unset=True)))
    except ValidationError as e:
        return Invalid(field_errors(e))


def validate_session(raw: Mapping[str, Any]) -> ValidationResult[SessionCreate]:
    """Validate a session scheduling form, including its recurrence directive."""
    try:
        form = SessionForm.model_validate(raw)
        return Ok(SessionCreate.model_validate(form.model_dump()))
    except ValidationError as e:
        return Invalid(field_errors(e))


def validate_note(raw: Mapping[str, Any]) -> ValidationResult[TherapyNoteCreate]:
    """Validate a therapy note form."""
    try:
        form = NoteForm.model_validate(raw)
        return Ok(TherapyNoteCreate.model_validate(form.model_dump()))
    except ValidationError as e:
        return Invalid(field_errors(e))
