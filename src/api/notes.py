"""
Therapy Note API Endpoints

- List notes (optionally for one client)
- Document a session: the note is stored and the session completed together
"""

from typing import Any, Optional
from uuid import UUID

from fastapi import APIRouter, Body, Header, Query
from pydantic import BaseModel

from src.api import dependencies
from src.api.dependencies import FormValidationError, practice_http_error, require_therapist_id
from src.models.session import SessionRead
from src.models.therapy_note import TherapyNoteRead
from src.services.practice import PracticeError
from src.services.validation import validate_note


router = APIRouter(prefix="/notes", tags=["notes"])


class NoteListResponse(BaseModel):
    """Response for listing notes."""
    items: list[TherapyNoteRead]
    count: int


class NoteCreatedResponse(BaseModel):
    """The new note and the session it completed."""
    note: TherapyNoteRead
    session: SessionRead


@router.get("", response_model=NoteListResponse)
async def list_notes(
    client_id: Optional[UUID] = Query(None, description="Only this client's notes"),
    x_user_id: Optional[str] = Header(None),
) -> NoteListResponse:
    therapist_id = require_therapist_id(x_user_id)
    service = dependencies.get_practice_service()

    try:
        items = service.list_notes(therapist_id, client_id=client_id)
        return NoteListResponse(items=items, count=len(items))
    except PracticeError as e:
        raise practice_http_error(e)


@router.post("", response_model=NoteCreatedResponse, status_code=201)
async def create_note(
    form: dict[str, Any] = Body(...),
    x_user_id: Optional[str] = Header(None),
) -> NoteCreatedResponse:
    """
    Save a note for a session and mark the session completed.

    Notes on cancelled sessions are rejected (409).
    """
    therapist_id = require_therapist_id(x_user_id)

    result = validate_note(form)
    if not result.ok:
        raise FormValidationError(result.errors)

    service = dependencies.get_practice_service()
    try:
        note, session = service.create_note(therapist_id, result.record)
        return NoteCreatedResponse(note=note, session=session)
    except PracticeError as e:
        raise practice_http_error(e)
