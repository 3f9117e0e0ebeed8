"""
Session API Endpoints

Provides endpoints for scheduling and tracking sessions:
- List sessions (filter by client, date range, status)
- Schedule a session, optionally recurring (every occurrence is returned)
- Edit a session
- Complete or cancel a scheduled session
- Hard delete a session together with its notes
"""

from datetime import date
from typing import Any, Optional
from uuid import UUID

from fastapi import APIRouter, Body, Header, Query
from pydantic import BaseModel

from src.api import dependencies
from src.api.dependencies import FormValidationError, practice_http_error, require_therapist_id
from src.models.session import SessionRead, SessionStatus, SessionUpdate
from src.services.practice import PracticeError
from src.services.validation import validate_session


router = APIRouter(prefix="/sessions", tags=["sessions"])


# =============================================================================
# Response Models
# =============================================================================

class SessionListResponse(BaseModel):
    """Response for listing or creating sessions."""
    items: list[SessionRead]
    count: int


# =============================================================================
# Endpoints
# =============================================================================

@router.get("", response_model=SessionListResponse)
async def list_sessions(
    client_id: Optional[UUID] = Query(None, description="Only this client's sessions"),
    start: Optional[date] = Query(None, description="Earliest session date (inclusive)"),
    end: Optional[date] = Query(None, description="Latest session date (inclusive)"),
    status: Optional[SessionStatus] = Query(None, description="Filter by session status"),
    x_user_id: Optional[str] = Header(None),
) -> SessionListResponse:
    """List the therapist's sessions in chronological order."""
    therapist_id = require_therapist_id(x_user_id)
    service = dependencies.get_practice_service()

    try:
        items = service.list_sessions(therapist_id, client_id=client_id, start=start, end=end, status=status)
        return SessionListResponse(items=items, count=len(items))
    except PracticeError as e:
        raise practice_http_error(e)


@router.post("", response_model=SessionListResponse, status_code=201)
async def create_sessions(
    form: dict[str, Any] = Body(...),
    x_user_id: Optional[str] = Header(None),
) -> SessionListResponse:
    """
    Schedule a session.

    With a recurrence directive one row per occurrence is created, up to and
    including the end date.
    """
    therapist_id = require_therapist_id(x_user_id)

    result = validate_session(form)
    if not result.ok:
        raise FormValidationError(result.errors)

    service = dependencies.get_practice_service()
    try:
        items = service.create_sessions(therapist_id, result.record)
        return SessionListResponse(items=items, count=len(items))
    except PracticeError as e:
        raise practice_http_error(e)


@router.get("/{session_id}", response_model=SessionRead)
async def get_session(
    session_id: UUID,
    x_user_id: Optional[str] = Header(None),
) -> SessionRead:
    therapist_id = require_therapist_id(x_user_id)
    service = dependencies.get_practice_service()

    try:
        return service.get_session(therapist_id, session_id)
    except PracticeError as e:
        raise practice_http_error(e)


@router.patch("/{session_id}", response_model=SessionRead)
async def update_session(
    session_id: UUID,
    data: SessionUpdate,
    x_user_id: Optional[str] = Header(None),
) -> SessionRead:
    """Edit a session. Status changes out of completed/cancelled are rejected (409)."""
    therapist_id = require_therapist_id(x_user_id)
    service = dependencies.get_practice_service()

    try:
        return service.update_session(therapist_id, session_id, data)
    except PracticeError as e:
        raise practice_http_error(e)


@router.post("/{session_id}/complete", response_model=SessionRead)
async def complete_session(
    session_id: UUID,
    x_user_id: Optional[str] = Header(None),
) -> SessionRead:
    therapist_id = require_therapist_id(x_user_id)
    service = dependencies.get_practice_service()

    try:
        return service.complete_session(therapist_id, session_id)
    except PracticeError as e:
        raise practice_http_error(e)


@router.post("/{session_id}/cancel", response_model=SessionRead)
async def cancel_session(
    session_id: UUID,
    x_user_id: Optional[str] = Header(None),
) -> SessionRead:
    therapist_id = require_therapist_id(x_user_id)
    service = dependencies.get_practice_service()

    try:
        return service.cancel_session(therapist_id, session_id)
    except PracticeError as e:
        raise practice_http_error(e)


@router.delete("/{session_id}")
async def delete_session(
    session_id: UUID,
    x_user_id: Optional[str] = Header(None),
) -> dict:
    """Hard delete a session; its notes are removed with it."""
    therapist_id = require_therapist_id(x_user_id)
    service = dependencies.get_practice_service()

    try:
        service.delete_session(therapist_id, session_id)
        return {"status": "deleted", "session_id": str(session_id)}
    except PracticeError as e:
        raise practice_http_error(e)
