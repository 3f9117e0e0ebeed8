"""
Client API Endpoints

Provides endpoints for the therapist's client roster:
- List clients
- Add a client (form validated)
- Get client details
- Update profile fields or toggle active/inactive

Clients are never deleted; inactive is the archival state.
"""

from typing import Any, Optional
from uuid import UUID

from fastapi import APIRouter, Body, Header
from pydantic import BaseModel

from src.api import dependencies
from src.api.dependencies import FormValidationError, practice_http_error, require_therapist_id
from src.models.client import ClientRead
from src.services.practice import PracticeError
from src.services.validation import validate_client, validate_client_update


router = APIRouter(prefix="/clients", tags=["clients"])


# =============================================================================
# Response Models
# =============================================================================

class ClientListResponse(BaseModel):
    """Response for listing clients."""
    items: list[ClientRead]
    count: int


# =============================================================================
# Endpoints
# =============================================================================

@router.get("", response_model=ClientListResponse)
async def list_clients(
    x_user_id: Optional[str] = Header(None),
) -> ClientListResponse:
    """List the therapist's clients, newest first."""
    therapist_id = require_therapist_id(x_user_id)
    service = dependencies.get_practice_service()

    try:
        items = service.list_clients(therapist_id)
        return ClientListResponse(items=items, count=len(items))
    except PracticeError as e:
        raise practice_http_error(e)


@router.post("", response_model=ClientRead, status_code=201)
async def create_client(
    form: dict[str, Any] = Body(...),
    x_user_id: Optional[str] = Header(None),
) -> ClientRead:
    """Add a client. Form errors come back as 422 with a per-field map."""
    therapist_id = require_therapist_id(x_user_id)

    result = validate_client(form)
    if not result.ok:
        raise FormValidationError(result.errors)

    service = dependencies.get_practice_service()
    try:
        return service.create_client(therapist_id, result.record)
    except PracticeError as e:
        raise practice_http_error(e)


@router.get("/{client_id}", response_model=ClientRead)
async def get_client(
    client_id: UUID,
    x_user_id: Optional[str] = Header(None),
) -> ClientRead:
    therapist_id = require_therapist_id(x_user_id)
    service = dependencies.get_practice_service()

    try:
        return service.get_client(therapist_id, client_id)
    except PracticeError as e:
        raise practice_http_error(e)


@router.patch("/{client_id}", response_model=ClientRead)
async def update_client(
    client_id: UUID,
    form: dict[str, Any] = Body(...),
    x_user_id: Optional[str] = Header(None),
) -> ClientRead:
    """Edit profile fields or change status. Only fields sent are checked and applied."""
    therapist_id = require_therapist_id(x_user_id)

    result = validate_client_update(form)
    if not result.ok:
        raise FormValidationError(result.errors)

    service = dependencies.get_practice_service()
    try:
        return service.update_client(therapist_id, client_id, result.record)
    except PracticeError as e:
        raise practice_http_error(e)
