"""
Therapist Account API Endpoints

- Register or update the calling therapist's profile
- Read the profile with subscription state
"""

from typing import Optional

from fastapi import APIRouter, Header

from src.api import dependencies
from src.api.dependencies import practice_http_error, require_therapist_id
from src.models.therapist import TherapistProfile, TherapistRead
from src.services.practice import PracticeError


router = APIRouter(prefix="/therapists", tags=["therapists"])


@router.put("/me", response_model=TherapistRead)
async def register_therapist(
    data: TherapistProfile,
    x_user_id: Optional[str] = Header(None),
) -> TherapistRead:
    """Create the therapist row on first sign-in, or update the profile."""
    therapist_id = require_therapist_id(x_user_id)
    service = dependencies.get_practice_service()

    try:
        return service.register_therapist(therapist_id, data)
    except PracticeError as e:
        raise practice_http_error(e)


@router.get("/me", response_model=TherapistRead)
async def get_therapist(
    x_user_id: Optional[str] = Header(None),
) -> TherapistRead:
    therapist_id = require_therapist_id(x_user_id)
    service = dependencies.get_practice_service()

    try:
        return service.get_therapist(therapist_id)
    except PracticeError as e:
        raise practice_http_error(e)
