"""
Shared API plumbing: the practice service instance, caller identity and
service-error translation.
"""

from typing import Optional
from uuid import UUID

from fastapi import HTTPException

from src.models.base import get_session_factory
from src.services.practice import (
    AccessDeniedError,
    InvalidTransitionError,
    NotFoundError,
    PracticeError,
    PracticeService,
)


# =============================================================================
# Module-level services (for dependency injection)
# =============================================================================

_practice_service: Optional[PracticeService] = None


def get_practice_service() -> PracticeService:
    """Get or create practice service."""
    global _practice_service
    if _practice_service is None:
        _practice_service = PracticeService(get_session_factory())
    return _practice_service


def set_practice_service(service: Optional[PracticeService]) -> None:
    """Set practice service (for testing)."""
    global _practice_service
    _practice_service = service


# =============================================================================
# Helpers
# =============================================================================

def require_therapist_id(x_user_id: Optional[str]) -> UUID:
    """Resolve the authenticated therapist from the gateway header."""
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Authentication required")
    try:
        return UUID(x_user_id)
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid user identity")


def practice_http_error(e: PracticeError) -> HTTPException:
    if isinstance(e, AccessDeniedError):
        return HTTPException(status_code=403, detail=str(e))
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, InvalidTransitionError):
        return HTTPException(status_code=409, detail=str(e))
    return HTTPException(status_code=500, detail=str(e))


class FormValidationError(Exception):
    """A submitted form failed validation; rendered as 422 by the app."""

    def __init__(self, errors: dict[str, str]):
        super().__init__("Invalid request")
        self.errors = errors
