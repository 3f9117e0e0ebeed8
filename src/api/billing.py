"""
Billing API Endpoints

- Open a hosted subscription checkout for the calling therapist
- Receive subscription webhooks from the payment provider
"""

from typing import Optional

from fastapi import APIRouter, HTTPException, Header, Request
from pydantic import BaseModel, Field

from src.api.dependencies import require_therapist_id
from src.models.base import get_session_factory
from src.services.billing import (
    BillingError,
    BillingService,
    TherapistNotFoundError,
    WebhookSignatureError,
)


router = APIRouter(prefix="/billing", tags=["billing"])


# =============================================================================
# Module-level services (for dependency injection)
# =============================================================================

_billing_service: Optional[BillingService] = None


def get_billing_service() -> BillingService:
    """Get or create billing service."""
    global _billing_service
    if _billing_service is None:
        _billing_service = BillingService(get_session_factory())
    return _billing_service


def set_billing_service(service: Optional[BillingService]) -> None:
    """Set billing service (for testing)."""
    global _billing_service
    _billing_service = service


# =============================================================================
# Request/Response Models
# =============================================================================

class SubscriptionRequest(BaseModel):
    price_id: str = Field(..., min_length=1, description="Provider price identifier")


class SubscriptionResponse(BaseModel):
    session_id: str


# =============================================================================
# Endpoints
# =============================================================================

@router.post("/subscription", response_model=SubscriptionResponse)
async def create_subscription(
    data: SubscriptionRequest,
    x_user_id: Optional[str] = Header(None),
) -> SubscriptionResponse:
    """Create a checkout session; the caller redirects to the hosted page."""
    therapist_id = require_therapist_id(x_user_id)
    service = get_billing_service()

    try:
        session_id = service.create_subscription_checkout(therapist_id, data.price_id)
        return SubscriptionResponse(session_id=session_id)
    except TherapistNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except BillingError as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/webhook")
async def billing_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(None),
) -> dict:
    """
    Apply a subscription lifecycle event.

    The raw body is verified against the signature header before parsing.
    """
    payload = await request.body()
    service = get_billing_service()

    try:
        return service.handle_webhook(payload, stripe_signature)
    except WebhookSignatureError as e:
        raise HTTPException(status_code=400, detail=f"Webhook Error: {e}")
    except BillingError as e:
        raise HTTPException(status_code=500, detail=str(e))
