"""
Subscription Billing Service

Links therapist accounts to the payment provider:
- Opening a hosted subscription checkout (creating the billing customer on
  first use)
- Verifying and applying subscription webhooks

Webhook handling is idempotent: once the signature checks out the event is
acknowledged, even when no therapist matches the customer.
"""

import hashlib
import hmac
import json
import time
from datetime import datetime, timezone
from typing import Any, Callable, Optional
from uuid import UUID

import structlog

from src import config
from src.models.therapist import Therapist
from src.services.stripe_client import StripeClient, StripeError

logger = structlog.get_logger(__name__)

SUBSCRIPTION_UPSERT_EVENTS = {"customer.subscription.created", "customer.subscription.updated"}
SUBSCRIPTION_DELETED_EVENT = "customer.subscription.deleted"
HANDLED_EVENTS = (*SUBSCRIPTION_UPSERT_EVENTS, SUBSCRIPTION_DELETED_EVENT)
DEFAULT_PLAN = "monthly"


class BillingError(Exception):
    """Exception for billing service errors."""
    pass


class TherapistNotFoundError(BillingError):
    pass


class WebhookSignatureError(BillingError):
    """Raised when webhook signature verification fails."""
    pass


# =============================================================================
# Signature verification
# =============================================================================

def compute_signature(secret: str, timestamp: str, payload: bytes) -> str:
    """HMAC-SHA256 over "<timestamp>.<payload>", hex encoded."""
    signed = timestamp.encode("utf-8") + b"." + payload
    return hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()


def verify_signature(
    payload: bytes,
    header: Optional[str],
    secret: Optional[str],
    tolerance: int = config.WEBHOOK_TOLERANCE_SECONDS,
    now: Optional[float] = None,
) -> None:
    """Check a ``t=<ts>,v1=<sig>[,v1=<sig>...]`` signature header.

    Raises:
        WebhookSignatureError: Missing secret or header, malformed header,
            stale timestamp, or no matching signature.
    """
    if not secret:
        raise WebhookSignatureError("Webhook secret is not configured")
    if not header:
        raise WebhookSignatureError("Missing signature header")

    timestamp = None
    signatures = []
    for part in header.split(","):
        key, _, value = part.strip().partition("=")
        if key == "t":
            timestamp = value
        elif key == "v1":
            signatures.append(value)

    if not timestamp or not signatures:
        raise WebhookSignatureError("Malformed signature header")

    try:
        age = abs((now if now is not None else time.time()) - int(timestamp))
    except ValueError:
        raise WebhookSignatureError(f"Invalid signature timestamp: {timestamp}")
    if tolerance and age > tolerance:
        raise WebhookSignatureError(f"Signature timestamp outside tolerance ({int(age)}s)")

    expected = compute_signature(secret, timestamp, payload)
    if not any(hmac.compare_digest(expected, candidate) for candidate in signatures):
        raise WebhookSignatureError("No signature matches the payload")


# =============================================================================
# Service
# =============================================================================

class BillingService:
    """
    Creates checkout sessions and applies subscription webhooks.

    Args:
        session_factory: SQLAlchemy session factory.
        stripe_client: Provider client. Defaults to StripeClient().
        webhook_secret: Shared webhook secret (or STRIPE_WEBHOOK_SECRET).
        app_url: Base URL for checkout redirects (or APP_URL).
    """

    def __init__(
        self,
        session_factory: Optional[Callable] = None,
        stripe_client: Optional[StripeClient] = None,
        webhook_secret: Optional[str] = None,
        app_url: Optional[str] = None,
    ):
        self._session_factory = session_factory
        self._stripe = stripe_client or StripeClient()
        self._webhook_secret = webhook_secret or config.stripe_webhook_secret()
        self._app_url = (app_url or config.APP_URL).rstrip("/")

    def _get_session(self):
        if self._session_factory is None:
            raise BillingError("Cannot access billing records without a database session.")
        return self._session_factory()

    @staticmethod
    def _to_uuid(value) -> UUID:
        if isinstance(value, UUID):
            return value
        return UUID(str(value))

    def create_subscription_checkout(self, therapist_id, price_id: str) -> str:
        """Open a hosted checkout for price_id and return its session id.

        Creates and stores the billing customer on the first call.

        Raises:
            TherapistNotFoundError: No therapist row for the caller.
            BillingError: Any provider or database failure.
        """
        db = self._get_session()
        try:
            _tid = self._to_uuid(therapist_id)
            therapist = db.query(Therapist).filter(Therapist.id == _tid).first()
            if therapist is None:
                raise TherapistNotFoundError(f"Therapist not found: {therapist_id}")

            customer_id = therapist.billing_customer_id
            if not customer_id:
                customer = self._stripe.create_customer(
                    email=therapist.email,
                    metadata={"therapist_id": str(_tid)},
                )
                customer_id = customer["id"]
                therapist.billing_customer_id = customer_id
                therapist.updated_at = datetime.utcnow()
                db.commit()
                logger.info("billing_customer_created", therapist_id=str(_tid))

            checkout = self._stripe.create_checkout_session(
                customer_id=customer_id,
                price_id=price_id,
                success_url=f"{self._app_url}/dashboard?session_id={{CHECKOUT_SESSION_ID}}",
                cancel_url=f"{self._app_url}/pricing",
                metadata={"therapist_id": str(_tid)},
            )
            logger.info("checkout_session_created", therapist_id=str(_tid), price_id=price_id)
            return checkout["id"]

        except BillingError:
            db.rollback()
            raise
        except StripeError as e:
            db.rollback()
            logger.error("checkout_failed", therapist_id=str(therapist_id), error=str(e))
            raise BillingError(str(e)) from e
        except Exception as e:
            db.rollback()
            raise BillingError(f"Failed to create checkout session: {e}") from e
        finally:
            db.close()

    def handle_webhook(self, payload: bytes, signature: Optional[str]) -> dict:
        """Verify a webhook delivery and apply it.

        Raises:
            WebhookSignatureError: If verification fails.
        """
        verify_signature(payload, signature, self._webhook_secret)
        try:
            event = json.loads(payload)
        except ValueError as e:
            raise WebhookSignatureError(f"Invalid payload: {e}") from e

        if isinstance(event, dict):
            self.apply_event(event)
        else:
            logger.info("webhook_payload_ignored", payload_type=type(event).__name__)
        return {"received": True}

    def apply_event(self, event: dict[str, Any]) -> bool:
        """Apply a verified subscription event.

        Returns:
            True if a therapist record was updated, False for no-ops.
        """
        event_type = event.get("type")
        if event_type not in HANDLED_EVENTS:
            logger.info("webhook_event_ignored", event_type=str(event_type))
            return False

        subscription = _as_dict(_as_dict(event.get("data")).get("object"))
        customer_id = subscription.get("customer")
        if not isinstance(customer_id, str) or not customer_id:
            logger.info("webhook_customer_missing", event_type=event_type)
            return False

        db = self._get_session()
        try:
            therapist = (
                db.query(Therapist)
                .filter(Therapist.billing_customer_id == customer_id)
                .first()
            )
            if therapist is None:
                logger.info("webhook_customer_unmatched", event_type=event_type)
                return False

            if event_type == SUBSCRIPTION_DELETED_EVENT:
                therapist.subscription_status = "inactive"
                therapist.billing_subscription_id = None
                therapist.subscription_ends_at = datetime.now(timezone.utc)
            else:
                therapist.subscription_status = subscription.get("status") or "inactive"
                therapist.billing_subscription_id = subscription.get("id")
                therapist.subscription_plan = _plan_of(subscription)
                therapist.subscription_ends_at = _period_end_of(subscription)

            therapist.updated_at = datetime.utcnow()
            db.commit()

            logger.info(
                "subscription_synced",
                event_type=event_type,
                therapist_id=str(therapist.id),
                status=therapist.subscription_status,
            )
            return True

        except Exception as e:
            db.rollback()
            raise BillingError(f"Failed to apply {event_type}: {e}") from e
        finally:
            db.close()


# =============================================================================
# Private helpers
# =============================================================================

def _as_dict(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def _first_item(subscription: dict) -> dict:
    items = _as_dict(subscription.get("items")).get("data") or []
    return _as_dict(items[0]) if isinstance(items, list) and items else {}


def _plan_of(subscription: dict) -> str:
    price = _as_dict(_first_item(subscription).get("price"))
    return price.get("lookup_key") or DEFAULT_PLAN


def _period_end_of(subscription: dict) -> Optional[datetime]:
    period_end = subscription.get("current_period_end") or _first_item(subscription).get("current_period_end")
    if not period_end:
        return None
    return datetime.fromtimestamp(int(period_end), tz=timezone.utc)
