"""
Stripe API Client

Minimal REST client for the two provider calls the practice needs:
creating a billing customer and opening a hosted subscription checkout.
Requests are form-encoded as the provider expects.
"""

from typing import Any, Optional

import requests
from requests.exceptions import RequestException

from src import config


class StripeError(Exception):
    """Exception for payment provider API errors."""
    pass


def _flatten(prefix: str, value: Any, out: dict[str, Any]) -> None:
    """Encode nested dicts/lists using the provider's bracket notation."""
    if isinstance(value, dict):
        for key, item in value.items():
            _flatten(f"{prefix}[{key}]", item, out)
    elif isinstance(value, (list, tuple)):
        for index, item in enumerate(value):
            _flatten(f"{prefix}[{index}]", item, out)
    elif value is not None:
        out[prefix] = value


def encode_form(params: dict[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for key, value in params.items():
        _flatten(key, value, out)
    return out


class StripeClient:
    """
    Client for the Stripe REST API.

    Args:
        secret_key: API secret key (or from STRIPE_SECRET_KEY env var).
        api_base: API root URL (or from STRIPE_API_BASE env var).
        timeout: Request timeout in seconds.
    """

    def __init__(
        self,
        secret_key: Optional[str] = None,
        api_base: Optional[str] = None,
        timeout: int = 30,
    ):
        self.secret_key = secret_key or config.stripe_secret_key() or ""
        self.api_base = (api_base or config.STRIPE_API_BASE).rstrip("/")
        self.timeout = timeout

    def _post(self, path: str, params: dict[str, Any]) -> dict:
        if not self.secret_key:
            raise StripeError("Stripe secret key is not configured")

        try:
            response = requests.post(
                f"{self.api_base}/{path}",
                headers={"Authorization": f"Bearer {self.secret_key}"},
                data=encode_form(params),
                timeout=self.timeout,
            )
        except RequestException as e:
            raise StripeError(f"Request failed: {str(e)}") from e

        if response.status_code != 200:
            message = response.text
            try:
                message = response.json().get("error", {}).get("message") or message
            except ValueError:
                pass
            raise StripeError(f"Stripe API error: {response.status_code} - {message}")

        return response.json()

    def create_customer(self, email: str, metadata: Optional[dict[str, str]] = None) -> dict:
        """Create a billing customer; returns the provider object."""
        return self._post("customers", {"email": email, "metadata": metadata or {}})

    def create_checkout_session(
        self,
        customer_id: str,
        price_id: str,
        success_url: str,
        cancel_url: str,
        metadata: Optional[dict[str, str]] = None,
    ) -> dict:
        """Open a hosted checkout for a single-seat subscription."""
        return self._post(
            "checkout/sessions",
            {
                "customer": customer_id,
                "mode": "subscription",
                "payment_method_types": ["card"],
                "line_items": [{"price": price_id, "quantity": 1}],
                "success_url": success_url,
                "cancel_url": cancel_url,
                "metadata": metadata or {},
            },
        )
