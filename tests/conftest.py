"""
Shared fixtures for practice manager tests.
"""

import pytest

from src.api.billing import set_billing_service
from src.api.dependencies import set_practice_service


@pytest.fixture(autouse=True)
def reset_api_services():
    """Drop any service a test installed so routers rebuild their defaults."""
    yield
    set_practice_service(None)
    set_billing_service(None)
