"""
Shared test fixtures.
"""

import sys
from pathlib import Path

# Add project root to Python path
project_dir = Path(__file__).parent.parent
sys.path.insert(0, str(project_dir))

import pytest
from unittest.mock import MagicMock
from datetime import datetime

import requests


# ===================
# MOCK SHEETS BACKEND
# ===================

class MockSheetsResponse:
    """Mock requests.Response from the Apps Script web app."""

    def __init__(self, body=None, status_code: int = 200):
        self._body = body
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} Server Error")

    def json(self):
        if isinstance(self._body, Exception):
            raise self._body
        return self._body


class MockSheetsSession:
    """
    Mock requests.Session returning queued responses.

    The last response repeats once the queue is exhausted.
    """

    def __init__(self, responses: list):
        self._responses = list(responses)
        self.calls: list[dict] = []

    def get(self, url, params=None, timeout=None):
        self.calls.append({"url": url, "params": dict(params or {}), "timeout": timeout})
        response = self._responses.pop(0) if len(self._responses) > 1 else self._responses[0]
        if isinstance(response, Exception):
            raise response
        return response


def orders_body(rows: list[dict]) -> dict:
    """Successful getOrders body."""
    return {"status": "success", "orders": rows}


# ===================
# FIXTURES
# ===================

@pytest.fixture
def reference_now() -> datetime:
    """Fixed reference time for deterministic day counts."""
    return datetime(2024, 2, 1, 12, 0, 0)


@pytest.fixture
def no_sleep() -> MagicMock:
    """Sleep replacement recording backoff delays."""
    return MagicMock()


@pytest.fixture
def make_sheets_client(no_sleep):
    """
    Build a SheetsClient over a mock session.

    Usage:
        def test_something(make_sheets_client):
            client, session = make_sheets_client([MockSheetsResponse(orders_body([...]))])
    """
    from integrations.sheets_client import SheetsClient

    def _make(responses: list, max_retries: int = 2):
        client = SheetsClient(
            script_url="https://script.google.com/macros/s/test/exec",
            timeout=5,
            max_retries=max_retries,
            base_delay_ms=100,
            sleep=no_sleep,
        )
        session = MockSheetsSession(responses)
        client.session = session
        return client, session

    return _make


@pytest.fixture(autouse=True)
def reset_singletons():
    """Reset service singletons between tests."""
    import integrations.sheets_client as sheets_module
    import services.customer_service as customer_module
    import services.ingestion_service as ingestion_module
    import services.action_classifier as classifier_module
    import services.order_service as order_module
    import services.inventory_service as inventory_module

    for module, attr in (
        (sheets_module, "_sheets_client"),
        (customer_module, "_customer_service"),
        (ingestion_module, "_ingestion_service"),
        (classifier_module, "_classifier"),
        (order_module, "_order_service"),
        (inventory_module, "_inventory_service"),
    ):
        setattr(module, attr, None)
    yield
    for module, attr in (
        (sheets_module, "_sheets_client"),
        (customer_module, "_customer_service"),
        (ingestion_module, "_ingestion_service"),
        (classifier_module, "_classifier"),
        (order_module, "_order_service"),
        (inventory_module, "_inventory_service"),
    ):
        setattr(module, attr, None)


# ===================
# API TEST CLIENT
# ===================

@pytest.fixture
def test_client():
    """
    Create FastAPI test client.

    Usage:
        def test_endpoint(test_client):
            response = test_client.get("/health")
            assert response.status_code == 200
    """
    from fastapi.testclient import TestClient
    from main import app

    return TestClient(app)
