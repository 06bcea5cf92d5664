"""
================================================================================
API Testing Pytest Configuration
================================================================================

Shared fixtures for the live restful-booker tests.

Fixtures:
    - config: Configuration loader instance
    - http_client: Configured HTTP client
    - booking_payload: Unique booking request body
    - cleanup_bookings: Deletes bookings created by a test

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import uuid
from datetime import date, timedelta
from typing import Any, Dict, Generator, List

import allure
import pytest
from loguru import logger

from ..framework import ConfigLoader, HttpClient, ResponseValidator


# =============================================================================
# Session-Scoped Fixtures
# =============================================================================

@pytest.fixture(scope="session")
def config() -> ConfigLoader:
    return ConfigLoader()


@pytest.fixture(scope="session")
def base_url(config: ConfigLoader) -> str:
    return config.get("api.base_url", "https://restful-booker.herokuapp.com")


@pytest.fixture(scope="session")
def validator() -> ResponseValidator:
    return ResponseValidator()


# =============================================================================
# Function-Scoped Fixtures
# =============================================================================

@pytest.fixture
def http_client(config: ConfigLoader) -> Generator[HttpClient, None, None]:
    """
    Usage:
        def test_example(http_client):
            response = http_client.get("/booking")
            assert response.status_code == 200
    """
    with HttpClient(config) as client:
        yield client


@pytest.fixture
def unique_id() -> str:
    return f"autotest_{uuid.uuid4().hex[:8]}"


@pytest.fixture
def booking_payload(unique_id: str) -> Dict[str, Any]:
    checkin = date.today() + timedelta(days=30)
    return {
        "firstname": "Auto",
        "lastname": unique_id,
        "totalprice": 150,
        "depositpaid": True,
        "bookingdates": {
            "checkin": checkin.isoformat(),
            "checkout": (checkin + timedelta(days=3)).isoformat(),
        },
        "additionalneeds": "Breakfast",
    }


@pytest.fixture
def cleanup_bookings(http_client: HttpClient) -> Generator[List[int], None, None]:
    """
    Usage:
        def test_create(http_client, cleanup_bookings):
            booking_id = http_client.post("/booking", json=payload).json()["bookingid"]
            cleanup_bookings.append(booking_id)
    """
    created: List[int] = []
    yield created

    for booking_id in reversed(created):
        try:
            http_client.delete(f"/booking/{booking_id}")
            logger.debug(f"Cleaned up booking: {booking_id}")
        except Exception as e:
            logger.warning(f"Failed to cleanup booking {booking_id}: {e}")


# =============================================================================
# Allure Reporting Hooks
# =============================================================================

def pytest_exception_interact(node, call, report):
    if report.failed:
        allure.attach(
            str(call.excinfo.value),
            name="Error Details",
            attachment_type=allure.attachment_type.TEXT,
        )
