"""
================================================================================
Test Suite Pytest Configuration
================================================================================

Registers the project markers and tags tests by directory.

================================================================================
"""

from pathlib import Path

import pytest


def pytest_configure(config):
    """Configure pytest with project-wide custom markers."""

    # Priority markers
    config.addinivalue_line("markers", "P0: Critical priority tests - must pass for deployment")
    config.addinivalue_line("markers", "P1: High priority tests - important functionality")
    config.addinivalue_line("markers", "P2: Medium priority tests - edge cases")

    # Test type markers
    config.addinivalue_line("markers", "smoke: Quick verification tests")
    config.addinivalue_line("markers", "regression: Full regression test suite")
    config.addinivalue_line("markers", "unit: Offline unit tests")

    # Domain markers
    config.addinivalue_line("markers", "api: API-specific tests")
    config.addinivalue_line("markers", "auth: Tests related to authentication")
    config.addinivalue_line("markers", "requires_external: Tests calling the live restful-booker API")

    # Encryption workflow markers
    config.addinivalue_line("markers", "encryption: Key generation and credential encryption flows")
    config.addinivalue_line("markers", "generate_key: Generate a stage secret key into envs/.env")
    config.addinivalue_line("markers", "encrypt: Encrypt credentials in envs/.env.<stage>")


def pytest_collection_modifyitems(config, items):
    for item in items:
        parts = Path(str(item.fspath)).parts
        if "api_testing" in parts:
            item.add_marker(pytest.mark.api)
        if "unit" in parts:
            item.add_marker(pytest.mark.unit)


def pytest_report_header(config):
    return [
        "",
        "=" * 60,
        "Restful-Booker API Test Automation",
        "=" * 60,
        "",
    ]
