"""Fixtures shared by the offline unit tests."""

from __future__ import annotations

from typing import Generator, List

import pytest
from loguru import logger

from booker_tools.crypto.config import Argon2Parameters
from booker_tools.crypto.encryption_service import EncryptionService
from booker_tools.errors import ErrorHandler
from booker_tools.environment.detector import CI_VARIABLES
from booker_tools.sanitization import SanitizationConfig


# Cheap enough for hundreds of derivations per second
FAST_ARGON2 = Argon2Parameters(memory_cost=1024, time_cost=1, parallelism=1, hash_length=32)

PASSPHRASE = "unit-test-passphrase"


@pytest.fixture(autouse=True)
def _reset_shared_state(monkeypatch) -> Generator[None, None, None]:
    ErrorHandler.reset_cache()
    SanitizationConfig.reset_default_params()
    for name in CI_VARIABLES:
        monkeypatch.delenv(name, raising=False)
    yield
    ErrorHandler.reset_cache()
    SanitizationConfig.reset_default_params()


@pytest.fixture
def encryption_service() -> EncryptionService:
    return EncryptionService(FAST_ARGON2)


@pytest.fixture
def log_messages() -> Generator[List[str], None, None]:
    """Every loguru message emitted during the test, DEBUG and up."""
    messages: List[str] = []
    handler_id = logger.add(lambda message: messages.append(str(message)), level="DEBUG", format="{level} {message}")
    yield messages
    logger.remove(handler_id)
