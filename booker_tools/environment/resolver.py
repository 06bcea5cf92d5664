"""
================================================================================
Environment Resolver
================================================================================

Single entry point for run settings and API credentials.

In CI every value comes straight from pipeline variables. Locally the values
come from the loaded ``.env`` files, and the token credentials are stored as
encryption envelopes that are decrypted with the stage's secret key.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, TypeVar

from ..crypto.encryption_service import EncryptionService
from ..crypto.env_encryption_manager import resolve_secret_key_from_environment
from ..errors import ErrorHandler
from ..sanitization import SanitizationConfig
from .constants import (
    API_BASE_URL,
    APP_VERSION,
    SECRET_KEY_VARIABLES,
    TEST_PLATFORM,
    TEST_TYPE,
    TOKEN_PASSWORD,
    TOKEN_USERNAME,
)
from .detector import EnvironmentDetector
from .secret_file_manager import EnvironmentConfigError


T = TypeVar("T")


@dataclass(frozen=True)
class UserCredentials:
    username: str
    password: str

    def __repr__(self) -> str:
        return f"UserCredentials(username={self.username!r}, password='********')"


def _read_variable(variable_name: str, sanitize: bool = True) -> str:
    value = os.environ.get(variable_name, "")
    if not value.strip():
        raise EnvironmentConfigError(f"Environment variable {variable_name} is not set or is empty")
    return SanitizationConfig.sanitize_string(value) if sanitize else value


def _verify_credentials(credentials: UserCredentials, source: str) -> None:
    if not credentials.username or not credentials.password:
        ErrorHandler.log_and_raise(
            "Invalid credentials: Missing username or password.", source, EnvironmentConfigError
        )


class FetchCIEnvironmentVariables:
    """Plain pipeline variables."""

    async def get_app_version(self) -> str:
        return _read_variable(APP_VERSION, sanitize=False)

    async def get_test_platform(self) -> str:
        return _read_variable(TEST_PLATFORM, sanitize=False)

    async def get_test_type(self) -> str:
        return _read_variable(TEST_TYPE, sanitize=False)

    async def get_api_base_url(self) -> str:
        return _read_variable(API_BASE_URL)

    async def get_token_credentials(self) -> UserCredentials:
        credentials = UserCredentials(
            username=_read_variable(TOKEN_USERNAME),
            password=_read_variable(TOKEN_PASSWORD),
        )
        _verify_credentials(credentials, "FetchCIEnvironmentVariables")
        return credentials


class FetchLocalEnvironmentVariables:
    """Values from local ``.env`` files; credentials are decrypted."""

    def __init__(
        self,
        encryption_service: Optional[EncryptionService] = None,
        stage: Optional[str] = None,
    ) -> None:
        self.encryption_service = encryption_service or EncryptionService()
        self.stage = stage

    async def get_app_version(self) -> str:
        return _read_variable(APP_VERSION, sanitize=False)

    async def get_test_platform(self) -> str:
        return _read_variable(TEST_PLATFORM, sanitize=False)

    async def get_test_type(self) -> str:
        return _read_variable(TEST_TYPE, sanitize=False)

    async def get_api_base_url(self) -> str:
        return _read_variable(API_BASE_URL)

    async def get_token_credentials(self) -> UserCredentials:
        try:
            secret_key = resolve_secret_key_from_environment(self._secret_key_variable())
            username, password = await self.encryption_service.decrypt_multiple(
                [_read_variable(TOKEN_USERNAME, sanitize=False), _read_variable(TOKEN_PASSWORD, sanitize=False)],
                secret_key,
            )
            credentials = UserCredentials(username=username, password=password)
            _verify_credentials(credentials, "FetchLocalEnvironmentVariables")
            return credentials
        except Exception as e:
            ErrorHandler.capture_error(e, "get_token_credentials", "Failed to get local token credentials")
            raise

    def _secret_key_variable(self) -> str:
        stage = self.stage or os.environ.get("ENV") or "dev"
        try:
            return SECRET_KEY_VARIABLES[stage]
        except KeyError:
            raise EnvironmentConfigError(f"No secret key variable configured for stage '{stage}'") from None


class EnvironmentResolver:
    """
    Picks the CI or local source for each value.

    Usage:
        >>> resolver = EnvironmentResolver()
        >>> credentials = await resolver.get_token_credentials()
    """

    def __init__(
        self,
        fetch_ci_environment_variables: Optional[FetchCIEnvironmentVariables] = None,
        fetch_local_environment_variables: Optional[FetchLocalEnvironmentVariables] = None,
    ) -> None:
        self.fetch_ci_environment_variables = fetch_ci_environment_variables or FetchCIEnvironmentVariables()
        self.fetch_local_environment_variables = (
            fetch_local_environment_variables or FetchLocalEnvironmentVariables()
        )

    async def get_app_version(self) -> str:
        return await self._get_environment_value(
            self.fetch_ci_environment_variables.get_app_version,
            self.fetch_local_environment_variables.get_app_version,
            "get_app_version",
            "Failed to get app version",
        )

    async def get_test_platform(self) -> str:
        return await self._get_environment_value(
            self.fetch_ci_environment_variables.get_test_platform,
            self.fetch_local_environment_variables.get_test_platform,
            "get_test_platform",
            "Failed to get test platform",
        )

    async def get_test_type(self) -> str:
        return await self._get_environment_value(
            self.fetch_ci_environment_variables.get_test_type,
            self.fetch_local_environment_variables.get_test_type,
            "get_test_type",
            "Failed to get test type",
        )

    async def get_api_base_url(self) -> str:
        return await self._get_environment_value(
            self.fetch_ci_environment_variables.get_api_base_url,
            self.fetch_local_environment_variables.get_api_base_url,
            "get_api_base_url",
            "Failed to get API base URL",
        )

    async def get_token_credentials(self) -> UserCredentials:
        return await self._get_environment_value(
            self.fetch_ci_environment_variables.get_token_credentials,
            self.fetch_local_environment_variables.get_token_credentials,
            "get_token_credentials",
            "Failed to get credentials",
        )

    @staticmethod
    async def _get_environment_value(
        ci_method: Callable[[], Awaitable[T]],
        local_method: Callable[[], Awaitable[T]],
        method_name: str,
        error_message: str,
    ) -> T:
        try:
            method = ci_method if EnvironmentDetector.is_running_in_ci() else local_method
            return await method()
        except Exception as e:
            ErrorHandler.capture_error(e, method_name, error_message)
            raise


__all__ = [
    "EnvironmentResolver",
    "FetchCIEnvironmentVariables",
    "FetchLocalEnvironmentVariables",
    "UserCredentials",
]
