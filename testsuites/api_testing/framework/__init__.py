"""
================================================================================
API Testing Framework
================================================================================

Components for testing the restful-booker API.

Modules:
    - config_loader: YAML configuration with environment overrides
    - http_client: HTTP client with retry and Allure logging
    - token_manager: /auth token acquisition and caching
    - response_validator: rule-based response checks

Author: Automation Team
License: MIT
================================================================================
"""

from .config_loader import ConfigLoader, ConfigurationError
from .http_client import HttpClient, HttpClientError, RateLimitExceeded
from .response_validator import ResponseValidator, ValidationRule, ValidationType
from .token_manager import TokenManager, TokenError

__all__ = [
    "ConfigLoader",
    "ConfigurationError",
    "HttpClient",
    "HttpClientError",
    "RateLimitExceeded",
    "ResponseValidator",
    "ValidationRule",
    "ValidationType",
    "TokenManager",
    "TokenError",
]
