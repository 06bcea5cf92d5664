"""
================================================================================
Sanitization
================================================================================

Masks sensitive values before they reach logs or Allure attachments.

Features:
    - Recursive masking of sensitive keys in dicts and lists
    - Header and body redaction for HTTP reporting
    - Long string truncation with never-truncate keys
    - String scrubbing for values read from environment files

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import copy
import re
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional


DEFAULT_SENSITIVE_KEYS: List[str] = [
    "password",
    "apiKey",
    "api_key",
    "secret",
    "authorization",
    "token",
    "accessToken",
    "refreshToken",
    "cookie",
]

NEVER_TRUNCATE_DEFAULT_KEYS: List[str] = [
    "context",
    "url",
    "source",
    "method",
    "environment",
    "timestamp",
]

MASK_VALUE = "********"

_UNSAFE_STRING_CHARS = re.compile(r"[\"'\\<>]")


@dataclass
class SanitizationParams:
    """Settings that drive :class:`SanitizationConfig`."""
    sensitive_keys: List[str] = field(default_factory=lambda: list(DEFAULT_SENSITIVE_KEYS))
    mask_value: str = MASK_VALUE
    skip_properties: List[str] = field(default_factory=list)
    max_string_length: Optional[int] = 1000
    never_truncate_keys: List[str] = field(
        default_factory=lambda: list(NEVER_TRUNCATE_DEFAULT_KEYS)
    )


class SanitizationConfig:
    """
    Stateless helpers for masking sensitive data.

    Usage:
        >>> SanitizationConfig.sanitize_data({"password": "p1", "user": "bob"})
        {'password': '********', 'user': 'bob'}
        >>> SanitizationConfig.sanitize_string(' "quoted" ')
        'quoted'
    """

    _default_params: SanitizationParams = SanitizationParams()

    @classmethod
    def update_default_params(cls, **overrides: Any) -> None:
        """Replace selected default parameters."""
        cls._default_params = replace(cls._default_params, **overrides)

    @classmethod
    def get_default_params(cls) -> SanitizationParams:
        """Return a copy of the current default parameters."""
        return copy.deepcopy(cls._default_params)

    @classmethod
    def reset_default_params(cls) -> None:
        cls._default_params = SanitizationParams()

    @staticmethod
    def sanitize_string(value: Optional[str]) -> str:
        """
        Remove quotes, backslashes and angle brackets, then trim.

        Used for credentials and URLs read from environment files.
        """
        if not value:
            return ""
        return _UNSAFE_STRING_CHARS.sub("", value).strip()

    @classmethod
    def sanitize_data(cls, data: Any, params: Optional[SanitizationParams] = None) -> Any:
        """
        Recursively mask sensitive keys and truncate long strings.

        The input is never mutated; a sanitized copy is returned.
        """
        params = params or cls._default_params

        if isinstance(data, dict):
            return cls._sanitize_mapping(data, params)
        if isinstance(data, list):
            return [cls.sanitize_data(item, params) for item in data]
        if isinstance(data, str):
            return cls._truncate(data, params.max_string_length)
        return data

    @classmethod
    def redact_headers(cls, headers: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        """Mask sensitive header values before logging."""
        if not headers:
            return {}
        sensitive = {"authorization", "x-api-key", "cookie", "set-cookie"}
        return {
            key: cls._default_params.mask_value if key.lower() in sensitive else value
            for key, value in headers.items()
        }

    @classmethod
    def redact_body(cls, payload: Any) -> Any:
        """Recursively mask sensitive fields in request bodies without truncating."""
        params = replace(cls._default_params, max_string_length=None)
        return cls.sanitize_data(payload, params)

    @classmethod
    def is_sensitive_key(cls, key: str, params: Optional[SanitizationParams] = None) -> bool:
        params = params or cls._default_params
        lowered = key.lower()
        return any(sensitive.lower() in lowered for sensitive in params.sensitive_keys)

    # =================== HELPER METHODS ===================

    @classmethod
    def _sanitize_mapping(cls, data: Dict[str, Any], params: SanitizationParams) -> Dict[str, Any]:
        skip = [prop.lower() for prop in params.skip_properties]
        never_truncate = {key.lower() for key in params.never_truncate_keys}
        result: Dict[str, Any] = {}

        for key, value in data.items():
            key_str = str(key)
            if any(prop in key_str.lower() for prop in skip):
                continue

            if cls.is_sensitive_key(key_str, params):
                result[key] = params.mask_value
            elif isinstance(value, str):
                if key_str.lower() in never_truncate:
                    result[key] = value
                else:
                    result[key] = cls._truncate(value, params.max_string_length)
            else:
                result[key] = cls.sanitize_data(value, params)

        return result

    @staticmethod
    def _truncate(value: str, max_length: Optional[int]) -> str:
        if not max_length or len(value) <= max_length:
            return value
        return f"{value[:max_length]}..."


__all__ = [
    "SanitizationConfig",
    "SanitizationParams",
    "DEFAULT_SENSITIVE_KEYS",
    "MASK_VALUE",
]
