"""
================================================================================
Error Handler
================================================================================

Central place to log failures with context before they are re-raised.

Every record is sanitized and logged as structured JSON without a stack trace.
Identical records inside the TTL window are logged once, so an error that
bubbles through several layers does not flood the log.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import hashlib
import json
import time
from typing import Any, Dict, NoReturn, Optional, Type

from loguru import logger

from .sanitization import SanitizationConfig


MAX_CACHE_SIZE = 1000
CACHE_TTL = 20 * 60  # seconds


class ErrorHandler:
    """
    Structured, de-duplicated error logging.

    Usage:
        >>> try:
        ...     risky()
        ... except OSError as e:
        ...     ErrorHandler.capture_error(e, "read_file", "Failed to read .env")
        ...     raise
    """

    _logged_errors: Dict[str, float] = {}

    @classmethod
    def capture_error(
        cls,
        error: BaseException,
        source: str,
        context: Optional[str] = None,
    ) -> None:
        """
        Log an error with its source and context.

        Args:
            error: The exception being handled
            source: Operation name where the error surfaced
            context: Human-readable description of what was attempted
        """
        details = cls._create_error_details(error, source, context)
        cache_key = cls._create_cache_key(details)

        if cls._is_recently_logged(cache_key):
            return

        cls._remember(cache_key)
        sanitized = SanitizationConfig.sanitize_data(details)
        logger.error(json.dumps(sanitized, ensure_ascii=False, indent=2))

    @classmethod
    def log_and_raise(
        cls,
        message: str,
        source: str,
        exc_type: Type[Exception] = RuntimeError,
    ) -> NoReturn:
        """Log ``message`` and raise it as ``exc_type``."""
        error = exc_type(message)
        cls.capture_error(error, source)
        raise error

    @classmethod
    def log_and_continue(
        cls,
        error: BaseException,
        source: str,
        context: Optional[str] = None,
    ) -> None:
        """Log an error that does not stop the current operation."""
        cls.capture_error(
            error, source, f"{context} (non-fatal)" if context else "Non-fatal error"
        )

    @classmethod
    def reset_cache(cls) -> None:
        """Forget previously logged errors (for testing)."""
        cls._logged_errors.clear()

    @staticmethod
    def get_error_message(error: Any) -> str:
        if isinstance(error, BaseException):
            return str(error) or type(error).__name__
        return str(error)

    @classmethod
    def _create_error_details(
        cls,
        error: BaseException,
        source: str,
        context: Optional[str],
    ) -> Dict[str, Any]:
        return {
            "source": source,
            "context": context or "",
            "error_type": type(error).__name__,
            "message": cls.get_error_message(error),
        }

    @staticmethod
    def _create_cache_key(details: Dict[str, Any]) -> str:
        raw = json.dumps(details, sort_keys=True, default=str)
        return hashlib.sha256(raw.encode("utf-8")).hexdigest()

    @classmethod
    def _is_recently_logged(cls, cache_key: str) -> bool:
        timestamp = cls._logged_errors.get(cache_key)
        if timestamp is None:
            return False
        if time.monotonic() - timestamp > CACHE_TTL:
            del cls._logged_errors[cache_key]
            return False
        return True

    @classmethod
    def _remember(cls, cache_key: str) -> None:
        now = time.monotonic()

        expired = [k for k, ts in cls._logged_errors.items() if now - ts > CACHE_TTL]
        for key in expired:
            del cls._logged_errors[key]

        cls._logged_errors[cache_key] = now

        # Evict oldest entries once over the limit
        excess = len(cls._logged_errors) - MAX_CACHE_SIZE
        if excess > 0:
            oldest = sorted(cls._logged_errors.items(), key=lambda item: item[1])[:excess]
            for key, _ in oldest:
                del cls._logged_errors[key]


__all__ = [
    "ErrorHandler",
]
