"""
================================================================================
HTTP Client with Allure Integration
================================================================================

httpx client for the restful-booker API:
    - Retry with exponential backoff on network errors and timeouts
    - Rate limit (429) handling with Retry-After parsing
    - Allure attachments for every request/response, with secrets masked
    - cURL command for reproducing a request
    - ``Cookie: token=...`` added to write requests via TokenManager

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import json
import time
from typing import Any, Dict, Optional

import allure
import httpx
from allure_commons.types import AttachmentType
from loguru import logger

from booker_tools.sanitization import SanitizationConfig

from .config_loader import ConfigLoader
from .token_manager import TokenManager


DEFAULT_BASE_URL = "https://restful-booker.herokuapp.com"

# Maximum response length to include in Allure reports
MAX_RESPONSE_LENGTH = 3000

DEFAULT_RETRY_COUNT = 3
DEFAULT_RETRY_BACKOFF = 0.5
DEFAULT_RETRY_MAX_WAIT = 5.0

# restful-booker only checks the token on these
AUTHENTICATED_METHODS = frozenset({"PUT", "PATCH", "DELETE"})


class HttpClientError(Exception):
    """Base exception for HTTP client errors."""
    pass


class RateLimitExceeded(HttpClientError):
    """Raised when rate limit is exceeded and all retries are exhausted."""
    pass


class HttpClient:
    """
    Resilient, reporting HTTP client.

    Usage:
        >>> with HttpClient() as client:
        ...     response = client.get("/booking/1")
        ...     client.delete("/booking/1")   # token cookie applied automatically
    """

    def __init__(
        self,
        config: Optional[ConfigLoader] = None,
        token_manager: Optional[TokenManager] = None,
    ) -> None:
        if config is None:
            config = ConfigLoader()

        self.config = config
        self.base_url = config.get("api.base_url", DEFAULT_BASE_URL)
        self.timeout = int(config.get("api.timeout", 30))
        self.retry_count = max(1, int(config.get("api.retry_count", DEFAULT_RETRY_COUNT)))
        self.retry_backoff = float(config.get("api.retry_backoff", DEFAULT_RETRY_BACKOFF))
        self.retry_max_wait = float(config.get("api.retry_max_wait", DEFAULT_RETRY_MAX_WAIT))

        self.session: Optional[httpx.Client] = None
        self.token_manager = token_manager or TokenManager.instance(config)

    def __enter__(self) -> "HttpClient":
        self.session = httpx.Client(
            base_url=self.base_url,
            timeout=httpx.Timeout(self.timeout),
            headers={"Accept": "application/json"},
        )
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self.session:
            self.session.close()
            self.session = None

    def request(
        self,
        method: str,
        url: str,
        authenticated: Optional[bool] = None,
        **kwargs: Any,
    ) -> httpx.Response:
        """
        Execute a request with retry and Allure logging.

        Args:
            method: HTTP method
            url: Path relative to ``api.base_url``
            authenticated: Add the token cookie. Defaults to True for
                PUT/PATCH/DELETE and False otherwise.
            **kwargs: Passed through to ``httpx.Client.request``

        Raises:
            HttpClientError: If used outside a ``with`` block
            RateLimitExceeded: When 429 retries are exhausted
            httpx.HTTPError: When network retries are exhausted
        """
        if self.session is None:
            raise HttpClientError(
                "HttpClient must be used within a context manager. "
                "Use 'with HttpClient() as client:'"
            )

        method = method.upper()
        if authenticated is None:
            authenticated = method in AUTHENTICATED_METHODS

        headers = dict(kwargs.pop("headers", None) or {})
        if authenticated:
            headers = self.token_manager.apply(headers)
        kwargs["headers"] = headers

        for attempt in range(self.retry_count):
            try:
                response = self.session.request(method, url, **kwargs)

                if response.status_code == 429:
                    retry_after = self._parse_retry_after(response)
                    logger.warning(
                        f"Rate limited (429). Waiting {retry_after}s before retry. "
                        f"Attempt {attempt + 1}/{self.retry_count}"
                    )
                    time.sleep(retry_after)
                    continue

                if authenticated and response.status_code == 403:
                    # Token rejected; the next authenticated call fetches a new one
                    self.token_manager.invalidate()

                self._log_to_allure(method, url, kwargs, response)
                return response

            except (httpx.TimeoutException, httpx.NetworkError) as e:
                if attempt < self.retry_count - 1:
                    wait_time = self._calculate_backoff(attempt)
                    logger.warning(
                        f"Network error: {e}. Retrying in {wait_time}s. "
                        f"Attempt {attempt + 1}/{self.retry_count}"
                    )
                    time.sleep(wait_time)
                else:
                    logger.error(f"All retries exhausted. Last error: {e}")
                    raise

        raise RateLimitExceeded(f"Rate limit exceeded after {self.retry_count} retries")

    def get(self, url: str, **kwargs: Any) -> httpx.Response:
        return self.request("GET", url, **kwargs)

    def post(self, url: str, **kwargs: Any) -> httpx.Response:
        return self.request("POST", url, **kwargs)

    def put(self, url: str, **kwargs: Any) -> httpx.Response:
        return self.request("PUT", url, **kwargs)

    def patch(self, url: str, **kwargs: Any) -> httpx.Response:
        return self.request("PATCH", url, **kwargs)

    def delete(self, url: str, **kwargs: Any) -> httpx.Response:
        return self.request("DELETE", url, **kwargs)

    def _parse_retry_after(self, response: httpx.Response) -> float:
        """Seconds from Retry-After, capped at ``retry_max_wait``; HTTP dates fall back to backoff."""
        retry_after = response.headers.get("Retry-After", "")
        try:
            wait_time = float(retry_after)
        except ValueError:
            wait_time = self.retry_backoff
        return min(max(wait_time, 0.0), self.retry_max_wait)

    def _calculate_backoff(self, attempt: int) -> float:
        wait_time = self.retry_backoff * (2 ** attempt)
        return min(wait_time, self.retry_max_wait)

    def _log_to_allure(
        self,
        method: str,
        url: str,
        kwargs: Dict[str, Any],
        response: httpx.Response,
    ) -> None:
        full_url = f"{self.base_url.rstrip('/')}/{url.lstrip('/')}"
        params = kwargs.get("params")
        if params:
            query_string = "&".join(f"{k}={v}" for k, v in params.items() if v is not None)
            if query_string:
                full_url = f"{full_url}?{query_string}"

        status_icon = "✅" if response.status_code < 400 else "❌"
        step_title = f"{status_icon} {method} {url} -> {response.status_code}"

        with allure.step(step_title):
            allure.attach(full_url, name="Request URL", attachment_type=AttachmentType.TEXT)

            safe_headers = self._redact_headers(kwargs.get("headers", {}))
            if safe_headers:
                allure.attach(
                    json.dumps(safe_headers, ensure_ascii=False, indent=2),
                    name="Request Headers",
                    attachment_type=AttachmentType.JSON,
                )

            safe_body = self._redact_body(kwargs.get("json"))
            if safe_body:
                allure.attach(
                    json.dumps(safe_body, ensure_ascii=False, indent=2),
                    name="Request Body",
                    attachment_type=AttachmentType.JSON,
                )

            if params:
                allure.attach(
                    json.dumps(params, ensure_ascii=False, indent=2),
                    name="Query Params",
                    attachment_type=AttachmentType.JSON,
                )

            allure.attach(
                self._build_curl(method, full_url, safe_headers, safe_body),
                name="cURL Command",
                attachment_type=AttachmentType.TEXT,
            )

            allure.attach(
                f"{status_icon} {response.status_code}",
                name="Response Status",
                attachment_type=AttachmentType.TEXT,
            )

            try:
                response_content = json.dumps(
                    self._redact_body(response.json()), ensure_ascii=False, indent=2
                )
            except ValueError:
                response_content = response.text or "<empty>"

            if len(response_content) > MAX_RESPONSE_LENGTH:
                response_content = (
                    f"{response_content[:MAX_RESPONSE_LENGTH]}\n\n"
                    f"... [Truncated, full length: {len(response_content)} chars] ..."
                )

            allure.attach(response_content, name="Response Body", attachment_type=AttachmentType.JSON)

    @staticmethod
    def _redact_headers(headers: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        return SanitizationConfig.redact_headers(headers)

    @staticmethod
    def _redact_body(payload: Any) -> Any:
        return SanitizationConfig.redact_body(payload)

    @staticmethod
    def _build_curl(
        method: str,
        url: str,
        headers: Dict[str, Any],
        body: Optional[Any],
    ) -> str:
        """Copy-paste cURL command; expects already redacted headers and body."""
        parts = [f"curl -X {method}"]
        for key, value in headers.items():
            parts.append(f"-H '{key}: {value}'")
        if body:
            parts.append(f"-d '{json.dumps(body, ensure_ascii=False)}'")
        parts.append(f"'{url}'")
        return " \\\n  ".join(parts)


__all__ = [
    "HttpClient",
    "HttpClientError",
    "RateLimitExceeded",
    "AUTHENTICATED_METHODS",
]
