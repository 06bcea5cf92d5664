"""
================================================================================
Token Manager with Caching
================================================================================

Manages restful-booker auth tokens:
    - ``POST /auth`` with credentials from EnvironmentResolver (decrypted
      locally, plain pipeline variables in CI)
    - Cross-process token cache guarded by filelock, shared by xdist workers
    - ``Cookie: token=<token>`` applied to outgoing requests

restful-booker tokens have no expiry of their own, so a configurable TTL
(``auth.ttl``) decides when a new one is requested.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import asyncio
import json
import time
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import httpx
from filelock import FileLock
from loguru import logger

from booker_tools.environment.config_manager import EnvironmentConfigManager
from booker_tools.environment.resolver import EnvironmentResolver, UserCredentials


TOKEN_CACHE_DIR = Path(__file__).parent.parent.parent.parent / ".token_cache"
TOKEN_CACHE_FILE = TOKEN_CACHE_DIR / "cache.json"
TOKEN_LOCK_FILE = TOKEN_CACHE_DIR / "cache.lock"

DEFAULT_AUTH_ENDPOINT = "/auth"
DEFAULT_TOKEN_TTL = 600

# Refresh token when less than this many seconds remain
TOKEN_REFRESH_BUFFER = 30

CredentialsProvider = Callable[[], UserCredentials]


class TokenError(Exception):
    """Raised when token operations fail."""
    pass


def load_credentials_from_environment() -> UserCredentials:
    """Load the ``.env`` files (locally) and resolve the token credentials."""

    async def _load() -> UserCredentials:
        await EnvironmentConfigManager().initialize()
        return await EnvironmentResolver().get_token_credentials()

    return asyncio.run(_load())


class TokenManager:
    """
    Singleton token holder.

    Usage:
        >>> token_manager = TokenManager.instance(config)
        >>> token_manager.apply({})
        {'Cookie': 'token=abc123'}
    """

    _instance: Optional["TokenManager"] = None

    def __new__(cls, config=None, credentials_provider: Optional[CredentialsProvider] = None) -> "TokenManager":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self, config=None, credentials_provider: Optional[CredentialsProvider] = None) -> None:
        """
        Args:
            config: ConfigLoader-like object with ``get(key, default)``
            credentials_provider: Returns the username/password pair for
                ``/auth``. Defaults to the environment resolver.
        """
        if getattr(self, "_initialized", False):
            return

        self.config = config
        self.credentials_provider = credentials_provider or load_credentials_from_environment
        self._token: Optional[str] = None
        self._expires_at: float = 0

        TOKEN_CACHE_DIR.mkdir(parents=True, exist_ok=True)
        self._initialized = True

    @classmethod
    def instance(cls, config=None, credentials_provider: Optional[CredentialsProvider] = None) -> "TokenManager":
        if cls._instance is None:
            cls._instance = cls(config, credentials_provider)
        return cls._instance

    @property
    def base_url(self) -> str:
        return self._config_get("api.base_url", "") or ""

    def get_token(self) -> str:
        self._ensure_valid_token()
        return self._token

    def apply(self, headers: Dict[str, str]) -> Dict[str, str]:
        """
        Return a copy of ``headers`` with the token cookie added.

        An existing Cookie header is extended rather than replaced.
        """
        token = self.get_token()
        result = dict(headers)
        cookie = f"token={token}"
        existing = result.get("Cookie")
        result["Cookie"] = f"{existing}; {cookie}" if existing else cookie
        return result

    def _ensure_valid_token(self) -> None:
        current_time = time.time()

        if self._token and self._expires_at > current_time + TOKEN_REFRESH_BUFFER:
            return

        # Another worker may already have refreshed it
        if self._use_cached_token(current_time):
            return

        self._fetch_token()

    def _fetch_token(self) -> None:
        with FileLock(str(TOKEN_LOCK_FILE)):
            if self._use_cached_token(time.time()):
                return

            self._token = self._request_new_token()
            ttl = int(self._config_get("auth.ttl", DEFAULT_TOKEN_TTL))
            self._expires_at = time.time() + ttl
            self._save_token_to_cache()
            logger.info("Token refreshed and cached")

    def _request_new_token(self) -> str:
        """
        Exchange credentials for a token.

        restful-booker answers bad credentials with HTTP 200 and a
        ``{"reason": "Bad credentials"}`` body, so the token key is checked.

        Raises:
            TokenError: On transport errors, non-2xx or a body without a token
        """
        credentials = self.credentials_provider()
        endpoint = self._config_get("auth.endpoint", DEFAULT_AUTH_ENDPOINT)
        timeout = float(self._config_get("api.timeout", 30))

        try:
            with httpx.Client(timeout=timeout) as client:
                response = client.post(
                    f"{self.base_url.rstrip('/')}{endpoint}",
                    json={"username": credentials.username, "password": credentials.password},
                    headers={"Content-Type": "application/json"},
                )
                response.raise_for_status()
                body = response.json()
        except httpx.HTTPError as e:
            raise TokenError(f"Failed to fetch token: {e}") from e
        except ValueError as e:
            raise TokenError("Auth endpoint returned a non-JSON body") from e

        token = body.get("token") if isinstance(body, dict) else None
        if not token:
            reason = body.get("reason", "no token in response") if isinstance(body, dict) else "unexpected body"
            raise TokenError(f"Authentication rejected: {reason}")
        return token

    def _use_cached_token(self, now: float) -> bool:
        cached = self._load_cached_token()
        if (
            cached
            and cached.get("base_url") == self.base_url
            and cached.get("expires_at", 0) > now + TOKEN_REFRESH_BUFFER
        ):
            self._token = cached["token"]
            self._expires_at = cached["expires_at"]
            return True
        return False

    def _load_cached_token(self) -> Optional[Dict[str, Any]]:
        try:
            if TOKEN_CACHE_FILE.exists():
                with open(TOKEN_CACHE_FILE, "r", encoding="utf-8") as f:
                    return json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.debug(f"Ignoring unreadable token cache: {type(e).__name__}")
        return None

    def _save_token_to_cache(self) -> None:
        cache_data = {
            "token": self._token,
            "base_url": self.base_url,
            "expires_at": self._expires_at,
        }
        try:
            TOKEN_CACHE_DIR.mkdir(parents=True, exist_ok=True)
            with open(TOKEN_CACHE_FILE, "w", encoding="utf-8") as f:
                json.dump(cache_data, f)
        except OSError as e:
            logger.warning(f"Failed to cache token: {e}")

    def _config_get(self, key: str, default: Any = None) -> Any:
        return self.config.get(key, default) if self.config else default

    def invalidate(self) -> None:
        """Forget the token; the next ``apply`` requests a new one."""
        self._token = None
        self._expires_at = 0
        if TOKEN_CACHE_FILE.exists():
            TOKEN_CACHE_FILE.unlink()

    @classmethod
    def reset(cls) -> None:
        """Reset singleton instance (for testing)."""
        if cls._instance:
            cls._instance.invalidate()
        cls._instance = None


__all__ = [
    "TokenManager",
    "TokenError",
    "CredentialsProvider",
    "load_credentials_from_environment",
]
