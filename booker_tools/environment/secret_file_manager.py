"""
================================================================================
Environment Secret File Manager
================================================================================

Locates environment files and stores generated secret keys in the base
``.env`` file.

Storing a key is idempotent: if the variable already exists in the base file
the call logs and returns without touching the file.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Optional

from loguru import logger

from ..common import get_config
from ..errors import ErrorHandler
from ..file_manager import AsyncFileManager, PathLike
from .constants import EnvironmentConstants, GENERATING_KEY_FLAG


class EnvironmentConfigError(Exception):
    """Raised when a required environment file or variable is missing."""
    pass


class EnvironmentSecretFileManager:
    """
    File-level operations on the ``envs`` directory.

    Usage:
        >>> manager = EnvironmentSecretFileManager()
        >>> path = await manager.get_base_environment_file_path()
        >>> await manager.store_base_environment_key(path, "UAT_SECRET_KEY", key)
    """

    def __init__(
        self,
        env_dir: Optional[PathLike] = None,
        base_env_file: Optional[str] = None,
    ) -> None:
        self.env_dir = str(
            env_dir or get_config("environment.env_dir", EnvironmentConstants.ENV_DIR.value)
        )
        self.base_env_file = base_env_file or get_config(
            "environment.base_env_file", EnvironmentConstants.BASE_ENV_FILE.value
        )

    async def get_base_environment_file_path(self) -> Path:
        """Return the base ``.env`` path, creating the env directory if needed."""
        if not await AsyncFileManager.does_directory_exist(self.env_dir):
            await AsyncFileManager.ensure_directory_exists(self.env_dir)
        return AsyncFileManager.get_file_path(self.env_dir, self.base_env_file)

    async def does_base_env_file_exist(self, base_env_file_path: PathLike) -> bool:
        return await AsyncFileManager.does_file_exist(base_env_file_path)

    def resolve_environment_file_path(self, file_name: str) -> Path:
        return AsyncFileManager.get_file_path(self.env_dir, file_name)

    async def does_environment_file_exist(self, file_name: str) -> bool:
        return await AsyncFileManager.does_file_exist(self.resolve_environment_file_path(file_name))

    def log_environment_file_not_found(self, file_name: str, file_path: PathLike, env_name: str) -> None:
        logger.warning(
            f"Environment '{env_name}' was specified but its configuration file "
            f"'{file_name}' could not be found at {file_path}."
        )

    async def handle_missing_base_env_file(self, base_env_file_path: PathLike) -> None:
        """
        React to a missing base ``.env`` file.

        Raises when ``REQUIRE_BASE_ENV_FILE=true``; stays silent during a
        key-generation run; otherwise warns.

        Raises:
            EnvironmentConfigError: If the base file is required
        """
        if os.environ.get(GENERATING_KEY_FLAG, "").lower() == "true":
            return

        expected = Path(self.env_dir) / self.base_env_file
        if os.environ.get("REQUIRE_BASE_ENV_FILE", "").lower() == "true":
            ErrorHandler.log_and_raise(
                f"Required base environment file not found at {base_env_file_path}. "
                f"Expected location: {expected}",
                "handle_missing_base_env_file",
                EnvironmentConfigError,
            )

        logger.warning(
            "\n".join([
                f"Base environment file not found at: {base_env_file_path}.",
                f"Expected location based on configuration: {expected}.",
                "This file is optional if you are running the secret key generation for the first time.",
                "To suppress this warning in future runs, ensure the file exists "
                "or set 'REQUIRE_BASE_ENV_FILE=false'.",
            ])
        )

    async def get_key_value(self, file_path: PathLike, key_name: str) -> Optional[str]:
        """Return the raw value of ``key_name`` in ``file_path``, or None."""
        content = await self._get_or_create_base_env_file_content(file_path)
        match = re.search(rf"^{re.escape(key_name)}=(.*)$", content, re.MULTILINE)
        return match.group(1).rstrip("\r") if match else None

    async def store_base_environment_key(
        self,
        file_path: PathLike,
        key_name: str,
        key_value: str,
    ) -> bool:
        """
        Append ``key_name=key_value`` to the base file unless the key exists.

        Returns:
            True if the key was written, False if it already existed
        """
        try:
            content = await self._get_or_create_base_env_file_content(file_path)

            if re.search(rf"^{re.escape(key_name)}=", content, re.MULTILINE):
                logger.info(
                    f'The environment variable "{key_name}" already exists. '
                    f"Delete it before regenerating."
                )
                return False

            if content and not content.endswith("\n"):
                content += "\n"
            content += f"{key_name}={key_value}"

            await AsyncFileManager.write_file(file_path, content)
            logger.info(f'Environment variable "{key_name}" has been added successfully.')
            return True
        except Exception as e:
            ErrorHandler.capture_error(
                e, "store_base_environment_key", f'Failed to store key "{key_name}" in environment file.'
            )
            raise

    async def _get_or_create_base_env_file_content(self, file_path: PathLike) -> str:
        existed = await AsyncFileManager.ensure_file_exists(file_path)
        if not existed:
            logger.warning(
                f'Base environment file not found at "{file_path}". A new empty file was created.'
            )
            return ""
        return await AsyncFileManager.read_file(file_path)


__all__ = [
    "EnvironmentSecretFileManager",
    "EnvironmentConfigError",
]
