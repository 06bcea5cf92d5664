"""
================================================================================
Environment Config Manager
================================================================================

Loads the base ``.env`` file and the active stage file into ``os.environ``.

Loading order:
    1. ``envs/.env``          secret keys for every stage
    2. ``envs/.env.<stage>``  stage variables (ENV=dev|uat|prod, default dev)

Local file loading is skipped entirely in CI, where variables come from the
pipeline.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import List, Optional, Sequence

from dotenv import load_dotenv
from loguru import logger

from ..errors import ErrorHandler
from ..file_manager import PathLike
from .constants import ENVIRONMENT_FILE_PATHS, ENVIRONMENT_STAGES, is_valid_environment_stage
from .detector import EnvironmentDetector
from .secret_file_manager import EnvironmentConfigError, EnvironmentSecretFileManager


class EnvironmentConfigManager:
    """
    Usage:
        >>> manager = EnvironmentConfigManager(EnvironmentSecretFileManager())
        >>> await manager.initialize()
        >>> manager.get_loaded_files()
        ['.env', '.env.dev']
    """

    def __init__(self, environment_secret_file_manager: Optional[EnvironmentSecretFileManager] = None) -> None:
        self.environment_secret_file_manager = (
            environment_secret_file_manager or EnvironmentSecretFileManager()
        )
        self.initialized = False
        self.loaded_files: List[str] = []
        self.active_environment: Optional[str] = None

    async def initialize(self) -> None:
        """
        Load environment files once per instance.

        Raises:
            EnvironmentConfigError: If a required file or variable is missing
        """
        if self.initialized:
            logger.info("Environment already initialized, skipping")
            return

        try:
            if EnvironmentDetector.is_running_in_ci():
                logger.info("CI environment detected. Skipping local environment file loading.")
                self.initialized = True
                return

            await self._setup_environment()
            self.initialized = True

            if self.loaded_files:
                logger.info(
                    f"Environment successfully initialized with {len(self.loaded_files)} config files"
                )
            else:
                logger.warning("Environment initialized but no config files were loaded")
        except Exception as e:
            ErrorHandler.capture_error(e, "initialize", "Failed to set up environment variables")
            raise

    async def reload(self) -> None:
        logger.debug("Reloading environment configuration...")
        self.initialized = False
        self.loaded_files = []
        self.active_environment = None
        await self.initialize()
        logger.info(
            f"Environment configuration reloaded successfully with files: {', '.join(self.loaded_files)}"
        )

    def get_active_environment(self) -> Optional[str]:
        return self.active_environment

    def get_loaded_files(self) -> List[str]:
        return list(self.loaded_files)

    async def _setup_environment(self) -> None:
        base_env_file_path = await self.environment_secret_file_manager.get_base_environment_file_path()
        await self.load_base_environment_file(base_env_file_path)

        env = self.resolve_active_environment()
        self.active_environment = env

        stage_file = ENVIRONMENT_FILE_PATHS.get(env)
        if stage_file:
            await self.load_environment_file_for_stage(stage_file, env)

        required = os.environ.get("REQUIRED_ENV_VARS")
        if required:
            self.validate_required_environment_variables(
                [name.strip() for name in required.split(",") if name.strip()]
            )

    async def load_base_environment_file(self, base_env_file_path: PathLike) -> None:
        if await self.environment_secret_file_manager.does_base_env_file_exist(base_env_file_path):
            self.apply_environment_variables_from_file(base_env_file_path)
            base_name = Path(base_env_file_path).name
            self.loaded_files.append(base_name)
            logger.info(f"Successfully loaded base environment file: {base_name}")
        else:
            await self.environment_secret_file_manager.handle_missing_base_env_file(base_env_file_path)

    def resolve_active_environment(self) -> str:
        env = self.get_current_environment()
        if not is_valid_environment_stage(env):
            logger.warning(
                f"Invalid environment specified: {env}. "
                f"Expected one of: {', '.join(ENVIRONMENT_STAGES)}."
            )
        logger.debug(f"Environment specified: '{env}'")
        return env

    async def load_environment_file_for_stage(self, file_name: str, env_name: str) -> bool:
        """Load the stage file if present; a missing file is logged, not raised."""
        file_path = self.environment_secret_file_manager.resolve_environment_file_path(file_name)
        if not await self.environment_secret_file_manager.does_environment_file_exist(file_name):
            self.environment_secret_file_manager.log_environment_file_not_found(
                file_name, file_path, env_name
            )
            return False

        self.apply_environment_variables_from_file(file_path)
        self.loaded_files.append(file_path.name)
        logger.info(f"Successfully loaded variables from environment file: {file_path.name}")
        return True

    @staticmethod
    def apply_environment_variables_from_file(file_path: PathLike) -> None:
        try:
            load_dotenv(dotenv_path=file_path, override=True, encoding="utf-8")
        except OSError as e:
            ErrorHandler.capture_error(
                e,
                "apply_environment_variables_from_file",
                f"Failed to apply environment variables from {Path(file_path).name}",
            )
            raise EnvironmentConfigError(
                f"Error loading environment variables from {file_path}"
            ) from e

    @staticmethod
    def validate_required_environment_variables(required_vars: Sequence[str]) -> None:
        missing = [name for name in required_vars if name not in os.environ]
        if missing:
            ErrorHandler.log_and_raise(
                f"Missing required environment variables: {', '.join(missing)}",
                "validate_required_environment_variables",
                EnvironmentConfigError,
            )
        logger.info("All required environment variables are present")

    @staticmethod
    def get_current_environment() -> str:
        return os.environ.get("ENV") or "dev"


__all__ = [
    "EnvironmentConfigManager",
]
