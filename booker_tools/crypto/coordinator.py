"""
================================================================================
Environment Encryption Coordinator
================================================================================

Two coarse workflows on top of the crypto tooling:

    - generate_and_store_secret_key: new passphrase -> base ``.env`` file
    - orchestrate_environment_encryption: encrypt variables of a stage file

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from typing import Optional, Sequence

from ..environment.secret_file_manager import EnvironmentSecretFileManager
from ..errors import ErrorHandler
from ..file_manager import PathLike
from .env_encryption_manager import EncryptionResult, EnvironmentEncryptionManager
from .key_generator import SecureKeyGenerator


class EnvironmentEncryptionCoordinator:
    """
    Usage:
        >>> coordinator = EnvironmentEncryptionCoordinator()
        >>> await coordinator.generate_and_store_secret_key("envs", ".env", "UAT_SECRET_KEY")
    """

    def __init__(
        self,
        environment_secret_file_manager: Optional[EnvironmentSecretFileManager] = None,
        environment_encryption_manager: Optional[EnvironmentEncryptionManager] = None,
    ) -> None:
        self.environment_secret_file_manager = (
            environment_secret_file_manager or EnvironmentSecretFileManager()
        )
        self.environment_encryption_manager = (
            environment_encryption_manager or EnvironmentEncryptionManager()
        )

    async def generate_and_store_secret_key(
        self,
        directory: PathLike,
        base_file_name: str,
        key_name: str,
    ) -> bool:
        """
        Generate a secret key and store it as ``key_name`` in the base file.

        Returns:
            True if stored, False if ``key_name`` already existed (nothing written)
        """
        try:
            secret_key = SecureKeyGenerator.generate_base64_secret_key()
            base_file_path = await self.environment_encryption_manager.resolve_file_path(
                directory, base_file_name
            )
            return await self.environment_secret_file_manager.store_base_environment_key(
                base_file_path, key_name, secret_key
            )
        except Exception as e:
            ErrorHandler.capture_error(
                e, "generate_and_store_secret_key", "Failed to create and save secret key"
            )
            raise

    async def orchestrate_environment_encryption(
        self,
        directory: PathLike,
        file_name: str,
        secret_key_variable: str,
        variables: Optional[Sequence[str]] = None,
    ) -> EncryptionResult:
        try:
            return await self.environment_encryption_manager.encrypt_and_update_environment_variables(
                directory, file_name, secret_key_variable, variables
            )
        except Exception as e:
            ErrorHandler.capture_error(
                e, "orchestrate_environment_encryption", "Failed to orchestrate environment variables"
            )
            raise


__all__ = [
    "EnvironmentEncryptionCoordinator",
]
