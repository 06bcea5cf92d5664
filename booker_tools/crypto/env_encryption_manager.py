"""
================================================================================
Environment Encryption Manager
================================================================================

Encrypts selected variables of a ``.env`` file in place.

Workflow:
    1. Read the file and split it into lines (LF or CRLF, kept on write)
    2. Parse ``KEY=VALUE`` assignments (blank lines and comments pass through)
    3. Resolve the target variables (by key, falling back to value)
    4. Encrypt every target that is not already an envelope
    5. Write the whole file back once, after every target has been processed

Line order and untouched lines are preserved. A failure before step 5 leaves
the original file as it was.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from loguru import logger

from ..errors import ErrorHandler
from ..file_manager import AsyncFileManager, PathLike
from .encryption_service import EncryptionService
from .envelope import Encrypted, probe_envelope
from .errors import SecretKeyNotFound


SecretKeyResolver = Callable[[str], str]


def resolve_secret_key_from_environment(variable_name: str) -> str:
    """
    Read the passphrase from ``os.environ``.

    Raises:
        SecretKeyNotFound: If the variable is unset or empty
    """
    value = os.environ.get(variable_name, "").strip()
    if not value:
        raise SecretKeyNotFound(
            f"Secret key variable '{variable_name}' is not set or is empty. "
            f"Generate it and load the base environment file first."
        )
    return value


@dataclass
class EncryptionResult:
    """Outcome of one file encryption run."""
    file_path: Path
    considered: int = 0
    encrypted: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)

    @property
    def encrypted_count(self) -> int:
        return len(self.encrypted)


class EnvironmentEncryptionManager:
    """
    Applies :class:`EncryptionService` to the variables of an environment file.

    Usage:
        >>> manager = EnvironmentEncryptionManager()
        >>> await manager.encrypt_and_update_environment_variables(
        ...     "envs", ".env.uat", "UAT_SECRET_KEY", ["TOKEN_PASSWORD"]
        ... )
    """

    def __init__(
        self,
        encryption_service: Optional[EncryptionService] = None,
        secret_key_resolver: Optional[SecretKeyResolver] = None,
    ) -> None:
        self.encryption_service = encryption_service or EncryptionService()
        self.secret_key_resolver = secret_key_resolver or resolve_secret_key_from_environment

    async def encrypt_and_update_environment_variables(
        self,
        directory: PathLike,
        file_name: str,
        secret_key_variable: str,
        variable_selectors: Optional[Sequence[str]] = None,
    ) -> EncryptionResult:
        """
        Encrypt the selected variables of ``directory/file_name`` in place.

        Args:
            directory: Directory holding the environment file
            file_name: Environment file name (e.g. ".env.uat")
            secret_key_variable: Name of the variable holding the passphrase
            variable_selectors: Keys (or current values) to encrypt; all
                variables when omitted or empty

        Raises:
            FileAccessError: If the file cannot be read or written
            SecretKeyNotFound: If a value needs encrypting and no passphrase is set
        """
        try:
            file_path = await self.resolve_file_path(directory, file_name)
            lines, line_ending = await self._read_environment_file_as_lines(file_path)

            all_variables = self.extract_environment_variables(lines)
            targets = self.resolve_variables_to_encrypt(all_variables, variable_selectors)

            result = EncryptionResult(file_path=file_path, considered=len(targets))
            updated_lines = await self._encrypt_variable_values_in_file_lines(
                lines, targets, secret_key_variable, result
            )

            if result.encrypted:
                await AsyncFileManager.write_file(file_path, line_ending.join(updated_lines))

            self._log_encryption_summary(result)
            return result
        except Exception as e:
            ErrorHandler.capture_error(
                e,
                "encrypt_and_update_environment_variables",
                "Failed to encrypt and update environment parameters",
            )
            raise

    async def resolve_file_path(self, directory: PathLike, file_name: str) -> Path:
        """Ensure ``directory`` exists and return the full file path."""
        await AsyncFileManager.ensure_directory_exists(directory)
        return AsyncFileManager.get_file_path(directory, file_name)

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------

    @staticmethod
    def parse_environment_line(line: str) -> Optional[Tuple[str, str]]:
        """
        Split a ``KEY=VALUE`` line.

        Everything after the first ``=`` is the value, so values may contain
        ``=`` themselves. Blank lines, comments and lines without ``=`` yield None.
        """
        trimmed = line.strip()
        if not trimmed or trimmed.startswith("#") or "=" not in trimmed:
            return None

        key, _, value = trimmed.partition("=")
        key = key.strip()
        if not key:
            return None
        return key, value.strip()

    @classmethod
    def extract_environment_variables(cls, lines: Sequence[str]) -> Dict[str, str]:
        """Collect assignments in file order; a repeated key keeps its last value."""
        variables: Dict[str, str] = {}
        for line in lines:
            parsed = cls.parse_environment_line(line)
            if parsed:
                key, value = parsed
                variables[key] = value
        return variables

    def resolve_variables_to_encrypt(
        self,
        all_variables: Dict[str, str],
        variable_selectors: Optional[Sequence[str]] = None,
    ) -> Dict[str, str]:
        """
        Map selectors to the variables that should be encrypted.

        Each selector is tried as a key first, then as a current value. When
        several keys share a value, the first one in file order wins.
        Unresolved selectors are logged and skipped.
        """
        if not variable_selectors:
            return dict(all_variables)

        targets: Dict[str, str] = {}
        for selector in variable_selectors:
            found = self._find_environment_variable(all_variables, selector)
            if found is None:
                # Never echo the selector: it may be a plaintext secret
                logger.warning("An environment variable selector matched no key or value in the file.")
                continue
            key, value = found
            targets[key] = value
        return targets

    @staticmethod
    def _find_environment_variable(
        all_variables: Dict[str, str],
        selector: str,
    ) -> Optional[Tuple[str, str]]:
        if selector in all_variables:
            return selector, all_variables[selector]

        for key, value in all_variables.items():
            if value == selector:
                logger.info(f"Environment variable key '{key}' found")
                return key, value
        return None

    # ------------------------------------------------------------------
    # Encryption
    # ------------------------------------------------------------------

    async def _encrypt_variable_values_in_file_lines(
        self,
        lines: List[str],
        targets: Dict[str, str],
        secret_key_variable: str,
        result: EncryptionResult,
    ) -> List[str]:
        updated_lines = list(lines)
        secret_key: Optional[str] = None

        for key, value in targets.items():
            if not value:
                logger.warning(f"Skipping encryption: '{key}' has an empty value.")
                result.skipped.append(key)
                continue

            if isinstance(probe_envelope(value), Encrypted):
                logger.info(f"Skipping encryption: '{key}' is already encrypted.")
                result.skipped.append(key)
                continue

            if secret_key is None:
                secret_key = self.secret_key_resolver(secret_key_variable)

            envelope = await self.encryption_service.encrypt(value, secret_key)
            updated_lines = self.update_environment_file_lines(
                updated_lines, key, envelope.to_json()
            )
            result.encrypted.append(key)

        return updated_lines

    @classmethod
    def update_environment_file_lines(
        cls,
        existing_lines: Sequence[str],
        key: str,
        value: str,
    ) -> List[str]:
        """Replace every ``key=`` line in place, or append one if none exists."""
        updated: List[str] = []
        replaced = False

        for line in existing_lines:
            parsed = cls.parse_environment_line(line)
            if parsed and parsed[0] == key:
                updated.append(f"{key}={value}")
                replaced = True
            else:
                updated.append(line)

        if not replaced:
            updated.append(f"{key}={value}")
        return updated

    # ------------------------------------------------------------------
    # File I/O
    # ------------------------------------------------------------------

    @staticmethod
    async def _read_environment_file_as_lines(file_path: Path) -> Tuple[List[str], str]:
        """Split into lines and report the ending to write back with (CRLF if the file uses it)."""
        content = await AsyncFileManager.read_file(file_path)
        line_ending = "\r\n" if "\r\n" in content else "\n"
        return content.replace("\r\n", "\n").split("\n"), line_ending

    @staticmethod
    def _log_encryption_summary(result: EncryptionResult) -> None:
        if result.encrypted_count > 0:
            logger.info(
                f"Encryption complete. Successfully encrypted {result.encrypted_count} of "
                f"{result.considered} variable(s) in the {result.file_path} file."
            )


__all__ = [
    "EnvironmentEncryptionManager",
    "EncryptionResult",
    "SecretKeyResolver",
    "resolve_secret_key_from_environment",
]
