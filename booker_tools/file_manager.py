"""
================================================================================
Async File Manager
================================================================================

Non-blocking file helpers used by the environment and crypto tooling.

Features:
    - Whole-file UTF-8 read and write via aiofiles
    - Atomic writes (temp file in the same directory + os.replace)
    - Parent directory auto-creation on write
    - Path normalization with basic safety checks

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import os
import uuid
from pathlib import Path
from typing import Union

import aiofiles
import aiofiles.os
from loguru import logger

from .errors import ErrorHandler


PathLike = Union[str, Path]

DEFAULT_ENCODING = "utf-8"


class FileAccessError(OSError):
    """Raised when an environment or secrets file cannot be read or written."""
    pass


class AsyncFileManager:
    """
    Static async helpers for file access.

    Usage:
        >>> content = await AsyncFileManager.read_file("envs/.env.uat")
        >>> await AsyncFileManager.write_file("envs/.env.uat", content)
    """

    @staticmethod
    def normalize_path(input_path: PathLike) -> Path:
        """
        Normalize a path to an absolute path.

        Raises:
            ValueError: If the path is empty or contains NUL bytes
        """
        raw = str(input_path) if input_path is not None else ""
        if not raw:
            raise ValueError("Path cannot be empty")
        if "\0" in raw:
            raise ValueError("Path contains null bytes")
        return Path(os.path.abspath(os.path.normpath(raw)))

    @classmethod
    def get_file_path(cls, directory: PathLike, file_name: str) -> Path:
        """Join a directory and a file name into a normalized path."""
        if not file_name:
            raise ValueError("File name cannot be empty")
        return cls.normalize_path(Path(directory) / file_name)

    @classmethod
    async def does_file_exist(cls, file_path: PathLike) -> bool:
        path = cls.normalize_path(file_path)
        exists = await aiofiles.os.path.isfile(path)
        if not exists:
            logger.debug(f"File does not exist: {path.name}")
        return exists

    @classmethod
    async def does_directory_exist(cls, dir_path: PathLike) -> bool:
        path = cls.normalize_path(dir_path)
        exists = await aiofiles.os.path.isdir(path)
        if not exists:
            logger.debug(f"Directory does not exist: {path}")
        return exists

    @classmethod
    async def ensure_directory_exists(cls, dir_path: PathLike) -> Path:
        """Create ``dir_path`` (and parents) if needed and return it."""
        path = cls.normalize_path(dir_path)
        try:
            await aiofiles.os.makedirs(path, exist_ok=True)
        except OSError as e:
            ErrorHandler.capture_error(
                e, "ensure_directory_exists", f"Failed to create directory: {path}"
            )
            raise FileAccessError(f"Failed to create directory: {path}") from e
        return path

    @classmethod
    async def ensure_file_exists(cls, file_path: PathLike) -> bool:
        """
        Make sure ``file_path`` exists, creating an empty file if necessary.

        Returns:
            True if the file already existed, False if it was created
        """
        path = cls.normalize_path(file_path)
        if await cls.does_file_exist(path):
            return True

        await cls.ensure_directory_exists(path.parent)
        try:
            async with aiofiles.open(path, "a", encoding=DEFAULT_ENCODING):
                pass
        except OSError as e:
            ErrorHandler.capture_error(e, "ensure_file_exists", f"Failed to create file: {path.name}")
            raise FileAccessError(f"Failed to create file: {path}") from e
        return False

    @classmethod
    async def read_file(cls, file_path: PathLike, encoding: str = DEFAULT_ENCODING) -> str:
        """
        Read an entire text file.

        Raises:
            FileAccessError: If the file is missing or unreadable
        """
        path = cls.normalize_path(file_path)
        try:
            async with aiofiles.open(path, "r", encoding=encoding, newline="") as f:
                return await f.read()
        except OSError as e:
            ErrorHandler.capture_error(e, "read_file", f"Failed to read file: {path.name}")
            raise FileAccessError(f"Failed to read file: {path}") from e

    @classmethod
    async def write_file(
        cls,
        file_path: PathLike,
        content: str,
        encoding: str = DEFAULT_ENCODING,
    ) -> None:
        """
        Atomically replace the content of a text file.

        The content is written to a temp file beside the target and moved into
        place with ``os.replace``; readers never observe a partially written file.

        Raises:
            FileAccessError: If the directory or file cannot be written
        """
        path = cls.normalize_path(file_path)
        await cls.ensure_directory_exists(path.parent)

        tmp_path = path.with_name(f".{path.name}.{uuid.uuid4().hex}.tmp")
        try:
            async with aiofiles.open(tmp_path, "w", encoding=encoding, newline="") as f:
                await f.write(content)
                await f.flush()
            await aiofiles.os.replace(tmp_path, path)
        except OSError as e:
            if await aiofiles.os.path.exists(tmp_path):
                await aiofiles.os.remove(tmp_path)
            ErrorHandler.capture_error(e, "write_file", f"Failed to write file: {path.name}")
            raise FileAccessError(f"Failed to write file: {path}") from e

        logger.debug(f"Wrote {len(content)} characters to {path.name}")


__all__ = [
    "AsyncFileManager",
    "FileAccessError",
]
