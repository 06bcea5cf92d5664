"""
================================================================================
Booker Tools Common Utilities
================================================================================

Settings and logging shared by the crypto, environment and runner code.

Settings come from ``config/config.yaml`` (the working directory first, then
the repository root). A handful of environment variables override the file:

    LOG_LEVEL      -> logging.level
    LOG_FILE       -> logging.file
    ENV_DIR        -> environment.env_dir
    BASE_ENV_FILE  -> environment.base_env_file

Usage:
    from booker_tools.common import get_config, init_logger

    init_logger()
    env_dir = get_config("environment.env_dir", "envs")

================================================================================
"""

import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from loguru import logger

REPOSITORY_ROOT = Path(__file__).resolve().parent.parent.parent

CONFIG_CANDIDATES: List[Path] = [
    Path("config") / "config.yaml",
    REPOSITORY_ROOT / "config" / "config.yaml",
]

ENV_OVERRIDES: Dict[str, str] = {
    "LOG_LEVEL": "logging.level",
    "LOG_FILE": "logging.file",
    "ENV_DIR": "environment.env_dir",
    "BASE_ENV_FILE": "environment.base_env_file",
}

DEFAULT_LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)


class GlobalConfig:
    """
    Process-wide settings store for booker_tools.

    Built lazily on first access; ``reset()`` forces a reload (tests use it
    after changing the environment).
    """
    _instance: Optional["GlobalConfig"] = None
    _initialized: bool = False

    def __new__(cls) -> "GlobalConfig":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if self._initialized:
            return
        self._settings: Dict[str, Any] = self._read_config_file()
        for variable, dotted_key in ENV_OVERRIDES.items():
            value = os.environ.get(variable)
            if value is not None:
                self.set(dotted_key, value)
        self._initialized = True

    @staticmethod
    def _read_config_file() -> Dict[str, Any]:
        for candidate in CONFIG_CANDIDATES:
            if not candidate.is_file():
                continue
            try:
                loaded = yaml.safe_load(candidate.read_text(encoding="utf-8"))
            except (OSError, yaml.YAMLError) as e:
                logger.warning(f"Skipping unreadable settings file {candidate}: {e}")
                continue
            if not isinstance(loaded, dict):
                logger.warning(f"Settings file {candidate} is not a mapping; ignoring it")
                continue
            logger.debug(f"Settings loaded from {candidate}")
            return loaded
        return {}

    def get(self, key: str, default: Any = None) -> Any:
        """Look up a dot-separated key such as ``crypto.argon2.time_cost``."""
        node: Any = self._settings
        for part in key.split("."):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

    def set(self, key: str, value: Any) -> None:
        *parents, leaf = key.split(".")
        node = self._settings
        for part in parents:
            child = node.get(part)
            if not isinstance(child, dict):
                child = node[part] = {}
            node = child
        node[leaf] = value

    @classmethod
    def reset(cls) -> None:
        cls._instance = None
        cls._initialized = False


def get_config(key: str, default: Any = None) -> Any:
    """
    Read a setting.

    Example:
        env_dir = get_config("environment.env_dir", "envs")
    """
    return GlobalConfig().get(key, default)


def set_config(key: str, value: Any) -> None:
    GlobalConfig().set(key, value)


# ============================================================
# Logging
# ============================================================

_logger_initialized = False


def init_logger(
    level: str = None,
    format_string: str = None,
    log_file: str = None
) -> None:
    """
    Replace loguru's default sink with the suite's stderr (and optional file) sinks.

    Calling it again is a no-op, so the runner and fixtures can both call it.

    Args:
        level: DEBUG, INFO, WARNING or ERROR. Falls back to ``logging.level``.
        format_string: loguru format. Falls back to ``logging.format``.
        log_file: Also write to this file, rotated per ``logging.rotation``.
    """
    global _logger_initialized

    if _logger_initialized:
        return

    level = (level or get_config("logging.level", "INFO")).upper()
    format_string = format_string or get_config("logging.format", DEFAULT_LOG_FORMAT)
    log_file = log_file or get_config("logging.file")

    logger.remove()
    logger.add(sys.stderr, format=format_string, level=level, colorize=True, diagnose=False)

    if log_file:
        parent = os.path.dirname(log_file)
        if parent:
            ensure_directory(parent)
        logger.add(
            log_file,
            format=format_string,
            level=level,
            rotation=get_config("logging.rotation", "10 MB"),
            retention=get_config("logging.retention", "7 days"),
            diagnose=False,
        )

    _logger_initialized = True
    logger.debug("Logger initialized successfully")


def ensure_directory(path: str) -> str:
    """Create ``path`` (and parents) if missing and return it."""
    os.makedirs(path, exist_ok=True)
    return path


__all__ = [
    "GlobalConfig",
    "get_config",
    "set_config",
    "init_logger",
    "ensure_directory",
    "REPOSITORY_ROOT",
]
