"""
Environment file discovery, loading and value resolution.

Exports:
    - EnvironmentSecretFileManager: base ``.env`` path handling and key storage
    - EnvironmentConfigManager: loads ``.env`` files into ``os.environ``
    - EnvironmentResolver: CI/local value lookup with credential decryption
    - EnvironmentDetector: CI detection
"""

from .constants import (
    ENVIRONMENT_FILE_PATHS,
    ENVIRONMENT_STAGES,
    SECRET_KEY_VARIABLES,
    EnvironmentConstants,
    EnvironmentFiles,
    EnvironmentSecretKeyVariables,
)
from .detector import EnvironmentDetector
from .secret_file_manager import EnvironmentConfigError, EnvironmentSecretFileManager
from .config_manager import EnvironmentConfigManager
from .resolver import (
    EnvironmentResolver,
    FetchCIEnvironmentVariables,
    FetchLocalEnvironmentVariables,
    UserCredentials,
)

__all__ = [
    "ENVIRONMENT_FILE_PATHS",
    "ENVIRONMENT_STAGES",
    "SECRET_KEY_VARIABLES",
    "EnvironmentConstants",
    "EnvironmentFiles",
    "EnvironmentSecretKeyVariables",
    "EnvironmentDetector",
    "EnvironmentConfigError",
    "EnvironmentSecretFileManager",
    "EnvironmentConfigManager",
    "EnvironmentResolver",
    "FetchCIEnvironmentVariables",
    "FetchLocalEnvironmentVariables",
    "UserCredentials",
]
