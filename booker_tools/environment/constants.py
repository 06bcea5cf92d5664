"""
Environment file locations and variable names.

Each stage has its own ``.env.<stage>`` file; the base ``.env`` file holds the
per-stage secret keys used to encrypt the stage files.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, Tuple


class EnvironmentConstants(str, Enum):
    ENV_DIR = "envs"
    BASE_ENV_FILE = ".env"


class EnvironmentFiles(str, Enum):
    DEV = ".env.dev"
    UAT = ".env.uat"
    PROD = ".env.prod"


class EnvironmentSecretKeyVariables(str, Enum):
    DEV = "DEV_SECRET_KEY"
    UAT = "UAT_SECRET_KEY"
    PROD = "PROD_SECRET_KEY"


ENVIRONMENT_STAGES: Tuple[str, ...] = ("dev", "uat", "prod")

ENVIRONMENT_FILE_PATHS: Dict[str, str] = {
    "dev": EnvironmentFiles.DEV.value,
    "uat": EnvironmentFiles.UAT.value,
    "prod": EnvironmentFiles.PROD.value,
}

SECRET_KEY_VARIABLES: Dict[str, str] = {
    "dev": EnvironmentSecretKeyVariables.DEV.value,
    "uat": EnvironmentSecretKeyVariables.UAT.value,
    "prod": EnvironmentSecretKeyVariables.PROD.value,
}

# Variables read from the stage file
APP_VERSION = "APP_VERSION"
TEST_PLATFORM = "TEST_PLATFORM"
TEST_TYPE = "TEST_TYPE"
API_BASE_URL = "API_BASE_URL"
TOKEN_USERNAME = "TOKEN_USERNAME"
TOKEN_PASSWORD = "TOKEN_PASSWORD"

# Set while a key-generation run is in progress; silences missing-base-file warnings
GENERATING_KEY_FLAG = "BOOKER_GENERATING_KEY"


def is_valid_environment_stage(value: str) -> bool:
    return value in ENVIRONMENT_STAGES


__all__ = [
    "EnvironmentConstants",
    "EnvironmentFiles",
    "EnvironmentSecretKeyVariables",
    "ENVIRONMENT_STAGES",
    "ENVIRONMENT_FILE_PATHS",
    "SECRET_KEY_VARIABLES",
    "APP_VERSION",
    "TEST_PLATFORM",
    "TEST_TYPE",
    "API_BASE_URL",
    "TOKEN_USERNAME",
    "TOKEN_PASSWORD",
    "GENERATING_KEY_FLAG",
    "is_valid_environment_stage",
]
