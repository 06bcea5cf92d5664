"""
================================================================================
Booker Tools
================================================================================

Support utilities for the restful-booker automation suites.

Modules:
    - common: Shared configuration and logging utilities
    - crypto: Credential encryption for environment files
    - environment: Environment file discovery, loading and resolution
    - sanitization: Masking of sensitive values before they are logged
    - file_manager: Async file helpers with atomic writes

Example:
    from booker_tools.crypto import EnvironmentEncryptionCoordinator

    coordinator = EnvironmentEncryptionCoordinator()
    await coordinator.generate_and_store_secret_key("envs", ".env", "UAT_SECRET_KEY")
    await coordinator.orchestrate_environment_encryption(
        "envs", ".env.uat", "UAT_SECRET_KEY", ["TOKEN_PASSWORD"]
    )

================================================================================
"""

__version__ = "1.0.0"

__all__ = [
    "common",
    "crypto",
    "environment",
    "sanitization",
    "file_manager",
]
