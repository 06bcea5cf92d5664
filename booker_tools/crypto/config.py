"""
Crypto configuration: byte lengths and Argon2id cost parameters.

Never log key material. Only lengths and cost parameters are safe to log.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Dict

from loguru import logger

from ..common import get_config


@dataclass(frozen=True)
class ByteLengths:
    iv: int = 16
    aead_iv: int = 12  # 96-bit GCM nonce
    salt: int = 32
    secret_key: int = 32


@dataclass(frozen=True)
class Argon2Parameters:
    """Argon2id cost settings; encrypt and decrypt must use the same values."""
    memory_cost: int = 262144  # KiB (256 MB)
    time_cost: int = 4
    parallelism: int = 3
    hash_length: int = 32


@dataclass(frozen=True)
class CryptoConfig:
    byte_lengths: ByteLengths = field(default_factory=ByteLengths)
    argon2: Argon2Parameters = field(default_factory=Argon2Parameters)


CRYPTO_CONFIG = CryptoConfig()


def load_argon2_parameters() -> Argon2Parameters:
    """
    Build Argon2 parameters from the ``crypto.argon2`` config section.

    Missing keys fall back to :data:`CRYPTO_CONFIG`; unknown keys are ignored.
    """
    section: Dict[str, Any] = get_config("crypto.argon2", {}) or {}
    if not isinstance(section, dict):
        logger.warning("Config section 'crypto.argon2' is not a mapping; using defaults")
        return CRYPTO_CONFIG.argon2

    overrides = {
        f.name: int(section[f.name])
        for f in fields(Argon2Parameters)
        if section.get(f.name) is not None
    }
    if not overrides:
        return CRYPTO_CONFIG.argon2
    logger.debug(f"Argon2 parameters from config: {overrides}")
    return Argon2Parameters(**{**CRYPTO_CONFIG.argon2.__dict__, **overrides})


__all__ = [
    "ByteLengths",
    "Argon2Parameters",
    "CryptoConfig",
    "CRYPTO_CONFIG",
    "load_argon2_parameters",
]
