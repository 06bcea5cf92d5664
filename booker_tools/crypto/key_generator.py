"""
================================================================================
Secure Key Generator
================================================================================

Cryptographically secure random bytes for salts, IVs and secret keys.

Every generator comes in a raw ``bytes`` form and a base64 text form. Two IV
profiles exist: the general 16-byte IV and the 12-byte nonce required by
AES-GCM. Encryption must use the AEAD profile (``generate_aead_iv``).

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import base64
import secrets
from typing import Optional

from ..errors import ErrorHandler
from .config import CRYPTO_CONFIG
from .errors import InvalidLength


class SecureKeyGenerator:
    """
    Stateless source of randomness for the crypto tooling.

    Usage:
        >>> salt = SecureKeyGenerator.generate_salt()        # 32 raw bytes
        >>> nonce = SecureKeyGenerator.generate_aead_iv()    # 12 raw bytes
        >>> key = SecureKeyGenerator.generate_base64_secret_key()
    """

    IV_LENGTH = CRYPTO_CONFIG.byte_lengths.iv
    AEAD_IV_LENGTH = CRYPTO_CONFIG.byte_lengths.aead_iv
    SALT_LENGTH = CRYPTO_CONFIG.byte_lengths.salt
    SECRET_KEY_LENGTH = CRYPTO_CONFIG.byte_lengths.secret_key

    @staticmethod
    def _validate_length(length: int, method_name: str) -> None:
        if length <= 0:
            ErrorHandler.log_and_raise(
                "Length must be greater than zero.", method_name, InvalidLength
            )

    @classmethod
    def _random_bytes(cls, length: int, method_name: str) -> bytes:
        cls._validate_length(length, method_name)
        # Entropy exhaustion surfaces as an OSError from the OS; it is not recoverable
        return secrets.token_bytes(length)

    @staticmethod
    def to_base64(data: bytes) -> str:
        return base64.b64encode(data).decode("ascii")

    # ---------------------------------------------------------------------
    # IVs
    # ---------------------------------------------------------------------

    @classmethod
    def generate_iv(cls, length: Optional[int] = None) -> bytes:
        """General purpose IV (16 bytes by default)."""
        return cls._random_bytes(cls.IV_LENGTH if length is None else length, "generate_iv")

    @classmethod
    def generate_base64_iv(cls, length: Optional[int] = None) -> str:
        return cls.to_base64(cls.generate_iv(length))

    @classmethod
    def generate_aead_iv(cls, length: Optional[int] = None) -> bytes:
        """AES-GCM nonce (12 bytes by default)."""
        return cls._random_bytes(
            cls.AEAD_IV_LENGTH if length is None else length, "generate_aead_iv"
        )

    # ---------------------------------------------------------------------
    # Salts
    # ---------------------------------------------------------------------

    @classmethod
    def generate_salt(cls, length: Optional[int] = None) -> bytes:
        return cls._random_bytes(cls.SALT_LENGTH if length is None else length, "generate_salt")

    @classmethod
    def generate_base64_salt(cls, length: Optional[int] = None) -> str:
        return cls.to_base64(cls.generate_salt(length))

    # ---------------------------------------------------------------------
    # Secret keys
    # ---------------------------------------------------------------------

    @classmethod
    def generate_secret_key(cls, length: Optional[int] = None) -> bytes:
        return cls._random_bytes(
            cls.SECRET_KEY_LENGTH if length is None else length, "generate_secret_key"
        )

    @classmethod
    def generate_base64_secret_key(cls, length: Optional[int] = None) -> str:
        """Secret key as base64 text, suitable for storing in a ``.env`` file."""
        return cls.to_base64(cls.generate_secret_key(length))


__all__ = [
    "SecureKeyGenerator",
]
