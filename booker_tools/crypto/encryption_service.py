"""
================================================================================
Encryption Service
================================================================================

Authenticated encryption of environment values.

Pipeline:
    passphrase + random salt --Argon2id--> 32-byte key
    key + random 12-byte nonce --AES-256-GCM--> ciphertext || tag

Every call draws a fresh salt and nonce, so encrypting the same value twice
yields two different envelopes. Both decrypt to the same plaintext.

Security Note:
    Never log plaintext, passphrases or derived keys. Only operation names
    and failure categories are logged.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import asyncio
import base64
import binascii
from typing import List, Optional, Sequence

from argon2.exceptions import HashingError
from argon2.low_level import Type, hash_secret_raw
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from ..errors import ErrorHandler
from .config import Argon2Parameters, load_argon2_parameters
from .envelope import EncryptionEnvelope
from .errors import DecryptionFailed, MalformedEnvelope
from .key_generator import SecureKeyGenerator


# Opaque on purpose: wrong passphrase and tampered data look the same
DECRYPTION_FAILED_MESSAGE = "Failed to decrypt with AES-GCM."


class EncryptionService:
    """
    Argon2id + AES-256-GCM encryption for ``.env`` values.

    The service holds no per-call state; the derived key is recomputed on every
    encrypt/decrypt call and discarded afterwards.

    Usage:
        >>> service = EncryptionService()
        >>> envelope = await service.encrypt("s3cret", passphrase)
        >>> await service.decrypt(envelope.to_json(), passphrase)
        's3cret'
    """

    def __init__(self, argon2_params: Optional[Argon2Parameters] = None) -> None:
        """
        Args:
            argon2_params: KDF cost settings. Defaults to the ``crypto.argon2``
                config section, falling back to 256 MB, 4 passes, 3 lanes.
                Encrypt and decrypt must agree.
        """
        self.argon2_params = argon2_params or load_argon2_parameters()

    async def encrypt(self, value: str, passphrase: str) -> EncryptionEnvelope:
        """
        Encrypt ``value`` under a key derived from ``passphrase``.

        Returns:
            EncryptionEnvelope with base64 salt, iv and cipherText

        Raises:
            CryptoError: If key derivation fails
        """
        try:
            salt = SecureKeyGenerator.generate_salt()
            iv = SecureKeyGenerator.generate_aead_iv()

            key = await self.derive_key(passphrase, salt)
            cipher_text = await asyncio.to_thread(
                AESGCM(key).encrypt, iv, value.encode("utf-8"), None
            )

            return EncryptionEnvelope(
                salt=SecureKeyGenerator.to_base64(salt),
                iv=SecureKeyGenerator.to_base64(iv),
                cipher_text=SecureKeyGenerator.to_base64(cipher_text),
            )
        except Exception as e:
            ErrorHandler.capture_error(e, "encrypt", "Failed to encrypt with AES-GCM.")
            raise

    async def decrypt(self, encrypted_data: str, passphrase: str) -> str:
        """
        Decrypt a JSON envelope produced by :meth:`encrypt`.

        Raises:
            MalformedEnvelope: If the input is not JSON or misses a field
            DecryptionFailed: If authentication fails for any reason
        """
        try:
            envelope = EncryptionEnvelope.from_json(encrypted_data)
        except MalformedEnvelope as e:
            ErrorHandler.capture_error(e, "parse_encrypted_data", "Failed to parse encrypted data")
            raise

        try:
            salt = self._decode_base64(envelope.salt)
            iv = self._decode_base64(envelope.iv)
            cipher_text = self._decode_base64(envelope.cipher_text)

            key = await self.derive_key(passphrase, salt)
            plaintext = await asyncio.to_thread(AESGCM(key).decrypt, iv, cipher_text, None)
            return plaintext.decode("utf-8")
        except (InvalidTag, ValueError, HashingError) as e:
            # binascii.Error and UnicodeDecodeError are ValueErrors
            failure = DecryptionFailed(DECRYPTION_FAILED_MESSAGE)
            ErrorHandler.capture_error(failure, "decrypt", DECRYPTION_FAILED_MESSAGE)
            raise failure from e

    async def decrypt_multiple(
        self,
        encrypted_values: Sequence[str],
        passphrase: str,
    ) -> List[str]:
        """
        Decrypt several envelopes concurrently.

        Results follow input order. Any single failure fails the whole call.
        """
        try:
            results = await asyncio.gather(
                *(self.decrypt(data, passphrase) for data in encrypted_values)
            )
            return list(results)
        except Exception as e:
            ErrorHandler.capture_error(
                e, "decrypt_multiple", "Failed to decrypt multiple values with AES-GCM."
            )
            raise

    async def derive_key(self, passphrase: str, salt: bytes) -> bytes:
        """
        Derive a raw AES-256 key with Argon2id.

        Runs in a worker thread; Argon2 is deliberately slow and memory hungry.
        """
        params = self.argon2_params
        try:
            return await asyncio.to_thread(
                hash_secret_raw,
                secret=passphrase.encode("utf-8"),
                salt=salt,
                time_cost=params.time_cost,
                memory_cost=params.memory_cost,
                parallelism=params.parallelism,
                hash_len=params.hash_length,
                type=Type.ID,
            )
        except HashingError as e:
            ErrorHandler.capture_error(e, "derive_key", "Failed to derive key using Argon2 hashing.")
            raise

    @staticmethod
    def _decode_base64(value: str) -> bytes:
        """Strict decode: only the canonical encoding (zero padding bits) is accepted."""
        decoded = base64.b64decode(value, validate=True)
        if base64.b64encode(decoded).decode("ascii") != value:
            raise binascii.Error("Non-canonical base64")
        return decoded


__all__ = [
    "EncryptionService",
    "DECRYPTION_FAILED_MESSAGE",
]
