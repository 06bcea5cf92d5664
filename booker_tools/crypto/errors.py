"""Exceptions raised by the credential encryption tooling."""


class CryptoError(Exception):
    """Base exception for credential encryption failures."""
    pass


class InvalidLength(CryptoError, ValueError):
    """Raised when a requested random byte length is zero or negative."""
    pass


class MalformedEnvelope(CryptoError, ValueError):
    """Raised when encrypted data is not JSON or lacks salt, iv or cipherText."""
    pass


class DecryptionFailed(CryptoError):
    """
    Raised when authenticated decryption fails.

    The message never says whether the passphrase or the ciphertext was at fault.
    """
    pass


class SecretKeyNotFound(CryptoError, KeyError):
    """Raised when the secret key environment variable is unset or empty."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message
        return str(self.args[0]) if self.args else ""


__all__ = [
    "CryptoError",
    "InvalidLength",
    "MalformedEnvelope",
    "DecryptionFailed",
    "SecretKeyNotFound",
]
