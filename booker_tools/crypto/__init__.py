"""
Credential encryption for ``.env`` files.

Values are encrypted with AES-256-GCM under a key derived from a per-stage
secret with Argon2id, and stored as single-line JSON envelopes.

Security Note:
    Never log plaintext, secret keys or derived keys.
"""

from ..file_manager import FileAccessError
from .config import CRYPTO_CONFIG, Argon2Parameters, ByteLengths, CryptoConfig, load_argon2_parameters
from .errors import (
    CryptoError,
    DecryptionFailed,
    InvalidLength,
    MalformedEnvelope,
    SecretKeyNotFound,
)
from .envelope import EncryptionEnvelope, Encrypted, NotEncrypted, probe_envelope, is_already_encrypted
from .key_generator import SecureKeyGenerator
from .encryption_service import EncryptionService
from .env_encryption_manager import EncryptionResult, EnvironmentEncryptionManager
from .coordinator import EnvironmentEncryptionCoordinator

__all__ = [
    "CRYPTO_CONFIG",
    "Argon2Parameters",
    "ByteLengths",
    "CryptoConfig",
    "load_argon2_parameters",
    "CryptoError",
    "DecryptionFailed",
    "InvalidLength",
    "MalformedEnvelope",
    "SecretKeyNotFound",
    "FileAccessError",
    "EncryptionEnvelope",
    "Encrypted",
    "NotEncrypted",
    "probe_envelope",
    "is_already_encrypted",
    "SecureKeyGenerator",
    "EncryptionService",
    "EncryptionResult",
    "EnvironmentEncryptionManager",
    "EnvironmentEncryptionCoordinator",
]
