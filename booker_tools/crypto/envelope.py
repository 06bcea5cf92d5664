"""
Encryption envelope: the ``{salt, iv, cipherText}`` record stored in ``.env`` files.

An encrypted line looks like::

    TOKEN_PASSWORD={"salt":"<base64>","iv":"<base64>","cipherText":"<base64>"}
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, Union

from .errors import MalformedEnvelope


REQUIRED_FIELDS = ("salt", "iv", "cipherText")


@dataclass(frozen=True)
class EncryptionEnvelope:
    """
    One encrypted value at rest.

    Attributes:
        salt: base64 Argon2id salt, unique per encryption
        iv: base64 AES-GCM nonce, unique per encryption
        cipher_text: base64 ciphertext with the GCM tag appended
    """
    salt: str
    iv: str
    cipher_text: str

    def to_dict(self) -> Dict[str, str]:
        return {"salt": self.salt, "iv": self.iv, "cipherText": self.cipher_text}

    def to_json(self) -> str:
        """Single-line JSON, safe to embed as the value of a ``KEY=`` line."""
        return json.dumps(self.to_dict(), separators=(",", ":"))

    @classmethod
    def from_dict(cls, data: Any) -> "EncryptionEnvelope":
        if not isinstance(data, dict):
            raise MalformedEnvelope("Encrypted data must be a JSON object.")

        missing = [name for name in REQUIRED_FIELDS if not data.get(name)]
        if missing:
            raise MalformedEnvelope(
                f"Missing required properties in encryption parameters: {', '.join(missing)}"
            )
        if not all(isinstance(data[name], str) for name in REQUIRED_FIELDS):
            raise MalformedEnvelope("Encryption parameters must be base64 strings.")

        return cls(salt=data["salt"], iv=data["iv"], cipher_text=data["cipherText"])

    @classmethod
    def from_json(cls, encrypted_data: str) -> "EncryptionEnvelope":
        """
        Parse and validate a JSON envelope.

        Raises:
            MalformedEnvelope: If the input is empty, not JSON, or misses a field
        """
        if not encrypted_data:
            raise MalformedEnvelope("Encrypted data is required.")
        try:
            parsed = json.loads(encrypted_data)
        except (json.JSONDecodeError, TypeError) as e:
            raise MalformedEnvelope("Encrypted data is not valid JSON.") from e
        return cls.from_dict(parsed)


@dataclass(frozen=True)
class Encrypted:
    envelope: EncryptionEnvelope


@dataclass(frozen=True)
class NotEncrypted:
    reason: str


ProbeResult = Union[Encrypted, NotEncrypted]


def probe_envelope(value: str) -> ProbeResult:
    """
    Decide whether an environment value already holds an envelope.

    Never raises: any syntax error or missing field yields ``NotEncrypted``.
    """
    trimmed = (value or "").strip()
    if not trimmed:
        return NotEncrypted("empty value")
    if not (trimmed.startswith("{") and trimmed.endswith("}")):
        return NotEncrypted("not a JSON object")

    try:
        parsed = json.loads(trimmed)
    except json.JSONDecodeError:
        return NotEncrypted("invalid JSON")

    if not isinstance(parsed, dict) or not all(name in parsed for name in REQUIRED_FIELDS):
        return NotEncrypted("missing envelope fields")

    try:
        return Encrypted(EncryptionEnvelope.from_dict(parsed))
    except MalformedEnvelope as e:
        return NotEncrypted(str(e))


def is_already_encrypted(value: str) -> bool:
    return isinstance(probe_envelope(value), Encrypted)


__all__ = [
    "EncryptionEnvelope",
    "Encrypted",
    "NotEncrypted",
    "ProbeResult",
    "probe_envelope",
    "is_already_encrypted",
    "REQUIRED_FIELDS",
]
