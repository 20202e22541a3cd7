"""AES-256-CBC key material: a fixed 32-byte key and 16-byte IV.

KeyMaterial is an immutable value. Default construction gives the all-zero
"unset" sentinel, which is valid by length but refused by every cipher
operation through :meth:`KeyMaterial.require_set`. Real material comes from
:meth:`KeyMaterial.generate` or :meth:`KeyMaterial.from_bytes`.

Secret bytes never appear in ``repr()`` or log records; use
:meth:`KeyMaterial.fingerprint` for diagnostics.
"""
from __future__ import annotations

import hashlib
import logging
import os
from dataclasses import dataclass, field

from modelvault.core.exceptions import (
    InvalidIvLength,
    InvalidKeyLength,
    KeyMaterialError,
    KeyMaterialUnsetError,
    RandomSourceError,
)

logger = logging.getLogger(__name__)

KEY_LENGTH = 32  # 256-bit key
IV_LENGTH = 16  # 128-bit IV


def _random_bytes(length: int) -> bytes:
    try:
        data = os.urandom(length)
    except (NotImplementedError, OSError) as e:
        raise RandomSourceError(f"secure random source unavailable: {e}") from e
    if len(data) != length:
        raise RandomSourceError(f"secure random source returned {len(data)} of {length} bytes")
    return data


@dataclass(frozen=True)
class KeyMaterial:
    key: bytes = field(default=bytes(KEY_LENGTH), repr=False)
    iv: bytes = field(default=bytes(IV_LENGTH), repr=False)

    def __post_init__(self):
        # normalize bytearray/memoryview input to immutable bytes
        object.__setattr__(self, "key", bytes(self.key))
        object.__setattr__(self, "iv", bytes(self.iv))
        if len(self.key) != KEY_LENGTH:
            raise InvalidKeyLength(f"key must be {KEY_LENGTH} bytes, got {len(self.key)}")
        if len(self.iv) != IV_LENGTH:
            raise InvalidIvLength(f"IV must be {IV_LENGTH} bytes, got {len(self.iv)}")

    @classmethod
    def generate(cls) -> "KeyMaterial":
        """Return fresh key material from the OS secure random source."""
        material = cls(_random_bytes(KEY_LENGTH), _random_bytes(IV_LENGTH))
        logger.debug("Generated key material (fingerprint=%s)", material.fingerprint())
        return material

    @classmethod
    def from_bytes(cls, key_bytes, iv_bytes) -> "KeyMaterial":
        """Build key material from caller-supplied bytes.

        Only the lengths are checked; there is no weak-key rejection.
        """
        material = cls(key_bytes, iv_bytes)
        logger.debug("Assigned key material (fingerprint=%s)", material.fingerprint())
        return material

    @classmethod
    def from_hex(cls, key_hex: str, iv_hex: str) -> "KeyMaterial":
        try:
            key_bytes = bytes.fromhex(key_hex)
            iv_bytes = bytes.fromhex(iv_hex)
        except ValueError as e:
            raise KeyMaterialError(f"key material is not valid hex: {e}") from e
        return cls.from_bytes(key_bytes, iv_bytes)

    @property
    def is_set(self) -> bool:
        return any(self.key) or any(self.iv)

    def require_set(self) -> None:
        if not self.is_set:
            raise KeyMaterialUnsetError(
                "key material is unset (all zero); generate or assign a key before use"
            )

    def fingerprint(self) -> str:
        # short, non-reversible identifier safe to log
        return hashlib.sha256(self.key + self.iv).hexdigest()[:16]

    def hex(self) -> tuple[str, str]:
        """Return ``(key_hex, iv_hex)``. Explicit export; never called by logging."""
        return self.key.hex(), self.iv.hex()

    def __repr__(self) -> str:
        state = self.fingerprint() if self.is_set else "unset"
        return f"KeyMaterial(<{state}>)"
