"""Single-use AES-256-CBC cipher session with PKCS#7 padding.

A CipherSession wraps one ``cryptography`` cipher context and its padder or
unpadder for one direction. It moves through

    INITIALIZED -> UPDATING (zero or more times) -> FINALIZED -> CLOSED

and cannot be reused once finalized. ``close()`` runs on every exit path when
the session is used as a context manager; it drops the context objects and the
key reference so nothing outlives the stream operation.
"""
from __future__ import annotations

import enum
import logging
from typing import Optional

from cryptography.exceptions import AlreadyFinalized, UnsupportedAlgorithm
from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from modelvault.core.exceptions import (
    CipherFinalizeError,
    CipherInitError,
    MalformedCiphertextError,
    PaddingError,
    SessionReuseError,
)
from .keys import KeyMaterial

logger = logging.getLogger(__name__)

BLOCK_SIZE = 16  # AES block size in bytes


class Direction(enum.Enum):
    ENCRYPT = "encrypt"
    DECRYPT = "decrypt"


class SessionState(enum.Enum):
    INITIALIZED = "initialized"
    UPDATING = "updating"
    FINALIZED = "finalized"
    CLOSED = "closed"


class CipherSession:
    def __init__(self, key_material: KeyMaterial, direction: Direction):
        key_material.require_set()
        self.direction = direction
        self.state = SessionState.INITIALIZED
        self.bytes_in = 0
        self._key_material: Optional[KeyMaterial] = key_material
        try:
            cipher = Cipher(algorithms.AES(key_material.key), modes.CBC(key_material.iv))
            if direction is Direction.ENCRYPT:
                self._context = cipher.encryptor()
                self._padding = padding.PKCS7(BLOCK_SIZE * 8).padder()
            else:
                self._context = cipher.decryptor()
                self._padding = padding.PKCS7(BLOCK_SIZE * 8).unpadder()
        except (ValueError, TypeError, UnsupportedAlgorithm) as e:
            self.close()
            raise CipherInitError(f"cannot initialize AES-256-CBC {direction.value} context: {e}") from e

    def _check_usable(self, operation: str) -> None:
        if self.state in (SessionState.FINALIZED, SessionState.CLOSED):
            raise SessionReuseError(f"cannot {operation} a {self.state.value} cipher session")

    def update(self, data: bytes) -> bytes:
        """Feed one chunk; return whatever output the context emits (possibly b"")."""
        self._check_usable("update")
        self.state = SessionState.UPDATING
        self.bytes_in += len(data)
        if self.direction is Direction.ENCRYPT:
            return self._context.update(self._padding.update(data))
        # the unpadder holds back the last block until finalize
        return self._padding.update(self._context.update(data))

    def finalize(self) -> bytes:
        """Flush the final block. In the decrypt direction, strip and check padding."""
        self._check_usable("finalize")
        try:
            if self.direction is Direction.ENCRYPT:
                tail = self._finalize_encrypt()
            else:
                tail = self._finalize_decrypt()
        finally:
            self.state = SessionState.FINALIZED
        return tail

    def _finalize_encrypt(self) -> bytes:
        try:
            return self._context.update(self._padding.finalize()) + self._context.finalize()
        except ValueError as e:
            raise CipherFinalizeError(f"cipher finalization failed: {e}") from e

    def _finalize_decrypt(self) -> bytes:
        if self.bytes_in == 0 or self.bytes_in % BLOCK_SIZE:
            raise MalformedCiphertextError(
                f"ciphertext length {self.bytes_in} is not a non-zero multiple of {BLOCK_SIZE}"
            )
        try:
            tail = self._context.finalize()
        except AlreadyFinalized as e:
            raise SessionReuseError("cipher context already finalized") from e
        except ValueError as e:
            raise CipherFinalizeError(f"cipher finalization failed: {e}") from e
        try:
            return self._padding.update(tail) + self._padding.finalize()
        except ValueError as e:
            # wrong key, wrong IV and corrupted data all land here
            raise PaddingError("invalid PKCS#7 padding in final block") from e

    def close(self) -> None:
        """Drop the cipher context, padder and key reference. Safe to call twice."""
        self._context = None
        self._padding = None
        self._key_material = None
        if self.state is not SessionState.CLOSED:
            logger.debug("Closed %s session after %d input bytes", self.direction.value, self.bytes_in)
        self.state = SessionState.CLOSED

    def __enter__(self) -> "CipherSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
