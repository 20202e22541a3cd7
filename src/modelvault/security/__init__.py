"""Security helpers: key material and streaming AES-256-CBC primitives for ModelVault.

This package provides:
- fixed-size key/IV material with secure random generation
- single-use cipher sessions with PKCS#7 padding
- chunked stream/file encryption and in-memory decryption

Ciphertext is unauthenticated by design; see ``crypto`` for what that implies.
"""

from .keys import KEY_LENGTH, IV_LENGTH, KeyMaterial
from .session import BLOCK_SIZE, CipherSession, Direction, SessionState
from .crypto import CHUNK_SIZE, StreamCipherEngine, wipe_buffer

__all__ = [
    "KEY_LENGTH",
    "IV_LENGTH",
    "KeyMaterial",
    "BLOCK_SIZE",
    "CipherSession",
    "Direction",
    "SessionState",
    "CHUNK_SIZE",
    "StreamCipherEngine",
    "wipe_buffer",
]
