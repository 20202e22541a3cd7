"""Load encrypted models through a single, lock-guarded plaintext buffer.

ProtectedModelLoader decrypts an encrypted model file into a ``bytearray`` it
owns and hands that buffer to a deserializer. The whole decrypt + parse
sequence runs under one lock because every call reuses the same buffer, so
concurrent loads on one loader are serialized.

Failures do not propagate as exceptions: ``load_encrypted`` returns a
:class:`LoadResult` carrying either the model or a ``LoadError``. Callers must
check it (or call :meth:`LoadResult.unwrap`).
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from modelvault.security.crypto import StreamCipherEngine, wipe_buffer
from modelvault.security.keys import KeyMaterial
from .deserializers import Deserializer, raw_bytes
from .exceptions import CipherError, DecryptionFailed, LoadError, ParseFailed

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoadResult:
    model: Any = None
    error: Optional[LoadError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def __bool__(self) -> bool:
        return self.ok

    def unwrap(self) -> Any:
        """Return the model, or raise the stored LoadError."""
        if self.error is not None:
            raise self.error
        return self.model


class ProtectedModelLoader:
    """
    Turn encrypted model files into model handles.

    ``buffer`` and ``lock`` may be passed in so that several loaders can share
    one guarded buffer explicitly; by default each loader owns its own.

    Buffer lifecycle:

    - cleared at the start of every load, so a previous model's plaintext never
      reaches a later call
    - wiped when decryption fails
    - kept as-is when the deserializer fails
    """

    def __init__(
        self,
        deserializer: Deserializer = raw_bytes,
        engine: Optional[StreamCipherEngine] = None,
        key_material: Optional[KeyMaterial] = None,
        buffer: Optional[bytearray] = None,
        lock: Optional[threading.Lock] = None,
    ):
        self.deserializer = deserializer
        self.engine = engine if engine is not None else StreamCipherEngine(key_material)
        if engine is not None and key_material is not None:
            self.engine.key_material = key_material
        self._buffer = buffer if buffer is not None else bytearray()
        self._lock = lock if lock is not None else threading.Lock()

    @property
    def buffer_size(self) -> int:
        with self._lock:
            return len(self._buffer)

    def _reset_buffer(self) -> None:
        # A deserializer that kept a view of the old buffer pins it. The pinned
        # buffer is zeroed and abandoned, and loading continues in a fresh one.
        try:
            wipe_buffer(self._buffer)
        except BufferError:
            logger.debug("Decrypted buffer still referenced by a previous model; allocating a new one")
            self._buffer = bytearray()

    def _parse(self, path) -> LoadResult:
        try:
            with memoryview(self._buffer) as view, view.toreadonly() as data:
                model = self.deserializer(data)
        except Exception as e:
            logger.error("Failed to parse decrypted model %s: %s", path, e)
            return LoadResult(error=ParseFailed(path, e))
        if model is None:
            logger.error("Deserializer returned no model for %s", path)
            return LoadResult(error=ParseFailed(path, ValueError("deserializer returned no model")))
        return LoadResult(model=model)

    def load_encrypted(self, path: str | Path, key_material: Optional[KeyMaterial] = None) -> LoadResult:
        """Decrypt ``path`` and parse it; return a LoadResult, never raise a load failure."""
        with self._lock:
            self._reset_buffer()
            try:
                self.engine.decrypt_file(path, key_material, into=self._buffer)
            except CipherError as e:
                logger.error("Failed to decrypt model %s: %s", path, e)
                return LoadResult(error=DecryptionFailed(path, e))
            logger.info("Decrypted model %s (%d bytes)", path, len(self._buffer))
            return self._parse(path)

    def load_model(self, data) -> LoadResult:
        """Parse plaintext model bytes already in memory with the same deserializer."""
        with self._lock:
            self._reset_buffer()
            self._buffer += data
            return self._parse("<memory>")
