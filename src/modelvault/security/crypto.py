"""Chunked AES-256-CBC stream encryption and decryption.

Ciphertext format: raw AES-256-CBC output with PKCS#7 padding. There is no
header, magic number, embedded IV or length field, so the file length is always
``(len(plaintext) // 16 + 1) * 16`` and the key/IV must be supplied out of band.

There is no authentication tag. Wrong keys, wrong IVs and truncated files are
detected only through invalid padding (``PaddingError``); bit flips in earlier
blocks decrypt to corrupted plaintext without an error.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import BinaryIO, Optional

from modelvault.core.exceptions import IoReadError, IoWriteError
from .keys import KeyMaterial
from .session import BLOCK_SIZE, CipherSession, Direction

logger = logging.getLogger(__name__)

CHUNK_SIZE = 4096  # 4KB


def wipe_buffer(buf: bytearray) -> None:
    """Overwrite ``buf`` with zeros, then empty it."""
    buf[:] = bytes(len(buf))
    del buf[:]


def _read_chunk(source: BinaryIO, size: int) -> bytes:
    # a closed handle raises ValueError; treat it like any other read failure
    try:
        return source.read(size)
    except (OSError, ValueError) as e:
        raise IoReadError(f"failed to read source stream: {e}") from e


def _write_chunk(sink: BinaryIO, data: bytes) -> None:
    if not data:
        return
    try:
        sink.write(data)
    except (OSError, ValueError) as e:
        raise IoWriteError(f"failed to write sink stream: {e}") from e


class StreamCipherEngine:
    """
    Streaming AES-256-CBC engine.

    ``key_material`` is the default used when a call does not pass its own. It
    starts as the all-zero sentinel and must be replaced before any cipher
    operation. Assignment is not locked; callers that swap keys while loads
    are running must synchronize that themselves.

    ``encrypt_stream`` keeps no shared state and is safe to call from several
    threads at once.
    """

    def __init__(self, key_material: Optional[KeyMaterial] = None, chunk_size: int = CHUNK_SIZE):
        if chunk_size < BLOCK_SIZE:
            raise ValueError(f"chunk_size must be at least {BLOCK_SIZE} bytes, got {chunk_size}")
        self.chunk_size = chunk_size
        self.key_material = key_material if key_material is not None else KeyMaterial()

    def _resolve(self, key_material: Optional[KeyMaterial]) -> KeyMaterial:
        return key_material if key_material is not None else self.key_material

    # ------------------------------------------------------------------
    # Streams
    # ------------------------------------------------------------------

    def encrypt_stream(
        self, source: BinaryIO, sink: BinaryIO, key_material: Optional[KeyMaterial] = None
    ) -> int:
        """
        Encrypt ``source`` into ``sink`` chunk by chunk.

        Reads until an empty read; a short read is just the tail of the stream.
        Finalization always runs, so empty input still produces one full
        padding block. Returns the number of ciphertext bytes written.
        """
        written = 0
        with CipherSession(self._resolve(key_material), Direction.ENCRYPT) as session:
            while True:
                chunk = _read_chunk(source, self.chunk_size)
                if not chunk:
                    break
                out = session.update(chunk)
                _write_chunk(sink, out)
                written += len(out)
            tail = session.finalize()
            _write_chunk(sink, tail)
            written += len(tail)
        return written

    def decrypt_stream(
        self,
        source: BinaryIO,
        key_material: Optional[KeyMaterial] = None,
        into: Optional[bytearray] = None,
    ) -> bytearray:
        """
        Decrypt ``source`` into one contiguous buffer.

        If ``into`` is given it is cleared first and filled in place, so its
        previous contents never survive into this call. Plaintext is appended
        in file order. On any failure the buffer is wiped before the error
        propagates.
        """
        buf = into if into is not None else bytearray()
        del buf[:]
        try:
            with CipherSession(self._resolve(key_material), Direction.DECRYPT) as session:
                while True:
                    chunk = _read_chunk(source, self.chunk_size)
                    if not chunk:
                        break
                    buf += session.update(chunk)
                buf += session.finalize()
        except BaseException:
            wipe_buffer(buf)
            raise
        return buf

    # ------------------------------------------------------------------
    # Files
    # ------------------------------------------------------------------

    def encrypt_file(
        self, in_path: str | Path, out_path: str | Path, key_material: Optional[KeyMaterial] = None
    ) -> int:
        """Encrypt ``in_path`` to ``out_path``.

        The output file is always closed, even on a mid-stream failure; an
        incomplete output file is left on disk.
        """
        try:
            inf = open(in_path, "rb")
        except OSError as e:
            raise IoReadError(f"cannot open {in_path} for reading: {e}") from e
        with inf:
            try:
                outf = open(out_path, "wb")
            except OSError as e:
                raise IoWriteError(f"cannot open {out_path} for writing: {e}") from e
            with outf:
                written = self.encrypt_stream(inf, outf, key_material)
                try:
                    outf.flush()
                except OSError as e:
                    raise IoWriteError(f"failed to flush {out_path}: {e}") from e
        logger.info("Encrypted %s -> %s (%d bytes)", in_path, out_path, written)
        return written

    def decrypt_file(
        self,
        in_path: str | Path,
        key_material: Optional[KeyMaterial] = None,
        into: Optional[bytearray] = None,
    ) -> bytearray:
        """Decrypt ``in_path`` into memory. See :meth:`decrypt_stream`."""
        try:
            inf = open(in_path, "rb")
        except OSError as e:
            if into is not None:
                wipe_buffer(into)
            raise IoReadError(f"cannot open {in_path} for reading: {e}") from e
        with inf:
            buf = self.decrypt_stream(inf, key_material, into)
        logger.debug("Decrypted %s into memory (%d bytes)", in_path, len(buf))
        return buf
