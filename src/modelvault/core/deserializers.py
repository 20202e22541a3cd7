"""Model deserializers accepted by ProtectedModelLoader.

A deserializer takes a read-only ``memoryview`` over the decrypted plaintext
and returns a model handle, or raises to signal a parse failure. The view is
released as soon as the deserializer returns, so anything it keeps must be
copied out first.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol


class Deserializer(Protocol):
    def __call__(self, data: memoryview) -> Any: ...


def raw_bytes(data: memoryview) -> bytes:
    # default: hand back an owned copy of the plaintext
    return data.tobytes()


@dataclass(frozen=True)
class ParsedModel:
    identifier: bytes
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


class FlatbufferIdentifier:
    """
    Minimal structural check for FlatBuffers model files.

    A FlatBuffers file starts with a 4-byte root table offset followed by a
    4-byte file identifier; TensorFlow Lite models use ``b"TFL3"``. This does
    not parse the schema, it only rejects plaintext that cannot be such a file
    (for instance the output of a wrong key that happened to pad correctly).
    """

    HEADER_SIZE = 8

    def __init__(self, identifier: bytes = b"TFL3"):
        if len(identifier) != 4:
            raise ValueError("FlatBuffers file identifiers are exactly 4 bytes")
        self.identifier = identifier

    def __call__(self, data: memoryview) -> ParsedModel:
        if len(data) < self.HEADER_SIZE:
            raise ValueError(f"model too small: {len(data)} bytes")
        found = data[4:8].tobytes()
        if found != self.identifier:
            raise ValueError(f"unexpected file identifier {found!r}, expected {self.identifier!r}")
        return ParsedModel(identifier=found, data=data.tobytes())
