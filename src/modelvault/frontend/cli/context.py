"""Small helper to build the runtime context for the ModelVault CLI."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional
import os

from modelvault.security.crypto import CHUNK_SIZE, StreamCipherEngine
from modelvault.security.keys import KeyMaterial

DEFAULT_SUFFIX = ".enc"


@dataclass
class CliContext:
    """Container for runtime objects the CLI needs."""

    engine: StreamCipherEngine
    suffix: str
    log_level: str
    generated_key: bool = False


def output_path_for(input_path: str | Path, suffix: str = DEFAULT_SUFFIX) -> Path:
    # model.tflite -> model.enc; a name without an extension just gains the suffix
    if not suffix.startswith("."):
        suffix = "." + suffix
    return Path(input_path).with_suffix(suffix)


def build_context(
    key_hex: Optional[str] = None,
    iv_hex: Optional[str] = None,
    suffix: Optional[str] = None,
    chunk_size: Optional[int] = None,
    log_level: Optional[str] = None,
) -> CliContext:
    """
    Build the engine and settings for one CLI invocation.

    Settings come from explicit arguments first, then environment variables:

    - ``MODELVAULT_SUFFIX``: encrypted-file suffix (default ``.enc``)
    - ``MODELVAULT_CHUNK_SIZE``: stream chunk size in bytes (default 4096)
    - ``MODELVAULT_LOG_LEVEL``: logging level name (default ``INFO``)

    Key material is taken from ``key_hex``/``iv_hex`` when both are given and
    freshly generated otherwise. It is never read from or written to disk.
    """
    if (key_hex is None) != (iv_hex is None):
        raise ValueError("--key and --iv must be given together")

    suffix = suffix or os.getenv("MODELVAULT_SUFFIX") or DEFAULT_SUFFIX
    if chunk_size is None:
        chunk_size = int(os.getenv("MODELVAULT_CHUNK_SIZE", str(CHUNK_SIZE)))
    log_level = log_level or os.getenv("MODELVAULT_LOG_LEVEL") or "INFO"

    if key_hex is not None:
        key_material = KeyMaterial.from_hex(key_hex, iv_hex)
        generated = False
    else:
        key_material = KeyMaterial.generate()
        generated = True

    engine = StreamCipherEngine(key_material, chunk_size=chunk_size)
    return CliContext(engine=engine, suffix=suffix, log_level=log_level, generated_key=generated)
