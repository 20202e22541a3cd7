"""
Encrypt a serialized model file with AES-256-CBC.

Usage:
    modelvault-encrypt model.tflite
    modelvault-encrypt model.tflite --key <64 hex chars> --iv <32 hex chars>
    modelvault-encrypt model.tflite --show-key

The output path is the input with its extension replaced by the encrypted
suffix (``model.tflite`` -> ``model.enc``). A fresh random key/IV is generated
per run unless one is supplied. The tool never stores the key: pass
``--show-key`` to print it, and keep it somewhere safe, or the output cannot
be decrypted.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from modelvault.core.exceptions import ModelVaultError
from .context import build_context, output_path_for
from .logging_config import configure_logging, parse_level

logger = logging.getLogger(__name__)


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="modelvault-encrypt",
        description="Encrypt a model file with AES-256-CBC for protected loading.",
    )
    parser.add_argument("model", help="Path of the plaintext model file to encrypt")
    parser.add_argument("--key", default=None, help="Hex-encoded 32-byte key (requires --iv)")
    parser.add_argument("--iv", default=None, help="Hex-encoded 16-byte IV (requires --key)")
    parser.add_argument(
        "--suffix",
        default=None,
        help="Encrypted file suffix (default: $MODELVAULT_SUFFIX or .enc)",
    )
    parser.add_argument(
        "--chunk-size",
        type=int,
        default=None,
        help="Stream chunk size in bytes (default: $MODELVAULT_CHUNK_SIZE or 4096)",
    )
    parser.add_argument(
        "--show-key",
        action="store_true",
        help="Print the key and IV in hex after encrypting",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = _build_arg_parser()
    args = parser.parse_args(argv)

    if (args.key is None) != (args.iv is None):
        parser.error("--key and --iv must be given together")

    try:
        ctx = build_context(
            key_hex=args.key,
            iv_hex=args.iv,
            suffix=args.suffix,
            chunk_size=args.chunk_size,
            log_level="DEBUG" if args.verbose else None,
        )
        configure_logging(parse_level(ctx.log_level))
    except (ModelVaultError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    encrypted = output_path_for(args.model, ctx.suffix)
    if encrypted.resolve() == Path(args.model).resolve():
        print(f"Error: output path {encrypted} would overwrite the input", file=sys.stderr)
        return 1

    try:
        ctx.engine.encrypt_file(args.model, encrypted)
    except ModelVaultError as e:
        logger.debug("encryption failed", exc_info=True)
        print(f"Encryption failed! {e}", file=sys.stderr)
        return 1

    material = ctx.engine.key_material
    print("Encryption successful!")
    print(f"Encrypted model saved as: {encrypted}")
    print(f"Key fingerprint: {material.fingerprint()}")
    if args.show_key:
        key_hex, iv_hex = material.hex()
        print(f"Key: {key_hex}")
        print(f"IV:  {iv_hex}")
    elif ctx.generated_key:
        print(
            "Warning: the generated key was not stored; rerun with --show-key "
            "or supply --key/--iv to be able to decrypt this file.",
            file=sys.stderr,
        )
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry
    sys.exit(main())
