"""Convenience entry point to run the ModelVault encryption tool.

Allows encrypting a model with `python main.py model.tflite` from the project root.
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the src/ directory is on sys.path so `import modelvault` works
ROOT = Path(__file__).resolve().parent
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from modelvault.frontend.cli.encrypt import main


if __name__ == "__main__":
    sys.exit(main())
