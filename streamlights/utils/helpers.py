"""Utility functions for streamlights runtime paths and helpers."""

import os
import time
from pathlib import Path

DATA_DIR_NAME = ".streamlights"


def ensure_dir(path: Path) -> Path:
    """Ensure a directory exists, creating it if necessary."""
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_path() -> Path:
    """
    Get the runtime data directory.

    Priority:
    1. `STREAMLIGHTS_DATA_DIR` env override
    2. `~/.streamlights`
    """
    env_path = str(os.environ.get("STREAMLIGHTS_DATA_DIR") or "").strip()
    if env_path:
        return ensure_dir(Path(env_path).expanduser())
    return ensure_dir(Path.home() / DATA_DIR_NAME)


def now_ms() -> int:
    """Current timestamp in milliseconds."""
    return int(time.time() * 1000)


def mask_value(value: str, keep: int = 0) -> str:
    """Replace a secret with a fixed-width mask, optionally keeping a short prefix."""
    text = str(value or "")
    if not text:
        return ""
    prefix = text[:keep] if keep > 0 else ""
    return f"{prefix}{'*' * 10}"
