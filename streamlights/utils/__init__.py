"""Utility helpers for streamlights."""

from streamlights.utils.helpers import ensure_dir, get_data_path, now_ms

__all__ = ["ensure_dir", "get_data_path", "now_ms"]
