"""Load and save the streamlights runtime config file."""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any

from loguru import logger

from streamlights.config.schema import Config
from streamlights.utils.helpers import get_data_path


def get_config_path() -> Path:
    """Default location of config.json."""
    return get_data_path() / "config.json"


def load_config(config_path: Path | None = None) -> Config:
    """
    Load configuration from file, falling back to defaults.

    Keys may be camelCase or snake_case. Nested dict values that are
    user data (palette tables, reward titles, lamp names) keep their keys.
    """
    path = (config_path or get_config_path()).expanduser()
    if path.exists():
        try:
            with path.open(encoding="utf-8") as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise ValueError(f"{path} must be a JSON object")
            return Config.model_validate(convert_keys(data))
        except (json.JSONDecodeError, ValueError) as e:
            logger.warning(f"Failed to load config from {path}: {e}")
            logger.warning("Using default configuration.")
    return Config()


def save_config(config: Config, config_path: Path | None = None) -> Path:
    """Write configuration as camelCase JSON."""
    path = (config_path or get_config_path()).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    data = convert_to_camel(config.model_dump())
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
        f.write("\n")
    return path


# Dict-valued fields whose keys are user data, not schema field names.
_PRESERVE_KEYS = {"table", "events", "reward_lamps", "lamp_names"}


def convert_keys(data: Any, *, _parent: str = "") -> Any:
    """Convert camelCase keys to snake_case."""
    if isinstance(data, dict):
        if _parent in _PRESERVE_KEYS:
            return dict(data)
        out: dict[str, Any] = {}
        for key, value in data.items():
            snake = camel_to_snake(str(key))
            out[snake] = convert_keys(value, _parent=snake)
        return out
    if isinstance(data, list):
        return [convert_keys(item) for item in data]
    return data


def convert_to_camel(data: Any, *, _parent: str = "") -> Any:
    """Convert snake_case keys to camelCase."""
    if isinstance(data, dict):
        if _parent in _PRESERVE_KEYS:
            return dict(data)
        return {
            snake_to_camel(str(key)): convert_to_camel(value, _parent=str(key))
            for key, value in data.items()
        }
    if isinstance(data, list):
        return [convert_to_camel(item) for item in data]
    return data


def camel_to_snake(name: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


def snake_to_camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)
