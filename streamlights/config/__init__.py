"""Configuration module for streamlights."""

from streamlights.config.loader import get_config_path, load_config, save_config
from streamlights.config.schema import Config
from streamlights.config.store import SENSITIVE_KEYS, ConfigStore

__all__ = ["Config", "ConfigStore", "SENSITIVE_KEYS", "load_config", "save_config", "get_config_path"]
