"""Configuration schema using Pydantic."""

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings

EVENTSUB_URL = "wss://eventsub.wss.twitch.tv/ws"
EVENTSUB_DEV_URL = "ws://127.0.0.1:8080/ws"


def _default_event_types() -> list[str]:
    return [
        "channel.channel_points_custom_reward_redemption.add",
        "channel.subscribe",
        "channel.subscription.gift",
        "channel.subscription.message",
        "channel.cheer",
        "stream.online",
        "stream.offline",
    ]


def _default_reward_lamps() -> dict[str, str]:
    return {
        "Change left lamp color": "left",
        "Change right lamp color": "right",
    }


def _default_palettes() -> dict[str, list[str]]:
    return {
        "default": ["FFFFFF", "FFB347", "FFFFFF"],
        "subscription": ["9146FF", "FF00FF", "00FFFF", "9146FF"],
        "giftedsubscription": ["FFD700", "FF69B4", "FFD700", "FF1493"],
        "resubscription": ["00FF7F", "9146FF", "00FF7F"],
        "cheer": ["FF0000", "FFA500", "FFFF00", "00FF00", "0000FF", "8B00FF"],
        "follow": ["00BFFF", "FFFFFF", "00BFFF"],
        "raid": ["FF4500", "FF0000", "FF4500", "FFD700"],
    }


def _default_event_palettes() -> dict[str, str]:
    return {
        "subscription": "subscription",
        "gifted_subscription": "giftedsubscription",
        "resubscription": "resubscription",
        "cheer": "cheer",
    }


class EventSubConfig(BaseModel):
    """EventSub websocket endpoint and subscription settings."""
    url: str = EVENTSUB_URL
    dev_url: str = EVENTSUB_DEV_URL
    dev_mode: bool = False  # Local test server, chat commands and verbose payload logs
    event_types: list[str] = Field(default_factory=_default_event_types)
    subscription_version: str = "1"
    receive_buffer_size: int = 1024
    open_timeout_seconds: float = 10.0

    def default_url(self) -> str:
        return self.dev_url if self.dev_mode else self.url


class ReconnectConfig(BaseModel):
    """Failure-triggered reconnect policy."""
    max_attempts: int = 5
    delay_seconds: float = 2.5


class TwitchApiConfig(BaseModel):
    """Twitch REST endpoints."""
    helix_base_url: str = "https://api.twitch.tv/helix"
    oauth_base_url: str = "https://id.twitch.tv/oauth2"
    timeout_seconds: float = 10.0


class QueueConfig(BaseModel):
    """Lamp command queue settings."""
    capacity: int = 100


class HueBridgeConfig(BaseModel):
    """Hue bridge connection used by the lamp port."""
    enabled: bool = True
    verify: str = ""  # CA bundle path; empty disables TLS verification for self-signed bridges
    timeout_seconds: float = 5.0
    lamp_names: dict[str, str] = Field(
        default_factory=lambda: {
            "left": "room_streaming_left_lamp",
            "right": "room_streaming_right_lamp",
        }
    )


class LampsConfig(BaseModel):
    """Lamp routing configuration."""
    reward_lamps: dict[str, str] = Field(default_factory=_default_reward_lamps)
    chat_lamp: str = "left"
    effect_duration_ms: int = 5000
    max_chat_command_chars: int = 30
    hue: HueBridgeConfig = Field(default_factory=HueBridgeConfig)


class PalettesConfig(BaseModel):
    """Palette table and celebratory event mapping."""
    table: dict[str, list[str]] = Field(default_factory=_default_palettes)
    events: dict[str, str] = Field(default_factory=_default_event_palettes)
    fallback: str = "default"


class PathsConfig(BaseModel):
    """Files backing the key/value settings and the color name table."""
    settings_file: str = "~/.streamlights/settings.json"
    dev_settings_file: str = "~/.streamlights/devmodesettings.json"
    colors_file: str = "~/.streamlights/colors.json"


class Config(BaseSettings):
    """Root configuration for streamlights."""
    eventsub: EventSubConfig = Field(default_factory=EventSubConfig)
    reconnect: ReconnectConfig = Field(default_factory=ReconnectConfig)
    twitch: TwitchApiConfig = Field(default_factory=TwitchApiConfig)
    queue: QueueConfig = Field(default_factory=QueueConfig)
    lamps: LampsConfig = Field(default_factory=LampsConfig)
    palettes: PalettesConfig = Field(default_factory=PalettesConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)

    @property
    def settings_path(self) -> Path:
        """Key/value settings file for the active mode."""
        raw = self.paths.dev_settings_file if self.eventsub.dev_mode else self.paths.settings_file
        return Path(raw).expanduser()

    @property
    def colors_path(self) -> Path:
        return Path(self.paths.colors_file).expanduser()

    model_config = ConfigDict(
        env_prefix="STREAMLIGHTS_",
        env_nested_delimiter="__"
    )
