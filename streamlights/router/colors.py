"""Color name table and total resolution of viewer color input."""

from __future__ import annotations

import random
import re
from pathlib import Path
from typing import Mapping

from loguru import logger

from streamlights.config.store import ConfigStore
from streamlights.lamps.color import RGBColor

VALID_HEX_CODE = re.compile(r"([0-9a-fA-F]{6})$")

DEFAULT_COLOR_NAMES: dict[str, str] = {
    "red": "FF0000",
    "green": "00FF00",
    "blue": "0000FF",
    "yellow": "FFFF00",
    "orange": "FFA500",
    "purple": "800080",
    "pink": "FFC0CB",
    "hotpink": "FF69B4",
    "magenta": "FF00FF",
    "cyan": "00FFFF",
    "teal": "008080",
    "white": "FFFFFF",
    "warmwhite": "FFB347",
    "gold": "FFD700",
    "lime": "32CD32",
    "violet": "EE82EE",
    "indigo": "4B0082",
    "crimson": "DC143C",
    "turquoise": "40E0D0",
    "coral": "FF7F50",
    "salmon": "FA8072",
    "lavender": "E6E6FA",
    "navy": "000080",
    "skyblue": "87CEEB",
    "twitch": "9146FF",
}


def clean_user_input(user_input: str) -> str:
    """Trim, lower-case and drop '#' characters from viewer input."""
    text = str(user_input or "").strip().lower()
    return text.replace("#", "")


class ColorTable:
    """Case-insensitive color name to hex code lookup."""

    def __init__(self, colors: Mapping[str, str] | None = None) -> None:
        self._colors: dict[str, str] = {}
        source = DEFAULT_COLOR_NAMES if colors is None else colors
        for name, code in source.items():
            self.add(name, code)

    def add(self, name: str, code: str) -> bool:
        key = clean_user_input(name).replace(" ", "")
        value = str(code or "").strip().lstrip("#")
        if not key or not VALID_HEX_CODE.fullmatch(value):
            logger.debug(f"Ignoring invalid color table entry {name!r}={code!r}")
            return False
        self._colors[key] = value.upper()
        return True

    def get(self, name: str) -> str | None:
        return self._colors.get(clean_user_input(name).replace(" ", ""))

    def names(self) -> list[str]:
        return sorted(self._colors)

    def __len__(self) -> int:
        return len(self._colors)


class ColorResolver:
    """Turns any viewer string into a lamp color; never raises."""

    def __init__(self, table: ColorTable | None = None, *, rng: random.Random | None = None) -> None:
        self.table = table or ColorTable()
        self._rng = rng

    def random_color(self) -> RGBColor:
        return RGBColor.random(self._rng)

    def resolve(self, color: str, username: str = "") -> tuple[RGBColor, str | None]:
        """Map cleaned input to a color; unsupported input gets a random color and a chat reply."""
        text = str(color or "")
        if text == "random":
            return self.random_color(), None
        mapped = self.table.get(text) if text else None
        if mapped is not None:
            return RGBColor.from_hex(mapped), None
        match = VALID_HEX_CODE.search(text)
        if match:
            return RGBColor.from_hex(match.group(1)), None
        logger.info(f"Invalid color '{text}' from {username or 'unknown user'}, choosing a random color")
        return self.random_color(), invalid_color_message(username, text)


def invalid_color_message(username: str, invalid_color: str) -> str:
    return (
        f"@{username} Unfortunately it appears that '{invalid_color}' is not currently supported, "
        "or an invalid hex code was provided. A color was chosen for you instead."
    )


def invalid_effect_message(username: str, invalid_effect: str, available: list[str]) -> str:
    options = ", ".join(available) if available else "none"
    return (
        f"@{username} Unfortunately it appears that '{invalid_effect}' is not currently supported. "
        f"Available effects are: {options}."
    )


async def load_color_table(path: Path | str | None) -> ColorTable:
    """Built-in names overlaid with entries from a JSON `{name: hex}` file, when present."""
    table = ColorTable()
    if path is None or not Path(path).expanduser().exists():
        return table
    store = ConfigStore(path, create=False)
    loaded = 0
    for name, code in (await store.as_dict()).items():
        if table.add(name, code):
            loaded += 1
    logger.info(f"Loaded {loaded} color names from {store.path}")
    return table
