"""Named lamp palettes and the celebratory event mapping."""

from __future__ import annotations

from enum import StrEnum

from loguru import logger

from streamlights.config.schema import PalettesConfig
from streamlights.lamps.color import RGBColor


class EventCategory(StrEnum):
    """Events that play a palette on every lamp."""

    SUBSCRIPTION = "subscription"
    GIFTED_SUBSCRIPTION = "gifted_subscription"
    RESUBSCRIPTION = "resubscription"
    CHEER = "cheer"


class PaletteTable:
    """Palette name → color sequence, plus the category → palette map."""

    def __init__(
        self,
        palettes: dict[str, list[str]],
        *,
        events: dict[str, str] | None = None,
        fallback: str = "default",
    ) -> None:
        self._palettes: dict[str, tuple[RGBColor, ...]] = {}
        for name, codes in palettes.items():
            colors = _parse_colors(name, codes)
            if colors:
                self._palettes[_key(name)] = colors
        self._events = {_key(k): _key(v) for k, v in (events or {}).items()}
        self.fallback = _key(fallback)
        if self.fallback not in self._palettes:
            logger.warning(f"Fallback palette '{fallback}' is not defined, using white")
            self._palettes[self.fallback] = (RGBColor(255, 255, 255),)

    @classmethod
    def from_config(cls, config: PalettesConfig) -> "PaletteTable":
        return cls(config.table, events=config.events, fallback=config.fallback)

    def names(self) -> list[str]:
        return sorted(self._palettes)

    def get(self, name: str) -> tuple[RGBColor, ...] | None:
        return self._palettes.get(_key(name))

    def for_category(self, category: EventCategory | str) -> tuple[str, tuple[RGBColor, ...]]:
        """Palette name and colors for an event category; unmapped categories use the fallback."""
        name = self._events.get(_key(category), self.fallback)
        colors = self._palettes.get(name)
        if colors is None:
            logger.warning(f"Palette '{name}' for {category} is not defined, using '{self.fallback}'")
            return self.fallback, self._palettes[self.fallback]
        return name, colors

    def resolve(self, name: str) -> tuple[str, tuple[RGBColor, ...], bool]:
        """(palette name, colors, found); unknown names resolve to the fallback."""
        colors = self.get(name)
        if colors is not None:
            return _key(name), colors, True
        return self.fallback, self._palettes[self.fallback], False


def _key(name: object) -> str:
    return str(name or "").strip().lower()


def _parse_colors(name: str, codes: list[str]) -> tuple[RGBColor, ...]:
    colors: list[RGBColor] = []
    for code in codes or []:
        try:
            colors.append(RGBColor.from_hex(str(code)))
        except ValueError:
            logger.warning(f"Ignoring invalid color '{code}' in palette '{name}'")
    return tuple(colors)
