"""Device-native RGB color value."""

from __future__ import annotations

import random
import re
from dataclasses import dataclass

_HEX_RE = re.compile(r"^#?([0-9a-fA-F]{6})$")


@dataclass(frozen=True, slots=True)
class RGBColor:
    """8-bit RGB color accepted by every lamp port."""

    r: int
    g: int
    b: int

    def __post_init__(self) -> None:
        for channel in (self.r, self.g, self.b):
            if not 0 <= int(channel) <= 255:
                raise ValueError(f"color channel out of range: {channel}")

    @classmethod
    def from_hex(cls, value: str) -> "RGBColor":
        match = _HEX_RE.match(str(value or "").strip())
        if not match:
            raise ValueError(f"invalid hex color: {value!r}")
        code = match.group(1)
        return cls(int(code[0:2], 16), int(code[2:4], 16), int(code[4:6], 16))

    @classmethod
    def random(cls, rng: random.Random | None = None) -> "RGBColor":
        source = rng or random
        return cls(source.randint(0, 255), source.randint(0, 255), source.randint(0, 255))

    def to_hex(self) -> str:
        return f"{self.r:02X}{self.g:02X}{self.b:02X}"

    def to_xy(self) -> tuple[float, float, float]:
        """CIE 1931 xy chromaticity plus brightness (0..1) for Hue lights."""
        red, green, blue = (_gamma(c / 255.0) for c in (self.r, self.g, self.b))
        x = red * 0.664511 + green * 0.154324 + blue * 0.162028
        y = red * 0.283881 + green * 0.668433 + blue * 0.047685
        z = red * 0.000088 + green * 0.072310 + blue * 0.986039
        total = x + y + z
        if total <= 0:
            return 0.3127, 0.3290, 0.0
        return round(x / total, 4), round(y / total, 4), round(min(1.0, y), 4)

    def __str__(self) -> str:
        return self.to_hex()


def _gamma(value: float) -> float:
    if value > 0.04045:
        return ((value + 0.055) / 1.055) ** 2.4
    return value / 12.92
