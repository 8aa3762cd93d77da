from __future__ import annotations

import json
import random

import pytest

from streamlights.lamps import RGBColor
from streamlights.router import ColorResolver, ColorTable, clean_user_input, load_color_table


def test_clean_user_input_trims_lowers_and_drops_hash() -> None:
    assert clean_user_input("  #FF00FF ") == "ff00ff"
    assert clean_user_input("Hot#Pink") == "hotpink"
    assert clean_user_input("") == ""


def test_resolver_maps_known_names_and_hex_codes() -> None:
    resolver = ColorResolver()

    color, reply = resolver.resolve("red", "viewer")
    assert color == RGBColor(255, 0, 0)
    assert reply is None

    color, reply = resolver.resolve("ff00ff", "viewer")
    assert color == RGBColor(255, 0, 255)
    assert reply is None


def test_resolver_uses_last_six_hex_characters() -> None:
    color, reply = ColorResolver().resolve("please0000ff", "viewer")

    assert color == RGBColor(0, 0, 255)
    assert reply is None


def test_resolver_random_keyword_has_no_reply() -> None:
    resolver = ColorResolver(rng=random.Random(7))

    color, reply = resolver.resolve("random", "viewer")

    assert isinstance(color, RGBColor)
    assert reply is None


@pytest.mark.parametrize("value", ["", "blurple", "ff00f", "zzzzzz", "🙂"])
def test_resolver_is_total_and_replies_for_unsupported_input(value: str) -> None:
    color, reply = ColorResolver(rng=random.Random(1)).resolve(value, "viewer")

    assert isinstance(color, RGBColor)
    assert reply == (
        f"@viewer Unfortunately it appears that '{value}' is not currently supported, "
        "or an invalid hex code was provided. A color was chosen for you instead."
    )


def test_color_table_skips_invalid_entries() -> None:
    table = ColorTable({"Sunset Orange": "#FD5E53", "broken": "12345", "": "FFFFFF"})

    assert table.get("sunsetorange") == "FD5E53"
    assert table.get("broken") is None
    assert len(table) == 1


@pytest.mark.asyncio
async def test_load_color_table_overlays_file_entries(tmp_path) -> None:  # type: ignore[no-untyped-def]
    path = tmp_path / "colors.json"
    path.write_text(json.dumps({"red": "AA0000", "stream": "123abc"}), encoding="utf-8")

    table = await load_color_table(path)

    assert table.get("red") == "AA0000"
    assert table.get("stream") == "123ABC"
    assert table.get("blue") == "0000FF"


@pytest.mark.asyncio
async def test_load_color_table_without_file_uses_builtins(tmp_path) -> None:  # type: ignore[no-untyped-def]
    path = tmp_path / "missing.json"

    table = await load_color_table(path)

    assert table.get("twitch") == "9146FF"
    assert not path.exists()
