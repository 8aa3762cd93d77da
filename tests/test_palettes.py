from __future__ import annotations

from streamlights.config.schema import PalettesConfig
from streamlights.lamps import RGBColor
from streamlights.router import EventCategory, PaletteTable


def test_palette_table_maps_categories_from_config() -> None:
    table = PaletteTable.from_config(PalettesConfig())

    name, colors = table.for_category(EventCategory.CHEER)

    assert name == "cheer"
    assert colors[0] == RGBColor(255, 0, 0)
    assert len(colors) == 6


def test_palette_table_unmapped_category_uses_fallback() -> None:
    table = PaletteTable(
        {"default": ["FFFFFF"], "party": ["FF0000", "00FF00"]},
        events={"cheer": "party", "subscription": "missing"},
    )

    assert table.for_category("cheer")[0] == "party"
    assert table.for_category("subscription") == ("default", (RGBColor(255, 255, 255),))
    assert table.for_category("resubscription")[0] == "default"


def test_palette_table_resolve_is_case_insensitive() -> None:
    table = PaletteTable({"default": ["000000"], "Party": ["FF0000"]})

    assert table.resolve("PARTY") == ("party", (RGBColor(255, 0, 0),), True)
    assert table.resolve("nope") == ("default", (RGBColor(0, 0, 0),), False)


def test_palette_table_drops_invalid_colors_and_adds_missing_fallback() -> None:
    table = PaletteTable({"odd": ["FF0000", "nothex"]}, fallback="default")

    assert table.get("odd") == (RGBColor(255, 0, 0),)
    assert table.get("default") == (RGBColor(255, 255, 255),)
    assert table.names() == ["default", "odd"]


def test_default_config_maps_exactly_the_event_categories() -> None:
    config = PalettesConfig()
    table = PaletteTable.from_config(config)

    assert set(config.events) == {category.value for category in EventCategory}
    for category in EventCategory:
        name, _ = table.for_category(category)
        assert name == config.events[category.value]
