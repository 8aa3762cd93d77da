import json

import pytest
from typer.testing import CliRunner

from streamlights.cli.commands import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def _data_dir(tmp_path, monkeypatch):  # type: ignore[no-untyped-def]
    monkeypatch.setenv("STREAMLIGHTS_DATA_DIR", str(tmp_path / "data"))


def test_version_option() -> None:
    result = runner.invoke(app, ["--version"])

    assert result.exit_code == 0
    assert "streamlights v" in result.stdout


def test_config_set_then_show_masks_secrets(tmp_path) -> None:
    settings = tmp_path / "settings.json"

    set_result = runner.invoke(app, ["config", "set", "AccessToken", "abc", "--settings", str(settings)])
    assert set_result.exit_code == 0
    assert json.loads(settings.read_text())["AccessToken"] == "abc"

    shown = runner.invoke(app, ["config", "show", "--settings", str(settings)])
    assert shown.exit_code == 0
    assert "AccessToken" in shown.stdout
    assert "abc" not in shown.stdout
    assert "**********" in shown.stdout

    unmasked = runner.invoke(app, ["config", "show", "--no-mask", "--settings", str(settings)])
    assert "abc" in unmasked.stdout


def test_effects_test_runs_palette_in_memory(tmp_path) -> None:
    settings = tmp_path / "settings.json"

    result = runner.invoke(
        app,
        ["effects", "test", "cheer", "--duration-ms", "10", "--settings", str(settings)],
    )

    assert result.exit_code == 0
    assert "Effect finished" in result.stdout


def test_effects_test_unknown_palette_fails(tmp_path) -> None:
    result = runner.invoke(
        app,
        ["effects", "test", "disco", "--settings", str(tmp_path / "settings.json")],
    )

    assert result.exit_code == 1
    assert "Unknown palette" in result.stdout
