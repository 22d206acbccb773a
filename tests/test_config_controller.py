"""Tests for configuration loading and settings writing."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from config.controller import ConfigController, deep_merge, set_value_by_path
from config.settings import write_settings


def _reset_singletons() -> None:
    ConfigController._instance = None


@pytest.fixture(autouse=True)
def _isolated_singleton():
    _reset_singletons()
    yield
    _reset_singletons()


def test_context_files_override_defaults(tmp_path: Path, monkeypatch) -> None:
    config_dir = tmp_path / "config"
    (config_dir / "Production").mkdir(parents=True)
    (config_dir / "default.yaml").write_text(
        "imaging:\n  driver: null\n  enabled_drivers: {}\nstorage:\n  db_path: ./var/cms.db\n",
        encoding="utf-8",
    )
    (config_dir / "Production" / "a.yaml").write_text("imaging:\n  driver: Gd\n", encoding="utf-8")
    (config_dir / "Production" / "b.yaml").write_text("imaging:\n  driver: Vips\n", encoding="utf-8")
    (config_dir / "override.yaml").write_text("storage:\n  db_path: /tmp/cms.db\n", encoding="utf-8")
    monkeypatch.setenv("CMS_SETUP_CONTEXT", "Production")

    controller = ConfigController.configure(config_dir)

    assert ConfigController.get_instance() is controller
    assert controller.get_value("imaging.driver") == "Vips"
    assert controller.get_value("imaging.enabled_drivers") == {}
    assert controller.get_value("storage.db_path") == "/tmp/cms.db"
    assert controller.get_value("imaging.missing", "fallback") == "fallback"
    assert controller.settings_file("x.yaml") == config_dir / "Production" / "x.yaml"


def test_default_context(tmp_path: Path, monkeypatch) -> None:
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    (config_dir / "default.yaml").write_text("{}\n", encoding="utf-8")
    monkeypatch.delenv("CMS_SETUP_CONTEXT", raising=False)
    monkeypatch.chdir(tmp_path)

    controller = ConfigController.get_instance()

    assert controller.context == "Development"
    assert controller.get_config() == {}


def test_second_instance_is_rejected(tmp_path: Path) -> None:
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    (config_dir / "default.yaml").write_text("{}\n", encoding="utf-8")
    ConfigController.configure(config_dir)

    with pytest.raises(RuntimeError):
        ConfigController(config_dir=config_dir)


def test_refresh_picks_up_written_settings(tmp_path: Path, monkeypatch) -> None:
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    (config_dir / "default.yaml").write_text("imaging:\n  driver: null\n", encoding="utf-8")
    monkeypatch.setenv("CMS_SETUP_CONTEXT", "Development")
    controller = ConfigController.configure(config_dir)

    write_settings(controller.settings_file("settings.imagehandling.yaml"), "imaging.driver", "Gd")
    controller.refresh()

    assert controller.get_value("imaging.driver") == "Gd"


def test_merge_helpers() -> None:
    base = {"imaging": {"driver": "Gd", "enabled_drivers": {"Gd": True}}}

    merged = set_value_by_path(base, "imaging.enabled_drivers.Vips", True)

    assert merged["imaging"]["enabled_drivers"] == {"Gd": True, "Vips": True}
    assert base["imaging"]["enabled_drivers"] == {"Gd": True}
    assert deep_merge({"a": {"b": 1}}, {"a": 2}) == {"a": 2}


def test_write_settings_merges_and_returns_fragment(tmp_path: Path) -> None:
    settings_file = tmp_path / "Development" / "settings.imagehandling.yaml"
    settings_file.parent.mkdir()
    settings_file.write_text("imaging:\n  enabled_drivers:\n    Gd: true\nother: 1\n", encoding="utf-8")

    fragment = write_settings(settings_file, "imaging", {"driver": "Vips"})

    assert yaml.safe_load(fragment) == {"imaging": {"driver": "Vips"}}
    assert yaml.safe_load(settings_file.read_text(encoding="utf-8")) == {
        "imaging": {"enabled_drivers": {"Gd": True}, "driver": "Vips"},
        "other": 1,
    }


def test_write_settings_creates_missing_file(tmp_path: Path) -> None:
    settings_file = tmp_path / "nested" / "settings.yaml"

    write_settings(settings_file, "imaging.driver", "Imagick")

    assert yaml.safe_load(settings_file.read_text(encoding="utf-8")) == {"imaging": {"driver": "Imagick"}}
