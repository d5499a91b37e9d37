"""Tests for projkit.yaml loading and defaults."""

from __future__ import annotations

from pathlib import Path

from projkit_core.interop.models import Manager
from projkit_core.settings import (
    DEFAULT_SETTINGS,
    DestroySettings,
    ProjectSettings,
    load_settings,
    save_settings,
)


def test_missing_file_returns_defaults(tmp_path: Path) -> None:
    settings = load_settings(tmp_path)
    assert settings == DEFAULT_SETTINGS
    assert settings.destroy == DestroySettings(intensities=("maxim",), targets=("dist/", "out/"))
    assert settings.env_override is None
    assert not settings.ignored


def test_partial_file_is_merged_onto_defaults(tmp_path: Path) -> None:
    (tmp_path / "projkit.yaml").write_text(
        "protection: [updater, linter]\n"
        "lint_script: lint:fix\n"
        "env_override: pnpm\n"
        "destroy:\n  targets: [build/]\n"
    )
    settings = load_settings(tmp_path)
    assert settings.protection == ("updater", "linter")
    assert settings.is_protected("updater")
    assert not settings.is_protected("cleaner")
    assert settings.lint_script == "lint:fix"
    assert settings.env_override is Manager.PNPM
    assert settings.destroy.targets == ("build/",)
    assert settings.destroy.intensities == ("maxim",)
    assert settings.commit_actions is False


def test_star_protection_ignores_project(tmp_path: Path) -> None:
    (tmp_path / "projkit.yml").write_text('protection: "*"\n')
    settings = load_settings(tmp_path)
    assert settings.ignored
    assert settings.is_protected("cleaner")


def test_invalid_yaml_falls_back_to_defaults(tmp_path: Path) -> None:
    (tmp_path / "projkit.yaml").write_text("protection: [unclosed\n")
    assert load_settings(tmp_path) == DEFAULT_SETTINGS


def test_non_mapping_document_falls_back_to_defaults(tmp_path: Path) -> None:
    (tmp_path / "projkit.yaml").write_text("- just\n- a list\n")
    assert load_settings(tmp_path) == DEFAULT_SETTINGS


def test_invalid_values_are_replaced_by_defaults() -> None:
    settings = ProjectSettings.from_dict(
        {
            "commit_actions": "yes",
            "env_override": "maven",
            "release_cmd": False,
            "protection": ["updater", "nonsense"],
        }
    )
    assert settings.commit_actions is False
    assert settings.env_override is None
    assert settings.release_cmd is None
    assert settings.protection == ("updater",)


def test_save_round_trip(tmp_path: Path) -> None:
    settings = ProjectSettings(protection=("cleaner",), build_cmd="make", env_override=Manager.CARGO)
    path = save_settings(tmp_path, settings)
    assert path.name == "projkit.yaml"
    assert load_settings(tmp_path) == settings
