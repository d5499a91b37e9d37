"""Per-project options stored in ``projkit.yaml`` next to the manifest."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Mapping

import yaml

from .interop.generators import deep_merge
from .interop.models import Manager

logger = logging.getLogger(__name__)

SETTINGS_FILENAMES = ("projkit.yaml", "projkit.yml")

PROTECTABLE_FEATURES = ("updater", "cleaner", "linter", "prettifier", "destroyer")
PROTECT_ALL = "*"
PROTECT_NONE = "disabled"


@dataclass(frozen=True)
class DestroySettings:
    intensities: tuple[str, ...] = ("maxim",)
    targets: tuple[str, ...] = ("dist/", "out/")


@dataclass(frozen=True)
class ProjectSettings:
    """Per-project options read from ``projkit.yaml``; every key has a default."""

    protection: tuple[str, ...] = ()
    lint_script: str | None = None
    pretty_script: str | None = None
    destroy: DestroySettings = field(default_factory=DestroySettings)
    commit_actions: bool = False
    commit_message: str | None = None
    update_override: str | None = None
    release_always_dry: bool = False
    release_cmd: str | None = None
    launch_cmd: str | None = None
    build_cmd: str | None = None
    build_for_release: bool = False
    env_override: Manager | None = None

    @property
    def ignored(self) -> bool:
        """A project protected from every feature is skipped by bulk runs."""

        return PROTECT_ALL in self.protection

    def is_protected(self, feature: str) -> bool:
        return self.ignored or feature in self.protection

    def to_dict(self) -> dict[str, Any]:
        protection: Any = list(self.protection)
        if self.ignored:
            protection = PROTECT_ALL
        elif not self.protection:
            protection = PROTECT_NONE
        return {
            "protection": protection,
            "lint_script": self.lint_script,
            "pretty_script": self.pretty_script,
            "destroy": {
                "intensities": list(self.destroy.intensities),
                "targets": list(self.destroy.targets),
            },
            "commit_actions": self.commit_actions,
            "commit_message": self.commit_message,
            "update_override": self.update_override,
            "release_always_dry": self.release_always_dry,
            "release_cmd": self.release_cmd,
            "launch_cmd": self.launch_cmd,
            "build_cmd": self.build_cmd,
            "build_for_release": self.build_for_release,
            "env_override": self.env_override.value if self.env_override else None,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ProjectSettings":
        """Build settings from a mapping, falling back to defaults for invalid keys."""

        merged = deep_merge(DEFAULT_SETTINGS.to_dict(), data)
        settings = DEFAULT_SETTINGS
        updates: dict[str, Any] = {}

        updates["protection"] = _parse_protection(merged.get("protection"))
        for key in ("lint_script", "pretty_script", "commit_message", "update_override",
                    "release_cmd", "launch_cmd", "build_cmd"):
            updates[key] = _optional_str(key, merged.get(key))
        for key in ("commit_actions", "release_always_dry", "build_for_release"):
            value = merged.get(key)
            if isinstance(value, bool):
                updates[key] = value
            else:
                logger.warning("ignoring non-boolean value %r for %s", value, key)
        updates["destroy"] = _parse_destroy(merged.get("destroy"))
        updates["env_override"] = _parse_manager(merged.get("env_override"))
        return replace(settings, **updates)


DEFAULT_SETTINGS = ProjectSettings()


def _optional_str(key: str, value: Any) -> str | None:
    # YAML users write "false" to switch a command off
    if value is None or value is False:
        return None
    if isinstance(value, str) and value.strip():
        return value.strip()
    logger.warning("ignoring invalid value %r for %s", value, key)
    return None


def _parse_protection(value: Any) -> tuple[str, ...]:
    if value is None or value == PROTECT_NONE or value is False:
        return ()
    if value == PROTECT_ALL:
        return (PROTECT_ALL,)
    entries = [value] if isinstance(value, str) else value
    if not isinstance(entries, list):
        logger.warning("ignoring invalid protection value %r", value)
        return ()
    kept: list[str] = []
    for entry in entries:
        if entry == PROTECT_ALL:
            return (PROTECT_ALL,)
        if entry in PROTECTABLE_FEATURES and entry not in kept:
            kept.append(entry)
        else:
            logger.warning("ignoring unknown protected feature %r", entry)
    return tuple(kept)


def _parse_destroy(value: Any) -> DestroySettings:
    if not isinstance(value, Mapping):
        return DestroySettings()
    defaults = DestroySettings()
    intensities = value.get("intensities")
    targets = value.get("targets")
    return DestroySettings(
        intensities=tuple(str(item) for item in intensities)
        if isinstance(intensities, list)
        else defaults.intensities,
        targets=tuple(str(item) for item in targets) if isinstance(targets, list) else defaults.targets,
    )


def _parse_manager(value: Any) -> Manager | None:
    if value is None or value is False:
        return None
    if isinstance(value, str):
        try:
            return Manager.parse(value)
        except ValueError:
            pass
    logger.warning("ignoring invalid env_override %r", value)
    return None


def settings_path(root: Path) -> Path | None:
    for filename in SETTINGS_FILENAMES:
        candidate = root / filename
        if candidate.is_file():
            return candidate
    return None


def load_settings(root: Path) -> ProjectSettings:
    """Read ``projkit.yaml`` under ``root`` and merge it onto the defaults."""

    path = settings_path(Path(root))
    if path is None:
        return DEFAULT_SETTINGS
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as exc:
        logger.warning("unable to read %s, using defaults: %s", path, exc)
        return DEFAULT_SETTINGS
    if not isinstance(raw, Mapping):
        logger.warning("%s is not a mapping, using defaults", path)
        return DEFAULT_SETTINGS
    return ProjectSettings.from_dict(raw)


def save_settings(root: Path, settings: ProjectSettings) -> Path:
    path = settings_path(Path(root)) or Path(root) / SETTINGS_FILENAMES[0]
    path.write_text(yaml.safe_dump(settings.to_dict(), sort_keys=False), encoding="utf-8")
    return path
