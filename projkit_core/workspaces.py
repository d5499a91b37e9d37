"""Discover monorepo members declared by any of the supported workspace conventions."""

from __future__ import annotations

import json
import logging
import tomllib
from pathlib import Path
from typing import Any, Callable, Iterable

import yaml

from .fs import expand_member, read_text, unique_paths
from .interop import jsonc
from .interop.parsers import parse_block

logger = logging.getLogger(__name__)

__all__ = ["find_workspaces", "declared_members"]


def _as_entries(value: Any) -> list[str]:
    if isinstance(value, str):
        return [value]
    if isinstance(value, list):
        return [item for item in value if isinstance(item, str)]
    return []


def _from_package_json(text: str) -> list[str]:
    document = jsonc.loads(text)
    if not isinstance(document, dict):
        return []
    workspaces = document.get("workspaces")
    if isinstance(workspaces, dict):
        workspaces = workspaces.get("packages")
    return _as_entries(workspaces)


def _from_yaml_key(key: str) -> Callable[[str], list[str]]:
    def reader(text: str) -> list[str]:
        document = yaml.safe_load(text) or {}
        if not isinstance(document, dict):
            return []
        return _as_entries(document.get(key))

    return reader


def _from_bunfig(text: str) -> list[str]:
    document = tomllib.loads(text)
    return _as_entries(document.get("workspace"))


def _from_deno(text: str) -> list[str]:
    document = jsonc.loads(text)
    if not isinstance(document, dict):
        return []
    return _as_entries(document.get("workspace"))


def _from_cargo(text: str) -> list[str]:
    document = tomllib.loads(text)
    workspace = document.get("workspace")
    if not isinstance(workspace, dict):
        return []
    return _as_entries(workspace.get("members"))


def _from_go_work(text: str) -> list[str]:
    return [tokens[0] for tokens in parse_block(text, "use") if tokens]


_SOURCES: tuple[tuple[str, Callable[[str], list[str]]], ...] = (
    ("package.json", _from_package_json),
    ("pnpm-workspace.yaml", _from_yaml_key("packages")),
    (".yarnrc.yml", _from_yaml_key("workspaces")),
    ("bunfig.toml", _from_bunfig),
    ("deno.json", _from_deno),
    ("deno.jsonc", _from_deno),
    ("Cargo.toml", _from_cargo),
    ("go.work", _from_go_work),
)


def declared_members(root: Path) -> list[tuple[str, str]]:
    """Return ``(source file, entry)`` for every member declaration under ``root``."""

    declared: list[tuple[str, str]] = []
    for filename, reader in _SOURCES:
        path = root / filename
        if not path.is_file():
            continue
        text = read_text(path)
        if text is None:
            continue
        try:
            entries = reader(text)
        except (json.JSONDecodeError, yaml.YAMLError, tomllib.TOMLDecodeError) as exc:
            logger.debug("ignoring workspace declaration in %s: %s", path, exc)
            continue
        declared.extend((filename, entry) for entry in entries)
    return declared


def _expand(root: Path, entries: Iterable[str]) -> Iterable[Path]:
    for entry in entries:
        # pnpm and yarn allow "!pattern" exclusions; they never add members
        if entry.startswith("!"):
            continue
        yield from expand_member(root, entry)


def find_workspaces(root: Path) -> list[Path]:
    """List absolute member directories, first declaration wins on duplicates."""

    root = Path(root)
    members = _expand(root, (entry for _, entry in declared_members(root)))
    return [member for member in unique_paths(members) if member != root.resolve()]
