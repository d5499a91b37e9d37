"""Parsers turning native manifest text into typed manifest records."""

from __future__ import annotations

import json
import logging
import re
import tomllib
from typing import Any, Mapping

from projkit_core.errors import UnparsableManifestError

from . import jsonc
from .models import (
    CargoManifest,
    DenoManifest,
    GoManifest,
    GoRequirement,
    NodeManifest,
)

logger = logging.getLogger(__name__)

__all__ = [
    "parse_node",
    "parse_deno",
    "parse_cargo",
    "parse_golang",
    "parse_block",
    "parse_deno_specifier",
    "DENO_MISSING_NAME",
]

DENO_MISSING_NAME = "__ERROR_NOT_PROVIDED"
DEFAULT_JS_VERSION = "0.0.0"

_DENO_SPECIFIER = re.compile(
    r"^(?P<source>npm|jsr):"
    r"(?P<package>(?:@[\w\-.]+/)?[\w\-.]+)"
    r"@(?P<version>[~^<>=]*\d+\.\d+\.\d+[\w.\-+]*)$"
)
_GO_MODULE = re.compile(r"^module\s+(?P<module>\S+)")
_GO_DIRECTIVE = re.compile(r"^go\s+(?P<version>\d+\.\d+(?:\.\d+)?)")


def _load_json_object(text: str, label: str) -> dict[str, Any]:
    try:
        document = jsonc.loads(text)
    except json.JSONDecodeError as exc:
        raise UnparsableManifestError(f"{label} is not valid JSON: {exc}") from exc
    if not isinstance(document, dict):
        raise UnparsableManifestError(f"{label} must contain a JSON object")
    return document


def _string_map(value: Any) -> dict[str, str]:
    if not isinstance(value, Mapping):
        return {}
    return {str(key): item for key, item in value.items() if isinstance(item, str)}


def _string_list(value: Any) -> tuple[str, ...]:
    if not isinstance(value, list):
        return ()
    return tuple(item for item in value if isinstance(item, str))


# ---- node / bun ----


def parse_node(text: str) -> NodeManifest:
    """Parse a ``package.json`` document (comments and trailing commas tolerated)."""

    document = _load_json_object(text, "package.json")
    name = document.get("name")
    if not isinstance(name, str) or not name.strip():
        raise UnparsableManifestError("package.json does not declare a name", field="name")
    version = document.get("version")
    if not isinstance(version, str) or not version.strip():
        version = DEFAULT_JS_VERSION

    workspaces = document.get("workspaces")
    if isinstance(workspaces, Mapping):
        workspaces = workspaces.get("packages")

    return NodeManifest(
        name=name,
        version=version,
        dependencies=_string_map(document.get("dependencies")),
        dev_dependencies=_string_map(document.get("devDependencies")),
        peer_dependencies=_string_map(document.get("peerDependencies")),
        workspaces=_string_list(workspaces),
        scripts=_string_map(document.get("scripts")),
        raw=document,
    )


# ---- deno ----


def parse_deno_specifier(specifier: str) -> tuple[str, str, str] | None:
    """Split ``npm:chalk@5.0.0`` / ``jsr:@std/fs@^1.0.10`` into (source, package, version)."""

    match = _DENO_SPECIFIER.match(specifier.strip())
    if match is None:
        return None
    return match.group("source"), match.group("package"), match.group("version")


def parse_deno(text: str) -> DenoManifest:
    document = _load_json_object(text, "deno.json")
    name = document.get("name")
    version = document.get("version")
    return DenoManifest(
        name=name if isinstance(name, str) and name.strip() else DENO_MISSING_NAME,
        version=version if isinstance(version, str) and version.strip() else DEFAULT_JS_VERSION,
        imports=_string_map(document.get("imports")),
        workspace=_string_list(document.get("workspace")),
        tasks=_string_map(document.get("tasks")),
        raw=document,
    )


# ---- cargo ----


def _dependency_table(value: Any) -> dict[str, Any]:
    if not isinstance(value, Mapping):
        return {}
    kept: dict[str, Any] = {}
    for name, spec in value.items():
        if isinstance(spec, (str, Mapping)):
            kept[str(name)] = spec
        else:
            logger.debug("dropping malformed cargo dependency %s=%r", name, spec)
    return kept


def parse_cargo(text: str) -> CargoManifest:
    try:
        document = tomllib.loads(text)
    except tomllib.TOMLDecodeError as exc:
        raise UnparsableManifestError(f"Cargo.toml is not valid TOML: {exc}") from exc

    package = document.get("package")
    if not isinstance(package, dict):
        raise UnparsableManifestError("Cargo.toml has no [package] table")
    name = package.get("name")
    if not (isinstance(name, str) and name.strip()) and not isinstance(name, dict):
        raise UnparsableManifestError("Cargo.toml [package] does not declare a name", field="name")

    workspace = document.get("workspace")
    return CargoManifest(
        package=package,
        dependencies=_dependency_table(document.get("dependencies")),
        dev_dependencies=_dependency_table(document.get("dev-dependencies")),
        build_dependencies=_dependency_table(document.get("build-dependencies")),
        workspace=workspace if isinstance(workspace, dict) else {},
        raw=document,
    )


# ---- go ----


def _strip_line_comment(line: str) -> str:
    if line.lstrip().startswith("//"):
        return ""
    return line.strip()


def parse_block(text: str, keyword: str) -> list[list[str]]:
    """Collect the entries of every ``keyword ( ... )`` block and ``keyword x y`` line.

    Used for ``require`` in ``go.mod`` and ``use`` in ``go.work``. Each entry is
    returned as its whitespace-separated tokens, trailing comments included.
    """

    entries: list[list[str]] = []
    inside = False
    for raw_line in text.splitlines():
        line = _strip_line_comment(raw_line)
        if not line:
            continue
        tokens = line.split()
        if inside:
            if tokens[0] == ")":
                inside = False
                continue
            entries.append(tokens)
            continue
        if tokens[0] != keyword:
            continue
        rest = tokens[1:]
        if rest and rest[0] == "(":
            inside = True
            # "require ( foo v1 )" on one line
            inline = rest[1:]
            if inline and inline[-1] == ")":
                inside = False
                inline = inline[:-1]
            if inline:
                entries.append(inline)
            continue
        if rest:
            entries.append(rest)
    return entries


def _is_indirect(trailing: list[str]) -> bool:
    if not trailing or not trailing[0].startswith("//"):
        return False
    comment = " ".join(trailing)[2:].strip()
    first = comment.split(" ", 1)[0].rstrip(";")
    return first == "indirect"


def parse_golang(text: str) -> GoManifest:
    module: str | None = None
    go_version: str | None = None
    for raw_line in text.splitlines():
        line = _strip_line_comment(raw_line)
        if module is None:
            match = _GO_MODULE.match(line)
            if match:
                module = match.group("module").strip('"')
                continue
        if go_version is None:
            match = _GO_DIRECTIVE.match(line)
            if match:
                go_version = match.group("version")

    if not module:
        raise UnparsableManifestError("go.mod has no module directive", field="name")
    if not go_version:
        raise UnparsableManifestError("go.mod has no go directive")

    requires: dict[str, GoRequirement] = {}
    for tokens in parse_block(text, "require"):
        if len(tokens) < 2 or tokens[0].startswith("//"):
            logger.debug("skipping malformed require entry %r", tokens)
            continue
        path, version, *trailing = tokens
        requires.setdefault(path, GoRequirement(version=version, indirect=_is_indirect(trailing)))

    return GoManifest(module=module, go_version=go_version, requires=requires)
