"""Regenerate native manifests from a CPF and serialize them to text."""

from __future__ import annotations

import copy
import json
import logging
from typing import Any, Callable, Mapping

import tomlkit

from projkit_core.errors import GenerationError

from .models import (
    CPF,
    NOT_APPLICABLE,
    SOURCE_GITHUB,
    SOURCE_GO,
    SOURCE_JSR,
    SOURCE_NPM,
    Dependency,
    Manager,
    Relationship,
)
from .normalize import (
    CARGO_GIT_PREFIX,
    CARGO_LOCAL_PREFIX,
    CARGO_TARBALL_PREFIX,
    CARGO_UNKNOWN_EDITION,
)

logger = logging.getLogger(__name__)

__all__ = [
    "deep_merge",
    "generate_node",
    "generate_deno",
    "generate_cargo",
    "generate_golang",
    "generate",
    "render_manifest",
    "manifest_filename",
]


def deep_merge(base: Mapping[str, Any], extra: Mapping[str, Any] | None) -> dict[str, Any]:
    """Return ``base`` with ``extra`` merged on top; nested mappings merge recursively."""

    merged: dict[str, Any] = copy.deepcopy(dict(base))
    if not extra:
        return merged
    for key, value in extra.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def _by_relationship(cpf: CPF, relationship: Relationship) -> list[Dependency]:
    return [dep for dep in cpf.dependencies if dep.relationship is relationship]


def _version_map(dependencies: list[Dependency]) -> dict[str, str]:
    return {dep.name: dep.version for dep in dependencies}


# ---- javascript ----


def generate_node(cpf: CPF, extra: Mapping[str, Any] | None = None) -> dict[str, Any]:
    """Build a ``package.json`` mapping for npm, pnpm, yarn or bun."""

    skeleton: dict[str, Any] = {
        "name": cpf.name,
        "version": cpf.version,
        "dependencies": _version_map(_by_relationship(cpf, Relationship.REGULAR)),
        "devDependencies": _version_map(_by_relationship(cpf, Relationship.DEV)),
        "peerDependencies": _version_map(_by_relationship(cpf, Relationship.PEER)),
    }
    if cpf.workspace_members:
        skeleton["workspaces"] = list(cpf.workspace_members)
    return deep_merge(skeleton, extra)


def generate_deno(cpf: CPF, extra: Mapping[str, Any] | None = None) -> dict[str, Any]:
    imports = {
        dep.name: f"{dep.source}:{dep.name}@{dep.version}"
        for dep in _by_relationship(cpf, Relationship.REGULAR)
        if dep.source in (SOURCE_NPM, SOURCE_JSR)
    }
    skeleton: dict[str, Any] = {
        "name": cpf.name,
        "version": cpf.version,
        "imports": imports,
    }
    if cpf.workspace_members:
        skeleton["workspace"] = list(cpf.workspace_members)
    return deep_merge(skeleton, extra)


# ---- cargo ----


def _cargo_spec(dep: Dependency) -> str | dict[str, str]:
    if dep.source.startswith(CARGO_LOCAL_PREFIX):
        return {"path": dep.source[len(CARGO_LOCAL_PREFIX):]}
    if dep.source.startswith(CARGO_GIT_PREFIX):
        reference, _, url = dep.source[len(CARGO_GIT_PREFIX):].partition("@")
        spec = {"git": url}
        if reference and reference != "HEAD":
            spec["branch"] = reference
        return spec
    if dep.source.startswith(CARGO_TARBALL_PREFIX):
        return {"url": dep.source[len(CARGO_TARBALL_PREFIX):]}
    return dep.version


def generate_cargo(cpf: CPF, extra: Mapping[str, Any] | None = None) -> dict[str, Any]:
    package: dict[str, Any] = {"name": cpf.name, "version": cpf.version}
    edition = cpf.platform_extras.cargo_edition
    if edition not in (NOT_APPLICABLE, CARGO_UNKNOWN_EDITION):
        package["edition"] = edition

    skeleton: dict[str, Any] = {"package": package}
    tables = (
        ("dependencies", Relationship.REGULAR),
        ("dev-dependencies", Relationship.DEV),
        ("build-dependencies", Relationship.BUILD),
    )
    for key, relationship in tables:
        deps = _by_relationship(cpf, relationship)
        if deps:
            skeleton[key] = {dep.name: _cargo_spec(dep) for dep in deps}
    if cpf.workspace_members:
        skeleton["workspace"] = {"members": list(cpf.workspace_members)}
    return deep_merge(skeleton, extra)


# ---- go ----


def generate_golang(cpf: CPF, extra: Mapping[str, Any] | None = None) -> dict[str, Any]:
    """Build a ``go.mod`` mapping: ``module``, ``go`` and a ``require`` list."""

    if not cpf.name or not cpf.name.strip():
        raise GenerationError("a module name is required to generate go.mod")
    go_version = cpf.platform_extras.cargo_edition
    if not go_version or go_version == NOT_APPLICABLE:
        raise GenerationError(
            "a go version is required to generate go.mod",
            hint="The CPF carries the go directive in its platform extras; this one has none.",
        )

    requires: list[dict[str, Any]] = []
    for dep in cpf.dependencies:
        if dep.source not in (SOURCE_GO, SOURCE_GITHUB):
            raise GenerationError(
                f"{dep.name} comes from {dep.source}, which go.mod cannot reference"
            )
        requires.append(
            {
                "path": dep.name,
                "version": dep.version,
                "indirect": dep.relationship is Relationship.INDIRECT,
            }
        )
    skeleton = {"module": cpf.name, "go": go_version, "require": requires}
    return deep_merge(skeleton, extra)


_GENERATORS: dict[Manager, Callable[[CPF, Mapping[str, Any] | None], dict[str, Any]]] = {
    Manager.NPM: generate_node,
    Manager.PNPM: generate_node,
    Manager.YARN: generate_node,
    Manager.BUN: generate_node,
    Manager.DENO: generate_deno,
    Manager.CARGO: generate_cargo,
    Manager.GO: generate_golang,
}


def generate(cpf: CPF, target: Manager, extra: Mapping[str, Any] | None = None) -> dict[str, Any]:
    return _GENERATORS[target](cpf, extra)


# ---- serialization ----


def manifest_filename(target: Manager) -> str:
    if target is Manager.DENO:
        return "deno.json"
    if target is Manager.CARGO:
        return "Cargo.toml"
    if target is Manager.GO:
        return "go.mod"
    return "package.json"


def _render_gomod(document: Mapping[str, Any]) -> str:
    lines = [f"module {document['module']}", "", f"go {document['go']}"]
    requires = document.get("require") or []
    if requires:
        lines.append("")
        lines.append("require (")
        for entry in requires:
            suffix = " // indirect" if entry.get("indirect") else ""
            lines.append(f"\t{entry['path']} {entry['version']}{suffix}")
        lines.append(")")
    return "\n".join(lines) + "\n"


def render_manifest(document: Mapping[str, Any], target: Manager) -> str:
    """Serialize a generated mapping to the text format ``target`` reads."""

    if target is Manager.CARGO:
        return tomlkit.dumps(document)
    if target is Manager.GO:
        return _render_gomod(document)
    return json.dumps(document, indent=2, ensure_ascii=False) + "\n"
