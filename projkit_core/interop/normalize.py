"""Conversion of native manifests into the Common Package Format."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Sequence

from .models import (
    CPF,
    NOT_APPLICABLE,
    SOURCE_CRATES,
    SOURCE_GITHUB,
    SOURCE_GO,
    SOURCE_NPM,
    CargoManifest,
    Dependency,
    DenoManifest,
    GoManifest,
    Manager,
    NativeManifest,
    NodeManifest,
    PlatformExtras,
    Relationship,
)
from .parsers import parse_deno_specifier

logger = logging.getLogger(__name__)

__all__ = [
    "dedupe_dependencies",
    "find_dependency",
    "node_to_cpf",
    "deno_to_cpf",
    "cargo_to_cpf",
    "golang_to_cpf",
    "to_cpf",
    "UNKNOWN_GO_VERSION",
]

UNKNOWN_GO_VERSION = "Unknown"
CARGO_UNKNOWN_NAME = "unknown-name"
CARGO_UNKNOWN_VERSION = "unknown-version"
CARGO_UNKNOWN_EDITION = "unknown-edition"

CARGO_LOCAL_PREFIX = "rs-local://"
CARGO_GIT_PREFIX = "git:"
CARGO_TARBALL_PREFIX = "tarball:"


def dedupe_dependencies(dependencies: Iterable[Dependency]) -> tuple[Dependency, ...]:
    """Drop repeated names, keeping the first occurrence."""

    seen: set[str] = set()
    unique: list[Dependency] = []
    for dependency in dependencies:
        if dependency.name in seen:
            continue
        seen.add(dependency.name)
        unique.append(dependency)
    return tuple(unique)


def find_dependency(name: str, dependencies: Sequence[Dependency]) -> Dependency | None:
    for dependency in dependencies:
        if dependency.name == name:
            return dependency
    return None


def _members(workspaces: Iterable[Any]) -> tuple[str, ...]:
    return tuple(str(member) for member in workspaces)


# ---- node / bun ----


def node_to_cpf(
    manifest: NodeManifest,
    manager: Manager,
    workspaces: Iterable[Any] = (),
) -> CPF:
    groups = (
        (manifest.dependencies, Relationship.REGULAR),
        (manifest.dev_dependencies, Relationship.DEV),
        (manifest.peer_dependencies, Relationship.PEER),
    )
    dependencies = [
        Dependency(name=name, version=version, relationship=relationship, source=SOURCE_NPM)
        for table, relationship in groups
        for name, version in table.items()
    ]
    return CPF(
        name=manifest.name,
        version=manifest.version,
        runtime_manager=manager,
        dependencies=dedupe_dependencies(dependencies),
        workspace_members=_members(workspaces),
    )


# ---- deno ----


def deno_to_cpf(manifest: DenoManifest, workspaces: Iterable[Any] = ()) -> CPF:
    dependencies: list[Dependency] = []
    for alias, specifier in manifest.imports.items():
        parsed = parse_deno_specifier(specifier)
        if parsed is None:
            logger.debug("import %s=%s is not a managed specifier", alias, specifier)
            continue
        source, package, version = parsed
        dependencies.append(
            Dependency(name=package, version=version, relationship=Relationship.REGULAR, source=source)
        )
    return CPF(
        name=manifest.name,
        version=manifest.version,
        runtime_manager=Manager.DENO,
        dependencies=dedupe_dependencies(dependencies),
        workspace_members=_members(workspaces),
    )


# ---- cargo ----


def _inherits(value: Any) -> bool:
    return isinstance(value, Mapping) and value.get("workspace") is True


def _package_field(manifest: CargoManifest, key: str, fallback: str) -> str:
    value = manifest.package.get(key)
    if _inherits(value):
        shared = manifest.workspace.get("package")
        value = shared.get(key) if isinstance(shared, Mapping) else None
    if isinstance(value, str) and value.strip():
        return value
    return fallback


def _cargo_dependency(
    name: str,
    spec: Any,
    relationship: Relationship,
    workspace_deps: Mapping[str, Any],
) -> Dependency | None:
    if _inherits(spec):
        inherited = workspace_deps.get(name)
        if inherited is None:
            logger.debug("cargo dependency %s inherits from a missing workspace entry", name)
            return None
        spec = inherited
    if isinstance(spec, str):
        return Dependency(name=name, version=spec, relationship=relationship, source=SOURCE_CRATES)
    if not isinstance(spec, Mapping):
        return None

    package = spec.get("package")
    if isinstance(package, str) and package.strip():
        # renamed dependency: key is the local alias
        name = package
    if "path" in spec:
        return Dependency(
            name=name,
            version="path",
            relationship=relationship,
            source=f"{CARGO_LOCAL_PREFIX}{spec['path']}",
        )
    if "git" in spec:
        reference = spec.get("branch") or spec.get("tag") or spec.get("rev") or "HEAD"
        return Dependency(
            name=name,
            version="git",
            relationship=relationship,
            source=f"{CARGO_GIT_PREFIX}{reference}@{spec['git']}",
        )
    if "url" in spec:
        return Dependency(
            name=name,
            version="url",
            relationship=relationship,
            source=f"{CARGO_TARBALL_PREFIX}{spec['url']}",
        )
    version = spec.get("version")
    if isinstance(version, str):
        return Dependency(name=name, version=version, relationship=relationship, source=SOURCE_CRATES)
    logger.debug("dropping cargo dependency %s without version, path, git or url", name)
    return None


def cargo_to_cpf(manifest: CargoManifest, workspaces: Iterable[Any] = ()) -> CPF:
    workspace_deps = manifest.workspace.get("dependencies")
    if not isinstance(workspace_deps, Mapping):
        workspace_deps = {}

    groups = (
        (manifest.dependencies, Relationship.REGULAR),
        (manifest.dev_dependencies, Relationship.DEV),
        (manifest.build_dependencies, Relationship.BUILD),
    )
    dependencies: list[Dependency] = []
    for table, relationship in groups:
        for name, spec in table.items():
            dependency = _cargo_dependency(name, spec, relationship, workspace_deps)
            if dependency is not None:
                dependencies.append(dependency)

    return CPF(
        name=_package_field(manifest, "name", CARGO_UNKNOWN_NAME),
        version=_package_field(manifest, "version", CARGO_UNKNOWN_VERSION),
        runtime_manager=Manager.CARGO,
        dependencies=dedupe_dependencies(dependencies),
        platform_extras=PlatformExtras(
            cargo_edition=_package_field(manifest, "edition", CARGO_UNKNOWN_EDITION)
        ),
        workspace_members=_members(workspaces),
    )


# ---- go ----


def go_source(module_path: str) -> str:
    """Guess where a Go module is hosted; only golang.org paths map to pkg.go.dev."""

    return SOURCE_GO if "golang.org" in module_path else SOURCE_GITHUB


def golang_to_cpf(
    manifest: GoManifest,
    workspaces: Iterable[Any] = (),
    *,
    latest_tag: str | None = None,
) -> CPF:
    dependencies = [
        Dependency(
            name=path,
            version=requirement.version,
            relationship=Relationship.INDIRECT if requirement.indirect else Relationship.REGULAR,
            source=go_source(path),
        )
        for path, requirement in manifest.requires.items()
    ]
    return CPF(
        name=manifest.module,
        version=latest_tag.strip() if latest_tag and latest_tag.strip() else UNKNOWN_GO_VERSION,
        runtime_manager=Manager.GO,
        dependencies=dedupe_dependencies(dependencies),
        platform_extras=PlatformExtras(cargo_edition=manifest.go_version or NOT_APPLICABLE),
        workspace_members=_members(workspaces),
    )


def to_cpf(
    native: NativeManifest,
    manager: Manager,
    workspaces: Iterable[Any] = (),
    *,
    latest_tag: str | None = None,
) -> CPF:
    """Dispatch ``native`` to the normalizer for its manifest type."""

    if isinstance(native, NodeManifest):
        return node_to_cpf(native, manager, workspaces)
    if isinstance(native, DenoManifest):
        return deno_to_cpf(native, workspaces)
    if isinstance(native, CargoManifest):
        return cargo_to_cpf(native, workspaces)
    if isinstance(native, GoManifest):
        return golang_to_cpf(native, workspaces, latest_tag=latest_tag)
    raise TypeError(f"unsupported manifest type {type(native).__name__}")
