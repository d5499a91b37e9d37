"""Typed model for native manifests, the Common Package Format and resolved environments."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from importlib import metadata as importlib_metadata
from pathlib import Path
from typing import TYPE_CHECKING, Any, ClassVar, Mapping, Union

if TYPE_CHECKING:
    from projkit_core.settings import ProjectSettings

__all__ = [
    "Manager",
    "Runtime",
    "Relationship",
    "Dependency",
    "PlatformExtras",
    "CPF",
    "NodeManifest",
    "DenoManifest",
    "CargoManifest",
    "GoRequirement",
    "GoManifest",
    "NativeManifest",
    "Unsupported",
    "UNSUPPORTED",
    "CommandTable",
    "MainManifest",
    "Lockfile",
    "ProjectEnvironment",
    "generator_version",
    "NOT_APPLICABLE",
]

NOT_APPLICABLE = "not-applicable"

SOURCE_NPM = "npm"
SOURCE_JSR = "jsr"
SOURCE_GO = "pkg.go.dev"
SOURCE_GITHUB = "github"
SOURCE_CRATES = "crates.io"
REGISTRY_SOURCES = frozenset({SOURCE_NPM, SOURCE_JSR, SOURCE_GO, SOURCE_GITHUB, SOURCE_CRATES})


class Runtime(str, Enum):
    NODE = "node"
    DENO = "deno"
    BUN = "bun"
    GOLANG = "golang"
    RUST = "rust"


class Manager(str, Enum):
    """Package managers projkit knows how to drive."""

    NPM = "npm"
    PNPM = "pnpm"
    YARN = "yarn"
    DENO = "deno"
    BUN = "bun"
    CARGO = "cargo"
    GO = "go"

    @property
    def runtime(self) -> Runtime:
        return _RUNTIMES[self]

    @property
    def is_js(self) -> bool:
        return self in _JS_MANAGERS

    @property
    def is_node_like(self) -> bool:
        """npm, pnpm, yarn and bun all read ``package.json``."""

        return self in _JS_MANAGERS and self is not Manager.DENO

    @classmethod
    def parse(cls, value: str) -> "Manager":
        normalized = value.strip().lower()
        if normalized in ("golang",):
            return cls.GO
        if normalized in ("rust",):
            return cls.CARGO
        try:
            return cls(normalized)
        except ValueError as exc:
            raise ValueError(f"unknown package manager '{value}'") from exc


_RUNTIMES = {
    Manager.NPM: Runtime.NODE,
    Manager.PNPM: Runtime.NODE,
    Manager.YARN: Runtime.NODE,
    Manager.DENO: Runtime.DENO,
    Manager.BUN: Runtime.BUN,
    Manager.CARGO: Runtime.RUST,
    Manager.GO: Runtime.GOLANG,
}
_JS_MANAGERS = frozenset({Manager.NPM, Manager.PNPM, Manager.YARN, Manager.DENO, Manager.BUN})


class Relationship(str, Enum):
    REGULAR = "regular"
    DEV = "dev"
    PEER = "peer"
    INDIRECT = "indirect"
    BUILD = "build"


@dataclass(frozen=True)
class Dependency:
    name: str
    version: str
    relationship: Relationship
    source: str

    @property
    def is_registry(self) -> bool:
        """Whether the dependency comes from a package registry rather than a path/git/url."""

        return self.source in REGISTRY_SOURCES


@dataclass(frozen=True)
class PlatformExtras:
    cargo_edition: str = NOT_APPLICABLE


def generator_version() -> str:
    try:
        return importlib_metadata.version("projkit")
    except importlib_metadata.PackageNotFoundError:
        return "unknown"


@dataclass(frozen=True)
class CPF:
    """Common Package Format: the ecosystem-agnostic view of a manifest."""

    name: str
    version: str
    runtime_manager: Manager
    dependencies: tuple[Dependency, ...] = ()
    platform_extras: PlatformExtras = field(default_factory=PlatformExtras)
    workspace_members: tuple[str, ...] = ()
    generator_version: str = field(default_factory=generator_version)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "version": self.version,
            "runtimeManager": self.runtime_manager.value,
            "platformExtras": {"cargoEdition": self.platform_extras.cargo_edition},
            "dependencies": [
                {
                    "name": dep.name,
                    "version": dep.version,
                    "relationship": dep.relationship.value,
                    "source": dep.source,
                }
                for dep in self.dependencies
            ],
            "workspaceMembers": list(self.workspace_members),
            "generatorVersion": self.generator_version,
        }


# ---- native manifests ----


@dataclass(frozen=True)
class NodeManifest:
    format: ClassVar[str] = "package.json"

    name: str
    version: str
    dependencies: Mapping[str, str] = field(default_factory=dict)
    dev_dependencies: Mapping[str, str] = field(default_factory=dict)
    peer_dependencies: Mapping[str, str] = field(default_factory=dict)
    workspaces: tuple[str, ...] = ()
    scripts: Mapping[str, str] = field(default_factory=dict)
    raw: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class DenoManifest:
    format: ClassVar[str] = "deno.json"

    name: str
    version: str
    imports: Mapping[str, str] = field(default_factory=dict)
    workspace: tuple[str, ...] = ()
    tasks: Mapping[str, str] = field(default_factory=dict)
    raw: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class CargoManifest:
    format: ClassVar[str] = "Cargo.toml"

    package: Mapping[str, Any]
    dependencies: Mapping[str, Any] = field(default_factory=dict)
    dev_dependencies: Mapping[str, Any] = field(default_factory=dict)
    build_dependencies: Mapping[str, Any] = field(default_factory=dict)
    workspace: Mapping[str, Any] = field(default_factory=dict)
    raw: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class GoRequirement:
    version: str
    indirect: bool = False


@dataclass(frozen=True)
class GoManifest:
    format: ClassVar[str] = "go.mod"

    module: str
    go_version: str
    requires: Mapping[str, GoRequirement] = field(default_factory=dict)


NativeManifest = Union[NodeManifest, DenoManifest, CargoManifest, GoManifest]


# ---- command table ----


class Unsupported(Enum):
    """Marker for commands an ecosystem does not offer."""

    UNSUPPORTED = "unsupported"

    def __repr__(self) -> str:
        return "UNSUPPORTED"


UNSUPPORTED = Unsupported.UNSUPPORTED

Argv = tuple[str, ...]


@dataclass(frozen=True)
class CommandTable:
    """Argv templates for the actions a manager supports.

    ``base`` is the manager binary. ``update``, ``audit``, ``publish`` and
    ``start`` are arguments passed to ``base``; ``exec`` and ``run`` are full
    argv prefixes (binary included) and ``clean`` is a sequence of argument
    lists, each run against ``base``.
    """

    base: str
    exec: Argv
    update: Argv
    clean: tuple[Argv, ...] | Unsupported
    run: Argv | Unsupported
    audit: Argv | Unsupported
    publish: Argv | Unsupported
    start: Argv

    def supports(self, name: str) -> bool:
        return getattr(self, name) is not UNSUPPORTED


# ---- resolved project ----


@dataclass(frozen=True)
class MainManifest:
    path: Path
    format: str
    native: NativeManifest
    cpf: CPF


@dataclass(frozen=True)
class Lockfile:
    name: str
    path: Path | None = None


@dataclass(frozen=True)
class ProjectEnvironment:
    """Fully resolved descriptor of one project, rebuilt on every invocation."""

    root: Path
    settings: "ProjectSettings"
    main: MainManifest
    lockfile: Lockfile
    runtime: Runtime
    manager: Manager
    commands: CommandTable
    workspaces: tuple[Path, ...] = ()
    trash_dir: Path | None = None

    @property
    def cpf(self) -> CPF:
        return self.main.cpf

    @property
    def name(self) -> str:
        return self.main.cpf.name

    @property
    def display_name(self) -> str:
        return f"{self.main.cpf.name}@{self.main.cpf.version}"
