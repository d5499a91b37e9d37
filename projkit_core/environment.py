"""Resolve a directory into a :class:`ProjectEnvironment`.

Resolution runs in a fixed order:

1. locate the project root (path, or a tracked project's name);
2. stat every known manifest and lockfile concurrently;
3. infer the package manager (override, Go, Rust, Deno, Bun, then the
   Node family by lockfile, config file and finally ``scripts`` contents);
4. parse the main manifest and normalize it into a CPF;
5. merge ``projkit.yaml`` onto the default settings;
6. attach the static command table, lockfile and workspace members.

Every step that can fail raises a :class:`~projkit_core.errors.ProjkitError`
subclass. :func:`try_resolve` and :func:`resolve_many` turn those errors into
:class:`~projkit_core.errors.Resolution` values so bulk operations continue
past a broken project.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Iterable, Mapping, Protocol, Sequence

from .errors import (
    AmbiguousEnvironmentError,
    NoManifestError,
    ProjectNotFoundError,
    ProjkitError,
    Resolution,
    UnparsableManifestError,
)
from .fs import parse_path, read_text
from .interop.models import (
    UNSUPPORTED,
    CommandTable,
    Lockfile,
    MainManifest,
    Manager,
    NativeManifest,
    ProjectEnvironment,
    Runtime,
)
from .interop.normalize import to_cpf
from .interop.parsers import parse_cargo, parse_deno, parse_golang, parse_node
from .settings import ProjectSettings, load_settings
from .vcs import Git, VersionControl
from .workspaces import find_workspaces

logger = logging.getLogger(__name__)

__all__ = [
    "KNOWN_FILES",
    "LOCKFILES",
    "COMMAND_TABLES",
    "FileScan",
    "scan_paths",
    "infer_override",
    "infer_golang",
    "infer_rust",
    "infer_deno",
    "infer_bun",
    "infer_node_by_lockfile",
    "infer_node_by_config",
    "infer_node_by_scripts",
    "check_lockfiles",
    "infer_manager",
    "locate_root",
    "lockfile_for",
    "resolve_environment",
    "resolve_environment_async",
    "try_resolve",
    "resolve_many",
]

NODE_FILES = (
    "package.json",
    "package-lock.json",
    "pnpm-lock.yaml",
    "yarn.lock",
    ".pnpmfile.cjs",
    "pnpm-workspace.yaml",
    ".yarnrc.yml",
    ".yarnrc",
    ".npmrc",
)
DENO_FILES = ("deno.json", "deno.jsonc", "deno.lock")
BUN_FILES = ("bunfig.toml", "bun.lock", "bun.lockb")
GO_FILES = ("go.mod", "go.sum")
RUST_FILES = ("Cargo.toml", "Cargo.lock")
KNOWN_FILES = NODE_FILES + DENO_FILES + BUN_FILES + GO_FILES + RUST_FILES

MANIFESTS = ("package.json", "deno.json", "deno.jsonc", "bunfig.toml", "go.mod", "Cargo.toml")

# lockfile -> manager that writes it
LOCKFILES: Mapping[str, Manager] = {
    "pnpm-lock.yaml": Manager.PNPM,
    "package-lock.json": Manager.NPM,
    "yarn.lock": Manager.YARN,
    "bun.lockb": Manager.BUN,
    "bun.lock": Manager.BUN,
    "deno.lock": Manager.DENO,
    "go.sum": Manager.GO,
    "Cargo.lock": Manager.CARGO,
}

_LOCKFILE_NAMES: Mapping[Manager, str] = {
    Manager.NPM: "package-lock.json",
    Manager.PNPM: "pnpm-lock.yaml",
    Manager.YARN: "yarn.lock",
    Manager.BUN: "bun.lock",
    Manager.DENO: "deno.lock",
    Manager.GO: "go.sum",
    Manager.CARGO: "Cargo.lock",
}

COMMAND_TABLES: Mapping[Manager, CommandTable] = {
    Manager.GO: CommandTable(
        base="go",
        exec=("go", "run"),
        update=("get", "-u", "all"),
        clean=(("clean",), ("mod", "tidy")),
        run=UNSUPPORTED,
        audit=UNSUPPORTED,
        publish=UNSUPPORTED,
        start=("run",),
    ),
    Manager.CARGO: CommandTable(
        base="cargo",
        exec=("cargo", "run"),
        update=("update",),
        clean=(("clean",),),
        run=UNSUPPORTED,
        audit=UNSUPPORTED,
        publish=("publish",),
        start=("run",),
    ),
    Manager.DENO: CommandTable(
        base="deno",
        exec=("deno", "run"),
        update=("outdated", "--update"),
        clean=UNSUPPORTED,
        run=("deno", "task"),
        audit=UNSUPPORTED,
        publish=("publish", "--check=all"),
        start=("run",),
    ),
    Manager.BUN: CommandTable(
        base="bun",
        exec=("bunx",),
        update=("update", "--save-text-lockfile"),
        clean=UNSUPPORTED,
        run=("bun", "run"),
        audit=("audit", "--json"),
        publish=("publish",),
        start=("start",),
    ),
    Manager.YARN: CommandTable(
        base="yarn",
        exec=("yarn", "dlx"),
        update=("upgrade",),
        clean=(("autoclean", "--force"),),
        run=("yarn", "run"),
        audit=("audit", "--recursive", "--all", "--json"),
        publish=("publish", "--non-interactive"),
        start=("start",),
    ),
    Manager.PNPM: CommandTable(
        base="pnpm",
        exec=("pnpm", "dlx"),
        update=("update",),
        clean=(("dedupe",), ("prune",)),
        run=("pnpm", "run"),
        audit=("audit", "--ignore-registry-errors", "--json"),
        publish=("publish",),
        start=("start",),
    ),
    Manager.NPM: CommandTable(
        base="npm",
        exec=("npx",),
        update=("update",),
        clean=(("dedupe",), ("prune",)),
        run=("npm", "run"),
        audit=("audit", "--json"),
        publish=("publish",),
        start=("start",),
    ),
}


class ProjectLookup(Protocol):
    def spot(self, target: str) -> Path | None: ...


# ---- file scan ----


@dataclass(frozen=True)
class FileScan:
    root: Path
    present: frozenset[str]

    def has(self, *names: str) -> bool:
        return any(name in self.present for name in names)

    def lockfiles(self) -> tuple[str, ...]:
        return tuple(name for name in LOCKFILES if name in self.present)


async def scan_paths(root: Path, names: Sequence[str] = KNOWN_FILES) -> FileScan:
    """Stat every candidate file under ``root`` concurrently."""

    checks = [asyncio.to_thread((root / name).exists) for name in names]
    results = await asyncio.gather(*checks)
    return FileScan(
        root=root,
        present=frozenset(name for name, exists in zip(names, results) if exists),
    )


# ---- inference steps ----


def infer_override(settings: ProjectSettings) -> Manager | None:
    return settings.env_override


def infer_golang(scan: FileScan) -> Manager | None:
    return Manager.GO if scan.has("go.mod", "go.sum") else None


def infer_rust(scan: FileScan) -> Manager | None:
    return Manager.CARGO if scan.has("Cargo.toml", "Cargo.lock") else None


def infer_deno(scan: FileScan) -> Manager | None:
    return Manager.DENO if scan.has("deno.lock", "deno.json", "deno.jsonc") else None


def infer_bun(scan: FileScan) -> Manager | None:
    return Manager.BUN if scan.has("bun.lock", "bun.lockb", "bunfig.toml") else None


def infer_node_by_lockfile(scan: FileScan) -> Manager | None:
    if scan.has("pnpm-lock.yaml"):
        return Manager.PNPM
    if scan.has("yarn.lock"):
        return Manager.YARN
    if scan.has("package-lock.json"):
        return Manager.NPM
    return None


def infer_node_by_config(scan: FileScan) -> Manager | None:
    if scan.has(".pnpmfile.cjs", "pnpm-workspace.yaml"):
        return Manager.PNPM
    if scan.has(".yarnrc", ".yarnrc.yml"):
        return Manager.YARN
    if scan.has(".npmrc"):
        return Manager.NPM
    return None


def infer_node_by_scripts(scripts: Mapping[str, Any] | None) -> Manager | None:
    """Last resort: look for a manager name inside the ``scripts`` block."""

    if not scripts:
        return None
    text = json.dumps(dict(scripts))
    # "pnpm" contains "npm", so it must be checked first
    for needle, manager in (("pnpm", Manager.PNPM), ("yarn", Manager.YARN), ("npm", Manager.NPM)):
        if needle in text:
            return manager
    return None


INFERENCE_STEPS: tuple[Callable[[FileScan], Manager | None], ...] = (
    infer_golang,
    infer_rust,
    infer_deno,
    infer_bun,
    infer_node_by_lockfile,
    infer_node_by_config,
)


def check_lockfiles(scan: FileScan) -> None:
    """Fail when lockfiles written by different managers coexist."""

    found = scan.lockfiles()
    managers = {LOCKFILES[name] for name in found}
    if len(managers) > 1:
        raise AmbiguousEnvironmentError(
            f"{scan.root} holds lockfiles from several managers: {', '.join(found)}",
            lockfiles=found,
            path=scan.root,
        )


def infer_manager(
    scan: FileScan,
    settings: ProjectSettings,
    scripts: Mapping[str, Any] | None = None,
) -> Manager:
    override = infer_override(settings)
    if override is not None:
        logger.debug("%s: manager forced to %s by settings", scan.root, override.value)
        return override

    if not scan.has(*MANIFESTS):
        raise NoManifestError(f"no manifest found in {scan.root}", path=scan.root)
    check_lockfiles(scan)

    for step in INFERENCE_STEPS:
        manager = step(scan)
        if manager is not None:
            logger.debug("%s: %s matched %s", scan.root, step.__name__, manager.value)
            return manager

    manager = infer_node_by_scripts(scripts)
    if manager is not None:
        return manager
    if scan.has("package.json"):
        return Manager.NPM
    raise NoManifestError(f"unable to determine the environment of {scan.root}", path=scan.root)


# ---- locating and loading ----


def locate_root(target: str | Path | None, lookup: ProjectLookup | None = None) -> Path:
    """Resolve ``target`` to an existing project directory."""

    if target is None or str(target).strip() in ("", "."):
        return Path.cwd().resolve()
    try:
        candidate = parse_path(target)
    except ValueError as exc:
        raise ProjectNotFoundError(str(exc)) from exc
    if candidate.is_dir():
        return candidate
    if lookup is not None:
        spotted = lookup.spot(str(target))
        if spotted is not None:
            return spotted
    raise ProjectNotFoundError(f"{target} does not exist", path=candidate)


def _main_manifest(manager: Manager, scan: FileScan) -> str:
    if manager is Manager.GO:
        return "go.mod"
    if manager is Manager.CARGO:
        return "Cargo.toml"
    if manager is Manager.DENO:
        if scan.has("deno.jsonc"):
            return "deno.jsonc"
        # npm-compatible deno projects only ship a package.json
        if scan.has("package.json") and not scan.has("deno.json"):
            return "package.json"
        return "deno.json"
    return "package.json"


def _parse_native(main_name: str, text: str) -> NativeManifest:
    if main_name == "go.mod":
        return parse_golang(text)
    if main_name == "Cargo.toml":
        return parse_cargo(text)
    if main_name.startswith("deno."):
        return parse_deno(text)
    return parse_node(text)


def lockfile_for(manager: Manager, scan: FileScan) -> Lockfile:
    name = _LOCKFILE_NAMES[manager]
    if manager is Manager.BUN and not scan.has("bun.lock") and scan.has("bun.lockb"):
        name = "bun.lockb"
    path = scan.root / name if scan.has(name) else None
    return Lockfile(name=name, path=path)


def _scripts_of(package_json: str | None) -> Mapping[str, Any] | None:
    if package_json is None:
        return None
    try:
        return parse_node(package_json).scripts
    except UnparsableManifestError:
        return None


async def resolve_environment_async(
    target: str | Path | None = None,
    *,
    lookup: ProjectLookup | None = None,
    vcs: VersionControl | None = None,
) -> ProjectEnvironment:
    # lookup.spot may call asyncio.run, which must not happen on the loop thread
    root = await asyncio.to_thread(locate_root, target, lookup)
    scan = await scan_paths(root)

    settings, package_json = await asyncio.gather(
        asyncio.to_thread(load_settings, root),
        asyncio.to_thread(read_text, root / "package.json")
        if scan.has("package.json")
        else asyncio.sleep(0, result=None),
    )

    manager = infer_manager(scan, settings, _scripts_of(package_json))
    main_name = _main_manifest(manager, scan)
    main_path = root / main_name
    text = package_json if main_name == "package.json" else None
    if text is None:
        text = await asyncio.to_thread(read_text, main_path)
    if text is None:
        raise NoManifestError(
            f"{manager.value} project at {root} has no readable {main_name}",
            path=main_path,
        )

    try:
        native = _parse_native(main_name, text)
    except UnparsableManifestError as exc:
        raise UnparsableManifestError(
            f"{main_path}: {exc.message}",
            path=main_path,
            manager=manager,
            field=exc.field,
        ) from exc

    workspaces = await asyncio.to_thread(find_workspaces, root)
    latest_tag: str | None = None
    if manager is Manager.GO:
        latest_tag = await asyncio.to_thread((vcs or Git()).get_latest_tag, root)

    cpf = to_cpf(native, manager, workspaces, latest_tag=latest_tag)
    runtime = manager.runtime
    trash = root / "node_modules" if runtime in (Runtime.NODE, Runtime.BUN) else None

    return ProjectEnvironment(
        root=root,
        settings=settings,
        main=MainManifest(path=main_path, format=native.format, native=native, cpf=cpf),
        lockfile=lockfile_for(manager, scan),
        runtime=runtime,
        manager=manager,
        commands=COMMAND_TABLES[manager],
        workspaces=tuple(workspaces),
        trash_dir=trash,
    )


def resolve_environment(
    target: str | Path | None = None,
    *,
    lookup: ProjectLookup | None = None,
    vcs: VersionControl | None = None,
) -> ProjectEnvironment:
    """Resolve one project; raises a :class:`ProjkitError` subclass on failure."""

    return asyncio.run(resolve_environment_async(target, lookup=lookup, vcs=vcs))


async def _try_resolve_async(
    target: str | Path,
    lookup: ProjectLookup | None,
    vcs: VersionControl | None,
) -> Resolution[ProjectEnvironment]:
    try:
        env = await resolve_environment_async(target, lookup=lookup, vcs=vcs)
    except ProjkitError as exc:
        logger.warning("skipping %s: %s", target, exc.message)
        return Resolution.failed(str(target), exc)
    return Resolution.ok(str(target), env)


def try_resolve(
    target: str | Path,
    *,
    lookup: ProjectLookup | None = None,
    vcs: VersionControl | None = None,
) -> Resolution[ProjectEnvironment]:
    return asyncio.run(_try_resolve_async(target, lookup, vcs))


async def _resolve_many_async(
    targets: Iterable[str | Path],
    lookup: ProjectLookup | None,
    vcs: VersionControl | None,
) -> list[Resolution[ProjectEnvironment]]:
    return list(
        await asyncio.gather(*(_try_resolve_async(target, lookup, vcs) for target in targets))
    )


def resolve_many(
    targets: Iterable[str | Path],
    *,
    lookup: ProjectLookup | None = None,
    vcs: VersionControl | None = None,
) -> list[Resolution[ProjectEnvironment]]:
    """Resolve every target independently, in input order; failures become results."""

    return asyncio.run(_resolve_many_async(list(targets), lookup, vcs))
