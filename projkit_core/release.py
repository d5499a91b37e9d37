"""Bump a project's version and publish it through its package manager.

A release runs in this order:

1. validate the version and the project's ability to publish;
2. run ``build_cmd`` when ``build_for_release`` is set;
3. back up the main manifest and write the new version into it;
4. run ``release_cmd``; dry runs stop here;
5. run the manager's publish command with ``--dry-run`` and ask to go on;
6. commit the manifest, tag the version and optionally push (git repos only);
7. publish.
"""

from __future__ import annotations

import json
import logging
import shutil
from pathlib import Path
from typing import Callable

import tomlkit
from packaging.version import InvalidVersion, Version

from .errors import ReleaseError
from .features import ensure_tool, execute, run_user_script, script_argv
from .interop.models import UNSUPPORTED, Manager, ProjectEnvironment
from .process import CommandOutput, Runner, run
from .vcs import Git, VersionControl

logger = logging.getLogger(__name__)

__all__ = ["parse_release_version", "write_version", "release"]


def parse_release_version(version: str) -> Version:
    """Accept ``MAJOR.MINOR.PATCH`` with an optional pre-release suffix."""

    candidate = version.strip()
    try:
        parsed = Version(candidate)
    except InvalidVersion as exc:
        raise ReleaseError(f"{version!r} is not a valid version", hint="Use a version such as 1.4.0.") from exc
    if not candidate[:1].isdigit() or len(parsed.release) != 3 or parsed.epoch or parsed.local:
        raise ReleaseError(f"{version!r} is not a MAJOR.MINOR.PATCH version", hint="Use a version such as 1.4.0.")
    return parsed


def _indent_of(text: str) -> str | int:
    for line in text.splitlines()[1:]:
        stripped = line.lstrip(" \t")
        if stripped and len(stripped) != len(line):
            leading = line[: len(line) - len(stripped)]
            return "\t" if leading.startswith("\t") else len(leading)
    return 2


def write_version(env: ProjectEnvironment, version: str) -> Path:
    """Back up the main manifest, then store ``version`` in it; returns the backup path."""

    path = env.main.path
    text = path.read_text(encoding="utf-8")
    if env.manager is Manager.CARGO:
        document = tomlkit.parse(text)
        package = document.get("package")
        if package is None or not isinstance(package.get("version"), str):
            raise ReleaseError(
                f"{path} does not declare its own package version",
                path=path,
                hint="Release the workspace root that owns the version instead.",
            )
        package["version"] = version
        updated = tomlkit.dumps(document)
    else:
        raw = dict(getattr(env.main.native, "raw", {}) or {})
        raw["version"] = version
        if path.suffix == ".jsonc":
            logger.warning("comments in %s are not preserved", path.name)
        updated = json.dumps(raw, indent=_indent_of(text), ensure_ascii=False) + "\n"

    backup = path.with_name(path.name + ".bak")
    shutil.copyfile(path, backup)
    path.write_text(updated, encoding="utf-8")
    return backup


def _ignore(root: Path, entry: str) -> Path:
    gitignore = root / ".gitignore"
    lines = gitignore.read_text(encoding="utf-8").splitlines() if gitignore.exists() else []
    if entry not in (line.strip() for line in lines):
        lines.append(entry)
        gitignore.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return gitignore


def _check_git(step: str, output: CommandOutput, root: Path) -> None:
    if not output.success:
        raise ReleaseError(f"git {step} failed in {root}", output=output.stdout, path=root)


def release(
    env: ProjectEnvironment,
    version: str,
    *,
    runner: Runner = run,
    vcs: VersionControl | None = None,
    confirm: Callable[[str], bool] | None = None,
    dry: bool = False,
    push: bool = False,
) -> bool:
    """Release ``version`` of ``env``; returns False when it stops before publishing."""

    parse_release_version(version)
    version = version.strip()
    if env.commands.publish is UNSUPPORTED:
        raise ReleaseError(f"{env.manager.value} projects cannot be published", path=env.root)
    if env.settings.release_cmd is not None and env.commands.run is UNSUPPORTED:
        raise ReleaseError(
            f"{env.manager.value} cannot run package scripts, but release_cmd is set",
            path=env.root,
            hint="Remove 'release_cmd' from projkit.yaml for this project.",
        )
    ensure_tool(env.commands.base, runner)
    vcs = vcs or Git(runner)
    use_git = vcs.is_repository(env.root)
    if push and not use_git:
        logger.warning("%s is not a git repository, --push is ignored", env.root)

    if env.settings.build_for_release:
        logger.info("building %s before the release", env.display_name)
        run_user_script(env, "build", runner=runner)

    backup = write_version(env, version)
    logger.info("%s: version set to %s (backup in %s)", env.name, version, backup.name)

    if env.settings.release_cmd is not None:
        execute("release", runner, script_argv(env, env.settings.release_cmd), env.root)

    if dry or env.settings.release_always_dry:
        logger.warning("dry run: %s was not committed or published", version)
        return False

    execute("publish", runner, (env.commands.base, *env.commands.publish, "--dry-run"), env.root)
    if confirm is not None and not confirm(f"Dry run of {env.name} {version} finished. Publish it?"):
        logger.info("release of %s %s aborted", env.name, version)
        return False

    if use_git:
        gitignore = _ignore(env.root, backup.name)
        message = f"Release v{version} (automated by projkit)"
        _check_git("commit", vcs.commit(env.root, message, (str(env.main.path), str(gitignore))), env.root)
        _check_git("tag", vcs.tag(env.root, version), env.root)
        if push:
            _check_git("push", vcs.push(env.root, tag=version), env.root)

    execute("publish", runner, (env.commands.base, *env.commands.publish), env.root)
    return True
