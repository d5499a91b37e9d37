"""Move a JavaScript project from one package manager to another."""

from __future__ import annotations

import logging
import shutil
from datetime import datetime, timezone

from .environment import resolve_environment
from .errors import MigrationError
from .features import ensure_tool, install, update
from .interop.generators import generate, manifest_filename, render_manifest
from .interop.models import Manager, ProjectEnvironment, generator_version
from .process import Runner, run
from .vcs import VersionControl

logger = logging.getLogger(__name__)

__all__ = ["migrate"]

# keys regenerated from the CPF; everything else in the old manifest is carried over
_REGENERATED_KEYS = frozenset(
    {
        "name",
        "version",
        "dependencies",
        "devDependencies",
        "peerDependencies",
        "imports",
        "workspaces",
        "workspace",
    }
)


def _backup_header() -> str:
    stamp = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")
    return f"// Backup written by projkit {generator_version()} on {stamp}.\n"


def migrate(
    env: ProjectEnvironment,
    target: Manager,
    *,
    runner: Runner = run,
    vcs: VersionControl | None = None,
) -> ProjectEnvironment:
    """Rewrite the manifest for ``target``, back up the old files and reinstall.

    Returns the environment re-resolved after the migration.
    """

    if not env.manager.is_js:
        raise MigrationError(f"{env.manager.value} projects cannot be migrated", path=env.root)
    if not target.is_js:
        raise MigrationError(f"cannot migrate to {target.value}", path=env.root)
    if target is env.manager:
        raise MigrationError(
            f"{env.display_name} already uses {target.value}",
            path=env.root,
            hint="Pick a different target manager.",
        )
    # nothing is touched until both managers are known to be installed
    ensure_tool(env.manager.value, runner)
    ensure_tool(target.value, runner)

    logger.info("migrating %s from %s to %s", env.display_name, env.manager.value, target.value)

    logger.info("updating dependencies (1/6)")
    update(env, runner=runner)

    if env.trash_dir is not None and env.trash_dir.is_dir():
        logger.info("removing %s (2/6)", env.trash_dir)
        shutil.rmtree(env.trash_dir)

    logger.info("backing up %s (3/6)", env.main.path.name)
    original = env.main.path.read_text(encoding="utf-8")
    backup = env.main.path.with_name(env.main.path.name + ".bak")
    backup.write_text(_backup_header() + original, encoding="utf-8")

    logger.info("writing the %s manifest (4/6)", target.value)
    raw = getattr(env.main.native, "raw", {}) or {}
    extra = {key: value for key, value in raw.items() if key not in _REGENERATED_KEYS}
    document = generate(env.cpf, target, extra)
    destination = env.root / manifest_filename(target)
    destination.write_text(render_manifest(document, target), encoding="utf-8")
    if destination != env.main.path:
        env.main.path.unlink()

    if env.lockfile.path is not None and env.lockfile.path.exists():
        logger.info("backing up %s (5/6)", env.lockfile.name)
        env.lockfile.path.rename(env.root / f"{env.lockfile.name}.bak")
    else:
        logger.warning("no lockfile found in %s, skipping backup", env.root)

    logger.info("installing with %s (6/6)", target.value)
    install(env.root, target, runner=runner)

    migrated = resolve_environment(env.root, vcs=vcs)
    update(migrated, runner=runner)
    return migrated
