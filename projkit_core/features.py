"""Maintenance tasks that work the same way across every supported ecosystem."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Sequence

from .errors import FeatureError, MissingToolError
from .fs import unique_paths
from .interop.models import UNSUPPORTED, Manager, ProjectEnvironment, Runtime
from .interop.normalize import find_dependency
from .process import CommandOutput, Runner, manager_exists, run
from .vcs import VersionControl

logger = logging.getLogger(__name__)

__all__ = [
    "INTENSITIES",
    "ensure_tool",
    "execute",
    "script_argv",
    "install",
    "update",
    "lint",
    "pretty",
    "clean",
    "destroy",
    "run_user_script",
    "launch",
    "ready_to_commit",
    "commit",
    "FEATURES",
]

# package runners are checked through the manager that ships them
_TOOL_OWNERS = {"npx": "npm", "bunx": "bun"}


def execute(task: str, runner: Runner, argv: Sequence[str], cwd: Path) -> CommandOutput:
    command, *args = argv
    ensure_tool(_TOOL_OWNERS.get(command, command), runner)
    output = runner(command, args, cwd=cwd)
    if not output.success:
        raise FeatureError(
            task,
            f"{task} failed in {cwd}: {' '.join(argv)}",
            output=output.stdout,
            path=cwd,
        )
    return output


def ensure_tool(tool: str, runner: Runner = run) -> None:
    """Raise :class:`MissingToolError` unless ``tool`` answers a version query."""

    if not manager_exists(tool, runner=runner):
        raise MissingToolError(tool)


def install(root: Path, manager: Manager, *, runner: Runner = run) -> None:
    """Install dependencies of the project at ``root`` with ``manager``."""

    if manager.is_js:
        execute("install", runner, (manager.value, "install"), root)
    elif manager is Manager.GO:
        args = ("mod", "vendor") if (root / "vendor").is_dir() else ("mod", "tidy")
        execute("install", runner, ("go", *args), root)
    else:
        execute("install", runner, ("cargo", "fetch"), root)
        execute("install", runner, ("cargo", "check"), root)


def script_argv(env: ProjectEnvironment, script: str) -> tuple[str, ...]:
    if env.commands.run is UNSUPPORTED:
        raise FeatureError(
            "script",
            f"{env.manager.value} cannot run package scripts, so '{script}' cannot be used",
            path=env.root,
            hint="Remove the custom command from projkit.yaml for this project.",
        )
    return (*env.commands.run, script)


def _skip(env: ProjectEnvironment, feature: str) -> bool:
    if env.settings.is_protected(feature):
        logger.info("%s is protected from the %s", env.display_name, feature)
        return True
    return False


def update(env: ProjectEnvironment, *, runner: Runner = run) -> bool:
    if _skip(env, "updater"):
        return False
    override = env.settings.update_override
    if override is None:
        execute("update", runner, (env.commands.base, *env.commands.update), env.root)
    else:
        execute("update", runner, script_argv(env, override), env.root)
    return True


def _js_tool(
    env: ProjectEnvironment,
    task: str,
    script: str | None,
    tool: str,
    tool_args: Sequence[str],
    runner: Runner,
) -> bool:
    if script is not None:
        execute(task, runner, script_argv(env, script), env.root)
        return True
    if find_dependency(tool, env.cpf.dependencies) is None:
        logger.warning("%s: no %s script configured and %s is not installed", env.display_name, task, tool)
        return False
    execute(task, runner, (*env.commands.exec, tool, *tool_args), env.root)
    return True


def lint(env: ProjectEnvironment, *, runner: Runner = run) -> bool:
    if _skip(env, "linter"):
        return False
    if env.runtime in (Runtime.NODE, Runtime.BUN):
        return _js_tool(env, "lint", env.settings.lint_script, "eslint", ("--fix", "."), runner)
    if env.runtime is Runtime.RUST:
        argv: tuple[str, ...] = ("cargo", "check", "--all-targets", "--workspace")
    elif env.runtime is Runtime.DENO:
        argv = ("deno", "check", ".")
    else:
        argv = ("go", "vet", "./...")
    execute("lint", runner, argv, env.root)
    return True


def pretty(env: ProjectEnvironment, *, runner: Runner = run) -> bool:
    if _skip(env, "prettifier"):
        return False
    if env.runtime in (Runtime.NODE, Runtime.BUN):
        return _js_tool(env, "pretty", env.settings.pretty_script, "prettier", ("--write", "."), runner)
    if env.runtime is Runtime.DENO:
        argv: tuple[str, ...] = ("deno", "fmt")
    elif env.runtime is Runtime.RUST:
        argv = ("cargo", "fmt")
    else:
        argv = ("go", "fmt", "./...")
    execute("pretty", runner, argv, env.root)
    return True


def clean(env: ProjectEnvironment, *, runner: Runner = run) -> bool:
    if _skip(env, "cleaner"):
        return False
    if env.commands.clean is UNSUPPORTED:
        logger.info("%s has no clean command for %s", env.display_name, env.manager.value)
        return False
    for args in env.commands.clean:
        execute("clean", runner, (env.commands.base, *args), env.root)
    return True



# ---- destroy ----

INTENSITIES = ("normal", "hard", "maxim")


def destroy(env: ProjectEnvironment, *, runner: Runner = run, intensity: str = "normal") -> bool:
    """Delete the configured ``destroy.targets`` when ``intensity`` is enabled for them.

    The ``maxim`` intensity also removes the dependency directory
    (``node_modules``). Targets resolving outside the project root are skipped.
    """

    if _skip(env, "destroyer"):
        return False
    enabled = env.settings.destroy.intensities
    if intensity not in enabled and "*" not in enabled:
        logger.info("%s: destroy is not enabled for the %s intensity", env.display_name, intensity)
        return False

    targets = [(env.root / target).resolve() for target in env.settings.destroy.targets]
    if intensity == "maxim" and env.trash_dir is not None:
        targets.append(env.trash_dir)
    for target in unique_paths(targets):
        if target == env.root or not target.is_relative_to(env.root):
            logger.warning("%s: refusing to destroy %s", env.display_name, target)
            continue
        if not target.exists():
            logger.debug("%s: nothing to destroy at %s", env.display_name, target)
            continue
        try:
            if target.is_dir():
                shutil.rmtree(target)
            else:
                target.unlink()
        except OSError as exc:
            raise FeatureError("destroy", f"unable to remove {target}: {exc}", path=env.root) from exc
        logger.info("%s: destroyed %s", env.display_name, target)
    return True


# ---- user scripts ----

_USER_SCRIPT_KEYS = {"build": "build_cmd", "launch": "launch_cmd", "release": "release_cmd"}


def run_user_script(env: ProjectEnvironment, task: str, *, runner: Runner = run) -> bool:
    """Run the script configured for ``task`` in projkit.yaml; False when none is set."""

    script = getattr(env.settings, _USER_SCRIPT_KEYS[task])
    if script is None:
        logger.warning("%s: no %s configured", env.display_name, _USER_SCRIPT_KEYS[task])
        return False
    execute(task, runner, script_argv(env, script), env.root)
    return True


def launch(env: ProjectEnvironment, *, runner: Runner = run) -> bool:
    if env.settings.launch_cmd is not None:
        return run_user_script(env, "launch", runner=runner)
    if env.manager is Manager.DENO:
        raise FeatureError(
            "launch",
            "deno projects need an entry point to launch",
            path=env.root,
            hint="Set 'launch_cmd' in projkit.yaml to a deno task.",
        )
    argv = (env.commands.base, *env.commands.start)
    if env.manager is Manager.GO:
        argv = (*argv, ".")
    execute("launch", runner, argv, env.root)
    return True


# ---- commit ----

_COMMITTED_TASKS = {"update": "updating", "lint": "linting", "pretty": "prettifying"}


def ready_to_commit(env: ProjectEnvironment, vcs: VersionControl) -> bool:
    """Check, before any task runs, that the project's changes may be committed afterwards.

    Committing needs ``commit_actions`` enabled, a git repository, a clean
    working tree and a checked-out branch.
    """

    if not env.settings.commit_actions:
        logger.info("%s: commit_actions is disabled", env.display_name)
        return False
    if not vcs.is_repository(env.root):
        logger.info("%s is not a git repository", env.display_name)
        return False
    if not vcs.is_clean(env.root):
        logger.warning("%s: working tree is not clean, changes will not be committed", env.display_name)
        return False
    if vcs.get_branches(env.root).current is None:
        logger.warning("%s: no branch is checked out, changes will not be committed", env.display_name)
        return False
    return True


def commit(env: ProjectEnvironment, tasks: Sequence[str], *, vcs: VersionControl) -> bool:
    """Commit everything the given tasks changed; False when none of them edits files."""

    done = [_COMMITTED_TASKS[task] for task in tasks if task in _COMMITTED_TASKS]
    if not done:
        return False
    message = env.settings.commit_message or f"Code {' and '.join(done)} tasks (automated by projkit)"
    output = vcs.commit(env.root, message)
    if not output.success:
        raise FeatureError("commit", f"git commit failed in {env.root}", output=output.stdout, path=env.root)
    logger.info("%s: committed %s", env.display_name, message)
    return True


FEATURES = {
    "update": update,
    "lint": lint,
    "pretty": pretty,
    "clean": clean,
    "destroy": destroy,
}
