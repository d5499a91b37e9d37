"""Application object that wires the registry, VCS, process runner and commands."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Iterable

from projkit_core.builtins import builtin_commands
from projkit_core.environment import resolve_environment, resolve_many
from projkit_core.errors import ProjkitError, Resolution
from projkit_core.events import EventBus
from projkit_core.interop.models import ProjectEnvironment
from projkit_core.paths import AppPaths
from projkit_core.process import Runner, run
from projkit_core.registry import ProjectRegistry
from projkit_core.vcs import Git, VersionControl


def prompt_yes_no(question: str) -> bool:
    try:
        answer = input(f"{question} [y/N] ")
    except EOFError:
        return False
    return answer.strip().lower() in ("y", "yes")


class ProjkitApp:
    """Shared services handed to every command."""

    def __init__(
        self,
        *,
        paths: AppPaths | None = None,
        runner: Runner = run,
        vcs: VersionControl | None = None,
        confirm: Callable[[str], bool] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.logger = logger or logging.getLogger("projkit_core.app")
        self.paths = paths or AppPaths()
        self.events = EventBus()
        self.runner = runner
        self.vcs = vcs or Git(runner)
        self.confirm = confirm or prompt_yes_no
        self.registry = ProjectRegistry(self.paths, events=self.events, vcs=self.vcs)
        self.commands = builtin_commands()

    def resolve(self, target: str | Path | None) -> ProjectEnvironment:
        return resolve_environment(target, lookup=self.registry, vcs=self.vcs)

    def resolve_all(self, targets: Iterable[str | Path]) -> list[Resolution[ProjectEnvironment]]:
        return resolve_many(targets, lookup=self.registry, vcs=self.vcs)

    def record_error(self, error: ProjkitError) -> Path:
        """Append ``error`` (and any captured command output) to the errors log."""

        log_path = self.paths.errors_log
        log_path.parent.mkdir(parents=True, exist_ok=True)
        stamp = datetime.now(timezone.utc).isoformat(timespec="seconds")
        lines = [f"--- {stamp} {error.code.value}", f"message: {error.message}"]
        if error.hint:
            lines.append(f"hint: {error.hint}")
        if error.path is not None:
            lines.append(f"path: {error.path}")
        output = getattr(error, "output", "")
        if output:
            lines.extend(["output:", output.rstrip()])
        with log_path.open("a", encoding="utf-8") as handle:
            handle.write("\n".join(lines) + "\n")
        self.logger.debug("recorded %s in %s", error.code.value, log_path)
        return log_path
