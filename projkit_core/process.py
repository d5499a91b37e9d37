"""Run external tools with an explicit working directory."""

from __future__ import annotations

import logging
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, Sequence

logger = logging.getLogger(__name__)

__all__ = ["CommandOutput", "Runner", "run", "manager_exists"]


@dataclass(frozen=True)
class CommandOutput:
    success: bool
    stdout: str


class Runner(Protocol):
    def __call__(self, command: str, args: Sequence[str], *, cwd: Path) -> CommandOutput: ...


def run(command: str, args: Sequence[str], *, cwd: Path) -> CommandOutput:
    """Run ``command args...`` inside ``cwd``; stderr is folded into stdout."""

    argv = [command, *args]
    logger.debug("running %s in %s", " ".join(argv), cwd)
    try:
        completed = subprocess.run(
            argv,
            cwd=str(cwd),
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            check=False,
        )
    except FileNotFoundError:
        logger.debug("%s is not on PATH", command)
        return CommandOutput(success=False, stdout=f"{command}: command not found")
    except OSError as exc:
        return CommandOutput(success=False, stdout=str(exc))
    return CommandOutput(success=completed.returncode == 0, stdout=completed.stdout or "")


def manager_exists(manager: str, *, runner: Runner = run) -> bool:
    """Check that ``manager`` is installed and answers a version query."""

    if shutil.which(manager) is None:
        return False
    args = ["version"] if manager == "go" else ["-v"]
    return runner(manager, args, cwd=Path.cwd()).success
