"""Git access used for Go versions, commits and release tags."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, Sequence

from .process import CommandOutput, Runner, run

logger = logging.getLogger(__name__)

__all__ = ["Branches", "VersionControl", "Git"]


@dataclass(frozen=True)
class Branches:
    current: str | None
    all: tuple[str, ...]


class VersionControl(Protocol):
    def is_repository(self, path: Path) -> bool: ...

    def get_latest_tag(self, path: Path) -> str | None: ...

    def get_branches(self, path: Path) -> Branches: ...

    def is_clean(self, path: Path) -> bool: ...

    def commit(self, path: Path, message: str, paths: Sequence[str] = ...) -> CommandOutput: ...

    def tag(self, path: Path, name: str) -> CommandOutput: ...

    def push(self, path: Path, *, tag: str | None = None) -> CommandOutput: ...


class Git:
    """Thin wrapper over the ``git`` binary; every call runs in the given path."""

    def __init__(self, runner: Runner = run) -> None:
        self._runner = runner

    def is_repository(self, path: Path) -> bool:
        output = self._runner("git", ["rev-parse", "--is-inside-work-tree"], cwd=Path(path))
        return output.success and output.stdout.strip() == "true"

    def get_latest_tag(self, path: Path) -> str | None:
        output = self._runner("git", ["describe", "--tags", "--abbrev=0"], cwd=Path(path))
        if not output.success:
            logger.debug("no tag found in %s", path)
            return None
        tag = output.stdout.strip()
        return tag or None

    def get_branches(self, path: Path) -> Branches:
        output = self._runner("git", ["branch", "--list"], cwd=Path(path))
        if not output.success:
            return Branches(current=None, all=())
        current: str | None = None
        names: list[str] = []
        for line in output.stdout.splitlines():
            if not line.strip():
                continue
            name = line[2:].strip() if len(line) > 2 else line.strip()
            if line.startswith("*"):
                current = name
            names.append(name)
        return Branches(current=current, all=tuple(names))

    def is_clean(self, path: Path) -> bool:
        output = self._runner("git", ["status", "--porcelain"], cwd=Path(path))
        return output.success and not output.stdout.strip()

    def commit(self, path: Path, message: str, paths: Sequence[str] = (".",)) -> CommandOutput:
        """Stage ``paths`` and commit them; returns the first failing git output."""

        added = self._runner("git", ["add", *paths], cwd=Path(path))
        if not added.success:
            return added
        return self._runner("git", ["commit", "-m", message.strip()], cwd=Path(path))

    def tag(self, path: Path, name: str) -> CommandOutput:
        return self._runner("git", ["tag", name], cwd=Path(path))

    def push(self, path: Path, *, tag: str | None = None) -> CommandOutput:
        pushed = self._runner("git", ["push"], cwd=Path(path))
        if not pushed.success or tag is None:
            return pushed
        return self._runner("git", ["push", "origin", tag], cwd=Path(path))
