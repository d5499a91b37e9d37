"""Commands that maintain the tracked-project list."""

from __future__ import annotations

from argparse import ArgumentParser, Namespace

from projkit_core.api import AbstractCommand, projkitcommand
from projkit_core.errors import ProjkitError
from projkit_core.registry import ProjectFilter


@projkitcommand(name="add")
class AddCommand(AbstractCommand):
    """Start tracking one or more projects (paths or globs)."""

    @classmethod
    def configure(cls, parser: ArgumentParser) -> None:
        parser.add_argument("paths", nargs="+", help="Project directories or glob patterns")
        parser.add_argument(
            "--yes",
            "-y",
            action="store_true",
            help="Add workspace members without asking",
        )

    def run(self, args: Namespace) -> int:
        confirm = (lambda _prompt: True) if args.yes else self.app.confirm
        added: list[str] = []
        for target in args.paths:
            added.extend(self.app.registry.add(target, confirm=confirm))
        if not added:
            print("[projkit:add] nothing added (see warnings above)")
            return 1
        for entry in added:
            print(f"[projkit:add] {entry}")
        return 0


@projkitcommand(name="remove")
class RemoveCommand(AbstractCommand):
    """Stop tracking a project, by path or by name."""

    @classmethod
    def configure(cls, parser: ArgumentParser) -> None:
        parser.add_argument("target", help="Project path or name")

    def run(self, args: Namespace) -> int:
        try:
            removed = self.app.registry.remove(args.target)
        except ProjkitError as exc:
            print(f"[projkit:remove] error: {exc.render()}")
            return 1
        print(f"[projkit:remove] {removed}")
        return 0


@projkitcommand(name="list")
class ListCommand(AbstractCommand):
    """List tracked projects."""

    @classmethod
    def configure(cls, parser: ArgumentParser) -> None:
        group = parser.add_mutually_exclusive_group()
        group.add_argument(
            "--ignored",
            dest="project_filter",
            action="store_const",
            const=ProjectFilter.ONLY_IGNORED,
            help="Only projects protected from every feature",
        )
        group.add_argument(
            "--alive",
            dest="project_filter",
            action="store_const",
            const=ProjectFilter.EXCLUDE_IGNORED,
            help="Only projects bulk operations will touch",
        )
        parser.set_defaults(project_filter=ProjectFilter.ALL)

    def run(self, args: Namespace) -> int:
        entries = self.app.registry.list(args.project_filter)
        if not entries:
            print("[projkit:list] no projects tracked")
            return 0
        for entry in entries:
            print(entry)
        return 0


@projkitcommand(name="cleanup")
class CleanupCommand(AbstractCommand):
    """Remove missing, invalid and duplicate entries from the project list."""

    @classmethod
    def configure(cls, parser: ArgumentParser) -> None:
        return None

    def run(self, args: Namespace) -> int:
        removed = self.app.registry.cleanup()
        if not removed:
            print("[projkit:cleanup] project list is already clean")
            return 0
        for entry, code in removed:
            print(f"[projkit:cleanup] removed {entry} ({code.value})")
        return 0
