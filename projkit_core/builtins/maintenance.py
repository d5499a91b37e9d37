"""Commands that change projects: maintenance tasks and manager migration."""

from __future__ import annotations

from argparse import ArgumentParser, Namespace

from projkit_core.api import AbstractCommand, projkitcommand
from projkit_core.errors import FeatureError, ProjkitError
from projkit_core.features import FEATURES, INTENSITIES, commit, ready_to_commit
from projkit_core.interop.models import Manager, ProjectEnvironment
from projkit_core.migrate import migrate
from projkit_core.registry import ProjectFilter

_DEFAULT_TASKS = ("update", "clean")


@projkitcommand(name="clean")
class CleanCommand(AbstractCommand):
    """Run maintenance tasks (update, lint, pretty, clean, destroy) on one or every project."""

    @classmethod
    def configure(cls, parser: ArgumentParser) -> None:
        parser.add_argument("target", nargs="?", help="Project path or name")
        parser.add_argument(
            "--all",
            action="store_true",
            dest="all_projects",
            help="Run on every tracked project that is not ignored",
        )
        parser.add_argument(
            "--task",
            action="append",
            choices=sorted(FEATURES),
            dest="tasks",
            help="Task to run (repeatable); defaults to update and clean",
        )
        parser.add_argument(
            "--intensity",
            choices=INTENSITIES,
            default="normal",
            help="Destroy intensity; targets are removed only for intensities listed in projkit.yaml",
        )
        parser.add_argument(
            "--commit",
            action="store_true",
            help="Commit the changes when commit_actions is enabled and the tree was clean",
        )

    def run(self, args: Namespace) -> int:
        tasks = tuple(args.tasks or _DEFAULT_TASKS)
        if args.all_projects:
            targets = self.app.registry.list(ProjectFilter.EXCLUDE_IGNORED)
            if not targets:
                print("[projkit:clean] no projects to process")
                return 0
        else:
            targets = [args.target or "."]

        failures = 0
        for resolution in self.app.resolve_all(targets):
            if not resolution.is_ok:
                failures += 1
                print(f"[projkit:clean] {resolution.target}: {resolution.error.render()}")
                self.app.events.emit("project_skipped", path=resolution.target)
                continue
            if not self._process(resolution.value, tasks, args):
                failures += 1
        return 1 if failures and not args.all_projects else 0

    def _process(self, env: ProjectEnvironment, tasks: tuple[str, ...], args: Namespace) -> bool:
        may_commit = args.commit and ready_to_commit(env, self.app.vcs)
        ran: list[str] = []
        for task in tasks:
            self.app.events.emit("feature_started", path=str(env.root), task=task)
            options = {"intensity": args.intensity} if task == "destroy" else {}
            try:
                done = FEATURES[task](env, runner=self.app.runner, **options)
            except ProjkitError as exc:
                self._report(env, exc)
                self.app.events.emit("feature_finished", path=str(env.root), task=task, ok=False)
                return False
            print(f"[projkit:clean] {env.display_name}: {task} {'done' if done else 'skipped'}")
            self.app.events.emit("feature_finished", path=str(env.root), task=task, ok=True)
            if done:
                ran.append(task)

        if not may_commit:
            return True
        try:
            committed = commit(env, ran, vcs=self.app.vcs)
        except ProjkitError as exc:
            self._report(env, exc)
            return False
        if committed:
            print(f"[projkit:clean] {env.display_name}: changes committed")
        return True

    def _report(self, env: ProjectEnvironment, exc: ProjkitError) -> None:
        print(f"[projkit:clean] {env.display_name}: {exc.render()}")
        if isinstance(exc, FeatureError):
            log_path = self.app.record_error(exc)
            print(f"[projkit:clean] command output saved to {log_path}")


@projkitcommand(name="migrate")
class MigrateCommand(AbstractCommand):
    """Move a JavaScript project to another package manager."""

    @classmethod
    def configure(cls, parser: ArgumentParser) -> None:
        parser.add_argument("target", help="Project path or name")
        parser.add_argument("manager", help="npm, pnpm, yarn, bun or deno")

    def run(self, args: Namespace) -> int:
        try:
            manager = Manager.parse(args.manager)
        except ValueError as exc:
            print(f"[projkit:migrate] error: {exc}")
            return 1
        try:
            env = self.app.resolve(args.target)
            migrated = migrate(env, manager, runner=self.app.runner, vcs=self.app.vcs)
        except ProjkitError as exc:
            print(f"[projkit:migrate] error: {exc.render()}")
            return 1
        print(f"[projkit:migrate] {migrated.display_name} now uses {migrated.manager.value}")
        return 0
