"""Read-only commands: show the resolved environment, dependency stats and CPF exports."""

from __future__ import annotations

from argparse import ArgumentParser, Namespace

from projkit_core.api import AbstractCommand, projkitcommand
from projkit_core.errors import ProjkitError
from projkit_core.interop.models import UNSUPPORTED, ProjectEnvironment, generator_version
from projkit_core.reports import EXPORT_FORMATS, export_cpf, render_cpf, stats
from projkit_core.updates import DEFAULT_RELEASE_URL, UpdateChecker


class _ProjectCommand(AbstractCommand):
    """Commands that act on one project given as a path or tracked name."""

    label = "project"

    @classmethod
    def configure(cls, parser: ArgumentParser) -> None:
        parser.add_argument("target", nargs="?", default=".", help="Project path or name")

    def _resolve(self, target: str) -> ProjectEnvironment | None:
        try:
            return self.app.resolve(target)
        except ProjkitError as exc:
            print(f"[projkit:{self.label}] error: {exc.render()}")
            return None


@projkitcommand(name="env")
class EnvCommand(_ProjectCommand):
    """Show how projkit understands a project."""

    label = "env"

    def run(self, args: Namespace) -> int:
        env = self._resolve(args.target)
        if env is None:
            return 1
        print(f"[projkit:env] {env.display_name}")
        print(f"  root:      {env.root}")
        print(f"  runtime:   {env.runtime.value}")
        print(f"  manager:   {env.manager.value}")
        print(f"  manifest:  {env.main.path.name}")
        lockfile = env.lockfile.path or f"{env.lockfile.name} (missing)"
        print(f"  lockfile:  {lockfile}")
        for action in ("exec", "update", "run", "audit", "publish", "start"):
            value = getattr(env.commands, action)
            rendered = "unsupported" if value is UNSUPPORTED else " ".join(value)
            print(f"  {action + ':':<10} {rendered}")
        if env.workspaces:
            print("  workspaces:")
            for member in env.workspaces:
                print(f"    {member}")
        return 0


@projkitcommand(name="stats")
class StatsCommand(_ProjectCommand):
    """Summarize the dependencies of a project."""

    label = "stats"

    def run(self, args: Namespace) -> int:
        env = self._resolve(args.target)
        if env is None:
            return 1
        report = stats(env)
        print(f"[projkit:stats] {report.name}@{report.version} ({report.runtime}/{report.manager})")
        counts = ", ".join(f"{key}={value}" for key, value in report.counts.items() if value)
        print(f"  {report.total} dependencies" + (f" ({counts})" if counts else ""))
        for row in report.rows:
            print(f"  {row.name}@{row.version}  {row.label}  [{row.source}]")
        if report.non_registry:
            print(f"  {len(report.non_registry)} dependencies do not come from a registry")
        if report.workspace_count:
            print(f"  {report.workspace_count} workspace members")
        return 0


@projkitcommand(name="export")
class ExportCommand(_ProjectCommand):
    """Write the project's Common Package Format to a YAML or JSON file."""

    label = "export"

    @classmethod
    def configure(cls, parser: ArgumentParser) -> None:
        super().configure(parser)
        parser.add_argument("--format", choices=EXPORT_FORMATS, default="yaml")
        parser.add_argument(
            "--stdout",
            action="store_true",
            help="Print the export instead of writing a file",
        )

    def run(self, args: Namespace) -> int:
        env = self._resolve(args.target)
        if env is None:
            return 1
        if args.stdout:
            print(render_cpf(env, args.format), end="")
            return 0
        path = export_cpf(env, args.format)
        print(f"[projkit:export] wrote {path}")
        return 0


@projkitcommand(name="upgrade")
class UpgradeCommand(AbstractCommand):
    """Check whether a newer projkit release is available."""

    @classmethod
    def configure(cls, parser: ArgumentParser) -> None:
        parser.add_argument("--url", default=DEFAULT_RELEASE_URL, help="Release endpoint to query")

    def run(self, args: Namespace) -> int:
        current = generator_version()
        info = UpdateChecker(self.app.paths, url=args.url).check(current, force=True)
        if info is None:
            print("[projkit:upgrade] unable to reach the release endpoint")
            return 1
        if info.available:
            print(f"[projkit:upgrade] projkit {info.latest} is available (you have {current})")
        else:
            print(f"[projkit:upgrade] projkit {current} is up to date")
        return 0
