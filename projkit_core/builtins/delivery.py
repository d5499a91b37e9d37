"""Commands that build, start and release a single project."""

from __future__ import annotations

from argparse import ArgumentParser, Namespace

from projkit_core.api import AbstractCommand, projkitcommand
from projkit_core.errors import ProjkitError
from projkit_core.features import launch, run_user_script
from projkit_core.release import release


@projkitcommand(name="build")
class BuildCommand(AbstractCommand):
    """Run the project's ``build_cmd`` script."""

    @classmethod
    def configure(cls, parser: ArgumentParser) -> None:
        parser.add_argument("target", nargs="?", help="Project path or name")

    def run(self, args: Namespace) -> int:
        try:
            env = self.app.resolve(args.target)
            built = run_user_script(env, "build", runner=self.app.runner)
        except ProjkitError as exc:
            print(f"[projkit:build] error: {exc.render()}")
            return 1
        if not built:
            print(f"[projkit:build] {env.display_name} has no build_cmd in projkit.yaml")
            return 1
        print(f"[projkit:build] {env.display_name} built")
        return 0


@projkitcommand(name="launch")
class LaunchCommand(AbstractCommand):
    """Start the project with ``launch_cmd`` or the manager's start command."""

    @classmethod
    def configure(cls, parser: ArgumentParser) -> None:
        parser.add_argument("target", nargs="?", help="Project path or name")

    def run(self, args: Namespace) -> int:
        try:
            env = self.app.resolve(args.target)
            launch(env, runner=self.app.runner)
        except ProjkitError as exc:
            print(f"[projkit:launch] error: {exc.render()}")
            return 1
        print(f"[projkit:launch] {env.display_name} exited")
        return 0


@projkitcommand(name="release")
class ReleaseCommand(AbstractCommand):
    """Bump the version, tag it and publish it to the manager's registry."""

    @classmethod
    def configure(cls, parser: ArgumentParser) -> None:
        parser.add_argument("target", help="Project path or name")
        parser.add_argument("version", help="New version, e.g. 1.4.0")
        parser.add_argument("--dry", action="store_true", help="Stop after writing the version and release_cmd")
        parser.add_argument("--push", action="store_true", help="Push the release commit and tag")
        parser.add_argument("--yes", "-y", action="store_true", help="Publish without asking after the dry run")

    def run(self, args: Namespace) -> int:
        confirm = (lambda _prompt: True) if args.yes else self.app.confirm
        try:
            env = self.app.resolve(args.target)
            published = release(
                env,
                args.version,
                runner=self.app.runner,
                vcs=self.app.vcs,
                confirm=confirm,
                dry=args.dry,
                push=args.push,
            )
        except ProjkitError as exc:
            print(f"[projkit:release] error: {exc.render()}")
            if getattr(exc, "output", ""):
                print(f"[projkit:release] command output saved to {self.app.record_error(exc)}")
            return 1
        if not published:
            print(f"[projkit:release] {env.name} {args.version.strip()} was not published")
            return 0
        print(f"[projkit:release] {env.name} {args.version.strip()} published")
        return 0
