"""Tests for the cross-ecosystem maintenance tasks."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Sequence

import pytest

import projkit_core.features as features
from projkit_core.environment import resolve_environment
from projkit_core.errors import FeatureError, MissingToolError
from projkit_core.interop.models import Manager
from projkit_core.process import CommandOutput
from projkit_core.vcs import Branches


@pytest.fixture(autouse=True)
def _tools_installed(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(features, "manager_exists", lambda tool, runner: True)


class FakeRunner:
    def __init__(self, fail: set[str] | None = None) -> None:
        self.calls: list[tuple[str, ...]] = []
        self.cwds: list[Path] = []
        self.fail = fail or set()

    def __call__(self, command: str, args: Sequence[str], *, cwd: Path) -> CommandOutput:
        argv = (command, *args)
        self.calls.append(argv)
        self.cwds.append(cwd)
        failed = " ".join(argv) in self.fail
        return CommandOutput(success=not failed, stdout="boom" if failed else "")


def _node_project(root: Path, settings: str = "", **extra: object) -> Path:
    root.mkdir(parents=True, exist_ok=True)
    document = {"name": "web", "version": "1.0.0", **extra}
    (root / "package.json").write_text(json.dumps(document))
    (root / "pnpm-lock.yaml").write_text("")
    if settings:
        (root / "projkit.yaml").write_text(settings)
    return root


def test_update_uses_command_table(tmp_path: Path) -> None:
    env = resolve_environment(_node_project(tmp_path))
    runner = FakeRunner()

    assert features.update(env, runner=runner) is True
    assert runner.calls == [("pnpm", "update")]
    assert runner.cwds == [env.root]


def test_update_override_runs_script(tmp_path: Path) -> None:
    env = resolve_environment(_node_project(tmp_path, "update_override: deps:up\n"))
    runner = FakeRunner()

    features.update(env, runner=runner)

    assert runner.calls == [("pnpm", "run", "deps:up")]


def test_update_override_on_go_project_fails(tmp_path: Path) -> None:
    (tmp_path / "go.mod").write_text("module example.com/m\n\ngo 1.22\n")
    (tmp_path / "projkit.yaml").write_text("update_override: up\n")
    env = resolve_environment(tmp_path, vcs=_Repo())

    with pytest.raises(FeatureError) as info:
        features.update(env, runner=FakeRunner())
    assert info.value.task == "script"


def test_protected_feature_is_skipped(tmp_path: Path) -> None:
    env = resolve_environment(_node_project(tmp_path, "protection: [updater]\n"))
    runner = FakeRunner()

    assert features.update(env, runner=runner) is False
    assert runner.calls == []


def test_failed_command_raises_with_output(tmp_path: Path) -> None:
    env = resolve_environment(_node_project(tmp_path))
    runner = FakeRunner(fail={"pnpm update"})

    with pytest.raises(FeatureError) as info:
        features.update(env, runner=runner)
    assert info.value.output == "boom"
    assert info.value.path == env.root


def test_clean_runs_every_step(tmp_path: Path) -> None:
    env = resolve_environment(_node_project(tmp_path))
    runner = FakeRunner()

    assert features.clean(env, runner=runner) is True
    assert runner.calls == [("pnpm", "dedupe"), ("pnpm", "prune")]


def test_clean_is_unsupported_for_deno(tmp_path: Path) -> None:
    (tmp_path / "deno.json").write_text('{"name": "@me/x"}')
    env = resolve_environment(tmp_path)
    runner = FakeRunner()

    assert features.clean(env, runner=runner) is False
    assert runner.calls == []


def test_lint_uses_eslint_when_installed(tmp_path: Path) -> None:
    env = resolve_environment(_node_project(tmp_path, devDependencies={"eslint": "^9.0.0"}))
    runner = FakeRunner()

    assert features.lint(env, runner=runner) is True
    assert runner.calls == [("pnpm", "dlx", "eslint", "--fix", ".")]


def test_lint_without_eslint_or_script_does_nothing(tmp_path: Path) -> None:
    env = resolve_environment(_node_project(tmp_path))
    runner = FakeRunner()

    assert features.lint(env, runner=runner) is False
    assert runner.calls == []


def test_pretty_prefers_configured_script(tmp_path: Path) -> None:
    env = resolve_environment(
        _node_project(tmp_path, "pretty_script: fmt\n", devDependencies={"prettier": "^3.0.0"})
    )
    runner = FakeRunner()

    features.pretty(env, runner=runner)

    assert runner.calls == [("pnpm", "run", "fmt")]


def test_cargo_lint_and_pretty(tmp_path: Path) -> None:
    (tmp_path / "Cargo.toml").write_text('[package]\nname = "demo"\nversion = "0.1.0"\n')
    env = resolve_environment(tmp_path)
    runner = FakeRunner()

    features.lint(env, runner=runner)
    features.pretty(env, runner=runner)

    assert runner.calls == [("cargo", "check", "--all-targets", "--workspace"), ("cargo", "fmt")]


def test_install_per_ecosystem(tmp_path: Path) -> None:
    runner = FakeRunner()

    features.install(tmp_path, Manager.YARN, runner=runner)
    features.install(tmp_path, Manager.GO, runner=runner)
    (tmp_path / "vendor").mkdir()
    features.install(tmp_path, Manager.GO, runner=runner)
    features.install(tmp_path, Manager.CARGO, runner=runner)

    assert runner.calls == [
        ("yarn", "install"),
        ("go", "mod", "tidy"),
        ("go", "mod", "vendor"),
        ("cargo", "fetch"),
        ("cargo", "check"),
    ]


def test_install_requires_the_tool(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(features, "manager_exists", lambda tool, runner: False)

    with pytest.raises(MissingToolError) as info:
        features.install(tmp_path, Manager.BUN, runner=FakeRunner())
    assert info.value.tool == "bun"



def test_missing_tool_is_reported_before_running(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    env = resolve_environment(_node_project(tmp_path))
    monkeypatch.setattr(features, "manager_exists", lambda tool, runner: tool != "pnpm")
    runner = FakeRunner()

    for task in (features.update, features.clean):
        with pytest.raises(MissingToolError) as info:
            task(env, runner=runner)
        assert info.value.tool == "pnpm"
    assert runner.calls == []


def test_package_runners_are_checked_through_their_manager(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    (tmp_path / "package.json").write_text(json.dumps({"name": "web", "version": "1.0.0"}))
    (tmp_path / "package-lock.json").write_text("{}")
    checked: list[str] = []
    monkeypatch.setattr(features, "manager_exists", lambda tool, runner: checked.append(tool) or True)
    env = resolve_environment(tmp_path)

    features.execute("lint", FakeRunner(), (*env.commands.exec, "eslint", "."), env.root)

    assert checked == ["npm"]


# ---- destroy ----


def _destroyable(root: Path, settings: str) -> Path:
    _node_project(root, settings)
    (root / "dist" / "assets").mkdir(parents=True)
    (root / "out.log").write_text("log")
    (root / "node_modules" / "dep").mkdir(parents=True)
    return root


def test_destroy_removes_targets_for_enabled_intensity(tmp_path: Path) -> None:
    root = _destroyable(tmp_path, "destroy:\n  intensities: [hard]\n  targets: [dist/, out.log, missing/]\n")
    env = resolve_environment(root)

    assert features.destroy(env, intensity="hard") is True

    assert not (root / "dist").exists()
    assert not (root / "out.log").exists()
    assert (root / "node_modules").exists()


def test_destroy_skips_other_intensities(tmp_path: Path) -> None:
    root = _destroyable(tmp_path, "destroy:\n  intensities: [maxim]\n  targets: [dist/]\n")
    env = resolve_environment(root)

    assert features.destroy(env, intensity="normal") is False
    assert (root / "dist").exists()


def test_destroy_maxim_also_removes_dependencies(tmp_path: Path) -> None:
    root = _destroyable(tmp_path, "destroy:\n  intensities: ['*']\n  targets: [dist/]\n")
    env = resolve_environment(root)

    features.destroy(env, intensity="maxim")

    assert not (root / "dist").exists()
    assert not (root / "node_modules").exists()


def test_destroy_never_leaves_the_project(tmp_path: Path) -> None:
    outside = tmp_path / "outside"
    outside.mkdir()
    root = _destroyable(tmp_path / "web", "destroy:\n  intensities: [normal]\n  targets: [../outside, .]\n")
    env = resolve_environment(root)

    features.destroy(env, intensity="normal")

    assert outside.exists()
    assert (root / "package.json").exists()


def test_destroy_respects_protection(tmp_path: Path) -> None:
    root = _destroyable(tmp_path, "protection: [destroyer]\ndestroy:\n  intensities: ['*']\n")
    env = resolve_environment(root)

    assert features.destroy(env, intensity="maxim") is False
    assert (root / "dist").exists()


# ---- user scripts and launch ----


def test_build_runs_configured_script(tmp_path: Path) -> None:
    env = resolve_environment(_node_project(tmp_path, "build_cmd: build\n"))
    runner = FakeRunner()

    assert features.run_user_script(env, "build", runner=runner) is True
    assert runner.calls == [("pnpm", "run", "build")]


def test_build_without_script_does_nothing(tmp_path: Path) -> None:
    env = resolve_environment(_node_project(tmp_path))
    runner = FakeRunner()

    assert features.run_user_script(env, "build", runner=runner) is False
    assert runner.calls == []


def test_launch_prefers_launch_cmd_then_start(tmp_path: Path) -> None:
    scripted = resolve_environment(_node_project(tmp_path / "a", "launch_cmd: dev\n"))
    plain = resolve_environment(_node_project(tmp_path / "b"))
    (tmp_path / "c").mkdir()
    (tmp_path / "c" / "go.mod").write_text("module example.com/m\n\ngo 1.22\n")
    golang = resolve_environment(tmp_path / "c", vcs=_Repo())
    runner = FakeRunner()

    for env in (scripted, plain, golang):
        features.launch(env, runner=runner)

    assert runner.calls == [("pnpm", "run", "dev"), ("pnpm", "start"), ("go", "run", ".")]


def test_launch_deno_needs_launch_cmd(tmp_path: Path) -> None:
    (tmp_path / "deno.json").write_text('{"name": "@me/x"}')
    env = resolve_environment(tmp_path)

    with pytest.raises(FeatureError):
        features.launch(env, runner=FakeRunner())


# ---- commit ----


class _Repo:
    def __init__(self, *, repository: bool = True, clean: bool = True, branch: str | None = "main") -> None:
        self.repository = repository
        self.clean = clean
        self.branch = branch
        self.commits: list[str] = []

    def is_repository(self, path: Path) -> bool:
        return self.repository

    def get_latest_tag(self, path: Path) -> str | None:
        return None

    def get_branches(self, path: Path) -> Branches:
        return Branches(current=self.branch, all=(self.branch,) if self.branch else ())

    def is_clean(self, path: Path) -> bool:
        return self.clean

    def commit(self, path: Path, message: str, paths: Sequence[str] = (".",)) -> CommandOutput:
        self.commits.append(message)
        return CommandOutput(success=True, stdout="")


@pytest.mark.parametrize(
    "settings, repo, expected",
    [
        ("commit_actions: true\n", _Repo(), True),
        ("", _Repo(), False),
        ("commit_actions: true\n", _Repo(repository=False), False),
        ("commit_actions: true\n", _Repo(clean=False), False),
        ("commit_actions: true\n", _Repo(branch=None), False),
    ],
)
def test_ready_to_commit(tmp_path: Path, settings: str, repo: _Repo, expected: bool) -> None:
    env = resolve_environment(_node_project(tmp_path, settings))
    assert features.ready_to_commit(env, repo) is expected


def test_commit_message_names_the_tasks(tmp_path: Path) -> None:
    env = resolve_environment(_node_project(tmp_path, "commit_actions: true\n"))
    repo = _Repo()

    assert features.commit(env, ["update", "clean", "pretty"], vcs=repo) is True
    assert repo.commits == ["Code updating and prettifying tasks (automated by projkit)"]


def test_commit_uses_configured_message_and_skips_non_editing_tasks(tmp_path: Path) -> None:
    env = resolve_environment(_node_project(tmp_path, "commit_actions: true\ncommit_message: 'chore: tidy'\n"))
    repo = _Repo()

    assert features.commit(env, ["clean"], vcs=repo) is False
    assert features.commit(env, ["lint"], vcs=repo) is True
    assert repo.commits == ["chore: tidy"]
