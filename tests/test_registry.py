"""Tests for the tracked-project registry."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from projkit_core.errors import ProjectErrorCode, ProjectNotFoundError
from projkit_core.events import EventBus
from projkit_core.paths import AppPaths
from projkit_core.registry import ProjectFilter, ProjectRegistry


def _project(root: Path, name: str = "demo", **extra: object) -> Path:
    root.mkdir(parents=True, exist_ok=True)
    (root / "package.json").write_text(json.dumps({"name": name, "version": "1.0.0", **extra}))
    return root.resolve()


@pytest.fixture()
def registry(tmp_path: Path) -> ProjectRegistry:
    return ProjectRegistry(AppPaths.under(tmp_path / "app"))


def test_empty_registry(registry: ProjectRegistry) -> None:
    assert registry.entries() == []
    assert registry.list() == []


def test_add_and_remove_by_path(tmp_path: Path, registry: ProjectRegistry) -> None:
    root = _project(tmp_path / "one")

    assert registry.add(str(root)) == [str(root)]
    assert registry.entries() == [str(root)]
    assert registry.projects_file.read_text() == f"{root}\n"

    assert registry.remove(str(root)) == str(root)
    assert registry.entries() == []


def test_duplicates_are_refused(tmp_path: Path, registry: ProjectRegistry) -> None:
    root = _project(tmp_path / "one")
    registry.add(str(root))

    assert registry.add(str(root)) == []
    assert registry.validate(root) is ProjectErrorCode.IS_DUPLICATE
    assert registry.validate(root, existing=True) is None


@pytest.mark.parametrize(
    ("setup", "expected"),
    [
        (lambda root: None, ProjectErrorCode.NO_PKG_FILE),
        (lambda root: (root / "package.json").write_text('{"version":"1.0.0"}'), ProjectErrorCode.NO_NAME),
        (
            lambda root: (
                (root / "package.json").write_text('{"name":"x"}'),
                (root / "yarn.lock").write_text(""),
                (root / "package-lock.json").write_text(""),
            ),
            ProjectErrorCode.TOO_MANY_LOCKFILES,
        ),
        (
            lambda root: (root / "Cargo.toml").write_text('[package]\nname = "x"\nversion = { workspace = true }\n'),
            ProjectErrorCode.NO_VERSION,
        ),
        (lambda root: (root / "deno.json").write_text("{}"), ProjectErrorCode.NO_NAME),
    ],
)
def test_diagnose_reports_error_codes(tmp_path: Path, registry: ProjectRegistry, setup, expected) -> None:
    root = tmp_path / "project"
    root.mkdir()
    setup(root)
    assert registry.diagnose(root) is expected


def test_missing_directory_is_not_found(tmp_path: Path, registry: ProjectRegistry) -> None:
    assert registry.validate(tmp_path / "ghost") is ProjectErrorCode.NOT_FOUND
    assert registry.add(str(tmp_path / "ghost")) == []


def test_glob_adds_every_valid_match(tmp_path: Path, registry: ProjectRegistry) -> None:
    first = _project(tmp_path / "repos" / "a", name="a")
    second = _project(tmp_path / "repos" / "b", name="b")
    (tmp_path / "repos" / "empty").mkdir()

    added = registry.add(str(tmp_path / "repos" / "*"))

    assert added == [str(first), str(second)]


def test_workspace_members_are_added_after_confirmation(tmp_path: Path, registry: ProjectRegistry) -> None:
    root = _project(tmp_path / "mono", name="mono", workspaces=["packages/*"])
    member = _project(tmp_path / "mono" / "packages" / "lib", name="lib")
    prompts: list[str] = []

    def confirm(prompt: str) -> bool:
        prompts.append(prompt)
        return True

    added = registry.add(str(root), confirm=confirm)

    assert added == [str(root), str(member)]
    assert len(prompts) == 1
    assert "1 workspace member" in prompts[0]


def test_declined_workspace_prompt_adds_only_root(tmp_path: Path, registry: ProjectRegistry) -> None:
    root = _project(tmp_path / "mono", name="mono", workspaces=["packages/*"])
    _project(tmp_path / "mono" / "packages" / "lib", name="lib")

    assert registry.add(str(root), confirm=lambda prompt: False) == [str(root)]


def test_spot_and_remove_by_name(tmp_path: Path, registry: ProjectRegistry) -> None:
    root = _project(tmp_path / "named", name="@scope/named")
    registry.add(str(root))

    assert registry.spot("@scope/named") == root
    assert registry.spot("unknown") is None
    assert registry.remove("@scope/named") == str(root)


def test_remove_unknown_raises(registry: ProjectRegistry) -> None:
    with pytest.raises(ProjectNotFoundError):
        registry.remove("nothing")


def test_remove_only_drops_first_occurrence(tmp_path: Path, registry: ProjectRegistry) -> None:
    root = _project(tmp_path / "one")
    registry._write([str(root), str(root)])

    registry.remove(str(root))

    assert registry.entries() == [str(root)]


def test_cleanup_drops_invalid_and_repeated_entries(tmp_path: Path, registry: ProjectRegistry) -> None:
    good = _project(tmp_path / "good")
    broken = tmp_path / "broken"
    broken.mkdir()
    registry._write([str(good), str(tmp_path / "gone"), str(good), str(broken)])

    removed = registry.cleanup()

    assert removed == [
        (str(tmp_path / "gone"), ProjectErrorCode.NOT_FOUND),
        (str(good), ProjectErrorCode.IS_DUPLICATE),
        (str(broken), ProjectErrorCode.NO_PKG_FILE),
    ]
    assert registry.entries() == [str(good)]


def test_list_filters_ignored_projects(tmp_path: Path, registry: ProjectRegistry) -> None:
    active = _project(tmp_path / "active", name="active")
    ignored = _project(tmp_path / "ignored", name="ignored")
    (ignored / "projkit.yaml").write_text('protection: "*"\n')
    registry.add(str(active))
    registry.add(str(ignored))

    assert registry.list(ProjectFilter.ALL) == [str(active), str(ignored)]
    assert registry.list(ProjectFilter.ONLY_IGNORED) == [str(ignored)]
    assert registry.list(ProjectFilter.EXCLUDE_IGNORED) == [str(active)]


def test_registry_emits_events(tmp_path: Path) -> None:
    bus = EventBus()
    seen: list[tuple[str, dict]] = []
    bus.on("project_added", lambda event: seen.append((event.name, event.payload)))
    bus.on("project_removed", lambda event: seen.append((event.name, event.payload)))
    registry = ProjectRegistry(AppPaths.under(tmp_path / "app"), events=bus)
    root = _project(tmp_path / "one")

    registry.add(str(root))
    registry.remove(str(root))

    assert seen == [
        ("project_added", {"path": str(root)}),
        ("project_removed", {"path": str(root)}),
    ]


def test_deleted_project_is_not_spotted_but_can_be_removed(tmp_path: Path, registry: ProjectRegistry) -> None:
    root = _project(tmp_path / "gone")
    registry.add(str(root))
    (root / "package.json").unlink()
    root.rmdir()

    assert registry.spot(str(root)) is None
    assert registry.remove(str(root)) == str(root)
    assert registry.entries() == []


def test_recursive_glob_adds_nested_projects(tmp_path: Path, registry: ProjectRegistry) -> None:
    nested = _project(tmp_path / "code" / "team" / "api", name="api")

    added = registry.add(str(tmp_path / "code" / "**"))

    assert added == [str(nested)]
