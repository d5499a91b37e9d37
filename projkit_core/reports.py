"""CPF export and dependency statistics for a resolved project."""

from __future__ import annotations

import json
from collections import Counter
from dataclasses import dataclass
from pathlib import Path

import yaml

from .interop.models import Dependency, ProjectEnvironment, Relationship

__all__ = ["EXPORT_FORMATS", "export_cpf", "render_cpf", "ProjectStats", "stats"]

EXPORT_FORMATS = ("yaml", "json")

_RELATIONSHIP_LABELS = {
    Relationship.REGULAR: "dependency",
    Relationship.DEV: "dev dependency",
    Relationship.PEER: "peer dependency",
    Relationship.INDIRECT: "indirect dependency",
    Relationship.BUILD: "build dependency",
}


def render_cpf(env: ProjectEnvironment, fmt: str = "yaml") -> str:
    if fmt not in EXPORT_FORMATS:
        raise ValueError(f"unsupported export format '{fmt}'")
    payload = env.cpf.to_dict()
    if fmt == "json":
        return json.dumps(payload, indent=2) + "\n"
    return yaml.safe_dump(payload, sort_keys=False)


def export_cpf(env: ProjectEnvironment, fmt: str = "yaml", *, destination: Path | None = None) -> Path:
    """Write the project's CPF next to it (or to ``destination``) and return the path."""

    target = destination or env.root / f"projkit.export.{fmt}"
    target.write_text(render_cpf(env, fmt), encoding="utf-8")
    return target


@dataclass(frozen=True)
class DependencyRow:
    name: str
    version: str
    label: str
    source: str


@dataclass(frozen=True)
class ProjectStats:
    name: str
    version: str
    runtime: str
    manager: str
    counts: dict[str, int]
    rows: tuple[DependencyRow, ...]
    workspace_count: int
    non_registry: tuple[Dependency, ...]

    @property
    def total(self) -> int:
        return len(self.rows)


def stats(env: ProjectEnvironment) -> ProjectStats:
    cpf = env.cpf
    counts = Counter(dep.relationship.value for dep in cpf.dependencies)
    rows = tuple(
        DependencyRow(
            name=dep.name,
            version=dep.version,
            label=_RELATIONSHIP_LABELS[dep.relationship],
            source=dep.source,
        )
        for dep in cpf.dependencies
    )
    return ProjectStats(
        name=cpf.name,
        version=cpf.version,
        runtime=env.runtime.value,
        manager=env.manager.value,
        counts={rel.value: counts.get(rel.value, 0) for rel in Relationship},
        rows=rows,
        workspace_count=len(env.workspaces),
        non_registry=tuple(dep for dep in cpf.dependencies if not dep.is_registry),
    )
