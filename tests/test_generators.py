"""Tests for regenerating native manifests from a CPF."""

from __future__ import annotations

import textwrap
import tomllib

import pytest

from projkit_core.errors import GenerationError
from projkit_core.interop.generators import (
    deep_merge,
    generate,
    generate_deno,
    generate_golang,
    generate_node,
    manifest_filename,
    render_manifest,
)
from projkit_core.interop.models import CPF, Dependency, Manager, PlatformExtras, Relationship
from projkit_core.interop.normalize import cargo_to_cpf, deno_to_cpf, golang_to_cpf, node_to_cpf
from projkit_core.interop.parsers import parse_cargo, parse_deno, parse_golang, parse_node


def _dependency_set(cpf: CPF) -> set[tuple[str, str, str, str]]:
    return {(dep.name, dep.version, dep.relationship.value, dep.source) for dep in cpf.dependencies}


def test_deep_merge_is_recursive_and_does_not_mutate() -> None:
    base = {"a": {"b": 1, "c": 2}, "d": [1]}
    merged = deep_merge(base, {"a": {"c": 3}, "d": [2], "e": "x"})
    assert merged == {"a": {"b": 1, "c": 3}, "d": [2], "e": "x"}
    assert base == {"a": {"b": 1, "c": 2}, "d": [1]}


def test_node_round_trip() -> None:
    text = """{
      "name": "x", "version": "1.2.3",
      "dependencies": {"left-pad": "1.3.0"},
      "devDependencies": {"vitest": "^1.0.0"},
      "peerDependencies": {"react": ">=18"}
    }"""
    cpf = node_to_cpf(parse_node(text), Manager.NPM)
    rendered = render_manifest(generate_node(cpf), Manager.NPM)
    again = node_to_cpf(parse_node(rendered), Manager.NPM)
    assert (again.name, again.version) == ("x", "1.2.3")
    assert _dependency_set(again) == _dependency_set(cpf)


def test_node_generator_merges_extra_fields() -> None:
    cpf = node_to_cpf(parse_node('{"name":"x","version":"1.0.0"}'), Manager.NPM)
    document = generate_node(cpf, {"license": "MIT", "dependencies": {"extra": "1.0.0"}})
    assert document["license"] == "MIT"
    assert document["dependencies"] == {"extra": "1.0.0"}


def test_deno_round_trip() -> None:
    text = '{"name":"@me/x","version":"0.2.0","imports":{"std":"jsr:@std/fs@^1.0.10","x":"npm:chalk@5.0.0"}}'
    cpf = deno_to_cpf(parse_deno(text))
    document = generate_deno(cpf)
    assert document["imports"] == {"@std/fs": "jsr:@std/fs@^1.0.10", "chalk": "npm:chalk@5.0.0"}
    again = deno_to_cpf(parse_deno(render_manifest(document, Manager.DENO)))
    assert _dependency_set(again) == _dependency_set(cpf)
    assert (again.name, again.version) == ("@me/x", "0.2.0")


def test_cargo_round_trip() -> None:
    text = textwrap.dedent(
        """
        [package]
        name = "demo"
        version = "0.3.0"
        edition = "2021"

        [dependencies]
        serde = "1.0"
        local = { path = "../local" }
        forked = { git = "https://github.com/acme/forked", branch = "dev" }

        [dev-dependencies]
        insta = "1.0"

        [build-dependencies]
        cc = "1.0"
        """
    )
    cpf = cargo_to_cpf(parse_cargo(text))
    rendered = render_manifest(generate(cpf, Manager.CARGO), Manager.CARGO)
    document = tomllib.loads(rendered)
    assert document["package"] == {"name": "demo", "version": "0.3.0", "edition": "2021"}
    assert document["dependencies"]["local"] == {"path": "../local"}
    assert document["dependencies"]["forked"] == {"git": "https://github.com/acme/forked", "branch": "dev"}
    again = cargo_to_cpf(parse_cargo(rendered))
    assert _dependency_set(again) == _dependency_set(cpf)


def test_go_round_trip() -> None:
    text = "module example.com/m\n\ngo 1.21\n\nrequire (\n\tgolang.org/x/sys v0.20.0\n\tgithub.com/a/b v1.0.0 // indirect\n)\n"
    cpf = golang_to_cpf(parse_golang(text), latest_tag="v1.0.0")
    rendered = render_manifest(generate_golang(cpf), Manager.GO)
    again = golang_to_cpf(parse_golang(rendered), latest_tag="v1.0.0")
    assert again.name == "example.com/m"
    assert _dependency_set(again) == _dependency_set(cpf)
    assert "github.com/a/b v1.0.0 // indirect" in rendered


def test_go_generator_requires_go_version() -> None:
    cpf = CPF(name="example.com/m", version="Unknown", runtime_manager=Manager.GO)
    with pytest.raises(GenerationError):
        generate_golang(cpf)


def test_go_generator_requires_module_name() -> None:
    cpf = CPF(
        name=" ",
        version="Unknown",
        runtime_manager=Manager.GO,
        platform_extras=PlatformExtras(cargo_edition="1.21"),
    )
    with pytest.raises(GenerationError):
        generate_golang(cpf)


def test_go_generator_rejects_foreign_sources() -> None:
    cpf = CPF(
        name="example.com/m",
        version="Unknown",
        runtime_manager=Manager.GO,
        platform_extras=PlatformExtras(cargo_edition="1.21"),
        dependencies=(Dependency("chalk", "5.0.0", Relationship.REGULAR, "npm"),),
    )
    with pytest.raises(GenerationError):
        generate_golang(cpf)


@pytest.mark.parametrize(
    ("manager", "filename"),
    [
        (Manager.NPM, "package.json"),
        (Manager.BUN, "package.json"),
        (Manager.DENO, "deno.json"),
        (Manager.CARGO, "Cargo.toml"),
        (Manager.GO, "go.mod"),
    ],
)
def test_manifest_filename(manager: Manager, filename: str) -> None:
    assert manifest_filename(manager) == filename
