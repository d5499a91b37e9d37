"""Manifest parsing, normalization to CPF and regeneration of native manifests."""

from .generators import (
    deep_merge,
    generate,
    generate_cargo,
    generate_deno,
    generate_golang,
    generate_node,
    manifest_filename,
    render_manifest,
)
from .models import (
    CPF,
    UNSUPPORTED,
    CargoManifest,
    CommandTable,
    Dependency,
    DenoManifest,
    GoManifest,
    GoRequirement,
    Lockfile,
    MainManifest,
    Manager,
    NativeManifest,
    NodeManifest,
    PlatformExtras,
    ProjectEnvironment,
    Relationship,
    Runtime,
)
from .normalize import (
    cargo_to_cpf,
    dedupe_dependencies,
    deno_to_cpf,
    find_dependency,
    golang_to_cpf,
    node_to_cpf,
    to_cpf,
)
from .parsers import parse_block, parse_cargo, parse_deno, parse_golang, parse_node

__all__ = [
    "CPF",
    "UNSUPPORTED",
    "CargoManifest",
    "CommandTable",
    "Dependency",
    "DenoManifest",
    "GoManifest",
    "GoRequirement",
    "Lockfile",
    "MainManifest",
    "Manager",
    "NativeManifest",
    "NodeManifest",
    "PlatformExtras",
    "ProjectEnvironment",
    "Relationship",
    "Runtime",
    "parse_node",
    "parse_deno",
    "parse_cargo",
    "parse_golang",
    "parse_block",
    "node_to_cpf",
    "deno_to_cpf",
    "cargo_to_cpf",
    "golang_to_cpf",
    "to_cpf",
    "dedupe_dependencies",
    "find_dependency",
    "deep_merge",
    "generate",
    "generate_node",
    "generate_deno",
    "generate_cargo",
    "generate_golang",
    "render_manifest",
    "manifest_filename",
]
