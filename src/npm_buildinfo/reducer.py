"""Reduce the nested ``npm ls`` tree into one entry per ``name:version``."""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from typing import Any

import structlog

from npm_buildinfo.errors import NpmLsParseError
from npm_buildinfo.models import CanonicalDependency, DependencyRecord, merge_scopes
from npm_buildinfo.parsers.npm_ls import NodeParser

log = structlog.get_logger("npm_buildinfo.reducer")

DependenciesMap = dict[str, CanonicalDependency]


def append_dependency(
    dependencies: DependenciesMap,
    record: DependencyRecord,
    path_to_root: Sequence[str],
) -> CanonicalDependency:
    """Add one occurrence of *record* to *dependencies*, merging by id."""
    entry = dependencies.get(record.id)
    if entry is None:
        entry = CanonicalDependency.from_record(record)
        dependencies[record.id] = entry
    entry.merge(record, path_to_root)
    return entry


def parse_dependencies(
    tree: Mapping[str, Any],
    path_to_root: Sequence[str],
    dependencies: DependenciesMap,
    parse_node: NodeParser,
) -> None:
    """Walk *tree* depth-first, adding every installed node to *dependencies*.

    *tree* maps dependency names to ``npm ls`` nodes. *path_to_root* lists the
    ids from the direct parent back to the module itself; each occurrence of a
    dependency records the path it was reached through.
    """
    for key, node in tree.items():
        if node == {}:
            log.debug("dependency.missing", name=key, hint="may be an optional dependency")
            continue

        record = parse_node(node)
        if not record.version:
            if record.unresolved:
                log.debug("dependency.missing", name=key, hint="may be a peer dependency")
                continue
            raise NpmLsParseError(
                f"failed to parse '{json.dumps(node)}' from npm ls output."
            )

        append_dependency(dependencies, record, path_to_root)

        transitive = node.get("dependencies")
        if transitive is None:
            continue
        if not isinstance(transitive, Mapping):
            raise NpmLsParseError(f"'dependencies' of {record.id} is not an object")
        if transitive:
            parse_dependencies(
                transitive,
                (record.id, *path_to_root),
                dependencies,
                parse_node,
            )


def merge_dependency_maps(target: DependenciesMap, other: DependenciesMap) -> DependenciesMap:
    """Merge a separately reduced *other* map into *target*.

    Entries of *other* are folded in sorted id order with the same rules as
    the tree walk: the first non-empty integrity wins, scopes are unioned and
    requestedBy paths are concatenated. Checksums already resolved on an
    incoming entry are kept unless the target entry has its own.
    """
    for dep_id in sorted(other):
        incoming = other[dep_id]
        entry = target.get(dep_id)
        if entry is None:
            entry = CanonicalDependency.from_record(incoming.record)
            target[dep_id] = entry
        if not entry.integrity:
            entry.integrity = incoming.integrity
        if entry.checksums is None:
            entry.checksums = incoming.checksums
        entry.scopes = merge_scopes(entry.scopes, incoming.scopes)
        entry.requested_by.extend(incoming.requested_by)
    return target
