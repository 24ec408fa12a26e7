"""Tests for the npm ls tree reducer."""

from __future__ import annotations

import copy

import pytest

from npm_buildinfo.errors import NpmLsParseError
from npm_buildinfo.parsers.npm_ls import parse_legacy_node, parse_modern_node
from npm_buildinfo.reducer import (
    append_dependency,
    merge_dependency_maps,
    parse_dependencies,
)
from npm_buildinfo.models import Checksums, DependencyRecord

ROOT = ("pkgA:1.0.0",)


# ── helpers ──────────────────────────────────────────────────────────────


def _node(name: str, version: str, **overrides) -> dict:
    node = {"name": name, "version": version}
    node.update(overrides)
    return node


def _left_right_tree() -> dict:
    return {
        "left": _node(
            "left",
            "1.0.0",
            integrity="sha512-left",
            dependencies={"shared": _node("shared", "1.0.0")},
        ),
        "right": _node(
            "right",
            "2.0.0",
            integrity="sha512-right",
            dev=True,
            dependencies={
                "shared": _node("shared", "1.0.0", integrity="sha512-shared", dev=True)
            },
        ),
    }


def _reduce(tree: dict, parse_node=parse_modern_node, deps=None) -> dict:
    deps = {} if deps is None else deps
    parse_dependencies(tree, ROOT, deps, parse_node)
    return deps


# ── tree walk ────────────────────────────────────────────────────────────


class TestParseDependencies:
    def test_left_right_scenario(self):
        deps = _reduce(_left_right_tree())

        assert list(deps) == ["left:1.0.0", "shared:1.0.0", "right:2.0.0"]
        shared = deps["shared:1.0.0"]
        assert shared.requested_by == [
            ("left:1.0.0", "pkgA:1.0.0"),
            ("right:2.0.0", "pkgA:1.0.0"),
        ]
        assert shared.scopes == ["prod", "dev"]
        assert shared.integrity == "sha512-shared"

    def test_direct_dependency_path_is_module_id(self):
        deps = _reduce({"a": _node("a", "1.0.0")})
        assert deps["a:1.0.0"].requested_by == [ROOT]

    def test_deep_paths_are_nearest_ancestor_first(self):
        tree = {
            "a": _node(
                "a",
                "1.0.0",
                dependencies={"b": _node("b", "2.0.0", dependencies={"c": _node("c", "3.0.0")})},
            )
        }
        deps = _reduce(tree)
        assert deps["c:3.0.0"].requested_by == [("b:2.0.0", "a:1.0.0", "pkgA:1.0.0")]

    def test_same_name_different_versions_are_separate(self):
        tree = {
            "a": _node("a", "1.0.0", dependencies={"x": _node("x", "1.0.0")}),
            "x": _node("x", "2.0.0"),
        }
        deps = _reduce(tree)
        assert {"x:1.0.0", "x:2.0.0"} <= set(deps)

    def test_idempotent_merge(self):
        tree = _left_right_tree()
        once = _reduce(copy.deepcopy(tree))
        twice = _reduce(copy.deepcopy(tree), deps=_reduce(copy.deepcopy(tree)))

        assert set(once) == set(twice)
        for dep_id, entry in once.items():
            assert twice[dep_id].scopes == entry.scopes
            assert twice[dep_id].integrity == entry.integrity
            assert twice[dep_id].checksums == entry.checksums
            assert len(twice[dep_id].requested_by) == 2 * len(entry.requested_by)

    def test_integrity_never_cleared(self):
        tree = {
            "a": _node("a", "1.0.0", integrity="sha512-first"),
            "b": _node("b", "1.0.0", dependencies={"a": _node("a", "1.0.0")}),
            "c": _node("c", "1.0.0", dependencies={"a": _node("a", "1.0.0", integrity="sha512-other")}),
        }
        deps = _reduce(tree)
        assert deps["a:1.0.0"].integrity == "sha512-first"

    def test_scope_union_without_duplicates(self):
        tree = {
            "a": _node("a", "1.0.0", dev=True),
            "b": _node(
                "b",
                "1.0.0",
                dependencies={"a": _node("a", "1.0.0", dev=True)},
            ),
            "c": _node("c", "1.0.0", dependencies={"a": _node("a", "1.0.0")}),
        }
        deps = _reduce(tree)
        assert deps["a:1.0.0"].scopes == ["dev", "prod"]

    def test_scope_group_from_long_scoped_name(self):
        deps = _reduce(
            {
                "@org/sub/pkg": _node("@org/sub/pkg", "1.0.0"),
                "@org/pkg": _node("@org/pkg", "1.0.0"),
            }
        )
        assert deps["@org/sub/pkg:1.0.0"].scopes == ["prod", "@org"]
        assert deps["@org/pkg:1.0.0"].scopes == ["prod"]

    def test_empty_node_is_skipped(self):
        deps = _reduce({"fsevents": {}, "a": _node("a", "1.0.0")})
        assert list(deps) == ["a:1.0.0"]

    def test_unresolved_peer_is_skipped(self):
        tree = {
            "react": {"name": "react", "missing": True, "problems": ["missing: react@^18"]},
            "vue": {"name": "vue", "problems": ["invalid: vue@2"]},
        }
        assert _reduce(tree) == {}

    def test_empty_version_without_marker_raises(self):
        with pytest.raises(NpmLsParseError, match="failed to parse"):
            _reduce({"broken": {"name": "broken"}})

    def test_parse_error_aborts_walk(self):
        tree = {"a": _node("a", "1.0.0", dependencies={"b": {"name": "b", "version": 2}})}
        with pytest.raises(NpmLsParseError):
            _reduce(tree)

    def test_non_object_dependencies_raises(self):
        with pytest.raises(NpmLsParseError, match="not an object"):
            _reduce({"a": _node("a", "1.0.0", dependencies=["b"])})

    def test_legacy_tree(self):
        tree = {
            "a": {
                "name": "a",
                "version": "1.0.0",
                "_integrity": "sha1-a",
                "_development": True,
                "dependencies": {
                    "b": {"name": "b", "version": "2.0.0", "_optional": True},
                    "peer": {"required": "peer@^1", "missing": True, "peerMissing": True},
                },
            }
        }
        deps = _reduce(tree, parse_node=parse_legacy_node)
        assert deps["a:1.0.0"].integrity == "sha1-a"
        assert deps["a:1.0.0"].scopes == ["dev"]
        assert deps["b:2.0.0"].record.optional is True
        assert set(deps) == {"a:1.0.0", "b:2.0.0"}


class TestAppendDependency:
    def test_first_record_is_kept(self):
        deps: dict = {}
        first = DependencyRecord(name="a", version="1.0.0", optional=True)
        second = DependencyRecord(name="a", version="1.0.0", integrity="sha512-x")
        append_dependency(deps, first, ROOT)
        entry = append_dependency(deps, second, ("b:1.0.0", *ROOT))

        assert entry.record is first
        assert entry.integrity == "sha512-x"
        assert entry.requested_by == [ROOT, ("b:1.0.0", *ROOT)]


class TestMergeDependencyMaps:
    def test_merge_follows_walk_rules(self):
        tree = _left_right_tree()
        left = _reduce({"left": tree["left"]})
        right = _reduce({"right": tree["right"]})

        merged = merge_dependency_maps(left, right)

        shared = merged["shared:1.0.0"]
        assert shared.integrity == "sha512-shared"
        assert shared.scopes == ["prod", "dev"]
        assert shared.requested_by == [
            ("left:1.0.0", "pkgA:1.0.0"),
            ("right:2.0.0", "pkgA:1.0.0"),
        ]
        assert "right:2.0.0" in merged

    def test_merge_order_is_sorted_by_id(self):
        target: dict = {}
        other = _reduce({"b": _node("b", "1.0.0"), "a": _node("a", "1.0.0")})
        merge_dependency_maps(target, other)
        assert list(target) == ["a:1.0.0", "b:1.0.0"]

    def test_merge_keeps_resolved_checksums(self):
        target = _reduce({"a": _node("a", "1.0.0"), "b": _node("b", "1.0.0")})
        other = _reduce({"a": _node("a", "1.0.0"), "b": _node("b", "1.0.0")})
        target["b:1.0.0"].checksums = Checksums(md5="m", sha1="b-target", sha256="s")
        other["a:1.0.0"].checksums = Checksums(md5="m", sha1="a-other", sha256="s")
        other["b:1.0.0"].checksums = Checksums(md5="m", sha1="b-other", sha256="s")

        merge_dependency_maps(target, other)

        assert target["a:1.0.0"].checksums == Checksums(md5="m", sha1="a-other", sha256="s")
        assert target["b:1.0.0"].checksums == Checksums(md5="m", sha1="b-target", sha256="s")
        assert target["a:1.0.0"].to_dict()["sha1"] == "a-other"

    def test_merge_carries_checksums_of_new_entries(self):
        other = _reduce({"a": _node("a", "1.0.0")})
        other["a:1.0.0"].checksums = Checksums(md5="m", sha1="s1", sha256="s256")
        merged = merge_dependency_maps({}, other)
        assert merged["a:1.0.0"].checksums == Checksums(md5="m", sha1="s1", sha256="s256")
