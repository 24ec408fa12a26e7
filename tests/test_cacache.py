"""Tests for the read-only npm cache reader."""

from __future__ import annotations

import hashlib

import pytest

from npm_buildinfo.cacache import Cacache
from npm_buildinfo.errors import CacheError


class TestGetInfo:
    def test_returns_entry_for_key(self, cache_builder):
        cache_builder.add_index("lodash@4.17.21", "sha512-abc", metadata={"url": "x"})
        info = Cacache(cache_builder.root).get_info("lodash@4.17.21")
        assert info.integrity == "sha512-abc"
        assert info.metadata == {"url": "x"}

    def test_last_entry_wins(self, cache_builder):
        cache_builder.add_index("a@1.0.0", "sha512-old")
        cache_builder.add_index("a@1.0.0", "sha512-new")
        assert Cacache(cache_builder.root).get_info("a@1.0.0").integrity == "sha512-new"

    def test_deleted_entry_raises(self, cache_builder):
        cache_builder.add_index("a@1.0.0", "sha512-old")
        cache_builder.add_index("a@1.0.0", None)
        with pytest.raises(CacheError):
            Cacache(cache_builder.root).get_info("a@1.0.0")

    def test_unknown_key_raises(self, cache_builder):
        with pytest.raises(CacheError, match="not found"):
            Cacache(cache_builder.root).get_info("missing@1.0.0")

    def test_corrupt_lines_are_skipped(self, cache_builder):
        bucket = cache_builder.add_index("a@1.0.0", "sha512-good")
        with bucket.open("a", encoding="utf-8") as handle:
            handle.write('\ndeadbeef\t{"key": "a@1.0.0", "integrity": "sha512-bad"}')
            handle.write("\nnot a valid line")
        assert Cacache(cache_builder.root).get_info("a@1.0.0").integrity == "sha512-good"

    def test_undecodable_bucket_raises_cache_error(self, cache_builder):
        bucket = Cacache(cache_builder.root).bucket_path("a@1.0.0")
        bucket.parent.mkdir(parents=True)
        bucket.write_bytes(b"\xff\xfe garbage")
        with pytest.raises(CacheError, match="not found"):
            Cacache(cache_builder.root).get_info("a@1.0.0")

    def test_undecodable_line_does_not_hide_valid_entries(self, cache_builder):
        bucket = cache_builder.add_index("a@1.0.0", "sha512-good")
        with bucket.open("ab") as handle:
            handle.write(b"\n\xff\xfe\tgarbage\xff")
        assert Cacache(cache_builder.root).get_info("a@1.0.0").integrity == "sha512-good"

    def test_bucket_path_layout(self, tmp_path):
        digest = hashlib.sha256(b"a@1.0.0").hexdigest()
        path = Cacache(tmp_path).bucket_path("a@1.0.0")
        assert path == tmp_path / "index-v5" / digest[:2] / digest[2:4] / digest[4:]


class TestGetTarball:
    def test_resolves_sha512(self, cache_builder):
        integrity = cache_builder.add_content(b"tarball")
        path = Cacache(cache_builder.root).get_tarball(integrity)
        assert path.read_bytes() == b"tarball"

    def test_resolves_sha1(self, cache_builder):
        integrity = cache_builder.add_content(b"tarball", algorithm="sha1")
        assert Cacache(cache_builder.root).get_tarball(integrity).read_bytes() == b"tarball"

    def test_multi_hash_uses_first_present(self, cache_builder):
        present = cache_builder.add_content(b"tarball", algorithm="sha1")
        absent = "sha512-" + "A" * 88
        path = Cacache(cache_builder.root).get_tarball(f"{absent} {present}")
        assert path.read_bytes() == b"tarball"

    def test_missing_content_raises(self, cache_builder):
        with pytest.raises(CacheError, match="not found"):
            Cacache(cache_builder.root).get_tarball("sha512-" + "A" * 88)

    def test_invalid_integrity_raises(self, cache_builder):
        with pytest.raises(CacheError, match="Invalid integrity"):
            Cacache(cache_builder.root).get_tarball("garbage")
