"""Shared pytest fixtures for npm-buildinfo tests."""

from __future__ import annotations

import base64
import hashlib
import json
from pathlib import Path

import pytest


class CacheBuilder:
    """Writes index entries and content into a throwaway ``_cacache``."""

    def __init__(self, root: Path) -> None:
        self.root = root

    def add_content(self, data: bytes, algorithm: str = "sha512") -> str:
        digest = hashlib.new(algorithm, data).digest()
        hex_digest = digest.hex()
        path = self.root / "content-v2" / algorithm / hex_digest[:2] / hex_digest[2:4] / hex_digest[4:]
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        return f"{algorithm}-{base64.b64encode(digest).decode()}"

    def add_index(self, key: str, integrity: str | None, **extra) -> Path:
        bucket_hash = hashlib.sha256(key.encode()).hexdigest()
        bucket = self.root / "index-v5" / bucket_hash[:2] / bucket_hash[2:4] / bucket_hash[4:]
        bucket.parent.mkdir(parents=True, exist_ok=True)
        entry = json.dumps({"key": key, "integrity": integrity, "time": 1, "size": 3, **extra})
        line = f"\n{hashlib.sha1(entry.encode()).hexdigest()}\t{entry}"
        with bucket.open("a", encoding="utf-8") as handle:
            handle.write(line)
        return bucket


@pytest.fixture
def cache_builder(tmp_path) -> CacheBuilder:
    root = tmp_path / "_cacache"
    root.mkdir()
    return CacheBuilder(root)


@pytest.fixture
def project_dir(tmp_path) -> Path:
    project = tmp_path / "project"
    project.mkdir()
    (project / "package.json").write_text(
        json.dumps({"name": "pkgA", "version": "1.0.0"}), encoding="utf-8"
    )
    return project
