"""File digest helpers."""

from __future__ import annotations

import hashlib
from pathlib import Path

from npm_buildinfo.models import Checksums

_CHUNK_SIZE = 1024 * 1024


def calculate_file_checksums(path: Path | str) -> Checksums:
    """Return the md5, sha1 and sha256 hex digests of the file at *path*."""
    md5 = hashlib.md5()
    sha1 = hashlib.sha1()
    sha256 = hashlib.sha256()
    with open(path, "rb") as handle:
        for chunk in iter(lambda: handle.read(_CHUNK_SIZE), b""):
            md5.update(chunk)
            sha1.update(chunk)
            sha256.update(chunk)
    return Checksums(md5=md5.hexdigest(), sha1=sha1.hexdigest(), sha256=sha256.hexdigest())
