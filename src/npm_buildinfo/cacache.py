"""Read-only access to npm's content-addressable cache (``_cacache``).

Layout, relative to the cache root:

- ``index-v5/<h[0:2]>/<h[2:4]>/<h[4:]>``: index bucket for a key, where
  ``h`` is the sha256 hex digest of the key. Each line of a bucket is
  ``<sha1 of entry>\\t<entry JSON>``; the last entry for a key wins and an
  entry with a null integrity marks the key as deleted.
- ``content-v2/<algorithm>/<x[0:2]>/<x[2:4]>/<x[4:]>``: content files, where
  ``x`` is the hex form of a Subresource Integrity digest.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import structlog

from npm_buildinfo.errors import CacheError

log = structlog.get_logger("npm_buildinfo.cacache")

INDEX_DIR = "index-v5"
CONTENT_DIR = "content-v2"


@dataclass(frozen=True)
class CacacheInfo:
    """An index entry of the npm cache."""

    key: str
    integrity: str
    path: Path
    size: int | None = None
    time: int | None = None
    metadata: Any = None


def _hashed_path(root: Path, digest: str) -> Path:
    return root / digest[0:2] / digest[2:4] / digest[4:]


def _parse_sri(integrity: str) -> list[tuple[str, str]]:
    """Return ``(algorithm, hex digest)`` pairs of an SRI string."""
    pairs: list[tuple[str, str]] = []
    for token in integrity.split():
        algorithm, sep, encoded = token.partition("-")
        if not sep or not encoded:
            continue
        encoded = encoded.split("?", 1)[0]
        try:
            raw = base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError):
            continue
        pairs.append((algorithm, raw.hex()))
    return pairs


class Cacache:
    """Look up index entries and tarballs in an npm ``_cacache`` directory."""

    def __init__(self, location: Path | str) -> None:
        self.location = Path(location)

    def bucket_path(self, key: str) -> Path:
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
        return _hashed_path(self.location / INDEX_DIR, digest)

    def content_path(self, algorithm: str, hex_digest: str) -> Path:
        return _hashed_path(self.location / CONTENT_DIR / algorithm, hex_digest)

    def get_info(self, key: str) -> CacacheInfo:
        """Return the newest index entry for *key*.

        Raises:
            CacheError: if the key was never cached or was removed.
        """
        bucket = self.bucket_path(key)
        try:
            content = bucket.read_bytes()
        except FileNotFoundError as exc:
            raise CacheError(f"'{key}' not found in npm cache index") from exc

        latest: dict[str, Any] | None = None
        for line in content.split(b"\n"):
            if not line:
                continue
            line_hash, sep, entry_text = line.partition(b"\t")
            if not sep or hashlib.sha1(entry_text).hexdigest().encode() != line_hash:
                log.debug("cacache.corrupt_index_line", bucket=str(bucket))
                continue
            try:
                entry = json.loads(entry_text)
            except ValueError:
                log.debug("cacache.corrupt_index_line", bucket=str(bucket))
                continue
            if isinstance(entry, dict) and entry.get("key") == key:
                latest = entry

        if latest is None or not latest.get("integrity"):
            raise CacheError(f"'{key}' not found in npm cache index")

        return CacacheInfo(
            key=key,
            integrity=latest["integrity"],
            path=bucket,
            size=latest.get("size"),
            time=latest.get("time"),
            metadata=latest.get("metadata"),
        )

    def get_tarball(self, integrity: str) -> Path:
        """Return the path of the cached content matching *integrity*.

        Raises:
            CacheError: if no digest of *integrity* has content in the cache.
        """
        pairs = _parse_sri(integrity)
        if not pairs:
            raise CacheError(f"Invalid integrity '{integrity}'")
        for algorithm, hex_digest in pairs:
            path = self.content_path(algorithm, hex_digest)
            if path.is_file():
                return path
        raise CacheError(f"Content for integrity '{integrity}' not found in npm cache")
