"""Dependency models produced while reducing the ``npm ls`` tree."""

from __future__ import annotations

import enum
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any


class SkipReason(enum.Enum):
    """Why a dependency was left out of the build-info."""

    MISSING_BUNDLED = "bundleDependencies"
    MISSING_PEER = "peerDependency"
    MISSING_OPTIONAL = "optionalDependencies"
    OTHER_MISSING = "other"


@dataclass(frozen=True)
class DependencyRecord:
    """One node of the ``npm ls`` tree, normalised across npm versions."""

    name: str
    version: str
    integrity: str = ""
    in_bundle: bool = False
    dev: bool = False
    optional: bool = False
    missing: bool = False
    peer_missing: Any = None
    problems: tuple[str, ...] = ()

    @property
    def id(self) -> str:
        return f"{self.name}:{self.version}"

    @property
    def unresolved(self) -> bool:
        """True for a peer dependency npm could not resolve."""
        return self.missing or bool(self.problems)

    def scopes(self) -> list[str]:
        scopes = ["dev" if self.dev else "prod"]
        if self.name.startswith("@"):
            segments = self.name.split("/")
            if len(segments) > 2:
                scopes.append(segments[0])
        return scopes

    def skip_reason(self, integrity: str) -> SkipReason | None:
        """Return the reason to skip this record when *integrity* is unknown.

        Only the bundled and peer-missing markers are decided here; the
        optional flag matters only once checksum resolution has failed.
        """
        if integrity:
            return None
        if self.in_bundle:
            return SkipReason.MISSING_BUNDLED
        if self.peer_missing is not None:
            return SkipReason.MISSING_PEER
        return None


@dataclass(frozen=True)
class Checksums:
    """Digests of a package tarball."""

    md5: str
    sha1: str
    sha256: str

    def to_dict(self) -> dict[str, str]:
        return {"md5": self.md5, "sha1": self.sha1, "sha256": self.sha256}


def merge_scopes(old: Iterable[str], new: Iterable[str]) -> list[str]:
    """Union two scope lists, keeping first-seen order and dropping blanks."""
    merged: list[str] = []
    for scope in (*old, *new):
        if scope and scope not in merged:
            merged.append(scope)
    return merged


@dataclass
class CanonicalDependency:
    """A ``name:version`` entry merged from every place it occurs in the tree."""

    id: str
    record: DependencyRecord
    integrity: str = ""
    scopes: list[str] = field(default_factory=list)
    requested_by: list[tuple[str, ...]] = field(default_factory=list)
    checksums: Checksums | None = None

    @classmethod
    def from_record(cls, record: DependencyRecord) -> CanonicalDependency:
        return cls(id=record.id, record=record)

    @property
    def name(self) -> str:
        return self.record.name

    @property
    def version(self) -> str:
        return self.record.version

    def merge(self, record: DependencyRecord, path_to_root: Iterable[str]) -> None:
        """Fold another occurrence of this dependency into the entry."""
        if not self.integrity:
            self.integrity = record.integrity
        self.scopes = merge_scopes(self.scopes, record.scopes())
        self.requested_by.append(tuple(path_to_root))

    def skip_reason(self) -> SkipReason | None:
        return self.record.skip_reason(self.integrity)

    def to_dict(self) -> dict[str, object]:
        data: dict[str, object] = {
            "id": self.id,
            "scopes": list(self.scopes),
            "requestedBy": [list(path) for path in self.requested_by],
        }
        if self.checksums is not None:
            data.update(self.checksums.to_dict())
        return data
