"""Data models for npm build-info extraction."""

from __future__ import annotations

from .dependency import (
    CanonicalDependency,
    Checksums,
    DependencyRecord,
    SkipReason,
    merge_scopes,
)
from .package_info import PackageInfo

__all__ = [
    "CanonicalDependency",
    "Checksums",
    "DependencyRecord",
    "PackageInfo",
    "SkipReason",
    "merge_scopes",
]
