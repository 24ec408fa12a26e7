"""Build-info module assembly."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from .models import CanonicalDependency, PackageInfo

MODULE_TYPE = "npm"


def build_module(
    package_info: PackageInfo,
    dependencies: Iterable[CanonicalDependency],
) -> dict[str, Any]:
    """Return the build-info ``module`` document for an npm project.

    The module id is derived from *package_info*; every dependency is
    rendered with its scopes, requestedBy paths and, when calculated, its
    checksums.
    """
    return {
        "type": MODULE_TYPE,
        "id": package_info.build_info_module_id(),
        "dependencies": [dep.to_dict() for dep in dependencies],
    }
