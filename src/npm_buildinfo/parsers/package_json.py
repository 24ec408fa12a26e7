"""Parse package.json into the identity of the module being built."""

from __future__ import annotations

import json
from pathlib import Path

from packaging.version import Version

from npm_buildinfo.errors import PackageJsonError
from npm_buildinfo.models import PackageInfo
from npm_buildinfo.parsers.semver import is_legacy_npm


def _remove_version_prefixes(version: str) -> str:
    # A leading "v" or "=" is stripped off and ignored by npm 6; each is
    # removed at most once, in whichever order they appear.
    stripped: set[str] = set()
    while version[:1] in {"v", "="} and version[:1] not in stripped:
        stripped.add(version[:1])
        version = version[1:]
    return version


def read_package_info(data: bytes | str, npm_version: Version | None = None) -> PackageInfo:
    """Return the module identity described by package.json *data*.

    With an npm older than 7, a single leading ``v`` and a single leading
    ``=`` are removed from the version, as npm 6 itself does.
    """
    try:
        manifest = json.loads(data)
    except json.JSONDecodeError as exc:
        raise PackageJsonError(f"Invalid JSON in package.json: {exc}") from exc
    if not isinstance(manifest, dict):
        raise PackageJsonError("package.json must contain a JSON object")

    name = manifest.get("name") or ""
    version = manifest.get("version") or ""
    if not isinstance(name, str) or not isinstance(version, str):
        raise PackageJsonError("package.json 'name' and 'version' must be strings")

    if is_legacy_npm(npm_version):
        version = _remove_version_prefixes(version)
    return PackageInfo.from_full_name(name, version)


def read_package_info_from_package_json(
    directory: Path | str, npm_version: Version | None = None
) -> PackageInfo:
    """Read ``<directory>/package.json`` and return the module identity."""
    path = Path(directory) / "package.json"
    try:
        content = path.read_bytes()
    except OSError as exc:
        raise PackageJsonError(f"Failed to read {path}: {exc}") from exc
    return read_package_info(content, npm_version)
