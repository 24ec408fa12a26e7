"""Core extraction entrypoints.

This module MUST NOT depend on the CLI so it can be embedded by any build
tool that needs an npm module's dependencies for a build-info record.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

import structlog

from .cacache import Cacache
from .checksums import calculate_file_checksums
from .errors import CacheError, NodeModulesNotFoundError, NpmCommandError, NpmLsParseError
from .models import CanonicalDependency, Checksums, SkipReason
from .npm import NpmCommand, get_npm_config_cache, get_npm_version, run_npm_command
from .parsers.npm_ls import select_parser
from .reducer import DependenciesMap, parse_dependencies

log = structlog.get_logger("npm_buildinfo.core")

# Appended last so they override anything passed in npm_args.
NPM_LS_FORCED_ARGS = ("--json", "--all", "--long")


@dataclass
class ExtractionResult:
    """Dependencies to record, plus the ids skipped for each reason."""

    dependencies: list[CanonicalDependency]
    skipped: dict[SkipReason, list[str]] = field(default_factory=dict)

    def to_dict(self) -> dict[str, object]:
        return {
            "dependencies": [dep.to_dict() for dep in self.dependencies],
            "skipped": {reason.value: list(ids) for reason, ids in self.skipped.items()},
        }


def calculate_dependencies_map(
    executable: str,
    src_path: Path | str,
    module_id: str,
    npm_args: Sequence[str] | None = None,
) -> DependenciesMap:
    """Run ``npm ls`` in *src_path* and reduce its tree to ``name:version`` entries."""
    src_path = Path(src_path)
    args = [*(npm_args or ()), *NPM_LS_FORCED_ARGS]

    try:
        result = run_npm_command(executable, src_path, NpmCommand.LS, args)
        stdout, stderr = result.stdout, result.stderr
    except NpmCommandError as exc:
        # npm ls exits non-zero on any tree problem; only a missing
        # node_modules makes its output useless.
        node_modules = src_path / "node_modules"
        if not node_modules.is_dir():
            raise NodeModulesNotFoundError(
                f"node_modules isn't found in '{src_path}'. "
                "Hint: Restore node_modules folder by running npm install or npm ci."
            ) from exc
        log.warning("npm.ls_failed", error=str(exc))
        stdout, stderr = exc.stdout, exc.stderr

    if stderr:
        log.warning(
            "npm.ls_stderr",
            message="Some errors occurred while collecting dependencies info",
            stderr=stderr.decode("utf-8", errors="replace"),
        )

    npm_version = get_npm_version(executable)
    parse_node = select_parser(npm_version)

    try:
        tree = json.loads(stdout) if stdout.strip() else {}
    except ValueError as exc:
        raise NpmLsParseError(f"Invalid JSON in npm ls output: {exc}") from exc
    if not isinstance(tree, dict):
        raise NpmLsParseError("npm ls output must be a JSON object")

    dependencies: DependenciesMap = {}
    top_level = tree.get("dependencies")
    if top_level is not None:
        if not isinstance(top_level, dict):
            raise NpmLsParseError("'dependencies' of npm ls output is not an object")
        parse_dependencies(top_level, (module_id,), dependencies, parse_node)
    return dependencies


def calculate_checksum(cache: Cacache, name: str, version: str, integrity: str) -> Checksums:
    """Locate a dependency's tarball in the npm cache and hash it.

    Without a known *integrity* the digest is first looked up in the cache
    index under ``name@version``.

    Raises:
        CacheError: if the index entry or the tarball is not in the cache.
    """
    if not integrity:
        integrity = cache.get_info(f"{name}@{version}").integrity
    path = cache.get_tarball(integrity)
    return calculate_file_checksums(path)


def classify_dependencies(
    dependencies: DependenciesMap,
    cache: Cacache | None = None,
) -> ExtractionResult:
    """Split *dependencies* into the entries to record and the skipped ids.

    Checksums are calculated only when a *cache* is given.
    """
    included: list[CanonicalDependency] = []
    skipped: dict[SkipReason, list[str]] = {}

    for dep in dependencies.values():
        reason = dep.skip_reason()
        if reason is None and cache is not None:
            try:
                dep.checksums = calculate_checksum(cache, dep.name, dep.version, dep.integrity)
            except (CacheError, OSError) as exc:
                if dep.record.optional:
                    reason = SkipReason.MISSING_OPTIONAL
                else:
                    # Happens when a lockfileVersion 1 package-lock.json is
                    # upgraded by npm 7+, which can drop the integrity of
                    # dependencies whose tarball we then cannot locate.
                    reason = SkipReason.OTHER_MISSING
                    log.debug("dependencies.checksum_failed", id=dep.id, error=str(exc))

        if reason is None:
            included.append(dep)
        else:
            skipped.setdefault(reason, []).append(dep.id)

    return ExtractionResult(dependencies=included, skipped=skipped)


def _warn_skipped(skipped: dict[SkipReason, list[str]]) -> None:
    for reason in SkipReason:
        ids = skipped.get(reason)
        if not ids:
            continue
        if reason is SkipReason.OTHER_MISSING:
            log.warning(
                "dependencies.skipped",
                reason=reason.value,
                message="The following dependencies will not be included in the build-info, "
                "because they are missing in the npm cache",
                dependencies=",".join(ids),
                hint="Try to delete 'node_modules' and/or 'package-lock.json'.",
            )
        else:
            log.warning(
                "dependencies.skipped",
                reason=reason.value,
                message="The following dependencies will not be included in the build-info, "
                "because 'npm ls' did not return their integrity. They may be a "
                f"'{reason.value}' that was not manually installed",
                dependencies=",".join(ids),
            )


def calculate_npm_dependencies_list(
    executable: str,
    src_path: Path | str,
    module_id: str,
    npm_args: Sequence[str] | None = None,
    calculate_checksums: bool = True,
) -> ExtractionResult:
    """Extract the flat, deduplicated dependency list of an npm project.

    Params:
        executable: path to the npm executable
        src_path: project directory (where package.json and node_modules live)
        module_id: build-info id of the project, the root of every
            requestedBy path
        npm_args: extra arguments passed to ``npm ls`` and ``npm config``
        calculate_checksums: resolve md5/sha1/sha256 through the npm cache

    Returns: an :class:`ExtractionResult`; one aggregated warning is logged
    for every non-empty skip bucket.
    """
    dependencies = calculate_dependencies_map(executable, src_path, module_id, npm_args)

    cache: Cacache | None = None
    if calculate_checksums:
        cache = Cacache(get_npm_config_cache(src_path, executable, npm_args))

    result = classify_dependencies(dependencies, cache)
    _warn_skipped(result.skipped)
    return result
