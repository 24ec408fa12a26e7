"""Decode single nodes of ``npm ls --json --all --long`` output.

npm 6 and npm 7+ report the same information under different keys. npm 6
keeps the integrity and flags under underscore-prefixed keys copied from the
installed package.json (``_integrity``, ``_inBundle``, ``_development``,
``_optional``), while npm 7+ uses flat names and reports unresolved peer
dependencies through ``missing`` and ``problems``.

One decoder is chosen per run from the npm version; both return the same
:class:`DependencyRecord` so the reducer never looks at the raw shape.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from jsonschema import Draft202012Validator
from packaging.version import Version

from npm_buildinfo.errors import NpmLsParseError
from npm_buildinfo.models import DependencyRecord
from npm_buildinfo.parsers.semver import is_legacy_npm

NodeParser = Callable[[Any], DependencyRecord]

_BOOLEAN = {"type": "boolean"}
_STRING = {"type": "string"}

LEGACY_NODE_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "name": _STRING,
        "version": _STRING,
        "missing": _BOOLEAN,
        "_integrity": _STRING,
        "_inBundle": _BOOLEAN,
        "_development": _BOOLEAN,
        "_optional": _BOOLEAN,
        "optional": _BOOLEAN,
    },
}

MODERN_NODE_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "name": _STRING,
        "version": _STRING,
        "integrity": _STRING,
        "inBundle": _BOOLEAN,
        "dev": _BOOLEAN,
        "optional": _BOOLEAN,
        "missing": _BOOLEAN,
        "problems": {"type": "array", "items": _STRING},
    },
}

_LEGACY_VALIDATOR = Draft202012Validator(LEGACY_NODE_SCHEMA)
_MODERN_VALIDATOR = Draft202012Validator(MODERN_NODE_SCHEMA)


def _validate(validator: Draft202012Validator, node: Any) -> None:
    errors = sorted(validator.iter_errors(node), key=lambda e: list(e.path))
    if errors:
        details = "; ".join(
            f"{'/'.join(str(p) for p in error.path) or '<node>'}: {error.message}"
            for error in errors
        )
        raise NpmLsParseError(f"Unexpected npm ls node shape: {details}")


def parse_legacy_node(node: Any) -> DependencyRecord:
    """Decode a node reported by npm 6 or older."""
    _validate(_LEGACY_VALIDATOR, node)
    return DependencyRecord(
        name=node.get("name", ""),
        version=node.get("version", ""),
        integrity=node.get("_integrity", ""),
        in_bundle=node.get("_inBundle", False),
        dev=node.get("_development", False),
        optional=node.get("optional", False) or node.get("_optional", False),
        missing=node.get("missing", False),
        peer_missing=node.get("peerMissing"),
    )


def parse_modern_node(node: Any) -> DependencyRecord:
    """Decode a node reported by npm 7 or newer."""
    _validate(_MODERN_VALIDATOR, node)
    problems = tuple(node.get("problems") or ())
    peer_missing = node.get("peerMissing")
    if peer_missing is None and problems:
        # npm 7+ has no peerMissing flag; problems carries the same signal.
        peer_missing = list(problems)
    return DependencyRecord(
        name=node.get("name", ""),
        version=node.get("version", ""),
        integrity=node.get("integrity", ""),
        in_bundle=node.get("inBundle", False),
        dev=node.get("dev", False),
        optional=node.get("optional", False),
        missing=node.get("missing", False),
        peer_missing=peer_missing,
        problems=problems,
    )


def select_parser(npm_version: Version | None) -> NodeParser:
    """Return the node decoder matching the ``npm ls`` format of *npm_version*."""
    if is_legacy_npm(npm_version):
        return parse_legacy_node
    return parse_modern_node
