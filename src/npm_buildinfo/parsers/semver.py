"""npm version handling built atop packaging.version.

npm reports its own version as plain semver (``6.14.18``, ``10.2.4``,
``7.0.0-beta.12``). Most of these parse directly as PEP 440 versions; semver
pre-release tags that do not (``-next.0``) fall back to their numeric core.
"""

from __future__ import annotations

import re

from packaging.version import InvalidVersion, Version

MODERN_NPM_MAJOR = 7

_NUMERIC_CORE = re.compile(r"^\s*v?(\d+)(?:\.(\d+))?(?:\.(\d+))?")


def parse_version(text: str) -> Version:
    """Parse npm's self-reported version string."""
    text = text.strip()
    try:
        return Version(text)
    except InvalidVersion:
        match = _NUMERIC_CORE.match(text)
        if match is None:
            raise
        major, minor, patch = (part or "0" for part in match.groups())
        return Version(f"{major}.{minor}.{patch}")


def is_legacy_npm(version: Version | None) -> bool:
    """True when *version* predates npm 7 and its ``npm ls`` output format."""
    if version is None:
        return False
    return version.major < MODERN_NPM_MAJOR
