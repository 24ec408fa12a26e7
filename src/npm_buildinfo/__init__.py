"""npm-buildinfo core package.

This package extracts the flattened, deduplicated dependency list of an npm
project, with checksums from the local npm cache, for a build-info record.
"""

__all__ = [
    "core",
]
