"""Exception hierarchy for npm build-info extraction."""

from __future__ import annotations


class NpmBuildInfoError(RuntimeError):
    """Base error for failures while extracting npm build-info."""


class NpmNotFoundError(NpmBuildInfoError):
    """Raised when the npm executable cannot be located."""


class NpmCommandError(NpmBuildInfoError):
    """Raised when an npm command exits with a non-zero status.

    The captured output is kept so callers that tolerate the failure can
    still work with whatever the command printed.
    """

    def __init__(self, message: str, stdout: bytes = b"", stderr: bytes = b"") -> None:
        super().__init__(message)
        self.stdout = stdout
        self.stderr = stderr


class NodeModulesNotFoundError(NpmBuildInfoError):
    """Raised when the project has no node_modules directory to enumerate."""


class NpmCacheNotFoundError(NpmBuildInfoError):
    """Raised when the local npm cache directory does not exist."""


class NpmLsParseError(NpmBuildInfoError):
    """Raised when the ``npm ls`` output cannot be decoded."""


class PackageJsonError(NpmBuildInfoError):
    """Raised when package.json cannot be read or parsed."""


class CacheError(LookupError):
    """Raised when a key or digest cannot be resolved in the npm cache."""


class ModuleValidationError(NpmBuildInfoError):
    """Raised when an emitted build-info module is malformed.

    ``problems`` holds one ``<pointer>: <message>`` line per violation.
    """

    def __init__(self, module_id: str | None, problems: list[str]) -> None:
        super().__init__(
            f"npm module '{module_id or '<unknown>'}' failed validation "
            f"with {len(problems)} problem(s)"
        )
        self.module_id = module_id
        self.problems = problems
