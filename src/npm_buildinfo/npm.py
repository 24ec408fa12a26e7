"""Run the npm executable and query its version and cache location."""

from __future__ import annotations

import enum
import shutil
import subprocess
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

import structlog
from packaging.version import InvalidVersion, Version

from npm_buildinfo.errors import NpmCacheNotFoundError, NpmCommandError, NpmNotFoundError
from npm_buildinfo.parsers.semver import parse_version

log = structlog.get_logger("npm_buildinfo.npm")


class NpmCommand(enum.Enum):
    LS = "ls"
    CONFIG = "config"
    INSTALL = "install"
    CI = "ci"
    PACK = "pack"
    VERSION = "-version"


@dataclass(frozen=True)
class NpmCommandResult:
    stdout: bytes
    stderr: bytes


def run_npm_command(
    executable: str,
    src_path: Path | str | None,
    command: NpmCommand,
    npm_args: Sequence[str] | None = None,
) -> NpmCommandResult:
    """Run ``<executable> <command> <npm_args...>`` in *src_path*.

    Blank arguments are dropped. Raises :class:`NpmCommandError`, carrying
    whatever was captured, when the command cannot start or exits non-zero.
    """
    log.debug("npm.run", command=command.value)
    cmd = [executable, command.value]
    cmd.extend(arg for arg in npm_args or () if arg.strip())

    try:
        proc = subprocess.run(cmd, cwd=src_path or None, capture_output=True, check=False)
    except OSError as exc:
        raise NpmCommandError(
            f"error while running the command '{' '.join(cmd)}': {exc}"
        ) from exc

    if proc.returncode != 0:
        raise NpmCommandError(
            f"error while running the command '{' '.join(cmd)}' "
            f"(exit {proc.returncode}):\n{proc.stderr.decode('utf-8', errors='replace')}",
            stdout=proc.stdout,
            stderr=proc.stderr,
        )

    log.debug("npm.output", command=command.value, stdout=proc.stdout.decode("utf-8", errors="replace"))
    return NpmCommandResult(stdout=proc.stdout, stderr=proc.stderr)


def get_npm_version(executable: str) -> Version:
    result = run_npm_command(executable, None, NpmCommand.VERSION)
    text = result.stdout.decode("utf-8", errors="replace").strip()
    try:
        return parse_version(text)
    except InvalidVersion as exc:
        raise NpmCommandError(f"unexpected npm version output: {text!r}") from exc


def find_npm_executable() -> tuple[Version, str]:
    """Locate npm on PATH and return its version and path."""
    executable = shutil.which("npm")
    if not executable:
        raise NpmNotFoundError("could not find the 'npm' executable in the system PATH")
    log.debug("npm.executable", path=executable)

    version = get_npm_version(executable)
    log.debug("npm.version", version=str(version))
    return version, executable


def get_npm_config_cache(
    src_path: Path | str,
    executable: str,
    npm_args: Sequence[str] | None = None,
) -> Path:
    """Return the ``_cacache`` directory of npm's configured cache.

    Defaults to ``~/.npm`` on POSIX and ``%LocalAppData%\\npm-cache`` on
    Windows, unless the project's npm configuration overrides it.
    """
    args = ["get", "cache", *(npm_args or ()), "--json=false"]
    try:
        result = run_npm_command(executable, src_path, NpmCommand.CONFIG, args)
    except NpmCommandError as exc:
        if exc.stderr:
            log.warning("npm.config_stderr", stderr=exc.stderr.decode("utf-8", errors="replace"))
        raise NpmCommandError(
            f"'{executable} config {' '.join(args)}' npm config command failed: {exc}",
            stdout=exc.stdout,
            stderr=exc.stderr,
        ) from exc
    if result.stderr:
        log.warning("npm.config_stderr", stderr=result.stderr.decode("utf-8", errors="replace"))

    cache_path = Path(result.stdout.decode("utf-8").strip("\r\n")) / "_cacache"
    if not cache_path.is_dir():
        raise NpmCacheNotFoundError(
            f"_cacache folder is not found in '{cache_path}'. "
            "Hint: Delete node_modules directory and run npm install or npm ci."
        )
    return cache_path
