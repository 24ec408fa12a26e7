"""Command-line entrypoint to extract an npm project's build-info module.

Usage:
  npm-buildinfo --root . [--config npm-buildinfo.json] [--no-checksums]
                [--output module.json] [--summary summary.md] [-- NPM_ARGS...]

Prints the build-info module (type, id, dependencies) as JSON.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from .config import load_settings
from .core import calculate_npm_dependencies_list
from .errors import NpmBuildInfoError
from .logging import setup_logging
from .npm import find_npm_executable, get_npm_version
from .parsers.package_json import read_package_info_from_package_json
from .report import build_module
from .summary import render_summary


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="npm-buildinfo",
        description="Extract the dependencies of an npm project for a build-info record.",
    )
    parser.add_argument("--root", type=Path, default=Path("."), help="npm project directory")
    parser.add_argument("--config", type=Path, default=None, help="Path to a JSON settings file")
    parser.add_argument(
        "--no-checksums",
        action="store_true",
        help="Skip resolving tarball checksums through the npm cache",
    )
    parser.add_argument("--output", type=Path, default=None, help="Write the module JSON here")
    parser.add_argument(
        "--summary", type=Path, default=None, help="Write a Markdown summary here"
    )
    parser.add_argument("npm_args", nargs="*", help="Extra npm arguments (after --)")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging()

    try:
        settings = load_settings(args.config).with_overrides(
            npm_args=args.npm_args,
            calculate_checksums=False if args.no_checksums else None,
        )
        if settings.npm_executable:
            executable = settings.npm_executable
            npm_version = get_npm_version(executable)
        else:
            npm_version, executable = find_npm_executable()

        root = args.root.resolve()
        package_info = read_package_info_from_package_json(root, npm_version)
        result = calculate_npm_dependencies_list(
            executable,
            root,
            package_info.build_info_module_id(),
            list(settings.npm_args),
            settings.calculate_checksums,
        )
    except NpmBuildInfoError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1

    module = build_module(package_info, result.dependencies)
    rendered = json.dumps(module, indent=2)
    if args.output is not None:
        args.output.write_text(rendered + "\n", encoding="utf-8")
    else:
        print(rendered)

    if args.summary is not None:
        args.summary.write_text(render_summary(module, result), encoding="utf-8")

    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
