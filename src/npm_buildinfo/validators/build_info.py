"""Check an npm build-info module document before it is published.

Two passes run over the document. The bundled JSON schema checks its shape;
the module rules the schema cannot express are applied afterwards: every
dependency id appears once and every requestedBy path ends at the module id.
"""

from __future__ import annotations

import argparse
import functools
import json
import sys
from pathlib import Path
from typing import Any

from jsonschema import Draft202012Validator

from npm_buildinfo.errors import ModuleValidationError

DEFAULT_SCHEMA = Path(__file__).resolve().parents[1] / "schemas" / "build-info-module.schema.json"
STDIN = "-"


@functools.lru_cache(maxsize=None)
def _schema_validator(schema_path: Path) -> Draft202012Validator:
    schema = json.loads(schema_path.read_text(encoding="utf-8"))
    Draft202012Validator.check_schema(schema)
    return Draft202012Validator(schema)


def _pointer(*parts: Any) -> str:
    return "/".join(str(part) for part in parts) or "<root>"


def _schema_problems(document: Any, schema_path: Path) -> list[str]:
    errors = sorted(_schema_validator(schema_path).iter_errors(document), key=lambda e: e.json_path)
    return [f"{_pointer(*error.absolute_path)}: {error.message}" for error in errors]


def _module_problems(module: dict[str, Any]) -> list[str]:
    problems: list[str] = []
    module_id = module["id"]
    seen: set[str] = set()
    for index, dependency in enumerate(module["dependencies"]):
        dep_id = dependency["id"]
        if dep_id in seen:
            problems.append(f"{_pointer('dependencies', index, 'id')}: duplicate dependency '{dep_id}'")
        seen.add(dep_id)
        for path_index, path in enumerate(dependency["requestedBy"]):
            if path[-1] != module_id:
                problems.append(
                    f"{_pointer('dependencies', index, 'requestedBy', path_index)}: "
                    f"path ends at '{path[-1]}' instead of the module '{module_id}'"
                )
    return problems


def validate_module(document: Any, schema_path: Path = DEFAULT_SCHEMA) -> None:
    """Raise :class:`ModuleValidationError` listing every problem of *document*.

    Module rules are only checked once the document matches the schema.
    """
    problems = _schema_problems(document, schema_path)
    if not problems:
        problems = _module_problems(document)
    if problems:
        module_id = document.get("id") if isinstance(document, dict) else None
        raise ModuleValidationError(module_id if isinstance(module_id, str) else None, problems)


def _read_module(source: str) -> Any:
    if source == STDIN:
        return json.loads(sys.stdin.read())
    return json.loads(Path(source).read_text(encoding="utf-8"))


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="npm-buildinfo-validate",
        description="Validate a module document written by npm-buildinfo.",
    )
    parser.add_argument(
        "module",
        nargs="?",
        default=STDIN,
        help="Module JSON file, or '-' to read it from stdin (default)",
    )
    parser.add_argument(
        "--schema",
        type=Path,
        default=DEFAULT_SCHEMA,
        help="Alternative JSON schema for the module document",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    try:
        module = _read_module(args.module)
        validate_module(module, args.schema)
    except OSError as exc:
        print(f"ERROR: cannot read '{args.module}': {exc}", file=sys.stderr)
        return 1
    except ValueError as exc:
        print(f"ERROR: '{args.module}' is not a JSON document: {exc}", file=sys.stderr)
        return 1
    except ModuleValidationError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        for problem in exc.problems:
            print(f"  - {problem}", file=sys.stderr)
        return 1

    dependencies = module["dependencies"]
    with_checksums = sum(1 for dep in dependencies if "sha1" in dep)
    print(
        f"npm module '{module['id']}' is valid: {len(dependencies)} dependencies, "
        f"{with_checksums} with checksums"
    )
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
