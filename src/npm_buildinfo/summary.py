"""Human-readable summary rendering of an extraction."""

from __future__ import annotations

from typing import Any

from .core import ExtractionResult
from .models import SkipReason

_REASON_LABELS = {
    SkipReason.MISSING_BUNDLED: "Missing bundled dependency",
    SkipReason.MISSING_PEER: "Missing peer dependency",
    SkipReason.MISSING_OPTIONAL: "Missing optional dependency",
    SkipReason.OTHER_MISSING: "Missing in npm cache",
}


def render_summary(module: dict[str, Any], result: ExtractionResult) -> str:
    """Return a Markdown string with totals and a table of skipped dependencies."""
    skipped_total = sum(len(ids) for ids in result.skipped.values())

    lines = []
    lines.append("# npm-buildinfo Summary")
    lines.append("")
    lines.append(f"Module: `{module.get('id', '')}`")
    lines.append("")
    lines.append(
        f"Dependencies: {len(result.dependencies)} | Skipped: {skipped_total}"
    )
    lines.append("")
    lines.append("| Dependency | Reason |")
    lines.append("| --- | --- |")

    has_rows = False
    for reason in SkipReason:
        for dep_id in result.skipped.get(reason, []):
            lines.append(f"| {dep_id} | {_REASON_LABELS[reason]} |")
            has_rows = True

    if not has_rows:
        lines.append("| (none) | No dependencies skipped |")

    return "\n".join(lines) + "\n"
