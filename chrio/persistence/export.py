"""Session diff export formatters.

Provides JSON and Markdown export functions for session comparisons.
"""

from __future__ import annotations

import json
from typing import Any

from chrio.schemas.diff import ABSENT, SessionDiff


def _cell(value: Any) -> str:
    if value is ABSENT:
        return "—"
    if isinstance(value, float):
        return f"{value:g}"
    return str(value).replace("|", "\\|").replace("\n", " ")


def export_diff_json(diff: SessionDiff) -> str:
    """Export a session diff as a formatted JSON string."""
    return json.dumps(diff.to_dict(), indent=2)


def export_diff_markdown(diff: SessionDiff, client_name: str = "") -> str:
    """Export a session diff as a Markdown report.

    Changed rows are marked with an asterisk; values missing on one side
    are shown as an em dash.

    Returns:
        Markdown-formatted string.
    """
    lines: list[str] = []

    title = f"# Session Comparison: #{diff.session_number_a} vs #{diff.session_number_b}"
    lines.append(title)
    lines.append("")
    lines.append(f"- **Client:** {client_name or diff.client_id}")
    lines.append(f"- **Session A:** {diff.session_a} (#{diff.session_number_a})")
    lines.append(f"- **Session B:** {diff.session_b} (#{diff.session_number_b})")
    lines.append(f"- **Changed Fields:** {len(diff.changed_fields())} of {len(diff.fields)}")
    lines.append("")

    if not diff.fields:
        lines.append("_No recorded fields in either session._")
        lines.append("")
        return "\n".join(lines)

    lines.append("| Field | Session A | Session B | Changed |")
    lines.append("|---|---|---|---|")
    for entry in diff.fields:
        marker = "*" if entry.changed else ""
        lines.append(
            f"| {entry.field} | {_cell(entry.value_a)} | {_cell(entry.value_b)} | {marker} |"
        )
    lines.append("")

    return "\n".join(lines)
