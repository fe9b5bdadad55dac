"""Render a ``Report`` as text, JSON, TSV or an HTML table."""

from __future__ import annotations

import html
import json
from typing import Callable, Dict, List

from .result import Report, Row

Outputter = Callable[[Report], str]

HEADER: Row = ("name", "status", "message")
FORMATS = ("text", "json", "tsv", "html")


def format_json(report: Report) -> str:
    return json.dumps(report.to_dict(), indent=2)


def format_tsv(report: Report) -> str:
    rows = [HEADER] + report.rows()
    return "\n".join("\t".join(_tsv_cell(cell) for cell in row) for row in rows)


def _tsv_cell(value: str) -> str:
    return value.replace("\t", " ").replace("\r", " ").replace("\n", " ")


def format_html(report: Report) -> str:
    thead = "<tr><th>Name</th><th>Status</th><th>Message</th></tr>"
    tbody = "".join(
        "<tr>" + "".join(f"<td>{html.escape(cell)}</td>" for cell in row) + "</tr>" for row in report.rows()
    )
    return "\n".join(
        [
            '<table class="amplint">',
            "<thead>",
            thead,
            "</thead>",
            "<tbody>",
            tbody,
            "</tbody>",
            "</table>",
        ]
    )


def format_text(report: Report) -> str:
    """Create a human-readable listing followed by a summary table."""

    lines: List[str] = []
    for name, status, message in report.rows():
        lines.append(f"{name} ({status})")
        if status != "PASS" and message:
            lines.append("")
            lines.extend(f"  {line}" for line in message.splitlines())
        lines.append("")

    summary = report.summary()
    lines.append("Lint Summary")
    lines.append("=" * 40)
    header = f"{'Status':<15} | {'Count':>5}"
    lines.append(header)
    lines.append("-" * len(header))
    for status, count in summary.as_rows():
        lines.append(f"{status:<15} | {count:>5}")
    lines.append("-" * len(header))
    lines.append(f"Rules     : {len(report)}")
    lines.append(f"Results   : {summary.total}")
    return "\n".join(lines)


OUTPUTTERS: Dict[str, Outputter] = {
    "text": format_text,
    "json": format_json,
    "tsv": format_tsv,
    "html": format_html,
}


def outputter_for(report_format: str) -> Outputter:
    return OUTPUTTERS.get((report_format or "text").lower(), format_text)
