"""History report rendering.

Renders a list of history entries to an HTML, CSV or JSON file. The CSV
header and JSON keys use the history document's field names.
"""

import csv
import html
import json
import socket
from collections.abc import Sequence
from enum import Enum
from pathlib import Path

from winupctl import __version__
from winupctl.models.history import HistoryEntry
from winupctl.utils.timestamps import format_timestamp, utc_now

CSV_FIELDS: tuple[str, ...] = (
    "Timestamp",
    "PackageName",
    "Version",
    "PreviousVersion",
    "Source",
    "Operation",
    "Success",
    "ErrorMessage",
    "ComputerName",
    "UserName",
)

_HTML_STYLE = """
body { font-family: Segoe UI, Arial, sans-serif; margin: 2em; color: #222; }
h1 { font-size: 1.4em; }
.summary span { margin-right: 1.5em; }
table { border-collapse: collapse; width: 100%; margin-top: 1em; }
th, td { border: 1px solid #ccc; padding: 4px 8px; text-align: left; font-size: 0.9em; }
th { background: #29526d; color: #fff; }
tr:nth-child(even) { background: #f4f6f8; }
.ok { color: #03803f; font-weight: bold; }
.fail { color: #c0143c; font-weight: bold; }
"""


class ReportFormat(str, Enum):
    """Supported history report formats."""

    HTML = "html"
    CSV = "csv"
    JSON = "json"

    @property
    def suffix(self) -> str:
        """Default file suffix for the format."""
        return f".{self.value}"


def render_history_report(
    entries: Sequence[HistoryEntry],
    report_format: ReportFormat,
    output_path: Path,
    days: int | None = None,
) -> Path:
    """Write entries to a report file.

    Args:
        entries: History entries to include.
        report_format: Output format.
        output_path: Destination file. Parent directories are created.
        days: Reporting window, shown in the HTML header.

    Returns:
        Path that was written.

    Raises:
        OSError: If the file cannot be written.
    """
    output_path.parent.mkdir(parents=True, exist_ok=True)

    if report_format == ReportFormat.CSV:
        _write_csv(entries, output_path)
    elif report_format == ReportFormat.JSON:
        output_path.write_text(
            json.dumps([entry.to_dict() for entry in entries], indent=2),
            encoding="utf-8",
        )
    else:
        output_path.write_text(_build_html(entries, days), encoding="utf-8")

    return output_path


def _write_csv(entries: Sequence[HistoryEntry], output_path: Path) -> None:
    with output_path.open("w", encoding="utf-8", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=CSV_FIELDS)
        writer.writeheader()
        for entry in entries:
            writer.writerow(entry.to_dict())


def _build_html(entries: Sequence[HistoryEntry], days: int | None) -> str:
    succeeded = sum(1 for e in entries if e.success)
    failed = len(entries) - succeeded
    window = f"last {days} day(s)" if days is not None else "all history"
    generated = utc_now().strftime("%Y-%m-%d %H:%M UTC")

    rows: list[str] = []
    for entry in entries:
        status = '<td class="ok">OK</td>' if entry.success else '<td class="fail">FAIL</td>'
        cells = [
            format_timestamp(entry.timestamp),
            entry.package_name,
            entry.source.value,
            entry.operation.value,
            entry.previous_version,
            entry.version,
        ]
        row = "".join(f"<td>{html.escape(cell)}</td>" for cell in cells)
        rows.append(f"<tr>{row}{status}<td>{html.escape(entry.error_message)}</td></tr>")

    headers = "".join(
        f"<th>{name}</th>"
        for name in (
            "Time",
            "Package",
            "Source",
            "Operation",
            "Previous",
            "Version",
            "Status",
            "Error",
        )
    )

    return "\n".join(
        [
            "<!DOCTYPE html>",
            '<html lang="en">',
            "<head>",
            '<meta charset="utf-8">',
            "<title>winupctl update history</title>",
            f"<style>{_HTML_STYLE}</style>",
            "</head>",
            "<body>",
            "<h1>Update history</h1>",
            f"<p>{html.escape(socket.gethostname())} &middot; {window} &middot; "
            f"generated {generated} by winupctl {__version__}</p>",
            '<div class="summary">',
            f"<span>Total: {len(entries)}</span>",
            f'<span class="ok">Succeeded: {succeeded}</span>',
            f'<span class="fail">Failed: {failed}</span>',
            "</div>",
            f"<table><thead><tr>{headers}</tr></thead>",
            "<tbody>",
            *rows,
            "</tbody></table>",
            "</body>",
            "</html>",
            "",
        ]
    )
