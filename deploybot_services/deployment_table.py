"""Markdown deployment table: render, parse back, and pull preview links out of job logs.

The table lives only inside a pull-request comment, so the rendered text is
the storage format. ``parse_deployment_table(render_deployment_table(rows))``
gives the same rows back.
"""

import re
from datetime import datetime, timezone

from deploybot_services.exceptions import (
    MalformedTableError,
    RowParseError,
    UnknownStatusLabelError,
)
from models import PLACEHOLDER, AppStatus, AppStatusLine

TABLE_HEADING = "### Deployment Status"
TABLE_HEADER = (
    "| Number | App Name         | Preview Links | Status | Last update |\n"
    "|--------|------------------|---------------|--------|-------------|\n"
)

DEPLOY_URL_PATTERN = re.compile(r'deploy_url=(https://[^\s)"]+)')
LINK_PATTERN       = re.compile(r'(https://[^\s)"]+)')
ANSI_ESCAPE        = re.compile(r"\x1b\[[0-9;]*m")
CELL_SEPARATOR     = re.compile(r"(?<!\\)\|")

COLUMN_COUNT = 5


def utc_now_iso() -> str:
    """Current UTC time, e.g. ``2024-05-01T10:15:30.123Z``."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime:
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def comment_contains_deployment_table(body) -> bool:
    return TABLE_HEADING in (body or "")


def _reduce_links(links: list):
    if not links:
        return PLACEHOLDER
    if len(links) == 1:
        return links[0]
    return links


def parse_preview_links_from_logs(logs: str):
    """
    Collects every ``deploy_url=https://...`` marker in a job log.

    Deploy steps echo the same URL several times, so matches are
    deduplicated in first-seen order before reducing to "#", a single
    URL or a list of URLs.
    """
    matches = [ANSI_ESCAPE.sub("", match) for match in DEPLOY_URL_PATTERN.findall(logs or "")]
    return _reduce_links(list(dict.fromkeys(matches)))


def parse_links_from_column(column: str):
    return _reduce_links(LINK_PATTERN.findall(column))


def _escape_cell(text: str) -> str:
    return text.replace("|", r"\|")


def _unescape_cell(text: str) -> str:
    return text.replace(r"\|", "|")


def _preview_cell(row: AppStatusLine) -> str:
    return " ".join(f"[Preview deployment]({link})" for link in row.preview_links)


def render_deployment_table(rows: list) -> str:
    table = f"{TABLE_HEADING}\n\n{TABLE_HEADER}"
    for number, row in enumerate(rows, start=1):
        name    = _escape_cell(row.name)
        preview = _escape_cell(_preview_cell(row))
        status  = f"{row.status.label} ([Logs]({_escape_cell(row.job_url)}))"
        table += f"| {number} | {name} | {preview} | {status} | {row.updated_at} |\n"
    return table


def _is_separator(line: str) -> bool:
    return line.startswith("|--") and line.endswith("--|")


def _parse_row(row_number: int, line: str) -> AppStatusLine:
    # pipes inside a cell are written as \|
    cells = [_unescape_cell(cell.strip()) for cell in CELL_SEPARATOR.split(line)]
    cells = [cell for cell in cells if cell]
    if len(cells) < COLUMN_COUNT:
        raise RowParseError(row_number, line, f"expected {COLUMN_COUNT} columns, found {len(cells)}")

    name, preview_column, status_column, updated_at = cells[1:5]

    open_paren  = status_column.find("(")
    close_paren = status_column.find(")")
    last_open   = status_column.rfind("(")
    if open_paren < 0 or close_paren < last_open:
        raise RowParseError(row_number, line, "status column has no log link")

    label  = status_column[:open_paren].strip()
    status = AppStatus.from_label(label)
    if status is None:
        raise UnknownStatusLabelError(label)
    job_url = status_column[last_open + 1:close_paren]

    try:
        parse_timestamp(updated_at)
    except ValueError:
        raise RowParseError(row_number, line, f"invalid timestamp {updated_at!r}") from None

    return AppStatusLine(
        name=name,
        status=status,
        job_url=job_url,
        updated_at=updated_at,
        preview_link=parse_links_from_column(preview_column),
    )


def parse_deployment_table(markdown: str) -> list:
    """
    Reads the rows of a rendered deployment table.

    Every non-empty line after the ``|--...--|`` separator is a data row.
    Raises MalformedTableError when there is no separator, RowParseError for
    a row that cannot be read and UnknownStatusLabelError for status text
    that is not one of the AppStatus labels.
    """
    lines = [line.strip() for line in markdown.split("\n")]
    lines = [line for line in lines if line]

    separator = next((i for i, line in enumerate(lines) if _is_separator(line)), None)
    if separator is None:
        raise MalformedTableError("Deployment table has no header separator row")

    rows = []
    seen = set()
    for row_number, line in enumerate(lines[separator + 1:], start=1):
        row = _parse_row(row_number, line)
        if row.name in seen:
            raise RowParseError(row_number, line, f"duplicate app name {row.name!r}")
        seen.add(row.name)
        rows.append(row)

    return rows
