"""Parser for winget's column-aligned tables.

``winget search``, ``winget upgrade`` and ``winget list`` print a header
line, a separator made of dashes and one row per package. Column positions
are taken from the header and then snapped onto each row's own token
layout, so rows that drift from the header alignment still split cleanly.
"""

import logging
import re
from collections.abc import Iterable
from typing import Optional, Union

from winget_batch.models import UNKNOWN, PackageRecord

logger = logging.getLogger(__name__)

HEADER_PATTERN = re.compile(r"\bName\s+Id\b")

# Optional columns, in the order winget prints them
OPTIONAL_COLUMNS = ("Version", "Available", "Match", "Source")

ID_PATTERN = re.compile(r"[A-Za-z0-9.\-_]+")
VERSION_LIKE_PATTERN = re.compile(r"^\d+\.\d+")


def _find_label(line: str, label: str, start: int) -> Optional[int]:
    match = re.compile(rf"\b{label}\b").search(line, start)
    return match.start() if match else None


def read_header(line: str) -> Optional[dict[str, int]]:
    """Return the column offsets of a header line.

    Args:
        line: Candidate header line.

    Returns:
        Mapping of column label to character offset. ``Id`` is always
        present; optional columns only when found. None if ``line`` is not
        a header.
    """
    header = HEADER_PATTERN.search(line)
    if header is None:
        return None

    offsets = {"Id": _find_label(line, "Id", header.start())}
    for label in OPTIONAL_COLUMNS:
        offset = _find_label(line, label, offsets["Id"] + 2)
        if offset is not None:
            offsets[label] = offset
    return offsets


def is_separator(line: str) -> bool:
    stripped = line.strip()
    return bool(stripped) and set(stripped) == {"-"}


def _token_start(line: str, pos: int) -> int:
    while pos > 0 and not line[pos - 1].isspace():
        pos -= 1
    return pos


def _skip_token(line: str, pos: int) -> int:
    while pos < len(line) and not line[pos].isspace():
        pos += 1
    return pos


def _next_token(line: str, pos: int) -> int:
    while pos < len(line) and line[pos].isspace():
        pos += 1
    return pos


def _snap(line: str, offset: int, floor: int, ceiling: Optional[int]) -> int:
    """Move a header offset onto the start of this row's cell.

    Args:
        line: Data row.
        offset: Column offset taken from the header.
        floor: Resolved start of the previous column; the result is
            always greater than it.
        ceiling: Header offset of the next column, if any.

    Returns:
        Start index of the cell. A blank cell resolves to ``offset``.
    """
    length = len(line)
    moved = False
    if offset <= floor:
        offset = _skip_token(line, floor)
        moved = True
    if offset >= length:
        return length

    if not line[offset].isspace():
        start = _token_start(line, offset)
        if start > floor:
            return start
        # Previous cell runs into this column
        offset = _skip_token(line, offset)
        moved = True
        if offset >= length:
            return length

    start = _next_token(line, offset)
    if not moved and ceiling is not None and start >= ceiling:
        return offset
    return start


def _split_row(line: str, offsets: dict[str, int]) -> dict[str, str]:
    """Slice a data row into trimmed cells keyed by column label."""
    ordered = sorted(offsets.items(), key=lambda item: item[1])
    starts: list[tuple[str, int]] = []
    floor = 0
    for index, (label, offset) in enumerate(ordered):
        ceiling = ordered[index + 1][1] if index + 1 < len(ordered) else None
        start = _snap(line, offset, floor, ceiling)
        starts.append((label, start))
        floor = start

    cells = {"Name": line[: starts[0][1]].strip()}
    for index, (label, start) in enumerate(starts):
        end = starts[index + 1][1] if index + 1 < len(starts) else len(line)
        cells[label] = line[start:end].strip()
    return cells


def is_valid_id(package_id: str) -> bool:
    """Check that a cell looks like a package id rather than a version."""
    if not ID_PATTERN.fullmatch(package_id):
        return False
    return VERSION_LIKE_PATTERN.match(package_id) is None


def _matches_all_words(line: str, words: list[str]) -> bool:
    lowered = line.lower()
    return all(word in lowered for word in words)


def _iter_lines(lines: Union[str, Iterable[str]]) -> Iterable[str]:
    if isinstance(lines, str):
        lines = [lines]
    for chunk in lines:
        for line in str(chunk).split("\n"):
            # Progress spinners rewrite the line with carriage returns
            yield line.rstrip("\r").rsplit("\r", 1)[-1]


def parse_table(
    lines: Union[str, Iterable[str]], query: str = ""
) -> list[PackageRecord]:
    """Parse a winget table into package records.

    Args:
        lines: Combined stdout/stderr of the table command.
        query: Query the table was produced for. Multi-word queries keep
            only rows containing every word (case-insensitive). The query
            is also stored as each record's ``search_term``.

    Returns:
        Records in input order, de-duplicated by id. Empty when no header
        and separator were found.
    """
    words = query.lower().split()
    filter_words = words if len(words) > 1 else []

    offsets: Optional[dict[str, int]] = None
    in_data = False
    seen: set[str] = set()
    records: list[PackageRecord] = []

    for line in _iter_lines(lines):
        header = read_header(line)
        if header is not None:
            offsets = header
            in_data = False
            continue

        if is_separator(line):
            in_data = offsets is not None
            continue

        if not in_data or not line.strip():
            continue

        if len(line) < offsets["Id"]:
            continue

        cells = _split_row(line, offsets)
        package_id = cells["Id"]
        if not is_valid_id(package_id):
            logger.debug("Skipping row without a valid id: %r", line)
            continue

        if filter_words and not _matches_all_words(line, filter_words):
            continue

        if package_id in seen:
            continue
        seen.add(package_id)

        records.append(
            PackageRecord(
                id=package_id,
                name=cells["Name"],
                version=cells.get("Version") or UNKNOWN,
                source=cells.get("Source") or UNKNOWN,
                search_term=query,
                match=cells.get("Match") or None,
                available=cells.get("Available") or None,
            )
        )

    return records


def aggregate(results: Iterable[list[PackageRecord]]) -> list[PackageRecord]:
    """Concatenate per-query results, keeping duplicates across queries."""
    combined: list[PackageRecord] = []
    for records in results:
        combined.extend(records)
    return combined
