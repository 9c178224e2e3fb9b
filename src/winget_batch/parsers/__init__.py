"""Parsers for winget output and winget-pkgs commit messages.

All parsers absorb malformed input and return empty or default results
instead of raising.
"""

from winget_batch.parsers.commits import classify_commit, headline
from winget_batch.parsers.details import parse_details, source_host_link
from winget_batch.parsers.table import aggregate, parse_table

__all__ = [
    "aggregate",
    "classify_commit",
    "headline",
    "parse_details",
    "parse_table",
    "source_host_link",
]
