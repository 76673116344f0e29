"""Delimited-text parsing and first-column extraction.

The parser is simpler than RFC 4180: every double quote toggles
the quoted state (there is no ``""`` escape) and quoted fields never span
lines. Malformed quoting never raises; it only moves field boundaries.
"""

from __future__ import annotations

from typing import List, Sequence

Grid = List[List[str]]

DELIMITER = ","
QUOTE = '"'


def parse_delimited(text: str, delimiter: str = DELIMITER) -> Grid:
    """Split raw text into rows of cells.

    Every line produces a row, including the empty line after a trailing
    newline, so ``len(rows) == text.count("\\n") + 1``.
    """
    rows: Grid = []
    for line in text.split("\n"):
        row: List[str] = []
        current: List[str] = []
        in_quotes = False
        for char in line:
            if char == QUOTE:
                in_quotes = not in_quotes
            elif char == delimiter and not in_quotes:
                row.append("".join(current))
                current = []
            else:
                current.append(char)
        row.append("".join(current))
        rows.append(row)
    return rows


def first_column(rows: Sequence[Sequence[str]]) -> List[str]:
    """Return the stripped first cell of every row, minus trailing empties.

    Interior empty values are kept (they render as blank lines). Returns an
    empty list when no row has a non-empty first cell.
    """
    values: List[str] = []
    last_non_empty = -1
    for index, row in enumerate(rows):
        value = row[0].strip() if row else ""
        if value:
            last_non_empty = index
        values.append(value)
    return values[: last_non_empty + 1]


def get_first_column_values(text: str) -> List[str]:
    """Parse ``text`` and return its first column."""
    return first_column(parse_delimited(text))


def looks_delimited(text: str) -> bool:
    """Heuristic: is this plausibly delimited data rather than an error page?"""
    return DELIMITER in text or "\n" in text
