"""
Row classification for the appointment tables.

Legend rows, section headers and appointment rows share the same markup on
the portal; only their wording tells them apart:

- a legend row lists several cities/regions in one cell, or explains the
  "frei"/"belegt" status colours
- an appointment row starts with "DD.MM.YYYY, HH:MM"
- everything else is noise
"""

from __future__ import annotations

import enum
import re
from typing import List, Sequence

from bs4 import Tag

from examwatch.config import DEFAULT_VOCABULARY, Vocabulary


_WHITESPACE = re.compile(r"\s+")


class RowKind(enum.Enum):
    HEADER_SEPARATOR = "header_separator"
    DATA = "data"
    NOISE = "noise"


def normalize_cell(text: str) -> str:
    """
    Collapse tabs, newlines and runs of spaces into single spaces.
    """
    return _WHITESPACE.sub(" ", text).strip()


def row_cells(row: Tag, vocabulary: Vocabulary = DEFAULT_VOCABULARY) -> List[str]:
    """
    Return the non-empty, normalized cell texts of one <tr>.

    Placeholder cells ("-") are dropped, so positions refer to filled cells
    only.
    """
    cells: List[str] = []
    for cell in row.find_all(["td", "th"]):
        text = normalize_cell(cell.get_text())
        if text and text not in vocabulary.placeholder_cells:
            cells.append(text)
    return cells


def is_header_separator(cells: Sequence[str], vocabulary: Vocabulary = DEFAULT_VOCABULARY) -> bool:
    for cell in cells:
        lower = cell.lower()

        hits = sum(1 for token in vocabulary.location_tokens if token in lower)
        if hits > vocabulary.header_token_limit:
            return True

        if vocabulary.free_token in lower and vocabulary.occupied_token in lower:
            return True

    return False


def looks_like_appointment(cells: Sequence[str]) -> bool:
    """
    Loose shape check: "25.10.2025, 08:00" has '.', ',' and ':'.

    No calendar validation happens here.
    """
    if len(cells) < 3:
        return False
    first = cells[0].strip()
    return "." in first and "," in first and ":" in first


def classify_row(cells: Sequence[str], vocabulary: Vocabulary = DEFAULT_VOCABULARY) -> RowKind:
    if is_header_separator(cells, vocabulary):
        return RowKind.HEADER_SEPARATOR
    if looks_like_appointment(cells):
        return RowKind.DATA
    return RowKind.NOISE
