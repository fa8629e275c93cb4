"""
Listing extraction (HTML -> SummaryRecord groups).

- Every <table> whose flattened text is long enough is scanned
- Each row is normalized and classified (see rows.py)
- Appointment rows are mapped positionally:
  date_time, location, city, region, status
- Each table with at least one appointment becomes one group
"""

from __future__ import annotations

import logging
from typing import Iterator, List, Optional, Sequence, Tuple, Union

import requests
from bs4 import BeautifulSoup, Tag
from bs4.builder import ParserRejectedMarkup

from examwatch.config import DEFAULT_VOCABULARY, Vocabulary
from examwatch.errors import ParseError
from examwatch.model import SummaryRecord
from examwatch.rows import RowKind, classify_row, row_cells

log = logging.getLogger(__name__)


def response_encoding(resp: requests.Response) -> str:
    """
    Charset from the Content-Type header, UTF-8 if the header names none.

    requests assumes ISO-8859-1 for text/* without a charset, which would
    break every label with an umlaut; the portal serves UTF-8.
    """
    content_type = resp.headers.get("Content-Type", "")
    if "charset=" in content_type.lower() and resp.encoding:
        return resp.encoding
    return "utf-8"


def parse_document(html: Union[str, bytes], encoding: Optional[str] = None) -> BeautifulSoup:
    """
    Parse a portal response. Raises ParseError for empty or rejected markup.

    Raw bytes are decoded with `encoding` first; bs4 falls back to the BOM
    and <meta charset> if they are not valid in that encoding.
    """
    if not html or not html.strip():
        raise ParseError("empty document")
    try:
        if isinstance(html, bytes):
            return BeautifulSoup(html, "html.parser", from_encoding=encoding)
        return BeautifulSoup(html, "html.parser")
    except ParserRejectedMarkup as exc:
        raise ParseError(f"markup rejected by parser: {exc}") from exc


def _qualifying_tables(soup: BeautifulSoup, vocabulary: Vocabulary) -> Iterator[Tag]:
    for table in soup.find_all("table"):
        if len(table.get_text().strip()) > vocabulary.min_table_text:
            yield table


def iter_data_rows(
    soup: BeautifulSoup,
    vocabulary: Vocabulary = DEFAULT_VOCABULARY,
) -> Iterator[Tuple[int, Tag, List[str]]]:
    """
    Yield (table_index, <tr>, cells) for every appointment row, in document order.
    """
    for table_index, table in enumerate(_qualifying_tables(soup, vocabulary)):
        for row in table.find_all("tr"):
            cells = row_cells(row, vocabulary)
            if classify_row(cells, vocabulary) is RowKind.DATA:
                yield table_index, row, cells


def record_from_cells(cells: Sequence[str]) -> SummaryRecord:
    def at(i: int) -> str:
        return cells[i] if len(cells) > i else ""

    return SummaryRecord(
        date_time=at(0),
        location=at(1),
        city=at(2),
        region=at(3),
        status=at(4),
    )


def extract_groups(
    soup: BeautifulSoup,
    vocabulary: Vocabulary = DEFAULT_VOCABULARY,
) -> List[List[SummaryRecord]]:
    """
    Return one list of summary records per table that holds appointments.
    """
    groups: List[List[SummaryRecord]] = []
    current: List[SummaryRecord] = []
    current_table = -1

    for table_index, _row, cells in iter_data_rows(soup, vocabulary):
        if table_index != current_table:
            if current:
                groups.append(current)
            current = []
            current_table = table_index
        current.append(record_from_cells(cells))

    if current:
        groups.append(current)

    return groups


def extract_summaries(
    soup: BeautifulSoup,
    vocabulary: Vocabulary = DEFAULT_VOCABULARY,
) -> List[SummaryRecord]:
    """
    All summary records of a listing, tables concatenated in document order.
    """
    records = [record for group in extract_groups(soup, vocabulary) for record in group]
    log.debug("Extracted %d appointment rows", len(records))
    return records
