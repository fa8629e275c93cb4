"""
Finding an appointment's row button inside a fresh listing.

Row buttons are named per session, so the button found in the initial
listing is useless for later sessions. Each conversation re-extracts its
own listing and looks the appointment up again by (date_time, location).
"""

from __future__ import annotations

from bs4 import BeautifulSoup

from examwatch.config import DEFAULT_FLOW, FlowConfig
from examwatch.errors import NoMatch
from examwatch.extract import iter_data_rows
from examwatch.model import SummaryRecord


def match_control(
    target: SummaryRecord,
    listing: BeautifulSoup,
    flow: FlowConfig = DEFAULT_FLOW,
) -> str:
    """
    Return the name of the row button selecting `target` in this listing.

    Exact string equality on the first two cells; the first equal row with a
    named button wins. Raises NoMatch.
    """
    for _table, row, cells in iter_data_rows(listing, flow.vocabulary):
        if cells[0] != target.date_time or cells[1] != target.location:
            continue
        for button in row.select(flow.control_selector):
            name = button.get("name")
            if name:
                return name

    raise NoMatch(target)
