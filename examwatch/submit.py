"""
Submitting the listing form for one appointment.

The portal expects the complete form state back (hidden step tokens,
search filters) plus the name of the row button that was "clicked".
"""

from __future__ import annotations

from typing import Dict

from bs4 import BeautifulSoup

from examwatch.conversation import Conversation
from examwatch.errors import FetchError, SubmissionError
from examwatch.extract import parse_document, response_encoding

# buttons never travel with the form, only the one that was clicked
_BUTTON_TYPES = {"submit", "image"}
# only sent while checked; an unchecked box must be absent, not "false"
_TOGGLE_TYPES = {"checkbox", "radio"}


def build_payload(listing: BeautifulSoup, control: str, marker: str = "") -> Dict[str, str]:
    data: Dict[str, str] = {}

    for field in listing.find_all("input"):
        name = field.get("name")
        if not name:
            continue

        kind = (field.get("type") or "text").lower()
        if kind in _BUTTON_TYPES:
            continue
        if kind in _TOGGLE_TYPES and not field.has_attr("checked"):
            continue

        data[name] = field.get("value", "")

    data[control] = marker
    return data


def submit_detail(
    conversation: Conversation,
    listing: BeautifulSoup,
    action: str,
    control: str,
) -> BeautifulSoup:
    """
    Select one row of `listing` and return the detail page.

    `listing`, `action` and `control` must all come from `conversation`.
    """
    conversation.mark_submitted()
    payload = build_payload(listing, control, conversation.flow.selection_marker)

    try:
        resp = conversation.post(action, payload)
    except FetchError as exc:
        raise SubmissionError(f"detail request failed: {exc}") from exc

    return parse_document(resp.content, response_encoding(resp))
