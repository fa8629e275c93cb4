"""
Form inspection for debugging the listing page.

When the portal changes its markup the scraper usually fails with
NoSubmissionTarget; `examwatch forms` shows which forms the page has now.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

from bs4 import BeautifulSoup


@dataclass(frozen=True)
class FormInfo:
    id: str
    action: str
    method: str
    enctype: str
    submit_buttons: int


def inspect_forms(soup: BeautifulSoup) -> List[FormInfo]:
    out: List[FormInfo] = []
    for form in soup.find_all("form"):
        out.append(
            FormInfo(
                id=form.get("id", ""),
                action=form.get("action", ""),
                method=form.get("method", ""),
                enctype=form.get("enctype", ""),
                submit_buttons=len(form.select("input[type=submit]")),
            )
        )
    return out
