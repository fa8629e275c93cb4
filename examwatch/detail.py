"""
Detail page parsing.

The detail view has no stable ids or classes. It is read as a flat sequence
of elements in document order: an element whose text is exactly a known
label opens that label, the next short element with other text is its
value.
"""

from __future__ import annotations

import logging
from typing import Dict, Optional

from bs4 import BeautifulSoup

from examwatch.config import DEFAULT_VOCABULARY, Vocabulary

log = logging.getLogger(__name__)


def parse_detail(soup: BeautifulSoup, vocabulary: Vocabulary = DEFAULT_VOCABULARY) -> Dict[str, str]:
    """
    Return {json_field: value} for every label found on the page.

    If a label occurs twice only its first value is kept.
    """
    details: Dict[str, str] = {}
    seen: set[str] = set()
    current: Optional[str] = None
    current_field: Optional[str] = None

    for element in soup.find_all(True):
        text = element.get_text().strip()
        if not text or len(text) > vocabulary.max_text_length:
            continue

        is_label, name = vocabulary.label_field(text)
        if is_label:
            current, current_field = text, name
            continue

        if current is None:
            continue
        if text == current or len(text) >= vocabulary.max_value_length:
            continue
        # element still wraps its own label
        if current in text:
            continue

        if current not in seen:
            seen.add(current)
            if current_field is not None:
                details[current_field] = text
        current, current_field = None, None

    log.debug("Detail page yielded %d fields", len(details))
    return details
