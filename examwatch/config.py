"""
Configuration of the remote booking flow and of the text heuristics.

The portal has no structured API: rows, legends and detail fields are told
apart purely by their wording. All of that wording is collected here so the
classifier and the detail parser can be tested (and updated) with other
vocabularies without touching their control flow.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet, Optional, Tuple


# ---------------------------------------------------------------------------
# Text vocabulary
# ---------------------------------------------------------------------------

CITIES: Tuple[str, ...] = (
    "augsburg",
    "bamberg",
    "freising",
    "münchen",
    "nürnberg",
    "regensburg",
    "rosenheim",
    "traunstein",
)

REGIONS: Tuple[str, ...] = (
    "oberbayern",
    "oberpfalz",
    "oberfranken",
    "mittelfranken",
    "schwaben",
)

# Label text on the detail page -> JSON field. None: recognised, not stored.
DETAIL_LABELS: Tuple[Tuple[str, Optional[str]], ...] = (
    ("Prüfungslokal", "exam_venue"),
    ("Raum", "room"),
    ("PLZ", "postal_code"),
    ("Ort", None),
    ("Straße", "street"),
    ("Hausnummer", "house_number"),
    ("Prüfungstermin", "exam_date"),
    ("Prüfungsbeginn", "exam_start_time"),
    ("Kopfhörer", "headphones"),
    ("Behindertengerecht", "wheelchair_accessible"),
    ("Min. Teilnehmer", "min_participants"),
    ("Max. Teilnehmer", "max_participants"),
    ("Aktuelle Teilnehmer", "current_participants"),
    ("Status", "detail_status"),
)


@dataclass(frozen=True)
class Vocabulary:
    """
    Wording the heuristics depend on.

    location_tokens are matched case-insensitively as substrings, so they
    must be lowercase.

    max_text_length and max_value_length count characters of the decoded
    text, not UTF-8 bytes: "Straße" is 6 long, not 7.
    """

    location_tokens: Tuple[str, ...] = CITIES + REGIONS
    free_token: str = "frei"
    occupied_token: str = "belegt"
    # a cell naming more locations than this is a legend/header
    header_token_limit: int = 2
    placeholder_cells: FrozenSet[str] = frozenset({"-"})
    # tables with less flattened text are layout tables
    min_table_text: int = 50
    detail_labels: Tuple[Tuple[str, Optional[str]], ...] = DETAIL_LABELS
    # detail page nodes longer than this are containers
    max_text_length: int = 200
    max_value_length: int = 100

    def label_field(self, text: str) -> Tuple[bool, Optional[str]]:
        """
        Return (is_label, field_name) for one piece of detail page text.
        """
        for label, name in self.detail_labels:
            if text == label:
                return True, name
        return False, None


DEFAULT_VOCABULARY = Vocabulary()


# ---------------------------------------------------------------------------
# Remote flow
# ---------------------------------------------------------------------------

SITE_URL = "https://fischerpruefung-online.bayern.de"
ENTRY_URL = SITE_URL + "/fprApp/"
LISTING_URL = SITE_URL + "/fprApp/verwaltung/Pruefungssuche?execution=e9s1"

USER_AGENT = "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36"
ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"


@dataclass(frozen=True)
class FlowConfig:
    """
    Where the booking flow lives and how hard we are allowed to hit it.
    """

    site_url: str = SITE_URL
    entry_url: str = ENTRY_URL
    listing_url: str = LISTING_URL
    form_selector: str = "form#pruefungsterminSearch"
    control_selector: str = "input[type=submit].select"
    user_agent: str = USER_AGENT
    accept: str = ACCEPT
    max_redirects: int = 20
    # seconds per request; None waits forever
    timeout: Optional[float] = 30.0
    workers: int = 10
    # value sent for the chosen row button
    selection_marker: str = ""
    vocabulary: Vocabulary = field(default_factory=Vocabulary)


DEFAULT_FLOW = FlowConfig()
