"""
In-memory stand-in for the booking portal.

Behaves like the real flow in the ways the scraper depends on:
- every session gets its own execution token and its own button names
- rows are listed in a different order for every session
- a submission only works with the token and a button of the same session

FakePortal.session is passed as session_factory.
"""

from __future__ import annotations

import threading
from typing import Dict, List, Optional, Sequence, Set, Tuple

import requests

from examwatch.config import FlowConfig

SITE = "https://portal.test"
FLOW = FlowConfig(
    site_url=SITE,
    entry_url=SITE + "/fprApp/",
    listing_url=SITE + "/fprApp/verwaltung/Pruefungssuche?execution=e9s1",
    timeout=5,
    workers=4,
)

# date_time, location, city, region, status
ROWS: List[Tuple[str, str, str, str, str]] = [
    ("25.10.2025, 08:00", "Gasthof Post", "Augsburg", "Schwaben", "frei"),
    ("25.10.2025, 08:00", "Landratsamt", "Bamberg", "Oberfranken", "belegt"),
    ("26.10.2025, 09:30", "Hofbräuhaus", "München", "Oberbayern", "frei"),
    ("01.11.2025, 10:00", "Messe", "Nürnberg", "Mittelfranken", "frei"),
    ("03.11.2025, 14:00", "Kolpinghaus", "Regensburg", "Oberpfalz", "belegt"),
]


HTML_UTF8 = "text/html; charset=utf-8"


def make_response(
    url: str,
    html: str,
    status: int = 200,
    content_type: str = HTML_UTF8,
    body_encoding: str = "utf-8",
) -> requests.Response:
    resp = requests.Response()
    resp.status_code = status
    resp._content = html.encode(body_encoding)
    resp.headers["Content-Type"] = content_type
    # what requests.adapters.HTTPAdapter.build_response does
    resp.encoding = requests.utils.get_encoding_from_headers(resp.headers)
    resp.url = url
    return resp


def listing_html(sid: int, rows: Sequence[Tuple[str, str, str, str, str]], with_form: bool = True) -> str:
    body: List[str] = []
    for pos, (date_time, location, city, region, status) in enumerate(rows):
        body.append(
            "<tr>"
            f"<td>{date_time}</td><td>\n\t{location}  </td><td>{city}</td><td>{region}</td><td>{status}</td>"
            "<td>-</td>"
            f'<td><input type="submit" class="select" name="_eventId_select_s{sid}_r{pos}" value="Auswählen"></td>'
            "</tr>"
        )

    table = (
        "<table>"
        "<tr><th>Termin</th><th>Prüfungslokal</th><th>Ort</th><th>Bezirk</th><th>Status</th></tr>"
        "<tr><td>Augsburg Bamberg Freising München Nürnberg</td><td>x</td><td>y</td></tr>"
        "<tr><td>Legende: frei / belegt</td><td>x</td><td>y</td></tr>"
        + "".join(body)
        + "</table>"
    )
    action = f"/fprApp/verwaltung/Pruefungssuche?execution=e{sid}s2"
    form_open = f'<form id="pruefungsterminSearch" action="{action}" method="post">' if with_form else "<form>"
    return (
        "<html><body>"
        f"{form_open}"
        f'<input type="hidden" name="execution" value="e{sid}s2">'
        '<input type="checkbox" name="nurFreie" value="true" checked>'
        '<input type="checkbox" name="mitWarteliste" value="true">'
        '<input type="text" name="plz" value="">'
        '<input type="submit" name="_eventId_search" value="Suchen">'
        "<table><tr><td>Suche</td></tr></table>"
        f"{table}"
        "</form></body></html>"
    )


def detail_html(row: Tuple[str, str, str, str, str], index: int) -> str:
    date_time, location, city, _region, status = row
    date, time = [p.strip() for p in date_time.split(",")]
    pairs = [
        ("Prüfungslokal", location),
        ("Raum", f"Saal {index + 1}"),
        ("PLZ", f"8{index}000"),
        ("Ort", city),
        ("Straße", "Hauptstraße"),
        ("Hausnummer", str(index + 10)),
        ("Prüfungstermin", date),
        ("Prüfungsbeginn", time),
        ("Kopfhörer", "ja"),
        ("Behindertengerecht", "nein"),
        ("Min. Teilnehmer", "5"),
        ("Max. Teilnehmer", "30"),
        ("Aktuelle Teilnehmer", str(index)),
        ("Status", status),
    ]
    rows = "".join(f"<tr><td>{label}</td><td>{value}</td></tr>" for label, value in pairs)
    return f"<html><body><h1>Termindetails</h1><table>{rows}</table></body></html>"


class FakePortal:
    def __init__(
        self,
        rows: Sequence[Tuple[str, str, str, str, str]] = ROWS,
        fail_submit_for: Sequence[str] = (),
        drop_from_fresh_listings: Sequence[str] = (),
        listing_status: int = 200,
        entry_fails: bool = False,
        with_form: bool = True,
        content_type: str = HTML_UTF8,
        listing_faults: Optional[Dict[int, str]] = None,
    ) -> None:
        self.rows = list(rows)
        # locations whose detail POST raises a connection error
        self.fail_submit_for: Set[str] = set(fail_submit_for)
        # locations missing from every listing after the first
        self.drop_from_fresh_listings: Set[str] = set(drop_from_fresh_listings)
        self.listing_status = listing_status
        self.entry_fails = entry_fails
        self.with_form = with_form
        # sent with every page; "text/html" alone makes requests guess ISO-8859-1
        self.content_type = content_type
        # session id -> "error" (HTTP 500), "no_form" or "empty" listing
        self.listing_faults: Dict[int, str] = dict(listing_faults or {})

        self._lock = threading.Lock()
        self._next_sid = 0
        self.sessions: List["FakeSession"] = []
        self.payloads: List[Dict[str, str]] = []

    def session(self) -> "FakeSession":
        with self._lock:
            sid = self._next_sid
            self._next_sid += 1
            s = FakeSession(self, sid)
            self.sessions.append(s)
            return s

    def rows_for(self, sid: int) -> List[Tuple[str, str, str, str, str]]:
        rows = self.rows
        if sid > 0 and self.drop_from_fresh_listings:
            rows = [r for r in rows if r[1] not in self.drop_from_fresh_listings]
        if not rows:
            return []
        shift = sid % len(rows)
        return rows[shift:] + rows[:shift]

    def _page(self, url: str, html: str, status: int = 200) -> requests.Response:
        return make_response(url, html, status=status, content_type=self.content_type)

    def handle_get(self, session: "FakeSession", url: str) -> requests.Response:
        if url == FLOW.entry_url:
            if self.entry_fails:
                raise requests.ConnectionError("entry page down")
            return self._page(url, "<html><body>Willkommen</body></html>")
        if url == FLOW.listing_url:
            session.listing = self.rows_for(session.sid)
            fault = self.listing_faults.get(session.sid)
            if fault == "error":
                return self._page(url, "<html><body>Interner Fehler</body></html>", status=500)
            if fault == "empty":
                return self._page(url, "")
            with_form = self.with_form and fault != "no_form"
            html = listing_html(session.sid, session.listing, with_form=with_form)
            return self._page(url, html, status=self.listing_status)
        return self._page(url, "<html><body>Not found</body></html>", status=404)

    def handle_post(self, session: "FakeSession", url: str, data: Dict[str, str]) -> requests.Response:
        with self._lock:
            self.payloads.append(dict(data))

        if data.get("execution") != f"e{session.sid}s2":
            return self._page(url, "<html><body>Sitzung abgelaufen</body></html>")
        if "_eventId_search" in data or "mitWarteliste" in data:
            return self._page(url, "<html><body>Ungültige Anfrage</body></html>")

        prefix = f"_eventId_select_s{session.sid}_r"
        chosen = [k for k in data if k.startswith("_eventId_select_")]
        if len(chosen) != 1 or not chosen[0].startswith(prefix):
            return self._page(url, "<html><body>Ungültige Auswahl</body></html>")

        row = session.listing[int(chosen[0][len(prefix):])]
        if row[1] in self.fail_submit_for:
            raise requests.ConnectionError(f"connection reset for {row[1]}")
        return self._page(url, detail_html(row, self.rows.index(row)))


class FakeSession:
    """
    The subset of requests.Session the scraper uses.
    """

    def __init__(self, portal: FakePortal, sid: int) -> None:
        self.portal = portal
        self.sid = sid
        self.max_redirects = 30
        self.closed = False
        self.listing: List[Tuple[str, str, str, str, str]] = []
        self.requests: List[Tuple[str, str, Optional[float]]] = []

    def request(self, method: str, url: str, timeout: Optional[float] = None, **kwargs) -> requests.Response:
        self.requests.append((method, url, timeout))
        if method == "GET":
            return self.portal.handle_get(self, url)
        return self.portal.handle_post(self, url, kwargs.get("data") or {})

    def close(self) -> None:
        self.closed = True
