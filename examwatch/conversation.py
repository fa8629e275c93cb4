"""
Single-use portal sessions.

The booking portal is a stateful web flow: every page view advances a
server-side step counter bound to the session cookie, and every row button
on the listing is named relative to that session. A Conversation therefore
wraps exactly one fresh requests.Session and is good for exactly one
listing -> detail round trip:

    with Conversation(flow) as conv:
        listing, action = conv.open()
        detail = submit_detail(conv, listing, action, control)

Reusing a Conversation (second open, use after close, use from a thread
other than the one that opened it) raises ConversationReused.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Dict, Optional, Tuple
from urllib.parse import urljoin

import requests
from bs4 import BeautifulSoup

from examwatch.config import DEFAULT_FLOW, FlowConfig
from examwatch.errors import ConversationReused, FetchError, NoSubmissionTarget, TooManyRedirects
from examwatch.extract import parse_document, response_encoding

log = logging.getLogger(__name__)


def new_session() -> requests.Session:
    return requests.Session()


def find_submission_target(soup: BeautifulSoup, form_selector: str) -> str:
    """
    Return the action of the search form. Raises NoSubmissionTarget.
    """
    action = ""
    for form in soup.select(form_selector):
        value = form.get("action")
        if value:
            action = value
    if not action:
        raise NoSubmissionTarget(f"no action on {form_selector!r}")
    return action


class Conversation:
    def __init__(
        self,
        flow: FlowConfig = DEFAULT_FLOW,
        session_factory: Callable[[], Any] = new_session,
    ) -> None:
        self.flow = flow
        self._session_factory = session_factory
        self._session: Any = None
        self._owner: Optional[int] = None
        self._opened = False
        self._closed = False
        self._submitted = False

    # -- lifecycle ----------------------------------------------------------

    def __enter__(self) -> "Conversation":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._session is not None:
            self._session.close()

    def _check_usable(self) -> None:
        if self._closed:
            raise ConversationReused("conversation already closed")
        if self._owner is not None and self._owner != threading.get_ident():
            raise ConversationReused("conversation used from a second thread")

    def mark_submitted(self) -> None:
        self._check_usable()
        if self._submitted:
            raise ConversationReused("conversation already used for a submission")
        self._submitted = True

    # -- requests -----------------------------------------------------------

    def _headers(self, accept: bool = True) -> Dict[str, str]:
        headers = {"User-Agent": self.flow.user_agent}
        if accept:
            headers["Accept"] = self.flow.accept
        return headers

    def _send(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        self._check_usable()
        try:
            resp = self._session.request(method, url, timeout=self.flow.timeout, **kwargs)
        except requests.TooManyRedirects as exc:
            raise TooManyRedirects(f"{method} {url}: more than {self.flow.max_redirects} redirects") from exc
        except requests.RequestException as exc:
            raise FetchError(f"{method} {url}: {exc}") from exc

        try:
            resp.raise_for_status()
        except requests.HTTPError as exc:
            raise FetchError(f"{method} {url}: {exc}") from exc
        return resp

    def get(self, url: str, accept: bool = True) -> requests.Response:
        return self._send("GET", url, headers=self._headers(accept))

    def post(self, action: str, data: Dict[str, str]) -> requests.Response:
        """
        POST form data to a form action, resolved against the site address.
        """
        url = urljoin(self.flow.site_url + "/", action)
        headers = self._headers()
        headers["Content-Type"] = "application/x-www-form-urlencoded"
        return self._send("POST", url, data=data, headers=headers)

    # -- flow ---------------------------------------------------------------

    def open(self) -> Tuple[BeautifulSoup, str]:
        """
        Start the flow in a fresh session and return (listing, form action).

        The listing and the action are only valid inside this conversation.
        """
        listing = self.fetch_listing()
        action = find_submission_target(listing, self.flow.form_selector)
        return listing, action

    def fetch_listing(self) -> BeautifulSoup:
        """
        Entry page (best effort), then the listing, in a fresh session.
        """
        if self._opened:
            raise ConversationReused("conversation already opened")
        if self._closed:
            raise ConversationReused("conversation already closed")
        self._opened = True
        self._owner = threading.get_ident()

        self._session = self._session_factory()
        self._session.max_redirects = self.flow.max_redirects

        # some flows work without the entry page; a failure here is not fatal
        try:
            self.get(self.flow.entry_url, accept=False)
        except FetchError as exc:
            log.warning("Could not access entry page: %s", exc)

        resp = self.get(self.flow.listing_url)
        return parse_document(resp.content, response_encoding(resp))
