import threading
import unittest

import requests

from examwatch.conversation import Conversation
from examwatch.errors import ConversationReused, FetchError, NoSubmissionTarget, TooManyRedirects

from fakes import FLOW, FakePortal


class RedirectLoopSession:
    max_redirects = 30

    def __init__(self) -> None:
        self.max_redirects_seen = None

    def request(self, method, url, timeout=None, **kwargs):
        self.max_redirects_seen = self.max_redirects
        raise requests.TooManyRedirects(f"Exceeded {self.max_redirects} redirects.")

    def close(self) -> None:
        pass


class TestConversation(unittest.TestCase):
    def test_open_returns_session_local_listing_and_action(self) -> None:
        portal = FakePortal()
        with Conversation(FLOW, portal.session) as conv:
            listing, action = conv.open()

        self.assertEqual(action, "/fprApp/verwaltung/Pruefungssuche?execution=e0s2")
        self.assertIsNotNone(listing.select_one("input[name=execution][value=e0s2]"))

        session = portal.sessions[0]
        self.assertEqual([(m, u) for m, u, _t in session.requests], [("GET", FLOW.entry_url), ("GET", FLOW.listing_url)])
        self.assertTrue(all(t == FLOW.timeout for _m, _u, t in session.requests))
        self.assertEqual(session.max_redirects, 20)
        self.assertTrue(session.closed)

    def test_entry_page_failure_is_not_fatal(self) -> None:
        portal = FakePortal(entry_fails=True)
        with self.assertLogs("examwatch.conversation", level="WARNING"):
            with Conversation(FLOW, portal.session) as conv:
                _listing, action = conv.open()
        self.assertTrue(action)

    def test_listing_http_error_is_fetch_error(self) -> None:
        portal = FakePortal(listing_status=503)
        with Conversation(FLOW, portal.session) as conv:
            with self.assertRaises(FetchError):
                conv.open()

    def test_missing_form_is_no_submission_target(self) -> None:
        portal = FakePortal(with_form=False)
        with Conversation(FLOW, portal.session) as conv:
            with self.assertRaises(NoSubmissionTarget):
                conv.open()

    def test_redirect_cap(self) -> None:
        session = RedirectLoopSession()
        with Conversation(FLOW, lambda: session) as conv:
            with self.assertRaises(TooManyRedirects):
                conv.open()
        self.assertEqual(session.max_redirects_seen, 20)

    def test_each_conversation_uses_a_fresh_session(self) -> None:
        portal = FakePortal()
        for _ in range(3):
            with Conversation(FLOW, portal.session) as conv:
                conv.open()
        self.assertEqual([s.sid for s in portal.sessions], [0, 1, 2])

    def test_open_twice_rejected(self) -> None:
        portal = FakePortal()
        with Conversation(FLOW, portal.session) as conv:
            conv.open()
            with self.assertRaises(ConversationReused):
                conv.open()

    def test_use_after_close_rejected(self) -> None:
        portal = FakePortal()
        with Conversation(FLOW, portal.session) as conv:
            conv.open()
        with self.assertRaises(ConversationReused):
            conv.get(FLOW.listing_url)

    def test_use_from_another_thread_rejected(self) -> None:
        portal = FakePortal()
        errors = []
        with Conversation(FLOW, portal.session) as conv:
            conv.open()

            def other() -> None:
                try:
                    conv.get(FLOW.listing_url)
                except ConversationReused as exc:
                    errors.append(exc)

            t = threading.Thread(target=other)
            t.start()
            t.join()

        self.assertEqual(len(errors), 1)


if __name__ == "__main__":
    unittest.main()
