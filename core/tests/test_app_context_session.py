"""
core/tests/test_app_context_session.py

Basic unit tests for AppContext session API, observer mechanism and the
IAuthContext view on it. Uses unittest to avoid external test dependencies.
"""

from __future__ import annotations

import unittest

from core.common.app_context import AppContext, SessionAuthContext
from core.common.session_events import UserSessionEvent
from core.models.user import User, UserRole


class TestAppContextSession(unittest.TestCase):
    def setUp(self) -> None:
        AppContext.clear_current_user(reason="test_setup")
        self._events: list[UserSessionEvent] = []

        def _cb(ev: UserSessionEvent) -> None:
            self._events.append(ev)

        self._cb = _cb
        AppContext.subscribe_user_session(self._cb)

    def tearDown(self) -> None:
        AppContext.unsubscribe_user_session(self._cb)
        AppContext.clear_current_user(reason="test_teardown")

    def test_login_event_emitted(self) -> None:
        u = User(id="u-1", username="alice", email="a@example.com")
        AppContext.set_current_user(u, reason="login")
        self.assertEqual(AppContext.get_current_user(), u)
        self.assertTrue(self._events)
        ev = self._events[-1]
        self.assertEqual(ev.type, "login")
        self.assertIsNone(ev.old_user)
        self.assertEqual(ev.new_user.username, "alice")

    def test_switch_user_emits_user_changed(self) -> None:
        AppContext.set_current_user(User(id="u-1", username="alice"))
        AppContext.set_current_user(User(id="u-2", username="bob", role=UserRole.ADMIN), reason="switch")
        ev = self._events[-1]
        self.assertEqual(ev.type, "user_changed")
        self.assertEqual(ev.old_user.id, "u-1")
        self.assertEqual(ev.new_user.id, "u-2")

    def test_logout_event_emitted(self) -> None:
        u = User(id="u-2", username="bob", email="b@example.com")
        AppContext.set_current_user(u, reason="login")
        AppContext.clear_current_user(reason="logout")
        self.assertIsNone(AppContext.get_current_user())
        ev = self._events[-1]
        self.assertEqual(ev.type, "logout")
        self.assertIsNotNone(ev.old_user)
        self.assertIsNone(ev.new_user)

    def test_unsubscribe_stops_events(self) -> None:
        AppContext.unsubscribe_user_session(self._cb)
        self._events.clear()
        u = User(id="u-3", username="carol", email="c@example.com")
        AppContext.set_current_user(u, reason="login")
        self.assertEqual(self._events, [])

    def test_auth_context_follows_session(self) -> None:
        auth = SessionAuthContext()
        self.assertIsNone(auth.current_principal())
        AppContext.set_current_user(User(id=7, username="dave"))
        principal = auth.current_principal()
        self.assertIsNotNone(principal)
        self.assertEqual(principal.id, "7")


if __name__ == "__main__":
    unittest.main()
