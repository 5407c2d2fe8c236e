# core/common/app_context.py
"""
Global runtime context for signdesk.

Holds the authenticated principal of the (single) session and notifies
session observers. It carries no GUI state.
"""

from __future__ import annotations

import logging
import weakref
from datetime import datetime, timezone
from typing import Callable, Optional

from core.common.session_events import SessionEventType, UserSessionEvent
from core.contracts.auth import IAuthContext
from core.models.user import User

logger = logging.getLogger(__name__)

SessionCallback = Callable[[UserSessionEvent], None]


class AppContext:
    """Central runtime context (no GUI state)."""

    current_user: Optional[User] = None

    # observers are held weakly so forgotten subscribers do not leak
    _observers: list[weakref.ref] = []

    # ---------- Session ----------------------------------------------
    @classmethod
    def get_current_user(cls) -> Optional[User]:
        return cls.current_user

    @classmethod
    def set_current_user(cls, user: User, *, reason: str = "login") -> None:
        old = cls.current_user
        cls.current_user = user
        ev_type: SessionEventType = "login" if old is None else "user_changed"
        cls._emit(ev_type, old, user, reason)

    @classmethod
    def clear_current_user(cls, *, reason: str = "logout") -> None:
        old = cls.current_user
        cls.current_user = None
        if old is not None:
            cls._emit("logout", old, None, reason)

    @classmethod
    def subscribe_user_session(cls, callback: SessionCallback) -> None:
        if hasattr(callback, "__self__") and hasattr(callback, "__func__"):
            ref: weakref.ref = weakref.WeakMethod(callback)
        else:
            ref = weakref.ref(callback)
        cls._observers.append(ref)

    @classmethod
    def unsubscribe_user_session(cls, callback: SessionCallback) -> None:
        cls._observers = [r for r in cls._observers if r() is not None and r() != callback]

    @classmethod
    def _emit(cls, ev_type: SessionEventType, old: Optional[User], new: Optional[User], reason: str) -> None:
        event = UserSessionEvent(
            type=ev_type,
            old_user=old,
            new_user=new,
            reason=reason,
            ts_utc=datetime.now(timezone.utc),
        )
        alive: list[weakref.ref] = []
        for ref in cls._observers:
            cb = ref()
            if cb is None:
                continue
            alive.append(ref)
            cb(event)
        cls._observers = alive
        logger.debug("Session event %s (%s)", ev_type, reason)


class SessionAuthContext(IAuthContext):
    """IAuthContext backed by the AppContext session."""

    def current_principal(self) -> Optional[User]:
        return AppContext.get_current_user()
