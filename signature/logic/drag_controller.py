# signature/logic/drag_controller.py
"""
Pointer-drag state machine for moving a placed signature.

One DragSession per drag: IDLE -> DRAGGING -> (COMMITTED | CANCELLED).
Pointer-move only updates the live preview (viewport pixels); nothing is
persisted until pointer-up hands a FreeformPosition to the commit handler.
Sessions are plain objects owned by the DragController, not global listeners.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Optional

from ..exceptions.errors import PlacementError, TransientIO
from ..models.batch import ApplyOutcome, Failed
from ..models.geometry import Point, Rect
from ..models.page import Page
from ..models.position import FreeformPosition, PageSnapshot
from ..models.signature_enums import DragState
from .coordinate_mapper import CoordinateMapper

logger = logging.getLogger(__name__)

CommitHandler = Callable[[FreeformPosition], Awaitable[ApplyOutcome]]


@dataclass(frozen=True)
class PointerEvent:
    """Pointer position in viewport pixels."""
    x: float
    y: float
    pointer_id: int = 0

    @property
    def point(self) -> Point:
        return Point(self.x, self.y)


class DragSession:
    """State machine of a single drag of one placed signature."""

    def __init__(
        self,
        *,
        placement_id: str,
        page: Page,
        start_rect: Rect,
        on_commit: CommitHandler,
        origin: Point = Point(0.0, 0.0),
    ) -> None:
        self.placement_id = placement_id
        self._page = page
        self._origin = origin
        self._bounds = CoordinateMapper.rendered_bounds(page, origin)
        self._start_rect = start_rect
        self._on_commit = on_commit

        self._state = DragState.IDLE
        self._released = False
        self._offset = Point(0.0, 0.0)
        self._preview = start_rect
        self._preview_version = 0
        self._pointer_id: Optional[int] = None
        self.outcome: Optional[ApplyOutcome] = None
        self.cancel_reason: Optional[str] = None

    # ------------------------------------------------------------------ #
    @property
    def state(self) -> DragState:
        return self._state

    @property
    def preview(self) -> Rect:
        """Live preview rect in viewport pixels."""
        return self._preview

    @property
    def preview_version(self) -> int:
        """Increments only when the preview actually changes."""
        return self._preview_version

    @property
    def offset(self) -> Point:
        return self._offset

    @property
    def is_terminal(self) -> bool:
        return self._state in (DragState.COMMITTED, DragState.CANCELLED)

    @property
    def accepts_moves(self) -> bool:
        return self._state == DragState.DRAGGING and not self._released

    # ------------------------------------------------------------------ #
    #  Transitions
    # ------------------------------------------------------------------ #
    def begin(self, event: PointerEvent) -> bool:
        """IDLE -> DRAGGING if the pointer is over the signature's hit region."""
        if self._state != DragState.IDLE:
            return False
        if not self._start_rect.contains(event.point):
            return False
        self._offset = Point(event.x - self._start_rect.x, event.y - self._start_rect.y)
        self._pointer_id = event.pointer_id
        self._state = DragState.DRAGGING
        return True

    def move(self, event: PointerEvent) -> bool:
        """Update the live preview; returns True if it changed."""
        if not self.accepts_moves or event.pointer_id != self._pointer_id:
            return False
        rect = self._clamped(event.x - self._offset.x, event.y - self._offset.y)
        if rect == self._preview:
            return False
        self._preview = rect
        self._preview_version += 1
        return True

    async def release(self, event: Optional[PointerEvent] = None) -> Optional[ApplyOutcome]:
        """
        DRAGGING -> COMMITTED via the commit handler. On any failure the
        session ends CANCELLED and the preview returns to the pre-drag rect.
        """
        if not self.accepts_moves:
            return None
        if event is not None:
            self.move(event)
        self._released = True

        try:
            snapshot = PageSnapshot.of(self._page, self._origin)
            position = FreeformPosition.from_rect(self._preview, snapshot)
        except PlacementError as exc:
            return self._fail(exc)

        try:
            outcome = await self._on_commit(position)
        except PlacementError as exc:
            return self._fail(exc)
        except Exception as exc:  # collaborator failure is reported as a typed outcome
            logger.exception("Commit of drag for %s failed", self.placement_id)
            return self._fail(TransientIO(str(exc) or type(exc).__name__))

        if isinstance(outcome, Failed):
            return self._fail(outcome.error, outcome)

        self.outcome = outcome
        self._state = DragState.COMMITTED
        logger.debug("Drag of %s committed at %s", self.placement_id, self._preview)
        return outcome

    def cancel(self, reason: str = "cancelled") -> bool:
        """Revert the preview; no commit handler call. Only before pointer-up."""
        if self._state == DragState.IDLE:
            self._state = DragState.CANCELLED
            self.cancel_reason = reason
            return True
        if not self.accepts_moves:
            return False
        self._revert(reason)
        return True

    # ------------------------------------------------------------------ #
    def _clamped(self, x: float, y: float) -> Rect:
        """Keep the whole rect inside the rendered page."""
        b = self._bounds
        w, h = self._start_rect.width, self._start_rect.height
        x = max(b.x, min(x, b.right - w))
        y = max(b.y, min(y, b.bottom - h))
        return Rect(x, y, w, h)

    def _revert(self, reason: str) -> None:
        if self._preview != self._start_rect:
            self._preview = self._start_rect
            self._preview_version += 1
        self._state = DragState.CANCELLED
        self.cancel_reason = reason
        logger.debug("Drag of %s cancelled: %s", self.placement_id, reason)

    def _fail(self, error: PlacementError, outcome: Optional[Failed] = None) -> Failed:
        failed = outcome or Failed(error)
        self.outcome = failed
        self._revert(error.message)
        return failed


class DragController:
    """Owns the active drag sessions, at most one per placed signature."""

    def __init__(self) -> None:
        self._sessions: Dict[str, DragSession] = {}

    def session(self, placement_id: str) -> Optional[DragSession]:
        return self._sessions.get(placement_id)

    def begin_drag(
        self,
        placement_id: str,
        event: PointerEvent,
        *,
        page: Page,
        current_rect: Rect,
        on_commit: CommitHandler,
        origin: Point = Point(0.0, 0.0),
    ) -> Optional[DragSession]:
        """
        Start a fresh session on pointer-down. Any unterminated session for the
        same placement is cancelled first. Returns None on a hit-region miss.
        """
        prior = self._sessions.pop(placement_id, None)
        if prior is not None and not prior.is_terminal:
            prior.cancel("superseded by a new pointer-down")

        session = DragSession(
            placement_id=placement_id,
            page=page,
            start_rect=current_rect,
            on_commit=on_commit,
            origin=origin,
        )
        if not session.begin(event):
            return None
        self._sessions[placement_id] = session
        return session

    def on_pointer_move(self, placement_id: str, event: PointerEvent) -> Optional[Rect]:
        """Apply a move; returns the current preview or None without an active session."""
        session = self._sessions.get(placement_id)
        if session is None:
            return None
        session.move(event)
        return session.preview

    async def on_pointer_up(self, placement_id: str, event: Optional[PointerEvent] = None) -> Optional[ApplyOutcome]:
        session = self._sessions.get(placement_id)
        if session is None:
            return None
        try:
            return await session.release(event)
        finally:
            if session.is_terminal and self._sessions.get(placement_id) is session:
                del self._sessions[placement_id]

    def cancel(self, placement_id: str, reason: str = "cancelled") -> Optional[Rect]:
        """Cancel (pointer left the surface or external signal); returns the restored preview."""
        session = self._sessions.pop(placement_id, None)
        if session is None:
            return None
        session.cancel(reason)
        return session.preview

    def cancel_all(self, reason: str = "cancelled") -> int:
        count = 0
        for pid in list(self._sessions):
            if self.cancel(pid, reason) is not None:
                count += 1
        return count
