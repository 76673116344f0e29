"""Operator edit mode: entry, keystroke guard, commit and cancel.

States::

    DISPLAY --enter key--> ARMED --guard expiry--> EDITING
    ARMED/EDITING --cancel key--> DISPLAY
    EDITING --commit key / focus loss--> DISPLAY (manual override committed)

The guard exists because the keystroke that opens edit mode can leak into the
freshly shown edit surface while focus is still moving. During the guard
window the first printable key is held in ``PendingKeystroke`` instead of
being applied; when the window closes it is inserted once at the caret
position current at that moment.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Protocol, Sequence

from sheetboard.models import EditSession, EditState
from sheetboard.timers import TimerHandle, Timers

logger = logging.getLogger(__name__)

DEFAULT_GUARD_WINDOW = 0.2
DEFAULT_FOCUS_DELAY = 0.1


class EditEffects(Protocol):
    """Side effects the machine asks its host to perform."""

    def request_focus(self) -> None: ...

    def buffer_changed(self) -> None: ...

    def commit(self, lines: List[str]) -> None: ...

    def cancel(self) -> None: ...


@dataclass
class PendingKeystroke:
    """Debounce state for the guard window; exists only while ARMED."""

    timer: Optional[TimerHandle] = None
    char: Optional[str] = None


def is_printable_key(key: str) -> bool:
    return len(key) == 1 and key.isprintable()


class EditModeMachine:
    """Keyboard-driven edit mode on top of the line display."""

    def __init__(
        self,
        effects: EditEffects,
        timers: Timers,
        *,
        enter_key: str = "F2",
        cancel_key: str = "Escape",
        commit_key: str = "F4",
        guard_window: float = DEFAULT_GUARD_WINDOW,
        focus_delay: float = DEFAULT_FOCUS_DELAY,
    ) -> None:
        self._effects = effects
        self._timers = timers
        self.enter_key = enter_key
        self.cancel_key = cancel_key
        self.commit_key = commit_key
        self.guard_window = guard_window
        self.focus_delay = focus_delay

        self.state = EditState.DISPLAY
        self.session: Optional[EditSession] = None
        self._pending: Optional[PendingKeystroke] = None
        self._focus_timer: Optional[TimerHandle] = None
        self.commits = 0

    @property
    def active(self) -> bool:
        return self.state is not EditState.DISPLAY

    @property
    def pending_char(self) -> Optional[str]:
        return self._pending.char if self._pending else None

    # -----------------------------------------------------------------------
    # Events
    # -----------------------------------------------------------------------

    def handle_key(self, key: str, current_lines: Sequence[str] = ()) -> bool:
        """Feed one key; return True when the machine consumed it."""
        if self.state is EditState.DISPLAY:
            if key == self.enter_key:
                self.enter(current_lines)
                return True
            return False

        if key == self.cancel_key:
            self.cancel()
            return True

        if self.state is EditState.ARMED:
            if is_printable_key(key) and self._pending is not None and self._pending.char is None:
                self._pending.char = key
                logger.debug("Held keystroke %r during guard window", key)
            return True

        if key == self.commit_key:
            self.commit()
            return True

        self._apply_editing_key(key)
        return True

    def handle_blur(self) -> bool:
        """The edit surface lost focus; commits when editing."""
        if self.state is EditState.EDITING:
            logger.info("Edit surface lost focus; committing")
            self.commit()
            return True
        return False

    # -----------------------------------------------------------------------
    # Transitions
    # -----------------------------------------------------------------------

    def enter(self, current_lines: Sequence[str]) -> None:
        if self.active:
            return
        self.session = EditSession(
            buffered_text="\n".join(current_lines),
            activated_at=self._timers.now(),
        )
        self.state = EditState.ARMED
        self._pending = PendingKeystroke()
        self._pending.timer = self._timers.call_later(self.guard_window, self._guard_expired)
        self._focus_timer = self._timers.call_later(self.focus_delay, self._focus)
        logger.info("Edit mode armed with %d lines", len(current_lines))

    def commit(self) -> None:
        if self.session is None:
            return
        lines = self.session.lines()
        self._exit()
        self.commits += 1
        logger.info("Edit committed (%d lines); manual override in effect", len(lines))
        self._effects.commit(lines)

    def cancel(self) -> None:
        if not self.active:
            return
        self._exit()
        logger.info("Edit cancelled")
        self._effects.cancel()

    # -----------------------------------------------------------------------
    # Internals
    # -----------------------------------------------------------------------

    def _guard_expired(self) -> None:
        pending = self._pending
        self._pending = None
        if self.state is not EditState.ARMED or self.session is None:
            return
        if pending is not None and pending.char is not None:
            self.session.insert(pending.char)
        self.state = EditState.EDITING
        self._effects.buffer_changed()

    def _focus(self) -> None:
        self._focus_timer = None
        if self.active:
            self._effects.request_focus()

    def _exit(self) -> None:
        if self._pending is not None and self._pending.timer is not None:
            self._pending.timer.cancel()
        self._pending = None
        if self._focus_timer is not None:
            self._focus_timer.cancel()
            self._focus_timer = None
        if self.session is not None:
            self.session.active = False
        self.session = None
        self.state = EditState.DISPLAY

    def _apply_editing_key(self, key: str) -> None:
        session = self.session
        if session is None:
            return
        if key == "Enter":
            session.insert("\n")
        elif key == "Backspace":
            session.backspace()
        elif key == "Delete":
            session.delete()
        elif key == "Left":
            session.move(-1)
        elif key == "Right":
            session.move(1)
        elif key == "Home":
            session.home()
        elif key == "End":
            session.end()
        elif is_printable_key(key):
            session.insert(key)
        else:
            return
        self._effects.buffer_changed()
