"""
Sheetboard Kiosk Controller

File Purpose: Wires acquisition, refresh scheduling, font fitting and edit mode together
Primary Functions/Classes: KioskController
Inputs and Outputs (I/O): Network via SourceFetcher; keyboard/viewport events in; RenderState out

The controller is the only object the presentation layer talks to. It feeds
keys, focus changes and viewport changes in, and receives a fresh
``RenderState`` through ``on_render`` whenever something visible changes.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional, Tuple

from .editing import EditModeMachine
from .exceptions import AcquisitionError
from .models import AcquisitionState, KioskSettings, RefreshPolicy, RenderState
from .network.client import SourceFetcher, build_source_url, build_strategies
from .parsing import get_first_column_values
from .scheduler import RefreshScheduler
from .sizing import ViewportTracker, compute_font_size
from .timers import LoopTimers, Timers

logger = logging.getLogger(__name__)


class KioskController:
    """Owns the display state and every timer of a running kiosk."""

    def __init__(
        self,
        settings: KioskSettings,
        *,
        fetcher: Optional[SourceFetcher] = None,
        timers: Optional[Timers] = None,
        on_render: Optional[Callable[[RenderState], None]] = None,
        on_focus_request: Optional[Callable[[], None]] = None,
        measure: Optional[Callable[[], Tuple[int, int]]] = None,
        viewport: Tuple[int, int] = (0, 0),
    ) -> None:
        self.settings = settings
        self.timers = timers or LoopTimers()
        self.policy = RefreshPolicy()
        self.acquisition = AcquisitionState()
        self.lines: List[str] = []
        self.raw_document: Optional[str] = None
        self.focused = False
        self._on_render = on_render
        self._on_focus_request = on_focus_request
        # Bumped whenever edit mode starts or a manual override lands; a
        # refresh that started under an older epoch has its result dropped.
        self._epoch = 0

        self.fetcher = fetcher or SourceFetcher(
            build_source_url(settings.sheet_id, settings.gid),
            build_strategies(settings.proxies, trust_direct=settings.trust_direct),
            timeout=settings.request_timeout,
        )
        self.editor = EditModeMachine(
            self,
            self.timers,
            enter_key=settings.enter_edit_key,
            cancel_key=settings.cancel_key,
            commit_key=settings.commit_key,
            guard_window=settings.guard_window,
            focus_delay=settings.focus_delay,
        )
        self.scheduler = RefreshScheduler(
            self.refresh,
            self.policy,
            interval=settings.refresh_interval,
            is_paused=lambda: self.editor.active,
        )
        self.viewport = ViewportTracker(
            self._viewport_changed,
            timers=self.timers,
            measure=measure,
            settle_delay=settings.settle_delay,
            width=viewport[0],
            height=viewport[1],
        )
        self.font_size = compute_font_size(len(self.display_lines), *self.viewport.size)

    # -----------------------------------------------------------------------
    # Lifecycle
    # -----------------------------------------------------------------------

    def start(self) -> None:
        """Begin periodic refresh; requires a running event loop."""
        self.scheduler.start()
        self._render()

    def shutdown(self) -> None:
        self.scheduler.stop()
        self.viewport.cancel()
        if self.editor.active:
            self.editor.cancel()
        logger.info("Kiosk shut down")

    # -----------------------------------------------------------------------
    # Acquisition pipeline
    # -----------------------------------------------------------------------

    async def refresh(self) -> None:
        """Fetch, parse and extract; apply the result unless it went stale."""
        if not self.policy.refresh_allowed or self.editor.active:
            return

        epoch = self._epoch
        self.acquisition.begin()
        self._render()
        text: Optional[str] = None
        values: Optional[List[str]] = None
        error: Optional[str] = None
        try:
            text = await self.fetcher.fetch()
            values = get_first_column_values(text)
        except AcquisitionError as exc:
            logger.warning(
                "Acquisition failed after %s: %s",
                ", ".join(exc.attempted) or "no strategies",
                exc.original_error or exc.message,
            )
            error = self.settings.error_message
        except Exception as exc:
            logger.error("Refresh failed unexpectedly: %s", exc, exc_info=True)
            error = self.settings.error_message
        finally:
            # Loading always ends here, including on cancellation
            if self._is_stale(epoch):
                logger.debug("Dropping refresh result that finished after edit mode started")
                values = None
                error = None
            self.acquisition.finish(error)

        if values is None:
            self._render()
            return

        self.raw_document = text
        logger.info("Refreshed %d display lines", len(values))
        self.set_lines(values)

    def _is_stale(self, epoch: int) -> bool:
        return (
            epoch != self._epoch
            or self.editor.active
            or not self.policy.refresh_allowed
        )

    # -----------------------------------------------------------------------
    # Display sequence and sizing
    # -----------------------------------------------------------------------

    @property
    def display_lines(self) -> List[str]:
        return list(self.lines) if self.lines else [self.settings.placeholder]

    def set_lines(self, values: List[str]) -> None:
        self.lines = list(values)
        self._recompute_font()
        self._render()

    def _recompute_font(self) -> None:
        size = compute_font_size(len(self.display_lines), *self.viewport.size)
        if size != self.font_size:
            logger.debug("Font size %d -> %d", self.font_size, size)
        self.font_size = size

    def _viewport_changed(self, width: int, height: int) -> None:
        self._recompute_font()
        self._render()

    def notify_viewport_changed(self, width: int, height: int) -> None:
        self.viewport.resize(width, height)

    def notify_transition(self) -> None:
        """Fullscreen or window-manager transition; re-measure after settling."""
        self.viewport.notify_transition()

    def notify_resize(self) -> None:
        """Terminal resize; apply the new size at once and again after settling."""
        self.viewport.remeasure()

    # -----------------------------------------------------------------------
    # Keyboard and focus
    # -----------------------------------------------------------------------

    def handle_key(self, key: str) -> bool:
        was_active = self.editor.active
        consumed = self.editor.handle_key(key, self.display_lines)
        if not was_active and self.editor.active:
            self._epoch += 1
            self._render()
        return consumed

    def handle_focus(self) -> None:
        self.focused = True

    def handle_blur(self) -> None:
        self.focused = False
        self.editor.handle_blur()

    # EditEffects --------------------------------------------------------------

    def request_focus(self) -> None:
        self.focused = True
        if self._on_focus_request:
            self._on_focus_request()
        self._render()

    def buffer_changed(self) -> None:
        self._render()

    def commit(self, lines: List[str]) -> None:
        self._epoch += 1
        self.policy.commit_manual_override()
        self.scheduler.teardown()
        self.acquisition.finish()
        self.set_lines(lines)

    def cancel(self) -> None:
        self._render()

    # -----------------------------------------------------------------------
    # Rendering
    # -----------------------------------------------------------------------

    def render_state(self) -> RenderState:
        session = self.editor.session
        return RenderState(
            lines=self.display_lines,
            font_size=self.font_size,
            loading=self.acquisition.loading,
            error=self.acquisition.last_error,
            editing=self.editor.active,
            edit_text=session.buffered_text if session else "",
            edit_caret=session.caret if session else 0,
            manual_override=self.policy.manual_override_committed,
        )

    def _render(self) -> None:
        if self._on_render:
            self._on_render(self.render_state())
