"""Font-size fitting for the full-screen line display."""

from __future__ import annotations

import logging
import math
from typing import Callable, Optional, Tuple

from sheetboard.timers import TimerHandle, Timers

logger = logging.getLogger(__name__)

MIN_FONT_SIZE = 30
MAX_FONT_SIZE = 120
LINE_HEIGHT_FACTOR = 1.5
PORTRAIT_WIDTH_FACTOR = 0.18
LANDSCAPE_WIDTH_FACTOR = 0.15
DEFAULT_SETTLE_DELAY = 0.3


def soft_minimum(item_count: int) -> int:
    """Smallest size allowed for a given number of lines."""
    if item_count <= 3:
        return 60
    if item_count <= 6:
        return 40
    return MIN_FONT_SIZE


def compute_font_size(item_count: int, width: float, height: float) -> int:
    """Return the font size that fits ``item_count`` lines into a ``width`` x ``height`` viewport.

    The height candidate gives every line a 1.5x line box; the width candidate
    is a fixed fraction of the viewport width (wider in portrait). The smaller
    candidate is raised to the soft minimum for the item count and capped at
    ``MAX_FONT_SIZE``.
    """
    items = max(1, item_count)
    portrait = height > width
    height_based = math.floor(height / (items * LINE_HEIGHT_FACTOR))
    width_factor = PORTRAIT_WIDTH_FACTOR if portrait else LANDSCAPE_WIDTH_FACTOR
    width_based = math.floor(width * width_factor)

    size = min(height_based, width_based)
    size = max(size, soft_minimum(items))
    return min(size, MAX_FONT_SIZE)


class ViewportTracker:
    """Remembers the viewport size and reports changes.

    A plain resize is applied at once. A fullscreen or window-manager
    transition is applied ``settle_delay`` seconds later, re-measuring through
    ``measure`` so the size read is the post-transition one. Only one settle
    timer is ever pending.
    """

    def __init__(
        self,
        on_change: Callable[[int, int], None],
        *,
        timers: Timers,
        measure: Optional[Callable[[], Tuple[int, int]]] = None,
        settle_delay: float = DEFAULT_SETTLE_DELAY,
        width: int = 0,
        height: int = 0,
    ) -> None:
        self._on_change = on_change
        self._timers = timers
        self._measure = measure
        self._settle_delay = settle_delay
        self._settle_timer: Optional[TimerHandle] = None
        self.width = width
        self.height = height

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height

    @property
    def settling(self) -> bool:
        return self._settle_timer is not None

    def resize(self, width: int, height: int) -> None:
        self.width = width
        self.height = height
        self._on_change(width, height)

    def notify_transition(self) -> None:
        """Schedule a re-measure once the viewport has settled."""
        self.cancel()
        self._settle_timer = self._timers.call_later(self._settle_delay, self._settled)

    def remeasure(self) -> None:
        """Apply the measured size now, then once more after it settles."""
        if self._measure is not None:
            self.resize(*self._measure())
        self.notify_transition()

    def cancel(self) -> None:
        if self._settle_timer is not None:
            self._settle_timer.cancel()
            self._settle_timer = None

    def _settled(self) -> None:
        self._settle_timer = None
        width, height = self._measure() if self._measure else self.size
        logger.debug("Viewport settled at %dx%d", width, height)
        self.resize(width, height)
