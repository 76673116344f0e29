"""
Sheetboard Data Models and Enums

File Purpose: Core data structures shared by the acquisition, refresh, sizing and edit layers
Primary Functions/Classes: KioskSettings, AcquisitionState, RefreshPolicy, EditSession, EditState, RenderState
Inputs and Outputs (I/O): Data structure definitions, no direct I/O operations

The DisplaySequence itself is a plain ``List[str]``; everything here describes
the state around it.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from rich.console import Console

# Shared console instance for all Sheetboard modules
console = Console()

PLACEHOLDER_LINE = "no data available"
ACQUISITION_ERROR_MESSAGE = "Failed to load data."

DEFAULT_SHEET_ID = "1qZ3U2WMlvwOyjn7yVe0fLLmk39jbSsIk_bFk5TJhlnA"
DEFAULT_GID = "955471057"
DEFAULT_PROXIES = [
    "https://corsproxy.io/?",
    "https://cors-anywhere.herokuapp.com/",
    "https://api.codetabs.com/v1/proxy?quest=",
    "https://thingproxy.freeboard.io/fetch/",
]


@dataclass
class KioskSettings:
    """User-adjustable source, timing and key bindings."""

    sheet_id: str = DEFAULT_SHEET_ID
    gid: str = DEFAULT_GID
    proxies: List[str] = field(default_factory=lambda: list(DEFAULT_PROXIES))
    refresh_interval: float = 15.0
    request_timeout: float = 10.0
    # Treat the direct request as a real strategy instead of a probe
    trust_direct: bool = False
    enter_edit_key: str = "F2"
    cancel_key: str = "Escape"
    commit_key: str = "F4"
    guard_window: float = 0.2
    focus_delay: float = 0.1
    settle_delay: float = 0.3
    cell_width_px: int = 8
    cell_height_px: int = 16
    placeholder: str = PLACEHOLDER_LINE
    error_message: str = ACQUISITION_ERROR_MESSAGE


class EditState(Enum):
    """Edit-mode machine states."""

    DISPLAY = "display"
    ARMED = "armed"
    EDITING = "editing"


@dataclass
class AcquisitionState:
    """Transient status of the most recent acquisition attempt."""

    loading: bool = False
    last_error: Optional[str] = None

    def begin(self) -> None:
        self.loading = True
        self.last_error = None

    def finish(self, error: Optional[str] = None) -> None:
        self.loading = False
        self.last_error = error


@dataclass
class RefreshPolicy:
    """Whether automatic refresh may run.

    ``manual_override_committed`` only ever goes from False to True; once set,
    ``refresh_allowed`` is False for the rest of the process regardless of
    ``auto_refresh_enabled``.
    """

    auto_refresh_enabled: bool = True
    manual_override_committed: bool = False

    @property
    def refresh_allowed(self) -> bool:
        return self.auto_refresh_enabled and not self.manual_override_committed

    def commit_manual_override(self) -> None:
        self.manual_override_committed = True
        self.auto_refresh_enabled = False


@dataclass
class EditSession:
    """Operator edit buffer with a caret; lives only while editing."""

    buffered_text: str
    activated_at: float
    caret: int = -1
    active: bool = True

    def __post_init__(self):
        if self.caret < 0 or self.caret > len(self.buffered_text):
            self.caret = len(self.buffered_text)

    def insert(self, text: str, position: Optional[int] = None) -> None:
        """Insert ``text`` at ``position`` (default: the caret) and move the caret past it."""
        pos = self.caret if position is None else max(0, min(position, len(self.buffered_text)))
        self.buffered_text = self.buffered_text[:pos] + text + self.buffered_text[pos:]
        self.caret = pos + len(text)

    def backspace(self) -> None:
        if self.caret == 0:
            return
        self.buffered_text = (
            self.buffered_text[: self.caret - 1] + self.buffered_text[self.caret :]
        )
        self.caret -= 1

    def delete(self) -> None:
        if self.caret >= len(self.buffered_text):
            return
        self.buffered_text = (
            self.buffered_text[: self.caret] + self.buffered_text[self.caret + 1 :]
        )

    def move(self, offset: int) -> None:
        self.caret = max(0, min(len(self.buffered_text), self.caret + offset))

    def home(self) -> None:
        """Move the caret to the start of the current line."""
        self.caret = self.buffered_text.rfind("\n", 0, self.caret) + 1

    def end(self) -> None:
        """Move the caret to the end of the current line."""
        newline = self.buffered_text.find("\n", self.caret)
        self.caret = len(self.buffered_text) if newline == -1 else newline

    def lines(self) -> List[str]:
        return self.buffered_text.split("\n")


@dataclass
class RenderState:
    """Everything the presentation layer reads to draw one frame."""

    lines: List[str]
    font_size: int
    loading: bool = False
    error: Optional[str] = None
    editing: bool = False
    edit_text: str = ""
    edit_caret: int = 0
    manual_override: bool = False
