"""
Sheetboard User Interface Components

File Purpose: Rich renderables for the full-screen line display and the edit surface
Primary Functions/Classes: KioskRenderer
Inputs and Outputs (I/O): RenderState in, rich renderables out; no direct console I/O

A terminal cannot change its font, so the fitted font size is expressed as the
height of each line box: ``font_size * 1.5`` pixels, converted to rows with
the configured cell height.
"""

from typing import List, Optional

from rich.align import Align
from rich.console import Console, Group, RenderableType
from rich.padding import Padding
from rich.panel import Panel
from rich.text import Text

from .models import RenderState, console
from .sizing import LINE_HEIGHT_FACTOR


class KioskRenderer:
    """Turns a RenderState into what the live view shows."""

    def __init__(
        self,
        cell_height_px: int = 16,
        commit_key: str = "F4",
        cancel_key: str = "Escape",
        display_console: Optional[Console] = None,
    ):
        self.cell_height_px = max(1, cell_height_px)
        self.commit_key = commit_key
        self.cancel_key = cancel_key
        self.console = display_console or console

    def line_rows(self, font_size: int) -> int:
        """Rows one display line occupies at ``font_size``."""
        return max(1, round(font_size * LINE_HEIGHT_FACTOR / self.cell_height_px))

    def render(self, state: RenderState) -> RenderableType:
        if state.editing:
            return self.render_editor(state)
        return self.render_display(state)

    def render_display(self, state: RenderState) -> RenderableType:
        rows = self.line_rows(state.font_size)
        top = (rows - 1) // 2
        bottom = rows - 1 - top
        style = "bold bright_white" if state.font_size >= 60 else "bold"

        parts: List[RenderableType] = []
        for item in state.lines:
            text = Text(item or " ", style=style, justify="center", no_wrap=True, overflow="ellipsis")
            parts.append(Padding(text, (top, 0, bottom, 0)))

        status = self._status_line(state)
        if status is not None:
            parts.append(status)

        return Align(
            Group(*parts),
            align="center",
            vertical="middle",
            height=self.console.size.height,
        )

    def render_editor(self, state: RenderState) -> RenderableType:
        caret = max(0, min(state.edit_caret, len(state.edit_text)))
        text = Text(state.edit_text[:caret], style="bright_white")
        under_caret = state.edit_text[caret : caret + 1]
        if not under_caret or under_caret == "\n":
            text.append(" ", style="reverse")
            text.append(under_caret)
        else:
            text.append(under_caret, style="reverse")
        text.append(state.edit_text[caret + 1 :], style="bright_white")

        return Panel(
            text,
            title="[bright_cyan]Edit display[/]",
            subtitle=f"[dim]{self.commit_key} save | {self.cancel_key} cancel[/]",
            border_style="bright_cyan",
            height=self.console.size.height,
        )

    def _status_line(self, state: RenderState) -> Optional[Text]:
        if state.error:
            return Text(state.error, style="bold red", justify="center")
        if state.loading:
            return Text("Loading...", style="dim", justify="center")
        if state.manual_override:
            return Text("manual", style="dim", justify="right")
        return None
