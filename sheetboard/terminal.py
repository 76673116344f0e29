"""Raw terminal input: cbreak mode, key decoding and focus reporting.

Keys are decoded into the names the edit machine understands: single
printable characters as themselves, plus ``F1``-``F4``, ``Escape``, ``Enter``,
``Backspace``, ``Delete``, ``Tab``, arrows as ``Up``/``Down``/``Left``/``Right``,
``Home`` and ``End``. With focus reporting on (``ESC [ ? 1004 h``), xterm-like
terminals also send ``ESC [ I`` / ``ESC [ O`` when the window gains or loses
focus; those decode to ``FOCUS_IN`` / ``FOCUS_OUT``.
"""

from __future__ import annotations

import codecs
import os
import sys
from typing import Dict, List, Optional, TextIO, Tuple

from rich.console import Console

FOCUS_IN = "FocusIn"
FOCUS_OUT = "FocusOut"

KEY_SEQUENCES: Dict[str, str] = {
    # SS3 function keys (xterm, most emulators)
    "\x1bOP": "F1",
    "\x1bOQ": "F2",
    "\x1bOR": "F3",
    "\x1bOS": "F4",
    # CSI function keys (rxvt, VT220)
    "\x1b[11~": "F1",
    "\x1b[12~": "F2",
    "\x1b[13~": "F3",
    "\x1b[14~": "F4",
    # Linux console
    "\x1b[[A": "F1",
    "\x1b[[B": "F2",
    "\x1b[[C": "F3",
    "\x1b[[D": "F4",
    "\x1b[A": "Up",
    "\x1b[B": "Down",
    "\x1b[C": "Right",
    "\x1b[D": "Left",
    "\x1bOA": "Up",
    "\x1bOB": "Down",
    "\x1bOC": "Right",
    "\x1bOD": "Left",
    "\x1b[H": "Home",
    "\x1b[F": "End",
    "\x1bOH": "Home",
    "\x1bOF": "End",
    "\x1b[1~": "Home",
    "\x1b[4~": "End",
    "\x1b[3~": "Delete",
    "\x1b[I": FOCUS_IN,
    "\x1b[O": FOCUS_OUT,
}
CONTROL_KEYS: Dict[str, str] = {
    "\r": "Enter",
    "\n": "Enter",
    "\x7f": "Backspace",
    "\x08": "Backspace",
    "\t": "Tab",
    "\x1b": "Escape",
}
_LONGEST_SEQUENCE = max(len(seq) for seq in KEY_SEQUENCES)

FOCUS_REPORTING_ON = "\x1b[?1004h"
FOCUS_REPORTING_OFF = "\x1b[?1004l"


def decode_keys(data: str) -> List[str]:
    """Split a chunk of terminal input into key names.

    Unknown escape sequences are dropped whole; an ESC not followed by a
    recognised sequence is the Escape key.
    """
    keys: List[str] = []
    i = 0
    while i < len(data):
        ch = data[i]
        if ch != "\x1b":
            keys.append(CONTROL_KEYS.get(ch, ch))
            i += 1
            continue

        name: Optional[str] = None
        for length in range(min(_LONGEST_SEQUENCE, len(data) - i), 1, -1):
            name = KEY_SEQUENCES.get(data[i : i + length])
            if name:
                keys.append(name)
                i += length
                break
        if name:
            continue

        if i + 1 < len(data) and data[i + 1] in "[O":
            # Unknown CSI/SS3 sequence: skip through its final byte
            j = i + 2
            while j < len(data) and not ("@" <= data[j] <= "~"):
                j += 1
            i = j + 1
            continue

        keys.append("Escape")
        i += 1
    return keys


def split_incomplete_sequence(data: str) -> Tuple[str, str]:
    """Split off a trailing escape sequence whose final byte has not arrived.

    Returns ``(ready, remainder)``. A lone trailing ESC is the Escape key and
    stays in ``ready``; an SS3 or CSI introducer still waiting for its final
    byte is returned as ``remainder`` to be prefixed to the next read.
    """
    start = data.rfind("\x1b")
    if start == -1 or start == len(data) - 1:
        return data, ""
    tail = data[start:]
    if tail[1] == "O":
        return (data[:start], tail) if len(tail) == 2 else (data, "")
    if tail[1] != "[":
        return data, ""
    body = tail[2:]
    if body in ("", "["):
        return data[:start], tail
    if body.startswith("["):
        # Linux console function key, complete once its letter arrived
        return data, ""
    if any("@" <= ch <= "~" for ch in body):
        return data, ""
    return data[:start], tail


def viewport_pixels(console: Console, cell_width: int, cell_height: int) -> Tuple[int, int]:
    """Approximate the viewport in pixels from the terminal size in cells."""
    size = console.size
    return size.width * cell_width, size.height * cell_height


class RawTerminal:
    """Context manager putting a POSIX tty in cbreak mode with focus reporting."""

    def __init__(
        self,
        stream: Optional[TextIO] = None,
        out: Optional[TextIO] = None,
        focus_reporting: bool = True,
    ) -> None:
        self._stream = stream or sys.stdin
        self._out = out or sys.stdout
        self._focus_reporting = focus_reporting
        self._saved = None
        self.fd = self._stream.fileno()
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._pending = ""

    def __enter__(self) -> "RawTerminal":
        import termios
        import tty

        self._saved = termios.tcgetattr(self.fd)
        tty.setcbreak(self.fd)
        if self._focus_reporting:
            self._out.write(FOCUS_REPORTING_ON)
            self._out.flush()
        return self

    def __exit__(self, *exc_info) -> None:
        import termios

        if self._focus_reporting:
            self._out.write(FOCUS_REPORTING_OFF)
            self._out.flush()
        if self._saved is not None:
            termios.tcsetattr(self.fd, termios.TCSADRAIN, self._saved)
            self._saved = None

    def read_available(self) -> str:
        """Read whatever input is pending; call only when the fd is readable.

        Partial UTF-8 characters and unfinished escape sequences are held back
        until the rest arrives.
        """
        text = self._pending + self._decoder.decode(os.read(self.fd, 1024))
        ready, self._pending = split_incomplete_sequence(text)
        return ready
