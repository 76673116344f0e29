"""Response-body interpretation for proxy relays.

Some relays return the payload verbatim, others wrap it in a JSON object with a
``contents`` or ``data`` string field. Interpretation is an ordered list of
attempts; the first one that yields text wins, and the result is then checked
for being plausibly delimited data.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from sheetboard.parsing import looks_delimited

logger = logging.getLogger(__name__)

ENVELOPE_FIELDS = ("contents", "data")


@dataclass(frozen=True)
class Interpretation:
    """Tagged outcome of interpreting one response body."""

    usable: bool
    text: str
    shape: str  # "envelope:<field>", "raw" or "empty"


def _from_envelope(body: str) -> Optional[Tuple[str, str]]:
    try:
        payload = json.loads(body)
    except (ValueError, RecursionError):
        # Deeply nested arrays exhaust the decoder's recursion limit
        return None
    if not isinstance(payload, dict):
        return None
    for key in ENVELOPE_FIELDS:
        value = payload.get(key)
        if isinstance(value, str) and value:
            return value, f"envelope:{key}"
    return None


def _from_raw(body: str) -> Optional[Tuple[str, str]]:
    if not body:
        return None
    return body, "raw"


INTERPRETERS: List[Callable[[str], Optional[Tuple[str, str]]]] = [
    _from_envelope,
    _from_raw,
]


def interpret_body(body: str) -> Interpretation:
    """Return the first successful interpretation of ``body``, tagged usable or not."""
    for interpreter in INTERPRETERS:
        result = interpreter(body)
        if result is None:
            continue
        text, shape = result
        usable = looks_delimited(text)
        logger.debug("Interpreted body as %s (usable=%s)", shape, usable)
        return Interpretation(usable=usable, text=text, shape=shape)
    return Interpretation(usable=False, text="", shape="empty")
