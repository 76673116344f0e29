"""Async HTTP acquisition of the spreadsheet export with proxy fallbacks.

The export URL is usually blocked for browser clients by cross-origin policy,
so the fetcher walks an ordered list of strategies: the direct URL first (by
default issued as a probe whose answer is ignored), then each proxy relay.
Strategies are awaited one after another; the first response that interprets
as delimited text wins.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional
from urllib.parse import quote

import aiohttp

from sheetboard.exceptions import AcquisitionError, HTTPStatusError
from sheetboard.network.envelope import interpret_body

logger = logging.getLogger(__name__)

SHEETS_EXPORT_URL = (
    "https://docs.google.com/spreadsheets/d/{sheet_id}/export?format=csv&gid={gid}"
)

# Defaults
DEFAULT_TIMEOUT = 10.0
# Characters encodeURIComponent leaves alone besides the unreserved set
URI_COMPONENT_SAFE = "!*'()"


def build_source_url(sheet_id: str, gid: str) -> str:
    """Return the CSV export URL for one tab of a spreadsheet."""
    return SHEETS_EXPORT_URL.format(sheet_id=sheet_id, gid=gid)


@dataclass(frozen=True)
class FetchStrategy:
    """One way of reaching the source URL."""

    name: str
    prefix: str = ""
    direct: bool = False
    probe_only: bool = False

    def target(self, source_url: str) -> str:
        if self.direct:
            return source_url
        return self.prefix + quote(source_url, safe=URI_COMPONENT_SAFE)


def build_strategies(
    proxies: Iterable[str], *, trust_direct: bool = False
) -> List[FetchStrategy]:
    """Direct attempt followed by one strategy per proxy prefix, in order."""
    strategies = [FetchStrategy(name="direct", direct=True, probe_only=not trust_direct)]
    for prefix in proxies:
        strategies.append(FetchStrategy(name=prefix, prefix=prefix))
    return strategies


class SourceFetcher:
    """Fetch the raw delimited document through the first working strategy.

    ``session_factory`` is called with ``timeout=`` and ``headers=`` keyword
    arguments and must return an async context manager exposing ``get(url)``;
    it defaults to ``aiohttp.ClientSession``.
    """

    def __init__(
        self,
        source_url: str,
        strategies: List[FetchStrategy],
        *,
        timeout: float = DEFAULT_TIMEOUT,
        session_factory: Optional[Callable[..., aiohttp.ClientSession]] = None,
    ) -> None:
        if not strategies:
            raise ValueError("At least one fetch strategy is required")
        self.source_url = source_url
        self._strategies = list(strategies)
        self._timeout = timeout
        self._session_factory = session_factory or aiohttp.ClientSession
        self.last_error: Optional[Exception] = None
        self.last_strategy: Optional[str] = None

    @property
    def strategies(self) -> List[FetchStrategy]:
        return list(self._strategies)

    async def fetch(self) -> str:
        """Return the first usable document or raise ``AcquisitionError``."""
        last_error: Optional[Exception] = None
        attempted: List[str] = []

        async with self._session_factory(
            timeout=aiohttp.ClientTimeout(total=self._timeout),
            headers={"Accept": "text/csv, application/json, text/plain, */*"},
        ) as session:
            for strategy in self._strategies:
                attempted.append(strategy.name)
                target = strategy.target(self.source_url)
                try:
                    async with session.get(target) as response:
                        if strategy.probe_only:
                            logger.debug(
                                "Direct probe answered %s; ignoring result", response.status
                            )
                            continue
                        if not 200 <= response.status < 300:
                            raise HTTPStatusError(response.status, target)
                        body = await response.text()
                except (aiohttp.ClientError, asyncio.TimeoutError, HTTPStatusError, UnicodeDecodeError) as exc:
                    last_error = exc
                    logger.warning("Strategy %s failed: %s", strategy.name, exc)
                    continue

                interpretation = interpret_body(body)
                if interpretation.usable:
                    self.last_strategy = strategy.name
                    self.last_error = last_error
                    logger.info(
                        "Fetched %d chars via %s (%s)",
                        len(interpretation.text),
                        strategy.name,
                        interpretation.shape,
                    )
                    return interpretation.text

                logger.info(
                    "Strategy %s returned no delimited content (%s)",
                    strategy.name,
                    interpretation.shape,
                )

        self.last_error = last_error
        self.last_strategy = None
        raise AcquisitionError(
            details=f"Tried {len(attempted)} strategies",
            original_error=last_error,
            attempted=attempted,
        )
