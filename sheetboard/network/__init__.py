"""Network package: spreadsheet acquisition through proxy relays.

Provides:
- SourceFetcher: Sequential fetch-with-fallback over FetchStrategy entries
- build_source_url / build_strategies: Source URL and strategy list construction
- interpret_body / Interpretation: JSON-envelope vs raw body sniffing
"""

from sheetboard.network.client import (
    FetchStrategy,
    SourceFetcher,
    build_source_url,
    build_strategies,
)
from sheetboard.network.envelope import Interpretation, interpret_body

__all__ = [
    "SourceFetcher",
    "FetchStrategy",
    "build_source_url",
    "build_strategies",
    "Interpretation",
    "interpret_body",
]
