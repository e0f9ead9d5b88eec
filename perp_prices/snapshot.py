"""One-shot price snapshot for the terminal.

Fetches ``metaAndAssetCtxs`` once with the blocking :class:`PriceFeed` and
prints the featured board, or the search results when a query is given::

    python -m perp_prices.snapshot
    python -m perp_prices.snapshot eth
"""

from __future__ import annotations

import sys
from typing import Iterable, List, Optional, Sequence

from .config import PriceFeedConfig
from .errors import FetchError
from .hyperliquid_client import PriceFeed
from .models import NormalizedPrice
from .normalizer import normalize
from .ranking import featured, remaining, search


def format_price_line(price: NormalizedPrice) -> str:
    """Format one row as readable text.

    Parameters:
    -----------
    price : NormalizedPrice
        Row to format

    Returns:
    --------
    str
        Symbol, ``$``-formatted price and signed 24h change, column aligned
    """
    return f"{price.symbol:<10} {price.formatted_price:>22} {price.percent_change_24h:>10}"


def render_snapshot(
    prices: Sequence[NormalizedPrice],
    query: str = "",
    remaining_limit: int = 20,
) -> List[str]:
    """Render the board as text lines, with the same sections as the API view."""
    lines: List[str] = []

    if query:
        matches = search(prices, query)
        lines.append("Search Results")
    else:
        matches = featured(prices)
        lines.append("Featured Prices")

    lines.extend(_indent(matches))
    if not matches:
        lines.append(f'  No results for "{query}"' if query else "  Unable to load price data")

    if query:
        lines.append("")
        lines.append("All Available Assets")
        lines.extend(_indent(remaining(prices, matches, remaining_limit)))

    return lines


def _indent(prices: Iterable[NormalizedPrice]) -> List[str]:
    return [f"  {format_price_line(price)}" for price in prices]


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    query = " ".join(args)
    config = PriceFeedConfig.from_env()

    try:
        meta, contexts = PriceFeed(config).fetch()
    except FetchError as exc:
        print(f"[ERROR] Failed to fetch prices: {exc.message}")
        return 1

    for line in render_snapshot(normalize(meta, contexts), query, config.remaining_limit):
        print(line)
    return 0


if __name__ == "__main__":
    sys.exit(main())
