"""Price board: the caller side of the price pipeline.

:class:`PriceBoard` owns the latest normalized snapshot and implements the
contract a list UI relies on:

- With no search text, show the featured set; with search text, show the
  matches plus a capped list of everything else.
- Refreshes are throttled, because callers re-trigger them on every keystroke.
- When fetches race, only the most recently *initiated* one is kept.
- A failed fetch becomes a notification and an empty board, never a crash.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, List, Optional, Protocol, Tuple

from .config import PriceFeedConfig
from .errors import FetchError
from .hyperliquid_client import AsyncPriceFeed, FeedSnapshot
from .models import NormalizedPrice, PriceBoardView, PriceListing
from .normalizer import normalize
from .ranking import featured, remaining, search

logger = logging.getLogger(__name__)

FEATURED_TITLE = "Featured Prices"
SEARCH_TITLE = "Search Results"
FETCH_ERROR_TITLE = "Failed to fetch prices"


class AsyncFeed(Protocol):
    """Anything with an awaitable ``fetch`` returning a feed snapshot."""

    async def fetch(self) -> FeedSnapshot:  # pragma: no cover - interface only
        raise NotImplementedError


class PriceBoard:
    """Throttled, race-safe holder of the latest normalized price snapshot.

    Parameters
    ----------
    feed:
        Price feed to refresh from. Defaults to an :class:`AsyncPriceFeed` for
        ``config``.
    config:
        Board configuration; defaults to :class:`PriceFeedConfig`.
    clock:
        Time source in seconds, injectable for tests.
    """

    def __init__(
        self,
        feed: Optional[AsyncFeed] = None,
        config: Optional[PriceFeedConfig] = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._config = config or PriceFeedConfig()
        self._feed: AsyncFeed = feed or AsyncPriceFeed(self._config)
        self._clock = clock

        self._prices: List[NormalizedPrice] = []
        self._last_error: Optional[str] = None
        self._last_refresh_started: Optional[float] = None

        # Sequence numbers of initiated and applied fetches
        self._issued = 0
        self._applied = 0

    @property
    def config(self) -> PriceFeedConfig:
        return self._config

    @property
    def prices(self) -> Tuple[NormalizedPrice, ...]:
        """The currently applied snapshot, in universe order."""

        return tuple(self._prices)

    @property
    def last_error(self) -> Optional[str]:
        return self._last_error

    @property
    def is_loading(self) -> bool:
        return self._applied == 0

    async def refresh(self, *, force: bool = False) -> bool:
        """Fetch a new snapshot unless throttled.

        Returns ``True`` when a snapshot (or a failure) was applied, ``False``
        when the call was throttled or its result was superseded by a newer
        fetch that finished first.
        """

        now = self._clock()
        last = self._last_refresh_started
        if not force and last is not None and now - last < self._config.min_refresh_interval:
            return False

        self._last_refresh_started = now
        self._issued += 1
        generation = self._issued

        error: Optional[str] = None
        try:
            meta, contexts = await self._feed.fetch()
            prices = normalize(meta, contexts)
        except FetchError as exc:
            prices = []
            error = exc.message

        if generation <= self._applied:
            logger.debug("Discarding stale snapshot #%d, already showing #%d", generation, self._applied)
            return False

        self._applied = generation
        self._prices = prices
        self._last_error = error

        if error is None:
            logger.info("Refreshed %d perp prices (snapshot #%d)", len(prices), generation)
        return True

    def listing(self, price: NormalizedPrice) -> PriceListing:
        """Build the presenter item, including the data for its actions."""

        return PriceListing(
            symbol=price.symbol,
            price=price.raw_price,
            formatted_price=price.formatted_price,
            display_price=price.display_price,
            percent_change_24h=price.percent_change_24h,
            change_sign=price.change_sign,
            trade_url=self._config.network.trade_url(price.symbol),
        )

    def find(self, symbol: str) -> Optional[PriceListing]:
        """Return the listing whose symbol equals ``symbol`` exactly."""

        for price in self._prices:
            if price.symbol == symbol:
                return self.listing(price)
        return None

    def view(self, query: str = "") -> PriceBoardView:
        """Build the view for the current search text."""

        title = SEARCH_TITLE if query else FEATURED_TITLE

        if self._last_error is not None:
            return PriceBoardView(
                query=query,
                section_title=title,
                error={"title": FETCH_ERROR_TITLE, "message": self._last_error},
            )

        if query:
            matches = search(self._prices, query)
            rest = remaining(self._prices, matches, self._config.remaining_limit)
        else:
            matches = featured(self._prices)
            rest = []

        empty_message = None
        if not matches and not self.is_loading:
            empty_message = f'No results for "{query}"' if query else "Unable to load price data"

        return PriceBoardView(
            query=query,
            section_title=title,
            items=[self.listing(price) for price in matches],
            remaining=[self.listing(price) for price in rest],
            empty_message=empty_message,
            is_loading=self.is_loading,
        )
