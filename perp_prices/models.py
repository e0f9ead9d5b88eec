"""Data models for the perp price board.

All models are simple frozen dataclasses and are independent of any particular
transport or client implementation. Raw feed values are kept as the decimal
strings Hyperliquid sends; derived values use :class:`decimal.Decimal`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple


@dataclass(frozen=True)
class AssetMeta:
    """One entry of the perp ``universe`` list.

    Attributes
    ----------
    name:
        Unique perp symbol, for example ``"BTC"``.
    sz_decimals:
        Number of decimals allowed in order sizes.
    max_leverage:
        Maximum leverage offered for the asset.
    only_isolated:
        Whether only isolated margin is allowed.
    is_delisted:
        Whether the asset has been delisted.
    """

    name: str
    sz_decimals: int
    max_leverage: int
    only_isolated: bool = False
    is_delisted: bool = False


@dataclass(frozen=True)
class AssetContext:
    """Per-asset market context, positionally aligned with :class:`AssetMeta`.

    Every field is passed through unmodified from the feed. ``mid_px`` and
    ``premium`` are ``None`` when the feed reports ``null`` for them.
    """

    mark_px: str
    prev_day_px: str
    day_ntl_vlm: str
    funding: str
    open_interest: str
    oracle_px: str
    mid_px: Optional[str] = None
    impact_pxs: Tuple[str, ...] = ()
    premium: Optional[str] = None


@dataclass(frozen=True)
class NormalizedPrice:
    """Derived price row for one asset, recomputed on every fetch.

    ``absolute_change_24h`` and ``percent_change_value`` are ``None`` when the
    feed sent a value that could not be parsed; ``percent_change_24h`` then
    holds a placeholder string.
    """

    symbol: str
    raw_price: str
    display_price: str
    absolute_change_24h: Optional[Decimal]
    percent_change_value: Optional[Decimal]
    percent_change_24h: str
    is_btc: bool = False
    is_sol: bool = False
    is_hype: bool = False

    @property
    def formatted_price(self) -> str:
        return f"${self.display_price}"

    @property
    def change_sign(self) -> int:
        """Return ``1``, ``-1`` or ``0`` for the direction of the 24h change."""

        change = self.absolute_change_24h
        if change is None or change == 0:
            return 0
        return 1 if change > 0 else -1

    @property
    def is_featured(self) -> bool:
        return self.is_btc or self.is_sol or self.is_hype


@dataclass(frozen=True)
class PriceListing:
    """Presenter-facing item, including the data behind each item action."""

    symbol: str
    price: str
    formatted_price: str
    display_price: str
    percent_change_24h: str
    change_sign: int
    trade_url: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "symbol": self.symbol,
            "price": self.price,
            "formatted_price": self.formatted_price,
            "display_price": self.display_price,
            "percent_change_24h": self.percent_change_24h,
            "change_sign": self.change_sign,
            "trade_url": self.trade_url,
        }


@dataclass(frozen=True)
class PriceBoardView:
    """Everything the presenter needs to render one search state.

    Attributes
    ----------
    query:
        Search text this view was built for ("" when none).
    section_title:
        "Featured Prices" or "Search Results".
    items:
        Listings for the main section.
    remaining:
        Capped list of non-matching listings, only filled for a search.
    error:
        Notification payload for the last failed fetch, if any.
    empty_message:
        Hint shown when ``items`` is empty.
    is_loading:
        True until the first fetch has completed.
    """

    query: str
    section_title: str
    items: List[PriceListing] = field(default_factory=list)
    remaining: List[PriceListing] = field(default_factory=list)
    error: Optional[Dict[str, str]] = None
    empty_message: Optional[str] = None
    is_loading: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "query": self.query,
            "is_loading": self.is_loading,
            "section_title": self.section_title,
            "items": [item.to_dict() for item in self.items],
            "remaining_title": "All Available Assets" if self.query else None,
            "remaining": [item.to_dict() for item in self.remaining],
            "error": self.error,
            "empty_message": self.empty_message,
        }
