"""Featured-set ranking and free-text search over normalized prices.

``featured`` and ``search`` are independent queries over the same sequence;
the caller decides which one to show (see :class:`perp_prices.board.PriceBoard`).
"""

from __future__ import annotations

import locale
from functools import cmp_to_key
from typing import Iterable, List, Sequence

from .models import NormalizedPrice

DEFAULT_REMAINING_LIMIT = 20


def compare_featured(a: NormalizedPrice, b: NormalizedPrice) -> int:
    """Comparator giving BTC, then SOL, then HYPE.

    Falls back to locale collation of the symbols when no rule applies.
    """

    if a.is_btc and not b.is_btc:
        return -1
    if not a.is_btc and b.is_btc:
        return 1
    if a.is_sol and b.is_hype:
        return -1
    if a.is_hype and b.is_sol:
        return 1
    return locale.strcoll(a.symbol, b.symbol)


def featured(prices: Iterable[NormalizedPrice]) -> List[NormalizedPrice]:
    """Return the BTC/SOL/HYPE rows in display order."""

    return sorted(
        (price for price in prices if price.is_btc or price.is_sol or price.is_hype),
        key=cmp_to_key(compare_featured),
    )


def search(prices: Iterable[NormalizedPrice], query: str) -> List[NormalizedPrice]:
    """Case-insensitive substring match on ``symbol``, in input order.

    An empty ``query`` matches everything; callers showing a board substitute
    :func:`featured` instead of calling this with an empty string.
    """

    needle = query.lower()
    return [price for price in prices if needle in price.symbol.lower()]


def remaining(
    prices: Sequence[NormalizedPrice],
    matches: Iterable[NormalizedPrice],
    limit: int = DEFAULT_REMAINING_LIMIT,
) -> List[NormalizedPrice]:
    """Rows not in ``matches``, in input order, capped at ``limit``."""

    matched = {price.symbol for price in matches}
    rest = [price for price in prices if price.symbol not in matched]
    return rest[: max(limit, 0)]
