"""Turn raw universe/context pairs into display-ready price rows.

Everything in this module is pure: no I/O, no mutation of inputs, and the
same inputs always produce the same output. Arithmetic uses ``Decimal`` so
that rounding at tier boundaries is exact.

Display price tiers
-------------------
======================  ===============
price magnitude         fraction digits
======================  ===============
``>= 1000``             2
``>= 1`` and ``< 1000`` 4
``< 1``                 6 to 8
======================  ===============

A tier is chosen by the magnitude *after* rounding to that tier's own
precision, so ``999.999`` renders as ``1,000.00`` and ``0.99999`` as
``1.0000``. Rounding is half away from zero with en-US thousands grouping.
"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal, DecimalException, InvalidOperation, localcontext
from typing import List, Optional, Sequence, Tuple

from .errors import FormatError
from .models import AssetContext, AssetMeta, NormalizedPrice

logger = logging.getLogger(__name__)

PLACEHOLDER = "N/A"

_HUNDRED = Decimal(100)
_THOUSAND = Decimal(1000)
_ONE = Decimal(1)
_SMALL_MIN_DIGITS = 6
_SMALL_MAX_DIGITS = 8
_MAX_DIGITS = 60


def parse_decimal(value: object, field: str) -> Decimal:
    """Parse a feed decimal string, raising :class:`FormatError` on bad input."""

    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as exc:
        raise FormatError(field, value) from exc

    if not number.is_finite():
        raise FormatError(field, value)
    return number


def _round(value: Decimal, digits: int) -> Decimal:
    # Precision grows with the integer part; anything wider than
    # _MAX_DIGITS is not displayable.
    needed = max(value.adjusted(), 0) + digits + 1
    if needed > _MAX_DIGITS:
        raise FormatError("value", value)

    try:
        with localcontext() as ctx:
            ctx.prec = max(ctx.prec, needed)
            return value.quantize(Decimal(1).scaleb(-digits), rounding=ROUND_HALF_UP)
    except DecimalException as exc:
        raise FormatError("value", value) from exc


def format_price(price: object) -> str:
    """Format a price with the tiered fraction digits and ``,`` grouping."""

    number = price if isinstance(price, Decimal) else parse_decimal(price, "price")
    magnitude = abs(number)

    if _round(magnitude, 2) >= _THOUSAND:
        return f"{_round(number, 2):,.2f}"

    if _round(magnitude, 4) >= _ONE:
        return f"{_round(number, 4):,.4f}"

    text = f"{_round(number, _SMALL_MAX_DIGITS):,.{_SMALL_MAX_DIGITS}f}"
    whole, fraction = text.split(".")
    fraction = fraction.rstrip("0").ljust(_SMALL_MIN_DIGITS, "0")
    return f"{whole}.{fraction}"


def format_percentage(percentage: Decimal) -> str:
    """Format a percent change as ``+1.23%`` / ``-1.23%``; zero gets ``+``."""

    sign = "+" if percentage >= 0 else ""
    return f"{sign}{_round(percentage, 2):.2f}%"


def percent_change(change: Decimal, prev_day_px: Decimal) -> Decimal:
    """Return the 24h change in percent, or exactly ``0`` when ``prev_day_px <= 0``."""

    if prev_day_px <= 0:
        return Decimal(0)
    return change / prev_day_px * _HUNDRED


def price_change(mark_px: Decimal, prev_day_px: Decimal) -> Tuple[Decimal, Decimal]:
    """Return ``(absolute, percent)`` 24h change; overflow raises :class:`FormatError`."""

    try:
        change = mark_px - prev_day_px
        return change, percent_change(change, prev_day_px)
    except DecimalException as exc:
        raise FormatError("prevDayPx", prev_day_px) from exc


def pair_by_index(
    meta: Sequence[Optional[AssetMeta]],
    contexts: Sequence[Optional[AssetContext]],
) -> List[Tuple[AssetMeta, AssetContext]]:
    """Join universe entries with contexts by list index.

    Index ``i`` survives only when both ``meta[i]`` and ``contexts[i]`` exist.
    Metadata beyond the end of ``contexts`` is dropped, never defaulted.
    """

    pairs: List[Tuple[AssetMeta, AssetContext]] = []
    dropped = 0

    for index, asset in enumerate(meta):
        ctx = contexts[index] if index < len(contexts) else None
        if asset is None or ctx is None:
            dropped += 1
            continue
        pairs.append((asset, ctx))

    if dropped:
        logger.debug("Dropped %d universe entries without a matching asset context", dropped)

    return pairs


def normalize_entry(asset: AssetMeta, ctx: AssetContext) -> NormalizedPrice:
    """Build one :class:`NormalizedPrice`, degrading to placeholders on bad numbers.

    A value that parses but cannot be formatted is treated like one that does
    not parse: only this entry degrades, never the whole list.
    """

    symbol = asset.name
    display_price = PLACEHOLDER
    percent_text = PLACEHOLDER
    change: Optional[Decimal] = None
    percent: Optional[Decimal] = None

    try:
        mark_px = parse_decimal(ctx.mark_px, "markPx")
        display_price = format_price(mark_px)
        prev_day_px = parse_decimal(ctx.prev_day_px, "prevDayPx")
        delta, delta_percent = price_change(mark_px, prev_day_px)
        percent_text = format_percentage(delta_percent)
        change, percent = delta, delta_percent
    except FormatError as exc:
        logger.warning("Bad numeric data for %s: %s", symbol, exc)

    return NormalizedPrice(
        symbol=symbol,
        raw_price=ctx.mark_px,
        display_price=display_price,
        absolute_change_24h=change,
        percent_change_value=percent,
        percent_change_24h=percent_text,
        is_btc=symbol == "BTC",
        is_sol=symbol == "SOL",
        is_hype=symbol == "HYPE",
    )


def normalize(
    meta: Sequence[Optional[AssetMeta]],
    contexts: Sequence[Optional[AssetContext]],
) -> List[NormalizedPrice]:
    """Normalize a full ``metaAndAssetCtxs`` snapshot, preserving universe order."""

    return [normalize_entry(asset, ctx) for asset, ctx in pair_by_index(meta, contexts)]
