"""Shared fixtures: synthetic ``metaAndAssetCtxs`` payloads and fake feeds."""

import pytest

from perp_prices.hyperliquid_client import parse_meta_and_asset_ctxs


def _context(mark_px, prev_day_px):
    return {
        "markPx": mark_px,
        "prevDayPx": prev_day_px,
        "dayNtlVlm": "1250000.5",
        "funding": "0.0000125",
        "openInterest": "4321.5",
        "midPx": mark_px,
        "impactPxs": [mark_px, mark_px],
        "oraclePx": mark_px,
        "premium": "0.0001",
    }


def _payload(rows):
    universe = [{"name": name, "szDecimals": 2, "maxLeverage": 20} for name, _, _ in rows]
    contexts = [_context(mark_px, prev_day_px) for _, mark_px, prev_day_px in rows]
    return [{"universe": universe}, contexts]


@pytest.fixture
def make_payload():
    """Build a payload from ``(name, markPx, prevDayPx)`` rows."""
    return _payload


@pytest.fixture
def sample_payload():
    """A small universe in exchange order (HYPE deliberately before SOL)."""
    return _payload([
        ("ETH", "3000.5", "2900.0"),
        ("HYPE", "25.1234", "26.0"),
        ("BTC", "50000", "48000"),
        ("DOGE", "0.1234", "0.12"),
        ("SOL", "150", "150"),
        ("kPEPE", "0.012345678", "0.011"),
    ])


class FakeFeed:
    """Async feed returning queued payloads (or raising queued errors)."""

    def __init__(self, *results):
        self.results = list(results)
        self.calls = 0

    async def fetch(self):
        self.calls += 1
        result = self.results[0] if len(self.results) == 1 else self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return parse_meta_and_asset_ctxs(result)


@pytest.fixture
def fake_feed_cls():
    return FakeFeed
