"""Tests for the metaAndAssetCtxs parser and the async/blocking fetchers."""

import json

import httpx
import pytest
import requests

from perp_prices.config import TESTNET, PriceFeedConfig
from perp_prices.errors import FetchError
from perp_prices.hyperliquid_client import (
    AsyncPriceFeed,
    MetaAndAssetCtxsParser,
    PriceFeed,
    parse_meta_and_asset_ctxs,
)


class BrokenParser(MetaAndAssetCtxsParser):
    """Parser that trips over the payload the way a shape change would."""

    def parse(self, payload):
        raise TypeError("unhashable type: 'dict'")


# ============================================================
# PARSER
# ============================================================

class TestParser:

    def test_parses_universe_and_contexts(self, sample_payload):
        meta, ctxs = parse_meta_and_asset_ctxs(sample_payload)

        assert [asset.name for asset in meta] == ["ETH", "HYPE", "BTC", "DOGE", "SOL", "kPEPE"]
        assert meta[0].sz_decimals == 2
        assert meta[0].max_leverage == 20
        assert meta[0].only_isolated is False
        assert meta[0].is_delisted is False

        btc_ctx = ctxs[2]
        assert btc_ctx.mark_px == "50000"
        assert btc_ctx.prev_day_px == "48000"
        assert btc_ctx.funding == "0.0000125"
        assert btc_ctx.impact_pxs == ("50000", "50000")

    def test_optional_fields(self):
        payload = [
            {"universe": [{"name": "OLD", "szDecimals": 1, "maxLeverage": 3,
                           "onlyIsolated": True, "isDelisted": True}]},
            [{"markPx": "1.0", "prevDayPx": "1.1", "dayNtlVlm": "0.0", "funding": "0.0",
              "openInterest": "0.0", "oraclePx": "1.0", "midPx": None, "impactPxs": None,
              "premium": None}],
        ]
        (meta,), (ctx,) = MetaAndAssetCtxsParser().parse(payload)

        assert meta.only_isolated is True
        assert meta.is_delisted is True
        assert ctx.mid_px is None
        assert ctx.premium is None
        assert ctx.impact_pxs == ()

    @pytest.mark.parametrize("payload", [
        {"universe": []},
        [],
        [{"universe": []}],
        [{"universe": []}, [], []],
        [{"assets": []}, []],
        [{"universe": []}, {"not": "a list"}],
    ])
    def test_rejects_unexpected_shapes(self, payload):
        with pytest.raises(FetchError):
            parse_meta_and_asset_ctxs(payload)

    def test_keeps_placeholders_for_alignment(self):
        payload = [
            {"universe": [{"name": "A"}, {"szDecimals": 1}, "junk", {"name": "D", "szDecimals": "x"}]},
            [{"markPx": "1", "prevDayPx": "1"}, None, {"markPx": "3", "prevDayPx": "3"}],
        ]
        meta, ctxs = parse_meta_and_asset_ctxs(payload)

        assert [asset.name if asset else None for asset in meta] == ["A", None, None, None]
        assert [ctx.mark_px if ctx else None for ctx in ctxs] == ["1", None, "3"]

    def test_malformed_impact_pxs_becomes_placeholder(self, make_payload):
        payload = make_payload([("A", "1", "1"), ("B", "2", "2"), ("C", "3", "3")])
        payload[1][1]["impactPxs"] = 5

        meta, ctxs = parse_meta_and_asset_ctxs(payload)

        assert [asset.name for asset in meta] == ["A", "B", "C"]
        assert [ctx.mark_px if ctx else None for ctx in ctxs] == ["1", None, "3"]


# ============================================================
# ASYNC FEED (httpx)
# ============================================================

class TestAsyncPriceFeed:

    @pytest.mark.asyncio
    async def test_posts_meta_and_asset_ctxs(self, sample_payload):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=sample_payload)

        feed = AsyncPriceFeed(transport=httpx.MockTransport(handler))
        meta, ctxs = await feed.fetch()

        assert len(meta) == len(ctxs) == 6
        (request,) = seen
        assert request.method == "POST"
        assert str(request.url) == "https://api.hyperliquid.xyz/info"
        assert request.headers["content-type"] == "application/json"
        assert json.loads(request.content) == {"type": "metaAndAssetCtxs"}

    @pytest.mark.asyncio
    async def test_uses_configured_network(self, sample_payload):
        urls = []

        def handler(request: httpx.Request) -> httpx.Response:
            urls.append(str(request.url))
            return httpx.Response(200, json=sample_payload)

        feed = AsyncPriceFeed(PriceFeedConfig(network=TESTNET), transport=httpx.MockTransport(handler))
        await feed.fetch()

        assert urls == ["https://api.hyperliquid-testnet.xyz/info"]

    @pytest.mark.asyncio
    async def test_http_error_status(self):
        feed = AsyncPriceFeed(transport=httpx.MockTransport(lambda request: httpx.Response(500)))

        with pytest.raises(FetchError) as excinfo:
            await feed.fetch()

        assert excinfo.value.status_code == 500

    @pytest.mark.asyncio
    async def test_transport_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        feed = AsyncPriceFeed(transport=httpx.MockTransport(handler))

        with pytest.raises(FetchError) as excinfo:
            await feed.fetch()

        assert "connection refused" in excinfo.value.message
        assert excinfo.value.status_code is None

    @pytest.mark.asyncio
    async def test_non_json_body(self):
        feed = AsyncPriceFeed(
            transport=httpx.MockTransport(lambda request: httpx.Response(200, text="<html>oops</html>"))
        )

        with pytest.raises(FetchError):
            await feed.fetch()

    @pytest.mark.asyncio
    async def test_single_attempt_per_call(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(503)

        feed = AsyncPriceFeed(transport=httpx.MockTransport(handler))
        with pytest.raises(FetchError):
            await feed.fetch()

        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_parser_errors_become_fetch_errors(self, sample_payload):
        feed = AsyncPriceFeed(
            transport=httpx.MockTransport(lambda request: httpx.Response(200, json=sample_payload)),
            parser=BrokenParser(),
        )

        with pytest.raises(FetchError, match="Malformed metaAndAssetCtxs response"):
            await feed.fetch()


# ============================================================
# BLOCKING FEED (requests)
# ============================================================

class FakeResponse:
    def __init__(self, payload=None, status_code=200):
        self.payload = payload
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} Server Error", response=self)

    def json(self):
        if self.payload is None:
            raise ValueError("invalid json")
        return self.payload


class TestPriceFeed:

    def test_fetch(self, monkeypatch, sample_payload):
        seen = {}

        def fake_post(url, **kwargs):
            seen["url"] = url
            seen.update(kwargs)
            return FakeResponse(sample_payload)

        monkeypatch.setattr(requests, "post", fake_post)
        meta, ctxs = PriceFeed().fetch()

        assert [asset.name for asset in meta][:3] == ["ETH", "HYPE", "BTC"]
        assert seen["url"] == "https://api.hyperliquid.xyz/info"
        assert seen["json"] == {"type": "metaAndAssetCtxs"}
        assert seen["headers"] == {"Content-Type": "application/json"}
        assert seen["timeout"] == 10.0

    def test_http_error(self, monkeypatch):
        monkeypatch.setattr(requests, "post", lambda url, **kwargs: FakeResponse(status_code=502))

        with pytest.raises(FetchError) as excinfo:
            PriceFeed().fetch()

        assert excinfo.value.status_code == 502

    def test_connection_error(self, monkeypatch):
        def fake_post(url, **kwargs):
            raise requests.exceptions.ConnectionError("network down")

        monkeypatch.setattr(requests, "post", fake_post)

        with pytest.raises(FetchError, match="network down"):
            PriceFeed().fetch()

    def test_bad_json(self, monkeypatch):
        monkeypatch.setattr(requests, "post", lambda url, **kwargs: FakeResponse(None))

        with pytest.raises(FetchError):
            PriceFeed().fetch()

    def test_uses_injected_session(self, sample_payload):
        class Session:
            def __init__(self):
                self.calls = 0

            def post(self, url, **kwargs):
                self.calls += 1
                return FakeResponse(sample_payload)

        session = Session()
        meta, _ = PriceFeed(session=session).fetch()

        assert session.calls == 1
        assert len(meta) == 6

    def test_parser_errors_become_fetch_errors(self, monkeypatch, sample_payload):
        monkeypatch.setattr(requests, "post", lambda url, **kwargs: FakeResponse(sample_payload))

        with pytest.raises(FetchError, match="unhashable"):
            PriceFeed(parser=BrokenParser()).fetch()
