"""Hyperliquid ``metaAndAssetCtxs`` price feed.

The feed issues exactly one POST per call to the ``/info`` endpoint and
returns the perp universe together with its positionally aligned asset
contexts. Transport is separated from parsing so that:

- Payload parsing can be tested purely with synthetic lists and dictionaries,
  without any network access.
- The HTTP layer can be swapped in tests (an ``httpx`` transport for the async
  feed, a ``requests`` session for the blocking one).

No retry is attempted. A failed call raises :class:`~perp_prices.errors.FetchError`
and the caller decides when to try again.
"""

from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional, Tuple

import httpx
import requests

from .config import PriceFeedConfig
from .errors import FetchError
from .models import AssetContext, AssetMeta

logger = logging.getLogger(__name__)

REQUEST_BODY = {"type": "metaAndAssetCtxs"}
REQUEST_HEADERS = {"Content-Type": "application/json"}

FeedSnapshot = Tuple[List[Optional[AssetMeta]], List[Optional[AssetContext]]]
"""Universe entries and contexts; unusable entries are kept as ``None`` so
indices stay aligned."""


class MetaAndAssetCtxsParser:
    """Parse a raw ``metaAndAssetCtxs`` response into typed models.

    The expected shape is a two-element list::

        [{"universe": [{"name": "BTC", "szDecimals": 5, ...}, ...]},
         [{"markPx": "50000.0", "prevDayPx": "49000.0", ...}, ...]]

    A wrong top-level shape raises :class:`FetchError`. Malformed individual
    entries are replaced by ``None`` rather than removed, because the two
    lists are joined by index downstream.
    """

    def parse(self, payload: Any) -> FeedSnapshot:
        if not isinstance(payload, list) or len(payload) != 2:
            raise FetchError("Unexpected metaAndAssetCtxs response: expected a two-element array")

        meta_block, contexts_raw = payload
        if not isinstance(meta_block, Mapping) or not isinstance(meta_block.get("universe"), list):
            raise FetchError("Unexpected metaAndAssetCtxs response: missing universe list")
        if not isinstance(contexts_raw, list):
            raise FetchError("Unexpected metaAndAssetCtxs response: asset contexts are not a list")

        universe = [self._parse_asset_meta(entry) for entry in meta_block["universe"]]
        contexts = [self._parse_asset_context(entry) for entry in contexts_raw]
        return universe, contexts

    # ------------------------------------------------------------------
    # Entry parsers
    # ------------------------------------------------------------------

    @staticmethod
    def _parse_asset_meta(entry: Any) -> Optional[AssetMeta]:
        if not isinstance(entry, Mapping):
            return None

        name = entry.get("name")
        if not name:
            return None

        try:
            sz_decimals = int(entry.get("szDecimals", 0))
            max_leverage = int(entry.get("maxLeverage", 0))
        except (TypeError, ValueError):
            logger.warning("Skipping universe entry %r with non-integer metadata", name)
            return None

        return AssetMeta(
            name=str(name),
            sz_decimals=sz_decimals,
            max_leverage=max_leverage,
            only_isolated=bool(entry.get("onlyIsolated", False)),
            is_delisted=bool(entry.get("isDelisted", False)),
        )

    @staticmethod
    def _parse_asset_context(entry: Any) -> Optional[AssetContext]:
        if not isinstance(entry, Mapping):
            return None

        def text(key: str) -> str:
            value = entry.get(key)
            return "" if value is None else str(value)

        mid_px = entry.get("midPx")
        premium = entry.get("premium")
        impact_pxs = entry.get("impactPxs") or []
        if not isinstance(impact_pxs, (list, tuple)):
            logger.warning("Skipping asset context with malformed impactPxs %r", impact_pxs)
            return None

        return AssetContext(
            mark_px=text("markPx"),
            prev_day_px=text("prevDayPx"),
            day_ntl_vlm=text("dayNtlVlm"),
            funding=text("funding"),
            open_interest=text("openInterest"),
            oracle_px=text("oraclePx"),
            mid_px=str(mid_px) if mid_px is not None else None,
            impact_pxs=tuple(str(px) for px in impact_pxs),
            premium=str(premium) if premium is not None else None,
        )


def parse_meta_and_asset_ctxs(payload: Any) -> FeedSnapshot:
    """Module-level shortcut for :meth:`MetaAndAssetCtxsParser.parse`."""

    return MetaAndAssetCtxsParser().parse(payload)


def _describe(exc: Exception) -> str:
    return str(exc) or exc.__class__.__name__


def _parse_payload(parser: MetaAndAssetCtxsParser, payload: Any) -> FeedSnapshot:
    """Run ``parser`` so that any shape problem surfaces as :class:`FetchError`."""

    try:
        return parser.parse(payload)
    except FetchError:
        raise
    except (AttributeError, LookupError, TypeError, ValueError) as exc:
        logger.error("Could not parse metaAndAssetCtxs payload: %s", _describe(exc))
        raise FetchError(f"Malformed metaAndAssetCtxs response: {_describe(exc)}") from exc


class AsyncPriceFeed:
    """Async fetcher backed by ``httpx.AsyncClient``.

    Parameters
    ----------
    config:
        Feed configuration; defaults to mainnet.
    transport:
        Optional ``httpx`` transport. Tests pass an ``httpx.MockTransport``.
    parser:
        Optional payload parser.
    """

    def __init__(
        self,
        config: Optional[PriceFeedConfig] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        parser: Optional[MetaAndAssetCtxsParser] = None,
    ) -> None:
        self._config = config or PriceFeedConfig()
        self._transport = transport
        self._parser = parser or MetaAndAssetCtxsParser()

    @property
    def url(self) -> str:
        return self._config.network.info_url

    async def fetch(self) -> FeedSnapshot:
        """Fetch and parse one ``metaAndAssetCtxs`` snapshot.

        Raises
        ------
        FetchError
            On transport failure, non-2xx status, a non-JSON body or an
            unexpected top-level shape. Parser errors on a malformed payload
            are wrapped as well, so callers only ever handle ``FetchError``.
        """

        try:
            async with httpx.AsyncClient(
                timeout=self._config.timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await client.post(self.url, json=REQUEST_BODY, headers=REQUEST_HEADERS)
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPStatusError as exc:
            logger.error("Price feed returned HTTP %s: %s", exc.response.status_code, exc)
            raise FetchError(_describe(exc), status_code=exc.response.status_code) from exc
        except httpx.HTTPError as exc:
            logger.error("Price feed request to %s failed: %s", self.url, _describe(exc))
            raise FetchError(_describe(exc)) from exc
        except ValueError as exc:
            logger.error("Price feed returned a non-JSON body: %s", exc)
            raise FetchError(f"Invalid JSON in price feed response: {exc}") from exc

        return _parse_payload(self._parser, payload)


class PriceFeed:
    """Blocking fetcher backed by ``requests``, for scripts and one-shot snapshots.

    Parameters
    ----------
    config:
        Feed configuration; defaults to mainnet.
    session:
        Optional ``requests.Session``. When omitted, ``requests.post`` is used.
    """

    def __init__(
        self,
        config: Optional[PriceFeedConfig] = None,
        *,
        session: Optional[requests.Session] = None,
        parser: Optional[MetaAndAssetCtxsParser] = None,
    ) -> None:
        self._config = config or PriceFeedConfig()
        self._session = session
        self._parser = parser or MetaAndAssetCtxsParser()

    @property
    def url(self) -> str:
        return self._config.network.info_url

    def fetch(self) -> FeedSnapshot:
        """Fetch and parse one snapshot; same error contract as :class:`AsyncPriceFeed`."""

        post = self._session.post if self._session is not None else requests.post

        try:
            response = post(
                self.url,
                json=REQUEST_BODY,
                headers=REQUEST_HEADERS,
                timeout=self._config.timeout_seconds,
            )
            response.raise_for_status()
            payload = response.json()
        except requests.exceptions.HTTPError as exc:
            status_code = exc.response.status_code if exc.response is not None else None
            logger.error("Price feed returned HTTP %s: %s", status_code, exc)
            raise FetchError(_describe(exc), status_code=status_code) from exc
        except requests.exceptions.RequestException as exc:
            logger.error("Price feed request to %s failed: %s", self.url, _describe(exc))
            raise FetchError(_describe(exc)) from exc
        except ValueError as exc:
            logger.error("Price feed returned a non-JSON body: %s", exc)
            raise FetchError(f"Invalid JSON in price feed response: {exc}") from exc

        return _parse_payload(self._parser, payload)
