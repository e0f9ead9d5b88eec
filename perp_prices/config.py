"""Configuration objects for the perp price board.

This module intentionally stays lightweight and does not perform any network
I/O. It just defines configuration structures describing which network to
query and how often the board may refresh its snapshot.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class NetworkConfig:
    """Configuration for a Hyperliquid network.

    Attributes
    ----------
    name:
        Human-readable name ("mainnet" or "testnet").
    rest_url:
        Base HTTPS URL for the REST API.
    ws_url:
        WebSocket URL for streaming data.
    web_app_url:
        Base URL of the trading web app, used to build per-asset trade links.
    """

    name: str
    rest_url: str
    ws_url: str
    web_app_url: str

    @property
    def info_url(self) -> str:
        """Return the ``/info`` endpoint that serves ``metaAndAssetCtxs``."""

        return f"{self.rest_url}/info"

    def trade_url(self, symbol: str) -> str:
        """Return the web app trade page for ``symbol``."""

        return f"{self.web_app_url}/trade/{symbol}"


MAINNET = NetworkConfig(
    name="mainnet",
    rest_url="https://api.hyperliquid.xyz",
    ws_url="wss://api.hyperliquid.xyz/ws",
    web_app_url="https://app.hyperliquid.xyz",
)

TESTNET = NetworkConfig(
    name="testnet",
    rest_url="https://api.hyperliquid-testnet.xyz",
    ws_url="wss://api.hyperliquid-testnet.xyz/ws",
    web_app_url="https://app.hyperliquid-testnet.xyz",
)

FEATURED_SYMBOLS: Tuple[str, ...] = ("BTC", "SOL", "HYPE")


@dataclass
class PriceFeedConfig:
    """Configuration for :class:`perp_prices.board.PriceBoard` and its feed.

    Attributes
    ----------
    network:
        Network to query. Defaults to :data:`MAINNET`.
    timeout_seconds:
        Per-request timeout for the single ``metaAndAssetCtxs`` POST.
    featured_symbols:
        Symbols shown when no search text is active, in display order.
    remaining_limit:
        Cap on the "All Available Assets" section shown next to search results.
    min_refresh_interval:
        Minimum number of seconds between two initiated refreshes. Callers
        re-trigger refreshes on every keystroke, so this bounds request rate.
    stream_interval_seconds:
        Push interval for the WebSocket presenter endpoint.
    """

    network: NetworkConfig = MAINNET
    timeout_seconds: float = 10.0
    featured_symbols: Tuple[str, ...] = FEATURED_SYMBOLS
    remaining_limit: int = 20
    min_refresh_interval: float = 1.0
    stream_interval_seconds: float = 1.0

    @classmethod
    def from_env(cls) -> "PriceFeedConfig":
        """Build a config from ``HYPERLIQUID_NETWORK`` and ``PRICE_REFRESH_SECONDS``.

        Unknown network names fall back to mainnet.
        """

        network_name = os.getenv("HYPERLIQUID_NETWORK", "mainnet").lower()
        network = TESTNET if network_name == "testnet" else MAINNET
        refresh_seconds = float(os.getenv("PRICE_REFRESH_SECONDS", "1.0"))

        return cls(
            network=network,
            min_refresh_interval=refresh_seconds,
            stream_interval_seconds=refresh_seconds,
        )
