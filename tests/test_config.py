from perp_prices.config import MAINNET, TESTNET, PriceFeedConfig


def test_defaults():
    config = PriceFeedConfig()

    assert config.network is MAINNET
    assert config.featured_symbols == ("BTC", "SOL", "HYPE")
    assert config.remaining_limit == 20


def test_urls():
    assert MAINNET.info_url == "https://api.hyperliquid.xyz/info"
    assert TESTNET.trade_url("HYPE") == "https://app.hyperliquid-testnet.xyz/trade/HYPE"


def test_from_env(monkeypatch):
    monkeypatch.setenv("HYPERLIQUID_NETWORK", "TestNet")
    monkeypatch.setenv("PRICE_REFRESH_SECONDS", "2.5")

    config = PriceFeedConfig.from_env()

    assert config.network is TESTNET
    assert config.min_refresh_interval == 2.5
    assert config.stream_interval_seconds == 2.5


def test_from_env_defaults_to_mainnet(monkeypatch):
    monkeypatch.delenv("HYPERLIQUID_NETWORK", raising=False)
    monkeypatch.delenv("PRICE_REFRESH_SECONDS", raising=False)

    assert PriceFeedConfig.from_env().network is MAINNET
