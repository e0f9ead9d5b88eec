"""Live Hyperliquid perp prices for a featured set plus free-text search.

The package fetches ``metaAndAssetCtxs`` from the Hyperliquid info endpoint,
normalizes it into display-ready rows and ranks them for a list UI.
"""

__version__ = "0.1.0"

from . import config, models, hyperliquid_client, normalizer, ranking  # noqa: F401,E402
