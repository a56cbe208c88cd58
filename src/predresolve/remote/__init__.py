"""Remote market data API - HTTP client and payload parsing."""

from predresolve.remote.client import DEFAULT_BASE_URL, MarketApiClient

__all__ = ["DEFAULT_BASE_URL", "MarketApiClient"]
