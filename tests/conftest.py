"""Shared fixtures: a fake remote API behind httpx.MockTransport."""

from __future__ import annotations

from typing import Any, Callable

import httpx
import pytest
import structlog

from predresolve.remote.client import MarketApiClient
from predresolve.service import MarketService

BASE_URL = "https://api.test"

BIG_YES = str(2**256)
BIG_NO = str(2**256 - 1)

BTC_JAN13 = "btc-above-97000-on-jan-13-0700-utc-1736751602020"
ETH_JAN13 = "eth-above-3200-on-jan-13-0700-utc-1736751602021"
BTC_JAN14 = "btc-above-98000-on-jan-14-0700-utc-1736838002020"
RAIN = "will-it-rain-in-london-this-weekend"

ACTIVE_SLUGS = [
    {"slug": BTC_JAN13, "ticker": "BTC", "strikePrice": "97000", "deadline": "2025-01-13T07:00:00.000Z"},
    {"slug": ETH_JAN13, "ticker": "ETH", "strikePrice": "3200.5", "deadline": "2025-01-13T07:00:00.000Z"},
    {"slug": BTC_JAN14, "ticker": "BTC", "strikePrice": 98000, "deadline": 1736838000000},
    {"slug": RAIN, "ticker": None, "strikePrice": None, "deadline": None},
]

BTC_MARKET = {
    "id": 4211,
    "slug": BTC_JAN13,
    "title": "$BTC above $97000 on Jan 13, 07:00 UTC?",
    "ticker": "BTC",
    "strikePrice": "97000",
    "status": "FUNDED",
    "volume": "1234500000",
    "volumeFormatted": "1234.5",
    "liquidity": "500000000",
    "liquidityFormatted": "500",
    "expirationTimestamp": 1736751600000,
    "positionIds": [BIG_YES, BIG_NO],
    "categories": ["Crypto"],
}

SEARCH_1HR_BTC = {
    "markets": [
        {"slug": BTC_JAN14, "title": "$BTC above $98000 on Jan 14?", "similarity": 0.62},
        {"slug": BTC_JAN13, "title": "$BTC above $97000 on Jan 13?", "similarity": 0.91},
        {"slug": ETH_JAN13, "title": "$ETH above $3200.5 on Jan 13?", "similarity": 0.55},
        {"slug": RAIN, "title": "Will it rain in London this weekend?", "similarity": 0.3},
    ]
}


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    structlog.reset_defaults()


class FakeApi:
    """Routes by URL path. A route is (status, body) or a callable(request) -> httpx.Response."""

    def __init__(self) -> None:
        self.routes: dict[str, Any] = {}
        self.calls: list[httpx.Request] = []

    def set(self, path: str, body: Any, status: int = 200) -> None:
        self.routes[path] = (status, body)

    def set_handler(self, path: str, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.routes[path] = handler

    def calls_to(self, path: str) -> list[httpx.Request]:
        return [r for r in self.calls if r.url.path == path]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        route = self.routes.get(request.url.path)
        if route is None:
            return httpx.Response(404, json={"message": "Not Found", "statusCode": 404})
        if callable(route):
            return route(request)
        status, body = route
        if isinstance(body, (str, bytes)):
            return httpx.Response(status, content=body)
        return httpx.Response(status, json=body)


@pytest.fixture
def fake_api() -> FakeApi:
    api = FakeApi()
    api.set("/markets/active/slugs", ACTIVE_SLUGS)
    api.set(f"/markets/{BTC_JAN13}", BTC_MARKET)
    api.set("/markets/search", SEARCH_1HR_BTC)
    api.set("/markets/categories/count", {"category": {"2": 3, "5": 1}, "totalCount": 4})
    api.set(
        "/markets/active/2",
        {
            "data": [
                {**BTC_MARKET},
                {"slug": ETH_JAN13, "title": "$ETH above $3200.5 on Jan 13?", "positionIds": ["11", "12"]},
                {"slug": BTC_JAN14, "title": "$BTC above $98000 on Jan 14?", "positionIds": ["21", "22"]},
            ],
            "totalMarketsCount": 3,
        },
    )
    return api


@pytest.fixture
def client(fake_api: FakeApi):
    c = MarketApiClient(base_url=BASE_URL, transport=httpx.MockTransport(fake_api))
    yield c
    c.close()


@pytest.fixture
def service(client: MarketApiClient, tmp_path) -> MarketService:
    return MarketService(client, db_path=tmp_path / "test.duckdb")
