"""Market data API client - search, bulk slug listing, categories, market detail."""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

import httpx
import structlog
from pydantic import ValidationError

from predresolve.errors import MarketNotFoundError, RemoteApiError, TransientFetchError, error_from_response
from predresolve.models import Category, Market, MarketSummary, SearchResult
from predresolve.remote.parse import (
    parse_category_counts,
    parse_market,
    parse_rows,
    parse_search_result,
    parse_summary,
    unwrap_rows,
)

log = structlog.get_logger(__name__)

DEFAULT_BASE_URL = "https://api.limitless.exchange"


class MarketApiClient:
    """Thin synchronous client over the documented GET endpoints. No retries; failures become RemoteApiError."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 15.0,
        user_agent: str = "predresolve/0.1",
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = httpx.Client(
            base_url=self.base_url,
            timeout=timeout,
            headers={"User-Agent": user_agent, "Accept": "application/json"},
            transport=transport,
        )

    def __enter__(self) -> MarketApiClient:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def _get(self, path: str, params: dict[str, Any] | None = None, slug: str | None = None) -> Any:
        params = {k: v for k, v in (params or {}).items() if v is not None}
        try:
            resp = self._client.get(path, params=params)
        except httpx.TransportError as e:
            log.warning("remote_unreachable", path=path, error=repr(e))
            raise TransientFetchError(f"{type(e).__name__} on GET {path}: {e}") from e
        if resp.is_error:
            err = error_from_response(resp, slug=slug)
            log.warning("remote_error", path=path, status=resp.status_code, code=err.code, detail=err.detail)
            raise err
        if not resp.content.strip():
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise RemoteApiError(f"Malformed JSON from GET {path}", status_code=resp.status_code) from e

    def search(
        self,
        query: str,
        limit: int | None = None,
        similarity_threshold: float | None = None,
    ) -> list[SearchResult]:
        """GET /markets/search. Order is whatever the remote returns."""
        data = self._get(
            "/markets/search",
            params={"query": query, "limit": limit, "similarityThreshold": similarity_threshold},
        )
        return parse_rows(unwrap_rows(data, "markets", "data", "results"), parse_search_result, "search_result")

    def active_slugs(self) -> list[MarketSummary]:
        """GET /markets/active/slugs - every active slug with ticker, strike and deadline."""
        data = self._get("/markets/active/slugs")
        return parse_rows(unwrap_rows(data, "data", "markets"), parse_summary, "summary")

    def category_counts(self) -> list[Category]:
        """GET /markets/categories/count."""
        return parse_category_counts(self._get("/markets/categories/count"))

    def active_markets(
        self,
        category_id: str | int,
        limit: int | None = None,
        sort_by: str | None = None,
        page: int | None = None,
    ) -> list[Market]:
        """GET /markets/active/{categoryId}."""
        data = self._get(
            f"/markets/active/{quote(str(category_id), safe='')}",
            params={"limit": limit, "sortBy": sort_by, "page": page},
        )
        return parse_rows(unwrap_rows(data, "data", "markets"), parse_market, "market")

    def market(self, slug: str) -> Market:
        """GET /markets/{slug}. Raises MarketNotFoundError on 404 or an empty body."""
        data = self._get(f"/markets/{quote(slug, safe='')}", slug=slug)
        if not isinstance(data, dict) or not data:
            raise MarketNotFoundError(slug, status_code=200)
        if not data.get("slug"):
            data = {**data, "slug": slug}
        try:
            return parse_market(data)
        except (ValidationError, ValueError, TypeError) as e:
            raise RemoteApiError(f"Unusable market record for {slug}: {e}") from e
