"""Detail fetcher - slug -> full Market record."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from predresolve.errors import InvalidTokenIdError, MarketNotFoundError
from predresolve.models import Market

if TYPE_CHECKING:
    from predresolve.cache import MarketIndexCache
    from predresolve.remote.client import MarketApiClient

log = structlog.get_logger(__name__)


class DetailFetcher:
    """
    Fetch authoritative market details by slug.

    fetch() returns a Market or raises MarketNotFoundError (terminal for that slug),
    TransientFetchError (retry later) or RemoteApiError. A not-found also drops the slug
    from the attached index cache, since the cached entry is now known stale.
    """

    def __init__(self, client: MarketApiClient, cache: MarketIndexCache | None = None) -> None:
        self._client = client
        self._cache = cache

    def fetch(self, slug: str) -> Market:
        slug = (slug or "").strip()
        if not slug:
            raise MarketNotFoundError(slug, status_code=None)
        try:
            market = self._client.market(slug)
        except MarketNotFoundError:
            log.info("market_not_found", slug=slug)
            if self._cache is not None:
                self._cache.invalidate(slug)
            raise
        log.debug("market_fetched", slug=slug, status=market.status)
        return market

    def try_fetch(self, slug: str) -> Market | None:
        """Like fetch(), but None for not-found. Transient and other remote errors still raise."""
        try:
            return self.fetch(slug)
        except MarketNotFoundError:
            return None

    def position_ids(self, slug: str) -> tuple[str, str]:
        """(YES, NO) token ids from a fresh fetch. Never reuse ids from an older record."""
        market = self.fetch(slug)
        if len(market.position_ids) != 2:
            raise InvalidTokenIdError(f"Market {slug} has no positionIds")
        return market.position_ids[0], market.position_ids[1]
