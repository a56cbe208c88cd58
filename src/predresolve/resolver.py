"""Resolver - free-text query -> ranked slug candidates; category -> slugs."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Iterable

import structlog

from predresolve.models import Category, MarketSummary, SearchResult

if TYPE_CHECKING:
    from predresolve.cache import MarketIndexCache
    from predresolve.remote.client import MarketApiClient

log = structlog.get_logger(__name__)

_TOKEN_RE = re.compile(r"[a-z0-9]+(?:\.[a-z0-9]+)*")


def tokenize(query: str) -> list[str]:
    """Lowercase word tokens, de-duplicated in order."""
    seen: dict[str, None] = {}
    for tok in _TOKEN_RE.findall((query or "").lower()):
        seen.setdefault(tok, None)
    return list(seen)


def rank(results: Iterable[SearchResult], similarity_threshold: float = 0.0) -> list[SearchResult]:
    """Drop results under the threshold; order by non-increasing score. Ties keep input order."""
    kept = [r for r in results if r.score >= similarity_threshold]
    kept.sort(key=lambda r: r.score, reverse=True)
    return kept


def score_summary(tokens: list[str], summary: MarketSummary) -> float:
    """Fraction of query tokens found in the slug or equal to the ticker."""
    if not tokens:
        return 0.0
    slug = summary.slug.lower()
    ticker = (summary.ticker or "").lower()
    hits = sum(1 for t in tokens if t in slug or t == ticker)
    return hits / len(tokens)


class Resolver:
    """Turn market names into canonical slugs. No match is an empty list, never an error."""

    def __init__(
        self,
        client: MarketApiClient,
        cache: MarketIndexCache | None = None,
        search_limit: int = 10,
        similarity_threshold: float = 0.5,
    ) -> None:
        self._client = client
        self._cache = cache
        self.search_limit = search_limit
        self.similarity_threshold = similarity_threshold

    def search(
        self,
        query: str,
        limit: int | None = None,
        similarity_threshold: float | None = None,
    ) -> list[SearchResult]:
        """Remote search only, ranked by descending score."""
        if not (query or "").strip():
            return []
        threshold = self.similarity_threshold if similarity_threshold is None else similarity_threshold
        if limit is None:
            limit = self.search_limit
        if limit <= 0:
            return []
        results = self._client.search(query.strip(), limit=limit, similarity_threshold=threshold)
        return rank(results, threshold)[:limit]

    def search_index(
        self,
        query: str,
        limit: int | None = None,
        similarity_threshold: float | None = None,
    ) -> list[SearchResult]:
        """Bulk-list fallback: score cached index entries against the query tokens."""
        if self._cache is None:
            return []
        tokens = tokenize(query)
        if limit is None:
            limit = self.search_limit
        if not tokens or limit <= 0:
            return []
        if not self._cache.is_loaded:
            self._cache.refresh()
        threshold = self.similarity_threshold if similarity_threshold is None else similarity_threshold
        scored = []
        for s in self._cache.all():
            score = score_summary(tokens, s)
            if score > 0:
                scored.append(SearchResult(slug=s.slug, title=s.slug, score=score))
        return rank(scored, threshold)[:limit]

    def resolve(
        self,
        query: str,
        limit: int | None = None,
        similarity_threshold: float | None = None,
    ) -> list[SearchResult]:
        """Remote search first; if it finds nothing, filter the bulk listing."""
        results = self.search(query, limit=limit, similarity_threshold=similarity_threshold)
        if results:
            return results
        fallback = self.search_index(query, limit=limit, similarity_threshold=similarity_threshold)
        log.info("search_fallback", query=query, candidates=len(fallback))
        return fallback

    def resolve_one(self, query: str, similarity_threshold: float | None = None) -> str | None:
        """Best slug for the query, or None."""
        results = self.resolve(query, similarity_threshold=similarity_threshold)
        return results[0].slug if results else None

    def categories(self) -> list[Category]:
        return self._client.category_counts()

    def category_slugs(
        self,
        category_id: str | int,
        filters: Iterable[str] = (),
        limit: int | None = None,
        sort_by: str | None = None,
    ) -> list[str]:
        """Slugs of active markets in a category whose slug or title contains every filter substring."""
        needles = [f.lower() for f in filters if f]
        markets = self._client.active_markets(category_id, limit=limit, sort_by=sort_by)
        out = []
        for m in markets:
            slug, title = m.slug.lower(), m.title.lower()
            if all(n in slug or n in title for n in needles):
                out.append(m.slug)
        return out
