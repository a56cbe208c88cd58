"""Resolver: ranking, fallback to the bulk listing, category slugs."""

import pytest

from conftest import BTC_JAN13, BTC_JAN14, ETH_JAN13
from predresolve.cache import MarketIndexCache
from predresolve.errors import MarketNotFoundError
from predresolve.fetcher import DetailFetcher
from predresolve.models import MarketSummary, SearchResult
from predresolve.resolver import Resolver, rank, score_summary, tokenize


@pytest.fixture
def resolver(client):
    return Resolver(client, cache=MarketIndexCache(client), search_limit=10, similarity_threshold=0.5)


def test_search_1hr_btc_ordered_by_non_increasing_score(resolver):
    results = resolver.search("1hr BTC", similarity_threshold=0.5)
    scores = [r.score for r in results]
    assert scores == sorted(scores, reverse=True)
    assert all(s >= 0.5 for s in scores)
    assert [r.slug for r in results] == [BTC_JAN13, BTC_JAN14, ETH_JAN13]


def test_search_respects_limit(resolver):
    assert [r.slug for r in resolver.search("1hr BTC", limit=1)] == [BTC_JAN13]


def test_explicit_zero_limit_returns_nothing(resolver, fake_api):
    assert resolver.search("1hr BTC", limit=0) == []
    assert resolver.resolve("1hr BTC", limit=0) == []
    assert fake_api.calls == []
    assert len(resolver.search("1hr BTC", limit=None)) == 3


def test_rank_ties_keep_remote_order():
    results = [
        SearchResult(slug="first", score=0.7),
        SearchResult(slug="top", score=0.9),
        SearchResult(slug="second", score=0.7),
    ]
    assert [r.slug for r in rank(results)] == ["top", "first", "second"]


def test_blank_query_makes_no_remote_call(resolver, fake_api):
    assert resolver.search("   ") == []
    assert resolver.resolve("") == []
    assert fake_api.calls == []


def test_no_match_is_empty_not_error(resolver, fake_api):
    fake_api.set("/markets/search", {"markets": []})
    assert resolver.resolve("dogecoin flippening") == []
    assert resolver.resolve_one("dogecoin flippening") is None


def test_resolve_falls_back_to_bulk_listing(resolver, fake_api):
    fake_api.set("/markets/search", {"markets": []})
    results = resolver.resolve("BTC 97000")
    # Index was never loaded, so the fallback refreshed it.
    assert len(fake_api.calls_to("/markets/active/slugs")) == 1
    assert [(r.slug, r.score) for r in results] == [(BTC_JAN13, 1.0), (BTC_JAN14, 0.5)]
    assert resolver.resolve_one("BTC 97000") == BTC_JAN13
    # Second fallback reuses the loaded index.
    assert len(fake_api.calls_to("/markets/active/slugs")) == 1


def test_fallback_threshold(resolver, fake_api):
    fake_api.set("/markets/search", {"markets": []})
    results = resolver.resolve("btc 97000 jan", similarity_threshold=0.9)
    assert [r.slug for r in results] == [BTC_JAN13]


def test_resolve_prefers_remote_search(resolver, fake_api):
    results = resolver.resolve("1hr BTC")
    assert results[0].slug == BTC_JAN13
    assert fake_api.calls_to("/markets/active/slugs") == []


def test_resolver_without_cache_has_no_fallback(client, fake_api):
    fake_api.set("/markets/search", {"markets": []})
    assert Resolver(client).resolve("btc") == []


def test_every_resolved_slug_fetches_or_is_not_found(resolver, client):
    fetcher = DetailFetcher(client)
    slugs = [r.slug for r in resolver.resolve("1hr BTC", similarity_threshold=0.0)]
    assert slugs
    outcomes = {}
    for slug in slugs:
        try:
            outcomes[slug] = fetcher.fetch(slug).slug
        except MarketNotFoundError:
            outcomes[slug] = None
    assert outcomes[BTC_JAN13] == BTC_JAN13
    assert outcomes[ETH_JAN13] is None


def test_category_slugs_with_filters(resolver, fake_api):
    assert resolver.category_slugs(2) == [BTC_JAN13, ETH_JAN13, BTC_JAN14]
    assert resolver.category_slugs(2, filters=["btc"]) == [BTC_JAN13, BTC_JAN14]
    assert resolver.category_slugs(2, filters=["BTC", "jan 14"]) == [BTC_JAN14]
    assert resolver.category_slugs(2, filters=["solana"]) == []
    # Each filter must match within the slug or within the title, not across both.
    assert resolver.category_slugs(2, filters=["2020 $btc"]) == []
    assert resolver.category_slugs(2, filters=["jan-14", "jan 14"]) == [BTC_JAN14]


def test_categories(resolver):
    assert {c.category_id for c in resolver.categories()} == {"2", "5"}


def test_tokenize_and_score():
    assert tokenize("1hr  BTC, btc 97.5k") == ["1hr", "btc", "97.5k"]
    s = MarketSummary(slug="btc-above-97000-on-jan-13", ticker="BTC")
    assert score_summary(["btc", "97000"], s) == 1.0
    assert score_summary(["eth", "97000"], s) == 0.5
    assert score_summary([], s) == 0.0
