"""Canonical schema (Pydantic) - Market, MarketSummary, SearchResult, Category."""

from predresolve.models.market import (
    Category,
    Market,
    MarketSummary,
    SearchResult,
    normalize_position_id,
    parse_timestamp,
)

__all__ = [
    "Market",
    "MarketSummary",
    "SearchResult",
    "Category",
    "normalize_position_id",
    "parse_timestamp",
]
