"""Remote API payloads -> canonical Market / MarketSummary / SearchResult / Category."""

from __future__ import annotations

from typing import Any

import structlog
from pydantic import ValidationError

from predresolve.models import Category, Market, MarketSummary, SearchResult

log = structlog.get_logger(__name__)


def _first(raw: dict[str, Any], *keys: str) -> Any:
    """Value of the first key present and not None."""
    for key in keys:
        value = raw.get(key)
        if value is not None:
            return value
    return None


def _float(s: Any) -> float | None:
    if s is None or s == "":
        return None
    try:
        return float(s)
    except (TypeError, ValueError):
        return None


def unwrap_rows(data: Any, *keys: str) -> list[dict[str, Any]]:
    """Accept a bare list or an envelope like {"data": [...]} / {"markets": [...]}."""
    if isinstance(data, dict):
        for key in keys or ("data", "markets", "results"):
            if isinstance(data.get(key), list):
                data = data[key]
                break
        else:
            return []
    if not isinstance(data, list):
        return []
    return [row for row in data if isinstance(row, dict)]


def _position_ids(raw: dict[str, Any]) -> Any:
    """positionIds, or the tokens object ({yes, no} or {yesTokenId, noTokenId})."""
    ids = raw.get("positionIds")
    if ids:
        return ids
    tokens = raw.get("tokens")
    if isinstance(tokens, dict):
        yes = _first(tokens, "yes", "yesTokenId")
        no = _first(tokens, "no", "noTokenId")
        if yes is not None and no is not None:
            return [yes, no]
    return []


def _category_ids(raw: dict[str, Any]) -> list[str]:
    cats = raw.get("categories") or raw.get("categoryIds") or []
    if isinstance(cats, (str, int)):
        cats = [cats]
    out = []
    for c in cats:
        if isinstance(c, dict):
            c = _first(c, "id", "name")
        if c is not None:
            out.append(str(c))
    return out


def parse_summary(raw: dict[str, Any]) -> MarketSummary:
    """Convert one active-slugs row to MarketSummary."""
    return MarketSummary(
        slug=str(raw.get("slug") or ""),
        ticker=_first(raw, "ticker", "underlying"),
        strike_price=_float(_first(raw, "strikePrice", "strike_price")),
        deadline=_first(raw, "deadline", "expirationTimestamp", "expirationDate"),
    )


def parse_market(raw: dict[str, Any]) -> Market:
    """Convert a remote market object to canonical Market."""
    known = {
        "slug", "title", "question", "ticker", "underlying", "strikePrice", "deadline",
        "expirationTimestamp", "expirationDate", "status", "volume", "volumeFormatted",
        "liquidity", "liquidityFormatted", "positionIds", "tokens", "categories", "categoryIds",
    }
    return Market(
        slug=str(raw.get("slug") or ""),
        title=str(_first(raw, "title", "question") or ""),
        ticker=_first(raw, "ticker", "underlying"),
        strike_price=_float(_first(raw, "strikePrice", "strike_price")),
        deadline=_first(raw, "expirationTimestamp", "deadline", "expirationDate"),
        status=_first(raw, "status"),
        volume=_float(_first(raw, "volumeFormatted", "volume")) or 0.0,
        liquidity=_float(_first(raw, "liquidityFormatted", "liquidity")) or 0.0,
        position_ids=_position_ids(raw),
        category_ids=_category_ids(raw),
        extra={k: v for k, v in raw.items() if k not in known},
    )


def parse_search_result(raw: dict[str, Any]) -> SearchResult:
    score = _float(_first(raw, "score", "similarity", "relevance"))
    return SearchResult(
        slug=str(raw.get("slug") or ""),
        title=str(_first(raw, "title", "question") or ""),
        score=score if score is not None else 0.0,
    )


def parse_category_counts(data: Any) -> list[Category]:
    """{"category": {"2": 12, ...}} or a list of {id, name, count} rows. Bad entries are skipped."""
    if isinstance(data, dict) and isinstance(data.get("category"), dict):
        rows = [{"id": cid, "count": count} for cid, count in data["category"].items()]
    else:
        rows = unwrap_rows(data, "data", "categories")
    out = []
    for row in rows:
        cid = _first(row, "id", "categoryId")
        try:
            out.append(
                Category(
                    category_id=str(cid if cid is not None else ""),
                    name=row.get("name"),
                    count=_first(row, "count", "marketsCount") or 0,
                )
            )
        except ValidationError as e:
            log.warning("skip_category", category_id=cid, error=str(e))
    return out


def parse_rows(rows: list[dict[str, Any]], parser: Any, kind: str) -> list[Any]:
    """Apply parser to each row; skip (and log) rows that fail validation."""
    out = []
    for row in rows:
        try:
            out.append(parser(row))
        except (ValidationError, ValueError, TypeError) as e:
            log.warning("skip_" + kind, slug=row.get("slug"), error=str(e))
    return out
