"""Market index persistence - save/load a whole IndexSnapshot."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING

from predresolve.models import MarketSummary

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection

    from predresolve.cache import IndexSnapshot


def _to_ms(dt: datetime | None) -> int | None:
    return int(dt.timestamp() * 1000) if dt is not None else None


def _from_ms(ms: int | None) -> datetime | None:
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc) if ms is not None else None


def save_index(conn: DuckDBPyConnection, snapshot: IndexSnapshot) -> int:
    """Replace the stored index with snapshot in one transaction. Returns rows written."""
    rows = [
        [s.slug, i, s.ticker, s.strike_price, _to_ms(s.deadline)]
        for i, s in enumerate(snapshot.entries)
    ]
    refreshed_ms = _to_ms(snapshot.refreshed_at or datetime.now(timezone.utc))
    conn.execute("BEGIN TRANSACTION")
    try:
        conn.execute("DELETE FROM market_index")
        if rows:
            conn.executemany(
                "INSERT INTO market_index (slug, seq, ticker, strike_price, deadline) VALUES (?, ?, ?, ?, ?)",
                rows,
            )
        conn.execute("DELETE FROM index_meta")
        conn.execute(
            "INSERT INTO index_meta (id, refreshed_at, entry_count) VALUES (1, ?, ?)",
            [refreshed_ms, len(rows)],
        )
        conn.execute("COMMIT")
    except Exception:
        conn.execute("ROLLBACK")
        raise
    return len(rows)


def load_index(conn: DuckDBPyConnection) -> tuple[list[MarketSummary], datetime | None]:
    """Return (entries in listing order, refreshed_at). Empty list and None if never saved."""
    meta = conn.execute("SELECT refreshed_at FROM index_meta WHERE id = 1").fetchone()
    rows = conn.execute(
        "SELECT slug, ticker, strike_price, deadline FROM market_index ORDER BY seq"
    ).fetchall()
    entries = [
        MarketSummary(slug=slug, ticker=ticker, strike_price=strike, deadline=_from_ms(deadline))
        for slug, ticker, strike, deadline in rows
    ]
    return entries, _from_ms(meta[0]) if meta else None
