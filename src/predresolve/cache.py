"""Market index cache - slug -> MarketSummary, replaced wholesale on refresh."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import TYPE_CHECKING, Callable, Iterable, Mapping

import structlog

from predresolve.models import MarketSummary

if TYPE_CHECKING:
    from predresolve.remote.client import MarketApiClient

log = structlog.get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class IndexSnapshot:
    """Immutable view of one bulk listing. Never mutated after construction."""

    entries: tuple[MarketSummary, ...] = ()
    by_slug: Mapping[str, MarketSummary] = field(default_factory=lambda: MappingProxyType({}))
    refreshed_at: datetime | None = None

    @classmethod
    def build(cls, summaries: Iterable[MarketSummary], refreshed_at: datetime | None = None) -> IndexSnapshot:
        by_slug: dict[str, MarketSummary] = {}
        for s in summaries:
            # Last row wins for duplicate slugs; listing order follows first appearance.
            by_slug[s.slug] = s
        return cls(
            entries=tuple(by_slug.values()),
            by_slug=MappingProxyType(by_slug),
            refreshed_at=refreshed_at,
        )


class MarketIndexCache:
    """
    Local index of active markets.

    Readers go through self._snapshot without locking: refresh/replace/invalidate build a
    new IndexSnapshot and swap the reference in one assignment, so a reader sees either the
    old index or the new one, never a mix. Writers serialize on a lock.
    Entries never expire on their own; callers pick the refresh cadence.
    """

    def __init__(self, client: MarketApiClient | None = None) -> None:
        self._client = client
        self._snapshot = IndexSnapshot()
        self._write_lock = threading.Lock()

    @property
    def snapshot(self) -> IndexSnapshot:
        return self._snapshot

    @property
    def is_loaded(self) -> bool:
        return self._snapshot.refreshed_at is not None

    @property
    def refreshed_at(self) -> datetime | None:
        return self._snapshot.refreshed_at

    def age(self, now: datetime | None = None) -> float | None:
        """Seconds since the last refresh, or None if never loaded."""
        if self._snapshot.refreshed_at is None:
            return None
        return ((now or _utcnow()) - self._snapshot.refreshed_at).total_seconds()

    def refresh(self) -> IndexSnapshot:
        """Fetch the bulk listing and swap it in. On failure the previous index stays."""
        if self._client is None:
            raise RuntimeError("MarketIndexCache.refresh() needs a MarketApiClient")
        with self._write_lock:
            summaries = self._client.active_slugs()
            snap = IndexSnapshot.build(summaries, refreshed_at=_utcnow())
            self._snapshot = snap
        log.info("index_refreshed", entries=len(snap.entries))
        return snap

    def replace(self, summaries: Iterable[MarketSummary], refreshed_at: datetime | None = None) -> IndexSnapshot:
        """Swap in an index built from already-fetched entries (e.g. loaded from storage)."""
        snap = IndexSnapshot.build(summaries, refreshed_at=refreshed_at or _utcnow())
        with self._write_lock:
            self._snapshot = snap
        return snap

    def invalidate(self, slug: str) -> bool:
        """Drop one slug (after a fetch miss). Returns True if it was present."""
        with self._write_lock:
            current = self._snapshot
            if slug not in current.by_slug:
                return False
            self._snapshot = IndexSnapshot.build(
                (s for s in current.entries if s.slug != slug),
                refreshed_at=current.refreshed_at,
            )
        log.info("index_invalidated", slug=slug)
        return True

    def get(self, slug: str) -> MarketSummary | None:
        return self._snapshot.by_slug.get(slug)

    def __contains__(self, slug: object) -> bool:
        return slug in self._snapshot.by_slug

    def __len__(self) -> int:
        return len(self._snapshot.entries)

    def all(self) -> list[MarketSummary]:
        return list(self._snapshot.entries)

    def filter(
        self,
        ticker: str | None = None,
        slug_contains: str | None = None,
        deadline_after: datetime | None = None,
        deadline_before: datetime | None = None,
        predicate: Callable[[MarketSummary], bool] | None = None,
    ) -> list[MarketSummary]:
        """Linear scan of the current index. Deadline bounds are inclusive; entries without a deadline fail any bound."""
        snap = self._snapshot
        needle = slug_contains.lower() if slug_contains else None

        def keep(s: MarketSummary) -> bool:
            if ticker is not None and s.ticker != ticker:
                return False
            if needle is not None and needle not in s.slug.lower():
                return False
            if deadline_after is not None or deadline_before is not None:
                if s.deadline is None:
                    return False
                if deadline_after is not None and s.deadline < deadline_after:
                    return False
                if deadline_before is not None and s.deadline > deadline_before:
                    return False
            if predicate is not None and not predicate(s):
                return False
            return True

        return [s for s in snap.entries if keep(s)]

    def expired(self, now: datetime | None = None) -> list[MarketSummary]:
        """Entries whose deadline has passed. Treat these as stale."""
        now = now or _utcnow()
        return [s for s in self._snapshot.entries if s.is_expired(now)]

    def live(self, now: datetime | None = None) -> list[MarketSummary]:
        now = now or _utcnow()
        return [s for s in self._snapshot.entries if not s.is_expired(now)]
