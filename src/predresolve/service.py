"""Service wiring - one client shared by resolver, index cache and detail fetcher."""

from __future__ import annotations

import time
from pathlib import Path
from typing import Any, Callable

import duckdb
import httpx
import structlog

from predresolve.cache import MarketIndexCache
from predresolve.config.settings import Settings
from predresolve.errors import RemoteApiError
from predresolve.fetcher import DetailFetcher
from predresolve.remote.client import MarketApiClient
from predresolve.resolver import Resolver
from predresolve.storage.db import get_connection, init_schema
from predresolve.storage.index import load_index, save_index

log = structlog.get_logger(__name__)


class MarketService:
    """Builds and owns the client, index cache, resolver and fetcher."""

    def __init__(
        self,
        client: MarketApiClient,
        db_path: str | Path | None = None,
        search_limit: int = 10,
        similarity_threshold: float = 0.5,
        refresh_interval_sec: int = 3600,
    ):
        self.client = client
        self.db_path = Path(db_path) if db_path is not None else None
        self.refresh_interval_sec = refresh_interval_sec
        self.cache = MarketIndexCache(client)
        self.resolver = Resolver(
            client,
            cache=self.cache,
            search_limit=search_limit,
            similarity_threshold=similarity_threshold,
        )
        self.fetcher = DetailFetcher(client, cache=self.cache)

    @classmethod
    def from_settings(cls, settings: Settings, transport: httpx.BaseTransport | None = None) -> MarketService:
        client = MarketApiClient(
            base_url=settings.api_base_url,
            timeout=settings.request_timeout_sec,
            user_agent=settings.user_agent,
            transport=transport,
        )
        return cls(
            client,
            db_path=settings.db_path,
            search_limit=settings.search_limit,
            similarity_threshold=settings.similarity_threshold,
            refresh_interval_sec=settings.cache_refresh_interval_sec,
        )

    def load_index(self) -> int:
        """Load the last stored index into the cache. Returns entry count (0 if none stored)."""
        if self.db_path is None or not self.db_path.exists():
            return 0
        conn = get_connection(self.db_path)
        try:
            init_schema(conn)
            entries, refreshed_at = load_index(conn)
        finally:
            conn.close()
        if refreshed_at is not None:
            self.cache.replace(entries, refreshed_at=refreshed_at)
        return len(entries)

    def sync_index(self) -> int:
        """Refresh the index from the remote listing and persist it. Returns entry count."""
        snap = self.cache.refresh()
        if self.db_path is not None:
            conn = get_connection(self.db_path)
            try:
                init_schema(conn)
                save_index(conn, snap)
            finally:
                conn.close()
        return len(snap.entries)

    def ensure_index(self) -> None:
        """Load the stored index, refreshing from remote if missing or older than the refresh interval."""
        if not self.cache.is_loaded:
            self.load_index()
        age = self.cache.age()
        if age is None or age >= self.refresh_interval_sec:
            self.sync_index()

    def watch_index(
        self,
        stop: Callable[[], bool],
        on_sync: Callable[[int], Any] | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Re-sync every refresh_interval_sec until stop() is true. A failed sync is logged and keeps the old index."""
        while not stop():
            try:
                count = self.sync_index()
                if on_sync is not None:
                    on_sync(count)
            except (RemoteApiError, duckdb.Error) as e:
                log.warning("index_sync_failed", error=str(e), retryable=getattr(e, "retryable", False))
            if stop():
                break
            sleep(self.refresh_interval_sec)

    def close(self) -> None:
        self.client.close()
