"""FastAPI read-only facade over the resolver, index cache and detail fetcher."""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path

from fastapi import FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from predresolve.api.schemas import (
    CategoriesResponse,
    CategorySlugsResponse,
    ErrorResponse,
    HealthResponse,
    IndexResponse,
    ResolveResponse,
    SearchResponse,
)
from predresolve.config import get_settings
from predresolve.errors import MarketNotFoundError, RemoteApiError, TransientFetchError
from predresolve.models import Market, parse_timestamp
from predresolve.service import MarketService

# Set by run_api() so the lifespan builds the service from the chosen profile and config dir.
_config_profile: str | None = None
_config_dir: str | Path | None = None

_ERROR_RESPONSES = {
    404: {"description": "Market not found", "model": ErrorResponse},
    502: {"description": "Remote API error", "model": ErrorResponse},
    503: {"description": "Remote API unavailable, retry later", "model": ErrorResponse},
}


def _error_json(code: str, message: str, status_code: int = 404, hint: str | None = None) -> JSONResponse:
    """Return consistent error JSON: { detail, code, hint }."""
    return JSONResponse(
        status_code=status_code,
        content={"detail": message, "code": code, "hint": hint},
    )


def _status_for(exc: RemoteApiError) -> int:
    if isinstance(exc, MarketNotFoundError):
        return 404
    if isinstance(exc, TransientFetchError):
        return 503
    return 502


def _service(request: Request) -> MarketService:
    return request.app.state.service


def create_app(service: MarketService | None = None) -> FastAPI:
    """Build the app. Without a service, one is built from settings at startup and closed at shutdown."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = None
        if getattr(app.state, "service", None) is None:
            owned = MarketService.from_settings(get_settings(_config_profile, _config_dir))
            owned.load_index()
            app.state.service = owned
        yield
        if owned is not None:
            owned.close()

    app = FastAPI(title="predresolve API", version="0.1.0", lifespan=lifespan)
    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["GET", "POST"], allow_headers=["*"])
    app.state.service = service

    @app.exception_handler(RemoteApiError)
    async def remote_error_handler(request: Request, exc: RemoteApiError) -> JSONResponse:
        return _error_json(exc.code, exc.detail, status_code=_status_for(exc), hint=exc.hint)

    @app.get("/health", response_model=HealthResponse)
    def health(request: Request) -> HealthResponse:
        cache = _service(request).cache
        return HealthResponse(status="ok", index_entries=len(cache), index_refreshed_at=cache.refreshed_at)

    @app.get("/search", response_model=SearchResponse, responses=_ERROR_RESPONSES)
    def search(
        request: Request,
        query: str = Query(..., description="Free-text market name"),
        limit: int | None = Query(None, ge=1, le=100),
        similarity_threshold: float | None = Query(None, ge=0, le=1),
    ) -> SearchResponse:
        """Remote search, ranked by descending score."""
        results = _service(request).resolver.search(query, limit=limit, similarity_threshold=similarity_threshold)
        return SearchResponse(query=query, results=results, total=len(results))

    @app.get("/resolve", response_model=ResolveResponse, responses=_ERROR_RESPONSES)
    def resolve(
        request: Request,
        query: str = Query(...),
        limit: int | None = Query(None, ge=1, le=100),
        similarity_threshold: float | None = Query(None, ge=0, le=1),
    ) -> ResolveResponse:
        """Search with bulk-listing fallback. slug is null when nothing matched."""
        results = _service(request).resolver.resolve(query, limit=limit, similarity_threshold=similarity_threshold)
        return ResolveResponse(query=query, slug=results[0].slug if results else None, candidates=results)

    @app.get("/categories", response_model=CategoriesResponse, responses=_ERROR_RESPONSES)
    def categories(request: Request) -> CategoriesResponse:
        cats = _service(request).resolver.categories()
        return CategoriesResponse(categories=cats, total=len(cats))

    @app.get("/categories/{category_id}/slugs", response_model=CategorySlugsResponse, responses=_ERROR_RESPONSES)
    def category_slugs(
        request: Request,
        category_id: str,
        filters: list[str] | None = Query(None, alias="filter", description="Substrings every slug/title must contain"),
        limit: int | None = Query(None, ge=1, le=100),
        sort_by: str | None = Query(None),
    ) -> CategorySlugsResponse:
        slugs = _service(request).resolver.category_slugs(
            category_id, filters=filters or (), limit=limit, sort_by=sort_by
        )
        return CategorySlugsResponse(category_id=category_id, slugs=slugs, total=len(slugs))

    @app.get("/index", response_model=IndexResponse)
    def index(
        request: Request,
        ticker: str | None = None,
        slug_contains: str | None = None,
        deadline_after: datetime | None = None,
        deadline_before: datetime | None = None,
        limit: int = Query(500, ge=1, le=5000),
        offset: int = Query(0, ge=0),
    ) -> IndexResponse:
        """Filter the local index. Does not refresh it."""
        cache = _service(request).cache
        entries = cache.filter(
            ticker=ticker,
            slug_contains=slug_contains,
            deadline_after=parse_timestamp(deadline_after),
            deadline_before=parse_timestamp(deadline_before),
        )
        return IndexResponse(
            entries=entries[offset : offset + limit],
            total=len(entries),
            refreshed_at=cache.refreshed_at,
        )

    @app.post("/index/refresh", response_model=IndexResponse, responses=_ERROR_RESPONSES)
    def index_refresh(request: Request) -> IndexResponse:
        svc = _service(request)
        svc.sync_index()
        return IndexResponse(entries=[], total=len(svc.cache), refreshed_at=svc.cache.refreshed_at)

    @app.get("/markets/{slug}", response_model=Market, responses=_ERROR_RESPONSES)
    def market_detail(request: Request, slug: str) -> Market:
        """Full market record. 404 if the slug does not exist."""
        return _service(request).fetcher.fetch(slug)

    return app


app = create_app()


def run_api(
    host: str = "127.0.0.1",
    port: int = 8000,
    profile: str | None = None,
    config_dir: str | Path | None = None,
) -> None:
    global _config_profile, _config_dir
    _config_profile = profile
    _config_dir = config_dir
    import uvicorn
    uvicorn.run("predresolve.api.main:app", host=host, port=port, reload=False)
