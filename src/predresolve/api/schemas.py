"""Pydantic schemas for API request/response consistency and OpenAPI docs."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from predresolve.models import Category, MarketSummary, SearchResult


# --- Health ---
class HealthResponse(BaseModel):
    status: str = "ok"
    index_entries: int = 0
    index_refreshed_at: datetime | None = None


# --- Error (consistent shape for 4xx/5xx) ---
class ErrorResponse(BaseModel):
    detail: str = Field(..., description="Human-readable message")
    code: str | None = Field(None, description="Machine-readable code, e.g. not_found, upstream_unavailable")
    hint: str | None = Field(None, description="How to fix the request, when known")


# --- Search / resolve ---
class SearchResponse(BaseModel):
    query: str
    results: list[SearchResult]
    total: int


class ResolveResponse(BaseModel):
    query: str
    slug: str | None = Field(None, description="Best candidate; null when nothing matched")
    candidates: list[SearchResult] = Field(default_factory=list)


# --- Categories ---
class CategoriesResponse(BaseModel):
    categories: list[Category]
    total: int


class CategorySlugsResponse(BaseModel):
    category_id: str
    slugs: list[str]
    total: int


# --- Index ---
class IndexResponse(BaseModel):
    entries: list[MarketSummary]
    total: int
    refreshed_at: datetime | None = None
