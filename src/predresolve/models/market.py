"""Market, MarketSummary, SearchResult, Category - canonical entities."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field, field_validator

# Epoch values above this are milliseconds (year 5138 in seconds).
_MS_THRESHOLD = 100_000_000_000


def normalize_position_id(value: Any) -> str:
    """Return a token id as its exact decimal string. Rejects anything that may have lost precision."""
    if isinstance(value, bool):
        raise ValueError("position id must be an integer or decimal string, got bool")
    if isinstance(value, int):
        if value < 0:
            raise ValueError("position id must be non-negative")
        return str(value)
    if isinstance(value, str):
        s = value.strip()
        if s and s.isascii() and s.isdigit():
            return s
        raise ValueError(f"position id is not a decimal integer string: {value!r}")
    raise ValueError(f"position id must be an integer or decimal string, got {type(value).__name__}")


def parse_timestamp(value: Any) -> datetime | None:
    """ISO-8601 string, epoch seconds or epoch ms (number or digit string) -> aware UTC datetime."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        value = int(value.strip())
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        seconds = value / 1000 if abs(value) >= _MS_THRESHOLD else value
        try:
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError) as e:
            raise ValueError(f"timestamp out of range: {value!r}") from e
    if isinstance(value, str):
        dt = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)
    raise ValueError(f"unsupported timestamp: {value!r}")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MarketSummary(BaseModel):
    """Lightweight index entry from the bulk active-slugs listing."""

    slug: str = Field(..., min_length=1)
    ticker: str | None = None
    strike_price: float | None = None
    deadline: datetime | None = None

    @field_validator("deadline", mode="before")
    @classmethod
    def validate_deadline(cls, v: Any) -> datetime | None:
        return parse_timestamp(v)

    def is_expired(self, now: datetime | None = None) -> bool:
        return self.deadline is not None and self.deadline <= (now or _utcnow())


class Market(BaseModel):
    """Full market record. Owned by the remote service; local copies are read-only snapshots."""

    slug: str = Field(..., min_length=1)
    title: str = ""
    ticker: str | None = None
    strike_price: float | None = None
    deadline: datetime | None = None
    status: str | None = None
    volume: float = 0.0
    liquidity: float = 0.0
    position_ids: list[str] = Field(default_factory=list)  # [YES, NO]
    category_ids: list[str] = Field(default_factory=list)
    extra: dict[str, Any] = Field(default_factory=dict)

    @field_validator("deadline", mode="before")
    @classmethod
    def validate_deadline(cls, v: Any) -> datetime | None:
        return parse_timestamp(v)

    @field_validator("position_ids", mode="before")
    @classmethod
    def validate_position_ids(cls, v: Any) -> list[str]:
        if v is None or v == "":
            return []
        if isinstance(v, str):
            # Some payloads carry the pair as a JSON-encoded string; keep big ints exact.
            v = json.loads(v, parse_int=str)
        if not isinstance(v, (list, tuple)):
            raise ValueError("position_ids must be a list")
        ids = [normalize_position_id(x) for x in v]
        if len(ids) not in (0, 2):
            raise ValueError(f"position_ids must be empty or a [YES, NO] pair, got {len(ids)} ids")
        return ids

    @field_validator("category_ids", mode="before")
    @classmethod
    def validate_category_ids(cls, v: Any) -> list[str]:
        if not v:
            return []
        return [str(x) for x in v]

    @property
    def yes_position_id(self) -> str | None:
        return self.position_ids[0] if self.position_ids else None

    @property
    def no_position_id(self) -> str | None:
        return self.position_ids[1] if self.position_ids else None

    def is_expired(self, now: datetime | None = None) -> bool:
        return self.deadline is not None and self.deadline <= (now or _utcnow())


class SearchResult(BaseModel):
    """One ranked search candidate."""

    slug: str = Field(..., min_length=1)
    title: str = ""
    score: float = Field(..., ge=0, le=1, description="Relevance in [0, 1]")


class Category(BaseModel):
    """Market category with its active market count."""

    category_id: str
    name: str | None = None
    count: int = Field(0, ge=0)
