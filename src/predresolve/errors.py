"""Structured errors for remote API failures and caller misuse."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    import httpx


class ClientMode(str, Enum):
    """Login client modes documented by the remote API. Decides which address signs orders."""

    EOA = "eoa"
    SMART_WALLET = "smart_wallet"


class PredResolveError(Exception):
    """Base class for all predresolve errors."""


class RemoteApiError(PredResolveError):
    """Remote service answered with an error or an unusable body."""

    code = "upstream_error"
    retryable = False

    def __init__(self, detail: str, status_code: int | None = None, hint: str | None = None) -> None:
        super().__init__(detail)
        self.detail = detail
        self.status_code = status_code
        self.hint = hint

    def __str__(self) -> str:
        parts = [self.detail]
        if self.status_code is not None:
            parts.insert(0, f"HTTP {self.status_code}:")
        if self.hint:
            parts.append(f"({self.hint})")
        return " ".join(parts)

    def to_dict(self) -> dict[str, Any]:
        return {"detail": self.detail, "code": self.code, "hint": self.hint}


class TransientFetchError(RemoteApiError):
    """Timeout, connection failure, 429 or 5xx. Safe to retry later."""

    code = "upstream_unavailable"
    retryable = True


class MarketNotFoundError(RemoteApiError):
    """No market exists for the slug. Terminal for that slug."""

    code = "not_found"

    def __init__(self, slug: str, status_code: int | None = 404) -> None:
        super().__init__(f"Market not found: {slug}", status_code=status_code)
        self.slug = slug


class SignerMismatchError(RemoteApiError):
    """Order signer differs from the authenticated account."""

    code = "signer_mismatch"

    def __init__(self, detail: str, status_code: int | None = 400) -> None:
        super().__init__(
            detail,
            status_code=status_code,
            hint=(
                f"re-authenticate with client={ClientMode.EOA.value!r} when signing with the "
                "private-key address, or with the smart-wallet client when the smart wallet signs"
            ),
        )


class InvalidTokenIdError(RemoteApiError):
    """Token id (positionId) is stale, hardcoded, or belongs to another market."""

    code = "invalid_token_id"

    def __init__(self, detail: str, status_code: int | None = None) -> None:
        super().__init__(
            detail,
            status_code=status_code,
            hint="re-fetch positionIds from the current market record",
        )


_SIGNER_MARKERS = ("signer does not match",)
_TOKEN_MARKERS = ("invalid token id", "position not found")


def _response_detail(response: httpx.Response) -> str:
    """Pull a human-readable message out of an error body (JSON or text)."""
    try:
        body = response.json()
    except ValueError:
        return response.text.strip() or response.reason_phrase
    if isinstance(body, dict):
        for key in ("message", "detail", "error"):
            value = body.get(key)
            if isinstance(value, list):
                value = "; ".join(str(v) for v in value)
            if value:
                return str(value)
    return str(body)


def error_from_response(response: httpx.Response, slug: str | None = None) -> RemoteApiError:
    """Map a non-2xx response to the matching structured error."""
    status = response.status_code
    detail = _response_detail(response)
    lowered = detail.lower()
    if any(m in lowered for m in _SIGNER_MARKERS):
        return SignerMismatchError(detail, status_code=status)
    if any(m in lowered for m in _TOKEN_MARKERS):
        return InvalidTokenIdError(detail, status_code=status)
    if status == 404 and slug is not None:
        return MarketNotFoundError(slug, status_code=status)
    if status == 429 or status >= 500:
        return TransientFetchError(detail, status_code=status)
    return RemoteApiError(detail, status_code=status)
