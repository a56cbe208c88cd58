"""Error classification of remote responses."""

import httpx

from predresolve.errors import (
    ClientMode,
    InvalidTokenIdError,
    MarketNotFoundError,
    RemoteApiError,
    SignerMismatchError,
    TransientFetchError,
    error_from_response,
)


def test_signer_mismatch():
    err = error_from_response(httpx.Response(400, json={"message": "Signer does not match"}))
    assert isinstance(err, SignerMismatchError)
    assert err.status_code == 400
    assert err.code == "signer_mismatch"
    assert ClientMode.EOA.value in err.hint


def test_invalid_token_and_position_not_found():
    for message in ("Invalid token ID", "Position not found"):
        err = error_from_response(httpx.Response(400, json={"message": message}))
        assert isinstance(err, InvalidTokenIdError)
        assert "re-fetch positionIds" in err.hint


def test_message_list_is_joined():
    err = error_from_response(httpx.Response(400, json={"message": ["limit must be positive", "bad sort"]}))
    assert err.detail == "limit must be positive; bad sort"
    assert type(err) is RemoteApiError


def test_404_with_slug_is_not_found_without_slug_is_plain():
    with_slug = error_from_response(httpx.Response(404, json={"message": "Market not found"}), slug="abc")
    assert isinstance(with_slug, MarketNotFoundError)
    assert with_slug.slug == "abc"
    without_slug = error_from_response(httpx.Response(404, text="missing"))
    assert type(without_slug) is RemoteApiError
    assert without_slug.detail == "missing"


def test_retryable_statuses():
    assert isinstance(error_from_response(httpx.Response(429, text="slow down")), TransientFetchError)
    assert isinstance(error_from_response(httpx.Response(504, text="")), TransientFetchError)
    forbidden = error_from_response(httpx.Response(403, json={"detail": "forbidden"}))
    assert not forbidden.retryable
    assert forbidden.detail == "forbidden"


def test_str_and_to_dict():
    err = InvalidTokenIdError("Invalid token ID", status_code=400)
    assert str(err).startswith("HTTP 400: Invalid token ID")
    assert err.to_dict() == {"detail": "Invalid token ID", "code": "invalid_token_id", "hint": err.hint}
