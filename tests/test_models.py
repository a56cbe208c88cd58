"""Model validation: position ids as strings, timestamps, score bounds."""

import json
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from predresolve.models import Market, MarketSummary, SearchResult, parse_timestamp


def test_position_ids_keep_full_precision_as_strings():
    big = 2**256
    m = Market(slug="m", position_ids=[big, str(big + 1)])
    assert m.position_ids == [str(big), str(big + 1)]
    assert m.yes_position_id == str(big)
    assert m.no_position_id == str(big + 1)

    dumped = json.loads(m.model_dump_json())
    assert dumped["position_ids"] == [str(big), str(big + 1)]
    assert Market.model_validate_json(m.model_dump_json()) == m


def test_position_ids_json_encoded_string_does_not_pass_through_float():
    big = 2**256 + 12345
    m = Market(slug="m", position_ids=f"[{big}, {big + 1}]")
    assert m.position_ids == [str(big), str(big + 1)]


@pytest.mark.parametrize("bad", [[1.5, 2], [True, False], ["0xabc", "1"], ["-5", "1"], ["1", "2", "3"], ["1"]])
def test_position_ids_rejects_lossy_or_malformed(bad):
    with pytest.raises(ValidationError):
        Market(slug="m", position_ids=bad)


def test_market_without_position_ids():
    m = Market(slug="group-market")
    assert m.position_ids == []
    assert m.yes_position_id is None


def test_parse_timestamp_forms_agree():
    expected = datetime(2025, 1, 13, 7, 0, tzinfo=timezone.utc)
    assert parse_timestamp("2025-01-13T07:00:00.000Z") == expected
    assert parse_timestamp(1736751600000) == expected
    assert parse_timestamp(1736751600) == expected
    assert parse_timestamp("1736751600000") == expected
    assert parse_timestamp(datetime(2025, 1, 13, 7, 0)) == expected
    assert parse_timestamp(None) is None


def test_parse_timestamp_rejects_garbage():
    with pytest.raises(ValueError):
        parse_timestamp("next tuesday")


def test_summary_is_expired():
    s = MarketSummary(slug="s", deadline="2025-01-13T07:00:00Z")
    assert s.is_expired(datetime(2025, 1, 13, 7, 0, tzinfo=timezone.utc))
    assert not s.is_expired(datetime(2025, 1, 13, 6, 59, tzinfo=timezone.utc))
    assert not MarketSummary(slug="open").is_expired()


def test_search_result_score_bounds():
    assert SearchResult(slug="a", score=0).score == 0
    assert SearchResult(slug="a", score=1).score == 1
    with pytest.raises(ValidationError):
        SearchResult(slug="a", score=1.2)
    with pytest.raises(ValidationError):
        SearchResult(slug="", score=0.5)


@pytest.mark.parametrize("value", [10**20, 10**30, str(10**25), float("inf")])
def test_parse_timestamp_out_of_range_is_value_error(value):
    with pytest.raises(ValueError):
        parse_timestamp(value)
    with pytest.raises(ValidationError):
        MarketSummary(slug="far-future", deadline=value)
