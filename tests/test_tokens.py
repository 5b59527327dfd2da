#!/usr/bin/env python3
"""
Test token-level queries.
"""
import asyncio

import pytest

from migration_analytics.engines.grouping import tokens
from migration_analytics.engines.grouping.errors import InputError
from migration_analytics.engines.grouping.filters import QueryFilters
from migration_analytics.ingestion.store import InMemoryRecordStore
from factories import make_token


def _store():
    return InMemoryRecordStore([
        make_token(mint="A", max_sol=10.0, mint_slot_sol=3.0, first_slot_sol=1.0, mint_pattern="x", jito=0.01),
        make_token(mint="B", max_sol=4.0, mint_slot_sol=1.0, first_slot_sol=2.0, mint_pattern="x", migrated=True),
        make_token(mint="C", max_sol=2.0, mint_slot_sol=0.0, mint_buy_amt=0.5, mint_pattern="y", extended=True),
        make_token(mint="D", max_sol=0.0, mint_slot_sol=1.0, mint_pattern="", migrate_time=1_700_000_500),
    ])


def _run(coro):
    return asyncio.run(coro)


def test_most_profitable_tokens_uses_lower_slot():
    rows = _run(tokens.most_profitable_tokens(_store()))

    assert [r["mint"] for r in rows] == ["A", "B", "C", "D"]
    assert rows[0]["buy_price_sol"] == 1.0
    assert rows[0]["rise_sol"] == 9.0
    # empty first slot -> creator buy amount
    assert rows[2]["buy_price_sol"] == 0.5
    assert rows[2]["rise_sol"] == 1.5


def test_most_profitable_tokens_min_rise_and_limit():
    rows = _run(tokens.most_profitable_tokens(_store(), limit=5, min_rise_sol=2.0))
    assert [r["mint"] for r in rows] == ["A", "B"]

    assert len(_run(tokens.most_profitable_tokens(_store(), limit=1))) == 1


def test_negative_limit_rejected():
    with pytest.raises(InputError):
        _run(tokens.most_profitable_tokens(_store(), limit=-1))
    with pytest.raises(InputError):
        _run(tokens.pattern_frequency(_store(), limit=-1))


def test_pattern_frequency_skips_empty_patterns():
    rows = _run(tokens.pattern_frequency(_store()))

    assert rows[0] == {"mint_pattern": "x", "count": 2, "avg_max_sol": 7.0, "tokens": ["A", "B"]}
    assert [r["mint_pattern"] for r in rows] == ["x", "y"]


def test_token_overview():
    overview = _run(tokens.token_overview(_store()))

    assert overview["total_tokens"] == 4
    assert overview["avg_max_sol"] == 4.0
    assert overview["migrated_count"] == 2
    assert overview["extended_count"] == 1
    assert overview["jito_count"] == 1
    assert overview["photon_count"] == 0


def test_token_overview_with_filters():
    overview = _run(tokens.token_overview(_store(), QueryFilters(min_max_sol=3)))
    assert overview["total_tokens"] == 2


def test_token_overview_of_empty_store():
    overview = _run(tokens.token_overview(InMemoryRecordStore()))
    assert overview["total_tokens"] == 0
    assert overview["avg_max_sol"] == 0.0
