#!/usr/bin/env python3
"""
Test the grouping service entry points against an in-memory store.

Tests:
1. compute_groups / top_groups / summary
2. simulate_thresholds: min rise, min tokens, sort, limit
3. Validation runs before any fetch
4. Store failures propagate unchanged
"""
import asyncio
import math

import pytest

from migration_analytics.engines.grouping import service
from migration_analytics.engines.grouping.errors import InputError
from migration_analytics.engines.grouping.filters import QueryFilters
from migration_analytics.ingestion.store import InMemoryRecordStore
from factories import group_of, make_token


class CountingStore(InMemoryRecordStore):
    def __init__(self, records=()):
        super().__init__(records)
        self.fetches = 0

    async def fetch_records(self, filters):
        self.fetches += 1
        return await super().fetch_records(filters)


class BrokenStore(InMemoryRecordStore):
    async def fetch_records(self, filters):
        raise ConnectionError("database unreachable")


def _records():
    return (
        group_of([0.2, 0.4, 1.9, 2.1, 3.8, 6.5], migrated=[True, False, True, True, False, True], mint_pattern="a")
        + group_of([1.5, 2.5], migrated=[True, True], mint_pattern="b")
        + group_of([0.5], migrated=[True], mint_pattern="solo")
        + group_of([0.0, 0.1, 0.3], mint_pattern="dust")
    )


def _run(coro):
    return asyncio.run(coro)


def test_compute_groups_end_to_end():
    store = InMemoryRecordStore(_records())
    groups = _run(service.compute_groups(store, {"mintPattern": True}))

    assert [g.group_key for g in groups] == ["pattern=a", "pattern=b", "pattern=solo", "pattern=dust"]
    a = groups[0]
    assert a.migration_rate == 66.67
    assert a.common_rise_sol == 0.4


def test_compute_groups_applies_filters():
    store = InMemoryRecordStore(_records())
    groups = _run(service.compute_groups(store, {"mintPattern": True}, QueryFilters(min_max_sol=1)))

    assert sum(g.total_tokens for g in groups) == 6
    assert all(t.max_sol >= 1 for g in groups for t in g.tokens)


def test_empty_store_gives_no_groups():
    assert _run(service.compute_groups(InMemoryRecordStore(), {"mintPattern": True})) == []
    assert _run(service.summary(InMemoryRecordStore(), {"mintPattern": True})).total_groups == 0


def test_top_groups_excludes_singletons():
    store = InMemoryRecordStore(_records())
    top = _run(service.top_groups(store, {"mintPattern": True}))

    assert [g.group_key for g in top] == ["pattern=b", "pattern=a", "pattern=dust"]
    assert all(g.total_tokens >= 2 for g in top)


def test_top_groups_limit():
    store = InMemoryRecordStore(_records())
    assert len(_run(service.top_groups(store, {"mintPattern": True}, limit=1))) == 1


def test_summary_is_deterministic():
    store = InMemoryRecordStore(_records())
    first = _run(service.summary(store, {"mintPattern": True}))
    second = _run(service.summary(store, {"mintPattern": True}))

    assert first == second
    assert first.total_tokens == len(_records())
    assert first.total_migrated == 7


def test_simulate_thresholds_defaults():
    store = InMemoryRecordStore(_records())
    groups = _run(service.simulate_thresholds(store, {"mintPattern": True}))

    # sorted by avg rise, singletons dropped
    assert [g.group_key for g in groups] == ["pattern=a", "pattern=b", "pattern=dust"]
    assert all(g.thresholds is not None for g in groups)


def test_simulate_thresholds_min_rise():
    store = InMemoryRecordStore(_records())
    options = service.ThresholdOptions(min_rise_sol=1.0)
    groups = _run(service.simulate_thresholds(store, {"mintPattern": True}, options=options))

    assert [g.group_key for g in groups] == ["pattern=a", "pattern=b"]
    a = groups[0]
    assert a.total_tokens == 4
    assert min(a.rise_values) >= 1.0


def test_simulate_thresholds_min_tokens_and_limit():
    store = InMemoryRecordStore(_records())
    options = service.ThresholdOptions(min_tokens_in_group=3, sort_by="total_tokens", limit=1)
    groups = _run(service.simulate_thresholds(store, {"mintPattern": True}, options=options))

    assert [g.group_key for g in groups] == ["pattern=a"]


def test_simulate_thresholds_keeps_non_finite_members_in_totals():
    records = group_of([2.0, 3.0]) + [make_token(max_sol=5.0, mint_slot_sol=math.nan)]
    store = InMemoryRecordStore(records)
    groups = _run(service.simulate_thresholds(store, {"mintPattern": True}))

    assert groups[0].total_tokens == 3
    for c in groups[0].thresholds.candidates:
        assert c.win_count + c.loss_count == 2


@pytest.mark.parametrize("call", [
    lambda store: service.compute_groups(store, {"bogus": True}),
    lambda store: service.compute_groups(store, {"mintPattern": True}, QueryFilters(win_percent=150)),
    lambda store: service.compute_groups(store, {"mintPattern": True}, QueryFilters(start_time=10, end_time=5)),
    lambda store: service.compute_groups(store, {"mintPattern": True}, QueryFilters(min_max_sol=math.nan)),
    lambda store: service.compute_groups(store, {"mintPattern": True}, QueryFilters(start_time=math.nan)),
    lambda store: service.summary(store, {"mintPattern": True}, QueryFilters(end_time=math.inf)),
    lambda store: service.top_groups(store, {"mintPattern": True}, limit=-1),
    lambda store: service.simulate_thresholds(
        store, {"mintPattern": True}, options=service.ThresholdOptions(sort_by="nope")
    ),
    lambda store: service.simulate_thresholds(
        store, {"mintPattern": True}, options=service.ThresholdOptions(min_tokens_in_group=-2)
    ),
])
def test_invalid_input_fails_before_fetch(call):
    store = CountingStore(_records())
    with pytest.raises(InputError):
        _run(call(store))
    assert store.fetches == 0


def test_store_failure_propagates():
    with pytest.raises(ConnectionError):
        _run(service.compute_groups(BrokenStore(), {"mintPattern": True}))
