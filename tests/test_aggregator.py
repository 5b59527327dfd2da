#!/usr/bin/env python3
"""
Test group aggregation.

Tests:
1. Counts, migrated counts and migration rate per group
2. First-seen group order and member order
3. Single default group
4. Common rise / drop counts on a worked example
5. Non-finite rises counted in totals only
"""
import math

import pytest

from migration_analytics.engines.grouping.aggregator import aggregate, build_groups
from migration_analytics.engines.grouping.keys import Dimension, GroupingSpec
from factories import group_of, make_token

PATTERN = GroupingSpec.of(Dimension.PATTERN)


def _fixture():
    return (
        group_of([0.2, 0.4, 1.9, 2.1, 3.8, 6.5], migrated=[True, False, True, True, False, True], mint_pattern="a")
        + group_of([1.0, 2.0], migrated=[True, True], mint_pattern="b")
        + group_of([5.0], mint_pattern="c")
    )


def test_counts_and_migration_rate():
    groups = {g.group_key: g for g in build_groups(_fixture(), PATTERN, win_percent=70)}

    a = groups["pattern=a"]
    assert a.total_tokens == 6
    assert a.migrated_tokens == 4
    assert a.migration_rate == 66.67
    assert a.common_rise_sol == 0.4

    assert groups["pattern=b"].migration_rate == 100.0
    assert groups["pattern=c"].migration_rate == 0.0


def test_rate_and_counts_are_consistent_for_every_group():
    for g in build_groups(_fixture(), PATTERN, win_percent=70):
        assert 0 <= g.migrated_tokens <= g.total_tokens
        assert g.migrated_tokens == sum(1 for t in g.tokens if t.migrated)
        assert g.migration_rate == round(g.migrated_tokens / g.total_tokens * 100, 2)
        assert len(g.tokens) == len(g.rises) == g.total_tokens


def test_every_record_lands_in_exactly_one_group():
    records = _fixture()
    groups = build_groups(records, PATTERN)
    assert sum(g.total_tokens for g in groups) == len(records)


def test_first_seen_order_and_member_order():
    records = [
        make_token(mint="m1", mint_pattern="b"),
        make_token(mint="m2", mint_pattern="a"),
        make_token(mint="m3", mint_pattern="b"),
    ]
    groups = build_groups(records, PATTERN)

    assert [g.group_key for g in groups] == ["pattern=b", "pattern=a"]
    assert [t.mint for t in groups[0].tokens] == ["m1", "m3"]


def test_all_disabled_gives_one_group_with_everything():
    records = _fixture()
    groups = build_groups(records, GroupingSpec.from_flags({"mintPattern": False}))

    assert len(groups) == 1
    assert groups[0].group_key == "all"
    assert groups[0].total_tokens == len(records)
    assert groups[0].migrated_tokens == sum(1 for r in records if r.migrated)


def test_peak_aggregates():
    g = build_groups(group_of([1.0, 2.0, 6.0]), PATTERN)[0]
    assert g.total_max_sol == 9.0
    assert g.avg_max_sol == 3.0
    assert g.max_rise_sol == 6.0
    assert g.min_rise_sol == 1.0
    assert g.profitability_score == pytest.approx(9.0)


def test_drop_rate_counts_negative_rises():
    records = [
        make_token(max_sol=0.5, mint_slot_sol=1.0),
        make_token(max_sol=3.0, mint_slot_sol=1.0),
        make_token(max_sol=0.0, mint_slot_sol=2.0),
        make_token(max_sol=1.0, mint_slot_sol=1.0),
    ]
    g = build_groups(records, PATTERN)[0]

    assert g.tokens_with_drop == 2
    assert g.drop_rate == 50.0


def test_common_rise_only_when_win_percent_given():
    g = build_groups(group_of([1.0, 2.0, 3.0]), PATTERN)[0]
    assert g.win_percent is None
    assert g.common_rise_sol == 0.0


def test_non_finite_rise_is_counted_but_not_measured():
    records = group_of([1.0, 3.0], migrated=[True, False]) + [
        make_token(max_sol=2.0, mint_slot_sol=math.nan, migrated=True)
    ]
    g = build_groups(records, PATTERN, win_percent=100)[0]

    assert g.total_tokens == 3
    assert g.migrated_tokens == 2
    assert g.rise_values == [1.0, 3.0]
    assert g.avg_rise_sol == 2.0
    assert g.common_rise_sol == 1.0
    assert "rise_sol" not in g.to_dict()["tokens"][2]


def test_cv_risk_attached_to_group():
    g = build_groups(group_of([2.0, 2.0, 2.0]), PATTERN)[0]
    assert g.coefficient_of_variation == 0.0
    assert g.risk_level == "LOW"

    single = build_groups(group_of([2.0]), PATTERN)[0]
    assert single.coefficient_of_variation is None
    assert single.risk_level is None


def test_aggregate_keeps_raw_accumulators():
    accs = aggregate(_fixture(), PATTERN)
    assert list(accs) == [("a",), ("b",), ("c",)]
    assert accs[("a",)].total_max_sol == pytest.approx(14.9)


def test_to_dict_samples_members():
    g = build_groups(group_of([1.0, 2.0, 3.0]), PATTERN, win_percent=70)[0]

    assert len(g.to_dict(sample_limit=2)["tokens"]) == 2
    payload = g.to_dict()
    assert len(payload["tokens"]) == 3
    assert payload["tokens"][0]["rise_sol"] == 1.0
    assert payload["profitable_tokens"] == 3
    assert "thresholds" not in payload
