#!/usr/bin/env python3
"""
Test grouping key composition.

Tests:
1. Canonical dimension order regardless of flag order
2. Unknown dimension names rejected
3. All-disabled specification -> single default key
4. Bundle shape rounding
5. Printable labels and identifiers
"""
import pytest

from migration_analytics.engines.grouping.errors import InputError
from migration_analytics.engines.grouping.keys import (
    Dimension, GroupingSpec, compose_key, describe_key, parse_dimensions
)
from factories import bundle, make_token


TOKEN = make_token(
    mint_pattern="abc",
    unit_price=1000000.0,
    unit_limit=250000.0,
    post_mint_bundle=bundle(3, 1.23456),
    mint_buy_amt=0.987,
)


def test_flag_order_does_not_change_key():
    a = GroupingSpec.from_flags({"unitLimit": True, "mintPattern": True, "unitPrice": True})
    b = GroupingSpec.from_flags({"mintPattern": True, "unitPrice": True, "unitLimit": True})

    assert a == b
    assert compose_key(TOKEN, a) == compose_key(TOKEN, b) == ("abc", 1000000.0, 250000.0)


def test_canonical_order_with_every_dimension():
    spec = GroupingSpec.of(*reversed(list(Dimension)))
    assert spec.ordered == (
        Dimension.PATTERN, Dimension.PRICE, Dimension.LIMIT,
        Dimension.BUNDLE_SHAPE, Dimension.BUY_AMOUNT,
    )
    assert compose_key(TOKEN, spec) == ("abc", 1000000.0, 250000.0, (3, 1.23), 0.99)


def test_flag_name_styles_are_equivalent():
    camel = GroupingSpec.from_flags({"mintPattern": True, "postMintBundle": True})
    snake = GroupingSpec.from_flags({"mint_pattern": True, "bundle_shape": True})
    short = parse_dimensions(["pattern", "bundle"])
    assert camel == snake == short


def test_disabled_flags_are_ignored():
    spec = GroupingSpec.from_flags({"mintPattern": True, "unitPrice": False})
    assert spec.ordered == (Dimension.PATTERN,)


def test_unknown_dimension_rejected():
    with pytest.raises(InputError, match="bogus"):
        GroupingSpec.from_flags({"mintPattern": True, "bogus": True})


def test_all_disabled_gives_default_key():
    spec = GroupingSpec.from_flags({"mintPattern": False, "unitPrice": False})
    assert spec.is_default
    assert compose_key(TOKEN, spec) == ()
    assert describe_key(spec, ()) == ("all", {})


def test_bundle_total_is_rounded_to_two_places():
    spec = GroupingSpec.of(Dimension.BUNDLE_SHAPE)
    a = make_token(post_mint_bundle=bundle(2, 1.2349))
    b = make_token(post_mint_bundle=bundle(2, 1.2301))
    c = make_token(post_mint_bundle=bundle(3, 1.2301))

    assert compose_key(a, spec) == compose_key(b, spec) == (2, 1.23)
    assert compose_key(c, spec) != compose_key(a, spec)


def test_describe_key_label_and_identifier():
    spec = GroupingSpec.of(Dimension.PATTERN, Dimension.PRICE, Dimension.BUNDLE_SHAPE)
    label, identifier = describe_key(spec, compose_key(TOKEN, spec))

    assert label == "pattern=abc | price=1000000 | bundle=3x1.23"
    assert identifier == {
        "mint_pattern": "abc",
        "unit_price": 1000000.0,
        "bundle_size": 3,
        "bundle_total_buy_sol": 1.23,
    }


def test_nan_values_share_one_key():
    spec = GroupingSpec.of(Dimension.PRICE, Dimension.BUNDLE_SHAPE, Dimension.BUY_AMOUNT)
    a = make_token(unit_price=float("nan"), post_mint_bundle=bundle(2, float("nan")), mint_buy_amt=float("nan"))
    b = make_token(unit_price=float("nan"), post_mint_bundle=bundle(2, float("nan")), mint_buy_amt=float("nan"))

    assert compose_key(a, spec) == compose_key(b, spec) == (0.0, (2, 0.0), 0.0)
