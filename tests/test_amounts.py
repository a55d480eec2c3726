from decimal import Decimal

import pytest

from arrow_sdk.amounts import (
    compute_amount_to_approve,
    compute_order_fee,
    format_strike,
    from_base_units,
    join_strikes,
    parse_formatted_strike,
    price_with_fee,
    scale_quantity,
    to_base_units,
    validate_leg_count,
)
from arrow_sdk.arrow_types import OrderType, StrategyType
from arrow_sdk.exceptions import EncodingError, InvalidStrategyError, MissingFieldError

from helpers import make_order


class TestBaseUnits:
    @pytest.mark.parametrize("value, decimals, expected", [
        ("1.23", 6, 1230000),
        (1.23, 6, 1230000),
        (0.1, 6, 100000),
        (Decimal("87.02"), 18, 87020000000000000000),
        (3, 0, 3),
        ("0.0000005", 6, 1),
        ("0.0000004", 6, 0),
    ])
    def test_to_base_units(self, value, decimals, expected):
        assert to_base_units(value, decimals) == expected

    def test_float_does_not_drift(self):
        # 0.1 + 0.2 == 0.30000000000000004 as binary floats
        assert to_base_units(0.1 + 0.2, 2) == 30

    def test_negative_rejected(self):
        with pytest.raises(ValueError):
            to_base_units("-1", 6)

    def test_invalid_number(self):
        with pytest.raises(EncodingError):
            to_base_units("abc", 6)

    def test_from_base_units(self):
        assert from_base_units(1230000, 6) == Decimal("1.23")

    def test_more_than_28_significant_digits(self):
        assert to_base_units("12345678901", 18) == 12345678901 * 10 ** 18
        assert to_base_units("12345678901.123456789012345678", 18) == \
            12345678901123456789012345678
        assert from_base_units(12345678901123456789012345678, 18) == \
            Decimal("12345678901.123456789012345678")

    def test_large_approval_is_exact(self):
        order = make_order(threshold_price="12345678901.5", ratio="1.25")
        assert compute_amount_to_approve(order, 18) == 15432098626875 * 10 ** 15


class TestStrikes:
    def test_format_strike(self):
        assert format_strike(84) == "84.00"
        assert format_strike(87.02) == "87.02"
        assert format_strike("1.005") == "1.01"

    def test_join_strikes_round_trip(self):
        joined = join_strikes([87.02, 84.0])
        assert joined == "87.02|84.00"
        assert parse_formatted_strike(joined) == [Decimal("87.02"), Decimal("84.00")]


class TestQuantity:
    def test_scale_quantity(self):
        assert scale_quantity(2) == 200
        assert scale_quantity("1.5") == 150
        assert scale_quantity(0.01) == 1

    def test_sub_hundredth_ratio(self):
        with pytest.raises(EncodingError):
            scale_quantity("0.005")


class TestLegCount:
    def test_spread_needs_two_strikes(self):
        with pytest.raises(InvalidStrategyError):
            validate_leg_count(StrategyType.PUT_SPREAD, [87.02])

    def test_single_leg_with_two_strikes(self):
        with pytest.raises(InvalidStrategyError):
            validate_leg_count(StrategyType.CALL, [10, 12])

    def test_iron_condor(self):
        validate_leg_count(StrategyType.IRON_CONDOR, [10, 12, 14, 16])


class TestAmountToApprove:
    def test_short_spread_collateral(self, short_put_spread_order):
        assert compute_amount_to_approve(short_put_spread_order, 6) == 6040000

    def test_long_buy(self, put_spread_order):
        assert compute_amount_to_approve(put_spread_order, 6) == 2460000

    def test_long_close_uses_threshold(self):
        order = make_order(order_type=OrderType.LONG_CLOSE, ratio="0.5", threshold_price="3")
        assert compute_amount_to_approve(order, 6) == 1500000

    def test_short_single_leg_collateral(self):
        order = make_order(strikes=("20.5",), strategy=StrategyType.PUT,
                           order_type=OrderType.SHORT_OPEN, ratio=3)
        assert compute_amount_to_approve(order, 6) == 61500000

    def test_spread_width_is_absolute(self):
        order = make_order(strikes=("18", "20"), strategy=StrategyType.CALL_SPREAD,
                           order_type=OrderType.SHORT_OPEN, ratio=1)
        assert compute_amount_to_approve(order, 6) == 2000000

    def test_short_close_paying_premium(self):
        order = make_order(order_type=OrderType.SHORT_CLOSE, ratio=2,
                           threshold_price="1.1", pay_premium=True)
        assert compute_amount_to_approve(order, 6) == 2200000

    def test_short_close_from_collateral(self):
        order = make_order(order_type=OrderType.SHORT_CLOSE, pay_premium=False)
        assert compute_amount_to_approve(order, 6) == 0

    def test_short_close_without_pay_premium(self):
        order = make_order(order_type=OrderType.SHORT_CLOSE)
        with pytest.raises(MissingFieldError):
            compute_amount_to_approve(order, 6)

    def test_short_open_leg_mismatch(self):
        order = make_order(strikes=("20",), strategy=StrategyType.PUT_SPREAD,
                           order_type=OrderType.SHORT_OPEN)
        with pytest.raises(InvalidStrategyError):
            compute_amount_to_approve(order, 6)


class TestFees:
    def test_order_fee(self):
        assert compute_order_fee("10", 3, 1000) == Decimal("0.03")

    def test_price_with_fee(self):
        assert price_with_fee("2.5", 3, 1000) == Decimal("2.51")

    def test_zero_scale_factor(self):
        with pytest.raises(ValueError):
            compute_order_fee("1", 3, 0)
