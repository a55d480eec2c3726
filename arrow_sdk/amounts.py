"""
Arrow Options SDK - Amounts

Fixed-point conversion of decimal amounts to stablecoin base units,
approval/collateral amounts per strategy and order type, and order fee
estimation.

Nothing here multiplies binary floats: every input is turned into a
Decimal first, then quantized to the token's decimals (the equivalent
of formatting with a fixed number of fractional digits before parsing).
"""

from decimal import Decimal, ROUND_HALF_UP, getcontext, localcontext
from typing import Iterable, List, Sequence, Tuple

from .arrow_types import (
    STRATEGY_LEG_COUNTS,
    Number,
    OrderType,
    PositionOrder,
    StrategyType,
    to_decimal,
)
from .exceptions import EncodingError, InvalidStrategyError, MissingFieldError

# Ratios are embedded in hashes as integer hundredths of a contract
QUANTITY_SCALE_FACTOR = 10 ** 2
STRIKE_DECIMALS = 2
PRICE_DECIMALS = 2

SINGLE_LEG_STRATEGIES = (StrategyType.CALL, StrategyType.PUT)
SPREAD_STRATEGIES = (StrategyType.CALL_SPREAD, StrategyType.PUT_SPREAD)


# ═══════════════════════════════════════════════════════════════════════════════
# FIXED-POINT HELPERS
# ═══════════════════════════════════════════════════════════════════════════════

def _context(amount: Decimal, places: int):
    """Context wide enough to hold amount at the given number of fractional digits."""
    context = getcontext().copy()
    context.prec = max(context.prec, amount.adjusted() + places + 2)
    return localcontext(context)


def _multiply(a: Decimal, b: Decimal) -> Decimal:
    """Exact product, whatever the number of significant digits."""
    context = getcontext().copy()
    context.prec = max(context.prec, len(a.as_tuple().digits) + len(b.as_tuple().digits))
    with localcontext(context):
        return a * b


def quantize(value: Number, places: int) -> Decimal:
    """Round to a fixed number of fractional digits (half-up)."""
    amount = to_decimal(value)
    with _context(amount, places):
        return amount.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)


def to_base_units(value: Number, decimals: int) -> int:
    """
    Convert a decimal amount to integer token base units.

    Args:
        value: Amount in whole tokens (e.g., "1.23")
        decimals: Token decimals (e.g., 6 for USDC)

    Returns:
        Integer amount (e.g., 1230000)

    Examples:
        >>> to_base_units("1.23", 6)
        1230000
        >>> to_base_units(0.1, 6)
        100000
    """
    if decimals < 0:
        raise ValueError(f"Token decimals must be non-negative, got {decimals}")
    amount = quantize(value, decimals)
    if amount < 0:
        raise ValueError(f"Amount must not be negative: {value}")
    with _context(amount, decimals):
        return int(amount.scaleb(decimals))


def from_base_units(amount: int, decimals: int) -> Decimal:
    """Inverse of to_base_units."""
    value = Decimal(int(amount))
    with _context(value, 0):
        return value.scaleb(-decimals)


def format_strike(strike: Number) -> str:
    """Render a strike with exactly two decimals, e.g. 84 -> "84.00"."""
    return f"{quantize(strike, STRIKE_DECIMALS):.{STRIKE_DECIMALS}f}"


def format_strikes(strikes: Iterable[Number]) -> Tuple[str, ...]:
    return tuple(format_strike(strike) for strike in strikes)


def join_strikes(strikes: Iterable[Number]) -> str:
    """Pipe-joined strike string used in the hash and by the API ("87.02|84.00")."""
    return "|".join(format_strikes(strikes))


def parse_formatted_strike(formatted_strike: str) -> List[Decimal]:
    """Parse a pipe-joined strike string back into decimal strikes."""
    return [to_decimal(part, "strike") for part in formatted_strike.split("|")]


def strikes_to_base_units(strikes: Iterable[Number], decimals: int) -> Tuple[int, ...]:
    """Strikes rendered to two decimals, then scaled to base units."""
    return tuple(to_base_units(strike, decimals) for strike in format_strikes(strikes))


def scale_quantity(ratio: Number) -> int:
    """
    Scale a fractional contract count to the integer embedded in hashes.

    Raises:
        EncodingError: If the ratio has more than two fractional digits
    """
    scaled = to_decimal(ratio, "ratio") * QUANTITY_SCALE_FACTOR
    if scaled != scaled.to_integral_value():
        raise EncodingError(
            f"Ratio {ratio} cannot be represented in hundredths of a contract",
            field="ratio"
        )
    if scaled < 0:
        raise EncodingError(f"Ratio must not be negative: {ratio}", field="ratio")
    return int(scaled)


# ═══════════════════════════════════════════════════════════════════════════════
# VALIDATION
# ═══════════════════════════════════════════════════════════════════════════════

def validate_leg_count(strategy: StrategyType, strikes: Sequence[Number],
                       ticker: str = "") -> None:
    """
    Check that the number of strikes matches the strategy's leg count.

    Raises:
        InvalidStrategyError: e.g. a spread with a single strike
    """
    expected = STRATEGY_LEG_COUNTS[strategy]
    if len(strikes) != expected:
        raise InvalidStrategyError(
            f"{strategy.name} needs {expected} strike(s), got {len(strikes)}",
            ticker=ticker or None, strategy=strategy.name, field="strike"
        )


# ═══════════════════════════════════════════════════════════════════════════════
# APPROVAL AMOUNTS
# ═══════════════════════════════════════════════════════════════════════════════

def collateral_per_contract(strategy: StrategyType, strikes: Sequence[Number]) -> Decimal:
    """
    Max loss per contract of a short position.

    Single legs lock the strike, two-leg spreads lock the strike width.
    """
    validate_leg_count(strategy, strikes)
    rendered = [to_decimal(strike) for strike in format_strikes(strikes)]
    if strategy in SINGLE_LEG_STRATEGIES:
        return rendered[0]
    if strategy in SPREAD_STRATEGIES:
        return abs(rendered[0] - rendered[1])
    raise InvalidStrategyError(
        "Collateral is only defined for single legs and two-leg spreads",
        strategy=strategy.name, field="strategy_type"
    )


def compute_amount_to_approve(order: PositionOrder, decimals: int) -> int:
    """
    Stablecoin base units the user must approve for this order.

      LONG_OPEN / LONG_CLOSE   thresholdPrice x ratio
      SHORT_OPEN single leg    ratio x strike[0]
      SHORT_OPEN spread        ratio x |strike[0] - strike[1]|
      SHORT_CLOSE              payPremium=True: thresholdPrice x ratio
                               payPremium=False: 0 (premium paid from collateral)

    Raises:
        MissingFieldError: Missing threshold price or payPremium
        InvalidStrategyError: Strike count does not match the strategy
    """
    if order.order_type == OrderType.SHORT_OPEN:
        collateral = collateral_per_contract(order.strategy_type, order.strikes)
        return to_base_units(_multiply(order.ratio, collateral), decimals)

    if order.order_type == OrderType.SHORT_CLOSE:
        if order.pay_premium is None:
            raise MissingFieldError(
                "`pay_premium` must be set for closing a short position",
                ticker=order.ticker, strategy=order.strategy_type.name, field="pay_premium"
            )
        if not order.pay_premium:
            # Departs from older SDKs, which approved thresholdPrice x ratio here too
            return 0

    if order.threshold_price is None:
        raise MissingFieldError(
            "Threshold price is required",
            ticker=order.ticker, strategy=order.strategy_type.name, field="threshold_price"
        )
    return to_base_units(_multiply(order.threshold_price, order.ratio), decimals)


# ═══════════════════════════════════════════════════════════════════════════════
# FEES
# ═══════════════════════════════════════════════════════════════════════════════

def compute_order_fee(option_price: Number, fee_rate: int, fee_rate_scale_factor: int) -> Decimal:
    """
    Estimated order fee: option_price x fee_rate / fee_rate_scale_factor.

    Advisory only; never used for on-chain amounts.
    """
    if not fee_rate_scale_factor:
        raise ValueError("Fee rate scale factor must be non-zero")
    return to_decimal(option_price, "option_price") * Decimal(int(fee_rate)) / Decimal(int(fee_rate_scale_factor))


def price_with_fee(option_price: Number, fee_rate: int, fee_rate_scale_factor: int) -> Decimal:
    """Option price plus fee, rounded to cents."""
    fee = compute_order_fee(option_price, fee_rate, fee_rate_scale_factor)
    return quantize(to_decimal(option_price) + fee, PRICE_DECIMALS)
