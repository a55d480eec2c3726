"""
Arrow Options SDK - Data Types

Option legs, position orders and the prepared (hashed + signed) order
that is submitted to the Arrow API and used for on-chain approval.
"""

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Tuple, Union
import json

from .exceptions import EncodingError, InvalidStrategyError


Number = Union[Decimal, str, int, float]


class Ticker(Enum):
    """Underlying assets listed on Arrow"""
    AVAX = "AVAX"
    ETH = "ETH"
    BTC = "BTC"


class ContractType(Enum):
    """Single option contract type"""
    CALL = 0
    PUT = 1


class StrategyType(Enum):
    """Position strategy (canonical 0-5 numbering)"""
    CALL = 0
    PUT = 1
    CALL_SPREAD = 2
    PUT_SPREAD = 3
    BUTTERFLY = 4
    IRON_CONDOR = 5


class OrderType(Enum):
    """Order direction and open/close intent"""
    LONG_OPEN = 0
    LONG_CLOSE = 1
    SHORT_OPEN = 2
    SHORT_CLOSE = 3


# Number of legs (strikes) each strategy is made of
STRATEGY_LEG_COUNTS: Dict[StrategyType, int] = {
    StrategyType.CALL: 1,
    StrategyType.PUT: 1,
    StrategyType.CALL_SPREAD: 2,
    StrategyType.PUT_SPREAD: 2,
    StrategyType.BUTTERFLY: 3,
    StrategyType.IRON_CONDOR: 4,
}

BUY_ORDER_TYPES = (OrderType.LONG_OPEN, OrderType.LONG_CLOSE)


def to_decimal(value: Number, name: str = "value") -> Decimal:
    """
    Convert a user-supplied number to Decimal without binary-float drift.

    Floats go through their shortest repr, so 87.02 becomes Decimal("87.02")
    and not Decimal(87.0199999999999960209606797434389591217041015625).

    Raises:
        EncodingError: If the value is not a finite number
    """
    if isinstance(value, bool):
        raise EncodingError(f"Expected a number for {name}, got bool", field=name)
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, float):
        result = Decimal(repr(value))
    else:
        try:
            result = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            raise EncodingError(f"Invalid number for {name}: {value!r}", field=name)
    if not result.is_finite():
        raise EncodingError(f"Invalid number for {name}: {value!r}", field=name)
    return result


@dataclass(frozen=True)
class OptionLeg:
    """
    One option contract inside a (possibly multi-leg) position.

    Structure:
      - ticker: Underlying asset (e.g., "BTC")
      - contract_type: CALL or PUT
      - strike: Strike price in stablecoin units (e.g., Decimal("87.02"))
      - readable_expiration: Expiration date as "MMDDYYYY"
      - order_type: Direction of this leg
    """
    ticker: str
    contract_type: ContractType
    strike: Decimal
    readable_expiration: str
    order_type: OrderType

    def __post_init__(self):
        object.__setattr__(self, "ticker", ticker_value(self.ticker))
        object.__setattr__(self, "strike", to_decimal(self.strike, "strike"))

    def to_dict(self) -> dict:
        return {
            "ticker": self.ticker,
            "contract_type": self.contract_type.value,
            "strike": str(self.strike),
            "readable_expiration": self.readable_expiration,
            "order_type": self.order_type.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "OptionLeg":
        return cls(
            ticker=data["ticker"],
            contract_type=ContractType(data["contract_type"]),
            strike=data["strike"],
            readable_expiration=data["readable_expiration"],
            order_type=OrderType(data["order_type"]),
        )


@dataclass(frozen=True)
class PositionOrder:
    """
    A multi-leg option order as supplied by the caller.

    Leg order is significant: it drives the strike join ("long|short")
    and the strike slot of the order hash.

    Structure:
      - ticker: Underlying asset
      - option_legs: Ordered legs, all sharing one expiration
      - strategy_type: CALL, PUT, CALL_SPREAD, PUT_SPREAD, BUTTERFLY, IRON_CONDOR
      - order_type: LONG_OPEN, LONG_CLOSE, SHORT_OPEN, SHORT_CLOSE
      - ratio: Number of contracts (fractional, 2 decimals max)
      - threshold_price: Worst acceptable price per contract
      - pay_premium: Required for SHORT_CLOSE (True = pay with stablecoin,
        False = pay from collateral)
    """
    ticker: str
    option_legs: Tuple[OptionLeg, ...]
    strategy_type: StrategyType
    order_type: OrderType
    ratio: Decimal
    threshold_price: Optional[Decimal] = None
    pay_premium: Optional[bool] = None

    def __post_init__(self):
        object.__setattr__(self, "ticker", ticker_value(self.ticker))
        object.__setattr__(self, "option_legs", tuple(self.option_legs))
        if not self.option_legs:
            raise InvalidStrategyError(
                "An order needs at least one option leg",
                ticker=self.ticker, strategy=self.strategy_type.name,
                field="option_legs"
            )
        object.__setattr__(self, "ratio", to_decimal(self.ratio, "ratio"))
        if self.threshold_price is not None:
            object.__setattr__(self, "threshold_price",
                               to_decimal(self.threshold_price, "threshold_price"))

    @property
    def strikes(self) -> Tuple[Decimal, ...]:
        return tuple(leg.strike for leg in self.option_legs)

    @property
    def readable_expiration(self) -> str:
        """Expiration of the first leg (calendar spreads are unsupported)."""
        return self.option_legs[0].readable_expiration

    @property
    def expirations(self) -> Tuple[str, ...]:
        return tuple(leg.readable_expiration for leg in self.option_legs)

    @property
    def is_buy(self) -> bool:
        return self.order_type in BUY_ORDER_TYPES

    @property
    def symbol(self) -> str:
        """Human-readable position symbol, e.g. "BTC_87.02/84.0_1/1_0/2"."""
        strikes = "/".join(str(leg.strike) for leg in self.option_legs)
        contract_types = "/".join(str(leg.contract_type.value) for leg in self.option_legs)
        order_types = "/".join(str(leg.order_type.value) for leg in self.option_legs)
        return f"{self.ticker}_{strikes}_{contract_types}_{order_types}"

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "ticker": self.ticker,
            "option_legs": [leg.to_dict() for leg in self.option_legs],
            "strategy_type": self.strategy_type.value,
            "order_type": self.order_type.value,
            "ratio": str(self.ratio),
            "threshold_price": None if self.threshold_price is None else str(self.threshold_price),
            "pay_premium": self.pay_premium,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PositionOrder":
        """Create PositionOrder from dictionary."""
        return cls(
            ticker=data["ticker"],
            option_legs=tuple(OptionLeg.from_dict(leg) for leg in data["option_legs"]),
            strategy_type=StrategyType(data["strategy_type"]),
            order_type=OrderType(data["order_type"]),
            ratio=data["ratio"],
            threshold_price=data.get("threshold_price"),
            pay_premium=data.get("pay_premium"),
        )


@dataclass(frozen=True)
class PreparedOrder:
    """
    PositionOrder plus everything derived while preparing it.

    Base-unit integers are kept as Python ints here and serialized as
    decimal strings by to_dict() so they survive JSON transport.
    """
    order: PositionOrder
    hashed_values: str          # 0x-prefixed keccak256 digest
    signature: str              # 0x-prefixed 65-byte signature
    amount_to_approve: int      # stablecoin base units
    unix_expiration: int
    formatted_strike: str       # "87.02|84.00"
    big_number_strike: Tuple[int, ...] = field(default_factory=tuple)
    big_number_threshold_price: int = 0

    # Delegated order fields
    @property
    def ticker(self) -> str:
        return self.order.ticker

    @property
    def strategy_type(self) -> StrategyType:
        return self.order.strategy_type

    @property
    def order_type(self) -> OrderType:
        return self.order.order_type

    @property
    def ratio(self) -> Decimal:
        return self.order.ratio

    @property
    def readable_expiration(self) -> str:
        return self.order.readable_expiration

    def to_dict(self) -> dict:
        """Original order fields followed by the derived fields."""
        data = self.order.to_dict()
        data.update({
            "hashed_values": self.hashed_values,
            "signature": self.signature,
            "amount_to_approve": str(self.amount_to_approve),
            "unix_expiration": self.unix_expiration,
            "formatted_strike": self.formatted_strike,
            "big_number_strike": [str(strike) for strike in self.big_number_strike],
            "big_number_threshold_price": str(self.big_number_threshold_price),
        })
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "PreparedOrder":
        return cls(
            order=PositionOrder.from_dict(data),
            hashed_values=data["hashed_values"],
            signature=data["signature"],
            amount_to_approve=int(data["amount_to_approve"]),
            unix_expiration=int(data["unix_expiration"]),
            formatted_strike=data["formatted_strike"],
            big_number_strike=tuple(int(s) for s in data.get("big_number_strike", [])),
            big_number_threshold_price=int(data.get("big_number_threshold_price", 0)),
        )

    def to_json(self) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict(), indent=2)

    def to_submission_params(self, trading_view: Optional[str] = None) -> Dict[str, Any]:
        """Per-order params entry expected by the Arrow order endpoints."""
        return {
            "ticker": self.ticker,
            "expiration": self.unix_expiration,
            "strike": self.formatted_strike,
            "contract_type": self.strategy_type.value,
            "quantity": str(self.ratio),
            "threshold_price": str(self.big_number_threshold_price),
            "hashed_params": self.hashed_values,
            "signature": self.signature,
            "view": trading_view,
        }


def ticker_value(ticker: Union[str, Ticker]) -> str:
    return ticker.value if isinstance(ticker, Ticker) else str(ticker)


def build_position_order(ticker: Union[str, Ticker], strikes: Iterable[Number],
                         contract_types: Iterable[ContractType],
                         readable_expiration: str,
                         strategy_type: StrategyType, order_type: OrderType,
                         ratio: Number, threshold_price: Optional[Number] = None,
                         pay_premium: Optional[bool] = None) -> PositionOrder:
    """
    Convenience constructor for the common single-expiration case.

    Every leg takes the order's order_type; strikes and contract types
    are paired in order.
    """
    strikes = list(strikes)
    contract_types = list(contract_types)
    if len(strikes) != len(contract_types):
        raise InvalidStrategyError(
            f"Got {len(strikes)} strikes for {len(contract_types)} contract types",
            ticker=ticker_value(ticker), strategy=strategy_type.name, field="strike"
        )
    legs = tuple(
        OptionLeg(
            ticker=ticker_value(ticker),
            contract_type=contract_type,
            strike=strike,
            readable_expiration=readable_expiration,
            order_type=order_type,
        )
        for strike, contract_type in zip(strikes, contract_types)
    )
    return PositionOrder(
        ticker=ticker,
        option_legs=legs,
        strategy_type=strategy_type,
        order_type=order_type,
        ratio=ratio,
        threshold_price=threshold_price,
        pay_premium=pay_premium,
    )
