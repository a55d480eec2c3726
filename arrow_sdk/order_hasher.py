"""
Arrow Options SDK - Order Hasher

Canonical packed encoding of an order's economic fields and its
keccak256 digest. The API backend and the router recompute the same
digest from the submitted fields and check the signature against it,
so field order and ABI types are part of the protocol.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Tuple

from web3 import Web3

from .amounts import join_strikes, scale_quantity, strikes_to_base_units, to_base_units
from .arrow_types import OrderType, PositionOrder, StrategyType
from .exceptions import (
    EncodingError,
    MissingFieldError,
    SigningFailedError,
    UnsupportedStrategyError,
)
from .signer import SIGNATURE_LENGTH, Signer, mask_secret
from .versions import (
    FORMATTED_STRIKE,
    OPENING_FLAG,
    QUANTITY,
    READABLE_EXPIRATION,
    STRATEGY_CODE,
    STRIKES,
    THRESHOLD_PRICE,
    TICKER,
    UNIX_EXPIRATION,
    ProtocolVersion,
)

log = logging.getLogger(__name__)

OPENING_ORDER_TYPES = (OrderType.LONG_OPEN, OrderType.SHORT_OPEN)


@dataclass(frozen=True)
class OrderFields:
    """
    Normalized values that enter the order hash.

    Structure:
      - strikes: Strikes in stablecoin base units, leg order
      - formatted_strike: Pipe-joined two-decimal strikes ("87.02|84.00")
      - quantity: ratio x 100
      - threshold_price: Threshold price in stablecoin base units
    """
    ticker: str
    unix_expiration: int
    readable_expiration: str
    strikes: Tuple[int, ...]
    formatted_strike: str
    strategy_type: StrategyType
    order_type: OrderType
    quantity: int
    threshold_price: int


def check_required_fields(order: PositionOrder) -> None:
    """
    Reject orders that cannot be hashed, before any external call.

    Raises:
        MissingFieldError: payPremium missing on SHORT_CLOSE, or no threshold price
        EncodingError: Negative threshold price, ratio or strike
        UnsupportedStrategyError: Legs with different expirations
    """
    if order.order_type == OrderType.SHORT_CLOSE and order.pay_premium is None:
        raise MissingFieldError(
            "`pay_premium` must be set for closing a short position",
            ticker=order.ticker, expiration=order.readable_expiration,
            strategy=order.strategy_type.name, field="pay_premium"
        )
    if order.threshold_price is None:
        raise MissingFieldError(
            "Threshold price is required",
            ticker=order.ticker, expiration=order.readable_expiration,
            strategy=order.strategy_type.name, field="threshold_price"
        )
    negative = [name for name, value in (("threshold_price", order.threshold_price),
                                         ("ratio", order.ratio))
                if value < 0]
    if any(strike < 0 for strike in order.strikes):
        negative.append("strike")
    if negative:
        raise EncodingError(
            f"Negative {negative[0]} cannot be encoded as an unsigned amount",
            ticker=order.ticker, expiration=order.readable_expiration,
            strategy=order.strategy_type.name, field=negative[0]
        )
    if len(set(order.expirations)) > 1:
        raise UnsupportedStrategyError(
            "Calendar spreads (legs with different expirations) are not supported",
            ticker=order.ticker, expiration="/".join(order.expirations),
            strategy=order.strategy_type.name, field="readable_expiration"
        )


def build_order_fields(order: PositionOrder, decimals: int, unix_expiration: int) -> OrderFields:
    """
    Normalize an order into its hash fields.

    Args:
        order: Caller order
        decimals: Stablecoin decimals
        unix_expiration: Expiration timestamp (08:00 UTC of a Friday)

    Returns:
        OrderFields
    """
    check_required_fields(order)
    return OrderFields(
        ticker=order.ticker,
        unix_expiration=int(unix_expiration),
        readable_expiration=order.readable_expiration,
        strikes=strikes_to_base_units(order.strikes, decimals),
        formatted_strike=join_strikes(order.strikes),
        strategy_type=order.strategy_type,
        order_type=order.order_type,
        quantity=scale_quantity(order.ratio),
        threshold_price=to_base_units(order.threshold_price, decimals),
    )


class OrderHasher:
    """
    Hashes orders with the packed layout of one contract version.

    Usage:
        hasher = OrderHasher(get_protocol_version("v4"))
        digest = hasher.hash(fields)
        signature = await hasher.sign(digest, signer)
    """

    def __init__(self, protocol: ProtocolVersion):
        self.protocol = protocol
        self.layout = protocol.hash_layout

    def check_encodable(self, order: PositionOrder) -> None:
        """
        Raise UnsupportedStrategyError if this version cannot encode the order.

        Only needs the caller's order, so it can run before any external read.
        """
        try:
            self.layout.strike_type(len(order.option_legs), order.strategy_type)
            self.protocol.strategy_code(order.strategy_type)
        except UnsupportedStrategyError as e:
            raise UnsupportedStrategyError(
                e.message, ticker=order.ticker, expiration=order.readable_expiration,
                strategy=order.strategy_type.name, field=e.field
            ) from e

    def _field_values(self, fields: OrderFields) -> Dict[str, Any]:
        strike_type = self.layout.strike_type(len(fields.strikes), fields.strategy_type)
        if strike_type == "uint256":
            strikes: Any = fields.strikes[0]
        else:
            strikes = list(fields.strikes) + [0] * (2 - len(fields.strikes))
        return {
            OPENING_FLAG: fields.order_type in OPENING_ORDER_TYPES,
            TICKER: fields.ticker,
            UNIX_EXPIRATION: fields.unix_expiration,
            READABLE_EXPIRATION: int(fields.readable_expiration),
            STRIKES: strikes,
            FORMATTED_STRIKE: fields.formatted_strike,
            STRATEGY_CODE: self.protocol.strategy_code(fields.strategy_type),
            QUANTITY: fields.quantity,
            THRESHOLD_PRICE: fields.threshold_price,
        }

    def encode(self, fields: OrderFields) -> Tuple[List[str], List[Any]]:
        """
        Ordered (abi_types, values) for packed encoding.

        Raises:
            UnsupportedStrategyError: No strike slot or strategy code for this order
        """
        values = self._field_values(fields)
        abi_types = []
        abi_values = []
        for name, abi_type in self.layout.fields:
            if name == STRIKES:
                abi_type = self.layout.strike_type(len(fields.strikes), fields.strategy_type)
            abi_types.append(abi_type)
            abi_values.append(values[name])
        return abi_types, abi_values

    def hash(self, fields: OrderFields) -> bytes:
        """
        keccak256(abi.encodePacked(...)) of the order fields.

        Returns:
            32-byte digest
        """
        abi_types, abi_values = self.encode(fields)
        try:
            digest = bytes(Web3.solidity_keccak(abi_types, abi_values))
        except (TypeError, ValueError, OverflowError) as e:
            raise EncodingError(
                f"Cannot encode order: {e}", ticker=fields.ticker,
                expiration=fields.readable_expiration, strategy=fields.strategy_type.name
            ) from e
        log.debug(f"Order hash {fields.ticker} {fields.readable_expiration} "
                  f"{fields.formatted_strike}: 0x{digest.hex()}")
        return digest

    def hash_order(self, order: PositionOrder, decimals: int,
                   unix_expiration: int) -> Tuple[OrderFields, bytes]:
        """Normalize and hash a caller order in one step."""
        fields = build_order_fields(order, decimals, unix_expiration)
        return fields, self.hash(fields)

    async def sign(self, digest: bytes, signer: Signer) -> bytes:
        """
        Have the signer sign the digest.

        Raises:
            SigningFailedError: Signer rejected or failed, or returned a
                malformed signature
        """
        try:
            signature = bytes(await signer.sign(digest))
        except SigningFailedError:
            raise
        except Exception as e:
            raise SigningFailedError(f"Signer failed: {e}") from e
        if len(signature) != SIGNATURE_LENGTH:
            raise SigningFailedError(
                f"Expected a {SIGNATURE_LENGTH}-byte signature, got {len(signature)} bytes "
                f"({mask_secret(signature)})"
            )
        return signature
