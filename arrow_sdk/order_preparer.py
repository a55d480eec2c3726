"""
Arrow Options SDK - Order Preparer

Turns caller PositionOrders into PreparedOrders: stablecoin base units,
expiration timestamp, order hash, signature and approval amount.

Orders in a batch are prepared concurrently and independently; results
come back in input order. A failed order never rolls back its siblings.
"""

import asyncio
import logging
from typing import Iterable, List, Optional, Union

from .amounts import compute_amount_to_approve, validate_leg_count
from .arrow_types import PositionOrder, PreparedOrder
from .exceptions import ArrowSDKError, ExternalReadError, SigningFailedError
from .order_hasher import OrderHasher, build_order_fields, check_required_fields
from .signer import Signer, mask_secret
from .time_utils import get_expiration_timestamp
from .versions import ProtocolVersion, Version, get_protocol_version

log = logging.getLogger(__name__)


class OrderPreparer:
    """
    Prepares orders for one contract version.

    Args:
        protocol: Contract version (name, Version or ProtocolVersion)
        decimals_source: Object with `async get_stablecoin_decimals() -> int`
            (a ContractReader in production)
        signer: Signing capability; calls are serialized unless
            signer.concurrent_safe is True
    """

    def __init__(self, protocol: Union[str, Version, ProtocolVersion],
                 decimals_source, signer: Signer):
        self.protocol = get_protocol_version(protocol)
        self.hasher = OrderHasher(self.protocol)
        self.decimals_source = decimals_source
        self.signer = signer
        self._sign_lock: Optional[asyncio.Lock] = None

    def validate_order(self, order: PositionOrder) -> None:
        """
        Check caller input without touching the network.

        Raises:
            MissingFieldError: payPremium missing on SHORT_CLOSE, or no threshold price
            EncodingError: Negative threshold price, ratio or strike
            InvalidStrategyError: Strike count does not match the strategy
            UnsupportedStrategyError: No encoding for this strategy/version
            UnsupportedExpirationError: Expiration is not a Friday
        """
        check_required_fields(order)
        validate_leg_count(order.strategy_type, order.strikes, order.ticker)
        self.hasher.check_encodable(order)
        get_expiration_timestamp(order.readable_expiration)

    async def _get_decimals(self) -> int:
        try:
            return int(await self.decimals_source.get_stablecoin_decimals())
        except ArrowSDKError:
            raise
        except Exception as e:
            raise ExternalReadError(f"Cannot read stablecoin decimals: {e}",
                                    field="decimals") from e

    async def _sign(self, digest: bytes) -> bytes:
        if getattr(self.signer, "concurrent_safe", False):
            return await self.hasher.sign(digest, self.signer)
        # Bound to the running loop on first use
        if self._sign_lock is None:
            self._sign_lock = asyncio.Lock()
        async with self._sign_lock:
            return await self.hasher.sign(digest, self.signer)

    async def prepare_order(self, order: PositionOrder) -> PreparedOrder:
        """
        Prepare a single order.

        Returns:
            PreparedOrder with hash, signature and approval amount

        Raises:
            ArrowSDKError subclasses; see validate_order, plus
            ExternalReadError and SigningFailedError
        """
        self.validate_order(order)
        return await self._prepare(order)

    async def _prepare(self, order: PositionOrder) -> PreparedOrder:
        decimals = await self._get_decimals()
        expiration = get_expiration_timestamp(order.readable_expiration)
        fields = build_order_fields(order, decimals, expiration.unix_timestamp)
        digest = self.hasher.hash(fields)

        try:
            signature = await self._sign(digest)
        except SigningFailedError as e:
            raise SigningFailedError(
                e.message, ticker=order.ticker, expiration=order.readable_expiration,
                strategy=order.strategy_type.name
            ) from e

        prepared = PreparedOrder(
            order=order,
            hashed_values="0x" + digest.hex(),
            signature="0x" + signature.hex(),
            amount_to_approve=compute_amount_to_approve(order, decimals),
            unix_expiration=expiration.unix_timestamp,
            formatted_strike=fields.formatted_strike,
            big_number_strike=fields.strikes,
            big_number_threshold_price=fields.threshold_price,
        )
        log.info(f"Prepared {order.order_type.name} {order.symbol} "
                 f"exp={order.readable_expiration} hash={prepared.hashed_values[:18]}... "
                 f"signature={mask_secret(prepared.signature)}")
        return prepared

    async def _prepare_with_timeout(self, order: PositionOrder,
                                    timeout: Optional[float]) -> PreparedOrder:
        if timeout is None:
            return await self._prepare(order)
        return await asyncio.wait_for(self._prepare(order), timeout)

    async def prepare_orders(self, orders: Iterable[PositionOrder],
                             timeout: Optional[float] = None,
                             return_exceptions: bool = False) -> List:
        """
        Prepare a batch of orders concurrently.

        Every order is validated before any network call. Siblings always
        run to completion; a per-order timeout only fails that order.

        Args:
            orders: Orders to prepare
            timeout: Per-order timeout in seconds (asyncio.TimeoutError on expiry)
            return_exceptions: Return failures in place instead of raising

        Returns:
            One result per order, in input order. With return_exceptions=True
            failed slots hold the exception instead of a PreparedOrder.

        Raises:
            The first failure in input order (when return_exceptions=False)
        """
        orders = list(orders)
        invalid = {}
        for index, order in enumerate(orders):
            try:
                self.validate_order(order)
            except ArrowSDKError as e:
                if not return_exceptions:
                    raise
                invalid[index] = e

        pending = [
            self._prepare_with_timeout(order, timeout)
            for index, order in enumerate(orders) if index not in invalid
        ]
        settled = iter(await asyncio.gather(*pending, return_exceptions=True))
        results = [invalid[index] if index in invalid else next(settled)
                   for index in range(len(orders))]

        failures = 0
        for order, result in zip(orders, results):
            if isinstance(result, BaseException):
                failures += 1
                log.warning(f"Order {order.symbol} exp={order.readable_expiration} "
                            f"failed: {type(result).__name__}: {result}")
        log.info(f"Prepared {len(orders) - failures}/{len(orders)} orders "
                 f"(version={self.protocol.version.value})")

        if not return_exceptions:
            for result in results:
                if isinstance(result, BaseException):
                    raise result
        return results
