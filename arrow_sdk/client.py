"""
Arrow Options SDK - Client

ArrowClient wires configuration, contract reads, order preparation and
submission together for one network and contract version.
"""

import logging
from decimal import Decimal
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Union

from .address_codec import compute_aggregator_address, compute_chain_proxy_address
from .amounts import compute_order_fee, price_with_fee
from .api_client import ArrowAPIClient
from .arrow_types import Number, PositionOrder, PreparedOrder, ticker_value
from .config import DEFAULT_NETWORK, NetworkConfig, load_config
from .contracts import ContractReader
from .exceptions import SigningFailedError, UnsupportedVersionError
from .order_preparer import OrderPreparer
from .signer import Signer
from .versions import DEFAULT_VERSION, Version

log = logging.getLogger(__name__)


class ArrowClient:
    """
    High-level client for one Arrow deployment.

    Usage:
        client = ArrowClient.create(version="v4", signer=LocalAccountSigner(key))
        prepared = await client.prepare_orders([order])
        await client.submit_long_order(prepared)
    """

    def __init__(self, config: NetworkConfig, signer: Optional[Signer] = None,
                 reader: Optional[ContractReader] = None,
                 api: Optional[ArrowAPIClient] = None):
        self.config = config
        self.signer = signer
        self.reader = reader or ContractReader(config)
        self.api = api or ArrowAPIClient(config.api_url)
        self._preparer: Optional[OrderPreparer] = None

    @classmethod
    def create(cls, path: Optional[Union[str, Path]] = None,
               network: str = DEFAULT_NETWORK,
               version: Union[str, Version] = DEFAULT_VERSION,
               signer: Optional[Signer] = None) -> "ArrowClient":
        """Build a client from load_config() defaults, file and environment."""
        return cls(load_config(path, network=network, version=version), signer=signer)

    @property
    def preparer(self) -> OrderPreparer:
        if self.signer is None:
            raise SigningFailedError("No signer configured for order preparation")
        if self._preparer is None:
            self._preparer = OrderPreparer(self.config.protocol, self.reader, self.signer)
        return self._preparer

    async def close(self):
        await self.api.close()

    async def __aenter__(self) -> "ArrowClient":
        return self

    async def __aexit__(self, *exc_info):
        await self.close()

    # ═══════════════════════════════════════════════════════════════════════════
    # DETERMINISTIC ADDRESSES
    # ═══════════════════════════════════════════════════════════════════════════

    def _init_code_hash(self) -> str:
        if not self.config.init_code_hash:
            raise UnsupportedVersionError(
                f"No init code hash configured for {self.config.version.value}",
                field="init_code_hash"
            )
        return self.config.init_code_hash

    async def compute_option_chain_address(self, ticker: str, readable_expiration: str) -> str:
        """Address of the option chain for (ticker, expiration), deployed or not."""
        init_code_hash = self._init_code_hash()
        factory = await self.reader.get_option_chain_factory_address()
        address = compute_chain_proxy_address(factory, ticker, readable_expiration, init_code_hash)
        log.info(f"Option chain {ticker_value(ticker)} {readable_expiration}: {address}")
        return address

    async def compute_short_aggregator_address(self, ticker: str) -> str:
        """Address of the short aggregator for a ticker, deployed or not."""
        init_code_hash = self._init_code_hash()
        factory = await self.reader.get_short_aggregator_factory_address()
        address = compute_aggregator_address(factory, ticker, init_code_hash)
        log.info(f"Short aggregator {ticker_value(ticker)}: {address}")
        return address

    # ═══════════════════════════════════════════════════════════════════════════
    # ORDERS
    # ═══════════════════════════════════════════════════════════════════════════

    async def prepare_order(self, order: PositionOrder) -> PreparedOrder:
        return await self.preparer.prepare_order(order)

    async def prepare_orders(self, orders: Iterable[PositionOrder],
                             timeout: Optional[float] = None,
                             return_exceptions: bool = False) -> List:
        return await self.preparer.prepare_orders(
            orders, timeout=timeout, return_exceptions=return_exceptions
        )

    async def get_order_fee(self, option_price: Number) -> Decimal:
        """Estimated fee for an option price, from the registry fee rate."""
        fee_rate = await self.reader.get_fee_rate()
        scale_factor = await self.reader.get_fee_rate_scale_factor()
        return compute_order_fee(option_price, fee_rate, scale_factor)

    async def get_price_with_fee(self, option_price: Number) -> Decimal:
        fee_rate = await self.reader.get_fee_rate()
        scale_factor = await self.reader.get_fee_rate_scale_factor()
        return price_with_fee(option_price, fee_rate, scale_factor)

    async def check_approval(self, owner: str, prepared_orders: Sequence[PreparedOrder]) -> bool:
        """
        Check that owner's stablecoin balance and router allowance cover
        the combined approval amount of the prepared orders.
        """
        amount = sum(prepared.amount_to_approve for prepared in prepared_orders)
        return await self.reader.check_balance_and_allowance(
            owner, self.config.router_address, amount
        )

    async def estimate_gas(self, prepared_orders: Sequence[PreparedOrder]) -> dict:
        return await self.api.estimate_gas(prepared_orders)

    async def submit_long_order(self, prepared_orders: Sequence[PreparedOrder],
                                trading_view: Optional[str] = None):
        return await self.api.submit_long_order(prepared_orders, trading_view)

    async def submit_short_order(self, prepared_orders: Sequence[PreparedOrder],
                                 trading_view: Optional[str] = None):
        return await self.api.submit_short_order(prepared_orders, trading_view)
