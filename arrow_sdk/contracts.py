"""
Arrow Options SDK - Contract Reader

Read-only access to the Arrow router, registry and stablecoin through
web3's async provider. Every read failure is re-raised as
ExternalReadError naming the call; nothing here retries.
"""

import logging
from typing import Any, Awaitable, Callable, Optional

from web3 import AsyncHTTPProvider, AsyncWeb3, Web3

from .arrow_types import ticker_value
from .config import NetworkConfig
from .exceptions import ExternalReadError, InsufficientBalanceError

log = logging.getLogger(__name__)

# =============================================================================
# CONTRACT ABIS (minimal)
# =============================================================================


def _getter(name: str, output_type: str, inputs: Optional[list] = None) -> dict:
    return {
        "name": name,
        "type": "function",
        "stateMutability": "view",
        "inputs": inputs or [],
        "outputs": [{"name": "", "type": output_type}],
    }


ROUTER_ABI = [
    _getter("getStablecoinAddress", "address"),
    _getter("getRegistryAddress", "address"),
    _getter("getOptionChainFactoryAddress", "address"),
    _getter("getShortAggregatorFactoryAddress", "address"),
]

REGISTRY_ABI = [
    _getter("getFeeRate", "uint256"),
    _getter("getFeeRateScaleFactor", "uint256"),
    _getter("getUnderlyingAssetAddress", "address", [{"name": "ticker", "type": "string"}]),
]

ERC20_ABI = [
    _getter("decimals", "uint8"),
    _getter("balanceOf", "uint256", [{"name": "account", "type": "address"}]),
    _getter("allowance", "uint256", [
        {"name": "owner", "type": "address"},
        {"name": "spender", "type": "address"},
    ]),
]


class ContractReader:
    """
    Async read-only collaborator for one Arrow deployment.

    The stablecoin address and decimals never change for a deployment
    and are cached after the first successful read.

    Usage:
        reader = ContractReader(load_config(version="v4"))
        decimals = await reader.get_stablecoin_decimals()
    """

    def __init__(self, config: NetworkConfig, w3: Optional[AsyncWeb3] = None):
        self.config = config
        self.w3 = w3 or AsyncWeb3(AsyncHTTPProvider(config.rpc_url))
        self.router = self.w3.eth.contract(
            address=Web3.to_checksum_address(config.router_address),
            abi=ROUTER_ABI
        )
        self._stablecoin_address: Optional[str] = None
        self._stablecoin_decimals: Optional[int] = None

        log.debug(f"ContractReader for {config.network}/{config.version.value}: "
                  f"router={config.router_address}")

    async def _call(self, name: str, call: Callable[[], Awaitable[Any]]) -> Any:
        try:
            return await call()
        except ExternalReadError:
            raise
        except Exception as e:
            log.debug(f"Contract read {name} failed: {e}")
            raise ExternalReadError(f"Contract read {name} failed: {e}", field=name) from e

    def _contract(self, address: str, abi: list):
        return self.w3.eth.contract(address=Web3.to_checksum_address(address), abi=abi)

    # ═══════════════════════════════════════════════════════════════════════════
    # ROUTER
    # ═══════════════════════════════════════════════════════════════════════════

    async def get_stablecoin_address(self) -> str:
        if self._stablecoin_address is None:
            address = await self._call(
                "getStablecoinAddress",
                lambda: self.router.functions.getStablecoinAddress().call()
            )
            self._stablecoin_address = Web3.to_checksum_address(address)
        return self._stablecoin_address

    async def get_registry_address(self) -> str:
        address = await self._call(
            "getRegistryAddress",
            lambda: self.router.functions.getRegistryAddress().call()
        )
        return Web3.to_checksum_address(address)

    async def get_option_chain_factory_address(self) -> str:
        address = await self._call(
            "getOptionChainFactoryAddress",
            lambda: self.router.functions.getOptionChainFactoryAddress().call()
        )
        return Web3.to_checksum_address(address)

    async def get_short_aggregator_factory_address(self) -> str:
        address = await self._call(
            "getShortAggregatorFactoryAddress",
            lambda: self.router.functions.getShortAggregatorFactoryAddress().call()
        )
        return Web3.to_checksum_address(address)

    # ═══════════════════════════════════════════════════════════════════════════
    # STABLECOIN
    # ═══════════════════════════════════════════════════════════════════════════

    async def get_stablecoin_decimals(self) -> int:
        """Decimals of the deployment's stablecoin (cached)."""
        if self._stablecoin_decimals is None:
            stablecoin = self._contract(await self.get_stablecoin_address(), ERC20_ABI)
            decimals = await self._call(
                "decimals", lambda: stablecoin.functions.decimals().call()
            )
            self._stablecoin_decimals = int(decimals)
            log.debug(f"Stablecoin decimals: {self._stablecoin_decimals}")
        return self._stablecoin_decimals

    async def get_balance(self, owner: str, token: Optional[str] = None) -> int:
        """ERC-20 balance in base units (stablecoin unless token is given)."""
        contract = self._contract(token or await self.get_stablecoin_address(), ERC20_ABI)
        owner = Web3.to_checksum_address(owner)
        return int(await self._call(
            "balanceOf", lambda: contract.functions.balanceOf(owner).call()
        ))

    async def get_allowance(self, owner: str, spender: str, token: Optional[str] = None) -> int:
        """ERC-20 allowance in base units (stablecoin unless token is given)."""
        contract = self._contract(token or await self.get_stablecoin_address(), ERC20_ABI)
        owner = Web3.to_checksum_address(owner)
        spender = Web3.to_checksum_address(spender)
        return int(await self._call(
            "allowance", lambda: contract.functions.allowance(owner, spender).call()
        ))

    async def check_balance_and_allowance(self, owner: str, spender: str, amount: int,
                                          token: Optional[str] = None) -> bool:
        """
        Check that owner holds and has approved at least amount base units.

        Returns:
            False if either balance or allowance is short
        """
        balance = await self.get_balance(owner, token)
        allowance = await self.get_allowance(owner, spender, token)
        if balance < amount:
            log.info(f"Balance short for {owner}: {balance} < {amount}")
            return False
        if allowance < amount:
            log.info(f"Allowance short for {owner} -> {spender}: {allowance} < {amount}")
            return False
        return True

    async def require_balance(self, owner: str, amount: int, token: Optional[str] = None) -> int:
        """
        Raise if owner holds less than amount base units.

        Returns:
            The balance read

        Raises:
            InsufficientBalanceError: Balance below amount
        """
        balance = await self.get_balance(owner, token)
        if balance < amount:
            raise InsufficientBalanceError(
                f"Balance {balance} of {owner} is below required {amount}",
                field="amount_to_approve"
            )
        return balance

    # ═══════════════════════════════════════════════════════════════════════════
    # REGISTRY
    # ═══════════════════════════════════════════════════════════════════════════

    async def _registry(self):
        return self._contract(await self.get_registry_address(), REGISTRY_ABI)

    async def get_fee_rate(self) -> int:
        registry = await self._registry()
        return int(await self._call(
            "getFeeRate", lambda: registry.functions.getFeeRate().call()
        ))

    async def get_fee_rate_scale_factor(self) -> int:
        registry = await self._registry()
        return int(await self._call(
            "getFeeRateScaleFactor", lambda: registry.functions.getFeeRateScaleFactor().call()
        ))

    async def get_underlying_asset_address(self, ticker: str) -> str:
        registry = await self._registry()
        address = await self._call(
            "getUnderlyingAssetAddress",
            lambda: registry.functions.getUnderlyingAssetAddress(ticker_value(ticker)).call()
        )
        return Web3.to_checksum_address(address)
