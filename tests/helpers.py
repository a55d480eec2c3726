"""Fakes and order builders shared by the Arrow SDK tests."""

import asyncio
from typing import List, Optional

from arrow_sdk.arrow_types import ContractType, OrderType, StrategyType, build_position_order
from arrow_sdk.signer import LocalAccountSigner, Signer

# Throwaway key, never funded
TEST_PRIVATE_KEY = "0x4c0883a69102937d6231471b5dbb6204fe512961708279f3a3d8a4e3f2b2c1d0"

FRIDAY = "10072022"
NOT_FRIDAY = "10042022"
FRIDAY_UNIX = 1665129600


class FakeDecimalsSource:
    """Stablecoin decimals with optional per-call delays or a failure."""

    def __init__(self, decimals: int = 6, delays: Optional[List[float]] = None,
                 error: Optional[Exception] = None):
        self.decimals = decimals
        self.delays = list(delays or [])
        self.error = error
        self.calls = 0

    async def get_stablecoin_decimals(self) -> int:
        self.calls += 1
        if self.delays:
            await asyncio.sleep(self.delays.pop(0))
        if self.error is not None:
            raise self.error
        return self.decimals


class RecordingSigner(Signer):
    """Wraps a LocalAccountSigner and records concurrency of sign() calls."""

    def __init__(self, concurrent_safe: bool = False):
        self.inner = LocalAccountSigner(TEST_PRIVATE_KEY)
        self.concurrent_safe = concurrent_safe
        self.calls = 0
        self.active = 0
        self.max_active = 0

    @property
    def address(self) -> str:
        return self.inner.address

    async def sign(self, digest: bytes) -> bytes:
        self.calls += 1
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(0.01)
            return await self.inner.sign(digest)
        finally:
            self.active -= 1


class FailingSigner(Signer):
    """Signer whose user always rejects the request."""

    def __init__(self):
        self.calls = 0

    @property
    def address(self) -> str:
        return "0x0000000000000000000000000000000000000000"

    async def sign(self, digest: bytes) -> bytes:
        self.calls += 1
        raise RuntimeError("User rejected the request")


def make_order(ticker="AVAX", strikes=("20",), strategy=StrategyType.CALL,
               order_type=OrderType.LONG_OPEN, expiration=FRIDAY, ratio=1,
               threshold_price="1.00", pay_premium=None):
    if strategy in (StrategyType.PUT, StrategyType.PUT_SPREAD):
        contract_type = ContractType.PUT
    else:
        contract_type = ContractType.CALL
    return build_position_order(
        ticker, list(strikes), [contract_type] * len(strikes), expiration,
        strategy, order_type, ratio=ratio, threshold_price=threshold_price,
        pay_premium=pay_premium,
    )
