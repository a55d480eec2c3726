import pytest

from arrow_sdk.arrow_types import ContractType, OrderType, StrategyType, build_position_order
from arrow_sdk.config import load_config
from arrow_sdk.signer import LocalAccountSigner

from helpers import FRIDAY, TEST_PRIVATE_KEY, FakeDecimalsSource, RecordingSigner


@pytest.fixture
def local_signer():
    return LocalAccountSigner(TEST_PRIVATE_KEY)


@pytest.fixture
def recording_signer():
    return RecordingSigner()


@pytest.fixture
def decimals_source():
    return FakeDecimalsSource()


@pytest.fixture
def config(monkeypatch):
    for var in ("ARROW_RPC_URL", "ARROW_API_URL", "ARROW_INIT_CODE_HASH"):
        monkeypatch.delenv(var, raising=False)
    return load_config(version="v4")


@pytest.fixture
def put_spread_order():
    """Long put spread: long 87.02 / short 84, two contracts."""
    return build_position_order(
        "AVAX", ["87.02", 84.0], [ContractType.PUT, ContractType.PUT], FRIDAY,
        StrategyType.PUT_SPREAD, OrderType.LONG_OPEN,
        ratio=2, threshold_price="1.23",
    )


@pytest.fixture
def short_put_spread_order():
    return build_position_order(
        "AVAX", [87.02, 84.0], [ContractType.PUT, ContractType.PUT], FRIDAY,
        StrategyType.PUT_SPREAD, OrderType.SHORT_OPEN,
        ratio=2, threshold_price="0.5",
    )


@pytest.fixture
def call_order():
    return build_position_order(
        "ETH", ["1350"], [ContractType.CALL], FRIDAY,
        StrategyType.CALL, OrderType.LONG_OPEN,
        ratio="1.5", threshold_price="12.5",
    )
