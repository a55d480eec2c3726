"""
Arrow Options SDK

Order preparation and deterministic addresses for Arrow options.

Architecture:
  - Orders are hashed and signed OFF-CHAIN by this SDK
  - The Arrow API prices and executes them; the router verifies the
    signature against the same packed hash
  - Option chains and short aggregators live at CREATE2 addresses that
    can be computed before deployment

Usage:
    from arrow_sdk import ArrowClient, LocalAccountSigner, build_position_order

    client = ArrowClient.create(version="v4", signer=LocalAccountSigner(key))

    order = build_position_order(
        "AVAX", ["87.02", "84"], [ContractType.PUT, ContractType.PUT],
        "10072022", StrategyType.PUT_SPREAD, OrderType.LONG_OPEN,
        ratio=2, threshold_price="1.23",
    )
    prepared = await client.prepare_orders([order])
    await client.submit_long_order(prepared)
"""

from .arrow_types import (
    Ticker,
    ContractType,
    StrategyType,
    OrderType,
    OptionLeg,
    PositionOrder,
    PreparedOrder,
    build_position_order,
)
from .exceptions import (
    ArrowSDKError,
    UnsupportedVersionError,
    UnsupportedExpirationError,
    MissingFieldError,
    InvalidStrategyError,
    UnsupportedStrategyError,
    EncodingError,
    SigningFailedError,
    ExternalReadError,
    InsufficientBalanceError,
    APIError,
)
from .versions import Version, ProtocolVersion, VERSIONS, get_protocol_version
from .config import NETWORKS, NetworkConfig, load_config, init_code_hash_from_bytecode
from .time_utils import (
    get_readable_timestamp,
    get_time_utc,
    get_current_time_utc,
    get_expiration_timestamp,
    is_friday,
)
from .address_codec import (
    compute_create2_address,
    compute_chain_proxy_address,
    compute_aggregator_address,
)
from .amounts import (
    to_base_units,
    format_strike,
    join_strikes,
    compute_amount_to_approve,
    compute_order_fee,
    price_with_fee,
)
from .order_hasher import OrderFields, OrderHasher, build_order_fields
from .signer import Signer, LocalAccountSigner, recover_signer, mask_secret
from .contracts import ContractReader
from .order_preparer import OrderPreparer
from .api_client import ArrowAPIClient
from .client import ArrowClient

__version__ = "0.1.0"
__all__ = [
    # Types
    "Ticker", "ContractType", "StrategyType", "OrderType",
    "OptionLeg", "PositionOrder", "PreparedOrder", "build_position_order",
    # Errors
    "ArrowSDKError", "UnsupportedVersionError", "UnsupportedExpirationError",
    "MissingFieldError", "InvalidStrategyError", "UnsupportedStrategyError",
    "EncodingError", "SigningFailedError", "ExternalReadError",
    "InsufficientBalanceError", "APIError",
    # Config
    "Version", "ProtocolVersion", "VERSIONS", "get_protocol_version",
    "NETWORKS", "NetworkConfig", "load_config", "init_code_hash_from_bytecode",
    # Time
    "get_readable_timestamp", "get_time_utc", "get_current_time_utc",
    "get_expiration_timestamp", "is_friday",
    # Addresses
    "compute_create2_address", "compute_chain_proxy_address", "compute_aggregator_address",
    # Amounts
    "to_base_units", "format_strike", "join_strikes", "compute_amount_to_approve",
    "compute_order_fee", "price_with_fee",
    # Hashing and signing
    "OrderFields", "OrderHasher", "build_order_fields",
    "Signer", "LocalAccountSigner", "recover_signer", "mask_secret",
    # Collaborators
    "ContractReader", "OrderPreparer", "ArrowAPIClient", "ArrowClient",
]
