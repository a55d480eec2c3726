"""
Arrow Options SDK - Protocol Versions

Each deployed contract suite is described as data: router address,
API URL, the numeric strategy codes it understands and the packed
field layout it hashes. Behavior is selected once, when a version is
resolved, instead of branching on version strings at every call.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Tuple, Union

from .arrow_types import StrategyType
from .exceptions import UnsupportedStrategyError, UnsupportedVersionError


class Version(Enum):
    """Arrow contract suite versions"""
    V3 = "v3"
    V4 = "v4"
    COMPETITION = "competition"


# ═══════════════════════════════════════════════════════════════════════════════
# HASH LAYOUT FIELDS
# ═══════════════════════════════════════════════════════════════════════════════

OPENING_FLAG = "opening_flag"
TICKER = "ticker"
UNIX_EXPIRATION = "unix_expiration"
READABLE_EXPIRATION = "readable_expiration"
STRIKES = "strikes"
FORMATTED_STRIKE = "formatted_strike"
STRATEGY_CODE = "strategy_code"
QUANTITY = "quantity"
THRESHOLD_PRICE = "threshold_price"

# Fixed (name, packed ABI type) pairs; the strike slot type is resolved
# per order by the layout.
_BASE_FIELDS: Tuple[Tuple[str, str], ...] = (
    (TICKER, "string"),
    (UNIX_EXPIRATION, "uint256"),
    (READABLE_EXPIRATION, "uint256"),
    (STRIKES, ""),
    (FORMATTED_STRIKE, "string"),
    (STRATEGY_CODE, "uint256"),
    (QUANTITY, "uint256"),
    (THRESHOLD_PRICE, "uint256"),
)


@dataclass(frozen=True)
class HashLayout:
    """
    Ordered packed-encoding layout of the order hash.

    Attributes:
        fields: (name, abi_type) pairs; an empty type marks the strike slot
        pad_single_leg: Encode single-leg strikes as uint256[2] with a
            trailing zero instead of a bare uint256
    """
    fields: Tuple[Tuple[str, str], ...]
    pad_single_leg: bool = False

    def strike_type(self, leg_count: int, strategy: StrategyType) -> str:
        """ABI type of the strike slot for an order with leg_count legs."""
        if leg_count == 1:
            return "uint256[2]" if self.pad_single_leg else "uint256"
        if leg_count == 2:
            return "uint256[2]"
        raise UnsupportedStrategyError(
            f"No hash encoding for {leg_count}-leg strategies",
            strategy=strategy.name, field="strike"
        )


@dataclass(frozen=True)
class ProtocolVersion:
    """Everything that differs between deployed contract suites."""
    version: Version
    router_address: str
    api_url: str
    strategy_codes: Dict[StrategyType, int]
    hash_layout: HashLayout

    def strategy_code(self, strategy: StrategyType) -> int:
        try:
            return self.strategy_codes[strategy]
        except KeyError:
            raise UnsupportedStrategyError(
                f"Strategy has no code in contract version {self.version.value}",
                strategy=strategy.name, field="strategy_type"
            )


CANONICAL_STRATEGY_CODES: Dict[StrategyType, int] = {
    strategy: strategy.value for strategy in StrategyType
}

# Legacy suites hash a "contract type" that only knows singles and spreads
LEGACY_CONTRACT_TYPE_CODES: Dict[StrategyType, int] = {
    StrategyType.CALL: 0,
    StrategyType.PUT: 1,
    StrategyType.CALL_SPREAD: 2,
    StrategyType.PUT_SPREAD: 3,
}

V4_LAYOUT = HashLayout(fields=_BASE_FIELDS)
LEGACY_LAYOUT = HashLayout(fields=((OPENING_FLAG, "bool"),) + _BASE_FIELDS,
                           pad_single_leg=True)

VERSIONS: Dict[Version, ProtocolVersion] = {
    Version.V3: ProtocolVersion(
        version=Version.V3,
        router_address="0x31122CeF9891Ef661C99352266FA0FF0079a0e06",
        api_url="https://fuji-v2-api.arrow.markets/v1",
        strategy_codes=LEGACY_CONTRACT_TYPE_CODES,
        hash_layout=LEGACY_LAYOUT,
    ),
    Version.V4: ProtocolVersion(
        version=Version.V4,
        router_address="0xaB12c83893ba35f2e4CEeA65429c5805CC86D4bD",
        api_url="https://development-api.arrow.markets/v1",
        strategy_codes=CANONICAL_STRATEGY_CODES,
        hash_layout=V4_LAYOUT,
    ),
    Version.COMPETITION: ProtocolVersion(
        version=Version.COMPETITION,
        router_address="0xD05D064DBDCf8dB7D87EcD7E06c63874Bb968AA6",
        api_url="https://competition-v5-api.arrow.markets/v1",
        strategy_codes=CANONICAL_STRATEGY_CODES,
        hash_layout=V4_LAYOUT,
    ),
}

DEFAULT_VERSION = Version.V4


def get_protocol_version(version: Union[str, Version, ProtocolVersion]) -> ProtocolVersion:
    """
    Resolve a version name or enum member to its ProtocolVersion.

    Raises:
        UnsupportedVersionError: If the version is unknown
    """
    if isinstance(version, ProtocolVersion):
        return version
    try:
        key = version if isinstance(version, Version) else Version(str(version).lower())
        return VERSIONS[key]
    except (ValueError, KeyError):
        raise UnsupportedVersionError(
            f"Please select a supported contract version, got {version!r}. "
            f"Supported: {[v.value for v in VERSIONS]}",
            field="version"
        )


def is_valid_version(version: Union[str, Version]) -> bool:
    """Check whether a version is known."""
    try:
        get_protocol_version(version)
        return True
    except UnsupportedVersionError:
        return False
