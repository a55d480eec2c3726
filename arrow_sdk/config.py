"""
Arrow Options SDK - Configuration

Network and version settings are resolved once into a NetworkConfig and
handed to each component; nothing reads global provider state at call
time.
"""

import json
import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional, Union

from web3 import Web3

from .exceptions import EncodingError, UnsupportedVersionError
from .versions import DEFAULT_VERSION, ProtocolVersion, Version, get_protocol_version

log = logging.getLogger(__name__)

# =============================================================================
# NETWORKS
# =============================================================================

NETWORKS = {
    "fuji": {
        "name": "Avalanche Fuji",
        "rpc": "https://api.avax-test.network/ext/bc/C/rpc",
        "chain_id": 43113,
    },
    "mainnet": {
        "name": "Avalanche C-Chain",
        "rpc": "https://api.avax.network/ext/bc/C/rpc",
        "chain_id": 43114,
    },
}

DEFAULT_NETWORK = "fuji"

# Environment overrides
ENV_RPC_URL = "ARROW_RPC_URL"
ENV_API_URL = "ARROW_API_URL"
ENV_INIT_CODE_HASH = "ARROW_INIT_CODE_HASH"


@dataclass(frozen=True)
class NetworkConfig:
    """
    Everything a component needs to talk to one Arrow deployment.

    init_code_hash is the keccak256 of the option chain proxy creation
    bytecode; it is a per-version build constant and must be supplied.
    """
    network: str
    rpc_url: str
    chain_id: int
    protocol: ProtocolVersion
    router_address: str
    api_url: str
    init_code_hash: Optional[str] = None

    @property
    def version(self) -> Version:
        return self.protocol.version

    def with_init_code_hash(self, init_code_hash: str) -> "NetworkConfig":
        return replace(self, init_code_hash=normalize_hash(init_code_hash))


def normalize_hash(value: Union[str, bytes]) -> str:
    """
    Normalize a 32-byte hash to a 0x-prefixed lowercase hex string.

    Raises:
        EncodingError: If the value is not exactly 32 bytes
    """
    try:
        raw = bytes(value) if isinstance(value, (bytes, bytearray)) else Web3.to_bytes(hexstr=value)
    except (TypeError, ValueError) as e:
        raise EncodingError(f"Invalid 32-byte hash: {value!r}") from e
    if len(raw) != 32:
        raise EncodingError(f"Expected a 32-byte hash, got {len(raw)} bytes")
    return "0x" + raw.hex()


def init_code_hash_from_bytecode(bytecode: Union[str, bytes]) -> str:
    """keccak256 of the proxy creation bytecode, as used by CREATE2."""
    raw = bytecode if isinstance(bytecode, (bytes, bytearray)) else Web3.to_bytes(hexstr=bytecode)
    return "0x" + bytes(Web3.keccak(raw)).hex()


def load_config(path: Optional[Union[str, Path]] = None,
                network: str = DEFAULT_NETWORK,
                version: Union[str, Version] = DEFAULT_VERSION) -> NetworkConfig:
    """
    Build a NetworkConfig from defaults, an optional JSON file and the environment.

    JSON keys (all optional): "network", "version", "rpc_url", "api_url",
    "router_address", "init_code_hash".

    Args:
        path: JSON config file
        network: Network key in NETWORKS ("fuji" or "mainnet")
        version: Contract suite version ("v3", "v4", "competition")

    Returns:
        Resolved NetworkConfig

    Raises:
        UnsupportedVersionError: Unknown network or version
    """
    overrides = {}
    if path is not None:
        config_path = Path(path)
        overrides = json.loads(config_path.read_text())
        log.info(f"Loaded config from {config_path}")

    network = overrides.get("network", network)
    if network not in NETWORKS:
        raise UnsupportedVersionError(
            f"Unsupported network: {network}. Supported: {list(NETWORKS)}",
            field="network"
        )
    protocol = get_protocol_version(overrides.get("version", version))
    network_config = NETWORKS[network]

    rpc_url = os.environ.get(ENV_RPC_URL) or overrides.get("rpc_url") or network_config["rpc"]
    api_url = os.environ.get(ENV_API_URL) or overrides.get("api_url") or protocol.api_url
    init_code_hash = os.environ.get(ENV_INIT_CODE_HASH) or overrides.get("init_code_hash")
    router_address = overrides.get("router_address", protocol.router_address)

    config = NetworkConfig(
        network=network,
        rpc_url=rpc_url,
        chain_id=int(overrides.get("chain_id", network_config["chain_id"])),
        protocol=protocol,
        router_address=Web3.to_checksum_address(router_address),
        api_url=api_url.rstrip("/"),
        init_code_hash=normalize_hash(init_code_hash) if init_code_hash else None,
    )
    log.debug(f"Config resolved: network={config.network} version={config.version.value} "
              f"router={config.router_address}")
    if config.init_code_hash is None:
        log.warning("No init code hash configured - deterministic addresses unavailable")
    return config
