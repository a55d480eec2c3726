"""
Arrow Options SDK - Deterministic Addresses

CREATE2 address computation for option chain proxies and short
aggregators:

    address = keccak256(0xff ++ deployer ++ salt ++ init_code_hash)[12:]

The salt is a packed keccak256 over the factory address and the
identifying fields, exactly as the factories derive it on-chain. All
functions here are pure: no network access.
"""

import logging
from typing import Union

from web3 import Web3

from .arrow_types import ticker_value
from .exceptions import EncodingError

log = logging.getLogger(__name__)

CREATE2_PREFIX = b"\xff"


def _checksum(address: str, name: str = "address") -> str:
    if not isinstance(address, str) or not Web3.is_address(address):
        raise EncodingError(f"Invalid {name}: {address!r}", field=name)
    return Web3.to_checksum_address(address)


def _address_bytes(address: str, name: str = "address") -> bytes:
    return Web3.to_bytes(hexstr=_checksum(address, name))


def _hash_bytes(value: Union[str, bytes], name: str) -> bytes:
    try:
        raw = bytes(value) if isinstance(value, (bytes, bytearray)) else Web3.to_bytes(hexstr=value)
    except (TypeError, ValueError) as e:
        raise EncodingError(f"Invalid {name}: {value!r}", field=name) from e
    if len(raw) != 32:
        raise EncodingError(f"{name} must be 32 bytes, got {len(raw)}", field=name)
    return raw


def _readable_expiration_int(readable_expiration: str) -> int:
    text = str(readable_expiration)
    if len(text) != 8 or not text.isdigit():
        raise EncodingError(
            f"Readable expiration must be MMDDYYYY digits: {readable_expiration!r}",
            expiration=text, field="readable_expiration"
        )
    return int(text)


def compute_create2_address(deployer: str, salt: Union[str, bytes],
                            init_code_hash: Union[str, bytes]) -> str:
    """
    Compute a CREATE2 contract address.

    Args:
        deployer: Address of the deploying (factory) contract
        salt: 32-byte salt
        init_code_hash: keccak256 of the creation bytecode (32 bytes)

    Returns:
        Checksummed address

    Raises:
        EncodingError: On malformed deployer, salt or hash
    """
    data = (
        CREATE2_PREFIX
        + _address_bytes(deployer, "deployer")
        + _hash_bytes(salt, "salt")
        + _hash_bytes(init_code_hash, "init_code_hash")
    )
    digest = bytes(Web3.keccak(data))
    return Web3.to_checksum_address("0x" + digest[12:].hex())


def chain_proxy_salt(factory_address: str, ticker: str, readable_expiration: str) -> bytes:
    """Salt = keccak256(abi.encodePacked(address factory, string ticker, uint256 readableExpiration))."""
    factory = _checksum(factory_address, "factory_address")
    if not ticker:
        raise EncodingError("Ticker must not be empty", field="ticker")
    try:
        return bytes(Web3.solidity_keccak(
            ["address", "string", "uint256"],
            [factory, ticker_value(ticker), _readable_expiration_int(readable_expiration)]
        ))
    except (TypeError, ValueError) as e:
        raise EncodingError(f"Cannot encode salt: {e}", ticker=ticker_value(ticker),
                            expiration=str(readable_expiration)) from e


def aggregator_salt(factory_address: str, ticker: str) -> bytes:
    """Salt = keccak256(abi.encodePacked(address factory, string ticker))."""
    factory = _checksum(factory_address, "factory_address")
    if not ticker:
        raise EncodingError("Ticker must not be empty", field="ticker")
    try:
        return bytes(Web3.solidity_keccak(["address", "string"], [factory, ticker_value(ticker)]))
    except (TypeError, ValueError) as e:
        raise EncodingError(f"Cannot encode salt: {e}", ticker=ticker_value(ticker)) from e


def compute_chain_proxy_address(factory_address: str, ticker: str,
                                readable_expiration: str,
                                init_code_hash: Union[str, bytes]) -> str:
    """
    Address of the option chain proxy for (ticker, expiration).

    The proxy may not be deployed yet; the address is what the factory
    will deploy it to.
    """
    salt = chain_proxy_salt(factory_address, ticker, readable_expiration)
    address = compute_create2_address(factory_address, salt, init_code_hash)
    log.debug(f"Option chain address {ticker} {readable_expiration}: {address}")
    return address


def compute_aggregator_address(factory_address: str, ticker: str,
                               init_code_hash: Union[str, bytes]) -> str:
    """Address of the short aggregator proxy for a ticker."""
    salt = aggregator_salt(factory_address, ticker)
    address = compute_create2_address(factory_address, salt, init_code_hash)
    log.debug(f"Short aggregator address {ticker}: {address}")
    return address
