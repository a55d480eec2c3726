import pytest
from web3 import Web3

from arrow_sdk.address_codec import (
    aggregator_salt,
    chain_proxy_salt,
    compute_aggregator_address,
    compute_chain_proxy_address,
    compute_create2_address,
)
from arrow_sdk.arrow_types import Ticker
from arrow_sdk.exceptions import EncodingError

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"
DEADBEEF_ADDRESS = "0xdeadbeef00000000000000000000000000000000"
ZERO_SALT = b"\x00" * 32

FACTORY = "0xaB12c83893ba35f2e4CEeA65429c5805CC86D4bD"
# keccak256("arrow option chain proxy")
INIT_CODE_HASH = "0x819afe8017417a46155fdcac241e0b9f7049b145caa9e342d20c9439742d32c0"


class TestCreate2:
    """Reference vectors from EIP-1014."""

    def test_zero_deployer_zero_salt(self):
        init_code_hash = Web3.keccak(b"\x00")
        assert compute_create2_address(ZERO_ADDRESS, ZERO_SALT, init_code_hash) == \
            "0x4D1A2e2bB4F88F0250f26Ffff098B0b30B26BF38"

    def test_deadbeef_deployer(self):
        init_code_hash = Web3.keccak(b"\x00")
        assert compute_create2_address(DEADBEEF_ADDRESS, ZERO_SALT, init_code_hash) == \
            "0xB928f69Bb1D91Cd65274e3c79d8986362984fDA3"

    def test_deadbeef_deployer_feed_salt(self):
        salt = "0x000000000000000000000000feed000000000000000000000000000000000000"
        init_code_hash = Web3.keccak(b"\x00")
        assert compute_create2_address(DEADBEEF_ADDRESS, salt, init_code_hash) == \
            "0xD04116cDd17beBE565EB2422F2497E06cC1C9833"

    def test_deadbeef_init_code(self):
        init_code_hash = Web3.keccak(hexstr="0xdeadbeef")
        assert compute_create2_address(ZERO_ADDRESS, ZERO_SALT, init_code_hash) == \
            "0x70f2b2914A2a4b783FaEFb75f459A580616Fcb5e"

    def test_hex_and_bytes_inputs_agree(self):
        init_code_hash = Web3.keccak(b"\x00")
        from_bytes = compute_create2_address(ZERO_ADDRESS, ZERO_SALT, bytes(init_code_hash))
        from_hex = compute_create2_address(ZERO_ADDRESS, "0x" + "00" * 32,
                                           "0x" + bytes(init_code_hash).hex())
        assert from_bytes == from_hex

    def test_invalid_deployer(self):
        with pytest.raises(EncodingError):
            compute_create2_address("0x1234", ZERO_SALT, INIT_CODE_HASH)

    def test_short_salt(self):
        with pytest.raises(EncodingError):
            compute_create2_address(ZERO_ADDRESS, b"\x00" * 31, INIT_CODE_HASH)

    def test_short_init_code_hash(self):
        with pytest.raises(EncodingError):
            compute_create2_address(ZERO_ADDRESS, ZERO_SALT, "0xdeadbeef")


class TestSalts:
    def test_chain_proxy_salt_is_packed_keccak(self):
        packed = (
            Web3.to_bytes(hexstr=FACTORY)
            + b"BTC"
            + (10072022).to_bytes(32, "big")
        )
        assert chain_proxy_salt(FACTORY, "BTC", "10072022") == bytes(Web3.keccak(packed))

    def test_aggregator_salt_is_packed_keccak(self):
        packed = Web3.to_bytes(hexstr=FACTORY) + b"AVAX"
        assert aggregator_salt(FACTORY, "AVAX") == bytes(Web3.keccak(packed))

    def test_ticker_enum_matches_string(self):
        assert chain_proxy_salt(FACTORY, Ticker.BTC, "10072022") == \
            chain_proxy_salt(FACTORY, "BTC", "10072022")

    def test_lowercase_factory_is_accepted(self):
        assert aggregator_salt(FACTORY.lower(), "ETH") == aggregator_salt(FACTORY, "ETH")

    def test_empty_ticker(self):
        with pytest.raises(EncodingError):
            aggregator_salt(FACTORY, "")

    def test_malformed_expiration(self):
        with pytest.raises(EncodingError):
            chain_proxy_salt(FACTORY, "BTC", "Oct 7 2022")


class TestAddresses:
    def test_chain_proxy_address_is_deterministic(self):
        first = compute_chain_proxy_address(FACTORY, "BTC", "10072022", INIT_CODE_HASH)
        second = compute_chain_proxy_address(FACTORY, "BTC", "10072022", INIT_CODE_HASH)
        assert first == second
        assert Web3.is_checksum_address(first)

    def test_chain_proxy_address_matches_create2(self):
        salt = chain_proxy_salt(FACTORY, "BTC", "10072022")
        expected = Web3.keccak(
            b"\xff" + Web3.to_bytes(hexstr=FACTORY) + salt + Web3.to_bytes(hexstr=INIT_CODE_HASH)
        )[12:]
        address = compute_chain_proxy_address(FACTORY, "BTC", "10072022", INIT_CODE_HASH)
        assert address == Web3.to_checksum_address(expected)

    def test_expiration_changes_address(self):
        assert compute_chain_proxy_address(FACTORY, "BTC", "10072022", INIT_CODE_HASH) != \
            compute_chain_proxy_address(FACTORY, "BTC", "10142022", INIT_CODE_HASH)

    def test_ticker_changes_address(self):
        assert compute_aggregator_address(FACTORY, "BTC", INIT_CODE_HASH) != \
            compute_aggregator_address(FACTORY, "ETH", INIT_CODE_HASH)

    def test_aggregator_and_chain_differ(self):
        assert compute_aggregator_address(FACTORY, "BTC", INIT_CODE_HASH) != \
            compute_chain_proxy_address(FACTORY, "BTC", "10072022", INIT_CODE_HASH)

    def test_known_chain_proxy_address(self):
        assert compute_chain_proxy_address(FACTORY, "BTC", "10072022", INIT_CODE_HASH) == \
            "0x2dC7BE7A0166ee0EB80a4224dae7Cab46b71e07f"

    def test_known_aggregator_address(self):
        assert compute_aggregator_address(FACTORY, "AVAX", INIT_CODE_HASH) == \
            "0x48A3f648d1d3419940BC247964Aa7135cE0ca1c9"

    def test_init_code_hash_constant(self):
        assert INIT_CODE_HASH == "0x" + bytes(Web3.keccak(text="arrow option chain proxy")).hex()
