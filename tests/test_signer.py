import pytest
from eth_account import Account
from web3 import Web3

from arrow_sdk.signer import ENV_PRIVATE_KEY, LocalAccountSigner, mask_secret, recover_signer

from helpers import TEST_PRIVATE_KEY

DIGEST = bytes(Web3.keccak(text="order"))


def test_mask_secret():
    assert mask_secret(TEST_PRIVATE_KEY) == "0x4c08...c1d0"
    assert mask_secret("short") == "***"
    assert mask_secret(None) == "***"
    assert TEST_PRIVATE_KEY[10:-4] not in mask_secret(bytes.fromhex(TEST_PRIVATE_KEY[2:]))


@pytest.mark.asyncio
async def test_local_signer_signs_personal_message(local_signer):
    signature = await local_signer.sign(DIGEST)
    assert len(signature) == 65
    assert recover_signer(DIGEST, signature) == Account.from_key(TEST_PRIVATE_KEY).address


@pytest.mark.asyncio
async def test_signature_is_deterministic(local_signer):
    assert await local_signer.sign(DIGEST) == await local_signer.sign(DIGEST)


def test_local_signer_is_not_concurrent_safe(local_signer):
    assert local_signer.concurrent_safe is False


def test_from_env(monkeypatch):
    monkeypatch.setenv(ENV_PRIVATE_KEY, TEST_PRIVATE_KEY)
    signer = LocalAccountSigner.from_env()
    assert signer.address == Account.from_key(TEST_PRIVATE_KEY).address
    assert TEST_PRIVATE_KEY not in repr(signer)


def test_from_env_missing(monkeypatch):
    monkeypatch.delenv(ENV_PRIVATE_KEY, raising=False)
    with pytest.raises(KeyError):
        LocalAccountSigner.from_env()
