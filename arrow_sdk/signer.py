"""
Arrow Options SDK - Signers

Signing capability used to authorize prepared orders. Orders are
authorized by an EIP-191 personal-message signature over the 32-byte
order digest; the SDK never signs raw transactions.
"""

import logging
import os
from typing import Union

from eth_account import Account
from eth_account.messages import encode_defunct
from eth_account.signers.local import LocalAccount

log = logging.getLogger(__name__)

ENV_PRIVATE_KEY = "ARROW_PRIVATE_KEY"

SIGNATURE_LENGTH = 65


def mask_secret(value: Union[str, bytes, None], keep: int = 6) -> str:
    """
    Mask a secret for logging, keeping a short prefix and suffix.

    >>> mask_secret("0x4c0883a69102937d6231471b5dbb6204fe512961708279f3a3d8a4e3f2b2c1d0")
    '0x4c08...c1d0'
    """
    if value is None:
        return "***"
    text = "0x" + bytes(value).hex() if isinstance(value, (bytes, bytearray)) else str(value)
    if len(text) <= 2 * keep + 3:
        return "***"
    return text[:keep] + "..." + text[-4:]


class Signer:
    """
    Base signing capability.

    Subclasses implement sign(). concurrent_safe tells callers whether
    sign() may be awaited concurrently; interactive wallets and plain
    local accounts are not, so callers serialize requests to them.
    """

    concurrent_safe = False

    @property
    def address(self) -> str:
        raise NotImplementedError

    async def sign(self, digest: bytes) -> bytes:
        """
        Sign a 32-byte digest as an Ethereum personal message.

        Args:
            digest: Raw keccak256 order digest (the signer applies the
                "\\x19Ethereum Signed Message:\\n32" prefix)

        Returns:
            65-byte r || s || v signature
        """
        raise NotImplementedError


class LocalAccountSigner(Signer):
    """Signer backed by an in-process eth_account LocalAccount."""

    def __init__(self, account: Union[str, bytes, LocalAccount]):
        if isinstance(account, LocalAccount):
            self._account = account
        else:
            self._account = Account.from_key(account)
        log.debug(f"Local signer ready for {self._account.address}")

    @classmethod
    def from_env(cls, var: str = ENV_PRIVATE_KEY) -> "LocalAccountSigner":
        """
        Create a signer from a private key held in the environment.

        Raises:
            KeyError: If the variable is not set
        """
        private_key = os.environ.get(var)
        if not private_key:
            raise KeyError(f"Environment variable {var} is not set")
        return cls(private_key)

    @property
    def address(self) -> str:
        return self._account.address

    async def sign(self, digest: bytes) -> bytes:
        message = encode_defunct(primitive=bytes(digest))
        signed = self._account.sign_message(message)
        signature = bytes(signed.signature)
        log.debug(f"Signed digest 0x{bytes(digest).hex()[:16]}... "
                  f"signature={mask_secret(signature)}")
        return signature

    def __repr__(self) -> str:
        return f"LocalAccountSigner(address={self.address})"


def recover_signer(digest: bytes, signature: Union[str, bytes]) -> str:
    """Address that produced a personal-message signature over digest."""
    message = encode_defunct(primitive=bytes(digest))
    return Account.recover_message(message, signature=signature)
