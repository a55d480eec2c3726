"""
Arrow Options SDK - Exceptions

Every error carries enough context (ticker, expiration, strategy, field)
for a caller to show an actionable message.
"""

from typing import Optional


class ArrowSDKError(Exception):
    """Base class for all SDK errors."""

    def __init__(self, message: str, ticker: Optional[str] = None,
                 expiration: Optional[str] = None,
                 strategy: Optional[str] = None,
                 field: Optional[str] = None):
        self.message = message
        self.ticker = ticker
        self.expiration = expiration
        self.strategy = strategy
        self.field = field
        super().__init__(self._render())

    def _render(self) -> str:
        context = []
        if self.ticker:
            context.append(f"ticker={self.ticker}")
        if self.expiration:
            context.append(f"expiration={self.expiration}")
        if self.strategy:
            context.append(f"strategy={self.strategy}")
        if self.field:
            context.append(f"field={self.field}")
        if not context:
            return self.message
        return f"{self.message} ({', '.join(context)})"


class UnsupportedVersionError(ArrowSDKError):
    """Protocol version/network has no configured addresses or encoding."""


class UnsupportedExpirationError(ArrowSDKError):
    """Expiration is not a Friday (or not a readable MMDDYYYY date)."""


class MissingFieldError(ArrowSDKError):
    """A conditionally required field is absent."""


class InvalidStrategyError(ArrowSDKError):
    """Strike count does not match the strategy's leg count."""


class UnsupportedStrategyError(ArrowSDKError):
    """Strategy/version combination has no defined hash encoding."""


class EncodingError(ArrowSDKError):
    """Malformed address, hash or numeric value."""


class SigningFailedError(ArrowSDKError):
    """External signer rejected or failed."""


class ExternalReadError(ArrowSDKError):
    """Contract read (decimals, fee rate, factory address...) failed."""


class InsufficientBalanceError(ArrowSDKError):
    """Token balance or allowance is lower than the required amount."""


class APIError(ArrowSDKError):
    """Arrow API request failed."""

    def __init__(self, message: str, status_code: int = -1, body: str = ""):
        self.status_code = status_code
        self.body = body
        super().__init__(f"API Error {status_code}: {message}")
