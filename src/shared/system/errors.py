"""
Engine Error Taxonomy
=====================
Every failure the wallet engine raises derives from WalletEngineError.

Retryable:      TransientNetworkError, EndpointUnavailableError
Non-retryable:  UpstreamServiceError, TransactionRejectedError
Control flow:   RateLimitExceededError (not a fault)
Caller input:   InvalidKeyError, WalletNotFoundError, LiquidityParamsError
"""

import math


class WalletEngineError(Exception):
    """Base class for all engine errors."""


class InvalidKeyError(WalletEngineError):
    """Imported secret key is malformed or has the wrong length."""


class WalletNotFoundError(WalletEngineError):
    """No wallet is registered for the owner."""

    def __init__(self, owner_id: str):
        super().__init__(f"No wallet registered for owner {owner_id}")
        self.owner_id = owner_id


class RemoteCallError(WalletEngineError):
    """A call to a remote endpoint failed."""

    def __init__(self, message: str, endpoint: str = ""):
        super().__init__(message)
        self.endpoint = endpoint


class TransientNetworkError(RemoteCallError):
    """Timeout, HTTP error or malformed response. Safe to retry."""


class EndpointUnavailableError(RemoteCallError):
    """Endpoint refused the connection or is rate limiting us."""


class UpstreamServiceError(RemoteCallError):
    """The position-query service failed. Not retried within a cycle."""


class TransactionRejectedError(RemoteCallError):
    """Transaction confirmed but carries an on-chain error."""

    def __init__(self, signature: str, reason: str, endpoint: str = ""):
        super().__init__(f"Transaction {signature} rejected: {reason}", endpoint)
        self.signature = signature
        self.reason = reason


class RateLimitExceededError(WalletEngineError):
    """Faucet requested again inside the rolling window."""

    def __init__(self, remaining_seconds: float):
        self.remaining_seconds = max(0.0, remaining_seconds)
        self.remaining_minutes = math.ceil(self.remaining_seconds / 60)
        super().__init__(
            f"Faucet already used. Try again in {self.remaining_minutes} minute(s)."
        )


class LiquidityParamsError(WalletEngineError, ValueError):
    """Invalid input to an add/remove liquidity request."""


RETRYABLE_ERRORS = (TransientNetworkError, EndpointUnavailableError)


def is_retryable(exc: BaseException) -> bool:
    """Default retry predicate: only transport-level failures."""
    return isinstance(exc, RETRYABLE_ERRORS)
