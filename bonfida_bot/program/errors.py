"""Custom exceptions for the Bonfida Bot program module."""

from typing import Optional


class BonfidaBotError(Exception):
    """Base exception for all Bonfida Bot SDK errors."""

    pass


# ============================================================================
# CODEC ERRORS
# ============================================================================


class FormatError(BonfidaBotError):
    """Raised when a buffer cannot be decoded into the requested structure."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(f"Invalid format: {message}")


class InvalidTagError(FormatError):
    """Raised when the leading instruction tag is not the one requested."""

    def __init__(self, expected: Optional[int], actual: int):
        self.expected = expected
        self.actual = actual
        if expected is None:
            super().__init__(f"unknown instruction tag {actual}")
        else:
            super().__init__(
                f"instruction tag mismatch: expected {expected}, got {actual}"
            )


class InvalidPoolStatusError(FormatError):
    """Raised when a pool status byte does not map to a known status."""

    def __init__(self, status_byte: int):
        self.status_byte = status_byte
        super().__init__(f"pool status byte {status_byte:#04x} could not be parsed")


class ValueOverflowError(BonfidaBotError, OverflowError):
    """Raised when a value does not fit its target encoding width."""

    def __init__(self, kind: str, value: int):
        self.kind = kind
        self.value = value
        super().__init__(f"{kind} value out of range: {value}")


# ============================================================================
# AVAILABILITY ERRORS
# ============================================================================


class UnavailableError(BonfidaBotError):
    """Raised when a required account is missing or undersized."""

    def __init__(self, address: str, reason: str = "account is unavailable"):
        self.address = address
        self.reason = reason
        super().__init__(f"{reason}: {address}")


class AccountNotFoundError(UnavailableError):
    """Raised when an account is not found on-chain."""

    def __init__(self, address: str):
        super().__init__(address, "Account not found")


class PoolUnavailableError(UnavailableError):
    """Raised when the pool account is missing or shorter than its header."""

    def __init__(self, address: str, reason: str = "Pool account is unavailable"):
        super().__init__(address, reason)


# ============================================================================
# MARKET AUTHORIZATION ERRORS
# ============================================================================


class UnauthorizedMarketError(BonfidaBotError):
    """Raised when a market is not on the allowed venue list."""

    def __init__(self, market: str):
        self.market = market
        super().__init__(f"Market is not authorized: {market}")


class DeprecatedMarketError(BonfidaBotError):
    """Raised when a market is flagged as retired by the venue."""

    def __init__(self, market: str):
        self.market = market
        super().__init__(f"Given market is deprecated: {market}")


# ============================================================================
# RECONSTRUCTION WARNINGS
# ============================================================================


class BonfidaBotWarning(UserWarning):
    """Base class for conditions that are logged but never raised."""

    pass


class NoEffectWarning(BonfidaBotWarning):
    """A create order or settle instruction produced no token transfer."""

    def __init__(self, kind: str, signature: str, open_orders: Optional[str] = None):
        self.kind = kind
        self.signature = signature
        self.open_orders = open_orders
        target = f" for {open_orders}" if open_orders else ""
        super().__init__(f"{kind} had no effect{target} in transaction {signature}")


class PartialHistoryWarning(BonfidaBotWarning):
    """A transaction could not be fetched; the history is incomplete."""

    def __init__(self, signature: str, reason: str = "not found"):
        self.signature = signature
        self.reason = reason
        super().__init__(f"Could not retrieve transaction {signature}: {reason}")
