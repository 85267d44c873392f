# zkwallet/core/errors.py
"""
Error taxonomy for the wallet core.

Every error carries a ``category`` so callers can tell "fix your input"
from "try again later" from "rejected permanently" without string matching.
"""

from typing import Optional

INPUT = "input"
TRANSIENT = "transient"
REJECTED = "rejected"
PROVER = "prover"


class WalletError(Exception):
    """Base class for every failure the wallet core reports."""

    category: str = INPUT

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.stage: Optional[str] = None  # set by the transfer pipeline

    @property
    def kind(self) -> str:
        return type(self).__name__

    @property
    def retryable(self) -> bool:
        return self.category == TRANSIENT


class InvalidFormat(WalletError):
    """Malformed hex / amount / account given by the user."""


class Overflow(WalletError):
    """Value does not fit the fixed 32-byte width."""


class ZeroAmount(WalletError):
    """Zero-amount transfers are rejected locally."""


class ConfigError(WalletError):
    """Bad configuration value (flag or environment)."""


class InvalidTransaction(WalletError):
    """A built transaction failed its structural checks."""


class InsufficientFunds(WalletError):
    def __init__(self, available: int, requested: int):
        super().__init__(f"insufficient funds: available={available}, requested={requested}")
        self.available = available
        self.requested = requested


class NetworkError(WalletError):
    """Connection failure or timeout talking to the ledger (transient)."""

    category = TRANSIENT

    def __init__(self, message: str = "", timed_out: bool = False, tx_hash: Optional[str] = None):
        super().__init__(message)
        self.timed_out = timed_out
        self.tx_hash = tx_hash  # set when a submission may have reached the ledger


class LedgerError(WalletError):
    """Non-2xx status or malformed response from the ledger."""

    category = REJECTED

    def __init__(self, reason: str, status: Optional[int] = None):
        super().__init__(reason)
        self.reason = reason
        self.status = status


class RejectedTransaction(LedgerError):
    """The ledger refused a submitted transaction (double-spend, bad proof, ...)."""

    def __init__(self, reason: str, status: Optional[int] = None):
        super().__init__(reason, status)

    def __str__(self) -> str:
        return f"transaction rejected: {self.reason}"


class ProofGenerationFailed(WalletError):
    category = PROVER

    def __init__(self, diagnostic: str, timed_out: bool = False):
        super().__init__(diagnostic)
        self.diagnostic = diagnostic
        self.timed_out = timed_out


class InvalidSecret(WalletError):
    """The prover reported that the secret does not control the sending account."""

    category = PROVER
