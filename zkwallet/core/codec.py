# zkwallet/core/codec.py
"""
Hex codecs for the fixed-width values that cross the ledger / prover boundary.

Amounts, accounts, UTXO ids and secrets are all 32 bytes on the wire,
written as exactly 64 hex characters (either case accepted, lowercase emitted).
"""

import string

from zkwallet.core.errors import InvalidFormat, Overflow
from zkwallet.core.secret import Secret
from zkwallet.core.types import ACCOUNT_SIZE, Account

AMOUNT_SIZE = 32
HEX_WIDTH = 64

_HEXDIGITS = frozenset(string.hexdigits)


def _decode_fixed(value: str, what: str) -> bytes:
    if not isinstance(value, str):
        raise InvalidFormat(f"{what} must be a hex string, got {type(value).__name__}")
    if len(value) != HEX_WIDTH:
        raise InvalidFormat(f"{what} must be exactly {HEX_WIDTH} hex characters, got {len(value)}")
    if not _HEXDIGITS.issuperset(value):
        raise InvalidFormat(f"{what} contains non-hex characters")
    return bytes.fromhex(value)


def parse_amount(value: str) -> int:
    raw = _decode_fixed(value, "amount")
    if len(raw) > AMOUNT_SIZE:
        raise Overflow(f"amount does not fit in {AMOUNT_SIZE} bytes")
    return int.from_bytes(raw, "big")


def format_amount(amount: int) -> str:
    if amount < 0:
        raise Overflow(f"negative amount: {amount}")
    try:
        raw = amount.to_bytes(AMOUNT_SIZE, "big")
    except OverflowError:
        raise Overflow(f"amount does not fit in {AMOUNT_SIZE} bytes: {amount}")
    return raw.hex()


def parse_account(value: str) -> Account:
    raw = _decode_fixed(value, "account")
    if len(raw) != ACCOUNT_SIZE:
        raise InvalidFormat(f"account must be {ACCOUNT_SIZE} bytes")
    return Account(raw)


def format_account(account: Account) -> str:
    return account.hex()


def parse_identifier(value: str, what: str = "identifier") -> str:
    """Normalize a UTXO id or transaction hash to lowercase hex."""
    _decode_fixed(value, what)
    return value.lower()


def parse_secret(value: str) -> Secret:
    # _decode_fixed never echoes the input back, so the value stays out of error text
    return Secret(_decode_fixed(value, "secret"))
