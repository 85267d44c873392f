# zkwallet/config.py
"""
Wallet configuration.

Every setting resolves in this order:
1. explicit value (CLI flag / keyword argument)
2. environment variable
3. built-in default
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from zkwallet.core.codec import parse_amount
from zkwallet.core.errors import ConfigError, InvalidFormat

DEFAULT_API_URL = "http://localhost:8080"
DEFAULT_PROVER = "exec:wallet-prover"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


@dataclass(frozen=True)
class WalletConfig:
    api_url: str = DEFAULT_API_URL
    prover: str = DEFAULT_PROVER
    rpc_timeout: float = 10.0
    max_retries: int = 3
    prover_timeout: float = 300.0
    fee: int = 0
    allow_zero_amount: bool = False
    log_level: str = "WARNING"

    @classmethod
    def load(cls, env: Optional[Mapping[str, str]] = None, **overrides) -> "WalletConfig":
        """Build a config from overrides (None means "not given") and the environment."""
        env = os.environ if env is None else env

        def pick(name: str, var: str, default):
            value = overrides.get(name)
            if value is not None:
                return value
            raw = env.get(var)
            return default if raw is None else raw

        fee = pick("fee", "WALLET_FEE", 0)
        if isinstance(fee, str):
            try:
                fee = parse_amount(fee)
            except InvalidFormat as e:
                raise ConfigError(f"WALLET_FEE: {e}") from e

        return cls(
            api_url=str(pick("api_url", "API_HTTP_URL", DEFAULT_API_URL)),
            prover=str(pick("prover", "WALLET_PROVER", DEFAULT_PROVER)),
            rpc_timeout=_positive_float(pick("rpc_timeout", "WALLET_RPC_TIMEOUT", 10.0), "WALLET_RPC_TIMEOUT"),
            max_retries=_non_negative_int(pick("max_retries", "WALLET_RPC_RETRIES", 3), "WALLET_RPC_RETRIES"),
            prover_timeout=_positive_float(
                pick("prover_timeout", "WALLET_PROVER_TIMEOUT", 300.0), "WALLET_PROVER_TIMEOUT"
            ),
            fee=fee,
            allow_zero_amount=_flag(
                pick("allow_zero_amount", "WALLET_ALLOW_ZERO_AMOUNT", False), "WALLET_ALLOW_ZERO_AMOUNT"
            ),
            log_level=str(pick("log_level", "WALLET_LOG_LEVEL", "WARNING")).upper(),
        )


def _positive_float(value, var: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{var}: expected a number, got {value!r}") from None
    if number <= 0:
        raise ConfigError(f"{var}: must be positive")
    return number


def _non_negative_int(value, var: str) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{var}: expected an integer, got {value!r}") from None
    if number < 0:
        raise ConfigError(f"{var}: must not be negative")
    return number


def _flag(value, var: str) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ConfigError(f"{var}: expected a boolean, got {value!r}")
