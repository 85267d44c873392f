# zkwallet/prover/__init__.py
"""
Proving backends: the external program that turns a transaction (and, for
authorized transfers, a secret) into a zero-knowledge proof.
"""

import shlex
from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class ProverReply:
    exit_code: int
    stdout: str
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


class ProverTimeout(Exception):
    """The proving program did not answer within the allotted time."""


class ProverBackend(ABC):
    """Abstract base for all ways of reaching the prover."""

    @abstractmethod
    def run(self, request: dict, timeout: float) -> ProverReply:
        """Send one request, wait at most timeout seconds for the reply."""
        pass


def create_prover(uri: str) -> ProverBackend:
    stripped = uri.strip()
    if stripped.startswith("exec:"):
        stripped = stripped[len("exec:"):].strip()
    elif "://" in stripped:
        raise ValueError(f"Unsupported prover URI: {uri}")

    if not stripped:
        raise ValueError("Prover command is empty")

    from .process import SubprocessProver
    return SubprocessProver(shlex.split(stripped))


__all__ = ["ProverBackend", "ProverReply", "ProverTimeout", "create_prover"]
