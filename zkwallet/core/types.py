# zkwallet/core/types.py
from dataclasses import dataclass, field
from typing import Tuple

from zkwallet.core.canon import canonical_json_str, digest

ACCOUNT_SIZE = 32
MAX_AMOUNT = (1 << 256) - 1


def _check_amount(amount: int, what: str) -> None:
    if not isinstance(amount, int) or isinstance(amount, bool):
        raise TypeError(f"{what} must be an int, got {type(amount).__name__}")
    if amount < 0 or amount > MAX_AMOUNT:
        raise ValueError(f"{what} out of 32-byte range: {amount}")


@dataclass(frozen=True)
class Account:
    """Public 32-byte identifier under which UTXOs are held."""
    raw: bytes

    def __post_init__(self):
        if len(self.raw) != ACCOUNT_SIZE:
            raise ValueError(f"account must be {ACCOUNT_SIZE} bytes, got {len(self.raw)}")

    def hex(self) -> str:
        return self.raw.hex()

    def __str__(self) -> str:
        return self.hex()


@dataclass(frozen=True)
class UTXO:
    """Unspent output as reported by the ledger. Read and selected, never mutated."""
    id: str                         # 64-char lowercase hex, also the tie-break key
    owner: Account
    amount: int

    def __post_init__(self):
        _check_amount(self.amount, "utxo amount")

    def to_dict(self) -> dict:
        return {"id": self.id, "owner": self.owner.hex(), "amount": format(self.amount, "064x")}


@dataclass(frozen=True)
class TxOutput:
    recipient: Account
    amount: int

    def __post_init__(self):
        _check_amount(self.amount, "output amount")

    def to_dict(self) -> dict:
        return {"recipient": self.recipient.hex(), "amount": format(self.amount, "064x")}


@dataclass(frozen=True)
class UnsignedTransaction:
    """
    Canonical transaction body the proof attests to.

    Only input ids go on the wire; the spent UTXOs are kept so the
    conservation rule can be checked locally. Order of inputs and outputs is
    significant: it changes the canonical encoding and therefore the hash.
    """
    inputs: Tuple[UTXO, ...]
    outputs: Tuple[TxOutput, ...]
    fee: int = 0
    nonce: str = ""                 # binding value, hex sha256
    version: int = 1

    @property
    def input_ids(self) -> Tuple[str, ...]:
        return tuple(u.id for u in self.inputs)

    @property
    def input_total(self) -> int:
        return sum(u.amount for u in self.inputs)

    @property
    def output_total(self) -> int:
        return sum(o.amount for o in self.outputs)

    def body(self) -> dict:
        """Everything except the binding value (what the nonce is derived from)."""
        return {
            "version": self.version,
            "inputs": list(self.input_ids),
            "outputs": [o.to_dict() for o in self.outputs],
            "fee": format(self.fee, "064x"),
        }

    def to_dict(self) -> dict:
        d = self.body()
        d["nonce"] = self.nonce
        return d

    def encode(self) -> str:
        return canonical_json_str(self.to_dict())

    def hash(self) -> str:
        return digest(self.to_dict())


@dataclass(frozen=True)
class Proof:
    """Zero-knowledge proof artifact returned by the prover, bound to one transaction."""
    circuit: str                    # "hash_wallet" | "permissionless"
    proof: str                      # hex
    verifying_key: str              # hex
    address: str                    # account the proof attests for, hex
    tx_hash: str = ""               # hash of the transaction it was generated for


@dataclass(frozen=True)
class SignedTransaction:
    """Submission artifact: transaction body + proof."""
    transaction: UnsignedTransaction
    proof: Proof

    def to_dict(self) -> dict:
        return {
            "tx": self.transaction.to_dict(),
            "circuit": self.proof.circuit,
            "proof": self.proof.proof,
            "vk": self.proof.verifying_key,
        }


@dataclass(frozen=True)
class TransferResult:
    tx_hash: str
    transaction: UnsignedTransaction
    proof: Proof
    change: int = 0
    stages: Tuple[str, ...] = field(default_factory=tuple)
