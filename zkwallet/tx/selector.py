# zkwallet/tx/selector.py
from dataclasses import dataclass
from typing import Iterable, List, Tuple

from zkwallet.core.errors import InsufficientFunds
from zkwallet.core.types import UTXO


@dataclass(frozen=True)
class Selection:
    """Chosen inputs, in the order they must appear in the transaction."""
    inputs: Tuple[UTXO, ...]
    target: int

    @property
    def total(self) -> int:
        return sum(u.amount for u in self.inputs)

    @property
    def change(self) -> int:
        return self.total - self.target


def order_candidates(utxos: Iterable[UTXO]) -> List[UTXO]:
    """Largest amount first; equal amounts by id so the order never depends on ledger paging."""
    unique = {}
    for utxo in utxos:
        unique.setdefault(utxo.id, utxo)
    return sorted(unique.values(), key=lambda u: (-u.amount, u.id))


def select_utxos(utxos: Iterable[UTXO], amount: int, fee: int = 0) -> Selection:
    """
    Greedy largest-first selection covering amount + fee.

    Minimizes the number of inputs (smaller transactions, smaller proofs)
    rather than the leftover change. Always selects at least one input.
    Same candidates and target → same selection, in the same order.
    """
    target = amount + fee
    candidates = order_candidates(utxos)
    available = sum(u.amount for u in candidates)

    if not candidates or available < target:
        raise InsufficientFunds(available=available, requested=target)

    chosen: List[UTXO] = []
    running = 0
    for utxo in candidates:
        chosen.append(utxo)
        running += utxo.amount
        if running >= target:
            break

    return Selection(inputs=tuple(chosen), target=target)
