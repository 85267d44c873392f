# zkwallet/verify/checker.py
from typing import List, Optional
from dataclasses import dataclass

from zkwallet.core.types import MAX_AMOUNT, UnsignedTransaction


@dataclass
class CheckFailure:
    index: int
    message: str
    category: str = "general"  # e.g. "inputs", "outputs", "amount", "conservation", "binding"


@dataclass
class CheckResult:
    is_valid: bool
    message: str = ""
    failures: List[CheckFailure] = None

    def __post_init__(self):
        if self.failures is None:
            self.failures = []

    @property
    def first_failure(self) -> Optional[CheckFailure]:
        return self.failures[0] if self.failures else None

    def __bool__(self):
        return self.is_valid

    def __str__(self):
        if self.is_valid:
            return "Transaction is well-formed ✓"
        lines = [f"Transaction check FAILED ({len(self.failures)} issues):"]
        for f in self.failures:
            lines.append(f"  • [{f.index}] {f.category}: {f.message}")
        return "\n".join(lines)


class TransactionChecker:
    """
    Structural checks over a built transaction, run before it goes to the prover.
    Index -1 refers to the transaction as a whole.
    """

    def __init__(self, fee: int = 0):
        self.fee = fee

    def check(self, tx: UnsignedTransaction) -> CheckResult:
        result = CheckResult(True)

        def fail(index: int, message: str, category: str) -> None:
            result.failures.append(CheckFailure(index, message, category))
            result.is_valid = False

        # 1. Inputs
        if not tx.inputs:
            fail(-1, "Transaction has no inputs", "inputs")
        seen = set()
        for i, utxo in enumerate(tx.inputs):
            if utxo.id in seen:
                fail(i, f"Input {utxo.id} spent twice", "inputs")
            seen.add(utxo.id)

        # 2. Outputs
        if not tx.outputs:
            fail(-1, "Transaction has no outputs", "outputs")
        for i, out in enumerate(tx.outputs):
            if out.amount < 0 or out.amount > MAX_AMOUNT:
                fail(i, f"Output amount out of range: {out.amount}", "amount")
            if i > 0 and out.amount == 0:
                fail(i, "Change output with zero amount", "outputs")

        # 3. Fee and conservation
        if tx.fee != self.fee:
            fail(-1, f"Fee mismatch: expected {self.fee}, got {tx.fee}", "conservation")
        if tx.input_total != tx.output_total + tx.fee:
            fail(
                -1,
                f"inputs {tx.input_total} != outputs {tx.output_total} + fee {tx.fee}",
                "conservation",
            )

        # 4. Binding value
        if not tx.nonce:
            fail(-1, "Missing binding value", "binding")

        result.message = "Well-formed" if result.is_valid else f"Failed with {len(result.failures)} issues"
        return result
