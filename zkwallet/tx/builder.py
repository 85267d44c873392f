# zkwallet/tx/builder.py
import logging
from dataclasses import replace
from typing import Optional, Sequence

from zkwallet.core.canon import digest
from zkwallet.core.errors import InvalidTransaction, ZeroAmount
from zkwallet.core.types import Account, TxOutput, UnsignedTransaction, UTXO
from zkwallet.verify.checker import TransactionChecker

logger = logging.getLogger(__name__)


class TransactionBuilder:
    """
    Assembles the canonical unsigned transaction from a selection.

    fee is an explicit ledger-rule setting: with fee=0 inputs must equal
    outputs exactly, otherwise inputs == outputs + fee.
    """

    def __init__(self, fee: int = 0, allow_zero_amount: bool = False):
        if fee < 0:
            raise ValueError("fee cannot be negative")
        self.fee = fee
        self.allow_zero_amount = allow_zero_amount
        self.checker = TransactionChecker(fee=fee)

    def check_amount(self, amount: int) -> None:
        if amount == 0 and not self.allow_zero_amount:
            raise ZeroAmount("refusing to build a zero-amount transfer")

    def build(
        self,
        sender: Account,
        recipient: Account,
        amount: int,
        selected_utxos: Sequence[UTXO],
        change: int,
        nonce: Optional[str] = None,
    ) -> UnsignedTransaction:
        """
        inputs  = selected_utxos, order preserved
        outputs = (recipient, amount) then (sender, change) when change > 0
        nonce   = sha256 of the canonical body unless given, so rebuilding the
                  same selection reproduces the same transaction
        """
        self.check_amount(amount)
        if change < 0:
            raise InvalidTransaction(f"negative change: {change}")

        outputs = [TxOutput(recipient=recipient, amount=amount)]
        if change > 0:
            outputs.append(TxOutput(recipient=sender, amount=change))

        tx = UnsignedTransaction(
            inputs=tuple(selected_utxos),
            outputs=tuple(outputs),
            fee=self.fee,
        )
        tx = replace(tx, nonce=nonce or digest(tx.body()))

        result = self.checker.check(tx)
        if not result:
            raise InvalidTransaction(str(result))

        logger.info(
            "Built transaction %s: %d inputs, %d outputs, change %d",
            tx.hash()[:8], len(tx.inputs), len(tx.outputs), change,
        )
        return tx
