# zkwallet/tx/pipeline.py
"""
Transfer state machine.

    IDLE → FETCHING_UTXOS → SELECTING → BUILDING → PROVING → SUBMITTING → SUCCEEDED
                 └──────────────┴───────────┴─────────┴──────────┴──────→ FAILED

Each stage consumes the previous stage's output; the first failure stops the
run, so nothing is ever submitted for a transfer that failed earlier.
"""

import logging
from enum import Enum
from typing import List, Optional

from zkwallet.core.errors import WalletError
from zkwallet.core.secret import Secret
from zkwallet.core.types import Account, TransferResult
from zkwallet.ledger.client import LedgerClient
from zkwallet.prover.coordinator import ProofCoordinator
from zkwallet.tx.builder import TransactionBuilder
from zkwallet.tx.selector import select_utxos
from zkwallet.tx.submitter import TransactionSubmitter

logger = logging.getLogger(__name__)


class TransferStage(str, Enum):
    IDLE = "idle"
    FETCHING_UTXOS = "fetching_utxos"
    SELECTING = "selecting"
    BUILDING = "building"
    PROVING = "proving"
    SUBMITTING = "submitting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class TransferPipeline:
    """Runs one transfer end to end. Holds no state between runs."""

    def __init__(
        self,
        client: LedgerClient,
        coordinator: ProofCoordinator,
        builder: Optional[TransactionBuilder] = None,
        submitter: Optional[TransactionSubmitter] = None,
    ):
        self.client = client
        self.coordinator = coordinator
        self.builder = builder or TransactionBuilder()
        self.submitter = submitter or TransactionSubmitter(client)

    def transfer(self, sender: Account, recipient: Account, amount: int, secret: Secret) -> TransferResult:
        """Authorized transfer: the proof shows knowledge of sender's secret."""
        return self._run(sender, recipient, amount, secret)

    def transfer_permissionless(self, sender: Account, recipient: Account, amount: int) -> TransferResult:
        """Transfer out of a publicly spendable account (e.g. a faucet)."""
        return self._run(sender, recipient, amount, None)

    def _run(
        self,
        sender: Account,
        recipient: Account,
        amount: int,
        secret: Optional[Secret],
    ) -> TransferResult:
        stages: List[str] = [TransferStage.IDLE.value]
        stage = TransferStage.IDLE

        def enter(next_stage: TransferStage) -> TransferStage:
            stages.append(next_stage.value)
            logger.debug("transfer %s... → %s", sender.hex()[:8], next_stage.value)
            return next_stage

        try:
            # Policy checks need no network round trip
            self.builder.check_amount(amount)

            stage = enter(TransferStage.FETCHING_UTXOS)
            utxos = self.client.fetch_utxos(sender)

            stage = enter(TransferStage.SELECTING)
            selection = select_utxos(utxos, amount, fee=self.builder.fee)
            logger.info(
                "Selected %d of %d utxos: total %d, change %d",
                len(selection.inputs), len(utxos), selection.total, selection.change,
            )

            stage = enter(TransferStage.BUILDING)
            tx = self.builder.build(sender, recipient, amount, selection.inputs, selection.change)

            stage = enter(TransferStage.PROVING)
            if secret is None:
                proof = self.coordinator.prove_permissionless(tx, sender)
            else:
                with secret:
                    proof = self.coordinator.prove_authorized(tx, sender, secret)

            stage = enter(TransferStage.SUBMITTING)
            tx_hash = self.submitter.submit(tx, proof)

        except WalletError as e:
            e.stage = stage.value
            stages.append(TransferStage.FAILED.value)
            logger.error("Transfer failed while %s: %s: %s", stage.value, e.kind, e)
            raise

        stages.append(TransferStage.SUCCEEDED.value)
        return TransferResult(
            tx_hash=tx_hash,
            transaction=tx,
            proof=proof,
            change=selection.change,
            stages=tuple(stages),
        )
