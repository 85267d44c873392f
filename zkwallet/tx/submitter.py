# zkwallet/tx/submitter.py
import logging

from zkwallet.core.errors import InvalidTransaction
from zkwallet.core.types import Proof, SignedTransaction, UnsignedTransaction
from zkwallet.ledger.client import LedgerClient

logger = logging.getLogger(__name__)


class TransactionSubmitter:
    """The only place a constructed transaction is handed to the ledger."""

    def __init__(self, client: LedgerClient):
        self.client = client

    def submit(self, tx: UnsignedTransaction, proof: Proof) -> str:
        """
        Attach the proof and submit. RejectedTransaction and NetworkError from
        the client propagate unchanged. Returns the transaction hash.
        """
        tx_hash = tx.hash()
        if proof.tx_hash and proof.tx_hash != tx_hash:
            raise InvalidTransaction(
                f"proof is bound to {proof.tx_hash[:8]}..., not to transaction {tx_hash[:8]}..."
            )

        signed = SignedTransaction(transaction=tx, proof=proof)
        logger.info("Submitting transaction %s...", tx_hash[:8])
        submitted = self.client.submit(signed)
        logger.info("Ledger accepted transaction %s", submitted)
        return submitted
