# zkwallet/prover/coordinator.py
"""
Proof Coordinator: asks the proving program for a proof bound to one
transaction and turns its failures into wallet errors.

Two authorization modes share one code path:

  * hash_wallet:    caller proves knowledge of the secret behind the sender
  * permissionless: publicly spendable sender (faucets), no secret

Proving is slow and expensive, so nothing here retries. A timeout is a
ProofGenerationFailed with timed_out=True.
"""

import json
import logging
from typing import Optional

from zkwallet.core.codec import parse_account
from zkwallet.core.errors import InvalidFormat, InvalidSecret, ProofGenerationFailed
from zkwallet.core.secret import Secret
from zkwallet.core.types import Account, Proof, UnsignedTransaction
from zkwallet.prover import ProverBackend, ProverReply, ProverTimeout

logger = logging.getLogger(__name__)

HASH_WALLET = "hash_wallet"
PERMISSIONLESS = "permissionless"

# Exit status the proving program uses for "secret does not match the account".
EXIT_INVALID_SECRET = 3

_MISMATCH_MARKERS = ("secret mismatch", "address mismatch", "invalid secret")
_REDACTED = "<redacted>"


class ProofCoordinator:

    def __init__(self, backend: ProverBackend, timeout: float = 300.0):
        self.backend = backend
        self.timeout = timeout

    def prove_authorized(self, tx: UnsignedTransaction, sender: Account, secret: Secret) -> Proof:
        return self._prove(HASH_WALLET, tx, sender, secret)

    def prove_permissionless(self, tx: UnsignedTransaction, sender: Account) -> Proof:
        return self._prove(PERMISSIONLESS, tx, sender, None)

    def derive_account(self, secret: Secret) -> Account:
        """Public account for a secret, as computed by the proving program."""
        request = {"operation": "address", "secret": secret.reveal_hex()}
        reply = self._invoke(request, "address", secret)
        if not reply.ok:
            raise ProofGenerationFailed(f"address derivation failed: {_diagnostic(reply, secret)}")
        address = reply.stdout
        if address.startswith("{"):
            address = _parse_json_reply(reply.stdout).get("address")
        if not isinstance(address, str):
            raise ProofGenerationFailed("prover returned a malformed address")
        try:
            return parse_account(address.strip())
        except InvalidFormat as e:
            raise ProofGenerationFailed(f"prover returned a malformed address: {e}") from e

    # ── internals

    def _prove(
        self,
        circuit: str,
        tx: UnsignedTransaction,
        sender: Account,
        secret: Optional[Secret],
    ) -> Proof:
        tx_hash = tx.hash()
        request = {
            "operation": "prove",
            "circuit": circuit,
            "sender": sender.hex(),
            "transaction": tx.encode(),
            "tx_hash": tx_hash,
        }
        if secret is not None:
            request["secret"] = secret.reveal_hex()

        logger.info("Requesting %s proof for %s...", circuit, tx_hash[:8])
        reply = self._invoke(request, circuit, secret)

        if not reply.ok:
            diagnostic = _diagnostic(reply, secret)
            if secret is not None and _is_secret_mismatch(reply):
                raise InvalidSecret(f"secret does not authorize account {sender}: {diagnostic}")
            raise ProofGenerationFailed(f"{circuit} prover failed: {diagnostic}")

        proof = _parse_proof(reply.stdout, circuit, tx_hash)

        if proof.address.lower() != sender.hex():
            message = f"proof attests for {proof.address}, expected {sender}"
            if secret is not None:
                raise InvalidSecret(message)
            raise ProofGenerationFailed(message)

        logger.info("Proof generated for %s...", tx_hash[:8])
        return proof

    def _invoke(self, request: dict, label: str, secret: Optional[Secret]) -> ProverReply:
        try:
            return self.backend.run(request, self.timeout)
        except ProverTimeout as e:
            logger.error("%s prover timed out after %ss", label, self.timeout)
            raise ProofGenerationFailed(str(e), timed_out=True) from None
        except OSError as e:
            raise ProofGenerationFailed(f"could not start prover: {_scrub(str(e), secret)}") from None


def _parse_proof(stdout: str, circuit: str, tx_hash: str) -> Proof:
    """Reply is either "proof,vk,address" or a JSON object with those keys."""
    text = stdout.strip()
    if text.startswith("{"):
        data = _parse_json_reply(text)
        parts = [data.get("proof"), data.get("vk"), data.get("address")]
    else:
        parts = [p.strip() for p in text.split(",")]

    if len(parts) != 3 or not all(isinstance(p, str) and p for p in parts):
        raise ProofGenerationFailed("invalid prover output format, expected: proof,vk,address")

    proof_hex, vk_hex, address = parts
    for name, value in (("proof", proof_hex), ("vk", vk_hex)):
        try:
            bytes.fromhex(value)
        except ValueError:
            raise ProofGenerationFailed(f"prover returned non-hex {name}") from None

    return Proof(
        circuit=circuit,
        proof=proof_hex.lower(),
        verifying_key=vk_hex.lower(),
        address=address.lower(),
        tx_hash=tx_hash,
    )


def _parse_json_reply(text: str) -> dict:
    try:
        data = json.loads(text)
    except ValueError:
        raise ProofGenerationFailed("prover returned malformed JSON") from None
    if not isinstance(data, dict):
        raise ProofGenerationFailed("prover returned malformed JSON")
    return data


def _is_secret_mismatch(reply: ProverReply) -> bool:
    if reply.exit_code == EXIT_INVALID_SECRET:
        return True
    text = reply.stderr.lower()
    return any(marker in text for marker in _MISMATCH_MARKERS)


def _scrub(text: str, secret: Optional[Secret]) -> str:
    if secret is None or secret.wiped:
        return text
    hex_value = secret.reveal_hex()
    return text.replace(hex_value, _REDACTED).replace(hex_value.upper(), _REDACTED)


def _diagnostic(reply: ProverReply, secret: Optional[Secret]) -> str:
    text = reply.stderr or reply.stdout or f"exit code {reply.exit_code}"
    return _scrub(text, secret)[:500]
