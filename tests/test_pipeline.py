# tests/test_pipeline.py
import logging

import pytest

from zkwallet.core.codec import parse_secret
from zkwallet.core.errors import (
    InsufficientFunds,
    InvalidSecret,
    InvalidTransaction,
    NetworkError,
    RejectedTransaction,
    ZeroAmount,
)
from zkwallet.core.types import Proof, TxOutput
from zkwallet.prover import ProverReply
from zkwallet.prover.coordinator import HASH_WALLET, PERMISSIONLESS, ProofCoordinator
from zkwallet.tx.builder import TransactionBuilder
from zkwallet.tx.pipeline import TransferPipeline, TransferStage
from zkwallet.tx.submitter import TransactionSubmitter

from conftest import SECRET_A, RecordingProver, account, utxo


@pytest.fixture
def prover():
    return RecordingProver()


@pytest.fixture
def pipeline(client, prover):
    return TransferPipeline(client, ProofCoordinator(prover))


def test_permissionless_faucet_transfer(pipeline, ledger, prover, bob):
    faucet = account(0xFA)
    ledger.add(utxo(1, faucet, 100))

    result = pipeline.transfer_permissionless(faucet, bob, 100)

    assert len(result.transaction.inputs) == 1
    assert result.transaction.outputs == (TxOutput(bob, 100),)
    assert result.change == 0
    assert result.proof.circuit == PERMISSIONLESS
    (request,) = prover.requests
    assert "secret" not in request
    assert ledger.calls_to("submit_transaction") == 1
    assert result.tx_hash == result.transaction.hash()


def test_authorized_transfer_with_change(pipeline, ledger, prover, alice, bob):
    ledger.add(utxo(1, alice, 70), utxo(2, alice, 50))

    result = pipeline.transfer(alice, bob, 90, parse_secret(SECRET_A))

    assert [u.amount for u in result.transaction.inputs] == [70, 50]
    assert result.transaction.outputs == (TxOutput(bob, 90), TxOutput(alice, 30))
    assert result.proof.circuit == HASH_WALLET
    assert prover.requests[0]["secret"] == SECRET_A
    # the spent outputs are gone from the ledger
    assert ledger.utxos == {}


def test_insufficient_funds_stops_before_proving(pipeline, ledger, prover, alice, bob):
    ledger.add(utxo(1, alice, 10), utxo(2, alice, 5))

    with pytest.raises(InsufficientFunds) as exc:
        pipeline.transfer(alice, bob, 100, parse_secret(SECRET_A))

    assert exc.value.available == 15
    assert exc.value.requested == 100
    assert exc.value.stage == TransferStage.SELECTING.value
    assert prover.requests == []
    assert ledger.calls_to("submit_transaction") == 0


def test_rejection_propagates_without_retry(pipeline, ledger, alice, bob):
    ledger.add(utxo(1, alice, 100))
    ledger.reject_reason = "double spend"

    with pytest.raises(RejectedTransaction) as exc:
        pipeline.transfer(alice, bob, 40, parse_secret(SECRET_A))

    assert exc.value.reason == "double spend"
    assert exc.value.stage == TransferStage.SUBMITTING.value
    assert not exc.value.retryable
    assert ledger.calls_to("submit_transaction") == 1


def test_secret_is_wiped_after_transfer(pipeline, ledger, alice, bob):
    ledger.add(utxo(1, alice, 100))
    secret = parse_secret(SECRET_A)
    pipeline.transfer(alice, bob, 10, secret)
    assert secret.wiped


def test_secret_is_wiped_when_proving_fails(client, ledger, alice, bob):
    ledger.add(utxo(1, alice, 100))
    pipeline = TransferPipeline(client, ProofCoordinator(RecordingProver(ProverReply(3, "", "secret mismatch"))))
    secret = parse_secret(SECRET_A)

    with pytest.raises(InvalidSecret) as exc:
        pipeline.transfer(alice, bob, 10, secret)

    assert secret.wiped
    assert exc.value.stage == TransferStage.PROVING.value
    assert ledger.calls_to("submit_transaction") == 0


def test_zero_amount_rejected_before_network(pipeline, ledger, alice, bob):
    with pytest.raises(ZeroAmount):
        pipeline.transfer_permissionless(alice, bob, 0)
    assert ledger.calls == []


def test_network_failure_reports_fetch_stage(pipeline, ledger, alice, bob):
    ledger.network_failures = 10
    with pytest.raises(NetworkError) as exc:
        pipeline.transfer_permissionless(alice, bob, 5)
    assert exc.value.stage == TransferStage.FETCHING_UTXOS.value
    assert exc.value.retryable


def test_stages_recorded_in_order(pipeline, ledger, bob):
    faucet = account(0xFA)
    ledger.add(utxo(1, faucet, 100))
    result = pipeline.transfer_permissionless(faucet, bob, 60)
    assert result.stages == (
        "idle", "fetching_utxos", "selecting", "building", "proving", "submitting", "succeeded",
    )


def test_fee_is_paid_from_inputs(client, ledger, prover, bob):
    faucet = account(0xFA)
    ledger.add(utxo(1, faucet, 100))
    pipeline = TransferPipeline(client, ProofCoordinator(prover), TransactionBuilder(fee=3))

    result = pipeline.transfer_permissionless(faucet, bob, 90)

    tx = result.transaction
    assert tx.fee == 3
    assert tx.outputs == (TxOutput(bob, 90), TxOutput(faucet, 7))
    assert ledger.submitted[0]["tx"]["fee"] == format(3, "064x")


def test_failure_is_logged(pipeline, ledger, alice, bob, caplog):
    with caplog.at_level(logging.ERROR, logger="zkwallet"):
        with pytest.raises(InsufficientFunds):
            pipeline.transfer(alice, bob, 5, parse_secret(SECRET_A))
    assert "InsufficientFunds" in caplog.text
    assert SECRET_A not in caplog.text


def test_submitter_refuses_proof_for_other_transaction(client, ledger, alice, bob):
    tx = TransactionBuilder().build(alice, bob, 10, [utxo(1, alice, 10)], 0)
    proof = Proof(PERMISSIONLESS, "ab" * 8, "cd" * 8, alice.hex(), tx_hash="00" * 32)

    with pytest.raises(InvalidTransaction):
        TransactionSubmitter(client).submit(tx, proof)
    assert ledger.calls_to("submit_transaction") == 0
