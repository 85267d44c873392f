# tests/conftest.py
import hashlib
import shlex
import sys
from pathlib import Path
from typing import Dict, List, Optional

import pytest
import requests

from zkwallet.core.canon import digest
from zkwallet.core.codec import parse_account
from zkwallet.core.types import Account, UTXO
from zkwallet.ledger.client import LedgerClient
from zkwallet.prover import ProverBackend, ProverReply

FAKE_PROVER = Path(__file__).parent / "fake_prover.py"

SECRET_A = "11" * 32


def account(n: int) -> Account:
    return Account(n.to_bytes(32, "big"))


def account_for_secret(secret_hex: str) -> Account:
    """Same derivation the fake prover uses."""
    return parse_account(hashlib.sha256(bytes.fromhex(secret_hex)).hexdigest())


def utxo(n: int, owner: Account, amount: int) -> UTXO:
    return UTXO(id=format(n, "064x"), owner=owner, amount=amount)


def amount_hex(n: int) -> str:
    return format(n, "064x")


class FakeResponse:
    def __init__(self, status_code: int, payload=None, text: Optional[str] = None):
        self.status_code = status_code
        self._payload = payload
        self.text = text if text is not None else str(payload)

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON object could be decoded")
        return self._payload


class FakeLedger:
    """In-memory JSON-RPC ledger installed in place of requests.post."""

    def __init__(self, page_size: int = 2):
        self.utxos: Dict[str, UTXO] = {}
        self.page_size = page_size
        self.calls: List[str] = []
        self.submitted: List[dict] = []
        self.statuses: Dict[str, str] = {}
        self.reject_reason: Optional[str] = None
        self.network_failures = 0
        self.http_status = 200
        self.read_timeouts: List[str] = []

    def add(self, *utxos: UTXO) -> None:
        for u in utxos:
            self.utxos[u.id] = u

    def calls_to(self, method: str) -> int:
        return self.calls.count(method)

    def post(self, url, json=None, timeout=None, **kwargs):
        method = json["method"]
        self.calls.append(method)
        if self.network_failures > 0:
            self.network_failures -= 1
            raise requests.ConnectionError("connection refused")
        if method in self.read_timeouts:
            raise requests.ReadTimeout("read timed out")
        if self.http_status != 200:
            return FakeResponse(self.http_status, None, text="upstream unavailable")

        try:
            result = getattr(self, "_" + method)(json["params"])
        except LookupError as e:
            return FakeResponse(200, {"jsonrpc": "2.0", "error": {"code": -32000, "message": str(e)}, "id": json["id"]})
        return FakeResponse(200, {"jsonrpc": "2.0", "result": result, "id": json["id"]})

    def _owned(self, owner: str) -> List[UTXO]:
        return sorted((u for u in self.utxos.values() if u.owner.hex() == owner), key=lambda u: u.id)

    def _get_list_of_utxo_by_owner_paginated(self, params):
        rest = [u for u in self._owned(params["owner"]) if u.id > params["last_utxo_id"]]
        page = rest[: self.page_size]
        return {
            "utxos": [u.to_dict() for u in page],
            "last_utxo_id": page[-1].id if page else None,
        }

    def _get_balance_by_owner(self, params):
        return amount_hex(sum(u.amount for u in self._owned(params["addr"])))

    def _get_utxo(self, params):
        if params["id"] not in self.utxos:
            raise LookupError("utxo not found")
        return self.utxos[params["id"]].to_dict()

    def _get_transaction_status(self, params):
        if params["hash"] not in self.statuses:
            raise LookupError("unknown transaction")
        return {"status": self.statuses[params["hash"]]}

    def _submit_transaction(self, params):
        if self.reject_reason:
            raise LookupError(self.reject_reason)
        body = params["tx"]
        tx_hash = digest(body["tx"])
        for spent in body["tx"]["inputs"]:
            self.utxos.pop(spent, None)
        self.submitted.append(body)
        self.statuses[tx_hash] = "pending"
        return {"hash": tx_hash}


class RecordingProver(ProverBackend):
    """In-process prover backend that answers like tests/fake_prover.py."""

    def __init__(self, reply: Optional[ProverReply] = None):
        self.requests: List[dict] = []
        self.reply = reply

    def run(self, request: dict, timeout: float) -> ProverReply:
        self.requests.append(dict(request))
        if self.reply is not None:
            return self.reply
        if request["operation"] == "address":
            return ProverReply(0, account_for_secret(request["secret"]).hex())
        if request["circuit"] == "hash_wallet":
            address = account_for_secret(request["secret"]).hex()
        else:
            address = request["sender"]
        return ProverReply(0, f"{'ab' * 32},{'cd' * 32},{address}")


@pytest.fixture
def ledger(monkeypatch) -> FakeLedger:
    fake = FakeLedger()
    monkeypatch.setattr(requests, "post", fake.post)
    return fake


@pytest.fixture
def client(ledger: FakeLedger) -> LedgerClient:
    return LedgerClient("http://ledger.test", timeout=1.0, max_retries=3, backoff=0.0)


@pytest.fixture
def prover_uri() -> str:
    return f"exec:{shlex.quote(sys.executable)} {shlex.quote(str(FAKE_PROVER))}"


@pytest.fixture
def alice() -> Account:
    return account_for_secret(SECRET_A)


@pytest.fixture
def bob() -> Account:
    return account(0xB0B)
