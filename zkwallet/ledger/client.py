# zkwallet/ledger/client.py
"""JSON-RPC client for the ledger HTTP API."""

import logging
from typing import Any, List, Optional
from uuid import uuid4

import requests

from zkwallet.core.codec import HEX_WIDTH, parse_account, parse_amount, parse_identifier
from zkwallet.core.errors import InvalidFormat, LedgerError, NetworkError, Overflow, RejectedTransaction
from zkwallet.core.types import Account, SignedTransaction, UTXO
from zkwallet.ledger.retry import call_with_retry

logger = logging.getLogger(__name__)

# Pagination cursor that means "from the beginning".
FIRST_CURSOR = "0" * HEX_WIDTH


class LedgerClient:
    """Client for the ledger JSON-RPC API.

    Holds configuration only. Every call is an independent HTTP request, so
    one instance can be shared by threads serving different accounts.
    """

    def __init__(
        self,
        url: str,
        timeout: float = 10.0,
        max_retries: int = 3,
        backoff: float = 0.5,
        page_limit: int = 100,
    ):
        """Initialize the client.

        Args:
            url: JSON-RPC endpoint, e.g. http://localhost:8080
            timeout: Per-request timeout in seconds
            max_retries: Extra attempts per call when the network fails (never for ledger errors)
            backoff: Base delay between attempts, doubled each time
            page_limit: Upper bound on UTXO pages fetched per account
        """
        self.url = url
        self.timeout = timeout
        self.max_retries = max_retries
        self.backoff = backoff
        self.page_limit = page_limit

    # ── transport

    def _post(self, method: str, params: dict) -> dict:
        request = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params,
            "id": uuid4().hex,
        }
        try:
            response = requests.post(self.url, json=request, timeout=self.timeout)
        except requests.ConnectionError as e:
            # includes ConnectTimeout: the request never reached the ledger
            raise NetworkError(f"{method}: {e}") from e
        except requests.Timeout as e:
            raise NetworkError(f"{method}: {e}", timed_out=True) from e

        try:
            body = response.json()
        except ValueError:
            body = None

        if not 200 <= response.status_code < 300:
            # A JSON-RPC error body carries the ledger's own reason whatever the status
            if isinstance(body, dict) and body.get("error") is not None:
                return body
            raise LedgerError(
                f"{method}: HTTP {response.status_code}: {response.text[:200]}",
                status=response.status_code,
            )
        if body is None:
            raise LedgerError(f"{method}: response is not JSON")
        if not isinstance(body, dict):
            raise LedgerError(f"{method}: response is not a JSON-RPC object")
        return body

    def call(self, method: str, params: dict) -> Any:
        """Invoke a JSON-RPC method and return its result.

        Raises:
            NetworkError: connection failure or timeout, after retries
            LedgerError: non-2xx status, malformed body or a JSON-RPC error member
        """
        body = call_with_retry(
            lambda: self._post(method, params),
            max_retries=self.max_retries,
            backoff=self.backoff,
            description=method,
        )
        if body.get("error") is not None:
            raise LedgerError(f"{method}: {_error_reason(body['error'])}")
        if "result" not in body:
            raise LedgerError(f"{method}: no result in response")
        return body["result"]

    # ── read-only operations

    def fetch_utxos(self, account: Account) -> List[UTXO]:
        """All unspent outputs owned by account, in ledger order. Empty list if none."""
        owner = account.hex()
        cursor = FIRST_CURSOR
        seen = set()
        utxos: List[UTXO] = []

        for _ in range(self.page_limit):
            result = self.call(
                "get_list_of_utxo_by_owner_paginated",
                {"last_utxo_id": cursor, "owner": owner},
            )
            if not isinstance(result, dict) or not isinstance(result.get("utxos"), list):
                raise LedgerError("get_list_of_utxo_by_owner_paginated: invalid utxos format")

            page = result["utxos"]
            if not page:
                break

            for record in page:
                utxo = _parse_utxo(record)
                if utxo.owner != account:
                    raise LedgerError(f"ledger returned utxo {utxo.id} owned by {utxo.owner}, not {owner}")
                if utxo.id in seen:
                    continue
                seen.add(utxo.id)
                utxos.append(utxo)

            next_cursor = result.get("last_utxo_id")
            if not next_cursor or next_cursor == cursor:
                break
            cursor = next_cursor
        else:
            logger.warning("Stopped after %d utxo pages for %s", self.page_limit, owner[:8])

        logger.info("Fetched %d utxos for %s...", len(utxos), owner[:8])
        return utxos

    def fetch_utxo(self, utxo_id: str) -> UTXO:
        result = self.call("get_utxo", {"id": utxo_id})
        return _parse_utxo(result)

    def fetch_balance(self, account: Account) -> int:
        result = self.call("get_balance_by_owner", {"addr": account.hex()})
        if not isinstance(result, str):
            raise LedgerError("get_balance_by_owner: balance is not a hex string")
        try:
            return parse_amount(result)
        except (InvalidFormat, Overflow) as e:
            raise LedgerError(f"get_balance_by_owner: {e}") from e

    def transaction_status(self, tx_hash: str) -> str:
        result = self.call("get_transaction_status", {"hash": tx_hash})
        if isinstance(result, dict):
            result = result.get("status")
        if not isinstance(result, str):
            raise LedgerError("get_transaction_status: status is not a string")
        return result

    # ── submission

    def submit(self, signed: SignedTransaction) -> str:
        """Submit a proved transaction and return its hash.

        Only connection failures are retried. A timed-out submission may
        already have been accepted, so it surfaces as a NetworkError carrying
        the local hash for a later status check instead of being resent.

        Raises:
            RejectedTransaction: the ledger refused it; carries the server's reason verbatim
            NetworkError: the ledger could not be reached or did not answer in time
        """
        local_hash = signed.transaction.hash()
        try:
            body = call_with_retry(
                lambda: self._post("submit_transaction", {"tx": signed.to_dict()}),
                max_retries=self.max_retries,
                backoff=self.backoff,
                description="submit_transaction",
                retry_timeouts=False,
            )
        except NetworkError as e:
            if not e.timed_out:
                raise
            raise NetworkError(
                f"submit_transaction timed out; transaction {local_hash} may still be accepted, "
                "check its status before sending again",
                timed_out=True,
                tx_hash=local_hash,
            ) from e

        if body.get("error") is not None:
            raise RejectedTransaction(_error_reason(body["error"]))

        result = body.get("result")
        if isinstance(result, dict):
            result = result.get("hash")
        if not result:
            return local_hash
        if not isinstance(result, str):
            raise LedgerError("submit_transaction: hash is not a string")
        if result.lower() != local_hash:
            logger.warning("Ledger reported hash %s, local hash is %s", result, local_hash)
        return result.lower()


def _error_reason(error: Any) -> str:
    if isinstance(error, dict):
        message = error.get("message")
        data = error.get("data")
        if message and data:
            return f"{message}: {data}"
        if message:
            return str(message)
    return str(error)


def _parse_utxo(record: Optional[dict]) -> UTXO:
    if not isinstance(record, dict):
        raise LedgerError(f"malformed utxo record: {record!r}")
    try:
        return UTXO(
            id=parse_identifier(record["id"], "utxo id"),
            owner=parse_account(record["owner"]),
            amount=parse_amount(record["amount"]),
        )
    except (KeyError, InvalidFormat, Overflow) as e:
        raise LedgerError(f"malformed utxo record: {e}") from e
