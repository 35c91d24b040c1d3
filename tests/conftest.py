"""
BitLedger - Pytest Configuration
==================================
Fixture: daemon finto scriptabile, chain di tre blocchi, client.
"""

from typing import Any, Callable, Dict, List, Tuple

import pytest

from bit_ledger.client import Client
from bit_ledger.config import ClientSettings
from bit_ledger.errors import RpcServerError


# ============================================================================
# FAKE DAEMON
# ============================================================================

class FakeDaemon:
    """
    RpcTransport in memoria.

    Ogni metodo RPC è servito da un handler (callable sui parametri
    posizionali); tutte le chiamate vengono registrate in ordine.
    """

    def __init__(self):
        self.handlers: Dict[str, Callable[..., Any]] = {}
        self.calls: List[Tuple[str, list]] = []

    def on(self, method: str, handler: Callable[..., Any]) -> "FakeDaemon":
        self.handlers[method] = handler
        return self

    def returns(self, method: str, result: Any) -> "FakeDaemon":
        return self.on(method, lambda *params: result)

    def fails(self, method: str, code: int, message: str = "error") -> "FakeDaemon":
        def handler(*params):
            raise RpcServerError(code, message)
        return self.on(method, handler)

    def call(self, method: str, params=()) -> Any:
        params = list(params)
        self.calls.append((method, params))
        handler = self.handlers.get(method)
        if handler is None:
            raise RpcServerError(-32601, "Method not found")
        return handler(*params)

    def calls_to(self, method: str) -> List[list]:
        return [params for name, params in self.calls if name == method]


def rpc_error(code: int, message: str = "error") -> Callable[..., Any]:
    """Handler che solleva un errore del daemon"""
    def handler(*params):
        raise RpcServerError(code, message)
    return handler


# ============================================================================
# CHAIN FIXTURE DATA
# ============================================================================

GENESIS_ID = "000000000019d6689c085ae165831e934ff763ae46a2a6c172b3f1b60a8ce26f"
BLOCK_1_ID = "00000000839a8e6886ab5951d76f411475428afc90947ee320161bbf18eb6048"
BLOCK_2_ID = "000000006a625f06636b8bb6ac7b960a8d03705d1ace08b1a19da3fdcc99ddbd"

BLOCKS = {
    GENESIS_ID: {
        "hash": GENESIS_ID,
        "height": 0,
        "version": 1,
        "merkleroot": "4a5e1e4baab89f3a32518a88c31bc87f618f76673e2cc77ab2127b7afdeda33b",
        "time": 1231006505,
        "nonce": 2083236893,
        "difficulty": 1.0,
        "bits": "1d00ffff",
        "tx": ["4a5e1e4baab89f3a32518a88c31bc87f618f76673e2cc77ab2127b7afdeda33b"],
        "nextblockhash": BLOCK_1_ID,
    },
    BLOCK_1_ID: {
        "hash": BLOCK_1_ID,
        "height": 1,
        "version": 1,
        "merkleroot": "0e3e2357e806b6cdb1f70b54c3a3a17b6714ee1f0e68bebb44a74b1efd512098",
        "time": 1231469665,
        "nonce": 2573394689,
        "difficulty": 1.0,
        "bits": "1d00ffff",
        "tx": ["0e3e2357e806b6cdb1f70b54c3a3a17b6714ee1f0e68bebb44a74b1efd512098"],
        "previousblockhash": GENESIS_ID,
        "nextblockhash": BLOCK_2_ID,
    },
    BLOCK_2_ID: {
        "hash": BLOCK_2_ID,
        "height": 2,
        "version": 1,
        "merkleroot": "9b0fc92260312ce44e74ef369f5c66bbb85848f2eddd5a7a1cde251e54ccfdd5",
        "time": 1231469744,
        "nonce": 1639830024,
        "difficulty": 1.0,
        "bits": "1d00ffff",
        "tx": ["9b0fc92260312ce44e74ef369f5c66bbb85848f2eddd5a7a1cde251e54ccfdd5"],
        "previousblockhash": BLOCK_1_ID,
    },
}

HEIGHTS = [GENESIS_ID, BLOCK_1_ID, BLOCK_2_ID]

ALICE = "1AliceXXXXXXXXXXXXXXXXXXXXXXXXXXXX"
BOB = "1BobXXXXXXXXXXXXXXXXXXXXXXXXXXXXXX"
CAROL = "1CarolXXXXXXXXXXXXXXXXXXXXXXXXXXXX"


def make_transaction(txid: str, details: list, time: int = 1231469744) -> dict:
    return {"txid": txid, "time": time, "details": details}


TRANSACTIONS = {
    "tx-a": make_transaction("tx-a", [
        {"address": ALICE, "category": "receive", "amount": 1.5},
    ]),
    "tx-b": make_transaction("tx-b", [
        {"address": BOB, "category": "send", "amount": -0.5, "fee": -0.0001},
        {"address": ALICE, "category": "receive", "amount": 0.5},
    ]),
    "tx-c": make_transaction("tx-c", [
        {"address": CAROL, "category": "receive", "amount": 2.0},
    ]),
}


def _getblock(block_id):
    if block_id not in BLOCKS:
        raise RpcServerError(-5, "Block not found")
    return BLOCKS[block_id]


def _getblockhash(height):
    if not 0 <= height < len(HEIGHTS):
        raise RpcServerError(-1, "Block number out of range")
    return HEIGHTS[height]


def _gettransaction(txid):
    if txid not in TRANSACTIONS:
        raise RpcServerError(-5, "Invalid or non-wallet transaction id")
    return TRANSACTIONS[txid]


def _validateaddress(address):
    if address.startswith("bad"):
        return {"isvalid": False}
    return {"isvalid": True, "address": address, "ismine": address != CAROL}


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def test_settings():
    """Settings isolati dall'ambiente (pagina piccola per i test)"""
    return ClientSettings(
        _env_file=None,
        rpc_user="test",
        rpc_password="test",
        page_size=3,
    )


@pytest.fixture
def daemon():
    """Daemon finto con chain di tre blocchi, tre transazioni e validateaddress"""
    fake = FakeDaemon()
    fake.on("getblock", _getblock)
    fake.on("getblockhash", _getblockhash)
    fake.on("gettransaction", _gettransaction)
    fake.on("validateaddress", _validateaddress)
    return fake


@pytest.fixture
def client(daemon, test_settings):
    """Client collegato al daemon finto"""
    return Client(daemon, test_settings)
