"""
BitLedger - Wallet Cycle E2E Test
===================================
Ciclo completo contro un daemon simulato con stato:
unlock → send → sync incrementale → lock
"""

import pytest

from bit_ledger.client import Client
from bit_ledger.config import ClientSettings
from bit_ledger.errors import (
    RpcServerError,
    InsufficientFundsError,
    LockedWalletError,
    InvalidPassphraseError,
)


PASSPHRASE = "correct horse"
HOME = "1HomeXXXXXXXXXXXXXXXXXXXXXXXXXXXXX"
SHOP = "1ShopXXXXXXXXXXXXXXXXXXXXXXXXXXXXX"


class SimulatedWallet:
    """Daemon con wallet cifrato: ogni invio viene minato in un nuovo blocco"""

    def __init__(self, balance: float):
        self.balance = balance
        self.unlocked = False
        self.blocks = []
        self.transactions = {}
        self._mine([])

    def _block_id(self, height):
        return f"{height:064x}"

    def _mine(self, txids):
        height = len(self.blocks)
        block = {
            "hash": self._block_id(height),
            "height": height,
            "version": 1,
            "merkleroot": "00" * 32,
            "time": 1300000000 + height * 600,
            "nonce": height,
            "difficulty": 1.0,
            "tx": txids,
        }
        if self.blocks:
            block["previousblockhash"] = self.blocks[-1]["hash"]
            self.blocks[-1]["nextblockhash"] = block["hash"]
        self.blocks.append(block)

    def call(self, method, params=()):
        handler = getattr(self, f"rpc_{method}", None)
        if handler is None:
            raise RpcServerError(-32601, "Method not found")
        return handler(*params)

    def rpc_walletpassphrase(self, passphrase, timeout):
        if passphrase != PASSPHRASE:
            raise RpcServerError(-14, "The wallet passphrase entered was incorrect")
        self.unlocked = True

    def rpc_walletlock(self):
        self.unlocked = False

    def rpc_getbalance(self, *args):
        return self.balance

    def rpc_validateaddress(self, address):
        return {"isvalid": address in (HOME, SHOP), "address": address, "ismine": address == HOME}

    def rpc_sendtoaddress(self, address, amount):
        if not self.unlocked:
            raise RpcServerError(-13, "Please enter the wallet passphrase first")
        if amount > self.balance:
            raise RpcServerError(-6, "Insufficient funds")

        txid = f"tx-{len(self.transactions)}"
        self.balance -= amount
        self.transactions[txid] = {
            "txid": txid,
            "time": 1300000000 + len(self.blocks) * 600,
            "details": [
                {"address": address, "category": "send", "amount": -amount, "fee": -0.0001},
            ],
        }
        self._mine([txid])
        return txid

    def rpc_gettransaction(self, txid):
        return self.transactions[txid]

    def rpc_getblock(self, block_id):
        for block in self.blocks:
            if block["hash"] == block_id:
                return block
        raise RpcServerError(-5, "Block not found")

    def rpc_getblockhash(self, height):
        if height >= len(self.blocks):
            raise RpcServerError(-1, "Block number out of range")
        return self.blocks[height]["hash"]

    def rpc_getinfo(self):
        return {"blocks": len(self.blocks) - 1}

    def rpc_listsinceblock(self, block_id):
        height = self.rpc_getblock(block_id)["height"]
        entries = [
            {"txid": txid, "category": "send"}
            for block in self.blocks[height + 1:]
            for txid in block["tx"]
        ]
        return {"transactions": entries, "lastblock": self.blocks[-1]["hash"]}


@pytest.fixture
def wallet():
    return SimulatedWallet(balance=10.0)


@pytest.fixture
def client(wallet):
    return Client(wallet, ClientSettings(_env_file=None, rpc_user="u", rpc_password="p"))


def test_full_wallet_cycle(client, wallet):
    """Test unlock, send, incremental sync and lock"""
    cursor = client.latest_block()
    assert cursor.height == 0

    # 1. Wallet bloccato
    with pytest.raises(LockedWalletError):
        client.send(SHOP, 1.0)

    # 2. Passphrase errata e poi corretta
    with pytest.raises(InvalidPassphraseError):
        client.unlock_wallet("wrong")
    client.unlock_wallet(PASSPHRASE)

    # 3. Due invii, due nuovi blocchi
    first = client.send(SHOP, 2.0)
    second = client.send(client.get_address(SHOP), 3.0)
    assert first.amounts[SHOP] == -2.0
    assert first.includes(SHOP)

    # 4. Sync incrementale
    seen = []
    cursor = client.each_transactions_since(cursor, seen.append)
    assert seen == [first, second]
    assert cursor is client.latest_block()
    assert cursor.height == 2
    assert cursor.previous_block.previous_block is client.get_block(0)

    # 5. Nessuna novità dal nuovo cursore
    transactions, same_cursor = client.transactions_since(cursor)
    assert transactions == []
    assert same_cursor is cursor

    # 6. Fondi insufficienti riportano il saldo residuo
    with pytest.raises(InsufficientFundsError) as exc_info:
        client.send(SHOP, 100.0)
    assert exc_info.value.required == 100.0
    assert exc_info.value.available == pytest.approx(5.0)

    # 7. Lock
    client.lock_wallet()
    with pytest.raises(LockedWalletError):
        client.send(SHOP, 1.0)
