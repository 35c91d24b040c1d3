"""
BitLedger - Incremental Sync Tests
====================================
Unit tests for each_transactions_since / transactions_since.
"""

import pytest

from bit_ledger.client import Client
from bit_ledger.errors import UnknownBlockError
from conftest import ALICE, BOB, GENESIS_ID, BLOCK_1_ID, BLOCK_2_ID


@pytest.fixture
def since_daemon(daemon):
    """listsinceblock: una voce per indirizzo toccato, tx-b ripetuta"""
    listings = {
        GENESIS_ID: [
            {"txid": "tx-a", "address": ALICE},
            {"txid": "tx-b", "address": BOB},
            {"txid": "tx-b", "address": ALICE},
            {"txid": "tx-c"},
        ],
        BLOCK_1_ID: [
            {"txid": "tx-c"},
        ],
        BLOCK_2_ID: [],
    }

    def listsinceblock(block_id):
        return {"transactions": listings[block_id], "lastblock": BLOCK_2_ID}

    daemon.on("listsinceblock", listsinceblock)
    return daemon


class TestEachTransactionsSince:
    """Test each_transactions_since"""

    def test_each_transaction_once_in_listing_order(self, client, since_daemon):
        seen = []

        client.each_transactions_since(GENESIS_ID, seen.append)

        assert [tx.transaction_id for tx in seen] == ["tx-a", "tx-b", "tx-c"]

    def test_returns_new_cursor(self, client, since_daemon):
        cursor = client.get_block(BLOCK_1_ID)

        new_cursor = client.each_transactions_since(cursor, lambda tx: None)

        assert new_cursor is client.get_block(BLOCK_2_ID)
        assert new_cursor.height >= cursor.height

    @pytest.mark.parametrize("cursor", [0, GENESIS_ID])
    def test_cursor_by_height_or_id(self, client, since_daemon, cursor):
        transactions, _ = client.transactions_since(cursor)

        assert len(transactions) == 3
        assert since_daemon.calls_to("listsinceblock") == [[GENESIS_ID]]

    def test_cursor_from_other_client(self, client, since_daemon, test_settings):
        """Test a Block of another client is resolved again by ID"""
        other = Client(since_daemon, test_settings)
        foreign = other.get_block(BLOCK_1_ID)

        _, new_cursor = client.transactions_since(foreign)

        assert new_cursor.client is client
        assert client.get_block(BLOCK_1_ID) is not foreign

    def test_callback_receives_cached_instances(self, client, since_daemon):
        transactions, _ = client.transactions_since(GENESIS_ID)

        assert transactions[0] is client.get_transaction("tx-a")

    def test_callback_error_propagates(self, client, since_daemon):
        def callback(tx):
            raise RuntimeError("handler failed")

        with pytest.raises(RuntimeError):
            client.each_transactions_since(GENESIS_ID, callback)

    def test_unknown_cursor(self, client, since_daemon):
        since_daemon.fails("listsinceblock", -5, "Block not found")

        with pytest.raises(UnknownBlockError) as exc_info:
            client.each_transactions_since(GENESIS_ID, lambda tx: None)

        assert exc_info.value.block_id == GENESIS_ID

    def test_polling_loop(self, client, since_daemon):
        cursor = client.get_block(BLOCK_1_ID)
        seen = []

        for _ in range(2):
            cursor = client.each_transactions_since(cursor, seen.append)

        assert [tx.transaction_id for tx in seen] == ["tx-c"]
        assert cursor.block_id == BLOCK_2_ID


class TestTransactions:
    """Test Client.transactions"""

    def test_all_wallet_transactions(self, client, since_daemon):
        transactions = client.transactions()

        assert [tx.transaction_id for tx in transactions] == ["tx-a", "tx-b", "tx-c"]
        assert since_daemon.calls_to("getblockhash") == [[0]]
