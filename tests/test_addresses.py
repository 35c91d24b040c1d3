"""
BitLedger - Address Tests
===========================
Unit tests for Address validation, accounts, keys and signatures.
"""

import pytest

from bit_ledger.errors import (
    InvalidAddressError,
    UnknownPrivateKeyError,
    LockedWalletError,
)
from conftest import ALICE, BOB, CAROL


class TestAddressValidation:
    """Test Address construction"""

    def test_valid_address(self, client):
        address = client.get_address(ALICE)

        assert address.address == ALICE
        assert address.canonical_string() == ALICE
        assert str(address) == ALICE
        assert address.is_mine is True

    def test_not_mine(self, client):
        assert client.get_address(CAROL).is_mine is False

    def test_invalid_address(self, client):
        with pytest.raises(InvalidAddressError) as exc_info:
            client.get_address("bad-address")

        assert exc_info.value.address == "bad-address"

    def test_identity(self, client, daemon):
        assert client.get_address(ALICE) is client.get_address(ALICE)
        assert client.get_address(client.get_address(ALICE)) is client.get_address(ALICE)
        assert daemon.calls_to("validateaddress") == [[ALICE]]

    def test_is_valid_address(self, client):
        assert client.is_valid_address(BOB)
        assert not client.is_valid_address("bad")

    def test_wrong_type(self, client):
        with pytest.raises(TypeError):
            client.get_address(42)


class TestAddressAccount:
    """Test account association"""

    def test_account_read_each_time(self, client, daemon):
        labels = iter(["", "savings"])
        daemon.on("getaccount", lambda address: next(labels))
        address = client.get_address(ALICE)

        assert address.account is client.get_account("")
        assert address.account is client.get_account("savings")
        assert len(daemon.calls_to("getaccount")) == 2

    def test_set_account(self, client, daemon):
        daemon.returns("setaccount", None)
        address = client.get_address(ALICE)

        account = address.set_account(client.get_account("savings"))

        assert account is client.get_account("savings")
        assert daemon.calls_to("setaccount") == [[ALICE, "savings"]]

    def test_set_account_by_label(self, client, daemon):
        daemon.returns("setaccount", None)

        account = client.get_address(ALICE).set_account("cold")

        assert account.name == "cold"

    def test_transactions_filtered_by_address(self, client, daemon):
        daemon.returns("getaccount", "")
        # pagina piena (page_size == 3): serve una seconda pagina vuota
        daemon.on("listtransactions", lambda account, count, offset: (
            [{"txid": "tx-a"}, {"txid": "tx-b"}, {"txid": "tx-c"}] if offset == 0 else []
        ))

        transactions = client.get_address(BOB).transactions()

        assert [tx.transaction_id for tx in transactions] == ["tx-b"]


class TestPrivateKey:
    """Test Address.private_key"""

    def test_private_key(self, client, daemon):
        daemon.returns("dumpprivkey", "5HueCGU8rMjxEXxiPuD5BDku4MkFqeZyd4dZ1jvhTVqvbTLvyTJ")

        key = client.get_address(ALICE).private_key

        assert key == "5HueCGU8rMjxEXxiPuD5BDku4MkFqeZyd4dZ1jvhTVqvbTLvyTJ"

    def test_private_key_memoised(self, client, daemon):
        daemon.returns("dumpprivkey", "5Hue")
        address = client.get_address(ALICE)

        address.private_key
        address.private_key

        assert daemon.calls_to("dumpprivkey") == [[ALICE]]

    def test_no_private_key_is_none(self, client, daemon):
        """Test a key the wallet does not hold is reported as None"""
        daemon.fails("dumpprivkey", -4, "Private key for address is not known")

        assert client.get_address(CAROL).private_key is None

    def test_absent_key_is_asked_again(self, client, daemon):
        daemon.fails("dumpprivkey", -4, "Private key for address is not known")
        address = client.get_address(CAROL)

        address.private_key
        address.private_key

        assert len(daemon.calls_to("dumpprivkey")) == 2

    def test_locked_wallet(self, client, daemon):
        daemon.fails("dumpprivkey", -13, "Please enter the wallet passphrase")

        with pytest.raises(LockedWalletError):
            client.get_address(ALICE).private_key

    def test_invalid_address(self, client, daemon):
        daemon.fails("dumpprivkey", -5, "Invalid Bitcoin address")

        with pytest.raises(InvalidAddressError) as exc_info:
            client.get_address(ALICE).private_key

        assert exc_info.value.address == ALICE


class TestSignatures:
    """Test sign / verify"""

    def test_sign(self, client, daemon):
        daemon.returns("signmessage", "H+signature==")

        assert client.get_address(ALICE).sign("hello") == "H+signature=="
        assert daemon.calls_to("signmessage") == [[ALICE, "hello"]]

    def test_sign_unknown_private_key(self, client, daemon):
        daemon.fails("signmessage", -4, "Private key not available")

        with pytest.raises(UnknownPrivateKeyError) as exc_info:
            client.get_address(CAROL).sign("hello")

        assert exc_info.value.address == CAROL
        assert isinstance(exc_info.value, InvalidAddressError)

    def test_sign_locked_wallet(self, client, daemon):
        daemon.fails("signmessage", -13, "Please enter the wallet passphrase")

        with pytest.raises(LockedWalletError):
            client.get_address(ALICE).sign("hello")

    def test_verify_parameter_order(self, client, daemon):
        """Test verifymessage receives (address, signature, message)"""
        daemon.on("verifymessage", lambda address, signature, message: (
            address == ALICE and signature == "H+sig" and message == "hello"
        ))

        assert client.get_address(ALICE).verify("hello", "H+sig")
        assert not client.get_address(ALICE).verify("other", "H+sig")

    def test_verify_invalid_address(self, client, daemon):
        daemon.fails("verifymessage", -5, "Invalid address")

        with pytest.raises(InvalidAddressError):
            client.verify_message("1nowhere", "H+sig", "hello")
