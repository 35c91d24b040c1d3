"""
BitLedger - Daemon Object Client
==================================
Oggetti tipizzati (blocchi, transazioni, account, indirizzi) sul JSON-RPC
di un daemon bitcoind-compatibile.

Version: 1.0.0
Author: BitLedger Team
License: MIT
"""

from bit_ledger.version import __version__

__author__ = "BitLedger Team"
__license__ = "MIT"

# Core
from bit_ledger.client import Client
from bit_ledger.config import ClientSettings, get_settings
from bit_ledger.rpc.transport import RpcTransport, JsonRpcTransport

# Domain
from bit_ledger.domain.models import (
    AddressLike,
    Block,
    Transaction,
    Account,
    Address,
)

# Errors
from bit_ledger.errors import (
    BitLedgerException,
    DaemonError,
    InvalidAddressError,
    UnknownPrivateKeyError,
    UnknownBlockError,
    UnknownTransactionError,
    InsufficientFundsError,
    LockedWalletError,
    InvalidPassphraseError,
    BlockOutOfRangeError,
    RpcError,
    RpcServerError,
    RpcTransportError,
    RpcConnectionError,
    RpcTimeoutError,
)

# Logging
from bit_ledger.logging_setup import setup_logging, setup_logging_from_settings

__all__ = [
    # Version
    "__version__",

    # Core
    "Client",
    "ClientSettings",
    "get_settings",
    "RpcTransport",
    "JsonRpcTransport",

    # Domain
    "AddressLike",
    "Block",
    "Transaction",
    "Account",
    "Address",

    # Errors
    "BitLedgerException",
    "DaemonError",
    "InvalidAddressError",
    "UnknownPrivateKeyError",
    "UnknownBlockError",
    "UnknownTransactionError",
    "InsufficientFundsError",
    "LockedWalletError",
    "InvalidPassphraseError",
    "BlockOutOfRangeError",
    "RpcError",
    "RpcServerError",
    "RpcTransportError",
    "RpcConnectionError",
    "RpcTimeoutError",

    # Logging
    "setup_logging",
    "setup_logging_from_settings",
]
