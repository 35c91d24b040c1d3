"""
BitLedger - Core Constants
============================
Codici errore del daemon, default di connessione e nomi dei metodi RPC.

Last Updated: 2026-10-18
Version: 1.0.0
"""

import math
from enum import IntEnum
from typing import Final


# ============================================================================
# CONNESSIONE RPC
# ============================================================================

DEFAULT_RPC_HOST: Final[str] = "127.0.0.1"
DEFAULT_RPC_PORT: Final[int] = 8331
DEFAULT_RPC_TIMEOUT: Final[int] = 30  # secondi

# Versione envelope JSON-RPC parlata dal daemon
JSONRPC_VERSION: Final[str] = "1.0"


# ============================================================================
# WALLET / LISTING
# ============================================================================

# Transazioni richieste per pagina a listtransactions
DEFAULT_PAGE_SIZE: Final[int] = 20

# Secondi di sblocco wallet per walletpassphrase
DEFAULT_UNLOCK_TIMEOUT: Final[int] = 300

# Conferme minime di default per getbalance
DEFAULT_MINIMUM_CONFIRMATIONS: Final[int] = 1

# Account di default del daemon
DEFAULT_ACCOUNT: Final[str] = ""


# ============================================================================
# CODICI ERRORE DAEMON
# ============================================================================

class RpcErrorCode(IntEnum):
    """
    Codici errore riportati dal daemon nel campo "error".

    Lo stesso codice assume significati diversi a seconda della chiamata:
    la traduzione dipende sempre dal contesto (vedi domain.error_mapping).
    """
    MISC_ERROR = -1
    WALLET_ERROR = -4          # dumpprivkey: chiave assente; signmessage: chiave ignota
    INVALID_ADDRESS_OR_KEY = -5
    INSUFFICIENT_FUNDS = -6
    UNLOCK_NEEDED = -13
    PASSPHRASE_INCORRECT = -14


# ============================================================================
# METODI RPC
# ============================================================================

class RpcMethod:
    """Nomi dei metodi RPC invocati sul daemon"""

    # Blocchi e transazioni
    GET_BLOCK = "getblock"
    GET_BLOCK_HASH = "getblockhash"
    GET_BLOCK_COUNT = "getblockcount"
    GET_TRANSACTION = "gettransaction"
    LIST_TRANSACTIONS = "listtransactions"
    LIST_SINCE_BLOCK = "listsinceblock"

    # Account e indirizzi
    GET_BALANCE = "getbalance"
    GET_ADDRESSES_BY_ACCOUNT = "getaddressesbyaccount"
    GET_ACCOUNT_ADDRESS = "getaccountaddress"
    GET_NEW_ADDRESS = "getnewaddress"
    GET_ACCOUNT = "getaccount"
    SET_ACCOUNT = "setaccount"
    VALIDATE_ADDRESS = "validateaddress"
    LIST_RECEIVED_BY_ADDRESS = "listreceivedbyaddress"
    LIST_RECEIVED_BY_ACCOUNT = "listreceivedbyaccount"

    # Chiavi e firme
    DUMP_PRIVKEY = "dumpprivkey"
    IMPORT_PRIVKEY = "importprivkey"
    SIGN_MESSAGE = "signmessage"
    VERIFY_MESSAGE = "verifymessage"
    KEYPOOL_REFILL = "keypoolrefill"

    # Invii
    SEND_FROM = "sendfrom"
    SEND_MANY = "sendmany"
    SEND_TO_ADDRESS = "sendtoaddress"
    SET_TX_FEE = "settxfee"

    # Wallet lifecycle
    BACKUP_WALLET = "backupwallet"
    ENCRYPT_WALLET = "encryptwallet"
    WALLET_PASSPHRASE_CHANGE = "walletpassphrasechange"
    WALLET_PASSPHRASE = "walletpassphrase"
    WALLET_LOCK = "walletlock"

    # Stato daemon
    GET_INFO = "getinfo"
    GET_CONNECTION_COUNT = "getconnectioncount"
    GET_DIFFICULTY = "getdifficulty"
    GET_GENERATE = "getgenerate"
    SET_GENERATE = "setgenerate"
    GET_HASHES_PER_SEC = "gethashespersec"
    GET_MEMORY_POOL = "getmemorypool"
    STOP = "stop"


# ============================================================================
# HELPER
# ============================================================================

def validate_amount(amount) -> bool:
    """
    Check se amount è un numero reale positivo e finito.

    Examples:
        >>> validate_amount(0.5)
        True
        >>> validate_amount(0)
        False
        >>> validate_amount(True)
        False
        >>> validate_amount(float("inf"))
        False
    """
    if isinstance(amount, bool) or not isinstance(amount, (int, float)):
        return False
    return math.isfinite(amount) and amount > 0


__all__ = [
    "DEFAULT_RPC_HOST",
    "DEFAULT_RPC_PORT",
    "DEFAULT_RPC_TIMEOUT",
    "JSONRPC_VERSION",
    "DEFAULT_PAGE_SIZE",
    "DEFAULT_UNLOCK_TIMEOUT",
    "DEFAULT_MINIMUM_CONFIRMATIONS",
    "DEFAULT_ACCOUNT",
    "RpcErrorCode",
    "RpcMethod",
    "validate_amount",
]
