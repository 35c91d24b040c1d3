"""
BitLedger - Daemon Error Mapping
==================================
Traduzione (codice errore, contesto chiamata) -> tipo di errore di dominio.

Last Updated: 2026-10-18
Version: 1.0.0

Il daemon riusa gli stessi codici per chiamate diverse (-5 è indirizzo
invalido, blocco ignoto o transazione ignota a seconda del metodo), quindi
la traduzione è sempre risolta per call site tramite RpcContext.

classify_rpc_error() è una funzione pura: testabile senza daemon.
"""

from enum import Enum
from typing import Any, Callable, Dict, Tuple, Union

from bit_ledger.constants import RpcErrorCode
from bit_ledger.errors import (
    DaemonError,
    InvalidAddressError,
    UnknownPrivateKeyError,
    UnknownBlockError,
    UnknownTransactionError,
    InsufficientFundsError,
    LockedWalletError,
    InvalidPassphraseError,
    BlockOutOfRangeError,
)


# ============================================================================
# CONTEXT & KIND
# ============================================================================

class RpcContext(Enum):
    """Operazione di alto livello tentata al momento dell'errore"""
    GENERIC = "generic"
    ADDRESS = "address"                    # validateaddress, getaccount, setaccount
    BLOCK = "block"                        # getblock
    BLOCK_HEIGHT = "block_height"          # getblockhash
    TRANSACTION = "transaction"            # gettransaction
    SEND = "send"                          # sendtoaddress, sendfrom, sendmany
    WALLET = "wallet"                      # operazioni che richiedono wallet sbloccato
    PASSPHRASE = "passphrase"              # walletpassphrase, walletpassphrasechange
    PRIVATE_KEY_DUMP = "private_key_dump"  # dumpprivkey
    SIGNING = "signing"                    # signmessage


class ErrorKind(Enum):
    """Esito della classificazione"""
    INVALID_ADDRESS = "invalid_address"
    UNKNOWN_PRIVATE_KEY = "unknown_private_key"
    UNKNOWN_BLOCK = "unknown_block"
    UNKNOWN_TRANSACTION = "unknown_transaction"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    LOCKED_WALLET = "locked_wallet"
    INVALID_PASSPHRASE = "invalid_passphrase"
    OUT_OF_RANGE = "out_of_range"
    NO_PRIVATE_KEY = "no_private_key"  # valore assente, non un errore
    PASSTHROUGH = "passthrough"        # errore originale rilanciato


# ============================================================================
# MAPPING TABLE
# ============================================================================

_CODE = RpcErrorCode

_MAPPING: Dict[Tuple[int, RpcContext], ErrorKind] = {
    # -5: indirizzo / blocco / transazione ignoti
    (_CODE.INVALID_ADDRESS_OR_KEY, RpcContext.ADDRESS): ErrorKind.INVALID_ADDRESS,
    (_CODE.INVALID_ADDRESS_OR_KEY, RpcContext.SEND): ErrorKind.INVALID_ADDRESS,
    (_CODE.INVALID_ADDRESS_OR_KEY, RpcContext.PRIVATE_KEY_DUMP): ErrorKind.INVALID_ADDRESS,
    (_CODE.INVALID_ADDRESS_OR_KEY, RpcContext.SIGNING): ErrorKind.INVALID_ADDRESS,
    (_CODE.INVALID_ADDRESS_OR_KEY, RpcContext.BLOCK): ErrorKind.UNKNOWN_BLOCK,
    (_CODE.INVALID_ADDRESS_OR_KEY, RpcContext.TRANSACTION): ErrorKind.UNKNOWN_TRANSACTION,

    # -6: fondi insufficienti
    (_CODE.INSUFFICIENT_FUNDS, RpcContext.SEND): ErrorKind.INSUFFICIENT_FUNDS,

    # -13: wallet bloccato
    (_CODE.UNLOCK_NEEDED, RpcContext.SEND): ErrorKind.LOCKED_WALLET,
    (_CODE.UNLOCK_NEEDED, RpcContext.WALLET): ErrorKind.LOCKED_WALLET,
    (_CODE.UNLOCK_NEEDED, RpcContext.PRIVATE_KEY_DUMP): ErrorKind.LOCKED_WALLET,
    (_CODE.UNLOCK_NEEDED, RpcContext.SIGNING): ErrorKind.LOCKED_WALLET,

    # -14: passphrase errata
    (_CODE.PASSPHRASE_INCORRECT, RpcContext.PASSPHRASE): ErrorKind.INVALID_PASSPHRASE,

    # -4: chiave privata assente
    (_CODE.WALLET_ERROR, RpcContext.PRIVATE_KEY_DUMP): ErrorKind.NO_PRIVATE_KEY,
    (_CODE.WALLET_ERROR, RpcContext.SIGNING): ErrorKind.UNKNOWN_PRIVATE_KEY,

    # -1: altezza fuori range
    (_CODE.MISC_ERROR, RpcContext.BLOCK_HEIGHT): ErrorKind.OUT_OF_RANGE,
}


def classify_rpc_error(code: int, context: RpcContext) -> ErrorKind:
    """
    Classifica un errore del daemon.

    Args:
        code: Codice numerico riportato dal daemon
        context: Operazione tentata

    Returns:
        ErrorKind: PASSTHROUGH se la coppia non è mappata

    Examples:
        >>> classify_rpc_error(-5, RpcContext.BLOCK)
        <ErrorKind.UNKNOWN_BLOCK: 'unknown_block'>
        >>> classify_rpc_error(-5, RpcContext.GENERIC)
        <ErrorKind.PASSTHROUGH: 'passthrough'>
    """
    return _MAPPING.get((code, context), ErrorKind.PASSTHROUGH)


# ============================================================================
# ERROR FACTORY
# ============================================================================

Lazy = Union[Any, Callable[[], Any]]


def _resolve(value: Lazy) -> Any:
    return value() if callable(value) else value


def _require(kind: ErrorKind, subject: Dict[str, Any], *names: str) -> list:
    missing = [name for name in names if name not in subject]
    if missing:
        raise TypeError(f"{kind.name} requires subject field(s): {', '.join(missing)}")
    return [subject[name] for name in names]


def build_domain_error(kind: ErrorKind, **subject: Lazy) -> DaemonError:
    """
    Costruisce l'eccezione di dominio per un ErrorKind.

    Args:
        kind: Esito di classify_rpc_error (non PASSTHROUGH / NO_PRIVATE_KEY)
        **subject: Valori offensivi (address, block_id, transaction_id,
            required, available, bad_password, height). "available" può
            essere un callable: viene valutato solo qui.

    Returns:
        DaemonError: Eccezione pronta da sollevare

    Example:
        >>> err = build_domain_error(ErrorKind.UNKNOWN_BLOCK, block_id="00ab")
        >>> err.block_id
        '00ab'
    """
    if kind is ErrorKind.INVALID_ADDRESS:
        (address,) = _require(kind, subject, "address")
        return InvalidAddressError(address)

    if kind is ErrorKind.UNKNOWN_PRIVATE_KEY:
        (address,) = _require(kind, subject, "address")
        return UnknownPrivateKeyError(address)

    if kind is ErrorKind.UNKNOWN_BLOCK:
        (block_id,) = _require(kind, subject, "block_id")
        return UnknownBlockError(block_id)

    if kind is ErrorKind.UNKNOWN_TRANSACTION:
        (transaction_id,) = _require(kind, subject, "transaction_id")
        return UnknownTransactionError(transaction_id)

    if kind is ErrorKind.INSUFFICIENT_FUNDS:
        required, available = _require(kind, subject, "required", "available")
        return InsufficientFundsError(_resolve(required), _resolve(available))

    if kind is ErrorKind.LOCKED_WALLET:
        return LockedWalletError()

    if kind is ErrorKind.INVALID_PASSPHRASE:
        (bad_password,) = _require(kind, subject, "bad_password")
        return InvalidPassphraseError(bad_password)

    if kind is ErrorKind.OUT_OF_RANGE:
        (height,) = _require(kind, subject, "height")
        return BlockOutOfRangeError(height)

    raise ValueError(f"{kind.name} does not map to a domain error")


__all__ = [
    "RpcContext",
    "ErrorKind",
    "classify_rpc_error",
    "build_domain_error",
]
