"""
BitLedger - Custom Exceptions
===============================
Gerarchia di eccezioni per errori del daemon e del trasporto RPC.

Last Updated: 2026-10-18
Version: 1.0.0

Layers:
- DaemonError: errori che il daemon segnala con un codice noto
- RpcError: errori di trasporto (server, HTTP, connessione, timeout)

Gli errori di programmazione (tipo/forma argomenti) restano TypeError e
ValueError built-in e non vengono mai catturati internamente.
"""

from typing import Optional, Any, Union


# ============================================================================
# BASE EXCEPTION
# ============================================================================

class BitLedgerException(Exception):
    """
    Eccezione base per tutte le eccezioni BitLedger.

    Attributes:
        message (str): Messaggio errore
        code (str | int): Codice errore (nome classe se non specificato)
        details (dict): Dettagli aggiuntivi
    """

    def __init__(
        self,
        message: str,
        code: Optional[Union[str, int]] = None,
        details: Optional[dict] = None
    ):
        self.message = message
        self.code = code if code is not None else self.__class__.__name__
        self.details = details or {}

        super().__init__(self.message)

    def to_dict(self) -> dict:
        """Serializza eccezione per logging"""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }

    def __str__(self) -> str:
        if self.details:
            return f"[{self.code}] {self.message} | Details: {self.details}"
        return f"[{self.code}] {self.message}"


# ============================================================================
# DAEMON ERRORS
# ============================================================================

class DaemonError(BitLedgerException):
    """Errori che il daemon può segnalare con un codice noto"""
    pass


class InvalidAddressError(DaemonError):
    """
    Indirizzo invalido (o di un'altra rete: mainnet vs testnet).

    Attributes:
        address (str): Indirizzo rifiutato
    """

    def __init__(self, address: str, message: Optional[str] = None):
        self._address = address
        super().__init__(
            message or f"Invalid address: {address!r}",
            details={"address": address}
        )

    @property
    def address(self) -> str:
        return self._address


class UnknownPrivateKeyError(InvalidAddressError):
    """Serve la chiave privata dell'indirizzo ma il wallet non la possiede"""

    def __init__(self, address: str):
        super().__init__(
            address,
            message=f"Unknown private key for address: {address!r}"
        )


class UnknownBlockError(DaemonError):
    """Il daemon non conosce il blocco richiesto"""

    def __init__(self, block_id: str):
        self._block_id = block_id
        super().__init__(
            f"Unknown block ID: {block_id!r}",
            details={"block_id": block_id}
        )

    @property
    def block_id(self) -> str:
        return self._block_id


class UnknownTransactionError(DaemonError):
    """
    Il daemon non conosce la transazione richiesta.

    Nota: il daemon conosce solo transazioni che toccano chiavi del wallet.
    """

    def __init__(self, transaction_id: str):
        self._transaction_id = transaction_id
        super().__init__(
            f"Unknown transaction ID: {transaction_id!r}",
            details={"transaction_id": transaction_id}
        )

    @property
    def transaction_id(self) -> str:
        return self._transaction_id


class InsufficientFundsError(DaemonError):
    """
    Fondi insufficienti per completare l'invio.

    Attributes:
        required (float): Importo necessario
        available (float): Importo disponibile al momento dell'errore
    """

    def __init__(self, required: float, available: float):
        self._required = required
        self._available = available
        super().__init__(
            f"{required} required, but only {available} available",
            details={"required": required, "available": available}
        )

    @property
    def required(self) -> float:
        return self._required

    @property
    def available(self) -> float:
        return self._available


class LockedWalletError(DaemonError):
    """Wallet bloccato: serve unlock prima dell'operazione"""

    def __init__(self):
        super().__init__(
            "You must unlock your wallet prior to this operation."
        )


class InvalidPassphraseError(DaemonError):
    """Passphrase wallet errata"""

    def __init__(self, bad_password: str):
        self._bad_password = bad_password
        # La passphrase non finisce in details (to_dict va nei log)
        super().__init__("Invalid wallet passphrase")

    @property
    def bad_password(self) -> str:
        return self._bad_password


class BlockOutOfRangeError(DaemonError, IndexError):
    """Nessun blocco a questa altezza"""

    def __init__(self, height: int):
        self._height = height
        super().__init__(
            f"Block height {height!r} is out of range.",
            details={"height": height}
        )

    @property
    def height(self) -> int:
        return self._height


# ============================================================================
# RPC TRANSPORT ERRORS
# ============================================================================

class RpcError(BitLedgerException):
    """Errore generico di livello RPC"""
    pass


class RpcServerError(RpcError):
    """
    Errore strutturato riportato dal daemon (campo "error" JSON-RPC).

    Attributes:
        code (int): Codice numerico del daemon
        message (str): Messaggio del daemon
        data: Payload aggiuntivo (se presente)
    """

    def __init__(self, code: int, message: str, data: Any = None):
        self.data = data
        super().__init__(
            message,
            code=code,
            details={"data": data} if data is not None else None
        )


class RpcTransportError(RpcError):
    """Risposta HTTP non interpretabile come JSON-RPC"""

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        body: Optional[str] = None
    ):
        self.status = status
        self.body = body
        details = {}
        if status is not None:
            details["status"] = status
        super().__init__(message, details=details)


class RpcConnectionError(RpcTransportError):
    """Daemon non raggiungibile"""
    pass


class RpcTimeoutError(RpcConnectionError):
    """Timeout della chiamata RPC"""
    pass


# ============================================================================
# EXPORT ALL
# ============================================================================

__all__ = [
    # Base
    "BitLedgerException",

    # Daemon
    "DaemonError",
    "InvalidAddressError",
    "UnknownPrivateKeyError",
    "UnknownBlockError",
    "UnknownTransactionError",
    "InsufficientFundsError",
    "LockedWalletError",
    "InvalidPassphraseError",
    "BlockOutOfRangeError",

    # RPC
    "RpcError",
    "RpcServerError",
    "RpcTransportError",
    "RpcConnectionError",
    "RpcTimeoutError",
]
