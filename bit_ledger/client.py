"""
BitLedger - Client
====================
Client di alto livello sul JSON-RPC del daemon.

Last Updated: 2026-10-18
Version: 1.0.0

Features:
- Entità tipizzate (Block, Transaction, Account, Address) con identity cache
- Traduzione codici errore del daemon in eccezioni di dominio
- Sync incrementale "transazioni dal blocco X"
- Invii e lifecycle del wallet
- Info e controllo del daemon

Il Client è sincrono: ogni operazione blocca fino alla risposta del daemon.
Timeout e riconnessioni sono responsabilità del trasporto.
"""

import math
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

from bit_ledger.config import ClientSettings, get_settings
from bit_ledger.constants import DEFAULT_ACCOUNT, RpcMethod, validate_amount
from bit_ledger.domain.cache import EntityCache, EntityKind
from bit_ledger.domain.error_mapping import (
    RpcContext,
    ErrorKind,
    classify_rpc_error,
    build_domain_error,
)
from bit_ledger.domain.models import (
    AddressLike,
    Account,
    Address,
    Block,
    Transaction,
    canonical_address,
)
from bit_ledger.errors import RpcServerError
from bit_ledger.logging_setup import get_logger
from bit_ledger.rpc.transport import RpcTransport, JsonRpcTransport
from bit_ledger.version import format_daemon_version


# ============================================================================
# MODULE LOGGER
# ============================================================================

logger = get_logger("client")


BlockRef = Union[Block, str, int]


class Client:
    """
    Client del daemon.

    Possiede le quattro identity cache (blocchi, transazioni, account,
    indirizzi): per tutta la vita del Client ogni ID remoto corrisponde a
    una sola istanza.

    Attributes:
        rpc (RpcTransport): Trasporto JSON-RPC
        settings (ClientSettings): Configurazione
        cache (EntityCache): Identity cache delle entità

    Examples:
        >>> client = Client.connect("user", "secret")
        >>> genesis = client.get_block(0)
        >>> client.get_account("") is client[""]
        True
        >>> cursor = client.each_transactions_since(genesis, print)
    """

    def __init__(
        self,
        transport: RpcTransport,
        settings: Optional[ClientSettings] = None
    ):
        if not isinstance(transport, RpcTransport):
            raise TypeError(
                f"transport must implement RpcTransport ({type(transport).__name__} given)"
            )

        self.rpc = transport
        self.settings = settings if settings is not None else get_settings()
        self.cache = EntityCache({
            EntityKind.BLOCK: lambda block_id: Block.load(self, block_id),
            EntityKind.TRANSACTION: lambda txid: Transaction.load(self, txid),
            EntityKind.ACCOUNT: lambda label: Account.load(self, label),
            EntityKind.ADDRESS: lambda address: Address.load(self, address),
        })

    @classmethod
    def from_settings(cls, settings: ClientSettings) -> "Client":
        """Client con JsonRpcTransport configurato da settings"""
        transport = JsonRpcTransport(
            settings.rpc_url(),
            settings.rpc_user,
            settings.rpc_password.get_secret_value(),
            timeout=settings.rpc_timeout,
            slow_call_threshold_ms=settings.slow_call_threshold_ms,
        )
        return cls(transport, settings)

    @classmethod
    def connect(
        cls,
        user: str,
        password: str,
        host: Optional[str] = None,
        port: Optional[int] = None,
        ssl: Optional[bool] = None,
        timeout: Optional[float] = None,
    ) -> "Client":
        """
        Connessione con credenziali esplicite.

        I parametri non passati vengono presi da get_settings().
        """
        overrides: Dict[str, Any] = {"rpc_user": user, "rpc_password": password}
        if host is not None:
            overrides["rpc_host"] = host
        if port is not None:
            overrides["rpc_port"] = port
        if ssl is not None:
            overrides["rpc_ssl"] = ssl
        if timeout is not None:
            overrides["rpc_timeout"] = timeout

        settings = ClientSettings(**{**get_settings().model_dump(), **overrides})
        return cls.from_settings(settings)

    # ========================================================================
    # RPC + ERROR TRANSLATION
    # ========================================================================

    def _translate_error(self, exc: RpcServerError, context: RpcContext, **subject):
        """
        Solleva l'errore di dominio per exc nel contesto dato.

        Restituisce None solo per ErrorKind.NO_PRIVATE_KEY (valore assente).
        Errori non mappati vengono rilanciati invariati.
        """
        kind = classify_rpc_error(exc.code, context)

        if kind is ErrorKind.NO_PRIVATE_KEY:
            return None

        if kind is ErrorKind.PASSTHROUGH:
            raise exc

        error = build_domain_error(kind, **subject)
        logger.info(
            "Daemon error translated",
            extra_data={"rpc_code": exc.code, "context": context.value, "error": error.code}
        )
        raise error from exc

    def _call(
        self,
        method: str,
        *params: Any,
        context: RpcContext = RpcContext.GENERIC,
        **subject: Any
    ) -> Any:
        """
        Chiamata RPC con traduzione errori.

        Args:
            method: Metodo RPC
            *params: Parametri posizionali
            context: Operazione per la traduzione dei codici
            **subject: Valori offensivi per l'eventuale errore di dominio
        """
        logger.debug("RPC call", extra_data={"method": method, "context": context.value})
        try:
            return self.rpc.call(method, list(params))
        except RpcServerError as exc:
            return self._translate_error(exc, context, **subject)

    def _call_with_rejected_address(
        self,
        method: str,
        *params: Any,
        outputs: Mapping[str, float],
        required: float,
        available: Callable[[], float]
    ) -> Any:
        """
        Invio multi-destinatario: su -5 l'indirizzo rifiutato viene
        ricavato dal messaggio del daemon.
        """
        logger.debug("RPC call", extra_data={"method": method, "context": RpcContext.SEND.value})
        try:
            return self.rpc.call(method, list(params))
        except RpcServerError as exc:
            return self._translate_error(
                exc,
                RpcContext.SEND,
                address=rejected_address(exc.message, outputs),
                required=required,
                available=available
            )

    @staticmethod
    def _check_amount(amount: Any) -> None:
        """
        Raises:
            TypeError: amount non è un numero reale
            ValueError: amount non è positivo
        """
        if isinstance(amount, bool) or not isinstance(amount, (int, float)):
            raise TypeError(f"amount must be a real number ({type(amount).__name__} given)")
        if not validate_amount(amount):
            raise ValueError(f"amount must be positive and finite ({amount!r} given)")

    def _outputs(self, dests: Mapping[Union[str, AddressLike], float]) -> Dict[str, float]:
        """Normalizza {destinazione: importo} in {str: importo}"""
        if not isinstance(dests, Mapping):
            raise TypeError(f"dests must be a mapping ({type(dests).__name__} given)")
        if not dests:
            raise ValueError("dests cannot be empty")

        outputs: Dict[str, float] = {}
        for dest, amount in dests.items():
            self._check_amount(amount)
            outputs[canonical_address(dest)] = amount
        return outputs

    # ========================================================================
    # ENTITY ACCESS (cached)
    # ========================================================================

    def get_block(self, block_id: Union[str, int]) -> Block:
        """
        Blocco per hash (str) o altezza (int).

        L'altezza viene prima risolta in hash con getblockhash: entrambe le
        chiavi convergono sulla stessa istanza in cache.

        Raises:
            UnknownBlockError: hash sconosciuto
            BlockOutOfRangeError: nessun blocco a quell'altezza
            TypeError: block_id né str né int
        """
        if isinstance(block_id, bool):
            raise TypeError("block_id must be a str or int (bool given)")

        if isinstance(block_id, int):
            height = block_id
            block_id = self._call(
                RpcMethod.GET_BLOCK_HASH,
                height,
                context=RpcContext.BLOCK_HEIGHT,
                height=height
            )
        elif not isinstance(block_id, str):
            raise TypeError(f"block_id must be a str or int ({type(block_id).__name__} given)")

        return self.cache.get(EntityKind.BLOCK, block_id)

    def get_transaction(self, transaction_id: str) -> Transaction:
        """
        Transazione per ID.

        Raises:
            UnknownTransactionError: il daemon non la conosce
        """
        if not isinstance(transaction_id, str):
            raise TypeError(
                f"transaction_id must be a str ({type(transaction_id).__name__} given)"
            )
        return self.cache.get(EntityKind.TRANSACTION, transaction_id)

    def get_account(self, label: str) -> Account:
        """Account per label ("" = default), creato se non esiste"""
        if not isinstance(label, str):
            raise TypeError(f"label must be a str ({type(label).__name__} given)")
        return self.cache.get(EntityKind.ACCOUNT, label)

    __getitem__ = get_account

    def get_address(self, address: Union[str, AddressLike]) -> Address:
        """
        Address per stringa.

        Raises:
            InvalidAddressError: indirizzo invalido per la rete del daemon
        """
        return self.cache.get(EntityKind.ADDRESS, canonical_address(address))

    def addresses(self) -> List[Address]:
        """Tutti gli indirizzi del wallet"""
        return [
            self.get_address(info["address"])
            for info in self._call(RpcMethod.LIST_RECEIVED_BY_ADDRESS, 0, True)
        ]

    def accounts(self) -> List[Account]:
        """Tutti gli account del wallet"""
        return [
            self.get_account(info["account"])
            for info in self._call(RpcMethod.LIST_RECEIVED_BY_ACCOUNT, 0, True)
        ]

    def has_account(self, label: str) -> bool:
        """True se l'account ha almeno un indirizzo"""
        return bool(self.get_account(label).addresses())

    def latest_block(self) -> Block:
        """Ultimo blocco noto al daemon"""
        return self.get_block(self._call(RpcMethod.GET_INFO)["blocks"])

    # ========================================================================
    # INCREMENTAL SYNC
    # ========================================================================

    def _resolve_cursor(self, cursor: BlockRef) -> Block:
        if isinstance(cursor, Block):
            if cursor.client is self:
                return cursor
            return self.get_block(cursor.block_id)
        return self.get_block(cursor)

    def each_transactions_since(
        self,
        cursor: BlockRef,
        callback: Callable[[Transaction], Any]
    ) -> Block:
        """
        Invoca callback per ogni transazione dal blocco cursor.

        Args:
            cursor: Block, hash o altezza
            callback: Chiamata una volta per transazione, in ordine di listing

        Returns:
            Block: Nuovo cursore ("lastblock" riportato dal daemon)

        Example:
            >>> cursor = client.get_block(0)
            >>> while True:
            ...     cursor = client.each_transactions_since(cursor, handle)
            ...     time.sleep(60)
        """
        block = self._resolve_cursor(cursor)
        info = self._call(
            RpcMethod.LIST_SINCE_BLOCK,
            block.block_id,
            context=RpcContext.BLOCK,
            block_id=block.block_id
        )

        # Una transazione compare una volta per indirizzo del wallet toccato
        transaction_ids = list(dict.fromkeys(
            entry["txid"]
            for entry in info["transactions"]
            if entry.get("txid") is not None
        ))

        logger.debug(
            "Transactions since block",
            extra_data={
                "since": block.block_id,
                "count": len(transaction_ids),
                "lastblock": info["lastblock"],
            }
        )

        for txid in transaction_ids:
            callback(self.get_transaction(txid))

        return self.get_block(info["lastblock"])

    def transactions_since(self, cursor: BlockRef) -> Tuple[List[Transaction], Block]:
        """Come each_transactions_since ma restituisce (transazioni, cursore)"""
        collected: List[Transaction] = []
        new_cursor = self.each_transactions_since(cursor, collected.append)
        return collected, new_cursor

    def transactions(self) -> List[Transaction]:
        """Tutte le transazioni che coinvolgono il wallet (dal genesis)"""
        return self.transactions_since(0)[0]

    # ========================================================================
    # SENDS
    # ========================================================================

    def send(self, dest: Union[str, AddressLike], amount: float) -> Transaction:
        """
        Invia amount a dest (sendtoaddress).

        Nessun controllo locale del saldo: l'insufficienza arriva solo dal
        daemon, e available viene letto in quel momento.

        Raises:
            TypeError / ValueError: dest o amount non validi
            InvalidAddressError: dest rifiutato dal daemon
            InsufficientFundsError: required=amount, available=balance()
            LockedWalletError: wallet da sbloccare
        """
        dest = canonical_address(dest)
        self._check_amount(amount)

        txid = self._call(
            RpcMethod.SEND_TO_ADDRESS,
            dest,
            amount,
            context=RpcContext.SEND,
            address=dest,
            required=amount,
            available=self.balance
        )

        logger.info("Funds sent", extra_data={"dest": dest, "amount": amount, "txid": txid})
        return self.get_transaction(txid)

    def send_to_many(self, dests: Mapping[Union[str, AddressLike], float]) -> Transaction:
        """Invio multi-destinatario dall'account di default"""
        return self.get_account(DEFAULT_ACCOUNT).send_to_many(dests)

    # ========================================================================
    # WALLET LIFECYCLE
    # ========================================================================

    def backup_wallet(self, path: str) -> None:
        """Copia il wallet in path (se directory: path/wallet.dat)"""
        self._call(RpcMethod.BACKUP_WALLET, str(path))

    def encrypt_wallet(self, passphrase: str) -> Any:
        """Cifra il wallet con passphrase (il daemon si arresta)"""
        result = self._call(RpcMethod.ENCRYPT_WALLET, passphrase)
        logger.info("Wallet encrypted")
        return result

    def change_wallet_passphrase(self, old_passphrase: str, new_passphrase: str) -> None:
        """
        Raises:
            InvalidPassphraseError: old_passphrase errata
        """
        self._call(
            RpcMethod.WALLET_PASSPHRASE_CHANGE,
            old_passphrase,
            new_passphrase,
            context=RpcContext.PASSPHRASE,
            bad_password=old_passphrase
        )
        logger.info("Wallet passphrase changed")

    def unlock_wallet(self, passphrase: str, timeout: Optional[int] = None) -> None:
        """
        Sblocca il wallet per timeout secondi (default da settings).

        Raises:
            InvalidPassphraseError: passphrase errata
        """
        if timeout is None:
            timeout = self.settings.unlock_timeout

        self._call(
            RpcMethod.WALLET_PASSPHRASE,
            passphrase,
            timeout,
            context=RpcContext.PASSPHRASE,
            bad_password=passphrase
        )
        logger.info("Wallet unlocked", extra_data={"timeout": timeout})

    def lock_wallet(self) -> None:
        self._call(RpcMethod.WALLET_LOCK)
        logger.info("Wallet locked")

    # ========================================================================
    # KEYS
    # ========================================================================

    def import_private_key(self, key: str, label: str = "") -> Optional[Address]:
        """
        Importa una chiave privata sotto label.

        Returns:
            Address se il daemon restituisce l'indirizzo importato, altrimenti None
        """
        result = self._call(
            RpcMethod.IMPORT_PRIVKEY,
            key,
            label,
            context=RpcContext.WALLET
        )
        if isinstance(result, str):
            return self.get_address(result)
        return None

    def refill_key_pool(self) -> None:
        self._call(RpcMethod.KEYPOOL_REFILL, context=RpcContext.WALLET)

    def is_valid_address(self, address: Union[str, AddressLike]) -> bool:
        """
        Indirizzo valido per la rete del daemon? Su testnet gli indirizzi
        mainnet non sono validi e viceversa.
        """
        address = canonical_address(address)
        info = self._call(
            RpcMethod.VALIDATE_ADDRESS,
            address,
            context=RpcContext.ADDRESS,
            address=address
        )
        return bool(info.get("isvalid"))

    def verify_message(
        self,
        address: Union[str, AddressLike],
        signature: str,
        message: str
    ) -> bool:
        """Verifica la firma signature di message per address"""
        address = canonical_address(address)
        return bool(self._call(
            RpcMethod.VERIFY_MESSAGE,
            address,
            signature,
            message,
            context=RpcContext.ADDRESS,
            address=address
        ))

    # ========================================================================
    # DAEMON INFO
    # ========================================================================

    def _info(self) -> Dict[str, Any]:
        return self._call(RpcMethod.GET_INFO)

    def balance(self) -> float:
        """Saldo totale di tutti gli account (almeno 1 conferma)"""
        return self._call(RpcMethod.GET_BALANCE)

    def block_count(self) -> int:
        return self._call(RpcMethod.GET_BLOCK_COUNT)

    def connection_count(self) -> int:
        """Numero di peer connessi al daemon"""
        return self._call(RpcMethod.GET_CONNECTION_COUNT)

    def difficulty(self) -> float:
        """Difficoltà per il prossimo blocco"""
        return self._call(RpcMethod.GET_DIFFICULTY)

    def is_generating(self) -> bool:
        return bool(self._call(RpcMethod.GET_GENERATE))

    def set_generate(self, should_generate: bool) -> bool:
        """Avvia/ferma la generazione di blocchi sul daemon"""
        should_generate = bool(should_generate)
        self._call(RpcMethod.SET_GENERATE, should_generate)
        return should_generate

    def hashes_per_second(self) -> float:
        return self._call(RpcMethod.GET_HASHES_PER_SEC)

    def daemon_version(self) -> int:
        return self._info()["version"]

    def daemon_version_string(self) -> str:
        """Versione del daemon leggibile (es. "0.3.24")"""
        return format_daemon_version(self.daemon_version())

    def protocol_version(self) -> int:
        return self._info()["protocolversion"]

    def proxy(self) -> Optional[str]:
        """Proxy usato dal daemon, None se assente"""
        return self._info().get("proxy") or None

    def uses_proxy(self) -> bool:
        return self.proxy() is not None

    def is_testnet(self) -> bool:
        return bool(self._info()["testnet"])

    def transaction_fee(self) -> float:
        """Fee di transazione configurata (paytxfee)"""
        return self._info()["paytxfee"]

    def set_transaction_fee(self, fee: float) -> float:
        fee = float(fee)
        if not math.isfinite(fee) or fee < 0:
            raise ValueError(f"fee must be finite and non-negative ({fee!r} given)")
        self._call(RpcMethod.SET_TX_FEE, fee)
        return fee

    def oldest_key(self) -> datetime:
        """Data creazione della chiave più vecchia nel key pool (UTC)"""
        return datetime.fromtimestamp(self._info()["keypoololdest"], tz=timezone.utc)

    def key_pool_size(self) -> int:
        return self._info()["keypoolsize"]

    def memory_pool(self) -> Dict[str, Any]:
        """Dati sul prossimo blocco da generare (getmemorypool)"""
        return self._call(RpcMethod.GET_MEMORY_POOL)

    def stop(self) -> Any:
        """Arresta il daemon"""
        logger.warning("Stopping daemon")
        return self._call(RpcMethod.STOP)

    # ========================================================================
    # LIFECYCLE
    # ========================================================================

    def close(self):
        """Chiude il trasporto (se supporta close)"""
        close = getattr(self.rpc, "close", None)
        if close is not None:
            close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()

    def __repr__(self) -> str:
        return f"<Client {self.rpc!r} {self.cache!r}>"


# ============================================================================
# HELPERS
# ============================================================================

def rejected_address(message: str, outputs: Mapping[str, float]) -> str:
    """
    Indirizzo rifiutato da sendmany, ricavato dal messaggio del daemon.

    Il daemon risponde "Invalid Bitcoin address: <addr>". Ordine:
    destinazione uguale al testo dopo i due punti, poi la destinazione più
    lunga contenuta nel messaggio, poi il testo dopo i due punti.

    Examples:
        >>> rejected_address("Invalid Bitcoin address: 1bad", {"1bad": 1.0})
        '1bad'
    """
    tail = message.split(":", 1)[1].strip() if ":" in message else None
    if tail in outputs:
        return tail

    for address in sorted(outputs, key=len, reverse=True):
        if address and address in message:
            return address

    return tail if tail is not None else message


__all__ = [
    "Client",
    "rejected_address",
]
