"""
BitLedger - Domain Models
===========================
Oggetti di dominio idratati dalle risposte del daemon.

Last Updated: 2026-10-18
Version: 1.0.0

Models:
- Block: blocco della chain (immutabile)
- Transaction: transazione che tocca il wallet (immutabile)
- Account: etichetta di account del wallet ("" = default)
- Address: indirizzo validato dal daemon

Block e Transaction sono frozen dataclass: ogni istanza è creata una sola
volta per Client (vedi domain.cache) e l'uguaglianza è l'identità.
Le relazioni (next_block, account, transactions, ...) passano sempre dal
Client: nessun riferimento diretto memorizzato tra entità.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from functools import cached_property
from types import MappingProxyType
from typing import (
    TYPE_CHECKING,
    Any,
    Dict,
    List,
    Mapping,
    Optional,
    Protocol,
    Tuple,
    Union,
    runtime_checkable,
)

from bit_ledger.constants import RpcMethod, DEFAULT_MINIMUM_CONFIRMATIONS
from bit_ledger.domain.error_mapping import RpcContext
from bit_ledger.errors import InvalidAddressError
from bit_ledger.logging_setup import get_logger

if TYPE_CHECKING:
    from bit_ledger.client import Client


# ============================================================================
# MODULE LOGGER
# ============================================================================

logger = get_logger("domain.models")


# ============================================================================
# ADDRESS-LIKE
# ============================================================================

@runtime_checkable
class AddressLike(Protocol):
    """Qualsiasi oggetto che sa restituire la propria stringa indirizzo"""

    def canonical_string(self) -> str:
        ...


def canonical_address(value: Union[str, AddressLike]) -> str:
    """
    Stringa indirizzo da str o AddressLike.

    Raises:
        TypeError: Se value non è né str né AddressLike
    """
    if isinstance(value, str):
        return value
    if isinstance(value, AddressLike):
        return value.canonical_string()
    raise TypeError(f"address must be a str or AddressLike ({type(value).__name__} given)")


def canonical_account_name(value: Union[str, "Account"]) -> str:
    """Label account da str o Account"""
    if isinstance(value, str):
        return value
    if isinstance(value, Account):
        return value.name
    raise TypeError(f"account must be a str or Account ({type(value).__name__} given)")


def _utc(unix_time: int) -> datetime:
    return datetime.fromtimestamp(unix_time, tz=timezone.utc)


# ============================================================================
# BLOCK
# ============================================================================

@dataclass(frozen=True, eq=False)
class Block:
    """
    Blocco della chain.

    Attributes:
        block_id (str): Hash del blocco
        height (int): Numero di blocchi precedenti
        version (int): Versione blocco
        merkle_root (str): Merkle root (hex) delle transazioni
        created_at_unix_time (int): Timestamp creazione
        nonce (int): Nonce usato per raggiungere il target
        difficulty (float): Difficoltà al momento della creazione
        transaction_ids (tuple): ID transazioni, in ordine
        previous_block_id (str | None): None per il blocco genesis
        next_block_id (str | None): None per il tip della chain
        bits (str | None): Target compatto

    Examples:
        >>> block = client.get_block(0)
        >>> block.previous_block is None
        True
        >>> block.next_block.previous_block is block
        True
    """

    client: "Client" = field(repr=False)
    block_id: str
    height: int
    version: int
    merkle_root: str
    created_at_unix_time: int
    nonce: int
    difficulty: float
    transaction_ids: Tuple[str, ...] = ()
    previous_block_id: Optional[str] = None
    next_block_id: Optional[str] = None
    bits: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.block_id, str) or not self.block_id:
            raise ValueError(f"Invalid block_id: {self.block_id!r}")

        if not isinstance(self.height, int) or self.height < 0:
            raise ValueError(f"Invalid block height: {self.height!r}")

    @classmethod
    def load(cls, client: "Client", block_id: str) -> "Block":
        """
        Idrata il blocco con getblock.

        Raises:
            TypeError: block_id non è una stringa
            UnknownBlockError: Il daemon non conosce il blocco
        """
        if not isinstance(block_id, str):
            raise TypeError(f"block_id must be a str ({type(block_id).__name__} given)")

        data = client._call(
            RpcMethod.GET_BLOCK,
            block_id,
            context=RpcContext.BLOCK,
            block_id=block_id
        )
        return cls.from_rpc(client, data)

    @classmethod
    def from_rpc(cls, client: "Client", data: Mapping[str, Any]) -> "Block":
        """Costruisce il blocco da un payload getblock"""
        return cls(
            client=client,
            block_id=data["hash"],
            height=data["height"],
            version=data["version"],
            merkle_root=data["merkleroot"],
            created_at_unix_time=data["time"],
            nonce=data["nonce"],
            difficulty=data["difficulty"],
            transaction_ids=tuple(data.get("tx") or ()),
            previous_block_id=data.get("previousblockhash"),
            next_block_id=data.get("nextblockhash"),
            bits=data.get("bits"),
        )

    @property
    def next_block(self) -> Optional["Block"]:
        """Blocco successivo, None se questo è il tip"""
        if self.next_block_id is None:
            return None
        return self.client.get_block(self.next_block_id)

    @property
    def previous_block(self) -> Optional["Block"]:
        """Blocco precedente, None se questo è il genesis"""
        if self.previous_block_id is None:
            return None
        return self.client.get_block(self.previous_block_id)

    @cached_property
    def created_at(self) -> datetime:
        """Data creazione (UTC)"""
        return _utc(self.created_at_unix_time)

    def __repr__(self) -> str:
        return f"<Block {self.block_id} height={self.height}>"


# ============================================================================
# TRANSACTION
# ============================================================================

@dataclass(frozen=True, eq=False)
class Transaction:
    """
    Transazione che coinvolge indirizzi del wallet.

    Il daemon conosce solo transazioni che toccano chiavi private del
    wallet, anche se la chain contiene tutte le altre.

    Attributes:
        transaction_id (str): ID transazione
        unix_time (int): Timestamp
        amounts (Mapping[str, float]): address -> importo netto
            (positivo = ricevuto, negativo = inviato)
        fees (Mapping[str, float]): address -> fee pagata
    """

    client: "Client" = field(repr=False)
    transaction_id: str
    unix_time: int
    amounts: Mapping[str, float] = field(default_factory=dict)
    fees: Mapping[str, float] = field(default_factory=dict)

    def __post_init__(self):
        # Mapping read-only anche se il chiamante passa dict
        object.__setattr__(self, "amounts", MappingProxyType(dict(self.amounts)))
        object.__setattr__(self, "fees", MappingProxyType(dict(self.fees)))

    @classmethod
    def load(cls, client: "Client", transaction_id: str) -> "Transaction":
        """
        Idrata la transazione con gettransaction.

        Raises:
            TypeError: transaction_id non è una stringa
            UnknownTransactionError: Il daemon non conosce la transazione
        """
        if not isinstance(transaction_id, str):
            raise TypeError(
                f"transaction_id must be a str ({type(transaction_id).__name__} given)"
            )

        data = client._call(
            RpcMethod.GET_TRANSACTION,
            transaction_id,
            context=RpcContext.TRANSACTION,
            transaction_id=transaction_id
        )
        return cls.from_rpc(client, transaction_id, data)

    @classmethod
    def from_rpc(
        cls,
        client: "Client",
        transaction_id: str,
        data: Mapping[str, Any]
    ) -> "Transaction":
        """
        Costruisce la transazione da un payload gettransaction.

        Più dettagli sullo stesso indirizzo (es. invio a sé stessi) vengono
        sommati: amounts contiene l'importo netto per indirizzo.
        """
        amounts: Dict[str, float] = {}
        fees: Dict[str, float] = {}

        for detail in data["details"]:
            address = detail.get("address")
            if address is None:
                continue

            amounts[address] = amounts.get(address, 0) + detail["amount"]

            if detail.get("fee") is not None:
                fees[address] = fees.get(address, 0) + detail["fee"]

        return cls(
            client=client,
            transaction_id=transaction_id,
            unix_time=data["time"],
            amounts=amounts,
            fees=fees,
        )

    @cached_property
    def time(self) -> datetime:
        """Data transazione (UTC)"""
        return _utc(self.unix_time)

    def includes(self, address: Union[str, AddressLike]) -> bool:
        """
        La transazione coinvolge address?

        Funziona solo per indirizzi di cui il wallet ha la chiave.
        """
        address = canonical_address(address)
        return address in self.fees or address in self.amounts

    __contains__ = includes

    def __repr__(self) -> str:
        return f"<Transaction {self.transaction_id}>"


# ============================================================================
# ACCOUNT
# ============================================================================

class Account:
    """
    Account del wallet (c.f. "accounts" di bitcoind).

    Saldo, indirizzi e transazioni cambiano per attività esterna: ogni
    lettura interroga il daemon. Solo l'identità (label) è in cache.

    Attributes:
        client (Client): Client di appartenenza
        name (str): Label account ("" = account di default)
    """

    def __init__(self, client: "Client", name: str):
        if not isinstance(name, str):
            raise TypeError(f"account name must be a str ({type(name).__name__} given)")

        self.client = client
        self._name = name

    @classmethod
    def load(cls, client: "Client", name: str) -> "Account":
        return cls(client, name)

    @property
    def name(self) -> str:
        return self._name

    # ========================================================================
    # QUERIES
    # ========================================================================

    def transactions(self) -> List[Transaction]:
        """
        Tutte le transazioni dell'account, senza duplicati.

        listtransactions viene paginata (page_size da settings) finché una
        pagina torna più corta della dimensione richiesta. Gli ID vengono
        raccolti tutti prima dell'idratazione: se una pagina fallisce
        l'errore si propaga e nessun risultato parziale è restituito.
        """
        page_size = self.client.settings.page_size
        offset = 0
        transaction_ids: List[str] = []

        while True:
            page = self.client._call(
                RpcMethod.LIST_TRANSACTIONS,
                self._name,
                page_size,
                offset
            )
            # Le voci "move" non hanno txid
            transaction_ids.extend(
                entry["txid"] for entry in page if entry.get("txid") is not None
            )

            if len(page) < page_size:
                break
            offset += page_size

        unique_ids = list(dict.fromkeys(transaction_ids))

        logger.debug(
            "Account transactions listed",
            extra_data={
                "account": self._name,
                "pages": offset // page_size + 1,
                "listed": len(transaction_ids),
                "unique": len(unique_ids),
            }
        )

        return [self.client.get_transaction(txid) for txid in unique_ids]

    def balance(self, minimum_confirmations: int = DEFAULT_MINIMUM_CONFIRMATIONS) -> float:
        """Saldo con almeno minimum_confirmations conferme"""
        return self.client._call(RpcMethod.GET_BALANCE, self._name, minimum_confirmations)

    def addresses(self) -> List["Address"]:
        """Tutti gli indirizzi associati all'account"""
        return [
            self.client.get_address(address)
            for address in self.client._call(RpcMethod.GET_ADDRESSES_BY_ACCOUNT, self._name)
        ]

    def unused_address(self) -> "Address":
        """Indirizzo non ancora usato (creato se necessario)"""
        return self.client.get_address(
            self.client._call(RpcMethod.GET_ACCOUNT_ADDRESS, self._name)
        )

    def new_address(self) -> "Address":
        """Nuovo indirizzo dal key pool"""
        return self.client.get_address(
            self.client._call(
                RpcMethod.GET_NEW_ADDRESS,
                self._name,
                context=RpcContext.WALLET
            )
        )

    # ========================================================================
    # SENDS
    # ========================================================================

    def send(self, dest: Union[str, AddressLike], amount: float) -> Transaction:
        """
        Invia amount a dest dai fondi dell'account (sendfrom).

        Raises:
            TypeError / ValueError: amount non reale positivo, dest non valido
            InvalidAddressError: dest rifiutato dal daemon
            InsufficientFundsError: required=amount, available=saldo account
            LockedWalletError: wallet da sbloccare
        """
        dest = canonical_address(dest)
        self.client._check_amount(amount)

        txid = self.client._call(
            RpcMethod.SEND_FROM,
            self._name,
            dest,
            amount,
            context=RpcContext.SEND,
            address=dest,
            required=amount,
            available=self.balance
        )

        logger.info(
            "Funds sent",
            extra_data={"account": self._name, "dest": dest, "amount": amount, "txid": txid}
        )
        return self.client.get_transaction(txid)

    def send_to_many(self, dests: Mapping[Union[str, AddressLike], float]) -> Transaction:
        """
        Invia a più destinatari in una transazione (sendmany).

        Args:
            dests: destinazione -> importo positivo

        Raises:
            InvalidAddressError: con l'indirizzo rifiutato dal daemon
            InsufficientFundsError: required=somma importi
        """
        outputs = self.client._outputs(dests)

        txid = self.client._call_with_rejected_address(
            RpcMethod.SEND_MANY,
            self._name,
            outputs,
            outputs=outputs,
            required=sum(outputs.values()),
            available=self.balance
        )

        logger.info(
            "Funds sent to many",
            extra_data={"account": self._name, "outputs": len(outputs), "txid": txid}
        )
        return self.client.get_transaction(txid)

    def __str__(self) -> str:
        return self._name

    def __repr__(self) -> str:
        return f"<Account {self._name!r}>"


# ============================================================================
# ADDRESS
# ============================================================================

class Address:
    """
    Indirizzo validato contro la rete del daemon (mainnet o testnet).

    Attributes:
        client (Client): Client di appartenenza
        address (str): Stringa indirizzo
        is_mine (bool | None): Il wallet possiede la chiave (se riportato)
    """

    def __init__(self, client: "Client", address: str):
        if not isinstance(address, str):
            raise TypeError(f"address must be a str ({type(address).__name__} given)")

        self.client = client
        self._address = address
        self._private_key: Optional[str] = None

        info = client._call(
            RpcMethod.VALIDATE_ADDRESS,
            address,
            context=RpcContext.ADDRESS,
            address=address
        )
        if not info.get("isvalid"):
            raise InvalidAddressError(address)

        self.is_mine: Optional[bool] = info.get("ismine")

    @classmethod
    def load(cls, client: "Client", address: str) -> "Address":
        return cls(client, address)

    @property
    def address(self) -> str:
        return self._address

    def canonical_string(self) -> str:
        return self._address

    # ========================================================================
    # QUERIES
    # ========================================================================

    def is_valid(self) -> bool:
        """Rivalida l'indirizzo sul daemon"""
        return self.client.is_valid_address(self._address)

    @property
    def account(self) -> Account:
        """Account attuale (sempre riletto: può essere riassegnato)"""
        label = self.client._call(
            RpcMethod.GET_ACCOUNT,
            self._address,
            context=RpcContext.ADDRESS,
            address=self._address
        )
        return self.client.get_account(label)

    def set_account(self, account: Union[str, Account]) -> Account:
        """Associa l'indirizzo ad account e restituisce l'Account canonico"""
        label = canonical_account_name(account)
        self.client._call(
            RpcMethod.SET_ACCOUNT,
            self._address,
            label,
            context=RpcContext.ADDRESS,
            address=self._address
        )
        return self.client.get_account(label)

    def transactions(self) -> List[Transaction]:
        """Transazioni del proprio account che coinvolgono questo indirizzo"""
        return [tx for tx in self.account.transactions() if tx.includes(self)]

    @property
    def private_key(self) -> Optional[str]:
        """
        Chiave privata (dumpprivkey), None se il wallet non la possiede.

        Raises:
            InvalidAddressError: indirizzo invalido per il daemon
            LockedWalletError: wallet da sbloccare
        """
        if self._private_key is None:
            self._private_key = self.client._call(
                RpcMethod.DUMP_PRIVKEY,
                self._address,
                context=RpcContext.PRIVATE_KEY_DUMP,
                address=self._address
            )
        return self._private_key

    # ========================================================================
    # SIGNATURES
    # ========================================================================

    def sign(self, message: str) -> str:
        """
        Firma message con la chiave dell'indirizzo.

        Returns:
            str: Firma base64 staccata (serve anche message per verificarla)

        Raises:
            UnknownPrivateKeyError: il wallet non ha la chiave
            LockedWalletError: wallet da sbloccare
        """
        return self.client._call(
            RpcMethod.SIGN_MESSAGE,
            self._address,
            message,
            context=RpcContext.SIGNING,
            address=self._address
        )

    def verify(self, message: str, signature: str) -> bool:
        """True se signature è una firma valida di message per questo indirizzo"""
        return self.client.verify_message(self._address, signature, message)

    def __str__(self) -> str:
        return self._address

    def __repr__(self) -> str:
        return f"<Address {self._address}>"


__all__ = [
    "AddressLike",
    "canonical_address",
    "canonical_account_name",
    "Block",
    "Transaction",
    "Account",
    "Address",
]
