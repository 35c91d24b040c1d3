"""
BitLedger - Entity Identity Cache
===================================
Una sola istanza canonica per ogni entità remota, per Client.

Last Updated: 2026-10-18
Version: 1.0.0

Cache:
- Mappa separata per tipo (blocks, transactions, accounts, addresses)
- Nessuna eviction, nessun TTL: vive quanto il Client
- Idratazione fuori dal lock, insert con setdefault: due lookup
  concorrenti dello stesso ID convergono sulla stessa istanza

Solo campi immutabili lato daemon finiscono in cache (attributi di Block e
Transaction, stringa/validità di Address). Stato mutabile (saldo Account,
account di un Address) viene sempre riletto dal daemon.
"""

from __future__ import annotations
from enum import Enum
from typing import Any, Callable, Dict, Hashable, Mapping, Optional
import threading

from bit_ledger.logging_setup import get_logger


# ============================================================================
# MODULE LOGGER
# ============================================================================

logger = get_logger("domain.cache")


class EntityKind(Enum):
    BLOCK = "block"
    TRANSACTION = "transaction"
    ACCOUNT = "account"
    ADDRESS = "address"

    @property
    def plural(self) -> str:
        return "addresses" if self is EntityKind.ADDRESS else f"{self.value}s"


Loader = Callable[[Hashable], Any]


class _IdentityMap:
    """Mappa ID -> istanza protetta da un RLock dedicato"""

    def __init__(self, kind: EntityKind, loader: Loader):
        self.kind = kind
        self.loader = loader
        self._entries: Dict[Hashable, Any] = {}
        self._lock = threading.RLock()

    def get(self, key: Hashable) -> Any:
        with self._lock:
            if key in self._entries:
                return self._entries[key]

        # Idratazione (RPC) fuori dal lock
        entity = self.loader(key)

        with self._lock:
            canonical = self._entries.setdefault(key, entity)

        if canonical is entity:
            logger.debug(
                "Entity cached",
                extra_data={"kind": self.kind.value, "key": key, "size": len(self._entries)}
            )
        return canonical

    def peek(self, key: Hashable) -> Optional[Any]:
        with self._lock:
            return self._entries.get(key)

    def __contains__(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class EntityCache:
    """
    Identity map per-Client delle entità.

    Attributes:
        _maps (dict): EntityKind -> _IdentityMap

    Examples:
        >>> cache = EntityCache({
        ...     EntityKind.ACCOUNT: lambda label: Account(client, label),
        ... })
        >>> cache.get(EntityKind.ACCOUNT, "") is cache.get(EntityKind.ACCOUNT, "")
        True
    """

    def __init__(self, loaders: Mapping[EntityKind, Loader]):
        missing = [kind.name for kind in EntityKind if kind not in loaders]
        if missing:
            raise TypeError(f"Missing loader(s) for: {', '.join(missing)}")

        self._maps: Dict[EntityKind, _IdentityMap] = {
            kind: _IdentityMap(kind, loaders[kind]) for kind in EntityKind
        }

    def get(self, kind: EntityKind, key: Hashable) -> Any:
        """
        Istanza canonica per (kind, key).

        Prima chiamata: invoca il loader (che può sollevare errori di
        dominio, in tal caso nulla viene memorizzato). Chiamate successive:
        stessa istanza.
        """
        return self._maps[kind].get(key)

    def peek(self, kind: EntityKind, key: Hashable) -> Optional[Any]:
        """Istanza in cache o None, senza idratare"""
        return self._maps[kind].peek(key)

    def contains(self, kind: EntityKind, key: Hashable) -> bool:
        return key in self._maps[kind]

    def size(self, kind: EntityKind) -> int:
        return len(self._maps[kind])

    def __len__(self) -> int:
        return sum(len(m) for m in self._maps.values())

    def __repr__(self) -> str:
        sizes = ", ".join(f"{kind.plural}={len(m)}" for kind, m in self._maps.items())
        return f"EntityCache({sizes})"


__all__ = [
    "EntityKind",
    "EntityCache",
]
