"""
BitLedger - Domain Module
===========================
Entità, identity cache e traduzione errori del daemon.
"""

from bit_ledger.domain.error_mapping import (
    RpcContext,
    ErrorKind,
    classify_rpc_error,
    build_domain_error,
)
from bit_ledger.domain.cache import EntityKind, EntityCache
from bit_ledger.domain.models import (
    AddressLike,
    canonical_address,
    canonical_account_name,
    Block,
    Transaction,
    Account,
    Address,
)

__all__ = [
    "RpcContext",
    "ErrorKind",
    "classify_rpc_error",
    "build_domain_error",
    "EntityKind",
    "EntityCache",
    "AddressLike",
    "canonical_address",
    "canonical_account_name",
    "Block",
    "Transaction",
    "Account",
    "Address",
]
