"""
BitLedger - RPC Module
========================
Trasporto JSON-RPC verso il daemon.
"""

from bit_ledger.rpc.transport import RpcTransport, JsonRpcTransport

__all__ = [
    "RpcTransport",
    "JsonRpcTransport",
]
