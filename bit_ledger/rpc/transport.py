"""
BitLedger - JSON-RPC Transport
================================
Confine di rete verso il daemon.

Last Updated: 2026-10-18
Version: 1.0.0

Components:
- RpcTransport: protocollo iniettabile (call(method, params) -> JSON)
- JsonRpcTransport: implementazione HTTP basata su requests.Session

Il daemon risponde agli errori con HTTP 500 e body JSON-RPC: il body viene
interpretato prima dello status code, così l'errore strutturato
{code, message} arriva al chiamante come RpcServerError.
"""

import itertools
from typing import Any, Optional, Protocol, Sequence, runtime_checkable

import requests

from bit_ledger.constants import DEFAULT_RPC_TIMEOUT, JSONRPC_VERSION
from bit_ledger.errors import (
    RpcServerError,
    RpcTransportError,
    RpcConnectionError,
    RpcTimeoutError,
)
from bit_ledger.logging_setup import get_logger, PerformanceLogger
from bit_ledger.version import get_user_agent


# ============================================================================
# MODULE LOGGER
# ============================================================================

logger = get_logger("rpc.transport")


# ============================================================================
# PROTOCOL
# ============================================================================

@runtime_checkable
class RpcTransport(Protocol):
    """
    Interfaccia minima consumata dal Client.

    Implementazioni:
    - restituiscono il campo "result" già decodificato
    - sollevano RpcServerError(code, message) per errori del daemon
    - sollevano RpcTimeoutError / RpcConnectionError per errori di rete
    """

    def call(self, method: str, params: Sequence[Any] = ()) -> Any:
        ...


# ============================================================================
# HTTP TRANSPORT
# ============================================================================

class JsonRpcTransport:
    """
    Client JSON-RPC 1.0 su HTTP(S) con basic auth.

    Example:
        >>> transport = JsonRpcTransport("http://127.0.0.1:8331/", "user", "pass")
        >>> transport.call("getblockcount")
        171000
    """

    def __init__(
        self,
        url: str,
        user: str = "",
        password: str = "",
        timeout: float = DEFAULT_RPC_TIMEOUT,
        session: Optional[requests.Session] = None,
        slow_call_threshold_ms: Optional[int] = None,
    ):
        """
        Args:
            url: Endpoint del daemon (es. http://127.0.0.1:8331/)
            user: Utente RPC
            password: Password RPC
            timeout: Timeout per richiesta (secondi)
            session: Session requests già configurata (opzionale)
            slow_call_threshold_ms: Soglia warning per chiamate lente
        """
        self.url = url
        self.timeout = timeout
        self.slow_call_threshold_ms = slow_call_threshold_ms
        self.session = session if session is not None else requests.Session()
        self.session.auth = (user, password)
        self.session.headers.update({
            'Content-Type': 'application/json',
            'User-Agent': get_user_agent(),
        })
        self._ids = itertools.count(1)

    def call(self, method: str, params: Sequence[Any] = ()) -> Any:
        """
        Esegue una chiamata RPC.

        Args:
            method: Nome metodo (es. "getblock")
            params: Parametri posizionali

        Returns:
            Campo "result" della risposta

        Raises:
            RpcServerError: Errore riportato dal daemon
            RpcTimeoutError: Timeout della richiesta
            RpcConnectionError: Daemon non raggiungibile
            RpcTransportError: Risposta HTTP non JSON-RPC
        """
        request_id = next(self._ids)
        payload = {
            "jsonrpc": JSONRPC_VERSION,
            "id": request_id,
            "method": method,
            "params": list(params),
        }

        with PerformanceLogger(logger, method, self.slow_call_threshold_ms):
            try:
                response = self.session.post(
                    self.url,
                    json=payload,
                    timeout=self.timeout
                )
            except requests.Timeout as exc:
                raise RpcTimeoutError(
                    f"RPC call {method} timed out after {self.timeout}s"
                ) from exc
            except requests.ConnectionError as exc:
                raise RpcConnectionError(
                    f"Cannot reach daemon at {self.url}: {exc}"
                ) from exc

        return self._parse_response(method, response)

    def _parse_response(self, method: str, response: requests.Response) -> Any:
        try:
            body = response.json()
        except ValueError:
            body = None

        if not isinstance(body, dict):
            # 401/403/404 arrivano senza body JSON-RPC
            raise RpcTransportError(
                f"HTTP {response.status_code} from daemon on {method}",
                status=response.status_code,
                body=response.text
            )

        error = body.get("error")
        if error:
            code = error.get("code") if isinstance(error, dict) else None
            if isinstance(code, bool) or not isinstance(code, int):
                raise RpcTransportError(
                    f"Malformed JSON-RPC error from daemon on {method}",
                    status=response.status_code,
                    body=response.text
                )
            raise RpcServerError(
                code=code,
                message=error.get("message", ""),
                data=error.get("data")
            )

        if response.status_code >= 400:
            raise RpcTransportError(
                f"HTTP {response.status_code} from daemon on {method}",
                status=response.status_code,
                body=response.text
            )

        return body.get("result")

    def close(self):
        """Close the session"""
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()

    def __repr__(self) -> str:
        return f"JsonRpcTransport(url={self.url!r}, timeout={self.timeout})"


__all__ = [
    "RpcTransport",
    "JsonRpcTransport",
]
