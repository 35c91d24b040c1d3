"""
BitLedger - Logging System
============================
Logging strutturato per chiamate RPC e operazioni wallet.

Last Updated: 2026-10-18
Version: 1.0.0

Features:
- Record JSON (una riga per evento) per i file di log
- Formatter colorato per console
- Campo extra_data con il contesto dell'evento
- Timing delle chiamate RPC (PerformanceLogger)

La libreria non installa handler all'import: i logger "bitledger.*"
restano silenziosi finché l'applicazione non chiama setup_logging().
"""

import json
import logging
import logging.handlers
import sys
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional


ROOT_LOGGER_NAME = "bitledger"

TEXT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def _iso_utc(created: float) -> str:
    stamp = datetime.fromtimestamp(created, tz=timezone.utc)
    return stamp.strftime('%Y-%m-%dT%H:%M:%S.%fZ')


# ============================================================================
# FORMATTERS
# ============================================================================

class JSONFormatter(logging.Formatter):
    """
    Un oggetto JSON per record:

    {"timestamp": "...Z", "level": "DEBUG", "logger": "bitledger.client",
     "message": "RPC call", "extra_data": {...}, "exception": {...}}
    """

    def __init__(self, include_extra: bool = True, include_stack: bool = True):
        super().__init__()
        self.include_extra = include_extra
        self.include_stack = include_stack

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": _iso_utc(record.created),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
            "thread": record.threadName,
        }

        extra_data = getattr(record, "extra_data", None)
        if self.include_extra and extra_data:
            entry["extra_data"] = extra_data

        if record.exc_info and self.include_stack:
            exc_type, exc_value, _ = record.exc_info
            entry["exception"] = {
                "type": exc_type.__name__,
                "message": str(exc_value),
                "traceback": self.formatException(record.exc_info),
            }

        return json.dumps(entry, default=str)


class ColoredTextFormatter(logging.Formatter):
    """Formatter console: livello colorato, extra_data in coda"""

    COLORS = {
        logging.DEBUG: '\033[90m',
        logging.INFO: '\033[92m',
        logging.WARNING: '\033[93m',
        logging.ERROR: '\033[91m',
        logging.CRITICAL: '\033[1;91m',
    }
    RESET = '\033[0m'

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelno, '')
        level = f"{color}{record.levelname}{self.RESET}" if color else record.levelname
        stamp = datetime.fromtimestamp(record.created, tz=timezone.utc)

        parts = [f"{stamp:%Y-%m-%d %H:%M:%S} [{level}] {record.name}: {record.getMessage()}"]

        extra_data = getattr(record, "extra_data", None)
        if extra_data:
            parts.append(" | " + " ".join(f"{k}={v}" for k, v in extra_data.items()))

        if record.exc_info:
            parts.append("\n" + self.formatException(record.exc_info))

        return "".join(parts)


# ============================================================================
# LOGGER ADAPTER
# ============================================================================

class BitLedgerLogger(logging.LoggerAdapter):
    """
    Adapter che accetta extra_data= su ogni chiamata e lo unisce al
    contesto fisso impostato con set_context().

    Example:
        >>> logger = get_logger("client")
        >>> logger.set_context(rpc_host="127.0.0.1")
        >>> logger.debug("RPC call", extra_data={"method": "getinfo"})
    """

    def __init__(self, logger: logging.Logger):
        super().__init__(logger, {})

    def process(self, msg, kwargs):
        extra_data = {**self.extra, **(kwargs.pop("extra_data", None) or {})}
        if extra_data:
            kwargs["extra"] = {**kwargs.get("extra", {}), "extra_data": extra_data}
        return msg, kwargs

    def set_context(self, **kwargs):
        self.extra.update(kwargs)

    def clear_context(self):
        self.extra.clear()


# ============================================================================
# SETUP
# ============================================================================

def _file_handler(
    log_dir: Path,
    log_format: str,
    log_rotation_mb: int,
    log_retention_days: int
) -> logging.Handler:
    log_dir.mkdir(parents=True, exist_ok=True)

    handler = logging.handlers.RotatingFileHandler(
        filename=log_dir / f"{ROOT_LOGGER_NAME}.log",
        maxBytes=log_rotation_mb * 1024 * 1024,
        backupCount=log_retention_days,
        encoding='utf-8'
    )
    handler.setFormatter(
        JSONFormatter() if log_format == "json" else logging.Formatter(TEXT_FORMAT)
    )
    return handler


def setup_logging(
    log_level: str = "INFO",
    log_to_file: bool = False,
    log_dir: Path = Path("./logs"),
    log_format: str = "json",
    log_rotation_mb: int = 10,
    log_retention_days: int = 7,
    enable_console: bool = True,
) -> BitLedgerLogger:
    """
    Configura gli handler del logger "bitledger" (sostituisce i precedenti).

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR, CRITICAL
        log_to_file: Scrive log_dir/bitledger.log con rotazione per dimensione
        log_dir: Directory log files
        log_format: Formato su file (json, text)
        log_rotation_mb: MB prima della rotazione
        log_retention_days: File di backup conservati
        enable_console: Anche su stderr (formatter colorato)

    Example:
        >>> logger = setup_logging(log_level="DEBUG")
        >>> logger.info("Client ready", extra_data={"rpc_port": 8331})
    """
    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(log_level.upper())

    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    if log_to_file:
        root.addHandler(
            _file_handler(Path(log_dir), log_format, log_rotation_mb, log_retention_days)
        )

    if enable_console:
        console = logging.StreamHandler(sys.stderr)
        console.setFormatter(ColoredTextFormatter())
        root.addHandler(console)

    return BitLedgerLogger(root)


def setup_logging_from_settings(settings) -> BitLedgerLogger:
    """Setup dai campi log_* di ClientSettings"""
    return setup_logging(
        log_level=settings.log_level,
        log_to_file=settings.log_to_file,
        log_dir=settings.log_dir,
        log_format=settings.log_format,
    )


def get_logger(category: str) -> BitLedgerLogger:
    """Logger "bitledger.<category>" (es. client, rpc.transport, domain.cache)"""
    return BitLedgerLogger(logging.getLogger(f"{ROOT_LOGGER_NAME}.{category}"))


# ============================================================================
# PERFORMANCE TRACKING
# ============================================================================

class PerformanceLogger:
    """
    Misura la durata del blocco e la registra: debug normalmente, warning
    oltre threshold_ms. Un'eccezione nel blocco viene registrata in
    extra_data["failed"] e propagata.

    Example:
        >>> with PerformanceLogger(logger, "getblock", threshold_ms=500):
        ...     session.post(url, json=payload)
    """

    def __init__(
        self,
        logger: BitLedgerLogger,
        operation: str,
        threshold_ms: Optional[int] = None
    ):
        self.logger = logger
        self.operation = operation
        self.threshold_ms = threshold_ms
        self.elapsed_ms: Optional[float] = None
        self._started: float = 0.0

    def __enter__(self):
        self._started = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.elapsed_ms = (time.perf_counter() - self._started) * 1000

        extra = {"operation": self.operation, "duration_ms": round(self.elapsed_ms, 2)}
        if exc_type is not None:
            extra["failed"] = exc_type.__name__

        slow = self.threshold_ms is not None and self.elapsed_ms > self.threshold_ms
        if slow:
            self.logger.warning(
                f"{self.operation} took {self.elapsed_ms:.2f}ms "
                f"(threshold: {self.threshold_ms}ms)",
                extra_data=extra
            )
        else:
            self.logger.debug(
                f"{self.operation} completed in {self.elapsed_ms:.2f}ms",
                extra_data=extra
            )
        return False


__all__ = [
    "ROOT_LOGGER_NAME",
    "setup_logging",
    "setup_logging_from_settings",
    "get_logger",
    "BitLedgerLogger",
    "PerformanceLogger",
    "JSONFormatter",
    "ColoredTextFormatter",
]
